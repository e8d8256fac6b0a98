"""Period countdown, the period-end boundary and the event gate."""

import logging
import time
from enum import Enum
from typing import Callable, Optional, Tuple

from .gateway import Confirmer, GatewayError, MatchGateway
from .possession import PossessionTracker
from .scheduler import Repeating, Scheduler
from .session import MatchSession, SessionEvent, TimerState
from .timer import TimerController

logger = logging.getLogger(__name__)

PERIOD_END_MESSAGE = (
    'Period has ended!\n\n'
    'The timer has reached 0:00 and this period has officially ended. '
    'Adding new events after the period end will affect official statistics.\n\n'
    'Are you sure you want to continue and add this event?'
)

# (period number, session) -> team that starts the period with the ball, or None
StartingTeamRule = Callable[[int, MatchSession], Optional[int]]


class GateState(str, Enum):
    BEFORE_PERIOD_END = 'before_period_end'
    PERIOD_ENDED = 'period_ended'
    OVERRIDDEN = 'overridden'
    BLOCKED = 'blocked'


def no_starting_team(period: int, session: MatchSession) -> Optional[int]:
    return None


class PeriodLifecycleManager:
    """Counts the period down locally and guards mutations once it hits 0:00.

    The countdown is projected from an anchor ``(remaining, wall time)``
    taken whenever the clock starts running or the server supplies a value.
    """

    def __init__(
        self,
        session: MatchSession,
        gateway: MatchGateway,
        timer: TimerController,
        tracker: PossessionTracker,
        confirmer: Confirmer,
        scheduler: Scheduler,
        now: Callable[[], float] = time.time,
        tick_interval: float = 1.0,
        starting_team: StartingTeamRule = no_starting_team,
    ):
        self.session = session
        self.gateway = gateway
        self.timer = timer
        self.tracker = tracker
        self.confirmer = confirmer
        self.scheduler = scheduler
        self.now = now
        self.tick_interval = tick_interval
        self.starting_team = starting_team
        self.period_ended = False
        self._freeze_refused = False
        self.state = GateState.BEFORE_PERIOD_END
        self._anchor: Optional[Tuple[int, float]] = None
        self._tick: Optional[Repeating] = None
        self._unsubscribe = session.subscribe(self._on_session_event)

    def close(self) -> None:
        self._cancel_tick()
        self._unsubscribe()

    # -- countdown -------------------------------------------------------

    def projected_remaining(self) -> int:
        if self._anchor is None:
            return self.session.time_remaining
        remaining, at = self._anchor
        return max(0, remaining - int(self.now() - at))

    def _reanchor(self) -> None:
        self._anchor = (self.session.time_remaining, self.now())

    def _cancel_tick(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    def _on_tick(self) -> None:
        remaining = self.session.set_time_remaining(self.projected_remaining(), 'countdown')
        if remaining == 0:
            self._end_period()

    def _on_session_event(self, event: SessionEvent) -> None:
        if event.kind == 'timer_state':
            if event.current == TimerState.RUNNING:
                self._reanchor()
                if event.source == 'rollback' and self.period_ended:
                    # The server refused the period-end pause; leave the clock to the user
                    if not self._freeze_refused:
                        logger.warning(f"[period-freeze-refused] game={self.session.game_id}")
                    self._freeze_refused = True
                    return
                if self._tick is None:
                    self._tick = self.scheduler.every(self.tick_interval, self._on_tick)
                if self.session.time_remaining == 0 and event.source != 'rollback':
                    self._end_period()
            else:
                self._freeze_refused = False
                if event.previous == TimerState.RUNNING and event.current == TimerState.PAUSED and self._anchor:
                    self.session.set_time_remaining(self.projected_remaining(), 'countdown')
                self._cancel_tick()
                self._anchor = None
                if event.current == TimerState.STOPPED:
                    self._clear_period_end()
        elif event.kind == 'time_remaining' and event.source != 'countdown':
            if self.session.timer_state == TimerState.RUNNING:
                self._reanchor()
                if event.current == 0:
                    self._end_period()
        elif event.kind == 'period':
            self._clear_period_end()

    def _end_period(self) -> None:
        """Mark the period over and freeze the clock if it is still running."""
        self._cancel_tick()
        if not self.period_ended:
            self.period_ended = True
            self.state = GateState.PERIOD_ENDED
            logger.info(f"[period-end] game={self.session.game_id} period={self.session.clock.current_period}")
            self.session.notice = f'Period {self.session.clock.current_period} has ended'
        if self.session.timer_state == TimerState.RUNNING and not self._freeze_refused:
            self.timer.dispatch('pause')

    def _clear_period_end(self) -> None:
        self.period_ended = False
        self._freeze_refused = False
        self.state = GateState.BEFORE_PERIOD_END

    # -- gate ------------------------------------------------------------

    def is_period_over(self) -> bool:
        if self.session.time_remaining > 0:
            return False
        return self.period_ended or self.session.timer_state != TimerState.STOPPED

    def can_add_events(self) -> bool:
        """Ask before every mutation once the period is over; never remember the answer."""
        if not self.is_period_over():
            self.state = GateState.BEFORE_PERIOD_END
            return True
        confirmed = bool(self.confirmer.confirm(PERIOD_END_MESSAGE))
        self.state = GateState.OVERRIDDEN if confirmed else GateState.BLOCKED
        logger.info(f"[period-gate] game={self.session.game_id} decision={self.state.value}")
        return confirmed

    # -- period changes --------------------------------------------------

    async def advance_period(self) -> bool:
        clock = self.session.clock
        if clock.current_period >= clock.number_of_periods:
            logger.info(f"[period-limit] game={self.session.game_id} period={clock.current_period}")
            self.session.notice = 'Already at final period'
            return False
        try:
            snapshot = await self.gateway.advance_period(self.session.game_id)
        except GatewayError as exc:
            self.session.fail(exc.message or 'Error advancing period')
            return False
        # The server closed the previous period's possession
        self.session.set_active_possession(None, 'period')
        self.timer.adopt(snapshot)
        self.session.set_time_remaining(self.session.clock.period_duration, 'period')
        self._clear_period_end()
        self.session.notice = 'Advanced to next period'
        team_id = self.starting_team(self.session.clock.current_period, self.session)
        if team_id is not None:
            await self.tracker.change_possession(team_id)
        return True

    async def set_period(self, period: int) -> bool:
        if period < 1 or period > self.session.clock.number_of_periods:
            return False
        try:
            snapshot = await self.gateway.set_period(self.session.game_id, period)
        except GatewayError as exc:
            self.session.fail(exc.message or 'Error updating period')
            return False
        self.timer.adopt(snapshot)
        self._clear_period_end()
        return True

    async def set_period_duration(self, minutes: int) -> bool:
        if minutes < 1 or minutes > 60:
            return False
        try:
            snapshot = await self.gateway.set_period_duration(self.session.game_id, minutes)
        except GatewayError as exc:
            self.session.fail(exc.message or 'Error updating period duration')
            return False
        self.session.apply_clock_fields(snapshot)
        return True


def alternating_start(period: int, session: MatchSession) -> Optional[int]:
    """Home team starts odd periods, away team even ones."""
    return session.home_team_id if period % 2 else session.away_team_id
