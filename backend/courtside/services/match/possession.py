"""Live possession duration and possession record lifecycle."""

import logging
import time
from typing import Callable, Optional

from .gateway import GatewayError, MatchGateway, NotFound
from .scheduler import Repeating, Scheduler
from .session import MatchSession, Possession, SessionEvent, TimerState

logger = logging.getLogger(__name__)


class PossessionTracker:
    """Sole writer of ``possession_duration``.

    The duration is ``now - started_at`` of the active possession. A 1 s tick
    refreshes it while the clock runs and a possession is active; otherwise
    the value is frozen, or 0 when there is no possession. Paused time is
    not subtracted.
    """

    def __init__(
        self,
        session: MatchSession,
        gateway: MatchGateway,
        scheduler: Scheduler,
        now: Callable[[], float] = time.time,
        tick_interval: float = 1.0,
    ):
        self.session = session
        self.gateway = gateway
        self.scheduler = scheduler
        self.now = now
        self.tick_interval = tick_interval
        self._tick: Optional[Repeating] = None
        self._unsubscribe = session.subscribe(self._on_session_event)

    @property
    def ticking(self) -> bool:
        return self._tick is not None

    def close(self) -> None:
        self._cancel_tick()
        self._unsubscribe()

    # -- duration --------------------------------------------------------

    def _elapsed(self) -> int:
        possession = self.session.active_possession
        if possession is None:
            return 0
        return max(0, int(self.now() - possession.started_at))

    def _update(self) -> None:
        self.session.set_possession_duration(self._elapsed())

    def _cancel_tick(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    def _start_tick(self) -> None:
        self._cancel_tick()
        self._update()
        self._tick = self.scheduler.every(self.tick_interval, self._update)

    def refresh(self) -> None:
        """Schedule the tick iff the clock runs and a possession is active."""
        should_tick = (
            self.session.timer_state == TimerState.RUNNING
            and self.session.active_possession is not None
        )
        if should_tick:
            if self._tick is None:
                self._start_tick()
            return
        if self._tick is not None:
            self._cancel_tick()
            self._update()
        if self.session.active_possession is None:
            self.session.set_possession_duration(0)

    def _on_session_event(self, event: SessionEvent) -> None:
        if event.kind == 'timer_state':
            if self._is_first_start(event):
                self.session.first_possession_created = True
                self.session.notice = 'Game started! Home team has possession.'
                self.session.spawn(self.change_possession(self.session.home_team_id))
            self.refresh()
        elif event.kind == 'possession':
            previous, current = event.previous, event.current
            if current is None:
                self._cancel_tick()
                self.session.set_possession_duration(0)
            elif previous is None or previous.id != current.id:
                logger.info(
                    f"[possession-swap] game={self.session.game_id} "
                    f"from={previous.team_id if previous else None} to={current.team_id} id={current.id}"
                )
                self._cancel_tick()
                self.session.set_possession_duration(0)
                if self.session.timer_state == TimerState.RUNNING:
                    self._start_tick()
                else:
                    self._update()

    def _is_first_start(self, event: SessionEvent) -> bool:
        return (
            event.source == 'start'
            and event.previous == TimerState.STOPPED
            and self.session.clock.current_period == 1
            and self.session.active_possession is None
            and not self.session.first_possession_created
        )

    # -- records ---------------------------------------------------------

    async def load(self) -> Optional[Possession]:
        try:
            possession = await self.gateway.get_active_possession(self.session.game_id)
        except NotFound:
            possession = None
        except GatewayError as exc:
            logger.warning(f"[possession-load] game={self.session.game_id} failed status={exc.status}")
            return self.session.active_possession
        self.session.set_active_possession(possession, 'load')
        return possession

    async def change_possession(self, team_id: int) -> Optional[Possession]:
        """Give the ball to ``team_id``; the server ends the previous possession."""
        period = self.session.clock.current_period
        try:
            possession = await self.gateway.create_possession(self.session.game_id, team_id, period)
        except GatewayError as exc:
            self.session.fail(exc.message or 'Error starting possession')
            return None
        self.session.set_active_possession(possession, 'create')
        return possession

    async def end_possession(self, result: str = 'turnover') -> Optional[Possession]:
        possession = self.session.active_possession
        if possession is None:
            return None
        try:
            ended = await self.gateway.end_possession(self.session.game_id, possession.id, result)
        except NotFound:
            # Already closed on the server; closing it here is all that is left
            ended = possession
        except GatewayError as exc:
            self.session.fail(exc.message or 'Error ending possession')
            return None
        current = self.session.active_possession
        if current is not None and current.id == possession.id:
            self.session.set_active_possession(None, 'end')
        return ended

    async def record_shot(self) -> Optional[Possession]:
        """Count a shot against the active possession."""
        possession = self.session.active_possession
        if possession is None:
            return None
        try:
            updated = await self.gateway.increment_shots(self.session.game_id, possession.id)
        except GatewayError as exc:
            logger.warning(f"[possession-shot] game={self.session.game_id} id={possession.id} failed status={exc.status}")
            return None
        current = self.session.active_possession
        if current is not None and current.id == updated.id:
            self.session.set_active_possession(updated, 'shot')
        return updated
