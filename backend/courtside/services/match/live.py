"""One open match view: wires the engine components to a session."""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from .gateway import Confirmer, GatewayError, MatchGateway
from .period import PeriodLifecycleManager, StartingTeamRule, no_starting_team
from .possession import PossessionTracker
from .reconciler import ClockReconciler
from .scheduler import LoopScheduler, Scheduler
from .session import MatchSession, TimerState
from .settings import EngineSettings
from .timer import TimerController

logger = logging.getLogger(__name__)

EVENT_FALLBACK_MESSAGES = {
    'fault': 'Error recording fault',
    'shot': 'Error recording shot',
    'free_shot': 'Error recording free shot',
    'timeout': 'Error recording timeout',
    'substitution': 'Error recording substitution',
}


class LiveMatch:
    """User actions for a live match.

    Every match-mutating action passes the period-end gate first; clock
    actions go through the TimerController; possession changes through the
    PossessionTracker. Remote failures end up on ``session.error``.
    """

    def __init__(
        self,
        session: MatchSession,
        gateway: MatchGateway,
        confirmer: Confirmer,
        scheduler: Optional[Scheduler] = None,
        now: Callable[[], float] = time.time,
        settings: Optional[EngineSettings] = None,
        starting_team: StartingTeamRule = no_starting_team,
    ):
        settings = settings or EngineSettings()
        scheduler = scheduler or LoopScheduler()
        self.session = session
        self.gateway = gateway
        self.timer = TimerController(session, gateway)
        self.possessions = PossessionTracker(
            session, gateway, scheduler, now=now, tick_interval=settings.possession_tick
        )
        self.periods = PeriodLifecycleManager(
            session,
            gateway,
            self.timer,
            self.possessions,
            confirmer,
            scheduler,
            now=now,
            tick_interval=settings.countdown_tick,
            starting_team=starting_team,
        )
        self.reconciler = ClockReconciler(
            session,
            gateway,
            scheduler,
            interval=settings.clock_sync_interval,
            projected=self.periods.projected_remaining,
        )

    @classmethod
    def open(
        cls,
        gateway: MatchGateway,
        game_id: int,
        home_team_id: int,
        away_team_id: int,
        confirmer: Confirmer,
        **kwargs,
    ) -> 'LiveMatch':
        return cls(MatchSession(game_id, home_team_id, away_team_id), gateway, confirmer, **kwargs)

    def close(self) -> None:
        """Cancel every tick; in-flight requests still resolve."""
        self.possessions.close()
        self.periods.close()
        self.reconciler.close()

    async def load(self) -> bool:
        """Fetch the clock and the active possession in parallel."""
        clock_result, _ = await asyncio.gather(
            self.gateway.get_clock(self.session.game_id),
            self.possessions.load(),
            return_exceptions=True,
        )
        if isinstance(clock_result, GatewayError):
            self.session.fail(clock_result.message or 'Failed to fetch timer state')
            return False
        if isinstance(clock_result, BaseException):
            raise clock_result
        self.timer.adopt(clock_result)
        return True

    # -- clock -----------------------------------------------------------

    async def start_clock(self) -> bool:
        self.session.clear_messages()
        ok = await self.timer.start()
        await self.session.drain()
        if ok and not self.session.notice:
            self.session.notice = 'Timer started'
        return ok

    async def pause_clock(self) -> bool:
        self.session.clear_messages()
        ok = await self.timer.pause()
        if ok:
            self.session.notice = 'Timer paused'
        return ok

    async def resume_clock(self) -> bool:
        self.session.clear_messages()
        ok = await self.timer.resume()
        if ok:
            self.session.notice = 'Timer resumed'
        return ok

    async def stop_clock(self) -> bool:
        self.session.clear_messages()
        return await self.timer.stop()

    # -- periods ---------------------------------------------------------

    def can_add_events(self) -> bool:
        return self.periods.can_add_events()

    async def advance_period(self) -> bool:
        self.session.clear_messages()
        return await self.periods.advance_period()

    async def set_period(self, period: int) -> bool:
        self.session.clear_messages()
        return await self.periods.set_period(period)

    async def set_period_duration(self, minutes: int) -> bool:
        self.session.clear_messages()
        ok = await self.periods.set_period_duration(minutes)
        if ok:
            self.session.notice = f'Period duration set to {minutes} minutes'
        return ok

    async def reset_match(self) -> bool:
        """Wipe the match on the server and start over from period 1."""
        self.session.clear_messages()
        try:
            snapshot = await self.gateway.reset_match(self.session.game_id)
        except GatewayError as exc:
            self.session.fail(exc.message or 'Error resetting match')
            return False
        self.session.set_active_possession(None, 'reset')
        self.session.first_possession_created = False
        self.timer.adopt(snapshot)
        self.session.notice = 'Match reset successfully - all data cleared'
        return True

    # -- possessions -----------------------------------------------------

    async def change_possession(self, team_id: int) -> bool:
        self.session.clear_messages()
        possession = await self.possessions.change_possession(team_id)
        if possession is not None:
            self.session.notice = 'New attack started'
        return possession is not None

    async def end_possession(self, result: str = 'turnover') -> bool:
        self.session.clear_messages()
        return await self.possessions.end_possession(result) is not None

    # -- match events ----------------------------------------------------

    async def record_event(self, event_type: str, team_id: int, details: Optional[Dict[str, Any]] = None) -> bool:
        if not self.periods.can_add_events():
            return False
        return await self._submit_event(event_type, team_id, details)

    async def _submit_event(self, event_type: str, team_id: int, details: Optional[Dict[str, Any]]) -> bool:
        self.session.clear_messages()
        try:
            await self.gateway.record_event(self.session.game_id, event_type, team_id, details)
        except GatewayError as exc:
            self.session.fail(exc.message or EVENT_FALLBACK_MESSAGES.get(event_type, 'Error recording event'))
            return False
        logger.info(f"[event] game={self.session.game_id} type={event_type} team={team_id}")
        return True

    async def record_fault(self, team_id: int, details: Optional[Dict[str, Any]] = None) -> bool:
        return await self.record_event('fault', team_id, details)

    async def record_timeout(self, team_id: int, details: Optional[Dict[str, Any]] = None) -> bool:
        return await self.record_event('timeout', team_id, details)

    async def record_substitution(self, team_id: int, details: Optional[Dict[str, Any]] = None) -> bool:
        return await self.record_event('substitution', team_id, details)

    async def record_free_shot(self, team_id: int, result: str, details: Optional[Dict[str, Any]] = None) -> bool:
        return await self._record_attempt('free_shot', team_id, result, details)

    async def record_shot(self, team_id: int, result: str, details: Optional[Dict[str, Any]] = None) -> bool:
        """Record a shot; a goal pauses the clock and hands the ball to the opponent."""
        return await self._record_attempt('shot', team_id, result, details)

    async def _record_attempt(
        self, event_type: str, team_id: int, result: str, details: Optional[Dict[str, Any]]
    ) -> bool:
        if not self.periods.can_add_events():
            return False
        payload = dict(details or {})
        payload['result'] = result
        if not await self._submit_event(event_type, team_id, payload):
            return False
        await self.possessions.record_shot()
        if result == 'goal':
            if self.session.timer_state == TimerState.RUNNING:
                await self.timer.pause()
            opponent = self.session.opponent_of(team_id)
            if opponent is not None:
                await self.possessions.change_possession(opponent)
            if not self.session.error:
                self.session.notice = 'GOAL! Timer paused. Press Start to resume with opposing team possession.'
        return True
