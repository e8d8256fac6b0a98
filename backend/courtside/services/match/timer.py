"""Optimistic clock transitions with per-request rollback."""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .gateway import GatewayError, MatchGateway
from .session import MatchClock, MatchSession, TimerState

logger = logging.getLogger(__name__)

TARGET_STATES = {
    'start': TimerState.RUNNING,
    'resume': TimerState.RUNNING,
    'pause': TimerState.PAUSED,
    'stop': TimerState.STOPPED,
}

FALLBACK_MESSAGES = {
    'start': 'Error starting timer',
    'resume': 'Error resuming timer',
    'pause': 'Error pausing timer',
    'stop': 'Error stopping timer',
}


@dataclass(frozen=True)
class Transition:
    """One optimistic update waiting for the server's verdict."""
    request_id: int
    action: str
    previous_state: TimerState
    attempted_state: TimerState
    previous_remaining: int


class TimerController:
    """Sole writer of ``timer_state``.

    Each transition is applied locally before the remote call is made. On
    rejection the state that preceded *that* call is restored, even if other
    transitions were issued in the meantime. A successful reply is only
    installed when it answers the most recently issued transition.
    """

    def __init__(self, session: MatchSession, gateway: MatchGateway):
        self.session = session
        self.gateway = gateway
        self._ids = itertools.count(1)
        self._pending: Dict[int, Transition] = {}
        self._latest = 0
        self.history: List[Transition] = []

    @property
    def pending(self) -> List[Transition]:
        return list(self._pending.values())

    def _is_noop(self, action: str) -> bool:
        state = self.session.timer_state
        if action == 'start':
            return state != TimerState.STOPPED
        if action == 'pause':
            return state != TimerState.RUNNING
        if action == 'resume':
            return state != TimerState.PAUSED
        return False

    def begin(self, action: str) -> Optional[Transition]:
        """Apply ``action`` to the projection and log it; ``None`` for a no-op."""
        if action not in TARGET_STATES:
            raise ValueError(f'Unknown clock action: {action}')
        if self._is_noop(action):
            logger.debug(f"[clock-noop] game={self.session.game_id} action={action} state={self.session.timer_state.value}")
            return None
        transition = Transition(
            request_id=next(self._ids),
            action=action,
            previous_state=self.session.timer_state,
            attempted_state=TARGET_STATES[action],
            previous_remaining=self.session.time_remaining,
        )
        self._pending[transition.request_id] = transition
        self._latest = transition.request_id
        self.history.append(transition)
        self.session.set_timer_state(transition.attempted_state, action)
        if action == 'stop':
            self.session.set_time_remaining(self.session.clock.period_duration, 'stop')
        logger.info(
            f"[clock-{action}] game={self.session.game_id} request={transition.request_id} "
            f"{transition.previous_state.value}->{transition.attempted_state.value}"
        )
        return transition

    async def submit(self, transition: Transition) -> bool:
        try:
            snapshot = await self.gateway.transition_clock(self.session.game_id, transition.action)
        except GatewayError as exc:
            self._pending.pop(transition.request_id, None)
            self._rollback(transition, exc)
            return False
        self._pending.pop(transition.request_id, None)
        self._accept(transition, snapshot)
        return True

    def dispatch(self, action: str) -> Optional[asyncio.Future]:
        """Apply ``action`` now and send it in the background."""
        transition = self.begin(action)
        if transition is None:
            return None
        return self.session.spawn(self.submit(transition))

    async def _run(self, action: str) -> bool:
        transition = self.begin(action)
        if transition is None:
            return False
        return await self.submit(transition)

    async def start(self) -> bool:
        return await self._run('start')

    async def pause(self) -> bool:
        return await self._run('pause')

    async def resume(self) -> bool:
        return await self._run('resume')

    async def stop(self) -> bool:
        return await self._run('stop')

    def _rollback(self, transition: Transition, exc: GatewayError) -> None:
        self.session.set_timer_state(transition.previous_state, 'rollback')
        if transition.action == 'stop':
            self.session.set_time_remaining(transition.previous_remaining, 'rollback')
        logger.warning(
            f"[clock-rollback] game={self.session.game_id} request={transition.request_id} "
            f"action={transition.action} restored={transition.previous_state.value} status={exc.status}"
        )
        self.session.fail(exc.message or FALLBACK_MESSAGES[transition.action])

    def _accept(self, transition: Transition, snapshot: MatchClock) -> None:
        if transition.request_id != self._latest:
            # A newer transition was issued after this one; its state stands
            logger.debug(
                f"[clock-stale] game={self.session.game_id} request={transition.request_id} latest={self._latest}"
            )
            return
        self.session.apply_clock_fields(snapshot)
        self.session.set_timer_state(snapshot.timer_state, 'server')

    def adopt(self, snapshot: MatchClock) -> None:
        """Install a full server snapshot (load, period change, reset)."""
        self.session.apply_clock_fields(snapshot)
        self.session.set_timer_state(snapshot.timer_state, 'server')
