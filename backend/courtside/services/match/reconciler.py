import logging
from typing import Callable, Optional

from .gateway import GatewayError, MatchGateway
from .scheduler import Repeating, Scheduler
from .session import MatchSession, SessionEvent, TimerState

logger = logging.getLogger(__name__)


class ClockReconciler:
    """Snaps the projected countdown to the server's value every few seconds.

    Only active while the clock runs. The server always wins; drift is
    ``server - projected`` and is only logged.
    """

    def __init__(
        self,
        session: MatchSession,
        gateway: MatchGateway,
        scheduler: Scheduler,
        interval: float = 5.0,
        projected: Optional[Callable[[], int]] = None,
    ):
        self.session = session
        # Client-side countdown as of now; defaults to the last displayed value
        self.projected = projected or (lambda: session.time_remaining)
        self.gateway = gateway
        self.scheduler = scheduler
        self.interval = interval
        self.last_drift: Optional[int] = None
        self._tick: Optional[Repeating] = None
        self._unsubscribe = session.subscribe(self._on_session_event)

    @property
    def active(self) -> bool:
        return self._tick is not None

    def close(self) -> None:
        self._cancel()
        self._unsubscribe()

    def _cancel(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    def _on_session_event(self, event: SessionEvent) -> None:
        if event.kind != 'timer_state':
            return
        # Listeners may change the state again while this event is delivered
        if self.session.timer_state == TimerState.RUNNING:
            if self._tick is None:
                self._tick = self.scheduler.every(self.interval, self._on_tick)
        else:
            self._cancel()

    def _on_tick(self) -> None:
        self.session.spawn(self.sync())

    async def sync(self) -> Optional[int]:
        if self.session.timer_state != TimerState.RUNNING:
            return None
        try:
            snapshot = await self.gateway.get_clock(self.session.game_id)
        except GatewayError as exc:
            logger.warning(f"[clock-sync] game={self.session.game_id} failed status={exc.status}")
            return None
        if self.session.timer_state != TimerState.RUNNING:
            # The clock stopped while the request was in flight
            return None
        client = self.projected()
        drift = snapshot.time_remaining - client
        self.last_drift = drift
        if drift:
            logger.info(
                f"[clock-drift] game={self.session.game_id} drift={drift}s "
                f"client={client}s server={snapshot.time_remaining}s"
            )
        self.session.set_time_remaining(snapshot.time_remaining, 'reconcile')
        return drift
