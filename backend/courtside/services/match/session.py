"""Client-side projection of one match: clock, active possession, messages."""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    STOPPED = 'stopped'
    RUNNING = 'running'
    PAUSED = 'paused'


@dataclass
class MatchClock:
    game_id: int
    current_period: int = 1
    timer_state: TimerState = TimerState.STOPPED
    time_remaining: int = 0
    period_duration: int = 600
    number_of_periods: int = 4
    started_at: Optional[float] = None
    paused_at: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'MatchClock':
        duration = int(data.get('period_duration') or 0)
        remaining = data.get('time_remaining')
        return cls(
            game_id=int(data['game_id']),
            current_period=int(data.get('current_period') or 1),
            timer_state=TimerState(data.get('timer_state') or 'stopped'),
            time_remaining=max(0, int(duration if remaining is None else remaining)),
            period_duration=duration,
            number_of_periods=int(data.get('number_of_periods') or 4),
            started_at=data.get('timer_started_at'),
            paused_at=data.get('timer_paused_at'),
        )


@dataclass
class Possession:
    id: int
    game_id: int
    team_id: int
    period: int
    started_at: float
    ended_at: Optional[float] = None
    shots_taken: int = 0
    duration_seconds: Optional[int] = None
    result: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    @classmethod
    def from_dict(cls, data: dict) -> 'Possession':
        return cls(
            id=int(data['id']),
            game_id=int(data['game_id']),
            team_id=int(data['team_id']),
            period=int(data['period']),
            started_at=float(data['started_at']),
            ended_at=data.get('ended_at'),
            shots_taken=int(data.get('shots_taken') or 0),
            duration_seconds=data.get('duration_seconds'),
            result=data.get('result'),
        )


@dataclass(frozen=True)
class SessionEvent:
    """A change to the projection.

    ``kind`` is one of ``timer_state``, ``time_remaining``, ``period``,
    ``possession``. ``source`` names what caused it: a clock action
    (``start``, ``pause``...), ``rollback``, ``server``, ``countdown``,
    ``reconcile`` or a possession operation.
    """
    kind: str
    previous: Any
    current: Any
    source: str


Listener = Callable[[SessionEvent], None]


class MatchSession:
    """The single mutable view of one match, shared by the engine components.

    Writes go through the setters so the invariants hold: time never goes
    negative, possession duration never goes negative, and only an open
    possession can be the active one.
    """

    def __init__(self, game_id: int, home_team_id: int, away_team_id: int, clock: Optional[MatchClock] = None):
        self.game_id = game_id
        self.home_team_id = home_team_id
        self.away_team_id = away_team_id
        self.clock = clock or MatchClock(game_id=game_id)
        self.error: Optional[str] = None
        self.notice: Optional[str] = None
        self.first_possession_created = False
        self._active_possession: Optional[Possession] = None
        self._possession_duration = 0
        self._listeners: List[Listener] = []
        self._tasks: Set[asyncio.Future] = set()

    # -- reads ---------------------------------------------------------

    @property
    def timer_state(self) -> TimerState:
        return self.clock.timer_state

    @property
    def time_remaining(self) -> int:
        return self.clock.time_remaining

    @property
    def active_possession(self) -> Optional[Possession]:
        return self._active_possession

    @property
    def possession_duration(self) -> int:
        return self._possession_duration

    def opponent_of(self, team_id: int) -> Optional[int]:
        if team_id == self.home_team_id:
            return self.away_team_id
        if team_id == self.away_team_id:
            return self.home_team_id
        return None

    # -- observers -----------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self, kind: str, previous: Any, current: Any, source: str) -> None:
        event = SessionEvent(kind, previous, current, source)
        for listener in list(self._listeners):
            listener(event)

    # -- writes --------------------------------------------------------

    def set_timer_state(self, state: TimerState, source: str) -> TimerState:
        """Only TimerController calls this."""
        previous = self.clock.timer_state
        state = TimerState(state)
        if previous == state:
            return previous
        self.clock.timer_state = state
        self._notify('timer_state', previous, state, source)
        return previous

    def set_time_remaining(self, seconds: int, source: str) -> int:
        previous = self.clock.time_remaining
        value = max(0, int(seconds))
        self.clock.time_remaining = value
        if value != previous or source != 'countdown':
            self._notify('time_remaining', previous, value, source)
        return value

    def set_period(self, period: int, source: str) -> None:
        previous = self.clock.current_period
        self.clock.current_period = max(1, int(period))
        if previous != self.clock.current_period:
            self._notify('period', previous, self.clock.current_period, source)

    def apply_clock_fields(self, snapshot: MatchClock) -> None:
        """Copy everything except ``timer_state`` from a server snapshot."""
        self.clock.period_duration = snapshot.period_duration
        self.clock.number_of_periods = snapshot.number_of_periods
        self.clock.started_at = snapshot.started_at
        self.clock.paused_at = snapshot.paused_at
        self.set_period(snapshot.current_period, 'server')
        self.set_time_remaining(snapshot.time_remaining, 'server')

    def set_active_possession(self, possession: Optional[Possession], source: str) -> None:
        if possession is not None and not possession.is_active:
            possession = None
        previous = self._active_possession
        self._active_possession = replace(possession) if possession is not None else None
        self._notify('possession', previous, self._active_possession, source)

    def set_possession_duration(self, seconds: int) -> None:
        """Only PossessionTracker calls this."""
        self._possession_duration = max(0, int(seconds))

    # -- messages ------------------------------------------------------

    def fail(self, message: str) -> None:
        self.error = message
        logger.warning(f"[match-error] game={self.game_id} {message}")

    def clear_messages(self) -> None:
        self.error = None
        self.notice = None

    # -- background work -----------------------------------------------

    def spawn(self, work: Awaitable) -> asyncio.Future:
        """Run ``work`` on the event loop without blocking the caller."""
        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every spawned task, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
