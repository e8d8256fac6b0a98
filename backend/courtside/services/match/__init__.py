"""Live match engine: the client-side view of one match.

The engine keeps a local projection of the clock and the active possession,
applies clock actions optimistically, counts the period down locally and
periodically snaps it back to the server's value.
"""

from .gateway import Confirmer, GatewayError, MatchGateway, NotFound
from .http_gateway import HttpMatchGateway
from .live import LiveMatch
from .period import PERIOD_END_MESSAGE, GateState, PeriodLifecycleManager, alternating_start, no_starting_team
from .possession import PossessionTracker
from .reconciler import ClockReconciler
from .scheduler import LoopScheduler
from .session import MatchClock, MatchSession, Possession, SessionEvent, TimerState
from .settings import EngineSettings
from .timer import TimerController, Transition

__all__ = [
    'ClockReconciler',
    'Confirmer',
    'EngineSettings',
    'GateState',
    'GatewayError',
    'HttpMatchGateway',
    'LiveMatch',
    'LoopScheduler',
    'MatchClock',
    'MatchGateway',
    'MatchSession',
    'NotFound',
    'PERIOD_END_MESSAGE',
    'PeriodLifecycleManager',
    'Possession',
    'PossessionTracker',
    'SessionEvent',
    'TimerController',
    'TimerState',
    'Transition',
    'alternating_start',
    'no_starting_team',
]
