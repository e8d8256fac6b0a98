"""Collaborator contracts the live match engine depends on."""

from typing import Any, Dict, Optional, Protocol

from .session import MatchClock, Possession


class GatewayError(Exception):
    """A remote call failed for good (transport error, 4xx or 5xx).

    ``message`` is the server's one-line explanation when it sent one.
    """

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message or 'Request failed')
        self.message = message
        self.status = status


class NotFound(GatewayError):
    pass


class MatchGateway(Protocol):
    async def get_clock(self, game_id: int) -> MatchClock: ...

    async def transition_clock(self, game_id: int, action: str) -> MatchClock: ...

    async def advance_period(self, game_id: int) -> MatchClock: ...

    async def set_period(self, game_id: int, period: int) -> MatchClock: ...

    async def set_period_duration(self, game_id: int, minutes: int) -> MatchClock: ...

    async def reset_match(self, game_id: int) -> MatchClock: ...

    async def get_active_possession(self, game_id: int) -> Possession: ...

    async def create_possession(self, game_id: int, team_id: int, period: int) -> Possession: ...

    async def end_possession(self, game_id: int, possession_id: int, result: str) -> Possession: ...

    async def increment_shots(self, game_id: int, possession_id: int) -> Possession: ...

    async def record_event(
        self, game_id: int, event_type: str, team_id: int, details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]: ...


class Confirmer(Protocol):
    def confirm(self, message: str) -> bool: ...
