"""REST implementation of :class:`MatchGateway` over httpx."""

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from .gateway import GatewayError, NotFound
from .session import MatchClock, Possession

logger = logging.getLogger(__name__)


class HttpMatchGateway:
    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self._base_url = base_url.rstrip('/')
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config, client: Optional[httpx.AsyncClient] = None) -> 'HttpMatchGateway':
        return cls(
            getattr(config, 'API_BASE_URL', 'http://localhost:5000/api'),
            client=client,
            timeout=float(getattr(config, 'API_TIMEOUT_SEC', 10.0)),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> 'HttpMatchGateway':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self, method: str, path: str, payload: Optional[dict] = None, parse: Optional[Callable[[Any], Any]] = None
    ) -> Any:
        try:
            response = await self._client.request(method, f"{self._base_url}{path}", json=payload)
        except httpx.HTTPError as exc:
            logger.warning(f"[gateway-error] {method} {path} {exc!r}")
            raise GatewayError(None) from exc
        if response.is_success:
            try:
                data = response.json()
                return parse(data) if parse is not None else data
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                logger.warning(f"[gateway-bad-reply] {method} {path} status={response.status_code} {exc!r}")
                raise GatewayError(None, response.status_code) from exc
        message = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get('error')
        logger.info(f"[gateway-reject] {method} {path} status={response.status_code} error={message}")
        if response.status_code == 404:
            raise NotFound(message, response.status_code)
        raise GatewayError(message, response.status_code)

    async def get_clock(self, game_id: int) -> MatchClock:
        return await self._request('GET', f'/timer/{game_id}', parse=MatchClock.from_dict)

    async def transition_clock(self, game_id: int, action: str) -> MatchClock:
        return await self._request('POST', f'/timer/{game_id}/{action}', {}, parse=MatchClock.from_dict)

    async def advance_period(self, game_id: int) -> MatchClock:
        return await self._request('POST', f'/timer/{game_id}/next-period', {}, parse=MatchClock.from_dict)

    async def set_period(self, game_id: int, period: int) -> MatchClock:
        return await self._request('PUT', f'/timer/{game_id}/period', {'period': period}, parse=MatchClock.from_dict)

    async def set_period_duration(self, game_id: int, minutes: int) -> MatchClock:
        return await self._request('PUT', f'/timer/{game_id}/duration', {'minutes': minutes}, parse=MatchClock.from_dict)

    async def reset_match(self, game_id: int) -> MatchClock:
        return await self._request('POST', f'/timer/{game_id}/reset-match', {}, parse=MatchClock.from_dict)

    async def get_active_possession(self, game_id: int) -> Possession:
        return await self._request('GET', f'/possessions/{game_id}/active', parse=Possession.from_dict)

    async def create_possession(self, game_id: int, team_id: int, period: int) -> Possession:
        payload = {'team_id': team_id, 'period': period}
        return await self._request('POST', f'/possessions/{game_id}', payload, parse=Possession.from_dict)

    async def end_possession(self, game_id: int, possession_id: int, result: str) -> Possession:
        path = f'/possessions/{game_id}/{possession_id}'
        return await self._request('PUT', path, {'result': result}, parse=Possession.from_dict)

    async def increment_shots(self, game_id: int, possession_id: int) -> Possession:
        path = f'/possessions/{game_id}/{possession_id}/increment-shots'
        return await self._request('PATCH', path, parse=Possession.from_dict)

    async def record_event(
        self, game_id: int, event_type: str, team_id: int, details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        payload = {'event_type': event_type, 'team_id': team_id, 'details': details or {}}
        return await self._request('POST', f'/games/{game_id}/events', payload, parse=_require_object)


def _require_object(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f'expected a JSON object, got {type(data).__name__}')
    return data
