import asyncio

import httpx
import pytest

from courtside.services.match import (
    GatewayError,
    HttpMatchGateway,
    LiveMatch,
    MatchClock,
    MatchSession,
    NotFound,
    TimerController,
    TimerState,
)

from engine_fakes import FakeConfirmer, ManualClock, ManualScheduler

BASE_URL = 'http://testserver/api'


@pytest.fixture()
def transport(client):
    """Serve httpx requests from the Flask test client."""
    def handler(request: httpx.Request) -> httpx.Response:
        res = client.open(
            request.url.path,
            method=request.method,
            data=request.content,
            query_string=request.url.query,
            headers={'Content-Type': 'application/json'},
        )
        return httpx.Response(res.status_code, content=res.get_data(), headers={'Content-Type': res.content_type})
    return httpx.MockTransport(handler)


def test_clock_round_trip(transport, game):
    gid = game['id']

    async def scenario():
        async with httpx.AsyncClient(transport=transport) as http:
            gateway = HttpMatchGateway(BASE_URL, client=http)
            clock = await gateway.get_clock(gid)
            assert clock.timer_state == TimerState.STOPPED
            assert clock.time_remaining == 600
            running = await gateway.transition_clock(gid, 'start')
            assert running.timer_state == TimerState.RUNNING
            assert running.started_at is not None
            with pytest.raises(GatewayError) as excinfo:
                await gateway.transition_clock(gid, 'start')
            assert excinfo.value.status == 409
            assert excinfo.value.message == 'Timer is already running'
            advanced = await gateway.advance_period(gid)
            assert advanced.current_period == 2
            assert advanced.timer_state == TimerState.STOPPED
            assert (await gateway.set_period_duration(gid, 5)).period_duration == 300

    asyncio.run(scenario())


def test_possession_round_trip(transport, game):
    gid = game['id']
    home = game['home_team_id']

    async def scenario():
        async with httpx.AsyncClient(transport=transport) as http:
            gateway = HttpMatchGateway(BASE_URL, client=http)
            with pytest.raises(NotFound):
                await gateway.get_active_possession(gid)
            created = await gateway.create_possession(gid, home, 1)
            assert created.is_active
            shot = await gateway.increment_shots(gid, created.id)
            assert shot.shots_taken == 1
            ended = await gateway.end_possession(gid, created.id, 'goal')
            assert ended.result == 'goal'
            assert not ended.is_active
            with pytest.raises(NotFound) as excinfo:
                await gateway.end_possession(gid, created.id, 'goal')
            assert excinfo.value.message == 'Possession not found or already ended'
            event = await gateway.record_event(gid, 'shot', home, {'result': 'goal'})
            assert event['event_type'] == 'shot'

    asyncio.run(scenario())


def test_transport_error_becomes_gateway_error():
    def broken(request):
        raise httpx.ConnectError('connection refused', request=request)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(broken)) as http:
            gateway = HttpMatchGateway(BASE_URL, client=http)
            with pytest.raises(GatewayError) as excinfo:
                await gateway.get_clock(1)
            assert excinfo.value.message is None
            assert excinfo.value.status is None

    asyncio.run(scenario())


def test_unreadable_success_body_becomes_gateway_error():
    def proxy_page(request):
        return httpx.Response(200, text='<html>upstream proxy</html>')

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(proxy_page)) as http:
            session = MatchSession(1, 1, 2, clock=MatchClock(game_id=1, timer_state=TimerState.PAUSED, time_remaining=300))
            timer = TimerController(session, HttpMatchGateway(BASE_URL, client=http))
            assert await timer.resume() is False
            return session

    session = asyncio.run(scenario())
    assert session.timer_state == TimerState.PAUSED
    assert session.error == 'Error resuming timer'


def test_success_body_of_the_wrong_shape_becomes_gateway_error():
    def empty_object(request):
        return httpx.Response(200, json={})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(empty_object)) as http:
            gateway = HttpMatchGateway(BASE_URL, client=http)
            with pytest.raises(GatewayError) as excinfo:
                await gateway.get_active_possession(1)
            assert not isinstance(excinfo.value, NotFound)
            assert excinfo.value.status == 200

    asyncio.run(scenario())


def test_from_config_reads_base_url():
    class Config:
        API_BASE_URL = 'http://scores.local/api/'
        API_TIMEOUT_SEC = 3

    async def scenario():
        async with HttpMatchGateway.from_config(Config) as gateway:
            assert gateway._base_url == 'http://scores.local/api'

    asyncio.run(scenario())


def test_live_match_against_the_server(transport, game, client):
    gid = game['id']
    home, away = game['home_team_id'], game['away_team_id']
    clock = ManualClock()

    async def scenario():
        async with httpx.AsyncClient(transport=transport) as http:
            session = MatchSession(gid, home, away)
            live = LiveMatch(session, HttpMatchGateway(BASE_URL, client=http), FakeConfirmer(), scheduler=ManualScheduler(clock), now=clock)
            assert await live.load() is True
            assert await live.start_clock() is True
            assert session.timer_state == TimerState.RUNNING
            assert session.active_possession.team_id == home
            assert await live.record_shot(home, 'goal') is True
            assert session.timer_state == TimerState.PAUSED
            assert session.active_possession.team_id == away
            live.close()

    asyncio.run(scenario())
    state = client.get(f'/api/games/{gid}').get_json()
    assert state['home_score'] == 1
    assert state['clock']['timer_state'] == 'paused'
    active = client.get(f'/api/possessions/{gid}/active').get_json()
    assert active['team_id'] == away
