import asyncio

from courtside.services.match import PERIOD_END_MESSAGE, GateState, TimerState, alternating_start

from engine_fakes import AWAY, HOME, FakeConfirmer, make_live


def test_countdown_pauses_clock_at_zero_and_gates_events():
    confirmer = FakeConfirmer(False)
    live, gateway, _, scheduler = make_live(confirmer, state=TimerState.PAUSED, time_remaining=1)

    async def scenario():
        await live.resume_clock()
        scheduler.advance(1)
        assert live.session.time_remaining == 0
        assert live.session.timer_state == TimerState.PAUSED
        await live.session.drain()
        calls_before = list(gateway.calls)
        assert await live.record_shot(HOME, 'miss') is False
        return calls_before

    calls_before = asyncio.run(scenario())
    assert confirmer.messages == [PERIOD_END_MESSAGE]
    assert gateway.calls == calls_before
    assert 'record_event' not in gateway.names()
    assert live.session.timer_state == TimerState.PAUSED
    assert live.periods.state == GateState.BLOCKED
    assert live.session.notice == 'Period 1 has ended'


def test_confirmation_is_asked_every_time():
    confirmer = FakeConfirmer(True, True)
    live, gateway, _, _ = make_live(confirmer, state=TimerState.PAUSED, time_remaining=0)

    async def scenario():
        assert await live.record_fault(HOME) is True
        assert await live.record_timeout(AWAY) is True

    asyncio.run(scenario())
    assert len(confirmer.messages) == 2
    assert [e['event_type'] for e in gateway.events] == ['fault', 'timeout']
    assert live.periods.state == GateState.OVERRIDDEN


def test_gate_open_while_time_remains():
    confirmer = FakeConfirmer()
    live, gateway, _, _ = make_live(confirmer, state=TimerState.PAUSED, time_remaining=30)

    assert asyncio.run(live.record_substitution(HOME, {'in': 7, 'out': 4})) is True
    assert confirmer.messages == []
    assert gateway.events[0]['details'] == {'in': 7, 'out': 4}


def test_stopped_clock_at_zero_before_any_period_end_is_open():
    confirmer = FakeConfirmer()
    live, _, _, _ = make_live(confirmer, state=TimerState.STOPPED, time_remaining=0)
    assert live.can_add_events() is True
    assert confirmer.messages == []


def test_countdown_projects_from_anchor():
    live, _, clock, scheduler = make_live(state=TimerState.PAUSED, time_remaining=100)

    async def scenario():
        await live.resume_clock()
        scheduler.advance(2.5)
        assert live.session.time_remaining == 98
        clock.t += 0.6
        assert live.periods.projected_remaining() == 97
        await live.pause_clock()

    asyncio.run(scenario())
    assert live.session.time_remaining == 97
    assert scheduler.active == []


def test_resuming_at_zero_ends_period_immediately():
    live, gateway, _, _ = make_live(FakeConfirmer(), state=TimerState.PAUSED, time_remaining=0)

    async def scenario():
        await live.timer.resume()
        await live.session.drain()

    asyncio.run(scenario())
    assert live.periods.period_ended is True
    assert live.session.timer_state == TimerState.PAUSED
    assert [c[2] for c in gateway.calls if c[0] == 'transition_clock'] == ['resume', 'pause']


def test_advance_period_resets_clock_and_gate():
    live, gateway, _, scheduler = make_live(FakeConfirmer(), state=TimerState.PAUSED, time_remaining=1)

    async def scenario():
        await live.change_possession(HOME)
        await live.resume_clock()
        scheduler.advance(1)
        await live.session.drain()
        assert live.periods.is_period_over()
        assert await live.advance_period() is True

    asyncio.run(scenario())
    session = live.session
    assert session.clock.current_period == 2
    assert session.timer_state == TimerState.STOPPED
    assert session.time_remaining == 600
    assert session.active_possession is None
    assert session.possession_duration == 0
    assert live.periods.period_ended is False
    assert live.can_add_events() is True
    assert gateway.possessions[1].result == 'period_end'


def test_advance_period_refused_at_final_period():
    live, gateway, _, _ = make_live()
    gateway.server.current_period = 4
    live.session.clock.current_period = 4

    assert asyncio.run(live.advance_period()) is False
    assert 'advance_period' not in gateway.names()
    assert live.session.notice == 'Already at final period'


def test_starting_team_rule_hands_out_the_ball():
    live, gateway, _, _ = make_live(starting_team=alternating_start)

    asyncio.run(live.advance_period())
    assert live.session.active_possession.team_id == AWAY
    assert live.session.active_possession.period == 2


def test_set_period_and_duration():
    live, gateway, _, _ = make_live()

    async def scenario():
        assert await live.periods.set_period(9) is False
        assert await live.periods.set_period(3) is True
        assert await live.periods.set_period_duration(0) is False
        assert await live.periods.set_period_duration(12) is True

    asyncio.run(scenario())
    assert live.session.clock.current_period == 3
    assert live.session.clock.period_duration == 720
    assert live.session.time_remaining == 720
    assert gateway.names() == ['set_period', 'set_period_duration']


def test_refused_period_end_pause_is_not_retried():
    live, gateway, _, scheduler = make_live(FakeConfirmer(), state=TimerState.PAUSED, time_remaining=1)

    async def scenario():
        await live.resume_clock()
        gateway.fail('transition_clock')
        scheduler.advance(1)
        await live.session.drain()
        scheduler.advance(12)
        await live.session.drain()
        assert live.session.timer_state == TimerState.RUNNING
        assert live.session.error == 'Error pausing timer'
        assert await live.pause_clock() is True

    asyncio.run(scenario())
    assert [c[2] for c in gateway.calls if c[0] == 'transition_clock'] == ['resume', 'pause', 'pause']
    assert live.periods.period_ended is True
    assert live.session.timer_state == TimerState.PAUSED
