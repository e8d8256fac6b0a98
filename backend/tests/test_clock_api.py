def test_clock_snapshot_for_new_game(client, game):
    res = client.get(f"/api/timer/{game['id']}")
    assert res.status_code == 200
    clock = res.get_json()
    assert clock['timer_state'] == 'stopped'
    assert clock['time_remaining'] == 600
    assert clock['period_duration'] == 600
    assert clock['current_period'] == 1
    assert clock['number_of_periods'] == 4


def test_unknown_game_is_404(client):
    assert client.get('/api/timer/999').status_code == 404
    assert client.post('/api/timer/999/start').status_code == 404


def test_start_requires_match_in_progress(client):
    created = client.post('/api/games/create', json={'home_team': 'A', 'away_team': 'B'}).get_json()
    res = client.post(f"/api/timer/{created['id']}/start")
    assert res.status_code == 409
    assert 'not in progress' in res.get_json()['error']


def test_start_pause_resume_stop_cycle(client, game):
    gid = game['id']
    res = client.post(f'/api/timer/{gid}/start')
    assert res.status_code == 200
    started = res.get_json()
    assert started['timer_state'] == 'running'
    assert started['message'] == 'Timer started'
    assert started['timer_started_at'] is not None

    again = client.post(f'/api/timer/{gid}/start')
    assert again.status_code == 409
    assert again.get_json()['currentState'] == 'running'

    paused = client.post(f'/api/timer/{gid}/pause').get_json()
    assert paused['timer_state'] == 'paused'
    assert paused['timer_paused_at'] is not None
    assert 0 < paused['time_remaining'] <= 600

    assert client.post(f'/api/timer/{gid}/pause').status_code == 409

    resumed = client.post(f'/api/timer/{gid}/resume').get_json()
    assert resumed['timer_state'] == 'running'
    assert resumed['message'] == 'Timer resumed'

    stopped = client.post(f'/api/timer/{gid}/stop').get_json()
    assert stopped['timer_state'] == 'stopped'
    assert stopped['time_remaining'] == 600


def test_resume_requires_paused(client, game):
    res = client.post(f"/api/timer/{game['id']}/resume")
    assert res.status_code == 409
    assert res.get_json()['currentState'] == 'stopped'


def test_next_period_closes_possession_and_logs_events(client, game):
    gid = game['id']
    client.post(f"/api/possessions/{gid}", json={'team_id': game['home_team_id'], 'period': 1})
    client.post(f'/api/timer/{gid}/start')

    res = client.post(f'/api/timer/{gid}/next-period')
    assert res.status_code == 200
    clock = res.get_json()
    assert clock['current_period'] == 2
    assert clock['timer_state'] == 'stopped'
    assert clock['time_remaining'] == 600

    assert client.get(f'/api/possessions/{gid}/active').status_code == 404
    closed = client.get(f'/api/possessions/{gid}').get_json()
    assert closed[0]['result'] == 'period_end'

    events = client.get(f'/api/games/{gid}/events').get_json()
    assert [(e['event_type'], e['period']) for e in events] == [('period_end', 1), ('period_start', 2)]


def test_next_period_stops_at_final_period(client, game):
    gid = game['id']
    for _ in range(3):
        assert client.post(f'/api/timer/{gid}/next-period').status_code == 200
    res = client.post(f'/api/timer/{gid}/next-period')
    assert res.status_code == 400
    assert res.get_json()['currentPeriod'] == 4


def test_set_period_validates_range(client, game):
    gid = game['id']
    assert client.put(f'/api/timer/{gid}/period', json={'period': 0}).status_code == 400
    assert client.put(f'/api/timer/{gid}/period', json={'period': 5}).status_code == 400
    res = client.put(f'/api/timer/{gid}/period', json={'period': 3})
    assert res.status_code == 200
    assert res.get_json()['current_period'] == 3


def test_set_duration_in_minutes(client, game):
    gid = game['id']
    assert client.put(f'/api/timer/{gid}/duration', json={'minutes': 0}).status_code == 400
    assert client.put(f'/api/timer/{gid}/duration', json={'minutes': 61}).status_code == 400
    assert client.put(f'/api/timer/{gid}/duration', json={'minutes': 'ten'}).status_code == 400
    res = client.put(f'/api/timer/{gid}/duration', json={'minutes': 12})
    assert res.status_code == 200
    clock = res.get_json()
    assert clock['period_duration'] == 720
    assert clock['time_remaining'] == 720


def test_reset_match_clears_everything(client, game):
    gid = game['id']
    home = game['home_team_id']
    client.post(f'/api/possessions/{gid}', json={'team_id': home, 'period': 1})
    client.post(f'/api/games/{gid}/events', json={'event_type': 'shot', 'team_id': home, 'details': {'result': 'goal'}})
    client.post(f'/api/timer/{gid}/next-period')
    client.post(f'/api/timer/{gid}/start')

    res = client.post(f'/api/timer/{gid}/reset-match')
    assert res.status_code == 200
    clock = res.get_json()
    assert clock['current_period'] == 1
    assert clock['timer_state'] == 'stopped'
    assert client.get(f'/api/possessions/{gid}').get_json() == []
    assert client.get(f'/api/games/{gid}/events').get_json() == []
    state = client.get(f'/api/games/{gid}').get_json()
    assert (state['home_score'], state['away_score']) == (0, 0)
