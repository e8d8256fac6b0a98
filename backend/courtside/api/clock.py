import time

from flask import Blueprint, jsonify, request, current_app

from courtside import db
from courtside.api.common import commit_or_500, int_field, load_game
from courtside.main import roles_required
from courtside.services.clock import (
    ClockConflict,
    PeriodLimitReached,
    advance_period,
    clock_payload,
    pause_clock,
    reset_match as svc_reset_match,
    resume_clock,
    set_period as svc_set_period,
    set_period_duration,
    start_clock,
    stop_clock,
)
from courtside.socketio_events import broadcast_clock, broadcast_possession


clock = Blueprint('clock', __name__)

_TRANSITIONS = {
    'start': lambda game, now: start_clock(game, now),
    'resume': lambda game, now: resume_clock(game, now),
    'pause': lambda game, now: pause_clock(game, now),
    'stop': lambda game, now: stop_clock(game),
}

_SUCCESS_MESSAGES = {
    'start': 'Timer started',
    'resume': 'Timer resumed',
    'pause': 'Timer paused',
    'stop': 'Timer stopped',
}

_FAILURE_MESSAGES = {
    'start': 'Failed to start timer',
    'resume': 'Failed to resume timer',
    'pause': 'Failed to pause timer',
    'stop': 'Failed to stop timer',
}


def _respond(game, message=None, status=200):
    payload = clock_payload(game, time.time())
    broadcast_clock(payload)
    if message:
        payload['message'] = message
    return jsonify(payload), status


@clock.route('/<int:game_id>', methods=['GET'])
def get_clock(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    return jsonify(clock_payload(game, time.time()))


@clock.route('/<int:game_id>/<any(start, resume, pause, stop):action>', methods=['POST'])
@roles_required('admin', 'coach')
def transition(game_id, action):
    game, error = load_game(game_id)
    if error:
        return error
    now = time.time()
    try:
        _TRANSITIONS[action](game, now)
    except ClockConflict as exc:
        db.session.rollback()
        current_app.logger.info(f"[clock-conflict] game={game_id} action={action} state={exc.current_state}")
        return jsonify({'error': exc.message, 'currentState': exc.current_state}), 409
    failed = commit_or_500('clock', _FAILURE_MESSAGES[action])
    if failed:
        return failed
    current_app.logger.info(
        f"[clock-{action}] game={game.id} period={game.current_period} state={game.timer_state} remaining={clock_payload(game, now)['time_remaining']}s"
    )
    return _respond(game, _SUCCESS_MESSAGES[action])


@clock.route('/<int:game_id>/next-period', methods=['POST'])
@roles_required('admin', 'coach')
def next_period(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    try:
        advance_period(game, time.time())
    except PeriodLimitReached as exc:
        db.session.rollback()
        return jsonify({'error': exc.message, 'currentPeriod': game.current_period}), 400
    failed = commit_or_500('period', 'Failed to change period')
    if failed:
        return failed
    current_app.logger.info(f"[period-advance] game={game.id} period={game.current_period}")
    broadcast_possession(game.id, None)
    return _respond(game, 'Moved to next period')


@clock.route('/<int:game_id>/period', methods=['PUT'])
@roles_required('admin', 'coach')
def set_period(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    period = int_field(data, 'period', 1, game.number_of_periods)
    if period is None:
        return jsonify({'error': f'Period must be between 1 and {game.number_of_periods}'}), 400
    svc_set_period(game, period)
    failed = commit_or_500('period', 'Failed to update period')
    if failed:
        return failed
    return _respond(game, 'Period updated')


@clock.route('/<int:game_id>/duration', methods=['PUT'])
@roles_required('admin', 'coach')
def set_duration(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    minutes = int_field(data, 'minutes', 1, 60)
    if minutes is None:
        return jsonify({'error': 'Minutes must be between 1 and 60'}), 400
    set_period_duration(game, minutes)
    failed = commit_or_500('duration', 'Failed to update period duration')
    if failed:
        return failed
    return _respond(game, 'Period duration updated')


@clock.route('/<int:game_id>/reset-match', methods=['POST'])
@roles_required('admin', 'coach')
def reset_match(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    svc_reset_match(game)
    failed = commit_or_500('reset', 'Failed to reset match')
    if failed:
        return failed
    current_app.logger.info(f"[match-reset] game={game.id}")
    broadcast_possession(game.id, None)
    return _respond(game, 'Match reset successfully')
