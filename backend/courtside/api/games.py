from flask import Blueprint, jsonify, request, current_app
from courtside import db, socketio
from courtside.api.common import commit_or_500, int_field, load_game
from courtside.main import roles_required
from courtside.models import Game, GameEvent, Team
from courtside.services.clock import clock_payload, close_active_possession, stop_clock
from courtside.socketio_events import broadcast_possession, room_for
import json
import time


games = Blueprint('games', __name__)

MATCH_EVENT_TYPES = ('fault', 'shot', 'free_shot', 'timeout', 'substitution')


def _emit_state(game: Game) -> None:
    socketio.emit('state_update', {'game_id': game.id}, to=room_for(game.id), namespace='/ws')


def _resolve_team(data: dict, side: str):
    team_id = int_field(data, f'{side}_team_id', 1, 2 ** 31)
    if team_id is not None:
        return db.session.get(Team, team_id)
    name = (data.get(f'{side}_team') or '').strip()
    if not name:
        return None
    team = Team.query.filter_by(name=name).first()
    if not team:
        team = Team(name=name)
        db.session.add(team)
        db.session.flush()
    return team


@games.route('/create', methods=['POST'])
@roles_required('admin', 'coach')
def create_game():
    data = request.get_json(silent=True) or {}
    home = _resolve_team(data, 'home')
    away = _resolve_team(data, 'away')
    if not home or not away:
        return jsonify({'error': 'Home and away teams are required'}), 400
    if home.id == away.id:
        return jsonify({'error': 'A team cannot play itself'}), 400

    cfg = current_app.config
    periods = data.get('number_of_periods')
    if periods is None:
        periods = int(cfg.get('DEFAULT_NUMBER_OF_PERIODS', 4))
    else:
        periods = int_field(data, 'number_of_periods', 1, int(cfg.get('MAX_NUMBER_OF_PERIODS', 10)))
        if periods is None:
            return jsonify({'error': 'number_of_periods is out of range'}), 400
    duration = int(cfg.get('DEFAULT_PERIOD_DURATION_SEC', 600))
    if data.get('period_minutes') is not None:
        minutes = int_field(data, 'period_minutes', 1, 60)
        if minutes is None:
            return jsonify({'error': 'Minutes must be between 1 and 60'}), 400
        duration = minutes * 60

    new_game = Game(
        home_team_id=home.id,
        away_team_id=away.id,
        number_of_periods=periods,
        period_duration=duration,
    )
    db.session.add(new_game)
    failed = commit_or_500('game', 'Failed to create game')
    if failed:
        return failed
    return jsonify(new_game.to_dict()), 201


@games.route('/<int:game_id>', methods=['GET'])
def get_game(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    payload = game.to_dict()
    payload['clock'] = clock_payload(game, time.time())
    return jsonify(payload)


@games.route('/<int:game_id>/start', methods=['POST'])
@roles_required('admin', 'coach')
def start_match(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    if game.status == 'in_progress':
        # Idempotent start: already started
        return jsonify(game.to_dict())
    if game.status != 'scheduled':
        return jsonify({'error': 'Game is not scheduled'}), 400
    game.status = 'in_progress'
    game.current_period = 1
    stop_clock(game)
    failed = commit_or_500('game', 'Failed to start match')
    if failed:
        return failed
    current_app.logger.info(f"[match-start] game={game.id}")
    _emit_state(game)
    return jsonify(game.to_dict())


@games.route('/<int:game_id>/end', methods=['POST'])
@roles_required('admin', 'coach')
def end_match(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    if game.status == 'completed':
        return jsonify(game.to_dict())
    close_active_possession(game.id, 'period_end', time.time())
    game.status = 'completed'
    stop_clock(game)
    failed = commit_or_500('game', 'Failed to end game')
    if failed:
        return failed
    current_app.logger.info(f"[match-end] game={game.id} score={game.home_score}-{game.away_score}")
    broadcast_possession(game.id, None)
    _emit_state(game)
    return jsonify(game.to_dict())


@games.route('/<int:game_id>/events', methods=['POST'])
@roles_required('admin', 'coach')
def record_event(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    if game.status != 'in_progress':
        return jsonify({'error': 'Game is not in progress'}), 400
    data = request.get_json(silent=True) or {}
    event_type = data.get('event_type')
    if event_type not in MATCH_EVENT_TYPES:
        return jsonify({'error': f'event_type must be one of {", ".join(MATCH_EVENT_TYPES)}'}), 400
    team_id = int_field(data, 'team_id', 1, 2 ** 31)
    if team_id not in (game.home_team_id, game.away_team_id):
        return jsonify({'error': 'team_id must be one of the teams playing this game'}), 400
    details = data.get('details') or {}
    if not isinstance(details, dict):
        return jsonify({'error': 'details must be an object'}), 400

    event = GameEvent(
        game_id=game.id,
        event_type=event_type,
        team_id=team_id,
        period=game.current_period,
        details=json.dumps(details),
    )
    db.session.add(event)
    if event_type in ('shot', 'free_shot') and details.get('result') == 'goal':
        if team_id == game.home_team_id:
            game.home_score += 1
        else:
            game.away_score += 1
        db.session.add(game)
    failed = commit_or_500('event', 'Failed to record event')
    if failed:
        return failed
    current_app.logger.info(f"[event] game={game.id} type={event_type} team={team_id} period={game.current_period}")
    _emit_state(game)
    return jsonify(event.to_dict()), 201


@games.route('/<int:game_id>/events', methods=['GET'])
def list_events(game_id):
    game, error = load_game(game_id)
    if error:
        return error
    events = game.events.order_by(GameEvent.created_at, GameEvent.id).all()
    return jsonify([e.to_dict() for e in events])
