import time

from flask import Blueprint, jsonify, request, current_app

from courtside import db
from courtside.api.common import commit_or_500, int_field, load_game
from courtside.main import roles_required
from courtside.models import Possession, POSSESSION_RESULTS
from courtside.services.clock import active_possession, close_possession, open_possession, possession_stats
from courtside.socketio_events import broadcast_possession


possessions = Blueprint('possessions', __name__)


@possessions.route('/<int:game_id>', methods=['POST'])
@roles_required('admin', 'coach')
def create_possession(game_id):
    """Start a new possession: the ball crossed the center line."""
    game, error = load_game(game_id)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    team_id = int_field(data, 'team_id', 1, 2 ** 31)
    if team_id not in (game.home_team_id, game.away_team_id):
        return jsonify({'error': 'team_id must be one of the teams playing this game'}), 400
    period = int_field(data, 'period', 1, game.number_of_periods)
    if period is None:
        return jsonify({'error': f'Period must be between 1 and {game.number_of_periods}'}), 400

    now = time.time()
    possession = open_possession(game, team_id, period, now)
    failed = commit_or_500('possession', 'Failed to create possession')
    if failed:
        return failed
    current_app.logger.info(f"[possession-start] game={game.id} team={team_id} period={period} id={possession.id}")
    payload = possession.to_dict(now)
    broadcast_possession(game.id, payload)
    return jsonify(payload), 201


@possessions.route('/<int:game_id>/<int:possession_id>', methods=['PUT'])
@roles_required('admin', 'coach')
def end_possession(game_id, possession_id):
    data = request.get_json(silent=True) or {}
    result = data.get('result')
    if result not in POSSESSION_RESULTS:
        return jsonify({'error': f'result must be one of {", ".join(POSSESSION_RESULTS)}'}), 400

    possession = Possession.query.filter_by(id=possession_id, game_id=game_id, ended_at=None).first()
    if not possession:
        return jsonify({'error': 'Possession not found or already ended'}), 404

    close_possession(possession, result, time.time())
    failed = commit_or_500('possession', 'Failed to end possession')
    if failed:
        return failed
    current_app.logger.info(
        f"[possession-end] game={game_id} id={possession.id} result={result} duration={possession.duration_seconds}s"
    )
    broadcast_possession(game_id, None)
    return jsonify(possession.to_dict())


@possessions.route('/<int:game_id>', methods=['GET'])
def list_possessions(game_id):
    query = Possession.query.filter_by(game_id=game_id)
    team_id = request.args.get('team_id', type=int)
    if team_id:
        query = query.filter_by(team_id=team_id)
    period = request.args.get('period', type=int)
    if period:
        query = query.filter_by(period=period)
    now = time.time()
    return jsonify([p.to_dict(now) for p in query.order_by(Possession.started_at.desc(), Possession.id.desc()).all()])


@possessions.route('/<int:game_id>/active', methods=['GET'])
def get_active_possession(game_id):
    possession = active_possession(game_id)
    if not possession:
        return jsonify({'error': 'No active possession found'}), 404
    return jsonify(possession.to_dict(time.time()))


@possessions.route('/<int:game_id>/stats', methods=['GET'])
def get_possession_stats(game_id):
    return jsonify(possession_stats(game_id))


@possessions.route('/<int:game_id>/<int:possession_id>/increment-shots', methods=['PATCH'])
@roles_required('admin', 'coach')
def increment_shots(game_id, possession_id):
    possession = Possession.query.filter_by(id=possession_id, game_id=game_id).first()
    if not possession:
        return jsonify({'error': 'Possession not found'}), 404
    possession.shots_taken = (possession.shots_taken or 0) + 1
    db.session.add(possession)
    failed = commit_or_500('possession', 'Failed to increment shots')
    if failed:
        return failed
    payload = possession.to_dict(time.time())
    if possession.is_active:
        broadcast_possession(game_id, payload)
    return jsonify(payload)
