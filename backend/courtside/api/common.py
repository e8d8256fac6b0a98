from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from courtside import db
from courtside.models import Game


def load_game(game_id: int):
    """Return ``(game, None)`` or ``(None, 404 response)``."""
    game = db.session.get(Game, game_id)
    if not game:
        return None, (jsonify({'error': 'Game not found'}), 404)
    return game, None


def commit_or_500(tag: str, failure_message: str):
    """Commit the session; on failure roll back, log and build a 500 response."""
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[{tag}-error] {exc}")
        return jsonify({'error': failure_message}), 500
    return None


def int_field(data: dict, name: str, minimum: int, maximum: int):
    """Parse an integer body field within bounds; ``None`` when invalid."""
    value = data.get(name)
    if isinstance(value, bool):
        return None
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    if value < minimum or value > maximum:
        return None
    return value
