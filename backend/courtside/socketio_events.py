import time
from typing import Any, Dict, Optional

from flask_socketio import join_room, leave_room, emit
from courtside import db, socketio
from courtside.models import Game
from courtside.services.clock import clock_payload


def room_for(game_id) -> str:
    return f"game:{game_id}"


def broadcast_clock(payload: Dict[str, Any]) -> None:
    """Push a clock snapshot to every client watching the game."""
    socketio.emit('clock_update', payload, to=room_for(payload['game_id']), namespace='/ws')


def broadcast_possession(game_id: int, possession: Optional[Dict[str, Any]]) -> None:
    socketio.emit(
        'possession_update',
        {'game_id': game_id, 'possession': possession},
        to=room_for(game_id),
        namespace='/ws',
    )


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_game(data):
    game_id = (data or {}).get('game_id')
    if not game_id:
        emit('error', {'message': 'game_id is required'})
        return
    room = room_for(game_id)
    join_room(room)
    emit('joined', {'room': room})
    # Late joiners get the current clock without waiting for the next change
    key = _as_int(game_id)
    game = db.session.get(Game, key) if key is not None else None
    if game:
        emit('clock_update', clock_payload(game, time.time()))


def handle_leave_game(data):
    game_id = (data or {}).get('game_id')
    if not game_id:
        emit('error', {'message': 'game_id is required'})
        return
    room = room_for(game_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_game', handle_join_game, namespace='/ws')
    socketio.on_event('leave_game', handle_leave_game, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_game', handle_join_game, namespace='/')
        socketio.on_event('leave_game', handle_leave_game, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
