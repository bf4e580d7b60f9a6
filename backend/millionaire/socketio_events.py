from typing import Dict

from flask import current_app, request
from flask_login import current_user
from flask_socketio import join_room, leave_room, emit

from millionaire import socketio
from millionaire.models import Game

# sid -> game id the socket is subscribed to
_sid_to_game: Dict[str, int] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _parse_game_id(data):
    try:
        return int((data or {}).get('game_id'))
    except (TypeError, ValueError):
        return None


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*_args):
    game_id = _sid_to_game.pop(_get_sid(), None)
    if game_id is not None:
        current_app.logger.info(f"[ws-disconnect] game={game_id}")


def handle_join_game(data):
    game_id = _parse_game_id(data)
    if game_id is None:
        emit('error', {'message': 'game_id is required'})
        return
    if not current_user.is_authenticated:
        emit('error', {'message': 'You need to sign in'})
        return
    game = current_user.games.filter(Game.id == game_id).first()
    if game is None:
        emit('error', {'message': 'This is not your game!'})
        return
    room = f"game:{game.id}"
    join_room(room)
    _sid_to_game[_get_sid()] = game.id
    emit('joined', {'room': room, 'status': game.status, 'current_level': game.current_level})


def handle_leave_game(data):
    game_id = _parse_game_id(data)
    if game_id is None:
        emit('error', {'message': 'game_id is required'})
        return
    room = f"game:{game_id}"
    leave_room(room)
    _sid_to_game.pop(_get_sid(), None)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
