from typing import Any, Dict, Optional

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from exquisite import db, socketio
from exquisite.errors import StoreError, ValidationError
from exquisite.services import drawings, sessions


DEFAULT_NAMESPACE = '/ws'


def room_for(game_code: str) -> str:
    return f"game:{game_code}"


def broadcast(event: str, payload: Dict[str, Any], game_code: str, namespace: str = DEFAULT_NAMESPACE) -> None:
    """Fan a write result out to every connection joined to the game's room."""
    socketio.emit(event, payload, to=room_for(game_code), namespace=namespace)


def _field(data: Any, *keys: str) -> Optional[Any]:
    if not isinstance(data, dict):
        return None
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _game_code(data: Any) -> str:
    # Room events accept a bare code or an object carrying it
    code = data if isinstance(data, str) else _field(data, 'game_code', 'gameCode')
    if not isinstance(code, str) or not code:
        raise ValidationError('game_code is required')
    return code


def _emit_failure(event: str, exc: Exception) -> None:
    if isinstance(exc, StoreError):
        emit(event, exc.to_dict())
        return
    db.session.rollback()
    current_app.logger.exception(f"[ws-error] event={event} sid={_get_sid()}")
    emit(event, {'success': False, 'message': str(exc)})


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': f'Connected to {request.namespace}'})


def handle_disconnect(*args):
    current_app.logger.info(f"[ws] disconnected sid={_get_sid()}")


def handle_join_game(data):
    try:
        game_code = _game_code(data)
    except ValidationError as exc:
        emit('error', exc.to_dict())
        return
    room = room_for(game_code)
    join_room(room)
    current_app.logger.info(f"[ws] sid={_get_sid()} joined {room}")
    emit('joined', {'room': room})


def handle_leave_game(data):
    try:
        game_code = _game_code(data)
    except ValidationError as exc:
        emit('error', exc.to_dict())
        return
    room = room_for(game_code)
    leave_room(room)
    current_app.logger.info(f"[ws] sid={_get_sid()} left {room}")
    emit('left', {'room': room})


def handle_get_game_data(data):
    try:
        game = sessions.get_game(_game_code(data))
        emit('gameData', {'success': True, 'game': game.to_dict()})
    except Exception as exc:
        _emit_failure('gameData', exc)


def handle_get_incomplete_users(data):
    try:
        names = drawings.list_incomplete_players(_game_code(data), _field(data, 'part_name', 'partName'))
        emit('incompleteUsers', {'success': True, 'incompletePlayers': names})
    except Exception as exc:
        _emit_failure('incompleteUsers', exc)


def handle_get_drawing(data):
    try:
        drawing = drawings.reassemble(
            _game_code(data),
            _field(data, 'player_name', 'playerName'),
            _field(data, 'part_name', 'partName', 'player_part'),
        )
        emit('drawingData', {'success': True, 'drawing': drawing})
    except Exception as exc:
        _emit_failure('drawingData', exc)


def handle_update_game_data(data):
    try:
        game_code = _game_code(data)
        game_data = _field(data, 'game_data', 'gameData') or {}
        if not isinstance(game_data, dict):
            raise ValidationError('gameData must be an object')
        changes = {k: game_data[k] for k in sessions.STATUS_FIELDS if k in game_data}
        game = sessions.update_status(game_code, changes)
        broadcast('gameDataUpdated', {'success': True, 'game': game.to_dict()}, game_code, namespace=request.namespace)
    except Exception as exc:
        _emit_failure('gameDataUpdated', exc)


def handle_update_drawing_status(data):
    try:
        chunks = drawings.append_from_request(data)
        broadcast('drawingUpdated', {
            'success': True,
            'player_name': data['player_name'],
            'player_part': data['player_part'],
            'is_completed': data.get('is_completed', False),
            'chunks': chunks,
        }, data['game_code'], namespace=request.namespace)
        emit('drawingStatusUpdated', {
            'success': True,
            'message': 'Drawing status updated successfully (chunked)',
            'chunks': chunks,
        })
    except Exception as exc:
        _emit_failure('drawingStatusUpdated', exc)


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'joinGame': handle_join_game,
    'leaveGame': handle_leave_game,
    'getGameData': handle_get_game_data,
    'getIncompleteUsers': handle_get_incomplete_users,
    'getDrawing': handle_get_drawing,
    'updateGameData': handle_update_game_data,
    'updateDrawingStatus': handle_update_drawing_status,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=DEFAULT_NAMESPACE)

    if testing:
        # Test-only mirror on default namespace
        for event, handler in HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
