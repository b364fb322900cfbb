from flask import current_app, request
from fan_h2h.services.errors import RoomNotFound, SelfJoin

ALREADY_IN_MATCH = 'Already in a match'


def _state():
    return current_app.extensions['fan_h2h']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _user_from(data):
    return data if isinstance(data, dict) else {}


def _start_match(state, player1, player2):
    # a connection is in at most one place: drop any queue entry or hosted room
    state.matchmaking.remove_from_queue(player1.sid)
    state.matchmaking.remove_from_queue(player2.sid)
    return state.games.create_match(player1, player2)


def _in_match(state, sid) -> bool:
    return state.games.find_match_for(sid) is not None


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    state = _state()
    state.matchmaking.remove_from_queue(sid)
    state.games.handle_disconnect(sid)
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")


def handle_join_queue(data):
    sid = _get_sid()
    state = _state()
    if _in_match(state, sid):
        return {'error': ALREADY_IN_MATCH}
    state.matchmaking.add_to_queue(sid, _user_from(data))
    pair = state.matchmaking.find_match()
    if pair:
        _start_match(state, *pair)
    return {'queued': True}


def handle_create_private_room(data):
    sid = _get_sid()
    state = _state()
    if _in_match(state, sid):
        return {'error': ALREADY_IN_MATCH}
    code = state.matchmaking.create_room(sid, _user_from(data))
    return {'room_code': code}


def handle_join_private_room(data):
    if not isinstance(data, dict):
        return {'error': 'payload must be an object'}
    room_code = data.get('room_code')
    if not room_code:
        return {'error': 'room_code is required'}
    if not isinstance(room_code, str):
        return {'error': 'room_code must be a string'}
    sid = _get_sid()
    state = _state()
    if _in_match(state, sid):
        return {'error': ALREADY_IN_MATCH}
    try:
        host, guest = state.matchmaking.join_room(room_code, sid, _user_from(data.get('user')))
    except (RoomNotFound, SelfJoin) as exc:
        return {'error': str(exc)}
    _start_match(state, host, guest)
    return {'success': True}


def handle_submit_answer(data):
    if not isinstance(data, dict):
        return {'error': 'payload must be an object'}
    match_id = data.get('match_id')
    answer_index = data.get('answer_index')
    # bool is an int subclass; True is not a choice
    if isinstance(answer_index, bool) or not isinstance(answer_index, int):
        return {'error': 'answer_index must be an integer'}
    if not match_id:
        return {'error': 'match_id is required'}
    if not isinstance(match_id, str):
        return {'error': 'match_id must be a string'}
    record = _state().games.submit_answer(match_id, _get_sid(), answer_index)
    return {'accepted': record is not None}


def handle_cancel_wait(data=None):
    _state().matchmaking.remove_from_queue(_get_sid())
    return {'cancelled': True}


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    from fan_h2h import socketio

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join_queue', handle_join_queue, namespace=namespace)
    socketio.on_event('create_private_room', handle_create_private_room, namespace=namespace)
    socketio.on_event('join_private_room', handle_join_private_room, namespace=namespace)
    socketio.on_event('submit_answer', handle_submit_answer, namespace=namespace)
    socketio.on_event('cancel_wait', handle_cancel_wait, namespace=namespace)
