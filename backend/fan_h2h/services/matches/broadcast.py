from typing import Any, Dict, Optional


class Broadcaster:
    """Delivers events over Socket.IO to one connection or a whole match room."""

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def join(self, sid: str, match_id: str) -> None:
        self.socketio.server.enter_room(sid, match_id, namespace=self.namespace)

    def close(self, match_id: str) -> None:
        self.socketio.close_room(match_id, namespace=self.namespace)

    def to_player(self, sid: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.socketio.emit(event, payload or {}, to=sid, namespace=self.namespace)

    def to_match(self, match_id: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.socketio.emit(event, payload or {}, to=match_id, namespace=self.namespace)
