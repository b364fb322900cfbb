import random
import string
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from fan_h2h.services.errors import RoomNotFound, SelfJoin
from fan_h2h.services.matches.engine import PlayerRef


@dataclass
class Room:
    code: str
    host: PlayerRef
    created_at: float
    expires_at: float
    timer: Any = None


def generate_room_code(length: int = 6, rng: Optional[random.Random] = None) -> str:
    """Short, shareable uppercase alphanumeric code."""
    chooser = rng or random
    return ''.join(chooser.choices(string.ascii_uppercase + string.digits, k=length))


class MatchmakingService:
    """Open queue plus private rooms. Pairs players; does not start matches."""

    def __init__(self, scheduler, room_ttl: float = 300, code_length: int = 6, logger=None,
                 rng: Optional[random.Random] = None):
        self.scheduler = scheduler
        self.room_ttl = room_ttl
        self.code_length = code_length
        self.logger = logger
        self.rng = rng
        self.queue: List[PlayerRef] = []
        self.rooms: Dict[str, Room] = {}
        self._lock = threading.RLock()

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.info(message)

    # ---- queue ----

    def add_to_queue(self, sid: str, user: Dict[str, Any]) -> bool:
        with self._lock:
            if any(p.sid == sid for p in self.queue):
                return False
            self.queue.append(PlayerRef(sid=sid, user=user or {}))
            self._log(f"[queue-join] sid={sid} user={(user or {}).get('id')} size={len(self.queue)}")
            return True

    def remove_from_queue(self, sid: str) -> None:
        with self._lock:
            self.queue = [p for p in self.queue if p.sid != sid]
            for code, room in list(self.rooms.items()):
                if room.host.sid == sid:
                    self._drop_room(code)

    def find_match(self) -> Optional[Tuple[PlayerRef, PlayerRef]]:
        with self._lock:
            if len(self.queue) < 2:
                return None
            player1 = self.queue.pop(0)
            player2 = self.queue.pop(0)
            return player1, player2

    def queue_size(self) -> int:
        with self._lock:
            return len(self.queue)

    # ---- private rooms ----

    def create_room(self, sid: str, user: Dict[str, Any]) -> str:
        with self._lock:
            code = generate_room_code(self.code_length, self.rng)
            while code in self.rooms:
                code = generate_room_code(self.code_length, self.rng)
            now = self.scheduler.now()
            room = Room(code=code, host=PlayerRef(sid=sid, user=user or {}), created_at=now,
                        expires_at=now + self.room_ttl)
            room.timer = self.scheduler.call_later(self.room_ttl, self._expire_room, code, room.expires_at)
            self.rooms[code] = room
            self._log(f"[room-created] code={code} host={sid}")
            return code

    def join_room(self, code: str, sid: str, user: Dict[str, Any]) -> Tuple[PlayerRef, PlayerRef]:
        if not isinstance(code, str):
            raise RoomNotFound(str(code))
        code = code.strip().upper()
        with self._lock:
            room = self.rooms.get(code)
            if room is None or room.expires_at <= self.scheduler.now():
                raise RoomNotFound(code)
            if room.host.sid == sid:
                raise SelfJoin()
            self._drop_room(code)
            self._log(f"[room-joined] code={code} host={room.host.sid} guest={sid}")
            return room.host, PlayerRef(sid=sid, user=user or {})

    def live_rooms(self) -> List[str]:
        with self._lock:
            now = self.scheduler.now()
            return [code for code, room in self.rooms.items() if room.expires_at > now]

    def _drop_room(self, code: str) -> Optional[Room]:
        room = self.rooms.pop(code, None)
        if room is not None and room.timer is not None:
            room.timer.cancel()
        return room

    def _expire_room(self, code: str, expires_at: float) -> None:
        with self._lock:
            room = self.rooms.get(code)
            # the code may have been reused by a newer room
            if room is None or room.expires_at != expires_at:
                return
            del self.rooms[code]
            self._log(f"[room-expired] code={code}")
