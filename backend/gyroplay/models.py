import enum
import threading
import uuid
from typing import Dict, Optional, Tuple


class Role(str, enum.Enum):
    HOST = 'host'
    CONTROLLER = 'controller'


class RoomError(Exception):
    """Raised when a peer cannot be attached to a room."""


class Peer:
    def __init__(self, sid, role, room_id):
        self.sid = sid
        self.role = role
        self.room_id = room_id

    @property
    def is_host(self):
        return self.role == Role.HOST


class Room:
    def __init__(self, room_id):
        self.room_id = room_id
        self.host: Optional[Peer] = None
        self.controllers: Dict[str, Peer] = {}
        # HostSession, attached by the socket layer when a host joins
        self.session = None

    @property
    def is_empty(self):
        return self.host is None and not self.controllers

    def to_dict(self):
        session = self.session
        return {
            'roomId': self.room_id,
            'hasHost': self.host is not None,
            'controllers': len(self.controllers),
            'gameId': session.game_id if session else None,
            'status': session.status.value if session else None,
            'score': session.score if session else 0,
            'epoch': session.epoch if session else 0,
        }


def generate_room_id(length=6):
    """Short, link-friendly room id (hex digits of a uuid4)."""
    return uuid.uuid4().hex[:length]


class RoomRegistry:
    """Process-wide room membership. Owns no game logic."""

    def __init__(self, max_controllers=4):
        self.max_controllers = max_controllers
        self._rooms: Dict[str, Room] = {}
        self._peers: Dict[str, Peer] = {}
        self._lock = threading.RLock()

    def init_app(self, app):
        self.max_controllers = int(app.config.get('MAX_CONTROLLERS_PER_ROOM', self.max_controllers))
        app.extensions['rooms'] = self

    def __contains__(self, room_id):
        return room_id in self._rooms

    def get(self, room_id) -> Optional[Room]:
        return self._rooms.get(room_id)

    def peer(self, sid) -> Optional[Peer]:
        return self._peers.get(sid)

    def room_of(self, sid) -> Optional[Room]:
        peer = self._peers.get(sid)
        return self._rooms.get(peer.room_id) if peer else None

    def new_room_id(self):
        while True:
            room_id = generate_room_id()
            if room_id not in self._rooms:
                return room_id

    def join(self, room_id, sid, role=None) -> Tuple[Room, Peer]:
        """Attach ``sid`` to ``room_id``, creating the room on first join.

        Without an explicit role the first peer of an empty room becomes the
        host and everyone after it a controller. A peer attached elsewhere
        (another room or another role) must ``leave`` first.
        """
        if not room_id or not isinstance(room_id, str):
            raise RoomError('roomId is required')
        with self._lock:
            current = self._peers.get(sid)
            if current is not None:
                if current.room_id == room_id and (role is None or current.role == role):
                    return self._rooms[room_id], current
                raise RoomError('Already attached to another room')

            room = self._rooms.get(room_id)
            if role is None:
                role = Role.HOST if room is None or room.is_empty else Role.CONTROLLER
            if room is not None:
                if role == Role.HOST and room.host is not None:
                    raise RoomError('Room already has a host')
                if role == Role.CONTROLLER and len(room.controllers) >= self.max_controllers:
                    raise RoomError('Room full')
            else:
                room = Room(room_id)
                self._rooms[room_id] = room

            peer = Peer(sid, role, room_id)
            if role == Role.HOST:
                room.host = peer
            else:
                room.controllers[sid] = peer
            self._peers[sid] = peer
            return room, peer

    def leave(self, sid) -> Tuple[Optional[Room], Optional[Peer]]:
        """Detach ``sid``. Empty rooms are dropped right away."""
        with self._lock:
            peer = self._peers.pop(sid, None)
            if peer is None:
                return None, None
            room = self._rooms.get(peer.room_id)
            if room is None:
                return None, peer
            if room.host is not None and room.host.sid == sid:
                room.host = None
            room.controllers.pop(sid, None)
            if room.is_empty:
                self._rooms.pop(room.room_id, None)
            return room, peer

    def clear(self):
        with self._lock:
            for room in self._rooms.values():
                if room.session is not None:
                    room.session.stop()
            self._rooms.clear()
            self._peers.clear()
