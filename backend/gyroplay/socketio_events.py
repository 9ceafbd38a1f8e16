from flask_socketio import join_room, leave_room, emit
from gyroplay import rooms, socketio
from flask import current_app, request
from gyroplay.models import Role, RoomError
from gyroplay.services.games import LOBBY, is_known_game_id
from gyroplay.services.games.base import parse_status
from gyroplay.services.games.scheduler import schedule_ticks
from gyroplay.services.normalizer import GyroSample
from gyroplay.services.session import ACTIONS, HostSession
from dataclasses import asdict
from functools import partial
from typing import Optional, Tuple
import random


def handle_connect(auth=None):
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    _detach(_get_sid())


def handle_join_room(data):
    # Older clients send the bare room id; newer ones may name their role
    room_id, role = None, None
    if isinstance(data, str):
        room_id = data
    elif isinstance(data, dict):
        room_id = data.get('roomId')
    if isinstance(data, dict) and data.get('role'):
        try:
            role = Role(data.get('role'))
        except ValueError:
            emit('error', {'message': 'role must be host or controller'})
            return
    sid = _get_sid()
    current = rooms.peer(sid)
    moving = current is not None and isinstance(room_id, str) and room_id and (
        current.room_id != room_id or (role is not None and role != current.role)
    )
    if moving:
        # The old room sees a regular departure
        previous = current.room_id
        _detach(sid)
        leave_room(previous)
    try:
        room, peer = rooms.join(room_id, sid, role)
    except RoomError as exc:
        current_app.logger.info(f"[join-reject] room={room_id} sid={sid} reason={exc}")
        emit('error', {'message': str(exc)})
        return
    join_room(room.room_id)
    current_app.logger.info(f"[join] room={room.room_id} sid={sid} role={peer.role.value}")
    emit('joined', {'roomId': room.room_id, 'role': peer.role.value})

    if peer.is_host:
        if room.session is None or not room.session.alive:
            room.session = _new_session(room.room_id)
            if room.controllers:
                emit('game-changed', LOBBY, to=room.room_id, skip_sid=sid)
                emit('sync-game-status', room.session.status.value, to=room.room_id, skip_sid=sid)
        if room.controllers:
            emit('controller-connected')
        return

    if room.host is not None:
        emit('controller-connected', to=room.host.sid)
    # Bring a (re)connecting controller up to date
    session = room.session
    emit('game-changed', session.game_id if session else LOBBY)
    if session is not None:
        emit('sync-game-status', session.status.value)


def handle_leave_room(data=None):
    sid = _get_sid()
    peer = rooms.peer(sid)
    if peer is None:
        return
    room_id = peer.room_id
    _detach(sid)
    leave_room(room_id)
    emit('left', {'roomId': room_id})


def handle_gyro_data(data):
    if not isinstance(data, dict):
        return
    peer, room = _attached(data.get('roomId'), Role.CONTROLLER)
    if room is None or room.host is None:
        return
    payload = data.get('data')
    if not isinstance(payload, dict):
        _drop('gyro-data', 'missing data')
        return
    sample = asdict(GyroSample.from_payload(payload))
    emit('update-game-state', sample, to=room.host.sid)
    if room.session is not None:
        room.session.update_control(sample)


def handle_controller_action(data):
    if isinstance(data, str):
        action, claimed = data, None
    elif isinstance(data, dict):
        action, claimed = data.get('action'), data.get('roomId')
    else:
        return
    peer, room = _attached(claimed, Role.CONTROLLER)
    if room is None or room.host is None:
        return
    if not isinstance(action, str) or action not in ACTIONS:
        _drop('controller-action', f'unknown action {action!r}')
        return
    emit('controller-action', action, to=room.host.sid)
    session = room.session
    if session is not None:
        epoch = session.epoch
        session.handle_action(action)
        if session.epoch != epoch:
            schedule_ticks(current_app._get_current_object(), room.room_id)


def handle_select_game(data):
    if not isinstance(data, dict):
        return
    peer, room = _attached(data.get('roomId'))
    if room is None:
        return
    game_id = data.get('gameId')
    if not is_known_game_id(game_id):
        _drop('select-game', f'unknown game {game_id!r}')
        return
    current_app.logger.info(f"[select-game] room={room.room_id} game={game_id} by={peer.role.value}")
    if room.session is not None:
        room.session.select_game(game_id)
        schedule_ticks(current_app._get_current_object(), room.room_id)
    # Everyone in the room, sender included
    emit('game-changed', game_id, to=room.room_id)


def handle_sync_game_status(data):
    if not isinstance(data, dict):
        return
    peer, room = _attached(data.get('roomId'), Role.HOST)
    if room is None:
        return
    status = parse_status(data.get('status'))
    if status is None:
        _drop('sync-game-status', 'unknown status')
        return
    emit('sync-game-status', status.value, to=room.room_id, include_self=False)


def handle_reset_position(data=None):
    claimed = data.get('roomId') if isinstance(data, dict) else None
    peer, room = _attached(claimed, Role.CONTROLLER)
    if room is None or room.host is None:
        return
    emit('reset-game-position', to=room.host.sid)
    if room.session is not None:
        room.session.reset_position()


# ---- Room attachment helpers ----

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _drop(event: str, reason: str) -> None:
    current_app.logger.debug(f"[drop] event={event} sid={_get_sid()} reason={reason}")

def _attached(claimed_room_id=None, role: Optional[Role] = None) -> Tuple:
    """Resolve the sender's peer and room, or (None, None) when the message must be dropped.

    Messages are scoped by the sender's registry attachment; a payload that
    names a different room is never delivered anywhere.
    """
    peer = rooms.peer(_get_sid())
    if peer is None:
        _drop('attach', 'not attached')
        return None, None
    if claimed_room_id is not None and claimed_room_id != peer.room_id:
        _drop('room-scope', f'claimed={claimed_room_id} attached={peer.room_id}')
        return None, None
    if role is not None and peer.role != role:
        _drop('role', f'expected={role.value} actual={peer.role.value}')
        return None, None
    return peer, rooms.get(peer.room_id)

def _new_session(room_id: str) -> HostSession:
    seed = current_app.config.get('SIMULATION_SEED')
    rng = random.Random(seed) if seed not in (None, '') else random.Random()
    return HostSession(
        room_id,
        rng=rng,
        max_catchup_steps=current_app.config.get('MAX_CATCHUP_STEPS', 10),
        on_status=partial(_push_status, namespace=request.namespace),
    )

def _push_status(session: HostSession, status, namespace: str = '/') -> None:
    """Forward the host session's status to the room's controllers."""
    room = rooms.get(session.room_id)
    if room is None or room.session is not session:
        return
    skip = room.host.sid if room.host is not None else None
    socketio.emit('sync-game-status', status.value, to=room.room_id, skip_sid=skip, namespace=namespace)

def _detach(sid: str) -> None:
    room, peer = rooms.leave(sid)
    if peer is None or room is None:
        return
    current_app.logger.info(f"[leave] room={room.room_id} sid={sid} role={peer.role.value}")
    if peer.is_host:
        session = room.session
        room.session = None
        if session is not None:
            session.stop()
        if room.controllers:
            emit('session-ended', {'roomId': room.room_id}, to=room.room_id, skip_sid=sid)
        return
    if room.host is not None:
        emit('controller-disconnected', {'controllers': len(room.controllers)}, to=room.host.sid)
        # Last controller gone: freeze the run until someone reconnects
        if not room.controllers and room.session is not None:
            room.session.controller_left()


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the configured namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('leave-room', handle_leave_room, namespace=namespace)
    socketio.on_event('gyro-data', handle_gyro_data, namespace=namespace)
    socketio.on_event('controller-action', handle_controller_action, namespace=namespace)
    socketio.on_event('select-game', handle_select_game, namespace=namespace)
    socketio.on_event('sync-game-status', handle_sync_game_status, namespace=namespace)
    socketio.on_event('reset-position', handle_reset_position, namespace=namespace)
