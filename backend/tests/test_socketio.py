from gyroplay import rooms
from gyroplay.controller import TiltController
from gyroplay.services.normalizer import InputNormalizer, Offset


def _named(received, name):
    return [pkt['args'][0] if pkt['args'] else None for pkt in received if pkt['name'] == name]


def _room(make_client, room_id='r1', controllers=1):
    """Host plus ``controllers`` joined to ``room_id``; queues flushed."""
    host = make_client()
    host.emit('join-room', room_id, namespace='/')
    peers = []
    for _ in range(controllers):
        peer = make_client()
        peer.emit('join-room', {'roomId': room_id, 'role': 'controller'}, namespace='/')
        peers.append(peer)
    for test_client in [host] + peers:
        test_client.get_received('/')
    return host, peers


def test_connect_and_join_as_host(make_client):
    host = make_client()
    assert host.is_connected('/')
    received = host.get_received('/')
    assert _named(received, 'connected')

    host.emit('join-room', 'abc123', namespace='/')
    received = host.get_received('/')
    assert _named(received, 'joined') == [{'roomId': 'abc123', 'role': 'host'}]
    assert rooms.get('abc123').session is not None


def test_second_peer_becomes_controller_and_is_synced(make_client):
    host = make_client()
    host.emit('join-room', 'r1', namespace='/')
    host.get_received('/')

    ctrl = make_client()
    ctrl.get_received('/')
    ctrl.emit('join-room', 'r1', namespace='/')
    received = ctrl.get_received('/')
    assert _named(received, 'joined') == [{'roomId': 'r1', 'role': 'controller'}]
    assert _named(received, 'game-changed') == ['LOBBY']
    assert _named(received, 'sync-game-status') == ['IDLE']

    host_received = host.get_received('/')
    assert len(_named(host_received, 'controller-connected')) == 1


def test_join_requires_room_id(make_client):
    peer = make_client()
    peer.get_received('/')
    peer.emit('join-room', {'role': 'host'}, namespace='/')
    errors = _named(peer.get_received('/'), 'error')
    assert errors == [{'message': 'roomId is required'}]


def test_second_host_is_rejected(make_client):
    _room(make_client, controllers=0)
    other = make_client()
    other.get_received('/')
    other.emit('join-room', {'roomId': 'r1', 'role': 'host'}, namespace='/')
    assert _named(other.get_received('/'), 'error') == [{'message': 'Room already has a host'}]


def test_room_full(make_client):
    # TestConfig caps rooms at two controllers
    _room(make_client, controllers=2)
    extra = make_client()
    extra.get_received('/')
    extra.emit('join-room', 'r1', namespace='/')
    received = extra.get_received('/')
    assert _named(received, 'error') == [{'message': 'Room full'}]
    assert not _named(received, 'joined')
    assert len(rooms.get('r1').controllers) == 2


def test_gyro_data_relayed_to_host(make_client):
    host, (ctrl,) = _room(make_client)
    phone = TiltController(ctrl, 'r1', normalizer=InputNormalizer(offset=Offset(0, -24)))
    assert phone.on_orientation(alpha=0, beta=10, gamma=-4)

    updates = _named(host.get_received('/'), 'update-game-state')
    assert updates == [{'alpha': 0.0, 'beta': -10.0, 'gamma': 20.0}]
    assert not _named(ctrl.get_received('/'), 'update-game-state')


def test_gyro_data_from_host_is_dropped(make_client):
    host, (ctrl,) = _room(make_client)
    host.emit('gyro-data', {'roomId': 'r1', 'data': {'beta': 1, 'gamma': 2}}, namespace='/')
    assert not _named(host.get_received('/'), 'update-game-state')
    assert not _named(ctrl.get_received('/'), 'update-game-state')


def test_messages_never_cross_rooms(make_client):
    host_a, (ctrl_a,) = _room(make_client, 'room-a')
    host_b, _ = _room(make_client, 'room-b')
    ctrl_a.emit('gyro-data', {'roomId': 'room-b', 'data': {'beta': 1, 'gamma': 2}}, namespace='/')
    ctrl_a.emit('controller-action', {'roomId': 'room-b', 'action': 'fire-start'}, namespace='/')
    assert host_a.get_received('/') == []
    assert host_b.get_received('/') == []


def test_controller_action_relay(make_client):
    host, (ctrl,) = _room(make_client)
    phone = TiltController(ctrl, 'r1')
    phone.send_action('fire-start')
    ctrl.emit('controller-action', 'fire-end', namespace='/')
    ctrl.emit('controller-action', 'self-destruct', namespace='/')
    assert _named(host.get_received('/'), 'controller-action') == ['fire-start', 'fire-end']


def test_select_game_reaches_everyone(make_client):
    host, (ctrl,) = _room(make_client)
    TiltController(ctrl, 'r1').select_game('game2')

    host_received = host.get_received('/')
    ctrl_received = ctrl.get_received('/')
    assert _named(host_received, 'game-changed') == ['game2']
    assert _named(ctrl_received, 'game-changed') == ['game2']
    # The new instance starts READY and controllers are told so
    assert _named(ctrl_received, 'sync-game-status') == ['READY']
    session = rooms.get('r1').session
    assert session.game_id == 'game2'
    assert session.epoch == 1


def test_select_unknown_game_is_dropped(make_client):
    host, (ctrl,) = _room(make_client)
    host.emit('select-game', {'roomId': 'r1', 'gameId': 'game42'}, namespace='/')
    assert not _named(host.get_received('/'), 'game-changed')
    assert not _named(ctrl.get_received('/'), 'game-changed')


def test_actions_drive_host_session(make_client):
    host, (ctrl,) = _room(make_client)
    phone = TiltController(ctrl, 'r1')
    phone.select_game('game1')
    phone.send_action('start-game')
    session = rooms.get('r1').session
    assert session.status.value == 'PLAYING'
    phone.send_action('pause')
    assert session.status.value == 'PAUSED'
    assert _named(ctrl.get_received('/'), 'sync-game-status') == ['READY', 'PLAYING', 'PAUSED']


def test_sync_game_status_from_host(make_client):
    host, (ctrl,) = _room(make_client)
    host.emit('sync-game-status', {'roomId': 'r1', 'status': 'GAME_OVER'}, namespace='/')
    assert _named(ctrl.get_received('/'), 'sync-game-status') == ['GAME_OVER']
    assert not _named(host.get_received('/'), 'sync-game-status')

    # Controllers cannot drive status, and garbage is ignored
    ctrl.emit('sync-game-status', {'roomId': 'r1', 'status': 'VICTORY'}, namespace='/')
    host.emit('sync-game-status', {'roomId': 'r1', 'status': 'WINNING'}, namespace='/')
    assert not _named(ctrl.get_received('/'), 'sync-game-status')


def test_reset_position_relay(make_client):
    host, (ctrl,) = _room(make_client)
    phone = TiltController(ctrl, 'r1')
    phone.on_orientation(alpha=0, beta=12, gamma=-30)
    assert phone.calibrate() == Offset(beta=12, gamma=-30)
    assert len(_named(host.get_received('/'), 'reset-game-position')) == 1


def test_controller_disconnect_notifies_host_and_pauses(make_client):
    host, (ctrl,) = _room(make_client)
    phone = TiltController(ctrl, 'r1')
    phone.select_game('game3')
    phone.send_action('start-game')
    host.get_received('/')

    ctrl.disconnect(namespace='/')
    received = host.get_received('/')
    assert _named(received, 'controller-disconnected') == [{'controllers': 0}]
    assert rooms.get('r1').session.status.value == 'PAUSED'


def test_host_disconnect_ends_session(make_client):
    host, (ctrl,) = _room(make_client)
    session = rooms.get('r1').session
    host.disconnect(namespace='/')
    assert _named(ctrl.get_received('/'), 'session-ended') == [{'roomId': 'r1'}]
    assert not session.alive
    assert rooms.get('r1').session is None


def test_leave_room(make_client):
    host, (ctrl,) = _room(make_client)
    ctrl.emit('leave-room', {'roomId': 'r1'}, namespace='/')
    assert _named(ctrl.get_received('/'), 'left') == [{'roomId': 'r1'}]
    assert rooms.get('r1').controllers == {}
    assert _named(host.get_received('/'), 'controller-disconnected') == [{'controllers': 0}]


def test_controller_moving_rooms_leaves_the_old_one(make_client):
    host_a, (ctrl,) = _room(make_client, 'room-a')
    host_b, _ = _room(make_client, 'room-b', controllers=0)

    ctrl.emit('join-room', 'room-b', namespace='/')
    assert _named(ctrl.get_received('/'), 'joined') == [{'roomId': 'room-b', 'role': 'controller'}]
    assert _named(host_a.get_received('/'), 'controller-disconnected') == [{'controllers': 0}]
    assert len(_named(host_b.get_received('/'), 'controller-connected')) == 1
    assert rooms.get('room-a').controllers == {}

    host_a.emit('select-game', {'roomId': 'room-a', 'gameId': 'game1'}, namespace='/')
    assert not _named(ctrl.get_received('/'), 'game-changed')


def test_host_moving_rooms_ends_old_session(make_client):
    host, (ctrl,) = _room(make_client, 'room-a')
    old = rooms.get('room-a').session

    host.emit('join-room', {'roomId': 'room-b', 'role': 'host'}, namespace='/')
    assert _named(host.get_received('/'), 'joined') == [{'roomId': 'room-b', 'role': 'host'}]
    assert not old.alive
    assert rooms.get('room-a').session is None
    assert _named(ctrl.get_received('/'), 'session-ended') == [{'roomId': 'room-a'}]
    assert rooms.get('room-b').session.alive

    host.emit('select-game', {'roomId': 'room-b', 'gameId': 'game2'}, namespace='/')
    assert not _named(ctrl.get_received('/'), 'game-changed')
