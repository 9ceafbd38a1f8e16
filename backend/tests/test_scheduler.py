import logging
import time

import pytest

from gyroplay import create_app, rooms, socketio
from gyroplay.services.games.scheduler import _scheduled_tick_keys


class TickingConfig:
    TESTING = True
    ENABLE_SCHEDULER_IN_TESTS = True
    SECRET_KEY = 'test-secret'
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/'
    FRAME_RATE = 30
    MAX_CATCHUP_STEPS = 10
    MAX_CONTROLLERS_PER_ROOM = 2
    SIMULATION_SEED = '1234'
    TICK_HEARTBEAT_SEC = 0
    LOG_LEVEL = 'DEBUG'


def _named(received, name):
    return [pkt['args'][0] for pkt in received if pkt['name'] == name]


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def _room_keys(room_id):
    return {key for key in set(_scheduled_tick_keys) if key[0] == room_id}


@pytest.fixture()
def ticking_app():
    application = create_app(TickingConfig)
    rooms.clear()
    with application.app_context():
        yield application
    rooms.clear()


@pytest.fixture()
def pair(ticking_app):
    host = socketio.test_client(ticking_app, flask_test_client=ticking_app.test_client(), namespace='/')
    ctrl = socketio.test_client(ticking_app, flask_test_client=ticking_app.test_client(), namespace='/')
    host.emit('join-room', 't1', namespace='/')
    ctrl.emit('join-room', 't1', namespace='/')
    host.get_received('/')
    ctrl.get_received('/')
    yield host, ctrl
    for test_client in (host, ctrl):
        if test_client.is_connected('/'):
            test_client.disconnect(namespace='/')
    assert _wait_for(lambda: not _room_keys('t1'))


def test_worker_pushes_frames_to_host(pair):
    host, ctrl = pair
    ctrl.emit('select-game', {'roomId': 't1', 'gameId': 'game3'}, namespace='/')
    ctrl.emit('controller-action', {'roomId': 't1', 'action': 'start-game'}, namespace='/')
    session = rooms.get('t1').session
    assert _room_keys('t1') == {('t1', session.epoch)}

    time.sleep(0.5)
    frames = _named(host.get_received('/'), 'game-frame')
    assert len(frames) >= 5
    assert frames[-1]['roomId'] == 't1'
    assert frames[-1]['gameId'] == 'game3'
    assert not _named(ctrl.get_received('/'), 'game-frame')
    # Base speed is one unit per step at 60 steps per second
    assert 10 <= session.simulation.distance <= 40


def test_superseded_worker_stops(pair, caplog):
    caplog.set_level(logging.INFO)
    host, ctrl = pair
    ctrl.emit('select-game', {'roomId': 't1', 'gameId': 'game3'}, namespace='/')
    session = rooms.get('t1').session
    old_epoch = session.epoch

    ctrl.emit('select-game', {'roomId': 't1', 'gameId': 'game3'}, namespace='/')
    assert session.epoch == old_epoch + 1
    assert _wait_for(lambda: ('t1', old_epoch) not in _scheduled_tick_keys)
    assert f"[tick-abort] room=t1 epoch={old_epoch}" in caplog.text
    assert ('t1', session.epoch) in _scheduled_tick_keys

    # The new worker only ever reports the new epoch
    host.get_received('/')
    time.sleep(0.2)
    frames = _named(host.get_received('/'), 'game-frame')
    assert frames
    assert {frame['epoch'] for frame in frames} == {session.epoch}
    assert session.simulation.distance == 0


def test_host_disconnect_ends_worker(pair):
    host, ctrl = pair
    ctrl.emit('select-game', {'roomId': 't1', 'gameId': 'game1'}, namespace='/')
    ctrl.emit('controller-action', {'roomId': 't1', 'action': 'start-game'}, namespace='/')
    session = rooms.get('t1').session
    assert _room_keys('t1')

    host.disconnect(namespace='/')
    assert _wait_for(lambda: not _room_keys('t1'))
    play_ms = session.simulation.play_ms
    time.sleep(0.1)
    assert session.simulation.play_ms == play_ms
