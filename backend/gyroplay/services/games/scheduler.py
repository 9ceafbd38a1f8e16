import time
from typing import Set, Tuple

from gyroplay import rooms, socketio


_scheduled_tick_keys: Set[Tuple[str, int]] = set()


def schedule_ticks(app, room_id: str) -> None:
    """Start the tick worker for the room's current session epoch.

    - No-ops in TESTING mode (tests drive ``HostSession.advance`` directly)
    - Ensures a single worker per (room_id, epoch)
    - The worker exits on its own once the session is stopped or its epoch moves on,
      so a restart or game switch never lets a stale worker touch the new instance
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    room = rooms.get(room_id)
    session = room.session if room else None
    if session is None or session.simulation is None:
        return

    epoch = session.epoch
    key = (room_id, epoch)
    if key in _scheduled_tick_keys:
        app.logger.info(f"[tick-skip] room={room_id} epoch={epoch} already scheduled")
        return
    _scheduled_tick_keys.add(key)

    frame_rate = max(1, int(app.config.get('FRAME_RATE', 30)))
    namespace = app.config.get('SOCKETIO_NAMESPACE', '/')
    try:
        hb = int(app.config.get('TICK_HEARTBEAT_SEC', 0))
    except (TypeError, ValueError):
        hb = 0

    app.logger.info(f"[tick-start] room={room_id} game={session.game_id} epoch={epoch} frame_rate={frame_rate}")

    def _worker(expected_epoch: int):
        interval = 1.0 / frame_rate
        last = time.monotonic()
        next_beat = last + hb if hb > 0 else None
        try:
            while True:
                socketio.sleep(interval)
                now = time.monotonic()
                steps = session.advance(now - last, epoch=expected_epoch)
                last = now
                if steps is None:
                    app.logger.info(f"[tick-abort] room={room_id} epoch={expected_epoch} superseded or stopped")
                    return
                current = rooms.get(room_id)
                if current is None or current.session is not session:
                    app.logger.info(f"[tick-abort] room={room_id} epoch={expected_epoch} room gone")
                    return
                if current.host is not None:
                    socketio.emit('game-frame', session.frame, to=current.host.sid, namespace=namespace)
                if next_beat is not None and now >= next_beat:
                    next_beat = now + hb
                    app.logger.info(
                        f"[tick-heartbeat] room={room_id} epoch={expected_epoch} status={session.status.value} score={session.score}"
                    )
        finally:
            _scheduled_tick_keys.discard((room_id, expected_epoch))

    socketio.start_background_task(_worker, epoch)
