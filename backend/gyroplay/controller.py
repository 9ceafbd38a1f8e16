"""Controller-side protocol glue.

``TiltController`` speaks for one phone: it joins a room as a controller,
runs orientation samples through its own ``InputNormalizer`` and sends the
resulting signal, discrete actions and re-centering requests. The
``client`` is anything with a Socket.IO style ``emit(event, data,
namespace=...)``: a ``socketio.Client`` or Flask-SocketIO's test client.
"""

from typing import Optional

from gyroplay.services.normalizer import GyroSample, InputNormalizer


class TiltController:
    def __init__(self, client, room_id: str, normalizer: Optional[InputNormalizer] = None, namespace: str = '/'):
        self.client = client
        self.room_id = room_id
        self.normalizer = normalizer or InputNormalizer()
        self.namespace = namespace

    def _emit(self, event, data):
        self.client.emit(event, data, namespace=self.namespace)

    def join(self):
        self._emit('join-room', {'roomId': self.room_id, 'role': 'controller'})

    def on_orientation(self, alpha=None, beta=None, gamma=None) -> bool:
        """Feed one raw reading; returns True when a gyro-data message went out."""
        signal = self.normalizer.feed(GyroSample(alpha=alpha, beta=beta, gamma=gamma))
        if signal is None:
            return False
        self._emit('gyro-data', {'roomId': self.room_id, 'data': signal.to_payload()})
        return True

    def calibrate(self):
        offset = self.normalizer.calibrate()
        self._emit('reset-position', {'roomId': self.room_id})
        return offset

    def send_action(self, action: str):
        self._emit('controller-action', {'roomId': self.room_id, 'action': action})

    def select_game(self, game_id: str):
        self._emit('select-game', {'roomId': self.room_id, 'gameId': game_id})

    @property
    def debug(self) -> str:
        return self.normalizer.debug
