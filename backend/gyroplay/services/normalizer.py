"""Controller-side tilt normalization.

Raw device orientation arrives at whatever rate the sensor likes. The
normalizer keeps only the latest reading, subtracts the calibration offset,
applies the axis sign conventions and lets at most one signal out per
``EMIT_INTERVAL_MS``. There is no smoothing and no queue: a sample that
arrives inside the interval just replaces the previous one.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from .games.base import control_value

DIR_X = 1
DIR_Y = -1
EMIT_INTERVAL_MS = 50


@dataclass(frozen=True)
class GyroSample:
    alpha: Optional[float] = None
    beta: Optional[float] = None
    gamma: Optional[float] = None

    @classmethod
    def from_payload(cls, data) -> 'GyroSample':
        return cls(
            alpha=control_value(data, 'alpha'),
            beta=control_value(data, 'beta'),
            gamma=control_value(data, 'gamma'),
        )


@dataclass(frozen=True)
class Offset:
    beta: float = 0.0
    gamma: float = -24.0


DEFAULT_OFFSET = Offset()


@dataclass(frozen=True)
class ControlSignal:
    x: float
    y: float
    alpha: Optional[float] = None

    def to_payload(self) -> dict:
        # Hosts read gamma as the horizontal axis and beta as the vertical one
        return {'alpha': self.alpha, 'beta': self.y, 'gamma': self.x}


class InputNormalizer:
    def __init__(
        self,
        offset: Offset = DEFAULT_OFFSET,
        emit_interval_ms: float = EMIT_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.offset = offset
        self.emit_interval_ms = emit_interval_ms
        self._clock = clock
        self._raw_beta = 0.0
        self._raw_gamma = 0.0
        self._alpha = None
        self._last_emit_ms = None
        self.last_signal: Optional[ControlSignal] = None

    def derive(self) -> ControlSignal:
        x = (self._raw_gamma - self.offset.gamma) * DIR_X
        y = (self._raw_beta - self.offset.beta) * DIR_Y
        return ControlSignal(x=x, y=y, alpha=self._alpha)

    def feed(self, sample: GyroSample) -> Optional[ControlSignal]:
        """Record ``sample`` and return a signal when one is due, else None."""
        # A missing axis keeps its last raw value
        if sample.beta is not None:
            self._raw_beta = sample.beta
        if sample.gamma is not None:
            self._raw_gamma = sample.gamma
        if sample.alpha is not None:
            self._alpha = sample.alpha

        now_ms = self._clock() * 1000.0
        if self._last_emit_ms is not None and now_ms - self._last_emit_ms < self.emit_interval_ms:
            return None
        self._last_emit_ms = now_ms
        self.last_signal = self.derive()
        return self.last_signal

    def calibrate(self) -> Offset:
        """Make the current raw orientation the new neutral position."""
        self.offset = Offset(beta=self._raw_beta, gamma=self._raw_gamma)
        return self.offset

    @property
    def debug(self) -> str:
        signal = self.last_signal or self.derive()
        return (
            f"X: {round(signal.x)} | Y: {round(signal.y)} | "
            f"R_B:{round(self._raw_beta)} R_G:{round(self._raw_gamma)}"
        )
