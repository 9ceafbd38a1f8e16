"""Shared pieces of the fixed-step simulation engine.

Every game variant keeps its own state and physics, but they all speak the
same small vocabulary defined here: a status enum with a transition guard,
soft-deletable entities, axis-aligned bounding-box tests on centered boxes,
the end-of-tick purge and the difficulty curve.
"""

import enum
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)

# Simulation runs at a fixed 60 steps per second of play time. Velocities in
# the per-game configs are expressed in world units per step.
TICK_RATE = 60
STEP_MS = 1000.0 / TICK_RATE
STEP_SEC = 1.0 / TICK_RATE


class GameStatus(str, enum.Enum):
    IDLE = 'IDLE'
    READY = 'READY'
    PLAYING = 'PLAYING'
    PAUSED = 'PAUSED'
    GAME_OVER = 'GAME_OVER'
    VICTORY = 'VICTORY'


ALLOWED_TRANSITIONS = frozenset({
    (GameStatus.READY, GameStatus.PLAYING),
    (GameStatus.PLAYING, GameStatus.PAUSED),
    (GameStatus.PAUSED, GameStatus.PLAYING),
    (GameStatus.PLAYING, GameStatus.GAME_OVER),
    (GameStatus.PLAYING, GameStatus.VICTORY),
    (GameStatus.GAME_OVER, GameStatus.READY),
    (GameStatus.VICTORY, GameStatus.READY),
})


def can_transition(current: GameStatus, new: GameStatus) -> bool:
    return (current, new) in ALLOWED_TRANSITIONS


def next_status(current: GameStatus, new: GameStatus) -> GameStatus:
    """Return ``new`` when the move is legal, otherwise stay on ``current``."""
    if current == new or can_transition(current, new):
        return new
    logger.debug("ignored status transition %s -> %s", current.value, new.value)
    return current


def parse_status(value) -> Optional[GameStatus]:
    try:
        return GameStatus(value)
    except ValueError:
        return None


@dataclass
class Entity:
    """Any simulated object. ``x``/``y`` are the center of the box."""

    x: float
    y: float
    width: float
    height: float
    active: bool = True
    type: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
        }
        if self.type:
            data['type'] = self.type
        return data


def overlaps(ax, ay, aw, ah, bx, by, bw, bh) -> bool:
    """AABB test for two boxes given by center and size (touching is not overlap)."""
    return abs(ax - bx) * 2 < aw + bw and abs(ay - by) * 2 < ah + bh


def collide(a: Entity, b: Entity) -> bool:
    return overlaps(a.x, a.y, a.width, a.height, b.x, b.y, b.width, b.height)


def purge(entities: Iterable[Entity]) -> List[Entity]:
    # The only place entities leave the world.
    return [e for e in entities if e.active]


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def control_value(data, key):
    """Read one numeric axis out of a control payload, None when unusable."""
    if not isinstance(data, dict):
        return None
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


@dataclass(frozen=True)
class DifficultyCurve:
    """Step function of elapsed play time.

    One level per ``level_every_ms`` of play time. Each level adds
    ``speed_per_level`` to the base obstacle speed and removes
    ``spawn_decay_ms`` from the base spawn interval, never going below
    ``min_spawn_ms``.
    """

    base_speed: float
    speed_per_level: float
    base_spawn_ms: float
    spawn_decay_ms: float
    min_spawn_ms: float
    level_every_ms: float = 10_000.0

    def level(self, play_ms: float) -> int:
        if play_ms <= 0:
            return 0
        return int(play_ms // self.level_every_ms)

    def obstacle_speed(self, play_ms: float) -> float:
        return self.base_speed + self.level(play_ms) * self.speed_per_level

    def spawn_interval(self, play_ms: float) -> float:
        return max(self.min_spawn_ms, self.base_spawn_ms - self.level(play_ms) * self.spawn_decay_ms)


class Simulation(Protocol):
    """Contract every game variant satisfies."""

    status: GameStatus
    score: int

    def init(self) -> None:
        ...

    def tick(self) -> None:
        ...

    def handle_action(self, action: str) -> None:
        ...

    def apply_control(self, data: dict) -> None:
        ...

    def snapshot(self) -> dict:
        ...
