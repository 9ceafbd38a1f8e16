import math
import random
from dataclasses import dataclass
from typing import Optional

from .base import Entity, GameStatus, control_value, next_status, overlaps, purge


@dataclass(frozen=True)
class RacingConfig:
    height: float = 600
    car_width: float = 40
    car_height: float = 70
    base_speed: float = 1
    nitro_speed: float = 16
    steering_sensitivity: float = 2.5
    road_width: float = 300
    edge_margin: float = 20
    # curve(y) = sin(y * k1) * a1 + sin(y * k2) * a2
    curve_k1: float = 0.002
    curve_a1: float = 150
    curve_k2: float = 0.005
    curve_a2: float = 50
    spawn_every: float = 100
    obstacle_chance: float = 0.05
    obstacle_size: float = 40
    spawn_ahead: float = 200
    despawn_behind: float = 100
    distance_per_point: float = 10


def road_curve(y: float, config: Optional[RacingConfig] = None) -> float:
    """World X of the road center at world distance ``y``."""
    c = config or RacingConfig()
    return math.sin(y * c.curve_k1) * c.curve_a1 + math.sin(y * c.curve_k2) * c.curve_a2


class RacingGame:
    """Neon Racing: steer along an endless winding road, hold nitro to go fast."""

    def __init__(self, config: Optional[RacingConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or RacingConfig()
        self.rng = rng or random.Random()
        self.init()

    def init(self) -> None:
        self.status = GameStatus.READY
        self.score = 0
        self.distance = 0.0
        self.car_x = 0.0
        self.steer = 0.0
        self.nitro = False
        self.obstacles = []
        self.spawn_counter = 0

    def curve(self, y: float) -> float:
        return road_curve(y, self.config)

    def is_off_road(self, car_x: float, distance: float) -> bool:
        half = self.config.road_width / 2 - self.config.edge_margin
        return abs(car_x - self.curve(distance)) > half

    def apply_control(self, data) -> None:
        gamma = control_value(data, 'gamma')
        if gamma is None:
            return
        self.steer = gamma * self.config.steering_sensitivity

    def handle_action(self, action: str) -> None:
        if action == 'nitro-start':
            self.nitro = True
        elif action == 'nitro-end':
            self.nitro = False
        elif action == 'start-game':
            self.status = next_status(self.status, GameStatus.PLAYING)

    def tick(self) -> None:
        if self.status != GameStatus.PLAYING:
            return
        c = self.config
        speed = c.nitro_speed if self.nitro else c.base_speed
        rad = math.radians(self.steer)
        self.car_x += math.sin(rad) * speed
        self.distance += math.cos(rad) * speed

        for o in self.obstacles:
            if o.y <= self.distance - c.despawn_behind:
                o.active = False

        bucket = int(self.distance // c.spawn_every)
        if bucket > self.spawn_counter:
            self.spawn_counter = bucket
            if self.rng.random() < c.obstacle_chance:
                offset = self.rng.random() * c.road_width - c.road_width / 2
                self.obstacles.append(Entity(
                    offset,
                    self.distance + c.height + c.spawn_ahead,
                    c.obstacle_size,
                    c.obstacle_size,
                    type='OBSTACLE',
                ))

        if self.is_off_road(self.car_x, self.distance):
            self.status = next_status(self.status, GameStatus.GAME_OVER)

        # Obstacles live in road coordinates: x is the offset from the road center
        for o in self.obstacles:
            if not o.active:
                continue
            world_x = self.curve(o.y) + o.x
            if overlaps(self.car_x, self.distance, c.car_width, c.car_height,
                        world_x, o.y, o.width, o.height):
                self.status = next_status(self.status, GameStatus.GAME_OVER)

        self.obstacles = purge(self.obstacles)
        self.score = max(self.score, int(self.distance // c.distance_per_point))

    def snapshot(self) -> dict:
        return {
            'status': self.status.value,
            'score': self.score,
            'distance': self.distance,
            'carX': self.car_x,
            'carAngle': self.steer,
            'isNitro': self.nitro,
            'roadCenter': self.curve(self.distance),
            'obstacles': [
                {
                    'id': o.id,
                    'trackY': o.y,
                    'offsetX': o.x,
                    'worldX': self.curve(o.y) + o.x,
                    'width': o.width,
                    'height': o.height,
                }
                for o in self.obstacles
            ],
        }
