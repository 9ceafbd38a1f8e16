import random
from dataclasses import dataclass, field
from typing import Optional

from .base import (
    STEP_MS,
    DifficultyCurve,
    Entity,
    GameStatus,
    clamp,
    collide,
    control_value,
    next_status,
    purge,
)


@dataclass(frozen=True)
class ShooterConfig:
    # Arena is centered on the origin, y grows downwards
    width: float = 800
    height: float = 600
    player_size: float = 50
    player_speed: float = 15
    max_angle: float = 30
    bullet_width: float = 8
    bullet_height: float = 20
    bullet_speed: float = 18
    bullet_offset: float = 30
    initial_fire_rate_ms: float = 800
    min_fire_rate_ms: float = 150
    fire_rate_boost: float = 0.9
    obstacle_size: float = 40
    power_up_size: float = 30
    power_up_speed: float = 4
    power_up_chance: float = 0.15
    spawn_margin: float = 50
    score_per_hit: int = 100
    score_per_power_up: int = 500
    difficulty: DifficultyCurve = field(default_factory=lambda: DifficultyCurve(
        base_speed=1.0,
        speed_per_level=0.5,
        base_spawn_ms=300.0,
        spawn_decay_ms=30.0,
        min_spawn_ms=200.0,
    ))


class ShooterGame:
    """Rocket Shooter: fly around the arena, shoot falling meteors, grab power-ups."""

    def __init__(self, config: Optional[ShooterConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or ShooterConfig()
        self.rng = rng or random.Random()
        self.init()

    def init(self) -> None:
        c = self.config
        self.status = GameStatus.READY
        self.score = 0
        self.player = Entity(0.0, 0.0, c.player_size, c.player_size, type='PLAYER', id='p1')
        self.bullets = []
        self.obstacles = []
        self.power_ups = []
        self.fire_rate = c.initial_fire_rate_ms
        self.play_ms = 0.0
        self.spawn_timer = 0.0
        self.last_fire_ms = None
        self.move_x = 0.0
        self.move_y = 0.0
        self.firing = False

    def apply_control(self, data) -> None:
        beta = control_value(data, 'beta')
        gamma = control_value(data, 'gamma')
        if beta is None or gamma is None:
            return
        c = self.config
        self.move_x = gamma / c.max_angle * c.player_speed
        self.move_y = beta / c.max_angle * c.player_speed

    def handle_action(self, action: str) -> None:
        if action in ('fire-start', 'shoot'):
            self.firing = True
        elif action == 'fire-end':
            self.firing = False
        elif action == 'start-game':
            self.start()

    def start(self) -> None:
        if self.status != GameStatus.READY:
            return
        self.status = GameStatus.PLAYING
        self.fire_rate = self.config.initial_fire_rate_ms
        self.last_fire_ms = None

    def tick(self) -> None:
        if self.status != GameStatus.PLAYING:
            return
        c = self.config
        self.play_ms += STEP_MS
        obstacle_speed = c.difficulty.obstacle_speed(self.play_ms)
        spawn_interval = c.difficulty.spawn_interval(self.play_ms)

        # Player
        limit_x = c.width / 2 - c.player_size / 2
        limit_y = c.height / 2 - c.player_size / 2
        self.player.x = clamp(self.player.x + self.move_x, -limit_x, limit_x)
        self.player.y = clamp(self.player.y + self.move_y, -limit_y, limit_y)

        # Continuous fire while the button is held
        if self.firing and (self.last_fire_ms is None or self.play_ms - self.last_fire_ms >= self.fire_rate):
            self.bullets.append(Entity(
                self.player.x,
                self.player.y - c.bullet_offset,
                c.bullet_width,
                c.bullet_height,
                type='BULLET',
            ))
            self.last_fire_ms = self.play_ms

        top = -c.height / 2
        bottom = c.height / 2
        for b in self.bullets:
            b.y -= c.bullet_speed
            if b.y < top:
                b.active = False
        for o in self.obstacles:
            o.y += obstacle_speed
            if o.y > bottom:
                o.active = False
        for p in self.power_ups:
            p.y += c.power_up_speed
            if p.y > bottom:
                p.active = False

        self.spawn_timer += STEP_MS
        if self.spawn_timer > spawn_interval:
            self.spawn_timer = 0.0
            self._spawn()

        self._collide()

        self.bullets = purge(self.bullets)
        self.obstacles = purge(self.obstacles)
        self.power_ups = purge(self.power_ups)

    def _spawn(self) -> None:
        c = self.config
        x = self.rng.random() * c.width - c.width / 2
        y = -c.height / 2 - c.spawn_margin
        if self.rng.random() < c.power_up_chance:
            self.power_ups.append(Entity(x, y, c.power_up_size, c.power_up_size, type='POWERUP_RATE'))
        else:
            self.obstacles.append(Entity(x, y, c.obstacle_size, c.obstacle_size, type='METEOR'))

    def _collide(self) -> None:
        c = self.config
        for b in self.bullets:
            if not b.active:
                continue
            for o in self.obstacles:
                if o.active and collide(b, o):
                    b.active = False
                    o.active = False
                    self.score += c.score_per_hit
                    break

        for o in self.obstacles:
            if o.active and collide(self.player, o):
                self.status = next_status(self.status, GameStatus.GAME_OVER)

        for p in self.power_ups:
            if p.active and collide(self.player, p):
                p.active = False
                self.score += c.score_per_power_up
                self.fire_rate = max(c.min_fire_rate_ms, self.fire_rate * c.fire_rate_boost)

    def snapshot(self) -> dict:
        return {
            'status': self.status.value,
            'score': self.score,
            'player': self.player.to_dict(),
            'bullets': [b.to_dict() for b in self.bullets],
            'obstacles': [o.to_dict() for o in self.obstacles],
            'powerUps': [p.to_dict() for p in self.power_ups],
            'fireRate': self.fire_rate,
            'difficulty': self.config.difficulty.level(self.play_ms),
            'firing': self.firing,
        }
