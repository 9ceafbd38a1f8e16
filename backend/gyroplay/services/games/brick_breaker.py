import random
from dataclasses import dataclass
from typing import Optional

from .base import Entity, GameStatus, clamp, control_value, next_status, overlaps, purge


@dataclass(frozen=True)
class BrickBreakerConfig:
    # Arena origin is the top-left corner
    width: float = 800
    height: float = 600
    paddle_width: float = 120
    paddle_height: float = 20
    paddle_y: float = 550
    paddle_speed: float = 18
    max_angle: float = 30
    ball_size: float = 16
    ball_speed: float = 1
    launch_spread: float = 0.8
    deflection: float = 0.15
    brick_rows: int = 5
    brick_cols: int = 8
    brick_height: float = 30
    brick_gap: float = 10
    brick_top: float = 50
    score_per_brick: int = 50


class Ball:
    def __init__(self, x, y, vx=0.0, vy=0.0):
        self.x = x
        self.y = y
        self.vx = vx
        self.vy = vy

    def to_dict(self):
        return {'x': self.x, 'y': self.y, 'vx': self.vx, 'vy': self.vy}


class BrickBreakerGame:
    """Space Brick: tilt to slide the paddle, keep the ball alive, clear the wall."""

    def __init__(self, config: Optional[BrickBreakerConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or BrickBreakerConfig()
        self.rng = rng or random.Random()
        self.init()

    def init(self) -> None:
        c = self.config
        self.status = GameStatus.READY
        self.score = 0
        self.paddle_x = c.width / 2
        self.ball = Ball(c.width / 2, c.paddle_y - 20)
        self.bricks = self._build_bricks()
        self.move_x = 0.0

    def _build_bricks(self):
        c = self.config
        brick_w = (c.width - (c.brick_cols + 1) * c.brick_gap) / c.brick_cols
        bricks = []
        for r in range(c.brick_rows):
            for col in range(c.brick_cols):
                left = c.brick_gap + col * (brick_w + c.brick_gap)
                top = c.brick_gap + r * (c.brick_height + c.brick_gap) + c.brick_top
                bricks.append(Entity(
                    left + brick_w / 2,
                    top + c.brick_height / 2,
                    brick_w,
                    c.brick_height,
                    type='NORMAL',
                ))
        return bricks

    def apply_control(self, data) -> None:
        gamma = control_value(data, 'gamma')
        if gamma is None:
            return
        self.move_x = gamma / self.config.max_angle * self.config.paddle_speed

    def handle_action(self, action: str) -> None:
        if action in ('launch', 'fire-start', 'start-game'):
            self.launch()

    def launch(self) -> None:
        if self.status != GameStatus.READY:
            return
        c = self.config
        direction = 1 if self.rng.random() > 0.5 else -1
        self.ball.vx = direction * c.ball_speed * c.launch_spread
        self.ball.vy = -c.ball_speed
        self.status = GameStatus.PLAYING

    def tick(self) -> None:
        if self.status != GameStatus.PLAYING:
            return
        c = self.config
        half_p = c.paddle_width / 2
        self.paddle_x = clamp(self.paddle_x + self.move_x, half_p, c.width - half_p)

        ball = self.ball
        ball.x += ball.vx
        ball.y += ball.vy

        # Walls
        if ball.x <= 0 or ball.x >= c.width:
            ball.vx = -ball.vx
            ball.x = 0 if ball.x <= 0 else c.width
        if ball.y <= 0:
            ball.vy = -ball.vy
            ball.y = 0
        if ball.y > c.height:
            self.status = next_status(self.status, GameStatus.GAME_OVER)

        # One brick per tick, first match wins
        for b in self.bricks:
            if b.active and overlaps(ball.x, ball.y, c.ball_size, c.ball_size, b.x, b.y, b.width, b.height):
                b.active = False
                ball.vy = -ball.vy
                self.score += c.score_per_brick
                break

        p_left = self.paddle_x - half_p
        p_right = self.paddle_x + half_p
        p_top = c.paddle_y
        p_bottom = c.paddle_y + c.paddle_height
        if (
            p_left <= ball.x <= p_right
            and ball.y + c.ball_size / 2 >= p_top
            and ball.y <= p_bottom
            and ball.vy > 0
        ):
            ball.vy = -ball.vy
            # Off-center hits deflect sideways
            ball.vx = (ball.x - self.paddle_x) * c.deflection

        self.bricks = purge(self.bricks)
        if not self.bricks:
            self.status = next_status(self.status, GameStatus.VICTORY)

    def snapshot(self) -> dict:
        return {
            'status': self.status.value,
            'score': self.score,
            'paddleX': self.paddle_x,
            'ball': self.ball.to_dict(),
            'bricks': [b.to_dict() for b in self.bricks],
        }
