"""Game domain services: simulations and the tick scheduler.

This package contains pure(ish) domain logic that socket handlers and HTTP
routes import, keeping transport concerns separated from core game mechanics.
Each variant satisfies the same init/tick/handle_action contract and is
looked up through ``GAMES`` by its ``GameKind``.
"""

import enum
from typing import Callable, NamedTuple, Optional

from .base import GameStatus
from .brick_breaker import BrickBreakerGame
from .racing import RacingGame
from .shooter import ShooterGame

LOBBY = 'LOBBY'


class GameKind(str, enum.Enum):
    SHOOTER = 'game1'
    BRICK_BREAKER = 'game2'
    RACING = 'game3'


class GameEntry(NamedTuple):
    name: str
    description: str
    icon: str
    factory: Callable


GAMES = {
    GameKind.SHOOTER: GameEntry(
        'Rocket Shooter',
        'Control a Rocket by your phone and shoot meteorites.',
        '🚀',
        ShooterGame,
    ),
    GameKind.BRICK_BREAKER: GameEntry(
        'Space Brick',
        'Tilt to move paddle. Launch the ball to break all bricks.',
        '🧱',
        BrickBreakerGame,
    ),
    GameKind.RACING: GameEntry(
        'Neon Racing',
        'Tilt to steer. Hold Nitro to boost. Avoid obstacles on the road.',
        '🏎️',
        RacingGame,
    ),
}


def parse_game_id(game_id) -> Optional[GameKind]:
    try:
        return GameKind(game_id)
    except ValueError:
        return None


def is_known_game_id(game_id) -> bool:
    return game_id == LOBBY or parse_game_id(game_id) is not None


def create_game(kind: GameKind, rng=None):
    return GAMES[kind].factory(rng=rng)


def catalogue():
    return [
        {'id': kind.value, 'name': entry.name, 'description': entry.description, 'icon': entry.icon}
        for kind, entry in GAMES.items()
    ]


__all__ = [
    'GAMES',
    'LOBBY',
    'GameEntry',
    'GameKind',
    'GameStatus',
    'catalogue',
    'create_game',
    'is_known_game_id',
    'parse_game_id',
]
