import json
import random

from .games import GameStatus, create_game, parse_game_id


def run_simulation(game_id, ticks=600, seed=None, gamma=0.0, beta=0.0, actions=()):
    """Run a game headless with a constant tilt and return a JSON summary.

    Same seed, tilt and actions always give the same result.
    """
    kind = parse_game_id(game_id)
    if kind is None:
        raise ValueError(f'unknown game id: {game_id}')
    game = create_game(kind, rng=random.Random(seed))
    game.apply_control({'alpha': None, 'beta': beta, 'gamma': gamma})
    for action in actions:
        game.handle_action(action)
    steps = 0
    for _ in range(max(0, ticks)):
        if game.status != GameStatus.PLAYING:
            break
        game.tick()
        steps += 1
    snapshot = game.snapshot()
    return json.dumps({
        'gameId': kind.value,
        'ticks': steps,
        'status': snapshot['status'],
        'score': snapshot['score'],
    })
