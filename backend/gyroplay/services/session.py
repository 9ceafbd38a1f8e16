"""Host-side session orchestration.

A ``HostSession`` belongs to exactly one room. It knows which game is
active, owns the live simulation instance and turns wall-clock time into
fixed simulation steps. Every restart or game switch bumps ``epoch`` and
builds a fresh simulation; tick workers carry the epoch they were started
for and stop touching the session as soon as it no longer matches.
"""

import logging
import random
import threading
from typing import Callable, Optional

from .games import LOBBY, create_game, is_known_game_id, parse_game_id
from .games.base import STEP_SEC, GameStatus, Simulation

logger = logging.getLogger(__name__)

ACTIONS = frozenset({
    'fire-start',
    'fire-end',
    'shoot',
    'start-game',
    'launch',
    'nitro-start',
    'nitro-end',
    'restart-game',
    'pause',
    'resume',
})

# Tolerance for float drift when the accumulator lands exactly on a step boundary
_EPSILON = 1e-9


class HostSession:
    def __init__(
        self,
        room_id: str,
        rng: Optional[random.Random] = None,
        max_catchup_steps: int = 10,
        on_status: Optional[Callable[['HostSession', GameStatus], None]] = None,
    ):
        self.room_id = room_id
        self.rng = rng or random.Random()
        self.max_catchup_steps = max(1, int(max_catchup_steps))
        self.on_status = on_status
        self.lock = threading.Lock()
        self.game_id = LOBBY
        self.simulation: Optional[Simulation] = None
        self.epoch = 0
        self.paused = False
        self.alive = True
        self._accumulator = 0.0
        self._published = GameStatus.IDLE
        self._frame = self._build_frame()

    # ---- read side ----

    def _status(self) -> GameStatus:
        if self.simulation is None:
            return GameStatus.IDLE
        status = self.simulation.status
        if self.paused and status == GameStatus.PLAYING:
            return GameStatus.PAUSED
        return status

    @property
    def status(self) -> GameStatus:
        return self._status()

    @property
    def score(self) -> int:
        return self.simulation.score if self.simulation is not None else 0

    @property
    def frame(self) -> dict:
        """Last committed render state. Replaced wholesale, never mutated."""
        return self._frame

    def _build_frame(self) -> dict:
        return {
            'roomId': self.room_id,
            'gameId': self.game_id,
            'epoch': self.epoch,
            'status': self._status().value,
            'score': self.score,
            'state': self.simulation.snapshot() if self.simulation is not None else None,
        }

    def _commit_frame(self) -> None:
        self._frame = self._build_frame()

    def _publish(self) -> None:
        with self.lock:
            status = self._status()
            changed = status != self._published
            self._published = status
        if changed and self.on_status:
            self.on_status(self, status)

    # ---- write side ----

    def _replace(self, game_id: str) -> None:
        self.epoch += 1
        self.game_id = game_id
        kind = parse_game_id(game_id)
        self.simulation = create_game(kind, rng=self.rng) if kind else None
        self.paused = False
        self._accumulator = 0.0
        self._commit_frame()

    def select_game(self, game_id) -> bool:
        if not is_known_game_id(game_id):
            return False
        with self.lock:
            if not self.alive:
                return False
            self._replace(game_id)
        logger.info("[select] room=%s game=%s epoch=%s", self.room_id, game_id, self.epoch)
        self._publish()
        return True

    def _restart_locked(self) -> bool:
        if self.simulation is None:
            return False
        current = self._status()
        if current not in (GameStatus.READY, GameStatus.GAME_OVER, GameStatus.VICTORY):
            logger.debug("[restart-skip] room=%s status=%s", self.room_id, current.value)
            return False
        self._replace(self.game_id)
        logger.info("[restart] room=%s game=%s epoch=%s", self.room_id, self.game_id, self.epoch)
        return True

    def restart(self) -> bool:
        with self.lock:
            restarted = self.alive and self._restart_locked()
        self._publish()
        return restarted

    def handle_action(self, action) -> bool:
        """Apply one controller action. Unknown or out-of-place actions are no-ops."""
        if not isinstance(action, str) or action not in ACTIONS:
            return False
        with self.lock:
            if not self.alive or self.simulation is None:
                return False
            status = self._status()
            if action == 'pause':
                if status == GameStatus.PLAYING:
                    self.paused = True
            elif action == 'resume':
                if status == GameStatus.PAUSED:
                    self.paused = False
                    self._accumulator = 0.0
            elif action == 'restart-game':
                self._restart_locked()
            else:
                self.simulation.handle_action(action)
            self._commit_frame()
        self._publish()
        return True

    def update_control(self, data) -> None:
        with self.lock:
            if self.alive and self.simulation is not None:
                self.simulation.apply_control(data)

    def reset_position(self) -> None:
        # The controller just re-centered; treat the stick as neutral until fresh data arrives
        with self.lock:
            if self.alive and self.simulation is not None:
                self.simulation.apply_control({'alpha': None, 'beta': 0.0, 'gamma': 0.0})

    def controller_left(self) -> None:
        with self.lock:
            if self._status() == GameStatus.PLAYING:
                self.paused = True
                self._commit_frame()
                logger.info("[forced-pause] room=%s game=%s", self.room_id, self.game_id)
        self._publish()

    def advance(self, elapsed: float, epoch: Optional[int] = None) -> Optional[int]:
        """Feed ``elapsed`` seconds of wall-clock time into the fixed-step loop.

        Returns the number of simulation steps run, or None when the session
        was stopped or ``epoch`` no longer matches (the caller should exit).
        """
        with self.lock:
            if not self.alive or (epoch is not None and epoch != self.epoch):
                return None
            sim = self.simulation
            if sim is None or self.paused or sim.status != GameStatus.PLAYING:
                self._accumulator = 0.0
                self._commit_frame()
                return 0
            self._accumulator += max(0.0, elapsed)
            steps = 0
            while self._accumulator + _EPSILON >= STEP_SEC and steps < self.max_catchup_steps:
                sim.tick()
                self._accumulator -= STEP_SEC
                steps += 1
                if sim.status != GameStatus.PLAYING:
                    self._accumulator = 0.0
                    break
            if self._accumulator + _EPSILON >= STEP_SEC:
                logger.debug("[tick-drop] room=%s backlog=%.3fs", self.room_id, self._accumulator)
                self._accumulator = 0.0
            self._commit_frame()
        self._publish()
        return steps

    def stop(self) -> None:
        with self.lock:
            self.alive = False
            self.epoch += 1
        logger.info("[session-stop] room=%s", self.room_id)
