from __future__ import annotations

import logging
import random
from typing import Callable, Hashable, List, Optional

from common.exceptions import ContractViolationError

from .logic import next_delay, pick_next_index, random_index
from .models import (
    Board,
    Configuration,
    SessionSnapshot,
    SessionState,
    SessionStatus,
    new_board,
)
from .ports import HighScoreStore, Timer

Observer = Callable[[SessionSnapshot], None]


class SessionController:
    """
    Runs one tap session: spawns, hits, misses, the difficulty ramp and reset.

    Driven by two entry points, ``on_timer_expired`` (wired to the timer) and
    ``on_cell_tapped`` (called by the input layer). The host must deliver them
    one at a time. At most one timer is pending at any moment.
    """

    def __init__(
        self,
        config: Configuration,
        timer: Timer,
        store: HighScoreStore,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self._timer = timer
        self._store = store
        self._rng = rng or random.Random()
        self._observers: List[Observer] = []
        self._handle: Optional[Hashable] = None

        self._high_score = store.read()
        self.state = SessionState(
            board=self._fresh_board(random_index(config.num_cells, self._rng)),
            current_delay=config.initial_delay,
        )
        self._arm(config.initial_delay)
        logging.info(
            f"Session started: cells={config.num_cells} max_misses={config.max_misses} "
            f"high_score={self._high_score}"
        )

    # ------------------------------------------------------------
    # OBSERVABLE STATE
    # ------------------------------------------------------------

    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def misses(self) -> int:
        return self.state.misses

    @property
    def ended(self) -> bool:
        return self.state.ended

    @property
    def high_score(self) -> int:
        return self._high_score

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            board=self.state.board,
            score=self.state.score,
            misses=self.state.misses,
            ended=self.state.ended,
            high_score=self._high_score,
            current_delay=self.state.current_delay,
            max_misses=self.config.max_misses,
        )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; it gets a snapshot after every transition."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------
    # TRANSITIONS
    # ------------------------------------------------------------

    def on_timer_expired(self) -> None:
        self._require(SessionStatus.RUNNING, "on_timer_expired")
        state = self.state
        state.misses += 1

        if state.misses == self.config.max_misses:
            state.ended = True
            self._cancel_pending()
            logging.info(f"Game over: score={state.score} misses={state.misses}")
            self._publish()
            return

        logging.info(f"Miss {state.misses}/{self.config.max_misses} on cell {state.board.active_id}")
        self._spawn()
        self._publish()

    def on_cell_tapped(self, cell_id: int) -> None:
        self._require(SessionStatus.RUNNING, "on_cell_tapped")
        state = self.state
        if cell_id != state.board.active_id:
            return

        points = state.board.active_cell.category.points
        state.score += points
        logging.info(f"Hit cell {cell_id} for {points} points, score={state.score}")
        if state.score > self._high_score:
            self._store.write(state.score)
            self._high_score = state.score

        self._spawn()
        self._publish()

    def reset(self) -> None:
        self._require(SessionStatus.ENDED, "reset")
        state = self.state
        state.misses = 0
        state.score = 0
        state.current_delay = self.config.initial_delay
        state.ended = False
        state.board = self._fresh_board(random_index(self.config.num_cells, self._rng))
        self._cancel_pending()
        self._arm(state.current_delay)
        logging.info("Session reset")
        self._publish()

    def teardown(self) -> None:
        """Cancel every pending timer. Safe in any state and safe to repeat."""
        self._timer.cancel_all()
        self._handle = None
        logging.info("Session torn down")

    def clear_high_score(self) -> None:
        self._store.write(0)
        self._high_score = 0
        logging.info("High score cleared")
        self._publish()

    # ------------------------------------------------------------
    # HELPERS
    # ------------------------------------------------------------

    def _spawn(self) -> None:
        state = self.state
        index = pick_next_index(self.config.num_cells, state.board.active_id, self._rng)
        state.board = self._fresh_board(index)
        state.current_delay = next_delay(state.current_delay, self.config)
        self._cancel_pending()
        self._arm(state.current_delay)

    def _fresh_board(self, active_index: int) -> Board:
        return new_board(self.config.num_cells, active_index, self._rng)

    def _arm(self, delay_ms: int) -> None:
        self._handle = self._timer.schedule(delay_ms, self.on_timer_expired)

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._timer.cancel(self._handle)
            self._handle = None

    def _require(self, expected: SessionStatus, operation: str) -> None:
        if self.state.status != expected:
            raise ContractViolationError(
                f"{operation} is not allowed while the session is {self.state.status.value}",
                operation=operation,
                status=self.state.status.value,
            )

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for observer in list(self._observers):
            observer(snapshot)
