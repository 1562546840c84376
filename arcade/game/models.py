from __future__ import annotations

import enum
import random
from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from common.exceptions import ConfigurationError, ContractViolationError


class Category(str, enum.Enum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"

    @property
    def points(self) -> int:
        return CATEGORY_POINTS[self]


CATEGORY_POINTS = {
    Category.RED: 5,
    Category.BLUE: 3,
    Category.GREEN: 2,
    Category.YELLOW: 1,
    Category.PURPLE: 10,
}


class SessionStatus(str, enum.Enum):
    RUNNING = "running"
    ENDED = "ended"


@dataclass(frozen=True)
class Configuration:
    """
    Immutable session parameters. Delays are in milliseconds.

    ``delay_step`` is subtracted from the spawn delay after every hit or miss,
    never going below ``min_delay``.
    """

    max_misses: int
    num_cells: int
    initial_delay: int
    min_delay: int
    delay_step: int

    DEFAULT: ClassVar["Configuration"]

    def __post_init__(self) -> None:
        if self.max_misses <= 0:
            raise ConfigurationError("max_misses must be positive", str(self.max_misses), "max_misses")
        if self.num_cells < 2:
            raise ConfigurationError(
                "num_cells must be at least 2", str(self.num_cells), "num_cells"
            )
        if self.initial_delay <= 0:
            raise ConfigurationError(
                "initial_delay must be positive", str(self.initial_delay), "initial_delay"
            )
        if self.min_delay <= 0 or self.min_delay > self.initial_delay:
            raise ConfigurationError(
                "min_delay must be positive and not above initial_delay",
                f"min_delay={self.min_delay} initial_delay={self.initial_delay}",
                "min_delay",
            )
        if self.delay_step < 0:
            raise ConfigurationError("delay_step must not be negative", str(self.delay_step), "delay_step")


Configuration.DEFAULT = Configuration(
    max_misses=5,
    num_cells=9,
    initial_delay=2000,
    min_delay=500,
    delay_step=100,
)


@dataclass(frozen=True)
class Cell:
    id: int
    active: bool
    category: Category


@dataclass(frozen=True)
class Board:
    cells: Tuple[Cell, ...]
    active_id: int

    @property
    def active_cell(self) -> Cell:
        return self.cells[self.active_id]

    def __len__(self) -> int:
        return len(self.cells)


@dataclass
class SessionState:
    board: Board
    current_delay: int
    score: int = 0
    misses: int = 0
    ended: bool = False

    @property
    def status(self) -> SessionStatus:
        return SessionStatus.ENDED if self.ended else SessionStatus.RUNNING


@dataclass(frozen=True)
class SessionSnapshot:
    board: Board
    score: int
    misses: int
    ended: bool
    high_score: int
    current_delay: int
    max_misses: int

    @property
    def status(self) -> SessionStatus:
        return SessionStatus.ENDED if self.ended else SessionStatus.RUNNING


def new_board(num_cells: int, active_index: int, rng: Optional[random.Random] = None) -> Board:
    """Build a fresh board with ``active_index`` lit and random categories."""
    if num_cells <= 0:
        raise ContractViolationError(
            "Board needs at least one cell", f"num_cells={num_cells}", operation="new_board"
        )
    if not 0 <= active_index < num_cells:
        raise ContractViolationError(
            "Active index out of range",
            f"active_index={active_index} num_cells={num_cells}",
            operation="new_board",
        )
    rng = rng or random.Random()
    categories = list(Category)
    cells = tuple(
        Cell(id=i, active=i == active_index, category=rng.choice(categories))
        for i in range(num_cells)
    )
    return Board(cells=cells, active_id=active_index)
