import random

from common.exceptions import ContractViolationError

from .models import Configuration


def random_index(num_cells: int, rng: random.Random) -> int:
    """
    Pick any index in [0, num_cells). Used at session start and on reset,
    where the previous active cell is allowed to come up again.
    """
    if num_cells <= 0:
        raise ContractViolationError(
            "Cannot pick from an empty board", f"num_cells={num_cells}", operation="random_index"
        )
    return rng.randrange(num_cells)


def pick_next_index(num_cells: int, current: int, rng: random.Random) -> int:
    """
    Pick a new active index uniformly among the num_cells - 1 cells that are
    not ``current``.

    Draws r from [0, num_cells - 2] and shifts it past ``current``, so every
    other cell is equally likely and ``current`` never repeats.
    """
    if num_cells < 2:
        raise ContractViolationError(
            "Need at least two cells to pick a different one",
            f"num_cells={num_cells}",
            operation="pick_next_index",
        )
    if not 0 <= current < num_cells:
        raise ContractViolationError(
            "Current index out of range",
            f"current={current} num_cells={num_cells}",
            operation="pick_next_index",
        )
    r = rng.randint(0, num_cells - 2)
    return r + 1 if r >= current else r


def next_delay(current: int, config: Configuration) -> int:
    return max(config.min_delay, current - config.delay_step)
