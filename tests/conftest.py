import random

import pytest

from arcade.game.controller import SessionController
from arcade.game.models import Category, Configuration
from arcade.game.storage import InMemoryHighScoreStore
from arcade.game.timers import ManualTimer


class ScriptedRandom:
    """
    Stand-in for random.Random that hands out scripted values.
    Index draws fall back to the lowest value, category draws to the first choice.
    """

    def __init__(self, indices=(), categories=()):
        self.indices = list(indices)
        self.categories = list(categories)

    def randrange(self, stop):
        return self.indices.pop(0) if self.indices else 0

    def randint(self, a, b):
        return self.indices.pop(0) if self.indices else a

    def choice(self, seq):
        return self.categories.pop(0) if self.categories else seq[0]


SCENARIO_CONFIG = Configuration(
    max_misses=1,
    num_cells=5,
    initial_delay=1000,
    min_delay=100,
    delay_step=50,
)


@pytest.fixture()
def timer():
    return ManualTimer()


@pytest.fixture()
def store():
    return InMemoryHighScoreStore()


@pytest.fixture()
def make_controller(timer, store):
    def _make(config=SCENARIO_CONFIG, rng=None):
        return SessionController(config, timer, store, rng or random.Random(1234))

    return _make


@pytest.fixture()
def purple_at_two():
    """Start with cell 2 active and purple, every other cell red."""
    categories = [Category.RED, Category.RED, Category.PURPLE, Category.RED, Category.RED]
    return ScriptedRandom(indices=[2], categories=categories)
