import random

import pytest

from arcade.game.controller import SessionController
from arcade.game.models import Category, Configuration, SessionStatus
from arcade.game.storage import InMemoryHighScoreStore
from arcade.game.timers import ManualTimer
from common.exceptions import ContractViolationError

from conftest import SCENARIO_CONFIG, ScriptedRandom

LONG_CONFIG = Configuration(max_misses=4, num_cells=5, initial_delay=1000, min_delay=100, delay_step=50)


def assert_invariants(controller):
    config = controller.config
    board = controller.board
    assert [cell.id for cell in board.cells if cell.active] == [board.active_id]
    assert 0 <= board.active_id < config.num_cells
    assert 0 <= controller.misses <= config.max_misses
    assert controller.ended == (controller.misses == config.max_misses)
    assert config.min_delay <= controller.state.current_delay <= config.initial_delay


def test_initial_state(make_controller, timer, store):
    store.write(42)
    controller = make_controller()
    assert controller.status == SessionStatus.RUNNING
    assert (controller.score, controller.misses, controller.ended) == (0, 0, False)
    assert controller.state.current_delay == 1000
    assert controller.high_score == 42
    assert timer.pending_delays == [1000]
    assert_invariants(controller)


def test_scenario_a_single_miss_ends_session(make_controller, timer):
    controller = make_controller()
    assert (controller.misses, controller.ended) == (0, False)

    timer.fire_next()

    assert (controller.misses, controller.ended) == (1, True)
    assert controller.status == SessionStatus.ENDED
    assert timer.pending_count == 0
    assert_invariants(controller)


def test_scenario_b_reset_after_game_over(make_controller, timer):
    controller = make_controller()
    timer.fire_next()

    controller.reset()

    assert (controller.score, controller.misses, controller.ended) == (0, 0, False)
    assert 0 <= controller.board.active_id < 5
    assert controller.state.current_delay == 1000
    assert timer.pending_delays == [1000]
    assert_invariants(controller)


def test_scenario_c_hit_on_purple_scores_ten(make_controller, store, purple_at_two):
    controller = make_controller(rng=purple_at_two)
    assert controller.board.active_id == 2
    assert controller.board.active_cell.category == Category.PURPLE

    controller.on_cell_tapped(2)

    assert controller.score == 10
    assert store.read() == 10
    assert controller.high_score == 10


def test_scenario_c_higher_prior_high_score_is_kept(timer, purple_at_two):
    store = InMemoryHighScoreStore(initial=50)
    controller = SessionController(SCENARIO_CONFIG, timer, store, purple_at_two)

    controller.on_cell_tapped(2)

    assert controller.score == 10
    assert store.read() == 50
    assert store.writes == 0
    assert controller.high_score == 50


def test_scenario_d_wrong_tap_is_ignored(make_controller, timer):
    controller = make_controller()
    board = controller.board
    wrong = (board.active_id + 1) % 5
    published = []
    controller.subscribe(published.append)

    controller.on_cell_tapped(wrong)
    controller.on_cell_tapped(99)

    assert controller.board is board
    assert (controller.score, controller.misses) == (0, 0)
    assert timer.pending_delays == [1000]
    assert published == []


def test_scenario_e_delay_ramps_down_then_clamps(make_controller, timer):
    controller = make_controller(config=LONG_CONFIG)
    for _ in range(25):
        controller.on_cell_tapped(controller.board.active_id)

    expected = [1000] + [max(100, 1000 - 50 * i) for i in range(1, 26)]
    assert timer.scheduled == expected
    assert controller.state.current_delay == 100

    timer.fire_next()
    assert controller.state.current_delay == 100
    assert timer.pending_delays == [100]


def test_miss_spawns_new_cell_and_rearms(make_controller, timer):
    controller = make_controller(config=LONG_CONFIG)
    before = controller.board

    timer.fire_next()

    assert controller.misses == 1
    assert not controller.ended
    assert controller.board is not before
    assert controller.board.active_id != before.active_id
    assert timer.pending_delays == [950]


def test_hit_never_repeats_active_cell(make_controller):
    controller = make_controller(config=LONG_CONFIG)
    for _ in range(100):
        previous = controller.board.active_id
        controller.on_cell_tapped(previous)
        assert controller.board.active_id != previous


def test_at_most_one_timer_pending(make_controller, timer):
    controller = make_controller(config=LONG_CONFIG)
    controller.on_cell_tapped(controller.board.active_id)
    timer.fire_next()
    controller.on_cell_tapped(controller.board.active_id)
    assert timer.pending_count == 1


def test_random_walk_keeps_invariants(timer, store):
    rng = random.Random(2024)
    controller = SessionController(LONG_CONFIG, timer, store, random.Random(8))
    for _ in range(500):
        move = rng.random()
        if controller.ended:
            controller.reset()
        elif move < 0.4:
            delay = controller.state.current_delay
            controller.on_cell_tapped(controller.board.active_id)
            assert controller.state.current_delay == max(100, delay - 50)
        elif move < 0.7:
            timer.fire_next()
        else:
            controller.on_cell_tapped(rng.randrange(5))
        assert_invariants(controller)
        assert timer.pending_count == (0 if controller.ended else 1)


def test_game_over_after_max_misses(make_controller, timer):
    controller = make_controller(config=LONG_CONFIG)
    for _ in range(3):
        timer.fire_next()
        assert not controller.ended
    timer.fire_next()
    assert controller.ended
    assert controller.misses == 4
    assert timer.fire_next() is False


def test_transitions_after_game_over_fail_fast(make_controller, timer):
    controller = make_controller()
    timer.fire_next()

    with pytest.raises(ContractViolationError) as excinfo:
        controller.on_timer_expired()
    assert excinfo.value.operation == "on_timer_expired"
    assert excinfo.value.status == "ended"

    with pytest.raises(ContractViolationError):
        controller.on_cell_tapped(controller.board.active_id)
    assert controller.misses == 1


def test_reset_while_running_fails_fast(make_controller):
    controller = make_controller()
    with pytest.raises(ContractViolationError) as excinfo:
        controller.reset()
    assert excinfo.value.status == "running"


def test_reset_may_reuse_previous_index(timer, store):
    rng = ScriptedRandom(indices=[3, 3])
    controller = SessionController(SCENARIO_CONFIG, timer, store, rng)
    assert controller.board.active_id == 3
    timer.fire_next()
    controller.reset()
    assert controller.board.active_id == 3


def test_teardown_is_idempotent(make_controller, timer):
    controller = make_controller()
    controller.teardown()
    assert timer.pending_count == 0
    controller.teardown()
    assert timer.pending_count == 0


def test_teardown_after_game_over(make_controller, timer):
    controller = make_controller()
    timer.fire_next()
    controller.teardown()
    assert timer.pending_count == 0


def test_observers_get_snapshot_per_transition(make_controller, timer):
    controller = make_controller(config=LONG_CONFIG)
    published = []
    unsubscribe = controller.subscribe(published.append)

    controller.on_cell_tapped(controller.board.active_id)
    timer.fire_next()

    assert len(published) == 2
    assert published[-1].misses == 1
    assert published[-1] == controller.snapshot()

    unsubscribe()
    timer.fire_next()
    assert len(published) == 2


def test_snapshot_is_stable_after_later_transitions(make_controller):
    controller = make_controller(config=LONG_CONFIG)
    snapshot = controller.snapshot()
    controller.on_cell_tapped(controller.board.active_id)
    assert snapshot.score == 0
    assert snapshot.board is not controller.board


def test_high_score_written_only_on_new_max(timer):
    store = InMemoryHighScoreStore(initial=6)
    rng = ScriptedRandom(indices=[0], categories=[Category.RED] * 50)
    controller = SessionController(LONG_CONFIG, timer, store, rng)

    controller.on_cell_tapped(controller.board.active_id)
    assert controller.score == 5
    assert store.writes == 0

    controller.on_cell_tapped(controller.board.active_id)
    assert controller.score == 10
    assert store.writes == 1
    assert store.read() == 10

    controller.on_cell_tapped(controller.board.active_id)
    assert store.writes == 2
    assert controller.high_score == 15


def test_clear_high_score(make_controller, store, purple_at_two):
    controller = make_controller(rng=purple_at_two)
    controller.on_cell_tapped(2)
    published = []
    controller.subscribe(published.append)

    controller.clear_high_score()

    assert store.read() == 0
    assert controller.high_score == 0
    assert published[-1].high_score == 0
