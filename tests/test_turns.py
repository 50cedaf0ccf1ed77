import itertools
import random

from outsider.domain.game.turns import (
    advance_turn,
    first_eligible_index,
    initial_turn_order,
    next_eligible_index,
    turn_budget,
)


def test_initial_turn_order_is_a_permutation():
    pids = [f"p{i}" for i in range(7)]
    for seed in range(20):
        order = initial_turn_order(pids, random.Random(seed))
        assert sorted(order) == sorted(pids)
    # input untouched
    assert pids == [f"p{i}" for i in range(7)]


def test_next_eligible_index_wraps_and_skips():
    order = ["a", "b", "c", "d"]
    assert next_eligible_index(order, 0, set()) == 1
    assert next_eligible_index(order, 3, set()) == 0
    assert next_eligible_index(order, 0, {"b", "c"}) == 3
    assert next_eligible_index(order, 2, {"d", "a"}) == 1


def test_next_eligible_index_can_land_on_current_holder():
    order = ["a", "b", "c"]
    assert next_eligible_index(order, 1, {"a", "c"}) == 1


def test_next_eligible_index_none_when_everyone_is_out():
    order = ["a", "b", "c"]
    assert next_eligible_index(order, 0, {"a", "b", "c"}) is None
    assert next_eligible_index([], 0, set()) is None


def test_next_eligible_never_picks_ineligible_for_any_pattern():
    order = ["a", "b", "c", "d", "e"]
    for r in range(len(order)):
        for out in itertools.combinations(order, r):
            ineligible = set(out)
            for current in range(len(order)):
                idx = next_eligible_index(order, current, ineligible)
                assert idx is not None
                assert order[idx] not in ineligible


def test_first_eligible_index():
    order = ["a", "b", "c"]
    assert first_eligible_index(order, set()) == 0
    assert first_eligible_index(order, {"a"}) == 1
    assert first_eligible_index(order, {"a", "b"}) == 2
    assert first_eligible_index(order, {"a", "b", "c"}) is None


def test_turn_budget_is_two_turns_per_player():
    assert turn_budget("classic", 4) == 8
    assert turn_budget("double", 5) == 10


def test_advance_turn_reports_budget_exhaustion():
    order = ["a", "b", "c"]
    step = advance_turn(mode="classic", turn_order=order, current_index=0, turns_taken=4, ineligible=set())
    assert step.budget_exhausted is False
    assert step.next_index == 1
    assert step.turns_taken == 5

    step = advance_turn(mode="classic", turn_order=order, current_index=1, turns_taken=5, ineligible=set())
    assert step.budget_exhausted is True
    assert step.turns_taken == 6
