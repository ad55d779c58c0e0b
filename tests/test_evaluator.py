"""Unit tests for the dice group evaluator."""

from __future__ import annotations

import random

import pytest

from dicebox.errors import ExplosionLimitExceededError, RandomSourceContractError
from dicebox.evaluator import evaluate
from dicebox.parser import parse


def _term(notation: str):
    (term,) = parse(notation).dice_terms
    return term


def _faces(group):
    return [d.result for d in group.dice]


def _kept(group):
    return [d.kept for d in group.dice]


# ---------------------------------------------------------------------------
# Primary roll
# ---------------------------------------------------------------------------


def test_rolls_exactly_count_dice(make_rng):
    rng = make_rng([2, 5, 3])
    group = evaluate(_term("3d6"), rng)
    assert _faces(group) == [2, 5, 3]
    assert all(_kept(group))
    assert group.subtotal == 10
    assert rng.calls == [(1, 6)] * 3


def test_flat_modifier_added_to_subtotal(make_rng):
    group = evaluate(_term("4d6dl1-3"), make_rng([4, 4, 4, 2]))
    assert group.subtotal == 12 - 3


def test_one_sided_die_always_rolls_one():
    rng = random.Random(3)
    for _ in range(20):
        assert evaluate(_term("3d1"), rng).subtotal == 3


# ---------------------------------------------------------------------------
# Keep / drop
# ---------------------------------------------------------------------------


def test_drop_lowest_ties_drop_first_position(make_rng):
    group = evaluate(_term("4d6dl1"), make_rng([3, 1, 4, 1]))
    assert _kept(group) == [True, False, True, True]
    assert group.subtotal == 8


def test_drop_highest_ties_drop_first_position(make_rng):
    group = evaluate(_term("3d6dh1"), make_rng([6, 2, 6]))
    assert _kept(group) == [False, True, True]
    assert group.subtotal == 8


def test_keep_highest(make_rng):
    group = evaluate(_term("2d20kh1"), make_rng([7, 12]))
    assert _kept(group) == [False, True]
    assert group.subtotal == 12


def test_keep_highest_tie_keeps_first_position(make_rng):
    group = evaluate(_term("2d20kh1"), make_rng([15, 15]))
    assert _kept(group) == [True, False]


def test_keep_lowest(make_rng):
    group = evaluate(_term("2d20kl1"), make_rng([7, 12]))
    assert _kept(group) == [True, False]
    assert group.subtotal == 7


def test_drop_always_keeps_one_die(make_rng):
    group = evaluate(_term("2d6dl5"), make_rng([3, 4]))
    assert _kept(group) == [False, True]
    assert group.subtotal == 4


def test_keep_more_than_rolled_keeps_all(make_rng):
    group = evaluate(_term("2d6kh5"), make_rng([3, 4]))
    assert all(_kept(group))


def test_dropped_dice_stay_in_record(make_rng):
    group = evaluate(_term("5d6kh2"), make_rng([1, 2, 3, 4, 5]))
    assert len(group.dice) == 5
    assert [d.result for d in group.kept_dice] == [4, 5]
    assert [d.result for d in group.dropped_dice] == [1, 2, 3]


# ---------------------------------------------------------------------------
# Explosion
# ---------------------------------------------------------------------------


def test_max_face_explodes_once(make_rng):
    group = evaluate(_term("2d6x"), make_rng([6, 3, 5]))
    assert _faces(group) == [6, 3, 5]
    assert [d.exploded for d in group.dice] == [True, False, False]
    assert group.subtotal == 14


def test_explosion_does_not_chain(make_rng):
    rng = make_rng([6, 2, 6])
    group = evaluate(_term("2d6x"), rng)
    assert _faces(group) == [6, 2, 6]
    assert [d.exploded for d in group.dice] == [True, False, False]
    assert len(rng.calls) == 3


def test_explosion_threshold(make_rng):
    group = evaluate(_term("2d10x>8"), make_rng([9, 8, 1, 2]))
    assert _faces(group) == [9, 8, 1, 2]
    assert [d.exploded for d in group.dice] == [True, True, False, False]


def test_explosion_runs_before_keep_drop(make_rng):
    group = evaluate(_term("2d6xdl1"), make_rng([6, 4, 1]))
    # The extra die from the explosion is the lowest and gets dropped.
    assert _kept(group) == [True, True, False]
    assert group.subtotal == 10


def test_explosion_extra_die_can_be_kept(make_rng):
    group = evaluate(_term("2d6xkh1"), make_rng([6, 2, 6]))
    assert _kept(group) == [True, False, False]
    assert group.subtotal == 6


def test_forced_max_hits_explosion_limit(max_rng):
    with pytest.raises(ExplosionLimitExceededError) as exc_info:
        evaluate(_term("10d6x"), max_rng, explosion_limit=5)
    assert exc_info.value.fragment == "10d6x"


def test_explosions_within_limit(max_rng):
    group = evaluate(_term("5d6x"), max_rng, explosion_limit=5)
    assert len(group.dice) == 10


# ---------------------------------------------------------------------------
# Random source contract
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("bad_value", [0, 7, 2.5, True, "3"])
def test_random_source_contract(make_rng, bad_value):
    with pytest.raises(RandomSourceContractError):
        evaluate(_term("1d6"), make_rng([bad_value]))


def test_results_within_range():
    rng = random.Random(99)
    for _ in range(200):
        group = evaluate(_term("6d8x"), rng)
        assert all(1 <= d.result <= 8 for d in group.dice)
        assert all(d.sides == 8 for d in group.dice)
