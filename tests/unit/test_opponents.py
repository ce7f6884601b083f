"""Tests for opponent selection and bot names."""

import random

import pytest

from aimrank.services.opponents import (
    NAME_PREFIXES,
    NAME_SUFFIXES,
    OpponentSelector,
    make_bot_name,
)


@pytest.mark.parametrize("player_rating", [1000, 1075, 1500, 2900, 4000])
def test_opponent_within_band(player_rating):
    selector = OpponentSelector(random.Random(player_rating))
    for _ in range(200):
        opponent = selector.select_opponent(player_rating)
        assert max(1000, player_rating - 150) <= opponent.rating <= player_rating + 150


def test_low_ratings_floored():
    selector = OpponentSelector(random.Random(0))
    assert min(selector.pick_rating(1000) for _ in range(200)) == 1000


def test_seeded_selector_is_reproducible():
    first = OpponentSelector(random.Random(5))
    second = OpponentSelector(random.Random(5))
    assert [first.select_opponent(1500) for _ in range(10)] == [second.select_opponent(1500) for _ in range(10)]


def test_bot_name_shapes():
    rng = random.Random(8)
    for i in range(300):
        name = make_bot_name(i, rng)
        prefix = NAME_PREFIXES[i % len(NAME_PREFIXES)]
        assert name.startswith(prefix)
        tail = name[len(prefix):]
        if tail.isdigit():
            assert 100 <= int(tail) <= 999
        else:
            assert tail == NAME_SUFFIXES[(i * 7) % len(NAME_SUFFIXES)]


def test_name_tables():
    assert len(NAME_PREFIXES) == 30
    assert len(NAME_SUFFIXES) == 16
