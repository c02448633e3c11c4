"""Tests for random id generation."""

from __future__ import annotations

import random

import pytest

from shoplist.config import get_settings
from shoplist.errors import IdSpaceExhaustedError
from shoplist.models import ID_MAX, ID_MIN, INVALID_ID, Unit
from shoplist.store import EntityStore, generate_id


class _ScriptedRandom(random.Random):
    """Random source returning a fixed sequence of integers."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def randint(self, a, b):
        return self._values.pop(0)


def test_generated_ids_are_signed_32_bit():
    rng = random.Random(7)
    for _ in range(200):
        value = generate_id([], rng=rng)
        assert ID_MIN <= value <= ID_MAX
        assert value != INVALID_ID


def test_generate_id_skips_sentinel_and_collisions():
    existing = [Unit(id=10, text="a"), Unit(id=20, text="b")]
    rng = _ScriptedRandom([INVALID_ID, 10, 20, 30])

    assert generate_id(existing, rng=rng) == 30


def test_generate_id_gives_up_after_max_attempts():
    existing = [Unit(id=10, text="a")]
    rng = _ScriptedRandom([10, INVALID_ID, 10])

    with pytest.raises(IdSpaceExhaustedError):
        generate_id(existing, rng=rng, max_attempts=3)


def test_store_propagates_exhausted_id_space(db):
    store = EntityStore(rng=_ScriptedRandom([5, 5, 5]), max_id_attempts=2)
    store.load(db)
    assert store.create_unit("kg", db).id == 5

    with pytest.raises(IdSpaceExhaustedError):
        store.create_unit("l", db)
    assert len(store.get_all_units()) == 1


def test_store_uses_configured_attempt_limit(db, monkeypatch):
    monkeypatch.setenv("SHOPLIST_ID_MAX_ATTEMPTS", "1")
    get_settings.cache_clear()
    store = EntityStore(rng=_ScriptedRandom([INVALID_ID]))
    store.load(db)

    with pytest.raises(IdSpaceExhaustedError):
        store.create_shopping_list("Groceries", db)


def test_explicit_zero_attempts_is_honoured(db):
    store = EntityStore(rng=random.Random(3), max_id_attempts=0)
    store.load(db)

    with pytest.raises(IdSpaceExhaustedError):
        store.create_unit("kg", db)
    assert store.get_all_units() == []
