"""Tests for awaiting player reactions."""

import asyncio

import pytest

from aimrank.services.reaction_input import QueuedReactionSource, await_reaction


class SlowSource:
    async def next_reaction(self):
        await asyncio.sleep(1)
        return 200


@pytest.mark.asyncio
async def test_queued_reactions_consumed_in_order():
    source = QueuedReactionSource(210)
    source.submit(190.4)
    source.submit_miss()

    assert source.pending() == 3
    assert await await_reaction(source) == 210
    assert await await_reaction(source) == 190
    assert await await_reaction(source) is None
    assert source.pending() == 0


@pytest.mark.asyncio
async def test_deadline_turns_into_miss():
    assert await await_reaction(SlowSource(), timeout_ms=10) is None


@pytest.mark.asyncio
async def test_reaction_after_deadline_is_miss():
    assert await await_reaction(QueuedReactionSource(5001), timeout_ms=5000) is None
    assert await await_reaction(QueuedReactionSource(5000), timeout_ms=5000) == 5000


@pytest.mark.asyncio
async def test_malformed_reaction_is_miss(caplog):
    assert await await_reaction(QueuedReactionSource("fast")) is None
    assert "Malformed reaction" in caplog.text
