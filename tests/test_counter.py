import asyncio

import pytest

from cycle_login.core.errors import AdminRequired
from cycle_login.services import counter


@pytest.mark.parametrize(
    "count, cycle",
    [(0, 1), (1, 1), (2, 2), (4, 4), (5, 5), (6, 1), (10, 5), (11, 1), (12_345, 5)],
)
def test_cycle_from_count(count, cycle):
    assert counter.cycle_from_count(count) == cycle


def test_cycle_always_in_range():
    assert {counter.cycle_from_count(n) for n in range(200)} == {1, 2, 3, 4, 5}


async def test_increment_cycles_through_five(store):
    cycles = [(await counter.increment_and_get_cycle(store))[1] for _ in range(6)]
    assert cycles == [1, 2, 3, 4, 5, 1]
    assert await counter.get_count(store) == 6


async def test_current_cycle_does_not_increment(store):
    assert await counter.current_cycle_no_increment(store) == 1
    await counter.increment_and_get_cycle(store)
    await counter.increment_and_get_cycle(store)
    assert await counter.current_cycle_no_increment(store) == 2
    assert await counter.current_cycle_no_increment(store) == 2
    assert await counter.get_count(store) == 2


async def test_reset(store, claim):
    for _ in range(3):
        await counter.increment_and_get_cycle(store)
    await counter.reset(store, claim)
    assert await counter.get_count(store) == 0
    assert await counter.increment_and_get_cycle(store) == (1, 1)


async def test_reset_requires_claim(store):
    with pytest.raises(AdminRequired):
        await counter.reset(store, None)


async def test_concurrent_increments_are_not_lost(store):
    results = await asyncio.gather(*(counter.increment_and_get_cycle(store) for _ in range(20)))
    assert sorted(count for count, _ in results) == list(range(1, 21))
    assert await counter.get_count(store) == 20
