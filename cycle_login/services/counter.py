"""Global visit counter and the cycle (1..5) derived from it."""
import logging

from cycle_login.core.security import AdminClaim, require_admin
from cycle_login.schemas.records import CYCLE_COUNT
from cycle_login.stores.base import RecordStore

logger = logging.getLogger(__name__)


def cycle_from_count(count: int) -> int:
    """Cycle 1..5 for a counter value; count 0 (nothing counted yet) is cycle 1."""
    if count <= 0:
        return 1
    return ((count - 1) % CYCLE_COUNT) + 1


async def get_count(store: RecordStore) -> int:
    return await store.get_counter()


async def increment_and_get_cycle(store: RecordStore) -> tuple[int, int]:
    """Bump the counter for a new visit; return (new_count, cycle)."""
    count = await store.increment_counter()
    return count, cycle_from_count(count)


async def current_cycle_no_increment(store: RecordStore) -> int:
    return cycle_from_count(await store.get_counter())


async def reset(store: RecordStore, claim: AdminClaim) -> None:
    require_admin(claim)
    async with store.transaction():
        await store.put_counter(0)
    logger.info("Visit counter reset by %s", claim.subject)
