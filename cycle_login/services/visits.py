"""Visit log: append page visits, attach session durations, group by user."""
import logging
import math

from cycle_login.core.clock import now_ms
from cycle_login.core.security import AdminClaim, require_admin
from cycle_login.schemas.records import VisitRecord
from cycle_login.stores.base import RecordStore

logger = logging.getLogger(__name__)

ANONYMOUS_LABEL = "(login page)"
APP_VISIT = "app"


def prepare(entry: VisitRecord, now: int | None = None) -> VisitRecord:
    """Fill timestamp, and session_start for app visits, when the client left them out."""
    entry = entry.model_copy()
    if entry.timestamp is None:
        entry.timestamp = now_ms() if now is None else now
    if entry.session_start is None and entry.type == APP_VISIT:
        entry.session_start = entry.timestamp
    return entry


async def record(store: RecordStore, entry: VisitRecord, now: int | None = None) -> VisitRecord:
    stored = prepare(entry, now)
    await store.append_visit(stored)
    return stored


def latest_session_index(visits: list[VisitRecord], username: str | None) -> int | None:
    """Index of the newest app/session visit by username; first one wins on equal timestamps."""
    best = None
    best_ts = None
    for idx, visit in enumerate(visits):
        if visit.username != username or not visit.is_session:
            continue
        ts = visit.timestamp or 0
        if best_ts is None or ts > best_ts:
            best, best_ts = idx, ts
    return best


async def amend_last_duration(store: RecordStore, username: str | None, duration_ms: float) -> bool:
    """Attach a measured duration to the user's most recent session visit.

    Returns False when the user has no session visit (nothing changed).
    """
    async with store.transaction():
        visits = await store.get_visits()
        idx = latest_session_index(visits, username)
        if idx is None:
            return False
        visits[idx] = visits[idx].model_copy(update={"duration_ms": round_half_up(duration_ms)})
        await store.put_visits(visits)
    return True


def group_by_user(visits: list[VisitRecord]) -> dict[str, list[VisitRecord]]:
    grouped: dict[str, list[VisitRecord]] = {}
    for visit in visits:
        grouped.setdefault(visit.username or ANONYMOUS_LABEL, []).append(visit)
    return grouped


async def list_all(store: RecordStore, claim: AdminClaim) -> list[VisitRecord]:
    require_admin(claim)
    return await store.get_visits()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
