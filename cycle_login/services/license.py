"""License expiry arithmetic and the admin writes built on it.

Expiry is an epoch-ms timestamp or None. None and any value <= now both mean
"expired"; writes made here store None instead of a past value, but reads
never rely on that because older records may still hold one.
"""
import logging
from dataclasses import dataclass
from typing import Callable

from cycle_login.core.clock import DAY_MS, HOUR_MS, MINUTE_MS, now_ms
from cycle_login.core.security import AdminClaim, require_admin
from cycle_login.schemas.records import UserRecord
from cycle_login.stores.base import RecordStore

logger = logging.getLogger(__name__)

UNSET = object()


@dataclass(frozen=True)
class LicenseStatus:
    expires_at: int | None
    expired: bool
    remaining_ms: int
    remaining_text: str


def days_to_ms(days: float) -> int:
    return int(days * DAY_MS)


def clamp_expiry(expires_at: int | None, now: int) -> int | None:
    """Store None rather than an expiry that has already passed."""
    if expires_at is None or expires_at <= now:
        return None
    return int(expires_at)


def is_expired(user: UserRecord | None, now: int | None = None) -> bool:
    if user is None or user.license_expires_at is None:
        return True
    now = now_ms() if now is None else now
    return now >= user.license_expires_at


def remaining_ms(user: UserRecord | None, now: int | None = None) -> int:
    if user is None or user.license_expires_at is None:
        return 0
    now = now_ms() if now is None else now
    return max(0, user.license_expires_at - now)


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}" + ("" if value == 1 else "s")


def format_remaining(ms: int | float) -> str:
    """Human-readable remaining time: "3 days, 4 hrs", "1 hr, 10 min", "5 mins"."""
    if ms <= 0:
        return "Expired"
    ms = int(ms)
    days = ms // DAY_MS
    hours = (ms % DAY_MS) // HOUR_MS
    minutes = (ms % HOUR_MS) // MINUTE_MS
    if days > 0:
        text = _plural(days, "day")
        if hours > 0:
            text += ", " + _plural(hours, "hr")
        return text
    if hours > 0:
        text = _plural(hours, "hr")
        if minutes > 0:
            text += f", {minutes} min"
        return text
    return _plural(minutes, "min")


def license_status(user: UserRecord | None, now: int | None = None) -> LicenseStatus:
    now = now_ms() if now is None else now
    left = remaining_ms(user, now)
    return LicenseStatus(
        expires_at=user.license_expires_at if user is not None else None,
        expired=is_expired(user, now),
        remaining_ms=left,
        remaining_text=format_remaining(left),
    )


def reduced_expiry(expires_at: int | None, days: float, now: int) -> int | None:
    if expires_at is None:
        return None
    return clamp_expiry(expires_at - days_to_ms(days), now)


def extended_expiry(expires_at: int | None, days: float, now: int) -> int:
    """Top-up: extend an active license, or start a lapsed one from now."""
    base = expires_at if expires_at is not None and expires_at > now else now
    return base + days_to_ms(days)


async def _update_user(
    store: RecordStore,
    user_id: str,
    change: Callable[[UserRecord, int], int | None],
    now: int | None,
) -> bool:
    async with store.transaction():
        users = await store.get_users()
        user = next((u for u in users if u.id == user_id), None)
        if user is None:
            return False
        now = now_ms() if now is None else now
        before = user.license_expires_at
        user.license_expires_at = clamp_expiry(change(user, now), now)
        if user.license_expires_at != before:
            await store.put_users(users)
    logger.info("License for user %s: %s -> %s", user_id, before, user.license_expires_at)
    return True


async def set_license(
    store: RecordStore, claim: AdminClaim, user_id: str, expires_at: int | None, now: int | None = None
) -> bool:
    require_admin(claim)
    value = None if expires_at is None else int(expires_at)
    return await _update_user(store, user_id, lambda user, _now: value, now)


async def remove_days(store: RecordStore, claim: AdminClaim, user_id: str, days: float, now: int | None = None) -> bool:
    """Shorten a license; anything that would end in the past becomes None."""
    require_admin(claim)
    return await _update_user(
        store, user_id, lambda user, _now: reduced_expiry(user.license_expires_at, days, _now), now
    )


async def add_days_from_now_or_extend(
    store: RecordStore, claim: AdminClaim, user_id: str, days: float, now: int | None = None
) -> bool:
    require_admin(claim)
    return await _update_user(
        store, user_id, lambda user, _now: extended_expiry(user.license_expires_at, days, _now), now
    )


async def apply_license_patch(
    store: RecordStore,
    claim: AdminClaim,
    user_id: str,
    expires_at=UNSET,
    remove: float | None = None,
    add: float | None = None,
    now: int | None = None,
) -> bool:
    """Set, then remove days, then add days, in one read-modify-write.

    Each part is optional; remove/add are ignored unless positive.
    """
    require_admin(claim)

    def change(user: UserRecord, _now: int) -> int | None:
        value = user.license_expires_at
        if expires_at is not UNSET:
            value = None if expires_at is None else int(expires_at)
        if remove is not None and remove > 0:
            value = reduced_expiry(value, remove, _now)
        if add is not None and add > 0:
            value = extended_expiry(value, add, _now)
        return value

    return await _update_user(store, user_id, change, now)


async def bulk_add_days(store: RecordStore, claim: AdminClaim, days: float, now: int | None = None) -> int:
    """Extend every currently active license; lapsed and unset ones are left alone.

    A negative day count shortens instead, and anything that would end by now
    is stored as None.
    """
    require_admin(claim)
    ms = days_to_ms(days)
    async with store.transaction():
        users = await store.get_users()
        now = now_ms() if now is None else now
        count = 0
        for user in users:
            if user.license_expires_at is not None and user.license_expires_at > now:
                user.license_expires_at = clamp_expiry(user.license_expires_at + ms, now)
                count += 1
        if count > 0:
            await store.put_users(users)
    logger.info("Bulk-added %s days to %d active licenses", days, count)
    return count
