"""User directory: create, delete and look up users in a record store."""
import logging
import secrets
import uuid
from dataclasses import dataclass

from cycle_login.core.clock import now_ms
from cycle_login.core.security import AdminClaim, require_admin
from cycle_login.schemas.records import CYCLE_COUNT, UserRecord, normalize_username
from cycle_login.stores.base import RecordStore

logger = logging.getLogger(__name__)

CODE_MIN = 1_000_000
CODE_MAX = 9_999_999


@dataclass(frozen=True)
class Created:
    user: UserRecord
    cycle_codes: list[str]


@dataclass(frozen=True)
class Conflict:
    message: str = "Username already exists"


@dataclass(frozen=True)
class InvalidInput:
    message: str


def generate_cycle_codes() -> list[str]:
    """Five independent random 7-digit codes."""
    return [str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1)) for _ in range(CYCLE_COUNT)]


def new_user_id() -> str:
    return uuid.uuid4().hex


def find_in(users: list[UserRecord], username: str | None) -> UserRecord | None:
    key = normalize_username(username)
    if not key:
        return None
    return next((u for u in users if u.username_key == key), None)


async def create(store: RecordStore, claim: AdminClaim, username: str | None) -> Created | Conflict | InvalidInput:
    """Add a user; the generated codes are only ever returned here."""
    require_admin(claim)
    name = (username or "").strip()
    if not name:
        return InvalidInput("Username is required")

    async with store.transaction():
        users = await store.get_users()
        if find_in(users, name) is not None:
            return Conflict()
        user = UserRecord(
            id=new_user_id(),
            username=name,
            cycle_codes=generate_cycle_codes(),
            created_at=now_ms(),
            license_expires_at=None,
        )
        users.append(user)
        await store.put_users(users)

    logger.info("Created user %r (%s)", user.username, user.id)
    return Created(user=user, cycle_codes=list(user.cycle_codes))


async def delete(store: RecordStore, claim: AdminClaim, user_id: str) -> None:
    require_admin(claim)
    async with store.transaction():
        users = await store.get_users()
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) == len(users):
            return
        await store.put_users(remaining)
    logger.info("Deleted user %s", user_id)


async def find_by_username(store: RecordStore, username: str | None) -> UserRecord | None:
    return find_in(await store.get_users(), username)


async def find_by_id(store: RecordStore, user_id: str) -> UserRecord | None:
    return next((u for u in await store.get_users() if u.id == user_id), None)


async def list_all(store: RecordStore) -> list[UserRecord]:
    return await store.get_users()
