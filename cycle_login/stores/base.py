"""RecordStore: the storage capability every backend implements.

Services only ever talk to this interface. A backend persists three things:
the user list, the visit log and the global visit counter. Reads of malformed
persisted data fall back to the empty default; genuine I/O errors surface as
BackendFailure.
"""
import abc
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from pydantic import ValidationError

from cycle_login.schemas.records import UserRecord, VisitRecord

logger = logging.getLogger(__name__)


class RecordStore(abc.ABC):
    name = "abstract"

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @abc.abstractmethod
    async def get_users(self) -> list[UserRecord]: ...

    @abc.abstractmethod
    async def put_users(self, users: list[UserRecord]) -> None: ...

    @abc.abstractmethod
    async def get_visits(self) -> list[VisitRecord]: ...

    @abc.abstractmethod
    async def put_visits(self, visits: list[VisitRecord]) -> None: ...

    @abc.abstractmethod
    async def get_counter(self) -> int: ...

    @abc.abstractmethod
    async def put_counter(self, value: int) -> None: ...

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["RecordStore"]:
        """Hold the store lock across a read-modify-write sequence."""
        async with self._lock:
            yield self

    async def increment_counter(self) -> int:
        """Add one to the visit counter and return the new value."""
        async with self.transaction():
            value = await self.get_counter() + 1
            await self.put_counter(value)
            return value

    async def append_visit(self, visit: VisitRecord) -> None:
        async with self.transaction():
            visits = await self.get_visits()
            visits.append(visit)
            await self.put_visits(visits)

    async def close(self) -> None:
        return None


def parse_users(raw: Any, *, source: str) -> list[UserRecord]:
    """Decode a JSON text (or already-decoded list) into users.

    Unparsable data reads as empty; a single record that fails validation is
    skipped and logged, the rest are kept.
    """
    data = _loads(raw, source=source)
    if not isinstance(data, list):
        if data is not None:
            logger.warning("Ignoring non-list user data in %s", source)
        return []
    return _validate_each(UserRecord, data, source=source)


def parse_visits(raw: Any, *, source: str) -> list[VisitRecord]:
    data = _loads(raw, source=source)
    if not isinstance(data, list):
        if data is not None:
            logger.warning("Ignoring non-list visit data in %s", source)
        return []
    return _validate_each(VisitRecord, data, source=source)


def _validate_each(model, items: list, *, source: str) -> list:
    records = []
    for index, item in enumerate(items):
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed record #%d in %s: %s", index, source, exc)
    return records


def parse_counter(raw: Any, *, source: str) -> int:
    """Accepts a bare number or the {"visitCount": n} state document."""
    data = _loads(raw, source=source)
    if isinstance(data, dict):
        data = data.get("visitCount", 0)
    if isinstance(data, bool):
        return 0
    try:
        value = int(data or 0)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed counter in %s", source)
        return 0
    return max(value, 0)


def _loads(raw: Any, *, source: str) -> Any:
    if raw is None:
        return None
    if not isinstance(raw, (str, bytes)):
        return raw
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Unparsable JSON in %s, treating as empty", source)
        return None
