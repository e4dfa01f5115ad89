"""Flat-file store: users.json, visits.json and state.json in one data directory."""
import asyncio
import json
import logging
from pathlib import Path

from cycle_login.core.errors import BackendFailure
from cycle_login.schemas.records import UserRecord, VisitRecord, dump_users, dump_visits
from cycle_login.stores.base import RecordStore, parse_counter, parse_users, parse_visits

logger = logging.getLogger(__name__)

USERS_FILE = "users.json"
VISITS_FILE = "visits.json"
STATE_FILE = "state.json"


class JsonFileRecordStore(RecordStore):
    name = "file"

    def __init__(self, data_dir: str | Path) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)

    async def get_users(self) -> list[UserRecord]:
        raw = await self._read(USERS_FILE)
        return parse_users(raw, source=str(self.data_dir / USERS_FILE))

    async def put_users(self, users: list[UserRecord]) -> None:
        await self._write(USERS_FILE, dump_users(users))

    async def get_visits(self) -> list[VisitRecord]:
        raw = await self._read(VISITS_FILE)
        return parse_visits(raw, source=str(self.data_dir / VISITS_FILE))

    async def put_visits(self, visits: list[VisitRecord]) -> None:
        await self._write(VISITS_FILE, dump_visits(visits))

    async def get_counter(self) -> int:
        raw = await self._read(STATE_FILE)
        return parse_counter(raw, source=str(self.data_dir / STATE_FILE))

    async def put_counter(self, value: int) -> None:
        await self._write(STATE_FILE, {"visitCount": int(value)})

    def ensure_data_dir(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BackendFailure(f"Cannot create data dir {self.data_dir}: {exc}", backend=self.name) from exc

    async def _read(self, filename: str) -> str | None:
        return await asyncio.to_thread(self._read_sync, self.data_dir / filename)

    async def _write(self, filename: str, data) -> None:
        await asyncio.to_thread(self._write_sync, self.data_dir / filename, data)

    def _read_sync(self, path: Path) -> str | None:
        self.ensure_data_dir()
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError:
            logger.warning("Undecodable file %s, treating as empty", path)
            return None
        except OSError as exc:
            raise BackendFailure(f"Cannot read {path}: {exc}", backend=self.name) from exc

    def _write_sync(self, path: Path, data) -> None:
        self.ensure_data_dir()
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise BackendFailure(f"Cannot write {path}: {exc}", backend=self.name) from exc
