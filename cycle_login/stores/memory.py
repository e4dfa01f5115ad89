"""Local-only store: keeps JSON strings in a dict, like browser local storage."""
import json

from cycle_login.schemas.records import UserRecord, VisitRecord, dump_users, dump_visits
from cycle_login.stores.base import RecordStore, parse_counter, parse_users, parse_visits

STORAGE_KEYS = {
    "users": "cycle_login_users",
    "visit_count": "cycle_login_visitCount",
    "page_visits": "cycle_login_pageVisits",
}


class MemoryRecordStore(RecordStore):
    name = "memory"

    def __init__(self, items: dict[str, str] | None = None) -> None:
        super().__init__()
        self.items: dict[str, str] = items if items is not None else {}

    async def get_users(self) -> list[UserRecord]:
        return parse_users(self.items.get(STORAGE_KEYS["users"]), source="memory:users")

    async def put_users(self, users: list[UserRecord]) -> None:
        self.items[STORAGE_KEYS["users"]] = json.dumps(dump_users(users))

    async def get_visits(self) -> list[VisitRecord]:
        return parse_visits(self.items.get(STORAGE_KEYS["page_visits"]), source="memory:visits")

    async def put_visits(self, visits: list[VisitRecord]) -> None:
        self.items[STORAGE_KEYS["page_visits"]] = json.dumps(dump_visits(visits))

    async def get_counter(self) -> int:
        return parse_counter(self.items.get(STORAGE_KEYS["visit_count"]), source="memory:visitCount")

    async def put_counter(self, value: int) -> None:
        self.items[STORAGE_KEYS["visit_count"]] = str(int(value))
