from cycle_login.core.config import Settings
from cycle_login.stores.base import RecordStore
from cycle_login.stores.file import JsonFileRecordStore
from cycle_login.stores.memory import MemoryRecordStore
from cycle_login.stores.sql import SqlRecordStore

__all__ = ["RecordStore", "MemoryRecordStore", "JsonFileRecordStore", "SqlRecordStore", "build_store"]


def build_store(settings: Settings) -> RecordStore:
    """Pick the record store backend named by settings.store_backend."""
    if settings.store_backend == "memory":
        return MemoryRecordStore()
    if settings.store_backend == "file":
        return JsonFileRecordStore(settings.data_dir)
    if settings.store_backend == "sql":
        return SqlRecordStore(settings.database_url, echo=settings.database_echo)
    raise ValueError(f"Unknown store backend: {settings.store_backend!r}")
