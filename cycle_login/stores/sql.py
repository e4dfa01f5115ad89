"""Relational store on SQLAlchemy async (SQLite via aiosqlite, PostgreSQL via asyncpg)."""
import json
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from cycle_login.core.errors import BackendFailure
from cycle_login.db.session import Base, make_engine, make_sessionmaker
from cycle_login.models.state import STATE_ROW_ID, CycleState
from cycle_login.models.user import User
from cycle_login.models.visit import Visit
from cycle_login.schemas.records import UserRecord, VisitRecord
from cycle_login.stores.base import RecordStore, parse_users, parse_visits

logger = logging.getLogger(__name__)

VISIT_COLUMNS = ("username", "type", "referrer", "cycle", "timestamp", "duration_ms", "session_start")


class SqlRecordStore(RecordStore):
    name = "sql"

    def __init__(self, database_url: str, echo: bool = False, engine: AsyncEngine | None = None) -> None:
        super().__init__()
        self.engine = engine or make_engine(database_url, echo=echo)
        self.session_factory = make_sessionmaker(self.engine)

    async def init_schema(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Cannot create tables: {exc}", backend=self.name) from exc

    async def close(self) -> None:
        await self.engine.dispose()

    # users

    async def get_users(self) -> list[UserRecord]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(User).order_by(User.created_at.asc(), User.id.asc()))
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Cannot read users: {exc}", backend=self.name) from exc
        return parse_users([_user_to_dict(r) for r in rows], source="sql:users")

    async def put_users(self, users: list[UserRecord]) -> None:
        try:
            async with self.session_factory() as db, db.begin():
                result = await db.execute(select(User))
                existing = {row.id: row for row in result.scalars().all()}
                keep = {u.id for u in users}
                stale = [user_id for user_id in existing if user_id not in keep]
                if stale:
                    await db.execute(delete(User).where(User.id.in_(stale)))
                    # free username keys before re-inserting a reused name
                    await db.flush()
                for record in users:
                    row = existing.get(record.id)
                    if row is None:
                        db.add(User(id=record.id, **_user_columns(record)))
                    else:
                        for key, value in _user_columns(record).items():
                            setattr(row, key, value)
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Cannot write users: {exc}", backend=self.name) from exc

    # visits

    async def get_visits(self) -> list[VisitRecord]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(Visit).order_by(Visit.id.asc()))
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Cannot read visits: {exc}", backend=self.name) from exc
        return parse_visits([_visit_to_dict(r) for r in rows], source="sql:visits")

    async def put_visits(self, visits: list[VisitRecord]) -> None:
        try:
            async with self.session_factory() as db, db.begin():
                await db.execute(delete(Visit))
                db.add_all([_visit_row(v) for v in visits])
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Cannot write visits: {exc}", backend=self.name) from exc

    async def append_visit(self, visit: VisitRecord) -> None:
        # put_visits rewrites the table, so appends wait for any amendment in progress
        async with self._lock:
            try:
                async with self.session_factory() as db, db.begin():
                    db.add(_visit_row(visit))
            except SQLAlchemyError as exc:
                raise BackendFailure(f"Cannot append visit: {exc}", backend=self.name) from exc

    # counter

    async def get_counter(self) -> int:
        try:
            async with self.session_factory() as db:
                value = await db.scalar(select(CycleState.visit_count).where(CycleState.id == STATE_ROW_ID))
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Cannot read counter: {exc}", backend=self.name) from exc
        return max(int(value or 0), 0)

    async def put_counter(self, value: int) -> None:
        try:
            async with self.session_factory() as db, db.begin():
                await self._ensure_state_row(db)
                await db.execute(
                    update(CycleState).where(CycleState.id == STATE_ROW_ID).values(visit_count=int(value))
                )
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Cannot write counter: {exc}", backend=self.name) from exc

    async def increment_counter(self) -> int:
        """Single UPDATE ... SET visit_count = visit_count + 1 inside one transaction."""
        async with self._lock:
            try:
                async with self.session_factory() as db, db.begin():
                    await self._ensure_state_row(db)
                    await db.execute(
                        update(CycleState)
                        .where(CycleState.id == STATE_ROW_ID)
                        .values(visit_count=CycleState.visit_count + 1)
                    )
                    value = await db.scalar(
                        select(CycleState.visit_count).where(CycleState.id == STATE_ROW_ID)
                    )
            except SQLAlchemyError as exc:
                raise BackendFailure(f"Cannot increment counter: {exc}", backend=self.name) from exc
        return int(value)

    @staticmethod
    async def _ensure_state_row(db: AsyncSession) -> None:
        found = await db.scalar(select(CycleState.id).where(CycleState.id == STATE_ROW_ID))
        if found is None:
            db.add(CycleState(id=STATE_ROW_ID, visit_count=0))
            await db.flush()


def _user_columns(record: UserRecord) -> dict:
    return {
        "username": record.username,
        "username_key": record.username_key,
        "cycle_codes_json": json.dumps(record.cycle_codes),
        "created_at": record.created_at,
        "license_expires_at": record.license_expires_at,
    }


def _user_to_dict(row: User) -> dict:
    try:
        codes = json.loads(row.cycle_codes_json)
    except (TypeError, ValueError):
        logger.warning("Unparsable cycle codes for user %s", row.id)
        codes = None
    return {
        "id": row.id,
        "username": row.username,
        "cycle_codes": codes,
        "created_at": row.created_at,
        "license_expires_at": row.license_expires_at,
    }


def _visit_row(visit: VisitRecord) -> Visit:
    extra = visit.model_extra or {}
    return Visit(
        **{col: getattr(visit, col) for col in VISIT_COLUMNS},
        extra_json=json.dumps(extra) if extra else None,
    )


def _visit_to_dict(row: Visit) -> dict:
    data = {}
    if row.extra_json:
        try:
            extra = json.loads(row.extra_json)
        except ValueError:
            logger.warning("Unparsable extra fields on visit %s", row.id)
            extra = None
        if isinstance(extra, dict):
            data.update(extra)
    data.update({col: getattr(row, col) for col in VISIT_COLUMNS})
    return data
