"""
Document-style store adapter over SQLAlchemy tables.

A "collection" is any table registered on ``Base.metadata``. Records go in and
come out as plain mappings, so handlers never touch ORM objects:

- find_one: exact-match lookup on named fields
- upsert: atomic update-or-insert keyed on the filter fields
- ensure_collection: idempotent table creation

Every round trip is bounded by the store timeout; SQLAlchemy failures and
timeouts surface as StoreError.
"""
import asyncio
import enum
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from sqlalchemy import Column, Table, func, or_, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.database.base import Base, generate_ulid
from app.core.errors import StoreError
from app.utils import get_logger


log = get_logger(__name__)

T = TypeVar("T")

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class UpsertStatus(str, enum.Enum):
    """What an upsert did to the collection."""
    MODIFIED = "modified"
    INSERTED = "inserted"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class UpsertOutcome:
    status: UpsertStatus
    id: str | None = None

    @property
    def changed(self) -> bool:
        """True when a record was created or an existing one was modified."""
        return self.status in (UpsertStatus.MODIFIED, UpsertStatus.INSERTED)


class DocumentStore:
    """Process-wide store handle. Safe to share between concurrent requests."""

    def __init__(self, engine: AsyncEngine, timeout: float = 5.0):
        self.engine = engine
        self.timeout = timeout
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def find_one(self, collection: str, criteria: Mapping[str, Any]) -> dict[str, Any] | None:
        """
        Return the first record whose fields equal every value in criteria.

        Returns None when nothing matches.
        """
        table = self._table(collection, "find_one")
        columns = self._columns(table, criteria, "find_one")
        stmt = select(table).where(*(column == criteria[column.name] for column in columns)).limit(1)

        async def query() -> dict[str, Any] | None:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                row = result.mappings().first()
                return dict(row) if row is not None else None

        document = await self._run("find_one", query)
        log.debug("find_one %s %s -> %s", collection, dict(criteria), document)
        return document

    async def upsert(
        self,
        collection: str,
        criteria: Mapping[str, Any],
        update: Mapping[str, Any],
    ) -> UpsertOutcome:
        """
        Set the fields in update on the record matching criteria, inserting
        a record built from criteria and update when none exists.

        Runs as a single INSERT ... ON CONFLICT DO UPDATE keyed on the
        criteria fields, which must be covered by a unique constraint. The
        update branch only fires when a field actually differs, so rewriting
        identical values reports UNCHANGED.
        """
        if not update:
            raise ValueError("update must set at least one field")

        table = self._table(collection, "upsert")
        key_columns = self._columns(table, criteria, "upsert")
        self._columns(table, update, "upsert")

        insert = _UPSERT_INSERTS.get(self.engine.dialect.name)
        if insert is None:
            raise StoreError(f"upsert is not supported on {self.engine.dialect.name}", "upsert")

        id_column = self._id_column(table)
        new_id = generate_ulid()
        stmt = insert(table).values({id_column.name: new_id, **criteria, **update})

        assignments: dict[str, Any] = {name: stmt.excluded[name] for name in update}
        if "updated_at" in table.c:
            assignments["updated_at"] = func.now()

        stmt = stmt.on_conflict_do_update(
            index_elements=[column.name for column in key_columns],
            set_=assignments,
            where=or_(*(table.c[name].is_distinct_from(stmt.excluded[name]) for name in update)),
        ).returning(id_column)

        async def write() -> Any:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    return result.first()

        row = await self._run("upsert", write)
        if row is None:
            return UpsertOutcome(UpsertStatus.UNCHANGED)
        if row[0] == new_id:
            log.debug("upsert %s inserted %s", collection, new_id)
            return UpsertOutcome(UpsertStatus.INSERTED, id=new_id)
        log.debug("upsert %s modified %s", collection, row[0])
        return UpsertOutcome(UpsertStatus.MODIFIED, id=row[0])

    async def ensure_collection(self, name: str) -> None:
        """Create the collection's table if it does not exist yet."""
        table = self._table(name, "ensure_collection")

        async def create() -> None:
            async with self.engine.begin() as conn:
                await conn.run_sync(table.create, checkfirst=True)

        await self._run("ensure_collection", create)
        log.info("Collection ready: %s", name)

    async def health_check(self) -> bool:
        """Check store connectivity (for readiness probes)."""

        async def ping() -> None:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))

        try:
            await self._run("health_check", ping)
        except StoreError:
            log.exception("Store health check failed")
            return False
        return True

    async def close(self) -> None:
        await self.engine.dispose()

    async def _run(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise StoreError(f"timed out after {self.timeout}s", operation) from exc
        except SQLAlchemyError as exc:
            raise StoreError(str(exc), operation) from exc

    @staticmethod
    def _table(collection: str, operation: str) -> Table:
        table = Base.metadata.tables.get(collection)
        if table is None:
            raise StoreError(f"unknown collection {collection!r}", operation)
        return table

    @staticmethod
    def _columns(table: Table, fields: Mapping[str, Any], operation: str) -> list[Column]:
        missing = [name for name in fields if name not in table.c]
        if missing:
            raise StoreError(f"unknown fields {missing} on {table.name}", operation)
        return [table.c[name] for name in fields]

    @staticmethod
    def _id_column(table: Table) -> Column:
        return next(iter(table.primary_key.columns))
