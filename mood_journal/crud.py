import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mood_journal.database import Database
from mood_journal.errors import PersistenceError, ValidationError
from mood_journal.models import models as db
from mood_journal.models.models import utcnow

logger = logging.getLogger("crud")


# --- Generic DB helpers ------------------------------------------------------

async def _get_or_none(session, model, id_):
    obj = await session.get(model, id_)
    if not obj:
        logger.warning("%s with id=%s not found.", model.__name__, id_)
    return obj


async def _commit_refresh(session, obj):
    await session.commit()
    await session.refresh(obj)
    return obj


@asynccontextmanager
async def _session(database: Database, operation: str) -> AsyncIterator[AsyncSession]:
    """Open a session and turn driver failures into PersistenceError."""
    try:
        async with database.session() as dbs:
            yield dbs
    except SQLAlchemyError as e:
        logger.error("%s failed: %s", operation, e)
        raise PersistenceError() from e


# --- Task Operations ---------------------------------------------------------

class TaskStore:
    def __init__(self, database: Database):
        self.database = database

    async def list(self) -> List[db.Task]:
        async with _session(self.database, "list tasks") as dbs:
            result = await dbs.execute(select(db.Task).order_by(desc(db.Task.created_at), desc(db.Task.id)))
            tasks = list(result.scalars())
            logger.info("Fetched %d tasks", len(tasks))
            return tasks

    async def list_since(self, start: datetime) -> List[db.Task]:
        async with _session(self.database, "list tasks since") as dbs:
            result = await dbs.execute(
                select(db.Task).where(db.Task.created_at >= start).order_by(db.Task.created_at)
            )
            return list(result.scalars())

    async def get(self, task_id: int) -> Optional[db.Task]:
        async with _session(self.database, "get task") as dbs:
            return await dbs.get(db.Task, task_id)

    async def create(
        self,
        text: Any,
        done: bool = False,
        created_at: Optional[datetime] = None,
        source: str = "web",
    ) -> db.Task:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("text is required")
        if created_at is not None and created_at.tzinfo is not None:
            # Stored as UTC; SQLite drops the offset
            created_at = created_at.astimezone(timezone.utc)
        async with _session(self.database, "create task") as dbs:
            task = db.Task(
                text=text,
                done=bool(done),
                created_at=created_at or utcnow(),
                source=source or "web",
            )
            dbs.add(task)
            await dbs.commit()
            # Re-read by id so the response reflects what the store persisted
            created = await dbs.get(db.Task, task.id, populate_existing=True)
            logger.info("Created task %s (source=%s)", task.id, task.source)
            return created

    async def update(
        self,
        task_id: int,
        *,
        text: Optional[str] = None,
        done: Optional[bool] = None,
    ) -> Optional[db.Task]:
        if text is None and done is None:
            raise ValidationError("Nothing to update")
        async with _session(self.database, "update task") as dbs:
            task = await _get_or_none(dbs, db.Task, task_id)
            if not task:
                return None
            if text is not None:
                task.text = text
            if done is not None:
                task.done = done
            await _commit_refresh(dbs, task)
            logger.info("Updated task %s", task.id)
            return task

    async def delete(self, task_id: int) -> bool:
        async with _session(self.database, "delete task") as dbs:
            task = await _get_or_none(dbs, db.Task, task_id)
            if not task:
                return False
            await dbs.delete(task)
            await dbs.commit()
            logger.info("Deleted task %s", task_id)
            return True


# --- Journal Operations ------------------------------------------------------

def _insert_for(dialect: str):
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "mysql":
        from sqlalchemy.dialects.mysql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Journal upsert is not supported on {dialect!r}")
    return insert


class JournalStore:
    def __init__(self, database: Database):
        self.database = database

    def _upsert_statement(self, date_key: str, mood: Optional[int], note: Optional[str]):
        dialect = self.database.dialect
        insert = _insert_for(dialect)
        now = utcnow()
        stmt = insert(db.JournalEntry).values(
            date_key=date_key, mood=mood, note=note, created_at=now, updated_at=now
        )
        if dialect == "mysql":
            return stmt.on_duplicate_key_update(
                mood=stmt.inserted.mood, note=stmt.inserted.note, updated_at=now
            )
        return stmt.on_conflict_do_update(
            index_elements=[db.JournalEntry.date_key],
            set_={"mood": stmt.excluded.mood, "note": stmt.excluded.note, "updated_at": now},
        )

    async def upsert(self, date_key: Any, mood: Optional[int] = None, note: Optional[str] = None) -> db.JournalEntry:
        """Insert or overwrite the entry for ``date_key`` in one statement.

        Falsy mood/note values are stored as NULL. Concurrent saves for the
        same date are serialized by the unique key; the last one wins.
        """
        if not isinstance(date_key, str) or not date_key.strip():
            raise ValidationError("dateKey is required")
        date_key = date_key.strip()
        async with _session(self.database, "upsert journal") as dbs:
            await dbs.execute(self._upsert_statement(date_key, mood or None, note or None))
            await dbs.commit()
            result = await dbs.execute(
                select(db.JournalEntry)
                .where(db.JournalEntry.date_key == date_key)
                .execution_options(populate_existing=True)
            )
            entry = result.scalar_one()
            logger.info("Saved journal entry %s for %s", entry.id, date_key)
            return entry

    async def fetch(self, date_key: str) -> Optional[db.JournalEntry]:
        async with _session(self.database, "fetch journal") as dbs:
            result = await dbs.execute(select(db.JournalEntry).where(db.JournalEntry.date_key == date_key))
            return result.scalar_one_or_none()
