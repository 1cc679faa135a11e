import logging
from typing import Any, Dict, List, Optional
from datetime import date, datetime, time, timedelta, timezone
from mood_journal.crud import TaskStore
from mood_journal.services import weekly
from mood_journal.services.common import parse_dt

logger = logging.getLogger("services.task")


async def create_task(
    store: TaskStore,
    text: Any,
    done: bool = False,
    created_at: Any = None,
    source: str = "web",
):
    created = parse_dt(created_at)
    if created_at and created is None:
        logger.warning("Ignoring unparseable createdAt %r; using server time", created_at)
    return await store.create(text, done=done, created_at=created, source=source)


async def list_tasks(store: TaskStore) -> List:
    return await store.list()


async def update_task(store: TaskStore, task_id: int, *, text: Optional[str] = None, done: Optional[bool] = None):
    return await store.update(task_id, text=text, done=done)


async def toggle_task(store: TaskStore, task_id: int):
    task = await store.get(task_id)
    if task is None:
        return None
    return await store.update(task_id, done=not task.done)


async def delete_task(store: TaskStore, task_id: int) -> bool:
    return await store.delete(task_id)


async def weekly_counts(store: TaskStore, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Completed-task counts for the last seven days, oldest first."""
    today = today or datetime.now(timezone.utc).date()
    start = datetime.combine(today - timedelta(days=weekly.DAYS_IN_WEEK - 1), time.min, tzinfo=timezone.utc)
    tasks = await store.list_since(start)
    return [{"day": d.date_key, "completed": d.completed} for d in weekly.weekly_summary(tasks, today)]
