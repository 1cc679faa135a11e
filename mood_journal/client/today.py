"""
TodayBoard: the state behind the "Today" page.

Tasks are mirrored from the API and replaced wholesale on every refresh, so
periodic polls and "updated" signals can overlap harmlessly. Toggle and delete
change local state first and are not rolled back if the request fails; the
next refresh brings the board back in line with the backend.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from mood_journal.client.api_client import ApiError, MoodJournalClient
from mood_journal.client.events import TASKS_UPDATED, EventBus
from mood_journal.config import get_settings
from mood_journal.services import weekly
from mood_journal.services.common import parse_dt

logger = logging.getLogger("client.today")


@dataclass
class BoardTask:
    id: int
    text: str
    done: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BoardTask":
        return cls(
            id=data["id"],
            text=data["text"],
            done=bool(data.get("done")),
            created_at=parse_dt(data.get("created_at")),
        )


class TodayBoard:
    def __init__(self, client: MoodJournalClient, *, daily_goal: Optional[int] = None):
        self.client = client
        self.tasks: List[BoardTask] = []
        self.mood: Optional[int] = None
        self.note: str = ""
        self.daily_goal = weekly.clamp_goal(daily_goal if daily_goal is not None else get_settings().daily_goal)
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._unsubscribe = None

    # --- Tasks ---------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch all tasks and replace local state; failures keep the old list."""
        try:
            rows = await self.client.list_tasks()
        except ApiError as e:
            logger.error("Failed to load tasks: %s", e)
            return False
        self.tasks = [BoardTask.from_api(r) for r in rows]
        return True

    async def add_task(self, text: str) -> Optional[BoardTask]:
        text = (text or "").strip()
        if not text:
            return None
        try:
            row = await self.client.create_task(text, created_at=datetime.now(timezone.utc), source="web")
        except ApiError as e:
            logger.error("Failed to add task: %s", e)
            return None
        task = BoardTask.from_api(row)
        self.tasks.append(task)
        return task

    def _find(self, task_id: int) -> Optional[BoardTask]:
        return next((t for t in self.tasks if t.id == task_id), None)

    async def toggle_task(self, task_id: int) -> Optional[bool]:
        """Flip ``done`` locally, then tell the backend. Returns the new value."""
        current = self._find(task_id)
        if current is None:
            return None
        current.done = not current.done
        try:
            await self.client.update_task(task_id, done=current.done)
        except ApiError as e:
            logger.error("Failed to update task %s: %s", task_id, e)
        return current.done

    async def delete_task(self, task_id: int) -> None:
        self.tasks = [t for t in self.tasks if t.id != task_id]
        try:
            await self.client.delete_task(task_id)
        except ApiError as e:
            logger.error("Failed to delete task %s: %s", task_id, e)

    # --- Journal -------------------------------------------------------------

    def set_mood(self, mood: Optional[int]) -> None:
        self.mood = mood

    def set_daily_goal(self, value: Any) -> int:
        self.daily_goal = weekly.clamp_goal(value)
        return self.daily_goal

    async def save_today(self, today: Optional[date] = None) -> bool:
        date_key = weekly.date_key(today or datetime.now(timezone.utc))
        try:
            await self.client.save_journal(date_key, mood=self.mood, note=self.note)
        except ApiError as e:
            logger.error("Failed to save journal for %s: %s", date_key, e)
            return False
        logger.info("Saved day %s", date_key)
        return True

    # --- Stats ---------------------------------------------------------------

    def report(self, today: Optional[date] = None) -> weekly.WeeklyReport:
        return weekly.summarize(self.tasks, self.daily_goal, today)

    # --- Sync ----------------------------------------------------------------

    async def _on_updated(self, _payload: Any = None) -> None:
        await self.refresh()

    def attach(self, bus: EventBus) -> None:
        """Re-poll immediately whenever another surface reports a change."""
        self.detach()
        self._unsubscribe = bus.subscribe(TASKS_UPDATED, self._on_updated)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def start_polling(self, interval: Optional[float] = None) -> None:
        """Refresh on a fixed interval until stop_polling()."""
        if self._scheduler is not None:
            logger.warning("Polling already running")
            return
        seconds = interval if interval is not None else get_settings().poll_interval_seconds
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=seconds),
            id="task_poller",
            name="Refresh tasks",
            replace_existing=True,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Polling tasks every %.1f seconds", seconds)

    async def stop_polling(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Polling stopped")

    @property
    def is_polling(self) -> bool:
        return self._scheduler is not None and self._scheduler.running
