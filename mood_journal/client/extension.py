"""
Extension mirror: a locally cached task list that follows the backend.

The cache is secondary. Adds go to the backend first and are cached only once
the backend has assigned an id; toggles, edits and deletes change the cache
first and then call the backend when the item has a ``backendId``. A failed
call leaves the cache ahead of the backend until a later successful operation.
"""
import json
import logging
import os
from typing import Any, Dict, List, Optional

from mood_journal.client.api_client import ApiError, MoodJournalClient
from mood_journal.client.events import TASKS_UPDATED, EventBus
from mood_journal.config import get_settings

logger = logging.getLogger("client.extension")

SOURCE = "extension"


def sort_tasks(tasks: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Incomplete tasks first, completed at the bottom; otherwise keep order."""
    tasks.sort(key=lambda t: bool(t.get("done")))
    return tasks


def _ensure_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


class LocalTaskCache:
    """JSON file holding ``[{text, done, createdAt, backendId}]``."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or get_settings().extension_cache_path

    def load(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Could not read task cache %s: %s", self.path, e)
            return []
        return data.get("tasks", []) if isinstance(data, dict) else []

    def save(self, tasks: List[Dict[str, Any]]) -> None:
        sort_tasks(tasks)
        _ensure_dir(self.path)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"tasks": tasks}, f, ensure_ascii=False, indent=2)


class ExtensionSync:
    def __init__(self, client: MoodJournalClient, cache: LocalTaskCache, bus: Optional[EventBus] = None):
        self.client = client
        self.cache = cache
        self.bus = bus

    async def _notify(self) -> None:
        if self.bus is not None:
            await self.bus.publish(TASKS_UPDATED)

    def tasks(self) -> List[Dict[str, Any]]:
        return sort_tasks(self.cache.load())

    async def add_task(self, text: str) -> Optional[Dict[str, Any]]:
        text = (text or "").strip()
        if not text:
            return None
        try:
            created = await self.client.create_task(text, source=SOURCE)
        except ApiError as e:
            logger.error("Backend sync failed: %s", e)
            return None
        await self._notify()
        item = {
            "text": text,
            "done": bool(created.get("done")),
            "createdAt": created.get("created_at"),
            "backendId": created.get("id"),
        }
        tasks = self.cache.load()
        tasks.append(item)
        self.cache.save(tasks)
        return item

    async def toggle(self, index: int, done: Optional[bool] = None) -> Dict[str, Any]:
        tasks = self.tasks()
        item = tasks[index]
        item["done"] = (not item.get("done")) if done is None else done
        self.cache.save(tasks)
        backend_id = item.get("backendId")
        if backend_id:
            try:
                await self.client.update_task(backend_id, done=item["done"])
                await self._notify()
            except ApiError as e:
                logger.error("Failed to sync done to backend: %s", e)
        return item

    async def edit_text(self, index: int, text: str) -> Dict[str, Any]:
        tasks = self.tasks()
        item = tasks[index]
        text = (text or "").strip()
        if not text:
            return item
        item["text"] = text
        self.cache.save(tasks)
        backend_id = item.get("backendId")
        if backend_id:
            try:
                await self.client.update_task(backend_id, text=text)
                await self._notify()
            except ApiError as e:
                logger.error("Failed to sync text to backend: %s", e)
        return item

    async def delete(self, index: int) -> Dict[str, Any]:
        tasks = self.tasks()
        item = tasks.pop(index)
        self.cache.save(tasks)
        backend_id = item.get("backendId")
        if backend_id:
            try:
                await self.client.delete_task(backend_id)
                await self._notify()
            except ApiError as e:
                logger.error("Failed to delete from backend: %s", e)
        return item

    # --- Context menu entries ---------------------------------------------------

    async def add_from_selection(self, selection_text: str) -> Optional[Dict[str, Any]]:
        """'Add to Todo: "<selection>"'."""
        return await self.add_task(selection_text)

    async def add_from_page(self, title: Optional[str], url: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """'Add page to Todo': the page title, or its URL when untitled."""
        return await self.add_task(title or url or "")
