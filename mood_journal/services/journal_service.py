import logging
from typing import Any, Optional
from mood_journal.crud import JournalStore
from mood_journal.errors import NotFoundError

logger = logging.getLogger("services.journal")


async def save_entry(store: JournalStore, date_key: Any, mood: Optional[int] = None, note: Optional[str] = None):
    return await store.upsert(date_key, mood=mood, note=note)


async def get_entry(store: JournalStore, date_key: str):
    entry = await store.fetch(date_key)
    if entry is None:
        raise NotFoundError("journal entry not found")
    return entry
