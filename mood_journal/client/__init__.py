"""
Client-side logic: the web "Today" board, the support chat and the browser
extension mirror, all talking to the API over HTTP.
"""
from .api_client import ApiError, MoodJournalClient
from .chat import SupportChat
from .events import TASKS_UPDATED, EventBus
from .extension import ExtensionSync, LocalTaskCache
from .today import BoardTask, TodayBoard

__all__ = [
    "ApiError",
    "MoodJournalClient",
    "SupportChat",
    "TASKS_UPDATED",
    "EventBus",
    "ExtensionSync",
    "LocalTaskCache",
    "BoardTask",
    "TodayBoard",
]
