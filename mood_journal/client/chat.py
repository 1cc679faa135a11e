import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from mood_journal.client.api_client import ApiError, MoodJournalClient

logger = logging.getLogger("client.chat")

GREETING = (
    "Hi, I'm your AI buddy. I can listen and give gentle suggestions, "
    "but I'm not a professional. What's on your mind?"
)
NO_REPLY = "(No reply received)"
OFFLINE_REPLY = "Sorry, I had trouble connecting right now. You can try again in a moment."


@dataclass
class ChatMessage:
    role: str
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class SupportChat:
    """Local support-chat transcript; each send posts the whole conversation."""

    def __init__(self, client: MoodJournalClient):
        self.client = client
        self.messages: List[ChatMessage] = [ChatMessage("assistant", GREETING)]
        self.loading = False

    async def send(self, text: str) -> Optional[str]:
        text = (text or "").strip()
        if not text or self.loading:
            return None
        self.messages.append(ChatMessage("user", text))
        self.loading = True
        try:
            reply = await self.client.chat([m.as_dict() for m in self.messages])
            reply = reply or NO_REPLY
        except ApiError as e:
            logger.error("chat error: %s", e)
            # The relay sends its own apology alongside a 500
            reply = e.body.get("reply") or OFFLINE_REPLY
        finally:
            self.loading = False
        self.messages.append(ChatMessage("assistant", reply))
        return reply
