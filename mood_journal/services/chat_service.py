"""
Chat relay: forwards a conversation to the completion service.
Flow: prepend companion persona → chat completion → first reply text.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from mood_journal.config import Settings
from mood_journal.errors import UpstreamServiceError
from mood_journal.utils import llm

logger = logging.getLogger("services.chat")

SYSTEM_PROMPT = (
    "You are a gentle, supportive companion in a mood journaling app. "
    "You listen, validate feelings, and offer small, realistic suggestions. "
    "You are NOT a therapist and must remind users you cannot give medical advice."
)

# Used when the model answers with an empty message
EMPTY_REPLY = "I'm here with you. Sometimes it's hard to find the right words, but I'm listening."

APOLOGY_REPLY = "Sorry, I had trouble connecting to my brain just now. Please try again in a moment."


def _message_field(message: Any, name: str) -> Any:
    if isinstance(message, dict):
        return message.get(name)
    return getattr(message, name, None)


def _message_text(message: Any) -> Optional[str]:
    for name in ("content", "text"):
        value = _message_field(message, name)
        if isinstance(value, str) and value:
            return value
    return None


def build_transcript(messages: Any) -> List[Dict[str, str]]:
    """System prompt followed by the usable prior messages, oldest first.

    Anything that is not a list of messages is ignored, as are messages
    without string content.
    """
    transcript = [{"role": "system", "content": SYSTEM_PROMPT}]
    if not isinstance(messages, (list, tuple)):
        return transcript
    for m in messages:
        content = _message_text(m)
        if content is None:
            continue
        role = "user" if _message_field(m, "role") == "user" else "assistant"
        transcript.append({"role": role, "content": content})
    return transcript


class ChatRelay:
    """Stateless relay: no conversation state is kept between calls."""

    def __init__(
        self,
        completion: Optional[Callable[..., Optional[str]]] = None,
        settings: Optional[Settings] = None,
    ):
        self._completion = completion
        self._settings = settings

    def _complete_sync(self, transcript: List[Dict[str, str]]) -> Optional[str]:
        if self._completion is not None:
            return self._completion(transcript)
        return llm.chat_completion(transcript, settings=self._settings)

    async def complete(self, messages: Any) -> str:
        """Return the model's reply, raising UpstreamServiceError on any failure."""
        transcript = build_transcript(messages)
        try:
            content = await asyncio.to_thread(self._complete_sync, transcript)
        except Exception as e:
            logger.exception("Chat completion failed: %s", e)
            raise UpstreamServiceError() from e
        if content is not None and not isinstance(content, str):
            logger.error("Chat completion returned a non-text payload: %r", type(content))
            raise UpstreamServiceError()
        reply = (content or "").strip()
        logger.info("Relayed %d message(s), reply length %d", len(transcript) - 1, len(reply))
        return reply or EMPTY_REPLY

    async def relay(self, messages: Any) -> str:
        """Like complete(), but always returns a reply."""
        try:
            return await self.complete(messages)
        except UpstreamServiceError:
            return APOLOGY_REPLY
