import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, List, Union

logger = logging.getLogger("client.events")

# Published whenever a surface changed tasks on the backend
TASKS_UPDATED = "updated"

Handler = Callable[[Any], Union[None, Awaitable[None]]]


class EventBus:
    """In-process publish/subscribe between the web board and the extension mirror."""

    def __init__(self):
        self._subscribers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` and return a function that removes it."""
        self._subscribers[topic].append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers[topic]:
                self._subscribers[topic].remove(handler)

        return unsubscribe

    async def publish(self, topic: str, payload: Any = None) -> int:
        """Deliver to every subscriber; a failing subscriber does not stop the rest."""
        delivered = 0
        for handler in list(self._subscribers.get(topic, ())):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Subscriber %r for %r failed: %s", handler, topic, e)
        logger.debug("Published %r to %d subscriber(s)", topic, delivered)
        return delivered
