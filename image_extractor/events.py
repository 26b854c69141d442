"""State-change notifications published by the pipeline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List

from .state import ProcessingState

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateChanged:
    """A document moved to ``state``."""

    document_id: str
    state: ProcessingState


Listener = Callable[[StateChanged], None]


class EventBus:
    """
    Fan-out of :class:`StateChanged` events.

    Consumers either register a synchronous listener or subscribe for an
    :class:`asyncio.Queue` that receives every event published afterwards.
    Publishing must happen on the event-loop thread.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self._queues: List[asyncio.Queue[StateChanged]] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def subscribe(self) -> asyncio.Queue[StateChanged]:
        queue: asyncio.Queue[StateChanged] = asyncio.Queue()
        self._queues.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[StateChanged]) -> None:
        self._queues.remove(queue)

    def publish(self, event: StateChanged) -> None:
        LOGGER.debug("Document %s -> %s", event.document_id, event.state)
        for listener in list(self._listeners):
            listener(event)
        for queue in list(self._queues):
            queue.put_nowait(event)
