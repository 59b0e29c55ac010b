"""
Named signals connecting UI events to the reactive controller.
"""

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class Signal:
    """A named event with explicitly connected handlers, called synchronously in order."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Callable[..., Any]] = []

    def connect(self, handler: Callable[..., Any]) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def disconnect(self, handler: Callable[..., Any]) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, *args: Any, **kwargs: Any) -> None:
        logger.debug(f"Emitting {self.name} to {len(self._handlers)} handlers")
        for handler in list(self._handlers):
            handler(*args, **kwargs)

    def __len__(self) -> int:
        return len(self._handlers)
