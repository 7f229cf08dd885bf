"""Bounded undo/redo history for workspace operations."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .config import get_settings
from .models import ActionType, HistoryAction
from .utils import new_id

LOGGER = logging.getLogger("fenixpdf.history")


class History:
    """Append-only action list with a cursor.

    ``position`` counts the actions that are currently applied. Pushing while
    the cursor is behind the tail discards the redo tail, and the oldest
    action is dropped once ``limit`` is exceeded. Pushes issued from inside an
    undo or redo callback are ignored.
    """

    def __init__(self, limit: int | None = None) -> None:
        self.limit = limit if limit is not None else get_settings().history_limit
        if self.limit < 1:
            raise ValueError("History limit must be at least 1")
        self._actions: list[HistoryAction] = []
        self._cursor = -1
        self._replaying = False

    def push(
        self,
        type: ActionType,
        description: str,
        undo: Callable[[], None],
        redo: Callable[[], None],
        data: Any = None,
    ) -> HistoryAction | None:
        if self._replaying:
            LOGGER.debug("Ignoring %s pushed during undo/redo", type)
            return None

        action = HistoryAction(
            id=new_id("action"),
            type=type,
            timestamp=time.time(),
            description=description,
            undo=undo,
            redo=redo,
            data=data,
        )
        del self._actions[self._cursor + 1 :]
        self._actions.append(action)
        if len(self._actions) > self.limit:
            del self._actions[: len(self._actions) - self.limit]
        self._cursor = len(self._actions) - 1
        LOGGER.debug("Recorded %s: %s", type, description)
        return action

    def undo(self) -> HistoryAction | None:
        if not self.can_undo:
            return None
        action = self._actions[self._cursor]
        self._replay(action.undo)
        self._cursor -= 1
        LOGGER.info("Undid %s", action.description)
        return action

    def redo(self) -> HistoryAction | None:
        if not self.can_redo:
            return None
        action = self._actions[self._cursor + 1]
        self._replay(action.redo)
        self._cursor += 1
        LOGGER.info("Redid %s", action.description)
        return action

    def _replay(self, callback: Callable[[], None]) -> None:
        self._replaying = True
        try:
            callback()
        finally:
            self._replaying = False

    def clear(self) -> None:
        self._actions.clear()
        self._cursor = -1

    @property
    def can_undo(self) -> bool:
        return self._cursor >= 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._actions) - 1

    @property
    def position(self) -> int:
        return self._cursor + 1

    @property
    def actions(self) -> tuple[HistoryAction, ...]:
        return tuple(self._actions)

    def __len__(self) -> int:
        return len(self._actions)


__all__ = ["History"]
