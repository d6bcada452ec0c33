"""
Subscribable state container shared by every store.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any], Dict[str, Any]], None]


class Store:
    """Holds a flat state dict and notifies subscribers on every change.

    Subclasses put their initial state in ``__init__`` via ``_init_state``
    and only ever change it through ``set_state``.
    """

    def __init__(self) -> None:
        self._state: Dict[str, Any] = {}
        self._listeners: List[Listener] = []

    def _init_state(self, **state: Any) -> None:
        self._state = dict(state)

    def get_state(self) -> Dict[str, Any]:
        """Shallow copy of the current state."""
        return dict(self._state)

    def __getitem__(self, key: str) -> Any:
        return self._state[key]

    def set_state(self, **changes: Any) -> None:
        old = self._state
        self._state = {**old, **changes}
        for listener in list(self._listeners):
            try:
                listener(self._state, old)
            except Exception as exc:
                logger.error("%s subscriber failed: %s", type(self).__name__, exc)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(new_state, old_state)``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
