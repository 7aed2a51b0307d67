"""
Browser model for the storefront client.

A LocalStorage is shared by every Window (tab) of one origin. Writing to it
notifies every *other* window on its "storage" channel; the writing window
never hears about its own writes, so same-tab listeners are told through the
window's EventBus instead (e.g. "cart-updated", "user-updated").
"""

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Union

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class StorageEvent(NamedTuple):
    key: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]


class EventBus:
    """Synchronous in-process event dispatch for one window."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def add_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    def remove_listener(self, event_type: str, listener: Listener) -> None:
        try:
            self._listeners[event_type].remove(listener)
        except ValueError:
            pass

    def dispatch(self, event_type: str, event: Any = None) -> None:
        # copy: listeners may unsubscribe while handling
        for listener in list(self._listeners[event_type]):
            listener(event)


class LocalStorage:
    """String key/value area shared by all windows of one origin.

    With a path the area is loaded from and saved to a JSON file, so it
    survives restarts the way browser storage survives page reloads.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, str] = {}
        self._windows: List["Window"] = []
        if self.path and self.path.exists():
            self._data = json.loads(self.path.read_text(encoding="utf-8"))

    def attach(self, window: "Window") -> None:
        self._windows.append(window)

    def detach(self, window: "Window") -> None:
        if window in self._windows:
            self._windows.remove(window)

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def keys(self) -> List[str]:
        return list(self._data)

    def write(self, key: Optional[str], value: Optional[str], source: Optional["Window"] = None) -> None:
        """Set (value is a string), remove (None) or clear (key is None)."""
        if key is None:
            old = None
            self._data.clear()
        else:
            old = self._data.get(key)
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = value
            if old == value:
                return
        self._save()
        event = StorageEvent(key, old, value)
        for window in list(self._windows):
            if window is not source:
                window.events.dispatch("storage", event)

    def _save(self) -> None:
        if self.path:
            self.path.write_text(json.dumps(self._data, ensure_ascii=False), encoding="utf-8")


class WindowStorage:
    """A window's view of the shared LocalStorage (window.localStorage)."""

    def __init__(self, area: LocalStorage, window: "Window"):
        self._area = area
        self._window = window

    def get_item(self, key: str) -> Optional[str]:
        return self._area.get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self._area.write(key, str(value), source=self._window)

    def remove_item(self, key: str) -> None:
        self._area.write(key, None, source=self._window)

    def clear(self) -> None:
        self._area.write(None, None, source=self._window)

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable %r entry in local storage", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))


class Window:
    """One browser tab."""

    def __init__(self, storage: LocalStorage):
        self.events = EventBus()
        self.local_storage = WindowStorage(storage, self)
        self._storage = storage
        storage.attach(self)

    def close(self) -> None:
        self._storage.detach(self)
