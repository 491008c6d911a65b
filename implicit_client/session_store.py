"""
Per-tab key/value storage for the flow: pending state, pending return route, established session.
The store knows nothing about what it holds; the flow controller owns the schema.
"""
from typing import Protocol

STATE_STORAGE_KEY = "oauth2state"
ROUTE_STORAGE_KEY = "oauth2route"
SESSION_STORAGE_KEY = "oauth2session"

ALL_KEYS = (STATE_STORAGE_KEY, ROUTE_STORAGE_KEY, SESSION_STORAGE_KEY)


class SessionStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class TabSessionStore:
    """
    Transient store scoped to one tab: survives a reload of the page (the instance is handed to the
    next page load) and disappears with the tab. Values are strings, as in browser session storage.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"session storage values must be strings, got {type(value).__name__}")
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
