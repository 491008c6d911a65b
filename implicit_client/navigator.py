"""
Browser collaborators the flow depends on: the page location (origin, fragment, full navigation)
and the in-app router used to restore a route after login.
"""
import logging
from typing import Protocol
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    @property
    def origin(self) -> str: ...

    @property
    def hash(self) -> str:
        """Fragment without the leading '#'; empty when absent."""
        ...

    @hash.setter
    def hash(self, value: str) -> None: ...

    def assign(self, url: str) -> None:
        """Full-page navigation. Irreversible from the page's point of view."""
        ...


class Router(Protocol):
    def navigate(self, segments: list[str]) -> None: ...


class BrowserLocation:
    """
    Headless stand-in for window.location. Navigations are recorded instead of unloading anything,
    so the host (or a test) can follow them.
    """

    def __init__(self, href: str):
        parts = urlsplit(href)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"location must be an absolute URL: {href!r}")
        self._parts = parts
        self.navigations: list[str] = []

    @property
    def href(self) -> str:
        return urlunsplit(self._parts)

    @property
    def origin(self) -> str:
        return f"{self._parts.scheme}://{self._parts.netloc}"

    @property
    def pathname(self) -> str:
        return self._parts.path or "/"

    @property
    def hash(self) -> str:
        return self._parts.fragment

    @hash.setter
    def hash(self, value: str) -> None:
        self._parts = self._parts._replace(fragment=value.lstrip("#"))

    def assign(self, url: str) -> None:
        logger.debug("Navigating to %s", urlsplit(url)._replace(query="", fragment="").geturl())
        self.navigations.append(url)

    @property
    def last_navigation(self) -> str | None:
        return self.navigations[-1] if self.navigations else None


class RecordingRouter:
    """Router that remembers restored routes; the app's real router plugs in through the same method."""

    def __init__(self):
        self.routes: list[list[str]] = []

    def navigate(self, segments: list[str]) -> None:
        self.routes.append(list(segments))

    @property
    def current(self) -> list[str] | None:
        return self.routes[-1] if self.routes else None
