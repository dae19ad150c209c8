"""Addressable location model and provider.

A ``Location`` carries its route kind explicitly (root / admin / share),
classified once when the URL is parsed, so callers never re-derive intent
from the address text later.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import parse_qs, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

SHARE_PARAM = "share"
_ADMIN_FRAGMENTS = ("/admin", "admin")


class RouteKind(StrEnum):
    """What the current address asks the app to show."""

    root = "root"
    admin = "admin"
    share = "share"


@dataclass(frozen=True)
class Location:
    """A parsed address."""

    url: str
    kind: RouteKind = RouteKind.root
    share_token: str | None = None

    @property
    def has_markers(self) -> bool:
        """True when the address carries an admin or share marker."""
        return self.kind is not RouteKind.root


def parse_location(url: str, admin_path: str = "/admin") -> Location:
    """Classify *url* into a :class:`Location`.

    The admin marker is either the exact admin path or a ``#/admin`` /
    ``#admin`` fragment. Otherwise a non-empty ``share`` query parameter
    makes it a share route.
    """
    parts = urlsplit(url)
    if parts.path == admin_path or parts.fragment in _ADMIN_FRAGMENTS:
        return Location(url=url, kind=RouteKind.admin)

    token = parse_qs(parts.query).get(SHARE_PARAM, [""])[0]
    if token:
        return Location(url=url, kind=RouteKind.share, share_token=token)
    return Location(url=url)


def root_url(url: str) -> str:
    """The bare root of *url* (scheme and host kept, path/query/fragment dropped)."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))


LocationListener = Callable[[Location], None]


class LocationProvider(ABC):
    """Get/set the current address and observe user-driven changes."""

    @abstractmethod
    def current(self) -> Location:
        """Return the current location."""

    @abstractmethod
    def navigate(self, url: str) -> Location:
        """User-driven change (typing an address, following a link); notifies."""

    @abstractmethod
    def replace(self, url: str) -> Location:
        """Programmatic clean-up of the address; does not notify."""

    @abstractmethod
    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unsubscribes it."""


class InMemoryLocationProvider(LocationProvider):
    """Location held in memory, used by the HTTP surface and tests."""

    def __init__(self, url: str = "/", admin_path: str = "/admin") -> None:
        self._admin_path = admin_path
        self._location = parse_location(url, admin_path)
        self._listeners: list[LocationListener] = []
        self.history: list[str] = [url]

    def current(self) -> Location:
        return self._location

    def navigate(self, url: str) -> Location:
        self._location = parse_location(url, self._admin_path)
        self.history.append(url)
        for listener in list(self._listeners):
            try:
                listener(self._location)
            except Exception:
                logger.exception("Location listener failed for %s", url)
        return self._location

    def replace(self, url: str) -> Location:
        self._location = parse_location(url, self._admin_path)
        if self.history:
            self.history[-1] = url
        else:
            self.history.append(url)
        return self._location

    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
