"""Clipboard sink used by share-link production."""

from abc import ABC, abstractmethod


class ClipboardSink(ABC):
    """Anything that can receive copied text."""

    @abstractmethod
    async def write(self, text: str) -> None:
        """Copy *text*. May raise; callers log and continue."""


class InMemoryClipboard(ClipboardSink):
    """Keeps the last copied text (the HTTP surface returns it to the client)."""

    def __init__(self) -> None:
        self.text: str | None = None

    async def write(self, text: str) -> None:
        self.text = text
