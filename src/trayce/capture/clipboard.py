import logging
from typing import Any, Protocol

from trayce.capture.normalize import ContentItem, item_from_capture

logger = logging.getLogger(__name__)

MAX_HISTORY_ITEMS = 50
# The host clipboard only exposes the five most recent entries.
MAX_SOURCE_OFFSETS = 5


class CaptureSource(Protocol):
    def read(self, offset: int) -> dict[str, Any] | None:
        """Return ``{"text": ...}`` for the entry at ``offset`` or None."""
        ...


class StaticCaptureSource:
    def __init__(self, texts: list[str]):
        self._texts = list(texts)

    def read(self, offset: int) -> dict[str, Any] | None:
        if offset < 0 or offset >= len(self._texts):
            return None
        return {"text": self._texts[offset]}


def read_clipboard_history(
    source: CaptureSource,
    limit: int = MAX_HISTORY_ITEMS,
    app: str | None = "Clipboard History",
) -> list[ContentItem]:
    items: list[ContentItem] = []
    for offset in range(min(limit, MAX_SOURCE_OFFSETS)):
        try:
            entry = source.read(offset)
        except (LookupError, OSError) as exc:
            logger.debug("capture source stopped at offset %d: %s", offset, exc)
            break
        if entry is None:
            break

        text = entry.get("text")
        if text:
            items.append(item_from_capture(text, timestamp=entry.get("timestamp"), app=app))
    return items
