import json
import re
from dataclasses import dataclass
from typing import Any

from trayce.records import ItemContext, Note, now_iso

CONTENT_TYPES = ("text", "code", "url", "command", "json")

URL_PATTERN = re.compile(r"^https?://.+")
COMMAND_PATTERN = re.compile(r"^(npm|yarn|git|cd|ls|mkdir|cp|mv|rm|docker|kubectl|cargo|go)\s")
CODE_KEYWORD_PATTERN = re.compile(
    r"\b(function|const|let|var|class|import|export|def|public|private)\b"
)
TAG_PATTERN = re.compile(r"#([a-zA-Z][a-zA-Z0-9_-]*)")
INTENT_PATTERN = re.compile(r"(?:(?://|#)[ \t]*)?(?:why|purpose):[ \t]*(.+)", re.IGNORECASE)


@dataclass(frozen=True)
class ContentItem:
    content: str
    timestamp: str
    type: str = "text"
    tags: list[str] | None = None
    intent: str | None = None
    context: ItemContext | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "content": self.content,
            "timestamp": self.timestamp,
            "type": self.type,
        }
        if self.tags:
            data["tags"] = list(self.tags)
        if self.intent:
            data["intent"] = self.intent
        if self.context is not None:
            data["context"] = self.context.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentItem":
        content = data.get("content", "")
        return cls(
            content=content,
            timestamp=data.get("timestamp") or now_iso(),
            type=data.get("type") or detect_content_type(content),
            tags=data.get("tags") or None,
            intent=data.get("intent") or None,
            context=ItemContext.from_dict(data.get("context")),
        )


def _is_json_document(content: str) -> bool:
    try:
        payload = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        return False
    return isinstance(payload, (dict, list))


def detect_content_type(content: str) -> str:
    stripped = content.strip()

    if URL_PATTERN.match(stripped):
        return "url"

    if COMMAND_PATTERN.match(stripped) or "$" in content:
        return "command"

    if CODE_KEYWORD_PATTERN.search(content):
        return "code"

    # A JSON object also has braces, so it has to be recognised first.
    if _is_json_document(stripped):
        return "json"

    if "{" in content and "}" in content:
        return "code"

    return "text"


def extract_tags(content: str) -> list[str] | None:
    tags = [match.lower() for match in TAG_PATTERN.findall(content)]
    return tags or None


def extract_intent(content: str) -> str | None:
    match = INTENT_PATTERN.search(content)
    if match is None:
        return None
    intent = match.group(1).strip()
    return intent or None


def item_from_capture(
    text: str,
    timestamp: str | None = None,
    app: str | None = "Clipboard History",
) -> ContentItem:
    return ContentItem(
        content=text,
        timestamp=timestamp or now_iso(),
        type=detect_content_type(text),
        tags=extract_tags(text),
        intent=extract_intent(text),
        context=ItemContext(app=app) if app else None,
    )


def item_from_note(note: Note) -> ContentItem:
    """Turn a stored note into the item shape the prompt builder consumes.

    A note linked to a clipboard snippet contributes the snippet itself; its
    own tags, intent and context are carried over untouched. A plain note
    contributes its description, with anything it does not carry inferred
    from that text.
    """
    reference = note.clipboard_reference
    if reference is not None:
        return ContentItem(
            content=reference.content,
            timestamp=reference.timestamp,
            type=reference.type or detect_content_type(reference.content),
            tags=note.tags or None,
            intent=note.intent,
            context=note.context,
        )

    return ContentItem(
        content=note.description,
        timestamp=note.created_at,
        type=detect_content_type(note.description),
        tags=note.tags or extract_tags(note.description),
        intent=note.intent or extract_intent(note.description),
        context=note.context,
    )
