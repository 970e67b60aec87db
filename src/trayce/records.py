import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

H1_LINE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    raw = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class ItemContext:
    app: str | None = None
    working_directory: str | None = None
    git_branch: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {}
        if self.app:
            data["app"] = self.app
        if self.working_directory:
            data["workingDirectory"] = self.working_directory
        if self.git_branch:
            data["gitBranch"] = self.git_branch
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ItemContext | None":
        if not isinstance(data, dict):
            return None
        return cls(
            app=data.get("app"),
            working_directory=data.get("workingDirectory"),
            git_branch=data.get("gitBranch"),
        )


@dataclass(frozen=True)
class ClipboardReference:
    content: str
    type: str
    timestamp: str

    def to_dict(self) -> dict[str, str]:
        return {"content": self.content, "type": self.type, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ClipboardReference | None":
        if not isinstance(data, dict):
            return None
        return cls(
            content=data.get("content", ""),
            type=data.get("type", "text"),
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class Note:
    id: str
    description: str
    created_at: str
    clipboard_reference: ClipboardReference | None = None
    intent: str | None = None
    tags: list[str] | None = None
    context: ItemContext | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "createdAt": self.created_at,
        }
        if self.clipboard_reference is not None:
            data["clipboardReference"] = self.clipboard_reference.to_dict()
        if self.intent:
            data["intent"] = self.intent
        if self.tags:
            data["tags"] = list(self.tags)
        if self.context is not None:
            data["context"] = self.context.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        return cls(
            id=data["id"],
            description=data["description"],
            created_at=data["createdAt"],
            clipboard_reference=ClipboardReference.from_dict(data.get("clipboardReference")),
            intent=data.get("intent"),
            tags=data.get("tags"),
            context=ItemContext.from_dict(data.get("context")),
        )


@dataclass
class Procedure:
    id: str
    title: str
    markdown: str
    created_at: str
    updated_at: str
    source_note_ids: list[str] = field(default_factory=list)
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "markdown": self.markdown,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "sourceNoteIds": list(self.source_note_ids),
        }
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Procedure":
        return cls(
            id=data["id"],
            title=data["title"],
            markdown=data["markdown"],
            created_at=data["createdAt"],
            updated_at=data.get("updatedAt", data["createdAt"]),
            source_note_ids=list(data.get("sourceNoteIds", [])),
            tags=data.get("tags"),
        )


def create_note(description: str, clipboard_reference: ClipboardReference | None = None) -> Note:
    return Note(
        id=str(uuid.uuid4()),
        description=description,
        created_at=now_iso(),
        clipboard_reference=clipboard_reference,
    )


def extract_title_from_markdown(markdown: str) -> str:
    """Return the first level-1 heading, else the first line, else a placeholder."""
    match = H1_LINE.search(markdown)
    if match and match.group(1).strip():
        return match.group(1).strip()

    first_line = markdown.split("\n")[0].strip()
    return first_line or "Untitled Procedure"


def create_procedure(
    markdown: str,
    source_note_ids: list[str],
    tags: list[str] | None = None,
    user_title: str | None = None,
) -> Procedure:
    now = now_iso()
    return Procedure(
        id=str(uuid.uuid4()),
        title=user_title or extract_title_from_markdown(markdown),
        markdown=markdown,
        created_at=now,
        updated_at=now,
        source_note_ids=list(source_note_ids),
        tags=list(tags) if tags else None,
    )
