import logging
from pathlib import Path
from typing import Any

import httpx

from trayce.capture.clipboard import StaticCaptureSource, read_clipboard_history
from trayce.capture.normalize import CONTENT_TYPES, detect_content_type, item_from_note
from trayce.errors import RecordNotFoundError, ValidationError
from trayce.llm.config import LlmConfig, get_home_dir, get_llm_config, save_llm_config
from trayce.llm.generate import GenerationRequest, generate_procedure, select_client
from trayce.llm.models import get_all_models, get_model_by_id
from trayce.llm.title import ensure_title
from trayce.records import ClipboardReference, ItemContext, Note, create_note, create_procedure, now_iso
from trayce.store.json_store import KeyValueFile, NoteStore, ProcedureStore

logger = logging.getLogger(__name__)


def _optional_str(payload: dict, key: str, strip: bool = True) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    if not value.strip():
        return None
    return value.strip() if strip else value


def _parse_tags(value: Any) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        raise ValidationError("tags must be a list of strings")
    tags = [tag.strip().lstrip("#").lower() for tag in value if tag.strip().lstrip("#")]
    return tags or None


def _parse_context(value: Any) -> ItemContext | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError("context must be an object")
    context = ItemContext.from_dict(value)
    return context if context.to_dict() else None


def _parse_clipboard_reference(value: Any) -> ClipboardReference | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError("clipboard_reference must be an object")

    content = value.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("clipboard_reference.content is required")

    content_type = value.get("type") or detect_content_type(content)
    if content_type not in CONTENT_TYPES:
        allowed = ", ".join(CONTENT_TYPES)
        raise ValidationError(f"clipboard_reference.type must be one of: {allowed}")

    return ClipboardReference(
        content=content,
        type=content_type,
        timestamp=value.get("timestamp") or now_iso(),
    )


def _require_description(payload: dict) -> str:
    description = payload.get("description")
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Description is required")
    return description.strip()


class ApiService:
    def __init__(
        self,
        storage_path: str | None = None,
        config: LlmConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        path = Path(storage_path) if storage_path is not None else get_home_dir() / "storage.json"
        storage = KeyValueFile(path)
        self._notes = NoteStore(storage)
        self._procedures = ProcedureStore(storage)
        self._config = config if config is not None else get_llm_config()
        self._http_client = http_client

    def health(self) -> dict:
        return {"status": "ok"}

    # notes

    def create_note(self, payload: dict) -> dict:
        description = _require_description(payload)
        note = create_note(description, _parse_clipboard_reference(payload.get("clipboard_reference")))
        note.intent = _optional_str(payload, "intent")
        note.tags = _parse_tags(payload.get("tags"))
        note.context = _parse_context(payload.get("context"))
        self._notes.save(note)
        return note.to_dict()

    def list_notes(self) -> dict:
        return {"notes": [note.to_dict() for note in self._notes.get_all()]}

    def get_note(self, note_id: str) -> dict:
        return self._get_note(note_id).to_dict()

    def update_note(self, note_id: str, payload: dict) -> dict:
        note = self._get_note(note_id)
        note.description = _require_description(payload)
        if "clipboard_reference" in payload:
            note.clipboard_reference = _parse_clipboard_reference(payload["clipboard_reference"])
        if "intent" in payload:
            note.intent = _optional_str(payload, "intent")
        if "tags" in payload:
            note.tags = _parse_tags(payload["tags"])
        if "context" in payload:
            note.context = _parse_context(payload["context"])
        self._notes.update(note)
        return note.to_dict()

    def delete_note(self, note_id: str) -> dict:
        self._notes.delete(note_id)
        return {"id": note_id, "status": "deleted"}

    def _get_note(self, note_id: str) -> Note:
        note = self._notes.get_by_id(note_id)
        if note is None:
            raise RecordNotFoundError("Note", note_id)
        return note

    # procedures

    def generate_procedure(self, payload: dict) -> dict:
        note_ids = payload.get("note_ids")
        if not isinstance(note_ids, list) or not all(isinstance(x, str) for x in note_ids):
            raise ValidationError("note_ids must be a list of strings")
        if not note_ids:
            raise ValidationError("Select at least one note to generate a procedure")

        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required")
        title = title.strip()

        # Selection order is the narrative order of the procedure.
        selected = [self._get_note(note_id) for note_id in dict.fromkeys(note_ids)]
        request = GenerationRequest(
            items=[item_from_note(note) for note in selected],
            title=title,
            custom_instructions=_optional_str(payload, "custom_instructions", strip=False),
            language=_optional_str(payload, "language"),
        )
        request.validate()

        client = select_client(self._config, http_client=self._http_client)
        result = generate_procedure(request, self._config, client=client)

        tags = list(dict.fromkeys(tag for note in selected for tag in (note.tags or [])))
        procedure = create_procedure(
            result.markdown,
            [note.id for note in selected],
            tags=tags or None,
            user_title=title,
        )
        self._procedures.save(procedure)
        logger.info("saved procedure %s from %d notes", procedure.id, len(selected))
        return {**procedure.to_dict(), "provider": result.provider, "model": result.model}

    def list_procedures(self) -> dict:
        return {"procedures": [procedure.to_dict() for procedure in self._procedures.get_all()]}

    def get_procedure(self, procedure_id: str) -> dict:
        procedure = self._procedures.get_by_id(procedure_id)
        if procedure is None:
            raise RecordNotFoundError("Procedure", procedure_id)
        return procedure.to_dict()

    def update_procedure(self, procedure_id: str, payload: dict) -> dict:
        procedure = self._procedures.get_by_id(procedure_id)
        if procedure is None:
            raise RecordNotFoundError("Procedure", procedure_id)

        if "title" in payload:
            title = payload["title"]
            if not isinstance(title, str) or not title.strip():
                raise ValidationError("Title is required")
            procedure.title = title.strip()
        if "markdown" in payload:
            if not isinstance(payload["markdown"], str):
                raise ValidationError("markdown must be a string")
            procedure.markdown = payload["markdown"]

        procedure.markdown = ensure_title(procedure.markdown, procedure.title)
        self._procedures.update(procedure)
        return procedure.to_dict()

    def delete_procedure(self, procedure_id: str) -> dict:
        self._procedures.delete(procedure_id)
        return {"id": procedure_id, "status": "deleted"}

    # capture

    def normalize_clipboard(self, payload: dict) -> dict:
        snippets = payload.get("snippets")
        if not isinstance(snippets, list) or not all(isinstance(s, str) for s in snippets):
            raise ValidationError("snippets must be a list of strings")

        items = read_clipboard_history(
            StaticCaptureSource(snippets),
            limit=self._config.max_clipboard_items,
        )
        return {"items": [item.to_dict() for item in items]}

    # llm settings

    def llm_list_models(self) -> dict:
        return {"models": get_all_models()}

    def llm_get_config(self) -> dict:
        return {
            "model": self._config.model,
            "language": self._config.language,
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
            "max_clipboard_items": self._config.max_clipboard_items,
            "has_anthropic_key": self._config.has_api_key,
        }

    def llm_set_config(self, payload: dict) -> dict:
        model = payload.get("model")
        if model is not None:
            if not isinstance(model, str) or get_model_by_id(model) is None:
                raise ValidationError("model must be one of the catalog model ids")
            self._config.model = model

        language = payload.get("language")
        if language is not None:
            if not isinstance(language, str) or not language.strip():
                raise ValidationError("language must be a non-empty string")
            self._config.language = language.strip()

        save_llm_config(self._config)
        return self.llm_get_config()

    def llm_set_api_key(self, payload: dict) -> dict:
        api_key = payload.get("api_key")
        if not isinstance(api_key, str):
            raise ValidationError("api_key must be a string")
        self._config.anthropic_api_key = api_key.strip()
        save_llm_config(self._config)
        return {"status": "saved", "has_key": self._config.has_api_key}

    def llm_clear_api_key(self) -> dict:
        self._config.anthropic_api_key = ""
        save_llm_config(self._config)
        return {"status": "cleared", "has_key": False}
