"""Flat JSON persistence for notes and procedures.

Every record kind lives as one JSON array string under its own key in a
single key-value file. Writes are read-modify-write of the whole collection:
two writers working at the same time can drop each other's changes. The
file itself is swapped in atomically, so readers never see a partial write.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from trayce.errors import RecordNotFoundError, StorageError
from trayce.records import Note, Procedure, now_iso, parse_timestamp

logger = logging.getLogger(__name__)

NOTES_STORAGE_KEY = "trayce_notes"
PROCEDURES_STORAGE_KEY = "trayce_procedures"


class JsonRecord(Protocol):
    id: str
    created_at: str

    def to_dict(self) -> dict[str, Any]: ...


R = TypeVar("R", bound=JsonRecord)


class KeyValueFile:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("failed to read storage file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.error("storage file %s does not hold an object", self.path)
            return {}
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"failed to write storage file {self.path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._write(data)


def _created_sort_key(record: JsonRecord) -> float:
    parsed = parse_timestamp(record.created_at)
    return parsed.timestamp() if parsed is not None else float("-inf")


class RecordCollection(Generic[R]):
    kind = "Record"

    def __init__(self, storage: KeyValueFile, key: str, record_type: type[R]):
        self.storage = storage
        self.key = key
        self.record_type = record_type

    def _read(self) -> list[R]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []

        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
            return [self.record_type.from_dict(entry) for entry in payload]
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Failed to parse %s from storage: %s", self.key, exc)
            return []

    def _write(self, records: list[R]) -> None:
        self.storage.set_item(self.key, json.dumps([record.to_dict() for record in records]))

    def save(self, record: R) -> None:
        records = self._read()
        records.append(record)
        self._write(records)

    def update(self, record: R) -> None:
        records = self._read()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                self._write(records)
                return
        raise RecordNotFoundError(self.kind, record.id)

    def delete(self, record_id: str) -> None:
        records = self._read()
        self._write([record for record in records if record.id != record_id])

    def get_all(self) -> list[R]:
        return sorted(self._read(), key=_created_sort_key, reverse=True)

    def get_by_id(self, record_id: str) -> R | None:
        for record in self._read():
            if record.id == record_id:
                return record
        return None

    def clear_all(self) -> None:
        self.storage.remove_item(self.key)


class NoteStore(RecordCollection[Note]):
    kind = "Note"

    def __init__(self, storage: KeyValueFile):
        super().__init__(storage, NOTES_STORAGE_KEY, Note)


class ProcedureStore(RecordCollection[Procedure]):
    kind = "Procedure"

    def __init__(self, storage: KeyValueFile):
        super().__init__(storage, PROCEDURES_STORAGE_KEY, Procedure)

    def update(self, record: Procedure) -> None:
        record.updated_at = now_iso()
        super().update(record)
