import json
import logging
import re
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from trayce.api.service import ApiService
from trayce.errors import ConfigurationError, GenerationError, RecordNotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

NOTE_PATH = re.compile(r"^/notes/([^/]+)$")
PROCEDURE_PATH = re.compile(r"^/procedures/([^/]+)$")


def _status_for(exc: Exception) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, RecordNotFoundError):
        return 404
    if isinstance(exc, ConfigurationError):
        return 412
    if isinstance(exc, GenerationError):
        return 502
    return 500


def create_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    service: ApiService | None = None,
) -> ThreadingHTTPServer:
    if service is None:
        service = ApiService()

    class TrayceHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802
            if self.path == "/health":
                self._write_json(200, service.health())
                return
            if self.path == "/notes":
                self._dispatch(service.list_notes)
                return
            if self.path == "/procedures":
                self._dispatch(service.list_procedures)
                return
            if self.path == "/llm/config":
                self._dispatch(service.llm_get_config)
                return
            if self.path == "/llm/models":
                self._dispatch(service.llm_list_models)
                return

            match = NOTE_PATH.match(self.path)
            if match:
                self._dispatch(service.get_note, match.group(1))
                return
            match = PROCEDURE_PATH.match(self.path)
            if match:
                self._dispatch(service.get_procedure, match.group(1))
                return

            self._write_json(404, {"error": "not found"})

        def do_POST(self) -> None:  # noqa: N802
            routes = {
                "/notes": service.create_note,
                "/procedures/generate": service.generate_procedure,
                "/clipboard/normalize": service.normalize_clipboard,
                "/llm/config": service.llm_set_config,
                "/llm/api-key": service.llm_set_api_key,
            }
            handler = routes.get(self.path)
            if handler is None:
                self._write_json(404, {"error": "not found"})
                return

            body = self._read_json_body()
            if body is None:
                self._write_json(400, {"error": "invalid json"})
                return
            self._dispatch(handler, body)

        def do_PUT(self) -> None:  # noqa: N802
            note_match = NOTE_PATH.match(self.path)
            procedure_match = PROCEDURE_PATH.match(self.path)
            if not note_match and not procedure_match:
                self._write_json(404, {"error": "not found"})
                return

            body = self._read_json_body()
            if body is None:
                self._write_json(400, {"error": "invalid json"})
                return

            if note_match:
                self._dispatch(service.update_note, note_match.group(1), body)
            else:
                self._dispatch(service.update_procedure, procedure_match.group(1), body)

        def do_DELETE(self) -> None:  # noqa: N802
            if self.path == "/llm/api-key":
                self._dispatch(service.llm_clear_api_key)
                return

            match = NOTE_PATH.match(self.path)
            if match:
                self._dispatch(service.delete_note, match.group(1))
                return
            match = PROCEDURE_PATH.match(self.path)
            if match:
                self._dispatch(service.delete_procedure, match.group(1))
                return

            self._write_json(404, {"error": "not found"})

        def log_message(self, format: str, *args) -> None:  # noqa: A003
            logger.debug("%s - %s", self.address_string(), format % args)

        def _dispatch(self, handler, *args) -> None:
            try:
                result = handler(*args)
            except (ValidationError, ConfigurationError, GenerationError, StorageError) as exc:
                status = _status_for(exc)
                if status >= 500:
                    logger.error("%s %s failed: %s", self.command, self.path, exc)
                self._write_json(status, {"error": str(exc)})
                return
            except Exception:
                logger.exception("%s %s failed", self.command, self.path)
                self._write_json(500, {"error": "internal server error"})
                return
            self._write_json(200, result)

        def _read_json_body(self) -> dict | None:
            try:
                content_len = int(self.headers.get("Content-Length", "0"))
            except ValueError:
                return None
            raw = self.rfile.read(content_len)
            try:
                parsed = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                return None
            if not isinstance(parsed, dict):
                return None
            return parsed

        def _write_json(self, status_code: int, payload: dict) -> None:
            encoded = json.dumps(payload).encode("utf-8")
            self.send_response(status_code)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)

    return ThreadingHTTPServer((host, port), TrayceHandler)
