import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from trayce.errors import GenerationError
from trayce.llm.models import DEFAULT_MODEL

logger = logging.getLogger(__name__)

ANTHROPIC_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 2
RETRYABLE_STATUS_CODES = {408, 409, 429}
ERROR_PREFIX = "Failed to generate procedure"


def _describe_status_error(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        message = payload["error"].get("message")
        if message:
            return f"HTTP {response.status_code}: {message}"
    return f"HTTP {response.status_code}: {response.text[:200]}"


def _is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or status_code >= 500


def extract_text(payload: Any) -> str:
    """Return the text of the first ``text`` segment of a Messages response."""
    segments = payload.get("content") if isinstance(payload, dict) else None
    if not isinstance(segments, list):
        raise GenerationError(f"{ERROR_PREFIX}: response has no content segments")

    for segment in segments:
        if isinstance(segment, dict) and segment.get("type") == "text":
            text = segment.get("text")
            if isinstance(text, str) and text.strip():
                return text
            break
    raise GenerationError(f"{ERROR_PREFIX}: No text response from Claude")


class AnthropicClient:
    provider = "anthropic"

    def __init__(
        self,
        api_key: str,
        base_url: str = ANTHROPIC_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self._http_client = http_client
        self._sleep = sleep

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def _post(self, client: httpx.Client, body: dict[str, Any]) -> httpx.Response:
        return client.post(
            f"{self.base_url}/v1/messages",
            headers=self._headers(),
            json=body,
            timeout=self.timeout,
        )

    def generate(
        self,
        prompt: str,
        system_prompt: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        if not self.api_key.strip():
            raise GenerationError(
                f"{ERROR_PREFIX}: Anthropic API key is required. Add it to the trayce configuration."
            )

        body = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": prompt}],
        }

        owns_client = self._http_client is None
        client = self._http_client or httpx.Client()
        try:
            response = self._send_with_retries(client, body)
        finally:
            if owns_client:
                client.close()

        try:
            payload = response.json()
        except ValueError as exc:
            raise GenerationError(f"{ERROR_PREFIX}: response is not valid JSON") from exc
        return extract_text(payload)

    def _send_with_retries(self, client: httpx.Client, body: dict[str, Any]) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = self._post(client, body)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as exc:
                message = _describe_status_error(exc.response)
                if not _is_retryable_status(exc.response.status_code) or attempt >= self.max_retries:
                    raise GenerationError(f"{ERROR_PREFIX}: {message}") from exc
                reason = message
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    raise GenerationError(f"{ERROR_PREFIX}: {str(exc) or type(exc).__name__}") from exc
                reason = str(exc) or type(exc).__name__

            attempt += 1
            delay = 0.5 * (2 ** (attempt - 1))
            logger.warning(
                "anthropic request failed (%s), retry %d/%d in %.1fs",
                reason,
                attempt,
                self.max_retries,
                delay,
            )
            self._sleep(delay)

