import logging
from dataclasses import dataclass
from typing import Any

import httpx

from trayce.capture.normalize import ContentItem
from trayce.contracts.provider_routing import RoutingInput, select_provider
from trayce.errors import ValidationError
from trayce.llm.anthropic import AnthropicClient
from trayce.llm.config import LlmConfig
from trayce.llm.prompts import SYSTEM_PROMPT, build_procedure_prompt
from trayce.llm.title import ensure_title

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    items: list[ContentItem]
    title: str
    custom_instructions: str | None = None
    language: str | None = None

    def validate(self) -> None:
        if not self.items:
            raise ValidationError("Select at least one note to generate a procedure")
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValidationError("Title is required")
        if "\n" in self.title or "\r" in self.title:
            raise ValidationError("Title must be a single line")
        for index, item in enumerate(self.items, 1):
            if not item.content or not item.content.strip():
                raise ValidationError(f"Item {index} has empty content")


@dataclass(frozen=True)
class GenerationResult:
    markdown: str
    provider: str
    model: str

    def to_dict(self) -> dict[str, Any]:
        return {"markdown": self.markdown, "provider": self.provider, "model": self.model}


def select_client(config: LlmConfig, http_client: httpx.Client | None = None) -> AnthropicClient:
    decision = select_provider(RoutingInput(api_key=config.anthropic_api_key))
    logger.debug("routing generation to %s (%s)", decision.provider, decision.reason)
    return AnthropicClient(
        api_key=config.anthropic_api_key,
        base_url=config.anthropic_base_url,
        http_client=http_client,
    )


def generate_procedure(
    request: GenerationRequest,
    config: LlmConfig,
    client: AnthropicClient | None = None,
) -> GenerationResult:
    request.validate()
    if client is None:
        client = select_client(config)
    else:
        select_provider(RoutingInput(api_key=config.anthropic_api_key))

    prompt = build_procedure_prompt(
        request.items,
        request.title,
        custom_instructions=request.custom_instructions,
        language=request.language or config.language,
    )
    logger.info(
        "generating procedure %r from %d items with %s",
        request.title,
        len(request.items),
        config.model,
    )
    raw = client.generate(
        prompt,
        SYSTEM_PROMPT,
        model=config.model,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )
    markdown = ensure_title(raw, request.title)
    logger.info("generated procedure %r (%d chars)", request.title, len(markdown))
    return GenerationResult(markdown=markdown, provider=client.provider, model=config.model)
