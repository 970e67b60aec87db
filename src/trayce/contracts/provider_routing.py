from dataclasses import dataclass

from trayce.errors import ConfigurationError


@dataclass(frozen=True)
class RoutingInput:
    api_key: str | None


@dataclass(frozen=True)
class RoutingDecision:
    provider: str
    fallback_used: bool
    reason: str


def select_provider(payload: RoutingInput) -> RoutingDecision:
    # An explicit key pins generation to the Anthropic API; there is no free fallback.
    if payload.api_key and payload.api_key.strip():
        return RoutingDecision(provider="anthropic", fallback_used=False, reason="api_key_configured")

    raise ConfigurationError(
        "Anthropic API key is required. Set ANTHROPIC_API_KEY or add it to the trayce configuration."
    )
