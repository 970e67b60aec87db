import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from trayce.llm.models import DEFAULT_MODEL

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "English"
DEFAULT_MAX_CLIPBOARD_ITEMS = 50


@dataclass
class LlmConfig:
    anthropic_api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = 4096
    temperature: float = 0.7
    language: str = DEFAULT_LANGUAGE
    max_clipboard_items: int = DEFAULT_MAX_CLIPBOARD_ITEMS
    anthropic_base_url: str = "https://api.anthropic.com"

    @property
    def has_api_key(self) -> bool:
        return bool(self.anthropic_api_key.strip())

    def to_dict(self) -> dict[str, Any]:
        return {
            "anthropic_api_key": self.anthropic_api_key,
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "language": self.language,
            "max_clipboard_items": self.max_clipboard_items,
            "anthropic_base_url": self.anthropic_base_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LlmConfig":
        return cls(
            anthropic_api_key=_str_field(data, "anthropic_api_key", ""),
            model=_str_field(data, "model", DEFAULT_MODEL),
            max_tokens=int(data.get("max_tokens") or 4096),
            temperature=float(data["temperature"] if data.get("temperature") is not None else 0.7),
            language=_str_field(data, "language", DEFAULT_LANGUAGE),
            max_clipboard_items=int(data.get("max_clipboard_items") or DEFAULT_MAX_CLIPBOARD_ITEMS),
            anthropic_base_url=_str_field(data, "anthropic_base_url", "https://api.anthropic.com"),
        )


def _str_field(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def get_home_dir() -> Path:
    return Path(os.getenv("TRAYCE_HOME", ".trayce"))


def _get_config_path() -> Path:
    return get_home_dir() / "llm_config.json"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        logger.warning("ignoring non-integer %s=%r", name, raw)
        return default


def get_llm_config() -> LlmConfig:
    config_path = _get_config_path()
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = json.load(f)
            return LlmConfig.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("unreadable config at %s, falling back to env: %s", config_path, exc)

    return LlmConfig(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        model=os.getenv("TRAYCE_MODEL", DEFAULT_MODEL),
        language=os.getenv("TRAYCE_LANGUAGE", DEFAULT_LANGUAGE),
        max_clipboard_items=_env_int("TRAYCE_MAX_CLIPBOARD_ITEMS", DEFAULT_MAX_CLIPBOARD_ITEMS),
    )


def save_llm_config(config: LlmConfig) -> None:
    config_path = _get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
