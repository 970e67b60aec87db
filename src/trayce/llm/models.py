from typing import Any


MODEL_CATALOG: dict[str, list[dict[str, Any]]] = {
    "balanced": [
        {"id": "claude-sonnet-4-5-20250929", "name": "Claude Sonnet 4.5", "context": 200000, "provider": "anthropic"},
    ],
    "fast": [
        {"id": "claude-haiku-4-5-20251001", "name": "Claude Haiku 4.5", "context": 200000, "provider": "anthropic"},
    ],
}

DEFAULT_MODEL = "claude-haiku-4-5-20251001"


def get_all_models() -> list[dict[str, Any]]:
    all_models = []
    for category, models in MODEL_CATALOG.items():
        for model in models:
            all_models.append({**model, "category": category})
    return all_models


def get_model_by_id(model_id: str) -> dict[str, Any] | None:
    for category, models in MODEL_CATALOG.items():
        for model in models:
            if model["id"] == model_id:
                return {**model, "category": category}
    return None
