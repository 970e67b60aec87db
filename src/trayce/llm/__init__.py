from trayce.llm.generate import GenerationRequest, GenerationResult, generate_procedure, select_client
from trayce.llm.config import LlmConfig, get_llm_config, save_llm_config
from trayce.llm.models import MODEL_CATALOG, get_all_models

__all__ = [
    "GenerationRequest",
    "GenerationResult",
    "generate_procedure",
    "select_client",
    "LlmConfig",
    "get_llm_config",
    "save_llm_config",
    "MODEL_CATALOG",
    "get_all_models",
]
