"""Canonical default settings.

Provider ids are fixed so the default aggregate is a constant: resetting
twice yields identical documents.
"""

from __future__ import annotations

from typing import Tuple

from textassist.core.config import (
    AuthKind,
    InferenceBaseConfig,
    LanguageConfig,
    ModelConfig,
    ProviderConfig,
    ProviderKind,
    Settings,
)


DEFAULT_MODELS_ENDPOINT = "v1/models"
DEFAULT_COMPLETION_ENDPOINT = "v1/chat/completions"

DEFAULT_LANGUAGES: Tuple[str, ...] = (
    "Chinese",
    "Croatian",
    "Czech",
    "English",
    "French",
    "German",
    "Hindi",
    "Italian",
    "Korean",
    "Polish",
    "Portuguese",
    "Russian",
    "Serbian",
    "Spanish",
    "Ukrainian",
)
DEFAULT_INPUT_LANGUAGE = "English"
DEFAULT_OUTPUT_LANGUAGE = "Ukrainian"


OLLAMA_PROVIDER = ProviderConfig(
    id="4f0c6a52-3c1e-4b8e-9d55-0a7e3b1c2d01",
    name="Ollama",
    provider_kind=ProviderKind.OLLAMA,
    base_url="http://127.0.0.1:11434/",
    models_endpoint=DEFAULT_MODELS_ENDPOINT,
    completion_endpoint=DEFAULT_COMPLETION_ENDPOINT,
    auth_kind=AuthKind.NONE,
)

LM_STUDIO_PROVIDER = ProviderConfig(
    id="8a2d7e13-51b4-4c6f-a0e9-6d3f2b7c8e02",
    name="LM Studio",
    provider_kind=ProviderKind.OPENAI_COMPATIBLE,
    base_url="http://127.0.0.1:1234/",
    models_endpoint=DEFAULT_MODELS_ENDPOINT,
    completion_endpoint=DEFAULT_COMPLETION_ENDPOINT,
    auth_kind=AuthKind.NONE,
)

LLAMA_CPP_PROVIDER = ProviderConfig(
    id="c3b9e4f7-02a8-4d1c-b6e5-9f1a4d2e7b03",
    name="Llama.cpp",
    provider_kind=ProviderKind.OPENAI_COMPATIBLE,
    base_url="http://127.0.0.1:8080/",
    models_endpoint=DEFAULT_MODELS_ENDPOINT,
    completion_endpoint=DEFAULT_COMPLETION_ENDPOINT,
    auth_kind=AuthKind.NONE,
)

OPENROUTER_PROVIDER = ProviderConfig(
    id="e7f1a3c9-6b2d-4e8a-8c4f-3a9b5d1e6f04",
    name="OpenRouter.ai",
    provider_kind=ProviderKind.OPENAI_COMPATIBLE,
    base_url="https://openrouter.ai/api/",
    models_endpoint=DEFAULT_MODELS_ENDPOINT,
    completion_endpoint=DEFAULT_COMPLETION_ENDPOINT,
    auth_kind=AuthKind.BEARER,
    load_auth_token_from_env=True,
    env_var_name="OPENROUTER_API_KEY",
)

OPENAI_PROVIDER = ProviderConfig(
    id="1d5e8b2a-9c7f-4a3e-b1d6-7e2c9f4a8b05",
    name="OpenAI",
    provider_kind=ProviderKind.OPENAI_COMPATIBLE,
    base_url="https://api.openai.com/",
    models_endpoint=DEFAULT_MODELS_ENDPOINT,
    completion_endpoint=DEFAULT_COMPLETION_ENDPOINT,
    auth_kind=AuthKind.BEARER,
    load_auth_token_from_env=True,
    env_var_name="OPENAI_API_KEY",
    use_custom_headers=True,
    headers={"OpenAI-Organization": "", "OpenAI-Project": ""},
)


DEFAULT_SETTINGS = Settings(
    available_providers=(
        OLLAMA_PROVIDER,
        LM_STUDIO_PROVIDER,
        LLAMA_CPP_PROVIDER,
        OPENROUTER_PROVIDER,
        OPENAI_PROVIDER,
    ),
    current_provider=OLLAMA_PROVIDER,
    inference=InferenceBaseConfig(timeout_seconds=60, max_retries=3, use_markdown_output=False),
    # No model is preselected; the user picks one from the provider's list.
    model=ModelConfig(name="", use_temperature=True, temperature=0.5),
    language=LanguageConfig(
        languages=DEFAULT_LANGUAGES,
        default_input_language=DEFAULT_INPUT_LANGUAGE,
        default_output_language=DEFAULT_OUTPUT_LANGUAGE,
    ),
)


def default_settings() -> Settings:
    """Return a fresh copy of the canonical default aggregate.

    Nested values are frozen, so a shallow copy is enough.
    """
    return DEFAULT_SETTINGS.model_copy()
