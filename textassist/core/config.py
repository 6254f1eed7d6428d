"""Settings data model for TextAssist.

The whole aggregate is persisted as one JSON document. Models are frozen:
changes are made with ``model_copy(update=...)`` so the cached aggregate is
never modified in place.
"""

from __future__ import annotations

import os
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)


class ProviderKind(str, Enum):
    """Wire protocol spoken by a provider endpoint."""

    OPENAI_COMPATIBLE = "open-ai-compatible"
    OLLAMA = "ollama"

    @classmethod
    def _legacy_aliases(cls) -> Dict[str, "ProviderKind"]:
        return {
            "openai": cls.OPENAI_COMPATIBLE,
            "openai-compatible": cls.OPENAI_COMPATIBLE,
            "openai_compatible": cls.OPENAI_COMPATIBLE,
            "open_ai_compatible": cls.OPENAI_COMPATIBLE,
        }

    @classmethod
    def _missing_(cls, value: object) -> Optional["ProviderKind"]:
        if isinstance(value, str):
            return cls._legacy_aliases().get(value.strip().lower())
        return None


class AuthKind(str, Enum):
    """How the auth token is sent to the provider."""

    NONE = "none"
    API_KEY = "api-key"
    BEARER = "bearer"

    @classmethod
    def _legacy_aliases(cls) -> Dict[str, "AuthKind"]:
        return {
            "api_key": cls.API_KEY,
            "apikey": cls.API_KEY,
            "bearer-token": cls.BEARER,
            "bearer_token": cls.BEARER,
            "token": cls.BEARER,
        }

    @classmethod
    def _missing_(cls, value: object) -> Optional["AuthKind"]:
        if isinstance(value, str):
            return cls._legacy_aliases().get(value.strip().lower())
        return None


PROVIDER_KINDS: Tuple[ProviderKind, ...] = tuple(ProviderKind)
AUTH_KINDS: Tuple[AuthKind, ...] = tuple(AuthKind)


class _SettingsModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        protected_namespaces=(),
        extra="ignore",
    )


class ProviderConfig(_SettingsModel):
    """One connection profile to an LLM endpoint."""

    # Generated by the service, immutable afterwards
    id: str = Field(default="", alias="providerId")
    # User-visible, unique within the settings
    name: str = Field(default="", alias="providerName")
    provider_kind: ProviderKind = Field(default=ProviderKind.OPENAI_COMPATIBLE, alias="providerType")
    # Absolute http(s) URL ending with "/", e.g. http://localhost:8080/api/
    base_url: str = Field(default="", alias="baseUrl")
    # Relative to base_url, never starts with "/"; unused with a custom model list
    models_endpoint: str = Field(default="", alias="modelsEndpoint")
    completion_endpoint: str = Field(default="", alias="completionEndpoint")
    auth_kind: AuthKind = Field(default=AuthKind.NONE, alias="authType")
    auth_token: str = Field(default="", alias="authToken")
    load_auth_token_from_env: bool = Field(default=False, alias="loadAuthTokenFromEnv")
    env_var_name: str = Field(default="", alias="envVarTokenName")
    use_custom_headers: bool = Field(default=False, alias="useCustomHeaders")
    # Read-only view; build a new provider to change headers
    headers: Mapping[str, str] = Field(default_factory=dict, alias="headers")
    use_custom_model_list: bool = Field(default=False, alias="useCustomModels")
    custom_models: Tuple[str, ...] = Field(default=(), alias="customModels")

    @field_validator("headers", mode="before")
    @classmethod
    def _null_headers(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("headers", mode="after")
    @classmethod
    def _freeze_headers(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("headers")
    def _dump_headers(self, value: Mapping[str, str]) -> Dict[str, str]:
        return dict(value)

    @field_validator("custom_models", mode="before")
    @classmethod
    def _null_models(cls, value: Any) -> Any:
        return () if value is None else value

    def resolve_auth_token(self, environ: Optional[Mapping[str, str]] = None) -> str:
        """Return the token the HTTP client should send ("" when auth is off)."""
        if self.auth_kind == AuthKind.NONE:
            return ""
        if self.load_auth_token_from_env:
            env = os.environ if environ is None else environ
            return env.get(self.env_var_name, "")
        return self.auth_token

    def models_url(self) -> str:
        return self.base_url + self.models_endpoint

    def completion_url(self) -> str:
        return self.base_url + self.completion_endpoint


class InferenceBaseConfig(_SettingsModel):
    """Request tuning shared by all providers."""

    timeout_seconds: int = Field(default=60, alias="timeout")
    max_retries: int = Field(default=3, alias="maxRetries")
    # Ask the model to answer in Markdown
    use_markdown_output: bool = Field(default=False, alias="useMarkdownForOutput")


class ModelConfig(_SettingsModel):
    """Selected model and sampling options.

    Temperature guide: 0.0-0.5 focused, 0.6-1.0 balanced, 1.1-2.0 creative.
    """

    name: str = Field(default="", alias="name")
    use_temperature: bool = Field(default=True, alias="useTemperature")
    temperature: float = Field(default=0.5, alias="temperature")


class LanguageConfig(_SettingsModel):
    languages: Tuple[str, ...] = Field(default=(), alias="languages")
    default_input_language: str = Field(default="", alias="defaultInputLanguage")
    default_output_language: str = Field(default="", alias="defaultOutputLanguage")

    @field_validator("languages", mode="before")
    @classmethod
    def _null_languages(cls, value: Any) -> Any:
        return () if value is None else value


class Settings(_SettingsModel):
    """The aggregate root, always read and written whole."""

    available_providers: Tuple[ProviderConfig, ...] = Field(
        default=(), alias="availableProviderConfigs"
    )
    current_provider: ProviderConfig = Field(
        default_factory=ProviderConfig, alias="currentProviderConfig"
    )
    inference: InferenceBaseConfig = Field(
        default_factory=InferenceBaseConfig, alias="inferenceBaseConfig"
    )
    model: ModelConfig = Field(default_factory=ModelConfig, alias="modelConfig")
    language: LanguageConfig = Field(default_factory=LanguageConfig, alias="languageConfig")

    @field_validator("available_providers", mode="before")
    @classmethod
    def _null_providers(cls, value: Any) -> Any:
        return () if value is None else value

    # A null section loads as its zero value; an empty current provider is
    # reported as unset by the service.
    @field_validator("current_provider", "inference", "model", "language", mode="before")
    @classmethod
    def _null_sections(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default_factory()
        return value

    def find_provider(self, provider_id: str) -> Optional[ProviderConfig]:
        for provider in self.available_providers:
            if provider.id == provider_id:
                return provider
        return None

    def to_json(self) -> str:
        """Serialize with the on-disk field names, pretty-printed."""
        return self.model_dump_json(by_alias=True, indent=2)


class AppSettingsMetadata(_SettingsModel):
    """Read-only data for populating UI pickers; never persisted."""

    auth_kinds: Tuple[AuthKind, ...] = Field(default=AUTH_KINDS, alias="authTypes")
    provider_kinds: Tuple[ProviderKind, ...] = Field(default=PROVIDER_KINDS, alias="providerTypes")
    settings_folder: str = Field(default="", alias="settingsFolder")
    settings_file: str = Field(default="", alias="settingsFile")


__all__ = [
    "AUTH_KINDS",
    "AppSettingsMetadata",
    "AuthKind",
    "InferenceBaseConfig",
    "LanguageConfig",
    "ModelConfig",
    "PROVIDER_KINDS",
    "ProviderConfig",
    "ProviderKind",
    "Settings",
]
