"""Business rules on top of the settings repository.

Every mutation follows the same cycle: read the current aggregate, build a new
one, validate it, save it. A rejected change leaves both the cache and the
settings file as they were.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional, Tuple

from textassist.core.config import (
    AUTH_KINDS,
    PROVIDER_KINDS,
    AppSettingsMetadata,
    InferenceBaseConfig,
    LanguageConfig,
    ModelConfig,
    ProviderConfig,
    Settings,
)
from textassist.core.defaults import default_settings
from textassist.core.errors import (
    CurrentProviderDeletionError,
    DefaultLanguageRemovalError,
    DuplicateProviderError,
    LanguageNotSupportedError,
    ProviderNotFoundError,
    SettingsError,
    SettingsValidationError,
)
from textassist.core.settings_repository import SettingsRepository
from textassist.core.validation import (
    validate_max_retries,
    validate_provider_config,
    validate_settings,
    validate_temperature,
    validate_timeout,
)
from textassist.utils.log import get_logger
from textassist.utils.path_utils import SettingsPaths


logger = get_logger()


def _require_provider_id(provider_id: str) -> str:
    if not provider_id or not provider_id.strip():
        raise SettingsValidationError("empty_provider_id", "provider ID cannot be empty")
    return provider_id


def _require_language(language: str) -> str:
    cleaned = (language or "").strip()
    if not cleaned:
        raise SettingsValidationError("empty_language", "language cannot be empty")
    return cleaned


def _match_language(languages: Tuple[str, ...], language: str) -> Optional[str]:
    """Return the entry of ``languages`` equal to ``language`` ignoring case."""
    wanted = language.casefold()
    for candidate in languages:
        if candidate.casefold() == wanted:
            return candidate
    return None


class SettingsService:
    """CRUD and cross-field rules for the settings aggregate."""

    def __init__(
        self,
        repository: SettingsRepository,
        paths: Optional[SettingsPaths] = None,
    ) -> None:
        if repository is None:
            raise ValueError("repository cannot be None")
        self.repository = repository
        self.paths = paths if paths is not None else repository.paths

    # ------------------------------------------------------------------
    # Aggregate

    def init_defaults_if_absent(self) -> bool:
        return self.repository.init_defaults_if_absent()

    def get_settings(self) -> Settings:
        return self.repository.get_settings()

    def get_app_settings_metadata(self) -> AppSettingsMetadata:
        """Supported enum values and resolved paths for UI pickers."""
        folder = self.paths.settings_folder()
        settings_file = self.paths.settings_file()
        return AppSettingsMetadata(
            auth_kinds=AUTH_KINDS,
            provider_kinds=PROVIDER_KINDS,
            settings_folder=str(folder),
            settings_file=str(settings_file),
        )

    def reset_to_default(self) -> Settings:
        """Replace the whole aggregate with the canonical defaults."""
        settings = self.repository.save_settings(default_settings())
        logger.info("[settings] Reset settings to defaults")
        return settings

    def _persist(self, settings: Settings) -> Settings:
        try:
            validate_settings(settings, allow_unset_model=True)
        except SettingsValidationError as exc:
            logger.warning(
                "[settings] Rejected settings change: %s",
                exc,
                extra={"error_code": exc.error_code},
            )
            raise
        return self.repository.save_settings(settings)

    # ------------------------------------------------------------------
    # Providers

    def get_all_providers(self) -> Tuple[ProviderConfig, ...]:
        return self.get_settings().available_providers

    def get_current_provider(self) -> ProviderConfig:
        current = self.get_settings().current_provider
        if current is None or (not current.id and not current.name):
            raise SettingsError("missing_current_provider", "current provider config is nil")
        return current

    def get_provider(self, provider_id: str) -> ProviderConfig:
        _require_provider_id(provider_id)
        provider = self.get_settings().find_provider(provider_id)
        if provider is None:
            logger.warning(
                "[settings] Provider lookup missed", extra={"provider_id": provider_id}
            )
            raise ProviderNotFoundError(provider_id)
        return provider

    def find_provider_by_name(self, name: str) -> ProviderConfig:
        for provider in self.get_all_providers():
            if provider.name == name:
                return provider
        raise ProviderNotFoundError(name, field="name")

    def create_provider(self, cfg: ProviderConfig) -> ProviderConfig:
        """Store a new provider under a freshly generated id."""
        validate_provider_config(cfg)

        settings = self.get_settings()
        if any(existing.name == cfg.name for existing in settings.available_providers):
            raise DuplicateProviderError(cfg.name)

        stored = ProviderConfig.model_validate({**cfg.model_dump(), "id": str(uuid.uuid4())})
        self._persist(
            settings.model_copy(
                update={"available_providers": settings.available_providers + (stored,)}
            )
        )
        logger.info(
            "[settings] Created provider",
            extra={"provider_id": stored.id, "provider_name": stored.name},
        )
        return stored

    def update_provider(self, cfg: ProviderConfig) -> ProviderConfig:
        """Replace the provider with ``cfg.id``, keeping the active pointer in sync."""
        if cfg is None:
            raise SettingsValidationError("missing_provider", "provider config is nil")
        _require_provider_id(cfg.id)
        validate_provider_config(cfg)
        # Revalidate so values set through model_copy() are frozen too.
        cfg = ProviderConfig.model_validate(cfg.model_dump())

        settings = self.get_settings()
        if settings.find_provider(cfg.id) is None:
            raise ProviderNotFoundError(cfg.id)
        if any(
            other.id != cfg.id and other.name == cfg.name
            for other in settings.available_providers
        ):
            raise DuplicateProviderError(cfg.name)

        providers = tuple(
            cfg if existing.id == cfg.id else existing
            for existing in settings.available_providers
        )
        update: dict = {"available_providers": providers}
        if settings.current_provider.id == cfg.id:
            update["current_provider"] = cfg
        self._persist(settings.model_copy(update=update))
        logger.info(
            "[settings] Updated provider",
            extra={"provider_id": cfg.id, "provider_name": cfg.name},
        )
        return cfg

    def delete_provider(self, provider_id: str) -> None:
        _require_provider_id(provider_id)

        settings = self.get_settings()
        if settings.current_provider.id == provider_id:
            raise CurrentProviderDeletionError(provider_id)
        if settings.find_provider(provider_id) is None:
            logger.warning(
                "[settings] Provider to delete not found", extra={"provider_id": provider_id}
            )
            raise ProviderNotFoundError(provider_id)

        remaining = tuple(p for p in settings.available_providers if p.id != provider_id)
        self._persist(settings.model_copy(update={"available_providers": remaining}))
        logger.info("[settings] Deleted provider", extra={"provider_id": provider_id})

    def set_current_provider(self, provider_id: str) -> ProviderConfig:
        provider = self.get_provider(provider_id)
        settings = self.get_settings()
        self._persist(settings.model_copy(update={"current_provider": provider}))
        logger.info(
            "[settings] Switched current provider",
            extra={"provider_id": provider.id, "provider_name": provider.name},
        )
        return provider

    # ------------------------------------------------------------------
    # Inference and model

    def _section(self, field: str, label: str) -> Any:
        value = getattr(self.get_settings(), field)
        if value is None:
            logger.error("[settings] %s config is nil", label)
            raise SettingsError(f"missing_{field}_config", f"{label} config is nil")
        return value

    def get_inference_config(self) -> InferenceBaseConfig:
        return self._section("inference", "inference")

    def update_inference_config(self, cfg: InferenceBaseConfig) -> InferenceBaseConfig:
        if cfg is None:
            raise SettingsValidationError("missing_inference_config", "inference config is nil")
        validate_timeout(cfg.timeout_seconds)
        validate_max_retries(cfg.max_retries)

        settings = self.get_settings()
        self._persist(settings.model_copy(update={"inference": cfg}))
        logger.info(
            "[settings] Updated inference config",
            extra={"timeout": cfg.timeout_seconds, "max_retries": cfg.max_retries},
        )
        return cfg

    def get_model_config(self) -> ModelConfig:
        return self._section("model", "model")

    def update_model_config(self, cfg: ModelConfig) -> ModelConfig:
        """Replace the model config; an empty name clears the model selection."""
        if cfg is None:
            raise SettingsValidationError("missing_model_config", "model config is nil")
        validate_temperature(cfg.use_temperature, cfg.temperature)

        settings = self.get_settings()
        self._persist(settings.model_copy(update={"model": cfg}))
        logger.info("[settings] Updated model config", extra={"model": cfg.name})
        return cfg

    # ------------------------------------------------------------------
    # Languages

    def get_language_config(self) -> LanguageConfig:
        return self._section("language", "language")

    def _set_default_language(self, language: str, field: str) -> LanguageConfig:
        cleaned = _require_language(language)
        settings = self.get_settings()
        stored = _match_language(settings.language.languages, cleaned)
        if stored is None:
            raise LanguageNotSupportedError(cleaned)

        new_language = settings.language.model_copy(update={field: stored})
        self._persist(settings.model_copy(update={"language": new_language}))
        logger.info("[settings] Updated %s", field, extra={"language": stored})
        return new_language

    def set_default_input_language(self, language: str) -> LanguageConfig:
        return self._set_default_language(language, "default_input_language")

    def set_default_output_language(self, language: str) -> LanguageConfig:
        return self._set_default_language(language, "default_output_language")

    def add_language(self, language: str) -> Tuple[str, ...]:
        """Append ``language`` unless it is already listed (any case)."""
        cleaned = _require_language(language)
        settings = self.get_settings()
        languages = settings.language.languages
        if _match_language(languages, cleaned) is not None:
            logger.debug("[settings] Language already present", extra={"language": cleaned})
            return languages

        updated = languages + (cleaned,)
        new_language = settings.language.model_copy(update={"languages": updated})
        self._persist(settings.model_copy(update={"language": new_language}))
        logger.info("[settings] Added language", extra={"language": cleaned})
        return updated

    def remove_language(self, language: str) -> Tuple[str, ...]:
        """Drop ``language`` (any case); default languages cannot be removed."""
        cleaned = _require_language(language)
        settings = self.get_settings()
        config = settings.language
        wanted = cleaned.casefold()
        if wanted == config.default_input_language.casefold():
            raise DefaultLanguageRemovalError(cleaned, "input")
        if wanted == config.default_output_language.casefold():
            raise DefaultLanguageRemovalError(cleaned, "output")

        stored = _match_language(config.languages, cleaned)
        if stored is None:
            logger.warning(
                "[settings] Language to remove not found", extra={"language": cleaned}
            )
            return config.languages

        index = config.languages.index(stored)
        updated = config.languages[:index] + config.languages[index + 1 :]
        new_language = config.model_copy(update={"languages": updated})
        self._persist(settings.model_copy(update={"language": new_language}))
        logger.info("[settings] Removed language", extra={"language": cleaned})
        return updated


__all__ = ["SettingsService"]
