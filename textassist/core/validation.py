"""Stateless validation of provider profiles and the settings aggregate.

Each check returns ``None`` on success and raises
:class:`~textassist.core.errors.SettingsValidationError` with the first
violated rule otherwise.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple
from urllib.parse import urlsplit

from textassist.core.config import AuthKind, ProviderConfig, ProviderKind, Settings
from textassist.core.errors import SettingsValidationError


TIMEOUT_RANGE: Tuple[int, int] = (1, 600)
MAX_RETRIES_RANGE: Tuple[int, int] = (0, 10)
TEMPERATURE_RANGE: Tuple[float, float] = (0.0, 2.0)

_ALLOWED_SCHEMES = ("http", "https")

_SECTIONS = (
    ("current_provider", "current provider"),
    ("inference", "inference"),
    ("model", "model"),
    ("language", "language"),
)


def contains_ignore_case(items: Iterable[str], item: str) -> bool:
    wanted = item.casefold()
    return any(candidate.casefold() == wanted for candidate in items)


def validate_base_url(base_url: str) -> None:
    """Check that ``base_url`` is an absolute http(s) URL whose path ends with ``/``."""
    if not base_url:
        raise SettingsValidationError("empty_base_url", "base URL cannot be empty")

    try:
        parts = urlsplit(base_url)
    except ValueError as exc:
        raise SettingsValidationError(
            "invalid_base_url", f"invalid base URL format: {exc}"
        ) from exc

    if parts.scheme not in _ALLOWED_SCHEMES:
        raise SettingsValidationError(
            "bad_scheme", f"invalid URL scheme {parts.scheme!r}, must be http or https"
        )
    if not parts.netloc:
        raise SettingsValidationError("invalid_base_url", "base URL must include a host")
    if not parts.path.endswith("/"):
        raise SettingsValidationError(
            "missing_trailing_slash", "base URL must end with a trailing slash"
        )


def validate_endpoint(endpoint: str) -> None:
    """Check a relative endpoint; an empty endpoint means "the base URL as-is"."""
    if endpoint.startswith("/"):
        raise SettingsValidationError(
            "leading_slash", "endpoint must not start with a forward slash"
        )


def _is_blank(value: str) -> bool:
    return not value or not value.strip()


def validate_provider_config(cfg: Optional[ProviderConfig]) -> None:
    """Run every provider profile rule, reporting the first one that fails."""
    if cfg is None:
        raise SettingsValidationError("missing_provider", "provider config is nil")

    if _is_blank(cfg.name):
        raise SettingsValidationError("empty_name", "provider name cannot be empty")

    if not isinstance(cfg.provider_kind, ProviderKind):
        raise SettingsValidationError(
            "invalid_provider_kind", f"invalid provider type {cfg.provider_kind!r}"
        )

    try:
        validate_base_url(cfg.base_url)
    except SettingsValidationError as exc:
        raise SettingsValidationError(exc.error_code, f"invalid base URL: {exc}") from exc

    if not cfg.completion_endpoint:
        raise SettingsValidationError(
            "empty_completion_endpoint", "completion endpoint cannot be empty"
        )
    try:
        validate_endpoint(cfg.completion_endpoint)
    except SettingsValidationError as exc:
        raise SettingsValidationError(
            exc.error_code, f"invalid completion endpoint: {exc}"
        ) from exc

    if not isinstance(cfg.auth_kind, AuthKind):
        raise SettingsValidationError("invalid_auth_kind", f"invalid auth type {cfg.auth_kind!r}")

    if not cfg.use_custom_model_list:
        if not cfg.models_endpoint:
            raise SettingsValidationError(
                "missing_models_endpoint", "models endpoint required when not using custom models"
            )
        try:
            validate_endpoint(cfg.models_endpoint)
        except SettingsValidationError as exc:
            raise SettingsValidationError(
                exc.error_code, f"invalid models endpoint: {exc}"
            ) from exc

    if cfg.load_auth_token_from_env:
        if _is_blank(cfg.env_var_name):
            raise SettingsValidationError(
                "missing_env_var_name",
                "environment variable name required when loading token from environment",
            )
    elif cfg.auth_kind != AuthKind.NONE and not cfg.auth_token:
        raise SettingsValidationError(
            "missing_auth_token", f"auth token required for auth type {cfg.auth_kind.value!r}"
        )

    if cfg.use_custom_model_list and not cfg.custom_models:
        raise SettingsValidationError(
            "missing_custom_models", "custom models required when using custom models"
        )


def validate_timeout(timeout_seconds: int) -> None:
    low, high = TIMEOUT_RANGE
    if not low <= timeout_seconds <= high:
        raise SettingsValidationError(
            "invalid_timeout", f"timeout must be between {low} and {high} seconds"
        )


def validate_max_retries(max_retries: int) -> None:
    low, high = MAX_RETRIES_RANGE
    if not low <= max_retries <= high:
        raise SettingsValidationError(
            "invalid_max_retries", f"max retries must be between {low} and {high}"
        )


def validate_temperature(use_temperature: bool, temperature: float) -> None:
    # JSON has no NaN/Infinity, so these must be rejected even when unused.
    if not math.isfinite(temperature):
        raise SettingsValidationError(
            "non_finite_temperature", "temperature must be a finite number"
        )
    low, high = TEMPERATURE_RANGE
    if use_temperature and not low <= temperature <= high:
        raise SettingsValidationError(
            "invalid_temperature", "temperature must be between 0 and 2 when enabled"
        )


def validate_settings(settings: Optional[Settings], *, allow_unset_model: bool = False) -> None:
    """Holistic check of the aggregate.

    ``allow_unset_model`` accepts an empty model name ("no model selected
    yet", as in the defaults); a whitespace-only name is rejected either way.
    """
    if settings is None:
        raise SettingsValidationError("missing_settings", "settings are nil")
    # model_copy() skips validation, so a section can still be None here.
    for section, label in _SECTIONS:
        if getattr(settings, section) is None:
            raise SettingsValidationError(f"missing_{section}_config", f"{label} config is nil")

    provider_names: set[str] = set()
    for cfg in settings.available_providers:
        try:
            validate_provider_config(cfg)
        except SettingsValidationError as exc:
            raise SettingsValidationError(
                "invalid_provider", f"invalid provider {cfg.name!r}: {exc}"
            ) from exc
        if cfg.name in provider_names:
            raise SettingsValidationError(
                "duplicate_provider_name", f"duplicate provider name: {cfg.name}"
            )
        provider_names.add(cfg.name)

    current_name = settings.current_provider.name
    if not current_name:
        raise SettingsValidationError(
            "empty_current_provider", "current provider name cannot be empty"
        )
    if current_name not in provider_names:
        raise SettingsValidationError(
            "unknown_current_provider",
            f"current provider {current_name!r} not found in available providers",
        )
    try:
        validate_provider_config(settings.current_provider)
    except SettingsValidationError as exc:
        raise SettingsValidationError(
            "invalid_current_provider", f"invalid current provider: {exc}"
        ) from exc

    validate_timeout(settings.inference.timeout_seconds)
    validate_max_retries(settings.inference.max_retries)

    model_name = settings.model.name
    if not model_name:
        if not allow_unset_model:
            raise SettingsValidationError("empty_model_name", "model name cannot be empty")
    elif not model_name.strip():
        raise SettingsValidationError("empty_model_name", "model name cannot be blank")
    validate_temperature(settings.model.use_temperature, settings.model.temperature)

    language = settings.language
    if not language.languages:
        raise SettingsValidationError("empty_languages", "languages list cannot be empty")
    if not contains_ignore_case(language.languages, language.default_input_language):
        raise SettingsValidationError(
            "unknown_default_input_language",
            "default input language not in supported languages list",
        )
    if not contains_ignore_case(language.languages, language.default_output_language):
        raise SettingsValidationError(
            "unknown_default_output_language",
            "default output language not in supported languages list",
        )


__all__ = [
    "MAX_RETRIES_RANGE",
    "TEMPERATURE_RANGE",
    "TIMEOUT_RANGE",
    "contains_ignore_case",
    "validate_base_url",
    "validate_endpoint",
    "validate_max_retries",
    "validate_provider_config",
    "validate_settings",
    "validate_temperature",
    "validate_timeout",
]
