"""Error types raised by the settings store.

Every error carries a stable ``error_code`` so callers (CLI, UI bridge) can
branch on the failure without parsing messages.
"""

from __future__ import annotations


class SettingsError(Exception):
    """Base class for all settings store errors."""

    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message

    def __str__(self) -> str:
        return self.message


# Input validation and referential integrity.


class SettingsValidationError(SettingsError, ValueError):
    """A value or aggregate violates a settings invariant."""


class DuplicateProviderError(SettingsValidationError):
    """Another provider already uses the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__("duplicate_provider_name", f"provider name {name!r} already exists")
        self.name = name


class CurrentProviderDeletionError(SettingsValidationError):
    """The active provider cannot be removed."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(
            "delete_current_provider", f"cannot delete current provider {provider_id}"
        )
        self.provider_id = provider_id


class DefaultLanguageRemovalError(SettingsValidationError):
    """A default input/output language cannot be removed from the list."""

    def __init__(self, language: str, direction: str) -> None:
        super().__init__(
            f"remove_default_{direction}_language",
            f"cannot remove default {direction} language {language!r}",
        )
        self.language = language
        self.direction = direction


class LanguageNotSupportedError(SettingsValidationError):
    """The language is not part of the supported-language list."""

    def __init__(self, language: str) -> None:
        super().__init__(
            "language_not_supported",
            f"language {language!r} not in supported languages list",
        )
        self.language = language


class ProviderNotFoundError(SettingsError, LookupError):
    """No provider matches the requested id or name."""

    def __init__(self, key: str, *, field: str = "ID") -> None:
        super().__init__("provider_not_found", f"provider not found with {field} {key}")
        self.key = key


# Persistence.


class SettingsPersistenceError(SettingsError):
    """The settings document could not be located, read or written."""


class SettingsPathError(SettingsPersistenceError):
    """The settings folder or file path could not be resolved."""

    def __init__(self, message: str) -> None:
        super().__init__("path_resolution_failed", message)


class SettingsReadError(SettingsPersistenceError):
    """Reading the settings file failed."""

    def __init__(self, message: str) -> None:
        super().__init__("read_failed", message)


class SettingsDecodeError(SettingsPersistenceError):
    """The settings file holds malformed JSON or an unexpected document shape."""

    def __init__(self, message: str) -> None:
        super().__init__("malformed_settings", message)


class SettingsEncodeError(SettingsPersistenceError):
    """The aggregate could not be serialized."""

    def __init__(self, message: str) -> None:
        super().__init__("serialization_failed", message)


class SettingsWriteError(SettingsPersistenceError):
    """Writing the settings file failed."""

    def __init__(self, message: str) -> None:
        super().__init__("write_failed", message)


__all__ = [
    "CurrentProviderDeletionError",
    "DefaultLanguageRemovalError",
    "DuplicateProviderError",
    "LanguageNotSupportedError",
    "ProviderNotFoundError",
    "SettingsDecodeError",
    "SettingsEncodeError",
    "SettingsError",
    "SettingsPathError",
    "SettingsPersistenceError",
    "SettingsReadError",
    "SettingsValidationError",
    "SettingsWriteError",
]
