"""Persistence of the settings aggregate.

The repository owns the settings file and an in-memory copy of the last
loaded or saved aggregate. It does not validate: business rules live in
:mod:`textassist.core.settings_service`.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from textassist.core.config import Settings
from textassist.core.defaults import DEFAULT_SETTINGS
from textassist.core.errors import (
    SettingsDecodeError,
    SettingsEncodeError,
    SettingsReadError,
    SettingsWriteError,
)
from textassist.utils.log import get_logger
from textassist.utils.path_utils import SettingsPaths


logger = get_logger()

SETTINGS_FILE_MODE = 0o600


class SettingsRepository:
    """Cached load and full-document save of :class:`Settings`."""

    def __init__(self, paths: Optional[SettingsPaths] = None) -> None:
        self.paths = paths if paths is not None else SettingsPaths()
        self._settings: Optional[Settings] = None

    @property
    def settings_file(self) -> Path:
        return self.paths.settings_file()

    def clear_cache(self) -> None:
        """Forget the cached aggregate so the next read goes to disk."""
        self._settings = None

    def init_defaults_if_absent(self) -> bool:
        """Write the default settings unless a settings file already exists.

        An existing file is left untouched whatever it contains. Returns
        ``True`` when the defaults were written.
        """
        settings_path = self.settings_file
        if settings_path.exists():
            logger.debug(
                "[settings] Settings file already exists; skipping defaults",
                extra={"path": str(settings_path)},
            )
            return False

        logger.info("[settings] Creating default settings file", extra={"path": str(settings_path)})
        self._write(settings_path, DEFAULT_SETTINGS)
        return True

    def get_settings(self) -> Settings:
        """Return the cached aggregate, loading it from disk on first use."""
        if self._settings is not None:
            return self._settings

        self.init_defaults_if_absent()
        self._settings = self._load(self.settings_file)
        return self._settings

    def save_settings(self, settings: Optional[Settings]) -> Settings:
        """Overwrite the settings file with ``settings`` and cache it."""
        if settings is None:
            raise SettingsEncodeError("cannot save nil settings")

        started = time.monotonic()
        settings_path = self.settings_file
        self._write(settings_path, settings)
        self._settings = settings
        logger.info(
            "[settings] Saved settings",
            extra={
                "path": str(settings_path),
                "provider_count": len(settings.available_providers),
                "current_provider": settings.current_provider.name,
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
            },
        )
        return settings

    def _load(self, settings_path: Path) -> Settings:
        started = time.monotonic()
        try:
            raw = settings_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error(
                "[settings] Failed to read settings file: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(settings_path)},
            )
            raise SettingsReadError(
                f"could not read settings file '{settings_path}': {exc}"
            ) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error(
                "[settings] Settings file is not valid JSON: %s",
                exc,
                extra={"path": str(settings_path)},
            )
            raise SettingsDecodeError(
                f"invalid JSON format in settings file '{settings_path}': {exc}"
            ) from exc

        if not isinstance(data, dict):
            raise SettingsDecodeError(
                f"settings file '{settings_path}' must contain a JSON object"
            )
        try:
            settings = Settings.model_validate(data)
        except ValidationError as exc:
            logger.error(
                "[settings] Settings file does not match the settings schema",
                extra={"path": str(settings_path), "errors": exc.error_count()},
            )
            raise SettingsDecodeError(
                f"unexpected settings document in '{settings_path}': {exc}"
            ) from exc

        logger.debug(
            "[settings] Loaded settings",
            extra={
                "path": str(settings_path),
                "provider_count": len(settings.available_providers),
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
            },
        )
        return settings

    def _write(self, settings_path: Path, settings: Settings) -> None:
        try:
            payload = settings.to_json()
        except (TypeError, ValueError) as exc:
            raise SettingsEncodeError(f"could not serialize settings to JSON: {exc}") from exc

        # Write a sibling temp file and swap it in so the target is never half-written.
        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{settings_path.name}.", suffix=".tmp", dir=settings_path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.chmod(tmp_name, SETTINGS_FILE_MODE)
            os.replace(tmp_name, settings_path)
            tmp_name = None
        except OSError as exc:
            logger.error(
                "[settings] Failed to write settings file: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(settings_path)},
            )
            raise SettingsWriteError(f"could not write to file '{settings_path}': {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("[settings] Failed to remove temp file", extra={"path": tmp_name})
