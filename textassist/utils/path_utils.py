"""Filesystem path helpers for the settings document."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from textassist.core.errors import SettingsPathError
from textassist.utils.log import get_logger
from textassist.utils.platform import is_macos, is_windows


logger = get_logger()

APP_DIR_NAME = "TextAssist"
SETTINGS_FILE_NAME = "settings.json"
CONFIG_DIR_ENV = "TEXTASSIST_CONFIG_DIR"


def user_config_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the OS-conventional per-user configuration directory.

    Falls back to the home directory when no platform location is available.
    """
    env = os.environ if environ is None else environ
    if is_windows():
        appdata = env.get("APPDATA")
        if appdata:
            return Path(appdata)
    elif is_macos():
        return Path.home() / "Library" / "Application Support"
    else:
        xdg = env.get("XDG_CONFIG_HOME")
        if xdg and Path(xdg).is_absolute():
            return Path(xdg)
        return Path.home() / ".config"
    return Path.home()


@dataclass(frozen=True)
class SettingsPaths:
    """Resolves where the settings document lives.

    ``folder`` pins the settings folder (tests, ``--config-dir``); when unset
    the folder is ``$TEXTASSIST_CONFIG_DIR`` or ``<user config dir>/TextAssist``.
    """

    folder: Optional[Path] = None
    file_name: str = SETTINGS_FILE_NAME

    def _target_folder(self) -> Path:
        if self.folder is not None:
            return Path(self.folder).expanduser()
        override = os.environ.get(CONFIG_DIR_ENV, "").strip()
        if override:
            return Path(override).expanduser()
        try:
            return user_config_dir() / APP_DIR_NAME
        except RuntimeError as exc:
            # Path.home() raises RuntimeError when no home directory can be determined.
            raise SettingsPathError(f"failed to determine application directory: {exc}") from exc

    def settings_folder(self) -> Path:
        """Return the settings folder, creating it (mode 0700) if needed."""
        folder = self._target_folder()
        try:
            folder.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(
                "[paths] Failed to create settings folder: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(folder)},
            )
            raise SettingsPathError(
                f"failed to create application directory '{folder}': {exc}"
            ) from exc
        if not folder.is_dir():
            raise SettingsPathError(f"settings folder path '{folder}' is not a directory")
        return folder

    def settings_file(self) -> Path:
        """Return the settings file path inside the (ensured) settings folder."""
        return self.settings_folder() / self.file_name
