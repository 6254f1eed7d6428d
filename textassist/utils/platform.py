"""Platform detection for OS-conventional settings locations.

Use these helpers instead of direct checks like `sys.platform == "win32"`.
"""

import sys
from typing import Literal


ConfigLayout = Literal["windows", "macos", "xdg"]


def config_layout() -> ConfigLayout:
    """Return which per-user config directory convention applies.

    Returns:
        'windows' (%APPDATA%), 'macos' (~/Library/Application Support) or
        'xdg' ($XDG_CONFIG_HOME or ~/.config) for Linux, the BSDs and the rest
    """
    platform = sys.platform.lower()
    if platform.startswith("win"):
        return "windows"
    if platform.startswith("darwin"):
        return "macos"
    return "xdg"


def is_windows() -> bool:
    """Check if running on Windows."""
    return config_layout() == "windows"


def is_macos() -> bool:
    """Check if running on macOS."""
    return config_layout() == "macos"
