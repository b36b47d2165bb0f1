"""Theme management for dotctl CLI.

Colors come from the bundled ``data/theme.toml``; any subset can be
overridden in ``~/.config/dotctl/theme.toml``. Besides the usual semantic
colors the theme has one color per entry kind, used when listing
operations and entries.
"""

import logging
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from dotctl.core.paths import get_config_dir

logger = logging.getLogger(__name__)

THEME_FILENAME = "theme.toml"


class ThemeColors(BaseModel):
    """Color configuration for dotctl CLI.

    All colors must be valid hex codes (#RRGGBB or #RGB).
    """

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Change kinds
    added: str = "#c1ff62"
    removed: str = "#f53263"
    changed: str = "#0e8ac8"

    # Entry kinds
    file: str = "#ffffff"
    dir: str = "#69B9A1"
    symlink: str = "#0ec1c8"
    script: str = "#f5b332"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        if not isinstance(v, str):
            msg = f"{info.field_name}: color must be a string"
            raise ValueError(msg)
        color = v.strip()
        digits = color.removeprefix("#")
        if digits == color:
            msg = f"{info.field_name}: color must start with '#'"
            raise ValueError(msg)
        if len(digits) not in (3, 6):
            msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
            raise ValueError(msg)
        if any(c not in "0123456789abcdefABCDEF" for c in digits):
            msg = f"{info.field_name}: invalid hex color '{color}'"
            raise ValueError(msg)
        return color


def get_user_theme_path() -> Path:
    """Path of the user's theme overrides (~/.config/dotctl/theme.toml)."""
    return get_config_dir() / THEME_FILENAME


def read_theme_file(path: Path | Any) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Non-string values are dropped. Problems are logged, never raised.

    Args:
        path: Filesystem path or importlib resource.

    Returns:
        Color name to value, or None if the file is missing or unreadable.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return None
    return {key: value for key, value in colors.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Load theme colors: bundled defaults, then user overrides.

    An invalid merged theme falls back to the built-in defaults.
    """
    bundled = read_theme_file(resources.files("dotctl.data").joinpath(THEME_FILENAME))
    if bundled is None:
        logger.error("Bundled theme is missing, installation may be corrupted")
        bundled = {}

    user_path = get_user_theme_path()
    overrides = read_theme_file(user_path) or {}
    if overrides:
        logger.debug("Loaded %d theme override(s) from %s", len(overrides), user_path)

    try:
        return ThemeColors.model_validate({**bundled, **overrides})
    except ValidationError as e:
        logger.warning("Invalid theme, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build a Rich Theme with one style per color plus a few derived ones."""
    colors = colors or load_theme()
    styles = colors.model_dump()
    styles["error"] = f"bold {colors.error}"
    styles["bold_header"] = f"bold {colors.header}"
    styles["dim"] = colors.muted
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
