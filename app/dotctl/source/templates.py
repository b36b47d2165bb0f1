"""Template rendering for ``.tmpl`` source entries.

Templates use ``string.Template`` placeholders (``$name`` or ``${name}``,
``$$`` for a literal dollar). Variables come from the ``[data]`` table of
the config file plus a few ``dotctl_*`` builtins describing the machine.
"""

import getpass
import logging
import platform
import re
import socket
from collections.abc import Mapping
from pathlib import Path
from string import Template

logger = logging.getLogger(__name__)


class TemplateError(Exception):
    """Raised when a template cannot be rendered."""


def builtin_data(source_dir: Path, dest_dir: Path) -> dict[str, str]:
    """Variables describing the current machine and run.

    Args:
        source_dir: Source directory in use.
        dest_dir: Destination directory in use.

    Returns:
        Mapping of ``dotctl_*`` variable names to values.
    """
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        username = ""
    return {
        "dotctl_home": str(Path.home()),
        "dotctl_hostname": socket.gethostname().split(".")[0],
        "dotctl_username": username,
        "dotctl_os": platform.system().lower(),
        "dotctl_source_dir": str(source_dir),
        "dotctl_dest_dir": str(dest_dir),
    }


class TemplateRenderer:
    """Renders template text against a fixed set of variables.

    Args:
        data: Variables available to templates. Values are converted with str().
    """

    def __init__(self, data: Mapping[str, object]) -> None:
        self._data = {key: _format_value(value) for key, value in data.items()}

    @property
    def data(self) -> dict[str, str]:
        """Copy of the variables available to templates."""
        return dict(self._data)

    def render(self, name: str, text: str) -> str:
        """Render template text.

        Args:
            name: Template name, for error messages.
            text: Template source.

        Returns:
            Rendered text.

        Raises:
            TemplateError: If a variable is undefined or a placeholder is malformed.
        """
        try:
            return Template(text).substitute(self._data)
        except KeyError as e:
            raise TemplateError(f"{name}: undefined variable {e.args[0]}") from e
        except ValueError as e:
            raise TemplateError(f"{name}: {e}") from e

    def render_bytes(self, name: str, contents: bytes) -> bytes:
        """Render UTF-8 template contents.

        Raises:
            TemplateError: If the contents are not UTF-8 or rendering fails.
        """
        try:
            text = contents.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TemplateError(f"{name}: template is not valid UTF-8") from e
        return self.render(name, text).encode("utf-8")


def auto_template(text: str, data: Mapping[str, object]) -> str:
    """Turn text into a template by replacing data values with placeholders.

    Literal ``$`` signs are escaped first. Longer values are replaced
    before shorter ones so that a value containing another is kept whole.
    Empty values are never replaced.

    Args:
        text: Original file contents.
        data: User template variables.

    Returns:
        Template text that renders back to the original.
    """
    escaped = text.replace("$", "$$")

    keys_by_value: dict[str, str] = {}
    for key, value in sorted(data.items()):
        formatted = _format_value(value)
        if formatted and key.isidentifier():
            keys_by_value.setdefault(formatted, key)
    if not keys_by_value:
        return escaped

    # One pass, longest value first, so inserted placeholders are never rescanned
    values = sorted(keys_by_value, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(value) for value in values))

    def _placeholder(match: re.Match[str]) -> str:
        key = keys_by_value[match.group(0)]
        logger.debug("Auto-template: replacing value of %s", key)
        return "${" + key + "}"

    return pattern.sub(_placeholder, escaped)


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
