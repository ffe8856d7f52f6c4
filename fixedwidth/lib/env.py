"""Environment variable expansion for layout files.

Layout values may refer to the environment as ``${VAR}``, ``$VAR`` or
``${VAR:-default}``; a .env file can be loaded first with python-dotenv.

Example layout:
    reader:
      encoding: ${FW_ENCODING:-cp1252}
    record_types:
      - type: H
        fields: [1, 8]
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv

from fixedwidth.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["expand_env_vars", "expand_value", "load_env_file"]

# ${NAME}, ${NAME:-default} or $NAME
ENV_REFERENCE = re.compile(
    r"\$\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}"
    r"|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)"
)


def load_env_file(
    path: Optional[Union[str, Path]] = None,
    *,
    override: bool = False,
) -> bool:
    """Load variables from ``path`` (or the nearest .env) into the environment.

    Returns:
        True if a file was found and at least one variable set
    """
    loaded = load_dotenv(dotenv_path=path, override=override)
    if loaded:
        logger.debug("Loaded environment from %s", path or ".env")
    return loaded


def expand_env_vars(value: str, *, strict: bool = False, field: Optional[str] = None) -> str:
    """Replace environment references in ``value``.

    An unset variable takes its ``:-`` default when one is given. Otherwise
    it is left as written, or raises ConfigurationError when ``strict``.

    Example:
        >>> os.environ["FW_ENCODING"] = "latin-1"
        >>> expand_env_vars("${FW_ENCODING}")
        'latin-1'
        >>> expand_env_vars("${FW_UNSET:-0}")
        '0'
    """

    def substitute(match: "re.Match[str]") -> str:
        name = match.group("braced") or match.group("bare")
        if name in os.environ:
            return os.environ[name]
        if match.group("default") is not None:
            return match.group("default")
        if strict:
            raise ConfigurationError(
                f"Environment variable not set: {name}",
                field=field,
                value=match.group(0),
                suggestion=f"Set {name} or give a default as ${{{name}:-value}}",
            )
        return match.group(0)

    return ENV_REFERENCE.sub(substitute, value)


def expand_value(value: Any, *, strict: bool = False, path: str = "") -> Any:
    """Expand references in every string of parsed YAML.

    ``path`` names the position of ``value`` in the layout, e.g.
    ``record_types[1].fields[0].padding``, and is reported in errors.
    """
    if isinstance(value, str):
        return expand_env_vars(value, strict=strict, field=path or None)
    if isinstance(value, dict):
        return {
            key: expand_value(item, strict=strict, path=f"{path}.{key}" if path else str(key))
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [
            expand_value(item, strict=strict, path=f"{path}[{i}]")
            for i, item in enumerate(value)
        ]
    return value
