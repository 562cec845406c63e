"""Locate ``policykit.toml``.

``POLICYKIT_CONFIG`` names the file explicitly; otherwise the nearest
``policykit.toml`` in the start directory or one of its ancestors wins.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "policykit.toml"
CONFIG_ENV_VAR = "POLICYKIT_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file for *start* (default: cwd), or None.

    An explicit ``POLICYKIT_CONFIG`` that does not point at a file yields
    None rather than falling back to discovery.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        return path if path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
