"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.

Note: DEFAULT_CONFIG is a plain dict so it can be passed straight to
deep_merge, which copies rather than mutates its inputs.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
    "cache": {
        "enabled": True,
        "dir": ".fmtratchet/cache",
    },
    "formats": {},
    "projects": {},
}

DEFAULT_PROJECT_NAME = "root"
"""Name of the implicit project used when none are configured."""
