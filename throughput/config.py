"""
User configuration file support.

Reads ``~/.astracat-bench/config.json``.  Missing keys fall back to
``DEFAULTS``; command-line flags override whatever the file says.
The file is only ever read; the program never writes it.

Supported keys::

    download_size_bytes = 10485760   # download probe size (alias downloadSizeBytes)
    upload_size_bytes = 5242880      # upload probe size (alias uploadSizeBytes)
    timeout = 60.0                   # per-phase timeout in seconds
    base_url = "http://127.0.0.1:8080"
    host = "127.0.0.1"               # bind address for --serve
    port = 8080
    log_level = "WARNING"
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    DOWNLOAD_SIZE_BYTES,
    UPLOAD_SIZE_BYTES,
)

_CONFIG_DIR = os.path.join(Path.home(), ".astracat-bench")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "download_size_bytes": DOWNLOAD_SIZE_BYTES,
    "upload_size_bytes": UPLOAD_SIZE_BYTES,
    "timeout": DEFAULT_TIMEOUT,
    "base_url": DEFAULT_BASE_URL,
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "log_level": "WARNING",
}

# camelCase names used by the web page configuration
_ALIASES = {
    "downloadSizeBytes": "download_size_bytes",
    "uploadSizeBytes": "upload_size_bytes",
}


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update({_ALIASES.get(k, k): v for k, v in user.items()})
    except (json.JSONDecodeError, IOError):
        pass  # corrupt file; use defaults

    return config


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()
