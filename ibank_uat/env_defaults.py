"""Read fallback configuration values from the repository `.env` file.

Process environment always wins; the `.env` file only fills in values that are
not exported, so CI can inject secrets without touching the file.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict

REPO_ROOT = Path(__file__).resolve().parents[1]


@lru_cache(maxsize=1)
def _load_env_file() -> Dict[str, str]:
    env_file = Path(os.environ.get("UAT_ENV_FILE") or REPO_ROOT / ".env")
    if not env_file.exists():
        return {}

    values: Dict[str, str] = {}
    for raw in env_file.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        values[key.strip()] = value
    return values


def get_env(key: str, default: str | None = None) -> str | None:
    """Return ``key`` from the environment, then `.env`, then ``default``."""
    value = os.environ.get(key)
    if value:
        return value
    return _load_env_file().get(key) or default


def clear_cache() -> None:
    _load_env_file.cache_clear()
