"""
Lightweight .env loader for local development.

Only the outer surfaces (registry, CLI) read credentials from the
environment; provider constructors always take them as arguments.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, MutableMapping, Optional, Tuple


def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    if stripped.startswith("export "):
        stripped = stripped[len("export ") :].lstrip()
    key, value = stripped.split("=", 1)
    key, value = key.strip(), value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    if not key:
        return None
    return key, value


def load_env_if_present(
    candidate_paths: Iterable[Path],
    environ: Optional[MutableMapping[str, str]] = None,
) -> Optional[Path]:
    """
    Load KEY=value pairs from the first .env-style file that exists.

    Variables already present in the environment are never overwritten.

    Returns:
        The file that was loaded, or None.
    """
    env = os.environ if environ is None else environ
    for env_path in candidate_paths:
        if not env_path.is_file():
            continue
        try:
            text = env_path.read_text()
        except OSError:
            continue
        for line in text.splitlines():
            parsed = _parse_line(line)
            if parsed and parsed[0] not in env:
                env[parsed[0]] = parsed[1]
        return env_path
    return None


def load_default_env() -> Optional[Path]:
    """Load from common locations: cwd/.env and the project root .env."""
    candidates = [
        Path.cwd() / ".env",
        Path(__file__).resolve().parents[2] / ".env",
    ]
    return load_env_if_present(candidates)


__all__ = ["load_default_env", "load_env_if_present"]
