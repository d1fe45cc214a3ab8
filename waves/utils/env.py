"""Minimal .env loader so local runs pick up WAVES_* settings without a shell wrapper."""

from __future__ import annotations

import os
from pathlib import Path

_QUOTES = ('"', "'")


def default_env_path() -> Path:
  """Return the .env path at the repository root."""
  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_line(raw_line: str) -> tuple[str, str] | None:
  """Parse one `KEY=value` line, returning None for blanks, comments and malformed lines."""
  line = raw_line.strip()
  if not line or line.startswith("#"):
    return None

  # Accept shell-style `export KEY=value` lines copied from deployment scripts.
  if line.startswith("export "):
    line = line.removeprefix("export ").lstrip()

  key, separator, value = line.partition("=")
  key = key.strip()
  if not separator or not key:
    return None

  value = value.strip()
  if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
    value = value[1:-1]

  return key, value


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Load key=value pairs into the process environment and return the keys that were applied."""
  if not path.is_file():
    return []

  applied: list[str] = []
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = parse_env_line(raw_line)
    if parsed is None:
      continue

    key, value = parsed
    # Real environment variables win unless the caller explicitly asks otherwise.
    if not override and key in os.environ:
      continue

    os.environ[key] = value
    applied.append(key)

  return applied
