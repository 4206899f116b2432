"""Package version: installed distribution metadata, else the checkout's pyproject.toml."""
from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"
_VERSION_LINE_RE = re.compile(r'^version\s*=\s*"([^"]+)"', re.MULTILINE)


def _source_version() -> str:
    if not _PYPROJECT.is_file():
        return "0.0.0"
    m = _VERSION_LINE_RE.search(_PYPROJECT.read_text(encoding="utf-8"))
    return m.group(1) if m else "0.0.0"


try:
    __version__: str = version("booruwiki")
except PackageNotFoundError:
    __version__ = _source_version()
