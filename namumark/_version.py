"""Package version: installed distribution metadata, else pyproject.toml."""
from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"
_VERSION_RE = re.compile(r'^version\s*=\s*"([^"]+)"', re.MULTILINE)


def _read_version() -> str:
    try:
        return version("namumark")
    except PackageNotFoundError:
        pass
    # source checkout without pip install -e .
    try:
        match = _VERSION_RE.search(_PYPROJECT.read_text(encoding="utf-8"))
    except OSError:
        return "0.0.0"
    return match.group(1) if match else "0.0.0"


__version__: str = _read_version()
