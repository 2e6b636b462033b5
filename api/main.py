"""
Release tracker ASGI app for hosts that start `uvicorn api.main:app` from a
checkout without installing the package.
"""
from __future__ import annotations

import sys
from pathlib import Path

try:
    from releasetracker.api.main import app
except ModuleNotFoundError:
    # not installed: import from the checkout's src/
    sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
    from releasetracker.api.main import app  # type: ignore

__all__ = ["app"]
