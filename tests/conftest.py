"""Global pytest configuration.

`scripts/` is not an installed package; unit tests run from the project root, so
the root goes on `sys.path` to keep `scripts.*` importable.
"""

from __future__ import annotations

import sys
from pathlib import Path


def pytest_configure() -> None:
    root_dir = Path(__file__).resolve().parents[1]

    raw = str(root_dir)
    if raw not in sys.path:
        sys.path.insert(0, raw)
