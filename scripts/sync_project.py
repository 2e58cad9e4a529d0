"""Wrapper script to run a full project sync from a checkout."""
from __future__ import annotations

import sys
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from project_sync.cli import main


if __name__ == "__main__":  # pragma: no cover - convenience wrapper
    raise SystemExit(main())
