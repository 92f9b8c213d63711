# scorejudge/paths.py
from __future__ import annotations

import os
from pathlib import Path

# Score histories, audit logs and charts land here unless given absolute paths.
RESULTS_DIR = Path(
    os.environ.get(
        "SCOREJUDGE_RESULTS_DIR",
        Path(__file__).resolve().parent.parent / "results",
    )
)


def ensure_results_dir() -> Path:
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    return RESULTS_DIR


def resolve_results_path(path_like: str | Path) -> Path:
    """
    Anchor a relative path inside RESULTS_DIR; absolute paths pass through.
    """
    path = Path(path_like)
    if path.is_absolute():
        return path
    ensure_results_dir()
    return RESULTS_DIR / path
