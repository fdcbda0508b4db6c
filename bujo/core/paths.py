#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants for the bujo project.

All paths are Path objects relative to the project root:

    ROOT/
    ├── bujo/          # Package code (migrations live in bujo/migrations)
    ├── data/          # Journal database (private)
    └── logs/          # Application logs

Paths are resolved at import time.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/bujo/core/paths.py.

    Returns:
        Path object for project root
    """
    # paths.py -> core/ -> bujo/ -> ROOT/
    return Path(__file__).resolve().parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()
PACKAGE_DIR = ROOT / "bujo"
DATA_DIR = ROOT / "data"

# --- Database ---
ALEMBIC_DIR = PACKAGE_DIR / "migrations"
ALEMBIC_INI = ROOT / "alembic.ini"
DB_DIR = DATA_DIR / "db"
DB_PATH = DB_DIR / "bujo.db"

# --- Logs ---
LOG_DIR = ROOT / "logs"
