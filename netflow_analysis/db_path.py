"""
Centralized database path resolution.

Convention:
- If DATA_ROOT is set: {DATA_ROOT}/netflow/netflow.duckdb
- Else: {repo_root}/data/netflow.duckdb
"""
from __future__ import annotations

import os
from pathlib import Path

PROJECT_NAME = "netflow"


def _find_repo_root() -> Path:
    """
    Walk up from this file until a directory containing .git is found.

    Falls back to the parent of netflow_analysis/ when there is no .git
    (installed or deployed copies).
    """
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    return Path(__file__).resolve().parent.parent


def get_db_path(db_name: str | None = None) -> Path:
    """
    Return the snapshot cache path, creating its parent directory.

    Args:
        db_name: Override database filename. Defaults to netflow.duckdb.
    """
    data_root = os.environ.get("DATA_ROOT")
    if data_root:
        base_dir = Path(data_root) / PROJECT_NAME
    else:
        base_dir = _find_repo_root() / "data"

    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir / (db_name or f"{PROJECT_NAME}.duckdb")
