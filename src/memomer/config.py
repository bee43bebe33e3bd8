"""
Configuration helpers for memo and index locations.
"""

from __future__ import annotations

import os
from pathlib import Path


DB_FILENAME = ".memomer.duckdb"
ENV_MEMO_DIR = "MEMOMER_DIR"
ENV_DB_PATH = "MEMOMER_DB_PATH"


def resolve_memo_dir(override_path: str | None = None) -> str:
    """
    Resolve the memo directory from CLI override, env var, or cwd.

    Precedence:
    1) explicit override_path
    2) MEMOMER_DIR
    3) current working directory
    """
    raw_path = override_path or os.getenv(ENV_MEMO_DIR) or os.getcwd()
    return str(Path(raw_path).expanduser().resolve())


def resolve_db_path(
    override_path: str | None = None,
    *,
    memo_dir: str | None = None,
) -> str:
    """
    Resolve the index database path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) MEMOMER_DB_PATH
    3) <memo dir>/.memomer.duckdb
    """
    raw_path = (
        override_path
        or os.getenv(ENV_DB_PATH)
        or str(Path(resolve_memo_dir(memo_dir)) / DB_FILENAME)
    )
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)
