"""
Path utilities for courtmix.
"""

import os
from pathlib import Path

DATA_DIR_ENV = "COURTMIX_HOME"


def get_data_dir() -> Path:
    """
    Get the user data directory for storing the database.

    Returns:
        - $COURTMIX_HOME when set
        - .courtmix/ in the current working directory otherwise
    """
    override = os.environ.get(DATA_DIR_ENV)
    data_dir = Path(override) if override else Path.cwd() / ".courtmix"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_default_db_path() -> Path:
    """Get the default SQLite database path."""
    return get_data_dir() / "courtmix.sqlite"
