"""
PersistBot - Database Base Module
=================================

Paths and helpers shared by the database mixins.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from persistbot.core.logger import logger


# =============================================================================
# Constants
# =============================================================================

# Path: persistbot/core/database/base.py -> go up 4 levels to reach project root
DATA_DIR: Path = Path(__file__).parent.parent.parent.parent / "data"
DB_PATH: Path = Path(os.getenv("DATABASE_PATH") or DATA_DIR / "persistbot.db")


# =============================================================================
# Helper Functions
# =============================================================================

def _safe_json_loads(value: Optional[str], default: Any = None) -> Any:
    """Safely parse JSON, returning default on error."""
    if not value:
        return default if default is not None else []
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        logger.warning(f"Corrupted JSON in database: {value[:50] if len(value) > 50 else value}")
        return default if default is not None else []


__all__ = ["DATA_DIR", "DB_PATH", "_safe_json_loads"]
