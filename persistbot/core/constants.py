"""
PersistBot - Centralized Constants
==================================

Magic numbers and strings shared across modules.
"""

# =============================================================================
# Persist / Restore
# =============================================================================

MEMBER_LOCK_PREFIX = "member-roles-"
"""Keyed lock namespace; lock keys are MEMBER_LOCK_PREFIX + member ID."""

RESTORE_REASON = "Restored upon rejoin"
"""Audit log reason attached to restored profile edits."""

RESTORED_ROLES = "roles"
RESTORED_NICKNAME = "nickname"

# =============================================================================
# Database
# =============================================================================

DB_CONNECTION_TIMEOUT = 30.0          # sqlite3.connect timeout (seconds)
SQLITE_BUSY_TIMEOUT = 5000            # PRAGMA busy_timeout (ms)
AUDIT_QUERY_LIMIT = 50                # Default rows returned by audit reads

# =============================================================================
# Display
# =============================================================================

LOG_TRUNCATE_SHORT = 50
LOG_TRUNCATE_LONG = 200
MAX_ROLES_DISPLAYED = 15
