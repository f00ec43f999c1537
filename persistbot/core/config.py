"""
PersistBot - Configuration Module
=================================

Settings read from the environment plus the per-guild restore policy.

DESIGN:
    Two layers of configuration:
    - Config: process-wide settings loaded once from environment variables
      (token, allowed guilds, lock bounds, defaults for new guilds).
    - RestoreConfig: per-guild persistence policy, an immutable snapshot
      read by the member handlers on every event. Stored in SQLite and
      edited through the /persist commands.

    Key patterns:
    - get_config() builds Config once and hands out the same object
    - Env values are checked and clamped in load_config() only
    - RestoreConfig is frozen so a handler never sees it change mid-event
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from persistbot.core.logger import NY_TZ


# =============================================================================
# Restore Policy (per guild)
# =============================================================================

@dataclass(frozen=True)
class RestoreConfig:
    """
    Per-guild persistence policy.

    Attributes:
        persisted_roles: Role IDs eligible for persistence, in the order
            they were configured. Matching treats them as a set.
        persist_nicknames: Whether server nicknames are captured and restored.
        clear_unmatched: Whether a stored record that no longer matches the
            policy is deleted on rejoin instead of being kept.
    """

    persisted_roles: Tuple[int, ...] = ()
    persist_nicknames: bool = False
    clear_unmatched: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RestoreConfig":
        """
        Build a policy from a plain mapping.

        Unknown keys are ignored, which keeps older stored configs that
        still carry persist_voice_mutes loadable.
        """
        return cls(
            persisted_roles=_dedupe(int(r) for r in data.get("persisted_roles") or ()),
            persist_nicknames=bool(data.get("persist_nicknames", False)),
            clear_unmatched=bool(data.get("clear_unmatched", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly mapping."""
        return {
            "persisted_roles": list(self.persisted_roles),
            "persist_nicknames": self.persist_nicknames,
            "clear_unmatched": self.clear_unmatched,
        }

    def with_role(self, role_id: int) -> "RestoreConfig":
        """Return a copy with role_id added to the persisted roles."""
        if role_id in self.persisted_roles:
            return self
        return replace(self, persisted_roles=self.persisted_roles + (role_id,))

    def without_role(self, role_id: int) -> "RestoreConfig":
        """Return a copy with role_id removed from the persisted roles."""
        return replace(
            self,
            persisted_roles=tuple(r for r in self.persisted_roles if r != role_id),
        )


def _dedupe(values: Iterable[int]) -> Tuple[int, ...]:
    """Drop duplicates while keeping first-seen order."""
    seen: Set[int] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return tuple(result)


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    Attributes:
        discord_token: Discord bot authentication token.
        developer_id: User pinged on error webhook alerts.
        allowed_guild_ids: Guilds seeded into the allow-list at startup.
        default_restore: Policy used for guilds with no stored policy.
        lock_warn_seconds: Wait after which a member lock is reported stuck.
        lock_timeout_seconds: Wait after which acquiring gives up (0 = never).
        health_check_port: Port for the /health endpoint (0 = disabled).
        error_webhook_url: Discord webhook for error alerts.
        database_path: SQLite file override.
    """

    # Required: Discord
    discord_token: str

    # Optional: Access
    developer_id: Optional[int] = None
    allowed_guild_ids: Set[int] = field(default_factory=set)

    # Optional: Restore Defaults
    default_restore: RestoreConfig = field(default_factory=RestoreConfig)

    # Optional: Member Locks (seconds)
    lock_warn_seconds: int = 10
    lock_timeout_seconds: int = 60

    # Optional: Infrastructure
    health_check_port: int = 8080
    error_webhook_url: Optional[str] = None
    database_path: Optional[str] = None


# =============================================================================
# Embed Colors
# =============================================================================

class EmbedColors:
    """Color palette for command response embeds."""

    GREEN = 0x1F5E2E    # Success / enabled
    GOLD = 0xE6B84A     # Warnings / nothing found
    BLUE = 0x3498DB     # Informational

    SUCCESS = GREEN
    WARNING = GOLD
    INFO = BLUE


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _parse_int_optional(value: Optional[str]) -> Optional[int]:
    """Int from an env string, or None when empty or not a number."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_int_list(value: Optional[str], name: str) -> Tuple[int, ...]:
    """
    Split a comma list of IDs, keeping first-seen order.

    Raises:
        ConfigValidationError: If any entry is not an integer.
    """
    if not value:
        return ()
    result = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            result.append(int(part))
        except ValueError:
            raise ConfigValidationError(f"Invalid integer in {name}: {part}")
    return _dedupe(result)


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse a truthy/falsy environment string."""
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int_with_default(value: Optional[str], default: int, name: str, min_val: int = None, max_val: int = None) -> int:
    """
    Int env value with a fallback, clamped into [min_val, max_val].

    Garbage falls back to the default. Clamping and fallback are
    both logged.
    """
    if not value:
        return default
    from persistbot.core.logger import logger
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"{name}: '{value}' is not an integer, falling back to {default}")
        return default
    if min_val is not None and parsed < min_val:
        logger.warning(f"{name}: {parsed} clamped up to {min_val}")
        return min_val
    if max_val is not None and parsed > max_val:
        logger.warning(f"{name}: {parsed} clamped down to {max_val}")
        return max_val
    return parsed


def _validate_url(value: Optional[str], name: str) -> Optional[str]:
    """Webhook URL, or None when unset or not http(s)."""
    if not value:
        return None
    if not value.startswith(("https://", "http://")):
        from persistbot.core.logger import logger
        logger.warning(f"{name}: not an http(s) URL, webhook disabled")
        return None
    return value


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Read every setting from the environment.

    Returns:
        A fully populated Config.

    Raises:
        ConfigValidationError: If any required variable is missing or invalid.
    """
    discord_token = os.getenv("DISCORD_TOKEN")
    if not discord_token:
        raise ConfigValidationError("Missing required environment variables: DISCORD_TOKEN")

    default_restore = RestoreConfig(
        persisted_roles=_parse_int_list(os.getenv("DEFAULT_PERSISTED_ROLE_IDS"), "DEFAULT_PERSISTED_ROLE_IDS"),
        persist_nicknames=_parse_bool(os.getenv("DEFAULT_PERSIST_NICKNAMES")),
        clear_unmatched=_parse_bool(os.getenv("DEFAULT_CLEAR_UNMATCHED")),
    )

    return Config(
        discord_token=discord_token,
        developer_id=_parse_int_optional(os.getenv("DEVELOPER_ID")),
        allowed_guild_ids=set(_parse_int_list(os.getenv("ALLOWED_GUILD_IDS"), "ALLOWED_GUILD_IDS")),
        default_restore=default_restore,
        lock_warn_seconds=_parse_int_with_default(
            os.getenv("LOCK_WARN_SECONDS"), 10, "LOCK_WARN_SECONDS", min_val=1, max_val=600
        ),
        lock_timeout_seconds=_parse_int_with_default(
            os.getenv("LOCK_TIMEOUT_SECONDS"), 60, "LOCK_TIMEOUT_SECONDS", min_val=0, max_val=3600
        ),
        health_check_port=_parse_int_with_default(
            os.getenv("HEALTH_CHECK_PORT"), 8080, "HEALTH_CHECK_PORT", min_val=0, max_val=65535
        ),
        error_webhook_url=_validate_url(os.getenv("ERROR_WEBHOOK_URL"), "ERROR_WEBHOOK_URL"),
        database_path=os.getenv("DATABASE_PATH") or None,
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def validate_and_log_config() -> None:
    """
    Validate configuration and log a startup summary.

    Raises:
        ConfigValidationError: If required configuration is missing.
    """
    from persistbot.core.logger import logger

    config = get_config()
    defaults = config.default_restore

    logger.tree("Configuration Validated", [
        ("Allowed Guilds", str(len(config.allowed_guild_ids))),
        ("Default Persisted Roles", str(len(defaults.persisted_roles))),
        ("Default Persist Nicknames", str(defaults.persist_nicknames)),
        ("Default Clear Unmatched", str(defaults.clear_unmatched)),
        ("Lock Warn / Timeout", f"{config.lock_warn_seconds}s / {config.lock_timeout_seconds or 'none'}s"),
        ("Health Port", str(config.health_check_port) if config.health_check_port else "Disabled"),
    ], emoji="⚙️")


__all__ = [
    "Config",
    "ConfigValidationError",
    "RestoreConfig",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "load_config",
    "validate_and_log_config",
]
