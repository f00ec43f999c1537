"""
PersistBot - Configuration Tests
================================

Tests for RestoreConfig and environment loading.
"""

import pytest

from persistbot.core import config as config_module
from persistbot.core.config import (
    ConfigValidationError,
    RestoreConfig,
    load_config,
)


class TestRestoreConfig:
    """Tests for the per-guild restore policy."""

    def test_defaults(self):
        config = RestoreConfig()
        assert config.persisted_roles == ()
        assert config.persist_nicknames is False
        assert config.clear_unmatched is False

    def test_from_dict_round_trip(self):
        config = RestoreConfig(persisted_roles=(1, 2), persist_nicknames=True, clear_unmatched=True)
        assert RestoreConfig.from_dict(config.to_dict()) == config

    def test_from_dict_ignores_voice_mute_key(self):
        """Older stored configs still carry persist_voice_mutes."""
        config = RestoreConfig.from_dict({
            "persisted_roles": ["1", "2"],
            "persist_nicknames": True,
            "persist_voice_mutes": True,
        })

        assert config == RestoreConfig(persisted_roles=(1, 2), persist_nicknames=True)
        assert "persist_voice_mutes" not in config.to_dict()

    def test_from_dict_dedupes_roles(self):
        config = RestoreConfig.from_dict({"persisted_roles": [3, 1, 3, 2, 1]})
        assert config.persisted_roles == (3, 1, 2)

    def test_from_dict_null_roles(self):
        assert RestoreConfig.from_dict({"persisted_roles": None}).persisted_roles == ()

    def test_with_and_without_role(self):
        config = RestoreConfig(persisted_roles=(1,))

        added = config.with_role(2)
        assert added.persisted_roles == (1, 2)
        assert added.with_role(2) is added
        assert added.without_role(1).persisted_roles == (2,)
        assert config.persisted_roles == (1,)

    def test_frozen(self):
        config = RestoreConfig()
        with pytest.raises(Exception):
            config.persist_nicknames = True


class TestLoadConfig:
    """Tests for environment variable loading."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in (
            "DISCORD_TOKEN",
            "DEVELOPER_ID",
            "ALLOWED_GUILD_IDS",
            "DEFAULT_PERSISTED_ROLE_IDS",
            "DEFAULT_PERSIST_NICKNAMES",
            "DEFAULT_CLEAR_UNMATCHED",
            "LOCK_WARN_SECONDS",
            "LOCK_TIMEOUT_SECONDS",
            "HEALTH_CHECK_PORT",
            "ERROR_WEBHOOK_URL",
            "DATABASE_PATH",
        ):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr(config_module, "_config", None)

    def test_missing_token(self):
        with pytest.raises(ConfigValidationError):
            load_config()

    def test_minimal(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "token")

        config = load_config()

        assert config.discord_token == "token"
        assert config.allowed_guild_ids == set()
        assert config.default_restore == RestoreConfig()
        assert config.lock_warn_seconds == 10
        assert config.lock_timeout_seconds == 60
        assert config.health_check_port == 8080
        assert config.error_webhook_url is None

    def test_full(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "token")
        monkeypatch.setenv("DEVELOPER_ID", "42")
        monkeypatch.setenv("ALLOWED_GUILD_IDS", "1, 2,2")
        monkeypatch.setenv("DEFAULT_PERSISTED_ROLE_IDS", "10,20")
        monkeypatch.setenv("DEFAULT_PERSIST_NICKNAMES", "true")
        monkeypatch.setenv("DEFAULT_CLEAR_UNMATCHED", "yes")
        monkeypatch.setenv("LOCK_TIMEOUT_SECONDS", "0")
        monkeypatch.setenv("ERROR_WEBHOOK_URL", "https://discord.com/api/webhooks/1/x")

        config = load_config()

        assert config.developer_id == 42
        assert config.allowed_guild_ids == {1, 2}
        assert config.default_restore == RestoreConfig(
            persisted_roles=(10, 20),
            persist_nicknames=True,
            clear_unmatched=True,
        )
        assert config.lock_timeout_seconds == 0
        assert config.error_webhook_url.startswith("https://")

    def test_invalid_id_list(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "token")
        monkeypatch.setenv("ALLOWED_GUILD_IDS", "1,abc")

        with pytest.raises(ConfigValidationError):
            load_config()

    def test_out_of_range_is_clamped(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "token")
        monkeypatch.setenv("LOCK_WARN_SECONDS", "0")
        monkeypatch.setenv("HEALTH_CHECK_PORT", "not-a-port")

        config = load_config()

        assert config.lock_warn_seconds == 1
        assert config.health_check_port == 8080

    def test_bad_webhook_ignored(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "token")
        monkeypatch.setenv("ERROR_WEBHOOK_URL", "ftp://nope")

        assert load_config().error_webhook_url is None
