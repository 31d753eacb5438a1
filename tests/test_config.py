# FILE: tests/test_config.py
"""Tests for environment-driven settings."""

import sys
from pathlib import Path

# Add project root to path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest

from declfix.config import Settings, load_settings

ENV_VARS = (
    "DECLFIX_LOG_LEVEL",
    "DECLFIX_BACKUP_SUFFIX",
    "DECLFIX_TIMESTAMPED_BACKUPS",
    "DECLFIX_HTTP_TIMEOUT_S",
    "CONSUL_HOST",
    "CONSUL_PORT",
    "CONSUL_PREFIX",
    "SMOKE_NODE_APP_URL",
    "SMOKE_TRAEFIK_URL",
    "SMOKE_DATABASE_URL",
    "SKIP_DB_TEST",
    "SMOKE_REQUIRED_NETWORKS",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Unset every declfix variable; anything set during the test is undone at teardown."""
    for name in ENV_VARS:
        # setenv first so monkeypatch restores the original state, even when
        # load_dotenv() writes the variable behind its back
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestLoadSettings:

    def test_defaults(self, clean_env):
        settings = load_settings()

        assert settings == Settings()
        assert settings.backup_suffix == ".bak"
        assert settings.timestamped_backups is False
        assert settings.consul_base_url == "http://consul:8500"
        assert settings.required_networks == ("traefik-network", "cloudlunacy-network")

    def test_overrides(self, clean_env):
        clean_env.setenv("DECLFIX_LOG_LEVEL", "debug")
        clean_env.setenv("DECLFIX_BACKUP_SUFFIX", ".orig")
        clean_env.setenv("DECLFIX_TIMESTAMPED_BACKUPS", "yes")
        clean_env.setenv("DECLFIX_HTTP_TIMEOUT_S", "2.5")
        clean_env.setenv("CONSUL_HOST", "127.0.0.1")
        clean_env.setenv("CONSUL_PORT", "18500")
        clean_env.setenv("SKIP_DB_TEST", "true")
        clean_env.setenv("SMOKE_REQUIRED_NETWORKS", " a , b ,,c")

        settings = load_settings()

        assert settings.log_level == "DEBUG"
        assert settings.backup_suffix == ".orig"
        assert settings.timestamped_backups is True
        assert settings.http_timeout_s == 2.5
        assert settings.consul_base_url == "http://127.0.0.1:18500"
        assert settings.skip_db_test is True
        assert settings.required_networks == ("a", "b", "c")

    @pytest.mark.parametrize("raw,expected", [("0", False), ("no", False), ("", False), ("ON", True)])
    def test_bool_parsing(self, clean_env, raw, expected):
        clean_env.setenv("SKIP_DB_TEST", raw)
        assert load_settings().skip_db_test is expected

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("CONSUL_PREFIX=edge\nSMOKE_DATABASE_URL=sqlite:///:memory:\n", encoding="utf-8")

        settings = load_settings(str(env_file))

        assert settings.consul_prefix == "edge"
        assert settings.database_url == "sqlite:///:memory:"

    def test_process_env_wins_over_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("CONSUL_PREFIX=edge\n", encoding="utf-8")
        clean_env.setenv("CONSUL_PREFIX", "from-shell")

        assert load_settings(str(env_file)).consul_prefix == "from-shell"
