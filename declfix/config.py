# FILE: declfix/config.py
"""
Runtime configuration for declfix.

Everything comes from environment variables (optionally seeded from a .env
file by the CLI via python-dotenv). `load_settings()` reads them at call time
so tests can monkeypatch the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name) or default
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"

    # Rewrite
    backup_suffix: str = ".bak"
    timestamped_backups: bool = False

    # HTTP (KV store + smoke probes)
    http_timeout_s: float = 10.0

    # KV store
    consul_host: str = "consul"
    consul_port: int = 8500
    consul_prefix: str = "traefik"

    # Smoke harness
    node_app_url: str = "http://localhost:3005"
    traefik_url: str = "http://traefik.localhost:8081"
    database_url: str = ""
    skip_db_test: bool = False
    required_networks: Tuple[str, ...] = ("traefik-network", "cloudlunacy-network")

    @property
    def consul_base_url(self) -> str:
        return f"http://{self.consul_host}:{self.consul_port}"


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build Settings from the environment, after loading `env_file` if given."""
    if env_file:
        load_dotenv(env_file)

    return Settings(
        log_level=(os.getenv("DECLFIX_LOG_LEVEL") or "WARNING").upper(),
        backup_suffix=os.getenv("DECLFIX_BACKUP_SUFFIX") or ".bak",
        timestamped_backups=_env_bool("DECLFIX_TIMESTAMPED_BACKUPS"),
        http_timeout_s=float(os.getenv("DECLFIX_HTTP_TIMEOUT_S") or "10"),
        consul_host=os.getenv("CONSUL_HOST") or "consul",
        consul_port=int(os.getenv("CONSUL_PORT") or "8500"),
        consul_prefix=os.getenv("CONSUL_PREFIX") or "traefik",
        node_app_url=os.getenv("SMOKE_NODE_APP_URL") or "http://localhost:3005",
        traefik_url=os.getenv("SMOKE_TRAEFIK_URL") or "http://traefik.localhost:8081",
        database_url=os.getenv("SMOKE_DATABASE_URL") or "",
        skip_db_test=_env_bool("SKIP_DB_TEST"),
        required_networks=_env_list(
            "SMOKE_REQUIRED_NETWORKS", "traefik-network,cloudlunacy-network"
        ),
    )
