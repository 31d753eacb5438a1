# FILE: declfix/tools/smoke.py
"""
Smoke-test harness for the development environment.

Each probe is independent and returns a ProbeResult; a probe never raises,
any failure is a `passed=False` result with the reason in `detail`.
`run_smoke` runs the default set and aggregates them into a SmokeReport.

Probes:
    http_probe          GET a URL, pass on 2xx
    database_probe      SQLAlchemy connect + SELECT 1
    process_list_probe  run a listing command, pass if all required names appear
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import httpx
from sqlalchemy import create_engine, text

from declfix.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_COMMAND: Sequence[str] = ("docker", "network", "ls")

TROUBLESHOOTING_TIPS = (
    "Check if all containers are running: docker ps",
    "Check container logs: docker logs traefik-dev",
    "Verify host entries in /etc/hosts",
    "Try restarting the development environment: ./start-dev.sh",
)


@dataclass(frozen=True)
class ProbeResult:
    name: str
    passed: bool
    detail: str = ""


@dataclass
class SmokeReport:
    results: List[ProbeResult] = field(default_factory=list)

    @property
    def all_passed(self) -> bool:
        return all(r.passed for r in self.results)

    def format(self) -> str:
        lines = ["=== Test Results Summary ==="]
        for r in self.results:
            status = "PASSED" if r.passed else "FAILED"
            line = f"{r.name}: {status}"
            if r.detail:
                line += f" ({r.detail})"
            lines.append(line)

        lines.append("")
        lines.append("Overall: " + ("ALL TESTS PASSED" if self.all_passed else "SOME TESTS FAILED"))
        if not self.all_passed:
            lines.append("")
            lines.append("Troubleshooting tips:")
            lines.extend(f"{i}. {tip}" for i, tip in enumerate(TROUBLESHOOTING_TIPS, start=1))
        return "\n".join(lines)


# =============================================================================
# PROBES
# =============================================================================

async def http_probe(
    name: str,
    url: str,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProbeResult:
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning("[smoke] %s: GET %s failed: %s", name, url, e)
        return ProbeResult(name, False, str(e))

    if 200 <= resp.status_code < 300:
        return ProbeResult(name, True, f"HTTP {resp.status_code}")
    return ProbeResult(name, False, f"HTTP {resp.status_code}")


def database_probe(name: str, url: str, skip: bool = False) -> ProbeResult:
    if skip or not url:
        return ProbeResult(name, True, "skipped")

    engine = None
    try:
        engine = create_engine(url)
        with engine.connect() as conn:
            value = conn.execute(text("SELECT 1")).scalar()
        return ProbeResult(name, value == 1, f"ping returned {value}")
    except Exception as e:  # driver errors vary by backend
        logger.warning("[smoke] %s: database ping failed: %s", name, e)
        return ProbeResult(name, False, str(e))
    finally:
        if engine is not None:
            engine.dispose()


def process_list_probe(
    name: str,
    required: Sequence[str],
    command: Sequence[str] = DEFAULT_NETWORK_COMMAND,
    timeout: float = 10.0,
) -> ProbeResult:
    try:
        proc = subprocess.run(
            list(command), capture_output=True, text=True, timeout=timeout, check=True
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("[smoke] %s: %s failed: %s", name, " ".join(command), e)
        return ProbeResult(name, False, str(e))

    missing = [r for r in required if r not in proc.stdout]
    if missing:
        return ProbeResult(name, False, "not found: " + ", ".join(missing))
    return ProbeResult(name, True)


# =============================================================================
# HARNESS
# =============================================================================

async def run_smoke(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> SmokeReport:
    """Run the default probe set and aggregate the results."""
    timeout = settings.http_timeout_s
    results = [
        await http_probe("nodeApi", f"{settings.node_app_url}/health", timeout, transport),
        await http_probe("traefikDashboard", f"{settings.traefik_url}/api/version", timeout, transport),
        await asyncio.to_thread(
            database_probe, "databaseConnection", settings.database_url, settings.skip_db_test
        ),
        await asyncio.to_thread(
            process_list_probe, "dockerNetworks", settings.required_networks
        ),
    ]
    report = SmokeReport(results)
    logger.info(
        "[smoke] %d/%d probe(s) passed", sum(1 for r in results if r.passed), len(results)
    )
    return report
