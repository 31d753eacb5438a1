# FILE: declfix/tools/kv_store.py
"""
KV config store client and reverse-proxy config seeding.

Talks to the Consul HTTP API:
    GET    /v1/kv/<key>[?recurse=true]  -> [{"Key": ..., "Value": "<base64>"}], 404 if absent
    PUT    /v1/kv/<key>                 -> true/false
    DELETE /v1/kv/<key>                 -> true/false
    GET    /v1/status/leader | peers

Values are stored as JSON text; Consul hands them back base64-encoded.
Every transport or HTTP failure is raised as KVStoreError.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from declfix.errors import KVStoreError

logger = logging.getLogger(__name__)


# =============================================================================
# CLIENT
# =============================================================================

def decode_kv_value(raw: Optional[str]) -> Any:
    """Decode one Consul `Value` field (base64 JSON). Non-JSON text is returned as-is."""
    if raw is None:
        return None
    text = base64.b64decode(raw).decode("utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class ConsulKVClient:
    """Async client for the Consul KV and status endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "ConsulKVClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise KVStoreError(f"{method} {self.base_url}{path} failed: {e}") from e

        if resp.status_code == 404 and method == "GET":
            return resp
        if resp.status_code >= 400:
            raise KVStoreError(
                f"{method} {self.base_url}{path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp

    # ── status ───────────────────────────────────────────────────────

    async def leader(self) -> str:
        resp = await self._request("GET", "/v1/status/leader")
        return resp.json() or ""

    async def peers(self) -> List[str]:
        resp = await self._request("GET", "/v1/status/peers")
        return list(resp.json() or [])

    # ── kv ───────────────────────────────────────────────────────────

    async def get(self, key: str) -> Any:
        """Decoded value for `key`, or None when the key does not exist."""
        resp = await self._request("GET", f"/v1/kv/{key}")
        if resp.status_code == 404:
            return None
        entries = resp.json() or []
        return decode_kv_value(entries[0].get("Value")) if entries else None

    async def get_tree(self, prefix: str) -> Dict[str, Any]:
        """All keys under `prefix`, decoded. Empty dict when nothing is stored."""
        resp = await self._request("GET", f"/v1/kv/{prefix}", params={"recurse": "true"})
        if resp.status_code == 404:
            return {}
        return {e["Key"]: decode_kv_value(e.get("Value")) for e in (resp.json() or [])}

    async def put(self, key: str, value: Any) -> bool:
        resp = await self._request("PUT", f"/v1/kv/{key}", content=json.dumps(value))
        ok = resp.json() is True
        if not ok:
            raise KVStoreError(f"PUT {key} was not acknowledged")
        logger.debug("[kv] PUT %s", key)
        return ok

    async def delete(self, key: str) -> bool:
        resp = await self._request("DELETE", f"/v1/kv/{key}")
        logger.debug("[kv] DELETE %s", key)
        return resp.json() is True


# =============================================================================
# SEEDING
# =============================================================================

def default_seed(prefix: str = "traefik") -> Dict[str, Any]:
    """Keys (in write order) and values of the reverse-proxy base configuration."""
    return {
        f"{prefix}/http": {"routers": {}, "services": {}, "middlewares": {}},
        f"{prefix}/tcp": {"routers": {}, "services": {}},
        f"{prefix}/tls": {
            "certificates": {},
            "options": {"default": {"minVersion": "VersionTLS12", "sniStrict": True}},
        },
        f"{prefix}/entrypoints": {
            "web": {
                "address": ":80",
                "http": {"redirections": {"entryPoint": {"to": "websecure", "scheme": "https"}}},
            },
            "websecure": {"address": ":443"},
            "mongodb": {"address": ":27017"},
            "traefik": {"address": ":8081"},
        },
        f"{prefix}/providers": {
            "consulcatalog": {"prefix": prefix, "exposedByDefault": False},
            "docker": {
                "endpoint": "unix:///var/run/docker.sock",
                "exposedByDefault": False,
                "watch": True,
            },
            "file": {"directory": "/etc/traefik/dynamic", "watch": True},
        },
    }


async def seed_config(client: ConsulKVClient, prefix: str = "traefik", on_progress=None) -> List[str]:
    """
    Check connectivity, then write every key of `default_seed(prefix)`.

    Returns the keys written. Stops at the first failure (KVStoreError).
    """
    _emit = on_progress or (lambda msg: None)

    leader = await client.leader()
    peers = await client.peers()
    _emit(f"Consul leader: {leader or 'none'}")
    _emit(f"Consul peers: {', '.join(peers) if peers else 'none'}")

    written: List[str] = []
    for key, value in default_seed(prefix).items():
        await client.put(key, value)
        written.append(key)
        _emit(f"Created/updated {key}")

    logger.info("[kv] Seeded %d key(s) under %s/", len(written), prefix)
    return written
