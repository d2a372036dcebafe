from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional, Protocol, Tuple

import httpx

from ..normalize import AddressQuery
from ..schema import ProviderResult


class PropertyProvider(Protocol):
    """Address-keyed data source in the property fallback chain.

    Implementations return ``ProviderResult.miss()`` for no coverage,
    missing credentials and transport failures; they do not raise for those.
    """

    name: str

    @property
    def configured(self) -> bool:
        ...

    async def lookup_by_address(self, query: AddressQuery) -> ProviderResult:
        ...


class ClimateProvider(Protocol):
    name: str

    @property
    def configured(self) -> bool:
        ...

    async def lookup_by_zip(self, zip_code: str, state: Optional[str] = None) -> ProviderResult:
        ...


def _as_float(v: object) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    s = str(v).replace(",", "").replace("$", "").strip()
    if not s:
        return None
    m = re.search(r"[-+]?\d*\.?\d+", s)
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None


def _as_int(v: object) -> Optional[int]:
    f = _as_float(v)
    if f is None:
        return None
    return int(round(f))


def _as_str(v: object) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    """First non-empty value among alternative provider field names."""

    for k in keys:
        v = raw.get(k)
        if v is not None and v != "":
            return v
    return None


class HttpProvider:
    """Shared HTTP plumbing: one injected AsyncClient, bounded timeouts.

    ``_get_json`` classifies responses:
    - 2xx with a JSON body -> parsed body
    - 4xx -> None (no record / no coverage, expected)
    - 5xx, transport errors, timeouts, bad JSON -> None plus a warning
    """

    name = "http"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_s: float = 10.0,
        user_agent: str = "home-enrichment/0.1",
    ) -> None:
        self.client = client
        self.timeout_s = float(timeout_s)
        self.user_agent = user_agent
        self.log = logging.getLogger(f"he.providers.{self.name}")

    async def _get_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Optional[Any]:
        _, body = await self._fetch_json(url, params, headers)
        return body

    async def _fetch_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Tuple[Optional[int], Optional[Any]]:
        """Return ``(status, body)``; status is None when no response arrived."""

        req_headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        req_headers.update(headers or {})
        try:
            resp = await self.client.get(
                url,
                params=dict(params or {}),
                headers=req_headers,
                timeout=self.timeout_s,
            )
        except httpx.TimeoutException:
            self.log.warning("%s request timed out after %ss", self.name, self.timeout_s)
            return None, None
        except httpx.HTTPError as exc:
            self.log.warning("%s request failed: %s", self.name, exc.__class__.__name__)
            return None, None

        status = resp.status_code
        if 400 <= status < 500:
            if status in (401, 403):
                self.log.warning("%s rejected credentials (HTTP %s)", self.name, status)
            elif status == 429:
                self.log.warning("%s rate limit exceeded", self.name)
            else:
                self.log.debug("%s has no record (HTTP %s)", self.name, status)
            return status, None
        if not 200 <= status < 300:
            self.log.warning("%s unexpected HTTP %s", self.name, status)
            return status, None
        try:
            return status, resp.json()
        except ValueError:
            self.log.warning("%s returned a body that is not JSON", self.name)
            return status, None
