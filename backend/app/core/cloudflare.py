# File: backend/app/core/cloudflare.py
# Version: v0.1.0
"""
Cloudflare DNS lookup used to tell whether a subdomain is already taken.

A single filtered query: GET /zones/{zone}/dns_records?name=<sub>.<base>.
Errors (HTTP, API-level `success: false`, transport) are returned in
`SubdomainCheck.error` rather than raised.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

SUBDOMAIN_RE = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")


def is_valid_subdomain(value: str) -> bool:
    return bool(value) and SUBDOMAIN_RE.fullmatch(value) is not None


@dataclass
class SubdomainCheck:
    exists: bool
    error: Optional[str] = None


def _first_error(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors") or []
    if errors and isinstance(errors[0], dict):
        return errors[0].get("message")
    return None


class CloudflareDNSClient:
    def __init__(
        self,
        api_key: str,
        email: str,
        zone_id: str,
        *,
        base_domain: str,
        api_base: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 10.0,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.zone_id = zone_id
        self.base_domain = base_domain
        self._api_key = api_key
        self._email = email
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "X-Auth-Key": self._api_key,
            "X-Auth-Email": self._email,
            "Content-Type": "application/json",
        }

    def full_domain(self, subdomain: str) -> str:
        return f"{subdomain}.{self.base_domain}"

    async def check_subdomain_exists(self, subdomain: str) -> SubdomainCheck:
        url = f"{self._api_base}/zones/{self.zone_id}/dns_records"
        try:
            resp = await self._http.get(
                url,
                headers=self._headers(),
                params={"name": self.full_domain(subdomain)},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("Cloudflare lookup for %s failed: %s", subdomain, exc)
            return SubdomainCheck(exists=False, error=str(exc) or "Network error")

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if not resp.is_success:
            return SubdomainCheck(exists=False, error=_first_error(payload) or f"HTTP {resp.status_code}")
        if not isinstance(payload, dict) or not payload.get("success"):
            return SubdomainCheck(exists=False, error=_first_error(payload) or "Unknown error")

        return SubdomainCheck(exists=len(payload.get("result") or []) > 0)
