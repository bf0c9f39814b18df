# File: backend/app/api/v1/subdomains.py
# Version: v0.1.0
"""
Subdomain availability check backed by Cloudflare DNS.

GET /check-subdomain/{subdomain}
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from backend.app.api.v1.deps import get_cloudflare_client
from backend.app.core.cloudflare import CloudflareDNSClient, is_valid_subdomain
from backend.app.schemas.sites import SubdomainAvailability

router = APIRouter(prefix="/check-subdomain", tags=["subdomains"])


@router.get("/{subdomain}", response_model=SubdomainAvailability, response_model_exclude_none=True)
async def check_subdomain(
    subdomain: str,
    dns: CloudflareDNSClient = Depends(get_cloudflare_client),
):
    if not is_valid_subdomain(subdomain):
        return SubdomainAvailability(
            available=False,
            error="Invalid subdomain: use lowercase letters, digits and hyphens only.",
        )

    result = await dns.check_subdomain_exists(subdomain)
    if result.error:
        raise HTTPException(status_code=500, detail=result.error)

    return SubdomainAvailability(
        available=not result.exists,
        subdomain=subdomain,
        fullDomain=dns.full_domain(subdomain),
    )
