# File: backend/app/api/v1/sites.py
# Version: v0.1.0
"""
Sites API:
- POST /sites -> dispatch the provisioning workflow for a new site
- GET  /sites -> list sites that have been deployed
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse

from backend.app.api.v1.deps import get_github_client, get_settings
from backend.app.core.config import Settings
from backend.app.core.github.client import GitHubActionsClient
from backend.app.schemas.sites import (
    DeployedSiteList,
    ProvisionErrorResponse,
    ProvisionRequest,
    ProvisionResponse,
)
from backend.app.services.provisioning import ProvisionError, provision_site
from backend.app.services.site_catalog import SiteListingError, list_deployed_sites

router = APIRouter(prefix="/sites", tags=["sites"])


@router.post(
    "",
    response_model=ProvisionResponse,
    responses={400: {"model": ProvisionErrorResponse}},
)
async def create_site(
    payload: ProvisionRequest,
    client: GitHubActionsClient = Depends(get_github_client),
    cfg: Settings = Depends(get_settings),
):
    """
    Request a new documentation site.

    The response does not mean the site exists yet: follow `statusUrl` to watch
    the provisioning run until it completes.
    """
    try:
        result = await provision_site(client, cfg, payload.model_dump())
    except ProvisionError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content=ProvisionErrorResponse(error=exc.error, message=exc.message).model_dump(),
        )
    return ProvisionResponse(
        subdomain=result.subdomain,
        deployUrl=result.deploy_url,
        statusUrl=result.status_url,
    )


@router.get("", response_model=DeployedSiteList)
async def get_sites(
    response: Response,
    client: GitHubActionsClient = Depends(get_github_client),
    cfg: Settings = Depends(get_settings),
):
    try:
        sites = await list_deployed_sites(client, cfg)
    except SiteListingError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    response.headers["Cache-Control"] = "no-store"
    return DeployedSiteList(items=sites, total=len(sites))
