# File: backend/app/services/site_catalog.py
# Version: v0.1.0
"""
Deployed-site discovery.

Every provisioned site lives in its own repository named
`replica-template-NN-YYYYMMDDhhmmss`, carrying a `SITE_SUBDOMAIN` Actions
variable. Variables are looked up concurrently; a repository whose lookup
fails is skipped.
"""
from __future__ import annotations

import asyncio
import re
from typing import List, Optional

from backend.app.core.config import Settings
from backend.app.core.github.client import GitHubActionsClient
from backend.app.core.github.models import Repository
from backend.app.schemas.sites import DeployedSite

SUBDOMAIN_VARIABLE = "SITE_SUBDOMAIN"
_TEMPLATE_NUM_RE = re.compile(r"replica-template-(\d{2})")


class SiteListingError(RuntimeError):
    """The repository listing itself could not be fetched."""


def template_label(repo_name: str) -> str:
    m = _TEMPLATE_NUM_RE.search(repo_name)
    return f"template-{m.group(1) if m else '00'}"


async def _site_for(client: GitHubActionsClient, repo: Repository, cfg: Settings) -> Optional[DeployedSite]:
    variables = await client.list_repo_variables(repo.name)
    if not variables:
        return None
    subdomain = next((v.value for v in variables if v.name == SUBDOMAIN_VARIABLE), None)
    if not subdomain:
        return None
    return DeployedSite(
        subdomain=subdomain,
        url=cfg.deploy_url(subdomain),
        repoName=repo.name,
        repoUrl=repo.html_url,
        createdAt=repo.created_at,
        template=template_label(repo.name),
    )


async def list_deployed_sites(client: GitHubActionsClient, cfg: Settings) -> List[DeployedSite]:
    repos = await client.list_owner_repos(per_page=100)
    if repos is None:
        raise SiteListingError("Could not list GitHub repositories")

    pattern = re.compile(cfg.SITE_REPO_PATTERN)
    candidates = [r for r in repos if pattern.match(r.name)]
    found = await asyncio.gather(*(_site_for(client, r, cfg) for r in candidates))

    sites = [s for s in found if s is not None]
    sites.sort(key=lambda s: s.createdAt, reverse=True)
    return sites
