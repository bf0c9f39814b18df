# File: backend/app/api/v1/deps.py
# Version: v0.1.0
"""
Dependency providers for the v1 routers.

Upstream clients share the app-wide `httpx.AsyncClient` created at startup.
Missing credentials raise ConfigurationError here, before any remote call;
main.py maps it to HTTP 500.
"""
from __future__ import annotations

import httpx
from fastapi import Depends, Request

from backend.app.core.cloudflare import CloudflareDNSClient
from backend.app.core.config import Settings, settings
from backend.app.core.errors import ConfigurationError
from backend.app.core.github.client import GitHubActionsClient
from backend.app.core.workflow.tracker import WorkflowStatusTracker, status_tracker


def get_settings() -> Settings:
    return settings


def get_http_client(request: Request, cfg: Settings = Depends(get_settings)) -> httpx.AsyncClient:
    http = getattr(request.app.state, "http_client", None)
    if http is None:
        http = httpx.AsyncClient(timeout=cfg.HTTP_TIMEOUT_S)
        request.app.state.http_client = http
    return http


def get_github_client(
    cfg: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> GitHubActionsClient:
    if not cfg.GITHUB_TOKEN:
        raise ConfigurationError("GITHUB_TOKEN is not configured.")
    return GitHubActionsClient(
        cfg.GITHUB_TOKEN,
        cfg.REPO_OWNER,
        cfg.REPO_NAME,
        api_base=cfg.GITHUB_API_BASE,
        timeout=cfg.HTTP_TIMEOUT_S,
        http=http,
    )


def get_cloudflare_client(
    cfg: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> CloudflareDNSClient:
    if not (cfg.CLOUDFLARE_API_KEY and cfg.CLOUDFLARE_EMAIL and cfg.CLOUDFLARE_ZONE_ID):
        raise ConfigurationError("Cloudflare credentials are not configured.")
    return CloudflareDNSClient(
        cfg.CLOUDFLARE_API_KEY,
        cfg.CLOUDFLARE_EMAIL,
        cfg.CLOUDFLARE_ZONE_ID,
        base_domain=cfg.BASE_DOMAIN,
        api_base=cfg.CLOUDFLARE_API_BASE,
        timeout=cfg.HTTP_TIMEOUT_S,
        http=http,
    )


def get_status_tracker() -> WorkflowStatusTracker:
    return status_tracker
