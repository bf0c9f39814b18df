# File: backend/app/api/v1/health.py
# Version: v0.1.0
"""
Healthcheck router.

Reports liveness plus which upstream integrations have credentials configured,
without touching the upstream APIs.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.app.api.v1.deps import get_settings
from backend.app.core.config import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health(cfg: Settings = Depends(get_settings)) -> dict[str, object]:
    return {
        "status": "ok",
        "version": cfg.APP_VERSION,
        "github": bool(cfg.GITHUB_TOKEN),
        "cloudflare": bool(cfg.CLOUDFLARE_API_KEY and cfg.CLOUDFLARE_EMAIL and cfg.CLOUDFLARE_ZONE_ID),
    }
