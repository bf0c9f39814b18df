# File: backend/app/api/v1/api.py
# Version: v0.1.0
"""
v1 API aggregator.

Routers included under /api:
- health
- sites (provision + deployed listing)
- workflow_status (SSE stream + pull endpoint)
- subdomains (Cloudflare availability check)
- templates (catalogue + form schema)
"""
from __future__ import annotations

from fastapi import APIRouter

from . import health as health_router
from . import sites as sites_router
from . import subdomains as subdomains_router
from . import templates as templates_router
from . import workflow_status as workflow_status_router

api_router = APIRouter()
api_router.include_router(health_router.router)
api_router.include_router(sites_router.router)
api_router.include_router(workflow_status_router.router)
api_router.include_router(subdomains_router.router)
api_router.include_router(templates_router.router)
