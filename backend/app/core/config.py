# File: backend/app/core/config.py
# Version: v0.1.0
"""
Centralized application settings using Pydantic Settings.

Controls:
- App metadata and API prefix
- CORS origins
- GitHub Actions dispatch target (owner/repo/workflow/ref) and access token
- Run resolution heuristic knobs (window, page size, retry budget)
- Status polling cadence and optional escalation / session caps
- Cloudflare DNS credentials for subdomain availability checks
"""
from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- App ---
    API_PREFIX: str = "/api"
    APP_NAME: str = "Replica Builder API"
    APP_VERSION: str = "0.1.0"

    # --- CORS ---
    CORS_ORIGINS: str = "*"  # comma-separated or '*' for all

    # --- GitHub Actions ---
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_BASE: str = "https://api.github.com"
    REPO_OWNER: str = "xiyo"
    REPO_NAME: str = "replica-builder"
    WORKFLOW_ID: str = "provision.yml"
    WORKFLOW_REF: str = "main"
    HTTP_TIMEOUT_S: float = 10.0

    # --- Sites ---
    BASE_DOMAIN: str = "xiyo.dev"
    SITE_REPO_PATTERN: str = r"^replica-template-\d{2}-\d{14}$"

    # --- Run resolution ---
    RESOLVE_PER_PAGE: int = 10
    RESOLVE_WINDOW_S: float = 300.0
    RESOLVE_MAX_ATTEMPTS: int = 30
    RESOLVE_INTERVAL_S: float = 1.0

    # --- Status polling ---
    POLL_INTERVAL_S: float = 3.0
    POLL_MAX_CONSECUTIVE_FAILURES: int = 0  # 0 disables escalation
    SESSION_MAX_DURATION_S: float = 0.0     # 0 disables the wall-clock cap
    POLL_TRACKER_TTL_S: float = 3600.0

    # --- Cloudflare ---
    CLOUDFLARE_API_KEY: Optional[str] = None
    CLOUDFLARE_EMAIL: Optional[str] = None
    CLOUDFLARE_ZONE_ID: Optional[str] = None
    CLOUDFLARE_API_BASE: str = "https://api.cloudflare.com/client/v4"

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "info"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins_list(self) -> list[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

    def deploy_url(self, subdomain: str) -> str:
        """Public URL a successfully provisioned site is served from."""
        return f"https://{subdomain}.{self.BASE_DOMAIN}"


settings = Settings()
