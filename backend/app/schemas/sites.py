# File: backend/app/schemas/sites.py
# Version: v0.1.0
"""
Pydantic schemas for site provisioning and the deployed-sites listing.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict


class ProvisionRequest(BaseModel):
    """Form submission: known fields plus any template-specific flat fields."""
    model_config = ConfigDict(extra="allow")

    template: Optional[str] = None
    title: Optional[Union[str, bool]] = None
    topic: Optional[Union[str, bool]] = None
    subdomain: Optional[str] = None


class ProvisionResponse(BaseModel):
    success: bool = True
    subdomain: str
    deployUrl: str
    statusUrl: str


class ProvisionErrorResponse(BaseModel):
    error: str
    message: str


class DeployedSite(BaseModel):
    subdomain: str
    url: str
    repoName: str
    repoUrl: str
    createdAt: datetime
    template: str


class DeployedSiteList(BaseModel):
    items: List[DeployedSite]
    total: int


class SubdomainAvailability(BaseModel):
    available: bool
    subdomain: Optional[str] = None
    fullDomain: Optional[str] = None
    error: Optional[str] = None
