# File: backend/app/api/v1/templates.py
# Version: v0.1.0
"""
Templates API:
- GET /templates               -> the template catalogue
- GET /templates/{template_id} -> template plus its configuration form fields
"""
from __future__ import annotations

from typing import List

import httpx
from fastapi import APIRouter, Depends, HTTPException

from backend.app.api.v1.deps import get_http_client
from backend.app.schemas.templates import Template, TemplateDetail
from backend.app.services.template_catalog import (
    TEMPLATES,
    SchemaLoadError,
    get_template,
    load_schema_fields,
)

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=List[Template])
def list_templates():
    return TEMPLATES


@router.get("/{template_id}", response_model=TemplateDetail)
async def read_template(template_id: str, http: httpx.AsyncClient = Depends(get_http_client)):
    template = get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    try:
        fields = await load_schema_fields(template, http)
    except SchemaLoadError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return TemplateDetail(template=template, fields=fields)
