# File: backend/app/services/template_catalog.py
# Version: v0.1.0
"""
Template catalogue and form-schema loading.

Each template repository publishes a `config.schema.yaml` whose `fields` list
drives the configuration form. The schema is fetched on demand (no caching)
and parsed with `yaml.safe_load`.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import httpx
import yaml
from pydantic import ValidationError

from backend.app.schemas.templates import SchemaField, Template

logger = logging.getLogger(__name__)

TEMPLATES: List[Template] = [
    Template(
        id="replica-template-00",
        name="Starlight",
        framework="Astro",
        description="Documentation site built on Starlight",
        preview="https://replica-template-00.xiyo.dev",
        schemaUrl="https://raw.githubusercontent.com/XIYO/replica-template-00/main/config.schema.yaml",
    ),
    Template(
        id="replica-template-01",
        name="VitePress",
        framework="Vue",
        description="Documentation site built on VitePress",
        preview="https://replica-template-01.xiyo.dev",
        schemaUrl="https://raw.githubusercontent.com/XIYO/replica-template-01/main/config.schema.yaml",
    ),
    Template(
        id="replica-template-02",
        name="Docusaurus",
        framework="React",
        description="Documentation site built on Docusaurus",
        preview="https://replica-template-02.xiyo.dev",
        schemaUrl="https://raw.githubusercontent.com/XIYO/replica-template-02/main/config.schema.yaml",
    ),
]


class SchemaLoadError(RuntimeError):
    """The template's form schema could not be fetched or parsed."""


def get_template(template_id: str) -> Optional[Template]:
    return next((t for t in TEMPLATES if t.id == template_id), None)


def parse_schema_fields(text: str) -> List[SchemaField]:
    """Parse a config.schema.yaml document into its form fields."""
    try:
        doc = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise SchemaLoadError(f"Invalid schema YAML: {exc}") from exc
    if not isinstance(doc, dict):
        raise SchemaLoadError("Schema document must be a mapping")
    try:
        return [SchemaField.model_validate(f) for f in doc.get("fields") or []]
    except ValidationError as exc:
        raise SchemaLoadError(f"Invalid schema fields: {exc}") from exc


async def load_schema_fields(template: Template, http: httpx.AsyncClient) -> List[SchemaField]:
    try:
        resp = await http.get(template.schemaUrl)
    except httpx.HTTPError as exc:
        logger.warning("Fetching schema for %s failed: %s", template.id, exc)
        raise SchemaLoadError("Could not load the template schema") from exc
    if not resp.is_success:
        logger.warning("Schema for %s returned HTTP %d", template.id, resp.status_code)
        raise SchemaLoadError("Could not load the template schema")
    return parse_schema_fields(resp.text)
