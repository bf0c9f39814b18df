# File: backend/app/schemas/templates.py
# Version: v0.1.0
"""
Pydantic schemas for site templates and their configuration forms.
"""
from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class Template(BaseModel):
    """A static-site-generator template a site can be built from."""
    id: str
    name: str
    framework: str
    description: str
    preview: str
    schemaUrl: str


class FieldOption(BaseModel):
    value: str
    label: str


class FieldValidation(BaseModel):
    pattern: str
    message: str


class SchemaField(BaseModel):
    """One form field declared by a template's config.schema.yaml."""
    name: str
    type: str
    label: str
    description: Optional[str] = None
    required: Optional[bool] = None
    default: Optional[Union[bool, str]] = None
    placeholder: Optional[str] = None
    options: Optional[List[FieldOption]] = None
    validation: Optional[FieldValidation] = None


class TemplateDetail(BaseModel):
    template: Template
    fields: List[SchemaField] = Field(default_factory=list)
