# File: backend/app/services/provisioning.py
# Version: v0.1.0
"""
Site provisioning (service layer).

Turns a form submission into the flat config mapping the provisioning workflow
expects and fires a single workflow_dispatch. Nothing is persisted: the
dispatch returns no run id, and the status stream later finds the run by
correlation window (see core/workflow/resolver.py).
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

from backend.app.core.cloudflare import is_valid_subdomain
from backend.app.core.config import Settings
from backend.app.core.github.client import GitHubActionsClient, encode_config_input
from backend.app.services.template_catalog import get_template

logger = logging.getLogger(__name__)

ConfigValue = Union[str, bool]


class ProvisionError(Exception):
    """A submission was rejected, locally (400) or by GitHub (upstream status)."""

    def __init__(self, error: str, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code


@dataclass
class ProvisionResult:
    subdomain: str
    deploy_url: str
    status_url: str


def generate_subdomain() -> str:
    return uuid.uuid4().hex[:8]


def _coerce(value: Any) -> ConfigValue:
    if isinstance(value, bool):
        return value
    text = str(value)
    if text == "true":
        return True
    if text == "false":
        return False
    return text


def build_site_config(values: Mapping[str, Any]) -> Dict[str, ConfigValue]:
    """Flatten submitted values into the workflow config.

    `template` is dropped (it selects the template, it is not config), None
    values are skipped and "true"/"false" strings become booleans.
    """
    config: Dict[str, ConfigValue] = {}
    for key, value in values.items():
        if key == "template" or value is None:
            continue
        config[key] = _coerce(value)
    return config


def validate_site_config(config: Mapping[str, ConfigValue], template_id: Any) -> None:
    if template_id is not None and get_template(str(template_id)) is None:
        raise ProvisionError("template", f"Unknown template: {template_id}")
    if not config.get("title"):
        raise ProvisionError("title", "Please enter a site title.")
    if not config.get("topic"):
        raise ProvisionError("topic", "Please enter a documentation topic.")
    subdomain = config.get("subdomain")
    if subdomain and not is_valid_subdomain(str(subdomain)):
        raise ProvisionError(
            "subdomain",
            "Invalid subdomain: use lowercase letters, digits and hyphens only.",
        )


async def provision_site(
    client: GitHubActionsClient,
    cfg: Settings,
    values: Mapping[str, Any],
) -> ProvisionResult:
    """Validate, dispatch, and return where the site will live.

    Raises
    ------
    ProvisionError
        On invalid input, or when GitHub rejects the dispatch (carries its status).
    """
    config = build_site_config(values)
    validate_site_config(config, values.get("template"))

    if not config.get("subdomain"):
        config["subdomain"] = generate_subdomain()
    subdomain = str(config["subdomain"])

    result = await client.dispatch_workflow(
        cfg.WORKFLOW_ID, encode_config_input(config), ref=cfg.WORKFLOW_REF
    )
    if not result.success:
        raise ProvisionError("api", result.error or "Workflow dispatch failed", status_code=result.status or 502)

    logger.info("Provisioning requested for %s (template=%s)", subdomain, values.get("template"))
    return ProvisionResult(
        subdomain=subdomain,
        deploy_url=cfg.deploy_url(subdomain),
        status_url=f"{cfg.API_PREFIX}/workflow-status/{subdomain}",
    )
