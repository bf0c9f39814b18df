# File: backend/app/core/github/client.py
# Version: v0.1.1
"""
Thin async client for the GitHub REST endpoints the builder needs.

- POST /repos/{owner}/{repo}/actions/workflows/{workflow}/dispatches
- GET  /repos/{owner}/{repo}/actions/workflows/{workflow}/runs
- GET  /repos/{owner}/{repo}/actions/runs/{run_id}
- GET  /repos/{owner}/{repo}/actions/runs/{run_id}/jobs
- GET  /users/{owner}/repos
- GET  /repos/{owner}/{repo}/actions/variables

Reads never raise on upstream trouble: a non-2xx response, a transport error or
an unparseable body is logged and reported as `None` (or an empty list), which
callers treat as "temporarily unknown". Dispatch reports failures through
`DispatchResult` instead. No caching: every call hits the API.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from backend.app.core.github.models import (
    DispatchResult,
    Repository,
    RepositoryVariable,
    WorkflowJob,
    WorkflowRun,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

GITHUB_API_BASE = "https://api.github.com"
USER_AGENT = "Replica-Builder"


def _parse_each(model: Type[M], items: Iterable[Any], what: str) -> List[M]:
    """Validate entries one at a time; a malformed entry is skipped, not the listing."""
    parsed: List[M] = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            ident = item.get("id") if isinstance(item, dict) else None
            logger.warning("Skipping unexpected %s entry (id=%s): %s", what, ident, exc)
    return parsed


class GitHubActionsClient:
    """Async GitHub Actions client bound to one owner/repo.

    Pass a shared `httpx.AsyncClient` via `http` to reuse connections across
    requests; otherwise the client owns (and closes) its own.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        *,
        api_base: str = GITHUB_API_BASE,
        timeout: float = 10.0,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "GitHubActionsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ---------- plumbing ----------
    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "User-Agent": USER_AGENT,
        }

    def _url(self, path: str) -> str:
        return f"{self._api_base}{path}"

    async def _get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        try:
            resp = await self._http.get(
                self._url(path), headers=self._headers(), params=params, timeout=self._timeout
            )
        except httpx.HTTPError as exc:
            logger.warning("GitHub GET %s failed: %s", path, exc)
            return None
        if not resp.is_success:
            logger.warning("GitHub GET %s returned HTTP %d", path, resp.status_code)
            return None
        try:
            return resp.json()
        except ValueError:
            logger.warning("GitHub GET %s returned a non-JSON body", path)
            return None

    # ---------- dispatch ----------
    async def dispatch_workflow(
        self,
        workflow_id: str,
        inputs: Mapping[str, str],
        *,
        ref: str = "main",
    ) -> DispatchResult:
        """Start a workflow run on `ref`. Success is HTTP 204; no run id comes back."""
        path = f"/repos/{self.owner}/{self.repo}/actions/workflows/{workflow_id}/dispatches"
        try:
            resp = await self._http.post(
                self._url(path),
                headers=self._headers(),
                json={"ref": ref, "inputs": dict(inputs)},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("Workflow dispatch to %s failed: %s", workflow_id, exc)
            return DispatchResult(success=False, error=f"GitHub request failed: {exc}", status=502)

        if resp.status_code == 204:
            logger.info("Dispatched workflow %s on %s/%s@%s", workflow_id, self.owner, self.repo, ref)
            return DispatchResult(success=True)

        try:
            message = resp.json().get("message") or f"HTTP {resp.status_code}"
        except (ValueError, AttributeError):
            message = f"HTTP {resp.status_code}"
        logger.warning("Workflow dispatch rejected (HTTP %d): %s", resp.status_code, message)
        return DispatchResult(success=False, error=message, status=resp.status_code)

    # ---------- runs ----------
    async def list_workflow_runs(self, workflow_id: str, *, per_page: int = 10) -> List[WorkflowRun]:
        """Most recent runs of a workflow, in upstream order (newest first)."""
        path = f"/repos/{self.owner}/{self.repo}/actions/workflows/{workflow_id}/runs"
        data = await self._get_json(path, params={"per_page": per_page})
        if not isinstance(data, dict):
            return []
        return _parse_each(WorkflowRun, data.get("workflow_runs") or [], "workflow run")

    async def get_run(self, run_id: int) -> Optional[WorkflowRun]:
        data = await self._get_json(f"/repos/{self.owner}/{self.repo}/actions/runs/{run_id}")
        if data is None:
            return None
        try:
            return WorkflowRun.model_validate(data)
        except ValidationError as exc:
            logger.warning("Unexpected workflow run payload for %s: %s", run_id, exc)
            return None

    async def get_jobs(self, run_id: int) -> List[WorkflowJob]:
        data = await self._get_json(f"/repos/{self.owner}/{self.repo}/actions/runs/{run_id}/jobs")
        if not isinstance(data, dict):
            return []
        return _parse_each(WorkflowJob, data.get("jobs") or [], f"job of run {run_id}")

    # ---------- repositories ----------
    async def list_owner_repos(self, *, per_page: int = 100) -> Optional[List[Repository]]:
        """Owner repositories sorted by creation date, or None when the listing fails."""
        data = await self._get_json(
            f"/users/{self.owner}/repos", params={"sort": "created", "per_page": per_page}
        )
        if not isinstance(data, list):
            return None
        return _parse_each(Repository, data, "repository")

    async def list_repo_variables(self, repo: str) -> Optional[List[RepositoryVariable]]:
        data = await self._get_json(f"/repos/{self.owner}/{repo}/actions/variables")
        if not isinstance(data, dict):
            return None
        return _parse_each(RepositoryVariable, data.get("variables") or [], f"variable of {repo}")


def encode_config_input(config: Mapping[str, Any]) -> Dict[str, str]:
    """Workflow inputs are strings; the whole config travels as one JSON input."""
    return {"config": json.dumps(dict(config), ensure_ascii=False)}
