# File: backend/tests/conftest.py
# Version: v0.2.0
"""
Test bootstrap and shared fakes.

- Ensures the project root is on sys.path so 'backend.*' imports work without
  an editable install.
- `FakeGitHub` stands in for GitHubActionsClient: listings and run snapshots are
  scripted per call (the last entry repeats).
- `api` yields a TestClient whose GitHub client, settings and pull tracker are
  overridden with fast, in-memory versions.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[2]  # repo root (../.. from this file)
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.core.config import Settings  # noqa: E402
from backend.app.core.github.models import (  # noqa: E402
    DispatchResult,
    Repository,
    RepositoryVariable,
    WorkflowJob,
    WorkflowRun,
)


def make_run(
    run_id: int = 101,
    *,
    status: str = "queued",
    conclusion: Optional[str] = None,
    age_s: float = 10.0,
) -> WorkflowRun:
    created = datetime.now(timezone.utc) - timedelta(seconds=age_s)
    return WorkflowRun(
        id=run_id,
        name="provision",
        status=status,
        conclusion=conclusion,
        html_url=f"https://github.com/xiyo/replica-builder/actions/runs/{run_id}",
        created_at=created,
        updated_at=created,
        run_started_at=created if status != "queued" else None,
    )


def make_job(job_id: int = 1, *, status: str = "in_progress") -> WorkflowJob:
    return WorkflowJob.model_validate(
        {
            "id": job_id,
            "name": "build",
            "status": status,
            "conclusion": None,
            "started_at": "2026-01-01T00:00:00Z",
            "completed_at": None,
            "steps": [
                {
                    "name": "Checkout",
                    "status": "completed",
                    "conclusion": "success",
                    "number": 1,
                    "started_at": "2026-01-01T00:00:00Z",
                    "completed_at": "2026-01-01T00:00:05Z",
                }
            ],
        }
    )


class FakeGitHub:
    """Scripted stand-in for GitHubActionsClient."""

    def __init__(
        self,
        *,
        listings: Optional[List[List[WorkflowRun]]] = None,
        runs: Optional[List[Optional[WorkflowRun]]] = None,
        jobs: Optional[List[WorkflowJob]] = None,
        dispatch_result: Optional[DispatchResult] = None,
        repos: Optional[List[Repository]] = None,
        variables: Optional[dict] = None,
    ) -> None:
        self.listings = listings or [[]]
        self.runs = runs or [None]
        self.jobs = jobs or []
        self.dispatch_result = dispatch_result or DispatchResult(success=True)
        self.repos = repos
        self.variables = variables or {}
        self.list_calls = 0
        self.get_run_calls = 0
        self.dispatches: List[dict] = []

    async def list_workflow_runs(self, workflow_id: str, *, per_page: int = 10) -> List[WorkflowRun]:
        listing = self.listings[min(self.list_calls, len(self.listings) - 1)]
        self.list_calls += 1
        return list(listing)

    async def get_run(self, run_id: int) -> Optional[WorkflowRun]:
        run = self.runs[min(self.get_run_calls, len(self.runs) - 1)]
        self.get_run_calls += 1
        return run

    async def get_jobs(self, run_id: int) -> List[WorkflowJob]:
        return list(self.jobs)

    async def dispatch_workflow(self, workflow_id: str, inputs, *, ref: str = "main") -> DispatchResult:
        self.dispatches.append({"workflow_id": workflow_id, "inputs": dict(inputs), "ref": ref})
        return self.dispatch_result

    async def list_owner_repos(self, *, per_page: int = 100) -> Optional[List[Repository]]:
        return self.repos

    async def list_repo_variables(self, repo: str) -> Optional[List[RepositoryVariable]]:
        value = self.variables.get(repo)
        if value is None:
            return None
        return [RepositoryVariable(name="SITE_SUBDOMAIN", value=value)]


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        _env_file=None,
        GITHUB_TOKEN="test-token",
        RESOLVE_INTERVAL_S=0.0,
        RESOLVE_MAX_ATTEMPTS=3,
        POLL_INTERVAL_S=0.01,
        BASE_DOMAIN="example.dev",
    )


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def api(fast_settings, fake_github):
    from fastapi.testclient import TestClient

    from backend.app.api.v1 import deps
    from backend.app.core.workflow.tracker import WorkflowStatusTracker
    from backend.app.main import app

    tracker = WorkflowStatusTracker()
    app.dependency_overrides[deps.get_settings] = lambda: fast_settings
    app.dependency_overrides[deps.get_github_client] = lambda: fake_github
    app.dependency_overrides[deps.get_status_tracker] = lambda: tracker
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
