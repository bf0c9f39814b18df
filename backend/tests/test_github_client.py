# File: backend/tests/test_github_client.py
# Version: v0.1.1
"""
GitHubActionsClient against an in-memory httpx.MockTransport.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from backend.app.core.github.client import GitHubActionsClient, encode_config_input
from backend.app.core.workflow.resolver import MatchKind, RunResolver

pytestmark = pytest.mark.asyncio

RUN_PAYLOAD = {
    "id": 42,
    "name": "provision",
    "status": "in_progress",
    "conclusion": None,
    "html_url": "https://github.com/xiyo/replica-builder/actions/runs/42",
    "created_at": "2026-10-16T10:00:00Z",
    "updated_at": "2026-10-16T10:00:30Z",
    "run_started_at": "2026-10-16T10:00:05Z",
    "head_branch": "main",
    "event": "workflow_dispatch",
}


def client_for(handler) -> GitHubActionsClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubActionsClient("tok", "xiyo", "replica-builder", http=http)


async def test_dispatch_success_posts_ref_and_inputs():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    gh = client_for(handler)
    result = await gh.dispatch_workflow("provision.yml", encode_config_input({"title": "T", "dark": True}), ref="main")

    assert result.success
    assert seen["url"].endswith("/repos/xiyo/replica-builder/actions/workflows/provision.yml/dispatches")
    assert seen["auth"] == "Bearer tok"
    assert seen["body"]["ref"] == "main"
    assert json.loads(seen["body"]["inputs"]["config"]) == {"title": "T", "dark": True}


async def test_dispatch_rejection_carries_status_and_message():
    gh = client_for(lambda r: httpx.Response(422, json={"message": "Unexpected inputs provided"}))
    result = await gh.dispatch_workflow("provision.yml", {"config": "{}"})
    assert not result.success
    assert result.status == 422
    assert result.error == "Unexpected inputs provided"


async def test_dispatch_transport_error_becomes_502():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    result = await client_for(handler).dispatch_workflow("provision.yml", {"config": "{}"})
    assert not result.success
    assert result.status == 502


async def test_list_workflow_runs_parses_and_limits_page():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["per_page"] = request.url.params.get("per_page")
        return httpx.Response(200, json={"total_count": 1, "workflow_runs": [RUN_PAYLOAD]})

    runs = await client_for(handler).list_workflow_runs("provision.yml", per_page=10)
    assert seen["per_page"] == "10"
    assert [r.id for r in runs] == [42]
    assert set(runs[0].model_dump(mode="json")) == {
        "id", "name", "status", "conclusion", "html_url", "created_at", "updated_at", "run_started_at",
    }


async def test_list_workflow_runs_failure_is_empty():
    runs = await client_for(lambda r: httpx.Response(500)).list_workflow_runs("provision.yml")
    assert runs == []


async def test_get_run_not_found_is_none():
    assert await client_for(lambda r: httpx.Response(404, json={"message": "Not Found"})).get_run(1) is None


async def test_get_run_transport_error_is_none():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    assert await client_for(handler).get_run(1) is None


async def test_get_jobs_parses_steps():
    payload = {
        "total_count": 1,
        "jobs": [
            {
                "id": 9,
                "name": "deploy",
                "status": "completed",
                "conclusion": "success",
                "started_at": "2026-10-16T10:00:05Z",
                "completed_at": "2026-10-16T10:02:00Z",
                "steps": [
                    {"name": "Build", "status": "completed", "conclusion": "success", "number": 1,
                     "started_at": "2026-10-16T10:00:05Z", "completed_at": "2026-10-16T10:01:00Z"},
                ],
            }
        ],
    }
    jobs = await client_for(lambda r: httpx.Response(200, json=payload)).get_jobs(42)
    assert jobs[0].steps[0].name == "Build"
    assert (await client_for(lambda r: httpx.Response(502)).get_jobs(42)) == []


async def test_list_owner_repos_failure_is_none():
    assert await client_for(lambda r: httpx.Response(401)).list_owner_repos() is None


async def test_list_workflow_runs_skips_only_malformed_entries():
    now = datetime.now(timezone.utc).isoformat()
    unusual = dict(RUN_PAYLOAD, id=2, status="action_required", created_at=now, updated_at=now)
    broken = {"id": 3, "status": "queued"}  # no html_url / timestamps
    queued = dict(RUN_PAYLOAD, id=1, status="queued", created_at=now, updated_at=now)
    payload = {"total_count": 3, "workflow_runs": [queued, broken, unusual]}

    gh = client_for(lambda r: httpx.Response(200, json=payload))
    runs = await gh.list_workflow_runs("provision.yml")
    assert [(r.id, r.status) for r in runs] == [(1, "queued"), (2, "action_required")]

    resolution = await RunResolver(gh, "provision.yml", max_attempts=1, interval_s=0.0).resolve_once()
    assert resolution.run is not None and resolution.run.id == 1
    assert resolution.match is MatchKind.WINDOW


async def test_get_run_with_unlisted_status_parses():
    gh = client_for(lambda r: httpx.Response(200, json=dict(RUN_PAYLOAD, status="action_required")))
    run = await gh.get_run(42)
    assert run is not None
    assert run.status == "action_required"
    assert not run.is_completed


async def test_get_jobs_keeps_valid_jobs():
    good = {"id": 9, "name": "deploy", "status": "in_progress", "steps": []}
    odd = {"id": 10, "name": "gate", "status": "waiting_for_approval", "steps": []}
    broken = {"id": 11, "status": "queued"}  # no name
    jobs = await client_for(lambda r: httpx.Response(200, json={"jobs": [good, broken, odd]})).get_jobs(42)
    assert [j.id for j in jobs] == [9, 10]
