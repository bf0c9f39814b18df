# File: backend/app/api/v1/workflow_status.py
# Version: v0.1.0
"""
Workflow status API:
- GET /workflow-status/{subdomain}      -> SSE stream of status events
- GET /workflow-status/{subdomain}/poll -> one pull-mode observation (JSON)

Both endpoints drive the same state machine (core/workflow). The SSE stream
owns one StatusSession per connection; when the client goes away the response
generator is torn down and the session is closed.
"""
from __future__ import annotations

from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Response
from fastapi.responses import StreamingResponse

from backend.app.api.v1.deps import get_github_client, get_settings, get_status_tracker
from backend.app.core.config import Settings
from backend.app.core.github.client import GitHubActionsClient
from backend.app.core.workflow.session import StatusSession
from backend.app.core.workflow.tracker import WorkflowStatusTracker

router = APIRouter(prefix="/workflow-status", tags=["workflow-status"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _sse(data: str) -> bytes:
    return f"data: {data}\n\n".encode("utf-8")


@router.get("/{subdomain}")
async def stream_status(
    subdomain: str,
    client: GitHubActionsClient = Depends(get_github_client),
    cfg: Settings = Depends(get_settings),
):
    session = StatusSession.from_settings(subdomain, client, cfg)

    async def gen() -> AsyncGenerator[bytes, None]:
        session.start()
        try:
            async for event in session.events():
                yield _sse(event.to_json())
        finally:
            session.close()

    return StreamingResponse(gen(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/{subdomain}/poll")
async def poll_status(
    subdomain: str,
    response: Response,
    client: GitHubActionsClient = Depends(get_github_client),
    cfg: Settings = Depends(get_settings),
    tracker: WorkflowStatusTracker = Depends(get_status_tracker),
):
    result = await tracker.poll_with_settings(subdomain, client, cfg)
    response.headers["Cache-Control"] = "no-store"
    return result.to_wire()
