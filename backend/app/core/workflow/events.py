# File: backend/app/core/workflow/events.py
# Version: v0.1.0
"""
Status events and the observation -> event classification.

Both transports (the SSE session and the pull tracker) build their payloads
here so they describe the same state machine.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from backend.app.core.github.models import WorkflowJob, WorkflowRun
from backend.app.core.workflow.fetcher import RunObservation

EventType = Literal["searching", "found", "progress", "completed", "error"]

MSG_SEARCHING = "Searching for the workflow run..."
MSG_FOUND = "Workflow run found."
MSG_NOT_FOUND = "Could not find the workflow run."
MSG_FETCH_FAILED = "Could not fetch the workflow run status."
MSG_TOO_MANY_FAILURES = "Gave up after repeated failures to fetch the workflow run status."
MSG_TIMED_OUT = "Stopped watching the workflow run: session time limit reached."
MSG_DEPLOYED = "Deployment completed!"


def failure_message(conclusion: Optional[str]) -> str:
    return f"Deployment failed: {conclusion}"


class StatusEvent(BaseModel):
    type: EventType
    run: Optional[WorkflowRun] = None
    jobs: Optional[List[WorkflowJob]] = None
    message: Optional[str] = None
    deploy_url: Optional[str] = Field(default=None, serialization_alias="deployUrl")
    terminal: bool = Field(default=False, exclude=True)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict: unset top-level keys are omitted, nested nulls kept."""
        out: Dict[str, Any] = {"type": self.type}
        if self.run is not None:
            out["run"] = self.run.model_dump(mode="json")
        if self.jobs is not None:
            out["jobs"] = [j.model_dump(mode="json") for j in self.jobs]
        if self.message is not None:
            out["message"] = self.message
        if self.deploy_url is not None:
            out["deployUrl"] = self.deploy_url
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), ensure_ascii=False)


def searching_event() -> StatusEvent:
    return StatusEvent(type="searching", message=MSG_SEARCHING)


def found_event(run: WorkflowRun) -> StatusEvent:
    return StatusEvent(type="found", run=run, message=MSG_FOUND)


def error_event(message: str, *, terminal: bool) -> StatusEvent:
    return StatusEvent(type="error", message=message, terminal=terminal)


def classify_observation(observation: RunObservation, *, deploy_url: str) -> StatusEvent:
    """Map one fetch result to the event it produces.

    - no run: non-terminal `error` (transient upstream failure)
    - run not completed: `progress`
    - run completed: terminal `completed`; `deploy_url` is attached only on success
    """
    run = observation.run
    if run is None:
        return error_event(MSG_FETCH_FAILED, terminal=False)
    if not run.is_completed:
        return StatusEvent(type="progress", run=run, jobs=observation.jobs)
    if run.succeeded:
        return StatusEvent(
            type="completed", run=run, jobs=observation.jobs,
            deploy_url=deploy_url, message=MSG_DEPLOYED, terminal=True,
        )
    return StatusEvent(
        type="completed", run=run, jobs=observation.jobs,
        message=failure_message(run.conclusion), terminal=True,
    )
