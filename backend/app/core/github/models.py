# File: backend/app/core/github/models.py
# Version: v0.1.1
"""
Pydantic models mirroring the GitHub Actions REST payloads we consume.

Only the fields the status stream exposes are declared; unknown upstream keys
are ignored on parse, so `model_dump(mode="json")` yields exactly the wire
shape clients rely on.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

# Known statuses: queued, in_progress, completed, waiting, requested, pending.
# Status and conclusion are left open-ended: GitHub adds values (e.g.
# action_required, startup_failure) and an unknown one must not make a run
# unparseable. ACTIVE_STATUSES and `is_completed` carry the semantics.
SUCCESS = "success"

ACTIVE_STATUSES = frozenset({"in_progress", "queued"})


class WorkflowStep(BaseModel):
    name: str
    status: str
    conclusion: Optional[str] = None
    number: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class WorkflowJob(BaseModel):
    id: int
    name: str
    status: str
    conclusion: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    steps: List[WorkflowStep] = Field(default_factory=list)


class WorkflowRun(BaseModel):
    """A single execution of a workflow (a `RunRecord`)."""
    id: int
    name: Optional[str] = None
    status: str
    conclusion: Optional[str] = None
    html_url: str
    created_at: datetime
    updated_at: datetime
    run_started_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def succeeded(self) -> bool:
        return self.is_completed and self.conclusion == SUCCESS


class DispatchResult(BaseModel):
    """Outcome of a workflow_dispatch call; the API never returns a run id."""
    success: bool
    error: Optional[str] = None
    status: Optional[int] = None


class Repository(BaseModel):
    name: str
    html_url: str
    created_at: datetime


class RepositoryVariable(BaseModel):
    name: str
    value: str
