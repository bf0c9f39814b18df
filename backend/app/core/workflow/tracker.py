# File: backend/app/core/workflow/tracker.py
# Version: v0.1.1
"""
Pull-mode counterpart of StatusSession.

The client calls the poll endpoint at its own cadence; each call advances the
same state machine by at most one resolution attempt and one fetch. What the
push session keeps in local variables (resolved run, attempt counter) is kept
here per subdomain.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from backend.app.core.config import Settings, settings
from backend.app.core.github.models import WorkflowJob, WorkflowRun
from backend.app.core.workflow.events import MSG_NOT_FOUND, MSG_SEARCHING, classify_observation
from backend.app.core.workflow.fetcher import RunObservation, StatusFetcher
from backend.app.core.workflow.resolver import RunResolver

logger = logging.getLogger(__name__)

PollStatus = Literal["searching", "progress", "completed", "error"]


class PollResponse(BaseModel):
    status: PollStatus
    run: Optional[WorkflowRun] = None
    jobs: Optional[List[WorkflowJob]] = None
    message: Optional[str] = None
    deploy_url: Optional[str] = Field(default=None, serialization_alias="deployUrl")

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status}
        if self.run is not None:
            out["run"] = self.run.model_dump(mode="json")
        if self.jobs is not None:
            out["jobs"] = [j.model_dump(mode="json") for j in self.jobs]
        if self.message is not None:
            out["message"] = self.message
        if self.deploy_url is not None:
            out["deployUrl"] = self.deploy_url
        return out


@dataclass
class _Tracked:
    created: float
    run_id: Optional[int] = None
    attempts: int = 0


@dataclass
class WorkflowStatusTracker:
    ttl_s: float = 3600.0
    clock: Callable[[], float] = time.monotonic
    _entries: Dict[str, _Tracked] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._entries)

    def forget(self, subdomain: str) -> None:
        self._entries.pop(subdomain, None)

    def prune(self) -> int:
        now = self.clock()
        stale = [k for k, v in self._entries.items() if now - v.created > self.ttl_s]
        for key in stale:
            del self._entries[key]
        return len(stale)

    async def poll(
        self,
        subdomain: str,
        *,
        resolver: RunResolver,
        fetcher: StatusFetcher,
        deploy_url: str,
    ) -> PollResponse:
        self.prune()
        entry = self._entries.get(subdomain)
        if entry is None:
            entry = self._entries[subdomain] = _Tracked(created=self.clock())

        if entry.run_id is None:
            entry.attempts += 1
            resolution = await resolver.resolve_once()
            if resolution.run is None:
                if entry.attempts >= resolver.max_attempts:
                    logger.info("Pull tracker gave up on %s after %d polls", subdomain, entry.attempts)
                    self.forget(subdomain)
                    return PollResponse(status="error", message=MSG_NOT_FOUND)
                return PollResponse(status="searching", message=MSG_SEARCHING)
            entry.run_id = resolution.run.id
            logger.info("Pull tracker resolved %s to run %s (%s)", subdomain, entry.run_id, resolution.match.value)

        try:
            observation = await fetcher.fetch(entry.run_id)
        except Exception:
            logger.exception("Status fetch crashed for run %s", entry.run_id)
            observation = RunObservation(run=None)
        event = classify_observation(observation, deploy_url=deploy_url)
        return PollResponse(
            status=event.type,  # type: ignore[arg-type]
            run=event.run,
            jobs=event.jobs,
            message=event.message,
            deploy_url=event.deploy_url,
        )

    async def poll_with_settings(self, subdomain: str, client, cfg: Settings) -> PollResponse:
        return await self.poll(
            subdomain,
            resolver=RunResolver.from_settings(client, cfg),
            fetcher=StatusFetcher(client),
            deploy_url=cfg.deploy_url(subdomain),
        )


status_tracker = WorkflowStatusTracker(ttl_s=settings.POLL_TRACKER_TTL_S)
