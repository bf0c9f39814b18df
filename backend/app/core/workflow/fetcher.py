# File: backend/app/core/workflow/fetcher.py
# Version: v0.1.0
"""
Status fetcher: one observation of a resolved run.

The run and its jobs are two independent reads issued concurrently. A missing
run means "temporarily unknown", never a terminal failure.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from backend.app.core.github.models import WorkflowJob, WorkflowRun


class RunReader(Protocol):
    async def get_run(self, run_id: int) -> Optional[WorkflowRun]:
        ...

    async def get_jobs(self, run_id: int) -> List[WorkflowJob]:
        ...


@dataclass
class RunObservation:
    run: Optional[WorkflowRun]
    jobs: List[WorkflowJob] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.run is not None


class StatusFetcher:
    def __init__(self, reader: RunReader) -> None:
        self.reader = reader

    async def fetch(self, run_id: int) -> RunObservation:
        run, jobs = await asyncio.gather(self.reader.get_run(run_id), self.reader.get_jobs(run_id))
        return RunObservation(run=run, jobs=list(jobs or []))
