# File: backend/app/core/workflow/resolver.py
# Version: v0.1.1
"""
Run resolution: find the workflow run a dispatch produced.

The dispatch API returns no run id and the runs listing carries no correlation
token, so the match is a documented, time-windowed heuristic over the most
recent runs (upstream order, newest first):

1. the first run created inside the correlation window, whatever its status;
2. otherwise the first run that is `in_progress` or `queued`;
3. otherwise the first (most recent) run;
4. an empty listing resolves nothing.

A concurrent, unrelated dispatch of the same workflow inside the window can be
picked instead of ours. That race is accepted. `pick_run` is the single place
to switch to an exact match should the API ever echo an idempotency key.

`RunResolver.resolve` retries only on an empty result: any run returned by the
heuristic, fallbacks included, ends the search.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence

from backend.app.core.config import Settings
from backend.app.core.errors import ResolutionError
from backend.app.core.github.models import ACTIVE_STATUSES, WorkflowRun

logger = logging.getLogger(__name__)


class RunsSource(Protocol):
    async def list_workflow_runs(self, workflow_id: str, *, per_page: int = 10) -> List[WorkflowRun]:
        ...


class MatchKind(str, Enum):
    WINDOW = "window"   # created inside the correlation window
    ACTIVE = "active"   # fallback: most recent queued/in_progress run
    LATEST = "latest"   # fallback: most recent run of any kind
    NONE = "none"


@dataclass(frozen=True)
class Resolution:
    run: Optional[WorkflowRun]
    match: MatchKind
    attempts: int = 1

    @property
    def found(self) -> bool:
        return self.run is not None


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def pick_run(runs: Sequence[WorkflowRun], *, now: datetime, window: timedelta) -> Resolution:
    """Apply the correlation heuristic to one runs listing."""
    cutoff = _as_utc(now) - window
    for run in runs:
        if _as_utc(run.created_at) >= cutoff:
            return Resolution(run, MatchKind.WINDOW)

    for run in runs:
        if run.status in ACTIVE_STATUSES:
            return Resolution(run, MatchKind.ACTIVE)

    if runs:
        return Resolution(runs[0], MatchKind.LATEST)
    return Resolution(None, MatchKind.NONE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunResolver:
    """Bounded, retrying wrapper around `pick_run` for one workflow."""

    def __init__(
        self,
        source: RunsSource,
        workflow_id: str,
        *,
        per_page: int = 10,
        window_s: float = 300.0,
        max_attempts: int = 30,
        interval_s: float = 1.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.source = source
        self.workflow_id = workflow_id
        self.per_page = per_page
        self.window = timedelta(seconds=window_s)
        self.max_attempts = max_attempts
        self.interval_s = interval_s
        self._clock = clock

    @classmethod
    def from_settings(cls, source: RunsSource, settings: Settings) -> "RunResolver":
        return cls(
            source,
            settings.WORKFLOW_ID,
            per_page=settings.RESOLVE_PER_PAGE,
            window_s=settings.RESOLVE_WINDOW_S,
            max_attempts=settings.RESOLVE_MAX_ATTEMPTS,
            interval_s=settings.RESOLVE_INTERVAL_S,
        )

    async def resolve_once(self) -> Resolution:
        """Single listing + heuristic pass. A failed listing counts as empty."""
        runs = await self.source.list_workflow_runs(self.workflow_id, per_page=self.per_page)
        return pick_run(runs, now=self._clock(), window=self.window)

    async def resolve(self, *, is_alive: Callable[[], bool] = lambda: True) -> Resolution:
        """Retry `resolve_once` until a run turns up or the budget is spent.

        `is_alive` is checked before every attempt; once it returns False the
        search stops quietly with an empty resolution.

        Raises
        ------
        ResolutionError
            When every attempt saw an empty listing.
        """
        attempts = 0
        while attempts < self.max_attempts:
            if not is_alive():
                return Resolution(None, MatchKind.NONE, attempts)
            attempts += 1
            result = await self.resolve_once()
            if result.run is not None:
                logger.info(
                    "Resolved workflow run %s (match=%s, attempt %d/%d)",
                    result.run.id, result.match.value, attempts, self.max_attempts,
                )
                return replace(result, attempts=attempts)
            logger.debug("No workflow run yet (attempt %d/%d)", attempts, self.max_attempts)
            if attempts < self.max_attempts:
                await asyncio.sleep(self.interval_s)

        logger.warning("Gave up resolving workflow %s after %d attempts", self.workflow_id, attempts)
        raise ResolutionError(f"No run of {self.workflow_id} found after {attempts} attempts", attempts=attempts)
