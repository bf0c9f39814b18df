# File: backend/app/core/workflow/session.py
# Version: v0.1.0
"""
Per-connection workflow status session.

States: searching -> found -> polling -> completed, or searching -> error.

- `start()` spawns a driver task: emit `searching`, resolve the run, emit
  `found`, do one immediate fetch, then arm a fixed-period timer.
- Each timer tick launches one fetch task; a tick that finds the previous fetch
  still running is skipped, so at most one fetch per session is in flight.
- A fetch that returns no run emits a non-terminal `error` and polling goes on
  (optionally escalated after N consecutive failures).
- A completed run emits the terminal `completed` event and shuts the session.
- `close()` (client disconnect) flips `running` and cancels the timer. In-flight
  upstream calls are left to finish; their results are dropped because every
  emission checks `running` first.

Events are delivered through an asyncio.Queue drained by `events()`, which ends
after the terminal event or a close.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Optional

from backend.app.core.config import Settings
from backend.app.core.errors import ResolutionError
from backend.app.core.github.models import WorkflowRun
from backend.app.core.workflow.events import (
    MSG_NOT_FOUND,
    MSG_TIMED_OUT,
    MSG_TOO_MANY_FAILURES,
    StatusEvent,
    classify_observation,
    error_event,
    found_event,
    searching_event,
)
from backend.app.core.workflow.fetcher import RunObservation, StatusFetcher
from backend.app.core.workflow.resolver import RunResolver

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    POLLING = "polling"
    COMPLETED = "completed"
    ERROR = "error"
    CLOSED = "closed"


TERMINAL_STATES = frozenset({SessionState.COMPLETED, SessionState.ERROR, SessionState.CLOSED})


class StatusSession:
    def __init__(
        self,
        subdomain: str,
        *,
        resolver: RunResolver,
        fetcher: StatusFetcher,
        deploy_url: str,
        poll_interval_s: float = 3.0,
        max_consecutive_failures: int = 0,
        max_duration_s: float = 0.0,
    ) -> None:
        self.subdomain = subdomain
        self.resolver = resolver
        self.fetcher = fetcher
        self.deploy_url = deploy_url
        self.poll_interval_s = poll_interval_s
        self.max_consecutive_failures = max_consecutive_failures
        self.max_duration_s = max_duration_s

        self.run: Optional[WorkflowRun] = None
        self.state = SessionState.IDLE
        self.running = False
        self.consecutive_failures = 0

        self._queue: asyncio.Queue[Optional[StatusEvent]] = asyncio.Queue()
        self._driver: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.Task] = None
        self._fetch: Optional[asyncio.Task] = None
        self._started_at: Optional[float] = None
        self._stream_closed = False

    @classmethod
    def from_settings(cls, subdomain: str, client, settings: Settings) -> "StatusSession":
        """Build a session against a GitHubActionsClient (or anything shaped like one)."""
        return cls(
            subdomain,
            resolver=RunResolver.from_settings(client, settings),
            fetcher=StatusFetcher(client),
            deploy_url=settings.deploy_url(subdomain),
            poll_interval_s=settings.POLL_INTERVAL_S,
            max_consecutive_failures=settings.POLL_MAX_CONSECUTIVE_FAILURES,
            max_duration_s=settings.SESSION_MAX_DURATION_S,
        )

    # ---------- lifecycle ----------
    async def __aenter__(self) -> "StatusSession":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def start(self) -> None:
        if self._driver is not None:
            raise RuntimeError("session already started")
        self.running = True
        self._started_at = asyncio.get_running_loop().time()
        self._driver = asyncio.create_task(self._drive(), name=f"status-session:{self.subdomain}")
        logger.info("Status session opened for %s", self.subdomain)

    def close(self) -> None:
        """Client disconnect: stop emitting and cancel the timer. Safe to call twice."""
        if self.state not in TERMINAL_STATES:
            self.state = SessionState.CLOSED
            logger.info("Status session for %s closed by client", self.subdomain)
        self._shutdown()

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def events(self) -> AsyncIterator[StatusEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    # ---------- internals ----------
    def _shutdown(self) -> None:
        self.running = False
        timer = self._timer
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()
        if not self._stream_closed:
            self._stream_closed = True
            self._queue.put_nowait(None)

    def _emit(self, event: StatusEvent) -> bool:
        if not self.running:
            logger.debug("Dropping %s event for closed session %s", event.type, self.subdomain)
            return False
        self._queue.put_nowait(event)
        if event.terminal:
            self.state = SessionState.COMPLETED if event.type == "completed" else SessionState.ERROR
            logger.info("Status session for %s finished: %s", self.subdomain, event.message)
            self._shutdown()
        return True

    async def _drive(self) -> None:
        self.state = SessionState.SEARCHING
        self._emit(searching_event())
        try:
            resolution = await self.resolver.resolve(is_alive=lambda: self.running)
        except ResolutionError as exc:
            logger.info("Run resolution failed for %s: %s", self.subdomain, exc)
            self._emit(error_event(MSG_NOT_FOUND, terminal=True))
            return
        except Exception:
            logger.exception("Run resolution crashed for %s", self.subdomain)
            self._emit(error_event(MSG_NOT_FOUND, terminal=True))
            return

        if not self.running or resolution.run is None:
            return

        self.run = resolution.run
        self._emit(found_event(self.run))
        self.state = SessionState.POLLING

        await self._poll_once()
        if self.running:
            self._timer = asyncio.create_task(self._tick_forever(), name=f"status-timer:{self.subdomain}")

    async def _poll_once(self) -> None:
        if not self.running or self.run is None:
            return
        try:
            observation = await self.fetcher.fetch(self.run.id)
        except Exception:
            logger.exception("Status fetch crashed for run %s", self.run.id)
            observation = RunObservation(run=None)

        if not self.running:
            logger.debug("Discarding fetch result for closed session %s", self.subdomain)
            return

        event = classify_observation(observation, deploy_url=self.deploy_url)
        if observation.run is None:
            self.consecutive_failures += 1
            logger.warning(
                "Could not fetch run %s (%d consecutive failures)", self.run.id, self.consecutive_failures
            )
            if self.max_consecutive_failures and self.consecutive_failures >= self.max_consecutive_failures:
                event = error_event(MSG_TOO_MANY_FAILURES, terminal=True)
        else:
            self.consecutive_failures = 0
            self.run = observation.run
            logger.debug("Run %s status=%s conclusion=%s", self.run.id, self.run.status, self.run.conclusion)
        self._emit(event)

    def _expired(self, now: float) -> bool:
        if not self.max_duration_s or self._started_at is None:
            return False
        return now - self._started_at >= self.max_duration_s

    async def _tick_forever(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.poll_interval_s
        while self.running:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            now = loop.time()
            next_at += self.poll_interval_s
            if next_at <= now:
                next_at = now + self.poll_interval_s
            if not self.running:
                break
            if self._expired(now):
                self._emit(error_event(MSG_TIMED_OUT, terminal=True))
                break
            if self._fetch is not None and not self._fetch.done():
                logger.debug("Previous fetch for %s still in flight; skipping tick", self.subdomain)
                continue
            self._fetch = asyncio.create_task(self._poll_once())
