# File: backend/tests/test_resolver.py
# Version: v0.1.0
"""
Run resolution heuristic and its retry budget.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from backend.app.core.errors import ResolutionError
from backend.app.core.workflow.resolver import MatchKind, RunResolver, pick_run
from conftest import FakeGitHub, make_run

WINDOW = timedelta(minutes=5)


def test_pick_run_prefers_run_inside_window():
    recent = make_run(7, status="completed", conclusion="success", age_s=10)
    res = pick_run([recent], now=datetime.now(timezone.utc), window=WINDOW)
    assert res.run is recent
    assert res.match is MatchKind.WINDOW


def test_pick_run_takes_first_in_upstream_order():
    newer = make_run(2, age_s=5)
    older = make_run(1, age_s=60)
    res = pick_run([newer, older], now=datetime.now(timezone.utc), window=WINDOW)
    assert res.run.id == 2


def test_pick_run_falls_back_to_active_run():
    done = make_run(1, status="completed", conclusion="success", age_s=3600)
    active = make_run(2, status="in_progress", age_s=1800)
    res = pick_run([done, active], now=datetime.now(timezone.utc), window=WINDOW)
    assert res.run.id == 2
    assert res.match is MatchKind.ACTIVE


def test_pick_run_falls_back_to_latest_run():
    a = make_run(5, status="completed", conclusion="failure", age_s=7200)
    b = make_run(4, status="completed", conclusion="success", age_s=9000)
    res = pick_run([a, b], now=datetime.now(timezone.utc), window=WINDOW)
    assert res.run.id == 5
    assert res.match is MatchKind.LATEST


def test_pick_run_empty_listing():
    res = pick_run([], now=datetime.now(timezone.utc), window=WINDOW)
    assert res.run is None
    assert res.match is MatchKind.NONE
    assert not res.found


def test_pick_run_accepts_naive_timestamps():
    run = make_run(3, age_s=10)
    naive = run.model_copy(update={"created_at": run.created_at.replace(tzinfo=None)})
    res = pick_run([naive], now=datetime.now(timezone.utc), window=WINDOW)
    assert res.match is MatchKind.WINDOW


@pytest.mark.asyncio
async def test_resolve_returns_on_first_attempt():
    gh = FakeGitHub(listings=[[make_run(11, age_s=10)]])
    resolver = RunResolver(gh, "provision.yml", interval_s=0.0)
    res = await resolver.resolve()
    assert res.run.id == 11
    assert res.attempts == 1
    assert gh.list_calls == 1


@pytest.mark.asyncio
async def test_resolve_retries_only_on_empty_listing():
    gh = FakeGitHub(listings=[[], [], [make_run(12, status="queued", age_s=900)]])
    resolver = RunResolver(gh, "provision.yml", interval_s=0.0)
    res = await resolver.resolve()
    assert res.run.id == 12
    assert res.match is MatchKind.ACTIVE
    assert res.attempts == 3


@pytest.mark.asyncio
async def test_resolve_exhausts_budget():
    gh = FakeGitHub(listings=[[]])
    resolver = RunResolver(gh, "provision.yml", max_attempts=30, interval_s=0.0)
    with pytest.raises(ResolutionError) as info:
        await resolver.resolve()
    assert info.value.attempts == 30
    assert gh.list_calls == 30


@pytest.mark.asyncio
async def test_resolve_stops_when_caller_goes_away():
    gh = FakeGitHub(listings=[[]])
    resolver = RunResolver(gh, "provision.yml", max_attempts=30, interval_s=0.0)
    calls = {"n": 0}

    def alive() -> bool:
        calls["n"] += 1
        return calls["n"] <= 2

    res = await resolver.resolve(is_alive=alive)
    assert not res.found
    assert gh.list_calls == 2


def test_resolver_rejects_zero_budget():
    with pytest.raises(ValueError):
        RunResolver(FakeGitHub(), "provision.yml", max_attempts=0)
