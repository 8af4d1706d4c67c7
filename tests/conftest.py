"""Shared fixtures for the SOP metrics test suite."""

import itertools
import json
from datetime import datetime, timedelta, timezone

import pytest

from config.settings import Settings
from sopmetrics.data.data_repository import DataRepository
from sopmetrics.data.db import RowStore
from sopmetrics.data.models import CompletionEvent, Profile, Sop, Step

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_event():
    """Build CompletionEvent models; ids are generated when not given."""
    counter = itertools.count(1)

    def _make(
        step_id="step-1",
        user_id="user-1",
        completed=True,
        created_at=None,
        updated_at=None,
        event_id=None,
    ):
        created_at = created_at or NOW - timedelta(days=1)
        return CompletionEvent(
            id=event_id or f"evt-{next(counter)}",
            step_id=step_id,
            user_id=user_id,
            completed=completed,
            created_at=created_at,
            updated_at=updated_at,
        )

    return _make


@pytest.fixture
def make_step():
    def _make(step_id, sop_id="sop-1", order_index=0, events=()):
        return Step(
            id=step_id,
            sop_id=sop_id,
            order_index=order_index,
            completion_events=list(events),
        )

    return _make


@pytest.fixture
def make_sop():
    def _make(sop_id, title=None, created_at=None, steps=(), created_by=None, **extra):
        return Sop(
            id=sop_id,
            title=title or sop_id.title(),
            created_at=created_at or NOW - timedelta(days=10),
            created_by=created_by,
            steps=list(steps),
            **extra,
        )

    return _make


@pytest.fixture
def make_profile():
    def _make(user_id, first_name=None, last_name=None, last_active=None, avatar_url=None):
        return Profile(
            id=user_id,
            first_name=first_name,
            last_name=last_name,
            last_active=last_active,
            avatar_url=avatar_url,
        )

    return _make


@pytest.fixture
def raw_rows():
    """
    A small tenant as exported from the store.

    With NOW as reference, the last-30-days window holds c1..c4; c5 is
    older. user-3 has not been active for months.
    """
    return {
        "sops": [
            {
                "id": "sop-1",
                "title": "Onboarding",
                "category": "HR",
                "status": "published",
                "created_at": "2024-03-01T09:00:00Z",
                "created_by": "user-1",
            },
            {
                "id": "sop-2",
                "title": "Month-end Close",
                "category": "Finance",
                "status": "draft",
                "created_at": "2024-02-01T09:00:00Z",
                "created_by": "user-2",
            },
            {"id": "sop-3", "title": "Archive Review", "created_at": "2023-12-01T00:00:00Z"},
        ],
        "steps": [
            {"id": "s1-a", "sop_id": "sop-1", "order_index": 0, "title": "Paperwork"},
            {"id": "s1-b", "sop_id": "sop-1", "order_index": 1, "title": "Laptop"},
            {"id": "s1-c", "sop_id": "sop-1", "order_index": 2, "title": "Intro call"},
            {"id": "s2-a", "sop_id": "sop-2", "order_index": 0},
            {"id": "s2-b", "sop_id": "sop-2", "order_index": 1},
        ],
        "completions": [
            {
                "id": "c1",
                "step_id": "s1-a",
                "user_id": "user-1",
                "completed": True,
                "created_at": "2024-03-10T10:00:00Z",
                "updated_at": "2024-03-12T10:00:00Z",
            },
            {
                "id": "c2",
                "step_id": "s1-b",
                "user_id": "user-1",
                "completed": False,
                "created_at": "2024-03-11T10:00:00Z",
                "updated_at": "2024-03-11T12:00:00Z",
            },
            {
                "id": "c3",
                "step_id": "s1-a",
                "user_id": "user-2",
                "completed": True,
                "created_at": "2024-03-14T00:00:00Z",
                "updated_at": "2024-03-14T00:00:00Z",
            },
            {
                "id": "c4",
                "step_id": "s2-a",
                "user_id": "user-2",
                "completed": False,
                "created_at": "2024-03-05T00:00:00Z",
                "updated_at": "2024-03-05T00:00:00Z",
            },
            {
                "id": "c5",
                "step_id": "s2-a",
                "user_id": "user-1",
                "completed": True,
                "created_at": "2024-01-10T00:00:00Z",
                "updated_at": "2024-01-11T00:00:00Z",
            },
        ],
        "profiles": [
            {
                "id": "user-1",
                "first_name": "Ada",
                "last_name": "Lovelace",
                "avatar_url": "https://example.com/ada.png",
                "last_active": "2024-03-14T09:00:00Z",
            },
            {
                "id": "user-2",
                "first_name": "Grace",
                "last_name": "Hopper",
                "last_active": "2024-03-01T00:00:00Z",
            },
            {"id": "user-3", "first_name": "Alan", "last_active": "2023-11-01T00:00:00Z"},
        ],
    }


@pytest.fixture
def settings(tmp_path):
    settings = Settings()
    settings.use_data_dir(str(tmp_path / "input"))
    settings.OUTPUT_DIR = tmp_path / "output"
    settings.LOG_DIR = tmp_path / "logs"
    return settings


@pytest.fixture
def reader(settings, raw_rows):
    """A data repository loaded with ``raw_rows``."""
    repository = DataRepository(settings, db=RowStore())
    repository.load_records(**raw_rows)
    return repository


@pytest.fixture
def snapshot(reader):
    return reader.snapshot(now=NOW)


@pytest.fixture
def data_dir(tmp_path, raw_rows):
    """``raw_rows`` written as one JSON export file per table."""
    directory = tmp_path / "export"
    directory.mkdir()
    files = {
        "sops.json": raw_rows["sops"],
        "sop_steps.json": raw_rows["steps"],
        "sop_step_completions.json": raw_rows["completions"],
        "profiles.json": raw_rows["profiles"],
    }
    for name, rows in files.items():
        (directory / name).write_text(json.dumps(rows), encoding="utf-8")
    return directory
