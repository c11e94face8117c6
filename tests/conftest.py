# Rev 0.2.0

"""Pytest fixtures for deadlineZ (Rev 0.2.0)"""
from __future__ import annotations
import uuid
from datetime import date
from pathlib import Path

import pytest

from deadlinez.models.entities import Template, TemplateSubDeadline, TemplateTrigger, TimeOffset
from deadlinez.repositories.db import Database
from deadlinez.repositories.sqlite_deadline_repository import SQLiteDeadlineRepository
from deadlinez.services.deadline_service import DeadlineService
from deadlinez.services.store import DeadlineStore

ANCHOR = date(2025, 3, 31)

# Stable ids so tests can build "edited" versions of the same template
SCRIPT_ID = uuid.UUID("11111111-0000-0000-0000-000000000001")
ASSETS_ID = uuid.UUID("22222222-0000-0000-0000-000000000001")
TEMPLATE_ID = uuid.UUID("33333333-0000-0000-0000-000000000001")


@pytest.fixture()
def monthly_video() -> Template:
    """'Monthly Video': Script 7 days before, trigger 'Assets Received' (unlinked)."""
    return Template(
        id=TEMPLATE_ID,
        name="Monthly Video",
        sub_deadlines=[
            TemplateSubDeadline(id=SCRIPT_ID, title="Script", offset=TimeOffset(7, "days", True)),
        ],
        template_triggers=[
            TemplateTrigger(id=ASSETS_ID, name="Assets Received", offset=TimeOffset(10, "days", True)),
        ],
    )


@pytest.fixture()
def service() -> DeadlineService:
    return DeadlineService(DeadlineStore())


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def repo(db: Database) -> SQLiteDeadlineRepository:
    return SQLiteDeadlineRepository(db)
