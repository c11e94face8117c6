# tests/test_sqlite_deadline_repository.py
from __future__ import annotations

import sqlite3
import uuid
from datetime import date, datetime, timezone

import pytest

from deadlinez.models.entities import Project, SubDeadline, Subtask, Template, Trigger
from deadlinez.repositories.db import Database
from deadlinez.repositories.sqlite_deadline_repository import SQLiteDeadlineRepository
from deadlinez.services.instantiator import instantiate

from conftest import ANCHOR


def test_migrations_apply_once(tmp_path):
    db = Database(path=tmp_path / "m.db")
    try:
        assert db.run_migrations() == ["0001_init.sql"]
        assert db.run_migrations() == []
        assert "0001_init.sql" in db.applied()
    finally:
        db.close()


def test_empty_database_loads_empty(repo):
    assert repo.load_projects() == []
    assert repo.load_templates() == []
    assert repo.load_triggers() == []


def test_instantiated_project_round_trip(repo, monthly_video):
    project, triggers = instantiate(monthly_video, "April Video", ANCHOR)
    stamp = datetime(2025, 3, 20, 8, 30, tzinfo=timezone.utc)
    triggers[0].is_active = True
    triggers[0].activation_date = stamp
    project.sub_deadlines[0].subtasks = [Subtask("Outline"), Subtask("Hook", is_completed=True)]

    repo.save_all([project], [monthly_video], triggers)

    assert repo.load_projects() == [project]
    assert repo.load_templates() == [monthly_video]
    (loaded,) = repo.load_triggers()
    assert loaded == triggers[0]
    assert loaded.activation_date == stamp


def test_save_replaces_whole_collection(repo):
    a = Project(title="A", final_deadline=ANCHOR, sub_deadlines=[SubDeadline("a1", date(2025, 3, 1))])
    b = Project(title="B", final_deadline=ANCHOR)
    repo.save_projects([a, b])
    repo.save_projects([b])
    assert [p.title for p in repo.load_projects()] == ["B"]


def test_collection_order_is_preserved(repo):
    templates = [Template(name=n) for n in ("Zeta", "Alpha", "Mid")]
    repo.save_templates(templates)
    assert [t.name for t in repo.load_templates()] == ["Zeta", "Alpha", "Mid"]


def test_dateless_trigger_and_standalone_container(repo):
    t = Trigger(name="Pending", project_id=uuid.uuid4())
    standalone = Project(title="Standalone Deadlines", final_deadline=date.max, is_completed_flag=False)
    repo.save_triggers([t])
    repo.save_projects([standalone])

    (loaded_t,) = repo.load_triggers()
    assert loaded_t.date is None and loaded_t.activation_date is None
    (loaded_p,) = repo.load_projects()
    assert loaded_p.final_deadline == date.max


def test_failed_save_rolls_back(repo):
    repo.save_templates([Template(name="Kept")])
    dup = [Template(name="Same"), Template(name="Same")]
    with pytest.raises(sqlite3.IntegrityError):
        repo.save_templates(dup)
    assert [t.name for t in repo.load_templates()] == ["Kept"]


def test_repository_accepts_raw_connection(db):
    repo = SQLiteDeadlineRepository(db.conn)
    repo.save_projects([Project(title="Raw", final_deadline=ANCHOR)])
    assert repo.load_projects()[0].title == "Raw"


def test_repository_rejects_unknown_handle():
    with pytest.raises(RuntimeError):
        SQLiteDeadlineRepository(object()).load_projects()
