# tests/test_deadline_viewmodel.py
# View model over a real SQLite database: signals, persistence and reload.

from __future__ import annotations

import copy
import dataclasses
import json
import uuid
from collections import Counter
from datetime import date
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

from deadlinez import main as cli
from deadlinez.app_context import AppContext
from deadlinez.models.entities import SubDeadline, Template, Trigger
from deadlinez.services.deadline_service import DeadlineService
from deadlinez.services.errors import BackupError
from deadlinez.services.store import DeadlineStore
from deadlinez.utils import config
from deadlinez.viewmodels.deadline_viewmodel import DeadlineViewModel

from conftest import ANCHOR


@pytest.fixture(scope="module", autouse=True)
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture()
def vm(repo) -> DeadlineViewModel:
    model = DeadlineViewModel(DeadlineService(DeadlineStore()), repo)
    model.load()
    return model


@pytest.fixture()
def signals(vm) -> Counter:
    seen: Counter = Counter()
    vm.projectsChanged.connect(lambda: seen.update(["projects"]))
    vm.templatesChanged.connect(lambda: seen.update(["templates"]))
    vm.triggersChanged.connect(lambda: seen.update(["triggers"]))
    return seen


def _reloaded(repo) -> DeadlineViewModel:
    fresh = DeadlineViewModel(DeadlineService(DeadlineStore()), repo)
    fresh.load()
    return fresh


def test_load_emits_all(repo):
    model = DeadlineViewModel(DeadlineService(DeadlineStore()), repo)
    seen: Counter = Counter()
    model.projectsChanged.connect(lambda: seen.update(["projects"]))
    model.templatesChanged.connect(lambda: seen.update(["templates"]))
    model.triggersChanged.connect(lambda: seen.update(["triggers"]))
    model.load()
    assert seen == Counter(projects=1, templates=1, triggers=1)


def test_create_project_persists_triggers_and_project(vm, signals, repo, monthly_video):
    assert vm.add_template(monthly_video)
    project = vm.create_project_from_template(monthly_video.id, "April Video", ANCHOR)

    assert signals == Counter(templates=1, projects=1, triggers=1)
    fresh = _reloaded(repo)
    (loaded,) = fresh.projects()
    assert loaded.id == project.id
    assert [t.name for t in fresh.triggers_for(project.id)] == ["Assets Received"]
    assert [t.name for t in fresh.templates()] == ["Monthly Video"]


def test_rejected_command_emits_nothing(vm, signals, monthly_video):
    vm.add_template(monthly_video)
    signals.clear()
    with pytest.warns(UserWarning):
        assert vm.add_template(copy.deepcopy(monthly_video)) is False
    assert vm.create_project_from_template(uuid.uuid4(), "Nope", ANCHOR) is None
    assert not signals


def test_sync_rename_onto_taken_name_writes_nothing(vm, signals, repo, monthly_video):
    vm.add_template(monthly_video)
    podcast = Template(name="Podcast")
    vm.add_template(podcast)
    signals.clear()

    with pytest.warns(UserWarning):
        result = vm.update_template_and_sync(podcast, dataclasses.replace(podcast, name="Monthly Video"))
    assert result is None
    assert not signals
    assert sorted(t.name for t in vm.templates()) == ["Monthly Video", "Podcast"]
    assert sorted(t.name for t in _reloaded(repo).templates()) == ["Monthly Video", "Podcast"]


def test_activation_survives_reload(vm, repo, monthly_video):
    vm.add_template(monthly_video)
    project = vm.create_project_from_template(monthly_video.id, "April Video", ANCHOR)
    (trigger,) = vm.triggers_for(project.id)
    assert vm.activate_trigger(trigger.id)

    (loaded,) = _reloaded(repo).triggers_for(project.id)
    assert loaded.is_active
    assert loaded.activation_date == trigger.activation_date


def test_sync_saves_projects_only_when_changed(vm, signals, repo, monthly_video):
    vm.add_template(monthly_video)
    project = vm.create_project_from_template(monthly_video.id, "April Video", ANCHOR)
    signals.clear()

    result = vm.update_template_and_sync(monthly_video, copy.deepcopy(monthly_video))
    assert not result.projects_changed
    assert signals == Counter(templates=1)

    new = copy.deepcopy(monthly_video)
    new.sub_deadlines[0] = dataclasses.replace(new.sub_deadlines[0], title="Draft Script")
    signals.clear()
    vm.update_template_and_sync(monthly_video, new)
    assert signals == Counter(templates=1, projects=1)

    (loaded,) = _reloaded(repo).projects()
    assert loaded.id == project.id
    assert loaded.sub_deadlines[0].title == "Draft Script"


def test_completion_moves_project_between_lists(vm, monthly_video):
    vm.add_template(monthly_video)
    project = vm.create_project_from_template(monthly_video.id, "April Video", ANCHOR)
    assert vm.toggle_completion(project.id, project.sub_deadlines[0].id) is True
    assert vm.projects() == []
    assert [p.id for p in vm.completed_projects()] == [project.id]
    assert vm.reopen_project(project.id)
    assert [p.id for p in vm.projects()] == [project.id]


def test_standalone_and_upcoming(vm, signals):
    vm.add_standalone_deadline(SubDeadline("Taxes", date(2025, 4, 15)))
    assert signals == Counter(projects=1)
    assert [u.title for u in vm.upcoming_deadlines(5)] == ["Taxes"]


def test_delete_trigger_saves_both_collections(vm, signals, repo):
    sub = SubDeadline("Analysis", date(2025, 3, 20))
    project = vm.add_standalone_deadline(sub)
    t = Trigger(name="Data Ready", project_id=project.id)
    vm.add_trigger(t)
    sub.trigger_id = t.id
    vm.update_sub_deadline(project.id, sub)
    assert not vm.is_sub_deadline_active(sub)
    signals.clear()

    assert vm.delete_trigger(t.id)
    assert signals == Counter(triggers=1, projects=1)
    fresh = _reloaded(repo)
    assert fresh.triggers_for(project.id) == []
    assert fresh.projects()[0].sub_deadlines[0].trigger_id is None


def test_backfill_on_load_is_persisted(repo):
    project_id = DeadlineViewModel(DeadlineService(DeadlineStore()), repo).add_standalone_deadline(
        SubDeadline("Taxes", date(2025, 4, 15))
    ).id
    repo.save_triggers([Trigger(name="Dateless", project_id=project_id)])

    _reloaded(repo)
    (t,) = repo.load_triggers()
    assert t.date == date(9999, 12, 24)


def test_restore_backup_round_trip(vm, signals, repo, monthly_video):
    vm.add_template(monthly_video)
    vm.create_project_from_template(monthly_video.id, "April Video", ANCHOR)
    text = vm.export_backup()

    vm.delete_template(monthly_video.id)
    signals.clear()
    vm.restore_backup(text)
    assert signals == Counter(projects=1, templates=1, triggers=1)
    assert [t.name for t in _reloaded(repo).templates()] == ["Monthly Video"]

    with pytest.raises(BackupError):
        vm.restore_backup("{}")
    assert [t.name for t in vm.templates()] == ["Monthly Video"]


def test_app_context_wires_everything(tmp_path: Path):
    settings = config.load_settings(tmp_path / "missing.json")
    ctx = AppContext.create(db_path=tmp_path / "ctx.db", settings=settings)
    try:
        assert ctx.db_path.exists()
        assert ctx.upcoming_limit() == 5
        assert ctx.viewmodel.projects() == []
        assert ctx.viewmodel.service is ctx.service
    finally:
        ctx.close()


def test_cli_export_restore_and_upcoming(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.setattr(config, "SETTINGS_FILE", tmp_path / "settings.json")
    monkeypatch.setattr(cli, "SETTINGS_FILE", tmp_path / "settings.json")
    monkeypatch.setattr(cli, "ensure_dirs", lambda: None)
    monkeypatch.setattr(cli, "setup_logging", lambda level: tmp_path / "deadlinez.log")
    db_path = tmp_path / "cli.db"

    ctx = AppContext.create(db_path=db_path, settings=config.load_settings())
    ctx.viewmodel.add_standalone_deadline(SubDeadline("Taxes", date(2025, 4, 15)))
    ctx.close()

    assert cli.main(["--db", str(db_path), "upcoming"]) == 0
    assert "2025-04-15  Taxes  (Standalone Deadlines)" in capsys.readouterr().out
    assert (tmp_path / "settings.json").exists()

    backup_file = tmp_path / "backup.json"
    assert cli.main(["--db", str(db_path), "export", str(backup_file)]) == 0
    assert len(json.loads(backup_file.read_text(encoding="utf-8"))["projects"]) == 1

    assert cli.main(["--db", str(tmp_path / "other.db"), "restore", str(backup_file)]) == 0
    bad = tmp_path / "bad.json"
    bad.write_text("nope", encoding="utf-8")
    assert cli.main(["--db", str(db_path), "restore", str(bad)]) == 1
