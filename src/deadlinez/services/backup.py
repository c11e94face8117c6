# Rev 0.2.0

"""Backup document (Rev 0.2.0)
- export: one JSON document holding projects, templates and triggers
- import: current format, or the legacy one where triggers sat inside projects
- restore: whole-collection replace; last write wins, no synchronization
"""
from __future__ import annotations
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from ..models import codec
from ..models.entities import Project, Template, Trigger
from ..utils.logging_setup import get_logger
from .errors import BackupError
from .store import DeadlineStore

BACKUP_VERSION = 2

_log = get_logger("backup")


@dataclass
class BackupData:
    projects: List[Project] = field(default_factory=list)
    templates: List[Template] = field(default_factory=list)
    triggers: List[Trigger] = field(default_factory=list)


def export_backup(store: DeadlineStore) -> str:
    doc = {
        "version": BACKUP_VERSION,
        "exportedAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "projects": [codec.project_to_dict(p) for p in store.project_list()],
        "templates": [codec.template_to_dict(t) for t in store.template_list()],
        "triggers": [codec.trigger_to_dict(t) for t in store.trigger_list()],
    }
    _log.info(
        "Exported %d project(s), %d template(s), %d trigger(s)",
        len(doc["projects"]), len(doc["templates"]), len(doc["triggers"]),
    )
    return json.dumps(doc, indent=2)


def import_backup(text: str) -> BackupData:
    try:
        doc = json.loads(text)
    except ValueError as e:
        raise BackupError(f"backup is not valid JSON: {e}") from e
    if not isinstance(doc, dict) or "projects" not in doc:
        raise BackupError("backup has no 'projects' collection")

    try:
        data = _decode(doc)
    except (KeyError, TypeError, ValueError) as e:
        raise BackupError(f"backup is malformed: {e}") from e
    _log.info(
        "Imported %d project(s), %d template(s), %d trigger(s)",
        len(data.projects), len(data.templates), len(data.triggers),
    )
    return data


def _decode(doc: Dict[str, Any]) -> BackupData:
    projects: List[Project] = []
    triggers: List[Trigger] = []
    legacy = "triggers" not in doc
    for raw in doc["projects"]:
        project = codec.project_from_dict(raw)
        projects.append(project)
        if legacy:
            # triggers used to be embedded per project
            triggers.extend(codec.trigger_from_dict(t, project.id) for t in raw.get("triggers", []))
    if not legacy:
        triggers = [codec.trigger_from_dict(t) for t in doc["triggers"]]
    templates = [codec.template_from_dict(t) for t in doc.get("templates", [])]
    return BackupData(projects=projects, templates=templates, triggers=triggers)


def restore_backup(store: DeadlineStore, data: BackupData) -> None:
    store.replace_all(data.projects, data.templates, data.triggers)
