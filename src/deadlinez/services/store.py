# Rev 0.2.0
"""In-memory store of projects, templates and triggers.

One instance per session, injected into the services. Collections are
dicts keyed by id (insertion ordered) so cross-references resolve in O(1).
The store assumes a single writer; callers serialize access.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..models.entities import Project, SubDeadline, Template, Trigger
from ..utils.logging_setup import get_logger

_log = get_logger("store")


@dataclass
class DeadlineStore:
    projects: Dict[uuid.UUID, Project] = field(default_factory=dict)
    templates: Dict[uuid.UUID, Template] = field(default_factory=dict)
    triggers: Dict[uuid.UUID, Trigger] = field(default_factory=dict)

    @classmethod
    def from_collections(
        cls,
        projects: Iterable[Project] = (),
        templates: Iterable[Template] = (),
        triggers: Iterable[Trigger] = (),
    ) -> "DeadlineStore":
        store = cls()
        store.replace_all(projects, templates, triggers)
        return store

    def replace_all(self, projects: Iterable[Project], templates: Iterable[Template], triggers: Iterable[Trigger]) -> None:
        """Whole-collection replace (restore path); no synchronization happens."""
        self.projects = {p.id: p for p in projects}
        self.templates = {t.id: t for t in templates}
        self.triggers = {t.id: t for t in triggers}
        _log.info(
            "Store replaced: %d project(s), %d template(s), %d trigger(s)",
            len(self.projects), len(self.templates), len(self.triggers),
        )

    # ---- lookups ----
    def project_list(self) -> List[Project]:
        return list(self.projects.values())

    def template_list(self) -> List[Template]:
        return list(self.templates.values())

    def trigger_list(self) -> List[Trigger]:
        return list(self.triggers.values())

    def triggers_for(self, project_id: uuid.UUID) -> List[Trigger]:
        return [t for t in self.triggers.values() if t.project_id == project_id]

    def projects_for_template(self, template_id: uuid.UUID) -> List[Project]:
        return [p for p in self.projects.values() if p.template_id == template_id]

    def template_named(self, name: str) -> Optional[Template]:
        for t in self.templates.values():
            if t.name == name:
                return t
        return None

    # ---- cascades ----
    def remove_trigger(self, trigger_id: uuid.UUID) -> List[Project]:
        """Drop a trigger and unlink every sub-deadline that pointed at it.

        Returns the projects whose sub-deadlines were unlinked.
        """
        trigger = self.triggers.pop(trigger_id, None)
        if trigger is None:
            return []
        touched: List[Project] = []
        for project in self.projects.values():
            unlinked: List[SubDeadline] = [s for s in project.sub_deadlines if s.trigger_id == trigger_id]
            for sub in unlinked:
                sub.trigger_id = None
                _log.info("Unlinked sub-deadline '%s' in project '%s'", sub.title, project.title)
            if unlinked:
                touched.append(project)
        return touched
