# Rev 0.2.0
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from ..models.entities import Project, SubDeadline, Template, Trigger
from ..services import backup
from ..services.deadline_service import DeadlineService, UpcomingDeadline
from ..services.synchronizer import SyncResult
from ..utils.logging_setup import get_logger


class DeadlineViewModel(QObject):
    """
    VM over DeadlineService + repository.
    Every command runs the service, persists what it touched, then emits:
      - projectsChanged()
      - templatesChanged()
      - triggersChanged()
    Nothing is emitted (or written) when a command changed nothing.
    """

    projectsChanged = Signal()
    templatesChanged = Signal()
    triggersChanged = Signal()

    def __init__(self, service: DeadlineService, repo):
        super().__init__()
        self._svc = service
        self._repo = repo
        self._log = get_logger("DeadlineViewModel")

    @property
    def service(self) -> DeadlineService:
        return self._svc

    # ---- loading ----
    def load(self) -> None:
        self._svc.store.replace_all(
            self._repo.load_projects(),
            self._repo.load_templates(),
            self._repo.load_triggers(),
        )
        if self._svc.backfill_trigger_dates():
            self._repo.save_triggers(self._svc.store.trigger_list())
        self._emit(projects=True, templates=True, triggers=True)

    # ---- queries ----
    def projects(self) -> List[Project]:
        return sorted(self._svc.active_projects(), key=lambda p: p.final_deadline)

    def completed_projects(self) -> List[Project]:
        return self._svc.completed_projects()

    def templates(self) -> List[Template]:
        return sorted(self._svc.store.template_list(), key=lambda t: t.name.lower())

    def triggers_for(self, project_id: uuid.UUID) -> List[Trigger]:
        return sorted(self._svc.triggers_for(project_id), key=lambda t: (t.date or date.max, t.name))

    def is_sub_deadline_active(self, sub: SubDeadline) -> bool:
        return self._svc.is_sub_deadline_active(sub)

    def upcoming_deadlines(self, limit: int) -> List[UpcomingDeadline]:
        return self._svc.upcoming_deadlines(limit)

    # ---- project commands ----
    def create_project_from_template(self, template_id: uuid.UUID, title: str, final_deadline: date) -> Optional[Project]:
        project = self._svc.instantiate_project(template_id, title, final_deadline)
        if project is None:
            return None
        store = self._svc.store
        self._repo.save_all(store.project_list(), store.template_list(), store.trigger_list())
        self._emit(projects=True, triggers=True)
        return project

    def add_project(self, project: Project) -> bool:
        ok = self._svc.add_project(project)
        if ok: self._save(projects=True)
        return ok

    def update_project(self, project: Project) -> bool:
        ok = self._svc.update_project(project)
        if ok: self._save(projects=True)
        return ok

    def delete_project(self, project_id: uuid.UUID) -> bool:
        ok = self._svc.delete_project(project_id)
        if ok: self._save(projects=True, triggers=True)
        return ok

    def add_standalone_deadline(self, sub: SubDeadline) -> Project:
        project = self._svc.add_standalone_deadline(sub)
        self._save(projects=True)
        return project

    def mark_project_completed(self, project_id: uuid.UUID) -> bool:
        ok = self._svc.mark_project_completed(project_id)
        if ok: self._save(projects=True)
        return ok

    def reopen_project(self, project_id: uuid.UUID) -> bool:
        ok = self._svc.reopen_project(project_id)
        if ok: self._save(projects=True)
        return ok

    # ---- sub-deadline commands ----
    def add_sub_deadline(self, project_id: uuid.UUID, sub: SubDeadline) -> bool:
        ok = self._svc.add_sub_deadline(project_id, sub)
        if ok: self._save(projects=True)
        return ok

    def update_sub_deadline(self, project_id: uuid.UUID, sub: SubDeadline) -> bool:
        ok = self._svc.update_sub_deadline(project_id, sub)
        if ok: self._save(projects=True)
        return ok

    def toggle_completion(self, project_id: uuid.UUID, sub_id: uuid.UUID) -> Optional[bool]:
        state = self._svc.toggle_completion(project_id, sub_id)
        if state is not None: self._save(projects=True)
        return state

    def toggle_subtask(self, project_id: uuid.UUID, sub_id: uuid.UUID, subtask_id: uuid.UUID) -> Optional[bool]:
        state = self._svc.toggle_subtask(project_id, sub_id, subtask_id)
        if state is not None: self._save(projects=True)
        return state

    def delete_sub_deadline(self, project_id: uuid.UUID, sub_id: uuid.UUID) -> bool:
        ok = self._svc.delete_sub_deadline(project_id, sub_id)
        if ok: self._save(projects=True)
        return ok

    # ---- template commands ----
    def add_template(self, template: Template) -> bool:
        ok = self._svc.add_template(template)
        if ok: self._save(templates=True)
        return ok

    def delete_template(self, template_id: uuid.UUID) -> bool:
        ok = self._svc.delete_template(template_id)
        if ok: self._save(templates=True)
        return ok

    def update_template_and_sync(self, old: Template, new: Template) -> Optional[SyncResult]:
        result = self._svc.update_template_and_sync(old, new)
        if result is None:
            return None
        self._save(templates=True, projects=result.projects_changed, triggers=result.triggers_changed)
        return result

    def create_template_from_project(self, project_id: uuid.UUID) -> Optional[Template]:
        template = self._svc.create_template_from_project(project_id)
        if template is not None:
            self._save(templates=True)
        return template

    # ---- trigger commands ----
    def add_trigger(self, trigger: Trigger) -> bool:
        ok = self._svc.add_trigger(trigger)
        if ok: self._save(triggers=True)
        return ok

    def update_trigger(self, trigger: Trigger) -> bool:
        ok = self._svc.update_trigger(trigger)
        if ok: self._save(triggers=True)
        return ok

    def activate_trigger(self, trigger_id: uuid.UUID, now: Optional[datetime] = None) -> bool:
        ok = self._svc.activate_trigger(trigger_id, now)
        if ok: self._save(triggers=True)
        return ok

    def deactivate_trigger(self, trigger_id: uuid.UUID) -> bool:
        ok = self._svc.deactivate_trigger(trigger_id)
        if ok: self._save(triggers=True)
        return ok

    def delete_trigger(self, trigger_id: uuid.UUID) -> bool:
        ok = self._svc.delete_trigger(trigger_id)
        if ok: self._save(triggers=True, projects=True)
        return ok

    # ---- backup ----
    def export_backup(self) -> str:
        return backup.export_backup(self._svc.store)

    def restore_backup(self, text: str) -> None:
        """Raises BackupError on a malformed document; the store is untouched then."""
        data = backup.import_backup(text)
        backup.restore_backup(self._svc.store, data)
        store = self._svc.store
        self._repo.save_all(store.project_list(), store.template_list(), store.trigger_list())
        self._emit(projects=True, templates=True, triggers=True)

    # ---- internals ----
    def _save(self, *, projects: bool = False, templates: bool = False, triggers: bool = False) -> None:
        store = self._svc.store
        # triggers before projects: a saved project never points at unsaved triggers
        if triggers:
            self._repo.save_triggers(store.trigger_list())
        if projects:
            self._repo.save_projects(store.project_list())
        if templates:
            self._repo.save_templates(store.template_list())
        self._emit(projects=projects, templates=templates, triggers=triggers)

    def _emit(self, *, projects: bool = False, templates: bool = False, triggers: bool = False) -> None:
        if projects:
            self.projectsChanged.emit()
        if templates:
            self.templatesChanged.emit()
        if triggers:
            self.triggersChanged.emit()
