# Rev 0.2.0

"""Deadline service (Rev 0.2.0)
All operations on projects, sub-deadlines, templates and triggers, applied
to an injected DeadlineStore. No I/O happens here; callers persist the
collections after a mutating call returns.

Mutations report success the way the repositories do: True/False (or
None when there is nothing to return). Rejections are logged, and
duplicate names / dangling references are also issued as warnings.
"""
from __future__ import annotations
import copy
import uuid
import warnings
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from ..models.entities import (
    STANDALONE_PROJECT_ID,
    STANDALONE_PROJECT_TITLE,
    Project,
    SubDeadline,
    Template,
    TemplateSubDeadline,
    TemplateTrigger,
    TimeOffset,
    Trigger,
)
from ..utils.logging_setup import get_logger
from . import trigger_rules
from .errors import DuplicateNameWarning, OffsetCalculationError
from .instantiator import instantiate
from .offsets import calculate_date, offset_between
from .store import DeadlineStore
from .synchronizer import SyncResult, synchronize
from .template_diff import diff

DEFAULT_TRIGGER_OFFSET = TimeOffset(value=7, unit="days", before=True)


@dataclass(frozen=True)
class UpcomingDeadline:
    title: str
    date: date
    project_title: str
    project_id: uuid.UUID
    sub_deadline_id: uuid.UUID


class DeadlineService:
    def __init__(self, store: Optional[DeadlineStore] = None):
        self.store = store if store is not None else DeadlineStore()
        self._log = get_logger("DeadlineService")

    # ---- projects ----
    def add_project(self, project: Project) -> bool:
        if project.id in self.store.projects:
            self._log.warning("Project %s already exists; not added", project.id)
            return False
        project.sort_sub_deadlines()
        self.store.projects[project.id] = project
        self._log.info("Added project '%s' (%s)", project.title, project.id)
        return True

    def update_project(self, project: Project) -> bool:
        if project.id not in self.store.projects:
            self._log.warning("Cannot update missing project %s", project.id)
            return False
        project.sort_sub_deadlines()
        self.store.projects[project.id] = project
        self._log.info("Updated project '%s' (%s)", project.title, project.id)
        return True

    def delete_project(self, project_id: uuid.UUID) -> bool:
        project = self.store.projects.pop(project_id, None)
        if project is None:
            self._log.warning("Cannot delete missing project %s", project_id)
            return False
        for trigger in self.store.triggers_for(project_id):
            del self.store.triggers[trigger.id]
        self._log.info("Deleted project '%s' (%s)", project.title, project_id)
        return True

    def instantiate_project(self, template_id: uuid.UUID, title: str, final_deadline: date) -> Optional[Project]:
        """Instantiate from a stored template; triggers land in the store before the project."""
        template = self.store.templates.get(template_id)
        if template is None:
            self._log.warning("Cannot instantiate from missing template %s", template_id)
            return None
        project, new_triggers = instantiate(template, title, final_deadline)
        for trigger in new_triggers:
            self.store.triggers[trigger.id] = trigger
        self.store.projects[project.id] = project
        return project

    def add_standalone_deadline(self, sub: SubDeadline) -> Project:
        project = self.store.projects.get(STANDALONE_PROJECT_ID)
        if project is None:
            project = Project(
                id=STANDALONE_PROJECT_ID,
                title=STANDALONE_PROJECT_TITLE,
                final_deadline=date.max,
                sub_deadlines=[sub],
            )
            self.store.projects[project.id] = project
            self._log.info("Created '%s' for standalone deadline '%s'", project.title, sub.title)
        else:
            project.sub_deadlines.append(sub)
            project.sort_sub_deadlines()
            self._log.info("Added standalone deadline '%s'", sub.title)
        return project

    def mark_project_completed(self, project_id: uuid.UUID) -> bool:
        return self._set_all_completed(project_id, True)

    def reopen_project(self, project_id: uuid.UUID) -> bool:
        return self._set_all_completed(project_id, False)

    def _set_all_completed(self, project_id: uuid.UUID, completed: bool) -> bool:
        project = self.store.projects.get(project_id)
        if project is None:
            self._log.warning("Project %s not found", project_id)
            return False
        for sub in project.sub_deadlines:
            sub.is_completed = completed
        if not completed:
            project.is_completed_flag = False
        self._log.info("%s project '%s'", "Completed" if completed else "Reopened", project.title)
        return True

    # ---- sub-deadlines ----
    def add_sub_deadline(self, project_id: uuid.UUID, sub: SubDeadline) -> bool:
        project = self.store.projects.get(project_id)
        if project is None:
            self._log.warning("Project %s not found for new sub-deadline '%s'", project_id, sub.title)
            return False
        project.sub_deadlines.append(sub)
        project.sort_sub_deadlines()
        return True

    def update_sub_deadline(self, project_id: uuid.UUID, sub: SubDeadline) -> bool:
        project = self.store.projects.get(project_id)
        if project is None:
            self._log.warning("Project %s not found for sub-deadline update", project_id)
            return False
        for i, existing in enumerate(project.sub_deadlines):
            if existing.id == sub.id:
                project.sub_deadlines[i] = sub
                project.sort_sub_deadlines()
                self._log.info("Updated sub-deadline '%s' in '%s'", sub.title, project.title)
                return True
        self._log.warning("Sub-deadline %s not found in project '%s'", sub.id, project.title)
        return False

    def toggle_completion(self, project_id: uuid.UUID, sub_id: uuid.UUID) -> Optional[bool]:
        """Flip completion; returns the new state. Trigger gating does not block completion."""
        sub = self._find_sub(project_id, sub_id)
        if sub is None:
            return None
        sub.is_completed = not sub.is_completed
        self._log.info("Toggled '%s' completion to %s", sub.title, sub.is_completed)
        return sub.is_completed

    def toggle_subtask(self, project_id: uuid.UUID, sub_id: uuid.UUID, subtask_id: uuid.UUID) -> Optional[bool]:
        sub = self._find_sub(project_id, sub_id)
        if sub is None:
            return None
        for st in sub.subtasks:
            if st.id == subtask_id:
                st.is_completed = not st.is_completed
                return st.is_completed
        self._log.warning("Subtask %s not found in '%s'", subtask_id, sub.title)
        return None

    def delete_sub_deadline(self, project_id: uuid.UUID, sub_id: uuid.UUID) -> bool:
        project = self.store.projects.get(project_id)
        if project is None:
            self._log.warning("Project %s not found for sub-deadline deletion", project_id)
            return False
        before = len(project.sub_deadlines)
        project.sub_deadlines = [s for s in project.sub_deadlines if s.id != sub_id]
        if len(project.sub_deadlines) == before:
            self._log.warning("Sub-deadline %s not found in '%s'", sub_id, project.title)
            return False
        return True

    def _find_sub(self, project_id: uuid.UUID, sub_id: uuid.UUID) -> Optional[SubDeadline]:
        project = self.store.projects.get(project_id)
        sub = project.find_sub_deadline(sub_id) if project else None
        if sub is None:
            self._log.warning("Sub-deadline %s not found in project %s", sub_id, project_id)
        return sub

    # ---- templates ----
    def add_template(self, template: Template) -> bool:
        if self.store.template_named(template.name) is not None:
            msg = f"A template named '{template.name}' already exists"
            self._log.warning(msg)
            warnings.warn(msg, DuplicateNameWarning, stacklevel=2)
            return False
        # stored by value: later edits to the caller's object must not leak in
        self.store.templates[template.id] = copy.deepcopy(template)
        self._log.info("Added template '%s' (%s)", template.name, template.id)
        return True

    def update_template(self, template: Template) -> bool:
        """Replace the definition only; see update_template_and_sync for propagation."""
        if template.id not in self.store.templates:
            self._log.warning("Cannot update missing template %s", template.id)
            return False
        clash = self.store.template_named(template.name)
        if clash is not None and clash.id != template.id:
            msg = f"A template named '{template.name}' already exists"
            self._log.warning(msg)
            warnings.warn(msg, DuplicateNameWarning, stacklevel=2)
            return False
        self.store.templates[template.id] = copy.deepcopy(template)
        self._log.info("Updated template '%s' (%s)", template.name, template.id)
        return True

    def delete_template(self, template_id: uuid.UUID) -> bool:
        template = self.store.templates.pop(template_id, None)
        if template is None:
            self._log.warning("Cannot delete missing template %s", template_id)
            return False
        self._log.info("Deleted template '%s'; projects keep their template reference", template.name)
        return True

    def update_template_and_sync(self, old: Template, new: Template) -> Optional[SyncResult]:
        if not self.update_template(new):
            return None
        return synchronize(self.store, diff(old, new), new.id)

    def create_template_from_project(self, project_id: uuid.UUID) -> Optional[Template]:
        """Derive a day-offset template from a project and add it (None if rejected)."""
        project = self.store.projects.get(project_id)
        if project is None:
            self._log.warning("Project %s not found; no template created", project_id)
            return None
        anchor = project.final_deadline

        tdefs: List[TemplateTrigger] = []
        link: Dict[uuid.UUID, uuid.UUID] = {}  # Trigger.id -> TemplateTrigger.id
        for trigger in self.store.triggers_for(project.id):
            offset = DEFAULT_TRIGGER_OFFSET
            if trigger.date is not None:
                try:
                    offset = offset_between(trigger.date, anchor)
                except OffsetCalculationError:
                    self._log.debug("Trigger '%s' falls on the deadline; using default offset", trigger.name)
            tdef = TemplateTrigger(name=trigger.name, offset=offset)
            tdefs.append(tdef)
            link[trigger.id] = tdef.id

        sdefs: List[TemplateSubDeadline] = []
        for sub in project.sub_deadlines:
            try:
                offset = offset_between(sub.date, anchor)
            except OffsetCalculationError as e:
                self._log.warning("Leaving '%s' out of the template: %s", sub.title, e)
                continue
            sdefs.append(
                TemplateSubDeadline(
                    title=sub.title,
                    offset=offset,
                    template_trigger_id=link.get(sub.trigger_id) if sub.trigger_id else None,
                )
            )

        template = Template(
            name=project.template_name or f"{project.title} Template",
            sub_deadlines=sdefs,
            template_triggers=tdefs,
        )
        if not self.add_template(template):
            return None
        return template

    # ---- triggers ----
    def triggers_for(self, project_id: uuid.UUID) -> List[Trigger]:
        return self.store.triggers_for(project_id)

    def add_trigger(self, trigger: Trigger) -> bool:
        if trigger.id in self.store.triggers:
            self._log.warning("Trigger %s already exists; not added", trigger.id)
            return False
        if any(t.name == trigger.name for t in self.store.triggers_for(trigger.project_id)):
            msg = f"Project {trigger.project_id} already has a trigger named '{trigger.name}'"
            self._log.warning(msg)
            warnings.warn(msg, DuplicateNameWarning, stacklevel=2)
            return False
        self.store.triggers[trigger.id] = trigger
        self._log.info("Added trigger '%s' for project %s", trigger.name, trigger.project_id)
        return True

    def update_trigger(self, trigger: Trigger) -> bool:
        if trigger.id not in self.store.triggers:
            self._log.warning("Cannot update missing trigger %s", trigger.id)
            return False
        self.store.triggers[trigger.id] = trigger
        return True

    def activate_trigger(self, trigger_id: uuid.UUID, now: Optional[datetime] = None) -> bool:
        trigger = self.store.triggers.get(trigger_id)
        if trigger is None:
            self._log.warning("Cannot activate missing trigger %s", trigger_id)
            return False
        changed = trigger_rules.activate(trigger, now)
        if changed:
            self._log.info("Activated trigger '%s'", trigger.name)
        return changed

    def deactivate_trigger(self, trigger_id: uuid.UUID) -> bool:
        trigger = self.store.triggers.get(trigger_id)
        if trigger is None:
            self._log.warning("Cannot deactivate missing trigger %s", trigger_id)
            return False
        changed = trigger_rules.deactivate(trigger)
        if changed:
            self._log.info("Deactivated trigger '%s'", trigger.name)
        return changed

    def delete_trigger(self, trigger_id: uuid.UUID) -> bool:
        trigger = self.store.triggers.get(trigger_id)
        if trigger is None:
            self._log.warning("Cannot delete missing trigger %s", trigger_id)
            return False
        self.store.remove_trigger(trigger_id)
        self._log.info("Deleted trigger '%s' (%s)", trigger.name, trigger_id)
        return True

    def backfill_trigger_dates(self) -> int:
        """Give dateless triggers a due date; returns how many were filled."""
        filled = 0
        for trigger in self.store.triggers.values():
            if trigger.date is not None:
                continue
            project = self.store.projects.get(trigger.project_id)
            if project is None:
                continue
            offset = DEFAULT_TRIGGER_OFFSET
            template = self.store.templates.get(project.template_id) if project.template_id else None
            if template is not None and trigger.originating_template_trigger_id is not None:
                for tdef in template.template_triggers:
                    if tdef.id == trigger.originating_template_trigger_id:
                        offset = tdef.offset
                        break
            try:
                trigger.date = calculate_date(offset, project.final_deadline)
            except OffsetCalculationError:
                trigger.date = project.final_deadline - timedelta(days=7)
            filled += 1
        if filled:
            self._log.info("Backfilled dates on %d trigger(s)", filled)
        return filled

    # ---- queries ----
    def is_sub_deadline_active(self, sub: SubDeadline) -> bool:
        return trigger_rules.is_sub_deadline_active(sub, self.store.triggers)

    def is_fully_completed(self, project: Project) -> bool:
        return project.is_fully_completed

    def active_projects(self) -> List[Project]:
        return [p for p in self.store.projects.values() if not p.is_fully_completed]

    def completed_projects(self) -> List[Project]:
        return [p for p in self.store.projects.values() if p.is_fully_completed]

    def upcoming_deadlines(self, limit: int) -> List[UpcomingDeadline]:
        """Incomplete, currently active sub-deadlines of open projects, soonest first (overdue included)."""
        items: List[UpcomingDeadline] = []
        for project in self.active_projects():
            for sub in project.sub_deadlines:
                if sub.is_completed or not self.is_sub_deadline_active(sub):
                    continue
                items.append(UpcomingDeadline(sub.title, sub.date, project.title, project.id, sub.id))
        items.sort(key=lambda u: u.date)
        return items[:max(limit, 0)]
