# Rev 0.2.0

"""Project synchronizer (Rev 0.2.0)
Applies a TemplateDelta to every project instantiated from the template.

Per project, in order:
  1. added trigger definitions   -> create missing triggers
  2. deleted trigger definitions -> delete triggers (sub-deadlines unlinked)
  3. changed trigger definitions -> rename / re-date triggers
  4. changed sub-deadline defs   -> title / date / trigger link
  5. added sub-deadline defs     -> create missing sub-deadlines
  6. re-sort when anything changed
Dates are always computed from the project's own final deadline.
Only fields that actually differ are written, so applying the same delta
twice (or an empty delta) changes nothing.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..models.entities import Project, SubDeadline, Trigger
from ..utils.logging_setup import get_logger
from .errors import OffsetCalculationError
from .offsets import calculate_date
from .store import DeadlineStore
from .template_diff import TemplateDelta

_log = get_logger("synchronizer")


@dataclass
class SyncResult:
    changed_project_ids: List[uuid.UUID] = field(default_factory=list)
    created_triggers: List[Trigger] = field(default_factory=list)
    deleted_trigger_ids: List[uuid.UUID] = field(default_factory=list)
    updated_trigger_ids: List[uuid.UUID] = field(default_factory=list)

    @property
    def projects_changed(self) -> bool:
        return bool(self.changed_project_ids)

    @property
    def triggers_changed(self) -> bool:
        return bool(self.created_triggers or self.deleted_trigger_ids or self.updated_trigger_ids)


def synchronize(store: DeadlineStore, delta: TemplateDelta, template_id: Optional[uuid.UUID] = None) -> SyncResult:
    template_id = template_id or delta.template_id
    result = SyncResult()
    for project in store.projects_for_template(template_id):
        if _sync_project(store, project, delta, result) and project.id not in result.changed_project_ids:
            result.changed_project_ids.append(project.id)

    if result.projects_changed or result.triggers_changed:
        _log.info(
            "Synced template %s: %d project(s) modified, %d trigger(s) created, %d deleted, %d updated",
            template_id, len(result.changed_project_ids), len(result.created_triggers),
            len(result.deleted_trigger_ids), len(result.updated_trigger_ids),
        )
    else:
        _log.info("Synced template %s: no project required updates", template_id)
    return result


def _sync_project(store: DeadlineStore, project: Project, delta: TemplateDelta, result: SyncResult) -> bool:
    changed = False
    anchor = project.final_deadline

    # templateTriggerID -> Trigger.id, for this project only
    trigger_map: Dict[uuid.UUID, uuid.UUID] = {
        t.originating_template_trigger_id: t.id
        for t in store.triggers_for(project.id)
        if t.originating_template_trigger_id is not None
    }

    # 1. added trigger definitions
    for tdef in delta.added_triggers:
        if tdef.id in trigger_map:
            continue
        try:
            due = calculate_date(tdef.offset, anchor)
        except OffsetCalculationError as e:
            _log.warning("Project '%s': skipping new trigger '%s': %s", project.title, tdef.name, e)
            continue
        trigger = Trigger(name=tdef.name, project_id=project.id, date=due, originating_template_trigger_id=tdef.id)
        store.triggers[trigger.id] = trigger
        trigger_map[tdef.id] = trigger.id
        result.created_triggers.append(trigger)
        _log.debug("Project '%s': created trigger '%s' due %s", project.title, trigger.name, due)

    # 2. deleted trigger definitions
    for tdef_id in delta.deleted_trigger_ids:
        real_id = trigger_map.pop(tdef_id, None)
        if real_id is None:
            continue
        touched = store.remove_trigger(real_id)
        result.deleted_trigger_ids.append(real_id)
        for other in touched:
            if other.id == project.id:
                changed = True
            elif other.id not in result.changed_project_ids:
                result.changed_project_ids.append(other.id)
        _log.debug("Project '%s': deleted trigger %s", project.title, real_id)

    # 3. changed trigger definitions
    for tchange in delta.changed_triggers:
        real_id = trigger_map.get(tchange.id)
        trigger = store.triggers.get(real_id) if real_id else None
        if trigger is None:
            continue
        trigger_dirty = False
        if tchange.name is not None and trigger.name != tchange.name:
            _log.debug("Project '%s': renaming trigger '%s' -> '%s'", project.title, trigger.name, tchange.name)
            trigger.name = tchange.name
            trigger_dirty = True
        if tchange.offset is not None:
            try:
                due = calculate_date(tchange.offset, anchor)
            except OffsetCalculationError as e:
                _log.warning("Project '%s': keeping date of trigger '%s': %s", project.title, trigger.name, e)
            else:
                if trigger.date != due:
                    trigger.date = due
                    trigger_dirty = True
        if trigger_dirty:
            result.updated_trigger_ids.append(trigger.id)

    # 4. changed sub-deadline definitions
    changes = {c.id: c for c in delta.changed_sub_deadlines}
    if changes:
        for sub in project.sub_deadlines:
            change = changes.get(sub.template_sub_deadline_id) if sub.template_sub_deadline_id else None
            if change is None:
                continue
            if change.title is not None and sub.title != change.title:
                _log.debug("Project '%s': sub-deadline title '%s' -> '%s'", project.title, sub.title, change.title)
                sub.title = change.title
                changed = True
            if change.offset is not None:
                try:
                    when = calculate_date(change.offset, anchor)
                except OffsetCalculationError as e:
                    _log.warning("Project '%s': keeping date of '%s': %s", project.title, sub.title, e)
                else:
                    if sub.date != when:
                        sub.date = when
                        changed = True
            if change.trigger_link_changed:
                new_trigger_id = trigger_map.get(change.template_trigger_id) if change.template_trigger_id else None
                if sub.trigger_id != new_trigger_id:
                    sub.trigger_id = new_trigger_id
                    changed = True

    # 5. added sub-deadline definitions
    existing: Set[uuid.UUID] = {s.template_sub_deadline_id for s in project.sub_deadlines if s.template_sub_deadline_id}
    for sdef in delta.added_sub_deadlines:
        if sdef.id in existing:
            continue
        try:
            when = calculate_date(sdef.offset, anchor)
        except OffsetCalculationError as e:
            _log.warning("Project '%s': skipping new sub-deadline '%s': %s", project.title, sdef.title, e)
            continue
        trigger_id = trigger_map.get(sdef.template_trigger_id) if sdef.template_trigger_id else None
        project.sub_deadlines.append(
            SubDeadline(title=sdef.title, date=when, template_sub_deadline_id=sdef.id, trigger_id=trigger_id)
        )
        existing.add(sdef.id)
        changed = True

    # 6. keep chronological order
    if changed:
        project.sort_sub_deadlines()
        _log.debug("Project '%s' was modified", project.title)
    return changed
