# Rev 0.2.0

"""Template diff (Rev 0.2.0)
Structural delta between two versions of one template, keyed by the
stable ids of its sub-deadline and trigger definitions.

Removed sub-deadline definitions are reported in the delta but the
synchronizer leaves already-materialized sub-deadlines in place.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from ..models.entities import Template, TemplateSubDeadline, TemplateTrigger, TimeOffset


@dataclass(frozen=True)
class SubDeadlineChange:
    """Field changes of one sub-deadline definition; None means unchanged."""
    id: uuid.UUID
    title: Optional[str] = None
    offset: Optional[TimeOffset] = None
    trigger_link_changed: bool = False
    template_trigger_id: Optional[uuid.UUID] = None   # new link, only read when trigger_link_changed


@dataclass(frozen=True)
class TriggerChange:
    id: uuid.UUID
    name: Optional[str] = None
    offset: Optional[TimeOffset] = None


@dataclass(frozen=True)
class TemplateDelta:
    template_id: uuid.UUID
    added_sub_deadlines: Tuple[TemplateSubDeadline, ...] = ()
    changed_sub_deadlines: Tuple[SubDeadlineChange, ...] = ()
    removed_sub_deadline_ids: Tuple[uuid.UUID, ...] = ()
    added_triggers: Tuple[TemplateTrigger, ...] = ()
    deleted_trigger_ids: Tuple[uuid.UUID, ...] = ()
    changed_triggers: Tuple[TriggerChange, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (
            self.added_sub_deadlines
            or self.changed_sub_deadlines
            or self.removed_sub_deadline_ids
            or self.added_triggers
            or self.deleted_trigger_ids
            or self.changed_triggers
        )


def _sub_change(old: TemplateSubDeadline, new: TemplateSubDeadline) -> Optional[SubDeadlineChange]:
    link_changed = old.template_trigger_id != new.template_trigger_id
    change = SubDeadlineChange(
        id=new.id,
        title=new.title if old.title != new.title else None,
        offset=new.offset if old.offset != new.offset else None,
        trigger_link_changed=link_changed,
        template_trigger_id=new.template_trigger_id if link_changed else None,
    )
    if change.title is None and change.offset is None and not link_changed:
        return None
    return change


def _trigger_change(old: TemplateTrigger, new: TemplateTrigger) -> Optional[TriggerChange]:
    name = new.name if old.name != new.name else None
    offset = new.offset if old.offset != new.offset else None
    if name is None and offset is None:
        return None
    return TriggerChange(id=new.id, name=name, offset=offset)


def diff(old: Template, new: Template) -> TemplateDelta:
    """Pure: same inputs always give an equal delta. Ordering follows the templates' lists."""
    if old.id != new.id:
        raise ValueError(f"cannot diff different templates ({old.id} vs {new.id})")

    old_subs = {s.id: s for s in old.sub_deadlines}
    new_subs = {s.id: s for s in new.sub_deadlines}
    added_subs = tuple(s for s in new.sub_deadlines if s.id not in old_subs)
    removed_subs = tuple(s.id for s in old.sub_deadlines if s.id not in new_subs)
    changed_subs = tuple(
        c for c in (_sub_change(old_subs[s.id], s) for s in new.sub_deadlines if s.id in old_subs)
        if c is not None
    )

    old_trigs = {t.id: t for t in old.template_triggers}
    new_trigs = {t.id: t for t in new.template_triggers}
    added_trigs = tuple(t for t in new.template_triggers if t.id not in old_trigs)
    deleted_trigs = tuple(t.id for t in old.template_triggers if t.id not in new_trigs)
    changed_trigs = tuple(
        c for c in (_trigger_change(old_trigs[t.id], t) for t in new.template_triggers if t.id in old_trigs)
        if c is not None
    )

    return TemplateDelta(
        template_id=new.id,
        added_sub_deadlines=added_subs,
        changed_sub_deadlines=changed_subs,
        removed_sub_deadline_ids=removed_subs,
        added_triggers=added_trigs,
        deleted_trigger_ids=deleted_trigs,
        changed_triggers=changed_trigs,
    )
