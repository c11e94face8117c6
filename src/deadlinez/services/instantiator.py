# Rev 0.2.0

"""Project instantiation from a template (Rev 0.2.0)
Builds a Project plus its Trigger set. Nothing is stored here: the caller
persists the triggers before (or atomically with) the project.
"""
from __future__ import annotations
import uuid
from datetime import date
from typing import Dict, List, Tuple

from ..models.entities import Project, SubDeadline, Template, Trigger
from ..utils.logging_setup import get_logger
from .errors import OffsetCalculationError
from .offsets import calculate_date

_log = get_logger("instantiator")


def instantiate(template: Template, title: str, anchor: date) -> Tuple[Project, List[Trigger]]:
    # Project id first: triggers point at it, sub-deadlines point at triggers
    project_id = uuid.uuid4()

    new_triggers: List[Trigger] = []
    trigger_map: Dict[uuid.UUID, uuid.UUID] = {}  # TemplateTrigger.id -> Trigger.id
    for tdef in template.template_triggers:
        try:
            due = calculate_date(tdef.offset, anchor)
        except OffsetCalculationError as e:
            _log.warning("Skipping trigger '%s' for project '%s': %s", tdef.name, title, e)
            continue
        trigger = Trigger(
            name=tdef.name,
            project_id=project_id,
            date=due,
            originating_template_trigger_id=tdef.id,
        )
        new_triggers.append(trigger)
        trigger_map[tdef.id] = trigger.id

    subs: List[SubDeadline] = []
    for sdef in template.sub_deadlines:
        try:
            when = calculate_date(sdef.offset, anchor)
        except OffsetCalculationError as e:
            _log.warning("Skipping sub-deadline '%s' for project '%s': %s", sdef.title, title, e)
            continue
        trigger_id = trigger_map.get(sdef.template_trigger_id) if sdef.template_trigger_id else None
        subs.append(
            SubDeadline(
                title=sdef.title,
                date=when,
                template_sub_deadline_id=sdef.id,
                trigger_id=trigger_id,
            )
        )

    project = Project(
        id=project_id,
        title=title,
        final_deadline=anchor,
        sub_deadlines=sorted(subs, key=lambda s: s.date),
        template_id=template.id,
        template_name=template.name,
    )
    _log.info(
        "Prepared project '%s' from template '%s': %d sub-deadline(s), %d trigger(s)",
        title, template.name, len(project.sub_deadlines), len(new_triggers),
    )
    return project, new_triggers
