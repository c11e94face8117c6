# Rev 0.2.0
"""Plain-dict codec for entities (ISO-8601 dates, UUIDs as strings)."""
from __future__ import annotations
import uuid
from datetime import date, datetime
from typing import Any, Dict, Optional

from .entities import (
    Project,
    SubDeadline,
    Subtask,
    Template,
    TemplateSubDeadline,
    TemplateTrigger,
    TimeOffset,
    Trigger,
)


def _uuid(v: Any) -> Optional[uuid.UUID]:
    if v is None or v == "":
        return None
    return v if isinstance(v, uuid.UUID) else uuid.UUID(str(v))


def _str_id(v: Optional[uuid.UUID]) -> Optional[str]:
    return str(v) if v is not None else None


def parse_date(v: Any) -> Optional[date]:
    """Accept 'YYYY-MM-DD' or a full ISO timestamp (legacy backups stored instants)."""
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.astimezone().date()
    if isinstance(v, date):
        return v
    s = str(v)
    if len(s) > 10:
        # instants were written at local midnight
        return datetime.fromisoformat(s.replace("Z", "+00:00")).astimezone().date()
    return date.fromisoformat(s)


def parse_datetime(v: Any) -> Optional[datetime]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v
    return datetime.fromisoformat(str(v).replace("Z", "+00:00"))


# ---------- encode ----------

def offset_to_dict(o: TimeOffset) -> Dict[str, Any]:
    return {"value": o.value, "unit": o.unit, "before": o.before}


def template_to_dict(t: Template) -> Dict[str, Any]:
    return {
        "id": str(t.id),
        "name": t.name,
        "subDeadlines": [
            {
                "id": str(s.id),
                "title": s.title,
                "offset": offset_to_dict(s.offset),
                "templateTriggerID": _str_id(s.template_trigger_id),
            }
            for s in t.sub_deadlines
        ],
        "templateTriggers": [
            {"id": str(tt.id), "name": tt.name, "offset": offset_to_dict(tt.offset)}
            for tt in t.template_triggers
        ],
    }


def sub_deadline_to_dict(s: SubDeadline) -> Dict[str, Any]:
    return {
        "id": str(s.id),
        "title": s.title,
        "date": s.date.isoformat(),
        "isCompleted": s.is_completed,
        "subtasks": [
            {"id": str(st.id), "title": st.title, "isCompleted": st.is_completed}
            for st in s.subtasks
        ],
        "templateSubDeadlineID": _str_id(s.template_sub_deadline_id),
        "triggerID": _str_id(s.trigger_id),
    }


def project_to_dict(p: Project) -> Dict[str, Any]:
    return {
        "id": str(p.id),
        "title": p.title,
        "finalDeadlineDate": p.final_deadline.isoformat(),
        "subDeadlines": [sub_deadline_to_dict(s) for s in p.sub_deadlines],
        "templateID": _str_id(p.template_id),
        "templateName": p.template_name,
        "isCompletedFlag": p.is_completed_flag,
    }


def trigger_to_dict(t: Trigger) -> Dict[str, Any]:
    return {
        "id": str(t.id),
        "name": t.name,
        "projectID": str(t.project_id),
        "isActive": t.is_active,
        "activationDate": t.activation_date.isoformat() if t.activation_date else None,
        "date": t.date.isoformat() if t.date else None,
        "originatingTemplateTriggerID": _str_id(t.originating_template_trigger_id),
    }


# ---------- decode ----------

def offset_from_dict(d: Optional[Dict[str, Any]]) -> TimeOffset:
    if not d:
        return TimeOffset()
    return TimeOffset(value=int(d["value"]), unit=d["unit"], before=bool(d.get("before", True)))


def template_from_dict(d: Dict[str, Any]) -> Template:
    return Template(
        id=_uuid(d["id"]),
        name=d["name"],
        sub_deadlines=[
            TemplateSubDeadline(
                id=_uuid(s["id"]),
                title=s["title"],
                offset=offset_from_dict(s.get("offset")),
                template_trigger_id=_uuid(s.get("templateTriggerID")),
            )
            for s in d.get("subDeadlines", [])
        ],
        template_triggers=[
            TemplateTrigger(id=_uuid(tt["id"]), name=tt["name"], offset=offset_from_dict(tt.get("offset")))
            for tt in d.get("templateTriggers", [])
        ],
    )


def sub_deadline_from_dict(d: Dict[str, Any]) -> SubDeadline:
    return SubDeadline(
        id=_uuid(d["id"]),
        title=d["title"],
        date=parse_date(d["date"]),
        is_completed=bool(d.get("isCompleted", False)),
        subtasks=[
            Subtask(id=_uuid(st["id"]), title=st["title"], is_completed=bool(st.get("isCompleted", False)))
            for st in d.get("subtasks", [])
        ],
        template_sub_deadline_id=_uuid(d.get("templateSubDeadlineID")),
        trigger_id=_uuid(d.get("triggerID")),
    )


def project_from_dict(d: Dict[str, Any]) -> Project:
    return Project(
        id=_uuid(d["id"]),
        title=d["title"],
        final_deadline=parse_date(d["finalDeadlineDate"]),
        sub_deadlines=[sub_deadline_from_dict(s) for s in d.get("subDeadlines", [])],
        template_id=_uuid(d.get("templateID")),
        template_name=d.get("templateName"),
        is_completed_flag=bool(d.get("isCompletedFlag", False)),
    )


def trigger_from_dict(d: Dict[str, Any], project_id: Optional[uuid.UUID] = None) -> Trigger:
    """`project_id` is the owner for legacy triggers embedded in a project."""
    owner = _uuid(d.get("projectID")) or project_id
    if owner is None:
        raise KeyError(f"trigger {d.get('id')} has no projectID")
    return Trigger(
        id=_uuid(d["id"]),
        name=d["name"],
        project_id=owner,
        is_active=bool(d.get("isActive", False)),
        activation_date=parse_datetime(d.get("activationDate")),
        date=parse_date(d.get("date")),
        originating_template_trigger_id=_uuid(d.get("originatingTemplateTriggerID")),
    )
