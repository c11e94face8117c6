# Rev 0.2.0
"""Entities for projects, templates and triggers.

Records reference each other by UUID only (project -> template,
sub-deadline -> trigger, trigger -> project, and back-references to the
template definitions they were materialized from).
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from .types import OffsetUnit

STANDALONE_PROJECT_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
STANDALONE_PROJECT_TITLE = "Standalone Deadlines"


@dataclass(frozen=True)
class TimeOffset:
    """Distance from an anchor date, e.g. 7 days before or 2 months after."""
    value: int = 7
    unit: OffsetUnit = "days"
    before: bool = True

    def describe(self) -> str:
        return f"{self.value} {self.unit} {'before' if self.before else 'after'}"


@dataclass(frozen=True)
class TemplateTrigger:
    name: str
    offset: TimeOffset = field(default_factory=TimeOffset)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class TemplateSubDeadline:
    title: str = "New Sub-Deadline"
    offset: TimeOffset = field(default_factory=TimeOffset)
    template_trigger_id: Optional[uuid.UUID] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Template:
    name: str = "New Template"
    sub_deadlines: List[TemplateSubDeadline] = field(default_factory=list)
    template_triggers: List[TemplateTrigger] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Subtask:
    title: str
    is_completed: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class SubDeadline:
    title: str
    date: date
    is_completed: bool = False
    subtasks: List[Subtask] = field(default_factory=list)
    template_sub_deadline_id: Optional[uuid.UUID] = None   # None when added by hand
    trigger_id: Optional[uuid.UUID] = None                 # None = always active
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Trigger:
    name: str
    project_id: uuid.UUID
    is_active: bool = False
    activation_date: Optional[datetime] = None             # kept after deactivation
    date: Optional[date] = None                            # informational due date
    originating_template_trigger_id: Optional[uuid.UUID] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Project:
    title: str
    final_deadline: date
    sub_deadlines: List[SubDeadline] = field(default_factory=list)
    template_id: Optional[uuid.UUID] = None
    template_name: Optional[str] = None
    is_completed_flag: bool = False                        # special containers only
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def is_fully_completed(self) -> bool:
        if self.is_completed_flag:
            return True
        return bool(self.sub_deadlines) and all(s.is_completed for s in self.sub_deadlines)

    @property
    def is_standalone(self) -> bool:
        return self.id == STANDALONE_PROJECT_ID

    def sort_sub_deadlines(self) -> None:
        self.sub_deadlines.sort(key=lambda s: s.date)

    def find_sub_deadline(self, sub_id: uuid.UUID) -> Optional[SubDeadline]:
        for sub in self.sub_deadlines:
            if sub.id == sub_id:
                return sub
        return None
