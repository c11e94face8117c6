# src/deadlinez/services/trigger_rules.py
"""Trigger activation rules.

A trigger is Pending until activated; activation stamps `activation_date`.
Deactivation returns it to Pending and keeps the stamp as history.
Both transitions are no-ops when the trigger is already in the target state.
"""
from __future__ import annotations
import uuid
import warnings
from datetime import datetime, timezone
from typing import Mapping, Optional

from ..models.entities import SubDeadline, Trigger
from ..utils.logging_setup import get_logger
from .errors import ReferenceIntegrityWarning

_log = get_logger("trigger_rules")


def activate(trigger: Trigger, now: Optional[datetime] = None) -> bool:
    """Return True if the trigger changed state."""
    if trigger.is_active:
        _log.debug("Trigger %s already active", trigger.id)
        return False
    trigger.is_active = True
    trigger.activation_date = now or datetime.now(timezone.utc)
    return True


def deactivate(trigger: Trigger) -> bool:
    """Return True if the trigger changed state; activation_date is kept."""
    if not trigger.is_active:
        _log.debug("Trigger %s already inactive", trigger.id)
        return False
    trigger.is_active = False
    return True


def is_sub_deadline_active(sub: SubDeadline, triggers: Mapping[uuid.UUID, Trigger]) -> bool:
    """Visibility gate for a sub-deadline; completion is not considered."""
    if sub.trigger_id is None:
        return True
    trigger = triggers.get(sub.trigger_id)
    if trigger is None:
        msg = f"Trigger {sub.trigger_id} linked to sub-deadline '{sub.title}' not found; treating as inactive"
        _log.warning(msg)
        warnings.warn(msg, ReferenceIntegrityWarning, stacklevel=2)
        return False
    return trigger.is_active
