# Rev 0.2.0
"""Error and warning taxonomy for the deadline engine."""
from __future__ import annotations


class OffsetCalculationError(ValueError):
    """Offset arithmetic is undefined (bad magnitude, unknown unit, date out of range).

    Callers skip the single affected step and carry on.
    """


class ReferenceIntegrityWarning(UserWarning):
    """A record points at an id that is not in the current collections."""


class DuplicateNameWarning(UserWarning):
    """An add was rejected because the name is already in use."""


class BackupError(Exception):
    """A backup document could not be encoded or decoded."""
