# deadlineZ type definitions
# Rev 0.2.0

from __future__ import annotations
from typing import Literal

# Units a template offset can be expressed in
OffsetUnit = Literal["days", "weeks", "months"]
OFFSET_UNITS: tuple[str, ...] = ("days", "weeks", "months")
