"""Typed failures raised at the engine and codec boundaries.

Normalization errors abort a call before any allocation runs; callers get
the error ``kind`` plus a human-readable ``detail`` naming which structural
expectation was unmet.  The allocation algorithm itself never raises.
"""

from __future__ import annotations


class AllocationInputError(Exception):
    """Base class for invalid-input failures of the allocation engine."""

    kind: str = "AllocationInputError"

    def __init__(self, detail: str, *, layout: str | None = None):
        super().__init__(f"{self.kind}: {detail}")
        self.detail = detail
        self.layout = layout


class EmptyInput(AllocationInputError):
    """The raw table has no rows."""

    kind = "EmptyInput"


class MalformedHeader(AllocationInputError):
    """Required header/column structure is absent."""

    kind = "MalformedHeader"


class MissingCapacities(AllocationInputError):
    """No container capacity could be extracted."""

    kind = "MissingCapacities"


class MissingDemands(AllocationInputError):
    """No quantity to distribute could be extracted."""

    kind = "MissingDemands"


class TableCodecError(Exception):
    """Raised when a payload cannot be decoded into (or encoded from) a table."""
