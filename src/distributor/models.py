"""Canonical data structures shared by the normalizer, algorithm and projector."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, Union

Row = Union[Mapping[str, Any], Sequence[Any]]
RawTable = Sequence[Row]


class Layout(Enum):
    """Supported input layouts, listed in detection priority order."""

    L1_COLUMN_PAIR = "column_pair"  # Capacity + ToDistribute on every row
    L2_POSITIONAL = "positional"  # col 0 = capacity, col 1 = demand
    L3_CAPACITY_ROW = "capacity_row"  # row 0 = capacities + demand label
    L4_HEADER_CAPACITY_ROW = "header_capacity_row"  # header, capacities, data
    L5_SPLIT_COLUMNS = "split_columns"  # Capacity / ToDistribute on different rows

    @property
    def has_named_containers(self) -> bool:
        """True when the projector emits the input's own container columns."""
        return self in (Layout.L3_CAPACITY_ROW, Layout.L4_HEADER_CAPACITY_ROW)


@dataclass(frozen=True)
class Container:
    """A sink with a fixed, non-negative integer capacity."""

    name: str
    capacity: int


@dataclass
class Demand:
    """A quantity to distribute.

    Attributes:
        quantity: Non-negative integer to place across containers.
        row_index: Index of the raw row it was read from (None if synthetic).
        source_row: The originating mapping row, for pass-through columns.
    """

    quantity: int
    row_index: int | None = None
    source_row: Mapping[str, Any] | None = None


@dataclass
class AllocationRequest:
    """Canonical request produced by the normalizer.

    Attributes:
        layout: Layout the raw table was detected as.
        containers: Ordered containers; the round-robin visitation order.
        demands: Ordered demands; the output row order.
        demand_column: Output label of the demand column.
        passthrough_columns: Source-row columns copied unchanged to output.
    """

    layout: Layout
    containers: list[Container]
    demands: list[Demand]
    demand_column: str
    passthrough_columns: list[str] = field(default_factory=list)

    @property
    def capacities(self) -> list[int]:
        return [c.capacity for c in self.containers]

    @property
    def total_capacity(self) -> int:
        return sum(self.capacities)


@dataclass
class AllocationResult:
    """Per-container placement of a single demand."""

    demand: int
    allocations: dict[str, int]
    unallocated: int = 0

    @property
    def allocated(self) -> int:
        return sum(self.allocations.values())

    def as_list(self) -> list[int]:
        """Allocations in canonical container order."""
        return list(self.allocations.values())


@dataclass
class AllocationReport:
    """Everything produced by one engine call."""

    request: AllocationRequest
    results: list[AllocationResult]
    rows: list[dict[str, Any]]

    @property
    def total_unallocated(self) -> int:
        return sum(r.unallocated for r in self.results)
