"""Schema normalization: raw tables → canonical :class:`AllocationRequest`.

A raw table is an ordered sequence of rows, each either a mapping
(column name → cell) or a positional sequence of cells.  Five layouts are
recognised, tried in priority order; the first structural match wins:

- L1 column-pair: ``Capacity`` and ``ToDistribute`` fields on every row
- L2 positional: no header, column 0 = capacity, column 1 = demand
- L3 capacity-row: row 0 = capacities + a text label in its last cell,
  later rows carry a demand under that label
- L4 header + capacity row: row 0 = names, row 1 = capacities for every
  column but the last, rows 2+ carry a demand in the last named column
- L5 split columns: ``Capacity`` and ``ToDistribute`` fields collected
  independently because they sit on different rows

Positional tables whose first row names ``Capacity`` or ``ToDistribute``
are promoted to mapping rows first.  Mapping rows without
those fields (a decoded sheet whose header row was consumed) are re-expressed
positionally so the header-driven layouts still apply.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from distributor.cells import CellKind, cell_text, classify_cell, is_missing, parse_numeric_cell
from distributor.config import DEFAULT_CONFIG, AllocationConfig
from distributor.errors import EmptyInput, MalformedHeader, MissingCapacities, MissingDemands
from distributor.models import AllocationRequest, Container, Demand, Layout, RawTable

log = logging.getLogger(__name__)

Record = dict[str, Any]
Grid = list[list[Any]]


# ---------------------------------------------------------------------------
# Row shape helpers
# ---------------------------------------------------------------------------


def _as_cells(row: Any) -> list[Any]:
    """Positional view of a row; scalars and strings become one-cell rows."""
    if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
        return [row]
    return list(row)


def _trimmed_width(cells: Sequence[Any]) -> int:
    """Number of cells up to and including the last non-missing one."""
    width = len(cells)
    while width and is_missing(cells[width - 1]):
        width -= 1
    return width


def _strip_blank_rows(grid: Grid) -> Grid:
    """Drop leading and trailing rows that hold no value at all."""
    start, end = 0, len(grid)
    while start < end and _trimmed_width(grid[start]) == 0:
        start += 1
    while end > start and _trimmed_width(grid[end - 1]) == 0:
        end -= 1
    return grid[start:end]


def _cell(cells: Sequence[Any], index: int) -> Any:
    return cells[index] if index < len(cells) else None


def _records_to_grid(records: list[Record]) -> Grid:
    """Header row (union of keys, first-seen order) followed by value rows."""
    columns: list[str] = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    return [list(columns)] + [[record.get(col) for col in columns] for record in records]


def _grid_to_records(grid: Grid) -> list[Record]:
    """Promote the first row to a header; blank headers become ``Column N``."""
    header = [cell_text(c) or f"Column {i + 1}" for i, c in enumerate(grid[0])]
    records: list[Record] = []
    for row in grid[1:]:
        records.append({name: _cell(row, i) for i, name in enumerate(header)})
    return records


def _names_a_field(cells: Sequence[Any], config: AllocationConfig) -> bool:
    """True when a header row names the capacity or the demand field."""
    labels = {cell_text(c) for c in cells}
    return config.capacity_column in labels or config.demand_column in labels


# ---------------------------------------------------------------------------
# Layout detection
# ---------------------------------------------------------------------------


def _has_named_field(records: list[Record], config: AllocationConfig) -> bool:
    """True when any record carries the capacity or the demand field."""
    fields = {config.capacity_column, config.demand_column}
    return any(not fields.isdisjoint(r) for r in records)


def _detect_named_layout(records: list[Record], config: AllocationConfig) -> Layout:
    """L1 or L5 for records carrying the capacity and/or demand field."""
    cap_col, dem_col = config.capacity_column, config.demand_column
    has_cap = any(cap_col in r for r in records)
    has_dem = any(dem_col in r for r in records)

    if not has_dem:
        raise MissingDemands(f"found a {cap_col!r} column but no {dem_col!r} column")
    if not has_cap:
        raise MissingCapacities(f"found a {dem_col!r} column but no {cap_col!r} column")

    paired = all(
        not is_missing(r.get(cap_col)) and not is_missing(r.get(dem_col))
        for r in records
    )
    return Layout.L1_COLUMN_PAIR if paired else Layout.L5_SPLIT_COLUMNS


def _detect_positional_layout(grid: Grid) -> Layout:
    """Choose between L2, L3 and L4 from the first row's cell kinds."""
    first = grid[0]
    width = _trimmed_width(first)
    kinds = [classify_cell(c) for c in first[:width]]

    if CellKind.TEXT not in kinds:
        if width < 2:
            raise MalformedHeader(
                f"positional layout needs at least two columns, found {width}",
                layout=Layout.L2_POSITIONAL.value,
            )
        return Layout.L2_POSITIONAL

    if (
        width >= 2
        and kinds[-1] is CellKind.TEXT
        and CellKind.TEXT not in kinds[:-1]
        and CellKind.NUMBER in kinds[:-1]
    ):
        return Layout.L3_CAPACITY_ROW

    if width < 2:
        raise MalformedHeader(
            f"header row needs at least two columns (containers + demand), found {width}",
            layout=Layout.L4_HEADER_CAPACITY_ROW.value,
        )
    return Layout.L4_HEADER_CAPACITY_ROW


def detect_layout(
    raw: RawTable,
    config: AllocationConfig = DEFAULT_CONFIG,
) -> tuple[Layout, list[Record] | Grid]:
    """Detect the layout of ``raw``.

    Returns the layout together with the table reshaped for its extractor:
    a list of records for L1/L5, a grid (list of cell lists) for L2–L4.

    Raises:
        EmptyInput: The table has no (non-blank) rows.
        MalformedHeader: Mixed row kinds or too few columns.
        MissingCapacities / MissingDemands: Only one of the named fields exists.
    """
    rows = list(raw)
    if not rows:
        raise EmptyInput("the table has no rows")

    mapping_rows = [isinstance(r, Mapping) for r in rows]
    if all(mapping_rows):
        records = [dict(r) for r in rows]
        if _has_named_field(records, config):
            return _detect_named_layout(records, config), records
        grid = _records_to_grid(records)
    elif any(mapping_rows):
        raise MalformedHeader("rows mix named fields and positional cells")
    else:
        grid = _strip_blank_rows([_as_cells(r) for r in rows])
        if not grid:
            raise EmptyInput("the table has only blank rows")
        if _names_a_field(grid[0], config):
            records = _grid_to_records(grid)
            if not records:
                raise MissingDemands("header row found but no data rows follow it")
            return _detect_named_layout(records, config), records

    return _detect_positional_layout(grid), grid


# ---------------------------------------------------------------------------
# Per-layout extraction
# ---------------------------------------------------------------------------


def _capacity(cell: Any) -> int:
    """Capacity rule: invalid → 0, negatives clamp to 0."""
    value = parse_numeric_cell(cell)
    if value is None:
        return 0
    if value < 0:
        log.warning("Negative capacity %r clamped to 0", cell)
        return 0
    return value


def _demand(cell: Any) -> int | None:
    """Demand rule: invalid → None (skipped), negatives clamp to 0."""
    value = parse_numeric_cell(cell)
    if value is None:
        return None
    if value < 0:
        log.warning("Negative demand %r clamped to 0", cell)
        return 0
    return value


def _passthrough_columns(records: list[Record], config: AllocationConfig) -> list[str]:
    skip = {config.capacity_column, config.demand_column}
    columns: list[str] = []
    for record in records:
        for key in record:
            if key not in skip and key not in columns:
                columns.append(key)
    return columns


def _unique_names(names: list[str], reserved: set[str], config: AllocationConfig) -> list[str]:
    """Blank names become ``Container N``; duplicates get a `` (n)`` suffix."""
    seen = set(reserved)
    result: list[str] = []
    for i, name in enumerate(names):
        base = name or config.container_name(i)
        candidate, n = base, 2
        while candidate in seen:
            candidate = f"{base} ({n})"
            n += 1
        seen.add(candidate)
        result.append(candidate)
    return result


def _extract_column_pair(records: list[Record], config: AllocationConfig) -> AllocationRequest:
    containers: list[Container] = []
    demands: list[Demand] = []
    for i, record in enumerate(records):
        containers.append(
            Container(config.container_name(i), _capacity(record[config.capacity_column]))
        )
        quantity = _demand(record[config.demand_column])
        if quantity is not None:
            demands.append(Demand(quantity, row_index=i, source_row=record))
    return AllocationRequest(
        layout=Layout.L1_COLUMN_PAIR,
        containers=containers,
        demands=demands,
        demand_column=config.demand_output_column,
        passthrough_columns=_passthrough_columns(records, config),
    )


def _extract_split_columns(records: list[Record], config: AllocationConfig) -> AllocationRequest:
    containers: list[Container] = []
    demands: list[Demand] = []
    for i, record in enumerate(records):
        if parse_numeric_cell(record.get(config.capacity_column)) is not None:
            name = config.container_name(len(containers))
            containers.append(Container(name, _capacity(record[config.capacity_column])))
        quantity = _demand(record.get(config.demand_column))
        if quantity is not None:
            demands.append(Demand(quantity, row_index=i, source_row=record))
    return AllocationRequest(
        layout=Layout.L5_SPLIT_COLUMNS,
        containers=containers,
        demands=demands,
        demand_column=config.demand_output_column,
        passthrough_columns=_passthrough_columns(records, config),
    )


def _extract_positional(grid: Grid, config: AllocationConfig) -> AllocationRequest:
    containers: list[Container] = []
    demands: list[Demand] = []
    for i, row in enumerate(grid):
        cap_cell = _cell(row, 0)
        # Short or blank rows (uneven columns) contribute no container
        if not is_missing(cap_cell):
            name = config.container_name(len(containers))
            containers.append(Container(name, _capacity(cap_cell)))
        quantity = _demand(_cell(row, 1))
        if quantity is not None:
            demands.append(Demand(quantity, row_index=i))
    return AllocationRequest(
        layout=Layout.L2_POSITIONAL,
        containers=containers,
        demands=demands,
        demand_column=config.demand_output_column,
    )


def _extract_capacity_row(grid: Grid, config: AllocationConfig) -> AllocationRequest:
    first = grid[0]
    label_idx = _trimmed_width(first) - 1
    demand_column = cell_text(first[label_idx])

    names = _unique_names(
        [config.container_name(j) for j in range(label_idx)], {demand_column}, config
    )
    containers = [Container(names[j], _capacity(first[j])) for j in range(label_idx)]

    demands: list[Demand] = []
    for i, row in enumerate(grid[1:], start=1):
        quantity = _demand(_cell(row, label_idx))
        if quantity is not None:
            demands.append(Demand(quantity, row_index=i))
    return AllocationRequest(
        layout=Layout.L3_CAPACITY_ROW,
        containers=containers,
        demands=demands,
        demand_column=demand_column,
    )


def _extract_header_capacity_row(grid: Grid, config: AllocationConfig) -> AllocationRequest:
    header = grid[0]
    width = _trimmed_width(header)
    demand_idx = width - 1
    demand_column = cell_text(header[demand_idx])

    if len(grid) < 2:
        raise MissingCapacities(
            "header row found but no capacity row below it",
            layout=Layout.L4_HEADER_CAPACITY_ROW.value,
        )

    names = _unique_names(
        [cell_text(c) for c in header[:demand_idx]], {demand_column}, config
    )
    capacity_row = grid[1]
    containers = [
        Container(names[j], _capacity(_cell(capacity_row, j))) for j in range(demand_idx)
    ]

    demands: list[Demand] = []
    for i, row in enumerate(grid[2:], start=2):
        quantity = _demand(_cell(row, demand_idx))
        if quantity is not None:
            demands.append(Demand(quantity, row_index=i))
    return AllocationRequest(
        layout=Layout.L4_HEADER_CAPACITY_ROW,
        containers=containers,
        demands=demands,
        demand_column=demand_column,
    )


_EXTRACTORS = {
    Layout.L1_COLUMN_PAIR: _extract_column_pair,
    Layout.L2_POSITIONAL: _extract_positional,
    Layout.L3_CAPACITY_ROW: _extract_capacity_row,
    Layout.L4_HEADER_CAPACITY_ROW: _extract_header_capacity_row,
    Layout.L5_SPLIT_COLUMNS: _extract_split_columns,
}


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def normalize_table(
    raw: RawTable,
    config: AllocationConfig | None = None,
) -> AllocationRequest:
    """Normalize a raw table into an :class:`AllocationRequest`.

    Args:
        raw: Ordered rows, each a mapping or a positional sequence of cells.
        config: Column labels and naming options (defaults apply when None).

    Returns:
        The canonical request, with non-empty ``containers`` and ``demands``.

    Raises:
        EmptyInput, MalformedHeader, MissingCapacities, MissingDemands.
    """
    config = config or DEFAULT_CONFIG
    layout, shaped = detect_layout(raw, config)
    request = _EXTRACTORS[layout](shaped, config)

    if not request.containers:
        raise MissingCapacities("no container capacity could be read", layout=layout.value)
    if not request.demands:
        raise MissingDemands("no quantity to distribute could be read", layout=layout.value)

    log.info(
        "Detected layout %s: %d containers (total capacity %d), %d demands",
        layout.value, len(request.containers), request.total_capacity, len(request.demands),
    )
    return request
