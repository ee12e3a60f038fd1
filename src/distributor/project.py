"""Result projection: allocation results → output table rows.

The output shape mirrors the layout the input was normalized from:

- L3 / L4 keep the input's container columns, followed by the demand
  column under its original label.
- L1 / L2 / L5 lead with a ``To Distribute`` column, then one
  ``Container N`` column per container, then any pass-through columns of
  the demand's source row.

Both shapes end with an ``Unallocated`` column unless it is disabled.
Rows are emitted in demand order, one per demand.
"""

from __future__ import annotations

from typing import Any

from distributor.config import DEFAULT_CONFIG, AllocationConfig
from distributor.models import AllocationRequest, AllocationResult, Demand


def output_columns(
    request: AllocationRequest,
    config: AllocationConfig | None = None,
) -> list[str]:
    """Column order of the projected table."""
    config = config or DEFAULT_CONFIG
    names = [c.name for c in request.containers]

    if request.layout.has_named_containers:
        columns = names + [request.demand_column]
    else:
        columns = [request.demand_column] + names
        columns += [c for c in request.passthrough_columns if c not in columns]

    if config.include_unallocated and config.unallocated_column not in columns:
        columns.append(config.unallocated_column)
    return columns


def _passthrough(demand: Demand, column: str) -> Any:
    if demand.source_row is None:
        return ""
    return demand.source_row.get(column, "")


def project_results(
    request: AllocationRequest,
    results: list[AllocationResult],
    config: AllocationConfig | None = None,
) -> list[dict[str, Any]]:
    """Assemble the output table for ``request``.

    Args:
        request: The normalized request (layout, containers, demands).
        results: One result per demand, in demand order.
        config: Output options (defaults apply when None).

    Returns:
        One mapping per demand with keys in :func:`output_columns` order.
    """
    config = config or DEFAULT_CONFIG
    if len(results) != len(request.demands):
        raise ValueError(
            f"Expected {len(request.demands)} results, got {len(results)}"
        )

    columns = output_columns(request, config)
    container_names = {c.name for c in request.containers}
    rows: list[dict[str, Any]] = []

    for demand, result in zip(request.demands, results):
        row: dict[str, Any] = {}
        for column in columns:
            if column in container_names:
                row[column] = result.allocations[column]
            elif column == request.demand_column:
                row[column] = demand.quantity
            elif config.include_unallocated and column == config.unallocated_column:
                row[column] = result.unallocated
            else:
                row[column] = _passthrough(demand, column)
        rows.append(row)

    return rows
