"""Allocation engine: raw table in, allocated table out.

Usage::

    from distributor import process_table

    rows = process_table([
        {"Capacity": 3, "ToDistribute": 5},
        {"Capacity": 2, "ToDistribute": 0},
    ])

Each call is a pure function of its input table and configuration:
normalize → allocate → project.  Normalization errors propagate before any
allocation runs, so no partial table is ever returned.
"""

from __future__ import annotations

import logging
from typing import Any

from distributor.allocate import allocate_request
from distributor.config import DEFAULT_CONFIG, AllocationConfig
from distributor.models import AllocationReport, RawTable
from distributor.normalize import normalize_table
from distributor.project import project_results

log = logging.getLogger(__name__)


def allocate_table(
    raw: RawTable,
    config: AllocationConfig | None = None,
) -> AllocationReport:
    """Run the full pipeline and return request, results and output rows.

    Raises:
        AllocationInputError: The table does not match any supported layout
            or yields no capacities / demands.
    """
    config = config or DEFAULT_CONFIG
    request = normalize_table(raw, config)
    results = allocate_request(request, config.capacity_policy)
    rows = project_results(request, results, config)

    report = AllocationReport(request=request, results=results, rows=rows)
    log.info(
        "Allocated %d demand(s) over %d container(s) [%s policy], %d unit(s) unallocated",
        len(results), len(request.containers), config.capacity_policy,
        report.total_unallocated,
    )
    return report


def process_table(
    raw: RawTable,
    config: AllocationConfig | None = None,
) -> list[dict[str, Any]]:
    """Allocate ``raw`` and return only the output table rows."""
    return allocate_table(raw, config).rows
