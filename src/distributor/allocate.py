"""Capacity-constrained round-robin allocation.

One demand is placed one unit at a time, sweeping the containers in
canonical order.  Every pass gives each container still below its capacity
one more unit; the loop ends when the demand is placed or a full pass makes
no progress.  The result is a maximally even fill where ties on the final
partial pass go to earlier containers.

Each demand normally starts from the full original capacities.  With
``policy="shared"`` the demands draw from one pool instead, so later demands
only see what earlier ones left behind.
"""

from __future__ import annotations

import logging
from typing import Literal, Sequence

from distributor.models import AllocationRequest, AllocationResult, Container

log = logging.getLogger(__name__)

CapacityPolicy = Literal["independent", "shared"]


def round_robin(capacities: Sequence[int], demand: int) -> tuple[list[int], int]:
    """Distribute ``demand`` over ``capacities`` one unit per container per pass.

    Runs in time proportional to the number of distinct fill levels rather
    than to ``demand``, with the same result as the unit-at-a-time sweep.

    Args:
        capacities: Non-negative integer ceilings, in visitation order.
        demand: Non-negative integer quantity to place.

    Returns:
        ``(allocations, unallocated)`` with ``allocations[i] <= capacities[i]``
        and ``sum(allocations) + unallocated == demand``.
    """
    allocations = [0] * len(capacities)
    remaining = demand

    while remaining > 0:
        open_slots = [i for i, cap in enumerate(capacities) if allocations[i] < cap]
        if not open_slots:
            break  # a full pass would make no progress

        # Consecutive full passes leave the set of open containers unchanged
        # until one reaches its ceiling or the demand runs short, so apply
        # them in one step.
        passes = min(
            remaining // len(open_slots),
            min(capacities[i] - allocations[i] for i in open_slots),
        )
        if passes:
            for i in open_slots:
                allocations[i] += passes
            remaining -= passes * len(open_slots)
            continue

        # Final partial pass: earlier containers win the tie.
        for i in open_slots[:remaining]:
            allocations[i] += 1
        remaining -= min(remaining, len(open_slots))

    return allocations, remaining


def allocate_demand(containers: Sequence[Container], demand: int) -> AllocationResult:
    """Allocate a single demand against ``containers`` at full capacity."""
    allocations, unallocated = round_robin([c.capacity for c in containers], demand)
    return AllocationResult(
        demand=demand,
        allocations={c.name: units for c, units in zip(containers, allocations)},
        unallocated=unallocated,
    )


def allocate_request(
    request: AllocationRequest,
    policy: CapacityPolicy = "independent",
) -> list[AllocationResult]:
    """Allocate every demand of ``request``, in order.

    With ``"independent"`` each demand sees every container at its original
    capacity.  With ``"shared"`` each demand sees the capacity left over by
    the demands before it.
    """
    if policy not in ("independent", "shared"):
        raise ValueError(f"Unknown capacity policy: {policy!r}")

    remaining = request.capacities
    results: list[AllocationResult] = []

    for index, demand in enumerate(request.demands):
        capacities = remaining if policy == "shared" else request.capacities
        allocations, unallocated = round_robin(capacities, demand.quantity)
        if policy == "shared":
            remaining = [cap - used for cap, used in zip(remaining, allocations)]

        result = AllocationResult(
            demand=demand.quantity,
            allocations={c.name: units for c, units in zip(request.containers, allocations)},
            unallocated=unallocated,
        )
        results.append(result)

        log.debug("Demand %d (%d): %s", index, demand.quantity, result.as_list())
        if unallocated:
            log.warning(
                "Demand %d: %d of %d units could not be placed (capacity exhausted)",
                index, unallocated, demand.quantity,
            )

    return results
