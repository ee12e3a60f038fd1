"""Engine configuration: column labels, output options and capacity policy.

Usage::

    from distributor.config import AllocationConfig, load_config

    cfg = load_config("allocation.json")
    cfg = AllocationConfig(capacity_policy="shared")
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class AllocationConfig(BaseModel):
    """Options for normalization, allocation and projection.

    ``capacity_policy`` controls whether every demand sees the full original
    capacities (``"independent"``) or a pool depleted by earlier demands
    (``"shared"``).
    """

    capacity_column: str = Field("Capacity", min_length=1)
    demand_column: str = Field("ToDistribute", min_length=1)
    demand_output_column: str = "To Distribute"
    container_prefix: str = "Container"
    unallocated_column: str = "Unallocated"
    include_unallocated: bool = True
    capacity_policy: Literal["independent", "shared"] = "independent"

    def container_name(self, index: int) -> str:
        """Synthesized name for the container at 0-based ``index``."""
        return f"{self.container_prefix} {index + 1}"


DEFAULT_CONFIG = AllocationConfig()


def load_config(path: str | Path) -> AllocationConfig:
    """Load an :class:`AllocationConfig` from a JSON file.

    Unknown keys are ignored; invalid values raise ``pydantic.ValidationError``.
    """
    with open(path) as f:
        raw = json.load(f)
    return AllocationConfig.model_validate(raw)
