"""Tests for distributor.config: AllocationConfig and JSON loading."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from distributor.config import AllocationConfig, load_config


def test_defaults():
    cfg = AllocationConfig()
    assert cfg.capacity_column == "Capacity"
    assert cfg.demand_column == "ToDistribute"
    assert cfg.capacity_policy == "independent"
    assert cfg.include_unallocated is True


def test_container_name_is_one_based():
    assert AllocationConfig().container_name(0) == "Container 1"
    assert AllocationConfig(container_prefix="Bay").container_name(2) == "Bay 3"


def test_load_config(tmp_path):
    path = tmp_path / "allocation.json"
    path.write_text(json.dumps({"capacity_policy": "shared", "demand_column": "Qty"}))
    cfg = load_config(path)
    assert cfg.capacity_policy == "shared"
    assert cfg.demand_column == "Qty"
    assert cfg.capacity_column == "Capacity"


def test_invalid_policy():
    with pytest.raises(ValidationError):
        AllocationConfig(capacity_policy="weighted")


def test_empty_column_name_rejected():
    with pytest.raises(ValidationError):
        AllocationConfig(capacity_column="")
