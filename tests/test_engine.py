"""Tests for distributor.engine: end-to-end table processing."""

from __future__ import annotations

import copy

import pytest

from distributor import (
    AllocationConfig,
    AllocationInputError,
    EmptyInput,
    Layout,
    MalformedHeader,
    allocate_table,
    process_table,
)


# ─── Scenarios ───────────────────────────────────────────────────────────────


class TestScenarios:
    def test_exact_fit(self):
        rows = process_table([
            {"Capacity": 3, "ToDistribute": 5},
            {"Capacity": 2, "ToDistribute": 0},
        ])
        assert rows[0]["Container 1"] == 3
        assert rows[0]["Container 2"] == 2
        assert rows[0]["Unallocated"] == 0

    def test_insufficient_capacity(self):
        rows = process_table([{"Capacity": 2, "ToDistribute": 7}, {"Capacity": 2}])
        assert rows == [{"To Distribute": 7, "Container 1": 2, "Container 2": 2, "Unallocated": 3}]

    def test_zero_capacity_container(self):
        rows = process_table([[0, 3], [4, None]])
        assert rows == [{"To Distribute": 3, "Container 1": 0, "Container 2": 3, "Unallocated": 0}]

    def test_multiple_demands_against_same_capacities(self):
        rows = process_table([
            {"Capacity": 1, "ToDistribute": 1},
            {"Capacity": 1, "ToDistribute": 1},
        ])
        assert [(r["Container 1"], r["Container 2"]) for r in rows] == [(1, 0), (1, 0)]

    def test_huge_integer_capacity(self):
        rows = process_table([[10**400, 5], [1, None]])
        assert rows == [{"To Distribute": 5, "Container 1": 4, "Container 2": 1, "Unallocated": 0}]

    def test_integer_above_float_precision(self):
        big = 2**53 + 1
        rows = process_table([{"Capacity": big, "ToDistribute": big}])
        assert rows[0]["Container 1"] == big
        assert rows[0]["Unallocated"] == 0

    def test_empty_input(self):
        with pytest.raises(EmptyInput):
            process_table([])


# ─── Report ──────────────────────────────────────────────────────────────────


class TestAllocateTable:
    def test_report_carries_request_and_results(self):
        report = allocate_table([["Bin A", "Bin B", "Total"], [4, 6], [None, None, 12]])
        assert report.request.layout is Layout.L4_HEADER_CAPACITY_ROW
        assert report.results[0].allocations == {"Bin A": 4, "Bin B": 6}
        assert report.total_unallocated == 2
        assert report.rows == [{"Bin A": 4, "Bin B": 6, "Total": 12, "Unallocated": 2}]

    def test_shared_policy_from_config(self):
        cfg = AllocationConfig(capacity_policy="shared")
        rows = process_table([[1, 1], [1, 1]], cfg)
        assert [(r["Container 1"], r["Container 2"]) for r in rows] == [(1, 0), (0, 1)]

    def test_errors_share_a_base_class(self):
        with pytest.raises(AllocationInputError) as exc:
            process_table([[7]])
        assert isinstance(exc.value, MalformedHeader)
        assert "two columns" in exc.value.detail


# ─── Determinism and purity ──────────────────────────────────────────────────


class TestPurity:
    RAW = [
        {"Name": "a", "Capacity": 3, "ToDistribute": 4},
        {"Name": "b", "Capacity": 1, "ToDistribute": 9},
        {"Name": "c", "Capacity": 2, "ToDistribute": 2},
    ]

    def test_identical_input_identical_output(self):
        assert process_table(self.RAW) == process_table(copy.deepcopy(self.RAW))

    def test_input_is_not_mutated(self):
        raw = copy.deepcopy(self.RAW)
        process_table(raw)
        assert raw == self.RAW
