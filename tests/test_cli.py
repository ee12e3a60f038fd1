"""Tests for the distributor CLI (allocate, inspect)."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner
from openpyxl import Workbook, load_workbook

from distributor.cli import main


def _write_xlsx(path: Path, rows: list[list]) -> Path:
    wb = Workbook()
    for row in rows:
        wb.active.append(row)
    wb.save(path)
    return path


def _sheet_values(path: Path) -> list[list]:
    wb = load_workbook(path)
    return [list(r) for r in wb["Allocations"].iter_rows(values_only=True)]


class TestAllocateCommand:
    def test_default_output_name(self, tmp_path: Path) -> None:
        src = _write_xlsx(tmp_path / "plan.xlsx", [["Capacity", "ToDistribute"], [3, 5], [2, 0]])
        result = CliRunner().invoke(main, ["allocate", str(src)])

        assert result.exit_code == 0, result.output
        dest = tmp_path / "plan_processed.xlsx"
        assert dest.exists()
        assert "Layout column_pair: 2 container(s), 2 demand(s)" in result.output
        assert _sheet_values(dest)[1] == [5, 3, 2, 0]

    def test_csv_to_csv_with_shared_policy(self, tmp_path: Path) -> None:
        src = tmp_path / "plan.csv"
        src.write_text("1,1\n1,1\n", encoding="utf-8")
        dest = tmp_path / "out.csv"
        result = CliRunner().invoke(
            main, ["allocate", str(src), "-o", str(dest), "--policy", "shared"]
        )

        assert result.exit_code == 0, result.output
        assert dest.read_text(encoding="utf-8").splitlines() == [
            "To Distribute,Container 1,Container 2,Unallocated",
            "1,1,0,0",
            "1,0,1,0",
        ]

    def test_config_file(self, tmp_path: Path) -> None:
        src = tmp_path / "plan.csv"
        src.write_text("Cap,Qty\n2,5\n", encoding="utf-8")
        cfg = tmp_path / "allocation.json"
        cfg.write_text(json.dumps({"capacity_column": "Cap", "demand_column": "Qty"}))
        dest = tmp_path / "out.csv"
        result = CliRunner().invoke(
            main, ["allocate", str(src), "-o", str(dest), "--config", str(cfg)]
        )

        assert result.exit_code == 0, result.output
        assert "unit(s) could not be placed" in result.output
        assert dest.read_text(encoding="utf-8").splitlines()[1] == "5,2,3"

    def test_invalid_table_reports_error_kind(self, tmp_path: Path) -> None:
        src = tmp_path / "plan.csv"
        src.write_text("Capacity\n3\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["allocate", str(src)])

        assert result.exit_code == 1
        assert "MissingDemands" in result.output
        assert not (tmp_path / "plan_processed.xlsx").exists()

    def test_invalid_config_value(self, tmp_path: Path) -> None:
        src = tmp_path / "plan.csv"
        src.write_text("3,5\n", encoding="utf-8")
        cfg = tmp_path / "allocation.json"
        cfg.write_text(json.dumps({"capacity_policy": "weighted"}))
        result = CliRunner().invoke(main, ["allocate", str(src), "--config", str(cfg)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid config file" in result.output
        assert "capacity_policy" in result.output
        assert not (tmp_path / "plan_processed.xlsx").exists()

    def test_malformed_config_json(self, tmp_path: Path) -> None:
        src = tmp_path / "plan.csv"
        src.write_text("3,5\n", encoding="utf-8")
        cfg = tmp_path / "allocation.json"
        cfg.write_text("{not json")
        result = CliRunner().invoke(main, ["inspect", str(src), "--config", str(cfg)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "not valid JSON" in result.output

    def test_unsupported_file(self, tmp_path: Path) -> None:
        src = tmp_path / "plan.json"
        src.write_text("{}")
        result = CliRunner().invoke(main, ["allocate", str(src)])

        assert result.exit_code == 1
        assert "Unsupported file type" in result.output


class TestInspectCommand:
    def test_header_capacity_layout(self, tmp_path: Path) -> None:
        src = _write_xlsx(
            tmp_path / "bins.xlsx",
            [["Bin A", "Bin B", "Total"], [4, 6, None], [None, None, 7]],
        )
        result = CliRunner().invoke(main, ["inspect", str(src)])

        assert result.exit_code == 0, result.output
        assert "Layout: header_capacity_row" in result.output
        assert "  Bin A: 4" in result.output
        assert "Demands (1): [7]" in result.output

    def test_empty_sheet(self, tmp_path: Path) -> None:
        src = _write_xlsx(tmp_path / "empty.xlsx", [])
        result = CliRunner().invoke(main, ["inspect", str(src)])

        assert result.exit_code == 1
        assert "EmptyInput" in result.output
