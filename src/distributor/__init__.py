"""distributor: capacity-constrained round-robin allocation over tabular data."""

from distributor.allocate import allocate_demand, allocate_request, round_robin
from distributor.cells import is_missing, parse_numeric_cell
from distributor.config import AllocationConfig, load_config
from distributor.engine import allocate_table, process_table
from distributor.errors import (
    AllocationInputError,
    EmptyInput,
    MalformedHeader,
    MissingCapacities,
    MissingDemands,
    TableCodecError,
)
from distributor.models import (
    AllocationReport,
    AllocationRequest,
    AllocationResult,
    Container,
    Demand,
    Layout,
)
from distributor.normalize import detect_layout, normalize_table
from distributor.project import output_columns, project_results


# Codec helpers (lazy imports keep openpyxl/pandas off the core import path)
def read_table(*args, **kwargs):
    """Read a spreadsheet or delimited file into a grid of cells."""
    from distributor.codec import read_table as _read
    return _read(*args, **kwargs)


def write_table(*args, **kwargs):
    """Write output rows to .xlsx, .csv or .tsv."""
    from distributor.codec import write_table as _write
    return _write(*args, **kwargs)


def process_data_uri(*args, **kwargs):
    """Decode a workbook data URI, allocate it, return an XLSX data URI."""
    from distributor.codec import process_data_uri as _process
    return _process(*args, **kwargs)


__all__ = [
    # Engine
    "allocate_table",
    "process_table",
    # Stages
    "allocate_demand",
    "allocate_request",
    "detect_layout",
    "normalize_table",
    "output_columns",
    "project_results",
    "round_robin",
    # Cells
    "is_missing",
    "parse_numeric_cell",
    # Config
    "AllocationConfig",
    "load_config",
    # Core types
    "AllocationReport",
    "AllocationRequest",
    "AllocationResult",
    "Container",
    "Demand",
    "Layout",
    # Errors
    "AllocationInputError",
    "EmptyInput",
    "MalformedHeader",
    "MissingCapacities",
    "MissingDemands",
    "TableCodecError",
    # Codec
    "process_data_uri",
    "read_table",
    "write_table",
]
