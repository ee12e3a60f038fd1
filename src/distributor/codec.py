"""Table codec: spreadsheet / delimited-text payloads ↔ in-memory tables.

Decoding always yields a positional grid (list of cell lists) taken from the
first sheet unless another is named; the normalizer decides what the rows
mean.  Encoding writes mapping rows under a header row; XLSX output goes to a
sheet named ``Allocations``.

- XLSX (Office 2007+): openpyxl
- XLS (Office 97-2003): xlrd (``pip install distributor[xls]``)
- CSV / TSV: the ``csv`` module

Payloads may also travel as base64 ``data:`` URIs; :func:`process_data_uri`
is the complete decode → allocate → encode round trip.
"""

from __future__ import annotations

import base64
import binascii
import csv
import io
from datetime import date, datetime, time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from distributor.config import AllocationConfig
from distributor.errors import TableCodecError

if TYPE_CHECKING:
    import pandas as pd

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIME = "application/vnd.ms-excel"
CSV_MIME = "text/csv"

OUTPUT_SHEET = "Allocations"

_MIME_FORMATS: dict[str, str] = {
    XLSX_MIME: "xlsx",
    XLS_MIME: "xls",
    CSV_MIME: "csv",
}

# Leading bytes of the binary workbook containers
_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0"

_SUFFIX_FORMATS: dict[str, str] = {
    ".xlsx": "xlsx",
    ".xlsm": "xlsx",
    ".xls": "xls",
    ".csv": "csv",
    ".tsv": "tsv",
    ".txt": "csv",
}

Grid = list[list[Any]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_for_path(path: str | Path) -> str:
    """Codec format name (``xlsx``, ``xls``, ``csv``, ``tsv``) for a file path."""
    suffix = Path(path).suffix.lower()
    try:
        return _SUFFIX_FORMATS[suffix]
    except KeyError:
        raise TableCodecError(
            f"Unsupported file type {suffix or '(none)'!r}: expected .xlsx, .xls, .csv or .tsv"
        ) from None


def sniff_format(data: bytes, hint: str | None = None) -> str:
    """Codec format of an in-memory payload from its leading bytes.

    ZIP containers are XLSX and OLE2 compound files are XLS whatever the
    hint says.  Anything else is delimited text: ``tsv`` when hinted, else
    ``csv``.
    """
    if data.startswith(_ZIP_MAGIC):
        return "xlsx"
    if data.startswith(_OLE2_MAGIC):
        return "xls"
    return "tsv" if hint == "tsv" else "csv"


def _drop_trailing_blank_rows(grid: Grid) -> Grid:
    end = len(grid)
    while end and all(c is None or (isinstance(c, str) and not c.strip()) for c in grid[end - 1]):
        end -= 1
    return grid[:end]


def _plain_value(value: Any) -> Any:
    """Spreadsheet cell → number, text or None."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _columns(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _read_xlsx(source: str | Path | io.BytesIO, sheet: str | int | None) -> Grid:
    from openpyxl import load_workbook

    try:
        wb = load_workbook(source, read_only=False, data_only=True)
    except Exception as e:
        raise TableCodecError(f"Could not read XLSX workbook: {e}") from e

    try:
        if sheet is None:
            ws = wb.worksheets[0]
        elif isinstance(sheet, int):
            if not 0 <= sheet < len(wb.worksheets):
                raise TableCodecError(f"Sheet index {sheet} out of range")
            ws = wb.worksheets[sheet]
        elif sheet in wb.sheetnames:
            ws = wb[sheet]
        else:
            raise TableCodecError(f"Sheet {sheet!r} not found; have {wb.sheetnames}")

        grid = [[_plain_value(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()

    return _drop_trailing_blank_rows(grid)


def _read_xls(path: str | Path | None, contents: bytes | None, sheet: str | int | None) -> Grid:
    try:
        import xlrd
    except ImportError as e:
        raise ImportError(
            "xlrd is required for XLS input. "
            "Install with: pip install distributor[xls]"
        ) from e

    try:
        if contents is not None:
            wb = xlrd.open_workbook(file_contents=contents)
        else:
            wb = xlrd.open_workbook(str(path))
    except xlrd.XLRDError as e:
        raise TableCodecError(f"Could not read XLS workbook: {e}") from e

    if sheet is None:
        ws = wb.sheet_by_index(0)
    elif isinstance(sheet, int):
        if not 0 <= sheet < wb.nsheets:
            raise TableCodecError(f"Sheet index {sheet} out of range")
        ws = wb.sheet_by_index(sheet)
    elif sheet in wb.sheet_names():
        ws = wb.sheet_by_name(sheet)
    else:
        raise TableCodecError(f"Sheet {sheet!r} not found; have {wb.sheet_names()}")

    grid: Grid = []
    for row_idx in range(ws.nrows):
        row: list[Any] = []
        for col_idx in range(ws.ncols):
            cell = ws.cell(row_idx, col_idx)
            if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                row.append(None)
            elif cell.ctype == xlrd.XL_CELL_NUMBER:
                row.append(int(cell.value) if cell.value == int(cell.value) else cell.value)
            else:
                row.append(str(cell.value).strip())
        grid.append(row)

    return _drop_trailing_blank_rows(grid)


def _read_delimited(text: str, delimiter: str) -> Grid:
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    return _drop_trailing_blank_rows([list(row) for row in reader])


def read_table_bytes(data: bytes, fmt: str, *, sheet: str | int | None = None) -> Grid:
    """Decode an in-memory payload of format ``fmt`` into a grid.

    Args:
        data: Raw file bytes.
        fmt: One of ``xlsx``, ``xls``, ``csv``, ``tsv``.
        sheet: Sheet name or index for workbooks (first sheet when None).
    """
    if fmt == "xlsx":
        return _read_xlsx(io.BytesIO(data), sheet)
    if fmt == "xls":
        return _read_xls(None, data, sheet)
    if fmt in ("csv", "tsv"):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise TableCodecError(f"Delimited text is not valid UTF-8: {e}") from e
        return _read_delimited(text, "\t" if fmt == "tsv" else ",")
    raise TableCodecError(f"Unsupported table format: {fmt!r}")


def read_table(path: str | Path, *, sheet: str | int | None = None) -> Grid:
    """Read the first (or named) sheet of a spreadsheet or delimited file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    fmt = format_for_path(path)
    if fmt == "xlsx":
        return _read_xlsx(path, sheet)
    if fmt == "xls":
        return _read_xls(path, None, sheet)
    return read_table_bytes(path.read_bytes(), fmt)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def table_to_bytes(rows: Sequence[Mapping[str, Any]], fmt: str = "xlsx") -> bytes:
    """Encode mapping rows (header row first) as ``xlsx``, ``csv`` or ``tsv``."""
    columns = _columns(rows)

    if fmt == "xlsx":
        from openpyxl import Workbook

        wb = Workbook()
        ws = wb.active
        ws.title = OUTPUT_SHEET
        ws.append(columns)
        for row in rows:
            ws.append([row.get(col) for col in columns])
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    if fmt in ("csv", "tsv"):
        output = io.StringIO()
        writer = csv.DictWriter(
            output,
            fieldnames=columns,
            delimiter="\t" if fmt == "tsv" else ",",
            extrasaction="ignore",
        )
        writer.writeheader()
        writer.writerows(rows)
        return output.getvalue().encode("utf-8")

    raise TableCodecError(f"Unsupported output format: {fmt!r}")


def write_table(rows: Sequence[Mapping[str, Any]], path: str | Path) -> Path:
    """Write mapping rows to ``path``; the format follows its suffix."""
    path = Path(path)
    fmt = format_for_path(path)
    if fmt == "xls":
        raise TableCodecError("Writing legacy .xls files is not supported; use .xlsx")
    path.write_bytes(table_to_bytes(rows, fmt))
    return path


# ---------------------------------------------------------------------------
# Data-URI transport
# ---------------------------------------------------------------------------


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split ``data:<mime>;base64,<payload>`` into ``(mime, bytes)``."""
    if not uri.startswith("data:") or "," not in uri:
        raise TableCodecError("Expected a data URI of the form 'data:<mimetype>;base64,<data>'")

    header, payload = uri[len("data:"):].split(",", 1)
    params = header.split(";")
    if "base64" not in params[1:]:
        raise TableCodecError("Data URI payload must be base64 encoded")

    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise TableCodecError(f"Invalid base64 payload: {e}") from e
    return params[0], data


def encode_data_uri(data: bytes, mime: str = XLSX_MIME) -> str:
    """Wrap ``data`` in a base64 ``data:`` URI."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def process_data_uri(
    uri: str,
    config: AllocationConfig | None = None,
    *,
    sheet: str | int | None = None,
) -> str:
    """Decode a workbook data URI, allocate it and return an XLSX data URI.

    The MIME type gates which uploads are accepted; the payload's own
    leading bytes decide how it is decoded (browsers label ``.csv`` files
    ``application/vnd.ms-excel`` on some platforms).
    """
    from distributor.engine import process_table

    mime, data = decode_data_uri(uri)
    hint = _MIME_FORMATS.get(mime)
    if hint is None:
        raise TableCodecError(
            f"Unsupported MIME type {mime!r}: upload an Excel or CSV file (.xlsx, .xls, .csv)"
        )

    grid = read_table_bytes(data, sniff_format(data, hint), sheet=sheet)
    rows = process_table(grid, config)
    return encode_data_uri(table_to_bytes(rows, "xlsx"), XLSX_MIME)


# ---------------------------------------------------------------------------
# pandas interop
# ---------------------------------------------------------------------------


def to_pandas(rows: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """Output rows as a pandas DataFrame, columns in first-seen order."""
    import pandas as pd

    return pd.DataFrame(list(rows), columns=_columns(rows))


def rows_from_dataframe(df: pd.DataFrame) -> list[dict[str, Any]]:
    """DataFrame → mapping rows; NaN cells are treated as missing downstream."""
    return df.to_dict(orient="records")
