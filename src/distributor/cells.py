"""Scalar cell classification and numeric coercion.

Every numeric read in the normalizer goes through :func:`parse_numeric_cell`,
which returns ``None`` for anything that is not a finite number.  What a
``None`` means (capacity 0, skipped demand, filtered cell) is decided per
layout by the caller, never by sentinel arithmetic.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

# Comma-grouped thousands: "1,234", "-12,345.5"
_GROUPED_NUMBER_RE = re.compile(r"[+-]?\d{1,3}(?:,\d{3})+(?:\.\d*)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")


class CellKind(Enum):
    """Structural classification of a raw cell, used by layout predicates."""

    MISSING = "missing"
    NUMBER = "number"
    TEXT = "text"


def is_missing(cell: Any) -> bool:
    """True for ``None``, blank text and float NaN (pandas' empty cell)."""
    if cell is None:
        return True
    if isinstance(cell, float) and math.isnan(cell):
        return True
    if isinstance(cell, str) and not cell.strip():
        return True
    return False


def _number_text(text: str) -> str | None:
    """Strip a numeric string; drop commas only in thousands-group positions."""
    cleaned = text.strip()
    if "," in cleaned:
        if not _GROUPED_NUMBER_RE.fullmatch(cleaned):
            return None
        cleaned = cleaned.replace(",", "")
    return cleaned


def parse_number(cell: Any) -> int | float | None:
    """Parse a cell as a finite number, or return ``None``.

    - ``int`` cells pass through exactly, ``float`` cells when finite
      (booleans are rejected)
    - text is stripped and thousands separators removed: ``" 1,234 "`` -> 1234;
      integer text stays an ``int``
    - misplaced commas (``"1,5"``), inner whitespace (``"3 4"``), NaN,
      infinities and anything unparseable -> None
    """
    if is_missing(cell) or isinstance(cell, bool):
        return None
    if isinstance(cell, int):
        return cell
    if isinstance(cell, float):
        return cell if math.isfinite(cell) else None

    cleaned = _number_text(str(cell))
    if cleaned is None:
        return None
    try:
        if _INTEGER_RE.fullmatch(cleaned):
            return int(cleaned)
        value = float(cleaned)
    except (ValueError, OverflowError):
        return None

    if not math.isfinite(value):
        return None
    return value


def parse_numeric_cell(cell: Any) -> int | None:
    """Parse a cell as an integer quantity, truncating toward zero.

    Returns ``None`` when the cell is missing or not a finite number.
    Sign is preserved; clamping negatives is the caller's job.
    """
    value = parse_number(cell)
    if value is None or isinstance(value, int):
        return value
    return int(value)


def classify_cell(cell: Any) -> CellKind:
    """Classify a cell as MISSING, NUMBER or TEXT."""
    if is_missing(cell):
        return CellKind.MISSING
    if parse_number(cell) is not None:
        return CellKind.NUMBER
    return CellKind.TEXT


def cell_text(cell: Any) -> str:
    """Render a header cell as a stripped string (``""`` when missing)."""
    if is_missing(cell):
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell).strip()
