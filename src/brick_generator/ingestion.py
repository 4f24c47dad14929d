"""
Grid Table Ingestion Module

This module handles:
- Loading coarse grid tables from CSV files or in-memory rows/arrays
- Detecting an optional header row
- Loading color guides from CSV

Grid Table Layout:
- First column: layer marker (any comparable value, e.g. "A", 1, "base")
- Remaining columns: x = 1..W, holding integer color codes (0/blank = empty)
- Row order top-to-bottom is descending y within each layer
"""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridTable:
    """
    A raw, wide grid table.

    Attributes:
        rows: Tuple of row tuples, first cell is the layer marker
        header: Optional column names from the source file
    """

    rows: Tuple[Tuple[Any, ...], ...]
    header: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[Any]],
        header: Optional[Sequence[str]] = None
    ) -> "GridTable":
        """Build a table from any sequence of row sequences."""
        return cls(
            rows=tuple(tuple(row) for row in rows),
            header=tuple(header) if header is not None else None
        )

    @classmethod
    def from_array(
        cls,
        codes: np.ndarray,
        layer: Any = 1
    ) -> "GridTable":
        """
        Build a single-layer table from a 2D array of color codes.

        Args:
            codes: Array of shape (rows, W); row 0 is the top (highest y)
            layer: Layer marker assigned to every row

        Returns:
            GridTable
        """
        codes = np.asarray(codes)
        if codes.ndim != 2:
            raise ValueError("Code array must have shape (rows, columns)")

        return cls(rows=tuple(
            (layer,) + tuple(int(c) for c in row) for row in codes
        ))

    @classmethod
    def from_layers(cls, layers: Dict[Any, np.ndarray]) -> "GridTable":
        """Build a multi-layer table from {marker: 2D code array}."""
        rows: List[Tuple[Any, ...]] = []
        for marker, codes in layers.items():
            rows.extend(cls.from_array(codes, layer=marker).rows)
        return cls(rows=tuple(rows))

    @property
    def width(self) -> int:
        """Number of x positions (widest row minus the marker column)."""
        if not self.rows:
            return 0
        return max(len(row) for row in self.rows) - 1

    def __iter__(self):
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


def parse_cell(value: str) -> Any:
    """
    Parse a CSV cell into int, float, None or the stripped string.

    Empty cells and "NA" become None.
    """
    text = value.strip()
    if text == "" or text.upper() in ("NA", "NAN"):
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def _is_header(row: Sequence[str]) -> bool:
    """A row is a header when any position cell is non-numeric text."""
    for cell in row[1:]:
        parsed = parse_cell(cell)
        if isinstance(parsed, str):
            return True
    return False


def load_grid_csv(
    path: Union[str, Path],
    delimiter: str = ",",
    has_header: Optional[bool] = None
) -> GridTable:
    """
    Load a grid table from a CSV file.

    Args:
        path: Path to the CSV file
        delimiter: Field delimiter
        has_header: Force header handling; None auto-detects

    Returns:
        GridTable with parsed cells

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a position cell is not an integer color code
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Grid table not found: {path}")

    with open(path, newline="", encoding="utf-8") as f:
        raw_rows = [row for row in csv.reader(f, delimiter=delimiter) if row]

    return parse_grid_rows(raw_rows, has_header=has_header, source=str(path))


def parse_grid_rows(
    raw_rows: Sequence[Sequence[str]],
    has_header: Optional[bool] = None,
    source: str = "<rows>"
) -> GridTable:
    """
    Parse text rows (e.g. from csv.reader) into a GridTable.

    Position cells must be integer color codes or blank.
    """
    raw_rows = [list(row) for row in raw_rows if any(cell.strip() for cell in row)]
    header = None

    if raw_rows:
        if has_header is None:
            has_header = _is_header(raw_rows[0])
        if has_header:
            header = tuple(cell.strip() for cell in raw_rows[0])
            raw_rows = raw_rows[1:]

    rows = []
    for line_no, raw in enumerate(raw_rows, start=2 if header else 1):
        marker = parse_cell(raw[0]) if raw else None
        cells = []
        for cell in raw[1:]:
            parsed = parse_cell(cell)
            if isinstance(parsed, float) and parsed.is_integer():
                parsed = int(parsed)
            if parsed is not None and not isinstance(parsed, int):
                raise ValueError(
                    f"{source}, row {line_no}: color codes must be integers, got {cell!r}"
                )
            cells.append(parsed)
        rows.append((marker,) + tuple(cells))

    logger.debug("Parsed %d grid rows from %s", len(rows), source)
    return GridTable(rows=tuple(rows), header=header)


def load_color_guide_csv(
    path: Union[str, Path],
    delimiter: str = ","
) -> Dict[str, List[Any]]:
    """
    Load a color guide CSV into named columns.

    The file needs a header row; validation of the `value` and `name`
    columns happens in ColorResolver.

    Returns:
        Dict mapping column name to its cell values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Color guide not found: {path}")

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f, delimiter=delimiter)
        columns: Dict[str, List[Any]] = {name: [] for name in (reader.fieldnames or [])}
        for row in reader:
            for name in columns:
                value = row.get(name)
                columns[name].append(value.strip() if isinstance(value, str) else value)

    return columns
