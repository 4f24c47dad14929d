"""
Grid Normalization Module

Turns a raw, wide grid table into a canonical BlockSet:
1. Positional columns (layer marker, x1..xW)
2. Optional re-leveling of layer markers to 1..K
3. Empty cells -> color code 0
4. y per row within its layer (first row = highest y)
5. Wide -> long records
6. Color resolution (unresolved codes stay as transparent records)
7. Exclusion of color codes and layers (raw, pre-translation values)
8. Translation by increments
9. Clipping to [1, max] on every axis
10. Removal of layers with no resolved color left

The pass is a pure function of its inputs.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .blocks import BlockRecord, BlockSet
from .color import ColorMapping, ColorResolver, GuideLike
from .ingestion import GridTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizeOptions:
    """
    Coordinate options for normalization.

    Attributes:
        re_level: Map layer markers to consecutive layers in sorted order
        increment_level, increment_x, increment_y: Translation per axis
        max_level, max_x, max_y: Upper clip per axis (None = unbounded)
        exclude_colors: Color codes to drop (a single code is accepted)
        exclude_layers: Layers (after re-leveling) to drop
    """

    re_level: bool = True
    increment_level: Any = 0
    increment_x: Any = 0
    increment_y: Any = 0
    max_level: Optional[float] = None
    max_x: Optional[float] = None
    max_y: Optional[float] = None
    exclude_colors: Tuple[int, ...] = ()
    exclude_layers: Tuple[int, ...] = ()


def clean_increment(value: Any) -> int:
    """
    Normalize an increment to an int.

    Missing, NaN and non-numeric values become 0; sequences use their
    first element; fractional values are truncated.
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else 0
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number)


def _clean_max(value: Optional[float]) -> float:
    if value is None:
        return math.inf
    number = float(value)
    return math.inf if math.isnan(number) else number


def is_missing(value: Any) -> bool:
    """Check for an empty cell (None, NaN or blank string)."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def _sort_markers(markers: Iterable[Any]) -> List[Any]:
    """Sort distinct markers naturally, falling back to their string form."""
    distinct = list(dict.fromkeys(markers))
    try:
        return sorted(distinct)
    except TypeError:
        return sorted(distinct, key=str)


def _literal_layer(marker: Any) -> int:
    """Coerce a layer marker to an integer layer."""
    try:
        number = float(marker)
    except (TypeError, ValueError):
        raise ValueError(
            f"Layer marker {marker!r} is not numeric; use re_level=True for named layers"
        )
    if not number.is_integer():
        raise ValueError(f"Layer marker {marker!r} is not an integer")
    return int(number)


def _cell_code(value: Any) -> int:
    """Coerce a position cell to a color code; empty cells are 0."""
    if is_missing(value):
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Color code {value!r} is not an integer")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Color code {value!r} is not an integer")
    if not number.is_integer():
        raise ValueError(f"Color code {value!r} is not an integer")
    return int(number)


def _as_values(values: Any) -> Set[Any]:
    """Exclusion lists may be a single value, a sequence or None."""
    if values is None:
        return set()
    if isinstance(values, str) or not isinstance(values, Iterable):
        return {values}
    return set(values)


class GridNormalizer:
    """
    Normalizes raw grid tables into BlockSets.

    Args:
        mapping: Value -> color mapping from ColorResolver
    """

    def __init__(self, mapping: ColorMapping):
        self.mapping = mapping

    def normalize(
        self,
        table: Any,
        options: NormalizeOptions = NormalizeOptions()
    ) -> BlockSet:
        """
        Normalize a grid table.

        Args:
            table: GridTable or a sequence of row sequences
            options: Coordinate options

        Returns:
            BlockSet
        """
        rows = self._rows(table)
        width = max((len(row) for row in rows), default=1) - 1

        layered = self._assign_layers(rows, options.re_level)
        records = self._flatten(layered, width)
        logger.debug("Flattened %d rows into %d records", len(rows), len(records))

        records = self._exclude(records, options)
        records = self._translate(records, options)
        records = self._clip(records, options)
        records = self._drop_empty_layers(records)

        block_set = BlockSet(tuple(records))
        logger.debug(
            "Normalized %d records on layers %s", len(block_set), block_set.layers
        )
        return block_set

    @staticmethod
    def _rows(table: Any) -> List[Tuple[Any, ...]]:
        if isinstance(table, GridTable):
            return list(table.rows)
        return [tuple(row) for row in table]

    @staticmethod
    def _assign_layers(
        rows: Sequence[Tuple[Any, ...]],
        re_level: bool
    ) -> List[Tuple[int, Tuple[Any, ...]]]:
        """Pair every row with its integer layer; rows without a marker are skipped."""
        kept = []
        for row in rows:
            if not row or is_missing(row[0]):
                logger.debug("Skipping row without layer marker: %r", row)
                continue
            kept.append(row)

        if re_level:
            levels = {m: i + 1 for i, m in enumerate(_sort_markers(r[0] for r in kept))}
            return [(levels[row[0]], row[1:]) for row in kept]

        return [(_literal_layer(row[0]), row[1:]) for row in kept]

    def _flatten(
        self,
        layered: Sequence[Tuple[int, Tuple[Any, ...]]],
        width: int
    ) -> List[BlockRecord]:
        """Expand wide rows into long records with resolved colors."""
        rows_per_layer: Dict[int, int] = {}
        for layer, _ in layered:
            rows_per_layer[layer] = rows_per_layer.get(layer, 0) + 1

        row_index: Dict[int, int] = {}
        records = []
        for layer, cells in layered:
            row_index[layer] = row_index.get(layer, 0) + 1
            y = rows_per_layer[layer] - row_index[layer] + 1

            for x in range(1, width + 1):
                cell = cells[x - 1] if x - 1 < len(cells) else None
                code = _cell_code(cell)
                records.append(self._record(layer, x, y, code))

        return records

    def _record(self, layer: int, x: int, y: int, code: int) -> BlockRecord:
        entry = self.mapping.get(code)
        if entry is None:
            return BlockRecord(layer, x, y, code)
        return BlockRecord(layer, x, y, code, entry.name, entry.rgb)

    @staticmethod
    def _exclude(
        records: List[BlockRecord],
        options: NormalizeOptions
    ) -> List[BlockRecord]:
        exclude_colors = _as_values(options.exclude_colors)
        exclude_layers = _as_values(options.exclude_layers)

        records = [r for r in records if r.color_code not in exclude_colors]
        return [r for r in records if r.layer not in exclude_layers]

    @staticmethod
    def _translate(
        records: List[BlockRecord],
        options: NormalizeOptions
    ) -> List[BlockRecord]:
        d_layer = clean_increment(options.increment_level)
        d_x = clean_increment(options.increment_x)
        d_y = clean_increment(options.increment_y)

        if d_layer == d_x == d_y == 0:
            return records

        return [
            BlockRecord(
                r.layer + d_layer, r.x + d_x, r.y + d_y,
                r.color_code, r.color_name, r.rgb
            )
            for r in records
        ]

    @staticmethod
    def _clip(
        records: List[BlockRecord],
        options: NormalizeOptions
    ) -> List[BlockRecord]:
        max_level = _clean_max(options.max_level)
        max_x = _clean_max(options.max_x)
        max_y = _clean_max(options.max_y)

        return [
            r for r in records
            if 1 <= r.layer <= max_level
            and 1 <= r.x <= max_x
            and 1 <= r.y <= max_y
        ]

    @staticmethod
    def _drop_empty_layers(records: List[BlockRecord]) -> List[BlockRecord]:
        opaque_layers = {r.layer for r in records if not r.is_transparent}
        dropped = {r.layer for r in records} - opaque_layers
        if dropped:
            logger.debug("Dropping empty layers: %s", sorted(dropped))
        return [r for r in records if r.layer in opaque_layers]


def normalize_grid(
    table: Any,
    color_guide: Optional[GuideLike] = None,
    resolver: Optional[ColorResolver] = None,
    **options: Any
) -> BlockSet:
    """
    Resolve colors and normalize a grid table in one call.

    Args:
        table: GridTable or sequence of rows
        color_guide: Optional color guide
        resolver: ColorResolver to use (default catalog if None)
        **options: NormalizeOptions fields

    Returns:
        BlockSet

    Raises:
        ConfigurationError: If the color guide is invalid
    """
    resolver = resolver or ColorResolver()
    mapping = resolver.resolve(color_guide)
    return GridNormalizer(mapping).normalize(table, NormalizeOptions(**options))
