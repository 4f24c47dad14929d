"""
Block Data Structures

This module provides:
- BlockRecord: One placed unit brick at a coarse (layer, x, y) coordinate
- BlockSet: The immutable, canonical collection produced by normalization

Coordinate system: X-right, Y-back (row 1 of a grid is the highest y),
layer = stacking tier, starting at 1.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

RGB = Tuple[float, float, float]


class Bounds(NamedTuple):
    """Inclusive min/max of each coordinate actually present."""
    min_layer: int
    max_layer: int
    min_x: int
    max_x: int
    min_y: int
    max_y: int


@dataclass(frozen=True)
class BlockRecord:
    """
    A single placed brick.

    A record without an rgb value is transparent: it keeps its position
    (it still counts towards layer bounds) but renders as empty space.
    """
    layer: int
    x: int
    y: int
    color_code: int
    color_name: Optional[str] = None
    rgb: Optional[RGB] = None

    @property
    def is_transparent(self) -> bool:
        return self.rgb is None

    @property
    def position(self) -> Tuple[int, int, int]:
        return (self.layer, self.x, self.y)


@dataclass(frozen=True)
class BlockSet:
    """
    Canonical, ordered set of brick records.

    Records are kept sorted by layer, then x, then descending y.
    Every (layer, x, y) position appears at most once.
    """

    records: Tuple[BlockRecord, ...] = ()
    _by_layer: Dict[int, Tuple[BlockRecord, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        """Sort records, check uniqueness and index them by layer."""
        ordered = tuple(sorted(self.records, key=lambda r: (r.layer, r.x, -r.y)))

        seen = set()
        for record in ordered:
            if record.position in seen:
                raise ValueError(f"Duplicate block position: {record.position}")
            seen.add(record.position)

        by_layer: Dict[int, List[BlockRecord]] = {}
        for record in ordered:
            by_layer.setdefault(record.layer, []).append(record)

        # Frozen dataclass: bypass __setattr__ for derived fields
        object.__setattr__(self, "records", ordered)
        object.__setattr__(
            self, "_by_layer", {k: tuple(v) for k, v in by_layer.items()}
        )

    @property
    def layers(self) -> List[int]:
        """Get the sorted distinct layers present."""
        return sorted(self._by_layer)

    @property
    def bounds(self) -> Optional[Bounds]:
        """Get min/max of layer, x and y, or None for an empty set."""
        if not self.records:
            return None
        layers = [r.layer for r in self.records]
        xs = [r.x for r in self.records]
        ys = [r.y for r in self.records]
        return Bounds(min(layers), max(layers), min(xs), max(xs), min(ys), max(ys))

    @property
    def is_empty(self) -> bool:
        return not self.records

    def layer_records(self, layer: int) -> Tuple[BlockRecord, ...]:
        """Get all records on a layer (empty tuple if the layer is absent)."""
        return self._by_layer.get(layer, ())

    def opaque_records(self) -> List[BlockRecord]:
        """Get records that carry a resolved color."""
        return [r for r in self.records if not r.is_transparent]

    def count_blocks(self) -> int:
        """Count bricks with a resolved color."""
        return len(self.opaque_records())

    def __iter__(self) -> Iterator[BlockRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)
