"""
Color Catalog and Resolution Module

Handles:
- The built-in catalog of official brick colors (code, name, RGB)
- Validation of caller-supplied color guides
- Mapping grid color codes to catalog colors for a single run

Color Code Background:
- Grid tables hold small integer codes, one per placed brick
- Without a guide the code is the catalog code (1-based, 0 = empty)
- A guide re-assigns codes to catalog names, e.g. {value: 1, name: "Bright red"}
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]


class ConfigurationError(ValueError):
    """Raised when a color guide is malformed or names unknown colors."""

    def __init__(self, message: str, entries: Sequence = ()):
        super().__init__(message)
        self.entries = tuple(entries)


# (code, name, hex) - codes are stable, names match the official palette
LEGO_COLORS: Tuple[Tuple[int, str, str], ...] = (
    (1, "White", "#F4F4F4"),
    (2, "Brick yellow", "#CCB98D"),
    (3, "Nougat", "#BB805A"),
    (4, "Bright red", "#B40000"),
    (5, "Bright blue", "#1E5AA8"),
    (6, "Bright yellow", "#FAC80A"),
    (7, "Black", "#1B2A34"),
    (8, "Dark green", "#00852B"),
    (9, "Bright green", "#58AB41"),
    (10, "Dark orange", "#91501C"),
    (11, "Medium blue", "#7396C8"),
    (12, "Bright orange", "#D67923"),
    (13, "Bright bluish green", "#069D9F"),
    (14, "Bright yellowish green", "#A5CA18"),
    (15, "Bright reddish violet", "#901F76"),
    (16, "Sand blue", "#70819A"),
    (17, "Sand yellow", "#897D62"),
    (18, "Earth blue", "#19325A"),
    (19, "Earth green", "#00451A"),
    (20, "Sand green", "#708E7C"),
    (21, "Dark red", "#720012"),
    (22, "Flame yellowish orange", "#FCAC00"),
    (23, "Reddish brown", "#5F3109"),
    (24, "Medium stone grey", "#969696"),
    (25, "Dark stone grey", "#646464"),
    (26, "Light royal blue", "#9DC3F7"),
    (27, "Bright purple", "#C870A0"),
    (28, "Light purple", "#E4ADC8"),
    (29, "Cool yellow", "#FFEC6C"),
    (30, "Medium lilac", "#441A91"),
    (31, "Light nougat", "#FFC995"),
    (32, "Dark brown", "#352100"),
    (33, "Medium nougat", "#AA7D55"),
    (34, "Dark azur", "#469BC3"),
    (35, "Medium azur", "#68C3E2"),
    (36, "Aqua", "#D3F2EA"),
    (37, "Medium lavender", "#A06EB9"),
    (38, "Lavender", "#CDA4DE"),
    (39, "Spring yellowish green", "#E2F99A"),
    (40, "Olive green", "#77774E"),
    (41, "Vibrant coral", "#F08F8F"),
)


def hex_to_rgb(hex_color: str) -> RGB:
    """
    Convert a "#RRGGBB" string to a normalized RGB triple.

    Args:
        hex_color: Hex color string, leading '#' optional

    Returns:
        Tuple of floats in [0, 1]
    """
    value = hex_color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    return tuple(int(value[i:i + 2], 16) / 255.0 for i in (0, 2, 4))


def rgb_to_hex(rgb: Sequence[float]) -> str:
    """Convert a normalized RGB triple to "#RRGGBB"."""
    channels = [int(round(max(0.0, min(1.0, c)) * 255)) for c in rgb[:3]]
    return "#{:02X}{:02X}{:02X}".format(*channels)


@dataclass(frozen=True)
class ColorCatalogEntry:
    """A single official color."""
    code: int
    name: str
    rgb: RGB

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)


@dataclass(frozen=True)
class ColorGuideEntry:
    """A caller-supplied assignment of a grid value to a catalog color name."""
    value: int
    name: str


class ColorCatalog:
    """
    Immutable registry of official colors.

    Lookups are available by code and by exact name. The catalog is built
    once and handed to resolvers explicitly.
    """

    def __init__(self, entries: Sequence[ColorCatalogEntry]):
        self._entries: Tuple[ColorCatalogEntry, ...] = tuple(entries)
        self._by_code: Dict[int, ColorCatalogEntry] = {e.code: e for e in self._entries}
        self._by_name: Dict[str, ColorCatalogEntry] = {e.name: e for e in self._entries}

        if len(self._by_code) != len(self._entries):
            raise ValueError("Color catalog codes must be unique")
        if len(self._by_name) != len(self._entries):
            raise ValueError("Color catalog names must be unique")

    @classmethod
    def from_table(cls, table: Sequence[Tuple[int, str, str]]) -> "ColorCatalog":
        """Build a catalog from (code, name, hex) rows."""
        return cls([ColorCatalogEntry(code, name, hex_to_rgb(hx)) for code, name, hx in table])

    def by_code(self, code: int) -> Optional[ColorCatalogEntry]:
        return self._by_code.get(code)

    def by_name(self, name: str) -> Optional[ColorCatalogEntry]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        """Get every color name in catalog order."""
        return [e.name for e in self._entries]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[ColorCatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CATALOG = ColorCatalog.from_table(LEGO_COLORS)


class ColorMapping:
    """
    Read-only mapping from grid values to catalog entries.

    Unmapped values resolve to None, which downstream code treats as
    transparent.
    """

    def __init__(self, mapping: Mapping[int, ColorCatalogEntry]):
        self._mapping: Dict[int, ColorCatalogEntry] = dict(mapping)

    def get(self, value: int) -> Optional[ColorCatalogEntry]:
        return self._mapping.get(value)

    def items(self):
        return self._mapping.items()

    def __contains__(self, value: object) -> bool:
        return value in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColorMapping):
            return NotImplemented
        return self._mapping == other._mapping


GuideLike = Union[
    Sequence[ColorGuideEntry],
    Sequence[Mapping[str, object]],
    Mapping[str, Sequence[object]],
]

_VALUE_COLUMNS = ("value", ".value")
_NAME_COLUMNS = ("name", "Color", "color")

GUIDE_ERROR_MSG = (
    "Color guide should have at least 2 columns: `value` and `name`. "
    "`name` should match official color names in the catalog."
)


class ColorResolver:
    """
    Validates color guides and produces a value -> color mapping.

    Args:
        catalog: Catalog used for validation and RGB lookup
    """

    def __init__(self, catalog: ColorCatalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def resolve(self, guide: Optional[GuideLike] = None) -> ColorMapping:
        """
        Build the value -> color mapping for a run.

        Args:
            guide: Optional color guide; None uses catalog codes directly

        Returns:
            ColorMapping

        Raises:
            ConfigurationError: If the guide is malformed or names unknown colors
        """
        if guide is None:
            return ColorMapping({entry.code: entry for entry in self.catalog})

        entries = self.validate(guide)
        mapping = {entry.value: self.catalog.by_name(entry.name) for entry in entries}
        logger.debug("Resolved color guide with %d entries", len(mapping))
        return ColorMapping(mapping)

    def validate(self, guide: GuideLike) -> Tuple[ColorGuideEntry, ...]:
        """
        Validate a guide and convert it to typed entries.

        Raises:
            ConfigurationError: On the first failed check, listing offenders
        """
        columns = _guide_columns(guide)

        if len(columns) < 2:
            raise ConfigurationError(GUIDE_ERROR_MSG, tuple(columns))

        value_key = _find_column(columns, _VALUE_COLUMNS)
        name_key = _find_column(columns, _NAME_COLUMNS)
        if value_key is None or name_key is None:
            missing = [
                label for label, key in (("value", value_key), ("name", name_key))
                if key is None
            ]
            raise ConfigurationError(GUIDE_ERROR_MSG, missing)

        raw_values = list(columns[value_key])
        names = ["" if n is None else str(n) for n in columns[name_key]]
        if len(raw_values) != len(names):
            raise ConfigurationError(
                "Color guide columns `value` and `name` differ in length",
                (len(raw_values), len(names)),
            )

        values = []
        bad_values = []
        for raw in raw_values:
            value = _as_int(raw)
            if value is None:
                bad_values.append(raw)
            values.append(value)
        if bad_values:
            raise ConfigurationError(
                "Color guide values must be integers: "
                + ", ".join(repr(v) for v in bad_values),
                bad_values,
            )

        duplicates = sorted({v for v in values if values.count(v) > 1})
        if duplicates:
            raise ConfigurationError(
                "Color guide values must be unique: "
                + ", ".join(str(v) for v in duplicates),
                duplicates,
            )

        unknown = [n for n in names if n not in self.catalog]
        if unknown:
            raise ConfigurationError(
                "At least one color name supplied does not match allowed brick "
                "color names. See ColorCatalog.names().\n\n" + ", ".join(unknown),
                unknown,
            )

        return tuple(ColorGuideEntry(v, n) for v, n in zip(values, names))


def _guide_columns(guide: GuideLike) -> Dict[str, List[object]]:
    """Normalize any supported guide shape into named columns."""
    if isinstance(guide, Mapping):
        return {str(k): list(v) for k, v in guide.items()}

    if isinstance(guide, (str, bytes)) or not isinstance(guide, Sequence):
        raise ConfigurationError(GUIDE_ERROR_MSG, (type(guide).__name__,))

    rows = list(guide)
    if rows and all(isinstance(r, ColorGuideEntry) for r in rows):
        return {
            "value": [r.value for r in rows],
            "name": [r.name for r in rows],
        }

    if not all(isinstance(r, Mapping) for r in rows):
        raise ConfigurationError(GUIDE_ERROR_MSG, (type(guide).__name__,))

    keys: List[str] = []
    for row in rows:
        for key in row:
            if key not in keys:
                keys.append(key)
    return {str(k): [row.get(k) for row in rows] for k in keys}


def _find_column(columns: Mapping[str, object], aliases: Sequence[str]) -> Optional[str]:
    for alias in aliases:
        if alias in columns:
            return alias
    return None


def _as_int(raw: object) -> Optional[int]:
    """Coerce a guide value to int, or None when it is not integral."""
    if isinstance(raw, bool) or raw is None:
        return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or not number.is_integer():
        return None
    return int(number)
