"""
Unit tests for color catalog and resolution.
"""

import sys
from pathlib import Path
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brick_generator.color import (
    ColorCatalog,
    ColorGuideEntry,
    ColorResolver,
    ConfigurationError,
    DEFAULT_CATALOG,
    hex_to_rgb,
    rgb_to_hex,
)


class TestColorCatalog(unittest.TestCase):
    """Tests for the built-in catalog."""

    def test_codes_start_at_one(self):
        """Code 0 is reserved for empty cells."""
        codes = [entry.code for entry in DEFAULT_CATALOG]
        assert min(codes) == 1
        assert DEFAULT_CATALOG.by_code(0) is None

    def test_lookup_by_name_and_code(self):
        """Name and code lookups agree."""
        red = DEFAULT_CATALOG.by_name("Bright red")
        assert red is not None
        assert DEFAULT_CATALOG.by_code(red.code) == red
        assert "Bright red" in DEFAULT_CATALOG
        assert "bright red" not in DEFAULT_CATALOG

    def test_rgb_normalized(self):
        """Every catalog color is within [0, 1]."""
        for entry in DEFAULT_CATALOG:
            assert len(entry.rgb) == 3
            assert all(0.0 <= c <= 1.0 for c in entry.rgb)

    def test_names_in_order(self):
        """names() follows catalog order."""
        names = DEFAULT_CATALOG.names()
        assert names[0] == "White"
        assert len(names) == len(DEFAULT_CATALOG)

    def test_duplicate_codes_rejected(self):
        """Catalog codes must be unique."""
        with self.assertRaises(ValueError):
            ColorCatalog.from_table([(1, "A", "#000000"), (1, "B", "#FFFFFF")])

    def test_hex_conversion(self):
        """Hex strings convert both ways."""
        assert hex_to_rgb("#FF0000") == (1.0, 0.0, 0.0)
        assert rgb_to_hex((1.0, 0.0, 0.0)) == "#FF0000"
        assert DEFAULT_CATALOG.by_name("White").hex == "#F4F4F4"


class TestColorResolver(unittest.TestCase):
    """Tests for ColorResolver."""

    def test_no_guide_uses_catalog_codes(self):
        """Without a guide the value is the catalog code."""
        mapping = ColorResolver().resolve()
        assert len(mapping) == len(DEFAULT_CATALOG)
        assert mapping.get(1).name == "White"
        assert mapping.get(0) is None

    def test_row_guide(self):
        """A guide of row mappings is joined by name."""
        guide = [
            {"value": 1, "name": "Bright red"},
            {"value": 2, "name": "White"},
        ]
        mapping = ColorResolver().resolve(guide)

        assert len(mapping) == 2
        assert mapping.get(1).rgb == DEFAULT_CATALOG.by_name("Bright red").rgb
        assert mapping.get(2).name == "White"
        assert mapping.get(3) is None

    def test_column_guide_with_aliases(self):
        """Column guides accept `.value` / `Color` headers."""
        guide = {".value": ["5"], "Color": ["Black"]}
        mapping = ColorResolver().resolve(guide)
        assert mapping.get(5).name == "Black"

    def test_entry_guide(self):
        """Typed guide entries are accepted."""
        mapping = ColorResolver().resolve([ColorGuideEntry(9, "Dark green")])
        assert mapping.get(9).name == "Dark green"

    def test_unknown_name_rejected(self):
        """Unknown color names reject the whole guide and are listed."""
        guide = {"value": [1, 2, 3], "name": ["White", "Sky pink", "Mud"]}

        with self.assertRaises(ConfigurationError) as ctx:
            ColorResolver().resolve(guide)

        assert ctx.exception.entries == ("Sky pink", "Mud")
        assert "Sky pink" in str(ctx.exception)
        assert "Mud" in str(ctx.exception)

    def test_too_few_columns(self):
        """A single-column guide is rejected."""
        with self.assertRaises(ConfigurationError):
            ColorResolver().resolve({"value": [1]})

    def test_missing_required_column(self):
        """Both value and name columns are required."""
        with self.assertRaises(ConfigurationError) as ctx:
            ColorResolver().resolve({"value": [1], "label": ["White"]})
        assert "name" in ctx.exception.entries

    def test_non_integer_value(self):
        """Values must be integers."""
        with self.assertRaises(ConfigurationError):
            ColorResolver().resolve({"value": ["one"], "name": ["White"]})

        with self.assertRaises(ConfigurationError):
            ColorResolver().resolve({"value": [1.5], "name": ["White"]})

    def test_duplicate_values(self):
        """A value may only be assigned once."""
        with self.assertRaises(ConfigurationError) as ctx:
            ColorResolver().resolve({"value": [1, 1], "name": ["White", "Black"]})
        assert ctx.exception.entries == (1,)

    def test_not_a_table(self):
        """Strings and scalars are not guides."""
        with self.assertRaises(ConfigurationError):
            ColorResolver().resolve("White")

    def test_configuration_error_is_value_error(self):
        """ConfigurationError can be caught as ValueError."""
        assert issubclass(ConfigurationError, ValueError)

    def test_resolution_is_pure(self):
        """Identical guides give identical mappings."""
        guide = {"value": [1, 2], "name": ["Nougat", "Aqua"]}
        resolver = ColorResolver()
        assert resolver.resolve(guide) == resolver.resolve(guide)
        assert resolver.resolve() == ColorResolver(DEFAULT_CATALOG).resolve()

    def test_custom_catalog(self):
        """Resolvers use the catalog they were given."""
        catalog = ColorCatalog.from_table([(1, "Ink", "#000000")])
        resolver = ColorResolver(catalog)

        assert resolver.resolve().get(1).name == "Ink"
        with self.assertRaises(ConfigurationError):
            resolver.resolve({"value": [1], "name": ["White"]})


if __name__ == "__main__":
    unittest.main(verbosity=2)
