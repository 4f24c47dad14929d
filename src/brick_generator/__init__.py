"""
Brick Generator
===============

A pipeline that turns coarse grid tables of stacked toy bricks into 3D models.

This package normalizes user-authored grid tables into canonical brick sets
and rasterizes each stacking layer into dense elevation and color matrices
for heightfield rendering.

Key Features:
- Built-in catalog of official brick colors, optional custom color guides
- Re-leveling, translation, clipping and exclusion of bricks
- Sub-brick rasterization with studs, bevels and edge shading (Numba JIT)
- Export to Wavefront (.obj) heightfield meshes and PNG previews/heightmaps

Example Usage:
    from brick_generator import BrickGenerator

    generator = BrickGenerator()
    generator.load_table([
        ["A", 4, 4, 4],
        ["A", 4, 0, 4],
        ["B", 0, 1, 0],
    ])
    generator.normalize()
    generator.export_obj("output.obj")
"""

__version__ = "1.0.0"
__author__ = "Brick Generator Team"

from .generator import BrickGenerator, AnimationProcessor
from .color import (
    ColorCatalog,
    ColorCatalogEntry,
    ColorGuideEntry,
    ColorMapping,
    ColorResolver,
    ConfigurationError,
    DEFAULT_CATALOG,
)
from .blocks import BlockRecord, BlockSet
from .ingestion import GridTable
from .normalizer import GridNormalizer, NormalizeOptions, normalize_grid
from .rasterizer import LayerRasterizer, RasterLayer, RES
from .render import DisplayOptions, RenderAdapter, MeshRenderer, ImageRenderer

__all__ = [
    "BrickGenerator",
    "AnimationProcessor",
    "ColorCatalog",
    "ColorCatalogEntry",
    "ColorGuideEntry",
    "ColorMapping",
    "ColorResolver",
    "ConfigurationError",
    "DEFAULT_CATALOG",
    "BlockRecord",
    "BlockSet",
    "GridTable",
    "GridNormalizer",
    "NormalizeOptions",
    "normalize_grid",
    "LayerRasterizer",
    "RasterLayer",
    "RES",
    "DisplayOptions",
    "RenderAdapter",
    "MeshRenderer",
    "ImageRenderer",
]
