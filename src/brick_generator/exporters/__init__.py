"""
Export modules for rendered brick layers.

Supported formats:
- Wavefront (.obj) - Heightfield mesh with vertex colors
- PNG (.png) - Color preview and 16-bit heightmap per layer
"""

from .obj_exporter import OBJExporter
from .image_exporter import ImageExporter

__all__ = ["OBJExporter", "ImageExporter"]
