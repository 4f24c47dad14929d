"""
PNG Raster Exporter

Writes raster layers as images for quick inspection or for external
heightfield renderers:
- Color preview: RGBA PNG, transparent where there is no geometry
- Heightmap: 16-bit grayscale PNG, 0 where there is no geometry

Raster matrices are indexed [x, y'] with y' = 0 at the top of the model,
so images are the transposed matrices (rows = y', columns = x).
"""

from pathlib import Path
from typing import Optional, Union
import numpy as np
from PIL import Image


def color_to_rgba(color: np.ndarray) -> np.ndarray:
    """
    Convert a (nx, ny, 3) float color matrix to a (ny, nx, 4) uint8 image.

    NaN pixels become fully transparent.
    """
    present = ~np.isnan(color).any(axis=2)
    rgb = np.nan_to_num(np.clip(color, 0.0, 1.0), nan=0.0)
    rgba = np.zeros(color.shape[:2] + (4,), dtype=np.uint8)
    rgba[:, :, :3] = (rgb * 255.0 + 0.5).astype(np.uint8)
    rgba[:, :, 3] = np.where(present, 255, 0)
    return np.ascontiguousarray(rgba.transpose(1, 0, 2))


def elevation_to_uint16(
    elevation: np.ndarray,
    max_height: Optional[float] = None
) -> np.ndarray:
    """
    Scale a (nx, ny) elevation matrix to a (ny, nx) uint16 heightmap.

    Args:
        elevation: Heights, NaN = no geometry
        max_height: Height mapped to 65535 (default: matrix maximum)
    """
    if max_height is None:
        max_height = float(np.nanmax(elevation)) if np.any(~np.isnan(elevation)) else 1.0
    max_height = max(max_height, 1e-9)

    scaled = np.nan_to_num(elevation / max_height, nan=0.0)
    heights = (np.clip(scaled, 0.0, 1.0) * 65535.0 + 0.5).astype(np.uint16)
    return np.ascontiguousarray(heights.T)


class ImageExporter:
    """
    Export raster matrices to PNG images.

    Args:
        upscale: Integer nearest-neighbour upscale factor for previews
    """

    def __init__(self, upscale: int = 1):
        if upscale < 1:
            raise ValueError("upscale must be at least 1")
        self.upscale = upscale

    def export_color(self, color: np.ndarray, output_path: Union[str, Path]) -> Path:
        """Write the color matrix as an RGBA PNG."""
        if color.size == 0:
            raise ValueError("Cannot export empty raster")

        output_path = Path(output_path)
        img = Image.fromarray(color_to_rgba(color))
        if self.upscale > 1:
            img = img.resize(
                (img.width * self.upscale, img.height * self.upscale),
                Image.Resampling.NEAREST
            )
        img.save(output_path)
        return output_path

    def export_heightmap(
        self,
        elevation: np.ndarray,
        output_path: Union[str, Path],
        max_height: Optional[float] = None
    ) -> Path:
        """Write the elevation matrix as a 16-bit grayscale PNG."""
        if elevation.size == 0:
            raise ValueError("Cannot export empty raster")

        output_path = Path(output_path)
        img = Image.fromarray(elevation_to_uint16(elevation, max_height))
        img.save(output_path)
        return output_path
