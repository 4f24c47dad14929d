"""
Render Adapter Module

Feeds rasterized layers to a heightfield renderer. The adapter owns only
the hand-off contract: elevation and color matrices of matching shape with
NaN at the same positions. Display options are forwarded untouched.

Renderers provided:
- MeshRenderer: Builds a colored heightfield mesh per layer (OBJ export)
- ImageRenderer: Writes color previews and heightmaps per layer (PNG)

Any object with a matching `render(elevation, color, options, layer=..., origin=...)`
method can be used instead.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union

import numpy as np

from .blocks import BlockSet
from .color import hex_to_rgb
from .exporters import ImageExporter, OBJExporter
from .heightfield import HeightfieldMesher, MeshData, merge_meshes
from .rasterizer import LayerRasterizer, RasterLayer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayOptions:
    """
    Display parameters passed through to the renderer.

    Attributes:
        zscale: Elevation units per horizontal pixel (heights are divided by it)
        solid: Draw walls down to `solid_depth` as a solid base
        solid_color: Hex color of the base walls
        solid_depth: Elevation the base reaches down to
        theta, phi, zoom: Camera parameters for interactive renderers
        extra: Renderer-specific options
    """

    zscale: float = 0.167
    solid: bool = False
    solid_color: str = "#a3a2a4"
    solid_depth: float = 0.0
    theta: float = 45.0
    phi: float = 45.0
    zoom: float = 1.0
    extra: Dict[str, Any] = field(default_factory=dict)


class HeightfieldRenderer(Protocol):
    """
    Anything that can draw one elevation/color matrix pair.

    `origin` is the fine (x, y') position of the matrix corner within the
    whole model.
    """

    def render(
        self,
        elevation: np.ndarray,
        color: np.ndarray,
        options: DisplayOptions,
        layer: int = 1,
        origin: Tuple[int, int] = (0, 0)
    ) -> Any:
        ...


def check_matrices(elevation: np.ndarray, color: np.ndarray):
    """
    Verify the renderer contract.

    Raises:
        ValueError: If shapes differ or sentinel positions disagree
    """
    if color.shape != elevation.shape + (3,):
        raise ValueError(
            f"Color shape {color.shape} does not match elevation shape {elevation.shape}"
        )
    elevation_missing = np.isnan(elevation)
    color_missing = np.isnan(color).any(axis=2)
    if not np.array_equal(elevation_missing, color_missing):
        raise ValueError("Elevation and color matrices disagree on missing geometry")


class RenderAdapter:
    """
    Rasterizes layers and forwards them to a renderer.

    Args:
        renderer: HeightfieldRenderer receiving each layer
        rasterizer: LayerRasterizer (default resolution if None)
    """

    def __init__(
        self,
        renderer: HeightfieldRenderer,
        rasterizer: Optional[LayerRasterizer] = None
    ):
        self.renderer = renderer
        self.rasterizer = rasterizer or LayerRasterizer()

    def render(
        self,
        block_set: BlockSet,
        layers: Optional[Iterable[int]] = None,
        options: Optional[DisplayOptions] = None
    ) -> List[Any]:
        """
        Render layers of a BlockSet.

        Args:
            block_set: Normalized bricks
            layers: Layers to render (default: every layer present)
            options: Display options forwarded to the renderer

        Returns:
            List of renderer results, one per non-empty layer
        """
        options = options or DisplayOptions()
        if layers is None:
            layers = block_set.layers

        results = []
        for layer in layers:
            raster = self.rasterizer.rasterize(block_set, layer)
            if raster.is_empty:
                logger.warning("Layer %s has no bricks, skipping", layer)
                continue

            check_matrices(raster.elevation, raster.color)
            results.append(self.renderer.render(
                raster.elevation, raster.color, options,
                layer=layer, origin=self.model_origin(block_set, raster)
            ))

        return results

    def model_origin(self, block_set: BlockSet, raster: RasterLayer) -> Tuple[int, int]:
        """
        Place a layer's matrix corner in the model-wide flipped frame.

        x counts from the model's lowest x; y' counts down from the model's
        highest y, matching the per-layer flip.
        """
        bounds = block_set.bounds
        res = self.rasterizer.resolution
        origin_x, origin_y = raster.origin
        layer_top = origin_y + raster.shape[1]
        model_top = (bounds.max_y + 1) * res
        return (origin_x - bounds.min_x * res, model_top - layer_top)


class MeshRenderer:
    """
    Heightfield renderer producing a colored triangle mesh.

    Layers are meshed independently and accumulated; `mesh` returns the
    merged model.
    """

    def __init__(self, scale: float = 1.0):
        """
        Initialize the renderer.

        Args:
            scale: Vertex position scale factor (1.0 = 1 unit per fine pixel)
        """
        self.scale = scale
        self._meshes: Dict[int, MeshData] = {}

    def render(
        self,
        elevation: np.ndarray,
        color: np.ndarray,
        options: DisplayOptions,
        layer: int = 1,
        origin: Tuple[int, int] = (0, 0)
    ) -> MeshData:
        mesher = HeightfieldMesher(zscale=options.zscale, scale=self.scale)
        if options.solid:
            mesh = mesher.mesh(
                elevation, color,
                floor=options.solid_depth,
                wall_color=hex_to_rgb(options.solid_color)
            )
        else:
            mesh = mesher.mesh(elevation, color)

        offset = np.array([origin[0], origin[1], 0.0], dtype=np.float32) * np.float32(self.scale)
        mesh = mesh._replace(vertices=mesh.vertices + offset)

        self._meshes[layer] = mesh
        return mesh

    @property
    def layer_meshes(self) -> Dict[int, MeshData]:
        return dict(self._meshes)

    @property
    def mesh(self) -> MeshData:
        """Get all rendered layers merged into one mesh."""
        return merge_meshes([self._meshes[k] for k in sorted(self._meshes)])

    def clear(self):
        self._meshes.clear()

    def export_obj(
        self,
        output_path: Union[str, Path],
        y_up: bool = False,
        include_colors: bool = True
    ) -> Path:
        """Export the merged mesh to OBJ."""
        exporter = OBJExporter(include_colors=include_colors, y_up=y_up)
        return exporter.export(self.mesh, output_path)


class ImageRenderer:
    """
    Heightfield renderer writing PNG files per layer.

    Produces `<prefix>_layer<N>.png` (color) and
    `<prefix>_layer<N>_height.png` (16-bit heightmap) in `output_dir`.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        prefix: str = "bricks",
        upscale: int = 1,
        heightmaps: bool = True
    ):
        self.output_dir = Path(output_dir)
        self.prefix = prefix
        self.heightmaps = heightmaps
        self.exporter = ImageExporter(upscale=upscale)

    def render(
        self,
        elevation: np.ndarray,
        color: np.ndarray,
        options: DisplayOptions,
        layer: int = 1,
        origin: Tuple[int, int] = (0, 0)
    ) -> List[Path]:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        base = self.output_dir / f"{self.prefix}_layer{layer}"

        outputs = [self.exporter.export_color(color, base.parent / f"{base.name}.png")]
        if self.heightmaps:
            outputs.append(self.exporter.export_heightmap(
                elevation, base.parent / f"{base.name}_height.png",
                max_height=options.extra.get("max_height")
            ))
        return outputs
