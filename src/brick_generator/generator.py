"""
Main BrickGenerator Class

This is the primary interface for the brick model pipeline.
It orchestrates:
1. Grid table loading
2. Color guide resolution
3. Normalization into a BlockSet
4. Layer rasterization
5. Rendering / export

Example Usage:
    generator = BrickGenerator()
    generator.load_csv("castle.csv")
    generator.normalize(exclude_colors=[7])
    generator.export_obj("castle.obj")
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Union

from .blocks import BlockSet
from .color import ColorMapping, ColorResolver, DEFAULT_CATALOG, ColorCatalog, GuideLike
from .ingestion import GridTable, load_color_guide_csv, load_grid_csv
from .normalizer import GridNormalizer, NormalizeOptions
from .rasterizer import LayerRasterizer, RasterLayer, RES
from .render import DisplayOptions, ImageRenderer, MeshRenderer, RenderAdapter

logger = logging.getLogger(__name__)


class BrickGenerator:
    """
    High-level interface for grid-to-brick-model conversion.

    Attributes:
        table: The loaded grid table
        mapping: The resolved value -> color mapping
        block_set: The current normalized bricks
    """

    def __init__(
        self,
        catalog: ColorCatalog = DEFAULT_CATALOG,
        resolution: int = RES
    ):
        """
        Initialize the BrickGenerator.

        Args:
            catalog: Color catalog for guide validation and lookup
            resolution: Fine pixels per brick edge
        """
        self.resolver = ColorResolver(catalog)
        self.rasterizer = LayerRasterizer(resolution)

        self._table: Optional[GridTable] = None
        self._guide: Optional[GuideLike] = None
        self._mapping: Optional[ColorMapping] = None
        self._block_set: Optional[BlockSet] = None
        self._options: NormalizeOptions = NormalizeOptions()

    def load_table(self, table: Union[GridTable, Sequence[Sequence[Any]]]) -> "BrickGenerator":
        """
        Load a grid table from rows.

        Args:
            table: GridTable or sequence of rows (layer marker first)

        Returns:
            self for method chaining
        """
        if not isinstance(table, GridTable):
            table = GridTable.from_rows(table)
        self._table = table
        self._block_set = None
        return self

    def load_csv(self, path: Union[str, Path]) -> "BrickGenerator":
        """Load a grid table from a CSV file."""
        return self.load_table(load_grid_csv(path))

    def set_color_guide(self, guide: Optional[GuideLike]) -> "BrickGenerator":
        """
        Set (or clear) the color guide.

        The guide is validated immediately.

        Raises:
            ConfigurationError: If the guide is invalid
        """
        self._mapping = self.resolver.resolve(guide)
        self._guide = guide
        self._block_set = None
        return self

    def load_color_guide(self, path: Union[str, Path]) -> "BrickGenerator":
        """Load and validate a color guide CSV."""
        return self.set_color_guide(load_color_guide_csv(path))

    def normalize(self, **options: Any) -> "BrickGenerator":
        """
        Normalize the loaded table into a BlockSet.

        Args:
            **options: NormalizeOptions fields (re_level, increment_x, max_level,
                exclude_colors, ...)

        Returns:
            self for method chaining
        """
        if self._table is None:
            raise RuntimeError("No grid table loaded. Call load_table() first.")

        if self._mapping is None:
            self._mapping = self.resolver.resolve(None)

        self._options = NormalizeOptions(**options)
        self._block_set = GridNormalizer(self._mapping).normalize(self._table, self._options)
        return self

    def rasterize(self, layer: int) -> RasterLayer:
        """Rasterize a single layer of the current BlockSet."""
        return self.rasterizer.rasterize(self._require_blocks(), layer)

    def render(
        self,
        renderer,
        layers: Optional[Iterable[int]] = None,
        options: Optional[DisplayOptions] = None
    ) -> list:
        """
        Forward layers to a heightfield renderer.

        Args:
            renderer: Object implementing HeightfieldRenderer
            layers: Layers to render (default: all)
            options: Display options

        Returns:
            Renderer results per layer
        """
        adapter = RenderAdapter(renderer, self.rasterizer)
        return adapter.render(self._require_blocks(), layers, options)

    def export_obj(
        self,
        output_path: Union[str, Path],
        layers: Optional[Iterable[int]] = None,
        options: Optional[DisplayOptions] = None,
        y_up: bool = False
    ) -> Path:
        """
        Export the model as a heightfield OBJ mesh.

        Args:
            output_path: Output file path
            layers: Layers to include (default: all)
            options: Display options (zscale, solid base)
            y_up: Rotate to a Y-up coordinate system

        Returns:
            Path written
        """
        renderer = MeshRenderer()
        self.render(renderer, layers, options)
        return renderer.export_obj(output_path, y_up=y_up)

    def export_png(
        self,
        output_dir: Union[str, Path],
        layers: Optional[Iterable[int]] = None,
        prefix: str = "bricks",
        upscale: int = 1
    ) -> List[Path]:
        """
        Export color previews and heightmaps per layer.

        Returns:
            List of written paths
        """
        renderer = ImageRenderer(output_dir, prefix=prefix, upscale=upscale)
        results = self.render(renderer, layers)
        return [path for paths in results for path in paths]

    def _require_blocks(self) -> BlockSet:
        if self._block_set is None:
            raise RuntimeError("No bricks. Call normalize() first.")
        return self._block_set

    @property
    def table(self) -> Optional[GridTable]:
        return self._table

    @property
    def mapping(self) -> Optional[ColorMapping]:
        return self._mapping

    @property
    def block_set(self) -> Optional[BlockSet]:
        return self._block_set

    @property
    def block_count(self) -> int:
        """Get the number of bricks with a resolved color."""
        if self._block_set is None:
            return 0
        return self._block_set.count_blocks()

    @property
    def layer_count(self) -> int:
        if self._block_set is None:
            return 0
        return len(self._block_set.layers)

    def preview(self) -> dict:
        """
        Get a preview of the current state.

        Returns:
            Dictionary with current state information
        """
        info = {
            "table_loaded": self._table is not None,
            "color_guide": self._guide is not None,
            "normalized": self._block_set is not None,
        }

        if self._table is not None:
            info["table_rows"] = len(self._table)
            info["table_width"] = self._table.width

        if self._block_set is not None:
            info["layers"] = self._block_set.layers
            info["block_count"] = self._block_set.count_blocks()
            info["bounds"] = self._block_set.bounds

        return info


class AnimationProcessor:
    """
    Frame sequences for animated builds.

    Every frame is an independent normalization of the same table with
    different clip or translation settings.
    """

    def __init__(
        self,
        table: Union[GridTable, Sequence[Sequence[Any]]],
        color_guide: Optional[GuideLike] = None,
        catalog: ColorCatalog = DEFAULT_CATALOG,
        **options: Any
    ):
        """
        Initialize the processor.

        Args:
            table: Grid table
            color_guide: Optional color guide
            catalog: Color catalog
            **options: Base NormalizeOptions fields shared by every frame
        """
        self.table = table if isinstance(table, GridTable) else GridTable.from_rows(table)
        self.mapping = ColorResolver(catalog).resolve(color_guide)
        self.options = dict(options)
        self._normalizer = GridNormalizer(self.mapping)

    def _frame(self, **overrides: Any) -> BlockSet:
        settings = dict(self.options)
        settings.update(overrides)
        return self._normalizer.normalize(self.table, NormalizeOptions(**settings))

    def build_up(self) -> Iterator[BlockSet]:
        """
        Yield one frame per layer, stacking layers from the bottom up.

        Frame k shows the k lowest layers of the full model; layers that
        were dropped or translated away do not produce frames.
        """
        full = self._frame()
        for top in full.layers:
            yield self._frame(max_level=top)

    def slide(self, axis: str = "x", steps: int = 10, start: int = 0) -> Iterator[BlockSet]:
        """
        Yield frames translated one brick further along `axis` each step.

        Args:
            axis: "x", "y" or "level"
            steps: Number of frames
            start: Increment of the first frame
        """
        key = {"x": "increment_x", "y": "increment_y", "level": "increment_level"}.get(axis)
        if key is None:
            raise ValueError(f"Unknown axis: {axis}")
        for step in range(steps):
            yield self._frame(**{key: start + step})

    def process_build_up(
        self,
        output_dir: Union[str, Path],
        formats: Optional[List[str]] = None,
        options: Optional[DisplayOptions] = None
    ) -> List[str]:
        """
        Export every build-up frame.

        Args:
            output_dir: Output directory
            formats: "obj" and/or "png" (default: obj)
            options: Display options

        Returns:
            List of output base paths
        """
        formats = formats or ["obj"]
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        outputs = []
        rasterizer = LayerRasterizer()
        for i, block_set in enumerate(self.build_up()):
            base_path = output_dir / f"frame_{i:04d}"

            if "obj" in formats:
                renderer = MeshRenderer()
                RenderAdapter(renderer, rasterizer).render(block_set, options=options)
                renderer.export_obj(base_path.with_suffix(".obj"))

            if "png" in formats:
                renderer = ImageRenderer(output_dir, prefix=base_path.name)
                RenderAdapter(renderer, rasterizer).render(block_set, options=options)

            logger.debug("Exported frame %d (%d bricks)", i, block_set.count_blocks())
            outputs.append(str(base_path))

        return outputs
