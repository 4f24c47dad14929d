"""
Unit tests for the render adapter, renderers and exporters.
"""

import sys
import tempfile
from pathlib import Path
import unittest

import numpy as np
from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brick_generator.blocks import BlockRecord, BlockSet
from brick_generator.color import DEFAULT_CATALOG
from brick_generator.exporters import ImageExporter, OBJExporter
from brick_generator.exporters.image_exporter import color_to_rgba, elevation_to_uint16
from brick_generator.heightfield import HeightfieldMesher, empty_mesh
from brick_generator.normalizer import normalize_grid
from brick_generator.rasterizer import RES
from brick_generator.render import (
    DisplayOptions,
    ImageRenderer,
    MeshRenderer,
    RenderAdapter,
    check_matrices,
)


class RecordingRenderer:
    """Renderer double that keeps what it was given."""

    def __init__(self):
        self.calls = []
        self.origins = {}

    def render(self, elevation, color, options, layer=1, origin=(0, 0)):
        self.calls.append((layer, elevation, color, options))
        self.origins[layer] = origin
        return layer


class TestRenderAdapter(unittest.TestCase):
    """Tests for RenderAdapter."""

    def setUp(self):
        self.blocks = normalize_grid([["A", 1, 4], ["B", 4, 0]])

    def test_forwards_every_layer(self):
        """Each layer reaches the renderer with matching matrices."""
        renderer = RecordingRenderer()
        results = RenderAdapter(renderer).render(self.blocks)

        assert results == [1, 2]
        for _, elevation, color, _ in renderer.calls:
            assert color.shape == elevation.shape + (3,)

    def test_options_passed_through(self):
        """Display options are forwarded untouched."""
        renderer = RecordingRenderer()
        options = DisplayOptions(zscale=0.3, theta=10.0, extra={"shadow": True})
        RenderAdapter(renderer).render(self.blocks, layers=[2], options=options)

        assert len(renderer.calls) == 1
        assert renderer.calls[0][3] is options

    def test_missing_layer_skipped(self):
        """Layers without records are skipped."""
        renderer = RecordingRenderer()
        with self.assertLogs("brick_generator.render", level="WARNING"):
            results = RenderAdapter(renderer).render(self.blocks, layers=[1, 9])
        assert results == [1]

    def test_layer_origins(self):
        """Each layer is placed within the whole model's footprint."""
        blocks = normalize_grid([[1, 1], [1, 1], [1, 1], [2, 4]])
        renderer = RecordingRenderer()
        RenderAdapter(renderer).render(blocks)

        # Layer 2 only covers the front row (lowest y, highest y')
        assert renderer.origins == {1: (0, 0), 2: (0, 2 * RES)}

    def test_layer_origin_x(self):
        """Narrower layers are shifted to their own x."""
        white = DEFAULT_CATALOG.by_code(1)
        blocks = BlockSet((
            BlockRecord(1, 1, 1, 1, white.name, white.rgb),
            BlockRecord(1, 2, 1, 1, white.name, white.rgb),
            BlockRecord(2, 2, 1, 1, white.name, white.rgb),
        ))
        renderer = RecordingRenderer()
        RenderAdapter(renderer).render(blocks)

        assert renderer.origins == {1: (0, 0), 2: (RES, 0)}

    def test_check_matrices(self):
        """Mismatched matrices are rejected."""
        check_matrices(np.zeros((2, 2)), np.zeros((2, 2, 3)))

        with self.assertRaises(ValueError):
            check_matrices(np.zeros((2, 2)), np.zeros((2, 3, 3)))

        color = np.zeros((2, 2, 3))
        color[0, 0] = np.nan
        with self.assertRaises(ValueError):
            check_matrices(np.zeros((2, 2)), color)


class TestMeshRenderer(unittest.TestCase):
    """Tests for MeshRenderer and OBJ export."""

    def test_solid_base(self):
        """Solid mode walls drop to the base in the base color."""
        blocks = normalize_grid([["A", 1]])
        renderer = MeshRenderer()
        RenderAdapter(renderer).render(
            blocks, options=DisplayOptions(solid=True, zscale=1.0)
        )

        mesh = renderer.mesh
        assert mesh.vertices[:, 2].min() == 0.0
        walls = mesh.normals[:, 2] == 0
        assert walls.any()
        assert (mesh.colors[walls, :3] == (163, 162, 164)).all()

    def test_layers_accumulate(self):
        """The merged mesh holds every rendered layer."""
        blocks = normalize_grid([["A", 1], ["B", 1]])
        renderer = MeshRenderer()
        RenderAdapter(renderer).render(blocks)

        assert sorted(renderer.layer_meshes) == [1, 2]
        total = sum(len(m.vertices) for m in renderer.layer_meshes.values())
        assert len(renderer.mesh.vertices) == total

        renderer.clear()
        assert len(renderer.mesh.vertices) == 0

    def test_layers_aligned(self):
        """Stacked layers with different footprints share one frame."""
        blocks = normalize_grid([[1, 1], [1, 1], [1, 1], [2, 4]])
        renderer = MeshRenderer()
        RenderAdapter(renderer).render(blocks)

        bottom = renderer.layer_meshes[1].vertices
        top = renderer.layer_meshes[2].vertices
        assert bottom[:, 1].min() == 0.0
        assert bottom[:, 1].max() == 3 * RES
        assert top[:, 1].min() == 2 * RES
        assert top[:, 1].max() == 3 * RES
        assert top[:, 0].min() == 0.0
        assert top[:, 0].max() == RES

    def test_export_obj(self):
        """OBJ files contain colored vertices and faces."""
        blocks = normalize_grid([["A", 4]])
        renderer = MeshRenderer()
        RenderAdapter(renderer).render(blocks)

        with tempfile.TemporaryDirectory() as tmpdir:
            path = renderer.export_obj(Path(tmpdir) / "model.obj")
            text = path.read_text()

        lines = text.splitlines()
        assert lines[0] == "# Brick Generator OBJ Export"
        vertex_lines = [l for l in lines if l.startswith("v ")]
        assert len(vertex_lines) == len(renderer.mesh.vertices)
        assert len(vertex_lines[0].split()) == 7
        assert any(l.startswith("vn ") for l in lines)
        assert any(l.startswith("f ") and "//" in l for l in lines)

    def test_y_up(self):
        """Y-up export moves heights to the second coordinate."""
        mesh = HeightfieldMesher(zscale=1.0).mesh(np.array([[3.0]]), np.ones((1, 1, 3)))

        with tempfile.TemporaryDirectory() as tmpdir:
            path = OBJExporter(y_up=True, include_colors=False).export(
                mesh, Path(tmpdir) / "up.obj"
            )
            vertex_lines = [l for l in path.read_text().splitlines() if l.startswith("v ")]

        heights = {float(l.split()[2]) for l in vertex_lines}
        assert heights == {3.0}

    def test_empty_mesh_rejected(self):
        """Nothing to export is an error."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(ValueError):
                OBJExporter().export(empty_mesh(), Path(tmpdir) / "empty.obj")


class TestImageRenderer(unittest.TestCase):
    """Tests for ImageRenderer and PNG export."""

    def test_color_to_rgba(self):
        """Images are transposed; NaN pixels are transparent."""
        color = np.zeros((3, 2, 3))
        color[0, 0] = np.nan
        rgba = color_to_rgba(color)

        assert rgba.shape == (2, 3, 4)
        assert rgba[0, 0, 3] == 0
        assert rgba[1, 2, 3] == 255

    def test_elevation_to_uint16(self):
        """Heights scale to the full 16-bit range."""
        elevation = np.array([[np.nan, 3.5]])
        heights = elevation_to_uint16(elevation)

        assert heights.shape == (2, 1)
        assert heights.dtype == np.uint16
        assert heights[0, 0] == 0
        assert heights[1, 0] == 65535

    def test_writes_layer_images(self):
        """Color and height PNGs are written per layer."""
        blocks = normalize_grid([["A", 1, 4], ["B", 4, 0]])

        with tempfile.TemporaryDirectory() as tmpdir:
            renderer = ImageRenderer(tmpdir, prefix="test")
            results = RenderAdapter(renderer).render(blocks)

            paths = [p for layer_paths in results for p in layer_paths]
            names = sorted(p.name for p in paths)
            assert names == [
                "test_layer1.png", "test_layer1_height.png",
                "test_layer2.png", "test_layer2_height.png",
            ]

            with Image.open(Path(tmpdir) / "test_layer1.png") as img:
                assert img.size == (2 * RES, RES)
                assert img.mode == "RGBA"

    def test_upscale(self):
        """Previews can be enlarged."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = ImageExporter(upscale=3).export_color(
                np.ones((2, 2, 3)), Path(tmpdir) / "big.png"
            )
            with Image.open(path) as img:
                assert img.size == (6, 6)

        with self.assertRaises(ValueError):
            ImageExporter(upscale=0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
