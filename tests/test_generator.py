"""
Unit tests for the Brick Generator pipeline and command line.
"""

import sys
import tempfile
from pathlib import Path
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brick_generator import AnimationProcessor, BrickGenerator, ConfigurationError
from brick_generator.cli import create_parser, main, normalize_options


HOUSE = [
    ["A", 23, 23, 23],
    ["A", 23, 0, 23],
    ["B", 0, 4, 0],
]

HOUSE_CSV = "Level,x1,x2,x3\nA,23,23,23\nA,23,0,23\nB,0,4,0\n"


class TestBrickGenerator(unittest.TestCase):
    """Tests for BrickGenerator."""

    def test_pipeline(self):
        """Load, normalize and inspect a small model."""
        generator = BrickGenerator().load_table(HOUSE).normalize()

        assert generator.block_count == 6
        assert generator.layer_count == 2

        info = generator.preview()
        assert info["table_loaded"]
        assert info["normalized"]
        assert not info["color_guide"]
        assert info["table_rows"] == 3
        assert info["table_width"] == 3
        assert info["layers"] == [1, 2]
        assert info["bounds"].max_x == 3

    def test_rasterize(self):
        """Layers rasterize at the configured resolution."""
        generator = BrickGenerator(resolution=5).load_table(HOUSE).normalize()
        raster = generator.rasterize(2)
        assert raster.shape == (15, 5)

    def test_order_enforced(self):
        """Steps that need earlier steps fail clearly."""
        generator = BrickGenerator()
        with self.assertRaises(RuntimeError):
            generator.normalize()

        generator.load_table(HOUSE)
        with self.assertRaises(RuntimeError):
            generator.rasterize(1)

    def test_reload_resets_blocks(self):
        """Loading a new table discards the previous bricks."""
        generator = BrickGenerator().load_table(HOUSE).normalize()
        generator.load_table([["A", 1]])
        assert generator.block_set is None
        assert generator.block_count == 0

    def test_color_guide(self):
        """Guides are validated when set and applied on normalize."""
        generator = BrickGenerator().load_table(HOUSE)

        with self.assertRaises(ConfigurationError):
            generator.set_color_guide({"value": [23], "name": ["Chartreuse dream"]})

        generator.set_color_guide({"value": [4], "name": ["Bright blue"]}).normalize()
        assert generator.block_count == 1
        assert generator.layer_count == 1
        assert generator.preview()["color_guide"]

    def test_normalize_options(self):
        """Options are forwarded to normalization."""
        generator = BrickGenerator().load_table(HOUSE).normalize(exclude_layers=[2])
        assert generator.block_set.layers == [1]

    def test_csv_and_exports(self):
        """CSV input produces OBJ and PNG files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir = Path(tmpdir)
            (tmpdir / "house.csv").write_text(HOUSE_CSV)
            (tmpdir / "guide.csv").write_text("value,name\n23,Reddish brown\n4,Bright red\n")

            generator = BrickGenerator()
            generator.load_csv(tmpdir / "house.csv")
            generator.load_color_guide(tmpdir / "guide.csv")
            generator.normalize()

            obj_path = generator.export_obj(tmpdir / "house.obj", y_up=True)
            assert obj_path.exists()

            png_paths = generator.export_png(tmpdir / "png", layers=[1])
            assert [p.name for p in png_paths] == [
                "bricks_layer1.png", "bricks_layer1_height.png"
            ]
            assert all(p.exists() for p in png_paths)


class TestAnimationProcessor(unittest.TestCase):
    """Tests for AnimationProcessor."""

    def test_build_up(self):
        """One frame per layer, each adding the next layer."""
        frames = list(AnimationProcessor(HOUSE).build_up())

        assert len(frames) == 2
        assert frames[0].layers == [1]
        assert frames[1].layers == [1, 2]

    def test_slide(self):
        """Slide frames shift one brick per step."""
        frames = list(AnimationProcessor(HOUSE).slide("x", steps=3))
        min_x = [frame.bounds.min_x for frame in frames]
        assert min_x == [1, 2, 3]

        with self.assertRaises(ValueError):
            list(AnimationProcessor(HOUSE).slide("z"))

    def test_empty_build_up(self):
        """Nothing to build yields no frames."""
        processor = AnimationProcessor(HOUSE, exclude_colors=(4, 23))
        assert list(processor.build_up()) == []

    def test_build_up_skips_dropped_layers(self):
        """An empty first layer does not produce an empty frame."""
        processor = AnimationProcessor([[1, 0, 0], [2, 1, 1]])
        frames = list(processor.build_up())

        assert len(frames) == 1
        assert frames[0].layers == [2]

        with tempfile.TemporaryDirectory() as tmpdir:
            outputs = processor.process_build_up(tmpdir, formats=["obj"])
            assert len(outputs) == 1
            assert (Path(tmpdir) / "frame_0000.obj").exists()

    def test_build_up_after_translation(self):
        """Frames start at the lowest translated layer."""
        frames = list(AnimationProcessor(HOUSE, increment_level=2).build_up())
        assert [frame.layers for frame in frames] == [[3], [3, 4]]

    def test_process_build_up(self):
        """Frames are written to disk."""
        with tempfile.TemporaryDirectory() as tmpdir:
            processor = AnimationProcessor(HOUSE)
            outputs = processor.process_build_up(tmpdir, formats=["obj", "png"])

            assert len(outputs) == 2
            assert (Path(tmpdir) / "frame_0000.obj").exists()
            assert (Path(tmpdir) / "frame_0001.obj").exists()
            assert (Path(tmpdir) / "frame_0001_layer2.png").exists()


class TestCLI(unittest.TestCase):
    """Tests for the command line interface."""

    def test_parser_defaults(self):
        """Defaults map to default normalization."""
        args = create_parser().parse_args(["house.csv"])
        options = normalize_options(args)

        assert options["re_level"]
        assert options["increment_x"] == 0
        assert options["max_level"] is None
        assert options["exclude_colors"] == ()
        assert args.format == ["obj"]

    def test_parser_options(self):
        """Flags map to normalization options."""
        args = create_parser().parse_args([
            "house.csv", "--no-re-level", "--max-level", "2",
            "--exclude-color", "4", "7", "--increment-y", "-1"
        ])
        options = normalize_options(args)

        assert not options["re_level"]
        assert options["max_level"] == 2
        assert options["exclude_colors"] == (4, 7)
        assert options["increment_y"] == -1

    def test_missing_input(self):
        """A missing input file is an error."""
        assert main(["/nonexistent/house.csv"]) == 1
        assert main([]) == 1

    def test_export(self):
        """The CLI writes the requested outputs."""
        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir = Path(tmpdir)
            input_path = tmpdir / "house.csv"
            input_path.write_text(HOUSE_CSV)

            code = main([str(input_path), "-f", "obj", "png", "--solid"])

            assert code == 0
            assert (tmpdir / "house.obj").exists()
            assert (tmpdir / "house_layer1.png").exists()
            assert (tmpdir / "house_layer2_height.png").exists()

    def test_no_bricks(self):
        """Excluding everything is reported as a failure."""
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "house.csv"
            input_path.write_text(HOUSE_CSV)
            assert main([str(input_path), "--exclude-color", "4", "23"]) == 1

    def test_build_up(self):
        """Build-up frames go to the output directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "house.csv"
            input_path.write_text(HOUSE_CSV)
            frames = Path(tmpdir) / "frames"

            assert main([str(input_path), "--build-up", "--output-dir", str(frames)]) == 0
            assert (frames / "frame_0001.obj").exists()

    def test_list_colors(self):
        """The catalog can be listed."""
        assert main(["--list-colors"]) == 0


if __name__ == "__main__":
    unittest.main(verbosity=2)
