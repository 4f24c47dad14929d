"""
Command-Line Interface for Brick Generator

Usage:
    brickgen castle.csv -o castle
    brickgen castle.csv --guide colors.csv --exclude-color 7 -o castle --format obj png
    brickgen castle.csv --build-up --output-dir frames/
    brickgen --list-colors

"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .color import DEFAULT_CATALOG
from .generator import AnimationProcessor, BrickGenerator
from .ingestion import load_color_guide_csv, load_grid_csv
from .logging_config import setup_logging
from .render import DisplayOptions


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="brickgen",
        description="Brick Generator - Convert grid tables into 3D brick models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  brickgen castle.csv -o castle
      Export castle.obj from a grid table

  brickgen castle.csv --guide colors.csv -o castle --format obj png
      Map grid values to named colors, export OBJ and per-layer PNGs

  brickgen castle.csv --max-level 2 --increment-x 3 -o castle
      Keep the two lowest layers, shift three bricks right

  brickgen castle.csv --build-up --output-dir frames/
      One frame per layer for a build-up animation

Grid Table:
  First column    - layer marker (e.g. A, B, C or 1, 2, 3)
  Other columns   - color codes per x position, 0/blank = empty
  Row order       - top row of each layer is the back of the model
        """
    )

    parser.add_argument(
        "input",
        nargs="?",
        help="Grid table CSV file"
    )

    parser.add_argument(
        "-o", "--output",
        help="Output base path (default: input path without extension)"
    )

    parser.add_argument(
        "-g", "--guide",
        help="Color guide CSV with `value` and `name` columns"
    )

    # Normalization settings
    parser.add_argument(
        "--no-re-level",
        action="store_true",
        help="Use layer markers literally instead of re-leveling them"
    )

    for axis, label in (("level", "layer"), ("x", "x"), ("y", "y")):
        parser.add_argument(
            f"--increment-{axis}",
            type=int,
            default=0,
            help=f"Shift every {label} coordinate by this many bricks (default: 0)"
        )
        parser.add_argument(
            f"--max-{axis}",
            type=int,
            default=None,
            help=f"Drop bricks with {label} above this value (default: unbounded)"
        )

    parser.add_argument(
        "--exclude-color",
        type=int,
        nargs="+",
        default=[],
        help="Color codes to exclude"
    )

    parser.add_argument(
        "--exclude-level",
        type=int,
        nargs="+",
        default=[],
        help="Layers to exclude"
    )

    # Output settings
    parser.add_argument(
        "-l", "--layers",
        type=int,
        nargs="+",
        help="Layers to render (default: all)"
    )

    parser.add_argument(
        "-f", "--format",
        nargs="+",
        choices=["obj", "png"],
        default=["obj"],
        help="Output format(s) (default: obj)"
    )

    parser.add_argument(
        "--zscale",
        type=float,
        default=0.167,
        help="Elevation units per pixel; heights are divided by it (default: 0.167)"
    )

    parser.add_argument(
        "--solid",
        action="store_true",
        help="Extend walls down to a solid base"
    )

    parser.add_argument(
        "--solid-color",
        default="#a3a2a4",
        help="Hex color of the solid base (default: #a3a2a4)"
    )

    parser.add_argument(
        "--y-up",
        action="store_true",
        help="Write OBJ in a Y-up coordinate system"
    )

    parser.add_argument(
        "--upscale",
        type=int,
        default=1,
        help="Nearest-neighbour upscale for PNG previews (default: 1)"
    )

    # Animation
    parser.add_argument(
        "--build-up",
        action="store_true",
        help="Export one frame per layer into --output-dir"
    )

    parser.add_argument(
        "--output-dir",
        help="Output directory for animation frames"
    )

    # Misc
    parser.add_argument(
        "--list-colors",
        action="store_true",
        help="List catalog color codes and names"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with statistics"
    )

    parser.add_argument(
        "--log-file",
        help="Also write log messages to this file"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def normalize_options(args) -> dict:
    """Collect NormalizeOptions fields from parsed arguments."""
    return {
        "re_level": not args.no_re_level,
        "increment_level": args.increment_level,
        "increment_x": args.increment_x,
        "increment_y": args.increment_y,
        "max_level": args.max_level,
        "max_x": args.max_x,
        "max_y": args.max_y,
        "exclude_colors": tuple(args.exclude_color),
        "exclude_layers": tuple(args.exclude_level),
    }


def display_options(args) -> DisplayOptions:
    return DisplayOptions(
        zscale=args.zscale,
        solid=args.solid,
        solid_color=args.solid_color,
    )


def list_colors() -> int:
    """Print the color catalog."""
    for entry in DEFAULT_CATALOG:
        print(f"{entry.code:>3}  {entry.hex}  {entry.name}")
    return 0


def process_single(args) -> int:
    """Process a single grid table."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    output_base = Path(args.output) if args.output else input_path.with_suffix("")

    start_time = time.time()

    try:
        generator = BrickGenerator()

        if args.verbose:
            print(f"Loading: {input_path}")
        generator.load_csv(input_path)

        if args.guide:
            generator.load_color_guide(args.guide)

        generator.normalize(**normalize_options(args))

        if args.verbose:
            info = generator.preview()
            print(f"Layers: {info['layers']}")
            print(f"Bricks: {info['block_count']}")
            print(f"Bounds: {info['bounds']}")

        if generator.block_count == 0:
            print("Error: No bricks left after normalization", file=sys.stderr)
            return 1

        options = display_options(args)

        for fmt in args.format:
            if fmt == "obj":
                output_path = generator.export_obj(
                    output_base.with_suffix(".obj"),
                    layers=args.layers,
                    options=options,
                    y_up=args.y_up
                )
                if args.verbose:
                    print(f"Exported: {output_path}")

            elif fmt == "png":
                paths = generator.export_png(
                    output_base.parent,
                    layers=args.layers,
                    prefix=output_base.name,
                    upscale=args.upscale
                )
                if args.verbose:
                    for path in paths:
                        print(f"Exported: {path}")

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_build_up(args) -> int:
    """Export a build-up animation."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else input_path.parent / "frames"

    start_time = time.time()

    try:
        guide = load_color_guide_csv(args.guide) if args.guide else None
        processor = AnimationProcessor(
            load_grid_csv(input_path),
            color_guide=guide,
            **normalize_options(args)
        )

        outputs = processor.process_build_up(
            output_dir,
            formats=args.format,
            options=display_options(args)
        )

        elapsed = time.time() - start_time
        print(f"Processed {len(outputs)} frames in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    if args.list_colors:
        return list_colors()
    elif args.build_up:
        return process_build_up(args)
    else:
        return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
