#!/usr/bin/env python3
"""
Brick Generator Demo Script

This script demonstrates the full brick pipeline by:
1. Building synthetic grid tables (no input files needed)
2. Normalizing and rasterizing every layer
3. Exporting OBJ meshes and PNG layer previews
4. Printing statistics

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brick_generator import AnimationProcessor, BrickGenerator, DisplayOptions, GridTable
from brick_generator.heightfield import HeightfieldMesher, mesh_stats
from brick_generator.rasterizer import LayerRasterizer


def create_test_table_pyramid(size: int = 6) -> GridTable:
    """
    Create a stepped pyramid, one ring narrower per layer.

    Returns:
        GridTable with one layer per step
    """
    palette = [24, 2, 12, 4, 6, 1]
    layers = {}

    for level in range(size // 2):
        codes = np.zeros((size, size), dtype=np.int64)
        codes[level:size - level, level:size - level] = palette[level % len(palette)]
        layers[level + 1] = codes

    return GridTable.from_layers(layers)


def create_test_table_house() -> GridTable:
    """
    Create a small house: brown walls, a window gap and a red roof.

    Returns:
        GridTable with named layers
    """
    walls = np.array([
        [23, 23, 23, 23, 23],
        [23, 0, 0, 0, 23],
        [23, 23, 23, 23, 23],
    ])
    roof = np.array([
        [0, 4, 4, 4, 0],
        [0, 4, 4, 4, 0],
        [0, 4, 4, 4, 0],
    ])
    chimney = np.array([
        [0, 0, 0, 0, 0],
        [0, 0, 0, 7, 0],
        [0, 0, 0, 0, 0],
    ])
    return GridTable.from_layers({"A": walls, "B": roof, "C": chimney})


def create_test_table_mosaic(size: int = 16) -> GridTable:
    """
    Create a single-layer checkerboard mosaic.

    Returns:
        GridTable with one layer
    """
    yy, xx = np.mgrid[0:size, 0:size]
    codes = np.where((xx + yy) % 2 == 0, 1, 7)
    return GridTable.from_array(codes, layer="base")


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("Brick Generator - Demo")
    print("=" * 60)
    print()

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    # Test tables
    test_tables = [
        ("pyramid", create_test_table_pyramid(6)),
        ("house", create_test_table_house()),
        ("mosaic", create_test_table_mosaic(16)),
    ]

    total_start = time.time()

    for name, table in test_tables:
        print(f"\n--- Processing: {name} ---")
        print(f"Input size: {len(table)} rows x {table.width} columns")

        table_start = time.time()

        generator = BrickGenerator()
        generator.load_table(table)

        norm_start = time.time()
        generator.normalize()
        norm_time = time.time() - norm_start

        print(f"  Normalization: {norm_time*1000:.1f}ms")
        print(f"  Layers: {generator.block_set.layers}")
        print(f"  Brick count: {generator.block_count}")

        print("\n  Rasterizing:")
        for layer in generator.block_set.layers:
            raster_start = time.time()
            raster = generator.rasterize(layer)
            raster_time = time.time() - raster_start
            print(
                f"    Layer {layer}: {raster.shape[0]}x{raster.shape[1]} pixels, "
                f"{int(raster.mask.sum())} with geometry ({raster_time*1000:.1f}ms)"
            )

        # Export to all formats
        print(f"\n  Exporting...")
        base_path = output_dir / name

        export_start = time.time()

        try:
            path = generator.export_obj(
                base_path.with_suffix(".obj"),
                options=DisplayOptions(solid=True)
            )
            print(f"    Saved: {path}")
        except Exception as e:
            print(f"    OBJ export failed: {e}")

        try:
            for path in generator.export_png(output_dir, prefix=name, upscale=2):
                print(f"    Saved: {path}")
        except Exception as e:
            print(f"    PNG export failed: {e}")

        export_time = time.time() - export_start
        table_time = time.time() - table_start

        print(f"    Export time: {export_time*1000:.1f}ms")
        print(f"    Total time: {table_time*1000:.1f}ms")

    # Build-up animation of the pyramid
    print("\n--- Build-up animation: pyramid ---")
    processor = AnimationProcessor(create_test_table_pyramid(6))
    frames = processor.process_build_up(output_dir / "pyramid_frames")
    print(f"  {len(frames)} frames written to {output_dir / 'pyramid_frames'}")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


def benchmark_rasterization():
    """Benchmark rasterization and meshing on growing mosaics."""
    print("\n--- Rasterization Benchmark ---\n")

    sizes = [8, 16, 32, 64]
    rasterizer = LayerRasterizer()
    mesher = HeightfieldMesher()

    for size in sizes:
        generator = BrickGenerator()
        generator.load_table(create_test_table_mosaic(size)).normalize()

        start = time.time()
        raster = rasterizer.rasterize(generator.block_set, 1)
        raster_time = time.time() - start

        start = time.time()
        mesh = mesher.mesh(raster.elevation, raster.color)
        mesh_time = time.time() - start

        stats = mesh_stats(mesh)

        print(f"Mosaic size: {size}x{size} bricks")
        print(f"  Raster: {raster_time*1000:.1f}ms, {raster.shape[0]}x{raster.shape[1]} pixels")
        print(f"  Mesh:   {mesh_time*1000:.1f}ms, {stats['vertices']} verts")
        print()


if __name__ == "__main__":
    run_demo()

    # Uncomment to run benchmark
    # benchmark_rasterization()
