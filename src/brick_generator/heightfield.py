"""
Heightfield Meshing with Numba JIT Compilation

Converts an elevation matrix and its color matrix into a triangle mesh:
- One top quad per fine pixel with geometry
- Wall quads wherever a neighbour is lower or missing

Elevation units are divided by `zscale` (brick plate heights -> pixel
units, 0.167 gives the 1.2 height/width ratio of a real brick).

Algorithm Overview:
1. Count: Number of quads needed (top + exposed walls)
2. Emit: Fill preallocated vertex/normal/color arrays in one pass
3. Index: Two triangles per quad (0, 1, 2) and (0, 2, 3)
"""

from typing import List, NamedTuple, Optional, Sequence
import numpy as np
from numba import njit


class MeshData(NamedTuple):
    """Container for mesh geometry data."""
    vertices: np.ndarray     # (N, 3) float32 positions
    normals: np.ndarray      # (N, 3) float32 normals
    colors: np.ndarray       # (N, 4) uint8 RGBA colors
    indices: np.ndarray      # (M,) uint32 triangle indices


def empty_mesh() -> MeshData:
    return MeshData(
        vertices=np.zeros((0, 3), dtype=np.float32),
        normals=np.zeros((0, 3), dtype=np.float32),
        colors=np.zeros((0, 4), dtype=np.uint8),
        indices=np.zeros((0,), dtype=np.uint32)
    )


@njit(cache=True)
def _neighbour_height(
    elevation: np.ndarray,
    i: int, j: int,
    direction: int,
    floor: float
) -> float:
    """
    Height of the neighbouring pixel, or `floor` if it has no geometry.

    Directions: 0 = -X, 1 = +X, 2 = -Y, 3 = +Y.
    """
    nx, ny = elevation.shape
    if direction == 0:
        i -= 1
    elif direction == 1:
        i += 1
    elif direction == 2:
        j -= 1
    else:
        j += 1

    if i < 0 or i >= nx or j < 0 or j >= ny:
        return floor
    h = elevation[i, j]
    if np.isnan(h):
        return floor
    return max(h, floor)


@njit(cache=True)
def _count_quads(elevation: np.ndarray, floor: float) -> int:
    """Count top and wall quads."""
    nx, ny = elevation.shape
    count = 0
    for i in range(nx):
        for j in range(ny):
            h = elevation[i, j]
            if np.isnan(h):
                continue
            count += 1
            for direction in range(4):
                if _neighbour_height(elevation, i, j, direction, floor) < h:
                    count += 1
    return count


@njit(cache=True)
def _write_vertex(
    vertices: np.ndarray,
    normals: np.ndarray,
    colors: np.ndarray,
    v: int,
    x: float, y: float, z: float,
    nx: float, ny: float, nz: float,
    rgb: np.ndarray
):
    vertices[v, 0] = x
    vertices[v, 1] = y
    vertices[v, 2] = z
    normals[v, 0] = nx
    normals[v, 1] = ny
    normals[v, 2] = nz
    for c in range(3):
        colors[v, c] = np.uint8(min(max(rgb[c], 0.0), 1.0) * 255.0 + 0.5)
    colors[v, 3] = 255


@njit(cache=True)
def _emit_quads(
    elevation: np.ndarray,
    color: np.ndarray,
    wall_color: np.ndarray,
    use_wall_color: bool,
    floor: float,
    zscale: float,
    vertices: np.ndarray,
    normals: np.ndarray,
    colors: np.ndarray
):
    """Fill vertex arrays, four vertices per quad."""
    nx, ny = elevation.shape
    v = 0
    for i in range(nx):
        for j in range(ny):
            h = elevation[i, j]
            if np.isnan(h):
                continue
            top = h / zscale
            rgb = color[i, j]

            _write_vertex(vertices, normals, colors, v, i, j, top, 0.0, 0.0, 1.0, rgb)
            _write_vertex(vertices, normals, colors, v + 1, i + 1, j, top, 0.0, 0.0, 1.0, rgb)
            _write_vertex(vertices, normals, colors, v + 2, i + 1, j + 1, top, 0.0, 0.0, 1.0, rgb)
            _write_vertex(vertices, normals, colors, v + 3, i, j + 1, top, 0.0, 0.0, 1.0, rgb)
            v += 4

            side = wall_color if use_wall_color else rgb
            for direction in range(4):
                nh = _neighbour_height(elevation, i, j, direction, floor)
                if nh >= h:
                    continue
                low = nh / zscale

                if direction == 0:  # WEST (-X)
                    _write_vertex(vertices, normals, colors, v, i, j + 1, low, -1.0, 0.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 1, i, j, low, -1.0, 0.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 2, i, j, top, -1.0, 0.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 3, i, j + 1, top, -1.0, 0.0, 0.0, side)
                elif direction == 1:  # EAST (+X)
                    _write_vertex(vertices, normals, colors, v, i + 1, j, low, 1.0, 0.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 1, i + 1, j + 1, low, 1.0, 0.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 2, i + 1, j + 1, top, 1.0, 0.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 3, i + 1, j, top, 1.0, 0.0, 0.0, side)
                elif direction == 2:  # SOUTH (-Y)
                    _write_vertex(vertices, normals, colors, v, i, j, low, 0.0, -1.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 1, i + 1, j, low, 0.0, -1.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 2, i + 1, j, top, 0.0, -1.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 3, i, j, top, 0.0, -1.0, 0.0, side)
                else:  # NORTH (+Y)
                    _write_vertex(vertices, normals, colors, v, i + 1, j + 1, low, 0.0, 1.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 1, i, j + 1, low, 0.0, 1.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 2, i, j + 1, top, 0.0, 1.0, 0.0, side)
                    _write_vertex(vertices, normals, colors, v + 3, i + 1, j + 1, top, 0.0, 1.0, 0.0, side)
                v += 4


def _quad_indices(quad_count: int) -> np.ndarray:
    """Two triangles per quad: (0, 1, 2) and (0, 2, 3)."""
    base = (np.arange(quad_count, dtype=np.uint32) * 4)[:, None]
    pattern = np.array([0, 1, 2, 0, 2, 3], dtype=np.uint32)[None, :]
    return (base + pattern).reshape(-1)


class HeightfieldMesher:
    """
    Heightfield mesh generation for raster layers.

    This class wraps the Numba-accelerated kernels and provides a clean
    interface for turning elevation/color matrices into meshes.
    """

    def __init__(self, zscale: float = 0.167, scale: float = 1.0):
        """
        Initialize the mesher.

        Args:
            zscale: Elevation units per horizontal pixel; heights are divided by it
            scale: Vertex position scale factor (1.0 = 1 unit per fine pixel)
        """
        if zscale <= 0:
            raise ValueError("zscale must be positive")
        self.zscale = zscale
        self.scale = scale

    def mesh(
        self,
        elevation: np.ndarray,
        color: np.ndarray,
        floor: Optional[float] = None,
        wall_color: Optional[Sequence[float]] = None
    ) -> MeshData:
        """
        Generate a mesh from matching elevation and color matrices.

        Args:
            elevation: (nx, ny) heights, NaN = no geometry
            color: (nx, ny, 3) RGB in [0, 1]
            floor: Height walls drop to (default: whole unit below the lowest pixel)
            wall_color: Optional RGB for every wall (solid base look)

        Returns:
            MeshData
        """
        if elevation.ndim != 2:
            raise ValueError("Elevation must have shape (X, Y)")
        if color.shape != elevation.shape + (3,):
            raise ValueError("Color must have shape (X, Y, 3) matching elevation")

        present = ~np.isnan(elevation)
        if not present.any():
            return empty_mesh()

        if floor is None:
            floor = float(np.floor(np.nanmin(elevation)))

        elevation = np.ascontiguousarray(elevation, dtype=np.float64)
        color = np.ascontiguousarray(color, dtype=np.float64)
        use_wall_color = wall_color is not None
        wall = np.asarray(wall_color if use_wall_color else (0.0, 0.0, 0.0), dtype=np.float64)

        quad_count = _count_quads(elevation, float(floor))
        vertices = np.zeros((quad_count * 4, 3), dtype=np.float32)
        normals = np.zeros((quad_count * 4, 3), dtype=np.float32)
        colors = np.zeros((quad_count * 4, 4), dtype=np.uint8)

        _emit_quads(
            elevation, color, wall, use_wall_color, float(floor),
            float(self.zscale), vertices, normals, colors
        )

        return MeshData(
            vertices=vertices * np.float32(self.scale),
            normals=normals,
            colors=colors,
            indices=_quad_indices(quad_count)
        )


def merge_meshes(meshes: Sequence[MeshData]) -> MeshData:
    """
    Concatenate meshes into one, offsetting indices.

    Args:
        meshes: MeshData list

    Returns:
        Combined MeshData
    """
    meshes = [m for m in meshes if len(m.vertices) > 0]
    if not meshes:
        return empty_mesh()

    indices: List[np.ndarray] = []
    offset = 0
    for m in meshes:
        indices.append(m.indices + np.uint32(offset))
        offset += len(m.vertices)

    return MeshData(
        vertices=np.vstack([m.vertices for m in meshes]),
        normals=np.vstack([m.normals for m in meshes]),
        colors=np.vstack([m.colors for m in meshes]),
        indices=np.concatenate(indices).astype(np.uint32)
    )


def mesh_stats(mesh: MeshData) -> dict:
    """Get vertex/triangle counts and bounds of a mesh."""
    if len(mesh.vertices) == 0:
        return {"vertices": 0, "triangles": 0, "bounds": None}
    return {
        "vertices": len(mesh.vertices),
        "triangles": len(mesh.indices) // 3,
        "bounds": (
            tuple(float(v) for v in mesh.vertices.min(axis=0)),
            tuple(float(v) for v in mesh.vertices.max(axis=0)),
        ),
    }
