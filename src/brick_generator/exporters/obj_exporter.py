"""
Wavefront OBJ Format Exporter

OBJ is a universal text-based format supported by virtually all 3D software.
While it doesn't natively support vertex colors, we provide:
- Geometry-only export
- Extended format with vertex colors (v x y z r g b), read by Blender,
  MeshLab and most web viewers

Limitations:
- Text format = larger file sizes (a brick is 225 pixels = 900+ vertices)
"""

from pathlib import Path
from typing import List, Union
import numpy as np

from ..heightfield import MeshData


def to_y_up(points: np.ndarray) -> np.ndarray:
    """Rotate Z-up points (x, y, z) to Y-up (x, z, -y)."""
    return np.column_stack([points[:, 0], points[:, 2], -points[:, 1]])


class OBJExporter:
    """
    Export mesh data to Wavefront OBJ format.

    Supports:
    - Extended OBJ with vertex colors (v x y z r g b)
    - Z-up (internal) or Y-up output
    """

    def __init__(
        self,
        scale: float = 1.0,
        include_normals: bool = True,
        include_colors: bool = True,
        y_up: bool = False
    ):
        """
        Initialize the exporter.

        Args:
            scale: Scale factor for vertex positions
            include_normals: Whether to include vertex normals
            include_colors: Whether to append RGB to each vertex line
            y_up: Rotate the Z-up model to Y-up
        """
        self.scale = scale
        self.include_normals = include_normals
        self.include_colors = include_colors
        self.y_up = y_up

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        model_name: str = "brick_model"
    ) -> Path:
        """
        Export mesh to OBJ file.

        Args:
            mesh: MeshData from HeightfieldMesher
            output_path: Output file path (.obj)
            model_name: Name for the model/object

        Returns:
            Path written
        """
        output_path = Path(output_path)

        if len(mesh.vertices) == 0:
            raise ValueError("Cannot export empty mesh")

        vertices = mesh.vertices.astype(np.float64) * self.scale
        normals = mesh.normals.astype(np.float64)
        if self.y_up:
            vertices = to_y_up(vertices)
            normals = to_y_up(normals)

        lines: List[str] = [
            "# Brick Generator OBJ Export",
            f"# Vertices: {len(vertices)}",
            f"# Triangles: {len(mesh.indices) // 3}",
            "",
            f"o {model_name}",
            "",
        ]

        if self.include_colors:
            rgb = mesh.colors[:, :3] / 255.0
            for v, c in zip(vertices, rgb):
                lines.append(
                    f"v {v[0]:.6f} {v[1]:.6f} {v[2]:.6f} {c[0]:.4f} {c[1]:.4f} {c[2]:.4f}"
                )
        else:
            for v in vertices:
                lines.append(f"v {v[0]:.6f} {v[1]:.6f} {v[2]:.6f}")
        lines.append("")

        if self.include_normals:
            unique_normals, normal_indices = np.unique(
                normals, axis=0, return_inverse=True
            )
            normal_indices = normal_indices.reshape(-1)
            for n in unique_normals:
                lines.append(f"vn {n[0]:.6f} {n[1]:.6f} {n[2]:.6f}")
            lines.append("")

        indices = mesh.indices
        for i in range(0, len(indices), 3):
            i0, i1, i2 = indices[i] + 1, indices[i + 1] + 1, indices[i + 2] + 1
            if self.include_normals:
                # Flat shading: the first vertex's normal covers the face
                ni = normal_indices[indices[i]] + 1
                lines.append(f"f {i0}//{ni} {i1}//{ni} {i2}//{ni}")
            else:
                lines.append(f"f {i0} {i1} {i2}")

        with open(output_path, "w") as f:
            f.write("\n".join(lines) + "\n")

        return output_path
