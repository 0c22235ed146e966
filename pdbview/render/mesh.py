"""Triangle mesh tessellation for atom spheres and bond cylinders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class Mesh:
    """Read-only indexed triangle mesh.

    Attributes
    ----------
    vertices
        ``(n, 3)`` float32 positions.
    normals
        ``(n, 3)`` float32 unit normals.
    faces
        ``(m, 3)`` int32 vertex indices, counter-clockwise from outside.
    """

    vertices: np.ndarray
    normals: np.ndarray
    faces: np.ndarray

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.faces.shape[0])


def _frozen(array: np.ndarray, dtype) -> np.ndarray:
    out = np.ascontiguousarray(array, dtype=dtype)
    out.setflags(write=False)
    return out


def _grid_faces(rows: int, cols: int, offset: int = 0) -> Tuple[np.ndarray, np.ndarray]:
    # quads between consecutive vertex rows of (cols + 1) vertices each
    r, c = np.meshgrid(np.arange(rows), np.arange(cols), indexing="ij")
    a = (r * (cols + 1) + c).ravel() + offset
    b = a + cols + 1
    first = np.stack([a, b, a + 1], axis=1)
    second = np.stack([a + 1, b, b + 1], axis=1)
    return first, second


def uv_sphere(radius: float, segments: int) -> Mesh:
    """Tessellate a sphere centred at the origin.

    Parameters
    ----------
    radius
        Sphere radius.
    segments
        Number of longitudinal segments; latitude uses half as many.

    Returns
    -------
    Mesh
        Sphere mesh with ``segments * (segments // 2 * 2 - 2)`` triangles.
    """

    sectors = max(int(segments), 3)
    rings = max(sectors // 2, 2)
    phi = np.linspace(0.0, np.pi, rings + 1)
    theta = np.linspace(0.0, 2.0 * np.pi, sectors + 1)
    phi_grid, theta_grid = np.meshgrid(phi, theta, indexing="ij")
    normals = np.stack(
        [
            np.sin(phi_grid) * np.cos(theta_grid),
            np.cos(phi_grid),
            np.sin(phi_grid) * np.sin(theta_grid),
        ],
        axis=-1,
    ).reshape(-1, 3)
    vertices = normals * float(radius)

    first, second = _grid_faces(rings, sectors)
    ring_index = np.repeat(np.arange(rings), sectors)
    # drop the degenerate triangles that touch a pole twice; rows run top to
    # bottom, so flip the winding to face outward
    faces = np.concatenate(
        [first[ring_index != 0], second[ring_index != rings - 1]], axis=0
    )[:, ::-1]
    return Mesh(
        vertices=_frozen(vertices, np.float32),
        normals=_frozen(normals, np.float32),
        faces=_frozen(faces, np.int32),
    )


def capped_cylinder(radius: float, height: float, radial_segments: int) -> Mesh:
    """Tessellate a capped cylinder along +y, centred at the origin.

    Parameters
    ----------
    radius
        Cylinder radius.
    height
        Cylinder height; bonds use 1.0 and scale along y at placement.
    radial_segments
        Number of segments around the axis.

    Returns
    -------
    Mesh
        Cylinder mesh with ``4 * radial_segments`` triangles.
    """

    sectors = max(int(radial_segments), 3)
    half = float(height) / 2.0
    theta = np.linspace(0.0, 2.0 * np.pi, sectors + 1)
    ring = np.stack([np.cos(theta), np.zeros_like(theta), np.sin(theta)], axis=1)

    side_normals = np.concatenate([ring, ring], axis=0)
    side_vertices = side_normals * float(radius)
    side_vertices[: sectors + 1, 1] = -half
    side_vertices[sectors + 1 :, 1] = half
    first, second = _grid_faces(1, sectors)
    side_faces = np.concatenate([first, second], axis=0)

    vertices = [side_vertices]
    normals = [side_normals]
    faces = [side_faces]
    offset = side_vertices.shape[0]
    for y, sign in ((-half, -1.0), (half, 1.0)):
        cap = ring * float(radius)
        cap[:, 1] = y
        center = np.array([[0.0, y, 0.0]])
        cap_vertices = np.concatenate([center, cap], axis=0)
        cap_normals = np.tile([0.0, sign, 0.0], (sectors + 2, 1))
        idx = np.arange(sectors)
        if sign > 0:
            tris = np.stack([np.zeros(sectors, dtype=int), idx + 2, idx + 1], axis=1)
        else:
            tris = np.stack([np.zeros(sectors, dtype=int), idx + 1, idx + 2], axis=1)
        vertices.append(cap_vertices)
        normals.append(cap_normals)
        faces.append(tris + offset)
        offset += cap_vertices.shape[0]

    return Mesh(
        vertices=_frozen(np.concatenate(vertices, axis=0), np.float32),
        normals=_frozen(np.concatenate(normals, axis=0), np.float32),
        faces=_frozen(np.concatenate(faces, axis=0), np.int32),
    )
