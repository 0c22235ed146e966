"""Shared geometry and material descriptors for the renderer.

A ``GeometryCache`` memoizes materials by quantized color and
multi-resolution geometry by ``(shape kind, size, quantized color)``.
Entries live until ``clear`` is called. All maps are guarded by one
re-entrant lock, so lookups may come from a background pre-warm pass as
well as the render thread; the same key always yields the same object.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import threading
from typing import Dict, Iterable, Optional, Sequence, Tuple

from pdbview.config import (
    CYLINDER_LOD_LEVELS,
    MATERIAL_LIGHTING_MODEL,
    MATERIAL_SHININESS,
    MATERIAL_SPECULAR,
    SIZE_KEY_DIGITS,
    SPHERE_LOD_LEVELS,
    UNIT_CYLINDER_HEIGHT,
)
from pdbview.errors import GeometryError
from pdbview.render.mesh import Mesh, capped_cylinder, uv_sphere

logger = logging.getLogger(__name__)

SPHERE = "sphere"
UNIT_CYLINDER = "unit_cylinder"

Color = Sequence[float]
GeometryKey = Tuple[str, float, int]


def quantize_color(color: Color) -> int:
    """Pack an RGB(A) color into a 32-bit ``0xRRGGBBAA`` key.

    Parameters
    ----------
    color
        Three or four channels in ``[0, 1]``; out-of-range values are
        clamped and a missing alpha is taken as 1.0.

    Returns
    -------
    int
        Packed key. Colors that round to the same 8-bit channels share it.

    Raises
    ------
    GeometryError
        If the color has the wrong number of channels or a non-finite one.
    """

    channels = [float(value) for value in color]
    if len(channels) == 3:
        channels.append(1.0)
    if len(channels) != 4:
        raise GeometryError("invalid_color", "color must have 3 or 4 channels", list(color))
    packed = 0
    for value in channels:
        if not math.isfinite(value):
            raise GeometryError("invalid_color", "color channels must be finite", channels)
        byte = int(round(min(1.0, max(0.0, value)) * 255.0))
        packed = (packed << 8) | byte
    return packed


def unpack_color(key: int) -> Tuple[float, float, float, float]:
    """Return the RGBA channels encoded in a quantized color key."""

    return tuple(((key >> shift) & 0xFF) / 255.0 for shift in (24, 16, 8, 0))


@dataclass(frozen=True)
class Material:
    """Shading parameters shared by every mesh of one color.

    Attributes
    ----------
    diffuse
        RGBA diffuse color, restored from the quantized key.
    specular
        RGBA specular highlight color.
    lighting_model
        Shading model name.
    shininess
        Specular exponent in ``[0, 1]``.
    color_key
        Quantized color this material was built for.
    """

    diffuse: Tuple[float, float, float, float]
    specular: Tuple[float, float, float, float]
    lighting_model: str
    shininess: float
    color_key: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "diffuse": list(self.diffuse),
            "specular": list(self.specular),
            "lighting_model": self.lighting_model,
            "shininess": self.shininess,
            "color_key": self.color_key,
        }


@dataclass(frozen=True)
class LodLevel:
    """One tessellation density and the screen size at which it applies."""

    mesh: Mesh
    segments: int
    screen_space_radius: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "segments": self.segments,
            "screen_space_radius": self.screen_space_radius,
            "vertex_count": self.mesh.vertex_count,
            "triangle_count": self.mesh.triangle_count,
        }


@dataclass(frozen=True)
class LodGeometry:
    """Multi-resolution geometry sharing one material.

    Attributes
    ----------
    kind
        ``"sphere"`` or ``"unit_cylinder"``.
    size
        Sphere radius or cylinder radius (cylinders are 1 unit high).
    color_key
        Quantized color.
    levels
        Detail levels ordered from finest to coarsest.
    material
        Material shared by every level.
    """

    kind: str
    size: float
    color_key: int
    levels: Tuple[LodLevel, ...]
    material: Material

    @property
    def key(self) -> GeometryKey:
        return (self.kind, self.size, self.color_key)

    def level_for(self, screen_space_radius: float) -> LodLevel:
        """Return the finest level whose threshold the projected size reaches."""

        for level in self.levels:
            if screen_space_radius >= level.screen_space_radius:
                return level
        return self.levels[-1]

    def to_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind,
            "size": self.size,
            "color_key": self.color_key,
            "levels": [level.to_dict() for level in self.levels],
            "material": self.material.to_dict(),
        }


def _size_key(size: float) -> float:
    value = float(size)
    if not math.isfinite(value) or value <= 0.0:
        raise GeometryError("invalid_size", "geometry size must be finite and positive", size)
    return round(value, SIZE_KEY_DIGITS)


class GeometryCache:
    """Process-lifetime memo of materials and LOD geometry.

    Parameters
    ----------
    sphere_levels
        ``(segments, screen-space threshold)`` pairs for spheres, finest first.
    cylinder_levels
        ``(radial segments, screen-space threshold)`` pairs for unit cylinders.
    """

    def __init__(
        self,
        sphere_levels: Sequence[Tuple[int, float]] = SPHERE_LOD_LEVELS,
        cylinder_levels: Sequence[Tuple[int, float]] = CYLINDER_LOD_LEVELS,
    ) -> None:
        self._sphere_levels = tuple(sphere_levels)
        self._cylinder_levels = tuple(cylinder_levels)
        self._lock = threading.RLock()
        self._materials: Dict[int, Material] = {}
        self._geometry: Dict[GeometryKey, LodGeometry] = {}

    def material(self, color: Color) -> Material:
        """Return the shared material for a color.

        Parameters
        ----------
        color
            RGB or RGBA color in ``[0, 1]``.

        Returns
        -------
        Material
            Existing material for the quantized color, or a newly stored one.
        """

        key = quantize_color(color)
        with self._lock:
            material = self._materials.get(key)
            if material is None:
                material = Material(
                    diffuse=unpack_color(key),
                    specular=tuple(MATERIAL_SPECULAR),
                    lighting_model=MATERIAL_LIGHTING_MODEL,
                    shininess=MATERIAL_SHININESS,
                    color_key=key,
                )
                self._materials[key] = material
            return material

    def lod_sphere(self, radius: float, color: Color) -> LodGeometry:
        """Return shared sphere geometry for a radius and color.

        Parameters
        ----------
        radius
            Sphere radius.
        color
            RGB or RGBA color.

        Returns
        -------
        LodGeometry
            Three-level sphere geometry.

        Raises
        ------
        GeometryError
            If the radius is not finite and positive.
        """

        size = _size_key(radius)
        return self._get_or_build(
            SPHERE,
            size,
            color,
            self._sphere_levels,
            lambda segments: uv_sphere(size, segments),
        )

    def unit_lod_cylinder(self, radius: float, color: Color) -> LodGeometry:
        """Return shared unit-height cylinder geometry for a radius and color.

        Bond length is applied as a y-scale when the cylinder is placed,
        so every bond of one radius and color reuses the same entry.

        Parameters
        ----------
        radius
            Cylinder radius.
        color
            RGB or RGBA color.

        Returns
        -------
        LodGeometry
            Three-level cylinder geometry, 1 unit high along y.

        Raises
        ------
        GeometryError
            If the radius is not finite and positive.
        """

        size = _size_key(radius)
        return self._get_or_build(
            UNIT_CYLINDER,
            size,
            color,
            self._cylinder_levels,
            lambda segments: capped_cylinder(size, UNIT_CYLINDER_HEIGHT, segments),
        )

    def _get_or_build(self, kind, size, color, level_specs, tessellate) -> LodGeometry:
        with self._lock:
            material = self.material(color)
            key = (kind, size, material.color_key)
            geometry = self._geometry.get(key)
            if geometry is not None:
                return geometry
            levels = tuple(
                LodLevel(
                    mesh=tessellate(segments),
                    segments=int(segments),
                    screen_space_radius=float(threshold),
                )
                for segments, threshold in level_specs
            )
            geometry = LodGeometry(
                kind=kind,
                size=size,
                color_key=material.color_key,
                levels=levels,
                material=material,
            )
            self._geometry[key] = geometry
            logger.debug("Built %s geometry size=%s color=%08x", kind, size, key[2])
            return geometry

    def get(self, kind: str, size: float, color: Color) -> Optional[LodGeometry]:
        """Return a cached entry without building it."""

        key = (kind, _size_key(size), quantize_color(color))
        with self._lock:
            return self._geometry.get(key)

    def prewarm(
        self,
        spheres: Iterable[Tuple[float, Color]] = (),
        cylinders: Iterable[Tuple[float, Color]] = (),
    ) -> int:
        """Build entries ahead of rendering.

        Parameters
        ----------
        spheres
            ``(radius, color)`` pairs for sphere entries.
        cylinders
            ``(radius, color)`` pairs for unit-cylinder entries.

        Returns
        -------
        int
            Number of geometry entries in the cache afterwards.
        """

        for radius, color in spheres:
            self.lod_sphere(radius, color)
        for radius, color in cylinders:
            self.unit_lod_cylinder(radius, color)
        return self.stats()["geometry"]

    def clear(self) -> None:
        """Drop every cached material and geometry entry."""

        with self._lock:
            count = len(self._geometry)
            self._materials.clear()
            self._geometry.clear()
        logger.debug("Geometry cache cleared (%d geometry entries)", count)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"materials": len(self._materials), "geometry": len(self._geometry)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._geometry)
