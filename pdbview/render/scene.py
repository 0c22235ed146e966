"""Scene description built from a Structure and a GeometryCache."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from pdbview.config import DEFAULT_BOND_COLOR, DEFAULT_BOND_RADIUS
from pdbview.errors import GeometryError
from pdbview.model.state import Structure
from pdbview.render.cache import GeometryCache, LodGeometry
from pdbview.render.styles import RGBA, ColorMode, RenderStyle, atom_appearance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BondPlacement:
    """Transform that maps the cached unit cylinder onto one bond.

    Attributes
    ----------
    translation
        Bond midpoint.
    rotation
        ``(3, 3)`` rotation taking +y onto the bond direction.
    length
        Bond length, applied as the y-scale.
    """

    translation: np.ndarray
    rotation: np.ndarray
    length: float

    @property
    def scale(self) -> Tuple[float, float, float]:
        return (1.0, self.length, 1.0)

    @property
    def matrix(self) -> np.ndarray:
        """Column-vector ``(4, 4)`` transform ``T @ R @ S``."""
        out = np.eye(4)
        out[:3, :3] = self.rotation @ np.diag(self.scale)
        out[:3, 3] = self.translation
        return out


def bond_placement(start: Sequence[float], end: Sequence[float]) -> BondPlacement:
    """Place a unit cylinder (height 1 along y) between two points.

    Parameters
    ----------
    start, end
        Bond end points.

    Returns
    -------
    BondPlacement
        Midpoint translation, rotation aligning +y with ``end - start``
        and a y-scale equal to the bond length.

    Raises
    ------
    GeometryError
        If the points coincide or are not finite.
    """

    p0 = np.asarray(start, dtype=float)
    p1 = np.asarray(end, dtype=float)
    direction = p1 - p0
    length = float(np.linalg.norm(direction))
    if not math.isfinite(length) or length == 0.0:
        raise GeometryError("degenerate_bond", "bond end points must be distinct and finite")
    u = direction / length
    y_axis = np.array([0.0, 1.0, 0.0])
    cos_angle = float(np.dot(y_axis, u))
    if cos_angle < -1.0 + 1e-9:
        # antiparallel: half turn about x
        rotation = np.diag([1.0, -1.0, -1.0])
    else:
        v = np.cross(y_axis, u)
        vx = np.array(
            [
                [0.0, -v[2], v[1]],
                [v[2], 0.0, -v[0]],
                [-v[1], v[0], 0.0],
            ]
        )
        rotation = np.eye(3) + vx + vx @ vx / (1.0 + cos_angle)
    return BondPlacement(translation=(p0 + p1) / 2.0, rotation=rotation, length=length)


@dataclass(frozen=True)
class AtomNode:
    """One drawn atom: shared sphere geometry at the atom position."""

    atom_id: int
    geometry: LodGeometry
    position: Tuple[float, float, float]

    @property
    def name(self) -> str:
        return f"atom_{self.atom_id}"


@dataclass(frozen=True)
class BondNode:
    """One drawn bond: shared unit cylinder plus its placement."""

    a: int
    b: int
    geometry: LodGeometry
    placement: BondPlacement


@dataclass(frozen=True)
class Scene:
    """Renderable nodes for one structure."""

    atoms: Tuple[AtomNode, ...]
    bonds: Tuple[BondNode, ...]
    center: Tuple[float, float, float]
    style: RenderStyle
    color_mode: ColorMode

    def geometry_keys(self) -> Set[Tuple[str, float, int]]:
        keys = {node.geometry.key for node in self.atoms}
        keys.update(node.geometry.key for node in self.bonds)
        return keys

    def to_dict(self) -> Dict[str, object]:
        """Serialize a compact scene summary.

        Returns
        -------
        dict
            Node counts, the distinct shared geometries and the center.
        """
        geometries: Dict[Tuple[str, float, int], LodGeometry] = {}
        for node in list(self.atoms) + list(self.bonds):
            geometries.setdefault(node.geometry.key, node.geometry)
        return {
            "style": self.style.value,
            "color_mode": self.color_mode.value,
            "atom_nodes": len(self.atoms),
            "bond_nodes": len(self.bonds),
            "center": list(self.center),
            "geometries": [geometry.to_dict() for geometry in geometries.values()],
        }


def build_scene(
    structure: Structure,
    cache: GeometryCache,
    style: RenderStyle = RenderStyle.SPHERES,
    color_mode: ColorMode = ColorMode.ELEMENT,
    uniform_color: Optional[RGBA] = None,
    bond_radius: float = DEFAULT_BOND_RADIUS,
    bond_color: RGBA = DEFAULT_BOND_COLOR,
) -> Scene:
    """Build atom and bond nodes that share cached geometry.

    Parameters
    ----------
    structure
        Parsed structure.
    cache
        Geometry cache supplying spheres and unit cylinders.
    style
        Atom drawing style.
    color_mode
        Atom coloring scheme.
    uniform_color
        Color for ``ColorMode.UNIFORM``.
    bond_radius
        Radius of every bond cylinder.
    bond_color
        Color of every bond cylinder.

    Returns
    -------
    Scene
        One node per atom and per bond.
    """

    style = RenderStyle(style)
    color_mode = ColorMode(color_mode)
    atom_nodes: List[AtomNode] = []
    for atom in structure.atoms:
        radius, color = atom_appearance(atom, style, color_mode, uniform_color)
        atom_nodes.append(
            AtomNode(
                atom_id=atom.id,
                geometry=cache.lod_sphere(radius, color),
                position=atom.position,
            )
        )

    bond_nodes: List[BondNode] = []
    if structure.bonds:
        cylinder = cache.unit_lod_cylinder(bond_radius, bond_color)
        for bond in structure.bonds:
            placement = bond_placement(
                structure.atoms[bond.a].position, structure.atoms[bond.b].position
            )
            bond_nodes.append(
                BondNode(a=bond.a, b=bond.b, geometry=cylinder, placement=placement)
            )

    logger.debug(
        "Scene built: atom_nodes=%d bond_nodes=%d cache=%s",
        len(atom_nodes),
        len(bond_nodes),
        cache.stats(),
    )
    return Scene(
        atoms=tuple(atom_nodes),
        bonds=tuple(bond_nodes),
        center=structure.center,
        style=style,
        color_mode=color_mode,
    )


def prewarm_scene(
    structure: Structure,
    cache: GeometryCache,
    style: RenderStyle = RenderStyle.SPHERES,
    color_mode: ColorMode = ColorMode.ELEMENT,
    bond_radius: float = DEFAULT_BOND_RADIUS,
    bond_color: RGBA = DEFAULT_BOND_COLOR,
) -> int:
    """Fill the cache with every geometry ``build_scene`` would request.

    Safe to run on a worker thread while the cache is in use elsewhere.

    Returns
    -------
    int
        Number of geometry entries in the cache afterwards.
    """

    appearances = {
        atom_appearance(atom, style, color_mode) for atom in structure.atoms
    }
    cylinders = [(bond_radius, bond_color)] if structure.bonds else []
    return cache.prewarm(spheres=sorted(appearances), cylinders=cylinders)
