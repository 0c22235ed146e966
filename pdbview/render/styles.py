"""Display radii and colors for atoms."""

from __future__ import annotations

import colorsys
from enum import Enum
from typing import Dict, Optional, Tuple
import zlib

from pdbview.config import DEFAULT_UNIFORM_COLOR, ELEMENT_RADIUS_SCALE, UNIFORM_ATOM_RADIUS
from pdbview.model.state import Atom, SecondaryStructure

RGBA = Tuple[float, float, float, float]


class RenderStyle(str, Enum):
    """Atom drawing style; each scales the display radius."""

    SPHERES = "spheres"
    STICKS = "sticks"
    CARTOON = "cartoon"
    SURFACE = "surface"

    @property
    def radius_scale(self) -> float:
        return _STYLE_RADIUS_SCALE[self]


_STYLE_RADIUS_SCALE = {
    RenderStyle.SPHERES: 1.0,
    RenderStyle.STICKS: 0.3,
    RenderStyle.CARTOON: 0.5,
    RenderStyle.SURFACE: 0.8,
}


class ColorMode(str, Enum):
    """How atoms are colored."""

    ELEMENT = "element"
    CHAIN = "chain"
    UNIFORM = "uniform"
    SECONDARY_STRUCTURE = "secondary_structure"


ELEMENT_RADII: Dict[str, float] = {
    "H": 0.3,
    "C": 0.7,
    "N": 0.65,
    "O": 0.6,
    "S": 1.0,
    "P": 1.0,
}
DEFAULT_ELEMENT_RADIUS = 0.8

ELEMENT_COLORS: Dict[str, RGBA] = {
    "H": (1.0, 1.0, 1.0, 1.0),
    "C": (0.5, 0.5, 0.5, 1.0),
    "N": (0.0, 0.0, 1.0, 1.0),
    "O": (1.0, 0.0, 0.0, 1.0),
    "S": (1.0, 1.0, 0.0, 1.0),
    "P": (1.0, 0.5, 0.0, 1.0),
}
DEFAULT_ELEMENT_COLOR: RGBA = (0.5, 0.0, 0.5, 1.0)

SECONDARY_STRUCTURE_COLORS: Dict[SecondaryStructure, RGBA] = {
    SecondaryStructure.HELIX: (1.0, 0.0, 0.0, 1.0),
    SecondaryStructure.SHEET: (1.0, 1.0, 0.0, 1.0),
    SecondaryStructure.COIL: (0.5, 0.5, 0.5, 1.0),
    SecondaryStructure.UNASSIGNED: (2.0 / 3.0, 2.0 / 3.0, 2.0 / 3.0, 1.0),
}


def element_radius(element: str) -> float:
    return ELEMENT_RADII.get((element or "").upper(), DEFAULT_ELEMENT_RADIUS)


def element_color(element: str) -> RGBA:
    return ELEMENT_COLORS.get((element or "").upper(), DEFAULT_ELEMENT_COLOR)


def chain_color(chain: str) -> RGBA:
    """Return a stable color for a chain identifier.

    The hue comes from a CRC of the identifier, so the same chain gets
    the same color across runs and processes.
    """

    hue = (zlib.crc32(chain.encode("utf-8")) % 10) / 10.0
    r, g, b = colorsys.hsv_to_rgb(hue, 0.7, 0.8)
    return (r, g, b, 1.0)


def atom_appearance(
    atom: Atom,
    style: RenderStyle = RenderStyle.SPHERES,
    color_mode: ColorMode = ColorMode.ELEMENT,
    uniform_color: Optional[RGBA] = None,
) -> Tuple[float, RGBA]:
    """Return the sphere radius and color used to draw an atom.

    Parameters
    ----------
    atom
        Atom to draw.
    style
        Drawing style; scales the radius.
    color_mode
        Coloring scheme. Element coloring also sizes atoms by element;
        the other modes use a uniform radius.
    uniform_color
        Color for ``ColorMode.UNIFORM``.

    Returns
    -------
    tuple
        ``(radius, rgba)``.
    """

    style = RenderStyle(style)
    color_mode = ColorMode(color_mode)
    if color_mode is ColorMode.ELEMENT:
        radius = element_radius(atom.element) * ELEMENT_RADIUS_SCALE
        color = element_color(atom.element)
    elif color_mode is ColorMode.CHAIN:
        radius = UNIFORM_ATOM_RADIUS
        color = chain_color(atom.chain)
    elif color_mode is ColorMode.UNIFORM:
        radius = UNIFORM_ATOM_RADIUS
        color = tuple(uniform_color or DEFAULT_UNIFORM_COLOR)
    else:
        radius = UNIFORM_ATOM_RADIUS
        color = SECONDARY_STRUCTURE_COLORS[atom.secondary_structure]
    return radius * style.radius_scale, color
