"""Model package exports."""

from pdbview.model.model import Model
from pdbview.model.state import (
    Annotation,
    AnnotationType,
    Atom,
    Bond,
    SecondaryStructure,
    SecondaryStructureSource,
    Structure,
)

__all__ = [
    "Annotation",
    "AnnotationType",
    "Atom",
    "Bond",
    "Model",
    "SecondaryStructure",
    "SecondaryStructureSource",
    "Structure",
]
