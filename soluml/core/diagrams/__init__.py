"""Class diagram generation for parsed Solidity sources.

Public API:
  DiagramService — renders class entities to dot / SVG / PNG
  generate_class_diagram — entities -> Graphviz dot text
  resolve_associations — cross-file association lookup
"""

from .associations import ResolvedAssociation, resolve_association, resolve_associations
from .models import (
    Association,
    Attribute,
    ClassEntity,
    ClassOptions,
    ClassStereotype,
    Operator,
    OperatorStereotype,
    OutputFormat,
    Parameter,
    ReferenceType,
    Visibility,
)
from .renderer import GraphvizLayoutEngine, LayoutEngine, Rasterizer, RsvgRasterizer
from .service import DiagramService, resolve_output_path
from .structural import SubgraphCounter, generate_class_diagram

__all__ = [
    "DiagramService",
    "resolve_output_path",
    "generate_class_diagram",
    "SubgraphCounter",
    "resolve_association",
    "resolve_associations",
    "ResolvedAssociation",
    "LayoutEngine",
    "Rasterizer",
    "GraphvizLayoutEngine",
    "RsvgRasterizer",
    "Association",
    "Attribute",
    "ClassEntity",
    "ClassOptions",
    "ClassStereotype",
    "Operator",
    "OperatorStereotype",
    "OutputFormat",
    "Parameter",
    "ReferenceType",
    "Visibility",
]
