"""Deterministic Graphviz generator for Solidity class diagrams.

Takes parsed class entities and produces dot syntax: one record-shaped
node per entity, satellite nodes for the structs and enums it declares,
and edges for every association that resolves to another entity.
No layout happens here; the output is text for the layout engine.
"""

import logging
import posixpath
from typing import Dict, List, Optional, Sequence

from .associations import ResolvedAssociation, resolve_associations, sort_by_code_path
from .models import (
    Attribute,
    ClassEntity,
    ClassOptions,
    ClassStereotype,
    Operator,
    OperatorStereotype,
    Parameter,
    ReferenceType,
    Visibility,
)

logger = logging.getLogger(__name__)

# Global defaults: arrows point upwards so base contracts sit on top.
_GRAPH_HEADER = """digraph UmlClassDiagram {
rankdir=BT
color=black
arrowhead=open
node [shape=record, style=filled, fillcolor=gray95]""".strip()

_CLASS_GLYPHS = {
    ClassStereotype.ABSTRACT: "𝐀𝐛𝐬𝐭𝐫𝐚𝐜𝐭",
    ClassStereotype.INTERFACE: "𝐈𝐧𝐭𝐞𝐫𝐟𝐚𝐜𝐞",
    ClassStereotype.LIBRARY: "𝐋𝐢𝐛𝐫𝐚𝐫𝐲",
}

_OPERATOR_GLYPHS = {
    OperatorStereotype.EVENT: "𝙚𝙫𝙚𝙣𝙩",
    OperatorStereotype.FALLBACK: "𝙛𝙖𝙡𝙡𝙗𝙖𝙘𝙠",
    OperatorStereotype.MODIFIER: "𝙢𝙤𝙙𝙞𝙛𝙞𝙚𝙧",
    OperatorStereotype.ABSTRACT: "𝙖𝙗𝙨𝙩𝙧𝙖𝙘𝙩",
    OperatorStereotype.PAYABLE: "𝙥𝙖𝙮𝙖𝙗𝙡𝙚",
}

# Visibility tiers in display order. Anything not listed is Public.
_TIERS = [
    ("Private", Visibility.PRIVATE),
    ("Internal", Visibility.INTERNAL),
    ("External", Visibility.EXTERNAL),
    ("Public", Visibility.PUBLIC),
]

_RECORD_SPECIALS = '{}|<>"'

_INDENT_ATTRIBUTE = "\\ \\ \\ "
_INDENT_OPERATOR = "\\ \\ \\ \\ "


class SubgraphCounter:
    """Hands out unique subgraph names for one render.

    Names starting with ``cluster_`` make Graphviz draw the folder as a
    box; ``graph_`` subgraphs only group nodes invisibly.
    """

    def __init__(self, cluster_folders: bool = False):
        self._prefix = "cluster" if cluster_folders else "graph"
        self._count = 0

    def next_name(self) -> str:
        name = f"{self._prefix}_{self._count}"
        self._count += 1
        return name


def _escape(text: str) -> str:
    """Backslash-escape characters that have meaning inside a record label."""
    for ch in _RECORD_SPECIALS:
        text = text.replace(ch, "\\" + ch)
    return text


def _quote(node_id: str) -> str:
    return '"' + node_id.replace('"', '\\"') + '"'


def _code_folder(code_path: str) -> str:
    return posixpath.dirname(code_path) or "."


def generate_class_diagram(
    entities: Sequence[ClassEntity],
    cluster_folders: bool = False,
    options: Optional[ClassOptions] = None,
    counter: Optional[SubgraphCounter] = None,
) -> str:
    """Generate a Graphviz class diagram from parsed class entities.

    Args:
        entities: Entities from one or more source files. Not modified.
        cluster_folders: Draw each source folder as an enclosing box
        options: What to hide. Defaults to showing everything.
        counter: Subgraph name counter. A fresh one is created per call
                 unless the caller supplies its own.

    Returns:
        Dot source text.
    """
    options = options or ClassOptions()
    counter = counter or SubgraphCounter(cluster_folders)

    lines = [_GRAPH_HEADER]

    current_folder: Optional[str] = None
    for entity in sort_by_code_path(entities):
        folder = _code_folder(entity.code_path)
        if folder != current_folder:
            if current_folder is not None:
                lines.append("}")
            lines.append(f"subgraph {counter.next_name()} {{")
            lines.append(f'label="{_escape(folder)}"')
            current_folder = folder

        rendered = dot_class(entity, options)
        if rendered:
            lines.append(rendered)

    if current_folder is not None:
        lines.append("}")

    edges = dot_associations(resolve_associations(entities), options)
    if edges:
        lines.append(edges)

    lines.append("}")

    dot = "\n".join(lines)
    logger.debug("Generated dot for %d classes (%d chars)", len(entities), len(dot))
    return dot


def dot_class(entity: ClassEntity, options: Optional[ClassOptions] = None) -> str:
    """Render one entity node plus its struct and enum satellites.

    Returns an empty string when the entity's stereotype is hidden.
    """
    options = options or ClassOptions()
    if options.hides(entity):
        return ""

    label = "{" + _class_title(entity)
    if not options.hide_attributes:
        label += "| " + _attribute_tiers(entity.attributes)
    if not options.hide_operators:
        label += "| " + _operator_tiers(entity, entity.operators)
    label += "}"

    lines = [f'{_quote(entity.id)} [label="{label}"]']

    if not options.hide_structs:
        lines.extend(_dot_structs(entity))
    if not options.hide_enums:
        lines.extend(_dot_enums(entity))

    return "\n".join(lines)


def _class_title(entity: ClassEntity) -> str:
    glyph = _CLASS_GLYPHS.get(entity.stereotype)
    name = _escape(entity.name)
    # Plain contracts are just the name
    if glyph is None:
        return name
    return f"{glyph} {name}"


def _tier_of(visibility: Optional[Visibility]) -> str:
    for tier, vis in _TIERS:
        if visibility is vis:
            return tier
    return "Public"


def _group_by_tier(members: list) -> Dict[str, list]:
    groups: Dict[str, list] = {tier: [] for tier, _ in _TIERS}
    for member in members:
        groups[_tier_of(member.visibility)].append(member)
    return groups


def _attribute_tiers(attributes: List[Attribute]) -> str:
    out = ""
    for tier, members in _group_by_tier(attributes).items():
        if not members:
            continue
        out += tier + ":\\l"
        for attribute in members:
            out += f"{_INDENT_ATTRIBUTE}{_escape(attribute.name)}: {_escape(attribute.type)}\\l"
    return out


def _operator_tiers(entity: ClassEntity, operators: List[Operator]) -> str:
    out = ""
    for tier, members in _group_by_tier(operators).items():
        if not members:
            continue
        out += tier + ":\\l"
        # sorted() is stable, so equal stereotypes keep declaration order
        for operator in sorted(members, key=lambda o: o.stereotype, reverse=True):
            out += _INDENT_OPERATOR + _operator_line(entity, operator) + "\\l"
    return out


def _operator_line(entity: ClassEntity, operator: Operator) -> str:
    line = ""
    glyph = _operator_glyph(entity, operator.stereotype)
    if glyph:
        line += glyph + " "

    line += _escape(operator.name)
    line += _parameters(operator.parameters)

    if operator.return_parameters:
        line += ": " + _parameters(operator.return_parameters, returns=True)
    return line


def _operator_glyph(entity: ClassEntity, stereotype: OperatorStereotype) -> str:
    # Abstract functions are only flagged inside abstract contracts;
    # in an interface every function is abstract.
    if stereotype is OperatorStereotype.ABSTRACT and entity.stereotype is not ClassStereotype.ABSTRACT:
        return ""
    return _OPERATOR_GLYPHS.get(stereotype, "")


def _parameters(parameters: List[Parameter], returns: bool = False) -> str:
    """Format a parameter list.

    A single unnamed parameter is shown as its bare type, parenthesized
    in call position.
    """
    if len(parameters) == 1 and not parameters[0].name:
        type_ = _escape(parameters[0].type)
        return type_ if returns else f"({type_})"

    parts = []
    for parameter in parameters:
        if parameter.name:
            parts.append(f"{_escape(parameter.name)}: {_escape(parameter.type)}")
        else:
            parts.append(_escape(parameter.type))
    return "(" + ", ".join(parts) + ")"


def _dot_structs(entity: ClassEntity) -> List[str]:
    lines = []
    for i, (struct_name, fields) in enumerate(entity.structs.items()):
        struct_id = f"{entity.id}struct{i}"
        body = "".join(f"{_escape(f.name)}: {_escape(f.type)}\\l" for f in fields)
        lines.append(
            f'{_quote(struct_id)} [label="{{\\<\\<struct\\>\\>\\n{_escape(struct_name)}|{body}}}"]'
        )
        lines.append(f"{_quote(struct_id)} -> {_quote(entity.id)} [arrowhead=diamond, weight=3]")
    return lines


def _dot_enums(entity: ClassEntity) -> List[str]:
    lines = []
    for i, (enum_name, values) in enumerate(entity.enums.items()):
        enum_id = f"{entity.id}enum{i}"
        body = "".join(f"{_escape(v)}\\l" for v in values)
        lines.append(
            f'{_quote(enum_id)} [label="{{\\<\\<enum\\>\\>\\n{_escape(enum_name)}|{body}}}"]'
        )
        lines.append(f"{_quote(enum_id)} -> {_quote(entity.id)} [arrowhead=diamond, weight=3]")
    return lines


def dot_associations(
    resolved: Sequence[ResolvedAssociation],
    options: Optional[ClassOptions] = None,
) -> str:
    """Render association edges, skipping edges touching hidden stereotypes."""
    options = options or ClassOptions()
    lines = []

    for link in resolved:
        if options.hides(link.target) or options.hides(link.source):
            continue
        lines.append(
            f"{_quote(link.source.id)} -> {_quote(link.target.id)} [{_edge_attributes(link)}]"
        )

    return "\n".join(lines)


def _edge_attributes(link: ResolvedAssociation) -> str:
    attrs = []
    target = link.target
    association = link.association

    if association.reference_type is ReferenceType.MEMORY or (
        association.realization and target.stereotype is ClassStereotype.INTERFACE
    ):
        attrs.append("style=dashed")

    if association.realization:
        attrs.append("arrowhead=empty")
        attrs.append("arrowsize=3")
        # Inheritance from plain contracts pulls hardest to keep hierarchies aligned
        attrs.append("weight=4" if target.stereotype is ClassStereotype.NONE else "weight=3")

    return ", ".join(attrs)
