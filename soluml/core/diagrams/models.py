"""UML class model data structures.

Defines the in-memory representation of one parsed Solidity type
(contract, interface, library, abstract contract) as produced by a
source parser. These are pure data containers with no rendering logic.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Set


class Visibility(Enum):
    """Declared visibility of an attribute or operator."""
    NONE = "none"
    PUBLIC = "public"
    EXTERNAL = "external"
    INTERNAL = "internal"
    PRIVATE = "private"


class ClassStereotype(Enum):
    """UML stereotype of a declared type. NONE is a plain contract."""
    NONE = "none"
    LIBRARY = "library"
    INTERFACE = "interface"
    ABSTRACT = "abstract"


class OperatorStereotype(IntEnum):
    """Operator tag. Ordinal matters: higher values are listed first."""
    NONE = 0
    EVENT = 1
    FALLBACK = 2
    MODIFIER = 3
    ABSTRACT = 4
    PAYABLE = 5


class ReferenceType(Enum):
    """How an associated type is referenced by its owner."""
    STORAGE = "storage"
    MEMORY = "memory"


@dataclass
class Parameter:
    """A call or return parameter. Return parameters are often unnamed."""
    type: str
    name: Optional[str] = None


@dataclass
class Attribute:
    """A state variable, or a field of a struct."""
    name: str
    type: str
    visibility: Visibility = Visibility.NONE


@dataclass
class Operator:
    """A function, modifier or event declared on a type."""
    name: str
    parameters: List[Parameter] = field(default_factory=list)
    return_parameters: List[Parameter] = field(default_factory=list)
    visibility: Visibility = Visibility.NONE
    stereotype: OperatorStereotype = OperatorStereotype.NONE


@dataclass
class Association:
    """A reference from one type to another by plain type name.

    ``realization`` is True for inheritance/implementation links.
    """
    target_class_name: str
    reference_type: ReferenceType = ReferenceType.STORAGE
    realization: bool = False


@dataclass
class ClassEntity:
    """One declared Solidity type and everything drawn inside its node.

    ``id`` must be unique across the entities passed to a single render
    since it becomes the Graphviz node identifier. ``code_path`` is the
    source file the type was declared in and ``imported_paths`` holds the
    code paths that file imports; together they scope association lookup.
    """

    id: str
    name: str
    code_path: str
    stereotype: ClassStereotype = ClassStereotype.NONE
    attributes: List[Attribute] = field(default_factory=list)
    operators: List[Operator] = field(default_factory=list)
    structs: Dict[str, List[Attribute]] = field(default_factory=dict)
    enums: Dict[str, List[str]] = field(default_factory=dict)
    associations: Dict[str, Association] = field(default_factory=dict)
    imported_paths: Set[str] = field(default_factory=set)


@dataclass
class ClassOptions:
    """Per-render toggles controlling what is drawn."""
    hide_attributes: bool = False
    hide_operators: bool = False
    hide_structs: bool = False
    hide_enums: bool = False
    hide_libraries: bool = False
    hide_interfaces: bool = False

    def hides(self, entity: ClassEntity) -> bool:
        """Return True if the entity's stereotype is hidden by these options."""
        if self.hide_libraries and entity.stereotype is ClassStereotype.LIBRARY:
            return True
        if self.hide_interfaces and entity.stereotype is ClassStereotype.INTERFACE:
            return True
        return False


class OutputFormat(Enum):
    """File formats the render pipeline can produce."""
    DOT = "dot"
    SVG = "svg"
    PNG = "png"
    ALL = "all"
