"""Cross-file association resolution.

Associations declared by the parser name their target by plain type
name only. A name is resolved to an entity when that entity has the same
name and was declared either in the same file as the source or in a file
the source's file imports. This keeps identically-named types from
unrelated files from being wired together.

Resolution order is explicit: candidates are considered in the order
given by :func:`sort_by_code_path` (code path, then caller order), and
the first match wins. Unresolved names are expected (types from files
that were never parsed) and are dropped without error.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .models import Association, ClassEntity

logger = logging.getLogger(__name__)


@dataclass
class ResolvedAssociation:
    """An association whose target was found among the rendered entities."""
    source: ClassEntity
    target: ClassEntity
    association: Association


def sort_by_code_path(entities: Iterable[ClassEntity]) -> List[ClassEntity]:
    """Return entities ordered by source file path; stable for equal paths."""
    return sorted(entities, key=lambda e: e.code_path)


def _in_scope(source: ClassEntity, target: ClassEntity) -> bool:
    return target.code_path == source.code_path or target.code_path in source.imported_paths


def resolve_association(
    source: ClassEntity,
    association: Association,
    candidates: Sequence[ClassEntity],
) -> Optional[ClassEntity]:
    """Find the entity an association points at.

    Args:
        source: Entity declaring the association
        association: The association to resolve
        candidates: Entities in resolution order

    Returns:
        The first in-scope entity with a matching name, or None
    """
    matches = [
        c for c in candidates
        if c.name == association.target_class_name and _in_scope(source, c)
    ]
    if not matches:
        logger.debug(
            "No target for association %s -> %s (code path %s)",
            source.name, association.target_class_name, source.code_path,
        )
        return None

    if len(matches) > 1:
        logger.debug(
            "Association %s -> %s is ambiguous across %s; using %s",
            source.name,
            association.target_class_name,
            ", ".join(m.code_path for m in matches),
            matches[0].code_path,
        )
    return matches[0]


def resolve_associations(entities: Sequence[ClassEntity]) -> List[ResolvedAssociation]:
    """Resolve every declared association of every entity.

    Sources are visited in resolution order and, within a source, in the
    declaration order of its associations.
    """
    ordered = sort_by_code_path(entities)
    resolved: List[ResolvedAssociation] = []

    for source in ordered:
        for association in source.associations.values():
            target = resolve_association(source, association, ordered)
            if target is not None:
                resolved.append(ResolvedAssociation(source, target, association))

    return resolved
