"""Applies update modifiers ($set, $unset, $inc) to stored record documents."""

import copy
from typing import Any, Dict, List, Mapping, Optional

from filehandle.exceptions import InvalidModifierError

SUPPORTED_OPERATORS = ('$set', '$unset', '$inc')
IDENTITY_FIELDS = ('id', 'collection_name')


def _split_path(path: str, aliases: Mapping[str, str]) -> List[str]:
    parts = path.split('.')
    if not all(parts):
        raise InvalidModifierError(f"Invalid field path: '{path}'")
    parts[0] = aliases.get(parts[0], parts[0])
    if parts[0] in IDENTITY_FIELDS:
        raise InvalidModifierError(f"Field '{parts[0]}' cannot be modified")
    return parts


def _parent_of(document: Dict[str, Any], parts: List[str], create: bool):
    node = document
    for part in parts[:-1]:
        child = node.get(part)
        if child is None:
            if not create:
                return None
            child = {}
            node[part] = child
        elif not isinstance(child, dict):
            raise InvalidModifierError(f"Cannot traverse non-object field '{part}'")
        node = child
    return node


def _is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float))


def apply_modifier(
    document: Mapping[str, Any],
    modifier: Mapping[str, Any],
    aliases: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Apply a modifier to a copy of a record document.

    Field paths may be dotted (e.g. 'copies.thumb.size'). A modifier without
    any operator keys replaces the document; identity fields are kept.

    Args:
        document: Stored document (not modified)
        modifier: Mapping of operator to {path: value}, or a replacement document
        aliases: Optional mapping of alternative top-level field names to
            the names used in `document` (e.g. 'chunkCount' -> 'chunk_count')

    Returns:
        Updated document

    Raises:
        InvalidModifierError: If the modifier is malformed
    """
    aliases = aliases or {}

    if not isinstance(modifier, Mapping) or not modifier:
        raise InvalidModifierError("Modifier must be a non-empty mapping")

    operator_keys = [key for key in modifier if key.startswith('$')]

    if not operator_keys:
        replacement = {}
        for key, value in modifier.items():
            key = aliases.get(key, key)
            if key not in IDENTITY_FIELDS:
                replacement[key] = copy.deepcopy(value)
        for key in IDENTITY_FIELDS:
            if key in document:
                replacement[key] = document[key]
        return replacement

    if len(operator_keys) != len(modifier):
        raise InvalidModifierError("Cannot mix update operators with plain fields")

    result = copy.deepcopy(dict(document))

    for operator, assignments in modifier.items():
        if operator not in SUPPORTED_OPERATORS:
            raise InvalidModifierError(f"Unsupported update operator: {operator}")
        if not isinstance(assignments, Mapping):
            raise InvalidModifierError(f"Operand of {operator} must be a mapping")

        for path, value in assignments.items():
            parts = _split_path(path, aliases)

            if operator == '$set':
                parent = _parent_of(result, parts, create=True)
                parent[parts[-1]] = copy.deepcopy(value)

            elif operator == '$unset':
                parent = _parent_of(result, parts, create=False)
                if parent is not None:
                    parent.pop(parts[-1], None)

            elif operator == '$inc':
                if not _is_number(value):
                    raise InvalidModifierError(f"$inc value for '{path}' must be a number")
                parent = _parent_of(result, parts, create=True)
                current = parent.get(parts[-1], 0)
                if not _is_number(current):
                    raise InvalidModifierError(f"Cannot apply $inc to non-numeric field '{path}'")
                parent[parts[-1]] = current + value

    return result
