"""Key-path derivation — how a field's location becomes an environment key.

Every leaf field maps to exactly one key, computed from the shape
alone:

1. Each field contributes a **segment**: its explicit key override
   verbatim, or its name converted to ``snake_case``
   (``GracefulShutdown`` → ``graceful_shutdown``).
2. Segments are joined root-to-leaf with ``__``
   (``database`` + ``host`` → ``database__host``).
3. The joined path is upper-cased only when the environment is
   queried (``DATABASE__HOST``).

Paths stay lower-case internally so they read naturally in logs and
tests.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from neoenv.kinds import Kind

if TYPE_CHECKING:
    from neoenv.shape import FieldSpec, Shape

SEPARATOR = "__"

# Order matters: split off capitalised words first, then any remaining
# lower/digit → upper boundary.
_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")


def normalize_key(name: str) -> str:
    """Convert a PascalCase or camelCase name to ``snake_case``.

    Acronym runs stay together: ``HTTPServer`` → ``http_server``,
    ``ListOfUInts`` → ``list_of_u_ints``.  Already-normalized names
    pass through unchanged.

    Args:
        name: A field name.

    Returns:
        The lower-case segment for *name*.

    """
    normalized = _FIRST_CAP.sub(r"\1_\2", name)
    normalized = _ALL_CAP.sub(r"\1_\2", normalized)
    return normalized.lower()


def segment_for(field: FieldSpec) -> str:
    """Return the key segment a field contributes at its level."""
    if field.key:
        return field.key
    return normalize_key(field.name)


def build_key(prefix: str, segment: str) -> str:
    """Join *segment* onto *prefix*; the root has no leading separator."""
    if not prefix:
        return segment
    return f"{prefix}{SEPARATOR}{segment}"


def lookup_key(path: str) -> str:
    """Return the form of *path* used to query the environment."""
    return path.upper()


def key_paths(shape: Shape, prefix: str = "") -> list[str]:
    """List the key path of every leaf field in traversal order.

    Args:
        shape: The record shape to describe.
        prefix: Path of the record *shape* is nested under.

    Returns:
        Lower-case key paths, one per leaf field.

    """
    paths: list[str] = []
    for field in shape.fields:
        path = build_key(prefix, segment_for(field))
        if field.kind is Kind.RECORD and field.shape is not None:
            paths.extend(key_paths(field.shape, path))
        else:
            paths.append(path)
    return paths
