"""Exceptions raised while binding the environment onto a record.

Every failure is fatal to a ``load`` call.  The hierarchy lets callers
catch everything with ``LoadError`` or pick out a single failure kind:

- ``InvalidRootError`` — the target is not record-shaped.
- ``MalformedValueError`` — a present value does not parse as its
  declared kind (including numbers outside the field's range).
- ``UnsupportedKindError`` — a field declares a kind the coercer
  cannot produce.
- ``ShapeError`` — a field descriptor is internally inconsistent.
"""


class LoadError(Exception):
    """Base class for every binding failure."""


class InvalidRootError(LoadError):
    """Raise when the load target is not a record type."""


class ShapeError(LoadError):
    """Raise when a field descriptor is inconsistent."""


class UnsupportedKindError(LoadError, TypeError):
    """Raise when a field's kind cannot be coerced from a string."""


class MalformedValueError(LoadError, ValueError):
    """Raise when an environment value cannot be coerced.

    Attributes:
        key: The upper-cased lookup key, or ``""`` for a bare coercion.
        value: The raw string that failed to parse.
        kind: The declared kind the value was coerced into.

    """

    def __init__(self, message: str, *, key: str = "", value: str = "", kind: str = "") -> None:
        """Create the error with its lookup context.

        Args:
            message: Human-readable description of the failure.
            key: The lookup key the value came from.
            value: The raw value.
            kind: The declared kind.

        """
        super().__init__(message)
        self.key = key
        self.value = value
        self.kind = kind
