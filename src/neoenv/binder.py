"""The binder — walk a record shape and fill it from the environment.

``load`` is the only entry point.  It visits every field of the shape
depth-first, in declaration order:

1. A **record** field extends the key prefix and recurses.
2. A **leaf** field derives its full key path, asks the lookup for the
   upper-cased key, and coerces the string if one is set.  Unset and
   empty keys leave the field at its default.

Values are collected level by level and each record is constructed
once its fields are known, so a failed load never hands back a
half-filled record: the first error propagates and nothing is
returned.

Example::

    @dataclass
    class Database:
        host: str = "localhost"
        port: UInt16 = 5432

    @dataclass
    class Config:
        database: Database = field(default_factory=Database)
        debug: bool = False

    cfg = load(Config)  # reads DATABASE__HOST, DATABASE__PORT, DEBUG
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, TypeVar, overload

from neoenv.coerce import coerce, coerce_list, type_label
from neoenv.env import Environment, Lookup, as_lookup
from neoenv.errors import InvalidRootError, LoadError, MalformedValueError
from neoenv.kinds import Kind
from neoenv.logging import Logger, LogLevel
from neoenv.naming import build_key, lookup_key, segment_for
from neoenv.shape import FieldSpec, Shape, shape_of

T = TypeVar("T")

_SOURCE = "binder"


class _Walk:
    """State for a single load: the lookup, the log and a bound-key count."""

    def __init__(self, lookup: Lookup, logger: Logger | None) -> None:
        """Start a walk that reads from *lookup* and logs to *logger*."""
        self._lookup = lookup
        self._logger = logger
        self.bound = 0
        self.skipped = 0

    def _log(self, level: LogLevel, message: str, key: str = "") -> None:
        """Record an entry when a logger was supplied."""
        if self._logger is not None:
            self._logger.log(level, message, source=_SOURCE, key=key)

    def record(self, prefix: str, shape: Shape, base: Any = None) -> Any:
        """Build one record of *shape* whose keys live under *prefix*.

        When *base* is given (a record field's declared default), unset
        fields keep its values instead of the shape's own defaults.
        """
        values: dict[str, Any] = {}
        for field in shape.fields:
            path = build_key(prefix, segment_for(field))
            current = getattr(base, field.name, None)
            if field.kind is Kind.RECORD:
                assert field.shape is not None  # noqa: S101
                if current is None and field.has_default:
                    current = field.initial()
                values[field.name] = self.record(path, field.shape, current)
            else:
                values[field.name] = self.leaf(path, field, base)
        return shape.factory(**values)

    def leaf(self, path: str, field: FieldSpec, base: Any = None) -> Any:
        """Return the bound value of a leaf field, or its default."""
        key = lookup_key(path)
        raw = self._lookup(key)
        if not raw:
            self.skipped += 1
            self._log(LogLevel.DEBUG, "not set, keeping default", key)
            if hasattr(base, field.name):
                return getattr(base, field.name)
            return field.initial()

        try:
            if field.kind is Kind.LIST:
                assert field.element is not None  # noqa: S101
                value = coerce_list(field.element, raw, field.bits)
            else:
                value = coerce(field.kind, raw, field.bits)
        except MalformedValueError as e:
            kind = type_label(field.value_kind, field.bits)
            if field.kind is Kind.LIST:
                kind = f"list[{kind}]"
            msg = f"{key}: {e}"
            raise MalformedValueError(msg, key=key, value=raw, kind=kind) from e

        self.bound += 1
        self._log(LogLevel.DEBUG, f"bound as {field.kind}", key)
        return value


def _root_shape(target: Any) -> Shape:
    """Return the shape to walk for *target*, or raise InvalidRootError."""
    if isinstance(target, Shape):
        return target
    if isinstance(target, type) and dataclasses.is_dataclass(target):
        return shape_of(target)
    if isinstance(target, type):
        msg = f"expected a dataclass type or Shape, got {target.__qualname__}"
    else:
        msg = f"expected a dataclass type or Shape, got instance of {type(target).__qualname__}"
    raise InvalidRootError(msg)


@overload
def load(
    target: type[T],
    lookup: Environment | Mapping[str, str] | Lookup | None = None,
    *,
    logger: Logger | None = None,
) -> T: ...


@overload
def load(
    target: Shape,
    lookup: Environment | Mapping[str, str] | Lookup | None = None,
    *,
    logger: Logger | None = None,
) -> Any: ...


def load(
    target: Any,
    lookup: Environment | Mapping[str, str] | Lookup | None = None,
    *,
    logger: Logger | None = None,
) -> Any:
    """Build a record from environment variables.

    Args:
        target: A dataclass type or a hand-written ``Shape``.
        lookup: Where to read variables from; the live process
            environment when omitted.
        logger: Optional bind log to record every key consulted.

    Returns:
        A new record with every set key coerced into its field.

    Raises:
        InvalidRootError: If *target* is not record-shaped.  Raised
            before any key is looked up.
        MalformedValueError: If a set value does not parse as its
            field's kind.
        UnsupportedKindError: If a dataclass field has no supported kind.

    """
    shape = _root_shape(target)
    walk = _Walk(as_lookup(lookup), logger)
    try:
        record = walk.record("", shape)
    except LoadError as e:
        if logger is not None:
            logger.log(LogLevel.ERROR, str(e), source=_SOURCE, key=getattr(e, "key", ""))
        raise
    if logger is not None:
        summary = f"loaded {shape.name}: {walk.bound} bound, {walk.skipped} unset"
        logger.log(LogLevel.INFO, summary, source=_SOURCE)
    return record
