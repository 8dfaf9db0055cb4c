"""Record shapes — the static description the binder walks.

A **shape** is an ordered tuple of field descriptors.  Each
``FieldSpec`` names the field, declares its ``Kind``, and optionally
carries an explicit key override, a numeric width, a nested shape
(records) or an element kind (lists).

Shapes can be written by hand::

    DATABASE = Shape(
        (FieldSpec("host", Kind.STRING), FieldSpec("port", Kind.UINT, bits=16)),
        name="Database",
    )
    CONFIG = Shape((FieldSpec("database", Kind.RECORD, key="db", shape=DATABASE),))

or derived from a dataclass with ``shape_of``, where the key override
lives in field metadata under ``"env"``::

    @dataclass
    class Database:
        host: str = ""
        port: UInt16 = field(default=5432, metadata={"env": "db_port"})

Descriptors validate themselves on construction, so a shape that
exists is a shape the binder can walk: unsupported kinds surface when
the shape is declared rather than when a variable happens to be set.
"""

import copy
import dataclasses
import functools
from collections.abc import Callable
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Annotated, Any, get_args, get_origin, get_type_hints

from neoenv.errors import InvalidRootError, ShapeError, UnsupportedKindError
from neoenv.kinds import DEFAULT_BITS, SCALAR_KINDS, Kind, Width, valid_widths, zero_value

TAG_KEY = "env"

_PLAIN_KINDS: dict[type, Kind] = {
    str: Kind.STRING,
    bool: Kind.BOOL,
    int: Kind.INT,
    float: Kind.FLOAT,
}


class Record(SimpleNamespace):
    """Attribute namespace built for shapes that have no record class."""


class _Unset:
    """Mark a descriptor that declares no default."""

    def __repr__(self) -> str:
        """Return a short marker for reprs of descriptors."""
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class FieldSpec:
    """Describe one field of a record shape.

    Attributes:
        name: Attribute name on the built record.
        kind: Declared kind of the field.
        key: Explicit key segment; derived from *name* when omitted.
        bits: Width for numeric fields and numeric list elements.
        shape: Child shape, required for record fields.
        element: Item kind, required for list fields.
        default: Value kept when the environment is silent.
        default_factory: Builds the kept value; wins over *default*.

    """

    name: str
    kind: Kind
    key: str | None = None
    bits: int = DEFAULT_BITS
    shape: "Shape | None" = None
    element: Kind | None = None
    default: Any = UNSET
    default_factory: Callable[[], Any] | None = None

    def __post_init__(self) -> None:
        """Normalize the kind and reject inconsistent descriptors."""
        object.__setattr__(self, "kind", _as_kind(self.kind, "type"))
        if self.element is not None:
            object.__setattr__(self, "element", _as_kind(self.element, "slice type"))

        if self.kind is Kind.RECORD:
            if self.shape is None:
                msg = f"record field {self.name!r} has no shape"
                raise ShapeError(msg)
        elif self.shape is not None:
            msg = f"{self.kind} field {self.name!r} cannot carry a nested shape"
            raise ShapeError(msg)

        if self.kind is Kind.LIST:
            if self.element is None:
                msg = f"list field {self.name!r} has no element kind"
                raise ShapeError(msg)
            if self.element not in SCALAR_KINDS:
                msg = f"unsupported slice type {self.element}"
                raise UnsupportedKindError(msg)

        widths = valid_widths(self.value_kind)
        if widths and self.bits not in widths:
            msg = f"{self.value_kind} field {self.name!r} cannot be {self.bits} bits wide"
            raise ShapeError(msg)

    @property
    def value_kind(self) -> Kind:
        """Return the scalar kind actually parsed (the element for lists)."""
        if self.kind is Kind.LIST and self.element is not None:
            return self.element
        return self.kind

    @property
    def has_default(self) -> bool:
        """Return True if the field declares its own default."""
        return self.default_factory is not None or self.default is not UNSET

    def initial(self) -> Any:
        """Return the value a field keeps when nothing is bound to it.

        A plain *default* is deep-copied, so loads never share a list
        or a nested record.  Record fields without a default return
        None; the binder builds them from their shape instead.
        """
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not UNSET:
            return copy.deepcopy(self.default)
        return zero_value(self.kind)


@dataclass(frozen=True)
class Shape:
    """An ordered description of a record type.

    Attributes:
        fields: Field descriptors in declaration order.
        name: Display name used in log entries and errors.
        factory: Called with one keyword argument per field to build
            the record.

    """

    fields: tuple[FieldSpec, ...]
    name: str = "Record"
    factory: Callable[..., Any] = Record

    def __post_init__(self) -> None:
        """Freeze the field sequence and reject duplicate names."""
        object.__setattr__(self, "fields", tuple(self.fields))
        seen: set[str] = set()
        for spec in self.fields:
            if spec.name in seen:
                msg = f"shape {self.name!r} declares field {spec.name!r} twice"
                raise ShapeError(msg)
            seen.add(spec.name)

    def __len__(self) -> int:
        """Return the number of fields at this level."""
        return len(self.fields)


def _as_kind(value: Any, label: str) -> Kind:
    if isinstance(value, Kind):
        return value
    try:
        return Kind(value)
    except ValueError:
        msg = f"unsupported {label} {value}"
        raise UnsupportedKindError(msg) from None


def _type_name(hint: Any) -> str:
    if isinstance(hint, type) and get_origin(hint) is None:
        return hint.__qualname__
    return repr(hint).replace("typing.", "")


def _scalar_from_hint(hint: Any) -> tuple[Kind, int] | None:
    """Map a scalar annotation to its kind and width, or None."""
    if get_origin(hint) is Annotated:
        base, *extras = get_args(hint)
        width = next((extra for extra in extras if isinstance(extra, Width)), None)
        found = _scalar_from_hint(base)
        if found is None or width is None:
            return found
        kind, _ = found
        if kind is Kind.INT and not width.signed:
            kind = Kind.UINT
        return kind, width.bits
    if isinstance(hint, type) and hint in _PLAIN_KINDS:
        return _PLAIN_KINDS[hint], DEFAULT_BITS
    return None


def _spec_from_field(owner: type, field: dataclasses.Field, hint: Any) -> FieldSpec:
    options: dict[str, Any] = {"key": field.metadata.get(TAG_KEY)}
    if field.default is not dataclasses.MISSING:
        options["default"] = field.default
    if field.default_factory is not dataclasses.MISSING:
        options["default_factory"] = field.default_factory

    scalar = _scalar_from_hint(hint)
    if scalar is not None:
        kind, bits = scalar
        return FieldSpec(field.name, kind, bits=bits, **options)

    if get_origin(hint) is list:
        args = get_args(hint)
        item = _scalar_from_hint(args[0]) if args else None
        if item is None:
            item_name = _type_name(args[0]) if args else "any"
            msg = f"unsupported slice type {item_name} for {owner.__qualname__}.{field.name}"
            raise UnsupportedKindError(msg)
        element, bits = item
        return FieldSpec(field.name, Kind.LIST, element=element, bits=bits, **options)

    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return FieldSpec(field.name, Kind.RECORD, shape=shape_of(hint), **options)

    msg = f"unsupported type {_type_name(hint)} for {owner.__qualname__}.{field.name}"
    raise UnsupportedKindError(msg)


@functools.cache
def shape_of(cls: type) -> Shape:
    """Derive the shape of a dataclass from its annotations.

    Fields declared with ``init=False`` are skipped; they cannot be
    passed to the constructor the binder calls.

    Args:
        cls: A dataclass type.

    Returns:
        A shape whose factory is *cls* itself.

    Raises:
        InvalidRootError: If *cls* is not a dataclass type.
        UnsupportedKindError: If a field's annotation has no kind.

    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        msg = f"expected a dataclass type, got {_type_name(cls)}"
        raise InvalidRootError(msg)
    hints = get_type_hints(cls, include_extras=True)
    specs = [
        _spec_from_field(cls, field, hints[field.name])
        for field in dataclasses.fields(cls)
        if field.init
    ]
    return Shape(tuple(specs), name=cls.__qualname__, factory=cls)
