"""Field kinds — the closed set of types the binder knows how to fill.

Environment values are always strings.  Every field in a record shape
declares which typed value that string should become:

- **string** — kept as-is.
- **bool** — one of the canonical true/false spellings.
- **int** / **uint** — base-10 integers, range-checked against the
  field's bit width (8, 16, 32 or 64).
- **float** — decimal or exponential notation, narrowed to 32 or 64 bits.
- **record** — a nested record; contributes a key prefix, never a value.
- **list** — a comma-separated list of one scalar kind.

Dataclass records carry widths through ``typing.Annotated``::

    @dataclass
    class Server:
        port: UInt16 = 0
        ratio: Float32 = 0.0

A plain ``int`` is a signed 64-bit integer and a plain ``float`` is a
64-bit float.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any


class Kind(StrEnum):
    """Enumerate the declared kinds a field can have."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    RECORD = "record"
    LIST = "list"


SCALAR_KINDS: frozenset[Kind] = frozenset({Kind.STRING, Kind.BOOL, Kind.INT, Kind.UINT, Kind.FLOAT})
"""Kinds that coerce directly from one string and may appear in lists."""

INTEGER_WIDTHS: frozenset[int] = frozenset({8, 16, 32, 64})
FLOAT_WIDTHS: frozenset[int] = frozenset({32, 64})
DEFAULT_BITS = 64


@dataclass(frozen=True)
class Width:
    """Annotate a numeric field with its storage width.

    Attributes:
        bits: Width in bits.
        signed: False for unsigned integers; ignored for floats.

    """

    bits: int = DEFAULT_BITS
    signed: bool = True


Int8 = Annotated[int, Width(8)]
Int16 = Annotated[int, Width(16)]
Int32 = Annotated[int, Width(32)]
Int64 = Annotated[int, Width(64)]
UInt8 = Annotated[int, Width(8, signed=False)]
UInt16 = Annotated[int, Width(16, signed=False)]
UInt32 = Annotated[int, Width(32, signed=False)]
UInt64 = Annotated[int, Width(64, signed=False)]
UInt = UInt64
Float32 = Annotated[float, Width(32)]
Float64 = Annotated[float, Width(64)]


def valid_widths(kind: Kind) -> frozenset[int]:
    """Return the bit widths a numeric kind accepts (empty for others)."""
    if kind in (Kind.INT, Kind.UINT):
        return INTEGER_WIDTHS
    if kind is Kind.FLOAT:
        return FLOAT_WIDTHS
    return frozenset()


def zero_value(kind: Kind) -> Any:
    """Return the value a field of *kind* holds when nothing is bound.

    Records have no scalar zero; the binder builds an empty child
    record for them instead, so ``None`` is returned here.
    """
    match kind:
        case Kind.STRING:
            return ""
        case Kind.BOOL:
            return False
        case Kind.INT | Kind.UINT:
            return 0
        case Kind.FLOAT:
            return 0.0
        case Kind.LIST:
            return []
        case Kind.RECORD:
            return None
