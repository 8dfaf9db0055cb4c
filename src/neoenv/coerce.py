"""Type coercion — turning environment strings into typed field values.

The environment only ever holds strings.  Coercion parses one string
into the declared kind of a field and validates it on the way:

- **Strict syntax** — base-10 digits with an optional sign, decimal or
  exponential floats.  Python's own ``int()`` and ``float()`` are more
  lenient (surrounding whitespace, ``_`` separators), so the token is
  matched against a pattern first.
- **Range checks** — integers are parsed at full precision and then
  checked against the field's bit width, so ``"300"`` into an 8-bit
  unsigned field fails instead of wrapping.
- **Lists** — split on every comma with no trimming; each item is
  coerced on its own and the first bad item fails the whole list.
"""

import math
import re
import struct
from typing import Any

from neoenv.errors import MalformedValueError, UnsupportedKindError
from neoenv.kinds import DEFAULT_BITS, SCALAR_KINDS, Kind

LIST_DELIMITER = ","
_SINGLE_PRECISION_BITS = 32

_TRUE_TOKENS: frozenset[str] = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_TOKENS: frozenset[str] = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_UINT_PATTERN = re.compile(r"[0-9]+")
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_INF_PATTERN = re.compile(r"[+-]?inf(?:inity)?", re.IGNORECASE)


def type_label(kind: Kind, bits: int = DEFAULT_BITS) -> str:
    """Return a readable type name such as ``uint8`` or ``float32``."""
    if kind in (Kind.INT, Kind.UINT, Kind.FLOAT):
        return f"{kind}{bits}"
    return str(kind)


def _invalid(kind: Kind, bits: int, value: str) -> MalformedValueError:
    msg = f"invalid {type_label(kind, bits)} {value!r}"
    return MalformedValueError(msg, value=value, kind=type_label(kind, bits))


def _out_of_range(kind: Kind, bits: int, value: str) -> MalformedValueError:
    msg = f"value {value!r} out of range for {type_label(kind, bits)}"
    return MalformedValueError(msg, value=value, kind=type_label(kind, bits))


def parse_bool(value: str) -> bool:
    """Parse one of ``1 t T TRUE true True`` or ``0 f F FALSE false False``.

    Raises:
        MalformedValueError: For any other token.

    """
    if value in _TRUE_TOKENS:
        return True
    if value in _FALSE_TOKENS:
        return False
    raise _invalid(Kind.BOOL, DEFAULT_BITS, value)


def _parse_integer(value: str, kind: Kind, bits: int) -> int:
    pattern = _UINT_PATTERN if kind is Kind.UINT else _INT_PATTERN
    if not pattern.fullmatch(value):
        raise _invalid(kind, bits, value)
    try:
        number = int(value)
    except ValueError:
        # Only reachable past the interpreter's digit limit, far beyond any width.
        raise _out_of_range(kind, bits, value) from None
    if kind is Kind.UINT:
        low, high = 0, (1 << bits) - 1
    else:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not low <= number <= high:
        raise _out_of_range(kind, bits, value)
    return number


def parse_int(value: str, bits: int = DEFAULT_BITS) -> int:
    """Parse a signed base-10 integer that fits in *bits*.

    Raises:
        MalformedValueError: If the token is malformed or out of range.

    """
    return _parse_integer(value, Kind.INT, bits)


def parse_uint(value: str, bits: int = DEFAULT_BITS) -> int:
    """Parse an unsigned base-10 integer that fits in *bits*.

    A sign of either polarity is rejected.

    Raises:
        MalformedValueError: If the token is malformed or out of range.

    """
    return _parse_integer(value, Kind.UINT, bits)


def parse_float(value: str, bits: int = DEFAULT_BITS) -> float:
    """Parse a decimal or exponential float and narrow it to *bits*.

    ``inf``, ``infinity`` and ``nan`` are accepted in any case.  A
    finite token too large for the width is a range error rather than
    a silent infinity.

    Raises:
        MalformedValueError: If the token is malformed or overflows.

    """
    if not _FLOAT_PATTERN.fullmatch(value):
        raise _invalid(Kind.FLOAT, bits, value)
    number = float(value)
    explicit_inf = _INF_PATTERN.fullmatch(value) is not None
    if math.isinf(number) and not explicit_inf:
        raise _out_of_range(Kind.FLOAT, bits, value)
    if bits == _SINGLE_PRECISION_BITS:
        try:
            (number,) = struct.unpack("<f", struct.pack("<f", number))
        except OverflowError:
            raise _out_of_range(Kind.FLOAT, bits, value) from None
    return number


def coerce(kind: Kind, value: str, bits: int = DEFAULT_BITS) -> Any:
    """Coerce one string into a scalar of *kind*.

    Args:
        kind: The declared scalar kind.
        value: The raw environment string.
        bits: Width for numeric kinds.

    Returns:
        The typed value.

    Raises:
        MalformedValueError: If *value* does not parse as *kind*.
        UnsupportedKindError: If *kind* is not a scalar kind.

    """
    match kind:
        case Kind.STRING:
            return value
        case Kind.BOOL:
            return parse_bool(value)
        case Kind.INT:
            return parse_int(value, bits)
        case Kind.UINT:
            return parse_uint(value, bits)
        case Kind.FLOAT:
            return parse_float(value, bits)
    msg = f"unsupported type {kind}"
    raise UnsupportedKindError(msg)


def coerce_list(element: Kind, value: str, bits: int = DEFAULT_BITS) -> list[Any]:
    """Split *value* on commas and coerce every item to *element*.

    Empty items are kept, so ``"1,,3"`` fails for numeric elements and
    yields ``["1", "", "3"]`` for strings.

    Args:
        element: The scalar kind of each item.
        value: The raw environment string.
        bits: Width for numeric element kinds.

    Returns:
        A new list with one typed item per segment.

    Raises:
        MalformedValueError: On the first item that fails to parse.
        UnsupportedKindError: If *element* is not a scalar kind.

    """
    if element not in SCALAR_KINDS:
        msg = f"unsupported slice type {element}"
        raise UnsupportedKindError(msg)
    return [coerce(element, item, bits) for item in value.split(LIST_DELIMITER)]
