"""neoenv — bind environment variables onto nested, typed records.

Re-exports public symbols so callers can write::

    from neoenv import load, UInt16
"""

from neoenv.binder import load
from neoenv.coerce import LIST_DELIMITER, coerce, coerce_list, parse_bool, parse_float, parse_int, parse_uint
from neoenv.env import Environment, Lookup, as_lookup
from neoenv.errors import (
    InvalidRootError,
    LoadError,
    MalformedValueError,
    ShapeError,
    UnsupportedKindError,
)
from neoenv.kinds import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Kind,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    Width,
)
from neoenv.logging import LogEntry, Logger, LogLevel
from neoenv.naming import SEPARATOR, build_key, key_paths, lookup_key, normalize_key
from neoenv.shape import TAG_KEY, FieldSpec, Record, Shape, shape_of

__all__ = [
    "LIST_DELIMITER",
    "SEPARATOR",
    "TAG_KEY",
    "Environment",
    "FieldSpec",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "InvalidRootError",
    "Kind",
    "LoadError",
    "LogEntry",
    "LogLevel",
    "Logger",
    "Lookup",
    "MalformedValueError",
    "Record",
    "Shape",
    "ShapeError",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnsupportedKindError",
    "Width",
    "as_lookup",
    "build_key",
    "coerce",
    "coerce_list",
    "key_paths",
    "load",
    "lookup_key",
    "normalize_key",
    "parse_bool",
    "parse_float",
    "parse_int",
    "parse_uint",
    "shape_of",
]
