"""Environment stores — where the binder reads its strings from.

Every process has an environment: a set of ``KEY=VALUE`` string pairs
inherited from its parent.  The binder treats it as an opaque,
read-only lookup from a key to a string (or nothing).

Key properties:
    - **Strings only** — both keys and values are strings; typing the
      values is the binder's job.
    - **Case-sensitive keys** — the binder always asks for the
      upper-cased key, so ``database__host`` is never consulted.
    - **Empty means unset** — a key set to ``""`` is treated exactly
      like a missing key.

``as_lookup`` accepts the process environment (the default), any
mapping, an ``Environment`` or a plain callable, and turns it into a
single ``Lookup`` function.
"""

import os
from collections.abc import Callable, Mapping

Lookup = Callable[[str], str | None]
"""Return the value stored under a key, or None when it is unset."""


class Environment:
    """A read-only snapshot of environment variables.

    Each instance holds its own copy of the variables it was built
    from, so callers can hand the binder a fixed environment without
    touching ``os.environ``.
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        """Create an environment, optionally pre-populated.

        Args:
            initial: Starting variables (copied, not referenced).

        """
        self._vars: dict[str, str] = dict(initial) if initial else {}

    @classmethod
    def from_os(cls) -> "Environment":
        """Return a snapshot of the current process environment."""
        return cls(os.environ)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value for *key*, or *default* if not set."""
        return self._vars.get(key, default)

    def __contains__(self, key: object) -> bool:
        """Return True if *key* is set, even to an empty string."""
        return key in self._vars

    def __len__(self) -> int:
        """Return the number of variables."""
        return len(self._vars)


def as_lookup(source: "Environment | Mapping[str, str] | Lookup | None" = None) -> Lookup:
    """Turn any supported source of variables into a lookup function.

    Args:
        source: ``None`` for the live process environment, an
            ``Environment``, a mapping, or a callable lookup.

    Returns:
        A function from key to value (or None).

    Raises:
        TypeError: If *source* is none of the supported kinds.

    """
    if source is None:
        return os.environ.get
    if isinstance(source, Environment | Mapping):
        return source.get
    if callable(source):
        return source
    msg = f"expected an Environment, mapping or callable lookup, got {type(source).__qualname__}"
    raise TypeError(msg)
