"""Error taxonomy for the snipping engine.

Every failure the engine can report derives from :class:`SnipError`, so the
CLI layer can catch one type and map it to an exit code.  The engine itself
never prints or logs; it only raises.
"""

from __future__ import annotations

from collections.abc import Iterable


class SnipError(Exception):
    """Base class for all wasm-snip failures."""


class ParseError(SnipError):
    """The input is not a well-formed WebAssembly module."""

    def __init__(self, msg: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            msg = f"{msg} (at byte offset 0x{offset:x})"
        super().__init__(msg)


class UnknownFunctionError(SnipError):
    """One or more exact function names matched nothing in the name section."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(names)
        quoted = ", ".join(f"'{n}'" for n in self.names)
        super().__init__(
            f"asked to snip {quoted}, but it isn't present; "
            "did you build with debug symbols?"
        )


class InvalidSelectionError(SnipError):
    """A user-supplied pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"invalid pattern {pattern!r}: {reason}")


class ImportSnipError(SnipError):
    """A selected function is imported and therefore has no body to replace."""

    def __init__(self, index: int, name: str | None = None) -> None:
        self.index = index
        self.name = name
        label = f"'{name}' (function {index})" if name else f"function {index}"
        super().__init__(f"cannot snip imported function {label}")
