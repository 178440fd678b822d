"""wasm-snip — replace WebAssembly function bodies with ``unreachable``.

Maybe you know that some function will never be called at runtime, but the
compiler can't prove that at compile time.  Snip it, then run a dead-code
elimination pass (``wasm-gc``, ``wasm-opt``) and everything it transitively
called goes away too.

Selection relies on the ``name`` section, so build with debug symbols.
"""

__version__ = "0.1.0"

from wasmsnip.errors import (
    ImportSnipError,
    InvalidSelectionError,
    ParseError,
    SnipError,
    UnknownFunctionError,
)
from wasmsnip.reader import parse_module
from wasmsnip.selection import SelectionCriteria
from wasmsnip.snip import SnipReport, snip, snip_module
from wasmsnip.writer import serialize_module

__all__ = [
    "ImportSnipError",
    "InvalidSelectionError",
    "ParseError",
    "SelectionCriteria",
    "SnipError",
    "SnipReport",
    "UnknownFunctionError",
    "__version__",
    "parse_module",
    "serialize_module",
    "snip",
    "snip_module",
]
