"""Replace function bodies with a single trapping instruction."""

from __future__ import annotations

from collections.abc import Iterable

from wasmsnip.errors import ImportSnipError, ParseError
from wasmsnip.module import CodeEntry, CodeSection, Module

UNREACHABLE = 0x00
END = 0x0B

# No locals, `unreachable`, `end`.  Valid against any signature since control
# never falls off the end.
TRAP_BODY = bytes([UNREACHABLE, END])
CANONICAL_ENTRY = b"\x03\x00" + TRAP_BODY


def trap_entry() -> CodeEntry:
    return CodeEntry(locals=[], body=TRAP_BODY)


def is_snipped(entry: CodeEntry) -> bool:
    return entry.encode() == CANONICAL_ENTRY


def validate_targets(
    module: Module,
    targets: Iterable[int],
    names: dict[int, str] | None = None,
) -> list[int]:
    """Check every target before anything is rewritten.

    Returns the targets in ascending order.

    Raises:
        ImportSnipError: if a target is an imported function.
        ParseError: if a target lies outside the function index space, which
            means the name section refers to a function that doesn't exist.
    """
    ordered = sorted(set(targets))
    total = module.num_functions
    for index in ordered:
        if module.is_imported(index):
            raise ImportSnipError(index, (names or {}).get(index))
        if index < 0 or index >= total:
            raise ParseError(
                f"name section refers to function {index}, but the module "
                f"only has {total} functions"
            )
    return ordered


def snip_functions(
    module: Module,
    targets: Iterable[int],
    names: dict[int, str] | None = None,
) -> list[int]:
    """Replace the body of every target with the canonical trap body.

    The whole target set is validated first, so a failure never leaves the
    module half-rewritten.  Type indices, function indices and every other
    section are left alone.  Returns the snipped indices in ascending order.
    """
    ordered = validate_targets(module, targets, names)
    if not ordered:
        return []

    code = module.find(CodeSection)
    if code is None:
        # validate_targets guarantees local targets, and the reader guarantees
        # a code section whenever there are local functions.
        raise ParseError("missing code section")

    for index in ordered:
        position = module.code_position(index)
        if is_snipped(code.entries[position]):
            continue
        code.replace(position, trap_entry())
    return ordered
