"""Choose which functions to snip.

A function is selected when its name (from the ``name`` section) equals one
of the requested exact names, or matches one of the requested regular
expressions, or matches a pattern of an enabled built-in set.  Matching uses
``re.search``, so patterns are unanchored unless they say otherwise.

Exact names are a promise that the function exists: an exact name that
matches nothing raises :class:`UnknownFunctionError`.  Patterns are a guess,
so a pattern that matches nothing is fine.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from wasmsnip.errors import InvalidSelectionError, UnknownFunctionError
from wasmsnip.names import names_to_indices

# ---------------------------------------------------------------------------
# Built-in pattern sets
# ---------------------------------------------------------------------------

# Rust `std::fmt` / `core::fmt` machinery, as mangled symbols, as mangled
# inside impl paths, and demangled.
RUST_FMT_PATTERNS: tuple[str, ...] = (
    r".*4core3fmt.*",
    r".*3std3fmt.*",
    r".*core\.\.fmt\.\..*",
    r".*std\.\.fmt\.\..*",
    r".*core::fmt::.*",
    r".*std::fmt::.*",
)

# Rust `std::panicking` / `core::panicking` machinery, same three shapes.
RUST_PANICKING_PATTERNS: tuple[str, ...] = (
    r".*4core9panicking.*",
    r".*3std9panicking.*",
    r".*core\.\.panicking\.\..*",
    r".*std\.\.panicking\.\..*",
    r".*core::panicking::.*",
    r".*std::panicking::.*",
)


@dataclass(frozen=True)
class SelectionCriteria:
    """What the caller asked to snip."""

    functions: Sequence[str] = ()
    patterns: Sequence[str] = ()
    snip_rust_fmt_code: bool = False
    snip_rust_panicking_code: bool = False

    def __post_init__(self) -> None:
        # Freeze caller lists so the criteria can't change underneath us.
        object.__setattr__(self, "functions", tuple(self.functions))
        object.__setattr__(self, "patterns", tuple(self.patterns))

    @property
    def is_empty(self) -> bool:
        return not (
            self.functions
            or self.patterns
            or self.snip_rust_fmt_code
            or self.snip_rust_panicking_code
        )


def builtin_patterns(criteria: SelectionCriteria) -> list[str]:
    """Return the built-in patterns enabled by *criteria* as a new list."""
    patterns: list[str] = []
    if criteria.snip_rust_fmt_code:
        patterns.extend(RUST_FMT_PATTERNS)
    if criteria.snip_rust_panicking_code:
        patterns.extend(RUST_PANICKING_PATTERNS)
    return patterns


def compile_patterns(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    """Compile every pattern up front, failing on the first invalid one."""
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise InvalidSelectionError(pattern, str(e)) from e
    return compiled


def select_functions(names: dict[int, str], criteria: SelectionCriteria) -> frozenset[int]:
    """Compute the set of function indices selected by *criteria*.

    Imported functions are included if they match; rejecting them is the
    rewriter's job.

    Raises:
        InvalidSelectionError: if any pattern fails to compile.
        UnknownFunctionError: if any exact name matches no function.
    """
    regexes = compile_patterns([*criteria.patterns, *builtin_patterns(criteria)])

    targets: set[int] = set()
    by_name = names_to_indices(names)
    missing: list[str] = []
    for name in criteria.functions:
        indices = by_name.get(name)
        if indices:
            targets.update(indices)
        elif name not in missing:
            missing.append(name)
    if missing:
        raise UnknownFunctionError(missing)

    if regexes:
        for index, name in names.items():
            if any(rx.search(name) for rx in regexes):
                targets.add(index)

    return frozenset(targets)
