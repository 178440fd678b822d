"""Engine entry points: bytes in, snipped bytes out.

Usage::

    from wasmsnip import SelectionCriteria, snip

    out = snip(data, SelectionCriteria(functions=["annoying_space_waster"]))

:func:`snip_module` works on an already-parsed :class:`Module` and reports
what it did, which is what the CLI uses.  Neither function prints, logs or
touches the filesystem; every failure is raised as a
:class:`~wasmsnip.errors.SnipError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from wasmsnip.module import Module
from wasmsnip.names import function_names
from wasmsnip.reader import parse_module
from wasmsnip.rewrite import snip_functions, validate_targets
from wasmsnip.selection import SelectionCriteria, select_functions
from wasmsnip.writer import serialize_module


@dataclass
class SnippedFunction:
    index: int
    name: str | None = None


@dataclass
class SnipReport:
    """Functions selected for snipping, in ascending index order."""

    functions: list[SnippedFunction] = field(default_factory=list)
    dry_run: bool = False

    @property
    def indices(self) -> list[int]:
        return [f.index for f in self.functions]

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "count": len(self.functions),
            "functions": [{"index": f.index, "name": f.name} for f in self.functions],
        }


def snip_module(
    module: Module,
    criteria: SelectionCriteria,
    *,
    dry_run: bool = False,
) -> SnipReport:
    """Select functions in *module* by *criteria* and replace their bodies.

    With ``dry_run`` the selection is fully validated (unknown names, bad
    patterns, imported targets) but the module is left untouched.
    """
    names = function_names(module)
    targets = select_functions(names, criteria)
    if dry_run:
        ordered = validate_targets(module, targets, names)
    else:
        ordered = snip_functions(module, targets, names)
    return SnipReport(
        functions=[SnippedFunction(index=i, name=names.get(i)) for i in ordered],
        dry_run=dry_run,
    )


def snip(data: bytes, criteria: SelectionCriteria) -> bytes:
    """Return *data* with every function selected by *criteria* snipped.

    If nothing is selected the input is returned unchanged.
    """
    module = parse_module(data)
    report = snip_module(module, criteria)
    if not report.functions:
        return bytes(data)
    return serialize_module(module)
