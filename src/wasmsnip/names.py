"""Resolve function indices to the names recorded in the ``name`` section."""

from __future__ import annotations

from wasmsnip.module import Module, NameSection


def function_names(module: Module) -> dict[int, str]:
    """Return a fresh ``{function index: name}`` mapping for *module*.

    Modules built without debug info carry no ``name`` section (or one without
    a function subsection); those yield an empty mapping rather than an error,
    so only exact-name requests can fail later on.
    """
    section = module.find(NameSection)
    if section is None:
        return {}
    return dict(section.function_names)


def names_to_indices(names: dict[int, str]) -> dict[str, list[int]]:
    """Invert a name map.  Several functions may share one name."""
    by_name: dict[str, list[int]] = {}
    for index in sorted(names):
        by_name.setdefault(names[index], []).append(index)
    return by_name
