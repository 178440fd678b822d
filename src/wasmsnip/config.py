"""Optional project configuration for wasm-snip.

Reads ``wasm-snip.toml`` so a project can keep its snip list next to its
build instead of repeating it on every command line::

    [snip]
    functions = ["annoying_space_waster"]
    patterns = [".*alloc.*"]
    snip_rust_fmt_code = true
    snip_rust_panicking_code = false

The file is found by walking up from the current directory, the same way
``git`` locates ``.git/``.  A missing file is not an error; it simply
contributes nothing.

Usage::

    from wasmsnip.config import load_config

    cfg = load_config()
    criteria = cfg.criteria(functions=["foo"], patterns=[])
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from wasmsnip.selection import SelectionCriteria

CONFIG_FILENAME = "wasm-snip.toml"


@dataclass
class SnipConfig:
    """Parsed ``[snip]`` table."""

    path: Path | None = None
    functions: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    snip_rust_fmt_code: bool = False
    snip_rust_panicking_code: bool = False

    def criteria(
        self,
        functions: Sequence[str] = (),
        patterns: Sequence[str] = (),
        snip_rust_fmt_code: bool = False,
        snip_rust_panicking_code: bool = False,
    ) -> SelectionCriteria:
        """Merge command-line values on top of the file's values."""
        return SelectionCriteria(
            functions=[*self.functions, *functions],
            patterns=[*self.patterns, *patterns],
            snip_rust_fmt_code=self.snip_rust_fmt_code or snip_rust_fmt_code,
            snip_rust_panicking_code=self.snip_rust_panicking_code or snip_rust_panicking_code,
        )


def _find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (or cwd) looking for ``wasm-snip.toml``."""
    candidate = (start or Path.cwd()).resolve()
    while True:
        path = candidate / CONFIG_FILENAME
        if path.is_file():
            return path
        if candidate == candidate.parent:
            return None
        candidate = candidate.parent


def _str_list(table: dict[str, Any], key: str, path: Path) -> list[str]:
    value = table.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{path}: [snip] {key} must be a list of strings")
    return list(value)


def _bool(table: dict[str, Any], key: str, path: Path) -> bool:
    value = table.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"{path}: [snip] {key} must be true or false")
    return value


def load_config(root: Path | None = None, path: Path | None = None) -> SnipConfig:
    """Load ``wasm-snip.toml``.

    Args:
        root: Directory to start the upward search from.  Defaults to cwd.
        path: Explicit config file.  Must exist if given.

    Raises:
        FileNotFoundError: if *path* is given but does not exist.
        ValueError: if the file is not valid TOML or a key has the wrong type.
    """
    if path is not None:
        if not path.is_file():
            raise FileNotFoundError(f"Config not found: {path}")
    else:
        path = _find_config(root)
        if path is None:
            return SnipConfig()

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{path}: {e}") from e

    table = raw.get("snip", {})
    if not isinstance(table, dict):
        raise ValueError(f"{path}: [snip] must be a table")

    return SnipConfig(
        path=path,
        functions=_str_list(table, "functions", path),
        patterns=_str_list(table, "patterns", path),
        snip_rust_fmt_code=_bool(table, "snip_rust_fmt_code", path),
        snip_rust_panicking_code=_bool(table, "snip_rust_panicking_code", path),
    )
