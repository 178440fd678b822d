"""Shared CLI helpers for wasm-snip.

Standardised error reporting and JSON output so every command prints
failures the same way::

    from wasmsnip.cli import error_exit, json_print

    if not path.exists():
        error_exit(f"Input not found: {path}", json_mode=json_output)
"""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

_err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(
            f"[red bold]error:[/red bold] {escape(msg)}", highlight=False, soft_wrap=True
        )
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))


def status(msg: str) -> None:
    """Print a progress message on stderr, keeping stdout free for output."""
    _err_console.print(escape(msg), highlight=False, soft_wrap=True)
