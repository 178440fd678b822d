"""main.py – ``wasm-snip`` command-line entry point.

Usage:
    wasm-snip input.wasm -o output.wasm annoying_space_waster
    wasm-snip input.wasm -o output.wasm -p '.*alloc.*'
    wasm-snip input.wasm --snip-rust-fmt-code --snip-rust-panicking-code > out.wasm
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from wasmsnip import __version__
from wasmsnip.cli import error_exit, json_print, status
from wasmsnip.config import CONFIG_FILENAME, load_config
from wasmsnip.errors import SnipError
from wasmsnip.reader import parse_module
from wasmsnip.snip import snip_module
from wasmsnip.utils import atomic_write_bytes
from wasmsnip.writer import serialize_module

_EPILOG = f"""\
[bold]Examples:[/bold]

wasm-snip in.wasm -o out.wasm my_func          Snip one function by exact name

wasm-snip in.wasm -o out.wasm -p '.*alloc.*'   Snip every function matching a regex

wasm-snip in.wasm --snip-rust-fmt-code > o.wasm  Snip Rust formatting machinery

wasm-snip in.wasm -p '.*fmt.*' --dry-run        List what would be snipped

[dim]Relies on the "name" section, so build with debug symbols.  Run a
dead-code elimination pass (wasm-gc, wasm-opt) afterwards to drop everything
the snipped functions called.  Defaults are read from {CONFIG_FILENAME} if
one is found in the current directory or a parent.[/dim]"""

app = typer.Typer(
    help="Replace a wasm function with an `unreachable`.",
    rich_markup_mode="rich",
    epilog=_EPILOG,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        print(f"wasm-snip {__version__}")
        raise typer.Exit()


@app.command(epilog=_EPILOG)
def main(
    input_path: Path = typer.Argument(
        ...,
        metavar="INPUT",
        help="The input wasm file containing the function(s) to snip.",
    ),
    functions: list[str] | None = typer.Argument(
        None,
        metavar="[FUNCTION]...",
        help="The specific function(s) to snip. These must match exactly. "
        "Use the -p flag for fuzzy matching.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="The path to write the output wasm file to. Defaults to stdout.",
    ),
    patterns: list[str] | None = typer.Option(
        None,
        "--pattern",
        "-p",
        help="Snip any function that matches the given regular expression.",
    ),
    snip_rust_fmt_code: bool = typer.Option(
        False, "--snip-rust-fmt-code", help="Snip Rust's `std::fmt` and `core::fmt` code."
    ),
    snip_rust_panicking_code: bool = typer.Option(
        False,
        "--snip-rust-panicking-code",
        help="Snip Rust's `std::panicking` and `core::panicking` code.",
    ),
    config: Path | None = typer.Option(
        None, "--config", help=f"Read defaults from this file instead of {CONFIG_FILENAME}."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="List the functions that would be snipped; write nothing."
    ),
    json_output: bool = typer.Option(False, "--json", help="Output a JSON report"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the version and exit.",
    ),
) -> None:
    """Replace the bodies of the selected functions with ``unreachable``.

    Functions are selected by exact name, by regular expression, or by one of
    the built-in Rust runtime pattern sets.  The snipped module is written to
    ``--output`` or to stdout; everything else in the module is left
    byte-for-byte identical.

    Args:
        input_path: Input ``.wasm`` file.
        functions: Exact function names to snip.  Each must exist.
        output: Output path.  Defaults to stdout.
        patterns: Regular expressions; matching nothing is not an error.
        snip_rust_fmt_code: Snip ``std::fmt`` / ``core::fmt`` functions.
        snip_rust_panicking_code: Snip ``std::panicking`` / ``core::panicking``.
        config: Explicit ``wasm-snip.toml`` path.
        dry_run: Validate and list the selection without writing anything.
        json_output: Emit a JSON report on stdout (needs ``--output``).
        version: Print the version and exit.
    """
    if json_output and output is None and not dry_run:
        error_exit("--json needs --output; stdout carries the module bytes", json_mode=True)

    try:
        cfg = load_config(path=config)
    except (OSError, ValueError) as e:
        error_exit(str(e), json_mode=json_output)

    criteria = cfg.criteria(
        functions=functions or [],
        patterns=patterns or [],
        snip_rust_fmt_code=snip_rust_fmt_code,
        snip_rust_panicking_code=snip_rust_panicking_code,
    )

    try:
        data = input_path.read_bytes()
    except OSError as e:
        error_exit(f"Cannot read {input_path}: {e.strerror or e}", json_mode=json_output)

    try:
        module = parse_module(data)
        report = snip_module(module, criteria, dry_run=dry_run)
    except SnipError as e:
        error_exit(str(e), json_mode=json_output)

    if dry_run:
        if json_output:
            json_print(report.to_dict())
            return
        for func in report.functions:
            print(f"{func.index}\t{func.name or ''}")
        status(f"would snip {len(report.functions)} function(s)")
        return

    out = serialize_module(module) if report.functions else data

    if output is None:
        sys.stdout.buffer.write(out)
        sys.stdout.buffer.flush()
        return

    try:
        atomic_write_bytes(output, out)
    except OSError as e:
        error_exit(f"Cannot write {output}: {e.strerror or e}", json_mode=json_output)

    if json_output:
        result = report.to_dict()
        result["output"] = str(output)
        json_print(result)
    else:
        status(f"snipped {len(report.functions)} function(s) -> {output}")


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
