"""Serialize a :class:`~wasmsnip.module.Module` back to bytes."""

from __future__ import annotations

from wasmsnip.encoding import encode_varuint
from wasmsnip.module import Module, Section


def encode_section(section: Section) -> bytes:
    """Encode *section* as ``id, size, payload`` with a minimal size prefix."""
    payload = section.encode_payload()
    return bytes([section.id]) + encode_varuint(len(payload)) + payload


def serialize_module(module: Module) -> bytes:
    """Return the binary encoding of *module*.

    Sections that were read from a file and not modified are emitted from
    their original bytes, so the output differs from the input only inside
    sections the rewriter touched.
    """
    out = bytearray(module.header)
    for section in module.sections:
        if section.raw and not section.modified:
            out += section.raw
        else:
            out += encode_section(section)
    return bytes(out)
