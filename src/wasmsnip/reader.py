"""Decode WebAssembly binaries into the :mod:`wasmsnip.module` model.

Usage::

    from wasmsnip.reader import parse_module

    module = parse_module(Path("input.wasm").read_bytes())
    print(module.num_imported_functions, module.num_local_functions)

Only the sections the snipper needs are decoded structurally (type, import,
function, export, code and the ``name`` custom section).  All others are kept
as opaque payload.  Any malformed input raises
:class:`~wasmsnip.errors.ParseError`; a partially decoded module is never
returned.
"""

from __future__ import annotations

from collections.abc import Callable

from wasmsnip.encoding import ByteReader
from wasmsnip.errors import ParseError
from wasmsnip.module import (
    NAME_SECTION,
    WASM_MAGIC,
    WASM_VERSION,
    CodeEntry,
    CodeSection,
    CustomSection,
    Export,
    ExportSection,
    ExternalKind,
    FunctionSection,
    FuncType,
    Import,
    ImportSection,
    Module,
    NameSection,
    NameSubsectionId,
    RawSection,
    Section,
    SectionId,
    TypeSection,
)

_FUNC_TYPE_FORM = 0x60
_END_OPCODE = 0x0B

# Reference value types carry a heap-type immediate (s33).
_REF_TYPES = (0x63, 0x64)

# Limits flags.
_LIMITS_HAS_MAX = 0x01
_LIMITS_CUSTOM_PAGE_SIZE = 0x08


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _read_valtype(r: ByteReader) -> bytes:
    start = r.pos
    code = r.read_byte()
    if code in _REF_TYPES:
        r.read_varint(33)
    return r.data[start : r.pos]


def _read_limits(r: ByteReader) -> None:
    flags = r.read_byte()
    r.read_varuint(64)
    if flags & _LIMITS_HAS_MAX:
        r.read_varuint(64)
    if flags & _LIMITS_CUSTOM_PAGE_SIZE:
        r.read_varuint()


def _read_name_map(r: ByteReader) -> dict[int, str]:
    names: dict[int, str] = {}
    for _ in range(r.read_varuint()):
        index = r.read_varuint()
        names[index] = r.read_name()
    return names


# ---------------------------------------------------------------------------
# Section decoders
# ---------------------------------------------------------------------------


def _decode_type(r: ByteReader, raw: bytes) -> TypeSection:
    types: list[FuncType] = []
    for _ in range(r.read_varuint()):
        form = r.read_byte()
        if form != _FUNC_TYPE_FORM:
            raise ParseError(f"unsupported type form 0x{form:02x}", r.offset - 1)
        params = tuple(_read_valtype(r) for _ in range(r.read_varuint()))
        results = tuple(_read_valtype(r) for _ in range(r.read_varuint()))
        types.append(FuncType(params=params, results=results))
    return TypeSection(types=types, raw=raw)


def _decode_import(r: ByteReader, raw: bytes) -> ImportSection:
    imports: list[Import] = []
    for _ in range(r.read_varuint()):
        module = r.read_name()
        name = r.read_name()
        kind = r.read_byte()
        desc_start = r.pos
        type_index = None
        if kind == ExternalKind.FUNCTION:
            type_index = r.read_varuint()
        elif kind == ExternalKind.TABLE:
            _read_valtype(r)
            _read_limits(r)
        elif kind == ExternalKind.MEMORY:
            _read_limits(r)
        elif kind == ExternalKind.GLOBAL:
            _read_valtype(r)
            r.read_byte()  # mutability
        elif kind == ExternalKind.TAG:
            r.read_byte()  # attribute
            r.read_varuint()
        else:
            raise ParseError(f"unknown import kind 0x{kind:02x}", r.offset - 1)
        imports.append(
            Import(
                module=module,
                name=name,
                kind=kind,
                desc=r.data[desc_start : r.pos],
                type_index=type_index,
            )
        )
    return ImportSection(imports=imports, raw=raw)


def _decode_function(r: ByteReader, raw: bytes) -> FunctionSection:
    indices = [r.read_varuint() for _ in range(r.read_varuint())]
    return FunctionSection(type_indices=indices, raw=raw)


def _decode_export(r: ByteReader, raw: bytes) -> ExportSection:
    exports: list[Export] = []
    for _ in range(r.read_varuint()):
        name = r.read_name()
        kind = r.read_byte()
        exports.append(Export(name=name, kind=kind, index=r.read_varuint()))
    return ExportSection(exports=exports, raw=raw)


def _decode_code_entry(r: ByteReader) -> CodeEntry:
    start = r.pos
    size = r.read_varuint()
    if size > r.remaining():
        raise r.fail(f"function body size {size} overruns the code section")
    body = ByteReader(r.read_bytes(size), base=r.offset - size)
    locals_: list[tuple[int, bytes]] = []
    for _ in range(body.read_varuint()):
        count = body.read_varuint()
        locals_.append((count, _read_valtype(body)))
    instructions = body.data[body.pos :]
    if not instructions or instructions[-1] != _END_OPCODE:
        raise body.fail("function body does not end with an `end` instruction")
    return CodeEntry(locals=locals_, body=instructions, raw=r.data[start : r.pos])


def _decode_code(r: ByteReader, raw: bytes) -> CodeSection:
    count = r.read_varuint()
    count_raw = r.data[: r.pos]
    entries = [_decode_code_entry(r) for _ in range(count)]
    return CodeSection(entries=entries, count_raw=count_raw, raw=raw)


def _decode_name_section(r: ByteReader, raw: bytes) -> NameSection:
    section = NameSection(raw=raw)
    while not r.at_end():
        sub_id = r.read_byte()
        size = r.read_varuint()
        if size > r.remaining():
            raise r.fail(f"name subsection {sub_id} size {size} overruns the section")
        sub = ByteReader(r.read_bytes(size), base=r.offset - size)
        section.subsections.append((sub_id, sub.data))

        if sub_id == NameSubsectionId.MODULE:
            section.module_name = sub.read_name()
        elif sub_id == NameSubsectionId.FUNCTION:
            section.function_names = _read_name_map(sub)
        elif sub_id == NameSubsectionId.LOCAL:
            for _ in range(sub.read_varuint()):
                func_index = sub.read_varuint()
                section.local_names[func_index] = _read_name_map(sub)
        else:
            continue
        sub.expect_end(f"name subsection {sub_id}")
    return section


def _decode_custom(r: ByteReader, raw: bytes) -> Section:
    name = r.read_name()
    if name == NAME_SECTION:
        rest = ByteReader(r.read_bytes(r.remaining()), base=r.offset)
        return _decode_name_section(rest, raw)
    return CustomSection(name=name, payload=r.read_bytes(r.remaining()), raw=raw)


_DECODERS: dict[int, Callable[[ByteReader, bytes], Section]] = {
    SectionId.CUSTOM: _decode_custom,
    SectionId.TYPE: _decode_type,
    SectionId.IMPORT: _decode_import,
    SectionId.FUNCTION: _decode_function,
    SectionId.EXPORT: _decode_export,
    SectionId.CODE: _decode_code,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _check_header(data: bytes) -> None:
    if len(data) < 8:
        raise ParseError("file is too short to be a WebAssembly module", 0)
    if data[:4] != WASM_MAGIC:
        raise ParseError(f"invalid WebAssembly magic: {data[:4].hex()}", 0)
    if data[4:8] != WASM_VERSION:
        version = int.from_bytes(data[4:8], "little")
        raise ParseError(f"unsupported WebAssembly version: {version}", 4)


def _check_function_bodies(module: Module) -> None:
    code = module.find(CodeSection)
    num_bodies = len(code.entries) if code else 0
    if num_bodies != module.num_local_functions:
        raise ParseError(
            f"function and code section have inconsistent lengths "
            f"({module.num_local_functions} != {num_bodies})"
        )


def parse_module(data: bytes) -> Module:
    """Decode *data* into a :class:`Module`.

    Raises:
        ParseError: if the header, any section framing, or any structurally
            decoded section is malformed.
    """
    data = bytes(data)
    _check_header(data)

    r = ByteReader(data)
    r.pos = 8
    sections: list[Section] = []
    seen: set[int] = set()

    while not r.at_end():
        start = r.pos
        section_id = r.read_byte()
        size = r.read_varuint()
        if size > r.remaining():
            raise ParseError(
                f"section {section_id} declares {size} bytes but only "
                f"{r.remaining()} remain",
                start,
            )
        payload_offset = r.offset
        payload = r.read_bytes(size)
        raw = data[start : r.pos]

        if section_id != SectionId.CUSTOM:
            if section_id in seen:
                raise ParseError(f"duplicate section {section_id}", start)
            seen.add(section_id)

        decoder = _DECODERS.get(section_id)
        if decoder is None:
            sections.append(RawSection(kind=section_id, payload=payload, raw=raw))
            continue

        sr = ByteReader(payload, base=payload_offset)
        section = decoder(sr, raw)
        sr.expect_end(f"section {section_id}")
        sections.append(section)

    module = Module(header=data[:8], sections=sections)
    _check_function_bodies(module)
    return module
