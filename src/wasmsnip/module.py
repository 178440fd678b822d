"""In-memory model of a WebAssembly module.

A :class:`Module` is the ordered list of sections found in the file.  Each
section kind the snipper cares about is a dedicated dataclass carrying only
the fields it needs; everything else is a :class:`RawSection` or
:class:`CustomSection` holding its payload opaquely.

Every section read from a file keeps ``raw``: the exact bytes of its record
(id, size prefix as encoded, payload).  The writer re-emits ``raw`` verbatim
for any section that was not modified, which is what keeps untouched parts
of the module byte-identical even when the producer used padded LEB128
sizes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, TypeVar

from wasmsnip.encoding import encode_name, encode_varuint

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

WASM_MAGIC = b"\x00asm"
WASM_VERSION = b"\x01\x00\x00\x00"

NAME_SECTION = "name"


class SectionId(IntEnum):
    """WebAssembly section IDs."""

    CUSTOM = 0
    TYPE = 1
    IMPORT = 2
    FUNCTION = 3
    TABLE = 4
    MEMORY = 5
    GLOBAL = 6
    EXPORT = 7
    START = 8
    ELEMENT = 9
    CODE = 10
    DATA = 11
    DATA_COUNT = 12
    TAG = 13


class ExternalKind(IntEnum):
    """Kinds of imports and exports."""

    FUNCTION = 0
    TABLE = 1
    MEMORY = 2
    GLOBAL = 3
    TAG = 4


class NameSubsectionId(IntEnum):
    """Subsection IDs inside the ``name`` custom section."""

    MODULE = 0
    FUNCTION = 1
    LOCAL = 2


# ---------------------------------------------------------------------------
# Section variants
# ---------------------------------------------------------------------------


class Section:
    """Common behaviour of all section variants."""

    section_id: ClassVar[int]
    raw: bytes

    @property
    def id(self) -> int:
        return self.section_id

    @property
    def modified(self) -> bool:
        return False

    def encode_payload(self) -> bytes:
        raise NotImplementedError


@dataclass
class FuncType:
    # Value types are kept as their encoded bytes so reference types with a
    # heap-type immediate survive unchanged.
    params: tuple[bytes, ...] = ()
    results: tuple[bytes, ...] = ()


@dataclass
class TypeSection(Section):
    section_id: ClassVar[int] = SectionId.TYPE

    types: list[FuncType] = field(default_factory=list)
    raw: bytes = field(default=b"", repr=False)

    def encode_payload(self) -> bytes:
        out = bytearray(encode_varuint(len(self.types)))
        for ty in self.types:
            out.append(0x60)
            out += encode_varuint(len(ty.params)) + b"".join(ty.params)
            out += encode_varuint(len(ty.results)) + b"".join(ty.results)
        return bytes(out)


@dataclass
class Import:
    module: str
    name: str
    kind: int
    desc: bytes  # encoded import descriptor following the kind byte
    type_index: int | None = None  # set for function imports


@dataclass
class ImportSection(Section):
    section_id: ClassVar[int] = SectionId.IMPORT

    imports: list[Import] = field(default_factory=list)
    raw: bytes = field(default=b"", repr=False)

    @property
    def functions(self) -> list[Import]:
        return [imp for imp in self.imports if imp.kind == ExternalKind.FUNCTION]

    def encode_payload(self) -> bytes:
        out = bytearray(encode_varuint(len(self.imports)))
        for imp in self.imports:
            out += encode_name(imp.module) + encode_name(imp.name)
            out.append(imp.kind)
            out += imp.desc
        return bytes(out)


@dataclass
class FunctionSection(Section):
    section_id: ClassVar[int] = SectionId.FUNCTION

    type_indices: list[int] = field(default_factory=list)
    raw: bytes = field(default=b"", repr=False)

    def encode_payload(self) -> bytes:
        return encode_varuint(len(self.type_indices)) + b"".join(
            encode_varuint(i) for i in self.type_indices
        )


@dataclass
class CodeEntry:
    """One function body: local declarations plus the instruction bytes.

    ``body`` holds the instruction sequence including the final ``end``.
    ``raw`` is the entry as read (size prefix included); it is empty for
    entries built in memory, which are encoded fresh.
    """

    locals: list[tuple[int, bytes]] = field(default_factory=list)
    body: bytes = b""
    raw: bytes = field(default=b"", repr=False)

    def encode(self) -> bytes:
        if self.raw:
            return self.raw
        payload = bytearray(encode_varuint(len(self.locals)))
        for count, valtype in self.locals:
            payload += encode_varuint(count) + valtype
        payload += self.body
        return encode_varuint(len(payload)) + bytes(payload)


@dataclass
class CodeSection(Section):
    section_id: ClassVar[int] = SectionId.CODE

    entries: list[CodeEntry] = field(default_factory=list)
    count_raw: bytes = b""  # vector length prefix as read
    raw: bytes = field(default=b"", repr=False)
    dirty: bool = False

    @property
    def modified(self) -> bool:
        return self.dirty

    def replace(self, position: int, entry: CodeEntry) -> None:
        self.entries[position] = entry
        self.dirty = True

    def encode_payload(self) -> bytes:
        count = self.count_raw or encode_varuint(len(self.entries))
        return count + b"".join(entry.encode() for entry in self.entries)


@dataclass
class Export:
    name: str
    kind: int
    index: int


@dataclass
class ExportSection(Section):
    section_id: ClassVar[int] = SectionId.EXPORT

    exports: list[Export] = field(default_factory=list)
    raw: bytes = field(default=b"", repr=False)

    def encode_payload(self) -> bytes:
        out = bytearray(encode_varuint(len(self.exports)))
        for exp in self.exports:
            out += encode_name(exp.name)
            out.append(exp.kind)
            out += encode_varuint(exp.index)
        return bytes(out)


@dataclass
class CustomSection(Section):
    section_id: ClassVar[int] = SectionId.CUSTOM

    name: str = ""
    payload: bytes = b""
    raw: bytes = field(default=b"", repr=False)

    def encode_payload(self) -> bytes:
        return encode_name(self.name) + self.payload


@dataclass
class NameSection(Section):
    """The ``name`` custom section.

    ``subsections`` keeps every subsection as ``(id, payload)`` in file order;
    the module, function and local subsections are additionally decoded.
    """

    section_id: ClassVar[int] = SectionId.CUSTOM

    module_name: str | None = None
    function_names: dict[int, str] = field(default_factory=dict)
    local_names: dict[int, dict[int, str]] = field(default_factory=dict)
    subsections: list[tuple[int, bytes]] = field(default_factory=list)
    raw: bytes = field(default=b"", repr=False)

    @property
    def name(self) -> str:
        return NAME_SECTION

    def encode_payload(self) -> bytes:
        out = bytearray(encode_name(NAME_SECTION))
        for sub_id, payload in self.subsections:
            out.append(sub_id)
            out += encode_varuint(len(payload)) + payload
        return bytes(out)


@dataclass
class RawSection(Section):
    """Any section kind carried through without decoding."""

    section_id: ClassVar[int] = -1

    kind: int = 0
    payload: bytes = b""
    raw: bytes = field(default=b"", repr=False)

    @property
    def id(self) -> int:
        return self.kind

    def encode_payload(self) -> bytes:
        return self.payload


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------

S = TypeVar("S", bound=Section)


@dataclass
class Module:
    header: bytes = WASM_MAGIC + WASM_VERSION
    sections: list[Section] = field(default_factory=list)

    def find(self, kind: type[S]) -> S | None:
        """Return the first section of the given variant, or ``None``."""
        for section in self.sections:
            if isinstance(section, kind):
                return section
        return None

    @property
    def num_imported_functions(self) -> int:
        imports = self.find(ImportSection)
        return len(imports.functions) if imports else 0

    @property
    def num_local_functions(self) -> int:
        functions = self.find(FunctionSection)
        return len(functions.type_indices) if functions else 0

    @property
    def num_functions(self) -> int:
        return self.num_imported_functions + self.num_local_functions

    def is_imported(self, index: int) -> bool:
        return 0 <= index < self.num_imported_functions

    def code_position(self, index: int) -> int:
        """Map a function index to its position in the code section."""
        num_imports = self.num_imported_functions
        if index < num_imports or index >= num_imports + self.num_local_functions:
            raise IndexError(f"function {index} is not a local function")
        return index - num_imports
