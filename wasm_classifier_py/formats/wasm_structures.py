"""
WebAssembly format structure definitions.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterator, Optional, Tuple

from ..io.binary_stream import StreamError


# WebAssembly Magic and version
WASM_MAGIC = b"\x00asm"
WASM_VERSION = 1

# Number of leading bytes kept on every view for signature sniffing
HEADER_SNIFF_SIZE = 16


class WasmDecodeError(StreamError):
    """Raised when a WebAssembly structure is malformed."""
    pass


class WasmSectionId(IntEnum):
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
    """Import/export descriptor kinds."""
    FUNCTION = 0
    TABLE = 1
    MEMORY = 2
    GLOBAL = 3
    TAG = 4
    UNKNOWN = -1

    @classmethod
    def from_tag(cls, tag: int) -> 'ExternalKind':
        if tag < 0:
            return cls.UNKNOWN
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


class DecodeStatus(Enum):
    """Outcome of reading a module."""
    OK = "Ok"
    TRUNCATED = "Truncated"
    INVALID_MAGIC = "InvalidMagic"
    UNSUPPORTED_VERSION = "UnsupportedVersion"
    SECTION_PARSE_ERROR = "SectionParseError"


@dataclass(frozen=True)
class ImportEntry:
    """Import section entry."""
    module: str
    field: str
    kind: ExternalKind
    kind_tag: int = 0  # Raw descriptor byte, meaningful for UNKNOWN kinds


@dataclass(frozen=True)
class ExportEntry:
    """Export section entry."""
    name: str
    kind: ExternalKind
    index: int = 0
    kind_tag: int = 0


@dataclass(frozen=True)
class CustomSection:
    """Custom section, payload kept verbatim."""
    name: str
    payload: bytes = b""


@dataclass(frozen=True)
class ModuleView:
    """
    Structured, language-agnostic view of a WebAssembly module.

    A view is only complete when ``decode_status`` is OK. Views for other
    statuses hold whatever was decoded before the problem was hit.

    Attributes:
        imports: Import entries in file order
        exports: Export entries in file order
        custom_sections: Every custom section in file order, duplicates kept
        decode_status: Outcome of the read
        header: First bytes of the raw buffer, for signature sniffing
        version: Container version field, when present
        section_ids: Ids of every section header that was read
        error: Description of the first decode problem
    """
    imports: Tuple[ImportEntry, ...] = ()
    exports: Tuple[ExportEntry, ...] = ()
    custom_sections: Tuple[CustomSection, ...] = ()
    decode_status: DecodeStatus = DecodeStatus.OK
    header: bytes = b""
    version: Optional[int] = None
    section_ids: Tuple[int, ...] = field(default=())
    error: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.decode_status is DecodeStatus.OK

    def custom_sections_named(self, name: str) -> Tuple[CustomSection, ...]:
        """All custom sections called ``name``, in file order."""
        return tuple(s for s in self.custom_sections if s.name == name)

    def symbol_names(self) -> Iterator[str]:
        """Import field names followed by export names."""
        for entry in self.imports:
            yield entry.field
        for export in self.exports:
            yield export.name
