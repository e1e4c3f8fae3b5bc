"""
WebAssembly (WASM) module reader.

Walks the section table of a module and extracts the parts that carry
toolchain signal: import entries, export entries and custom sections.
Malformed input never raises; problems are reported through the
``decode_status`` of the returned ModuleView.
"""

from typing import List, Optional

from ..io.binary_stream import BinaryStream, StreamError, EndOfStreamError
from .wasm_structures import (
    ModuleView, ImportEntry, ExportEntry, CustomSection,
    DecodeStatus, ExternalKind, WasmSectionId, WasmDecodeError,
    WASM_MAGIC, WASM_VERSION, HEADER_SNIFF_SIZE,
)


# Typed reference value types carry a trailing heap type
REF_NULL = 0x63
REF = 0x64

# Limits flags: has-max, shared, 64-bit, custom page size
LIMITS_HAS_MAX = 0x01
LIMITS_CUSTOM_PAGE_SIZE = 0x08
LIMITS_VALID_MASK = 0x0F


class WasmReader(BinaryStream):
    """
    WebAssembly module reader.

    The module is read once on construction; the result is available as
    ``view``.
    """

    def __init__(self, data: bytes):
        super().__init__(data)
        self._header = bytes(data[:HEADER_SNIFF_SIZE])
        self._version: Optional[int] = None
        self._imports: List[ImportEntry] = []
        self._exports: List[ExportEntry] = []
        self._custom_sections: List[CustomSection] = []
        self._section_ids: List[int] = []
        self._status = DecodeStatus.OK
        self._error: Optional[str] = None
        self._load()
        self.view = ModuleView(
            imports=tuple(self._imports),
            exports=tuple(self._exports),
            custom_sections=tuple(self._custom_sections),
            decode_status=self._status,
            header=self._header,
            version=self._version,
            section_ids=tuple(self._section_ids),
            error=self._error,
        )

    def _load(self) -> None:
        """Load WebAssembly structures."""
        self.position = 0

        # Read magic
        magic = self.peek_bytes(len(WASM_MAGIC))
        if magic != WASM_MAGIC:
            self._fail(DecodeStatus.INVALID_MAGIC, f"Invalid WebAssembly magic: {magic.hex() or 'empty'}")
            return
        self.skip(len(WASM_MAGIC))

        # Read version
        if self.remaining < 4:
            self._fail(DecodeStatus.TRUNCATED, "Module ends inside the version field")
            return
        self._version = self.read_uint32()
        if self._version != WASM_VERSION:
            self._fail(DecodeStatus.UNSUPPORTED_VERSION,
                       f"Unsupported WebAssembly version: 0x{self._version:08X}")
            return

        # Parse sections
        while not self.at_end:
            if not self._read_section():
                break

    def _fail(self, status: DecodeStatus, message: str) -> None:
        """Record a decode problem. The first one wins, except that truncation
        overrides a section parse error."""
        if self._status is DecodeStatus.OK or (
            status is DecodeStatus.TRUNCATED
            and self._status is DecodeStatus.SECTION_PARSE_ERROR
        ):
            self._status = status
            self._error = message

    def _read_section(self) -> bool:
        """Read one section. Returns False when the walk has to stop."""
        start = self.position
        try:
            section_id = self.read_byte()
            size = self.read_uleb128()
        except EndOfStreamError:
            self._fail(DecodeStatus.TRUNCATED, f"Section header at offset {start} is cut short")
            return False
        except StreamError as e:
            # Without a size the next section cannot be located
            self._fail(DecodeStatus.SECTION_PARSE_ERROR, f"Bad section header at offset {start}: {e}")
            return False

        self._section_ids.append(section_id)

        if size > self.remaining:
            self._fail(
                DecodeStatus.TRUNCATED,
                f"Section {_section_name(section_id)} at offset {start} declares "
                f"{size} bytes but only {self.remaining} remain"
            )
            return False

        payload = self.sub_stream(size)
        try:
            if section_id == WasmSectionId.IMPORT:
                self._parse_import_section(payload)
            elif section_id == WasmSectionId.EXPORT:
                self._parse_export_section(payload)
            elif section_id == WasmSectionId.CUSTOM:
                self._parse_custom_section(payload)
        except StreamError as e:
            self._fail(
                DecodeStatus.SECTION_PARSE_ERROR,
                f"Malformed {_section_name(section_id)} section at offset {start}: {e}"
            )
        return True

    # ========== Import Section ==========

    def _parse_import_section(self, payload: BinaryStream) -> None:
        count = payload.read_uleb128()
        for _ in range(count):
            module = payload.read_name()
            field = payload.read_name()
            tag = payload.read_byte()
            kind = ExternalKind.from_tag(tag)

            if kind is ExternalKind.UNKNOWN:
                # The descriptor size is unknown, nothing after it is reachable
                self._imports.append(ImportEntry(module, field, kind, tag))
                raise WasmDecodeError(f"Unknown import kind 0x{tag:02X} for {module}.{field}")

            self._skip_import_descriptor(payload, kind)
            self._imports.append(ImportEntry(module, field, kind, tag))

    def _skip_import_descriptor(self, payload: BinaryStream, kind: ExternalKind) -> None:
        if kind is ExternalKind.FUNCTION:
            payload.read_uleb128()  # type index
        elif kind is ExternalKind.TABLE:
            self._skip_value_type(payload)
            self._skip_limits(payload)
        elif kind is ExternalKind.MEMORY:
            self._skip_limits(payload)
        elif kind is ExternalKind.GLOBAL:
            self._skip_value_type(payload)
            payload.read_byte()  # mutability
        elif kind is ExternalKind.TAG:
            payload.read_byte()  # attribute
            payload.read_uleb128()  # type index

    @staticmethod
    def _skip_value_type(payload: BinaryStream) -> None:
        value_type = payload.read_byte()
        if value_type in (REF_NULL, REF):
            payload.read_sleb128()  # heap type

    @staticmethod
    def _skip_limits(payload: BinaryStream) -> None:
        flags = payload.read_byte()
        if flags & ~LIMITS_VALID_MASK:
            raise WasmDecodeError(f"Invalid limits flags 0x{flags:02X}")
        payload.read_uleb128()  # minimum
        if flags & LIMITS_HAS_MAX:
            payload.read_uleb128()
        if flags & LIMITS_CUSTOM_PAGE_SIZE:
            payload.read_uleb128()  # log2 page size

    # ========== Export Section ==========

    def _parse_export_section(self, payload: BinaryStream) -> None:
        count = payload.read_uleb128()
        for _ in range(count):
            name = payload.read_name()
            tag = payload.read_byte()
            index = payload.read_uleb128()
            self._exports.append(ExportEntry(name, ExternalKind.from_tag(tag), index, tag))

    # ========== Custom Sections ==========

    def _parse_custom_section(self, payload: BinaryStream) -> None:
        name = payload.read_name()
        self._custom_sections.append(CustomSection(name, payload.read_bytes(payload.remaining)))


def _section_name(section_id: int) -> str:
    try:
        return WasmSectionId(section_id).name.lower()
    except ValueError:
        return f"unknown({section_id})"


def parse(data: bytes) -> ModuleView:
    """
    Read a WebAssembly module into a ModuleView.

    Args:
        data: Raw module bytes, possibly not WebAssembly at all

    Returns:
        The decoded view; never raises for malformed input
    """
    return WasmReader(data).view
