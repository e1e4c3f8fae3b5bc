"""Shared fixtures: a small builder for synthetic WebAssembly modules."""
import pytest

from wasm_classifier_py.io.binary_stream import BinaryStream
from wasm_classifier_py.formats.wasm_structures import WasmSectionId, ExternalKind


HEADER = b"\x00asm\x01\x00\x00\x00"


def encode_section(section_id: int, payload: bytes) -> bytes:
    out = BinaryStream(b"")
    out.write_byte(section_id)
    out.write_uleb128(len(payload))
    out.write_bytes(payload)
    return out.get_data()


def encode_custom(name: str, payload: bytes = b"") -> bytes:
    body = BinaryStream(b"")
    body.write_name(name)
    body.write_bytes(payload)
    return encode_section(WasmSectionId.CUSTOM, body.get_data())


def encode_producers(fields) -> bytes:
    """fields: {field_name: [(name, version), ...]}"""
    out = BinaryStream(b"")
    out.write_uleb128(len(fields))
    for field_name, values in fields.items():
        out.write_name(field_name)
        out.write_uleb128(len(values))
        for name, version in values:
            out.write_name(name)
            out.write_name(version)
    return out.get_data()


def encode_function_names(names) -> bytes:
    sub = BinaryStream(b"")
    sub.write_uleb128(len(names))
    for index, name in enumerate(names):
        sub.write_uleb128(index)
        sub.write_name(name)
    body = sub.get_data()

    out = BinaryStream(b"")
    out.write_byte(1)
    out.write_uleb128(len(body))
    out.write_bytes(body)
    return out.get_data()


class ModuleBuilder:
    """Assembles a module section by section, in call order."""

    def __init__(self):
        self.sections = []

    def imports(self, *entries):
        """entries: (module, field) for functions or (module, field, kind)."""
        out = BinaryStream(b"")
        out.write_uleb128(len(entries))
        for entry in entries:
            module, field = entry[0], entry[1]
            kind = entry[2] if len(entry) > 2 else ExternalKind.FUNCTION
            out.write_name(module)
            out.write_name(field)
            out.write_byte(int(kind))
            if kind == ExternalKind.FUNCTION:
                out.write_uleb128(0)
            elif kind == ExternalKind.TABLE:
                out.write_byte(0x70)
                out.write_bytes(b"\x00\x01")
            elif kind == ExternalKind.MEMORY:
                out.write_bytes(b"\x01\x01\x10")
            elif kind == ExternalKind.GLOBAL:
                out.write_bytes(b"\x7f\x00")
            elif kind == ExternalKind.TAG:
                out.write_bytes(b"\x00\x00")
        self.sections.append(encode_section(WasmSectionId.IMPORT, out.get_data()))
        return self

    def exports(self, *names, kind=ExternalKind.FUNCTION):
        out = BinaryStream(b"")
        out.write_uleb128(len(names))
        for index, name in enumerate(names):
            out.write_name(name)
            out.write_byte(int(kind))
            out.write_uleb128(index)
        self.sections.append(encode_section(WasmSectionId.EXPORT, out.get_data()))
        return self

    def custom(self, name, payload=b""):
        self.sections.append(encode_custom(name, payload))
        return self

    def producers(self, fields):
        return self.custom("producers", encode_producers(fields))

    def function_names(self, names):
        return self.custom("name", encode_function_names(names))

    def raw(self, data: bytes):
        self.sections.append(data)
        return self

    def build(self) -> bytes:
        return HEADER + b"".join(self.sections)


@pytest.fixture
def builder():
    return ModuleBuilder()
