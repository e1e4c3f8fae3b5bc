"""
Decoders for tool-convention custom sections.

These are only called on demand by the classifier rules that need them; the
module reader itself keeps custom section payloads opaque.
"""

from typing import Dict, List, Tuple

from ..io.binary_stream import BinaryStream
from .wasm_structures import WasmDecodeError


PRODUCERS_SECTION = "producers"
NAME_SECTION = "name"

# Subsection id of the function-name map inside the "name" section
NAME_SUBSECTION_FUNCTIONS = 1


def decode_producers(payload: bytes) -> Dict[str, List[Tuple[str, str]]]:
    """
    Decode a ``producers`` section payload.

    Args:
        payload: Section payload after the section name

    Returns:
        Mapping of field name (``language``, ``processed-by``, ``sdk``) to a
        list of ``(name, version)`` pairs

    Raises:
        WasmDecodeError: If the payload is malformed
    """
    stream = BinaryStream(payload)
    fields: Dict[str, List[Tuple[str, str]]] = {}

    field_count = stream.read_uleb128()
    for _ in range(field_count):
        field_name = stream.read_name()
        value_count = stream.read_uleb128()
        values = fields.setdefault(field_name, [])
        for _ in range(value_count):
            name = stream.read_name()
            version = stream.read_name()
            values.append((name, version))

    if not stream.at_end:
        raise WasmDecodeError(f"{stream.remaining} trailing bytes after producers fields")
    return fields


def decode_function_names(payload: bytes) -> List[str]:
    """Decode the function names of a ``name`` section payload, in index order
    as stored.

    Decoding stops at the function-name subsection, so damage in the
    subsections that follow it does not discard names already read."""
    stream = BinaryStream(payload)

    while not stream.at_end:
        subsection_id = stream.read_byte()
        size = stream.read_uleb128()
        subsection = stream.sub_stream(size)
        if subsection_id != NAME_SUBSECTION_FUNCTIONS:
            continue

        names: List[str] = []
        count = subsection.read_uleb128()
        for _ in range(count):
            subsection.read_uleb128()  # function index
            names.append(subsection.read_name())
        return names

    return []
