"""
WebAssembly container parsing.

Supports:
- Module header validation (magic and version)
- Import, export and custom section extraction
- On-demand decoding of producers and name custom sections
"""

from .wasm import WasmReader, parse
from .metadata import decode_producers, decode_function_names
from .wasm_structures import *

__all__ = [
    'WasmReader', 'parse', 'decode_producers', 'decode_function_names',
    'ModuleView', 'ImportEntry', 'ExportEntry', 'CustomSection',
    'DecodeStatus', 'ExternalKind', 'WasmSectionId', 'WasmDecodeError',
]
