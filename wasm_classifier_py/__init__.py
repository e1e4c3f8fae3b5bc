"""
WebAssembly Classifier
Labels compiled WebAssembly modules by the toolchain that produced them
(Rust, AssemblyScript, Go, Emscripten) using only signals in the binary.
"""

__version__ = "0.1.0"
__author__ = "wasm-classifier contributors"

from .config import Config
from .formats.wasm import parse
from .formats.wasm_structures import ModuleView, DecodeStatus
from .classifier import Label, ClassificationResult, Classifier, SignatureCatalog, classify, classify_bytes

__all__ = [
    'Config', 'parse', 'ModuleView', 'DecodeStatus',
    'Label', 'ClassificationResult', 'Classifier', 'SignatureCatalog',
    'classify', 'classify_bytes', '__version__',
]
