"""
Toolchain classification: labels, signature catalog, rules and engine.
"""

from .labels import Label, ClassificationResult
from .signatures import SignatureCatalog, Signature, Marker, CompressionSignature, default_catalog
from .rules import Rule, RuleContext, CompressedInputRule, SignatureRule, build_rules
from .engine import Classifier, classify, classify_bytes

__all__ = [
    'Label', 'ClassificationResult',
    'SignatureCatalog', 'Signature', 'Marker', 'CompressionSignature', 'default_catalog',
    'Rule', 'RuleContext', 'CompressedInputRule', 'SignatureRule', 'build_rules',
    'Classifier', 'classify', 'classify_bytes',
]
