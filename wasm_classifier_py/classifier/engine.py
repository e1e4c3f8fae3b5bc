"""
Rule chain classifier.
"""

from functools import lru_cache
from typing import Optional, Tuple

from ..formats.wasm import parse
from ..formats.wasm_structures import ModuleView
from .labels import Label, ClassificationResult
from .rules import Rule, RuleContext, build_rules
from .signatures import SignatureCatalog, default_catalog


class Classifier:
    """
    Maps a ModuleView to a toolchain label.

    Rules are evaluated in a fixed order and the first one that fires decides
    the label. When none fires the result is Unknown with no matched rule.
    A Classifier holds no per-module state and can be shared between threads.
    """

    def __init__(self, catalog: Optional[SignatureCatalog] = None):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.rules: Tuple[Rule, ...] = build_rules(self.catalog)

    def classify(self, view: ModuleView) -> ClassificationResult:
        context = RuleContext(view)
        for rule in self.rules:
            evidence = rule.match(context)
            if evidence is not None:
                return ClassificationResult(rule.label, rule.rule_id, evidence)
        return ClassificationResult(Label.UNKNOWN)

    def classify_bytes(self, data: bytes) -> ClassificationResult:
        """Parse and classify a raw module."""
        return self.classify(parse(data))


@lru_cache(maxsize=1)
def default_classifier() -> Classifier:
    return Classifier()


def classify(view: ModuleView) -> ClassificationResult:
    """Classify a view with the packaged signature catalog."""
    return default_classifier().classify(view)


def classify_bytes(data: bytes) -> ClassificationResult:
    """Parse and classify raw module bytes with the packaged signature catalog."""
    return default_classifier().classify_bytes(data)
