"""
Detection rules.

Each rule is a pure predicate over a ModuleView. Rules share a RuleContext
for the duration of a single classify call so that optional custom sections
(producers, name) are decoded at most once, and only when a rule asks.
"""

from abc import ABC, abstractmethod
from functools import cached_property
from typing import Iterator, List, Optional, Tuple, Union

from ..formats.metadata import (
    decode_producers, decode_function_names, PRODUCERS_SECTION, NAME_SECTION,
)
from ..formats.wasm_structures import ModuleView, DecodeStatus
from ..io.binary_stream import StreamError
from .labels import Label
from .signatures import (
    Signature, CompressionSignature, SignatureCatalog,
    TARGET_IMPORT_MODULE, TARGET_IMPORT_FIELD, TARGET_EXPORT_NAME, TARGET_SYMBOL,
    TARGET_CUSTOM_SECTION_NAME, TARGET_CUSTOM_SECTION_PAYLOAD,
    TARGET_PRODUCER, TARGET_FUNCTION_NAME,
)


class RuleContext:
    """Call-local access to the parts of a view that rules test."""

    def __init__(self, view: ModuleView):
        self.view = view

    @cached_property
    def producer_names(self) -> List[str]:
        """Tool names listed in every decodable producers section."""
        names = []
        for section in self.view.custom_sections_named(PRODUCERS_SECTION):
            try:
                fields = decode_producers(section.payload)
            except StreamError:
                continue
            for values in fields.values():
                names.extend(name for name, _ in values)
        return names

    @cached_property
    def function_names(self) -> List[str]:
        names = []
        for section in self.view.custom_sections_named(NAME_SECTION):
            try:
                names.extend(decode_function_names(section.payload))
            except StreamError:
                continue
        return names

    def candidates(self, target: str) -> Iterator[Union[str, bytes]]:
        """Values a marker with the given target is tested against."""
        view = self.view
        if target == TARGET_IMPORT_MODULE:
            return (entry.module for entry in view.imports)
        if target == TARGET_IMPORT_FIELD:
            return (entry.field for entry in view.imports)
        if target == TARGET_EXPORT_NAME:
            return (export.name for export in view.exports)
        if target == TARGET_SYMBOL:
            return view.symbol_names()
        if target == TARGET_CUSTOM_SECTION_NAME:
            return (section.name for section in view.custom_sections)
        if target == TARGET_CUSTOM_SECTION_PAYLOAD:
            return (section.payload for section in view.custom_sections)
        if target == TARGET_PRODUCER:
            return iter(self.producer_names)
        if target == TARGET_FUNCTION_NAME:
            return iter(self.function_names)
        return iter(())


class Rule(ABC):
    """
    A detection rule.

    Attributes:
        rule_id: Identifier reported as the matched rule
        label: Label produced when the rule fires
    """

    rule_id: str
    label: Label

    @abstractmethod
    def match(self, context: RuleContext) -> Optional[str]:
        """Return a description of the evidence if the rule fires, else None."""


class CompressedInputRule(Rule):
    """Recognises buffers that failed the magic check because they are still
    compressed."""

    rule_id = 'compressed'
    label = Label.UNKNOWN_COMPRESSED

    def __init__(self, signatures: Tuple[CompressionSignature, ...]):
        self.signatures = signatures

    def match(self, context: RuleContext) -> Optional[str]:
        view = context.view
        if view.decode_status is not DecodeStatus.INVALID_MAGIC:
            return None
        for signature in self.signatures:
            if view.header.startswith(signature.magic):
                return f"{signature.name} magic {signature.magic.hex()}"
        return None


class SignatureRule(Rule):
    """Fires when any marker of a toolchain signature matches."""

    def __init__(self, signature: Signature):
        self.signature = signature
        self.rule_id = signature.rule_id
        self.label = signature.label

    def match(self, context: RuleContext) -> Optional[str]:
        for marker in self.signature.markers:
            for candidate in context.candidates(marker.target):
                if marker.matches(candidate):
                    if isinstance(candidate, bytes):
                        return marker.describe()
                    return f"{marker.describe()} ({candidate})"
        return None

    def __repr__(self) -> str:
        return f"SignatureRule({self.rule_id!r}, {self.label})"


def build_rules(catalog: SignatureCatalog) -> Tuple[Rule, ...]:
    """Rules in priority order: compression filter first, then the catalog's
    signatures in the order they are listed."""
    rules: List[Rule] = [CompressedInputRule(catalog.compression)]
    rules.extend(SignatureRule(signature) for signature in catalog.signatures)
    return tuple(rules)
