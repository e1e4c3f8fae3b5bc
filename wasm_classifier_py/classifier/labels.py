"""
Classification labels and results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Label(Enum):
    """Toolchain labels. The set is closed."""
    RUST = "Rust"
    ASSEMBLYSCRIPT = "AssemblyScript"
    GO = "Go"
    EMSCRIPTEN = "Emscripten"
    UNKNOWN_COMPRESSED = "UnknownCompressed"
    UNKNOWN = "Unknown"

    @property
    def is_unclassified(self) -> bool:
        return self in (Label.UNKNOWN, Label.UNKNOWN_COMPRESSED)

    @classmethod
    def from_name(cls, name: str) -> 'Label':
        """Look up a label by its display value (``"Rust"``) or member name
        (``"RUST"``)."""
        for label in cls:
            if name in (label.value, label.name):
                return label
        raise ValueError(f"Unknown label: {name!r}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of classifying one module.

    Attributes:
        label: The toolchain label
        matched_rule: Identifier of the rule that fired, None on fallback
        evidence: Description of the marker that fired
    """
    label: Label
    matched_rule: Optional[str] = None
    evidence: Optional[str] = None
