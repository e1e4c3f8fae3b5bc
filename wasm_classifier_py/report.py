"""
Aggregate reporting over a batch of classification results.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, TextIO

from .classifier.labels import Label, ClassificationResult


@dataclass
class Summary:
    """Counts by label for a batch."""
    counts: Dict[Label, int] = field(default_factory=lambda: {label: 0 for label in Label})
    total: int = 0

    @property
    def unclassified(self) -> int:
        return sum(count for label, count in self.counts.items() if label.is_unclassified)

    @property
    def unclassified_percent(self) -> float:
        """Share of Unknown and UnknownCompressed results, 0 for an empty batch."""
        if self.total == 0:
            return 0.0
        return self.unclassified * 100.0 / self.total

    def add(self, result: ClassificationResult) -> None:
        self.counts[result.label] += 1
        self.total += 1

    def to_dict(self) -> Dict[str, object]:
        return {
            'counts': {label.value: count for label, count in self.counts.items()},
            'total': self.total,
            'unclassifiedPercent': round(self.unclassified_percent, 2),
        }

    def write(self, out: TextIO) -> None:
        """Write the counts and unclassified share in console form."""
        counts = ', '.join(f"{label.value}: {count}" for label, count in self.counts.items() if count)
        out.write(f"{{{counts}}}\n")
        out.write(f"{self.unclassified_percent:.0f}% unclassified\n")


def summarize(results: Iterable[ClassificationResult]) -> Summary:
    """
    Tally results by label.

    Args:
        results: Classification results, in any order

    Returns:
        Summary with every label present, zero-filled
    """
    summary = Summary()
    for result in results:
        summary.add(result)
    return summary

