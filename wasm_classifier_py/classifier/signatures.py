"""
Signature catalog.

The catalog is data: an ordered list of toolchain signatures, each a list of
markers, plus the compression magics used to recognise still-compressed
downloads. It is read from JSON so it can be maintained and tested apart
from the rule engine.
"""

import json
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .labels import Label


DEFAULT_SIGNATURES_PATH = Path(__file__).parent / 'signatures.json'

# Where a marker looks
TARGET_IMPORT_MODULE = 'import_module'
TARGET_IMPORT_FIELD = 'import_field'
TARGET_EXPORT_NAME = 'export_name'
TARGET_SYMBOL = 'symbol'
TARGET_CUSTOM_SECTION_NAME = 'custom_section_name'
TARGET_CUSTOM_SECTION_PAYLOAD = 'custom_section_payload'
TARGET_PRODUCER = 'producer'
TARGET_FUNCTION_NAME = 'function_name'

TARGETS = (
    TARGET_IMPORT_MODULE, TARGET_IMPORT_FIELD, TARGET_EXPORT_NAME, TARGET_SYMBOL,
    TARGET_CUSTOM_SECTION_NAME, TARGET_CUSTOM_SECTION_PAYLOAD,
    TARGET_PRODUCER, TARGET_FUNCTION_NAME,
)

# How a marker compares
MATCH_EXACT = 'exact'
MATCH_PREFIX = 'prefix'
MATCH_CONTAINS = 'contains'
MATCH_REGEX = 'regex'

MATCH_MODES = (MATCH_EXACT, MATCH_PREFIX, MATCH_CONTAINS, MATCH_REGEX)


@dataclass(frozen=True)
class Marker:
    """A single name or payload test."""
    target: str
    match: str
    value: str
    ignore_case: bool = False
    _pattern: Optional[re.Pattern] = field(default=None, compare=False, repr=False)

    @classmethod
    def create(cls, target: str, match: str, value: str, ignore_case: bool = False) -> 'Marker':
        """Validate and build a marker, compiling regexes up front."""
        if target not in TARGETS:
            raise ValueError(f"Unknown marker target: {target!r}")
        if match not in MATCH_MODES:
            raise ValueError(f"Unknown match mode: {match!r}")
        if not isinstance(value, str):
            raise ValueError(f"Marker value for target {target!r} must be a string, got {value!r}")
        if not value:
            raise ValueError(f"Empty marker value for target {target!r}")
        if not isinstance(ignore_case, bool):
            raise ValueError(f"Marker ignoreCase must be true or false, got {ignore_case!r}")

        pattern = None
        if match == MATCH_REGEX:
            flags = re.IGNORECASE if ignore_case else 0
            source: Union[str, bytes] = value
            if target == TARGET_CUSTOM_SECTION_PAYLOAD:
                source = value.encode('utf-8')
            try:
                pattern = re.compile(source, flags)
            except re.error as e:
                raise ValueError(f"Invalid marker regex {value!r}: {e}")

        return cls(target, match, value, ignore_case, pattern)

    def matches(self, candidate: Union[str, bytes]) -> bool:
        """Test one candidate string (or payload for payload markers)."""
        if self._pattern is not None:
            return self._pattern.search(candidate) is not None

        needle: Union[str, bytes] = self.value
        if isinstance(candidate, bytes):
            needle = self.value.encode('utf-8')
        if self.ignore_case:
            needle = needle.lower()
            candidate = candidate.lower()

        if self.match == MATCH_EXACT:
            return candidate == needle
        if self.match == MATCH_PREFIX:
            return candidate.startswith(needle)
        return needle in candidate

    def describe(self) -> str:
        return f"{self.target} {self.match} {self.value!r}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'target': self.target, 'match': self.match, 'value': self.value}
        if self.ignore_case:
            data['ignoreCase'] = True
        return data


@dataclass(frozen=True)
class Signature:
    """Markers identifying one toolchain."""
    rule_id: str
    label: Label
    markers: Tuple[Marker, ...]


@dataclass(frozen=True)
class CompressionSignature:
    """Leading magic bytes of a compression or archive format."""
    name: str
    magic: bytes


@dataclass(frozen=True)
class SignatureCatalog:
    """
    Ordered toolchain signatures and compression magics.

    Signature order is rule priority: the first signature that matches a
    module decides its label.
    """
    signatures: Tuple[Signature, ...]
    compression: Tuple[CompressionSignature, ...]

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'SignatureCatalog':
        """Load a catalog from a JSON file, the packaged one by default."""
        if path is None:
            path = DEFAULT_SIGNATURES_PATH

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignatureCatalog':
        """
        Build a catalog from its JSON form.

        Raises:
            ValueError: If the catalog is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Signature catalog must be a JSON object")

        compression = []
        for entry in _list_of_objects(data, 'compression', "compression signature"):
            try:
                magic = bytes.fromhex(entry['magic'])
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Bad compression signature {entry!r}: {e}")
            if not magic:
                raise ValueError(f"Empty compression magic for {entry.get('name')!r}")
            name = entry.get('name', magic.hex())
            if not isinstance(name, str):
                raise ValueError(f"Compression signature name must be a string: {entry!r}")
            compression.append(CompressionSignature(name, magic))

        signatures = []
        seen_ids = set()
        for entry in _list_of_objects(data, 'rules', "signature rule"):
            rule_id = entry.get('id')
            if not rule_id or not isinstance(rule_id, str):
                raise ValueError(f"Signature rule without an id: {entry!r}")
            if rule_id in seen_ids:
                raise ValueError(f"Duplicate signature rule id: {rule_id!r}")
            seen_ids.add(rule_id)

            label = Label.from_name(entry.get('label', ''))
            if label.is_unclassified:
                raise ValueError(f"Rule {rule_id!r} cannot produce fallback label {label}")

            markers = tuple(
                Marker.create(
                    m.get('target', ''),
                    m.get('match', MATCH_EXACT),
                    m.get('value', ''),
                    m.get('ignoreCase', False),
                )
                for m in _list_of_objects(entry, 'markers', f"marker of rule {rule_id!r}")
            )
            if not markers:
                raise ValueError(f"Rule {rule_id!r} has no markers")

            signatures.append(Signature(rule_id, label, markers))

        return cls(tuple(signatures), tuple(compression))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'compression': [{'name': c.name, 'magic': c.magic.hex()} for c in self.compression],
            'rules': [
                {
                    'id': s.rule_id,
                    'label': s.label.value,
                    'markers': [m.to_dict() for m in s.markers],
                }
                for s in self.signatures
            ],
        }

    def save(self, path: Path) -> None:
        """Save the catalog as JSON."""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)


def _list_of_objects(data: Dict[str, Any], key: str, what: str) -> List[Dict[str, Any]]:
    """Fetch an optional JSON array whose items must all be objects."""
    items = data.get(key, [])
    if not isinstance(items, list):
        raise ValueError(f"{key!r} must be a JSON array, got {items!r}")
    for item in items:
        if not isinstance(item, dict):
            raise ValueError(f"Each {what} must be a JSON object, got {item!r}")
    return items


@lru_cache(maxsize=1)
def default_catalog() -> SignatureCatalog:
    """The packaged catalog, loaded once. Catalogs are immutable."""
    return SignatureCatalog.load()
