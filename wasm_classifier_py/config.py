"""
Configuration handling for the WebAssembly classifier.
"""

from dataclasses import dataclass, field, fields as dataclass_fields
from typing import Any, Dict, List, Optional
import json
from pathlib import Path


def _to_camel(key: str) -> str:
    head, *rest = key.split('_')
    return head + ''.join(word.capitalize() for word in rest)


@dataclass
class Config:
    """Configuration options for the WebAssembly classifier."""

    # Signature catalog override; the packaged catalog is used when empty
    signatures_path: str = ""

    # Batch options
    workers: int = 4
    recursive: bool = False
    extensions: List[str] = field(default_factory=list)  # empty means every file
    max_file_size: int = 256 * 1024 * 1024

    # Output options
    show_rules: bool = False

    # Server options
    max_upload_size: int = 64 * 1024 * 1024

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a camelCase JSON file.

        Unknown keys are ignored and a missing file gives the defaults.

        Raises:
            ValueError: If the file is not a JSON object or a known option
                has the wrong type
        """
        if path is None:
            path = Path(__file__).parent / 'config.json'

        if not path.exists():
            return cls()

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a JSON object, got {type(data).__name__}")

        defaults = cls()
        options = {}
        for f in dataclass_fields(cls):
            key = _to_camel(f.name)
            if key not in data:
                continue
            value = data[key]
            _check_type(key, value, getattr(defaults, f.name))
            options[f.name] = list(value) if isinstance(value, list) else value

        return cls(**options)

    def to_dict(self) -> Dict[str, Any]:
        return {_to_camel(f.name): getattr(self, f.name) for f in dataclass_fields(self)}

    def save(self, path: Path) -> None:
        """Save configuration to a camelCase JSON file."""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)

    @property
    def signatures_file(self) -> Optional[Path]:
        return Path(self.signatures_path) if self.signatures_path else None


def _check_type(key: str, value: Any, default: Any) -> None:
    """Reject a config value whose JSON type differs from the option's."""
    if isinstance(default, bool):
        ok = isinstance(value, bool)
    elif isinstance(default, int):
        # bool is an int subclass
        ok = isinstance(value, int) and not isinstance(value, bool) and value >= 0
    elif isinstance(default, list):
        ok = isinstance(value, list) and all(isinstance(item, str) for item in value)
    else:
        ok = isinstance(value, type(default))
    if not ok:
        raise ValueError(f"Bad value for config option {key!r}: {value!r}")
