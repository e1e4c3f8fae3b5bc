#!/usr/bin/env python3
"""
WebAssembly Classifier

Command-line interface for labelling WebAssembly modules by the toolchain
that produced them.

Usage:
    wasm-classifier <path>... [--config PATH] [--signatures PATH] [--workers N]
                    [--recursive] [--rules] [--json]
    wasm-classifier -h | --help
    wasm-classifier --version

Arguments:
    path               Module files, or directories of module files

Options:
    -h --help          Show this help message
    --version          Show version
"""

import sys
import json
import argparse
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__
from .config import Config
from .classifier.engine import Classifier
from .classifier.labels import ClassificationResult
from .classifier.signatures import SignatureCatalog
from .formats.wasm import parse
from .formats.wasm_structures import DecodeStatus
from .report import summarize


@dataclass
class FileResult:
    """Classification of one file, or the reason it could not be read."""
    path: Path
    result: Optional[ClassificationResult] = None
    decode_status: Optional[DecodeStatus] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'path': str(self.path)}
        if self.result is not None:
            data.update({
                'label': self.result.label.value,
                'matchedRule': self.result.matched_rule,
                'evidence': self.result.evidence,
                'decodeStatus': self.decode_status.value if self.decode_status else None,
            })
        else:
            data['error'] = self.error
        return data


def collect_files(paths: Sequence[str], config: Config) -> List[Path]:
    """
    Expand the command-line paths into a sorted list of module files.

    Args:
        paths: Files and/or directories
        config: Configuration (recursion and extension filter)

    Returns:
        Files in a stable order, without duplicates
    """
    extensions = {ext.lower() for ext in config.extensions}
    found = []

    for arg in paths:
        path = Path(arg)
        if path.is_file():
            found.append(path)
        elif path.is_dir():
            candidates = path.rglob('*') if config.recursive else path.iterdir()
            for candidate in candidates:
                if not candidate.is_file():
                    continue
                if extensions and candidate.suffix.lower() not in extensions:
                    continue
                found.append(candidate)
        else:
            print(f"WARNING: {path} does not exist, skipping")

    return sorted(set(found))


def classify_file(path: Path, classifier: Classifier, config: Config) -> FileResult:
    """Read and classify one file. Read failures are returned, not raised."""
    try:
        size = path.stat().st_size
        if size > config.max_file_size:
            return FileResult(path, error=f"file is {size:,} bytes, limit is {config.max_file_size:,}")
        data = path.read_bytes()
    except OSError as e:
        return FileResult(path, error=str(e))

    view = parse(data)
    return FileResult(path, classifier.classify(view), view.decode_status)


def classify_files(paths: List[Path], classifier: Classifier, config: Config) -> List[FileResult]:
    """Classify files in parallel. Results keep the input order."""
    workers = max(1, config.workers)
    if workers == 1 or len(paths) <= 1:
        return [classify_file(path, classifier, config) for path in paths]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda p: classify_file(p, classifier, config), paths))


def load_classifier(config: Config) -> Classifier:
    """Build a classifier from the configured signature catalog."""
    path = config.signatures_file
    if path is None:
        return Classifier()
    return Classifier(SignatureCatalog.load(path))


def print_results(results: List[FileResult], config: Config) -> None:
    """Print one line per module followed by the summary."""
    for item in results:
        if item.result is None:
            print(f"ERROR: {item.path}: {item.error}")
            continue
        line = f"{item.result.label}, {item.path}"
        if config.show_rules:
            line += f", {item.result.matched_rule or '-'}"
        print(line)

    summary = summarize(item.result for item in results if item.result is not None)
    print()
    summary.write(sys.stdout)


def print_json(results: List[FileResult]) -> None:
    summary = summarize(item.result for item in results if item.result is not None)
    print(json.dumps({
        'results': [item.to_dict() for item in results],
        'summary': summary.to_dict(),
    }, indent=2))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="WebAssembly Classifier - Label WebAssembly modules by source toolchain",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('paths', nargs='*', help='Module files and/or directories')
    parser.add_argument('--version', action='version', version=f'wasm-classifier {__version__}')
    parser.add_argument('--config', type=str, help='Path to config.json')
    parser.add_argument('--signatures', type=str, help='Path to a signature catalog JSON file')
    parser.add_argument('--workers', type=int, help='Number of worker threads')
    parser.add_argument('--recursive', action='store_true', default=None, help='Descend into subdirectories')
    parser.add_argument('--rules', action='store_true', default=None, help='Show the rule that matched')
    parser.add_argument('--json', action='store_true', help='Print results as JSON')

    args = parser.parse_args(argv)

    if not args.paths:
        parser.print_help()
        print("\nERROR: At least one module file or directory is required")
        return 1

    # Load config, command-line flags win
    config_path = Path(args.config) if args.config else None
    try:
        config = Config.load(config_path)
    except (OSError, ValueError, TypeError) as e:
        print(f"ERROR: Cannot load config: {e}")
        return 1

    if args.signatures:
        config.signatures_path = args.signatures
    if args.workers is not None:
        config.workers = args.workers
    if args.recursive is not None:
        config.recursive = args.recursive
    if args.rules is not None:
        config.show_rules = args.rules

    try:
        classifier = load_classifier(config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Cannot load signature catalog: {e}")
        return 1

    paths = collect_files(args.paths, config)
    if not paths:
        print("ERROR: No module files found")
        return 1

    results = classify_files(paths, classifier, config)

    if args.json:
        print_json(results)
    else:
        print_results(results, config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
