#!/usr/bin/env python3
"""Setup script for the WebAssembly toolchain classifier."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

setup(
    name="wasm-classifier",
    version="0.1.0",
    author="wasm-classifier contributors",
    description="Classify WebAssembly modules by the toolchain that produced them",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "wasm_classifier_py": ["config.json"],
        "wasm_classifier_py.classifier": ["signatures.json"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Disassemblers",
    ],
    python_requires=">=3.8",
    install_requires=[
        # No external dependencies for core functionality
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "mypy>=1.0",
            "flask>=2.2",
        ],
        "server": [
            "flask>=2.2",  # Brings werkzeug
        ],
    },
    entry_points={
        "console_scripts": [
            "wasm-classifier=wasm_classifier_py.cli:main",
        ],
    },
)
