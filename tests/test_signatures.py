"""Unit tests for the signature catalog and markers."""
import json

import pytest

from wasm_classifier_py.classifier.labels import Label
from wasm_classifier_py.classifier.signatures import (
    SignatureCatalog, Marker, default_catalog, DEFAULT_SIGNATURES_PATH,
)


def _catalog(rules=None, compression=None):
    return {
        "compression": compression or [],
        "rules": rules if rules is not None else [
            {"id": "go", "label": "Go", "markers": [{"target": "import_module", "match": "exact", "value": "go"}]},
        ],
    }


class TestDefaultCatalog:
    def test_rule_priority_order(self):
        assert [s.rule_id for s in default_catalog().signatures] == ["emscripten", "go", "assemblyscript", "rust"]

    def test_labels(self):
        assert [s.label for s in default_catalog().signatures] == [
            Label.EMSCRIPTEN, Label.GO, Label.ASSEMBLYSCRIPT, Label.RUST,
        ]

    def test_compression_magics(self):
        magics = {c.name: c.magic for c in default_catalog().compression}
        assert magics["gzip"] == b"\x1f\x8b"
        assert magics["zip"] == b"PK\x03\x04"
        assert "brotli (framed)" in magics

    def test_loaded_once(self):
        assert default_catalog() is default_catalog()

    def test_packaged_file_is_valid_json(self):
        with open(DEFAULT_SIGNATURES_PATH, encoding="utf-8") as f:
            assert "rules" in json.load(f)


class TestCatalogValidation:
    def test_unknown_target(self):
        data = _catalog([{"id": "x", "label": "Go", "markers": [{"target": "nowhere", "value": "a"}]}])
        with pytest.raises(ValueError, match="target"):
            SignatureCatalog.from_dict(data)

    def test_unknown_match_mode(self):
        data = _catalog([{"id": "x", "label": "Go", "markers": [{"target": "symbol", "match": "fuzzy", "value": "a"}]}])
        with pytest.raises(ValueError, match="match mode"):
            SignatureCatalog.from_dict(data)

    def test_bad_regex(self):
        data = _catalog([{"id": "x", "label": "Go", "markers": [{"target": "symbol", "match": "regex", "value": "("}]}])
        with pytest.raises(ValueError, match="regex"):
            SignatureCatalog.from_dict(data)

    def test_unknown_label(self):
        data = _catalog([{"id": "x", "label": "Zig", "markers": [{"target": "symbol", "value": "a"}]}])
        with pytest.raises(ValueError, match="label"):
            SignatureCatalog.from_dict(data)

    def test_fallback_label_rejected(self):
        data = _catalog([{"id": "x", "label": "Unknown", "markers": [{"target": "symbol", "value": "a"}]}])
        with pytest.raises(ValueError, match="fallback"):
            SignatureCatalog.from_dict(data)

    def test_duplicate_rule_id(self):
        rule = {"id": "x", "label": "Go", "markers": [{"target": "symbol", "value": "a"}]}
        with pytest.raises(ValueError, match="Duplicate"):
            SignatureCatalog.from_dict(_catalog([rule, rule]))

    def test_rule_without_markers(self):
        with pytest.raises(ValueError, match="no markers"):
            SignatureCatalog.from_dict(_catalog([{"id": "x", "label": "Go", "markers": []}]))

    def test_bad_compression_magic(self):
        with pytest.raises(ValueError):
            SignatureCatalog.from_dict(_catalog(compression=[{"name": "bad", "magic": "zz"}]))

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            SignatureCatalog.from_dict([])

    def test_non_string_marker_value(self):
        data = _catalog([{"id": "go", "label": "Go",
                          "markers": [{"target": "symbol", "match": "contains", "value": 5}]}])
        with pytest.raises(ValueError, match="must be a string"):
            SignatureCatalog.from_dict(data)

    def test_non_boolean_ignore_case(self):
        data = _catalog([{"id": "go", "label": "Go",
                          "markers": [{"target": "symbol", "value": "a", "ignoreCase": "yes"}]}])
        with pytest.raises(ValueError, match="ignoreCase"):
            SignatureCatalog.from_dict(data)

    def test_rule_not_an_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            SignatureCatalog.from_dict(_catalog(["go"]))

    def test_rules_not_a_list(self):
        with pytest.raises(ValueError, match="JSON array"):
            SignatureCatalog.from_dict({"rules": {"go": {}}})

    def test_markers_not_a_list(self):
        data = _catalog([{"id": "go", "label": "Go", "markers": {"target": "symbol", "value": "a"}}])
        with pytest.raises(ValueError, match="JSON array"):
            SignatureCatalog.from_dict(data)

    def test_marker_not_an_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            SignatureCatalog.from_dict(_catalog([{"id": "go", "label": "Go", "markers": ["go"]}]))

    def test_compression_entry_not_an_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            SignatureCatalog.from_dict(_catalog(compression=["1f8b"]))

    def test_non_string_rule_id(self):
        data = _catalog([{"id": 7, "label": "Go", "markers": [{"target": "symbol", "value": "a"}]}])
        with pytest.raises(ValueError, match="id"):
            SignatureCatalog.from_dict(data)

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "signatures.json"
        default_catalog().save(path)
        assert SignatureCatalog.load(path) == default_catalog()


class TestMarker:
    def test_exact(self):
        marker = Marker.create("symbol", "exact", "__new")
        assert marker.matches("__new")
        assert not marker.matches("__new2")

    def test_prefix(self):
        assert Marker.create("symbol", "prefix", "runtime.").matches("runtime.wasmExit")

    def test_contains(self):
        assert Marker.create("symbol", "contains", "wbindgen").matches("__wbindgen_malloc")

    def test_ignore_case(self):
        marker = Marker.create("producer", "exact", "rustc", ignore_case=True)
        assert marker.matches("RustC")

    def test_regex(self):
        marker = Marker.create("symbol", "regex", r"^_ZN.*17h[0-9a-f]{16}E$")
        assert marker.matches("_ZN4core3fmt5write17h0123456789abcdefE")
        assert not marker.matches("_ZN4core3fmt5writeE")

    def test_payload_contains(self):
        marker = Marker.create("custom_section_payload", "contains", "assemblyscript", ignore_case=True)
        assert marker.matches(b"...AssemblyScript 0.27...")

    def test_payload_regex(self):
        marker = Marker.create("custom_section_payload", "regex", r"asc\s+\d")
        assert marker.matches(b"built by asc 0.27")

    def test_empty_value_rejected(self):
        with pytest.raises(ValueError):
            Marker.create("symbol", "exact", "")

    def test_describe(self):
        assert Marker.create("export_name", "exact", "__pin").describe() == "export_name exact '__pin'"
