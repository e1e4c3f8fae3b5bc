"""Unit tests for Config loading and saving."""
import json

import pytest

from wasm_classifier_py.config import Config


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert Config.load(tmp_path / "absent.json") == Config()

    def test_packaged_config_matches_defaults(self):
        assert Config.load() == Config()

    def test_camel_case_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"workers": 8, "showRules": True, "maxFileSize": 1024}))
        config = Config.load(path)
        assert config.workers == 8
        assert config.show_rules is True
        assert config.max_file_size == 1024

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"dumpMethod": False, "recursive": True}))
        config = Config.load(path)
        assert config.recursive is True
        assert not hasattr(config, "dump_method")

    def test_save_uses_camel_case(self, tmp_path):
        path = tmp_path / "config.json"
        Config(signatures_path="sigs.json", extensions=[".wasm"]).save(path)
        data = json.loads(path.read_text())
        assert data["signaturesPath"] == "sigs.json"
        assert data["maxUploadSize"] == Config().max_upload_size
        assert Config.load(path) == Config(signatures_path="sigs.json", extensions=[".wasm"])

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps([{"workers": 2}]))
        with pytest.raises(ValueError, match="JSON object"):
            Config.load(path)

    @pytest.mark.parametrize("key, value", [
        ("workers", "4"),
        ("workers", True),
        ("maxFileSize", -1),
        ("recursive", "yes"),
        ("extensions", ".wasm"),
        ("extensions", [1]),
        ("signaturesPath", None),
    ])
    def test_wrong_value_type(self, tmp_path, key, value):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({key: value}))
        with pytest.raises(ValueError, match=key):
            Config.load(path)

    def test_signatures_file(self):
        assert Config().signatures_file is None
        assert str(Config(signatures_path="x.json").signatures_file) == "x.json"
