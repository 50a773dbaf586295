"""
Tests for settings validation and user-map loading.
"""

import json

import pytest

from config import Settings
from errors import ConfigurationError


@pytest.fixture
def complete_settings(monkeypatch):
    for name, value in {
        "SOURCE_ORG_URL": "https://tfs.example.com/tfs/DefaultCollection",
        "SOURCE_PAT": "source-pat",
        "SOURCE_PROJECT": "ProjA",
        "TARGET_ORG_URL": "https://dev.azure.com/contoso",
        "TARGET_PAT": "target-pat",
        "TARGET_PROJECT": "ProjB",
        "REQUEST_TIMEOUT": 30.0,
    }.items():
        monkeypatch.setattr(Settings, name, value)


class TestValidate:
    def test_complete_settings_pass(self, complete_settings):
        Settings.validate()

    def test_missing_values_are_listed(self, complete_settings, monkeypatch):
        monkeypatch.setattr(Settings, "SOURCE_PAT", "")
        monkeypatch.setattr(Settings, "TARGET_PROJECT", "")

        with pytest.raises(ConfigurationError) as excinfo:
            Settings.validate()

        assert "SOURCE_PAT" in str(excinfo.value)
        assert "TARGET_PROJECT" in str(excinfo.value)

    def test_non_positive_timeout_is_rejected(self, complete_settings, monkeypatch):
        monkeypatch.setattr(Settings, "REQUEST_TIMEOUT", 0.0)

        with pytest.raises(ConfigurationError, match="REQUEST_TIMEOUT"):
            Settings.validate()


class TestLoadUserMap:
    def test_object_format(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps({"James Schaffer": "Schaffer, James"}), encoding="utf-8")

        assert Settings.load_user_map(path) == {"James Schaffer": "Schaffer, James"}

    def test_pairs_format(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps([["A B", "B, A"], ["C D", "D, C"]]), encoding="utf-8")

        assert Settings.load_user_map(str(path)) == {"A B": "B, A", "C D": "D, C"}

    @pytest.mark.parametrize("path", [None, ""])
    def test_no_path_means_empty_map(self, path):
        assert Settings.load_user_map(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            Settings.load_user_map(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="not valid JSON"):
            Settings.load_user_map(path)

    @pytest.mark.parametrize("content", ['"just a string"', '[["only one"]]', '[["a", 1]]'])
    def test_malformed_entries(self, tmp_path, content):
        path = tmp_path / "users.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationError):
            Settings.load_user_map(path)
