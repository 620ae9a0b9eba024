"""Unit tests for parameter manifest loading (create_lib.parameters).

Tests cover:
- load_parameters success, missing file, malformed JSON, wrong shape
- ParameterManifest.tokens / paths / path_index
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from create_lib.errors import ManifestNotFoundError, ManifestParseError
from create_lib.parameters import ParameterManifest, load_parameters


def _write_params(folder: Path, content: str) -> Path:
    path = folder / "template.parameters.json"
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# load_parameters
# ---------------------------------------------------------------------------

class TestLoadParameters:
    @pytest.mark.unit
    def test_loads_fixture_manifest(self, project_dir: Path):
        manifest = load_parameters(project_dir)
        assert manifest.root["{{REPO}}"] == ["a.txt", "README.md"]
        assert "UNKNOWN_TOKEN" in manifest.tokens()

    @pytest.mark.unit
    def test_missing_file_names_file_and_folder(self, tmp_path: Path):
        with pytest.raises(ManifestNotFoundError) as exc_info:
            load_parameters(tmp_path)
        message = str(exc_info.value)
        assert "template.parameters.json" in message
        assert str(tmp_path) in message
        assert exc_info.value.path == tmp_path / "template.parameters.json"

    @pytest.mark.unit
    def test_malformed_json_raises_parse_error(self, tmp_path: Path):
        _write_params(tmp_path, '{"{{REPO}}": ["a.txt",')
        with pytest.raises(ManifestParseError, match="Could not parse"):
            load_parameters(tmp_path)

    @pytest.mark.unit
    def test_top_level_array_rejected(self, tmp_path: Path):
        _write_params(tmp_path, '["a.txt"]')
        with pytest.raises(ManifestParseError, match="lists of file paths"):
            load_parameters(tmp_path)

    @pytest.mark.unit
    def test_non_list_value_rejected(self, tmp_path: Path):
        _write_params(tmp_path, json.dumps({"{{REPO}}": "a.txt"}))
        with pytest.raises(ManifestParseError):
            load_parameters(tmp_path)

    @pytest.mark.unit
    def test_empty_object_is_valid(self, tmp_path: Path):
        _write_params(tmp_path, "{}")
        manifest = load_parameters(tmp_path)
        assert manifest.tokens() == []
        assert manifest.path_index() == {}


# ---------------------------------------------------------------------------
# ParameterManifest
# ---------------------------------------------------------------------------

class TestPathIndex:
    @pytest.mark.unit
    def test_inverts_token_mapping(self):
        manifest = ParameterManifest(
            {"{{LIB_NAME}}": ["a.txt", "b.txt"], "{{REPO}}": ["a.txt"]}
        )
        assert manifest.path_index() == {
            "a.txt": ["{{LIB_NAME}}", "{{REPO}}"],
            "b.txt": ["{{LIB_NAME}}"],
        }

    @pytest.mark.unit
    def test_duplicate_path_under_one_token_listed_once(self):
        manifest = ParameterManifest({"{{REPO}}": ["a.txt", "a.txt"]})
        assert manifest.path_index() == {"a.txt": ["{{REPO}}"]}

    @pytest.mark.unit
    def test_paths_are_distinct_in_first_seen_order(self):
        manifest = ParameterManifest(
            {"X": ["c.txt", "a.txt"], "Y": ["a.txt", "b.txt"]}
        )
        assert manifest.paths() == ["c.txt", "a.txt", "b.txt"]

    @pytest.mark.unit
    def test_equivalent_spellings_merge(self):
        manifest = ParameterManifest(
            {
                "{{LIB_NAME}}": ["a.txt", "src/x.js"],
                "{{REPO}}": ["./a.txt", "src//x.js"],
            }
        )
        assert manifest.path_index() == {
            "a.txt": ["{{LIB_NAME}}", "{{REPO}}"],
            "src/x.js": ["{{LIB_NAME}}", "{{REPO}}"],
        }

    @pytest.mark.unit
    def test_parent_segments_kept_for_later_rejection(self):
        manifest = ParameterManifest({"X": ["a/../../x"]})
        assert manifest.paths() == ["a/../../x"]
