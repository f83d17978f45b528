"""Tests for loading offline package indexes from YAML and JSON."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from vsolve.core.index import load_index, provider_from_mapping
from vsolve.core.solver import resolve
from vsolve.core.versions import Ranges, SemanticVersion
from vsolve.exceptions import IndexLoadError


def _v(raw: str) -> SemanticVersion:
    return SemanticVersion.parse(raw)


# ===========================================================================
# Loading files
# ===========================================================================


class TestLoadIndex:
    """Tests for load_index on files."""

    def test_yaml_index(self, solvable_index: Path) -> None:
        """Versions are parsed and sorted; constraints become Ranges."""
        provider = load_index(solvable_index)
        assert provider.versions("a") == [_v("1.0.0"), _v("2.0.0")]
        assert provider.dependencies("a", _v("1.0.0")) == {
            "b": Ranges.between(_v("1.0.0"), _v("2.0.0"))
        }

    def test_null_dependencies_mean_none(self, solvable_index: Path) -> None:
        """A version with an empty YAML value has no dependencies."""
        provider = load_index(solvable_index)
        assert provider.dependencies("b", _v("2.1.0")) == {}

    def test_json_index(self, tmp_path: Path) -> None:
        path = tmp_path / "index.json"
        path.write_text(json.dumps({"root": {"1.0.0": {"a": "*"}}, "a": {"0.3.0": {}}}))
        provider = load_index(path)
        assert resolve(provider, "root", _v("1.0.0")) == {
            "root": _v("1.0.0"),
            "a": _v("0.3.0"),
        }

    def test_loaded_index_resolves(self, solvable_index: Path) -> None:
        provider = load_index(str(solvable_index))
        assert resolve(provider, "root", _v("1.0.0")) == {
            "root": _v("1.0.0"),
            "a": _v("1.0.0"),
            "b": _v("1.5.0"),
        }

    def test_empty_file_is_an_empty_index(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_index(path).packages() == []


# ===========================================================================
# Errors
# ===========================================================================


class TestLoadIndexErrors:
    """Every malformed index raises IndexLoadError."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(IndexLoadError, match="Cannot read"):
            load_index(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("root: [unclosed\n")
        with pytest.raises(IndexLoadError, match="Malformed"):
            load_index(path)

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(IndexLoadError, match="Malformed"):
            load_index(path)

    def test_top_level_must_be_mapping(self) -> None:
        with pytest.raises(IndexLoadError):
            provider_from_mapping(["root"])

    def test_versions_must_be_mapping(self) -> None:
        with pytest.raises(IndexLoadError, match="must map versions"):
            provider_from_mapping({"root": ["1.0.0"]})

    def test_dependencies_must_be_mapping(self) -> None:
        with pytest.raises(IndexLoadError, match="must be a mapping"):
            provider_from_mapping({"root": {"1.0.0": ["a"]}})

    def test_invalid_version(self) -> None:
        with pytest.raises(IndexLoadError, match="root not-a-version"):
            provider_from_mapping({"root": {"not-a-version": {}}})

    def test_invalid_constraint_is_chained(self) -> None:
        with pytest.raises(IndexLoadError) as excinfo:
            provider_from_mapping({"root": {"1.0.0": {"a": ">=oops"}}})
        assert excinfo.value.__cause__ is not None

    def test_duplicate_version_after_parsing(self) -> None:
        """Spellings that parse to the same version do not overwrite each other."""
        with pytest.raises(IndexLoadError, match="listed more than once"):
            provider_from_mapping({"a": {"1.0": {}, "1.0.0-beta": {"b": "*"}}})
