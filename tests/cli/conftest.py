"""Shared fixtures for CLI tests.

Provides index files in the formats the ``solve`` command accepts (YAML and
JSON) plus broken ones for the error paths. The solvable and unsolvable
YAML indexes live in the top-level conftest.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture
def json_index(tmp_path: Path) -> Path:
    """A JSON index where root needs any version of ``tool`` below 2."""
    path = tmp_path / "index.json"
    path.write_text(json.dumps({
        "root": {"1.0.0": {"tool": "<2.0.0"}},
        "tool": {"1.0.0": {}, "1.4.2": {}, "2.0.0": {}},
    }))
    return path


@pytest.fixture
def malformed_index(tmp_path: Path) -> Path:
    """A YAML file that does not parse."""
    path = tmp_path / "broken.yaml"
    path.write_text("root: {1.0.0: [\n")
    return path


@pytest.fixture
def bad_constraint_index(tmp_path: Path) -> Path:
    """A well-formed YAML index holding an invalid constraint."""
    path = tmp_path / "bad-constraint.yaml"
    path.write_text('root:\n  "1.0.0":\n    a: ">>1"\n')
    return path
