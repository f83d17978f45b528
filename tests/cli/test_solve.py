"""Tests for ``vsolve solve`` command.

Verifies:
    - Resolving a solvable index (exit code 0).
    - Resolving an unsatisfiable index (exit code 1).
    - Unreadable indexes and bad root versions (exit code 2).
    - JSON output format.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from vsolve.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


class TestSolveSuccess:
    """Tests for indexes that have a solution."""

    def test_exits_with_code_0(self, runner: CliRunner, solvable_index: Path) -> None:
        """A solvable index should exit with code 0."""
        result = runner.invoke(cli, ["solve", str(solvable_index), "root", "1.0.0"])
        assert result.exit_code == 0

    def test_text_output_lists_versions(
        self, runner: CliRunner, solvable_index: Path
    ) -> None:
        """The text report shows every selected package and a count."""
        result = runner.invoke(cli, ["solve", str(solvable_index), "root", "1.0.0"])
        assert "Resolved Versions" in result.output
        assert "1.5.0" in result.output
        assert "3 packages resolved" in result.output

    def test_json_output(self, runner: CliRunner, solvable_index: Path) -> None:
        """JSON output maps package names to version strings."""
        result = runner.invoke(
            cli, ["solve", str(solvable_index), "root", "1.0.0", "--format", "json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data == {
            "success": True,
            "solution": {"a": "1.0.0", "b": "1.5.0", "root": "1.0.0"},
        }

    def test_json_index_file(self, runner: CliRunner, json_index: Path) -> None:
        """Indexes ending in .json are read as JSON."""
        result = runner.invoke(
            cli, ["solve", str(json_index), "root", "1.0.0", "--format", "json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["solution"]["tool"] == "1.4.2"

    def test_verbose_still_succeeds(self, runner: CliRunner, solvable_index: Path) -> None:
        """--verbose only adds logging."""
        result = runner.invoke(
            cli, ["solve", str(solvable_index), "root", "1.0.0", "--verbose"]
        )
        assert result.exit_code == 0
        assert "packages resolved" in result.output


class TestSolveNoSolution:
    """Tests for unsatisfiable indexes."""

    def test_exits_with_code_1(self, runner: CliRunner, unsolvable_index: Path) -> None:
        """An unsatisfiable index should exit with code 1."""
        result = runner.invoke(cli, ["solve", str(unsolvable_index), "root", "1.0.0"])
        assert result.exit_code == 1

    def test_text_output_explains(
        self, runner: CliRunner, unsolvable_index: Path
    ) -> None:
        """The text report is a tree of the facts behind the failure."""
        result = runner.invoke(cli, ["solve", str(unsolvable_index), "root", "1.0.0"])
        assert "No solution" in result.output
        assert "depends on c" in result.output

    def test_json_output_lists_facts(
        self, runner: CliRunner, unsolvable_index: Path
    ) -> None:
        """JSON output lists the external facts as sentences."""
        result = runner.invoke(
            cli, ["solve", str(unsolvable_index), "root", "1.0.0", "--format", "json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["success"] is False
        assert any(fact.startswith("a ") and "depends on c" in fact for fact in data["facts"])
        assert any(fact.startswith("b ") and "depends on c" in fact for fact in data["facts"])

    def test_unknown_root_version(self, runner: CliRunner, solvable_index: Path) -> None:
        """Asking for a root version the index lacks has no solution."""
        result = runner.invoke(
            cli, ["solve", str(solvable_index), "root", "9.0.0", "--format", "json"]
        )
        assert result.exit_code == 1
        assert json.loads(result.output)["facts"] == [
            "there is no version of root in ==9.0.0"
        ]


class TestSolveErrors:
    """Tests for inputs that cannot be read."""

    def test_nonexistent_index(self, runner: CliRunner) -> None:
        """Click rejects a missing index file before the command runs."""
        result = runner.invoke(cli, ["solve", "/nonexistent/index.yaml", "root", "1.0.0"])
        assert result.exit_code == 2

    def test_malformed_index(self, runner: CliRunner, malformed_index: Path) -> None:
        """A YAML parse error is reported with exit code 2."""
        result = runner.invoke(cli, ["solve", str(malformed_index), "root", "1.0.0"])
        assert result.exit_code == 2
        assert "Error:" in result.output

    def test_bad_constraint_json(
        self, runner: CliRunner, bad_constraint_index: Path
    ) -> None:
        """JSON mode reports errors as a JSON object."""
        result = runner.invoke(
            cli, ["solve", str(bad_constraint_index), "root", "1.0.0", "--format", "json"]
        )
        assert result.exit_code == 2
        assert "error" in json.loads(result.output)

    def test_bad_root_version(self, runner: CliRunner, solvable_index: Path) -> None:
        """A root version that is not a semantic version exits with code 2."""
        result = runner.invoke(cli, ["solve", str(solvable_index), "root", "one"])
        assert result.exit_code == 2
        assert "Invalid semantic version" in result.output

    def test_missing_arguments(self, runner: CliRunner) -> None:
        """solve without arguments shows usage."""
        result = runner.invoke(cli, ["solve"])
        assert result.exit_code == 2
        assert "Missing argument" in result.output or "Usage" in result.output
