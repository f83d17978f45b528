"""Tests for constraint-string parsing."""

from __future__ import annotations

import pytest

from vsolve.core.versions import Ranges, SemanticVersion, parse_constraint
from vsolve.exceptions import ConstraintError


def _v(raw: str) -> SemanticVersion:
    return SemanticVersion.parse(raw)


def _accepted(constraint: str, candidates: list[str]) -> list[str]:
    ranges = parse_constraint(constraint)
    return [c for c in candidates if _v(c) in ranges]


CANDIDATES = ["0.1.0", "0.1.5", "0.2.0", "1.0.0", "1.2.3", "1.2.9", "1.3.0", "2.0.0", "3.1.0"]


# ===========================================================================
# Operators
# ===========================================================================


class TestOperators:
    """One test per supported operator."""

    def test_wildcard(self) -> None:
        assert parse_constraint("*") == Ranges.full()

    def test_exact(self) -> None:
        assert parse_constraint("==1.2.3") == Ranges.singleton(_v("1.2.3"))

    def test_bare_version_is_exact(self) -> None:
        assert parse_constraint("1.2.3") == parse_constraint("==1.2.3")
        assert parse_constraint("=1.2.3") == parse_constraint("==1.2.3")

    def test_not_equal(self) -> None:
        accepted = _accepted("!=1.0.0", CANDIDATES)
        assert "1.0.0" not in accepted
        assert len(accepted) == len(CANDIDATES) - 1

    def test_comparisons(self) -> None:
        assert _accepted(">=2.0.0", CANDIDATES) == ["2.0.0", "3.1.0"]
        assert _accepted(">2.0.0", CANDIDATES) == ["3.1.0"]
        assert _accepted("<=0.1.5", CANDIDATES) == ["0.1.0", "0.1.5"]
        assert _accepted("<0.1.5", CANDIDATES) == ["0.1.0"]

    def test_caret(self) -> None:
        """Caret keeps the major version."""
        assert _accepted("^1.2.3", CANDIDATES) == ["1.2.3", "1.2.9", "1.3.0"]

    def test_caret_zero_major_keeps_minor(self) -> None:
        assert _accepted("^0.1.0", CANDIDATES) == ["0.1.0", "0.1.5"]

    def test_tilde(self) -> None:
        """Tilde keeps major.minor."""
        assert _accepted("~1.2.3", CANDIDATES) == ["1.2.3", "1.2.9"]


# ===========================================================================
# Combinators
# ===========================================================================


class TestCombinators:
    """Tests for comma conjunction and ``||`` disjunction."""

    def test_conjunction(self) -> None:
        assert parse_constraint(">=1.0.0,<2.0.0") == Ranges.between(_v("1.0.0"), _v("2.0.0"))

    def test_conjunction_with_spaces(self) -> None:
        assert parse_constraint(" >= 1.0.0 , < 2.0.0 ") == parse_constraint(">=1.0.0,<2.0.0")

    def test_disjunction(self) -> None:
        assert _accepted("<0.2.0 || >=3.0.0", CANDIDATES) == ["0.1.0", "0.1.5", "3.1.0"]

    def test_contradictory_conjunction_is_empty(self) -> None:
        assert parse_constraint(">2.0.0,<1.0.0").is_empty()

    def test_custom_version_parser(self) -> None:
        """Comparison operators work with any ordered version type."""
        ranges = parse_constraint(">=3,<7", parse_version=int)
        assert ranges == Ranges.between(3, 7)


# ===========================================================================
# Errors
# ===========================================================================


class TestErrors:
    """Malformed constraints raise ConstraintError."""

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", ">=1.0.0,", "|| 1.0.0", ">=abc", ">=1.0.0 2.0.0", "^^1.0.0"],
    )
    def test_malformed(self, raw: str) -> None:
        with pytest.raises(ConstraintError):
            parse_constraint(raw)

    def test_caret_requires_semantic_versions(self) -> None:
        with pytest.raises(ConstraintError, match="requires semantic versions"):
            parse_constraint("^3", parse_version=int)

    def test_custom_parser_value_error_is_wrapped(self) -> None:
        with pytest.raises(ConstraintError, match="Invalid version"):
            parse_constraint(">=x", parse_version=int)
