"""Constraint strings: parsing npm/pip-style requirements into ``Ranges``.

Supported syntax:

- Exact match: ``==1.0.0`` (a bare version ``1.0.0`` means the same)
- Not-equal: ``!=1.0.0``
- Minimum (inclusive / exclusive): ``>=1.0.0`` / ``>1.0.0``
- Maximum (inclusive / exclusive): ``<=2.0.0`` / ``<2.0.0``
- Caret: ``^1.2.3`` (same major; for ``0.x`` same minor)
- Tilde: ``~1.2.3`` (same major.minor)
- Wildcard: ``*``
- Conjunction: ``>=1.0.0,<2.0.0`` (all atoms must hold)
- Disjunction: ``<1.0.0 || >=2.0.0`` (any group may hold)

Caret and tilde need version bumping and therefore only work with
:class:`~vsolve.core.versions.version.SemanticVersion`.
"""

from __future__ import annotations

import re
from functools import reduce
from typing import Any, Callable

from vsolve.core.versions.ranges import Ranges
from vsolve.core.versions.version import SemanticVersion
from vsolve.exceptions import ConstraintError

_CONSTRAINT_ATOM_RE = re.compile(r"^\s*(?P<op>==|!=|>=|<=|>|<|\^|~|=)?\s*(?P<ver>\S+)\s*$")


def parse_constraint(
    raw: str,
    parse_version: Callable[[str], Any] = SemanticVersion.parse,
) -> Ranges:
    """Parse a constraint string into a ``Ranges``.

    Args:
        raw: The constraint as authored (e.g. ``">=1.0.0,<2.0.0"``).
        parse_version: Converts a version token to a version object.

    Returns:
        The set of versions accepted by the constraint.

    Raises:
        ConstraintError: If an atom or a version token is malformed.
    """
    stripped = str(raw).strip()
    if not stripped:
        raise ConstraintError("Empty constraint")
    groups = [g.strip() for g in stripped.split("||")]
    if any(not g for g in groups):
        raise ConstraintError(f"Empty alternative in constraint: {raw!r}")
    return reduce(
        lambda acc, group: acc.union(_parse_conjunction(group, parse_version)),
        groups,
        Ranges.empty(),
    )


def _parse_conjunction(group: str, parse_version: Callable[[str], Any]) -> Ranges:
    result = Ranges.full()
    for atom in (a.strip() for a in group.split(",")):
        if not atom:
            raise ConstraintError(f"Empty atom in constraint: {group!r}")
        result = result.intersection(_parse_atom(atom, parse_version))
    return result


def _parse_atom(atom: str, parse_version: Callable[[str], Any]) -> Ranges:
    if atom == "*":
        return Ranges.full()

    m = _CONSTRAINT_ATOM_RE.match(atom)
    if not m:
        raise ConstraintError(f"Invalid constraint atom: {atom!r}")

    op = m.group("op") or "=="
    try:
        target = parse_version(m.group("ver"))
    except ConstraintError:
        raise
    except ValueError as exc:
        raise ConstraintError(f"Invalid version in atom {atom!r}: {exc}") from exc

    if op in ("==", "="):
        return Ranges.singleton(target)
    elif op == "!=":
        return Ranges.singleton(target).complement()
    elif op == ">=":
        return Ranges.higher_than(target)
    elif op == "<=":
        return Ranges.lower_than(target)
    elif op == ">":
        return Ranges.strictly_higher_than(target)
    elif op == "<":
        return Ranges.strictly_lower_than(target)
    elif op == "^":
        _require_semver(target, atom)
        # Caret: same major; if major is 0, same major.minor.
        if target.major == 0:
            return Ranges.between(target, target.bump_minor())
        return Ranges.between(target, target.bump_major())
    elif op == "~":
        _require_semver(target, atom)
        return Ranges.between(target, target.bump_minor())
    else:  # pragma: no cover
        raise ConstraintError(f"Unknown operator: {op!r}")


def _require_semver(target: Any, atom: str) -> None:
    if not isinstance(target, SemanticVersion):
        raise ConstraintError(f"{atom!r} requires semantic versions")
