"""Semantic versions: the default totally ordered version type.

The solver itself only needs versions that are hashable and totally
ordered; ``SemanticVersion`` is the concrete type used by the offline
provider, the index loader and the constraint parser.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from vsolve.exceptions import ConstraintError

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)"
    r"(?:\.(?P<minor>0|[1-9]\d*))?"
    r"(?:\.(?P<patch>0|[1-9]\d*))?"
    r"(?:-(?P<pre>[0-9A-Za-z\-.]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-.]+))?$"
)


@dataclass(frozen=True, order=True)
class SemanticVersion:
    """A ``major.minor.patch`` version.

    Pre-release and build metadata are accepted by :meth:`parse` but
    stripped for ordering purposes, so ``1.0.0-alpha`` and ``1.0.0`` are the
    same version here. Missing minor/patch components default to zero, so
    ``"1"`` and ``"1.0"`` both parse to ``1.0.0``.
    """

    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, version: str) -> SemanticVersion:
        """Parse a version string.

        Raises:
            ConstraintError: If the string is not a semantic version.
        """
        m = _SEMVER_RE.match(str(version).strip())
        if not m:
            raise ConstraintError(f"Invalid semantic version: {version!r}")
        return cls(
            int(m.group("major")),
            int(m.group("minor") or 0),
            int(m.group("patch") or 0),
        )

    def bump_patch(self) -> SemanticVersion:
        return SemanticVersion(self.major, self.minor, self.patch + 1)

    def bump_minor(self) -> SemanticVersion:
        return SemanticVersion(self.major, self.minor + 1, 0)

    def bump_major(self) -> SemanticVersion:
        return SemanticVersion(self.major + 1, 0, 0)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"
