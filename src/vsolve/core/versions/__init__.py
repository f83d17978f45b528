"""Version types and version sets consumed by the solver.

The solver is generic over these: any hashable, totally ordered version and
any :class:`VersionSet` implementation work. ``SemanticVersion`` and
``Ranges`` are the defaults used by the offline provider and the CLI.
"""

from vsolve.core.versions.constraints import parse_constraint
from vsolve.core.versions.ranges import Ranges, VersionSet
from vsolve.core.versions.version import SemanticVersion

__all__ = [
    "Ranges",
    "SemanticVersion",
    "VersionSet",
    "parse_constraint",
]
