"""vsolve: a PubGrub dependency-version solver with pluggable package metadata."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

from vsolve.core.solver import (
    DependencyProvider,
    Dependencies,
    DerivationTree,
    OfflineDependencyProvider,
    resolve,
)
from vsolve.core.versions import Ranges, SemanticVersion, VersionSet, parse_constraint
from vsolve.exceptions import (
    CancelledError,
    DependencyRetrievalError,
    NoSolutionError,
    SolverError,
    VersionChoiceError,
    VsolveError,
)

__all__ = [
    "__version__",
    "CancelledError",
    "DependencyProvider",
    "DependencyRetrievalError",
    "Dependencies",
    "DerivationTree",
    "NoSolutionError",
    "OfflineDependencyProvider",
    "Ranges",
    "SemanticVersion",
    "SolverError",
    "VersionChoiceError",
    "VersionSet",
    "VsolveError",
    "parse_constraint",
    "resolve",
]
