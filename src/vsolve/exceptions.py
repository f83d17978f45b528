"""vsolve exception hierarchy.

All public exceptions inherit from VsolveError, giving callers a single
base class to catch when they want to handle any vsolve-specific failure
without swallowing unrelated errors.

Failures of a ``resolve`` call are SolverError subclasses. Errors raised by a
dependency provider are never swallowed: they are wrapped in the matching
SolverError subclass and chained as ``__cause__``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vsolve.core.solver.derivation_tree import DerivationTree


class VsolveError(Exception):
    """Base exception for all vsolve errors."""


class ConstraintError(VsolveError, ValueError):
    """Raised when a version or constraint string cannot be parsed."""


class IndexLoadError(VsolveError):
    """Raised when an offline package index cannot be read.

    Covers unreadable files, malformed YAML/JSON and entries whose shape
    does not match ``package -> version -> {dependency: constraint}``.
    """


class SolverError(VsolveError):
    """Raised when a ``resolve`` call does not produce a solution."""


class NoSolutionError(SolverError):
    """Raised when the requirements are proven unsatisfiable.

    Attributes:
        derivation_tree: The causal explanation of the failure. Its root is
            the terminal incompatibility; leaves are external facts.
    """

    def __init__(self, derivation_tree: DerivationTree) -> None:
        super().__init__("There is no solution")
        self.derivation_tree = derivation_tree


class DependencyRetrievalError(SolverError):
    """Raised when the provider fails to return the dependencies of a version."""

    def __init__(self, package: Any, version: Any) -> None:
        super().__init__(f"Retrieving dependencies of {package} {version} failed")
        self.package = package
        self.version = version


class VersionChoiceError(SolverError):
    """Raised when the provider fails to choose a version for a package."""

    def __init__(self, package: Any) -> None:
        super().__init__(f"Choosing a version for {package} failed")
        self.package = package


class CancelledError(SolverError):
    """Raised when ``should_cancel`` returns True or raises."""

    def __init__(self) -> None:
        super().__init__("The solver was cancelled")


class InvariantError(RuntimeError):
    """An internal invariant of the solver was violated.

    This is a programming error, either in vsolve or in a provider that
    broke its contract (for example choosing a version outside the range it
    was given). It is not a SolverError.
    """
