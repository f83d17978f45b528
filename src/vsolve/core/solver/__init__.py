"""PubGrub version solving engine.

This package implements the solver described in Weizenbaum's PubGrub
write-up: terms and incompatibilities as the unit of knowledge, a partial
solution of decisions and derivations, unit propagation, and conflict-driven
clause learning with non-chronological backtracking. All public names are
re-exported here; ``from vsolve.core.solver import X`` is the supported
import path.
"""

from vsolve.core.solver.derivation_tree import (
    DerivationTree,
    Derived,
    External,
    build_derivation_tree,
)
from vsolve.core.solver.incompatibility import (
    Custom,
    DerivedFrom,
    FromDependencyOf,
    IncompatRelation,
    Incompatibility,
    NotRoot,
    NoVersions,
    RelationResult,
)
from vsolve.core.solver.partial_solution import (
    Decision,
    Derivation,
    PartialSolution,
)
from vsolve.core.solver.provider import (
    DependencyProvider,
    Dependencies,
    OfflineDependencyProvider,
)
from vsolve.core.solver.resolver import resolve
from vsolve.core.solver.state import State
from vsolve.core.solver.store import IncompatibilityStore
from vsolve.core.solver.term import Relation, Term

__all__ = [
    "Custom",
    "Decision",
    "DependencyProvider",
    "Dependencies",
    "Derivation",
    "DerivationTree",
    "Derived",
    "DerivedFrom",
    "External",
    "FromDependencyOf",
    "IncompatRelation",
    "Incompatibility",
    "IncompatibilityStore",
    "NoVersions",
    "NotRoot",
    "OfflineDependencyProvider",
    "PartialSolution",
    "Relation",
    "RelationResult",
    "State",
    "Term",
    "build_derivation_tree",
    "resolve",
]
