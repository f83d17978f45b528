"""Solver state: unit propagation and conflict-driven clause learning.

``State`` owns the incompatibility store and the partial solution for one
``resolve`` call. It turns provider answers into incompatibilities, derives
everything they imply (unit propagation), and when the partial solution
satisfies an incompatibility, learns a more general incompatibility and
backtracks (conflict resolution).

References
----------
.. [PubGrub] Weizenbaum, N. (2018). "PubGrub: Next-Generation Version
   Solving." https://github.com/dart-lang/pub/blob/master/doc/solver.md
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from vsolve.core.solver.derivation_tree import DerivationTree, build_derivation_tree
from vsolve.core.solver.incompatibility import IncompatRelation, Incompatibility
from vsolve.core.solver.partial_solution import (
    DifferentDecisionLevels,
    PartialSolution,
)
from vsolve.core.solver.store import IncompatibilityStore
from vsolve.core.versions.ranges import VersionSet
from vsolve.exceptions import NoSolutionError

logger = logging.getLogger(__name__)


class State:
    """Everything the solver knows while resolving ``root_package`` at ``root_version``.

    Args:
        root_package: The package being resolved.
        root_version: Its version.
        set_type: The VersionSet implementation used for every range.
        check_cancel: Called once per conflict-resolution step; expected to
            raise to abort the resolution.
    """

    def __init__(
        self,
        root_package: Any,
        root_version: Any,
        set_type: type[VersionSet],
        check_cancel: Optional[Callable[[], None]] = None,
    ) -> None:
        self.root_package = root_package
        self.root_version = root_version
        self.set_type = set_type
        self.store = IncompatibilityStore()
        self.partial_solution = PartialSolution()
        self._check_cancel = check_cancel
        # incompatibility id -> decision level at which it became contradicted
        self._contradicted: dict[int, int] = {}
        # (package, dependency) -> ids of merged dependency incompatibilities
        self._merged_dependencies: dict[tuple[Any, Any], list[int]] = {}
        self.store.add(Incompatibility.not_root(root_package, root_version, set_type))

    # -- adding knowledge ---------------------------------------------------

    def add_incompatibility(self, incompat: Incompatibility) -> int:
        """Store and index ``incompat``; dependency incompatibilities may be merged."""
        return self._merge_incompatibility(self.store.alloc(incompat))

    def add_incompatibility_from_dependencies(
        self, package: Any, version: Any, dependencies: Mapping[Any, VersionSet]
    ) -> list[int]:
        """Add one incompatibility per dependency of ``package`` at ``version``.

        Returns the ids of the added incompatibilities (after merging).
        """
        versions = self.set_type.singleton(version)
        added = []
        for dependency, dependency_versions in dependencies.items():
            incompat = Incompatibility.from_dependency(
                package, versions, dependency, dependency_versions
            )
            if incompat is None:
                continue
            added.append(self.add_incompatibility(incompat))
        return added

    def _merge_incompatibility(self, incompat_id: int) -> int:
        """Index ``incompat_id``, folding it into an equivalent dependency if possible.

        ``a 1 depends on b >=1`` and ``a 2 depends on b >=1`` are replaced by
        ``a 1 | 2 depends on b >=1`` in the index. The originals stay in the
        arena because derivations may already reference them.
        """
        pair = self.store[incompat_id].as_dependency()
        if pair is not None:
            merged = self._merged_dependencies.setdefault(pair, [])
            i = 0
            while i < len(merged):
                old_id = merged[i]
                combined = self.store[old_id].merge_dependents(self.store[incompat_id])
                if combined is None:
                    i += 1
                    continue
                self.store.unregister(old_id)
                merged.pop(i)
                incompat_id = self.store.alloc(combined)
            merged.append(incompat_id)
        self.store.register(incompat_id)
        return incompat_id

    # -- propagation --------------------------------------------------------

    def unit_propagation(self, package: Any) -> None:
        """Derive every consequence of the assignments to ``package``.

        Raises:
            NoSolutionError: If a conflict cannot be resolved.
        """
        buffer = [package]
        while buffer:
            current = buffer.pop()
            conflict_id = None
            for incompat_id in reversed(list(self.store.ids_for(current))):
                if incompat_id in self._contradicted:
                    continue
                incompat = self.store[incompat_id]
                relation = self.partial_solution.relation(incompat)
                if relation.kind is IncompatRelation.SATISFIED:
                    conflict_id = incompat_id
                    break
                if relation.kind is IncompatRelation.ALMOST_SATISFIED:
                    almost = relation.package
                    if almost not in buffer:
                        buffer.append(almost)
                    self._derive(almost, incompat_id)
                elif relation.kind is IncompatRelation.CONTRADICTED:
                    self._contradicted[incompat_id] = self.partial_solution.current_decision_level
            if conflict_id is not None:
                almost, root_cause = self.conflict_resolution(conflict_id)
                buffer = [almost]
                self._derive(almost, root_cause)

    def _derive(self, package: Any, incompat_id: int) -> None:
        term = self.store[incompat_id].get(package).negate()
        self.partial_solution.add_derivation(package, term, incompat_id)
        # the derived term contradicts the incompatibility's last open term
        self._contradicted[incompat_id] = self.partial_solution.current_decision_level

    # -- conflict resolution ------------------------------------------------

    def conflict_resolution(self, incompat_id: int) -> tuple[Any, int]:
        """Learn from the satisfied incompatibility ``incompat_id`` and backtrack.

        Returns the package whose term the learned incompatibility now
        implies, and the learned incompatibility's id.

        Raises:
            NoSolutionError: If the learned incompatibility is terminal.
        """
        current_id = incompat_id
        changed = False
        while True:
            if self._check_cancel is not None:
                self._check_cancel()
            current = self.store[current_id]
            if current.is_terminal(self.root_package, self.root_version):
                logger.debug("terminal incompatibility %d: %s", current_id, current)
                raise NoSolutionError(self.build_derivation_tree(current_id))
            package, search = self.partial_solution.satisfier_search(current, self.store)
            if isinstance(search, DifferentDecisionLevels):
                self._backtrack(current_id, changed, search.previous_satisfier_level)
                logger.debug("learned %d: %s", current_id, current)
                return package, current_id
            prior = Incompatibility.merge(current_id, search.satisfier_cause, package, self.store)
            current_id = self.store.alloc(prior)
            changed = True
            logger.debug("derived %d from conflict on %s: %s", current_id, package, prior)

    def _backtrack(self, incompat_id: int, incompat_changed: bool, decision_level: int) -> None:
        self.partial_solution.backtrack(decision_level)
        self._contradicted = {
            i: level for i, level in self._contradicted.items() if level <= decision_level
        }
        if incompat_changed:
            self.store.register(incompat_id)

    def build_derivation_tree(self, incompat_id: int) -> DerivationTree:
        return build_derivation_tree(incompat_id, self.store)
