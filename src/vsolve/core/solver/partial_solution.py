"""The partial solution: the solver's current set of assignments.

Assignments are either decisions ("pick a 1.2.0") or derivations ("a must
be >=1.0.0 because of incompatibility 7"). Each carries the decision level it
was made at and a global index that totally orders all assignments.

Instead of one flat log, assignments are kept per package together with the
running intersection of the package's terms, so that:

- the current constraint of a package is a dictionary lookup,
- finding the assignment that first satisfied a term is a binary search
  over that package's derivations,
- backtracking only visits packages touched above the target level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from vsolve.core.solver.incompatibility import (
    IncompatRelation,
    Incompatibility,
    RelationResult,
)
from vsolve.core.solver.term import Term
from vsolve.exceptions import InvariantError

if TYPE_CHECKING:
    from vsolve.core.solver.store import IncompatibilityStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Decision:
    """``package`` was fixed to ``version``."""

    package: Any
    version: Any
    term: Term
    decision_level: int
    global_index: int


@dataclass(frozen=True)
class Derivation:
    """``term`` was derived for ``package`` from incompatibility ``cause``.

    ``accumulated_intersection`` is the intersection of this term with every
    earlier derivation for the same package.
    """

    package: Any
    term: Term
    cause: int
    decision_level: int
    global_index: int
    accumulated_intersection: Term


Assignment = Union[Decision, Derivation]


@dataclass
class PackageAssignments:
    """Every live assignment for one package."""

    smallest_decision_level: int
    highest_decision_level: int
    derived_term: Term
    derivations: list[Derivation] = field(default_factory=list)
    decision: Optional[Decision] = None

    @property
    def term(self) -> Term:
        if self.decision is not None:
            return self.decision.term
        return self.derived_term

    def satisfier(self, start_term: Term) -> tuple[Optional[int], int, int]:
        """Find the earliest assignment after which ``start_term`` is excluded.

        Returns ``(cause_id, global_index, decision_level)``; ``cause_id`` is
        None when the satisfier is the decision.
        """
        # accumulated intersections only narrow, so "disjoint" is monotone
        lo, hi = 0, len(self.derivations)
        while lo < hi:
            mid = (lo + hi) // 2
            if self.derivations[mid].accumulated_intersection.is_disjoint(start_term):
                hi = mid
            else:
                lo = mid + 1
        if lo < len(self.derivations):
            found = self.derivations[lo]
            return (found.cause, found.global_index, found.decision_level)
        if self.decision is None:
            raise InvariantError(
                f"No assignment excludes {start_term}; the package is undecided"
            )
        return (None, self.decision.global_index, self.decision.decision_level)


# ---------------------------------------------------------------------------
# Satisfier search results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DifferentDecisionLevels:
    """Backtrack to ``previous_satisfier_level`` and learn the incompatibility."""

    previous_satisfier_level: int


@dataclass(frozen=True)
class SameDecisionLevels:
    """Resolve the incompatibility with the satisfier's cause and keep going."""

    satisfier_cause: int


SatisfierSearch = Union[DifferentDecisionLevels, SameDecisionLevels]


# ---------------------------------------------------------------------------
# PartialSolution
# ---------------------------------------------------------------------------


class PartialSolution:
    """Decisions and derivations made so far, grouped per package."""

    def __init__(self) -> None:
        self._next_global_index = 0
        self._current_decision_level = 0
        self._packages: dict[Any, PackageAssignments] = {}
        # _touched[level] holds the packages assigned at that decision level
        self._touched: list[set[Any]] = [set()]
        # package -> (versions, priority) from the last prioritize call
        self._priorities: dict[Any, tuple[Any, Any]] = {}
        self._prioritize: Optional[Callable[[Any, Any], Any]] = None

    @property
    def current_decision_level(self) -> int:
        return self._current_decision_level

    # -- mutation -----------------------------------------------------------

    def add_decision(self, package: Any, version: Any) -> None:
        """Fix ``package`` to ``version`` at a new decision level.

        The package must already carry a positive derived term containing
        ``version``; the solver only decides packages it has derived.
        """
        pa = self._packages.get(package)
        if pa is None or pa.decision is not None or not pa.derived_term.positive:
            raise InvariantError(f"Cannot decide {package!r}: it is not a pending package")
        if not pa.derived_term.contains(version):
            raise InvariantError(
                f"Cannot decide {package!r} at {version}: outside {pa.derived_term}"
            )
        self._current_decision_level += 1
        self._touched.append({package})
        set_type = type(pa.derived_term.versions)
        pa.decision = Decision(
            package=package,
            version=version,
            term=Term.exact(version, set_type),
            decision_level=self._current_decision_level,
            global_index=self._next_global_index,
        )
        pa.highest_decision_level = self._current_decision_level
        self._next_global_index += 1
        logger.debug("decision: %s %s (level %d)", package, version, self._current_decision_level)

    def add_derivation(self, package: Any, term: Term, cause: int) -> None:
        """Record that ``term`` holds for ``package`` because of incompatibility ``cause``."""
        level = self._current_decision_level
        pa = self._packages.get(package)
        if pa is None:
            accumulated = term
            pa = PackageAssignments(
                smallest_decision_level=level,
                highest_decision_level=level,
                derived_term=accumulated,
            )
            self._packages[package] = pa
        else:
            if pa.decision is not None:
                raise InvariantError(f"Cannot derive for decided package {package!r}")
            accumulated = pa.derived_term.intersection(term)
            pa.derived_term = accumulated
            pa.highest_decision_level = level
        pa.derivations.append(
            Derivation(
                package=package,
                term=term,
                cause=cause,
                decision_level=level,
                global_index=self._next_global_index,
                accumulated_intersection=accumulated,
            )
        )
        self._touched[level].add(package)
        self._next_global_index += 1
        logger.debug("derivation: %s %s (level %d, cause %d)", package, term, level, cause)

    def add_version(
        self,
        package: Any,
        version: Any,
        new_incompatibilities: Iterable[int],
        store: IncompatibilityStore,
    ) -> bool:
        """Decide ``package`` at ``version`` unless a new dependency conflicts at once.

        If one of ``new_incompatibilities`` (the version's dependencies) would
        be satisfied by the decision, no decision is made and unit propagation
        derives the consequence instead. Returns whether a decision was made.
        """
        pa = self._packages.get(package)
        if pa is None:
            raise InvariantError(f"Cannot add a version for unknown package {package!r}")
        exact = Term.exact(version, type(pa.derived_term.versions))

        def lookup(p: Any) -> Optional[Term]:
            if p == package:
                return exact
            return self.term_intersection_for_package(p)

        for incompat_id in new_incompatibilities:
            if store[incompat_id].relation(lookup).kind is IncompatRelation.SATISFIED:
                logger.debug(
                    "not deciding %s %s: incompatibility %d conflicts",
                    package,
                    version,
                    incompat_id,
                )
                return False
        self.add_decision(package, version)
        return True

    def backtrack(self, decision_level: int) -> None:
        """Drop every assignment made above ``decision_level``.

        Only packages assigned at the dropped levels are visited; each one
        is rolled back to the accumulated term of its last surviving
        derivation, or removed if it first appeared above ``decision_level``.
        """
        if decision_level < 0 or decision_level > self._current_decision_level:
            raise InvariantError(
                f"Cannot backtrack to level {decision_level} from "
                f"level {self._current_decision_level}"
            )
        affected: set[Any] = set()
        for touched in self._touched[decision_level + 1:]:
            affected |= touched
        del self._touched[decision_level + 1:]
        self._current_decision_level = decision_level

        for package in affected:
            pa = self._packages.get(package)
            if pa is None:
                continue
            if pa.smallest_decision_level > decision_level:
                del self._packages[package]
                continue
            if pa.decision is not None and pa.decision.decision_level > decision_level:
                pa.decision = None
            while pa.derivations and pa.derivations[-1].decision_level > decision_level:
                pa.derivations.pop()
            if not pa.derivations:
                raise InvariantError(f"{package!r} lost all of its derivations")
            last = pa.derivations[-1]
            pa.derived_term = last.accumulated_intersection
            pa.highest_decision_level = (
                pa.decision.decision_level if pa.decision is not None else last.decision_level
            )
        logger.debug("backtracked to level %d (%d packages affected)", decision_level, len(affected))

    # -- queries ------------------------------------------------------------

    def term_intersection_for_package(self, package: Any) -> Optional[Term]:
        """The intersection of every live term for ``package``, or None if unseen."""
        pa = self._packages.get(package)
        if pa is None:
            return None
        return pa.term

    def relation(self, incompat: Incompatibility) -> RelationResult:
        """Relate ``incompat`` to the current state (see ``Incompatibility.relation``)."""
        return incompat.relation(self.term_intersection_for_package)

    def is_decided(self, package: Any) -> bool:
        pa = self._packages.get(package)
        return pa is not None and pa.decision is not None

    def pending_packages(self) -> list[tuple[Any, Any]]:
        """Undecided packages that must be selected, with their allowed versions."""
        return [
            (package, pa.derived_term.versions)
            for package, pa in self._packages.items()
            if pa.decision is None and pa.derived_term.positive
        ]

    def pick_highest_priority_package(
        self, prioritize: Callable[[Any, Any], Any]
    ) -> Optional[Any]:
        """The pending package with the highest ``prioritize(package, versions)``.

        Ties go to the package that entered the partial solution first.
        Returns None when every required package is decided. Priorities are
        cached per package and recomputed only when its allowed versions
        change.
        """
        if prioritize != self._prioritize:
            self._priorities.clear()
            self._prioritize = prioritize
        best = None
        best_priority = None
        for package, versions in self.pending_packages():
            cached = self._priorities.get(package)
            if cached is not None and cached[0] == versions:
                priority = cached[1]
            else:
                priority = prioritize(package, versions)
                self._priorities[package] = (versions, priority)
            if best is None or priority > best_priority:
                best, best_priority = package, priority
        return best

    def satisfier_search(
        self, incompat: Incompatibility, store: IncompatibilityStore
    ) -> tuple[Any, SatisfierSearch]:
        """Find the assignment that made ``incompat`` satisfied and what to do about it.

        The satisfier is the earliest assignment after which every term of
        ``incompat`` holds. The previous satisfier is the earliest assignment
        after which the incompatibility would hold if the satisfier's own
        term were replaced by the rest of what it needs. When both sit at the
        same decision level the conflict has to be resolved further;
        otherwise the solver can backtrack to the previous satisfier's level.
        """
        satisfied = self._find_satisfier(incompat)
        satisfier_package = max(satisfied, key=lambda p: satisfied[p][1])
        satisfier_cause, _, satisfier_level = satisfied[satisfier_package]
        previous_level = self._find_previous_satisfier(
            incompat, satisfier_package, satisfied, store
        )
        if previous_level >= satisfier_level:
            if satisfier_cause is None:
                raise InvariantError("A decision cannot share its level with a prior satisfier")
            return satisfier_package, SameDecisionLevels(satisfier_cause)
        return satisfier_package, DifferentDecisionLevels(previous_level)

    def _find_satisfier(
        self, incompat: Incompatibility
    ) -> dict[Any, tuple[Optional[int], int, int]]:
        satisfied = {}
        for package, incompat_term in incompat.items():
            pa = self._packages.get(package)
            if pa is None:
                raise InvariantError(f"Satisfied incompatibility mentions unseen {package!r}")
            satisfied[package] = pa.satisfier(incompat_term.negate())
        return satisfied

    def _find_previous_satisfier(
        self,
        incompat: Incompatibility,
        satisfier_package: Any,
        satisfied: dict[Any, tuple[Optional[int], int, int]],
        store: IncompatibilityStore,
    ) -> int:
        pa = self._packages[satisfier_package]
        satisfier_cause = satisfied[satisfier_package][0]
        if satisfier_cause is not None:
            accum_term = store[satisfier_cause].get(satisfier_package).negate()
        else:
            accum_term = pa.decision.term
        incompat_term = incompat.get(satisfier_package)
        previous = dict(satisfied)
        previous[satisfier_package] = pa.satisfier(
            accum_term.intersection(incompat_term.negate())
        )
        _, _, level = max(previous.values(), key=lambda s: s[1])
        return max(level, 1)

    def extract_solution(self) -> dict[Any, Any]:
        """Every decided package mapped to its version."""
        return {
            package: pa.decision.version
            for package, pa in self._packages.items()
            if pa.decision is not None
        }

    def assignments(self) -> list[Assignment]:
        """Every live assignment, in the order they were made."""
        found: list[Assignment] = []
        for pa in self._packages.values():
            found.extend(pa.derivations)
            if pa.decision is not None:
                found.append(pa.decision)
        found.sort(key=lambda a: a.global_index)
        return found
