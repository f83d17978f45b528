"""Incompatibilities: sets of terms that must never all hold at once.

An incompatibility ``{a: ==1.0.0, b: Not(>=2.0.0)}`` reads "a at 1.0.0 and
b outside >=2.0.0 cannot both be true", in other words "a 1.0.0 depends on
b >=2.0.0". Incompatibilities are the solver's only unit of knowledge: the
provider's answers are turned into external incompatibilities, and conflict
resolution derives new ones from pairs of existing ones.

Every incompatibility carries a cause. External causes (``NotRoot``,
``NoVersions``, ``FromDependencyOf``, ``Custom``) are facts; ``DerivedFrom``
points at the two parents, by store id, that it was resolved from.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Union

from vsolve.core.solver.term import Relation, Term
from vsolve.core.versions.ranges import VersionSet
from vsolve.exceptions import InvariantError

if TYPE_CHECKING:
    from vsolve.core.solver.store import IncompatibilityStore


# ---------------------------------------------------------------------------
# Causes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NotRoot:
    """The root package must be selected at the root version."""

    package: Any
    version: Any


@dataclass(frozen=True)
class NoVersions:
    """No version of ``package`` in ``versions`` is available."""

    package: Any
    versions: VersionSet


@dataclass(frozen=True)
class FromDependencyOf:
    """``package`` at ``versions`` depends on ``dependency`` at ``dependency_versions``."""

    package: Any
    versions: VersionSet
    dependency: Any
    dependency_versions: VersionSet


@dataclass(frozen=True)
class Custom:
    """``package`` at ``versions`` is unusable for a provider-supplied reason."""

    package: Any
    versions: VersionSet
    metadata: Any = None


@dataclass(frozen=True)
class DerivedFrom:
    """Resolvent of the incompatibilities with ids ``cause1`` and ``cause2``."""

    cause1: int
    cause2: int


ExternalCause = Union[NotRoot, NoVersions, FromDependencyOf, Custom]
Cause = Union[NotRoot, NoVersions, FromDependencyOf, Custom, DerivedFrom]


# ---------------------------------------------------------------------------
# Incompatibility relation
# ---------------------------------------------------------------------------


class IncompatRelation(Enum):
    """How an incompatibility relates to a set of per-package terms.

    SATISFIED means every term holds, i.e. the terms are in conflict.
    ALMOST_SATISFIED means all but one term holds, so the remaining term's
    negation can be derived. CONTRADICTED means at least one term can no
    longer hold and the incompatibility is inert.
    """

    SATISFIED = "satisfied"
    CONTRADICTED = "contradicted"
    ALMOST_SATISFIED = "almost_satisfied"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class RelationResult:
    kind: IncompatRelation
    package: Any = None


_SATISFIED = RelationResult(IncompatRelation.SATISFIED)
_INCONCLUSIVE = RelationResult(IncompatRelation.INCONCLUSIVE)


# ---------------------------------------------------------------------------
# Incompatibility
# ---------------------------------------------------------------------------


class Incompatibility:
    """An immutable mapping of package -> term plus the cause that produced it.

    Each package appears at most once. An incompatibility with no terms is an
    unconditional contradiction.
    """

    __slots__ = ("_terms", "_cause")

    def __init__(self, terms: dict[Any, Term], cause: Cause) -> None:
        self._terms: dict[Any, Term] = dict(terms)
        self._cause = cause

    @property
    def cause(self) -> Cause:
        return self._cause

    # -- constructors -------------------------------------------------------

    @classmethod
    def not_root(
        cls, package: Any, version: Any, set_type: type[VersionSet]
    ) -> Incompatibility:
        """The root package must be selected at the root version."""
        return cls(
            {package: Term.excluding(set_type.singleton(version))},
            NotRoot(package, version),
        )

    @classmethod
    def no_versions(cls, package: Any, term: Term) -> Incompatibility:
        """No version of ``package`` satisfies the positive ``term``."""
        versions = term.unwrap_positive()
        return cls({package: term}, NoVersions(package, versions))

    @classmethod
    def custom_term(cls, package: Any, term: Term, metadata: Any = None) -> Incompatibility:
        versions = term.unwrap_positive()
        return cls({package: term}, Custom(package, versions, metadata))

    @classmethod
    def custom_version(
        cls,
        package: Any,
        version: Any,
        set_type: type[VersionSet],
        metadata: Any = None,
    ) -> Incompatibility:
        """``package`` at exactly ``version`` cannot be used."""
        versions = set_type.singleton(version)
        return cls({package: Term.of(versions)}, Custom(package, versions, metadata))

    @classmethod
    def from_dependency(
        cls,
        package: Any,
        versions: VersionSet,
        dependency: Any,
        dependency_versions: VersionSet,
    ) -> Optional[Incompatibility]:
        """``package`` at ``versions`` requires ``dependency`` in ``dependency_versions``.

        A dependency on an empty set omits the dependency term, leaving
        "``package`` at ``versions`` is impossible". A package depending on
        itself folds both terms into one; when that folded term is false the
        dependency always holds and None is returned.
        """
        cause = FromDependencyOf(package, versions, dependency, dependency_versions)
        if dependency == package:
            term = Term.of(versions).intersection(Term.excluding(dependency_versions))
            if term.is_empty():
                return None
            return cls({package: term}, cause)
        terms = {package: Term.of(versions)}
        if dependency_versions != dependency_versions.empty():
            terms[dependency] = Term.excluding(dependency_versions)
        return cls(terms, cause)

    @classmethod
    def merge(
        cls,
        incompat_id: int,
        satisfier_cause_id: int,
        package: Any,
        store: IncompatibilityStore,
    ) -> Incompatibility:
        """Resolve two incompatibilities on ``package`` (the "prior cause").

        Terms of both parents on other packages are intersected. The two
        terms on ``package`` are unioned and dropped when the union is
        ``Term.any``, since that term then constrains nothing.
        """
        incompat = store[incompat_id]
        satisfier_cause = store[satisfier_cause_id]
        terms = dict(incompat._terms)
        t1 = terms.pop(package, None)
        t2 = satisfier_cause.get(package)
        if t1 is None or t2 is None:
            raise InvariantError(
                f"Cannot merge on {package!r}: it is missing from a parent"
            )
        for other_package, other_term in satisfier_cause._terms.items():
            if other_package == package:
                continue
            existing = terms.get(other_package)
            terms[other_package] = (
                other_term if existing is None else existing.intersection(other_term)
            )
        term = t1.union(t2)
        if not term.is_any():
            terms[package] = term
        return cls(terms, DerivedFrom(incompat_id, satisfier_cause_id))

    def merge_dependents(self, other: Incompatibility) -> Optional[Incompatibility]:
        """Collapse two dependency incompatibilities that differ only in versions.

        ``a 1 depends on b >=1`` and ``a 2 depends on b >=1`` become
        ``a 1 | 2 depends on b >=1``. Returns None when they are not mergeable.
        """
        mine = self.as_dependency()
        if mine is None or mine != other.as_dependency():
            return None
        if list(self._terms) != list(other._terms):
            return None
        package, dependency = mine
        dep_term = self.get(dependency)
        if dep_term != other.get(dependency):
            return None
        versions = self._terms[package].unwrap_positive().union(
            other._terms[package].unwrap_positive()
        )
        return Incompatibility.from_dependency(
            package, versions, dependency, self._cause.dependency_versions
        )

    # -- queries ------------------------------------------------------------

    def get(self, package: Any) -> Optional[Term]:
        return self._terms.get(package)

    def packages(self) -> list[Any]:
        return list(self._terms)

    def items(self) -> Iterator[tuple[Any, Term]]:
        return iter(self._terms.items())

    def as_dependency(self) -> Optional[tuple[Any, Any]]:
        """``(package, dependency)`` for a two-package dependency incompatibility."""
        cause = self._cause
        if isinstance(cause, FromDependencyOf) and cause.package != cause.dependency:
            return (cause.package, cause.dependency)
        return None

    def is_terminal(self, root_package: Any, root_version: Any) -> bool:
        """Whether this incompatibility alone proves there is no solution."""
        if not self._terms:
            return True
        if len(self._terms) > 1:
            return False
        package, term = next(iter(self._terms.items()))
        return package == root_package and term.positive and term.contains(root_version)

    def relation(self, lookup: Callable[[Any], Optional[Term]]) -> RelationResult:
        """Relate every term to the accumulated term ``lookup`` gives for its package.

        Packages for which ``lookup`` returns None count as inconclusive.
        """
        result = _SATISFIED
        for package, incompat_term in self._terms.items():
            accumulated = lookup(package)
            relation = (
                Relation.INCONCLUSIVE
                if accumulated is None
                else incompat_term.relation_with(accumulated)
            )
            if relation is Relation.SATISFIED:
                continue
            if relation is Relation.CONTRADICTED:
                return RelationResult(IncompatRelation.CONTRADICTED, package)
            if result.kind is IncompatRelation.SATISFIED:
                result = RelationResult(IncompatRelation.ALMOST_SATISFIED, package)
            else:
                result = _INCONCLUSIVE
        return result

    # -- dunder -------------------------------------------------------------

    def __iter__(self) -> Iterator[Any]:
        return iter(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, package: object) -> bool:
        return package in self._terms

    def __repr__(self) -> str:
        return f"Incompatibility({self}, cause={self._cause!r})"

    def __str__(self) -> str:
        if not self._terms:
            return "{}"
        inner = ", ".join(f"{p}: {t}" for p, t in self._terms.items())
        return "{" + inner + "}"
