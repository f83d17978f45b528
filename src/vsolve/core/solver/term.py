"""Terms: a positive or negative version-set constraint on one package.

A positive term ``Positive(S)`` says "the package is selected with a version
in S". A negative term ``Negative(S)`` says "the package is not selected
with a version in S", which also holds when the package is not selected at
all. Hence ``Positive(∅)`` is false while ``Negative(∅)`` holds for any
assignment.

The package itself is implicit: terms are stored in incompatibilities and
partial solutions keyed by package.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from vsolve.core.versions.ranges import VersionSet
from vsolve.exceptions import InvariantError


class Relation(Enum):
    """How a term relates to the set of versions still allowed for its package."""

    SATISFIED = "satisfied"
    CONTRADICTED = "contradicted"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class Term:
    """A polarity-tagged version set."""

    positive: bool
    versions: VersionSet

    @classmethod
    def of(cls, versions: VersionSet) -> Term:
        """A positive term."""
        return cls(True, versions)

    @classmethod
    def excluding(cls, versions: VersionSet) -> Term:
        """A negative term."""
        return cls(False, versions)

    @classmethod
    def exact(cls, version: Any, set_type: type[VersionSet]) -> Term:
        return cls(True, set_type.singleton(version))

    @classmethod
    def any(cls, set_type: type[VersionSet]) -> Term:
        return cls(False, set_type.empty())

    @classmethod
    def empty(cls, set_type: type[VersionSet]) -> Term:
        return cls(True, set_type.empty())

    def is_empty(self) -> bool:
        return self.positive and self.versions == self.versions.empty()

    def is_any(self) -> bool:
        return not self.positive and self.versions == self.versions.empty()

    def negate(self) -> Term:
        return Term(not self.positive, self.versions)

    def contains(self, version: Any) -> bool:
        """Whether selecting ``version`` is compatible with this term."""
        if self.positive:
            return self.versions.contains(version)
        return not self.versions.contains(version)

    def unwrap_positive(self) -> VersionSet:
        if not self.positive:
            raise InvariantError(f"Negative term cannot unwrap positive set: {self}")
        return self.versions

    def unwrap_negative(self) -> VersionSet:
        if self.positive:
            raise InvariantError(f"Positive term cannot unwrap negative set: {self}")
        return self.versions

    def intersection(self, other: Term) -> Term:
        if self.positive and other.positive:
            return Term(True, self.versions.intersection(other.versions))
        if self.positive:
            return Term(True, self.versions.intersection(other.versions.complement()))
        if other.positive:
            return Term(True, self.versions.complement().intersection(other.versions))
        return Term(False, self.versions.union(other.versions))

    def union(self, other: Term) -> Term:
        return self.negate().intersection(other.negate()).negate()

    def is_disjoint(self, other: Term) -> bool:
        return self.intersection(other).is_empty()

    def subset_of(self, other: Term) -> bool:
        return self == self.intersection(other)

    def relation_with(self, other_terms_intersection: Term) -> Relation:
        """Compare this term against the accumulated term of a partial solution.

        SATISFIED when every assignment allowed by ``other_terms_intersection``
        satisfies this term, CONTRADICTED when none does.
        """
        full_intersection = self.intersection(other_terms_intersection)
        if full_intersection == other_terms_intersection:
            return Relation.SATISFIED
        if full_intersection.is_empty():
            return Relation.CONTRADICTED
        return Relation.INCONCLUSIVE

    def __str__(self) -> str:
        if self.positive:
            return str(self.versions)
        return f"Not ( {self.versions} )"
