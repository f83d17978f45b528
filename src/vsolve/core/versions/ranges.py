"""Version sets: the abstract interface the solver needs, and ``Ranges``.

The solver never looks inside a version set. It only combines them with the
Boolean-algebra operations declared on :class:`VersionSet` and asks whether a
version is contained. Any implementation must keep a canonical
representation so that ``==`` means "contains exactly the same versions".

``Ranges`` is the implementation shipped with vsolve. A set is stored as a
sorted tuple of disjoint, non-adjacent segments. Each segment is a
``(lower, upper)`` pair where a bound is either ``None`` (unbounded) or a
``(version, inclusive)`` pair::

    >=1.0.0, <2.0.0   ->  (((1.0.0, True), (2.0.0, False)),)
    ==3.0.0           ->  (((3.0.0, True), (3.0.0, True)),)
    *                 ->  ((None, None),)
    empty             ->  ()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Tuple

Bound = Optional[Tuple[Any, bool]]
Segment = Tuple[Bound, Bound]


class VersionSet(ABC):
    """A set of versions closed under complement, intersection and union.

    Implementations must satisfy the Boolean-algebra laws (double complement
    is the identity, intersection and union are associative and commutative,
    De Morgan) and compare equal exactly when they contain the same versions.
    """

    @classmethod
    @abstractmethod
    def empty(cls) -> VersionSet:
        """The set containing no version."""

    @classmethod
    @abstractmethod
    def full(cls) -> VersionSet:
        """The set containing every version."""

    @classmethod
    @abstractmethod
    def singleton(cls, version: Any) -> VersionSet:
        """The set containing only ``version``."""

    @abstractmethod
    def complement(self) -> VersionSet:
        """Every version not in this set."""

    @abstractmethod
    def intersection(self, other: VersionSet) -> VersionSet:
        """Versions in both sets."""

    @abstractmethod
    def contains(self, version: Any) -> bool:
        """Whether ``version`` belongs to this set."""

    def union(self, other: VersionSet) -> VersionSet:
        """Versions in either set."""
        return self.complement().intersection(other.complement()).complement()

    def is_disjoint(self, other: VersionSet) -> bool:
        return self.intersection(other) == self.empty()

    def subset_of(self, other: VersionSet) -> bool:
        return self.intersection(other) == self

    def simplify(self, versions: Iterable[Any]) -> VersionSet:
        """Return a set holding the same subset of ``versions``.

        The default keeps the set unchanged, which is always correct.
        """
        return self

    def __contains__(self, version: Any) -> bool:
        return self.contains(version)

    def __and__(self, other: VersionSet) -> VersionSet:
        return self.intersection(other)

    def __or__(self, other: VersionSet) -> VersionSet:
        return self.union(other)

    def __invert__(self) -> VersionSet:
        return self.complement()


# ---------------------------------------------------------------------------
# Bound helpers
# ---------------------------------------------------------------------------


def _max_lower(a: Bound, b: Bound) -> Bound:
    if a is None:
        return b
    if b is None:
        return a
    if a[0] < b[0]:
        return b
    if b[0] < a[0]:
        return a
    return (a[0], a[1] and b[1])


def _min_upper(a: Bound, b: Bound) -> Bound:
    if a is None:
        return b
    if b is None:
        return a
    if a[0] < b[0]:
        return a
    if b[0] < a[0]:
        return b
    return (a[0], a[1] and b[1])


def _max_upper(a: Bound, b: Bound) -> Bound:
    if a is None or b is None:
        return None
    if a[0] < b[0]:
        return b
    if b[0] < a[0]:
        return a
    return (a[0], a[1] or b[1])


def _ends_before(a: Bound, b: Bound) -> bool:
    """Whether upper bound ``a`` is strictly below upper bound ``b``."""
    if a is None:
        return False
    if b is None:
        return True
    if a[0] < b[0]:
        return True
    if b[0] < a[0]:
        return False
    return not a[1] and b[1]


def _non_empty(lower: Bound, upper: Bound) -> bool:
    if lower is None or upper is None:
        return True
    if lower[0] < upper[0]:
        return True
    if upper[0] < lower[0]:
        return False
    return lower[1] and upper[1]


def _touches(upper: Bound, lower: Bound) -> bool:
    """Whether a segment ending at ``upper`` overlaps or abuts one starting at ``lower``."""
    if upper is None or lower is None:
        return True
    if lower[0] < upper[0]:
        return True
    if upper[0] < lower[0]:
        return False
    return upper[1] or lower[1]


def _lower_sort_key(segment: Segment) -> tuple:
    lower = segment[0]
    if lower is None:
        return (0,)
    return (1, lower[0], 0 if lower[1] else 1)


def _flip(bound: Bound) -> Bound:
    if bound is None:
        return None
    return (bound[0], not bound[1])


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


class Ranges(VersionSet):
    """A union of version intervals in canonical form.

    Works with any totally ordered version type. Construct instances with
    the class methods; the segments passed to :meth:`from_segments` may be
    unsorted, overlapping or empty and are normalized.

    Example::

        >>> r = Ranges.between(1, 3) | Ranges.singleton(5)
        >>> 2 in r, 3 in r, 5 in r
        (True, False, True)
    """

    __slots__ = ("_segments",)

    def __init__(self, segments: Iterable[Segment] = ()) -> None:
        self._segments: tuple[Segment, ...] = self._normalize(segments)

    @classmethod
    def _from_canonical(cls, segments: Iterable[Segment]) -> Ranges:
        instance = cls.__new__(cls)
        instance._segments = tuple(segments)
        return instance

    @staticmethod
    def _normalize(segments: Iterable[Segment]) -> tuple[Segment, ...]:
        ordered = sorted(
            (s for s in segments if _non_empty(s[0], s[1])), key=_lower_sort_key
        )
        merged: list[Segment] = []
        for lower, upper in ordered:
            if merged and _touches(merged[-1][1], lower):
                prev_lower, prev_upper = merged[-1]
                merged[-1] = (prev_lower, _max_upper(prev_upper, upper))
            else:
                merged.append((lower, upper))
        return tuple(merged)

    # -- constructors -------------------------------------------------------

    @classmethod
    def empty(cls) -> Ranges:
        return cls._from_canonical(())

    @classmethod
    def full(cls) -> Ranges:
        return cls._from_canonical(((None, None),))

    @classmethod
    def singleton(cls, version: Any) -> Ranges:
        return cls._from_canonical((((version, True), (version, True)),))

    @classmethod
    def higher_than(cls, version: Any) -> Ranges:
        """``>= version``"""
        return cls._from_canonical((((version, True), None),))

    @classmethod
    def strictly_higher_than(cls, version: Any) -> Ranges:
        """``> version``"""
        return cls._from_canonical((((version, False), None),))

    @classmethod
    def lower_than(cls, version: Any) -> Ranges:
        """``<= version``"""
        return cls._from_canonical(((None, (version, True)),))

    @classmethod
    def strictly_lower_than(cls, version: Any) -> Ranges:
        """``< version``"""
        return cls._from_canonical(((None, (version, False)),))

    @classmethod
    def between(cls, lower: Any, upper: Any) -> Ranges:
        """``>= lower, < upper``"""
        return cls([((lower, True), (upper, False))])

    @classmethod
    def from_segments(cls, segments: Iterable[Segment]) -> Ranges:
        return cls(segments)

    # -- inspection ---------------------------------------------------------

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    def is_empty(self) -> bool:
        return not self._segments

    def bounding_range(self) -> Optional[Segment]:
        """The lowest lower bound and highest upper bound, or None if empty."""
        if not self._segments:
            return None
        return (self._segments[0][0], self._segments[-1][1])

    def as_singleton(self) -> Any:
        """The single version this set holds, or None."""
        if len(self._segments) != 1:
            return None
        lower, upper = self._segments[0]
        if lower is not None and upper is not None and lower == upper and lower[1]:
            return lower[0]
        return None

    def contains(self, version: Any) -> bool:
        for lower, upper in self._segments:
            if lower is not None:
                if version < lower[0] or (version == lower[0] and not lower[1]):
                    # Segments are sorted, so no later segment can match.
                    return False
            if upper is None:
                return True
            if version < upper[0] or (version == upper[0] and upper[1]):
                return True
        return False

    # -- algebra ------------------------------------------------------------

    def complement(self) -> Ranges:
        if not self._segments:
            return Ranges.full()
        result: list[Segment] = []
        first_lower = self._segments[0][0]
        if first_lower is not None:
            result.append((None, _flip(first_lower)))
        for (_, upper), (lower, _) in zip(self._segments, self._segments[1:]):
            result.append((_flip(upper), _flip(lower)))
        last_upper = self._segments[-1][1]
        if last_upper is not None:
            result.append((_flip(last_upper), None))
        return Ranges._from_canonical(result)

    def intersection(self, other: VersionSet) -> Ranges:
        if not isinstance(other, Ranges):
            raise TypeError(f"Cannot intersect Ranges with {type(other).__name__}")
        left, right = self._segments, other._segments
        result: list[Segment] = []
        i = j = 0
        while i < len(left) and j < len(right):
            lower = _max_lower(left[i][0], right[j][0])
            upper = _min_upper(left[i][1], right[j][1])
            if _non_empty(lower, upper):
                result.append((lower, upper))
            if _ends_before(left[i][1], right[j][1]):
                i += 1
            else:
                j += 1
        return Ranges._from_canonical(result)

    def simplify(self, versions: Iterable[Any]) -> Ranges:
        """Return the simplest set holding the same subset of ``versions``.

        ``versions`` must be sorted ascending. Each run of consecutive
        contained versions becomes one segment whose bounds are the excluded
        neighbours (or unbounded at either end of the list), so versions
        outside ``versions`` are not preserved. A set holding none of
        ``versions`` is returned unchanged.
        """
        known = list(versions)
        if not known:
            return self
        runs: list[Segment] = []
        start: Optional[int] = None
        for index, version in enumerate(known):
            if self.contains(version):
                if start is None:
                    start = index
            elif start is not None:
                runs.append(self._run_segment(known, start, index))
                start = None
        if start is not None:
            runs.append(self._run_segment(known, start, len(known)))
        if not runs:
            # no known version matches
            return self
        return Ranges._from_canonical(runs)

    @staticmethod
    def _run_segment(known: list, start: int, end: int) -> Segment:
        lower = None if start == 0 else (known[start - 1], False)
        upper = None if end == len(known) else (known[end], False)
        return (lower, upper)

    # -- dunder -------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ranges):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __repr__(self) -> str:
        return f"Ranges({str(self)!r})"

    def __str__(self) -> str:
        if not self._segments:
            return "∅"
        if len(self._segments) == 2:
            (lo1, hi1), (lo2, hi2) = self._segments
            if (
                lo1 is None
                and hi2 is None
                and hi1 is not None
                and hi1 == lo2
                and not hi1[1]
            ):
                return f"!={hi1[0]}"
        return " | ".join(self._format_segment(s) for s in self._segments)

    @staticmethod
    def _format_segment(segment: Segment) -> str:
        lower, upper = segment
        if lower is None and upper is None:
            return "*"
        if lower is not None and upper is not None and lower == upper:
            return f"=={lower[0]}"
        parts = []
        if lower is not None:
            parts.append(f"{'>=' if lower[1] else '>'}{lower[0]}")
        if upper is not None:
            parts.append(f"{'<=' if upper[1] else '<'}{upper[0]}")
        return ", ".join(parts)
