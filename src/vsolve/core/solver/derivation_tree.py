"""Derivation trees: why a resolution failed.

When the solver proves there is no solution, the terminal incompatibility is
the root of a binary tree. Leaves are external facts (the root requirement,
dependencies, missing versions, provider-specific reasons); every internal
node is an incompatibility derived from its two children during conflict
resolution.

An incompatibility used by several derivations becomes one node referenced
from several parents, so the tree is really a DAG whose size is the number of
distinct incompatibilities involved. Such nodes carry their store id in
``shared_id`` so that report renderers can refer back to them.

Rendering the tree as prose is left to the embedding application.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Optional

from vsolve.core.solver.incompatibility import (
    Custom,
    DerivedFrom,
    ExternalCause,
    FromDependencyOf,
    NoVersions,
)
from vsolve.core.solver.term import Term

if TYPE_CHECKING:
    from vsolve.core.solver.store import IncompatibilityStore


class DerivationTree:
    """Base of the two node kinds, :class:`External` and :class:`Derived`."""

    def is_external(self) -> bool:
        return isinstance(self, External)

    def nodes(self) -> Iterator[DerivationTree]:
        """Every distinct node, parents before children."""
        seen: set[int] = set()
        stack: list[DerivationTree] = [self]
        while stack:
            node = stack.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))
            yield node
            if isinstance(node, Derived):
                stack.append(node.cause2)
                stack.append(node.cause1)

    def external_causes(self) -> list[ExternalCause]:
        """The distinct external facts the failure rests on."""
        return [node.cause for node in self.nodes() if isinstance(node, External)]

    def packages(self) -> set[Any]:
        """Every package mentioned anywhere in the tree."""
        found: set[Any] = set()
        for node in self.nodes():
            if isinstance(node, Derived):
                found.update(node.terms)
                continue
            cause = node.cause
            found.add(cause.package)
            if isinstance(cause, FromDependencyOf):
                found.add(cause.dependency)
        return found

    def collapse_no_versions(self) -> DerivationTree:
        """Fold "no versions of x" leaves into the sibling they were derived with.

        ``a depends on b >=2`` combined with ``no versions of b >=2`` reads
        better as a single external fact about ``a``. Custom leaves are kept
        because their reason may not apply to the merged range.
        """
        return _collapse(self)

    def simplify(self, versions_for: Callable[[Any], Iterable[Any]]) -> DerivationTree:
        """Simplify every external version set against the known versions.

        ``versions_for(package)`` must return the package's versions sorted
        ascending; see ``VersionSet.simplify``.
        """
        return _simplify(self, versions_for)


@dataclass(frozen=True)
class External(DerivationTree):
    """A leaf holding an external cause."""

    cause: ExternalCause


@dataclass(frozen=True, eq=False)
class Derived(DerivationTree):
    """An incompatibility derived from ``cause1`` and ``cause2``."""

    terms: dict[Any, Term] = field(hash=False)
    shared_id: Optional[int]
    cause1: DerivationTree
    cause2: DerivationTree


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def build_derivation_tree(incompat_id: int, store: IncompatibilityStore) -> DerivationTree:
    """Build the tree rooted at ``incompat_id``.

    Both passes are iterative so that long derivation chains do not hit the
    interpreter's recursion limit.
    """
    shared = _shared_ids(incompat_id, store)
    built: dict[int, DerivationTree] = {}
    stack = [incompat_id]
    while stack:
        current = stack[-1]
        if current in built:
            stack.pop()
            continue
        incompat = store[current]
        cause = incompat.cause
        if isinstance(cause, DerivedFrom):
            missing = [c for c in (cause.cause1, cause.cause2) if c not in built]
            if missing:
                stack.extend(missing)
                continue
            built[current] = Derived(
                terms=dict(incompat.items()),
                shared_id=current if current in shared else None,
                cause1=built[cause.cause1],
                cause2=built[cause.cause2],
            )
        else:
            built[current] = External(cause)
        stack.pop()
    return built[incompat_id]


def _shared_ids(incompat_id: int, store: IncompatibilityStore) -> set[int]:
    """Ids of derived incompatibilities reachable through more than one parent."""
    references: dict[int, int] = {}
    stack = [incompat_id]
    visited: set[int] = set()
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        cause = store[current].cause
        if isinstance(cause, DerivedFrom):
            for parent in (cause.cause1, cause.cause2):
                references[parent] = references.get(parent, 0) + 1
                stack.append(parent)
    return {
        i
        for i, count in references.items()
        if count > 1 and isinstance(store[i].cause, DerivedFrom)
    }


# ---------------------------------------------------------------------------
# Transformations
# ---------------------------------------------------------------------------


def _collapse(root: DerivationTree) -> DerivationTree:
    memo: dict[int, DerivationTree] = {}
    stack = [root]
    while stack:
        node = stack[-1]
        if id(node) in memo:
            stack.pop()
            continue
        if not isinstance(node, Derived):
            memo[id(node)] = node
            stack.pop()
            continue
        left, right = node.cause1, node.cause2
        if _is_no_versions(left):
            needed = [right]
        elif _is_no_versions(right):
            needed = [left]
        else:
            needed = [left, right]
        missing = [child for child in needed if id(child) not in memo]
        if missing:
            stack.extend(missing)
            continue
        if _is_no_versions(left):
            result = _merge_no_versions(memo[id(right)], left.cause) or node
        elif _is_no_versions(right):
            result = _merge_no_versions(memo[id(left)], right.cause) or node
        else:
            result = replace(node, cause1=memo[id(left)], cause2=memo[id(right)])
        memo[id(node)] = result
        stack.pop()
    return memo[id(root)]


def _is_no_versions(node: DerivationTree) -> bool:
    return isinstance(node, External) and isinstance(node.cause, NoVersions)


def _merge_no_versions(node: DerivationTree, no_versions: NoVersions) -> Optional[DerivationTree]:
    if isinstance(node, Derived):
        return node
    cause = node.cause
    package, versions = no_versions.package, no_versions.versions
    if isinstance(cause, NoVersions):
        return External(NoVersions(package, versions.union(cause.versions)))
    if isinstance(cause, FromDependencyOf):
        if cause.package == package:
            return External(replace(cause, versions=cause.versions.union(versions)))
        return External(
            replace(cause, dependency_versions=cause.dependency_versions.union(versions))
        )
    # NotRoot and Custom leaves do not absorb a missing-versions fact.
    return None


def _simplify(
    root: DerivationTree, versions_for: Callable[[Any], Iterable[Any]]
) -> DerivationTree:
    memo: dict[int, DerivationTree] = {}
    stack = [root]
    while stack:
        node = stack[-1]
        if id(node) in memo:
            stack.pop()
            continue
        if isinstance(node, Derived):
            missing = [c for c in (node.cause1, node.cause2) if id(c) not in memo]
            if missing:
                stack.extend(missing)
                continue
            memo[id(node)] = replace(
                node, cause1=memo[id(node.cause1)], cause2=memo[id(node.cause2)]
            )
        else:
            memo[id(node)] = External(_simplify_cause(node.cause, versions_for))
        stack.pop()
    return memo[id(root)]


def _simplify_cause(
    cause: ExternalCause, versions_for: Callable[[Any], Iterable[Any]]
) -> ExternalCause:
    if isinstance(cause, (NoVersions, Custom)):
        return replace(cause, versions=cause.versions.simplify(versions_for(cause.package)))
    if isinstance(cause, FromDependencyOf):
        return replace(
            cause,
            versions=cause.versions.simplify(versions_for(cause.package)),
            dependency_versions=cause.dependency_versions.simplify(
                versions_for(cause.dependency)
            ),
        )
    return cause
