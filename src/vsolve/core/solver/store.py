"""Append-only arena of incompatibilities with a per-package index.

Incompatibilities are referred to by their integer id everywhere else in the
solver. Ids are allocated in increasing order and never reused, so a
``DerivedFrom`` cause always points at smaller ids and the structure has no
cycles. Nothing is ever removed from the arena, even after backtracking,
because learned incompatibilities stay valid for the whole run.

The index only lists incompatibilities that take part in unit propagation.
Intermediate resolvents built during conflict resolution live in the arena
(they appear in derivation trees) but are never indexed.
"""

from __future__ import annotations

from typing import Any, Iterator

from vsolve.core.solver.incompatibility import Incompatibility


class IncompatibilityStore:
    """Arena of every incompatibility created during one ``resolve`` call."""

    def __init__(self) -> None:
        self._arena: list[Incompatibility] = []
        self._by_package: dict[Any, list[int]] = {}

    def alloc(self, incompat: Incompatibility) -> int:
        """Store ``incompat`` without indexing it and return its id."""
        self._arena.append(incompat)
        return len(self._arena) - 1

    def register(self, incompat_id: int) -> None:
        """Index ``incompat_id`` under every package it mentions."""
        for package in self._arena[incompat_id]:
            self._by_package.setdefault(package, []).append(incompat_id)

    def unregister(self, incompat_id: int) -> None:
        """Drop ``incompat_id`` from the index; it stays in the arena."""
        for package in self._arena[incompat_id]:
            ids = self._by_package.get(package)
            if ids is not None and incompat_id in ids:
                ids.remove(incompat_id)

    def add(self, incompat: Incompatibility) -> int:
        """Store and index ``incompat``."""
        incompat_id = self.alloc(incompat)
        self.register(incompat_id)
        return incompat_id

    def ids_for(self, package: Any) -> list[int]:
        """Ids of the indexed incompatibilities mentioning ``package``, oldest first."""
        return self._by_package.get(package, [])

    def __getitem__(self, incompat_id: int) -> Incompatibility:
        return self._arena[incompat_id]

    def __len__(self) -> int:
        return len(self._arena)

    def __iter__(self) -> Iterator[Incompatibility]:
        return iter(self._arena)
