"""Dependency providers: where the solver gets its package metadata.

The solver knows nothing about registries, manifests or the network. It asks
a :class:`DependencyProvider` four questions:

- which pending package to decide next (``prioritize``),
- which version of it to try (``choose_version``),
- what that version depends on (``get_dependencies``),
- whether to give up (``should_cancel``).

Any of these may raise; the solver wraps the exception in the matching
``SolverError`` and aborts. Retry policy belongs to the provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from vsolve.core.versions.ranges import Ranges, VersionSet


@dataclass(frozen=True)
class Dependencies:
    """The answer to ``get_dependencies``.

    Either ``available`` with a mapping of dependency -> allowed versions, or
    ``unavailable`` with a reason (the version cannot be used, e.g. because
    its metadata is broken). An unavailable version is excluded from the
    search, not treated as an error.
    """

    requirements: Optional[Mapping[Any, VersionSet]] = field(default=None)
    reason: Any = None

    @classmethod
    def available(cls, requirements: Mapping[Any, VersionSet]) -> Dependencies:
        return cls(requirements=dict(requirements))

    @classmethod
    def unavailable(cls, reason: Any) -> Dependencies:
        return cls(requirements=None, reason=reason)

    @property
    def is_available(self) -> bool:
        return self.requirements is not None


class DependencyProvider(ABC):
    """The caller-supplied source of package metadata and selection policy.

    ``version_set_type`` is the :class:`VersionSet` implementation used for
    every range exchanged with the solver.
    """

    version_set_type: type[VersionSet] = Ranges

    @abstractmethod
    def prioritize(self, package: Any, versions: VersionSet) -> Any:
        """Priority of ``package``; the solver decides the highest first.

        The priority must be comparable with ``>`` against every other
        priority this provider returns.
        """

    @abstractmethod
    def choose_version(self, package: Any, versions: VersionSet) -> Optional[Any]:
        """A version of ``package`` contained in ``versions``, or None."""

    @abstractmethod
    def get_dependencies(self, package: Any, version: Any) -> Dependencies:
        """Direct requirements of ``package`` at ``version``."""

    def should_cancel(self) -> bool:
        """Polled by the solver; return True (or raise) to abort the resolution."""
        return False


class OfflineDependencyProvider(DependencyProvider):
    """A provider backed by an in-memory table of packages.

    Chooses the highest version in range and decides packages with the
    fewest matching versions first, which keeps backtracking small.

    Example::

        provider = OfflineDependencyProvider()
        provider.add_dependencies("root", 1, {"a": Ranges.full()})
        provider.add_dependencies("a", 1, {})
        resolve(provider, "root", 1)  # {"root": 1, "a": 1}
    """

    def __init__(self) -> None:
        self._dependencies: dict[Any, dict[Any, dict[Any, VersionSet]]] = {}

    def add_dependencies(
        self, package: Any, version: Any, dependencies: Mapping[Any, VersionSet]
    ) -> None:
        """Register ``package`` at ``version`` with its dependencies.

        Adding the same version twice replaces its dependencies.
        """
        self._dependencies.setdefault(package, {})[version] = dict(dependencies)

    def packages(self) -> list[Any]:
        return list(self._dependencies)

    def versions(self, package: Any) -> list[Any]:
        """Known versions of ``package``, ascending."""
        return sorted(self._dependencies.get(package, {}))

    def dependencies(self, package: Any, version: Any) -> Optional[dict[Any, VersionSet]]:
        return self._dependencies.get(package, {}).get(version)

    def prioritize(self, package: Any, versions: VersionSet) -> Any:
        matching = sum(1 for v in self._dependencies.get(package, {}) if versions.contains(v))
        return -matching

    def choose_version(self, package: Any, versions: VersionSet) -> Optional[Any]:
        for version in reversed(self.versions(package)):
            if versions.contains(version):
                return version
        return None

    def get_dependencies(self, package: Any, version: Any) -> Dependencies:
        deps = self.dependencies(package, version)
        if deps is None:
            return Dependencies.unavailable("its metadata is unknown")
        return Dependencies.available(deps)
