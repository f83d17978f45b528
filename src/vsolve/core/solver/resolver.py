"""The top-level resolution loop.

Each iteration of :func:`resolve`:

1. polls ``provider.should_cancel()``,
2. propagates the consequences of the last change,
3. asks the provider which pending package to decide next (none left means
   the partial solution is a full solution),
4. asks the provider for a version of it; if there is none, records a
   "no versions" incompatibility and loops,
5. fetches that version's dependencies once, records them as
   incompatibilities, and decides the version unless one of them conflicts
   immediately.

Cancellation is polled at the top of every iteration (so once per decision)
and at every conflict-resolution step.
"""

from __future__ import annotations

import logging
from typing import Any

from vsolve.core.solver.incompatibility import Incompatibility
from vsolve.core.solver.provider import DependencyProvider
from vsolve.core.solver.state import State
from vsolve.core.solver.term import Term
from vsolve.exceptions import (
    CancelledError,
    DependencyRetrievalError,
    InvariantError,
    VersionChoiceError,
)

logger = logging.getLogger(__name__)


def resolve(provider: DependencyProvider, package: Any, version: Any) -> dict[Any, Any]:
    """Find a version for every package required by ``package`` at ``version``.

    Args:
        provider: Source of versions and dependencies.
        package: The root package.
        version: The root package's version.

    Returns:
        A mapping of every selected package (the root included) to its version.

    Raises:
        NoSolutionError: The requirements are unsatisfiable; carries the
            derivation tree explaining why.
        DependencyRetrievalError: ``get_dependencies`` raised.
        VersionChoiceError: ``choose_version`` raised.
        CancelledError: ``should_cancel`` returned True or raised.
        InvariantError: The provider broke its contract.
    """

    def check_cancel() -> None:
        try:
            cancel = provider.should_cancel()
        except Exception as exc:
            raise CancelledError() from exc
        if cancel:
            raise CancelledError()

    state = State(package, version, provider.version_set_type, check_cancel)
    visited: dict[Any, set[Any]] = {}
    next_package = package

    while True:
        check_cancel()
        state.unit_propagation(next_package)

        next_package = state.partial_solution.pick_highest_priority_package(
            provider.prioritize
        )
        if next_package is None:
            solution = state.partial_solution.extract_solution()
            logger.debug("resolved %d packages", len(solution))
            return solution

        term = state.partial_solution.term_intersection_for_package(next_package)
        versions = term.unwrap_positive()
        try:
            chosen = provider.choose_version(next_package, versions)
        except Exception as exc:
            raise VersionChoiceError(next_package) from exc

        if chosen is None:
            logger.info("no versions of %s in %s", next_package, versions)
            state.add_incompatibility(Incompatibility.no_versions(next_package, term))
            continue

        if not term.contains(chosen):
            raise InvariantError(
                f"choose_version picked {next_package} {chosen}, outside {versions}"
            )

        seen = visited.setdefault(next_package, set())
        if chosen in seen:
            state.partial_solution.add_decision(next_package, chosen)
            continue
        seen.add(chosen)

        try:
            dependencies = provider.get_dependencies(next_package, chosen)
        except Exception as exc:
            raise DependencyRetrievalError(next_package, chosen) from exc

        if not dependencies.is_available:
            logger.info(
                "%s %s is unavailable: %s", next_package, chosen, dependencies.reason
            )
            state.add_incompatibility(
                Incompatibility.custom_term(
                    next_package,
                    Term.exact(chosen, provider.version_set_type),
                    dependencies.reason,
                )
            )
            continue

        dep_ids = state.add_incompatibility_from_dependencies(
            next_package, chosen, dependencies.requirements
        )
        state.partial_solution.add_version(next_package, chosen, dep_ids, state.store)
