"""Shared fixtures for vsolve tests."""

import pathlib

import pytest

from vsolve.core.solver import (
    DerivationTree,
    DerivedFrom,
    Incompatibility,
    IncompatibilityStore,
    OfflineDependencyProvider,
    Term,
    build_derivation_tree,
)
from vsolve.core.versions import Ranges

CHAIN_LENGTH = 1500

SOLVABLE_INDEX = """\
root:
  "1.0.0":
    a: "==1.0.0"
a:
  "1.0.0":
    b: ">=1.0.0,<2.0.0"
  "2.0.0":
    b: "^2.0.0"
b:
  "1.5.0": {}
  "2.1.0":
"""

UNSOLVABLE_INDEX = """\
root:
  "1.0.0":
    a: "==1.0.0"
    b: "==1.0.0"
a:
  "1.0.0":
    c: "==1.0.0"
b:
  "1.0.0":
    c: "==2.0.0"
c:
  "1.0.0": {}
  "2.0.0": {}
"""


@pytest.fixture
def solvable_index(tmp_path: pathlib.Path) -> pathlib.Path:
    """An index where root 1.0.0 resolves to a 1.0.0 and b 1.5.0."""
    path = tmp_path / "index.yaml"
    path.write_text(SOLVABLE_INDEX)
    return path


@pytest.fixture
def unsolvable_index(tmp_path: pathlib.Path) -> pathlib.Path:
    """An index where a and b need different versions of c."""
    path = tmp_path / "conflict.yaml"
    path.write_text(UNSOLVABLE_INDEX)
    return path


@pytest.fixture(scope="session")
def long_chain_failure() -> tuple[OfflineDependencyProvider, DerivationTree]:
    """root -> p0 -> p1 -> ... -> p1499 -> missing, which has no versions.

    The tree is built straight from the store, one derived incompatibility
    per package, so it is deeper than the interpreter's recursion limit.
    """
    provider = OfflineDependencyProvider()
    store = IncompatibilityStore()
    root = store.add(Incompatibility.not_root("root", 1, Ranges))
    current = store.add(Incompatibility.no_versions("missing", Term.of(Ranges.full())))
    dependency = "missing"
    for i in reversed(range(CHAIN_LENGTH)):
        package = f"p{i}"
        provider.add_dependencies(package, 1, {dependency: Ranges.full()})
        dep = store.add(
            Incompatibility.from_dependency(package, Ranges.singleton(1), dependency, Ranges.full())
        )
        current = store.alloc(
            Incompatibility({package: Term.exact(1, Ranges)}, DerivedFrom(current, dep))
        )
        dependency = package
    provider.add_dependencies("root", 1, {"p0": Ranges.full()})
    dep = store.add(Incompatibility.from_dependency("root", Ranges.singleton(1), "p0", Ranges.full()))
    current = store.alloc(
        Incompatibility({"root": Term.exact(1, Ranges)}, DerivedFrom(current, dep))
    )
    top = store.alloc(Incompatibility({}, DerivedFrom(root, current)))
    return provider, build_derivation_tree(top, store)
