"""Rich output formatting helpers for the vsolve CLI.

Provides terminal rendering for solutions (a version table) and for failed
resolutions (the derivation tree with its external facts at the leaves).
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from vsolve.core.solver import (
    Custom,
    DerivationTree,
    Derived,
    FromDependencyOf,
    NotRoot,
    NoVersions,
)

console = Console()


def describe_cause(cause: Any) -> str:
    """One-line description of an external cause."""
    if isinstance(cause, NotRoot):
        return f"{cause.package} {cause.version} is the package being resolved"
    if isinstance(cause, NoVersions):
        return f"there is no version of {cause.package} in {cause.versions}"
    if isinstance(cause, FromDependencyOf):
        return (
            f"{cause.package} {cause.versions} depends on "
            f"{cause.dependency} {cause.dependency_versions}"
        )
    if isinstance(cause, Custom):
        return f"{cause.package} {cause.versions} is unavailable: {cause.metadata}"
    return str(cause)


def print_solution(solution: dict[Any, Any]) -> None:
    """Print the selected version of every package, sorted by name."""
    table = Table(title="Resolved Versions", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Version", justify="right")
    for package in sorted(solution, key=str):
        table.add_row(str(package), str(solution[package]))
    console.print(table)
    console.print(f"[green]{len(solution)} packages resolved[/green]")


def print_derivation_tree(tree: DerivationTree) -> None:
    """Print why resolution failed as a tree, root conflict first."""
    console.print(build_rich_tree(tree))


def build_rich_tree(tree: DerivationTree) -> Tree:
    """Convert a derivation tree into a rich ``Tree``.

    A shared node is expanded the first time it is reached and referred to
    by id afterwards.
    """
    root = Tree(Text("No solution", style="bold red"))
    shown: set[int] = set()
    stack: list[tuple[Tree, DerivationTree]] = [(root, tree)]
    while stack:
        parent, node = stack.pop()
        if not isinstance(node, Derived):
            parent.add(describe_cause(node.cause))
            continue
        if node.shared_id is not None and node.shared_id in shown:
            parent.add(Text(f"see ({node.shared_id})", style="dim"))
            continue
        label = _describe_terms(node.terms)
        if node.shared_id is not None:
            shown.add(node.shared_id)
            label = f"{label} ({node.shared_id})"
        branch = parent.add(label)
        stack.append((branch, node.cause2))
        stack.append((branch, node.cause1))
    return root


def _describe_terms(terms: dict[Any, Any]) -> str:
    if not terms:
        return "version solving failed"
    parts = [f"{package} {term}" for package, term in terms.items()]
    return " and ".join(parts) + " are incompatible"
