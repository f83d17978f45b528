"""``vsolve solve <index> <package> <version>`` resolves against an offline index.

Loads the index into an ``OfflineDependencyProvider``, runs the solver from
PACKAGE at VERSION, and prints either the selected versions or the
derivation tree explaining the failure.

Exit Codes:
    0 - A solution was found.
    1 - The requirements are unsatisfiable.
    2 - The index or the root version could not be read.
"""

from __future__ import annotations

import json
import logging
import sys

import click

from vsolve.core.index import load_index
from vsolve.core.solver import resolve
from vsolve.core.versions import SemanticVersion
from vsolve.exceptions import ConstraintError, IndexLoadError, NoSolutionError


@click.command("solve")
@click.argument("index", type=click.Path(exists=True, dir_okay=False))
@click.argument("package")
@click.argument("version")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log solver steps to stderr.")
def solve_command(
    index: str, package: str, version: str, output_format: str, verbose: bool
) -> None:
    """Resolve PACKAGE at VERSION against the packages listed in INDEX.

    Exit code 0 on success, 1 if no solution exists, 2 on unreadable input.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        provider = load_index(index)
        root_version = SemanticVersion.parse(version)
    except (IndexLoadError, ConstraintError) as exc:
        if output_format == "json":
            click.echo(json.dumps({"error": str(exc)}))
        else:
            click.echo(f"Error: {exc}")
        sys.exit(2)

    try:
        solution = resolve(provider, package, root_version)
    except NoSolutionError as exc:
        tree = exc.derivation_tree.collapse_no_versions().simplify(provider.versions)
        if output_format == "json":
            from vsolve.cli.output import describe_cause

            click.echo(json.dumps({
                "success": False,
                "facts": [describe_cause(c) for c in tree.external_causes()],
            }, indent=2))
        else:
            from vsolve.cli.output import print_derivation_tree

            print_derivation_tree(tree)
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps({
            "success": True,
            "solution": {str(p): str(v) for p, v in sorted(solution.items())},
        }, indent=2))
    else:
        from vsolve.cli.output import print_solution

        print_solution(solution)
    sys.exit(0)
