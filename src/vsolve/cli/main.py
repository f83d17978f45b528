"""vsolve CLI: explore dependency resolution against offline indexes.

Entry point for the ``vsolve`` command-line tool. Registers all subcommands
under a single Click group.

Commands:
    solve  Resolve a root package against a YAML/JSON index.

Usage::

    vsolve solve index.yaml root 1.0.0
    vsolve solve index.json root 1.0.0 --format json
    vsolve solve index.yaml root 1.0.0 --verbose
"""

from __future__ import annotations

import click

from vsolve import __version__
from vsolve.cli.solve import solve_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """vsolve: PubGrub dependency resolution for offline package indexes.

    Resolve a root package against an index of packages, versions and
    dependency constraints, and explain why resolution fails when it does.
    """


cli.add_command(solve_command)
