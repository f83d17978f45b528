"""Offline package indexes: YAML or JSON files describing a package universe.

An index maps package -> version -> {dependency: constraint}::

    root:
      "1.0.0":
        a: "==1.0.0"
    a:
      "1.0.0":
        b: ">=1.0.0,<2.0.0"
    b:
      "1.5.0": {}

Versions are parsed with :class:`SemanticVersion` and constraints with
:func:`parse_constraint`. Quote versions in YAML: an unquoted ``1.10`` is
read as the float ``1.1``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from vsolve.core.solver.provider import OfflineDependencyProvider
from vsolve.core.versions import SemanticVersion, parse_constraint
from vsolve.exceptions import ConstraintError, IndexLoadError


def load_index(path: str | Path) -> OfflineDependencyProvider:
    """Read an index file into an ``OfflineDependencyProvider``.

    Files ending in ``.json`` are read as JSON, everything else as YAML.

    Raises:
        IndexLoadError: If the file is unreadable, malformed, or holds an
            invalid version or constraint, or lists a version twice.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IndexLoadError(f"Cannot read index {path}: {exc}") from exc

    try:
        if path.suffix == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise IndexLoadError(f"Malformed index {path}: {exc}") from exc

    return provider_from_mapping(data if data is not None else {})


def provider_from_mapping(data: Any) -> OfflineDependencyProvider:
    """Build a provider from an already-parsed index mapping."""
    if not isinstance(data, dict):
        raise IndexLoadError("Index must map package names to versions")
    provider = OfflineDependencyProvider()
    for package, versions in data.items():
        if not isinstance(versions, dict):
            raise IndexLoadError(f"Package {package!r} must map versions to dependencies")
        for raw_version, deps in versions.items():
            try:
                version = SemanticVersion.parse(str(raw_version))
                if deps is None:
                    deps = {}
                if not isinstance(deps, dict):
                    raise IndexLoadError(
                        f"Dependencies of {package} {raw_version} must be a mapping"
                    )
                requirements = {
                    str(dep): parse_constraint(str(constraint))
                    for dep, constraint in deps.items()
                }
            except ConstraintError as exc:
                raise IndexLoadError(f"{package} {raw_version}: {exc}") from exc
            if provider.dependencies(str(package), version) is not None:
                raise IndexLoadError(
                    f"{package} {raw_version}: version {version} is listed more than once"
                )
            provider.add_dependencies(str(package), version, requirements)
    return provider
