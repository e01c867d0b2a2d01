"""Dependency graph utilities.

Provides the in-memory workspace graph and the topological ordering used
to visit packages so that every dependency is processed before the packages
that depend on it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping

from .errors import ConfigurationError
from .models import FilterPolicy, Package


def topo_sort(deps_by_name: Mapping[str, list[str]]) -> list[str]:
    """Topologically sort packages by their internal dependencies.

    Uses Kahn's algorithm to produce an order where dependencies come
    before dependents. Ties are broken by the order of ``deps_by_name``
    (declaration order), so the output is deterministic.

    Args:
        deps_by_name: Map of package name → names of its dependencies.

    Returns:
        List of package names, dependencies first.

    Raises:
        ConfigurationError: If a dependency cycle is detected.

    Example:
        If A depends on B, and B depends on C:
        topo_sort({A: [B], B: [C], C: []}) → [C, B, A]
    """
    # Count incoming edges (dependencies) for each package
    in_degree = {n: 0 for n in deps_by_name}
    # Track reverse dependencies (who depends on each package)
    reverse_deps: dict[str, list[str]] = {n: [] for n in deps_by_name}

    for name, deps in deps_by_name.items():
        for dep in dict.fromkeys(deps):
            # Only count dependencies that are within the packages we're sorting
            if dep in deps_by_name:
                in_degree[name] += 1
                reverse_deps[dep].append(name)

    queue = [n for n, d in in_degree.items() if d == 0]
    order: list[str] = []

    while queue:
        node = queue.pop(0)
        order.append(node)
        for dependent in reverse_deps[node]:
            in_degree[dependent] -= 1
            # When a package has all deps satisfied, add to queue
            if in_degree[dependent] == 0:
                queue.append(dependent)

    # If we didn't process all packages, there must be a cycle
    if len(order) != len(deps_by_name):
        remaining = sorted(n for n in deps_by_name if n not in set(order))
        raise ConfigurationError(
            f"Dependency cycle detected involving: {', '.join(remaining)}"
        )

    return order


class PackageGraph:
    """The filtered set of workspace packages and their internal edges.

    Dependencies on packages outside the filtered set are invisible to the
    graph. The dependency order is computed on construction, so an invalid
    workspace fails before any bump is computed.
    """

    def __init__(self, packages: Mapping[str, Package]) -> None:
        self._packages = dict(packages)
        self._deps: dict[str, list[Package]] = {
            name: self._resolve_deps(pkg) for name, pkg in self._packages.items()
        }
        self._order = topo_sort(
            {name: [d.name for d in deps] for name, deps in self._deps.items()}
        )

    @classmethod
    def from_packages(
        cls, packages: list[Package], policy: FilterPolicy | None = None
    ) -> PackageGraph:
        """Build a graph from discovered packages.

        Raises:
            ConfigurationError: On duplicate package names or a cycle.
        """
        policy = policy or FilterPolicy()
        by_name: dict[str, Package] = {}
        for pkg in packages:
            if pkg.name in by_name:
                raise ConfigurationError(
                    f"Duplicate package name {pkg.name!r} "
                    f"({by_name[pkg.name].path} and {pkg.path})"
                )
            by_name[pkg.name] = pkg
        return cls({n: p for n, p in by_name.items() if policy.matches(n)})

    def _resolve_deps(self, package: Package) -> list[Package]:
        names = dict.fromkeys([*package.dependencies, *package.dev_dependencies])
        return [
            self._packages[n]
            for n in names
            if n in self._packages and n != package.name
        ]

    def __iter__(self) -> Iterator[Package]:
        return iter(self._packages.values())

    def __getitem__(self, name: str) -> Package:
        return self._packages[name]

    @property
    def order(self) -> list[str]:
        """Package names, dependencies first."""
        return list(self._order)

    def dependencies_in_workspace(self, package: Package) -> list[Package]:
        """In-graph dependencies (prod, then dev) in declaration order."""
        return list(self._deps[package.name])

    def visit_in_dependency_order(self, visitor: Callable[[Package], None]) -> None:
        """Call ``visitor`` once per package, dependencies first."""
        for name in self._order:
            visitor(self._packages[name])
