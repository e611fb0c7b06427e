"""Dependency graph with provider tracking and layered topological ordering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .logger import debugln


class SelfReferentialError(Exception):
    """Raised when a node is made to depend on itself."""

    def __init__(self, message="self-referential dependencies not allowed"):
        super().__init__(message)


class ConflictingAliasError(Exception):
    """Raised when an alias is already defined."""

    def __init__(self, message="alias already defined"):
        super().__init__(message)


class CircularDependencyError(Exception):
    """Raised when an edge would create a dependency cycle."""

    def __init__(self, message="circular dependencies not allowed"):
        super().__init__(message)


@dataclass
class Depend:
    """A dependency expression: name, optional version constraint and description."""

    name: str
    version: str = ""
    description: str = ""
    mod: str = ""


@dataclass
class NodeInfo:
    """Display attributes and payload of a node."""

    color: str = ""
    background: str = ""
    value: Any = None


@dataclass
class DependencyInfo:
    """Which node provides a dependency, and the dependency it satisfies."""

    provider: Any
    depend: Depend


def _add_to_depmap(depmap, key, node):
    depmap.setdefault(key, set()).add(node)


def _remove_from_depmap(depmap, key, node):
    """Remove node under key; return True if the entry held a single node and was dropped."""
    nodes = depmap.get(key)
    if nodes is None:
        return False
    if len(nodes) == 1:
        del depmap[key]
        return True
    nodes.discard(node)
    return False


class Graph:
    """A directed graph where an edge child -> parent means child depends on parent."""

    def __init__(self):
        self._nodes = set()
        self._node_info = {}
        self._provides = {}
        self._dependencies = {}  # child -> parents
        self._dependents = {}  # parent -> children

    def __len__(self):
        return len(self._nodes)

    def exists(self, node):
        return node in self._nodes

    def add_node(self, node):
        self._nodes.add(node)

    def provides_exists(self, provides):
        return provides in self._provides

    def get_provider_node(self, provides) -> Optional[DependencyInfo]:
        return self._provides.get(provides)

    def provides(self, provides, dep_info, node):
        """Record that node provides the name provides, satisfying dep_info."""
        self._provides[provides] = DependencyInfo(provider=node, depend=dep_info)

    def for_each(self, fn: Callable):
        """Call fn(node, value) for each node; an exception from fn stops the walk."""
        for node in list(self._nodes):
            info = self._node_info.get(node)
            fn(node, info.value if info is not None else None)

    def set_node_info(self, node, node_info):
        self._node_info[node] = node_info

    def get_node_info(self, node) -> Optional[NodeInfo]:
        return self._node_info.get(node)

    def depend_on(self, child, parent):
        """Add the edge child -> parent, refusing self references and cycles."""
        if child == parent:
            raise SelfReferentialError()
        if self.depends_on(parent, child):
            raise CircularDependencyError()

        self._nodes.add(parent)
        self._nodes.add(child)
        _add_to_depmap(self._dependents, parent, child)
        _add_to_depmap(self._dependencies, child, parent)

    def __str__(self):
        lines = [
            "digraph {",
            "compound=true;",
            "concentrate=true;",
            "node [shape = record, ordering=out];",
        ]
        for node in self._nodes:
            extra = ""
            info = self._node_info.get(node)
            if info is not None and (info.background or info.color):
                extra = (
                    f"[color = {info.color}, style = filled, fillcolor = {info.background}]"
                )
            lines.append(f'\t"{node}"{extra};')

        for parent, children in self._dependencies.items():
            for child in children:
                lines.append(f'\t"{parent}" -> "{child}";')

        return "\n".join(lines) + "\n}"

    def depends_on(self, child, parent):
        """Whether child depends on parent, directly or transitively."""
        return parent in self.dependencies(child)

    def has_dependent(self, parent, child):
        """Whether child depends on parent, directly or transitively."""
        return child in self.dependents(parent)

    def _leaves(self):
        leaves = {}
        for node in self._nodes:
            if node not in self._dependencies:
                info = self._node_info.get(node)
                leaves[node] = info.value if info is not None else None
        return leaves

    def topo_sorted_layer_map(self, check_fn: Optional[Callable] = None):
        """Layers of {node: value}, dependencies before dependents.

        Returns None as soon as check_fn raises for a node.
        """
        layers = []
        shrinking = self._clone()

        while True:
            leaves = shrinking._leaves()
            if not leaves:
                break
            layers.append(leaves)

            for node, value in leaves.items():
                if check_fn is not None:
                    try:
                        check_fn(node, value)
                    except Exception:  # noqa: BLE001 - any failure aborts the ordering
                        return None
                shrinking._remove(node)

        return layers

    def prune(self, node):
        """Remove node, its dependents, and dependencies no longer needed; return removed nodes."""
        pruned = [node]

        for dependent in list(self._dependents.get(node, ())):
            last = _remove_from_depmap(self._dependencies, dependent, node)
            debugln("pruning dependent", dependent, last)
            if last:
                pruned.extend(self.prune(dependent))
        self._dependents.pop(node, None)

        for dependency in list(self._dependencies.get(node, ())):
            last = _remove_from_depmap(self._dependents, dependency, node)
            debugln("pruning dependency", dependency, last)
            if last:
                pruned.extend(self.prune(dependency))
        self._dependencies.pop(node, None)

        self._nodes.discard(node)
        return pruned

    def _remove(self, node):
        for dependent in list(self._dependents.get(node, ())):
            _remove_from_depmap(self._dependencies, dependent, node)
        self._dependents.pop(node, None)

        for dependency in list(self._dependencies.get(node, ())):
            _remove_from_depmap(self._dependents, dependency, node)
        self._dependencies.pop(node, None)

        self._nodes.discard(node)

    def dependencies(self, child):
        """Every node child depends on, transitively."""
        return self._build_transitive(child, self.immediate_dependencies)

    def immediate_dependencies(self, node):
        return set(self._dependencies.get(node, ()))

    def dependents(self, parent):
        """Every node that depends on parent, transitively."""
        return self._build_transitive(parent, self._immediate_dependents)

    def _immediate_dependents(self, node):
        return set(self._dependents.get(node, ()))

    def _clone(self):
        clone = Graph()
        clone._nodes = set(self._nodes)
        clone._dependencies = {key: set(value) for key, value in self._dependencies.items()}
        clone._dependents = {key: set(value) for key, value in self._dependents.items()}
        clone._node_info = self._node_info
        return clone

    def _build_transitive(self, root, next_fn):
        if root not in self._nodes:
            return set()

        found = set()
        frontier = [root]
        while frontier:
            discovered = []
            for node in frontier:
                for next_node in next_fn(node):
                    if next_node not in found:
                        found.add(next_node)
                        discovered.append(next_node)
            frontier = discovered
        return found