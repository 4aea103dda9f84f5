"""
System dependency graph.

Static view of ``depends_on`` edges between registered systems, used by
``sysdef graph`` to report cycles and a dependency-first order without
running any pipeline phase.
"""

from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..errors import DependencyCycleError


class DependencyGraph:
    """
    Directed graph of system name -> names it depends on.

    Names that appear only as dependencies become nodes without edges.
    Cycle search is Tarjan's strongly connected components, O(V+E).
    """

    def __init__(self):
        self._edges: Dict[str, List[str]] = {}

    def add_node(self, name: str, dependencies: List[str]) -> None:
        """Add *name* with its dependencies in declared order, duplicates kept."""
        self._edges[name] = list(dependencies)
        for dep in dependencies:
            self._edges.setdefault(dep, [])

    # ── Cycles ───────────────────────────────────────────────────────

    def strongly_connected_components(self) -> List[List[str]]:
        """
        Every SCC, dependencies before dependents.

        Members of one component are listed in discovery order.
        """
        order: Dict[str, int] = {}
        low: Dict[str, int] = {}
        stack: List[str] = []
        on_stack: Set[str] = set()
        found: List[List[str]] = []

        def visit(name: str) -> None:
            order[name] = low[name] = len(order)
            stack.append(name)
            on_stack.add(name)

            for dep in self._edges[name]:
                if dep not in order:
                    visit(dep)
                    low[name] = min(low[name], low[dep])
                elif dep in on_stack:
                    low[name] = min(low[name], order[dep])

            if low[name] == order[name]:
                members: List[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    members.append(member)
                    if member == name:
                        break
                found.append(sorted(members, key=order.__getitem__))

        for name in self._edges:
            if name not in order:
                visit(name)
        return found

    def find_cycle(self) -> Optional[List[str]]:
        """First cycle found, as the systems on it; ``None`` if acyclic."""
        for members in self.strongly_connected_components():
            if len(members) > 1 or members[0] in self._edges[members[0]]:
                return members
        return None

    def validate(self) -> Tuple[bool, Optional[List[str]]]:
        """``(True, None)`` or ``(False, cycle)``."""
        cycle = self.find_cycle()
        return cycle is None, cycle

    # ── Ordering ─────────────────────────────────────────────────────

    def topological_sort(self) -> List[str]:
        """
        Every node, each after all of its dependencies.

        Raises:
            DependencyCycleError: If the graph has a cycle
        """
        cycle = self.find_cycle()
        if cycle:
            raise DependencyCycleError(cycle)

        result: List[str] = []
        seen: Set[str] = set()

        def visit(name: str) -> None:
            seen.add(name)
            for dep in self._edges[name]:
                if dep not in seen:
                    visit(dep)
            result.append(name)

        for name in self._edges:
            if name not in seen:
                visit(name)
        return result

    # ── Queries ──────────────────────────────────────────────────────

    def get_dependencies(self, name: str) -> List[str]:
        return list(self._edges.get(name, []))

    def get_transitive_dependencies(self, name: str) -> Set[str]:
        """Everything *name* reaches through ``depends_on``, excluding itself."""
        reached: Set[str] = set()
        pending = list(self._edges.get(name, []))
        while pending:
            dep = pending.pop()
            if dep not in reached:
                reached.add(dep)
                pending.extend(self._edges.get(dep, []))
        reached.discard(name)
        return reached

    def get_dependents(self, name: str) -> List[str]:
        return [node for node, deps in self._edges.items() if name in deps]

    def get_roots(self) -> List[str]:
        """Systems that depend on nothing."""
        return [node for node, deps in self._edges.items() if not deps]

    # ── Export ───────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, List[str]]:
        return {node: list(deps) for node, deps in self._edges.items()}

    def to_dot(self) -> str:
        """Graphviz source; repeated edges are drawn once."""
        lines = [
            "digraph systems {",
            "  rankdir=LR;",
            "  node [shape=box, style=rounded];",
        ]
        lines.extend(f'  "{node}";' for node in self._edges)
        for node, deps in self._edges.items():
            lines.extend(f'  "{node}" -> "{dep}";' for dep in dict.fromkeys(deps))
        lines.append("}")
        return "\n".join(lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __contains__(self, name: str) -> bool:
        return name in self._edges

    def __repr__(self) -> str:
        return f"DependencyGraph({len(self._edges)} nodes)"
