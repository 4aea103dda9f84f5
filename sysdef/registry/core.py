"""
System registry.

Maps canonical (lowercase) system names to ``System`` records. The
registry is an explicit object; a process-wide default instance backs the
module-level helpers in ``sysdef``.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from ..components.core import Component, walk_components
from ..components.factory import make_components
from ..components.kinds import KindRegistry, default_kinds
from ..errors import ErrorSpan, ManifestValidationError, UnknownSystemError
from ..version import Version, parse_version

logger = logging.getLogger("sysdef.registry")

# Directory of the manifest currently being evaluated.
current_directory: contextvars.ContextVar[Optional[Path]] = contextvars.ContextVar(
    "sysdef_current_directory", default=None,
)


@contextlib.contextmanager
def originating_directory(directory: Union[str, Path]) -> Iterator[Path]:
    """Resolve relative system directories against *directory* inside the block."""
    path = Path(directory).resolve()
    token = current_directory.set(path)
    try:
        yield path
    finally:
        current_directory.reset(token)


def canonical_name(name: str) -> str:
    return name.lower()


@dataclass
class System:
    """
    A named unit of project metadata plus its component forest.
    """

    name: str
    directory: Path
    description: str = ""
    authors: List[str] = field(default_factory=list)
    homepage: str = ""
    licenses: List[str] = field(default_factory=list)
    version: Optional[Version] = None
    depends_on: List[str] = field(default_factory=list)
    components: List[Component] = field(default_factory=list)
    source: str = ""

    @property
    def key(self) -> str:
        """Canonical registry name."""
        return canonical_name(self.name)

    def walk(self) -> Iterator[Component]:
        return walk_components(self.components)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "directory": str(self.directory),
            "description": self.description,
            "authors": list(self.authors),
            "homepage": self.homepage,
            "licenses": list(self.licenses),
            "version": str(self.version) if self.version is not None else None,
            "depends_on": list(self.depends_on),
            "components": [c.to_dict() for c in self.components],
            "source": self.source,
        }

    def __repr__(self) -> str:
        return f"<System {self.name} ({len(self.components)} root components)>"


def _string_list(field_name: str, value: Any, errors: List[str]) -> List[str]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        errors.append(f"Field '{field_name}' must be a list of strings")
        return []
    items = list(value)
    for i, item in enumerate(items):
        if not isinstance(item, str) or not item:
            errors.append(f"{field_name}[{i}] must be a non-empty string")
    return items


class SystemRegistry:
    """
    Canonical-name index of systems.

    Not thread-safe; callers registering from several threads must
    serialize access themselves.
    """

    def __init__(self, kinds: Optional[KindRegistry] = None):
        self.kinds = kinds if kinds is not None else default_kinds()
        self._systems: Dict[str, System] = {}

    # ── Lifecycle ────────────────────────────────────────────────────

    def reset(self) -> None:
        """Forget every registered system."""
        self._systems.clear()

    def initialize(self, roots: Sequence[Union[str, Path]]) -> List[System]:
        """
        Discard all entries, then register every manifest under *roots*.

        Returns:
            Systems defined by the discovered manifests, in load order
        """
        from .loader import ManifestLoader

        self.reset()
        return ManifestLoader(self).load_roots(roots)

    # ── Definition ───────────────────────────────────────────────────

    def define_system(
        self,
        name: str,
        *,
        directory: Union[str, Path] = ".",
        description: str = "",
        authors: Sequence[str] = (),
        homepage: str = "",
        licenses: Sequence[str] = (),
        version: Any = None,
        depends_on: Sequence[str] = (),
        components: Sequence[Any] = (),
        source: str = "",
    ) -> System:
        """
        Build a system from its declaration and register it.

        Any system previously registered under the same canonical name is
        replaced.

        Raises:
            ManifestValidationError: If metadata fields are invalid
            MalformedComponentFormError: If a component form is invalid;
                nothing is registered in that case
        """
        errors: List[str] = []
        span = ErrorSpan(file=source) if source else None

        if not isinstance(name, str) or not name.strip():
            raise ManifestValidationError(
                str(name), ["Missing required field: name"], span=span,
            )

        author_list = _string_list("authors", authors, errors)
        license_list = _string_list("licenses", licenses, errors)
        dependencies = _string_list("depends_on", depends_on, errors)

        try:
            parsed_version = parse_version(version)
        except ValueError as e:
            errors.append(str(e))
            parsed_version = None

        if errors:
            raise ManifestValidationError(name, errors, span=span)

        base = current_directory.get() or Path.cwd()
        resolved = (base / Path(directory).expanduser()).resolve()

        system = System(
            name=name,
            directory=resolved,
            description=description or "",
            authors=author_list,
            homepage=homepage or "",
            licenses=license_list,
            version=parsed_version,
            depends_on=dependencies,
            components=make_components(components, self.kinds),
            source=source,
        )

        for component in system.walk():
            component.system = system

        if system.key in self._systems:
            logger.debug("Replacing system %s", system.key)
        self._systems[system.key] = system
        logger.debug("Defined system %s at %s", system.name, system.directory)
        return system

    # ── Lookup ───────────────────────────────────────────────────────

    def find_system(self, name: str) -> System:
        """
        Raises:
            UnknownSystemError: If no system is registered under *name*
        """
        try:
            return self._systems[canonical_name(name)]
        except KeyError:
            raise UnknownSystemError(name) from None

    def resolve(self, designator: Union[System, str]) -> System:
        """Accept a System as is, look names up."""
        if isinstance(designator, System):
            return designator
        return self.find_system(designator)

    def list_systems(self) -> List[System]:
        """Every system, sorted by canonical name."""
        return [self._systems[key] for key in sorted(self._systems)]

    def list_system_components(self, designator: Union[System, str]) -> List[Component]:
        """Depth-first pre-order flattening of a system's components."""
        return list(self.resolve(designator).walk())

    def dependency_graph(self):
        """DependencyGraph over every registered system."""
        from .graph import DependencyGraph

        graph = DependencyGraph()
        for system in self.list_systems():
            graph.add_node(system.key, [canonical_name(d) for d in system.depends_on])
        return graph

    def __contains__(self, name: str) -> bool:
        return canonical_name(name) in self._systems

    def __len__(self) -> int:
        return len(self._systems)

    def __iter__(self) -> Iterator[System]:
        return iter(self.list_systems())

    def __repr__(self) -> str:
        return f"SystemRegistry({len(self._systems)} systems)"


_default_registry: Optional[SystemRegistry] = None


def default_registry() -> SystemRegistry:
    """Process-wide registry, created on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = SystemRegistry()
    return _default_registry
