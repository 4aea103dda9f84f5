"""
Pipeline - runs generate, build and load over component trees.

The pipeline owns the state every capability needs (build root and
generator registry) and passes itself to each component, so components
never reach for globals.

Cache layout::

    <cache-dir>/<toolchain-signature>/<system>/<component path>.<ext>
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from ..components.core import Component, walk_components
from ..errors import DependencyCycleError
from ..toolchain import build_root as _build_root
from .generators import GeneratorRegistry

logger = logging.getLogger("sysdef.pipeline")

PHASES = ("generate", "build", "load")


class Pipeline:
    """
    Generate/build/load driver.

    Args:
        build_root: ``<cache-dir>/<toolchain-signature>``
        generators: Generator registry; a fresh one with the built-in
            generators when omitted
    """

    def __init__(
        self,
        build_root: Union[str, Path],
        generators: Optional[GeneratorRegistry] = None,
    ):
        self.build_root = Path(build_root)
        self.generators = generators if generators is not None else GeneratorRegistry()

    @classmethod
    def for_cache_dir(
        cls,
        cache_dir: Union[str, Path],
        generators: Optional[GeneratorRegistry] = None,
    ) -> "Pipeline":
        """Pipeline rooted at *cache_dir* plus the toolchain signature."""
        return cls(_build_root(cache_dir), generators)

    @classmethod
    def from_config(cls, config, generators: Optional[GeneratorRegistry] = None) -> "Pipeline":
        return cls(config.build_root, generators)

    # ── Paths ────────────────────────────────────────────────────────

    @staticmethod
    def _owner(component: Component):
        if component.system is None:
            raise ValueError(f"{component!r} does not belong to a system yet")
        return component.system

    def source_path(self, component: Component) -> Path:
        """Declared path under the owning system's directory."""
        return self._owner(component).directory / component.path

    def system_root(self, system) -> Path:
        return self.build_root / system.key

    def cache_path(self, component: Component, file_type: str) -> Path:
        """Build-cache location of *component* with suffix *file_type*."""
        path = component.path
        if file_type:
            path = path.with_suffix(f".{file_type}")
        return self.system_root(self._owner(component)) / path

    def effective_source_path(self, component: Component, file_type: str) -> Path:
        """Where compilation reads from: the cache if generated, else the source tree."""
        if component.generator is not None:
            return self.cache_path(component, file_type)
        return self.source_path(component)

    # ── Single component ─────────────────────────────────────────────

    def generate(self, component: Component) -> None:
        logger.debug("generate %s", component.path)
        component.generate(self)

    def build(self, component: Component) -> None:
        logger.debug("build %s", component.path)
        component.build(self)

    def load(self, component: Component) -> None:
        logger.debug("load %s", component.path)
        component.load(self)

    def process(self, component: Component, phases: Iterable[str] = PHASES) -> None:
        """Run *phases*, in order, on one component."""
        for phase in phases:
            getattr(self, phase)(component)

    # ── Systems ──────────────────────────────────────────────────────

    def load_system(self, designator, registry=None, *, memoize: bool = False):
        """
        Load a system after all of its dependencies.

        Dependencies are processed depth-first in declared order, then the
        system's own components in depth-first pre-order, each one through
        generate, build and load.

        Args:
            designator: A System or a system name
            registry: Registry used to resolve names; the default one when omitted
            memoize: Process each system at most once during this call

        Returns:
            The loaded System

        Raises:
            UnknownSystemError: If a system name cannot be resolved
            DependencyCycleError: If a system depends on itself transitively
        """
        return self._run(designator, registry, PHASES, memoize)

    def build_system(self, designator, registry=None, *, memoize: bool = False):
        """Like ``load_system`` but stops after the build phase."""
        return self._run(designator, registry, PHASES[:2], memoize)

    def build_all(self, registry=None) -> List:
        """
        Generate and build every component of every registered system.

        Systems are visited in ``list_systems()`` order; dependencies are
        not followed since every system gets its turn.
        """
        registry = _registry(registry)
        systems = registry.list_systems()
        for system in systems:
            self._process_components(system, PHASES[:2])
        logger.info("Built %d system(s) under %s", len(systems), self.build_root)
        return systems

    def clean(self, system) -> bool:
        """Remove the build directory of *system*; True if anything was removed."""
        target = self.system_root(system)
        if not target.exists():
            return False
        shutil.rmtree(target)
        logger.info("Removed %s", target)
        return True

    def _run(self, designator, registry, phases, memoize):
        registry = _registry(registry)
        done: Optional[Set[str]] = set() if memoize else None
        system = registry.resolve(designator)
        self._visit(system, registry, phases, [], done)
        logger.info("%s %s", "Loaded" if "load" in phases else "Built", system.name)
        return system

    def _visit(self, system, registry, phases, chain: List[str], done: Optional[Set[str]]) -> None:
        if system.key in chain:
            raise DependencyCycleError(chain[chain.index(system.key):])
        if done is not None and system.key in done:
            return

        chain.append(system.key)
        for name in system.depends_on:
            self._visit(registry.find_system(name), registry, phases, chain, done)
        chain.pop()

        self._process_components(system, phases)
        if done is not None:
            done.add(system.key)

    def _process_components(self, system, phases) -> None:
        for component in walk_components(system.components):
            self.process(component, phases)

    def __repr__(self) -> str:
        return f"Pipeline(build_root={str(self.build_root)!r})"


def _registry(registry):
    if registry is not None:
        return registry
    from ..registry.core import default_registry
    return default_registry()
