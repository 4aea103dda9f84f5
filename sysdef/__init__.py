"""
sysdef - system definitions and build orchestration.

A project declares a named *system*: metadata, dependencies on other
systems and a tree of *components* (source files, generated files, static
files, groups). sysdef then:

- builds every component that needs compiling into a build cache keyed by
  the toolchain signature
- loads a system after its dependencies, running generate, build and load
  on each component in order

Quick start::

    import sysdef

    sysdef.define_system(
        "demo",
        directory="src",
        components=[("lib", ["a.py", "b.py"])],
    )
    sysdef.load_system("demo")

The module-level helpers operate on process-wide default objects. Code
that wants isolated state creates its own ``SystemRegistry``,
``KindRegistry`` and ``Pipeline``.
"""

__version__ = "0.3.0"

from typing import Any, List, Optional

from .components import (
    Component,
    Group,
    StaticFile,
    PythonSource,
    GeneratorDescriptor,
    KindRegistry,
    default_kinds,
    make_component,
    make_components,
    walk_components,
)
from .config import ConfigLoader, SysdefConfig, default_cache_dir
from .errors import (
    SysdefError,
    ErrorSpan,
    UnknownSystemError,
    MalformedComponentFormError,
    GeneratorNotFoundError,
    CompilationFailureError,
    DependencyCycleError,
    ManifestValidationError,
    ConfigError,
)
from .pipeline import Pipeline, GeneratorRegistry
from .registry import (
    System,
    SystemRegistry,
    DependencyGraph,
    ManifestLoader,
    default_registry,
    discover,
)
from .toolchain import toolchain_signature
from .version import (
    Version,
    SemanticVersion,
    DynamicVersion,
    CustomVersion,
    Prerelease,
    PrereleaseKind,
    parse_version,
)

_default_pipeline: Optional[Pipeline] = None


def default_pipeline() -> Pipeline:
    """Process-wide pipeline, configured from ``ConfigLoader.load()`` on first use."""
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = Pipeline.from_config(ConfigLoader.load())
    return _default_pipeline


def define_system(name: str, **kwargs: Any) -> System:
    return default_registry().define_system(name, **kwargs)


def find_system(name: str) -> System:
    return default_registry().find_system(name)


def list_systems() -> List[System]:
    return default_registry().list_systems()


def list_system_components(designator) -> List[Component]:
    return default_registry().list_system_components(designator)


def load_system(designator, *, pipeline: Optional[Pipeline] = None, memoize: bool = False) -> System:
    """Load a system and its dependencies with the default registry."""
    pipeline = pipeline or default_pipeline()
    return pipeline.load_system(designator, default_registry(), memoize=memoize)


def build_all(*, pipeline: Optional[Pipeline] = None) -> List[System]:
    """Build every component of every system in the default registry."""
    pipeline = pipeline or default_pipeline()
    return pipeline.build_all(default_registry())


__all__ = [
    "__version__",
    # Components
    "Component",
    "Group",
    "StaticFile",
    "PythonSource",
    "GeneratorDescriptor",
    "KindRegistry",
    "default_kinds",
    "make_component",
    "make_components",
    "walk_components",
    # Config
    "ConfigLoader",
    "SysdefConfig",
    "default_cache_dir",
    # Errors
    "SysdefError",
    "ErrorSpan",
    "UnknownSystemError",
    "MalformedComponentFormError",
    "GeneratorNotFoundError",
    "CompilationFailureError",
    "DependencyCycleError",
    "ManifestValidationError",
    "ConfigError",
    # Pipeline
    "Pipeline",
    "GeneratorRegistry",
    "default_pipeline",
    # Registry
    "System",
    "SystemRegistry",
    "DependencyGraph",
    "ManifestLoader",
    "default_registry",
    "discover",
    # Toolchain
    "toolchain_signature",
    # Version
    "Version",
    "SemanticVersion",
    "DynamicVersion",
    "CustomVersion",
    "Prerelease",
    "PrereleaseKind",
    "parse_version",
    # Operations
    "define_system",
    "find_system",
    "list_systems",
    "list_system_components",
    "load_system",
    "build_all",
]
