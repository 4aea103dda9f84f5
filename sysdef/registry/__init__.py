"""
System registry, dependency graph and manifest loading.
"""

from .core import (
    System,
    SystemRegistry,
    canonical_name,
    current_directory,
    default_registry,
    originating_directory,
)
from .graph import DependencyGraph
from .loader import (
    ManifestLoader,
    ManifestSource,
    discover,
    is_manifest,
    PYTHON_SUFFIX,
    DSL_SUFFIXES,
)

__all__ = [
    # Core
    "System",
    "SystemRegistry",
    "canonical_name",
    "current_directory",
    "default_registry",
    "originating_directory",
    # Graph
    "DependencyGraph",
    # Loader
    "ManifestLoader",
    "ManifestSource",
    "discover",
    "is_manifest",
    "PYTHON_SUFFIX",
    "DSL_SUFFIXES",
]
