"""
Component tree: node kinds, the kind registry and the form factory.
"""

from .core import (
    Component,
    Group,
    StaticFile,
    GeneratorDescriptor,
    walk_components,
)
from .kinds import (
    PythonSource,
    KindRegistry,
    BUILTIN_KINDS,
    default_kinds,
)
from .factory import (
    make_component,
    make_components,
    canonical_group_name,
)

__all__ = [
    # Nodes
    "Component",
    "Group",
    "StaticFile",
    "PythonSource",
    "GeneratorDescriptor",
    "walk_components",
    # Kinds
    "KindRegistry",
    "BUILTIN_KINDS",
    "default_kinds",
    # Factory
    "make_component",
    "make_components",
    "canonical_group_name",
]
