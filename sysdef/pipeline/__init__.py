"""
Pipeline - generate/build/load dispatch and build-cache paths.
"""

from .core import Pipeline, PHASES
from .generators import (
    GeneratorRegistry,
    BUILTIN_GENERATORS,
    render_template,
    write_atomic,
)

__all__ = [
    "Pipeline",
    "PHASES",
    "GeneratorRegistry",
    "BUILTIN_GENERATORS",
    "render_template",
    "write_atomic",
]
