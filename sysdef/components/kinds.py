"""
Concrete component kinds and the kind registry.

The kind of a leaf component is picked from the file type of its declared
name when the tree is built. Unmapped file types become ``StaticFile``.
"""

from __future__ import annotations

import importlib.machinery
import importlib.util
import logging
import py_compile
import sys
import warnings
from types import ModuleType
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Type

from ..errors import CompilationFailureError
from .core import Component, StaticFile

if TYPE_CHECKING:
    from ..pipeline.core import Pipeline

logger = logging.getLogger("sysdef.components.kinds")


class PythonSource(Component):
    """
    A Python module.

    ``build`` compiles it to bytecode in the build cache; ``load``
    executes that bytecode and registers the module in ``sys.modules``
    under the file stem.
    """

    kind = "python-source"
    source_type = "py"
    artifact_type = "pyc"

    @property
    def module_name(self) -> str:
        return self.path.stem

    def build(self, pipeline: "Pipeline") -> None:
        source = pipeline.effective_source_path(self, self.source_type)
        target = pipeline.cache_path(self, self.artifact_type)
        target.parent.mkdir(parents=True, exist_ok=True)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                py_compile.compile(
                    str(source),
                    cfile=str(target),
                    dfile=str(source),
                    doraise=True,
                )
            except py_compile.PyCompileError as e:
                raise CompilationFailureError(str(source), e.msg) from e
            except OSError as e:
                raise CompilationFailureError(str(source), str(e)) from e

        for warning in caught:
            logger.warning("%s: %s", source, warning.message)

    def load(self, pipeline: "Pipeline") -> ModuleType:
        artifact = pipeline.cache_path(self, self.artifact_type)
        name = self.module_name

        loader = importlib.machinery.SourcelessFileLoader(name, str(artifact))
        spec = importlib.util.spec_from_file_location(name, str(artifact), loader=loader)
        module = importlib.util.module_from_spec(spec)

        previous = sys.modules.get(name)
        if previous is not None and getattr(previous, "__file__", None) != spec.origin:
            logger.warning("Module %r from %s replaces %s", name, self.path, previous)

        sys.modules[name] = module
        try:
            loader.exec_module(module)
        except BaseException:
            if previous is None:
                sys.modules.pop(name, None)
            else:
                sys.modules[name] = previous
            raise
        return module


BUILTIN_KINDS: Dict[str, Type[Component]] = {
    "py": PythonSource,
}


def _normalize(file_type: str) -> str:
    return file_type.lstrip(".").lower()


class KindRegistry:
    """
    Mapping of file type to component kind.

    Read when component trees are built, never afterwards, so extra kinds
    must be registered before manifests are evaluated.
    """

    def __init__(self, kinds: Optional[Dict[str, Type[Component]]] = None):
        self._kinds: Dict[str, Type[Component]] = {}
        for file_type, cls in (BUILTIN_KINDS if kinds is None else kinds).items():
            self.register(file_type, cls)

    def register(self, file_type: str, cls: Type[Component]) -> None:
        """Map *file_type* (with or without the dot) to *cls*."""
        if not (isinstance(cls, type) and issubclass(cls, Component)):
            raise TypeError(f"Component kind must be a Component subclass, got {cls!r}")
        key = _normalize(file_type)
        if not key:
            raise ValueError("File type must not be empty")
        self._kinds[key] = cls

    def unregister(self, file_type: str) -> None:
        self._kinds.pop(_normalize(file_type), None)

    def lookup(self, file_type: str) -> Type[Component]:
        """Kind for *file_type*, ``StaticFile`` when unmapped."""
        return self._kinds.get(_normalize(file_type), StaticFile)

    def copy(self) -> "KindRegistry":
        return KindRegistry(dict(self._kinds))

    def to_dict(self) -> Dict[str, str]:
        return {key: cls.__name__ for key, cls in sorted(self._kinds.items())}

    def __contains__(self, file_type: str) -> bool:
        return _normalize(file_type) in self._kinds

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._kinds))

    def __len__(self) -> int:
        return len(self._kinds)

    def __repr__(self) -> str:
        return f"KindRegistry({self.to_dict()})"


_default_kinds: Optional[KindRegistry] = None


def default_kinds() -> KindRegistry:
    """Process-wide kind registry, created on first use."""
    global _default_kinds
    if _default_kinds is None:
        _default_kinds = KindRegistry()
    return _default_kinds
