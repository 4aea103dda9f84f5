"""
Manifest loader and discovery.

Two manifest flavours are understood:

- ``*.sysdef``: Python source evaluated in a throwaway module. It
  declares systems by calling ``define_system(...)``, which is provided
  in its namespace.
- ``*.sysdef.yaml`` / ``*.sysdef.yml`` / ``*.sysdef.json``: declarative
  form, either one system mapping or ``{"systems": [...]}``.

Example ``demo.sysdef``::

    define_system(
        "demo",
        version="1.0.0",
        depends_on=["util"],
        components=[("lib", ["a.py", "b.py"])],
    )
"""

from __future__ import annotations

import importlib.machinery
import importlib.util
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Union

import yaml

from ..components.core import GeneratorDescriptor
from ..errors import ErrorSpan, ManifestValidationError
from ..version import CustomVersion, DynamicVersion, Prerelease, SemanticVersion, parse_version
from .core import System, SystemRegistry, originating_directory

logger = logging.getLogger("sysdef.registry.loader")

PYTHON_SUFFIX = ".sysdef"
DSL_SUFFIXES = (".sysdef.yaml", ".sysdef.yml", ".sysdef.json")

_DECLARATION_KEYS = frozenset({
    "name",
    "directory",
    "description",
    "authors",
    "homepage",
    "licenses",
    "version",
    "depends_on",
    "components",
})


@dataclass
class ManifestSource:
    """
    Manifest source descriptor.
    """

    type: str  # "python", "dsl"
    path: Path

    @property
    def origin(self) -> str:
        return str(self.path)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ManifestSource":
        path = Path(path)
        if path.name.endswith(DSL_SUFFIXES):
            return cls("dsl", path)
        if path.name.endswith(PYTHON_SUFFIX):
            return cls("python", path)
        raise ValueError(f"Unknown manifest source type: {path}")

    def __repr__(self) -> str:
        return f"ManifestSource({self.type}, {self.origin})"


def is_manifest(path: Path) -> bool:
    return path.name.endswith(PYTHON_SUFFIX) or path.name.endswith(DSL_SUFFIXES)


def discover(roots: Sequence[Union[str, Path]]) -> Iterator[Path]:
    """
    Yield manifest files below *roots*.

    Every manifest of a directory is yielded before anything from its
    subdirectories. Hidden directories are skipped.
    """
    for root in roots:
        root = Path(root)
        if root.is_file():
            if is_manifest(root):
                yield root
            continue
        if root.is_dir():
            yield from _discover_in_directory(root)


def _discover_in_directory(directory: Path) -> Iterator[Path]:
    entries = sorted(directory.iterdir(), key=lambda p: p.name)
    for entry in entries:
        if entry.is_file() and is_manifest(entry):
            yield entry
    for entry in entries:
        if entry.is_dir() and not entry.name.startswith("."):
            yield from _discover_in_directory(entry)


class _ManifestFileLoader(importlib.machinery.SourceFileLoader):
    """Source loader for ``.sysdef`` files that never writes bytecode beside them."""

    def set_data(self, path, data, *, _mode=0o666):
        pass


class ManifestLoader:
    """
    Evaluates manifests against one registry.

    Names bound by a Python manifest stay in its own namespace, and
    modules it imports are dropped from ``sys.modules`` afterwards.
    """

    def __init__(self, registry: SystemRegistry):
        self.registry = registry

    def load_roots(self, roots: Sequence[Union[str, Path]]) -> List[System]:
        """Load every manifest discovered under *roots*."""
        systems: List[System] = []
        for path in discover(roots):
            systems.extend(self.load_file(path))
        logger.info("Loaded %d system(s) from %s", len(systems), ", ".join(map(str, roots)))
        return systems

    def load_file(self, path: Union[str, Path]) -> List[System]:
        """
        Evaluate one manifest.

        Returns:
            Systems the manifest defined, in definition order

        Raises:
            ManifestValidationError: If a declaration is invalid
            MalformedComponentFormError: If a component form is invalid
        """
        source = ManifestSource.from_path(path)
        logger.debug("Evaluating %r", source)

        with originating_directory(source.path.parent):
            if source.type == "python":
                return self._load_python(source)
            return self._load_dsl(source)

    # ── Python manifests ─────────────────────────────────────────────

    def _load_python(self, source: ManifestSource) -> List[System]:
        defined: List[System] = []

        def define_system(name: str, **kwargs: Any) -> System:
            kwargs.setdefault("source", source.origin)
            system = self.registry.define_system(name, **kwargs)
            defined.append(system)
            return system

        module_name = f"_sysdef_manifest_{source.path.name.split('.')[0]}"
        loader = _ManifestFileLoader(module_name, source.origin)
        spec = importlib.util.spec_from_file_location(module_name, source.origin, loader=loader)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load manifest from {source.origin}")

        module = importlib.util.module_from_spec(spec)
        module.__dict__.update(
            define_system=define_system,
            GeneratorDescriptor=GeneratorDescriptor,
            SemanticVersion=SemanticVersion,
            DynamicVersion=DynamicVersion,
            CustomVersion=CustomVersion,
            Prerelease=Prerelease,
            parse_version=parse_version,
        )

        saved_modules = set(sys.modules)
        try:
            spec.loader.exec_module(module)
        finally:
            for name in set(sys.modules) - saved_modules:
                del sys.modules[name]

        return defined

    # ── Declarative manifests ────────────────────────────────────────

    def _load_dsl(self, source: ManifestSource) -> List[System]:
        text = source.path.read_text(encoding="utf-8")
        span = ErrorSpan(file=source.origin)
        try:
            if source.path.name.endswith(".json"):
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ManifestValidationError(source.path.name, [f"Cannot parse manifest: {e}"], span=span) from e

        if isinstance(data, dict) and "systems" in data:
            if set(data) != {"systems"} or not isinstance(data["systems"], list):
                raise ManifestValidationError(
                    source.path.name,
                    ["'systems' must be a list and the only top-level key"],
                    span=span,
                )
            declarations = data["systems"]
        elif isinstance(data, dict):
            declarations = [data]
        elif data is None:
            declarations = []
        else:
            raise ManifestValidationError(
                source.path.name, ["Manifest must be a mapping"], span=span,
            )

        return [self._define(declaration, source) for declaration in declarations]

    def _define(self, declaration: Any, source: ManifestSource) -> System:
        span = ErrorSpan(file=source.origin)
        if not isinstance(declaration, dict):
            raise ManifestValidationError(
                source.path.name, ["Each system must be a mapping"], span=span,
            )

        errors: List[str] = []
        unknown = sorted(set(declaration) - _DECLARATION_KEYS)
        if unknown:
            errors.append(f"Unknown field(s): {', '.join(unknown)}")
        if not declaration.get("name"):
            errors.append("Missing required field: name")
        if errors:
            raise ManifestValidationError(
                str(declaration.get("name", source.path.name)), errors, span=span,
            )

        fields: Dict[str, Any] = dict(declaration)
        name = fields.pop("name")
        if isinstance(fields.get("version"), (int, float)) and not isinstance(fields["version"], bool):
            fields["version"] = str(fields["version"])
        return self.registry.define_system(name, source=source.origin, **fields)
