"""
Component tree types.

Every node of a system's build tree is a ``Component``. Kinds override
the three pipeline capabilities they need:

- ``generate(pipeline)``: write generated source into the build cache
- ``build(pipeline)``: turn source into an artifact in the build cache
- ``load(pipeline)``: bring the artifact into the running process

All three default to no-ops, except that ``generate`` runs the
component's generator when it declares one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from ..pipeline.core import Pipeline
    from ..registry.core import System


@dataclass(frozen=True)
class GeneratorDescriptor:
    """
    Reference to a host-registered function producing a file's content.

    The pipeline resolves ``(namespace, function)`` in its generator
    registry and calls the result with ``args``.
    """

    namespace: str
    function: str
    args: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.namespace, str) or not self.namespace:
            raise ValueError("Generator namespace must be a non-empty string")
        if not isinstance(self.function, str) or not self.function:
            raise ValueError("Generator function must be a non-empty string")
        object.__setattr__(self, "args", tuple(self.args))

    @classmethod
    def coerce(cls, value: Any) -> "GeneratorDescriptor":
        """
        Accept a descriptor, a ``(namespace, function[, args])`` sequence
        or a mapping with ``namespace``, ``function`` and ``args`` keys.

        Raises:
            ValueError: If the value has none of those shapes
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {"namespace", "function", "args"}
            if unknown:
                raise ValueError(f"Unknown generator keys: {sorted(unknown)}")
            return cls(value.get("namespace"), value.get("function"), _args(value.get("args", ())))
        if isinstance(value, Sequence) and not isinstance(value, str) and len(value) in (2, 3):
            args = value[2] if len(value) == 3 else ()
            return cls(value[0], value[1], _args(args))
        raise ValueError(f"Invalid generator descriptor: {value!r}")

    def to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "function": self.function,
            "args": list(self.args),
        }

    def __str__(self) -> str:
        return f"{self.namespace}:{self.function}"


def _args(value: Any) -> Tuple[Any, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    raise ValueError(f"Generator args must be a list, got {value!r}")


class Component:
    """
    Base component.

    Attributes:
        name: Declared name, unique only among its siblings
        path: Path relative to the owning system's directory
        generator: Optional generator descriptor
        system: Owning system, stamped once the whole tree exists
    """

    kind = "component"

    def __init__(
        self,
        name: str,
        path: PurePosixPath,
        generator: Optional[GeneratorDescriptor] = None,
    ):
        self.name = name
        self.path = PurePosixPath(path)
        self.generator = generator
        self.system: Optional["System"] = None

    @property
    def file_type(self) -> str:
        """Suffix of the declared path, without the dot."""
        return self.path.suffix[1:]

    @property
    def children(self) -> List["Component"]:
        return []

    def walk(self) -> Iterator["Component"]:
        """Yield this node, then every descendant, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    # ── Capabilities ─────────────────────────────────────────────────

    def generate(self, pipeline: "Pipeline") -> None:
        if self.generator is None:
            return
        pipeline.generators.run(
            self.generator,
            pipeline.cache_path(self, self.file_type),
        )

    def build(self, pipeline: "Pipeline") -> None:
        pass

    def load(self, pipeline: "Pipeline") -> None:
        pass

    # ── Introspection ────────────────────────────────────────────────

    def to_dict(self) -> dict:
        data = {"name": self.name, "kind": self.kind, "path": str(self.path)}
        if self.generator is not None:
            data["generator"] = self.generator.to_dict()
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.path}>"


class Group(Component):
    """A directory of child components."""

    kind = "group"

    def __init__(
        self,
        name: str,
        path: PurePosixPath,
        children: Iterable[Component] = (),
        generator: Optional[GeneratorDescriptor] = None,
    ):
        super().__init__(name, path, generator)
        self._children = list(children)

    @property
    def children(self) -> List[Component]:
        return self._children

    def __repr__(self) -> str:
        return f"<Group {self.path} ({len(self._children)} children)>"


class StaticFile(Component):
    """A file that is shipped as is; nothing to generate, build or load."""

    kind = "static-file"


def walk_components(components: Iterable[Component]) -> Iterator[Component]:
    """Depth-first, pre-order walk over a forest."""
    for component in components:
        yield from component.walk()
