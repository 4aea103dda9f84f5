"""
Generator registry.

Generators are plain functions registered by the host program under a
``(namespace, function)`` key. A component's generator descriptor names
one of them; the pipeline calls it and captures what it prints into the
component's build-cache file.
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

import jinja2

from ..components.core import GeneratorDescriptor
from ..errors import GeneratorNotFoundError

logger = logging.getLogger("sysdef.pipeline.generators")

GeneratorFunc = Callable[..., Any]


def render_template(template: str, context: Optional[Mapping[str, Any]] = None) -> None:
    """Render a Jinja2 template string and print the result."""
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    print(env.from_string(template).render(**dict(context or {})), end="")


BUILTIN_GENERATORS: Dict[Tuple[str, str], GeneratorFunc] = {
    ("sysdef", "render-template"): render_template,
}


def write_atomic(target: Path, text: str) -> None:
    """Write *text* to a temporary sibling, then rename it over *target*."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, target)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise


class GeneratorRegistry:
    """Explicit ``(namespace, function) -> callable`` table."""

    def __init__(self, *, builtins: bool = True):
        self._generators: Dict[Tuple[str, str], GeneratorFunc] = {}
        if builtins:
            self._generators.update(BUILTIN_GENERATORS)

    def register(self, namespace: str, function: str, func: GeneratorFunc) -> None:
        if not callable(func):
            raise TypeError(f"Generator must be callable, got {func!r}")
        self._generators[(namespace, function)] = func

    def generator(self, namespace: str, function: str) -> Callable[[GeneratorFunc], GeneratorFunc]:
        """
        Decorator form of ``register``::

            @generators.generator("myproject", "version-file")
            def version_file(version):
                print(f"VERSION = {version!r}")
        """
        def decorator(func: GeneratorFunc) -> GeneratorFunc:
            self.register(namespace, function, func)
            return func
        return decorator

    def unregister(self, namespace: str, function: str) -> None:
        self._generators.pop((namespace, function), None)

    def resolve(self, descriptor: GeneratorDescriptor) -> GeneratorFunc:
        """
        Raises:
            GeneratorNotFoundError: If nothing is registered for the descriptor
        """
        try:
            return self._generators[(descriptor.namespace, descriptor.function)]
        except KeyError:
            raise GeneratorNotFoundError(descriptor.namespace, descriptor.function) from None

    def run(self, descriptor: GeneratorDescriptor, target: Path) -> Path:
        """
        Call the generator and store its output at *target*.

        Printed output is captured; a returned string is appended to it.
        Any previous content of *target* is replaced.
        """
        func = self.resolve(descriptor)
        target.parent.mkdir(parents=True, exist_ok=True)

        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            result = func(*descriptor.args)
        if isinstance(result, str):
            buffer.write(result)

        write_atomic(target, buffer.getvalue())
        logger.debug("Generated %s with %s", target, descriptor)
        return target

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return tuple(key) in self._generators

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(sorted(self._generators))

    def __len__(self) -> int:
        return len(self._generators)
