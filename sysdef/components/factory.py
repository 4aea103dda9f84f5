"""
Component tree factory.

Turns declarative component forms into a component tree::

    "README.md"                                   -> StaticFile
    "main.py"                                     -> PythonSource
    ("version.py", {"generator": ("tools", "stamp", ["1.0"])})
    ("lib/", ["a.py", "b.py"])                    -> Group "lib"

Paths accumulate through groups: ``b.py`` above lives at ``lib/b.py``.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..errors import MalformedComponentFormError
from .core import Component, GeneratorDescriptor, Group
from .kinds import KindRegistry, default_kinds

_SEPARATORS = ("/", "\\")


def canonical_group_name(name: str) -> str:
    """Strip one trailing path separator from a group name."""
    if name.endswith(_SEPARATORS):
        return name[:-1]
    return name


def _merge(form: Any, parents: Tuple[str, ...], name: str) -> PurePosixPath:
    """Path of *name* under its enclosing groups; it may not leave them."""
    relative = PurePosixPath(name.replace("\\", "/"))
    if relative.is_absolute():
        raise MalformedComponentFormError(form, "component name must be a relative path")
    if ".." in relative.parts:
        raise MalformedComponentFormError(form, "component name must not contain '..'")
    return PurePosixPath(*parents, relative)


def _is_forms(value: Any) -> bool:
    return (
        isinstance(value, Sequence)
        and not isinstance(value, (str, bytes))
        and len(value) > 0
    )


def make_component(
    form: Any,
    parents: Tuple[str, ...] = (),
    kinds: Optional[KindRegistry] = None,
) -> Component:
    """
    Build one component (and its subtree) from a declarative form.

    Args:
        form: A name, ``(name,)``, ``(name, {"generator": ...})`` or
            ``(name, [child forms])``
        parents: Names of the enclosing groups, outermost first
        kinds: Kind registry to consult; defaults to the process-wide one

    Returns:
        The component, with no owning system set yet

    Raises:
        MalformedComponentFormError: If any form in the subtree is invalid
    """
    kinds = kinds if kinds is not None else default_kinds()

    if isinstance(form, str):
        return _make_leaf(form, form, None, parents, kinds)

    if not isinstance(form, Sequence) or isinstance(form, bytes) or len(form) not in (1, 2):
        raise MalformedComponentFormError(form, "expected a name or a (name, ...) pair")

    name = form[0]
    if not isinstance(name, str):
        raise MalformedComponentFormError(form, "component name must be a string")

    if len(form) == 2 and _is_forms(form[1]) and not isinstance(form[1], Mapping):
        group_name = canonical_group_name(name)
        if not group_name:
            raise MalformedComponentFormError(form, "group name must not be empty")
        path = _merge(form, parents, group_name)
        chain = parents + (group_name,)
        children = [make_component(child, chain, kinds) for child in form[1]]
        return Group(group_name, path, children)

    options = form[1] if len(form) == 2 else {}
    if not isinstance(options, Mapping):
        raise MalformedComponentFormError(form, "expected an options mapping or a non-empty child list")
    unknown = set(options) - {"generator"}
    if unknown:
        raise MalformedComponentFormError(form, f"unknown options {sorted(unknown)}")

    generator = None
    if options.get("generator") is not None:
        try:
            generator = GeneratorDescriptor.coerce(options["generator"])
        except ValueError as e:
            raise MalformedComponentFormError(form, str(e)) from e

    return _make_leaf(form, name, generator, parents, kinds)


def _make_leaf(
    form: Any,
    name: str,
    generator: Optional[GeneratorDescriptor],
    parents: Tuple[str, ...],
    kinds: KindRegistry,
) -> Component:
    if not name or name.endswith(_SEPARATORS):
        raise MalformedComponentFormError(form, "file name must not be empty")
    path = _merge(form, parents, name)
    cls = kinds.lookup(path.suffix[1:])
    return cls(name, path, generator)


def make_components(
    forms: Iterable[Any],
    kinds: Optional[KindRegistry] = None,
) -> List[Component]:
    """Build a forest of root components."""
    if isinstance(forms, (str, bytes, Mapping)):
        raise MalformedComponentFormError(forms, "components must be a list of forms")
    return [make_component(form, (), kinds) for form in forms]
