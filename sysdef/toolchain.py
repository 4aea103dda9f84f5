"""
Toolchain signature.

Identifies the executing interpreter so that bytecode built by one
interpreter never shadows bytecode built by another::

    cpython-3.12.4-linux-x86_64
"""

import functools
import platform
import re
import sys
from pathlib import Path
from typing import Callable, Union

UNKNOWN = "unknown"

_UNSAFE = re.compile(r"[^a-z0-9._]+")


def _field(probe: Callable[[], str]) -> str:
    """Run one introspection probe and make its result path-safe."""
    try:
        value = probe()
    except Exception:
        return UNKNOWN
    value = _UNSAFE.sub("_", str(value or "").strip().lower()).strip("_")
    return value or UNKNOWN


def join_signature(implementation, version, system, machine) -> str:
    """Join the four fields of a signature."""
    return "-".join((implementation, version, system, machine))


@functools.lru_cache(maxsize=None)
def toolchain_signature() -> str:
    """
    Signature of the current interpreter, computed once per process.

    Unresolvable fields become ``unknown``; this never raises.
    """
    return join_signature(
        _field(lambda: sys.implementation.name),
        _field(platform.python_version),
        _field(platform.system),
        _field(platform.machine),
    )


def build_root(cache_dir: Union[str, Path]) -> Path:
    """``<cache_dir>/<signature>``."""
    return Path(cache_dir).expanduser() / toolchain_signature()
