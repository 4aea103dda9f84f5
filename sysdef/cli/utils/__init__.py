"""CLI utilities."""

from .colors import (
    success,
    error,
    warning,
    info,
    dim,
    bold,
    section,
    kv,
    tree_item,
    table,
)

__all__ = [
    "success",
    "error",
    "warning",
    "info",
    "dim",
    "bold",
    "section",
    "kv",
    "tree_item",
    "table",
]
