"""
Shared test fixtures and helpers for the sysdef test suite.
"""

import sys
from pathlib import Path
from typing import List, Tuple

import pytest

from sysdef.components import Component, KindRegistry
from sysdef.pipeline import GeneratorRegistry, Pipeline
from sysdef.registry import SystemRegistry


# ============================================================================
# Recording kind
# ============================================================================


class RecordingSource(Component):
    """Component kind that records every pipeline call it receives."""

    kind = "recording"
    calls: List[Tuple[str, str, str]] = []

    def _record(self, phase: str) -> None:
        self.calls.append((phase, self.system.key, str(self.path)))

    def generate(self, pipeline):
        super().generate(pipeline)
        self._record("generate")

    def build(self, pipeline):
        self._record("build")

    def load(self, pipeline):
        self._record("load")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def calls():
    RecordingSource.calls = []
    yield RecordingSource.calls
    RecordingSource.calls = []


@pytest.fixture
def kinds():
    registry = KindRegistry()
    registry.register("rec", RecordingSource)
    return registry


@pytest.fixture
def registry(kinds):
    return SystemRegistry(kinds)


@pytest.fixture
def generators():
    return GeneratorRegistry()


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def pipeline(cache_dir, generators):
    return Pipeline.for_cache_dir(cache_dir, generators)


@pytest.fixture
def project(tmp_path) -> Path:
    """Empty project directory for system sources."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def clean_modules():
    """Drop modules loaded by a test from sys.modules afterwards."""
    before = set(sys.modules)
    yield
    for name in set(sys.modules) - before:
        del sys.modules[name]


def write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path
