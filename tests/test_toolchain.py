"""
Toolchain signature and build-root layout.
"""

import platform
import sys
from pathlib import Path

from sysdef.toolchain import (
    UNKNOWN,
    _field,
    build_root,
    join_signature,
    toolchain_signature,
)


# ============================================================================
# Fields
# ============================================================================

class TestField:

    def test_lowercases(self):
        assert _field(lambda: "CPython") == "cpython"

    def test_keeps_dots_and_underscores(self):
        assert _field(lambda: "3.12.4") == "3.12.4"
        assert _field(lambda: "x86_64") == "x86_64"

    def test_replaces_unsafe_characters(self):
        assert _field(lambda: "Mac OS/X 14") == "mac_os_x_14"

    def test_empty_becomes_unknown(self):
        assert _field(lambda: "") == UNKNOWN
        assert _field(lambda: None) == UNKNOWN

    def test_failing_probe_becomes_unknown(self):
        def probe():
            raise RuntimeError("no platform info")

        assert _field(probe) == UNKNOWN


# ============================================================================
# Signature
# ============================================================================

class TestSignature:

    def test_join_signature(self):
        assert join_signature("cpython", "3.12.4", "linux", "x86_64") == "cpython-3.12.4-linux-x86_64"

    def test_stable_within_process(self):
        assert toolchain_signature() == toolchain_signature()

    def test_describes_running_interpreter(self):
        signature = toolchain_signature()
        assert signature.startswith(sys.implementation.name.lower() + "-")
        assert platform.python_version() in signature
        assert signature.count("-") >= 3

    def test_path_safe(self):
        signature = toolchain_signature()
        assert "/" not in signature
        assert " " not in signature
        assert signature == signature.lower()


class TestBuildRoot:

    def test_appends_signature(self, tmp_path):
        assert build_root(tmp_path) == tmp_path / toolchain_signature()

    def test_accepts_strings(self, tmp_path):
        assert build_root(str(tmp_path)) == Path(tmp_path) / toolchain_signature()

    def test_expands_user(self):
        root = build_root("~/cache")
        assert "~" not in str(root)
        assert root.name == toolchain_signature()
