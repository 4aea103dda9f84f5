"""
Version shapes and parsing.
"""

import pytest

from sysdef.version import (
    CustomVersion,
    DynamicVersion,
    Prerelease,
    PrereleaseKind,
    SemanticVersion,
    parse_version,
)


# ============================================================================
# Shapes
# ============================================================================

class TestShapes:

    def test_semantic_str(self):
        assert str(SemanticVersion(1, 2, 3)) == "1.2.3"

    def test_semantic_defaults(self):
        assert str(SemanticVersion(2)) == "2.0.0"

    def test_semantic_with_prerelease(self):
        version = SemanticVersion(1, 0, 0, Prerelease(PrereleaseKind.RC, 2))
        assert str(version) == "1.0.0rc2"

    def test_prerelease_kind_coerced(self):
        assert Prerelease("b", 1).kind is PrereleaseKind.BETA

    def test_prerelease_number_must_be_positive(self):
        with pytest.raises(ValueError, match=">= 1"):
            Prerelease(PrereleaseKind.ALPHA, 0)

    def test_prerelease_unknown_kind(self):
        with pytest.raises(ValueError):
            Prerelease("gamma", 1)

    def test_dynamic_str(self):
        assert str(DynamicVersion("git describe")) == "dynamic:git describe"

    def test_custom_str(self):
        assert str(CustomVersion("nightly")) == "nightly"

    def test_versions_are_values(self):
        assert SemanticVersion(1, 2, 3) == SemanticVersion(1, 2, 3)
        assert hash(CustomVersion("x")) == hash(CustomVersion("x"))


# ============================================================================
# parse_version
# ============================================================================

class TestParseVersion:

    def test_none(self):
        assert parse_version(None) is None

    def test_instance_passes_through(self):
        version = DynamicVersion("date +%Y")
        assert parse_version(version) is version

    def test_semantic(self):
        assert parse_version("1.2.3") == SemanticVersion(1, 2, 3)

    @pytest.mark.parametrize("text,kind,number", [
        ("1.0.0dev1", PrereleaseKind.DEV, 1),
        ("1.0.0a2", PrereleaseKind.ALPHA, 2),
        ("1.0.0-b3", PrereleaseKind.BETA, 3),
        ("1.0.0.rc4", PrereleaseKind.RC, 4),
    ])
    def test_prerelease(self, text, kind, number):
        version = parse_version(text)
        assert isinstance(version, SemanticVersion)
        assert version.prerelease == Prerelease(kind, number)

    def test_strips_whitespace(self):
        assert parse_version("  0.1.0 ") == SemanticVersion(0, 1, 0)

    def test_partial_version_is_custom(self):
        assert parse_version("1.2") == CustomVersion("1.2")

    def test_free_form_is_custom(self):
        assert parse_version("2024-summer") == CustomVersion("2024-summer")

    def test_dynamic_mapping(self):
        assert parse_version({"dynamic": "git describe"}) == DynamicVersion("git describe")

    def test_bad_mapping(self):
        with pytest.raises(ValueError, match="Invalid version mapping"):
            parse_version({"dynamic": "x", "extra": 1})

    def test_empty_string(self):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_version("   ")

    def test_other_type(self):
        with pytest.raises(ValueError, match="Invalid version"):
            parse_version(1.5)
