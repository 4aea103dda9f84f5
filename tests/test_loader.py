"""
Manifest evaluation and discovery.
"""

import sys
from pathlib import Path

import pytest

from sysdef.errors import MalformedComponentFormError, ManifestValidationError
from sysdef.registry import ManifestLoader, ManifestSource, discover, is_manifest
from sysdef.registry.core import current_directory
from sysdef.version import DynamicVersion, SemanticVersion

from conftest import write


DEMO_MANIFEST = """\
define_system(
    "demo",
    directory="src",
    description="Demo system",
    version="1.0.0",
    depends_on=["util"],
    components=[("lib", ["a.py", "b.py"])],
)
"""


# ============================================================================
# ManifestSource
# ============================================================================

class TestManifestSource:

    @pytest.mark.parametrize("name,kind", [
        ("demo.sysdef", "python"),
        ("demo.sysdef.yaml", "dsl"),
        ("demo.sysdef.yml", "dsl"),
        ("demo.sysdef.json", "dsl"),
    ])
    def test_from_path(self, name, kind):
        source = ManifestSource.from_path(name)
        assert source.type == kind
        assert source.origin == name

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown manifest source type"):
            ManifestSource.from_path("demo.py")

    def test_is_manifest(self):
        assert is_manifest(Path("x/demo.sysdef"))
        assert is_manifest(Path("demo.sysdef.json"))
        assert not is_manifest(Path("sysdef.yaml"))
        assert not is_manifest(Path("demo.sysdef.txt"))


# ============================================================================
# Python manifests
# ============================================================================

class TestPythonManifests:

    def test_defines_system(self, registry, project):
        path = write(project / "demo.sysdef", DEMO_MANIFEST)
        systems = ManifestLoader(registry).load_file(path)
        assert [s.name for s in systems] == ["demo"]

        system = registry.find_system("demo")
        assert system.directory == (project / "src").resolve()
        assert system.version == SemanticVersion(1, 0, 0)
        assert system.depends_on == ["util"]
        assert system.source == str(path)
        assert [str(c.path) for c in system.walk()] == ["lib", "lib/a.py", "lib/b.py"]

    def test_directory_relative_to_manifest_not_cwd(self, registry, project, tmp_path, monkeypatch):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        path = write(project / "nested" / "demo.sysdef", 'define_system("demo")\n')
        ManifestLoader(registry).load_file(path)
        assert registry.find_system("demo").directory == (project / "nested").resolve()
        assert current_directory.get() is None

    def test_several_systems(self, registry, project):
        path = write(project / "multi.sysdef", 'define_system("one")\ndefine_system("two", depends_on=["one"])\n')
        systems = ManifestLoader(registry).load_file(path)
        assert [s.name for s in systems] == ["one", "two"]

    def test_helpers_in_namespace(self, registry, project):
        path = write(project / "helpers.sysdef", (
            'define_system(\n'
            '    "demo",\n'
            '    version=DynamicVersion("git describe"),\n'
            '    components=[("v.py", {"generator": GeneratorDescriptor("tools", "stamp")})],\n'
            ')\n'
        ))
        ManifestLoader(registry).load_file(path)
        system = registry.find_system("demo")
        assert system.version == DynamicVersion("git describe")
        assert system.components[0].generator.function == "stamp"

    def test_ordinary_python_allowed(self, registry, project):
        path = write(project / "loop.sysdef", (
            'names = ["a", "b", "c"]\n'
            'for n in names:\n'
            '    define_system(f"sys-{n}")\n'
        ))
        ManifestLoader(registry).load_file(path)
        assert [s.name for s in registry.list_systems()] == ["sys-a", "sys-b", "sys-c"]

    def test_names_do_not_leak(self, registry, project):
        first = write(project / "first.sysdef", 'SECRET = 1\ndefine_system("first")\n')
        second = write(project / "second.sysdef", 'define_system("second", description=str(globals().get("SECRET")))\n')
        loader = ManifestLoader(registry)
        loader.load_file(first)
        loader.load_file(second)
        assert registry.find_system("second").description == "None"

    def test_imported_modules_are_dropped(self, registry, project):
        write(project / "sysdef_t_manifest_helper.py", "NAME = 'from-helper'\n")
        path = write(project / "imports.sysdef", (
            'import sys\n'
            'sys.path.insert(0, __file__.rsplit("/", 1)[0])\n'
            'try:\n'
            '    import sysdef_t_manifest_helper\n'
            'finally:\n'
            '    sys.path.pop(0)\n'
            'define_system(sysdef_t_manifest_helper.NAME)\n'
        ))
        ManifestLoader(registry).load_file(path)
        assert "from-helper" in registry
        assert "sysdef_t_manifest_helper" not in sys.modules

    def test_manifest_file_and_no_bytecode(self, registry, project):
        path = write(project / "where.sysdef", 'define_system("where", description=__file__)\n')
        ManifestLoader(registry).load_file(path)
        assert registry.find_system("where").description == str(path)
        assert not (project / "__pycache__").exists()

    def test_syntax_error_propagates(self, registry, project):
        path = write(project / "broken.sysdef", "define_system(\n")
        with pytest.raises(SyntaxError):
            ManifestLoader(registry).load_file(path)

    def test_malformed_component(self, registry, project):
        path = write(project / "bad.sysdef", 'define_system("bad", components=[42])\n')
        with pytest.raises(MalformedComponentFormError):
            ManifestLoader(registry).load_file(path)
        assert "bad" not in registry


# ============================================================================
# Declarative manifests
# ============================================================================

class TestDeclarativeManifests:

    def test_yaml_single_system(self, registry, project):
        path = write(project / "demo.sysdef.yaml", (
            "name: demo\n"
            "directory: src\n"
            "version: 1.0.0\n"
            "authors: [Ada]\n"
            "depends_on: [util]\n"
            "components:\n"
            "  - README.md\n"
            "  - [lib, [a.py, b.py]]\n"
            "  - [version.py, {generator: [tools, stamp, ['1.0']]}]\n"
        ))
        ManifestLoader(registry).load_file(path)
        system = registry.find_system("demo")
        assert system.directory == (project / "src").resolve()
        assert system.version == SemanticVersion(1, 0, 0)
        assert system.authors == ["Ada"]
        assert system.source == str(path)
        assert [str(c.path) for c in system.walk()] == [
            "README.md", "lib", "lib/a.py", "lib/b.py", "version.py",
        ]
        assert system.components[2].generator.args == ("1.0",)

    def test_json_systems_list(self, registry, project):
        path = write(project / "all.sysdef.json", (
            '{"systems": ['
            '{"name": "one", "components": ["a.py"]},'
            '{"name": "two", "depends_on": ["one"], "version": {"dynamic": "date"}}'
            ']}'
        ))
        systems = ManifestLoader(registry).load_file(path)
        assert [s.name for s in systems] == ["one", "two"]
        assert registry.find_system("two").version == DynamicVersion("date")

    def test_numeric_version_coerced(self, registry, project):
        path = write(project / "num.sysdef.yml", "name: num\nversion: 2.5\n")
        ManifestLoader(registry).load_file(path)
        assert str(registry.find_system("num").version) == "2.5"

    def test_empty_file(self, registry, project):
        path = write(project / "empty.sysdef.yaml", "")
        assert ManifestLoader(registry).load_file(path) == []

    def test_unknown_field(self, registry, project):
        path = write(project / "bad.sysdef.yaml", "name: bad\nrequires: [x]\n")
        with pytest.raises(ManifestValidationError) as exc_info:
            ManifestLoader(registry).load_file(path)
        assert "Unknown field(s): requires" in exc_info.value.validation_errors
        assert exc_info.value.span.file == str(path)

    def test_missing_name(self, registry, project):
        path = write(project / "noname.sysdef.json", '{"version": "1.0.0"}')
        with pytest.raises(ManifestValidationError, match="Missing required field: name"):
            ManifestLoader(registry).load_file(path)

    def test_unparseable(self, registry, project):
        path = write(project / "broken.sysdef.json", "{not json")
        with pytest.raises(ManifestValidationError, match="Cannot parse manifest"):
            ManifestLoader(registry).load_file(path)

    def test_not_a_mapping(self, registry, project):
        path = write(project / "list.sysdef.yaml", "- name: a\n")
        with pytest.raises(ManifestValidationError, match="must be a mapping"):
            ManifestLoader(registry).load_file(path)

    def test_systems_must_be_alone(self, registry, project):
        path = write(project / "mixed.sysdef.yaml", "systems: []\nname: x\n")
        with pytest.raises(ManifestValidationError):
            ManifestLoader(registry).load_file(path)


# ============================================================================
# Discovery
# ============================================================================

class TestDiscovery:

    def test_order(self, tmp_path):
        write(tmp_path / "b.sysdef")
        write(tmp_path / "a.sysdef.yaml")
        write(tmp_path / "sub" / "c.sysdef")
        write(tmp_path / "aaa" / "d.sysdef.json")
        write(tmp_path / "notes.txt")
        found = [p.relative_to(tmp_path).as_posix() for p in discover([tmp_path])]
        assert found == ["a.sysdef.yaml", "b.sysdef", "aaa/d.sysdef.json", "sub/c.sysdef"]

    def test_skips_hidden_directories(self, tmp_path):
        write(tmp_path / ".git" / "x.sysdef")
        write(tmp_path / "y.sysdef")
        assert [p.name for p in discover([tmp_path])] == ["y.sysdef"]

    def test_file_root(self, tmp_path):
        path = write(tmp_path / "one.sysdef")
        write(tmp_path / "other.txt")
        assert list(discover([path, tmp_path / "other.txt"])) == [path]

    def test_missing_root_is_ignored(self, tmp_path):
        assert list(discover([tmp_path / "ghost"])) == []

    def test_several_roots_in_order(self, tmp_path):
        write(tmp_path / "r1" / "z.sysdef")
        write(tmp_path / "r2" / "a.sysdef")
        names = [p.name for p in discover([tmp_path / "r1", tmp_path / "r2"])]
        assert names == ["z.sysdef", "a.sysdef"]


class TestInitialize:

    def test_loads_every_manifest(self, registry, tmp_path):
        write(tmp_path / "app.sysdef", 'define_system("app", depends_on=["lib"])\n')
        write(tmp_path / "libs" / "lib.sysdef.yaml", "name: lib\n")
        systems = registry.initialize([tmp_path])
        assert [s.name for s in systems] == ["app", "lib"]
        assert registry.find_system("lib").directory == (tmp_path / "libs").resolve()

    def test_discards_previous_entries(self, registry, project, tmp_path):
        registry.define_system("stale", directory=project)
        write(tmp_path / "roots" / "fresh.sysdef", 'define_system("fresh")\n')
        registry.initialize([tmp_path / "roots"])
        assert "stale" not in registry
        assert "fresh" in registry

    def test_later_manifest_replaces_earlier(self, registry, tmp_path):
        write(tmp_path / "a.sysdef", 'define_system("dup", description="first")\n')
        write(tmp_path / "b.sysdef", 'define_system("DUP", description="second")\n')
        registry.initialize([tmp_path])
        assert registry.find_system("dup").description == "second"
        assert len(registry) == 1
