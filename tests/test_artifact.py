"""Tests for artifact serialization and loading."""

import builtins
from pathlib import Path
from typing import Any

from conftest import FakeCompiler, write

from chirp_bundle.artifact import bindings, runtime_source, serialize
from chirp_bundle.builder import build_tree
from chirp_bundle.compiler import EMPTY, KidaCompiler
from chirp_bundle.gate import resolve
from chirp_bundle.units import Unit, count, walk


def _load(code: str, module_name: str = "bundle") -> dict[str, Any]:
    namespace: dict[str, Any] = {"__name__": module_name}
    exec(compile(code, f"{module_name}.py", "exec"), namespace)
    return namespace


def _entries(node: Any) -> list[tuple[str, ...]]:
    """Dotted paths of every unit reachable in a loaded artifact."""
    paths: list[tuple[str, ...]] = [()]
    for name, child in node:
        paths.extend((name, *rest) for rest in _entries(child))
    return paths


class TestBindings:
    def test_one_line_per_unit_pre_order(self, views: Path, compiler: FakeCompiler) -> None:
        directory = resolve(build_tree(views, compiler), ("directory",))
        targets = [line.split(" = ", 1)[0] for line in bindings(directory)]
        assert targets == [
            "T",
            "T.bar",
            "T.foo",
            "T.subdirectory",
            "T.subdirectory.baz",
        ]

    def test_placeholder_binds_empty(self, views: Path, compiler: FakeCompiler) -> None:
        directory = resolve(build_tree(views, compiler), ("directory",))
        assert bindings(directory)[0] == "T = _Unit(_empty)"

    def test_non_identifier_names_use_setattr(self) -> None:
        root = Unit(name="", render=EMPTY, origin="root")
        page = root.attach(Unit(name="my-page", render=EMPTY))
        page.attach(Unit(name="class", render=EMPTY, origin="block"))
        assert bindings(root) == [
            "T = _Unit(_empty)",
            "setattr(T, 'my-page', _Unit(_empty))",
            "setattr(getattr(T, 'my-page'), 'class', _Unit(_empty))",
        ]


class TestSerialize:
    def test_inlines_runtime_verbatim(self, views: Path, compiler: FakeCompiler) -> None:
        code = serialize(build_tree(views, compiler))
        assert runtime_source().rstrip("\n") in code

    def test_bookkeeping_never_leaks(self, views: Path, compiler: FakeCompiler) -> None:
        code = serialize(build_tree(views, compiler))
        assert "own_freshness" not in code
        assert ".parent" not in code

    def test_publishes_configured_name(self, views: Path, compiler: FakeCompiler) -> None:
        code = serialize(build_tree(views, compiler), "Views")
        assert code.rstrip().endswith("_publish('Views', T, globals())")
        namespace = _load(code)
        assert namespace["__all__"] == ["Views"]
        assert "Views" in namespace

    def test_file_with_block(self, views: Path, compiler: FakeCompiler) -> None:
        multiple = resolve(build_tree(views, compiler), ("multiple",))
        code = serialize(multiple)
        assert "\nT = _Unit(" in code
        assert "\nT.First = _Unit(" in code
        assert "\nT.Second = _Unit(" in code

    def test_directory_subtree(self, views: Path, compiler: FakeCompiler) -> None:
        code = serialize(resolve(build_tree(views, compiler), ("directory",)))
        for target in ("T.foo", "T.bar", "T.subdirectory.baz"):
            assert f"\n{target} = _Unit(" in code
        assert "T.single" not in code


class TestRoundTrip:
    def test_one_entry_per_unit(self, views: Path, compiler: FakeCompiler) -> None:
        root = build_tree(views, compiler)
        templates = _load(serialize(root))["Templates"]
        assert sorted(_entries(templates)) == sorted(path for path, _ in walk(root))
        assert len(_entries(templates)) == count(root)

    def test_renders_through_loaded_units(self, views: Path, compiler: FakeCompiler) -> None:
        templates = _load(serialize(build_tree(views, compiler)))["Templates"]
        assert templates.directory.foo() == "<p>foo</p>\n"
        assert templates.directory() == ""
        assert templates.multiple.Second() == "\n<li>second</li>\n"

    def test_children_named_like_runtime_slots(self, tmp_path: Path, compiler: FakeCompiler) -> None:
        write(tmp_path / "page.html", "page\n//-- _render.html\nchild\n//-- _children.html\nother\n")
        templates = _load(serialize(build_tree(tmp_path, compiler)))["Templates"]
        page = templates.page
        assert page() == "page\n"
        assert page._render() == "\nchild\n"
        assert page._children() == "\nother\n"
        assert [name for name, _ in page] == ["_render", "_children"]

    def test_script_style_registers_builtin(self, tmp_path: Path, compiler: FakeCompiler) -> None:
        write(tmp_path / "page.html", "page")
        code = serialize(build_tree(tmp_path, compiler), "ScriptTemplates")
        try:
            namespace = _load(code, "__main__")
            assert builtins.ScriptTemplates is namespace["ScriptTemplates"]
        finally:
            if hasattr(builtins, "ScriptTemplates"):
                del builtins.ScriptTemplates

    def test_module_style_leaves_builtins_alone(self, tmp_path: Path, compiler: FakeCompiler) -> None:
        write(tmp_path / "page.html", "page")
        _load(serialize(build_tree(tmp_path, compiler), "ModuleTemplates"))
        assert not hasattr(builtins, "ModuleTemplates")

    def test_kida_templates_render(self, views: Path) -> None:
        root = build_tree(views, KidaCompiler())
        templates = _load(serialize(resolve(root, ("multiple",))))["Templates"]
        assert "primary" in templates()
        assert templates.First(item="apple").strip() == "<li>first apple</li>"

    def test_kida_autoescape_survives_serialization(self, tmp_path: Path) -> None:
        write(tmp_path / "page.html", "<b>{{ name }}</b>")
        root = build_tree(tmp_path, KidaCompiler(autoescape=True))
        templates = _load(serialize(root))["Templates"]
        assert "&lt;i&gt;" in templates.page(name="<i>")
