"""Shared fixtures: template source trees and a kida-free compiler."""

import os
from pathlib import Path
from typing import Any

import pytest

from chirp_bundle.errors import CompileError

# Fixed source timestamps so freshness comparisons never depend on the clock
SOURCE_MTIME = 1_700_000_000.0


class FakeRenderer:
    """Renders ``str.format`` templates; rebuilds as a lambda in artifacts."""

    __slots__ = ("filename", "source")

    def __init__(self, source: str, filename: str) -> None:
        self.source = source
        self.filename = filename

    @property
    def code(self) -> str:
        return f"(lambda **context: {self.source!r}.format(**context))"

    def __call__(self, **context: Any) -> str:
        return self.source.format(**context)


class FakeCompiler:
    """Compiler double that rejects any source containing ``{% bad``."""

    def __init__(self) -> None:
        self.compiled: list[str] = []

    def compile(self, source: str, filename: str) -> FakeRenderer:
        if "{% bad" in source:
            raise CompileError(filename, detail="unexpected tag 'bad'")
        self.compiled.append(filename)
        return FakeRenderer(source, filename)


def write(path: Path, text: str, mtime: float = SOURCE_MTIME) -> Path:
    """Write a source file with a fixed modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def views(tmp_path: Path) -> Path:
    """Create a template tree covering files, blocks, and directories.

    views/
        single.html
        multiple.html          (blocks First, Second)
        directory/
            foo.html
            bar.html
            subdirectory/baz.html
        both.html
        both/
            directory/
                foo.html
                subdirectory/baz.html
    """
    root = tmp_path / "views"
    write(root / "single.html", "<p>single {{ name }}</p>\n")
    write(
        root / "multiple.html",
        "<ul>primary</ul>\n"
        "//-- First.html\n"
        "<li>first {{ item }}</li>\n"
        "//-- Second.html\n"
        "<li>second</li>\n",
    )
    write(root / "directory" / "foo.html", "<p>foo</p>\n")
    write(root / "directory" / "bar.html", "<p>bar</p>\n")
    write(root / "directory" / "subdirectory" / "baz.html", "<p>baz</p>\n")
    write(root / "both.html", "<section>both</section>\n")
    write(root / "both" / "directory" / "foo.html", "<p>both foo</p>\n")
    write(root / "both" / "directory" / "subdirectory" / "baz.html", "<p>both baz</p>\n")
    return root
