"""Build a unit tree from a template source directory.

Walks the source tree and compiles:
- each template file into a unit named after the file's stem
- each ``//-- name.html`` block inside a file into a child of that unit
- each directory into the unit of the same-named file, or into an empty
  placeholder when there is no such file

Files are compiled before subdirectories at every level, so
``views/dir.html`` and ``views/dir/foo.html`` become ``dir`` and
``dir.foo``.
"""

from __future__ import annotations

import logging
import re
from functools import cache
from pathlib import Path

from chirp_bundle.compiler import EMPTY, Compiler, Renderer
from chirp_bundle.errors import CompileError, SourceReadError
from chirp_bundle.freshness import EPOCH, mark_fresh
from chirp_bundle.units import Unit, count

logger = logging.getLogger("chirp_bundle.build")


@cache
def block_pattern(extension: str) -> re.Pattern[str]:
    """Regex matching a block delimiter line such as ``//-- sidebar.html``."""
    return re.compile(rf"^//--[ \t]*(\S+){re.escape(extension)}[ \t\r]*$", re.MULTILINE)


def split_blocks(text: str, extension: str = ".html") -> tuple[str, list[tuple[str, str]]]:
    """Split a file into its primary body and named inline blocks.

    Text before the first delimiter is the primary body; each block runs
    from its delimiter line to the next one or the end of the file.
    """
    parts = block_pattern(extension).split(text)
    blocks = [(parts[i], parts[i + 1]) for i in range(1, len(parts), 2)]
    return parts[0], blocks


def build_tree(source_dir: str | Path, compiler: Compiler, *, extension: str = ".html") -> Unit:
    """Compile every template under *source_dir* into a new unit tree.

    Nothing is published until the whole walk succeeds.

    Raises:
        SourceReadError: A directory could not be listed or a file read.
        CompileError: The compiler rejected a file or inline block.
    """
    root_path = Path(source_dir)
    root = Unit(name="", render=EMPTY, origin="root")
    _build_directory(root_path, root_path, root, compiler=compiler, extension=extension)
    logger.info("Built template tree from %s: %d units", root_path, count(root))
    return root


def _build_directory(
    directory: Path,
    root_path: Path,
    parent: Unit,
    *,
    compiler: Compiler,
    extension: str,
) -> None:
    """Compile one directory level into *parent*, then recurse."""
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise SourceReadError(str(directory), exc.strerror or str(exc)) from exc

    files: list[Path] = []
    dirs: list[Path] = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            dirs.append(entry)
        elif entry.is_file() and entry.name.endswith(extension):
            files.append(entry)

    # Files first, in case a directory shares a file's name
    for file in files:
        _compile_file(file, root_path, parent, compiler=compiler, extension=extension)

    for sub in dirs:
        unit = parent.children.get(sub.name)
        if unit is not None and unit.origin == "block":
            # Blocks take their freshness from the owning file
            detail = f"directory name {sub.name!r} is already taken by a block unit"
            raise CompileError(str(sub), detail=detail)
        if unit is None:
            unit = parent.attach(
                Unit(name=sub.name, render=EMPTY, origin="directory", own_freshness=EPOCH)
            )
        _build_directory(sub, root_path, unit, compiler=compiler, extension=extension)


def _compile_file(
    file: Path,
    root_path: Path,
    parent: Unit,
    *,
    compiler: Compiler,
    extension: str,
) -> None:
    """Compile a template file and its inline blocks under *parent*."""
    name = file.name[: -len(extension)]
    try:
        text = file.read_text(encoding="utf-8")
        mtime = file.stat().st_mtime
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceReadError(str(file), str(exc)) from exc

    existing = parent.children.get(name)
    if existing is not None:
        detail = f"name {name!r} is already taken by a {existing.origin} unit"
        raise CompileError(str(file), detail=detail)

    primary, blocks = split_blocks(text, extension)
    relative = file.relative_to(root_path).as_posix()
    unit = parent.attach(
        Unit(name=name, render=_compile(compiler, primary, relative, file), origin="file")
    )

    for block, body in blocks:
        if block in unit.children:
            raise CompileError(str(file), block, "block is defined more than once")
        render = _compile(compiler, body, f"{relative} [{block}]", file, block)
        unit.attach(Unit(name=block, render=render, origin="block"))

    mark_fresh(unit, mtime)
    logger.debug("Compiled %s (%d inline blocks)", relative, len(blocks))


def _compile(
    compiler: Compiler,
    source: str,
    filename: str,
    file: Path,
    block: str | None = None,
) -> Renderer:
    try:
        return compiler.compile(source, filename)
    except CompileError as exc:
        raise CompileError(str(file), block, exc.detail) from exc
