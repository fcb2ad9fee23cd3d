"""Template bundler — owns the current unit tree and maps URLs onto it.

The tree is built once at construction, or on every request when
``BundleConfig.reload`` is set. A rebuild never touches the published
tree: a complete new tree is built and then swapped in, so requests
already holding the old root keep reading a consistent structure.
"""

from __future__ import annotations

import logging
import threading

from chirp_bundle.artifact import serialize
from chirp_bundle.builder import build_tree
from chirp_bundle.compiler import Compiler, KidaCompiler
from chirp_bundle.config import BundleConfig
from chirp_bundle.errors import NotFound
from chirp_bundle.gate import Action, ArtifactGate, Outcome, resolve
from chirp_bundle.units import Unit

logger = logging.getLogger("chirp_bundle.server")

# Only these methods build or serve artifacts
SERVED_METHODS = frozenset({"GET", "HEAD"})


class TemplateBundler:
    """Build, cache, and serve template artifacts for one source directory.

    Usage::

        bundler = TemplateBundler(BundleConfig(source_dir="views", prefix="/views"))
        outcome = bundler.handle("GET", "/views/dir.py")
        if outcome is not None:
            print(outcome.action, outcome.code)
    """

    __slots__ = ("_lock", "_tree", "compiler", "config", "gate")

    def __init__(self, config: BundleConfig, compiler: Compiler | None = None) -> None:
        self.config = config
        self.compiler = compiler if compiler is not None else KidaCompiler(**config.compile_options)
        self.gate = ArtifactGate(
            config.global_name,
            output_dir=config.output_dir,
            suffix=config.suffix,
            always_rebuild=config.reload,
            root_artifact=bool(config.prefix),
        )
        self._lock = threading.Lock()
        self._tree: Unit | None = None

        if not config.reload:
            self.rebuild()

    @property
    def tree(self) -> Unit:
        """The current unit tree, built on first access if needed."""
        tree = self._tree
        if tree is None:
            tree = self.rebuild()
        return tree

    def rebuild(self) -> Unit:
        """Build a fresh tree from disk and publish it.

        A failed build raises and leaves the previous tree in place.
        """
        tree = build_tree(self.config.source_path, self.compiler, extension=self.config.extension)
        with self._lock:
            self._tree = tree
            self.gate.clear()
        return tree

    def key_path_for(self, path: str) -> tuple[str, ...] | None:
        """Map a URL path to a key path, or ``None`` if it is not ours.

        ``/templates.py`` selects the whole tree and
        ``/templates/dir/foo.py`` selects ``("dir", "foo")``. Under the root
        prefix no URL selects the whole tree.
        """
        prefix = self.config.prefix
        suffix = self.config.suffix
        if not path.endswith(suffix):
            return None
        if prefix and path == prefix + suffix:
            return ()
        if not path.startswith(prefix + "/"):
            return None
        relative = path[len(prefix) + 1 : -len(suffix)]
        key_path = tuple(part for part in relative.split("/") if part)
        if not key_path and not prefix:
            return None
        return key_path

    def handle(self, method: str, path: str) -> Outcome | None:
        """Serve or rebuild the artifact a request addresses.

        Returns ``None`` when the request is not for this bundler: other
        methods, paths outside the prefix, and unknown key paths.

        Raises:
            SourceReadError: Reload mode could not read the sources.
            CompileError: Reload mode hit a template that does not compile.
            StorageError: The artifact could not be written.
        """
        if method not in SERVED_METHODS:
            return None
        key_path = self.key_path_for(path)
        if key_path is None:
            return None

        tree = self.rebuild() if self.config.reload else self.tree
        try:
            unit = resolve(tree, key_path)
        except NotFound as exc:
            logger.debug("%s", exc)
            return None
        return self.gate.serve_or_build(unit, key_path)

    def render(self, key_path: tuple[str, ...] | None) -> Outcome | None:
        """Serialize the artifact for *key_path* without caching or storage.

        Used when persisting failed and the caller serves directly instead.
        """
        if key_path is None:
            return None
        try:
            unit = resolve(self.tree, key_path)
        except NotFound:
            return None
        return Outcome(Action.REBUILD, key_path, code=serialize(unit, self.config.global_name))
