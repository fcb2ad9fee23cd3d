"""Artifact cache gate — decide whether a subtree's artifact is reusable.

One gate covers every serving mode:

- persist mode (``output_dir`` set): artifacts are written below
  ``output_dir`` and their file modification time is the cache stamp
- direct mode (``output_dir`` is ``None``): artifacts are kept in memory
  with the time they were built and handed back to the caller
- ``always_rebuild`` skips the freshness comparison entirely
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from chirp_bundle.artifact import serialize
from chirp_bundle.errors import ConfigurationError, NotFound, StorageError
from chirp_bundle.freshness import effective_freshness
from chirp_bundle.units import Unit

logger = logging.getLogger("chirp_bundle.gate")


class Action(Enum):
    REUSE = "reuse"
    REBUILD = "rebuild"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of one ``serve_or_build`` call.

    ``code`` is the artifact text when the gate has it in hand (always in
    direct mode, only after a rebuild in persist mode). ``path`` is the
    artifact file in persist mode.
    """

    action: Action
    key_path: tuple[str, ...]
    code: str | None = None
    path: Path | None = None


def resolve(root: Unit, key_path: tuple[str, ...] | list[str]) -> Unit:
    """Walk *key_path* down from *root*.

    An empty key path selects the whole tree.

    Raises:
        NotFound: A segment has no matching child.
    """
    unit = root
    for segment in key_path:
        child = unit.children.get(segment)
        if child is None:
            raise NotFound(tuple(key_path), segment)
        unit = child
    return unit


def decide(unit: Unit, artifact_mtime: float | None, *, always_rebuild: bool = False) -> Action:
    """Reuse an existing artifact that is at least as new as *unit*."""
    if always_rebuild or artifact_mtime is None:
        return Action.REBUILD
    if artifact_mtime >= effective_freshness(unit):
        return Action.REUSE
    return Action.REBUILD


class ArtifactGate:
    """Serve or rebuild artifacts for resolved subtrees.

    Usage::

        gate = ArtifactGate("Templates", output_dir=Path("public/views"))
        outcome = gate.serve_or_build(resolve(tree, ("dir",)), ("dir",))
        outcome.action  # Action.REBUILD, then Action.REUSE next time
    """

    __slots__ = (
        "_lock",
        "_memo",
        "always_rebuild",
        "global_name",
        "output_dir",
        "root_artifact",
        "suffix",
    )

    def __init__(
        self,
        global_name: str = "Templates",
        *,
        output_dir: str | Path | None = None,
        suffix: str = ".py",
        always_rebuild: bool = False,
        root_artifact: bool = True,
    ) -> None:
        self.global_name = global_name
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.suffix = suffix
        self.always_rebuild = always_rebuild
        self.root_artifact = root_artifact
        self._memo: dict[tuple[str, ...], tuple[float, str]] = {}
        self._lock = threading.Lock()

    @property
    def persist(self) -> bool:
        return self.output_dir is not None

    def artifact_path(self, key_path: tuple[str, ...]) -> Path:
        """File an artifact for *key_path* is written to (persist mode).

        The whole tree is written next to ``output_dir`` as
        ``<output_dir><suffix>``. With ``root_artifact`` off (``output_dir``
        is the public root itself) there is no such file.

        Raises:
            ConfigurationError: The whole tree has no artifact path.
        """
        if self.output_dir is None:
            msg = "artifact_path() requires an output directory"
            raise RuntimeError(msg)
        if not key_path:
            if not self.root_artifact:
                msg = "the whole tree has no artifact under the root prefix; build a subtree"
                raise ConfigurationError(msg)
            return self.output_dir.with_name(self.output_dir.name + self.suffix)
        *dirs, leaf = key_path
        return self.output_dir.joinpath(*dirs, leaf + self.suffix)

    def artifact_mtime(self, key_path: tuple[str, ...]) -> float | None:
        """Timestamp of the existing artifact, or ``None`` if there is none."""
        if self.output_dir is None:
            entry = self._memo.get(key_path)
            return entry[0] if entry is not None else None

        path = self.artifact_path(key_path)
        try:
            return path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(str(path), exc.strerror or str(exc)) from exc

    def serve_or_build(self, unit: Unit, key_path: tuple[str, ...] | None = None) -> Outcome:
        """Reuse the artifact for *unit* if it is fresh, otherwise rebuild it.

        Raises:
            StorageError: Persist mode could not write the artifact.
        """
        if key_path is None:
            key_path = unit.key_path
        if self.output_dir is None:
            return self._serve_direct(unit, key_path)

        path = self.artifact_path(key_path)
        action = decide(unit, self.artifact_mtime(key_path), always_rebuild=self.always_rebuild)
        if action is Action.REUSE:
            logger.debug("Reusing artifact %s", path)
            return Outcome(action, key_path, path=path)

        code = serialize(unit, self.global_name)
        write_artifact(path, code)
        logger.info("Rebuilt artifact for %s -> %s", unit.key_path_str(), path)
        return Outcome(action, key_path, code=code, path=path)

    def _serve_direct(self, unit: Unit, key_path: tuple[str, ...]) -> Outcome:
        entry = self._memo.get(key_path)
        built_at = entry[0] if entry is not None else None
        action = decide(unit, built_at, always_rebuild=self.always_rebuild)
        if entry is not None and action is Action.REUSE:
            logger.debug("Reusing in-memory artifact for %s", unit.key_path_str())
            return Outcome(action, key_path, code=entry[1])

        built_at = time.time()
        code = serialize(unit, self.global_name)
        with self._lock:
            self._memo[key_path] = (built_at, code)
        logger.info("Rebuilt in-memory artifact for %s", unit.key_path_str())
        return Outcome(Action.REBUILD, key_path, code=code)

    def clear(self) -> None:
        """Forget every in-memory artifact (direct mode)."""
        with self._lock:
            self._memo.clear()


def write_artifact(path: Path, code: str) -> None:
    """Write *code* to *path* so readers only ever see a complete file.

    The text goes to a temporary file next to *path* which is then
    moved over it; parent directories are created as needed.

    Raises:
        StorageError: The directory or file could not be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(code)
            os.chmod(tmp, 0o644)
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise
    except OSError as exc:
        raise StorageError(str(path), exc.strerror or str(exc)) from exc
