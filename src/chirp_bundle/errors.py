"""chirp-bundle exception hierarchy.

Shared across the builder, gate, bundler, and middleware so every
module raises and catches the same types.
"""


class BundleError(Exception):
    """Base for all chirp-bundle errors."""


class ConfigurationError(BundleError):
    """Raised when a ``BundleConfig`` is invalid."""


class SourceReadError(BundleError):
    """A source directory could not be listed or a template file read.

    Fatal to the build pass that raised it; no partial tree is published.
    """

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(path, detail)

    def __str__(self) -> str:
        if self.detail:
            return f"Cannot read template source {self.path}: {self.detail}"
        return f"Cannot read template source {self.path}"


class CompileError(BundleError):
    """The template compiler rejected a file or one of its inline blocks."""

    def __init__(self, path: str, block: str | None = None, detail: str = "") -> None:
        self.path = path
        self.block = block
        self.detail = detail
        super().__init__(path, block, detail)

    @property
    def location(self) -> str:
        if self.block:
            return f"{self.path} [{self.block}]"
        return self.path

    def __str__(self) -> str:
        if self.detail:
            return f"Template compile failed in {self.location}: {self.detail}"
        return f"Template compile failed in {self.location}"


class NotFound(BundleError):  # noqa: N818
    """A key path names no unit in the tree.

    Not a failure from the caller's point of view: the request is passed
    on to whatever handles content after this one.
    """

    def __init__(self, key_path: tuple[str, ...], segment: str) -> None:
        self.key_path = key_path
        self.segment = segment
        super().__init__(key_path, segment)

    def __str__(self) -> str:
        joined = "/".join(self.key_path) or "<root>"
        return f"No template unit {self.segment!r} in key path {joined}"


class StorageError(BundleError):
    """An artifact directory could not be created or the file written.

    The in-memory tree is unaffected; retrying or serving the artifact
    directly is up to the caller.
    """

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(path, detail)

    def __str__(self) -> str:
        if self.detail:
            return f"Cannot write artifact {self.path}: {self.detail}"
        return f"Cannot write artifact {self.path}"
