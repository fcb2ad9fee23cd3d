"""Bundle configuration.

BundleConfig is a frozen dataclass — immutable after creation, validated
once, no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path

from chirp_bundle.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class BundleConfig:
    """Template bundle configuration. Immutable after creation.

    Only ``source_dir`` is required. Leave ``public_dir`` unset to serve
    artifacts straight from memory::

        config = BundleConfig(source_dir="views", public_dir="public", prefix="/views")
    """

    # Sources
    source_dir: str | Path
    extension: str = ".html"

    # Output (None = respond directly instead of writing files)
    public_dir: str | Path | None = None
    prefix: str = "/templates"
    suffix: str = ".py"
    global_name: str = "Templates"

    # Rebuild the whole tree on every request
    reload: bool = False

    # Compiler options
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Direct responses
    cache_control: str = "no-cache"
    fallback_to_direct: bool = False

    def __post_init__(self) -> None:
        if not self.global_name.isidentifier():
            msg = f"global_name must be a Python identifier, got {self.global_name!r}"
            raise ConfigurationError(msg)
        for field in ("extension", "suffix"):
            value = getattr(self, field)
            if not value.startswith(".") or len(value) < 2:
                msg = f"{field} must start with '.', got {value!r}"
                raise ConfigurationError(msg)

        # Normalize prefix: ensure leading slash, strip trailing.
        # Root prefix "/" normalizes to "" like StaticFiles does.
        stripped = "/" + self.prefix.strip("/")
        object.__setattr__(self, "prefix", stripped if stripped != "/" else "")

    @property
    def source_path(self) -> Path:
        return Path(self.source_dir)

    @property
    def output_dir(self) -> Path | None:
        """Directory that mirrors ``prefix`` under ``public_dir``.

        ``None`` in direct mode.
        """
        if self.public_dir is None:
            return None
        relative = self.prefix.strip("/")
        base = Path(self.public_dir)
        return base / relative if relative else base

    @property
    def compile_options(self) -> dict[str, bool]:
        return {
            "autoescape": self.autoescape,
            "trim_blocks": self.trim_blocks,
            "lstrip_blocks": self.lstrip_blocks,
        }
