"""chirp-bundle — compiled template bundles for chirp apps.

Compiles a directory of kida templates into a tree of units and serves
any subtree as a self-contained Python module, rebuilding it only when
a template below it has changed.

Basic usage::

    from chirp import App
    from chirp.middleware.static import StaticFiles
    from chirp_bundle import BundleConfig, BundleMiddleware

    app = App()
    app.add_middleware(BundleMiddleware(BundleConfig(
        source_dir="views",
        public_dir="public",
        prefix="/views",
    )))
    app.add_middleware(StaticFiles(directory="public", prefix="/"))

A template file can carry named inline blocks::

    <h1>{{ title }}</h1>
    //-- row.html
    <li>{{ item }}</li>

which ``GET /views/page.py`` publishes as ``Templates`` and
``Templates.row``.
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "Action",
    "ArtifactGate",
    "BundleConfig",
    "BundleError",
    "BundleMiddleware",
    "CompileError",
    "ConfigurationError",
    "KidaCompiler",
    "NotFound",
    "SourceReadError",
    "StorageError",
    "TemplateBundler",
    "Unit",
    "build_tree",
    "effective_freshness",
    "mark_fresh",
    "resolve",
    "serialize",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import chirp_bundle`` fast and free of the chirp import
    until the middleware is actually used.
    """
    if name == "BundleConfig":
        from chirp_bundle.config import BundleConfig

        return BundleConfig

    if name == "BundleMiddleware":
        from chirp_bundle.middleware import BundleMiddleware

        return BundleMiddleware

    if name == "TemplateBundler":
        from chirp_bundle.bundler import TemplateBundler

        return TemplateBundler

    if name == "KidaCompiler":
        from chirp_bundle.compiler import KidaCompiler

        return KidaCompiler

    if name == "Unit":
        from chirp_bundle.units import Unit

        return Unit

    if name == "build_tree":
        from chirp_bundle.builder import build_tree

        return build_tree

    if name in ("effective_freshness", "mark_fresh"):
        from chirp_bundle import freshness as _freshness

        return getattr(_freshness, name)

    if name in ("Action", "ArtifactGate", "resolve"):
        from chirp_bundle import gate as _gate

        return getattr(_gate, name)

    if name == "serialize":
        from chirp_bundle.artifact import serialize

        return serialize

    if name in (
        "BundleError",
        "CompileError",
        "ConfigurationError",
        "NotFound",
        "SourceReadError",
        "StorageError",
    ):
        from chirp_bundle import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
