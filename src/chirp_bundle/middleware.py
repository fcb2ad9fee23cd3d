"""chirp middleware serving compiled template bundles.

Answers GET and HEAD requests under the configured prefix with the
artifact for the addressed subtree::

    /views.py          -> the whole tree
    /views/dir.py      -> the ``dir`` subtree
    /views/dir/foo.py  -> the ``dir.foo`` subtree

With ``public_dir`` set the artifact is written there and the request
falls through, so a ``StaticFiles`` middleware added after this one
serves the file. Without it the artifact is returned directly.

Paths that name no template fall through to the next handler.
"""

import logging

from anyio import to_thread
from chirp.errors import HTTPError
from chirp.http.request import Request
from chirp.http.response import Response
from chirp.middleware.protocol import AnyResponse, Next

from chirp_bundle.bundler import SERVED_METHODS, TemplateBundler
from chirp_bundle.compiler import Compiler
from chirp_bundle.config import BundleConfig
from chirp_bundle.errors import BundleError, StorageError
from chirp_bundle.gate import Outcome

logger = logging.getLogger("chirp_bundle.server")

CONTENT_TYPE = "text/x-python; charset=utf-8"


class BundleMiddleware:
    """Middleware that builds template artifacts on demand.

    Usage::

        # Write-through: artifacts land in ./public/views, StaticFiles serves them
        app.add_middleware(BundleMiddleware(BundleConfig(
            source_dir="./views",
            public_dir="./public",
            prefix="/views",
        )))
        app.add_middleware(StaticFiles(directory="./public", prefix="/"))

        # Direct: artifacts are served from memory
        app.add_middleware(BundleMiddleware(BundleConfig(source_dir="./views")))
    """

    __slots__ = ("_bundler",)

    def __init__(
        self,
        config: BundleConfig | TemplateBundler,
        *,
        compiler: Compiler | None = None,
    ) -> None:
        if isinstance(config, TemplateBundler):
            self._bundler = config
        else:
            self._bundler = TemplateBundler(config, compiler)

    @property
    def bundler(self) -> TemplateBundler:
        return self._bundler

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a template artifact or fall through."""
        if request.method not in SERVED_METHODS:
            return await next(request)

        try:
            outcome = await to_thread.run_sync(self._bundler.handle, request.method, request.path)
        except StorageError as exc:
            if not self._bundler.config.fallback_to_direct:
                raise _failure(exc, request) from exc
            logger.warning("%s; serving %s directly", exc, request.path)
            return await self._serve_unpersisted(request, next)
        except BundleError as exc:
            raise _failure(exc, request) from exc

        if outcome is None:
            return await next(request)

        if self._bundler.gate.persist:
            return await next(request)
        return self._respond(outcome)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _serve_unpersisted(self, request: Request, next: Next) -> AnyResponse:
        key_path = self._bundler.key_path_for(request.path)
        try:
            outcome = await to_thread.run_sync(self._bundler.render, key_path)
        except BundleError as exc:
            raise _failure(exc, request) from exc
        if outcome is None:
            return await next(request)
        return self._respond(outcome)

    def _respond(self, outcome: Outcome) -> Response:
        body = outcome.code or ""
        return (
            Response(body=body, content_type=CONTENT_TYPE)
            .with_header("Cache-Control", self._bundler.config.cache_control)
            .with_header("X-Bundle-Action", outcome.action.value)
        )


def _failure(exc: BundleError, request: Request) -> HTTPError:
    logger.error("Template bundle for %s %s failed: %s", request.method, request.path, exc)
    return HTTPError(status=500, detail=str(exc))
