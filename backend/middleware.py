"""Middleware serving precompressed static documents in front of an app.

Requests are first resolved against the configured directory. Anything not
found there is handed to the wrapped application; in HTML5 mode a 404 from
the application is replaced by the root index document.
"""

import logging
from urllib.parse import quote

import anyio
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config import StaticConfig, default_static_config
from errors import IOFailure, MalformedPath, NotFound, StaticError
from filesystem import LocalFileSystem
from services.content import serve_document
from services.normalizer import normalize_path, split_mount
from services.resolver import Document, resolve_document, resolve_index

logger = logging.getLogger(__name__)


def request_path(request: Request) -> str:
    """The request path with every non-ASCII byte percent-escaped."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return quote(raw_path.split(b"?", 1)[0], safe="/%")
    return quote(request.scope["path"])


async def drain(response: Response) -> None:
    """Consume a downstream response that is being replaced."""
    body_iterator = getattr(response, "body_iterator", None)
    if body_iterator is not None:
        async for _ in body_iterator:
            pass


class PrecompressedStaticMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, config: StaticConfig | None = None) -> None:
        super().__init__(app)
        self.config = config or default_static_config()
        self.fs = self.config.filesystem or LocalFileSystem(self.config.root)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        config = self.config
        if config.skipper(request):
            return await call_next(request)

        path = request_path(request)
        wildcard = split_mount(path, config.prefix)
        if wildcard is None:
            return await call_next(request)

        accept_encoding = request.headers.get("accept-encoding")
        try:
            name = normalize_path(
                path,
                wildcard=wildcard if config.prefix else None,
                route_path=config.prefix,
                index=config.index,
                ignore_base=config.ignore_base,
            )
            document = await self._resolve(resolve_document, name, accept_encoding)
        except StaticError as exc:
            match exc:
                case NotFound():
                    logger.debug("%s not found, deferring: %s", path, exc.detail)
                    return await self._defer(request, call_next, accept_encoding)
                case MalformedPath():
                    logger.debug("Rejected %s: %s", path, exc.detail)
                    return exc.to_response()
                case IOFailure():
                    logger.error("Failed to open %s: %s", path, exc.detail)
                    return exc.to_response()
                case _:
                    raise

        return serve_document(request, document, vary=bool(config.encodings))

    async def _defer(
        self, request: Request, call_next: RequestResponseEndpoint, accept_encoding: str | None
    ) -> Response:
        """Let the wrapped app answer; fall back to the root index on a 404 in HTML5 mode."""
        response = await call_next(request)
        if response.status_code != 404 or not self.config.html5:
            return response

        try:
            document = await self._resolve(resolve_index, accept_encoding)
        except StaticError as exc:
            match exc:
                case NotFound():
                    logger.debug("No %s for HTML5 fallback", self.config.index)
                    return response
                case IOFailure():
                    logger.error("Failed to open %s: %s", self.config.index, exc.detail)
                    await drain(response)
                    return exc.to_response()
                case _:
                    raise

        logger.debug("HTML5 fallback to %s for %s", document.handle.path, request.url.path)
        try:
            await drain(response)
        except BaseException:
            document.close()
            raise
        return serve_document(request, document, vary=bool(self.config.encodings))

    async def _resolve(self, resolver, *args) -> Document:
        # Not cancellable: a handle opened in the thread must reach the caller
        with anyio.CancelScope(shield=True):
            document = await run_in_threadpool(resolver, self.fs, *args, self.config)
        return document
