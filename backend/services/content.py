"""Stream a resolved document back to the client."""

import mimetypes

import anyio
from starlette.requests import Request
from starlette.responses import FileResponse, Response
from starlette.staticfiles import NotModifiedResponse, StaticFiles
from starlette.types import Receive, Scope, Send

from filesystem import FileHandle
from services.resolver import Document

# Only used for its conditional request check; serves no directory
_static_files = StaticFiles(check_dir=False)


class DocumentResponse(FileResponse):
    """FileResponse that reads from an opened handle instead of reopening a path.

    Headers, HEAD and range parsing come from FileResponse. Multipart range
    requests are answered with the whole document.
    """

    def __init__(self, handle: FileHandle, **kwargs) -> None:
        super().__init__(handle.path, stat_result=handle.stat(), **kwargs)
        self.handle = handle

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.handle.close()

    async def _read(self, size: int) -> bytes:
        return await anyio.to_thread.run_sync(self.handle.file.read, size)

    async def _handle_simple(self, send: Send, send_header_only: bool) -> None:
        await send({"type": "http.response.start", "status": self.status_code, "headers": self.raw_headers})
        if send_header_only:
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            return

        more_body = True
        while more_body:
            chunk = await self._read(self.chunk_size)
            more_body = len(chunk) == self.chunk_size
            await send({"type": "http.response.body", "body": chunk, "more_body": more_body})

    async def _handle_single_range(
        self, send: Send, start: int, end: int, file_size: int, send_header_only: bool
    ) -> None:
        self.headers["content-range"] = f"bytes {start}-{end - 1}/{file_size}"
        self.headers["content-length"] = str(end - start)
        await send({"type": "http.response.start", "status": 206, "headers": self.raw_headers})
        if send_header_only:
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            return

        await anyio.to_thread.run_sync(self.handle.file.seek, start)
        remaining = end - start
        more_body = True
        while more_body:
            chunk = await self._read(min(self.chunk_size, remaining))
            remaining -= len(chunk)
            more_body = bool(chunk) and remaining > 0
            await send({"type": "http.response.body", "body": chunk, "more_body": more_body})

    async def _handle_multiple_ranges(
        self, send: Send, ranges: list[tuple[int, int]], file_size: int, send_header_only: bool
    ) -> None:
        await self._handle_simple(send, send_header_only)


def serve_document(request: Request, document: Document, *, vary: bool = True) -> Response:
    """Build the response for `document`, taking ownership of its handle.

    The media type comes from the uncompressed name, so `app.js.br` is still
    served as JavaScript.
    """
    media_type = mimetypes.guess_type(document.name)[0] or "text/plain"
    headers = {}
    if document.encoding:
        headers["content-encoding"] = document.encoding
    if vary:
        headers["vary"] = "Accept-Encoding"

    response = DocumentResponse(document.handle, headers=headers, media_type=media_type)

    if request.method in ("GET", "HEAD") and _static_files.is_not_modified(
        response.headers, request.headers
    ):
        document.close()
        return NotModifiedResponse(response.headers)
    return response
