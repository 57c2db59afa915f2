"""Error types raised while resolving static documents.

The set is closed: control flow matches on these classes and each one carries
the HTTP status it maps to when it reaches the client.
"""

from fastapi.responses import JSONResponse


class StaticError(Exception):
    status_code: int = 500
    public_detail: str = "Internal Server Error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.public_detail)
        self.detail = detail or self.public_detail

    def to_response(self) -> JSONResponse:
        # Internal detail (paths, errno) stays in the logs
        return JSONResponse({"detail": self.public_detail}, status_code=self.status_code)


class NotFound(StaticError):
    status_code = 404
    public_detail = "Not Found"


class DirectoryWithoutIndex(NotFound):
    pass


class MalformedPath(StaticError):
    status_code = 400
    public_detail = "Malformed request path"


class IOFailure(StaticError):
    status_code = 500


class ConfigInvalid(StaticError):
    status_code = 500
