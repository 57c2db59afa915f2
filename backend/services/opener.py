import logging

from errors import IOFailure, NotFound
from filesystem import FileHandle, FileSystem

logger = logging.getLogger(__name__)


def open_document(
    fs: FileSystem,
    name: str,
    accept_encoding: str | None,
    encoding_table: list[tuple[str, str]],
) -> tuple[FileHandle, str | None]:
    """Open `name`, preferring a precompressed variant the client accepts.

    Variants are tried in table order and the first one that opens wins.
    Accept-Encoding is matched by substring; quality values are not parsed.
    Errors opening the plain file are raised unchanged.
    """
    if accept_encoding:
        for token, extension in encoding_table:
            if token not in accept_encoding:
                continue
            try:
                handle = fs.open(name + extension)
            except NotFound:
                continue
            except IOFailure as exc:
                logger.warning("Skipping %s variant of %s: %s", token, name, exc.detail)
                continue
            if handle.is_dir:
                handle.close()
                continue
            return handle, token

    return fs.open(name), None
