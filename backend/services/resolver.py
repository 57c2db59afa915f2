import logging
import posixpath
from dataclasses import dataclass

from config import StaticConfig
from errors import DirectoryWithoutIndex, NotFound
from filesystem import FileHandle, FileSystem
from services.opener import open_document

logger = logging.getLogger(__name__)


@dataclass
class Document:
    handle: FileHandle
    # Name of the uncompressed document; drives the media type
    name: str
    encoding: str | None = None

    def close(self) -> None:
        self.handle.close()


def resolve_document(
    fs: FileSystem,
    name: str,
    accept_encoding: str | None,
    config: StaticConfig,
) -> Document:
    """Find the document to serve for the normalized `name`.

    Directories are answered with their index document, or with the root
    index in HTML5 mode. Raises NotFound (including DirectoryWithoutIndex)
    or IOFailure; no handle stays open when an error is raised.
    """
    handle, encoding = open_document(fs, name, accept_encoding, config.encoding_table)
    if not handle.is_dir:
        logger.debug("Resolved %s -> %s (encoding=%s)", name, handle.path, encoding)
        return Document(handle, posixpath.basename(name), encoding)

    handle.close()
    if config.html5:
        index_name = "/" + config.index
    else:
        index_name = posixpath.join(name, config.index)

    try:
        index, encoding = open_document(fs, index_name, accept_encoding, config.encoding_table)
    except NotFound as exc:
        raise DirectoryWithoutIndex(f"{name}: no {config.index}") from exc

    if index.is_dir:
        index.close()
        raise DirectoryWithoutIndex(f"{name}: {index_name} is a directory")

    logger.debug("Resolved directory %s -> %s (encoding=%s)", name, index.path, encoding)
    return Document(index, posixpath.basename(index_name), encoding)


def resolve_index(fs: FileSystem, accept_encoding: str | None, config: StaticConfig) -> Document:
    """Resolve the root index document used for HTML5 fallback."""
    return resolve_document(fs, "/" + config.index, accept_encoding, config)
