"""Turn request paths into root-relative document names."""

import posixpath
import re
from urllib.parse import unquote

from errors import MalformedPath

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def unescape_path(path: str) -> str:
    """Percent-decode a URL path, rejecting malformed escapes."""
    match = _BAD_ESCAPE.search(path)
    if match:
        raise MalformedPath(f"invalid escape {path[match.start() : match.start() + 3]!r} in {path!r}")
    unescaped = unquote(path)
    if "\x00" in unescaped:
        raise MalformedPath(f"NUL byte in {path!r}")
    return unescaped


def clean_path(path: str) -> str:
    """Root `path` at "/" and resolve ".", ".." and repeated separators."""
    # normpath keeps a leading "//", so strip before prefixing
    return posixpath.normpath("/" + path.lstrip("/"))


def split_mount(path: str, prefix: str) -> str | None:
    """Return the part of `path` below `prefix`, or None when outside the mount."""
    if not prefix:
        return path
    if path == prefix:
        return ""
    if path.startswith(prefix + "/"):
        return path[len(prefix) :]
    return None


def normalize_path(
    url_path: str,
    *,
    wildcard: str | None = None,
    route_path: str = "",
    index: str,
    ignore_base: bool = False,
) -> str:
    """Derive the document name to open for a request.

    `wildcard` is the remainder captured below a mount; when present it is
    used instead of the full `url_path`. The result always starts with "/"
    and can never climb above it.
    """
    raw = url_path if wildcard is None else wildcard
    unescaped = unescape_path(raw)
    name = clean_path(unescaped)

    if ignore_base:
        route_base = posixpath.basename(route_path.rstrip("/*"))
        if route_base and route_base == posixpath.basename(unescaped.rstrip("/")):
            i = name.rfind(route_base)
            name = clean_path(name[:i] + name[i:].replace(route_base, "", 1))

    if name == "/":
        return "/" + index
    return name
