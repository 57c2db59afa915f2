"""Filesystem access for static documents.

Names handed to a `FileSystem` are root-relative, already cleaned and start
with "/". `LocalFileSystem` cleans them again before joining with its root.
"""

import os
import posixpath
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from errors import IOFailure, NotFound


class FileHandle:
    """An opened document. Directories are represented without a descriptor."""

    def __init__(self, path: str, stat_result: os.stat_result, file: BinaryIO | None = None):
        self.path = path
        self.file = file
        self._stat = stat_result

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self._stat.st_mode)

    @property
    def mtime(self) -> float:
        return self._stat.st_mtime

    def stat(self) -> os.stat_result:
        return self._stat

    def close(self) -> None:
        if self.file is not None:
            self.file.close()
            self.file = None

    def __enter__(self) -> "FileHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FileSystem(ABC):
    @abstractmethod
    def open(self, name: str) -> FileHandle:
        """Open `name`, raising NotFound when it is absent and IOFailure otherwise."""


class LocalFileSystem(FileSystem):
    def __init__(self, root: str | Path = "."):
        self.root = Path(root)

    def full_path(self, name: str) -> str:
        relative = posixpath.normpath("/" + name.lstrip("/")).lstrip("/")
        return str(self.root / relative) if relative else str(self.root)

    def open(self, name: str) -> FileHandle:
        path = self.full_path(name)
        try:
            info = os.stat(path)
            if stat.S_ISDIR(info.st_mode):
                return FileHandle(path, info)
            file = open(path, "rb")
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFound(f"{name}: {exc.strerror}") from exc
        except OSError as exc:
            raise IOFailure(f"{name}: {exc}") from exc

        try:
            info = os.fstat(file.fileno())
        except OSError as exc:
            file.close()
            raise IOFailure(f"{name}: {exc}") from exc
        return FileHandle(path, info, file)
