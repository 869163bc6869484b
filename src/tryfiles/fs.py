"""
=============================================================================
FILESYSTEM ABSTRACTION
=============================================================================

The try-files handler never touches `open()` or `os.stat()` directly. It
talks to a FileSystem, which hands out File objects:

    fs.open("/index.html")  →  File
        file.stat()         →  FileInfo(name, size, mod_time, is_dir)
        file.read(n)        →  bytes
        file.seek(offset)
        file.readdir()      →  [FileInfo, ...]   (directories only)
        file.close()

Two implementations ship with the package:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ DirFileSystem("/var/www/app")                                      │
    │     Real directory on disk. Paths are cleaned and confined to the   │
    │     root; a symlink pointing outside it is refused (403).           │
    │                                                                      │
    │ MemoryFileSystem({"/index.html": "<app/>"})                         │
    │     Files held in a dict. Embedded assets, tests.                   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ERROR CLASSIFICATION
=============================================================================

Filesystems signal failure with the built-in OSError family. Callers only
care about three outcomes:

    FileNotFoundError, NotADirectoryError  →  NOT_FOUND          →  404
    PermissionError                        →  PERMISSION_DENIED  →  403
    any other OSError                      →  OTHER              →  500

NOT_FOUND is the normal, expected case for fallback candidates. The other
two mean misconfiguration or I/O trouble.

=============================================================================
"""

import errno
import io
import logging
import os
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from .http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """The three ways opening or stat-ing a file can fail."""
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"


def classify_error(exc: BaseException) -> ErrorKind:
    """Map a filesystem exception to an ErrorKind."""
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, OSError) and exc.errno in (errno.ENOENT, errno.ENOTDIR):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, OSError) and exc.errno in (errno.EACCES, errno.EPERM):
        return ErrorKind.PERMISSION_DENIED
    return ErrorKind.OTHER


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.PERMISSION_DENIED: HTTPStatus.FORBIDDEN,
    ErrorKind.OTHER: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def status_for_error(exc: BaseException) -> HTTPStatus:
    """HTTP status for a filesystem exception: 404, 403 or 500."""
    return _STATUS_BY_KIND[classify_error(exc)]


def clean_path(name: str) -> str:
    """
    Normalize a request path to an absolute, dot-free form.

        "a/b/../c"     →  "/a/c"
        "/../../etc"   →  "/etc"
        "/assets/"     →  "/assets"
    """
    cleaned = posixpath.normpath("/" + name.lstrip("/"))
    return "/" if cleaned in ("", ".") else cleaned


def _not_found(name: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)


@dataclass(frozen=True)
class FileInfo:
    """What stat() reports about a file or directory."""
    name: str
    size: int
    mod_time: datetime
    is_dir: bool = False


class File(ABC):
    """An open file or directory handed out by a FileSystem."""

    @abstractmethod
    def stat(self) -> FileInfo:
        ...

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        ...

    @abstractmethod
    def seek(self, offset: int) -> None:
        ...

    def readdir(self) -> List[FileInfo]:
        """Directory entries sorted by name. Files raise NotADirectoryError."""
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR))

    def close(self) -> None:
        pass

    def __enter__(self) -> "File":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class FileSystem(ABC):
    """Read-only source of files, shared by all request threads."""

    @abstractmethod
    def open(self, name: str) -> File:
        """
        Open `name` (a slash-separated path rooted at "/").

        Raises:
            FileNotFoundError: Nothing at this path.
            PermissionError: Exists but may not be read.
            OSError: Any other failure.
        """


# =============================================================================
# DISK-BACKED FILESYSTEM
# =============================================================================

class _OSFile(File):
    def __init__(self, fileobj: io.BufferedReader, name: str):
        self._fileobj = fileobj
        self._name = posixpath.basename(name)

    def stat(self) -> FileInfo:
        st = os.fstat(self._fileobj.fileno())
        return FileInfo(
            name=self._name,
            size=st.st_size,
            mod_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    def read(self, size: int = -1) -> bytes:
        return self._fileobj.read(size)

    def seek(self, offset: int) -> None:
        self._fileobj.seek(offset)

    def close(self) -> None:
        self._fileobj.close()


class _OSDirectory(File):
    def __init__(self, path: Path, name: str):
        self._path = path
        self._name = posixpath.basename(name) or "/"

    def stat(self) -> FileInfo:
        st = self._path.stat()
        return FileInfo(
            name=self._name,
            size=0,
            mod_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            is_dir=True,
        )

    def read(self, size: int = -1) -> bytes:
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(self._path))

    def seek(self, offset: int) -> None:
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(self._path))

    def readdir(self) -> List[FileInfo]:
        entries = []
        with os.scandir(self._path) as it:
            for entry in it:
                st = entry.stat()
                entries.append(FileInfo(
                    name=entry.name,
                    size=0 if entry.is_dir() else st.st_size,
                    mod_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                    is_dir=entry.is_dir(),
                ))
        return sorted(entries, key=lambda info: info.name)


class DirFileSystem(FileSystem):
    """
    A directory on disk.

        fs = DirFileSystem("./dist")
        fs.open("/assets/app.js")      # ./dist/assets/app.js
        fs.open("/../secrets")         # cleaned to ./dist/secrets

    Path traversal protection works in two steps:
    1. clean_path() removes ".." segments lexically
    2. The resolved path (symlinks followed) must still be inside root,
       otherwise PermissionError
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()
        if not self.root.is_dir():
            raise ValueError(f"Root directory does not exist: {root}")

    def open(self, name: str) -> File:
        relative = clean_path(name).lstrip("/")
        full_path = (self.root / relative).resolve()

        try:
            full_path.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path escapes root: {name}")
            raise PermissionError(errno.EACCES, "Path escapes root directory", name)

        if full_path.is_dir():
            return _OSDirectory(full_path, name)
        return _OSFile(open(full_path, "rb"), name)

    def __repr__(self) -> str:
        return f"DirFileSystem({str(self.root)!r})"


# =============================================================================
# IN-MEMORY FILESYSTEM
# =============================================================================

class _MemoryFile(File):
    def __init__(self, info: FileInfo, data: bytes):
        self._info = info
        self._buffer = io.BytesIO(data)

    def stat(self) -> FileInfo:
        return self._info

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    def seek(self, offset: int) -> None:
        self._buffer.seek(offset)

    def close(self) -> None:
        self._buffer.close()


class _MemoryDirectory(File):
    def __init__(self, info: FileInfo, entries: List[FileInfo]):
        self._info = info
        self._entries = entries

    def stat(self) -> FileInfo:
        return self._info

    def read(self, size: int = -1) -> bytes:
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self._info.name)

    def seek(self, offset: int) -> None:
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self._info.name)

    def readdir(self) -> List[FileInfo]:
        return list(self._entries)


class MemoryFileSystem(FileSystem):
    """
    Files held in memory, keyed by path.

        fs = MemoryFileSystem({
            "/index.html": "<app/>",
            "/assets/app.js": b"console.log(1)",
        })

    Directories ("/", "/assets") exist implicitly. Every file shares one
    modification time (construction time unless given).
    """

    def __init__(
        self,
        files: Mapping[str, Union[str, bytes]],
        mod_time: Optional[datetime] = None,
    ):
        self.mod_time = mod_time or datetime.now(timezone.utc).replace(microsecond=0)
        self._files: Dict[str, bytes] = {}
        self._dirs: Dict[str, List[str]] = {"/": []}

        for name, content in files.items():
            path = clean_path(name)
            if isinstance(content, str):
                content = content.encode("utf-8")
            self._files[path] = content
            self._register_parents(path)

    def _register_parents(self, path: str) -> None:
        child = path
        parent = posixpath.dirname(child)
        while True:
            siblings = self._dirs.setdefault(parent, [])
            if child not in siblings:
                siblings.append(child)
            if parent == "/":
                break
            child, parent = parent, posixpath.dirname(parent)

    def _info(self, path: str) -> FileInfo:
        if path in self._files:
            return FileInfo(posixpath.basename(path), len(self._files[path]), self.mod_time)
        return FileInfo(posixpath.basename(path) or "/", 0, self.mod_time, is_dir=True)

    def open(self, name: str) -> File:
        path = clean_path(name)

        if path in self._files:
            return _MemoryFile(self._info(path), self._files[path])

        if path in self._dirs:
            entries = sorted(
                (self._info(child) for child in self._dirs[path]),
                key=lambda info: info.name,
            )
            return _MemoryDirectory(self._info(path), entries)

        raise _not_found(name)

    def __repr__(self) -> str:
        return f"MemoryFileSystem({len(self._files)} files)"
