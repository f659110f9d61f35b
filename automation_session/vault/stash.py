"""
ContentStash — Capture a file now, read it back later in the same run.

``save(path)`` copies a file (or a whole directory tree) into the stash
directory under a freshly generated handle; ``load(handle)`` returns the
bytes captured at save time, however the source changed since.
Entries are never modified and live until the session is closed.
"""
import os
import uuid
import logging
import threading
from pathlib import Path
from typing import Iterable, Union

from ..exceptions import (
    CopyFailed,
    InvalidPath,
    ReadFailed,
    SessionClosed,
    StashNotFound,
)
from ..fsutils import copy_item

logger = logging.getLogger("automation.session")


class ContentStash:
    """Session-scoped store of file contents addressed by handle.

    Args:
        stash_dir: Directory holding the entries.
        exclude: Paths never copied when a saved tree contains them,
            typically the session root. The stash directory itself is
            always excluded.
    """

    def __init__(
        self,
        stash_dir: Union[str, os.PathLike],
        exclude: Iterable[Union[str, os.PathLike]] = (),
    ):
        self._dir = Path(stash_dir)
        self._exclude = frozenset(
            os.path.realpath(p) for p in (self._dir, *exclude)
        )
        self._lock = threading.RLock()
        self._closed = False

    def __repr__(self) -> str:
        return f'<ContentStash dir={self._dir}>'

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosed("Content stash is closed")

    @staticmethod
    def _resolve(path: Union[str, os.PathLike]) -> Path:
        """Absolute form of ``path``.

        Raises:
            InvalidPath: If ``path`` is empty, not path-like, or holds a NUL.
        """
        try:
            raw = os.fspath(path)
            if not raw or "\x00" in str(raw):
                raise ValueError("empty path or embedded null byte")
            return Path(os.path.abspath(raw))
        except (TypeError, ValueError, OSError) as err:
            raise InvalidPath(f"Cannot resolve path {path!r}: {err}") from err

    def _ignore(self, directory: str, names: list) -> set:
        """Names under ``directory`` that must not enter the stash."""
        base = os.path.realpath(directory)
        return {
            name for name in names
            if os.path.realpath(os.path.join(base, name)) in self._exclude
        }

    def _entry(self, handle: str) -> Path:
        """Path of the entry for ``handle``.

        Raises:
            StashNotFound: If the handle is malformed or nothing was saved
                under it.
        """
        if (
            not isinstance(handle, str)
            or not handle
            or os.sep in handle
            or (os.altsep and os.altsep in handle)
            or "\x00" in handle
            or handle in (".", "..")
        ):
            raise StashNotFound(f"Stash entry not found: {handle!r}")
        path = self._dir / handle
        if not path.exists():
            raise StashNotFound(f"Stash entry not found: {handle}")
        return path

    def save(self, source: Union[str, os.PathLike]) -> str:
        """Copy ``source`` into the stash and return its handle.

        Raises:
            InvalidPath: If ``source`` cannot be resolved to an absolute path.
            CopyFailed: If the copy did not complete; nothing is kept.
            SessionClosed: If the stash has been closed.
        """
        abs_path = self._resolve(source)
        with self._lock:
            self._check_open()
            handle = uuid.uuid4().hex
            try:
                copy_item(abs_path, self._dir / handle, ignore=self._ignore)
            except OSError as err:
                logger.error("Cannot stash %s: %s", abs_path, err)
                raise CopyFailed(f"Cannot stash {abs_path}: {err}") from err
        logger.debug("Stashed %s as %s", abs_path, handle)
        return handle

    def load(self, handle: str) -> bytes:
        """Return the bytes saved under ``handle``.

        Raises:
            StashNotFound: If nothing was saved under ``handle``.
            ReadFailed: If the entry exists but cannot be read as a file
                (directory entries included).
            SessionClosed: If the stash has been closed.
        """
        with self._lock:
            self._check_open()
            path = self._entry(handle)
            try:
                return path.read_bytes()
            except OSError as err:
                logger.error("Cannot read stash entry %s: %s", handle, err)
                raise ReadFailed(
                    f"Cannot read stash entry {handle}: {err}"
                ) from err

    def restore(self, handle: str, destination: Union[str, os.PathLike]) -> Path:
        """Copy the entry saved under ``handle`` out to ``destination``.

        Works for file and directory entries alike. A file restored onto
        an existing directory is written inside it; the returned path is
        the one actually written.

        Raises:
            StashNotFound: If nothing was saved under ``handle``.
            InvalidPath: If ``destination`` cannot be resolved.
            CopyFailed: If the copy did not complete.
        """
        target = self._resolve(destination)
        with self._lock:
            self._check_open()
            path = self._entry(handle)
            try:
                target = copy_item(path, target)
            except OSError as err:
                logger.error("Cannot restore %s to %s: %s", handle, target, err)
                raise CopyFailed(
                    f"Cannot restore {handle} to {target}: {err}"
                ) from err
        logger.debug("Restored %s to %s", handle, target)
        return target

    def handles(self) -> list[str]:
        """List handles of the saved entries."""
        with self._lock:
            self._check_open()
            if not self._dir.is_dir():
                return []
            return sorted(p.name for p in self._dir.iterdir())

    def exists(self, handle: str) -> bool:
        with self._lock:
            self._check_open()
            try:
                self._entry(handle)
            except StashNotFound:
                return False
            return True

    def __contains__(self, handle: object) -> bool:
        return self.exists(str(handle))

    def __len__(self) -> int:
        with self._lock:
            return len(self.handles())

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            self._closed = True
