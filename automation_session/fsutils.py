"""Filesystem primitives used by the session, the registry and the stash."""
import os
import shutil
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

logger = logging.getLogger("automation.session")

PathLike = Union[str, os.PathLike]


def make_private_dir(path: PathLike, mode: int) -> Path:
    """Create ``path`` (and parents) and force ``mode`` on it.

    ``os.makedirs`` applies the umask to ``mode``, so the mode is set
    again explicitly once the directory exists.
    """
    path = Path(path)
    path.mkdir(mode=mode, parents=True, exist_ok=True)
    os.chmod(path, mode)
    return path


def remove_tree(path: PathLike) -> bool:
    """Recursively remove ``path``.

    Returns:
        True if something was removed, False if ``path`` did not exist.

    Raises:
        OSError: If the tree exists but could not be removed.
    """
    path = Path(path)
    if not path.exists() and not path.is_symlink():
        return False
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    return True


def copy_item(
    source: PathLike,
    destination: PathLike,
    ignore: Optional[Callable[[str, list], Iterable[str]]] = None,
) -> Path:
    """Copy a file or a whole directory tree to ``destination``.

    Symlinks inside a tree are copied as links. ``ignore`` is handed to
    ``shutil.copytree`` and skips the names it returns; it is unused for
    files. A file copied onto an existing directory lands inside it, and
    the path actually written is returned. On failure anything
    this call wrote to ``destination`` is removed before the error
    propagates, so callers never see a partial copy.

    Raises:
        FileNotFoundError: If ``source`` does not exist.
        FileExistsError: If a tree is copied onto an existing path.
        OSError: On any other copy error.
    """
    source = Path(source)
    destination = Path(destination)
    if not source.exists():
        raise FileNotFoundError(
            f"No such file or directory: '{source}'"
        )
    existed = destination.exists()
    if existed and source.is_dir():
        raise FileExistsError(f"Destination already exists: '{destination}'")
    try:
        if source.is_dir():
            shutil.copytree(source, destination, symlinks=True, ignore=ignore)
        else:
            destination = Path(shutil.copy2(source, destination))
    except OSError:
        if not existed:
            try:
                remove_tree(destination)
            except OSError as cleanup_err:
                logger.warning(
                    "Could not remove partial copy %s: %s", destination, cleanup_err
                )
        raise
    return destination


def write_private_file(path: PathLike, content: Union[str, bytes], mode: int) -> Path:
    """Write ``content`` to ``path`` readable only by the owner.

    An existing file is truncated and its mode is reset to ``mode``.
    """
    path = Path(path)
    if isinstance(content, str):
        content = content.encode("utf-8")
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as fh:
        os.fchmod(fh.fileno(), mode)
        fh.write(content)
    return path
