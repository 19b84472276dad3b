"""Local file selection: traversal, glob filtering, shuffling and key mapping."""

import os
import posixpath
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from wcmatch import glob as wcglob

from bucket_sync.exceptions import TraversalError

GLOB_FLAGS = wcglob.GLOBSTAR | wcglob.FORCEUNIX


@dataclass(frozen=True)
class LocalFile:
    """A local file paired with the object key it uploads to."""

    origin: Path
    """Path of the file on disk"""

    destination: str
    """Object key in the bucket"""


@dataclass(frozen=True)
class FilterSet:
    """Allow/disallow glob patterns evaluated against relative POSIX paths.

    Disallow wins: a path matching any disallow pattern is excluded even if
    it also matches an allow pattern. An empty allow list admits everything.
    """

    allow: Tuple[str, ...] = ()
    disallow: Tuple[str, ...] = ()

    @classmethod
    def create(cls, allow: Optional[Iterable[str]] = None,
               disallow: Optional[Iterable[str]] = None) -> "FilterSet":
        return cls(allow=tuple(allow or ()), disallow=tuple(disallow or ()))

    def is_disallowed(self, relative_path: str) -> bool:
        return bool(self.disallow) and wcglob.globmatch(relative_path, list(self.disallow), flags=GLOB_FLAGS)

    def is_allowed(self, relative_path: str) -> bool:
        if not self.allow:
            return True
        return wcglob.globmatch(relative_path, list(self.allow), flags=GLOB_FLAGS)

    def matches(self, relative_path: str) -> bool:
        """Return True if the path survives both filter stages."""
        if self.is_disallowed(relative_path):
            return False
        return self.is_allowed(relative_path)


def _raise_traversal_error(error: OSError) -> None:
    raise TraversalError(f"Cannot read directory {error.filename}: {error.strerror}") from error


def list_files(root: Union[str, Path]) -> Iterator[Path]:
    """
    Recursively yield every regular file under ``root``.

    Raises:
        TraversalError: If root is missing, not a directory, or unreadable
    """
    root = Path(root)
    if not root.exists():
        raise TraversalError(f"Directory does not exist: {root}")
    if not root.is_dir():
        raise TraversalError(f"Not a directory: {root}")

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise_traversal_error):
        for filename in filenames:
            file_path = Path(dirpath) / filename
            if file_path.is_file():
                yield file_path


def destination_key(destination_root: str, relative_path: str) -> str:
    """Join a destination prefix and a relative POSIX path into an object key."""
    prefix = destination_root.strip("/")
    if not prefix:
        return relative_path
    return posixpath.join(prefix, relative_path)


def select_files(
    root: Union[str, Path],
    destination_root: str,
    disallow: Sequence[str] = (),
    allow: Sequence[str] = (),
    rng: Optional[random.Random] = None,
) -> List[LocalFile]:
    """
    Select files under ``root`` and map them to keys under ``destination_root``.

    The returned list is a uniformly shuffled permutation of the files that
    pass the filters, so repeated runs do not always start on the same prefix.

    Args:
        root: Local directory to walk
        destination_root: Key prefix in the bucket
        disallow: Glob patterns to exclude (checked first)
        allow: Glob patterns to include; empty means everything
        rng: Random source for the shuffle

    Returns:
        Shuffled list of LocalFile descriptors
    """
    root = Path(root)
    filters = FilterSet.create(allow=allow, disallow=disallow)

    selected = []
    for file_path in list_files(root):
        relative_path = file_path.relative_to(root).as_posix()
        if filters.matches(relative_path):
            selected.append((file_path, relative_path))

    (rng or random).shuffle(selected)

    return [
        LocalFile(origin=file_path, destination=destination_key(destination_root, relative_path))
        for file_path, relative_path in selected
    ]
