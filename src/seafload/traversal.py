import logging
from collections import deque
from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import Callable, Deque, Iterable, Iterator, List, Optional, Sequence

from .entry import DirectoryEntry, Entry, FileEntry
from .errors import SeafloadError

logger = logging.getLogger(__name__)


class TraversalMode:
    """The visiting order of subdirectories."""

    NONE = 'none'
    DFS = 'dfs'
    BFS = 'bfs'

    CHOICES = [NONE, DFS, BFS]


def matches(path: PurePosixPath, patterns: Sequence[str]) -> bool:
    """Return True if a remote path matches any of the glob patterns."""
    return any(fnmatchcase(str(path), pattern) for pattern in patterns)


class Traversal:
    """A queue driven walk over the entries of a share."""

    def __init__(
            self,
            lister: Callable[[PurePosixPath], List[Entry]],
            mode: str = TraversalMode.NONE,
            include: Sequence[str] = (),
            exclude: Sequence[str] = (),
            base: Optional[PurePosixPath] = None,
            on_directory: Optional[Callable[[DirectoryEntry], None]] = None,
            on_error: Optional[Callable[[Entry, SeafloadError], None]] = None,
    ) -> None:
        """Initialize the traversal.

        Args:
            lister (callable): Lists the entries of a remote directory.
            mode (str, optional): One of TraversalMode. Defaults to TraversalMode.NONE.
            include (list, optional): Glob patterns; if given, only matching files are yielded.
            exclude (list, optional): Glob patterns of paths to drop, directories included.
            base (PurePosixPath, optional): The remote path local paths are relative to.
            on_directory (callable, optional): Called with each directory before it is expanded.
            on_error (callable, optional): Called when a directory cannot be listed.
        """
        if mode not in TraversalMode.CHOICES:
            raise ValueError(f'Unknown traversal mode {mode}')
        self.lister = lister
        self.mode = mode
        self.include = list(include)
        self.exclude = list(exclude)
        self.base = base
        self.on_directory = on_directory
        self.on_error = on_error
        self.queue: Deque[Entry] = deque()

    def push(self, entries: Iterable[Entry]):
        """Queue entries so that they are visited in their given order."""
        if self.mode == TraversalMode.DFS:
            self.queue.extend(reversed(list(entries)))
        else:
            self.queue.extend(entries)

    def pop(self) -> Entry:
        if self.mode == TraversalMode.DFS:
            return self.queue.pop()
        return self.queue.popleft()

    def relative_path(self, entry: Entry) -> PurePosixPath:
        """Return the path of an entry relative to the traversal base.

        Args:
            entry (Entry): The entry.

        Returns:
            PurePosixPath: The relative path; the entry name if the entry is the base itself.
        """
        base = self.base if self.base is not None else PurePosixPath('/')
        try:
            relative = entry.path.relative_to(base)
        except ValueError:
            relative = entry.path.relative_to('/')
        if relative == PurePosixPath('.'):
            return PurePosixPath(entry.name)
        return relative

    def expand(self, directory: DirectoryEntry):
        try:
            if self.on_directory is not None:
                self.on_directory(directory)
            children = self.lister(directory.path)
        except SeafloadError as error:
            if self.on_error is None:
                logger.warning("[expand] cannot list %s; error:%s", directory.path, error)
            else:
                self.on_error(directory, error)
            return
        self.push(children)

    def walk(self) -> Iterator[FileEntry]:
        """Visit the queued entries until the queue is empty.

        Yields:
            FileEntry: Each file to transfer, in traversal order.
        """
        while self.queue:
            entry = self.pop()

            if matches(entry.path, self.exclude):
                logger.debug("[walk] excluded %s", entry.path)
                continue

            if entry.is_dir:
                if self.mode != TraversalMode.NONE:
                    self.expand(entry)
                continue

            if self.include and not matches(entry.path, self.include):
                logger.debug("[walk] not included %s", entry.path)
                continue

            yield entry

    def __iter__(self) -> Iterator[FileEntry]:
        return self.walk()
