import os
import hashlib
import logging
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, Optional

import requests

from .entry import Entry, FileEntry
from .errors import FilesystemError, NetworkError, ProtocolViolation

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
TIMEOUT = 30


class ANSI:
    """ANSI escape codes."""

    DEFAULT = '\x1b[0m'
    GREY = '\x1b[90m'
    RED = '\x1b[91m'
    GREEN = '\x1b[92m'
    YELLOW = '\x1b[93m'
    BLUE = '\x1b[94m'
    CYAN = '\x1b[96m'


class ConflictPolicy:
    """The action taken when a destination file already exists."""

    SKIP = 'skip'
    CHECK = 'check'
    CONTINUE = 'continue'
    OVERWRITE = 'overwrite'

    CHOICES = [SKIP, CHECK, CONTINUE, OVERWRITE]

    @staticmethod
    def open_mode(policy: str) -> str:
        """Return the mode an existing destination is opened with.

        Args:
            policy (str): The conflict policy.

        Returns:
            str: The mode for ``open``.
        """
        if policy == ConflictPolicy.SKIP:
            return 'rb'
        elif policy == ConflictPolicy.CHECK:
            return 'r+b'
        elif policy == ConflictPolicy.CONTINUE:
            return 'ab'
        elif policy == ConflictPolicy.OVERWRITE:
            return 'wb'
        raise ValueError(f'Unknown conflict policy {policy}')


class TransferOutcome:
    """The result of one file transfer."""

    SKIPPED = 'skipped'
    OVERWRITTEN = 'overwritten'
    CONTINUED = 'continued'
    COMPLETED = 'completed'

    @staticmethod
    def ansify(outcome: str) -> str:
        """Return the ANSI escape code for the outcome.

        Args:
            outcome (str): The transfer outcome.

        Returns:
            str: The ANSI escape code.
        """
        if outcome == TransferOutcome.SKIPPED:
            return ANSI.YELLOW
        elif outcome == TransferOutcome.OVERWRITTEN:
            return ANSI.BLUE
        elif outcome == TransferOutcome.CONTINUED:
            return ANSI.CYAN
        elif outcome == TransferOutcome.COMPLETED:
            return ANSI.GREEN
        else:
            return ANSI.DEFAULT


ProgressCallback = Callable[[int, int], None]


def destination(entry: Entry, output: Path, relative: Optional[PurePosixPath] = None) -> Path:
    """Return the local path of an entry.

    Args:
        entry (Entry): The remote entry.
        output (Path): The destination root.
        relative (PurePosixPath, optional): The entry path relative to the traversal base.
            Defaults to the absolute entry path without its leading slash.

    Returns:
        Path: The local path.
    """
    if relative is None:
        relative = entry.path.relative_to('/')
    return Path(output).joinpath(*relative.parts)


class Downloader:
    """Downloads share files to the local filesystem."""

    def __init__(
            self,
            session: Optional[requests.Session] = None,
            chunk_size: int = CHUNK_SIZE,
            timeout: float = TIMEOUT,
    ) -> None:
        """Initialize the downloader.

        Args:
            session (requests.Session, optional): The HTTP session. Defaults to a new one.
            chunk_size (int, optional): The size of streamed chunks in bytes.
            timeout (float, optional): The timeout of each request in seconds.
        """
        self.session = session if session is not None else requests.Session()
        self.chunk_size = chunk_size
        self.timeout = timeout

    def _get(self, url: str, headers: Optional[dict] = None) -> requests.Response:
        try:
            response = self.session.get(url, headers=headers, stream=True, timeout=self.timeout)
        except requests.RequestException as error:
            raise NetworkError(f"{url}: {error}") from error
        if not response.ok:
            response.close()
            raise NetworkError(f"{url}: {response.reason}", response.status_code)
        return response

    def _copy(
            self,
            response: requests.Response,
            writer: BinaryIO,
            done: int,
            total: int,
            on_progress: Optional[ProgressCallback],
    ) -> int:
        written = 0
        try:
            for chunk in response.iter_content(self.chunk_size):
                if not chunk:
                    continue
                writer.write(chunk)
                written += len(chunk)
                if on_progress is not None:
                    on_progress(done + written, total)
        except requests.RequestException as error:
            raise NetworkError(f"{response.url}: {error}") from error
        return written

    def download(
            self,
            writer: BinaryIO,
            url: str,
            total: int = 0,
            on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """Download the whole content of a URL.

        Args:
            writer (BinaryIO): Where the content is written.
            url (str): The download URL.
            total (int, optional): The expected size, for progress reports.
            on_progress (callable, optional): Called with the done and total byte counts.

        Returns:
            int: The number of bytes written.
        """
        with self._get(url) as response:
            return self._copy(response, writer, 0, total, on_progress)

    def download_range(
            self,
            writer: BinaryIO,
            url: str,
            start: int,
            end: int,
            on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """Download the bytes ``[start, end)`` of a URL.

        Args:
            writer (BinaryIO): Where the content is written.
            url (str): The download URL.
            start (int): The first byte.
            end (int): The byte after the last one.
            on_progress (callable, optional): Called with the done and total byte counts.

        Returns:
            int: The number of bytes written.
        """
        headers = {'Range': f'bytes={start}-{end - 1}'}
        with self._get(url, headers=headers) as response:
            if response.status_code != requests.codes.partial_content:
                raise ProtocolViolation(response.status_code, f"{url} ignored the range request")
            return self._copy(response, writer, start, end, on_progress)

    def verify(
            self,
            file: BinaryIO,
            url: str,
            total: int = 0,
            on_progress: Optional[ProgressCallback] = None,
    ) -> bool:
        """Compare a local file with the remote content and repair it on mismatch.

        The remote content is streamed chunk by chunk and each chunk's SHA-256
        digest is compared with the digest of the local bytes at the same
        offset. The local file is only written from the first mismatching
        offset on.

        Args:
            file (BinaryIO): The local file, opened for reading and writing.
            url (str): The download URL.
            total (int, optional): The expected size, for progress reports.
            on_progress (callable, optional): Called with the done and total byte counts.

        Returns:
            bool: True if the local file was rewritten, False if it already matched.
        """
        offset = 0
        mismatch = False
        with self._get(url) as response:
            try:
                for chunk in response.iter_content(self.chunk_size):
                    if not chunk:
                        continue
                    if not mismatch:
                        local = file.read(len(chunk))
                        if hashlib.sha256(local).digest() == hashlib.sha256(chunk).digest():
                            offset += len(chunk)
                            if on_progress is not None:
                                on_progress(offset, total)
                            continue
                        logger.debug("[verify] %s differs at byte %d", url, offset)
                        mismatch = True
                        file.seek(offset)
                        file.truncate()
                    file.write(chunk)
                    offset += len(chunk)
                    if on_progress is not None:
                        on_progress(offset, total)
            except requests.RequestException as error:
                raise NetworkError(f"{url}: {error}") from error

        if not mismatch and file.read(1):
            logger.debug("[verify] local file is longer than %d bytes", offset)
            mismatch = True
            file.seek(offset)
            file.truncate()
        return mismatch

    def _resolve(
            self,
            file: BinaryIO,
            entry: FileEntry,
            exists: bool,
            conflict: str,
            on_progress: Optional[ProgressCallback],
    ) -> str:
        if not exists:
            self.download(file, entry.download_url, entry.size, on_progress)
            return TransferOutcome.COMPLETED
        elif conflict == ConflictPolicy.SKIP:
            return TransferOutcome.SKIPPED
        elif conflict == ConflictPolicy.CHECK:
            if self.verify(file, entry.download_url, entry.size, on_progress):
                return TransferOutcome.OVERWRITTEN
            return TransferOutcome.SKIPPED
        elif conflict == ConflictPolicy.CONTINUE:
            start = os.fstat(file.fileno()).st_size
            if start < entry.size:
                self.download_range(file, entry.download_url, start, entry.size, on_progress)
                return TransferOutcome.CONTINUED
            return TransferOutcome.SKIPPED
        self.download(file, entry.download_url, entry.size, on_progress)
        return TransferOutcome.OVERWRITTEN

    def transfer(
            self,
            entry: Entry,
            output: Path,
            conflict: str = ConflictPolicy.SKIP,
            archive: bool = False,
            relative: Optional[PurePosixPath] = None,
            on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Download one file entry, resolving conflicts with an existing local file.

        Args:
            entry (Entry): The remote entry. Directories are skipped.
            output (Path): The destination root.
            conflict (str, optional): One of ConflictPolicy. Defaults to ConflictPolicy.SKIP.
            archive (bool, optional): Set the local modification time to the remote one.
            relative (PurePosixPath, optional): The entry path relative to the traversal base.
            on_progress (callable, optional): Called with the done and total byte counts.

        Returns:
            str: One of TransferOutcome.
        """
        if entry.is_dir:
            return TransferOutcome.SKIPPED
        assert isinstance(entry, FileEntry)

        dest = destination(entry, output, relative)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            exists = dest.exists()
            mode = ConflictPolicy.open_mode(conflict) if exists else 'wb'
            file = open(dest, mode)
        except OSError as error:
            raise FilesystemError(f"cannot open {dest}: {error}") from error

        try:
            with file:
                outcome = self._resolve(file, entry, exists, conflict, on_progress)
        except OSError as error:
            raise FilesystemError(f"cannot write {dest}: {error}") from error

        if archive and outcome != TransferOutcome.SKIPPED and entry.last_modified is not None:
            mtime = entry.last_modified.timestamp()
            try:
                os.utime(dest, (dest.stat().st_atime, mtime))
            except OSError as error:
                raise FilesystemError(f"cannot set modification time of {dest}: {error}") from error

        logger.debug("[transfer] %s -> %s: %s", entry.path, dest, outcome)
        return outcome
