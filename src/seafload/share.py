import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional, Union
from urllib.parse import parse_qs, urlsplit, urlunsplit

DIRECTORY_PATTERN = re.compile(r'/d/([0-9a-f]+)(/files)?')
SINGLE_FILE_PATTERN = re.compile(r'/f/([0-9a-f]+)')


@dataclass(frozen=True)
class DirectoryShare:
    """A directory share link, possibly pointing at a path inside the share.

    Attributes:
        token (str): The share token.
        path (PurePosixPath, optional): The remote path named by the ``p`` query parameter.
        file (bool): True if the link points at a file of the share (``/files`` marker).
    """

    token: str
    path: Optional[PurePosixPath] = None
    file: bool = False

    @property
    def is_single_file(self) -> bool:
        return False

    @property
    def is_file(self) -> bool:
        return self.file


@dataclass(frozen=True)
class SingleFileShare:
    """A single file share link."""

    token: str

    path = None

    @property
    def is_single_file(self) -> bool:
        return True

    @property
    def is_file(self) -> bool:
        return True


ShareLink = Union[DirectoryShare, SingleFileShare]


def parse(url: str) -> Optional[ShareLink]:
    """Classify a share URL.

    The directory shape is checked first, then the single file shape.

    Args:
        url (str): The share URL.

    Returns:
        ShareLink: The share descriptor, or None if the URL is not a share link.
    """
    parts = urlsplit(url)

    match = DIRECTORY_PATTERN.search(parts.path)
    if match is not None:
        values = parse_qs(parts.query).get('p')
        return DirectoryShare(
            token=match.group(1),
            path=PurePosixPath(values[0]) if values and values[0] else None,
            file=match.group(2) is not None,
        )

    match = SINGLE_FILE_PATTERN.search(parts.path)
    if match is not None:
        return SingleFileShare(token=match.group(1))

    return None


def server_url(url: str) -> str:
    """Return the scheme and host of a share URL, without path or query."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, '', '', ''))
