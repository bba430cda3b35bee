from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Dict, Optional, Union

from .errors import InvalidShare


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp as sent by Seafile.

    Args:
        value (str): The timestamp, e.g. ``2023-06-19T08:23:24+00:00``.

    Returns:
        datetime: The timezone aware timestamp.
    """
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as error:
        raise InvalidShare(f"invalid timestamp {value!r}") from error


@dataclass(frozen=True)
class DirectoryEntry:
    """A remote directory."""

    name: str
    path: PurePosixPath
    last_modified: datetime
    view_url: str

    is_dir = True
    size = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'directory',
            'name': self.name,
            'path': str(self.path),
            'last_modified': self.last_modified.isoformat(),
            'view_url': self.view_url,
        }


@dataclass(frozen=True)
class FileEntry:
    """A remote file."""

    name: str
    path: PurePosixPath
    size: int
    last_modified: Optional[datetime]
    download_url: str
    view_url: str

    is_dir = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'file',
            'name': self.name,
            'path': str(self.path),
            'size': self.size,
            'last_modified': self.last_modified.isoformat() if self.last_modified else None,
            'download_url': self.download_url,
            'view_url': self.view_url,
        }


Entry = Union[DirectoryEntry, FileEntry]


def entry_from_dict(data: Dict[str, Any]) -> Entry:
    """Decode an entry encoded by ``to_dict``.

    Args:
        data (dict): The encoded entry.

    Returns:
        Entry: The decoded entry.
    """
    try:
        kind = data['type']
        if kind == 'directory':
            return DirectoryEntry(
                name=data['name'],
                path=PurePosixPath(data['path']),
                last_modified=parse_timestamp(data['last_modified']),
                view_url=data['view_url'],
            )
        if kind == 'file':
            last_modified = data.get('last_modified')
            return FileEntry(
                name=data['name'],
                path=PurePosixPath(data['path']),
                size=int(data['size']),
                last_modified=parse_timestamp(last_modified) if last_modified else None,
                download_url=data['download_url'],
                view_url=data['view_url'],
            )
    except (KeyError, TypeError, ValueError) as error:
        raise InvalidShare(f"malformed entry: {error}") from error
    raise InvalidShare(f"unknown entry type {kind!r}")
