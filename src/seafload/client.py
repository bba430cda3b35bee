"""Seafile share link metadata client."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlencode

import requests

from .entry import DirectoryEntry, Entry, FileEntry, parse_timestamp
from .errors import InvalidShare, NetworkError
from .sandbox import ScriptSandbox

logger = logging.getLogger(__name__)

DIRENTS_ROUTE = '/api/v2.1/share-links/{token}/dirents/'
DIRECTORY_ROUTE = '/d/{token}/'
FILE_ROUTE = '/d/{token}/files/'
PAGE_GLOBAL = 'shared'
TIMEOUT = 30


@dataclass(frozen=True)
class RawDirectory:
    """A directory record of the dirents listing."""

    name: str
    path: PurePosixPath
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class RawFile:
    """A file record of the dirents listing."""

    name: str
    path: PurePosixPath
    size: int
    last_modified: datetime


DirEnt = Union[RawDirectory, RawFile]


def parse_dirent(record: Dict[str, Any]) -> DirEnt:
    """Decode one record of the dirents listing.

    Records are told apart by their ``is_dir`` flag; each shape must carry all
    of its own fields.

    Args:
        record (dict): The raw JSON record.

    Returns:
        DirEnt: The decoded record.
    """
    try:
        if record['is_dir'] is True:
            return RawDirectory(
                name=record['folder_name'],
                path=PurePosixPath(record['folder_path']),
                size=int(record.get('size') or 0),
                last_modified=parse_timestamp(record['last_modified']),
            )
        if record['is_dir'] is False:
            return RawFile(
                name=record['file_name'],
                path=PurePosixPath(record['file_path']),
                size=int(record['size']),
                last_modified=parse_timestamp(record['last_modified']),
            )
    except (KeyError, TypeError, ValueError) as error:
        raise InvalidShare(f"malformed dirent {record!r}") from error
    raise InvalidShare(f"unknown dirent shape {record!r}")


@dataclass(frozen=True)
class WebFileOptions:
    """The ``pageOptions`` of a single file share page."""

    repo_id: str
    path: PurePosixPath
    name: str
    size: int
    raw_path: str
    can_download: bool

    @staticmethod
    def from_page_options(options: Dict[str, Any]) -> 'WebFileOptions':
        try:
            return WebFileOptions(
                repo_id=options['repoID'],
                path=PurePosixPath(options['filePath']),
                name=options['fileName'],
                size=int(options['fileSize']),
                raw_path=options['rawPath'],
                can_download=bool(options['canDownload']),
            )
        except (KeyError, TypeError, ValueError) as error:
            raise InvalidShare(f"malformed page options: {error}") from error


class SeafileClient:
    """Read-only client of a Seafile server's share links."""

    def __init__(
            self,
            base_url: str,
            session: Optional[requests.Session] = None,
            sandbox: Optional[ScriptSandbox] = None,
            timeout: float = TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            base_url (str): The server URL, e.g. ``https://cloud.example``.
            session (requests.Session, optional): The HTTP session. Defaults to a new one.
            sandbox (ScriptSandbox, optional): The evaluator of page scripts. Defaults to a new one.
            timeout (float, optional): The timeout of each request in seconds.
        """
        self.base_url = base_url.rstrip('/')
        self.session = session if session is not None else requests.Session()
        self.sandbox = sandbox if sandbox is not None else ScriptSandbox()
        self.timeout = timeout

    def dir_url(self, token: str, path: Optional[PurePosixPath] = None) -> str:
        url = self.base_url + DIRECTORY_ROUTE.format(token=token)
        if path is not None:
            url += '?' + urlencode({'p': str(path)})
        return url

    def file_url(self, token: str, path: PurePosixPath, dl: bool = False) -> str:
        params = {'p': str(path)}
        if dl:
            params['dl'] = '1'
        return self.base_url + FILE_ROUTE.format(token=token) + '?' + urlencode(params)

    def _get(self, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as error:
            raise NetworkError(f"{url}: {error}") from error
        if not response.ok:
            raise NetworkError(f"{url}: {response.reason}", response.status_code)
        return response

    def list_entries(self, token: str, path: Optional[PurePosixPath] = None) -> List[DirEnt]:
        """List one directory level of a share.

        Args:
            token (str): The share token.
            path (PurePosixPath, optional): The directory to list. Defaults to the share root.

        Returns:
            list: The raw records of the directory.
        """
        url = self.base_url + DIRENTS_ROUTE.format(token=token)
        params = {'path': str(path)} if path is not None else None
        logger.debug("[list_entries] GET %s path:%s", url, path)
        response = self._get(url, params=params, headers={'Accept': 'application/json'})
        try:
            records = response.json()['dirent_list']
        except (ValueError, KeyError, TypeError) as error:
            raise InvalidShare(f"malformed dirent listing from {url}") from error
        if not isinstance(records, list):
            raise InvalidShare(f"malformed dirent listing from {url}")
        return [parse_dirent(record) for record in records]

    def entries(self, token: str, path: Optional[PurePosixPath] = None) -> List[Entry]:
        """List one directory level of a share as entries with browse and download URLs.

        Args:
            token (str): The share token.
            path (PurePosixPath, optional): The directory to list. Defaults to the share root.

        Returns:
            list: The entries of the directory, in server order.
        """
        entries = []
        for dirent in self.list_entries(token, path):
            if isinstance(dirent, RawFile):
                entries.append(FileEntry(
                    name=dirent.name,
                    path=dirent.path,
                    size=dirent.size,
                    last_modified=dirent.last_modified,
                    download_url=self.file_url(token, dirent.path, dl=True),
                    view_url=self.file_url(token, dirent.path),
                ))
            else:
                entries.append(DirectoryEntry(
                    name=dirent.name,
                    path=dirent.path,
                    last_modified=dirent.last_modified,
                    view_url=self.dir_url(token, dirent.path),
                ))
        return entries

    def find_file(self, token: str, path: PurePosixPath) -> Optional[FileEntry]:
        """Look up a file of a directory share by listing its parent.

        Args:
            token (str): The share token.
            path (PurePosixPath): The file path.

        Returns:
            FileEntry: The file, or None if the parent does not list it.
        """
        for entry in self.entries(token, path.parent):
            if entry.path == path and not entry.is_dir:
                return entry
        return None

    def extract_page_options(self, page: str) -> Dict[str, Any]:
        """Extract ``pageOptions`` from the ``window.shared`` assignment of a page.

        Args:
            page (str): The HTML page.

        Returns:
            dict: The decoded page options.
        """
        pattern = re.compile(r'window\.' + PAGE_GLOBAL + r'\s*=\s*(\{[\s\S]*?\});')
        match = pattern.search(page)
        if match is None:
            raise InvalidShare(f"no window.{PAGE_GLOBAL} assignment in page")
        value = self.sandbox.evaluate(match.group(0), f'window.{PAGE_GLOBAL}')
        if not isinstance(value, dict) or not isinstance(value.get('pageOptions'), dict):
            raise InvalidShare(f"window.{PAGE_GLOBAL} has no pageOptions")
        return value['pageOptions']

    def web_file(self, url: str) -> WebFileOptions:
        logger.debug("[web_file] GET %s", url)
        page = self._get(url).text
        return WebFileOptions.from_page_options(self.extract_page_options(page))

    def single_file(self, url: str) -> FileEntry:
        """Fetch the metadata of a single file share.

        The dirents listing cannot serve these shares, so the metadata is read
        from the share page itself.

        Args:
            url (str): The share URL.

        Returns:
            FileEntry: The shared file. It carries no modification time.
        """
        options = self.web_file(url)
        if not options.can_download:
            logger.warning("[single_file] share %s does not allow downloads", url)
        return FileEntry(
            name=options.name,
            path=options.path,
            size=options.size,
            last_modified=None,
            download_url=options.raw_path,
            view_url=url,
        )
