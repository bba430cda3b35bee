import json
import logging
import sys
from pathlib import PurePosixPath
from typing import List, Optional, Sequence, TextIO

import requests

from . import share
from .client import SeafileClient
from .config import Config
from .entry import DirectoryEntry, Entry, FileEntry
from .errors import FilesystemError, InvalidShare, LinkUnrecognized, SeafloadError
from .share import ShareLink
from .size import Size
from .transfer import ANSI, Downloader, TransferOutcome, destination
from .traversal import Traversal

logger = logging.getLogger(__name__)

BAR_LENGTH = 20


def resolve_file(client: SeafileClient, link: ShareLink, url: str) -> FileEntry:
    """Fetch the entry of a share link pointing at a file.

    Args:
        client (SeafileClient): The metadata client.
        link (ShareLink): The share link, a single file share or a directory share with a file path.
        url (str): The share URL.

    Returns:
        FileEntry: The file.
    """
    if link.is_single_file:
        return client.single_file(url)
    if link.path is None:
        raise InvalidShare("share link points at a file but names no path")
    file = client.find_file(link.token, link.path)
    if file is None:
        raise InvalidShare(f"{link.path} is not listed in its parent directory")
    return file


def list_share(client: SeafileClient, link: ShareLink, url: str, path: Optional[PurePosixPath]) -> List[Entry]:
    """List the entries a share link points at.

    Args:
        client (SeafileClient): The metadata client.
        link (ShareLink): The share link.
        url (str): The share URL.
        path (PurePosixPath, optional): The resolved starting path.

    Returns:
        list: The file itself for file links, the directory entries otherwise.
    """
    if link.is_single_file:
        return [client.single_file(url)]
    if link.is_file:
        if link.path is None:
            return []
        file = client.find_file(link.token, link.path)
        return [file] if file is not None else []
    return client.entries(link.token, path)


def format_entry(entry: Entry) -> str:
    name = f"{entry.name}/" if entry.is_dir else entry.name
    size = str(Size(entry.size)) if entry.size is not None else 'N/A'
    modified = entry.last_modified.isoformat() if entry.last_modified is not None else 'N/A'
    return f"{name}\t{size}\t{modified}"


def format_progress(done: int, total: int) -> str:
    """Render a byte count as a bar, e.g. ``[#####...............]  25.0%``."""
    fraction = min(done / total, 1.0) if total > 0 else 1.0
    filled = round(fraction * BAR_LENGTH)
    return f"[{'#' * filled}{'.' * (BAR_LENGTH - filled)}] {fraction:6.1%}"


def print_listing(entries: List[Entry], as_json: bool = False, out: Optional[TextIO] = None):
    """Print a listing as a table or as JSON."""
    out = out if out is not None else sys.stdout
    if as_json:
        print(json.dumps([entry.to_dict() for entry in entries]), file=out)
        return
    print("Name\tSize\tLast Modified", file=out)
    for entry in entries:
        print(format_entry(entry), file=out)


class Reporter:
    """Prints the status of each transferred file."""

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.live = self.out.isatty()
        self.failures = 0

    def progress(self, entry: FileEntry):
        def update(done: int, total: int):
            if self.live:
                text = f"\x1b[2K\r{entry.name} - {Size(total)} {format_progress(done, total)}"
                print(text, end='', flush=True, file=self.out)
        return update

    def done(self, entry: Entry, outcome: str):
        if self.live:
            print("\x1b[2K\r", end='', file=self.out)
        color = TransferOutcome.ansify(outcome)
        print(color + f"downloaded {entry.path}: {outcome}" + ANSI.DEFAULT, flush=True, file=self.out)

    def failed(self, entry: Entry, error: Exception):
        self.failures += 1
        if self.live:
            print("\x1b[2K\r", end='', file=self.out)
        print(ANSI.RED + f"could not download {entry.path}: {error}" + ANSI.DEFAULT, flush=True, file=self.err)


def download_share(
        client: SeafileClient,
        downloader: Downloader,
        link: ShareLink,
        config: Config,
        reporter: Optional[Reporter] = None,
) -> int:
    """Download the files a share link points at.

    Args:
        client (SeafileClient): The metadata client.
        downloader (Downloader): The file downloader.
        link (ShareLink): The share link.
        config (Config): The configuration of the program.
        reporter (Reporter, optional): Where statuses are printed. Defaults to stdout and stderr.

    Returns:
        int: The number of files that could not be downloaded.
    """
    if reporter is None:
        reporter = Reporter()
    path = config.start_path(link)

    def create_directory(directory: DirectoryEntry):
        if config.dry_run:
            return
        local = destination(directory, config.output, traversal.relative_path(directory))
        try:
            local.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise FilesystemError(f"cannot create {local}: {error}") from error

    traversal = Traversal(
        lambda directory: client.entries(link.token, directory),
        mode=config.recursive,
        include=config.include,
        exclude=config.exclude,
        on_directory=create_directory,
        on_error=reporter.failed,
    )

    if link.is_file:
        file = resolve_file(client, link, config.url)
        traversal.base = file.path.parent
        traversal.push([file])
    else:
        traversal.base = path
        traversal.push(client.entries(link.token, path))

    for entry in traversal:
        if config.dry_run:
            print(entry.download_url, file=reporter.err)
            continue
        try:
            outcome = downloader.transfer(
                entry,
                config.output,
                conflict=config.conflict,
                archive=config.archive,
                relative=traversal.relative_path(entry),
                on_progress=reporter.progress(entry),
            )
        except SeafloadError as error:
            logger.debug("[download_share] %s failed", entry.path, exc_info=True)
            reporter.failed(entry, error)
        else:
            reporter.done(entry, outcome)

    return reporter.failures


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = Config.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    link = share.parse(config.url)
    if link is None:
        print(ANSI.RED + str(LinkUnrecognized(config.url)) + ANSI.DEFAULT, file=sys.stderr)
        return 2

    session = requests.Session()
    client = SeafileClient(share.server_url(config.url), session=session)
    downloader = Downloader(session=session)

    try:
        if config.command == Config.LIST:
            entries = list_share(client, link, config.url, config.start_path(link))
            print_listing(entries, as_json=config.json)
            return 0
        failures = download_share(client, downloader, link, config)
    except SeafloadError as error:
        print(ANSI.RED + f"error: {error}" + ANSI.DEFAULT, file=sys.stderr)
        return 1
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
