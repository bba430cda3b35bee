import argparse
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence

from .share import ShareLink
from .transfer import ConflictPolicy
from .traversal import TraversalMode

URL_HELP = '''Seafile share URL (subfolder URLs are also supported), e.g.
  https://cloud.example/d/abc
  https://cloud.example/f/abc
  https://cloud.example/d/6e5297246c/?p=%%2Fpath&mode=list
  https://cloud.example/d/6e5297246c/files/?p=%%2Fpath%%2Ffile.jpg'''


class Config:
    """The configuration of the program."""

    LIST = 'list'
    DOWNLOAD = 'download'

    def __init__(
            self,
            command: str,
            url: str,
            path: Optional[str] = None,
            json: bool = False,
            output: str = './',
            archive: bool = False,
            conflict: str = ConflictPolicy.SKIP,
            recursive: str = TraversalMode.NONE,
            include: Sequence[str] = (),
            exclude: Sequence[str] = (),
            dry_run: bool = False,
            verbose: bool = False,
    ) -> None:
        """Initialize the configuration.

        Args:
            command (str): 'list' or 'download'
            url (str): The Seafile share URL
            path (str): Remote path to fetch, absolute or relative to the share URL
            json (bool): Print the listing as JSON
            output (str): The path to save the files
            archive (bool): Set the modification time of downloaded files to the remote one
            conflict (str): The action taken if a file already exists
            recursive (str): Traverse subdirectories, 'none', 'dfs' or 'bfs'
            include (list): Download only the remote paths matching these glob patterns
            exclude (list): Skip the remote paths matching these glob patterns
            dry_run (bool): Print the download links instead of downloading
            verbose (bool): Log debug messages
        """
        self.command = command
        self.url = url
        self.path = path
        self.json = json
        self.output = Path(output)
        self.archive = archive
        self.conflict = conflict
        self.recursive = recursive
        self.include: List[str] = list(include)
        self.exclude: List[str] = list(exclude)
        self.dry_run = dry_run
        self.verbose = verbose

    def start_path(self, link: ShareLink) -> Optional[PurePosixPath]:
        """Resolve the remote path the command starts from.

        Args:
            link (ShareLink): The parsed share link.

        Returns:
            PurePosixPath: The starting path, or None for the share root.
        """
        if self.path is None:
            return link.path
        base = link.path if link.path is not None else PurePosixPath('/')
        return base / self.path

    @staticmethod
    def parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog='seafload', description='Download files from Seafile share links')
        parser.add_argument('-v', '--verbose', action='store_true', help='Log debug messages')
        commands = parser.add_subparsers(dest='command', required=True)

        common = argparse.ArgumentParser(add_help=False)
        common.add_argument('url', type=str, help=URL_HELP)
        common.add_argument('-p', '--path', type=str, default=None,
                            help='Remote path to fetch, which can be absolute or relative to the share URL')

        list_parser = commands.add_parser(
            Config.LIST, parents=[common], formatter_class=argparse.RawTextHelpFormatter,
            help='List a share directory')
        list_parser.add_argument('--json', action='store_true', help='JSON output')

        download_parser = commands.add_parser(
            Config.DOWNLOAD, parents=[common], formatter_class=argparse.RawTextHelpFormatter,
            help='Download files of a share')
        download_parser.add_argument('--dry-run', action='store_true', help='Output download links only')
        download_parser.add_argument('-o', '--output', type=str, default='./', help='Output destination')
        download_parser.add_argument('-a', '--archive', action='store_true',
                                     help='Archive mode, which sets the modification time shown in remote')
        download_parser.add_argument('-c', '--conflict', choices=ConflictPolicy.CHOICES, default=ConflictPolicy.SKIP,
                                     help='Action to be taken if a file already exists:\n'
                                          '  skip: skip if a file exists\n'
                                          '  check: compare with the remote content, repair on mismatch\n'
                                          '  continue: continue the download with a range request\n'
                                          '  overwrite: always overwrite the destination')
        download_parser.add_argument('-r', '--recursive', nargs='?', choices=TraversalMode.CHOICES,
                                     default=TraversalMode.NONE, const=TraversalMode.DFS,
                                     help='Recursive download (DFS if given without a value)')
        download_parser.add_argument('--include', action='append', default=[],
                                     help='Include remote paths only (glob patterns, e.g. "/xyz/*" or "/ab?/**")')
        download_parser.add_argument('--exclude', action='append', default=[],
                                     help='Exclude remote paths (glob patterns)')
        return parser

    @staticmethod
    def parse_args(argv: Optional[Sequence[str]] = None) -> 'Config':
        """Parse the command line arguments."""
        args = Config.parser().parse_args(argv)

        if args.command == Config.LIST:
            return Config(
                command=args.command,
                url=args.url,
                path=args.path,
                json=args.json,
                verbose=args.verbose,
            )

        return Config(
            command=args.command,
            url=args.url,
            path=args.path,
            output=args.output,
            archive=args.archive,
            conflict=args.conflict,
            recursive=args.recursive,
            include=args.include,
            exclude=args.exclude,
            dry_run=args.dry_run,
            verbose=args.verbose,
        )
