from .client import SeafileClient
from .entry import DirectoryEntry, Entry, FileEntry, entry_from_dict
from .errors import (
    FilesystemError,
    InvalidShare,
    LinkUnrecognized,
    NetworkError,
    ProtocolViolation,
    SeafloadError,
)
from .share import DirectoryShare, ShareLink, SingleFileShare, parse
from .transfer import ConflictPolicy, Downloader, TransferOutcome
from .traversal import Traversal, TraversalMode
