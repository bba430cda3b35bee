"""Errors raised while resolving, listing and downloading Seafile shares."""

from typing import Optional


class SeafloadError(Exception):
    """Base class of every error raised by seafload."""


class LinkUnrecognized(SeafloadError):
    """Raised when a URL is not a Seafile share link."""

    def __init__(self, url: str) -> None:
        super().__init__(f"not a share link: {url}")
        self.url = url


class InvalidShare(SeafloadError):
    """Raised when share metadata cannot be extracted or decoded."""


class NetworkError(SeafloadError):
    """Raised on transport failures and non-2xx responses."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        if status_code is not None:
            message = f"HTTP {status_code}: {message}"
        super().__init__(message)
        self.status_code = status_code


class ProtocolViolation(SeafloadError):
    """Raised when the server answers a request with an unexpected response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"unexpected HTTP {status_code}: {message}")
        self.status_code = status_code


class FilesystemError(SeafloadError):
    """Raised when a local directory or file cannot be created or opened."""
