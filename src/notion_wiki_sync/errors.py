"""Exception types raised while syncing markdown documents to Notion."""

from typing import Optional


class SyncError(Exception):
    """Base exception for all notion-wiki-sync errors."""
    pass


class MalformedFrontMatter(SyncError):
    """Raised when a document's front matter cannot be split or parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class RemoteStoreError(SyncError):
    """Raised when a Notion API call fails."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        if status is not None:
            message = f"{method} {url} failed with {status}: {message}"
        super().__init__(message)
        self.status = status
        self.code = code
        self.method = method
        self.url = url


class IdentityCollisionError(SyncError):
    """Raised when two local documents resolve to the same identity key."""

    def __init__(self, key: str, first: str, second: str):
        super().__init__(
            f"Documents {first!r} and {second!r} share the identity key {key!r}"
        )
        self.key = key
        self.first = first
        self.second = second
