"""Notion Wiki Sync - mirror a markdown directory into a Notion database."""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import Config, load_config
from .errors import IdentityCollisionError, MalformedFrontMatter, RemoteStoreError, SyncError
from .sync import run_sync

__all__ = [
    "Config",
    "load_config",
    "run_sync",
    "SyncError",
    "MalformedFrontMatter",
    "RemoteStoreError",
    "IdentityCollisionError",
]
