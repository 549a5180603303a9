# chunksync/sync/__init__.py
"""Remote synchronization: project identity, backend client and sync cycle."""

from chunksync.sync.client import FilePayload, PushResult, RemoteIndexStatus, SyncClient
from chunksync.sync.coordinator import SyncCoordinator, SyncOutcome
from chunksync.sync.errors import SyncConflictError, SyncError
from chunksync.sync.project import ProjectConfig

__all__ = [
    "FilePayload",
    "ProjectConfig",
    "PushResult",
    "RemoteIndexStatus",
    "SyncClient",
    "SyncConflictError",
    "SyncCoordinator",
    "SyncError",
    "SyncOutcome",
]
