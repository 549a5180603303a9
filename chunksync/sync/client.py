# chunksync/sync/client.py
"""
Client for the remote indexing backend.

Endpoints (relative to ``sync.base_url``):

    POST /projects/ensure                {projectId, name}
    GET  /projects/{id}/merkle           -> MerkleTree, 404 when none
    POST /projects/{id}/chunks           {merkleTree, changedFiles} -> {inserted, updated, deleted}
    POST /projects/{id}/index            {filePaths?} -> {jobId}
    GET  /projects/{id}/status           -> {status, progress, totalFiles, indexedFiles, totalChunks}

Every failure is raised as a classified SyncError (see sync/errors.py).
The push has its own end-to-end timeout (``sync.push_timeout``) on top of
the per-request transport timeout.

Usage:
    async with SyncClient(config.sync) as client:
        await client.ensure_project(project_id, "notes")
        remote = await client.fetch_remote_tree(project_id)
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from chunksync.config.schema import SyncConfig
from chunksync.core.http import APIError, create_async_api_client, handle_api_error, raise_for_status
from chunksync.ingest.merkle import MerkleTree
from chunksync.ingest.models import Chunk
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import SYNC
from chunksync.sync.errors import SyncConnectionError, SyncError, sync_error_from_api

logger = get_logger(__name__)

PROVIDER_NAME = "indexing"

TokenProvider = Callable[[], Optional[str]]


# =============================================================================
# Wire models
# =============================================================================


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilePayload(_WireModel):
    """One changed file. Removed files carry an empty chunk list."""

    file_path: str
    chunks: List[Chunk] = Field(default_factory=list)
    file_hash: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class PushResult(_WireModel):
    inserted: int = 0
    updated: int = 0
    deleted: int = 0


class RemoteIndexStatus(_WireModel):
    status: str
    progress: float = 0.0
    total_files: int = 0
    indexed_files: int = 0
    total_chunks: int = 0


# =============================================================================
# Client
# =============================================================================


class SyncClient:
    """Async client for the indexing backend."""

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or SyncConfig()
        self._token_provider = token_provider or (lambda: self._config.token)
        kwargs = {"transport": transport} if transport is not None else {}
        self._client = create_async_api_client(
            base_url=self._config.base_url,
            timeout=self._config.request_timeout,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SyncClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @staticmethod
    def _project_path(project_id: str, suffix: str) -> str:
        return f"/projects/{quote(project_id, safe='')}/{suffix}"

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        request = self._client.request(method, path, json=json, headers=self._headers())
        try:
            if timeout is not None:
                return await asyncio.wait_for(request, timeout)
            return await request
        except asyncio.TimeoutError as e:
            raise SyncConnectionError(f"{method} {path} timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            raise sync_error_from_api(handle_api_error(e, provider=PROVIDER_NAME, endpoint=path)) from e

    @staticmethod
    def _check(response: httpx.Response, path: str) -> None:
        try:
            raise_for_status(response, provider=PROVIDER_NAME, endpoint=path)
        except APIError as e:
            raise sync_error_from_api(e) from e

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise SyncError(f"{path} returned a non-JSON body", status_code=response.status_code) from e

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def ensure_project(self, project_id: str, name: str = "Workspace") -> None:
        """Create the backend project record if it doesn't exist yet."""
        path = "/projects/ensure"
        response = await self._request("POST", path, json={"projectId": project_id, "name": name})
        self._check(response, path)

        if response.content:
            data = self._json(response, path)
            if isinstance(data, dict) and data.get("error"):
                raise SyncError(f"Failed to ensure project: {data['error']}", response.status_code)
        logger.debug(f"{SYNC} Ensured project {project_id}")

    async def fetch_remote_tree(self, project_id: str) -> Optional[MerkleTree]:
        """
        Fetch the backend's snapshot of the project.

        Returns None when the backend has no tree yet (404, or an ``error``
        field in the body).
        """
        path = self._project_path(project_id, "merkle")
        response = await self._request("GET", path)
        if response.status_code == 404:
            logger.info(f"{SYNC} No remote tree for {project_id}")
            return None
        self._check(response, path)

        data = self._json(response, path)
        if not isinstance(data, dict) or data.get("error"):
            logger.info(f"{SYNC} Remote has no usable tree for {project_id}")
            return None
        try:
            return MerkleTree.from_wire(data)
        except ValidationError as e:
            raise SyncError(f"Malformed remote tree: {e}", response.status_code) from e

    async def push_changes(
        self,
        project_id: str,
        tree: MerkleTree,
        changed_files: Sequence[FilePayload],
    ) -> PushResult:
        """
        Push every changed file plus the new tree in one request.

        All-or-nothing: any failure raises and nothing is acknowledged.

        Raises:
            SyncConflictError: The backend saw a concurrent modification.
            SyncError: Any other failure.
        """
        path = self._project_path(project_id, "chunks")
        payload = {
            "merkleTree": tree.to_wire(),
            "changedFiles": [f.to_wire() for f in changed_files],
        }
        response = await self._request("POST", path, json=payload, timeout=self._config.push_timeout)
        self._check(response, path)

        data = self._json(response, path) if response.content else {}
        try:
            result = PushResult.model_validate(data or {})
        except ValidationError as e:
            raise SyncError(f"Malformed push response: {e}", response.status_code) from e

        logger.info(
            f"{SYNC} Pushed {len(changed_files)} files: {result.inserted} inserted, "
            f"{result.updated} updated, {result.deleted} deleted"
        )
        return result

    async def trigger_index(self, project_id: str, file_paths: Optional[Sequence[str]] = None) -> str:
        """Ask the backend to (re)index the project or some of its files. Returns the job id."""
        path = self._project_path(project_id, "index")
        body: Dict[str, Any] = {}
        if file_paths is not None:
            body["filePaths"] = list(file_paths)
        response = await self._request("POST", path, json=body)
        self._check(response, path)

        data = self._json(response, path)
        job_id = data.get("jobId") if isinstance(data, dict) else None
        if not job_id:
            raise SyncError("Index request returned no job id", response.status_code)
        return str(job_id)

    async def get_status(self, project_id: str) -> RemoteIndexStatus:
        path = self._project_path(project_id, "status")
        response = await self._request("GET", path)
        self._check(response, path)
        try:
            return RemoteIndexStatus.model_validate(self._json(response, path))
        except ValidationError as e:
            raise SyncError(f"Malformed status response: {e}", response.status_code) from e


__all__ = [
    "FilePayload",
    "PushResult",
    "RemoteIndexStatus",
    "SyncClient",
    "TokenProvider",
]
