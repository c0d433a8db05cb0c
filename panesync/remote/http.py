"""``httpx``-backed implementation of the storage service.

Listing endpoints answer JSON objects; rename/move endpoints report domain
refusals as 4xx JSON bodies with an ``error`` key, which are returned as
``OperationResult`` values instead of raised.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..errors import RemoteError
from ..model.types import Node, NodeKind
from .types import FolderStats, OperationResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def _encode_path(path: str) -> str:
    return quote(path, safe="/")


class HttpStorageClient:
    """Async client for the storage server's JSON API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Accept": "application/json"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpStorageClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _send(self, method: str, url: str, body: dict[str, object] | None = None) -> httpx.Response:
        try:
            response = await self.client.request(method, url, json=body)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise RemoteError("Network error") from exc
        logger.debug("%s %s -> %d", method, url, response.status_code)
        if response.status_code >= 500:
            raise RemoteError(f"Server error: {response.status_code}", response.status_code, _safe_json(response))
        return response

    async def _get_json(self, url: str) -> dict[str, Any]:
        response = await self._send("GET", url)
        payload = _decode(response)
        if response.status_code >= 400:
            message = payload.get("error") if isinstance(payload.get("error"), str) else None
            raise RemoteError(message or f"API error: {response.status_code}", response.status_code, payload)
        return payload

    async def _post_operation(self, url: str, body: dict[str, object]) -> OperationResult:
        response = await self._send("POST", url, body)
        payload = _decode(response)
        if response.status_code >= 400 and not isinstance(payload.get("error"), str):
            raise RemoteError(f"API error: {response.status_code}", response.status_code, payload)
        return OperationResult.from_payload(payload)

    async def _post_command(self, url: str, body: dict[str, object]) -> None:
        response = await self._send("POST", url, body)
        if response.status_code >= 400:
            payload = _safe_json(response)
            message = payload.get("error") if isinstance(payload.get("error"), str) else None
            raise RemoteError(message or f"API error: {response.status_code}", response.status_code, payload)

    async def list_root(self) -> list[Node]:
        payload = await self._get_json("tree/")
        return _nodes(payload.get("items"), None)

    async def list_children(self, path: str) -> list[Node]:
        payload = await self._get_json(f"tree/{_encode_path(path)}")
        return _nodes(payload.get("items"), None)

    async def list_files(self, folder: str) -> list[Node]:
        payload = await self._get_json(f"files/{_encode_path(folder)}")
        return _nodes(payload.get("files"), NodeKind.FILE)

    async def get_folder_stats(self, path: str) -> FolderStats:
        payload = await self._get_json(f"folder-stats/{_encode_path(path)}")
        return FolderStats.from_payload(payload)

    async def rename_file(self, path: str, new_name: str) -> OperationResult:
        return await self._post_operation("rename", {"oldPath": path, "newName": new_name})

    async def rename_folder(self, path: str, new_name: str, merge: bool = False) -> OperationResult:
        return await self._post_operation(
            "rename-folder",
            {"oldPath": path, "newName": new_name, "merge": merge},
        )

    async def move_file(self, path: str, dest_folder: str, copy: bool = False) -> OperationResult:
        return await self._post_operation(
            "move-file",
            {"oldPath": path, "destFolder": dest_folder, "copy": copy},
        )

    async def move_folder(
        self,
        path: str,
        dest_folder: str,
        merge: bool = False,
        copy: bool = False,
    ) -> OperationResult:
        return await self._post_operation(
            "move-folder",
            {"oldPath": path, "destFolder": dest_folder, "merge": merge, "copy": copy},
        )

    async def delete_file(self, path: str) -> None:
        await self._post_command("delete-file", {"path": path})

    async def delete_folder(self, path: str, recursive: bool = True) -> None:
        await self._post_command("delete-folder", {"path": path, "recursive": recursive})


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _decode(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RemoteError("Invalid response format from server", response.status_code) from exc
    if not isinstance(payload, dict):
        raise RemoteError("Invalid response format from server", response.status_code)
    return payload


def _nodes(items: object, default_kind: NodeKind | None) -> list[Node]:
    if not isinstance(items, list):
        return []
    return [Node.from_payload(item, default_kind) for item in items if isinstance(item, dict)]


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "HttpStorageClient"]
