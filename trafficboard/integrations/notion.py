"""Notion integration for trafficboard.

Async client covering the subset of the Notion API the calendar needs:
database queries (with pagination), page retrieval, creation, partial
update and archiving.
"""

import asyncio
import logging
import os
from typing import Any, Awaitable, Dict, List, Optional, Protocol, TypeVar

import httpx
from dotenv import load_dotenv

from trafficboard.exceptions import ConfigurationError, NotionAPIError, StoreFetchError

load_dotenv()

logger = logging.getLogger(__name__)

NOTION_API_BASE = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
NOTION_PAGE_SIZE = 100

T = TypeVar("T")


class DocumentStore(Protocol):
    """The external store operations used by the catalog and the task repository."""

    async def query(
        self,
        database_id: str,
        filter: Optional[dict] = None,
        sorts: Optional[List[dict]] = None,
    ) -> List[dict]: ...

    async def retrieve(self, page_id: str) -> dict: ...

    async def retrieve_database(self, database_id: str) -> dict: ...

    async def create(self, database_id: str, properties: dict) -> dict: ...

    async def update(self, page_id: str, properties: dict) -> dict: ...

    async def archive(self, page_id: str) -> dict: ...


class NotionClient:
    """Client for the Notion REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        notion_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Notion client.

        Args:
            api_key: Notion integration token. If None, reads from NOTION_API_KEY env var.
            base_url: API base URL. If None, reads from NOTION_API_BASE (defaults to the public API).
            notion_version: Notion-Version header. If None, reads from NOTION_VERSION.
            timeout: Request timeout in seconds. If None, reads from NOTION_TIMEOUT_SECONDS (defaults to 30).
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key or os.getenv("NOTION_API_KEY")
        if not self.api_key:
            raise ConfigurationError("Notion API key is required. Set NOTION_API_KEY env var.")

        self._client = httpx.AsyncClient(
            base_url=base_url or os.getenv("NOTION_API_BASE", NOTION_API_BASE),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Notion-Version": notion_version or os.getenv("NOTION_VERSION", NOTION_VERSION),
                "Content-Type": "application/json",
            },
            timeout=timeout if timeout is not None else float(os.getenv("NOTION_TIMEOUT_SECONDS", "30")),
            transport=transport,
        )
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        if self._client.is_closed:
            raise NotionAPIError(503, "client_closed", "Notion client was closed (configuration replaced)")
        self._in_flight += 1
        self._idle.clear()
        try:
            response = await self._client.request(method, path, json=json)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise NotionAPIError(
                response.status_code,
                body.get("code", "unknown"),
                body.get("message", response.text),
            )
        try:
            return response.json()
        except ValueError as e:
            raise NotionAPIError(response.status_code, "invalid_json", f"Response body is not JSON: {e}") from e

    async def query(
        self,
        database_id: str,
        filter: Optional[dict] = None,
        sorts: Optional[List[dict]] = None,
    ) -> List[dict]:
        """Query a database, following pagination until exhausted.

        Returns:
            List of raw Notion page dictionaries
        """
        body: Dict[str, Any] = {"page_size": NOTION_PAGE_SIZE}
        if filter:
            body["filter"] = filter
        if sorts:
            body["sorts"] = sorts

        results: List[dict] = []
        while True:
            data = await self._request("POST", f"/databases/{database_id}/query", json=body)
            results.extend(data.get("results", []))
            if not data.get("has_more") or not data.get("next_cursor"):
                return results
            body["start_cursor"] = data["next_cursor"]

    async def retrieve(self, page_id: str) -> dict:
        return await self._request("GET", f"/pages/{page_id}")

    async def retrieve_database(self, database_id: str) -> dict:
        """Retrieve a database schema (used for status options)."""
        return await self._request("GET", f"/databases/{database_id}")

    async def create(self, database_id: str, properties: dict) -> dict:
        return await self._request(
            "POST",
            "/pages",
            json={"parent": {"database_id": database_id}, "properties": properties},
        )

    async def update(self, page_id: str, properties: dict) -> dict:
        return await self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

    async def archive(self, page_id: str) -> dict:
        """Soft-delete a page. Archived pages drop out of database queries."""
        return await self._request("PATCH", f"/pages/{page_id}", json={"archived": True})

    async def aclose(self) -> None:
        """Close the HTTP client once requests already in flight have finished."""
        await self._idle.wait()
        await self._client.aclose()


async def call_store(operation: str, awaitable: Awaitable[T]) -> T:
    """Await a store call, wrapping any upstream failure in StoreFetchError.

    Args:
        operation: Human-readable operation name used in the error message
        awaitable: The pending store call

    Raises:
        StoreFetchError: If the Notion API rejects the call or the transport fails
    """
    try:
        return await awaitable
    except (NotionAPIError, httpx.HTTPError) as e:
        logger.error(f"Failed to {operation}: {type(e).__name__}: {str(e)}")
        raise StoreFetchError(operation, e) from e
