"""HTTP client for the deskchat message store.

This module provides the StoreClient class used by the sync engine to talk to
the message store over its JSON API. It includes:

- A lazily created ``httpx.AsyncClient`` with bearer-token authentication
- Translation of transport and HTTP failures into the sync error taxonomy
- Parsing of store payloads into immutable message and conversation records
- Request metrics for diagnostics
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from deskchat.core.settings import settings
from deskchat.sync.errors import (
    AccessDeniedError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from deskchat.sync.payloads import parse_message, parse_participant, parse_project
from deskchat.sync.records import ConversationTarget, Message, Participant, ProjectRef

# Configure logger for this module
logger = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500


@dataclass
class StoreMetrics:
    """Request counters for store operations."""

    request_count: int = 0
    success_count: int = 0
    error_count: int = 0
    total_response_time: float = 0.0
    error_counts_by_type: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    endpoint_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_request(
        self, endpoint: str, response_time: float, success: bool, error_type: str | None = None
    ) -> None:
        """Record a request metric."""
        self.request_count += 1
        self.total_response_time += response_time
        self.endpoint_counts[endpoint] += 1

        if success:
            self.success_count += 1
        else:
            self.error_count += 1
            if error_type:
                self.error_counts_by_type[error_type] += 1

    def get_average_response_time(self) -> float:
        """Get average response time."""
        return self.total_response_time / self.request_count if self.request_count > 0 else 0.0


@dataclass(frozen=True)
class StoreClientConfig:
    """Immutable configuration for store access."""

    base_url: str
    api_token: str | None
    timeout_seconds: float


def load_store_config(api_token: str | None = None) -> StoreClientConfig:
    """Build configuration object from global settings.

    Args:
        api_token: Bearer token of the acting user; defaults to ``STORE_API_TOKEN``.
    """
    return StoreClientConfig(
        base_url=settings.store_base_url.rstrip("/"),
        api_token=api_token or settings.store_api_token,
        timeout_seconds=float(settings.store_http_timeout_seconds),
    )


class StoreClient:
    """HTTP client wrapper for message store interactions.

    One client acts for one user: the bearer token in its configuration
    identifies the actor for every call.
    """

    def __init__(
        self,
        config: StoreClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_store_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._metrics = StoreMetrics()

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    headers=self._build_auth_headers(),
                    transport=self._transport,
                )
        return self._client

    def _build_auth_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.api_token:
            headers["Authorization"] = f"Bearer {self.config.api_token}"
        return headers

    @dataclass
    class RequestParams:
        """Parameters for HTTP requests."""
        method: str
        path: str
        json_data: Any | None = None
        params: Mapping[str, Any] | None = None

    async def _request(self, params: RequestParams) -> httpx.Response:
        client = await self._ensure_client()

        start_time = time.monotonic()
        endpoint = f"{params.method} {params.path}"
        success = False
        error_type: str | None = None

        try:
            response = await client.request(
                params.method,
                params.path,
                json=params.json_data,
                params=params.params,
            )
        except httpx.HTTPError as exc:
            error_type = "network_error"
            raise TransportError(f"Store request {endpoint} failed: {exc}") from exc
        else:
            error_type = self._classify(response)
            success = error_type is None
        finally:
            self._metrics.record_request(
                endpoint, time.monotonic() - start_time, success, error_type
            )

        self._raise_for_status(endpoint, response)
        return response

    @staticmethod
    def _classify(response: httpx.Response) -> str | None:
        if response.status_code < HTTP_BAD_REQUEST:
            return None
        return f"http_{response.status_code}"

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, Mapping) and "detail" in body:
            return str(body["detail"])
        return str(body)

    def _raise_for_status(self, endpoint: str, response: httpx.Response) -> None:
        code = response.status_code
        if code < HTTP_BAD_REQUEST:
            return
        detail = self._detail(response)
        if code >= HTTP_INTERNAL_SERVER_ERROR:
            raise TransportError(f"Store responded with {code} for {endpoint}: {detail}")
        if code == HTTP_NOT_FOUND:
            raise NotFoundError(detail)
        if code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            raise AccessDeniedError(detail)
        if code in (HTTP_BAD_REQUEST, HTTP_UNPROCESSABLE_ENTITY):
            raise ValidationError(detail)
        raise TransportError(f"Unexpected store response ({code}) for {endpoint}: {detail}")

    @staticmethod
    def _json(response: httpx.Response, endpoint: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"Store returned a non-JSON body for {endpoint}") from exc

    @classmethod
    def _json_list(cls, response: httpx.Response, endpoint: str) -> list[Mapping[str, Any]]:
        body = cls._json(response, endpoint)
        if not isinstance(body, list):
            raise TransportError(f"Expected a list from {endpoint}, got {type(body).__name__}")
        return body

    async def send_message(self, body: str, target: ConversationTarget) -> Message:
        """Persist a message and return the stored record with its real id.

        Raises:
            ValidationError: If ``body`` is blank; no request is made.
        """
        if not body or not body.strip():
            raise ValidationError("Message body must not be empty")

        payload: dict[str, Any] = {"message": body, **target.as_params()}
        response = await self._request(
            self.RequestParams(method="POST", path="/chat/send", json_data=payload)
        )
        return parse_message(self._json(response, "/chat/send"))

    async def fetch_messages(self, target: ConversationTarget, since_id: int = 0) -> list[Message]:
        """Return messages of ``target`` with ``id > since_id``, in store order."""
        query: dict[str, Any] = {"last_message_id": max(0, int(since_id)), **target.as_params()}
        response = await self._request(
            self.RequestParams(method="GET", path="/chat/messages", params=query)
        )
        return [parse_message(item) for item in self._json_list(response, "/chat/messages")]

    async def list_conversation_payloads(self) -> list[Mapping[str, Any]]:
        """Return raw conversation summaries for the acting user."""
        response = await self._request(
            self.RequestParams(method="GET", path="/chat/conversations")
        )
        return self._json_list(response, "/chat/conversations")

    async def mark_read(self, message_id: int) -> None:
        """Mark a direct message addressed to the acting user as read."""
        await self._request(
            self.RequestParams(method="POST", path=f"/chat/messages/{int(message_id)}/read")
        )

    async def unread_count(self) -> int:
        """Return the acting user's unread notification count."""
        response = await self._request(
            self.RequestParams(method="GET", path="/notifications/unread")
        )
        body = self._json(response, "/notifications/unread")
        return int(body.get("count", 0)) if isinstance(body, Mapping) else int(body)

    async def list_users(self) -> list[Participant]:
        """Return users the acting user can open a direct chat with."""
        response = await self._request(self.RequestParams(method="GET", path="/chat/users"))
        users = (parse_participant(item) for item in self._json_list(response, "/chat/users"))
        return [user for user in users if user is not None]

    async def list_project_chats(self) -> list[ProjectRef]:
        """Return projects whose team chat the acting user belongs to."""
        response = await self._request(
            self.RequestParams(method="GET", path="/chat/project-chats")
        )
        projects = (
            parse_project(item) for item in self._json_list(response, "/chat/project-chats")
        )
        return [project for project in projects if project is not None]

    def get_metrics(self) -> dict[str, Any]:
        """Get request metrics."""
        return {
            "request_count": self._metrics.request_count,
            "success_count": self._metrics.success_count,
            "error_count": self._metrics.error_count,
            "average_response_time": self._metrics.get_average_response_time(),
            "error_counts_by_type": dict(self._metrics.error_counts_by_type),
            "endpoint_counts": dict(self._metrics.endpoint_counts),
        }

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
