# chunksync/core/http.py
"""
HTTP client factory and error classification for remote services.

Both the embedding provider and the indexing backend go through this
module, so timeouts, headers and status-code mapping live in one place.

Usage:
    from chunksync.core.http import create_async_api_client, raise_for_status

    async with create_async_api_client(base_url, api_key=key) as client:
        response = await client.post("/embeddings", json=payload)
        raise_for_status(response, provider="openai", endpoint="/embeddings")
        data = response.json()

Retry policy is NOT applied here. Callers decide what to retry by looking
at ``APIError.retryable``: only rate-limit and server errors qualify.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from chunksync.logging.logger import get_logger
from chunksync.logging.tags import HTTP

logger = get_logger(__name__)


# =============================================================================
# Errors
# =============================================================================


@dataclass
class APIError(Exception):
    """
    Structured API error with details.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (if available)
        provider: Service name (e.g., "openai", "indexing")
        endpoint: Endpoint that failed
        details: Additional error details from the response body
        retry_after: Server-supplied retry hint in seconds
        original_error: The original exception that caused this error
    """

    message: str
    status_code: Optional[int] = None
    provider: Optional[str] = None
    endpoint: Optional[str] = None
    details: Optional[str] = None
    retry_after: Optional[float] = None
    original_error: Optional[Exception] = None

    def __str__(self) -> str:
        parts = [self.message]

        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")

        if self.details:
            parts.append(f"- {self.details}")

        return " ".join(parts)

    @property
    def retryable(self) -> bool:
        return False


class AuthenticationError(APIError):
    """Raised on 401/403 responses."""

    pass


class NotFoundError(APIError):
    """Raised on 404 responses."""

    pass


class ConflictError(APIError):
    """Raised on 409 responses (concurrent modification on the server)."""

    pass


class RateLimitError(APIError):
    """Raised when the API rate limit is exceeded."""

    @property
    def retryable(self) -> bool:
        return True


class ServerError(APIError):
    """Raised on 5xx responses."""

    @property
    def retryable(self) -> bool:
        return True


class ConnectivityError(APIError):
    """Raised when the service cannot be reached or the request timed out."""

    pass


# =============================================================================
# Default Configuration
# =============================================================================

DEFAULT_TIMEOUTS = {
    "default": 30.0,
    "embedding": 60.0,
    "sync": 120.0,
}

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


# =============================================================================
# Client Factory
# =============================================================================


def create_async_api_client(
    base_url: str,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
    timeout_type: str = "default",
    headers: Optional[Dict[str, str]] = None,
    auth_header: str = "Authorization",
    auth_scheme: str = "Bearer",
    **kwargs: Any,
) -> httpx.AsyncClient:
    """
    Create a configured async HTTP client.

    Args:
        base_url: Base URL for the API
        api_key: Token sent as ``<auth_scheme> <api_key>`` when given
        timeout: Request timeout in seconds (or use timeout_type)
        timeout_type: Preset timeout ("default", "embedding", "sync")
        headers: Additional headers to include
        **kwargs: Passed through to httpx.AsyncClient (e.g. ``transport``)
    """
    if timeout is None:
        timeout = DEFAULT_TIMEOUTS.get(timeout_type, DEFAULT_TIMEOUTS["default"])

    final_headers = dict(DEFAULT_HEADERS)

    if api_key:
        final_headers[auth_header] = f"{auth_scheme} {api_key}"

    if headers:
        final_headers.update(headers)

    client = httpx.AsyncClient(
        base_url=base_url,
        headers=final_headers,
        timeout=timeout,
        **kwargs,
    )

    logger.debug(f"{HTTP} Created async HTTP client for {base_url} (timeout={timeout}s)")

    return client


# =============================================================================
# Error Handling
# =============================================================================


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds. HTTP-date values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _error_details(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] if response.text else None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message")
        return data.get("message") or (str(error) if error else None)
    return None


def handle_api_error(
    exc: Exception,
    provider: str = "unknown",
    endpoint: str = "",
) -> APIError:
    """
    Convert an httpx exception to a structured APIError.

    Example:
        try:
            response = await client.post("/chunks", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise handle_api_error(exc, provider="indexing", endpoint="/chunks")
    """
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        status_code = response.status_code
        common: Dict[str, Any] = dict(
            status_code=status_code,
            provider=provider,
            endpoint=endpoint,
            details=_error_details(response),
            original_error=exc,
        )

        if status_code in (401, 403):
            return AuthenticationError(message=f"{provider} authentication failed", **common)
        if status_code == 404:
            return NotFoundError(message=f"{provider} resource not found", **common)
        if status_code == 409:
            return ConflictError(message=f"{provider} reported a conflict", **common)
        if status_code == 429:
            return RateLimitError(
                message=f"{provider} rate limit exceeded",
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                **common,
            )
        if status_code >= 500:
            return ServerError(
                message=f"{provider} server error",
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                **common,
            )
        return APIError(message=f"{provider} API request failed", **common)

    if isinstance(exc, httpx.TimeoutException):
        return ConnectivityError(
            message=f"{provider} request timed out",
            provider=provider,
            endpoint=endpoint,
            details="Consider increasing the timeout for this operation",
            original_error=exc,
        )

    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
        return ConnectivityError(
            message=f"Failed to connect to {provider}",
            provider=provider,
            endpoint=endpoint,
            details=str(exc),
            original_error=exc,
        )

    return APIError(
        message=f"{provider} request failed: {exc}",
        provider=provider,
        endpoint=endpoint,
        original_error=exc,
    )


def raise_for_status(
    response: httpx.Response,
    provider: str = "unknown",
    endpoint: str = "",
) -> None:
    """
    Check response status and raise the matching APIError if it failed.

    Example:
        response = await client.get(f"/projects/{project_id}/merkle")
        raise_for_status(response, provider="indexing", endpoint="/merkle")
    """
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise handle_api_error(exc, provider=provider, endpoint=endpoint) from exc


__all__ = [
    "APIError",
    "AuthenticationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "ServerError",
    "ConnectivityError",
    "DEFAULT_TIMEOUTS",
    "DEFAULT_HEADERS",
    "create_async_api_client",
    "parse_retry_after",
    "handle_api_error",
    "raise_for_status",
]
