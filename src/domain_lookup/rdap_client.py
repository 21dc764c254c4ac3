"""
RDAP Client for registration-data lookups.

This module provides an async client for an RDAP aggregator. It returns the
raw RDAP JSON on success and a classified error otherwise; parsing into a
NormalizedRecord is left to rdap_parser so callers can keep the raw payload.
"""

import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .enums import ErrorKind, ObjectType


@dataclass
class RDAPError:
    """Error information from an RDAP query."""

    kind: ErrorKind
    message: str
    status_code: int = 0  # 0 when no HTTP response was received
    domain_not_supported: bool = False
    upstream_detail: Optional[str] = None


@dataclass
class RDAPResponse:
    """Complete RDAP query response."""

    success: bool
    status_code: int
    data: Optional[dict[str, Any]]
    error: Optional[RDAPError]
    url: str = ""
    response_time_ms: float = 0.0


# Fixed classification for the statuses the aggregator is known to return
STATUS_CLASSIFICATION: dict[int, tuple[ErrorKind, str]] = {
    400: (ErrorKind.UPSTREAM_BAD_REQUEST, "Malformed request. Check the input format."),
    403: (ErrorKind.UPSTREAM_ACCESS_DENIED, "Access denied by the RDAP server."),
    404: (ErrorKind.UPSTREAM_NOT_FOUND, "Object not found. Check the input."),
    429: (ErrorKind.UPSTREAM_RATE_LIMITED, "Rate limited upstream. Try again later."),
}

DOMAIN_NOT_SUPPORTED_MESSAGE = (
    "This domain suffix is not supported by RDAP; try a WHOIS lookup instead."
)


def classify_status(status_code: int) -> tuple[ErrorKind, str]:
    """Map a non-success HTTP status to an error kind and message."""
    if status_code in STATUS_CLASSIFICATION:
        return STATUS_CLASSIFICATION[status_code]
    if status_code >= 500:
        return ErrorKind.UPSTREAM_UNAVAILABLE, "Upstream service unavailable. Try again later."
    return ErrorKind.UPSTREAM_FAILURE, f"Lookup failed with HTTP status {status_code}"


def extract_error_detail(response: httpx.Response) -> Optional[str]:
    """
    Pull a human-readable message out of an error body, if it is JSON.

    RDAP error bodies carry ``title`` and ``description`` (a list of lines).
    """
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    description = body.get("description")
    if isinstance(description, list):
        description = " ".join(str(line) for line in description if line)
    for candidate in (description, body.get("title"), body.get("error"), body.get("message")):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


class RDAPClient:
    """
    Async RDAP aggregator client.

    Issues ``GET {base_url}/{object_type}/{identifier}`` and classifies
    every non-success outcome. Never retries.
    """

    def __init__(
        self,
        base_url: str = "https://rdap.org",
        timeout: float = 10.0,
        user_agent: str = "Domain-Query-Tool/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the RDAP client.

        Args:
            base_url: Aggregator root URL
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent upstream
            transport: Optional httpx transport (used to mock the upstream)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "RDAPClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def build_url(self, object_type: ObjectType, identifier: str) -> str:
        return f"{self._base_url}/{object_type.value}/{quote(identifier, safe='')}"

    async def query(self, object_type: ObjectType, identifier: str) -> RDAPResponse:
        """
        Query the aggregator for one object.

        Args:
            object_type: RDAP object class
            identifier: Canonical identifier

        Returns:
            RDAPResponse with the raw JSON or a classified error
        """
        start_time = time.perf_counter()
        url = self.build_url(object_type, identifier)
        client = self._ensure_client()

        try:
            response = await client.get(
                url,
                headers={"Accept": "application/json", "User-Agent": self._user_agent},
            )
        except httpx.TimeoutException:
            return self._network_failure(
                url, f"RDAP request timed out after {self._timeout}s", start_time
            )
        except httpx.HTTPError as e:
            return self._network_failure(url, f"RDAP request failed: {e}", start_time)

        response_time_ms = self._elapsed_ms(start_time)

        if not response.is_success:
            kind, message = classify_status(response.status_code)
            domain_not_supported = (
                response.status_code == 404 and object_type is ObjectType.DOMAIN
            )
            if domain_not_supported:
                message = DOMAIN_NOT_SUPPORTED_MESSAGE
            return RDAPResponse(
                success=False,
                status_code=response.status_code,
                data=None,
                error=RDAPError(
                    kind=kind,
                    message=message,
                    status_code=response.status_code,
                    domain_not_supported=domain_not_supported,
                    upstream_detail=extract_error_detail(response),
                ),
                url=url,
                response_time_ms=response_time_ms,
            )

        try:
            data = response.json()
        except ValueError as e:
            data = None
            parse_error = str(e)
        else:
            parse_error = "response is not a JSON object"

        if not isinstance(data, dict):
            return RDAPResponse(
                success=False,
                status_code=response.status_code,
                data=None,
                error=RDAPError(
                    kind=ErrorKind.UPSTREAM_FAILURE,
                    message=f"Unreadable RDAP response: {parse_error}",
                    status_code=response.status_code,
                ),
                url=url,
                response_time_ms=response_time_ms,
            )

        return RDAPResponse(
            success=True,
            status_code=response.status_code,
            data=data,
            error=None,
            url=url,
            response_time_ms=response_time_ms,
        )

    def _network_failure(self, url: str, message: str, start_time: float) -> RDAPResponse:
        return RDAPResponse(
            success=False,
            status_code=0,
            data=None,
            error=RDAPError(kind=ErrorKind.NETWORK_FAILURE, message=message, status_code=0),
            url=url,
            response_time_ms=self._elapsed_ms(start_time),
        )

    def _elapsed_ms(self, start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
