"""
WHOIS Client module for registration-data lookups.

This module queries an HTTP WHOIS gateway that wraps the legacy port-43
protocol. The gateway answers with a JSON envelope whose ``status`` field is
1 on success; the raw WHOIS text inside it is handed to whois_parser.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .enums import ErrorKind
from .rdap_client import classify_status


@dataclass
class WHOISError:
    """Error information from a WHOIS query."""

    kind: ErrorKind
    message: str
    status_code: int = 0


@dataclass
class WHOISResponse:
    """Response from a WHOIS gateway query."""

    success: bool
    raw_text: Optional[str]
    payload: Optional[dict[str, Any]]
    error: Optional[WHOISError]
    response_time_ms: float = 0.0


# Keys under which gateways return the unparsed WHOIS text
RAW_TEXT_KEYS = ("raw", "raw_data", "whois_raw", "raw_text", "text")

# Structured gateway fields rendered back into WHOIS labels
INFO_FIELD_LABELS: list[tuple[tuple[str, ...], str]] = [
    (("domain", "domain_name"), "Domain Name"),
    (("registrar_name", "registrar"), "Registrar"),
    (("creation_time", "creation_date", "created"), "Creation Date"),
    (("expiration_time", "expiration_date", "expires"), "Registry Expiry Date"),
    (("updated_time", "updated_date", "changed"), "Updated Date"),
    (("name_server", "name_servers"), "Name Server"),
    (("domain_status", "status"), "Domain Status"),
    (("dnssec",), "DNSSEC"),
    (("whois_server",), "Registrar WHOIS Server"),
]


def render_info_as_text(info: dict[str, Any]) -> str:
    """Render a gateway's structured ``info`` object as WHOIS-style lines."""
    lines: list[str] = []
    for keys, label in INFO_FIELD_LABELS:
        value = next((info[k] for k in keys if info.get(k) not in (None, "", [])), None)
        if value is None:
            continue
        values = value if isinstance(value, list) else [value]
        lines.extend(f"{label}: {item}" for item in values if item not in (None, ""))
    return "\n".join(lines)


def extract_raw_text(envelope: dict[str, Any]) -> Optional[str]:
    """Find the WHOIS text in a gateway envelope, looking under ``data`` first."""
    data = envelope.get("data")
    containers = [data, envelope] if isinstance(data, dict) else [envelope]

    for container in containers:
        for key in RAW_TEXT_KEYS:
            value = container.get(key)
            if isinstance(value, str) and value.strip():
                return value

    for container in containers:
        info = container.get("info")
        if isinstance(info, dict):
            rendered = render_info_as_text(info)
            if rendered:
                return rendered
    return None


class WHOISClient:
    """
    Async client for the WHOIS gateway.

    Issues ``GET {gateway_url}?domain=<identifier>&raw=1``. Never retries.
    """

    SUCCESS_STATUS = 1

    def __init__(
        self,
        gateway_url: str = "https://api.whoiscx.com/whois/",
        timeout: float = 15.0,
        user_agent: str = "Domain-Query-Tool/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the WHOIS client.

        Args:
            gateway_url: Gateway endpoint
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent upstream
            transport: Optional httpx transport (used to mock the upstream)
        """
        self._gateway_url = gateway_url
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "WHOISClient":
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

    async def query(self, identifier: str) -> WHOISResponse:
        """
        Query the gateway for one identifier.

        Returns:
            WHOISResponse with the raw WHOIS text or an error
        """
        start_time = time.perf_counter()
        client = self._ensure_client()

        try:
            response = await client.get(
                self._gateway_url,
                params={"domain": identifier, "raw": "1"},
                headers={"Accept": "application/json", "User-Agent": self._user_agent},
            )
        except httpx.TimeoutException:
            return self._failure(
                ErrorKind.NETWORK_FAILURE,
                f"WHOIS query timed out after {self._timeout}s",
                0,
                start_time,
            )
        except httpx.HTTPError as e:
            return self._failure(
                ErrorKind.NETWORK_FAILURE, f"WHOIS query failed: {e}", 0, start_time
            )

        if not response.is_success:
            kind, _ = classify_status(response.status_code)
            detail = self._gateway_message(response) or response.reason_phrase
            return self._failure(
                kind,
                f"WHOIS query failed: {response.status_code} {detail}".strip(),
                response.status_code,
                start_time,
            )

        try:
            envelope = response.json()
        except ValueError:
            envelope = None

        # Plain-text gateways return the WHOIS record itself
        if not isinstance(envelope, dict):
            text = response.text
            if not text.strip():
                return self._failure(
                    ErrorKind.UPSTREAM_FAILURE,
                    "WHOIS gateway returned an empty response",
                    response.status_code,
                    start_time,
                )
            return WHOISResponse(
                success=True,
                raw_text=text,
                payload=None,
                error=None,
                response_time_ms=self._elapsed_ms(start_time),
            )

        if envelope.get("status") != self.SUCCESS_STATUS:
            message = envelope.get("error") or envelope.get("message") or "WHOIS query failed"
            return self._failure(
                ErrorKind.UPSTREAM_FAILURE, str(message), response.status_code, start_time
            )

        raw_text = extract_raw_text(envelope)
        if raw_text is None:
            return self._failure(
                ErrorKind.UPSTREAM_FAILURE,
                "WHOIS gateway response contained no WHOIS data",
                response.status_code,
                start_time,
            )

        return WHOISResponse(
            success=True,
            raw_text=raw_text,
            payload=envelope,
            error=None,
            response_time_ms=self._elapsed_ms(start_time),
        )

    @staticmethod
    def _gateway_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return response.text.strip()[:200] or None
        if isinstance(body, dict):
            message = body.get("error") or body.get("message")
            if message:
                return str(message)
        return json.dumps(body)[:200]

    def _failure(
        self, kind: ErrorKind, message: str, status_code: int, start_time: float
    ) -> WHOISResponse:
        return WHOISResponse(
            success=False,
            raw_text=None,
            payload=None,
            error=WHOISError(kind=kind, message=message, status_code=status_code),
            response_time_ms=self._elapsed_ms(start_time),
        )

    def _elapsed_ms(self, start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
