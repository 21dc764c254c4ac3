"""
Data models for the domain lookup engine.

This module defines the request, caller, quota, record and price structures
shared by the clients, parsers, orchestrator and bindings.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from .enums import (
    AuthMode,
    DnssecState,
    ErrorKind,
    LookupMode,
    ObjectType,
    PriceKind,
    ResolutionState,
    TransitionCause,
)

# Sentinel for string fields that could not be resolved
UNKNOWN = "Unknown"


@dataclass
class LookupRequest:
    """A validated lookup request."""

    mode: LookupMode
    identifier: str  # Trimmed, lower-cased, IDNA-encoded where needed
    object_type: Optional[ObjectType] = None  # RDAP only


@dataclass
class CallerIdentity:
    """Who is asking, derived once per inbound request."""

    source_ip: str
    credential: Optional[str] = None


@dataclass
class AuthDecision:
    """Outcome of comparing a caller's credential to the configured secret."""

    authenticated: bool
    mode: AuthMode = AuthMode.NONE

    def to_dict(self) -> dict:
        return {
            "authenticated": self.authenticated,
            "mode": self.mode.value if self.authenticated else None,
        }


@dataclass
class QuotaWindow:
    """Request counter for one caller key within one window."""

    caller_key: str
    count: int
    reset_at: float  # Unix timestamp (seconds)


@dataclass
class QuotaStatus:
    """Result of a quota check."""

    allowed: bool
    count: int
    reset_at: float
    limit: Optional[int] = None  # None means unbounded (authenticated caller)

    @property
    def remaining(self) -> Optional[int]:
        """Requests left in the current window, None when unbounded."""
        if self.limit is None:
            return None
        return max(0, self.limit - self.count)

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "count": self.count,
            "reset_at": self.reset_at,
            "limit": self.limit,
            "remaining": self.remaining,
        }


@dataclass
class NormalizedRecord:
    """
    Canonical registration-metadata record.

    Both parsers populate every field; unresolved strings hold UNKNOWN and
    unresolved day counts hold 0.
    """

    identifier: str = UNKNOWN
    statuses: list[str] = field(default_factory=list)
    registrar_name: str = UNKNOWN
    registration_date: str = UNKNOWN
    expiration_date: str = UNKNOWN
    last_updated_date: str = UNKNOWN
    name_servers: list[str] = field(default_factory=lambda: [UNKNOWN])
    dnssec: DnssecState = DnssecState.UNSIGNED
    age_in_days: int = 0
    remaining_days: int = 0
    handle: str = UNKNOWN
    registrar_id: str = UNKNOWN
    whois_server: str = UNKNOWN

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "statuses": list(self.statuses),
            "registrar_name": self.registrar_name,
            "registration_date": self.registration_date,
            "expiration_date": self.expiration_date,
            "last_updated_date": self.last_updated_date,
            "name_servers": list(self.name_servers),
            "dnssec": self.dnssec.value,
            "age_in_days": self.age_in_days,
            "remaining_days": self.remaining_days,
            "handle": self.handle,
            "registrar_id": self.registrar_id,
            "whois_server": self.whois_server,
        }


@dataclass
class ResolutionError:
    """Classified failure of a resolution."""

    kind: ErrorKind
    message: str
    status_code: int = 0  # Upstream HTTP status, 0 when none
    source: Optional[LookupMode] = None
    domain_not_supported: bool = False
    reset_at: Optional[float] = None  # Set for QUOTA_EXCEEDED
    detail: Optional[str] = None  # Upstream error body text, when readable

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "source": self.source.value if self.source else None,
            "domain_not_supported": self.domain_not_supported,
            "reset_at": self.reset_at,
            "detail": self.detail,
        }


@dataclass
class Transition:
    """One edge taken by the resolution state machine."""

    source: ResolutionState
    target: ResolutionState
    cause: TransitionCause


@dataclass
class ResolutionResult:
    """Outcome of one resolution, successful or not."""

    success: bool
    quota: QuotaStatus
    auth: AuthDecision
    request: Optional[LookupRequest] = None
    record: Optional[NormalizedRecord] = None
    source: Optional[LookupMode] = None
    raw: Any = None  # RDAP JSON or WHOIS text the record was parsed from
    note: Optional[str] = None
    error: Optional[ResolutionError] = None
    transitions: list[Transition] = field(default_factory=list)

    @property
    def fell_back(self) -> bool:
        """True when WHOIS was substituted for a failed RDAP lookup."""
        return any(t.target is ResolutionState.WHOIS_FALLBACK for t in self.transitions)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "source": self.source.value if self.source else None,
            "record": self.record.to_dict() if self.record else None,
            "raw": self.raw,
            "note": self.note,
            "error": self.error.to_dict() if self.error else None,
            "quota": self.quota.to_dict(),
            "auth": self.auth.to_dict(),
        }


@dataclass
class PriceQuote:
    """A single registrar offer for a suffix."""

    registrar: str
    price: Decimal
    currency: str
    period: str
    kind: PriceKind

    def to_dict(self) -> dict:
        return {
            "registrar": self.registrar,
            "price": float(self.price),
            "currency": self.currency,
            "period": self.period,
            "type": self.kind.value,
        }


@dataclass
class PriceLookupResult:
    """Cheapest offers for a domain's suffix."""

    suffix: str
    quotes: list[PriceQuote]
    sorted_by: PriceKind
    quota: Optional[QuotaStatus] = None

    def to_dict(self) -> dict:
        return {
            "suffix": self.suffix,
            "prices": [quote.to_dict() for quote in self.quotes],
            "sortedBy": self.sorted_by.value,
        }


@dataclass
class SuffixEntry:
    """A top-level domain known to the registry list."""

    suffix: str
    status: str = "active"
    rdap_servers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tld": self.suffix,
            "rdap_servers": list(self.rdap_servers),
            "status": self.status,
        }


@dataclass
class SuffixListResult:
    """Supported suffix list plus where it came from."""

    entries: list[SuffixEntry]
    fetched_at: float
    source: str
    from_cache: bool = False
    is_fallback: bool = False
    quota: Optional[QuotaStatus] = None
