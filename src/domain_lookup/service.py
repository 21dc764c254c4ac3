"""
Lookup service: the operation surface shared by the HTTP server and CLI.

One LookupService owns the MemoryStore, the upstream clients and one quota
gate per call site. Create it once per process, call ``start()`` inside the
running event loop and ``close()`` at shutdown.
"""

from datetime import datetime, timezone
from typing import Optional, Union

import httpx

from .audit_logger import AuditLogger
from .auth import authenticate
from .config import EngineConfig
from .domain_validator import IdentifierValidator
from .enums import LookupMode, ObjectType, PriceKind
from .exceptions import QuotaExceededError, ValidationError
from .models import (
    CallerIdentity,
    PriceLookupResult,
    QuotaStatus,
    ResolutionResult,
    SuffixListResult,
)
from .orchestrator import ResolutionOrchestrator
from .price_aggregator import PriceAggregator, PriceSource, parse_price_kind
from .quota_gate import QuotaGate
from .rdap_client import RDAPClient
from .store import MemoryStore
from .tld_registry import SupportedSuffixRegistry, TLDListClient
from .whois_client import WHOISClient

COMPONENT = "service"

# Quota scopes; each call site counts independently
DETAIL_SCOPE = "domain-query"
PRICE_SCOPE = "price"
SUFFIX_LIST_SCOPE = "rdap-domains"


def _quota_error(scope: str, quota: QuotaStatus) -> QuotaExceededError:
    reset_text = datetime.fromtimestamp(quota.reset_at, timezone.utc).isoformat()
    return QuotaExceededError(
        code="quota_exceeded",
        message=(
            f"Rate limit exceeded: at most {quota.limit} requests per window; "
            f"retry after {reset_text}"
        ),
        details={"scope": scope, "count": quota.count, "reset_at": quota.reset_at},
        quota=quota,
    )


class LookupService:
    """Registration-data lookups, price lookups and the supported-suffix list."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        store: Optional[MemoryStore] = None,
        logger: Optional[AuditLogger] = None,
        price_source: Optional[PriceSource] = None,
        rdap_transport: Optional[httpx.AsyncBaseTransport] = None,
        whois_transport: Optional[httpx.AsyncBaseTransport] = None,
        tld_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            config: Engine configuration (defaults to built-in defaults)
            store: Shared state store (a fresh one is created when omitted)
            logger: Audit logger (built from config.logging when omitted)
            price_source: Price table (defaults to the static seed table)
            rdap_transport: httpx transport for the RDAP client
            whois_transport: httpx transport for the WHOIS client
            tld_transport: httpx transport for the TLD list client
        """
        self._config = config or EngineConfig()
        quota = self._config.quota
        upstream = self._config.upstream

        self._store = store or MemoryStore(sweep_interval_seconds=quota.sweep_interval_seconds)
        self._logger = logger or AuditLogger.from_config(self._config.logging)

        self._detail_gate = QuotaGate(
            self._store, DETAIL_SCOPE, quota.detail_ceiling, quota.window_seconds
        )
        self._price_gate = QuotaGate(
            self._store, PRICE_SCOPE, quota.price_ceiling, quota.window_seconds
        )
        self._suffix_gate = QuotaGate(
            self._store, SUFFIX_LIST_SCOPE, quota.suffix_list_ceiling, quota.window_seconds
        )

        self._rdap_client = RDAPClient(
            base_url=upstream.rdap_base_url,
            timeout=upstream.rdap_timeout,
            user_agent=upstream.user_agent,
            transport=rdap_transport,
        )
        self._whois_client = WHOISClient(
            gateway_url=upstream.whois_gateway_url,
            timeout=upstream.whois_timeout,
            user_agent=upstream.user_agent,
            transport=whois_transport,
        )
        self._tld_client = TLDListClient(
            url=upstream.tld_list_url,
            timeout=upstream.tld_list_timeout,
            limit=upstream.tld_list_limit,
            user_agent=upstream.user_agent,
            transport=tld_transport,
        )

        self._validator = IdentifierValidator()
        self._orchestrator = ResolutionOrchestrator(
            quota_gate=self._detail_gate,
            rdap_client=self._rdap_client,
            whois_client=self._whois_client,
            auth_config=self._config.auth,
            validator=self._validator,
            logger=self._logger,
        )
        self._suffixes = SupportedSuffixRegistry(
            client=self._tld_client,
            store=self._store,
            cache_ttl_seconds=upstream.suffix_cache_ttl_seconds,
            logger=self._logger,
        )
        self._prices = PriceAggregator(source=price_source)

    async def __aenter__(self) -> "LookupService":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def store(self) -> MemoryStore:
        return self._store

    @property
    def logger(self) -> AuditLogger:
        return self._logger

    def start(self) -> None:
        """Start background housekeeping (must be called inside an event loop)."""
        self._store.start()

    async def close(self) -> None:
        """Close upstream clients and drop in-memory state."""
        await self._rdap_client.close()
        await self._whois_client.close()
        await self._tld_client.close()
        await self._store.close()

    async def resolve(
        self,
        mode: Union[LookupMode, str, None],
        object_type: Union[ObjectType, str, None],
        identifier: Optional[str],
        caller: CallerIdentity,
    ) -> ResolutionResult:
        """Resolve one identifier; see ResolutionOrchestrator.resolve."""
        return await self._orchestrator.resolve(mode, object_type, identifier, caller)

    async def list_supported_suffixes(
        self, caller: CallerIdentity, refresh: bool = False
    ) -> SuffixListResult:
        """
        Return the supported-suffix list.

        Raises:
            QuotaExceededError: If the caller has used up its quota
        """
        auth = authenticate(caller.credential, self._config.auth)
        quota = self._suffix_gate.check(caller.source_ip, auth)
        if not quota.allowed:
            self._logger.warn(
                COMPONENT,
                "Suffix list quota exceeded",
                {"caller": caller.source_ip, "count": quota.count},
            )
            raise _quota_error(SUFFIX_LIST_SCOPE, quota)

        result = await self._suffixes.get(refresh=refresh)
        result.quota = quota
        return result

    def price_lookup(
        self,
        domain: Optional[str],
        sort_by: Union[PriceKind, str, None],
        caller: CallerIdentity,
    ) -> PriceLookupResult:
        """
        Return the cheapest offers for the domain's suffix.

        Raises:
            ValidationError: If the domain or sort key is invalid
            QuotaExceededError: If the caller has used up its quota
        """
        if not domain or not domain.strip():
            raise ValidationError(code="empty_input", message="Domain is required")
        validation = self._validator.validate(domain, ObjectType.DOMAIN)
        if not validation.valid:
            raise ValidationError(
                code="invalid_domain",
                message=f"Invalid domain format: {domain.strip()}",
                details={"domain": domain},
            )
        kind = parse_price_kind(sort_by)

        auth = authenticate(caller.credential, self._config.auth)
        quota = self._price_gate.check(caller.source_ip, auth)
        if not quota.allowed:
            self._logger.warn(
                COMPONENT,
                "Price lookup quota exceeded",
                {"caller": caller.source_ip, "count": quota.count},
            )
            raise _quota_error(PRICE_SCOPE, quota)

        # Priced by the IDNA-encoded suffix
        result = self._prices.lookup(validation.canonical, kind)
        result.quota = quota
        return result
