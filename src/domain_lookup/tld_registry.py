"""
TLD Registry - list of top-level domains the lookup engine can query.

The list is taken from IANA's ``tlds-alpha-by-domain.txt`` and cached in the
MemoryStore. When IANA cannot be reached, a short static list of common
suffixes is served instead (and not cached, so the next call retries).
"""

from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .models import SuffixEntry, SuffixListResult
from .store import MemoryStore

COMPONENT = "tld_registry"

# RDAP aggregator bootstrap path for one TLD
RDAP_SERVER_TEMPLATE = "https://rdap.org/{tld}/"

SOURCE_IANA = "iana"
SOURCE_FALLBACK = "fallback"


def make_entry(tld: str) -> SuffixEntry:
    return SuffixEntry(
        suffix=tld,
        status="active",
        rdap_servers=[RDAP_SERVER_TEMPLATE.format(tld=tld)],
    )


# ============================================================================
# FALLBACK SUFFIXES
# ============================================================================
FALLBACK_TLDS = [
    # Generic
    "com", "net", "org", "edu", "gov",
    # Tech
    "io", "ai", "co", "xyz", "dev", "app",
    # Country code
    "cn", "uk", "de", "fr", "jp", "au", "ca", "br", "ru",
]

FALLBACK_SUFFIXES: list[SuffixEntry] = [make_entry(tld) for tld in FALLBACK_TLDS]


def parse_tld_list(text: str, limit: Optional[int] = None) -> list[SuffixEntry]:
    """
    Parse IANA's TLD list.

    The file has one upper-case TLD per line; lines starting with '#' are
    comments (the first line carries the version and date).
    """
    entries: list[SuffixEntry] = []
    seen: set[str] = set()
    for line in text.splitlines():
        tld = line.strip().lower()
        if not tld or tld.startswith("#") or tld in seen:
            continue
        seen.add(tld)
        entries.append(make_entry(tld))
        if limit is not None and len(entries) >= limit:
            break
    return entries


class TLDListClient:
    """Fetches the TLD list over HTTPS."""

    def __init__(
        self,
        url: str = "https://data.iana.org/TLD/tlds-alpha-by-domain.txt",
        timeout: float = 10.0,
        limit: int = 100,
        user_agent: str = "Domain-Query-Tool/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._limit = limit
        self._user_agent = user_agent
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def url(self) -> str:
        return self._url

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def fetch(self) -> list[SuffixEntry]:
        """
        Download and parse the list.

        Raises:
            httpx.HTTPError: On network failure or a non-success status
            ValueError: If the list contains no TLDs
        """
        client = self._ensure_client()
        response = await client.get(self._url, headers={"User-Agent": self._user_agent})
        response.raise_for_status()

        entries = parse_tld_list(response.text, self._limit)
        if not entries:
            raise ValueError("TLD list is empty")
        return entries

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


class SupportedSuffixRegistry:
    """
    Serves the supported-suffix list with a freshness window.

    A fetched list is reused for ``cache_ttl_seconds``; ``refresh=True``
    skips the cache. A failed fetch yields FALLBACK_SUFFIXES.
    """

    def __init__(
        self,
        client: TLDListClient,
        store: MemoryStore,
        cache_ttl_seconds: float = 3600.0,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._client = client
        self._store = store
        self._cache_ttl = cache_ttl_seconds
        self._logger = logger

    async def get(self, refresh: bool = False) -> SuffixListResult:
        if not refresh:
            cached = self._store.get_suffix_list(self._cache_ttl)
            if cached is not None:
                return SuffixListResult(
                    entries=list(cached.entries),
                    fetched_at=cached.fetched_at,
                    source=cached.source,
                    from_cache=True,
                )

        try:
            entries = await self._client.fetch()
        except (httpx.HTTPError, ValueError) as e:
            if self._logger:
                self._logger.warn(
                    COMPONENT,
                    "TLD list fetch failed, serving fallback list",
                    {"url": self._client.url, "error": str(e)},
                )
            return SuffixListResult(
                entries=list(FALLBACK_SUFFIXES),
                fetched_at=self._store.now(),
                source=SOURCE_FALLBACK,
                is_fallback=True,
            )

        cached = self._store.put_suffix_list(entries, SOURCE_IANA)
        if self._logger:
            self._logger.info(COMPONENT, "TLD list refreshed", {"count": len(entries)})
        return SuffixListResult(
            entries=list(cached.entries),
            fetched_at=cached.fetched_at,
            source=cached.source,
        )
