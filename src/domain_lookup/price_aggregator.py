"""
Price Aggregator for domain registration offers.

Looks up registrar offers for a domain's suffix and returns the cheapest
few for one price kind. The suffix is the last label only, so
``example.co.uk`` is priced as ``uk``.
"""

from decimal import Decimal
from typing import Optional, Protocol, Union

from .enums import PriceKind
from .exceptions import ValidationError
from .models import PriceLookupResult, PriceQuote

DEFAULT_LIMIT = 3
DEFAULT_PERIOD = "1 year"


class PriceSource(Protocol):
    """Anything that can list offers for a suffix."""

    def quotes_for(self, suffix: str) -> Optional[list[PriceQuote]]:
        """Offers in table order, or None when the suffix is not listed."""
        ...


def _offers(
    registrar: str,
    registration: str,
    renewal: str,
    transfer: str,
    currency: str = "USD",
    period: str = DEFAULT_PERIOD,
) -> list[PriceQuote]:
    """Expand one registrar's row into a quote per price kind."""
    return [
        PriceQuote(registrar, Decimal(registration), currency, period, PriceKind.REGISTRATION),
        PriceQuote(registrar, Decimal(renewal), currency, period, PriceKind.RENEWAL),
        PriceQuote(registrar, Decimal(transfer), currency, period, PriceKind.TRANSFER),
    ]


SEED_PRICES: dict[str, list[PriceQuote]] = {
    "com": [
        *_offers("NameSilo", "8.99", "10.99", "8.99"),
        *_offers("GoDaddy", "12.99", "17.99", "12.99"),
        *_offers("NameCheap", "9.98", "13.98", "9.98"),
    ],
    "net": [
        *_offers("GoDaddy", "12.99", "17.99", "12.99"),
        *_offers("NameCheap", "11.98", "14.98", "11.98"),
    ],
    "org": [
        *_offers("NameCheap", "9.99", "12.99", "9.99"),
        *_offers("Porkbun", "8.97", "11.97", "8.97"),
    ],
    "cn": [
        *_offers("阿里云", "28", "35", "28", currency="CNY"),
        *_offers("腾讯云", "25", "32", "25", currency="CNY"),
    ],
    "io": [
        *_offers("Porkbun", "64.99", "69.99", "64.99"),
        *_offers("NameSilo", "68.99", "73.99", "68.99"),
    ],
    "ai": [
        *_offers("NameSilo", "89.99", "94.99", "89.99"),
        *_offers("Porkbun", "85.97", "90.97", "85.97"),
    ],
    "co": [
        *_offers("GoDaddy", "29.99", "34.99", "29.99"),
        *_offers("NameCheap", "26.98", "31.98", "26.98"),
    ],
    "xyz": [
        *_offers("NameCheap", "2.99", "14.98", "2.99"),
        *_offers("Porkbun", "3.97", "13.97", "3.97"),
        *_offers("GoDaddy", "12.99", "19.99", "12.99"),
        *_offers("Dynadot", "3.49", "13.49", "3.49"),
    ],
    "dev": [
        *_offers("Google Domains", "12.99", "12.99", "12.99"),
        *_offers("NameCheap", "11.98", "14.98", "11.98"),
    ],
    "app": [
        *_offers("Google Domains", "19.99", "19.99", "19.99"),
        *_offers("Porkbun", "17.97", "17.97", "17.97"),
    ],
}

# Offered for any suffix missing from the table
DEFAULT_QUOTES: list[PriceQuote] = _offers("Unknown", "15.99", "18.99", "15.99")


class StaticPriceTable:
    """In-memory price table, seeded with SEED_PRICES by default."""

    def __init__(self, prices: Optional[dict[str, list[PriceQuote]]] = None) -> None:
        source = SEED_PRICES if prices is None else prices
        self._prices = {suffix.lower(): list(quotes) for suffix, quotes in source.items()}

    def suffixes(self) -> list[str]:
        return sorted(self._prices)

    def quotes_for(self, suffix: str) -> Optional[list[PriceQuote]]:
        quotes = self._prices.get(suffix.lower())
        return list(quotes) if quotes is not None else None


def extract_suffix(domain: str) -> str:
    """Text after the last dot, or the whole string when there is none."""
    return domain.strip().rstrip(".").rsplit(".", 1)[-1].lower()


def parse_price_kind(value: Union[PriceKind, str, None]) -> PriceKind:
    """
    Convert a sort key to a PriceKind.

    Raises:
        ValidationError: If the key is not registration, renewal or transfer
    """
    if isinstance(value, PriceKind):
        return value
    try:
        return PriceKind((value or "").strip().lower())
    except ValueError:
        raise ValidationError(
            code="invalid_sort_key",
            message=f"Invalid price type: {value}",
            details={"sort_by": value, "allowed": [kind.value for kind in PriceKind]},
        )


class PriceAggregator:
    """Picks the cheapest offers for a domain's suffix."""

    def __init__(
        self,
        source: Optional[PriceSource] = None,
        default_quotes: Optional[list[PriceQuote]] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._source = source or StaticPriceTable()
        self._default_quotes = list(DEFAULT_QUOTES if default_quotes is None else default_quotes)
        self._limit = limit

    def lookup(
        self, domain: Optional[str], sort_by: Union[PriceKind, str, None] = PriceKind.REGISTRATION
    ) -> PriceLookupResult:
        """
        Return the cheapest offers of one kind for the domain's suffix.

        Ties keep table order.

        Raises:
            ValidationError: If the domain is empty or the sort key is unknown
        """
        if not domain or not domain.strip() or not extract_suffix(domain):
            raise ValidationError(code="empty_input", message="Domain is required")

        kind = parse_price_kind(sort_by)
        suffix = extract_suffix(domain)

        candidates = self._source.quotes_for(suffix)
        if candidates is None:
            candidates = self._default_quotes

        matching = [quote for quote in candidates if quote.kind is kind]
        matching.sort(key=lambda quote: quote.price)

        return PriceLookupResult(suffix=suffix, quotes=matching[: self._limit], sorted_by=kind)
