"""
WHOIS Text Parser.

WHOIS output has no fixed schema; every registry picks its own labels. The
parser works line by line: a line is ``label: value``, labels are matched
case-insensitively against known spellings, and the first match wins for
single-valued fields. Nothing here raises; unmatched fields keep their
sentinels.
"""

import re
from datetime import datetime
from typing import Optional

from .dates import date_portion, days_since, days_until
from .enums import DnssecState
from .models import UNKNOWN, NormalizedRecord

REGISTRAR_LABELS = ("registrar", "sponsoring registrar", "registrar name")
CREATION_LABELS = (
    "creation date", "registered on", "registration date", "registration time", "created",
)
EXPIRATION_LABELS = (
    "registry expiry date", "expiry date", "expiration date", "expiration time", "expires",
)
UPDATED_LABELS = ("updated date", "last updated", "modified", "changed")
NAME_SERVER_LABELS = ("name server", "nserver")
DNSSEC_LABELS = ("dnssec",)
STATUS_LABELS = ("status",)
DOMAIN_NAME_LABELS = ("domain name", "domain")
HANDLE_LABELS = ("registry domain id", "roid")
REGISTRAR_ID_LABELS = ("registrar iana id",)
WHOIS_SERVER_LABELS = ("registrar whois server", "whois server")

SIGNED_TOKENS = frozenset({"signed", "signeddelegation"})

# Lines that are commentary rather than data
COMMENT_PREFIXES = ("%", "#", ">>>")

_TRAILING_URL = re.compile(r"\s+\(?https?://\S+\)?$", re.IGNORECASE)
_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")

# The label ends at the first colon that is not part of a URL scheme
_LABEL_SEPARATOR = re.compile(r":(?!//)")


def split_lines(raw_text: Optional[str]) -> list[tuple[str, str]]:
    """
    Split WHOIS text into (lower-cased label, value) pairs.

    Only lines with a label separator are kept; the value is everything
    after the first colon, so URLs inside values survive intact.
    """
    if not isinstance(raw_text, str):
        return []

    pairs: list[tuple[str, str]] = []
    for line in raw_text.splitlines():
        line = line.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue
        separator = _LABEL_SEPARATOR.search(line)
        if separator is None:
            continue
        label = line[: separator.start()]
        value = line[separator.end() :]
        pairs.append((label.strip().lower(), value.strip()))
    return pairs


def first_value(pairs: list[tuple[str, str]], labels: tuple[str, ...]) -> Optional[str]:
    """First non-empty value whose label contains one of ``labels``."""
    for label, value in pairs:
        if value and any(candidate in label for candidate in labels):
            return value
    return None


def exact_value(pairs: list[tuple[str, str]], labels: tuple[str, ...]) -> Optional[str]:
    """First non-empty value whose label is exactly one of ``labels``."""
    for label, value in pairs:
        if value and label in labels:
            return value
    return None


def all_values(pairs: list[tuple[str, str]], labels: tuple[str, ...]) -> list[str]:
    values: list[str] = []
    for label, value in pairs:
        if value and any(candidate in label for candidate in labels):
            values.append(value)
    return values


def parse_registrar(pairs: list[tuple[str, str]]) -> str:
    # "Registrar WHOIS Server" and friends also contain the word
    return (
        exact_value(pairs, REGISTRAR_LABELS)
        or first_value(pairs, ("registrar",))
        or UNKNOWN
    )


def parse_name_servers(pairs: list[tuple[str, str]]) -> list[str]:
    servers: list[str] = []
    for value in all_values(pairs, NAME_SERVER_LABELS):
        # Some registries append glue addresses after the host
        host = value.split()[0].lower().rstrip(".")
        if host and host not in servers:
            servers.append(host)
    return servers or [UNKNOWN]


def parse_dnssec(pairs: list[tuple[str, str]]) -> DnssecState:
    for label, value in pairs:
        if any(candidate in label for candidate in DNSSEC_LABELS):
            tokens = set(_TOKEN_SPLIT.split(value.lower()))
            return DnssecState.SIGNED if tokens & SIGNED_TOKENS else DnssecState.UNSIGNED
    return DnssecState.UNSIGNED


def parse_statuses(pairs: list[tuple[str, str]]) -> list[str]:
    statuses: list[str] = []
    for value in all_values(pairs, STATUS_LABELS):
        status = _TRAILING_URL.sub("", value).strip()
        if status and status not in statuses:
            statuses.append(status)
    return statuses or ["active"]


def parse_whois(
    raw_text: Optional[str],
    identifier: Optional[str] = None,
    now: Optional[datetime] = None,
) -> NormalizedRecord:
    """
    Parse raw WHOIS text.

    Args:
        raw_text: WHOIS response text
        identifier: Identifier the lookup was made for
        now: Reference time for the day counts (defaults to current UTC)

    Returns:
        NormalizedRecord with every field populated
    """
    pairs = split_lines(raw_text)

    registration_date = date_portion(first_value(pairs, CREATION_LABELS))
    expiration_date = date_portion(first_value(pairs, EXPIRATION_LABELS))

    domain_name = exact_value(pairs, DOMAIN_NAME_LABELS)

    return NormalizedRecord(
        identifier=(domain_name.lower() if domain_name else None) or identifier or UNKNOWN,
        statuses=parse_statuses(pairs),
        registrar_name=parse_registrar(pairs),
        registration_date=registration_date,
        expiration_date=expiration_date,
        last_updated_date=date_portion(first_value(pairs, UPDATED_LABELS)),
        name_servers=parse_name_servers(pairs),
        dnssec=parse_dnssec(pairs),
        age_in_days=days_since(registration_date, now),
        remaining_days=days_until(expiration_date, now),
        handle=first_value(pairs, HANDLE_LABELS) or UNKNOWN,
        registrar_id=first_value(pairs, REGISTRAR_ID_LABELS) or UNKNOWN,
        whois_server=first_value(pairs, WHOIS_SERVER_LABELS) or UNKNOWN,
    )
