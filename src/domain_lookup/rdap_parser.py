"""
RDAP Record Parser.

Turns an RDAP JSON object into a NormalizedRecord. The payload is trusted
for nothing: any missing or mistyped member degrades to the UNKNOWN / 0
sentinels instead of raising.
"""

from datetime import datetime
from typing import Any, Iterator, Optional

from .dates import date_portion, days_since, days_until
from .enums import DnssecState
from .models import UNKNOWN, NormalizedRecord

REGISTRATION_ACTIONS = ("registration",)
EXPIRATION_ACTIONS = ("expiration",)
LAST_CHANGED_ACTIONS = ("last changed", "last update")


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def iter_entities(payload: dict) -> Iterator[dict]:
    """Yield top-level entities and the entities nested one level inside them."""
    for entity in _as_list(payload.get("entities")):
        if not isinstance(entity, dict):
            continue
        yield entity
        for nested in _as_list(entity.get("entities")):
            if isinstance(nested, dict):
                yield nested


def find_registrar(payload: dict) -> Optional[dict]:
    for entity in iter_entities(payload):
        roles = [str(role).lower() for role in _as_list(entity.get("roles"))]
        if "registrar" in roles:
            return entity
    return None


def vcard_property(entity: dict, name: str) -> Optional[str]:
    """
    Read a text property from an entity's jCard.

    jCard layout: ["vcard", [[name, params, type, value], ...]]. Structured
    values (such as a multi-part ``org``) are joined with spaces.
    """
    vcard = _as_list(entity.get("vcardArray"))
    if len(vcard) < 2:
        return None
    for prop in _as_list(vcard[1]):
        if not isinstance(prop, list) or len(prop) < 4:
            continue
        if str(prop[0]).lower() != name:
            continue
        value = prop[3]
        if isinstance(value, list):
            value = " ".join(str(part) for part in value if part)
        text = _text(value)
        if text:
            return text
    return None


def registrar_identifier(entity: dict) -> Optional[str]:
    for public_id in _as_list(entity.get("publicIds")):
        public_id = _as_dict(public_id)
        if "registrar" in str(public_id.get("type", "")).lower():
            identifier = _text(public_id.get("identifier"))
            if identifier:
                return identifier
    return _text(entity.get("handle"))


def event_date(payload: dict, actions: tuple[str, ...]) -> str:
    for event in _as_list(payload.get("events")):
        event = _as_dict(event)
        action = str(event.get("eventAction", "")).strip().lower()
        if action in actions:
            return date_portion(_text(event.get("eventDate")))
    return UNKNOWN


def name_servers(payload: dict) -> list[str]:
    servers: list[str] = []
    for nameserver in _as_list(payload.get("nameservers")):
        nameserver = _as_dict(nameserver)
        host = _text(nameserver.get("ldhName")) or _text(nameserver.get("unicodeName")) or ""
        host = host.lower().rstrip(".")
        if host and host not in servers:
            servers.append(host)
    return servers or [UNKNOWN]


def parse_rdap(
    payload: Any,
    identifier: Optional[str] = None,
    now: Optional[datetime] = None,
) -> NormalizedRecord:
    """
    Parse an RDAP response object.

    Args:
        payload: Decoded RDAP JSON
        identifier: Identifier the lookup was made for, used when the
            payload does not name the object itself
        now: Reference time for the day counts (defaults to current UTC)

    Returns:
        NormalizedRecord with every field populated
    """
    payload = _as_dict(payload)

    statuses: list[str] = []
    for status in _as_list(payload.get("status")):
        if isinstance(status, str) and status.strip():
            statuses.append(status.strip())

    registrar = find_registrar(payload)
    registrar_name = UNKNOWN
    registrar_id = UNKNOWN
    if registrar is not None:
        registrar_name = (
            vcard_property(registrar, "org") or vcard_property(registrar, "fn") or UNKNOWN
        )
        registrar_id = registrar_identifier(registrar) or UNKNOWN

    secure_dns = _as_dict(payload.get("secureDNS"))
    dnssec = (
        DnssecState.SIGNED
        if secure_dns.get("delegationSigned") is True
        else DnssecState.UNSIGNED
    )

    registration_date = event_date(payload, REGISTRATION_ACTIONS)
    expiration_date = event_date(payload, EXPIRATION_ACTIONS)

    object_name = _text(payload.get("ldhName")) or _text(payload.get("unicodeName"))

    return NormalizedRecord(
        identifier=(
            (object_name.lower() if object_name else None)
            or _text(identifier)
            or _text(payload.get("handle"))
            or UNKNOWN
        ),
        statuses=statuses,
        registrar_name=registrar_name,
        registration_date=registration_date,
        expiration_date=expiration_date,
        last_updated_date=event_date(payload, LAST_CHANGED_ACTIONS),
        name_servers=name_servers(payload),
        dnssec=dnssec,
        age_in_days=days_since(registration_date, now),
        remaining_days=days_until(expiration_date, now),
        handle=_text(payload.get("handle")) or UNKNOWN,
        registrar_id=registrar_id,
        whois_server=_text(payload.get("port43")) or UNKNOWN,
    )
