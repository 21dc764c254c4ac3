"""
Property-based tests for the RDAP record parser.

The parser must never raise and must populate every field, whatever shape
the payload has.
"""

from datetime import datetime, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_lookup.enums import DnssecState
from domain_lookup.models import UNKNOWN, NormalizedRecord
from domain_lookup.rdap_parser import parse_rdap


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)

SAMPLE_PAYLOAD = {
    "objectClassName": "domain",
    "handle": "2336799_DOMAIN_COM-VRSN",
    "ldhName": "EXAMPLE.COM",
    "status": ["client delete prohibited", "client transfer prohibited"],
    "port43": "whois.verisign-grs.com",
    "entities": [
        {
            "objectClassName": "entity",
            "handle": "376",
            "roles": ["registrar"],
            "publicIds": [{"type": "IANA Registrar ID", "identifier": "376"}],
            "vcardArray": [
                "vcard",
                [
                    ["version", {}, "text", "4.0"],
                    ["fn", {}, "text", "RESERVED-Internet Assigned Numbers Authority"],
                    ["org", {}, "text", "IANA"],
                ],
            ],
        }
    ],
    "events": [
        {"eventAction": "registration", "eventDate": "1995-08-14T04:00:00Z"},
        {"eventAction": "expiration", "eventDate": "2024-08-13T04:00:00Z"},
        {"eventAction": "last changed", "eventDate": "2023-08-14T07:01:38Z"},
        {"eventAction": "last update of RDAP database", "eventDate": "2024-01-01T00:00:00Z"},
    ],
    "nameservers": [
        {"objectClassName": "nameserver", "ldhName": "A.IANA-SERVERS.NET"},
        {"objectClassName": "nameserver", "ldhName": "B.IANA-SERVERS.NET"},
        {"objectClassName": "nameserver", "ldhName": "a.iana-servers.net."},
    ],
    "secureDNS": {"delegationSigned": True},
}


def assert_fully_populated(record: NormalizedRecord) -> None:
    for value in (
        record.identifier,
        record.registrar_name,
        record.registration_date,
        record.expiration_date,
        record.last_updated_date,
        record.handle,
        record.registrar_id,
        record.whois_server,
    ):
        assert isinstance(value, str) and value.strip()
    assert record.name_servers and all(ns.strip() for ns in record.name_servers)
    assert all(isinstance(s, str) and s.strip() for s in record.statuses)
    assert isinstance(record.dnssec, DnssecState)
    assert isinstance(record.age_in_days, int)
    assert isinstance(record.remaining_days, int)


# Strategy for arbitrary JSON-like payloads
json_strategy = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=20),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(
        st.sampled_from([
            "status", "entities", "events", "nameservers", "secureDNS", "roles",
            "vcardArray", "eventAction", "eventDate", "ldhName", "handle", "port43",
        ]) | st.text(max_size=8),
        children,
        max_size=5,
    ),
    max_leaves=20,
)


class TestExtractionProperty:
    """Fields come from the documented RDAP members."""

    def test_sample_payload(self) -> None:
        record = parse_rdap(SAMPLE_PAYLOAD, now=NOW)

        assert record.identifier == "example.com"
        assert record.statuses == ["client delete prohibited", "client transfer prohibited"]
        assert record.registrar_name == "IANA"
        assert record.registrar_id == "376"
        assert record.registration_date == "1995-08-14"
        assert record.expiration_date == "2024-08-13"
        assert record.last_updated_date == "2023-08-14"
        assert record.name_servers == ["a.iana-servers.net", "b.iana-servers.net"]
        assert record.dnssec is DnssecState.SIGNED
        assert record.handle == "2336799_DOMAIN_COM-VRSN"
        assert record.whois_server == "whois.verisign-grs.com"

    def test_day_counts_derived_from_dates(self) -> None:
        record = parse_rdap(SAMPLE_PAYLOAD, now=NOW)

        registered = datetime(1995, 8, 14, tzinfo=timezone.utc)
        expires = datetime(2024, 8, 13, tzinfo=timezone.utc)
        assert record.age_in_days == (NOW - registered).days
        assert record.remaining_days == (expires - NOW).days

    def test_expired_domain_has_negative_remaining_days(self) -> None:
        later = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert parse_rdap(SAMPLE_PAYLOAD, now=later).remaining_days < 0

    def test_registrar_name_falls_back_to_fn(self) -> None:
        payload = {
            "entities": [{
                "roles": ["registrar"],
                "vcardArray": ["vcard", [["fn", {}, "text", "Example Registrar"]]],
            }]
        }
        assert parse_rdap(payload).registrar_name == "Example Registrar"

    def test_non_registrar_entities_ignored(self) -> None:
        payload = {
            "entities": [{
                "roles": ["registrant"],
                "vcardArray": ["vcard", [["org", {}, "text", "Registrant Org"]]],
            }]
        }
        assert parse_rdap(payload).registrar_name == UNKNOWN

    def test_event_actions_matched_exactly(self) -> None:
        payload = {
            "events": [
                {"eventAction": "last update of RDAP database", "eventDate": "2024-01-01T00:00:00Z"},
                {"eventAction": "reregistration", "eventDate": "2020-01-01T00:00:00Z"},
            ]
        }
        record = parse_rdap(payload)
        assert record.last_updated_date == UNKNOWN
        assert record.registration_date == UNKNOWN

    def test_unsigned_when_flag_missing_or_false(self) -> None:
        assert parse_rdap({}).dnssec is DnssecState.UNSIGNED
        assert parse_rdap({"secureDNS": {"delegationSigned": False}}).dnssec is DnssecState.UNSIGNED

    def test_identifier_passed_in_used_when_payload_silent(self) -> None:
        assert parse_rdap({}, identifier="example.org").identifier == "example.org"


class TestSentinelProperty:
    """Parsing never raises and never leaves a field empty."""

    def test_empty_payload_uses_sentinels(self) -> None:
        record = parse_rdap({})

        assert record.identifier == UNKNOWN
        assert record.statuses == []
        assert record.registrar_name == UNKNOWN
        assert record.registration_date == UNKNOWN
        assert record.name_servers == [UNKNOWN]
        assert record.age_in_days == 0
        assert record.remaining_days == 0

    @given(payload=json_strategy)
    @settings(max_examples=200)
    def test_arbitrary_payload_never_raises(self, payload) -> None:
        assert_fully_populated(parse_rdap(payload))

    @given(date=st.text(max_size=30))
    @settings(max_examples=100)
    def test_arbitrary_event_dates(self, date: str) -> None:
        payload = {"events": [{"eventAction": "registration", "eventDate": date}]}
        record = parse_rdap(payload)
        assert_fully_populated(record)
