"""
Property-based tests for identifier validation.

Uses Hypothesis for property-based testing to verify label syntax,
normalization and per-object-type rules.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_lookup.domain_validator import IdentifierValidator, is_valid_hostname
from domain_lookup.enums import ObjectType
from domain_lookup.exceptions import ValidationError


# Strategies for generating test data

LABEL_CHARS = "abcdefghijklmnopqrstuvwxyz0123456789"


@st.composite
def valid_label_strategy(draw) -> str:
    """Generate a DNS label: alphanumeric ends, hyphens only inside."""
    first = draw(st.sampled_from(LABEL_CHARS))
    middle = draw(st.text(alphabet=LABEL_CHARS + "-", min_size=0, max_size=20))
    if not middle:
        return first
    last = draw(st.sampled_from(LABEL_CHARS))
    return first + middle + last


@st.composite
def valid_domain_strategy(draw) -> str:
    labels = draw(st.lists(valid_label_strategy(), min_size=1, max_size=3))
    tld = draw(st.sampled_from(["com", "net", "org", "de", "xyz", "io"]))
    return ".".join(labels + [tld])


class TestLabelSyntaxProperty:
    """Domains must be dot-separated labels with no leading or trailing hyphen."""

    def test_rejects_hyphen_bounded_label(self) -> None:
        result = IdentifierValidator().validate("-bad-.com", ObjectType.DOMAIN)
        assert not result.valid
        assert result.error.code == "invalid_domain"

    def test_accepts_punycode_label(self) -> None:
        result = IdentifierValidator().validate("xn--p1ai.com", ObjectType.DOMAIN)
        assert result.valid
        assert result.canonical == "xn--p1ai.com"

    @given(domain=valid_domain_strategy())
    @settings(max_examples=100)
    def test_generated_domains_accepted(self, domain: str) -> None:
        assert IdentifierValidator().validate(domain).valid

    @given(
        domain=valid_domain_strategy(),
        position=st.sampled_from(["leading", "trailing"]),
    )
    @settings(max_examples=100)
    def test_hyphen_at_label_edge_rejected(self, domain: str, position: str) -> None:
        first, _, rest = domain.partition(".")
        label = f"-{first}" if position == "leading" else f"{first}-"
        assert not IdentifierValidator().validate(f"{label}.{rest}").valid

    def test_label_longer_than_63_rejected(self) -> None:
        assert not is_valid_hostname("a" * 64 + ".com")
        assert is_valid_hostname("a" * 63 + ".com")

    @pytest.mark.parametrize("raw", ["", "   ", None, "exa mple.com", "example..com", "ex_ample.com"])
    def test_malformed_domains_rejected(self, raw) -> None:
        assert not IdentifierValidator().validate(raw).valid


class TestNormalizationProperty:
    """Identifiers are trimmed and lower-cased; international names are IDNA-encoded."""

    @given(domain=valid_domain_strategy(), padding=st.text(alphabet=" \t", max_size=3))
    @settings(max_examples=100)
    def test_trim_and_lowercase(self, domain: str, padding: str) -> None:
        raw = f"{padding}{domain.upper()}{padding}"
        assert IdentifierValidator().normalize(raw) == domain

    def test_international_domain_encoded(self) -> None:
        assert IdentifierValidator().normalize("пример.рф") == "xn--e1afmkfd.xn--p1ai"

    @given(domain=valid_domain_strategy())
    @settings(max_examples=50)
    def test_normalize_is_idempotent(self, domain: str) -> None:
        validator = IdentifierValidator()
        once = validator.normalize(domain)
        assert validator.normalize(once) == once

    @given(
        raw=st.one_of(st.integers(), st.floats(), st.booleans(), st.lists(st.text(), max_size=2)),
        object_type=st.sampled_from(list(ObjectType)),
    )
    @settings(max_examples=50)
    def test_non_string_input_rejected(self, raw, object_type: ObjectType) -> None:
        with pytest.raises(ValidationError) as exc_info:
            IdentifierValidator().normalize(raw, object_type)
        assert exc_info.value.code == "invalid_type"
        assert not IdentifierValidator().validate(raw, object_type).valid

    def test_empty_input_raises(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            IdentifierValidator().normalize("  ")
        assert exc_info.value.code == "empty_input"


class TestObjectTypeRulesProperty:
    """Each RDAP object type has its own identifier syntax."""

    @pytest.mark.parametrize(
        "raw", ["8.8.8.8", "2001:db8::1", "192.0.2.0/24", "2001:db8::/32", "dns.google"]
    )
    def test_ip_object_accepts_addresses_and_networks(self, raw: str) -> None:
        assert IdentifierValidator().validate(raw, ObjectType.IP).valid

    @pytest.mark.parametrize("raw", ["999.1.1.1/99x", "not an ip", "-1.2.3.4-"])
    def test_ip_object_rejects_garbage(self, raw: str) -> None:
        result = IdentifierValidator().validate(raw, ObjectType.IP)
        assert not result.valid
        assert result.error.code == "invalid_ip"

    @given(number=st.integers(min_value=1, max_value=4_294_967_295))
    @settings(max_examples=50)
    def test_autnum_accepted(self, number: int) -> None:
        assert IdentifierValidator().normalize(f"AS{number}", ObjectType.AUTNUM) == f"as{number}"
        assert IdentifierValidator().normalize(str(number), ObjectType.AUTNUM) == str(number)

    @pytest.mark.parametrize("raw", ["ABC<script>", "handle with space", "a;b"])
    def test_entity_forbidden_characters_rejected(self, raw: str) -> None:
        result = IdentifierValidator().validate(raw, ObjectType.ENTITY)
        assert not result.valid
        assert result.error.code == "forbidden_chars"

    def test_entity_handle_accepted(self) -> None:
        assert IdentifierValidator().normalize("GOGL-ARIN", ObjectType.ENTITY) == "gogl-arin"
