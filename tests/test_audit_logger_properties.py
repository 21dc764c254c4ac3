"""
Property-based tests for Audit Logger module.

Uses Hypothesis for property-based testing to verify masking, signing,
level filtering and both output formats.
"""

import json
from io import StringIO

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from domain_lookup.audit_logger import AuditLogger
from domain_lookup.config import LoggingConfig
from domain_lookup.enums import LogLevel


# Strategies for generating valid test data

@st.composite
def component_name_strategy(draw) -> str:
    """Generate valid component names."""
    return draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz_"),
        min_size=1,
        max_size=30,
    ))


@st.composite
def message_strategy(draw) -> str:
    """Generate single-line log messages."""
    return draw(st.text(
        alphabet=st.characters(
            whitelist_categories=("L", "N", "P", "S", "Zs"),
        ),
        min_size=1,
        max_size=120,
    ))


@st.composite
def non_sensitive_key_strategy(draw) -> str:
    """Generate keys that contain none of the sensitive patterns."""
    key = draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz_"),
        min_size=1,
        max_size=20,
    ))
    assume(not any(pattern in key for pattern in AuditLogger.SENSITIVE_KEYS))
    return key


sensitive_key_strategy = st.sampled_from(sorted(AuditLogger.SENSITIVE_KEYS)).flatmap(
    lambda pattern: st.sampled_from([pattern, pattern.upper(), f"admin_{pattern}", f"{pattern}_value"])
)

secret_value_strategy = st.text(
    alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789", min_size=12, max_size=40
)


class TestMaskingProperty:
    """Values under sensitive keys never reach an entry or the stream."""

    @given(key=sensitive_key_strategy, secret=secret_value_strategy)
    @settings(max_examples=100)
    def test_sensitive_values_masked(self, key: str, secret: str) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="both", output_stream=stream)

        entry = logger.info("auth", "Checked credential", {key: secret, "caller": "198.51.100.1"})

        assert entry.data[key] == AuditLogger.MASK_VALUE
        assert entry.data["caller"] == "198.51.100.1"
        assert secret not in stream.getvalue()

    @given(key=sensitive_key_strategy, secret=secret_value_strategy)
    @settings(max_examples=50)
    def test_nested_values_masked(self, key: str, secret: str) -> None:
        logger = AuditLogger(output_stream=StringIO())

        entry = logger.info("auth", "Nested", {"outer": {key: secret}, "items": [{key: secret}, "plain"]})

        assert entry.data["outer"][key] == AuditLogger.MASK_VALUE
        assert entry.data["items"][0][key] == AuditLogger.MASK_VALUE
        assert entry.data["items"][1] == "plain"

    @given(
        data=st.dictionaries(
            non_sensitive_key_strategy(),
            st.one_of(st.integers(), st.text(max_size=20), st.booleans()),
            max_size=5,
        )
    )
    @settings(max_examples=100)
    def test_other_values_untouched(self, data: dict) -> None:
        logger = AuditLogger(output_stream=StringIO())
        assert logger.mask_sensitive_data(data) == data


class TestLevelFilterProperty:
    """Entries below the minimum level are dropped."""

    @given(
        level=st.sampled_from(list(LogLevel)),
        minimum=st.sampled_from(list(LogLevel)),
        component=component_name_strategy(),
        message=message_strategy(),
    )
    @settings(max_examples=100)
    def test_filter(self, level, minimum, component, message) -> None:
        stream = StringIO()
        logger = AuditLogger(output_stream=stream, min_level=minimum)
        order = list(LogLevel)

        entry = logger.log(level, component, message)

        if order.index(level) >= order.index(minimum):
            assert entry is not None
            assert logger.entries == [entry]
            assert message in stream.getvalue()
        else:
            assert entry is None
            assert logger.entries == []
            assert stream.getvalue() == ""

    @given(
        max_entries=st.integers(min_value=1, max_value=20),
        count=st.integers(min_value=0, max_value=60),
    )
    @settings(max_examples=50)
    def test_retained_entries_capped(self, max_entries: int, count: int) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream, max_entries=max_entries)

        for i in range(count):
            logger.info("orchestrator", f"lookup {i}")

        entries = logger.entries
        assert len(entries) == min(count, max_entries)
        assert [e.message for e in entries] == [
            f"lookup {i}" for i in range(max(0, count - max_entries), count)
        ]
        # The stream still sees every entry
        assert len(stream.getvalue().splitlines()) == count

    def test_error_attaches_exception(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        entry = logger.error("service", "Fetch failed", ValueError("bad list"), {"url": "x"})
        assert entry.data == {"url": "x", "error_message": "bad list", "error_type": "ValueError"}


class TestOutputFormatProperty:
    """JSON output parses back; text output carries level and component."""

    @given(component=component_name_strategy(), message=message_strategy())
    @settings(max_examples=100)
    def test_json_line(self, component: str, message: str) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream)

        logger.warn(component, message, {"count": 3})

        obj = json.loads(stream.getvalue().strip())
        assert obj["level"] == "warn"
        assert obj["component"] == component
        assert obj["message"] == message
        assert obj["data"] == {"count": 3}

    def test_text_line(self) -> None:
        stream = StringIO()
        AuditLogger(output_format="text", output_stream=stream).info(
            "orchestrator", "RDAP lookup succeeded", {"identifier": "example.com"}
        )
        line = stream.getvalue()
        assert " INFO [orchestrator] RDAP lookup succeeded " in line
        assert '"identifier": "example.com"' in line

    def test_invalid_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger(output_format="xml")


class TestSigningProperty:
    """In audit mode every entry carries a verifiable HMAC signature."""

    @given(message=message_strategy(), key=secret_value_strategy)
    @settings(max_examples=50)
    def test_signature_verifies(self, message: str, key: str) -> None:
        logger = AuditLogger(output_stream=StringIO())
        logger.enable_audit_mode(key)

        entry = logger.info("quota", message)

        assert entry.signature
        assert logger.verify_signature(entry)

    def test_tampering_detected(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        logger.enable_audit_mode("audit-key")
        entry = logger.info("quota", "Lookup quota exceeded", {"count": 12})

        entry.data["count"] = 0

        assert not logger.verify_signature(entry)

    def test_unsigned_entries_do_not_verify(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        entry = logger.info("quota", "plain")
        assert entry.signature is None
        assert not logger.verify_signature(entry)

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger().enable_audit_mode("")


class TestFromConfigProperty:
    """The logging section of the engine config builds the logger."""

    def test_from_config(self) -> None:
        config = LoggingConfig(
            level="warn", audit_mode=True, audit_signing_key="k", output_format="json"
        )
        logger = AuditLogger.from_config(config, output_stream=StringIO())

        assert logger.audit_mode
        assert not logger.is_enabled_for(LogLevel.INFO)
        assert logger.is_enabled_for(LogLevel.ERROR)

    def test_audit_mode_needs_key(self) -> None:
        logger = AuditLogger.from_config(LoggingConfig(audit_mode=True), output_stream=StringIO())
        assert not logger.audit_mode
