"""
Property-based tests for caller identification and authentication.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_lookup.auth import UNKNOWN_CALLER, authenticate, identify_caller
from domain_lookup.config import AuthConfig
from domain_lookup.enums import AuthMode


ip_strategy = st.ip_addresses().map(str)

secret_strategy = st.text(
    alphabet=st.characters(whitelist_categories=("L", "N", "P")),
    min_size=1,
    max_size=40,
)


class TestCallerIdentityProperty:
    """The caller key is taken from proxy headers in a fixed precedence order."""

    @given(cdn=ip_strategy, real=ip_strategy, forwarded=ip_strategy)
    @settings(max_examples=100)
    def test_cdn_header_wins(self, cdn: str, real: str, forwarded: str) -> None:
        caller = identify_caller({
            "CF-Connecting-IP": cdn,
            "X-Real-IP": real,
            "X-Forwarded-For": f"{forwarded}, 10.0.0.1",
        })
        assert caller.source_ip == cdn

    @given(real=ip_strategy, forwarded=ip_strategy)
    @settings(max_examples=100)
    def test_real_ip_before_forwarded_chain(self, real: str, forwarded: str) -> None:
        caller = identify_caller({"x-real-ip": real, "x-forwarded-for": forwarded})
        assert caller.source_ip == real

    @given(hops=st.lists(ip_strategy, min_size=1, max_size=4))
    @settings(max_examples=100)
    def test_first_forwarded_hop_used(self, hops: list) -> None:
        caller = identify_caller({"X-Forwarded-For": " , ".join(hops)})
        assert caller.source_ip == hops[0]

    def test_unknown_when_no_headers(self) -> None:
        assert identify_caller({}).source_ip == UNKNOWN_CALLER
        assert identify_caller({"x-forwarded-for": "  "}).source_ip == UNKNOWN_CALLER

    def test_credential_carried(self) -> None:
        caller = identify_caller({"x-real-ip": "192.0.2.1"}, credential="s3cret")
        assert caller.credential == "s3cret"


class TestAuthenticationProperty:
    """Only the configured secret authenticates; the mode is a deployment setting."""

    @given(secret=secret_strategy, admin_mode=st.booleans())
    @settings(max_examples=100)
    def test_matching_secret_authenticates(self, secret: str, admin_mode: bool) -> None:
        decision = authenticate(secret, AuthConfig(admin_password=secret, admin_mode=admin_mode))
        assert decision.authenticated
        assert decision.mode is (AuthMode.ADMIN if admin_mode else AuthMode.PERSONAL)

    @given(secret=secret_strategy, attempt=secret_strategy)
    @settings(max_examples=100)
    def test_wrong_secret_rejected(self, secret: str, attempt: str) -> None:
        if secret == attempt:
            attempt += "x"
        decision = authenticate(attempt, AuthConfig(admin_password=secret))
        assert not decision.authenticated
        assert decision.mode is AuthMode.NONE

    @given(attempt=st.one_of(st.none(), secret_strategy))
    @settings(max_examples=50)
    def test_nobody_authenticates_without_configured_secret(self, attempt) -> None:
        assert not authenticate(attempt, AuthConfig(admin_password=None)).authenticated

    def test_missing_credential_rejected(self) -> None:
        assert not authenticate(None, AuthConfig(admin_password="s3cret")).authenticated
        assert not authenticate("", AuthConfig(admin_password="s3cret")).authenticated
