"""
Enumeration types for the domain lookup engine.

These enums provide type-safe constants for lookup modes, error
classifications, state machine states and configuration options.
"""

from enum import Enum


class LookupMode(Enum):
    """Registry protocol used to answer a lookup."""

    RDAP = "rdap"
    WHOIS = "whois"


class ObjectType(Enum):
    """RDAP object classes accepted by the aggregator."""

    DOMAIN = "domain"
    IP = "ip"
    AUTNUM = "autnum"
    ENTITY = "entity"


class AuthMode(Enum):
    """Operating mode attached to an authenticated caller."""

    ADMIN = "admin"
    PERSONAL = "personal"
    NONE = "none"


class PriceKind(Enum):
    """Kind of registrar offer a price quote describes."""

    REGISTRATION = "registration"
    RENEWAL = "renewal"
    TRANSFER = "transfer"


class DnssecState(Enum):
    """DNSSEC delegation state of a domain."""

    SIGNED = "signed"
    UNSIGNED = "unsigned"


class ErrorKind(Enum):
    """Classification of a failed lookup."""

    INVALID_INPUT = "invalid_input"
    QUOTA_EXCEEDED = "quota_exceeded"
    UPSTREAM_NOT_FOUND = "upstream_not_found"
    UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
    UPSTREAM_BAD_REQUEST = "upstream_bad_request"
    UPSTREAM_ACCESS_DENIED = "upstream_access_denied"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_FAILURE = "upstream_failure"
    NETWORK_FAILURE = "network_failure"


class ResolutionState(Enum):
    """States of the resolution state machine."""

    VALIDATING = "validating"
    QUOTA_CHECK = "quota_check"
    RDAP_QUERY = "rdap_query"
    WHOIS_FALLBACK = "whois_fallback"
    WHOIS_QUERY = "whois_query"
    DONE = "done"


class TransitionCause(Enum):
    """Reason the state machine moved from one state to the next."""

    INPUT_VALID = "input_valid"
    INPUT_INVALID = "input_invalid"
    QUOTA_GRANTED_RDAP = "quota_granted_rdap"
    QUOTA_GRANTED_WHOIS = "quota_granted_whois"
    QUOTA_DENIED = "quota_denied"
    RDAP_SUCCEEDED = "rdap_succeeded"
    RDAP_SUFFIX_UNSUPPORTED = "rdap_suffix_unsupported"
    RDAP_FAILED = "rdap_failed"
    WHOIS_SUCCEEDED = "whois_succeeded"
    WHOIS_FAILED = "whois_failed"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
