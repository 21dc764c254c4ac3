"""
Domain Lookup - RDAP/WHOIS registration-data lookups.

This package resolves domains, IP networks, AS numbers and entities through
an RDAP aggregator, falls back to a WHOIS gateway for domain suffixes RDAP
does not cover, normalizes both into one record shape, and compares
registrar prices. Per-caller quotas protect the upstream services.
"""

__version__ = "0.1.0"
__author__ = "Domain Lookup Team"

from domain_lookup.exceptions import (
    DomainLookupError,
    ValidationError,
    QuotaExceededError,
    ConfigurationError,
)
from domain_lookup.enums import (
    AuthMode,
    DnssecState,
    ErrorKind,
    LogLevel,
    LookupMode,
    ObjectType,
    PriceKind,
    ResolutionState,
    TransitionCause,
)
from domain_lookup.config import (
    AuthConfig,
    EngineConfig,
    LoggingConfig,
    QuotaConfig,
    ServerConfig,
    UpstreamConfig,
)
from domain_lookup.models import (
    UNKNOWN,
    AuthDecision,
    CallerIdentity,
    LookupRequest,
    NormalizedRecord,
    PriceLookupResult,
    PriceQuote,
    QuotaStatus,
    QuotaWindow,
    ResolutionError,
    ResolutionResult,
    SuffixEntry,
    SuffixListResult,
    Transition,
)
from domain_lookup.domain_validator import (
    IdentifierValidator,
    IdentifierValidationResult,
)
from domain_lookup.audit_logger import AuditLogger, LogEntry
from domain_lookup.auth import authenticate, identify_caller
from domain_lookup.store import MemoryStore
from domain_lookup.quota_gate import QuotaGate
from domain_lookup.rdap_client import RDAPClient, RDAPError, RDAPResponse
from domain_lookup.whois_client import WHOISClient, WHOISError, WHOISResponse
from domain_lookup.rdap_parser import parse_rdap
from domain_lookup.whois_parser import parse_whois
from domain_lookup.orchestrator import ResolutionOrchestrator, should_fallback_to_whois
from domain_lookup.price_aggregator import (
    DEFAULT_QUOTES,
    SEED_PRICES,
    PriceAggregator,
    PriceSource,
    StaticPriceTable,
    extract_suffix,
)
from domain_lookup.tld_registry import (
    FALLBACK_SUFFIXES,
    SupportedSuffixRegistry,
    TLDListClient,
)
from domain_lookup.service import LookupService
from domain_lookup.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "DomainLookupError",
    "ValidationError",
    "QuotaExceededError",
    "ConfigurationError",
    # Enums
    "AuthMode",
    "DnssecState",
    "ErrorKind",
    "LogLevel",
    "LookupMode",
    "ObjectType",
    "PriceKind",
    "ResolutionState",
    "TransitionCause",
    # Config
    "AuthConfig",
    "EngineConfig",
    "LoggingConfig",
    "QuotaConfig",
    "ServerConfig",
    "UpstreamConfig",
    # Models
    "UNKNOWN",
    "AuthDecision",
    "CallerIdentity",
    "LookupRequest",
    "NormalizedRecord",
    "PriceLookupResult",
    "PriceQuote",
    "QuotaStatus",
    "QuotaWindow",
    "ResolutionError",
    "ResolutionResult",
    "SuffixEntry",
    "SuffixListResult",
    "Transition",
    # Validation
    "IdentifierValidator",
    "IdentifierValidationResult",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Auth
    "authenticate",
    "identify_caller",
    # Store and Quota
    "MemoryStore",
    "QuotaGate",
    # Clients
    "RDAPClient",
    "RDAPError",
    "RDAPResponse",
    "WHOISClient",
    "WHOISError",
    "WHOISResponse",
    # Parsers
    "parse_rdap",
    "parse_whois",
    # Orchestrator
    "ResolutionOrchestrator",
    "should_fallback_to_whois",
    # Prices
    "DEFAULT_QUOTES",
    "SEED_PRICES",
    "PriceAggregator",
    "PriceSource",
    "StaticPriceTable",
    "extract_suffix",
    # TLD Registry
    "FALLBACK_SUFFIXES",
    "SupportedSuffixRegistry",
    "TLDListClient",
    # Service
    "LookupService",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
]
