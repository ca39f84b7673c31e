"""
Domain Availability - RDAP-first domain availability engine with WHOIS fallback.

This package checks keyword x TLD combinations against the authoritative RDAP
servers listed in the IANA bootstrap registry, falls back to port-43 WHOIS
when RDAP cannot answer, and keeps a locally cached TLD -> server mapping.
"""

__version__ = "0.1.0"

from domain_availability.exceptions import (
    DomainAvailabilityError,
    ValidationError,
    NetworkError,
    ProtocolError,
    PersistenceError,
)
from domain_availability.enums import (
    CheckMethod,
    Environment,
    LogLevel,
    RDAPErrorCode,
    RDAPStatus,
    WHOISErrorCode,
)
from domain_availability.config import (
    RegistryConfig,
    RdapConfig,
    WhoisConfig,
    BatchConfig,
    LoggingConfig,
    SystemConfig,
    load_config_from_env,
    refresh_interval_for_environment,
)
from domain_availability.models import (
    CheckBatchStats,
    CheckReport,
    CriticalTld,
    DomainCheckResult,
    RdapEvent,
    RdapPayload,
    RegistryCache,
    TldConfig,
    TldServerEntry,
    WhoisTarget,
)
from domain_availability.keywords import (
    normalize_keyword,
    normalize_tld,
    process_keywords,
    split_keywords,
    is_valid_keyword,
)
from domain_availability.audit_logger import (
    AuditLogger,
    LogEntry,
)
from domain_availability.critical_tlds import CRITICAL_TLDS
from domain_availability.bootstrap import (
    BootstrapClient,
    parse_bootstrap_services,
)
from domain_availability.cache_store import RegistryCacheStore
from domain_availability.scheduler import PeriodicTask
from domain_availability.tld_registry import TldRegistry
from domain_availability.rdap_resolver import RdapResolver
from domain_availability.whois_resolver import WhoisResolver
from domain_availability.orchestrator import (
    Candidate,
    DomainCheckOrchestrator,
    build_candidates,
)
from domain_availability.service import DomainCheckService

__all__ = [
    # Exceptions
    "DomainAvailabilityError",
    "ValidationError",
    "NetworkError",
    "ProtocolError",
    "PersistenceError",
    # Enums
    "CheckMethod",
    "Environment",
    "LogLevel",
    "RDAPErrorCode",
    "RDAPStatus",
    "WHOISErrorCode",
    # Configuration
    "RegistryConfig",
    "RdapConfig",
    "WhoisConfig",
    "BatchConfig",
    "LoggingConfig",
    "SystemConfig",
    "load_config_from_env",
    "refresh_interval_for_environment",
    # Models
    "CheckBatchStats",
    "CheckReport",
    "CriticalTld",
    "DomainCheckResult",
    "RdapEvent",
    "RdapPayload",
    "RegistryCache",
    "TldConfig",
    "TldServerEntry",
    "WhoisTarget",
    # Keywords
    "normalize_keyword",
    "normalize_tld",
    "process_keywords",
    "split_keywords",
    "is_valid_keyword",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Registry
    "CRITICAL_TLDS",
    "BootstrapClient",
    "parse_bootstrap_services",
    "RegistryCacheStore",
    "PeriodicTask",
    "TldRegistry",
    # Resolvers
    "RdapResolver",
    "WhoisResolver",
    # Orchestration
    "Candidate",
    "DomainCheckOrchestrator",
    "build_candidates",
    "DomainCheckService",
]
