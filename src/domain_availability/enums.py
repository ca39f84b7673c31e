"""
Enumeration types for the domain availability engine.

These enums provide type-safe constants for lookup methods, status codes
and error codes used throughout the system.
"""

from enum import Enum


class CheckMethod(Enum):
    """Lookup path that produced a domain check result."""

    RDAP = "RDAP"
    WHOIS = "WHOIS"
    WHOIS_FALLBACK = "WHOIS (RDAP fallback)"
    UNKNOWN = "Unknown"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class RDAPStatus(Enum):
    """Outcome of a single RDAP server query."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


class RDAPErrorCode(Enum):
    """Error codes for RDAP lookups."""

    NO_SERVERS = "no_servers"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"


class WHOISErrorCode(Enum):
    """Error codes for WHOIS lookups."""

    INVALID_SERVER = "invalid_server"
    DNS_ERROR = "dns_error"
    CONNECT_TIMEOUT = "connect_timeout"
    RECEIVE_TIMEOUT = "receive_timeout"
    NETWORK_ERROR = "network_error"


class Environment(Enum):
    """Deployment environment, used to pick the registry refresh interval."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
