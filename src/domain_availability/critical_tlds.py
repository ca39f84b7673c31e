"""
Hardcoded fallback configuration for high-traffic TLDs.

The registry overlays this table on top of whatever the bootstrap source or
the on-disk cache provides, so these TLDs always have at least one lookup
path. Pass a different mapping to ``TldRegistry`` to change it.
"""

from .models import CriticalTld, WhoisTarget

CRITICAL_TLDS: dict[str, CriticalTld] = {
    "com": CriticalTld(
        rdap_servers=("https://rdap.verisign.com/com/v1/", "https://rdap.markmonitor.com/rdap/"),
        whois=WhoisTarget("whois.verisign-grs.com", "No match for"),
    ),
    "net": CriticalTld(
        rdap_servers=("https://rdap.verisign.com/net/v1/",),
        whois=WhoisTarget("whois.verisign-grs.com", "No match for"),
    ),
    "org": CriticalTld(
        rdap_servers=("https://rdap.publicinterestregistry.org/rdap/",),
        whois=WhoisTarget("whois.pir.org", "NOT FOUND"),
    ),
    "io": CriticalTld(
        rdap_servers=("https://rdap.nic.io/",),
        whois=WhoisTarget("whois.nic.io", "is available for purchase"),
    ),
    "app": CriticalTld(
        rdap_servers=("https://rdap.google/rdap/",),
        whois=WhoisTarget("whois.nic.google", "Domain not found"),
    ),
    "dev": CriticalTld(
        rdap_servers=("https://rdap.google/rdap/",),
        whois=WhoisTarget("whois.nic.google", "Domain not found"),
    ),
    "ai": CriticalTld(
        rdap_servers=("https://rdap.nic.ai/",),
        whois=WhoisTarget("whois.nic.ai", "No Object Found"),
    ),
    "co": CriticalTld(
        rdap_servers=("https://rdap.nic.co/",),
        whois=WhoisTarget("whois.nic.co", "Not found"),
    ),
    "me": CriticalTld(
        rdap_servers=("https://rdap.nic.me/",),
        whois=WhoisTarget("whois.nic.me", "NOT FOUND"),
    ),
    "xyz": CriticalTld(
        rdap_servers=("https://rdap.nic.xyz/",),
        whois=WhoisTarget("whois.nic.xyz", "DOMAIN NOT FOUND"),
    ),
    "tech": CriticalTld(
        rdap_servers=("https://rdap.nic.tech/",),
        whois=WhoisTarget("whois.nic.tech", "DOMAIN NOT FOUND"),
    ),
    "site": CriticalTld(rdap_servers=("https://rdap.centralnic.com/site/",)),
    "online": CriticalTld(rdap_servers=("https://rdap.centralnic.com/online/",)),
    "store": CriticalTld(rdap_servers=("https://rdap.centralnic.com/store/",)),
    "shop": CriticalTld(rdap_servers=("https://rdap.centralnic.com/shop/",)),
}
