"""
PTR (reverse DNS) resolver
"""

import logging
from typing import Optional

import dns.exception
import dns.resolver

from .exceptions import ResolveError


logger = logging.getLogger(__name__)


class PTRResolver:
    """
    PTR record resolver.

    Performs reverse DNS lookups to get hostnames for IP addresses.
    """

    def __init__(self, timeout: float = 2.0):
        self.timeout = timeout
        try:
            self._resolver = dns.resolver.Resolver()
        except dns.exception.DNSException as e:
            logger.debug("no usable resolver configuration: %s", e)
            raise ResolveError(f"cannot configure resolver: {e}") from e
        self._resolver.timeout = timeout
        self._resolver.lifetime = timeout

    def resolve(self, ip: str) -> list[str]:
        """
        PTR lookup for a single IP.

        Args:
            ip: IPv4 or IPv6 address

        Returns:
            Hostnames in answer order, without the trailing dot

        Raises:
            ResolveError: lookup failed or the address is malformed
        """
        try:
            answers = self._resolver.resolve_address(ip)
        except (dns.exception.DNSException, ValueError) as e:
            logger.debug("PTR lookup for %s failed: %s", ip, e)
            raise ResolveError(f"reverse lookup failed for {ip}: {e}") from e

        return [rdata.to_text().rstrip('.') for rdata in answers]


_default: Optional[PTRResolver] = None


def lookup_addr(address: str) -> list[str]:
    """Resolve address with a shared module-level resolver"""
    global _default
    if _default is None:
        _default = PTRResolver()
    return _default.resolve(address)
