"""
DNS Resolver
Resolves hostnames to their A/AAAA addresses using dnspython.
"""

import ipaddress
from typing import List, Optional, Sequence

import dns.exception
import dns.resolver


def host_from_target(target: str) -> str:
    """
    Reduce an input line to a bare hostname.

    Strips scheme, path, port and trailing dot:
    'https://a.example.com:8443/x' -> 'a.example.com'
    """
    host = target.strip()

    if '://' in host:
        host = host.split('://', 1)[1]

    host = host.split('/', 1)[0]

    # Bracketed IPv6 literal, e.g. [2001:db8::1]:80
    if host.startswith('['):
        return host[1:].split(']', 1)[0]

    if host.count(':') == 1:
        host = host.split(':', 1)[0]

    return host.rstrip('.')


class DnsResolver:
    """
    Resolves a hostname to every A and AAAA address it has.

    Failures are not raised: a name that cannot be resolved simply has no
    addresses and the caller moves on to the next hostname.
    """

    def __init__(self, nameservers: Optional[Sequence[str]] = None,
                 timeout: Optional[float] = None,
                 record_types: Sequence[str] = ('A', 'AAAA')):
        self.resolver = dns.resolver.Resolver()
        if nameservers:
            self.resolver.nameservers = list(nameservers)
        if timeout:
            self.resolver.timeout = timeout
            self.resolver.lifetime = timeout
        self.record_types = tuple(record_types)

    def resolve(self, hostname: str) -> List[str]:
        """
        Resolve `hostname`.

        Args:
            hostname: Bare hostname or URL

        Returns:
            Unique addresses in answer order (empty when resolution fails).
            An IP literal resolves to itself without a query.
        """
        host = host_from_target(hostname)
        if not host:
            return []

        try:
            return [str(ipaddress.ip_address(host))]
        except ValueError:
            pass

        addresses = []
        for rtype in self.record_types:
            for address in self._query_record(host, rtype):
                if address not in addresses:
                    addresses.append(address)
        return addresses

    __call__ = resolve

    def _query_record(self, host: str, rtype: str) -> List[str]:
        try:
            answers = self.resolver.resolve(host, rtype)
            return [r.to_text() for r in answers]
        except dns.resolver.NXDOMAIN:
            return []
        except dns.resolver.NoAnswer:
            return []
        except dns.resolver.NoNameservers:
            return []
        except dns.exception.Timeout:
            return []
        except (dns.exception.DNSException, ValueError):
            # Bad label, empty name, and the rest of dnspython's errors
            return []
