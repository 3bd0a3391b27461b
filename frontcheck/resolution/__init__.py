"""
Resolution
Resolves input hostnames to addresses.
"""

from .resolver import DnsResolver, host_from_target

__all__ = [
    'DnsResolver',
    'host_from_target'
]
