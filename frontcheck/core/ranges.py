"""
Range Index
Holds the provider's published CIDR blocks and answers which of them
contain a given address.

Blocks are bucketed by (IP version, prefix length) so a lookup costs one
dict probe per distinct prefix length instead of a scan over every block.
The index is never modified after build(), so worker threads share it
without locking.
"""

import ipaddress
import sys
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class Block:
    """One published CIDR block plus the provider's metadata for it"""
    network: IPNetwork
    region: Optional[str] = None
    service: Optional[str] = None
    network_border_group: Optional[str] = None

    def __str__(self) -> str:
        return str(self.network)

    @classmethod
    def parse(cls, entry: Union[str, Dict]) -> 'Block':
        """
        Parse a CIDR string or a feed entry into a Block.

        Feed entries look like the AWS ip-ranges.json records:
        {"ip_prefix": "3.5.140.0/22", "region": "...", "service": "..."}
        (IPv6 records use "ipv6_prefix").

        Raises:
            ValueError: if the entry carries no valid CIDR
        """
        if isinstance(entry, dict):
            cidr = entry.get('ip_prefix') or entry.get('ipv6_prefix')
            if not cidr:
                raise ValueError(f"No prefix in entry: {entry!r}")
            network = ipaddress.ip_network(str(cidr).strip(), strict=False)
            return cls(
                network=network,
                region=entry.get('region'),
                service=entry.get('service'),
                network_border_group=entry.get('network_border_group')
            )

        if not isinstance(entry, str):
            raise ValueError(f"Unsupported block entry: {entry!r}")
        return cls(network=ipaddress.ip_network(entry.strip(), strict=False))


class RangeIndex:
    """
    Immutable IP-range membership index.

    Build it once with RangeIndex.build() before any worker starts, then
    hand the same instance to every worker.
    """

    def __init__(self, blocks: Iterable[Block]):
        self._blocks: Tuple[Block, ...] = tuple(blocks)

        # (version, prefixlen) -> {network int: [blocks]}
        buckets: Dict[Tuple[int, int], Dict[int, List[Block]]] = {}
        for block in self._blocks:
            key = (block.network.version, block.network.prefixlen)
            net_int = int(block.network.network_address)
            buckets.setdefault(key, {}).setdefault(net_int, []).append(block)

        self._buckets = {
            key: {net: tuple(found) for net, found in table.items()}
            for key, table in buckets.items()
        }
        # Longest prefixes first; order only affects iteration, never results
        self._prefixes = {
            version: tuple(sorted(
                (plen for (v, plen) in self._buckets if v == version),
                reverse=True
            ))
            for version in (4, 6)
        }

    @classmethod
    def build(cls, raw_blocks: Iterable[Union[str, Dict]], log=None) -> 'RangeIndex':
        """
        Parse raw CIDR strings or feed entries into an index.

        Malformed entries are dropped and reported through `log`
        (a callable taking one message); they never reach the index.

        Args:
            raw_blocks: CIDR strings or ip-ranges.json prefix entries
            log: Optional callable used for warnings (defaults to stderr)

        Returns:
            A ready-to-share RangeIndex
        """
        blocks = []
        dropped = 0

        for entry in raw_blocks:
            try:
                blocks.append(Block.parse(entry))
            except ValueError as e:
                dropped += 1
                _warn(log, f"[!] Dropped malformed CIDR {entry!r}: {e}")

        if dropped:
            _warn(log, f"[RANGES] {dropped} malformed entries dropped")

        return cls(blocks)

    @property
    def blocks(self) -> Tuple[Block, ...]:
        """All blocks in the order they were received"""
        return self._blocks

    def lookup(self, ip: Union[str, IPAddress]) -> FrozenSet[Block]:
        """
        Return every block containing `ip`.

        Overlapping blocks are all returned. An address outside every
        block gives an empty set.

        Raises:
            ValueError: if `ip` is not a valid IPv4/IPv6 address
        """
        address = ip if isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)) \
            else ipaddress.ip_address(str(ip).strip())

        version = address.version
        value = int(address)
        max_len = address.max_prefixlen
        matches = []

        for plen in self._prefixes[version]:
            mask = ((1 << plen) - 1) << (max_len - plen)
            found = self._buckets[(version, plen)].get(value & mask)
            if found:
                matches.extend(found)

        return frozenset(matches)

    def contains(self, ip: Union[str, IPAddress]) -> bool:
        return bool(self.lookup(ip))

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __repr__(self) -> str:
        v4 = sum(1 for b in self._blocks if b.network.version == 4)
        return f"<RangeIndex blocks={len(self._blocks)} ipv4={v4} ipv6={len(self._blocks) - v4}>"


def _warn(log, message: str):
    if log is not None:
        log(message)
    else:
        print(message, file=sys.stderr)
