"""IPv4 address arithmetic for subnet carving.

Overview:
--------
These helpers work on ``ipaddress.IPv4Network`` values and never mutate their
inputs. The central operation is ``free``: given a supernet and the subnets
already carved out of it, find the lowest block of the requested size that
fits in the remaining space.

Allocation rules:
----------------
1. Existing subnets are sorted by address before free ranges are computed.
2. A candidate block must start on a multiple of its own size.
3. The first free range that can hold an aligned block wins.

Example:
    >>> net = IPv4Network("10.254.0.0/17")
    >>> free(net, 24, [IPv4Network("10.254.0.0/24")])
    IPv4Network('10.254.1.0/24')
"""

from collections.abc import Iterable
from ipaddress import IPv4Address, IPv4Network

import structlog

from ..utils.exceptions import AllocationError

logger = structlog.get_logger(__name__)

# Smallest prefix that holds more than N usable hosts, keyed by N
HOST_COUNT_PREFIXLENS: dict[int, int] = {
    2: 30,
    6: 29,
    14: 28,
    30: 27,
    62: 26,
    126: 25,
    254: 24,
    510: 23,
    1022: 22,
    2046: 21,
    4094: 20,
    8190: 19,
    16382: 18,
    32766: 17,
    65534: 16,
}


def block_size(prefixlen: int) -> int:
    """Number of addresses in a block of the given prefix length."""
    return 2 ** (32 - prefixlen)


def add(ip: IPv4Address, number: int) -> IPv4Address:
    """Offset an address by ``number``, which may be negative."""
    return IPv4Address((int(ip) + number) % 2**32)


def broadcast(network: IPv4Network) -> IPv4Address:
    """Last address of a network."""
    return network.broadcast_address


def contains(network: IPv4Network, subnet: IPv4Network) -> bool:
    """True when both the first and last address of ``subnet`` lie in ``network``."""
    return subnet.network_address in network and subnet.broadcast_address in network


def ip_less_than(a: IPv4Address, b: IPv4Address) -> bool:
    return int(a) < int(b)


def canonicalize_subnets(
    network: IPv4Network, subnets: Iterable[IPv4Network]
) -> list[IPv4Network]:
    """
    Drop subnets that do not start inside ``network`` and remove duplicates.

    Order of the surviving subnets is preserved.
    """
    result: list[IPv4Network] = []
    for subnet in subnets:
        if subnet.network_address not in network:
            continue
        if subnet in result:
            continue
        result.append(subnet)
    return result


def _free_ranges(network: IPv4Network, subnets: list[IPv4Network]) -> list[tuple[int, int]]:
    """Inclusive integer ranges of ``network`` not covered by the sorted ``subnets``."""
    start = int(network.network_address)
    end = int(network.broadcast_address)
    if not subnets:
        return [(start, end)]

    ranges: list[tuple[int, int]] = []
    cursor = start
    for subnet in subnets:
        first = int(subnet.network_address)
        last = int(subnet.broadcast_address)
        if first > cursor:
            ranges.append((cursor, first - 1))
        cursor = max(cursor, last + 1)
    if cursor <= end:
        ranges.append((cursor, end))
    return ranges


def free(network: IPv4Network, prefixlen: int, subnets: Iterable[IPv4Network]) -> IPv4Network:
    """
    Find the lowest free, aligned block of ``/prefixlen`` inside ``network``.

    Args:
        network: The supernet to carve from.
        prefixlen: Prefix length of the block wanted.
        subnets: Blocks already in use. Each must start inside ``network``.

    Returns:
        IPv4Network: The free block.

    Raises:
        AllocationError: If the request is larger than the network, an
            existing subnet is outside it, or no aligned block fits.
    """
    if prefixlen < network.prefixlen:
        raise AllocationError(f"have: /{network.prefixlen}, requested: /{prefixlen}")

    used = list(subnets)
    for subnet in used:
        if subnet.network_address not in network:
            raise AllocationError(f"{subnet.network_address} is not contained by {network}")

    used.sort(key=lambda s: int(s.network_address))
    size = block_size(prefixlen)

    for range_start, range_end in _free_ranges(network, used):
        # Round up to the next multiple of the block size
        candidate = -(-range_start // size) * size
        if range_end - candidate + 1 >= size:
            block = IPv4Network((candidate, prefixlen))
            logger.debug("Found free block", network=str(network), block=str(block))
            return block

    raise AllocationError(f"tried to fit: /{prefixlen}")


def half(network: IPv4Network) -> tuple[IPv4Network, IPv4Network]:
    """
    Split a network into its two halves.

    Raises:
        AllocationError: For a single-address network.
    """
    if network.prefixlen == 32:
        raise AllocationError(f"single IP mask {network.netmask} is not allowed")

    first = free(network, network.prefixlen + 1, [])
    second = free(network, network.prefixlen + 1, [first])
    return first, second


def calculate_subnet_mask(network: IPv4Network, count: int) -> int:
    """
    Prefix length needed to divide ``network`` into ``count`` equal subnets.

    Raises:
        AllocationError: If ``count`` is zero or the network is too small.
    """
    if count == 0:
        raise AllocationError("divide by zero")

    bits_needed = (count - 1).bit_length()
    if bits_needed > 32 - network.prefixlen:
        raise AllocationError(
            f"no room in network mask {network.netmask} to accommodate {count} subnets"
        )
    return network.prefixlen + bits_needed


def split(network: IPv4Network, count: int) -> list[IPv4Network]:
    """Carve ``count`` equal subnets from the start of ``network``."""
    prefixlen = calculate_subnet_mask(network, count)
    subnets: list[IPv4Network] = []
    for _ in range(count):
        subnets.append(free(network, prefixlen, subnets))
    return subnets


def subnet_within(network: IPv4Network, host_count: int) -> IPv4Network:
    """
    Smallest block at the start of ``network`` with room for ``host_count`` hosts.

    Raises:
        AllocationError: If more than 65534 hosts are requested.
    """
    for hosts in sorted(HOST_COUNT_PREFIXLENS):
        if hosts > host_count:
            return IPv4Network((network.network_address, HOST_COUNT_PREFIXLENS[hosts]), strict=False)
    raise AllocationError(f"no subnet size holds {host_count} hosts")
