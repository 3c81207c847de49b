"""IPv4 networks, subnets and address reservations.

An ``IPV4Network`` owns a supernet and the ordered list of subnets carved from
it. Each ``IPV4Subnet`` owns an ordered list of ``IPReservation`` entries.
Everything here is plain mutable state built by a single owner (the network
builder); nothing is shared between networks.

Subnet CIDRs are kept as ``IPv4Interface`` rather than ``IPv4Network``: the
supernet hack widens a subnet's mask to the supernet's while the subnet keeps
its own starting address, which a strict network value cannot represent.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from ipaddress import IPv4Address, IPv4Interface, IPv4Network

import structlog

from ..constants import MAX_INTERFACE_NAME_BYTES, SUPERNET_HACK_SUBNETS
from ..models.cabinets import CabinetFilter, CabinetGroupDetail
from ..utils.exceptions import AllocationError, ResourceNotFoundError, ValidationError
from .ipam import add, contains, free

logger = structlog.get_logger(__name__)

UAI_MACVLAN_SUBNET = "uai_macvlan"


@dataclass
class IPReservation:
    """
    A named address inside a subnet.

    Attributes:
        ip_address: The reserved address.
        name: Reservation name, unique within the subnet.
        comment: Free text. Switch reservations carry the switch xname here.
        aliases: Additional DNS names, in insertion order.
    """

    ip_address: IPv4Address
    name: str
    comment: str = ""
    aliases: list[str] = field(default_factory=list)

    def add_reservation_alias(self, alias: str) -> None:
        """Append an alias unless it is already present."""
        if alias not in self.aliases:
            self.aliases.append(alias)


@dataclass
class IPV4Subnet:
    """
    A subnet of an ``IPV4Network``.

    Attributes:
        cidr: Subnet address and prefix length.
        name: Subnet name (``bootstrap_dhcp``, ``cabinet_3000``).
        full_name: Human readable name.
        net_name: Name of the owning network.
        vlan_id: 802.1Q VLAN, 0 for untagged.
        gateway: Gateway address, network+1 unless overridden.
        ip_reservations: Reservations in insertion order.
        dhcp_start: First dynamic address.
        dhcp_end: Last dynamic address.
        reservation_start: First address of a static range (``uai_macvlan`` only).
        reservation_end: Last address of a static range (``uai_macvlan`` only).
        metallb_pool_name: MetalLB address pool served from this subnet.
    """

    cidr: IPv4Interface
    name: str
    full_name: str = ""
    net_name: str = ""
    vlan_id: int = 0
    comment: str = ""
    gateway: IPv4Address | None = None
    ip_reservations: list[IPReservation] = field(default_factory=list)
    dhcp_start: IPv4Address | None = None
    dhcp_end: IPv4Address | None = None
    reservation_start: IPv4Address | None = None
    reservation_end: IPv4Address | None = None
    metallb_pool_name: str = ""
    parent_device: str = ""
    interface_name: str = ""

    @property
    def network(self) -> IPv4Network:
        """The subnet as a network value (host bits cleared)."""
        return self.cidr.network

    def reserved_ips(self) -> list[IPv4Address]:
        return [r.ip_address for r in self.ip_reservations]

    def reservations_by_name(self) -> dict[str, IPReservation]:
        """Reservations keyed by name. A later duplicate name wins."""
        return {r.name: r for r in self.ip_reservations}

    def lookup_reservation(self, name: str) -> IPReservation:
        """
        Find a reservation by exact name.

        Raises:
            ResourceNotFoundError: If no reservation has that name.
        """
        for reservation in self.ip_reservations:
            if reservation.name == name:
                return reservation
        raise ResourceNotFoundError("Reservation", f"{name} in {self.name}")

    def total_ip_addresses(self) -> int:
        return 2 ** (32 - self.cidr.network.prefixlen)

    def usable_host_addresses(self) -> int:
        """Addresses available to hosts. /32 and /31 have no network or broadcast address."""
        prefixlen = self.cidr.network.prefixlen
        if prefixlen == 32:
            return 1
        if prefixlen == 31:
            return 2
        return self.total_ip_addresses() - 2

    def add_reservation(self, name: str, comment: str = "") -> IPReservation:
        """
        Reserve the lowest free address from network+2 upward.

        The address after the network address is left for the gateway.

        Raises:
            AllocationError: If the subnet has no free address left.
        """
        reserved = {int(ip) for ip in self.reserved_ips()}
        candidate = int(add(self.cidr.ip, 2))
        last = int(self.cidr.network.broadcast_address)
        while candidate in reserved:
            candidate += 1
        outside = IPv4Address(candidate) not in self.cidr.network
        if outside or (candidate >= last and self.cidr.network.prefixlen < 31):
            raise AllocationError(
                f"{self.name} {self.cidr} subnet has exhausted its available addresses"
            )

        reservation = IPReservation(ip_address=IPv4Address(candidate), name=name, comment=comment)
        self.ip_reservations.append(reservation)
        return reservation

    def add_reservation_with_pin(self, name: str, comment: str, pin: int) -> IPReservation:
        """
        Reserve ``{first three octets}.{pin}`` regardless of what is already reserved.

        Pinned addresses must not move between releases. The comment, if
        given, is also split on commas into the alias list.
        """
        octets = self.cidr.ip.packed[:3]
        address = IPv4Address(octets + bytes([pin]))
        aliases = comment.split(",") if comment else []
        reservation = IPReservation(ip_address=address, name=name, comment=comment, aliases=aliases)
        self.ip_reservations.append(reservation)
        return reservation

    def add_reservation_with_ip(self, name: str, addr: str, comment: str = "") -> IPReservation:
        """
        Reserve a specific address.

        Raises:
            AllocationError: If the address is outside the subnet or already reserved.
        """
        address = IPv4Address(addr)
        if address not in self.cidr.network:
            raise AllocationError(
                f'Cannot add "{name}" to {self.name} subnet as {addr}.  '
                f"{addr} is not part of {self.cidr}."
            )
        if address in self.reserved_ips():
            raise AllocationError(
                f'Cannot add "{name}" to {self.name} subnet as {addr}.  '
                f"{addr} is already reserved."
            )

        reservation = IPReservation(ip_address=address, name=name, comment=comment)
        self.ip_reservations.append(reservation)
        return reservation

    def reserve_net_mgmt_ips(
        self,
        spines: list[str],
        leafs: list[str],
        leafbmcs: list[str],
        cdus: list[str],
        extra_slots: int = 0,
        aggregations: list[str] | None = None,
    ) -> None:
        """
        Reserve one address per management switch, then spare slots.

        Reservations are named ``sw-spine-001``, ``sw-leaf-001``,
        ``sw-leaf-bmc-001``, ``sw-agg-001`` and ``sw-cdu-001`` with the switch
        xname as the comment. Spare slots are ``mgmt_net_NNN``, numbered after
        the switches.
        """
        groups = [
            ("sw-spine", spines),
            ("sw-leaf", leafs),
            ("sw-leaf-bmc", leafbmcs),
            ("sw-agg", aggregations or []),
            ("sw-cdu", cdus),
        ]
        count = 0
        for prefix, xnames in groups:
            for index, xname in enumerate(xnames, start=1):
                self.add_reservation(f"{prefix}-{index:03d}", xname)
                count += 1

        for slot in range(count + 1, count + extra_slots + 1):
            self.add_reservation(f"mgmt_net_{slot:03d}", "")

    def update_dhcp_range(self, supernet_hack: bool) -> None:
        """
        Place the dynamic range after the reservations.

        The range starts at network+10, or later if there are more than eight
        reservations. It ends just below broadcast, or 200 addresses after the
        start when the supernet hack is on (the widened mask makes the
        broadcast address meaningless). ``uai_macvlan`` records the range as
        its static reservation range instead.

        Raises:
            AllocationError: If there are more reservations than usable addresses.
        """
        if len(self.ip_reservations) > self.usable_host_addresses():
            raise AllocationError(
                f"Could not create {self.full_name} subnet in {self.net_name}. "
                f"There are {len(self.ip_reservations)} reservations and only "
                f"{self.usable_host_addresses()} usable ip addresses in the subnet {self.cidr}."
            )

        static_limit = add(self.cidr.ip, 10)
        dynamic_limit = add(self.cidr.ip, len(self.ip_reservations) + 2)
        start = max(static_limit, dynamic_limit)
        if supernet_hack:
            end = add(start, 200)
        else:
            end = add(self.cidr.network.broadcast_address, -1)

        if self.name == UAI_MACVLAN_SUBNET:
            self.reservation_start = start
            self.reservation_end = end
        else:
            self.dhcp_start = start
            self.dhcp_end = end

    def gen_interface_name(self, parent_device: str | None = None) -> str:
        """
        Derive the host interface name for this subnet.

        Untagged subnets (VLAN 0 or 1) use the parent device itself, tagged
        ones get ``{parent}.{network}0``.

        Raises:
            ValidationError: If the network name is empty or longer than 15 bytes.
        """
        if parent_device is not None:
            self.parent_device = parent_device
        if len(self.net_name.encode()) > MAX_INTERFACE_NAME_BYTES:
            raise ValidationError(f"network name [{self.net_name}] is greater than 15 bytes")
        if not self.net_name:
            raise ValidationError(f"network name [{self.net_name}] is empty/nil")

        if self.vlan_id in (0, 1):
            self.interface_name = self.parent_device
        else:
            self.interface_name = f"{self.parent_device}.{self.net_name.lower()}0"
        return self.interface_name


@dataclass
class IPV4Network:
    """
    A named supernet and the subnets carved from it.

    Attributes:
        name: Short name (``HMN``, ``NMN_MTN``).
        full_name: Human readable name.
        cidr: The supernet.
        vlan_range: ``[min, max]`` VLANs used by the subnets.
        mtu: Interface MTU.
        net_type: ``ethernet`` or ``slingshot10``.
        comment: Free text.
        parent_device: Host bond the network is tagged on.
        subnets: Subnets in carve order.
    """

    name: str
    cidr: IPv4Network
    full_name: str = ""
    vlan_range: list[int] = field(default_factory=lambda: [0, 0])
    mtu: int = 9000
    net_type: str = "ethernet"
    comment: str = ""
    parent_device: str = ""
    subnets: list[IPV4Subnet] = field(default_factory=list)

    def allocated_subnets(self) -> list[IPv4Network]:
        return [s.network for s in self.subnets]

    def allocated_vlans(self) -> list[int]:
        """VLANs of all tagged subnets, in subnet order."""
        return [s.vlan_id for s in self.subnets if s.vlan_id > 0]

    def _append(self, cidr: IPv4Network, name: str, vlan_id: int) -> IPV4Subnet:
        subnet = IPV4Subnet(
            cidr=IPv4Interface((cidr.network_address, cidr.prefixlen)),
            name=name,
            net_name=self.name,
            gateway=add(cidr.network_address, 1),
            vlan_id=vlan_id,
        )
        self.subnets.append(subnet)
        logger.debug("Added subnet", network=self.name, subnet=name, cidr=str(cidr), vlan=vlan_id)
        return subnet

    def add_subnet_by_cidr(self, cidr: IPv4Network | str, name: str, vlan_id: int) -> IPV4Subnet:
        """
        Add a subnet at a caller-chosen CIDR.

        Raises:
            AllocationError: If the CIDR is outside the network or overlaps a subnet.
        """
        desired = IPv4Network(cidr) if isinstance(cidr, str) else cidr
        if not contains(self.cidr, desired):
            raise AllocationError(f"subnet {desired} is not part of {self.cidr}")
        for existing in self.subnets:
            if existing.network.overlaps(desired):
                raise AllocationError(
                    f"subnet {desired} overlaps {existing.name} ({existing.network}) in {self.name}"
                )
        return self._append(desired, name, vlan_id)

    def add_subnet(self, prefixlen: int, name: str, vlan_id: int) -> IPV4Subnet:
        """
        Carve the lowest free ``/prefixlen`` block.

        Raises:
            AllocationError: If no block of that size is free.
        """
        block = free(self.cidr, prefixlen, self.allocated_subnets())
        return self._append(block, name, vlan_id)

    def add_biggest_subnet(self, prefixlen: int, name: str, vlan_id: int) -> IPV4Subnet:
        """
        Carve the largest free block no bigger than ``/prefixlen``, down to /28.

        Raises:
            AllocationError: If not even a /28 is free.
        """
        for candidate in range(prefixlen, 29):
            try:
                return self.add_subnet(candidate, name, vlan_id)
            except AllocationError:
                continue
        raise AllocationError(
            f"no room for {name} subnet within {self.name} (tried from /{prefixlen} to /29)"
        )

    def lookup_subnet(self, name: str) -> IPV4Subnet:
        """
        Find the single subnet with this exact name.

        Raises:
            ResourceNotFoundError: If no subnet has the name.
            AllocationError: If more than one subnet has the name.
        """
        found = [s for s in self.subnets if s.name == name]
        if not found:
            raise ResourceNotFoundError("Subnet", f'"{name}"')
        if len(found) > 1:
            raise AllocationError(f"found {len(found)} subnets instead of just one")
        return found[0]

    def subnet_by_name(self, name: str) -> IPV4Subnet | None:
        """Case-insensitive lookup. Returns None when absent."""
        for subnet in self.subnets:
            if subnet.name.casefold() == name.casefold():
                return subnet
        return None

    def gen_subnets(
        self,
        groups: Iterable[CabinetGroupDetail],
        prefixlen: int,
        cabinet_filter: CabinetFilter,
    ) -> list[IPV4Subnet]:
        """
        Carve one ``cabinet_{id}`` subnet per cabinet accepted by the filter.

        Cabinets are visited in increasing ID order. A cabinet's VLAN is its
        NMN or HMN override (by network name prefix) when set, otherwise
        ``vlan_range[0]`` plus the cabinet's position in its group. The
        network's ``vlan_range`` becomes the span of all its cabinet VLANs.

        Args:
            groups: Cabinet groups with populated details.
            prefixlen: Prefix length of each cabinet subnet.
            cabinet_filter: Selects the cabinets that get a subnet.

        Returns:
            list[IPV4Subnet]: The new subnets, in carve order.

        Raises:
            AllocationError: If the network runs out of space.
        """
        selected = []
        for group in groups:
            for position, cabinet in enumerate(group.cabinet_details):
                if cabinet_filter(group, cabinet):
                    selected.append((cabinet, position))
        selected.sort(key=lambda item: item[0].id)

        used = self.allocated_subnets()
        base_vlan = self.vlan_range[0]
        new_subnets: list[IPV4Subnet] = []
        for cabinet, position in selected:
            block = free(self.cidr, prefixlen, used)
            used.append(block)

            vlan_id = 0
            if self.name.startswith("NMN"):
                vlan_id = cabinet.nmn_vlan_id
            if self.name.startswith("HMN"):
                vlan_id = cabinet.hmn_vlan_id
            if vlan_id == 0:
                vlan_id = position + base_vlan

            subnet = self._append(block, f"cabinet_{cabinet.id}", vlan_id)
            subnet.update_dhcp_range(False)
            new_subnets.append(subnet)

        if new_subnets:
            vlans = [s.vlan_id for s in self.subnets if s.name.startswith("cabinet_")]
            self.vlan_range = [min(vlans), max(vlans)]
        return new_subnets

    def apply_supernet_hack(self) -> None:
        """
        Give the infrastructure subnets the supernet's gateway and mask.

        Only ``bootstrap_dhcp``, ``network_hardware``, ``can_metallb_static_pool``
        and ``can_metallb_address_pool`` are touched; missing ones are skipped.
        Each keeps its own starting address. This deliberately overlaps
        broadcast domains and must run after all subnets are carved.
        """
        gateway = add(self.cidr.network_address, 1)
        for name in SUPERNET_HACK_SUBNETS:
            try:
                subnet = self.lookup_subnet(name)
            except (ResourceNotFoundError, AllocationError):
                continue
            subnet.gateway = gateway
            subnet.cidr = IPv4Interface((subnet.cidr.ip, self.cidr.prefixlen))
            logger.debug("Applied supernet hack", network=self.name, subnet=name)
