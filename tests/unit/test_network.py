"""Tests for networks, subnets and reservations."""

from ipaddress import IPv4Address, IPv4Interface, IPv4Network

import pytest

from src.siteinit.networking.network import IPV4Network, IPV4Subnet
from src.siteinit.utils.exceptions import (
    AllocationError,
    ResourceNotFoundError,
    ValidationError,
)


@pytest.fixture
def hmn() -> IPV4Network:
    return IPV4Network(name="HMN", cidr=IPv4Network("10.254.0.0/17"), vlan_range=[4, 4])


def _subnet(cidr: str, name: str = "test", net_name: str = "HMN") -> IPV4Subnet:
    return IPV4Subnet(cidr=IPv4Interface(cidr), name=name, net_name=net_name)


class TestReservations:
    """Test subnet address reservations."""

    def test_sequential_from_network_plus_two(self):
        subnet = _subnet("10.254.1.0/24")

        first = subnet.add_reservation("a")
        second = subnet.add_reservation("b", "comment")

        assert first.ip_address == IPv4Address("10.254.1.2")
        assert second.ip_address == IPv4Address("10.254.1.3")
        assert second.comment == "comment"

    def test_skips_taken_addresses(self):
        subnet = _subnet("10.254.1.0/24")
        subnet.add_reservation_with_ip("fixed", "10.254.1.2")

        assert subnet.add_reservation("next").ip_address == IPv4Address("10.254.1.3")

    def test_exhausted(self):
        subnet = _subnet("10.0.0.0/30")
        subnet.add_reservation("only")

        with pytest.raises(AllocationError, match="exhausted its available addresses"):
            subnet.add_reservation("one-too-many")

    @pytest.mark.parametrize("cidr", ["10.0.0.0/31", "10.0.0.4/32"])
    def test_point_to_point_has_no_room(self, cidr):
        subnet = _subnet(cidr)

        with pytest.raises(AllocationError, match="exhausted its available addresses"):
            subnet.add_reservation("first")
        assert subnet.ip_reservations == []

    def test_pin(self):
        subnet = _subnet("10.92.100.0/24", name="nmn_metallb_address_pool")

        reservation = subnet.add_reservation_with_pin("cray-tftp", "tftp-service,tftp", 60)

        assert reservation.ip_address == IPv4Address("10.92.100.60")
        assert reservation.aliases == ["tftp-service", "tftp"]

    def test_pin_ignores_existing(self):
        subnet = _subnet("10.92.100.0/24")
        subnet.add_reservation_with_pin("a", "", 71)

        reservation = subnet.add_reservation_with_pin("b", "", 71)

        assert reservation.ip_address == IPv4Address("10.92.100.71")
        assert reservation.aliases == []

    def test_with_ip_outside_subnet(self):
        subnet = _subnet("10.254.1.0/24", name="bootstrap_dhcp")

        with pytest.raises(AllocationError, match="is not part of"):
            subnet.add_reservation_with_ip("kubeapi-vip", "10.254.2.2")

    def test_with_ip_already_reserved(self):
        subnet = _subnet("10.254.1.0/24")
        subnet.add_reservation_with_ip("a", "10.254.1.5")

        with pytest.raises(AllocationError, match="already reserved"):
            subnet.add_reservation_with_ip("b", "10.254.1.5")

    def test_alias_deduplicated(self):
        reservation = _subnet("10.254.1.0/24").add_reservation("a")

        reservation.add_reservation_alias("x")
        reservation.add_reservation_alias("x")

        assert reservation.aliases == ["x"]

    def test_lookup(self):
        subnet = _subnet("10.254.1.0/24")
        subnet.add_reservation("a")

        assert subnet.lookup_reservation("a").ip_address == IPv4Address("10.254.1.2")
        with pytest.raises(ResourceNotFoundError):
            subnet.lookup_reservation("missing")


class TestReserveNetMgmtIps:
    """Test management switch reservations."""

    def test_order_and_names(self):
        subnet = _subnet("10.254.0.0/24", name="network_hardware")

        subnet.reserve_net_mgmt_ips(
            spines=["x3000c0h33s1", "x3000c0h34s1"],
            leafs=["x3000c0h35s1"],
            leafbmcs=["x3000c0w14"],
            cdus=["d0w1"],
            extra_slots=2,
            aggregations=["x3000c0h36s1"],
        )

        assert [(r.name, str(r.ip_address), r.comment) for r in subnet.ip_reservations] == [
            ("sw-spine-001", "10.254.0.2", "x3000c0h33s1"),
            ("sw-spine-002", "10.254.0.3", "x3000c0h34s1"),
            ("sw-leaf-001", "10.254.0.4", "x3000c0h35s1"),
            ("sw-leaf-bmc-001", "10.254.0.5", "x3000c0w14"),
            ("sw-agg-001", "10.254.0.6", "x3000c0h36s1"),
            ("sw-cdu-001", "10.254.0.7", "d0w1"),
            ("mgmt_net_006", "10.254.0.8", ""),
            ("mgmt_net_007", "10.254.0.9", ""),
        ]


class TestDhcpRange:
    """Test dynamic range placement."""

    def test_default_start(self):
        subnet = _subnet("10.254.1.0/24")

        subnet.update_dhcp_range(supernet_hack=False)

        assert subnet.dhcp_start == IPv4Address("10.254.1.10")
        assert subnet.dhcp_end == IPv4Address("10.254.1.254")

    def test_supernet_hack_end(self):
        subnet = _subnet("10.254.1.0/24")

        subnet.update_dhcp_range(supernet_hack=True)

        assert subnet.dhcp_end == IPv4Address("10.254.1.210")

    def test_many_reservations_push_start(self):
        subnet = _subnet("10.254.1.0/24")
        for index in range(12):
            subnet.add_reservation(f"r{index}")

        subnet.update_dhcp_range(supernet_hack=False)

        assert subnet.dhcp_start == IPv4Address("10.254.1.14")

    def test_uai_macvlan_uses_reservation_range(self):
        subnet = _subnet("10.252.2.0/23", name="uai_macvlan", net_name="NMN")

        subnet.update_dhcp_range(supernet_hack=False)

        assert subnet.reservation_start == IPv4Address("10.252.2.10")
        assert subnet.reservation_end == IPv4Address("10.252.3.254")
        assert subnet.dhcp_start is None

    def test_too_many_reservations(self):
        subnet = _subnet("10.0.0.0/30")
        for last_octet in range(3):
            subnet.add_reservation_with_pin(f"r{last_octet}", "", last_octet)

        with pytest.raises(AllocationError, match="There are 3 reservations"):
            subnet.update_dhcp_range(supernet_hack=False)


class TestInterfaceName:
    """Test interface name derivation."""

    def test_tagged(self):
        subnet = _subnet("10.254.1.0/24", net_name="HMN")
        subnet.vlan_id = 4

        assert subnet.gen_interface_name("bond0") == "bond0.hmn0"

    @pytest.mark.parametrize("vlan", [0, 1])
    def test_untagged(self, vlan):
        subnet = _subnet("10.252.1.0/24", net_name="NMN")
        subnet.vlan_id = vlan

        assert subnet.gen_interface_name("bond0") == "bond0"

    def test_name_too_long(self):
        subnet = _subnet("10.0.0.0/24", net_name="A_VERY_LONG_NETWORK")

        with pytest.raises(ValidationError, match="greater than 15 bytes"):
            subnet.gen_interface_name("bond0")

    def test_name_empty(self):
        subnet = _subnet("10.0.0.0/24", net_name="")

        with pytest.raises(ValidationError, match="empty"):
            subnet.gen_interface_name("bond0")


class TestIPV4Network:
    """Test subnet carving on a network."""

    def test_add_subnet(self, hmn):
        first = hmn.add_subnet(24, "network_hardware", 4)
        second = hmn.add_subnet(24, "bootstrap_dhcp", 4)

        assert first.cidr == IPv4Interface("10.254.0.0/24")
        assert second.cidr == IPv4Interface("10.254.1.0/24")
        assert second.gateway == IPv4Address("10.254.1.1")
        assert second.net_name == "HMN"

    def test_add_subnet_by_cidr(self, hmn):
        subnet = hmn.add_subnet_by_cidr("10.254.8.0/24", "custom", 0)

        assert subnet.network == IPv4Network("10.254.8.0/24")

    def test_add_subnet_by_cidr_outside(self, hmn):
        with pytest.raises(AllocationError, match="is not part of"):
            hmn.add_subnet_by_cidr("10.1.0.0/24", "custom", 0)

    def test_add_subnet_by_cidr_overlap(self, hmn):
        hmn.add_subnet(22, "cabinet_3000", 1513)

        with pytest.raises(AllocationError, match="overlaps cabinet_3000"):
            hmn.add_subnet_by_cidr("10.254.1.0/24", "custom", 0)

    def test_add_biggest_subnet_shrinks(self):
        network = IPV4Network(name="CMN", cidr=IPv4Network("10.103.6.0/24"))
        network.add_subnet_by_cidr("10.103.6.0/25", "used", 0)

        subnet = network.add_biggest_subnet(24, "bootstrap_dhcp", 7)

        assert subnet.network == IPv4Network("10.103.6.128/25")

    def test_add_biggest_subnet_full(self):
        network = IPV4Network(name="CMN", cidr=IPv4Network("10.103.6.0/24"))
        network.add_subnet_by_cidr("10.103.6.0/24", "used", 0)

        with pytest.raises(AllocationError, match="no room for extra subnet"):
            network.add_biggest_subnet(24, "extra", 7)

    def test_lookup_subnet(self, hmn):
        hmn.add_subnet(24, "network_hardware", 4)

        assert hmn.lookup_subnet("network_hardware").name == "network_hardware"
        with pytest.raises(ResourceNotFoundError):
            hmn.lookup_subnet("Network_Hardware")
        assert hmn.subnet_by_name("NETWORK_HARDWARE") is not None
        assert hmn.subnet_by_name("missing") is None

    def test_lookup_subnet_ambiguous(self, hmn):
        hmn.add_subnet(24, "dup", 4)
        hmn.add_subnet(24, "dup", 4)

        with pytest.raises(AllocationError, match="found 2 subnets"):
            hmn.lookup_subnet("dup")

    def test_allocated_vlans(self, hmn):
        hmn.add_subnet(24, "a", 0)
        hmn.add_subnet(24, "b", 4)

        assert hmn.allocated_vlans() == [4]

    def test_supernet_hack(self, hmn):
        hmn.add_subnet(24, "network_hardware", 4)
        hmn.add_subnet(24, "bootstrap_dhcp", 4)
        hmn.add_subnet(24, "other", 4)

        hmn.apply_supernet_hack()

        hardware = hmn.lookup_subnet("network_hardware")
        assert hardware.cidr == IPv4Interface("10.254.0.0/17")
        bootstrap = hmn.lookup_subnet("bootstrap_dhcp")
        assert str(bootstrap.cidr) == "10.254.1.0/17"
        assert bootstrap.gateway == IPv4Address("10.254.0.1")
        other = hmn.lookup_subnet("other")
        assert other.cidr == IPv4Interface("10.254.2.0/24")
        assert other.gateway == IPv4Address("10.254.2.1")


class TestGenSubnets:
    """Test per-cabinet subnet carving."""

    def test_river_cabinets(self, group_factory):
        network = IPV4Network(
            name="HMN_RVR", cidr=IPv4Network("10.107.0.0/17"), vlan_range=[1513, 1769]
        )
        group = group_factory({"type": "river", "total_number": 2, "starting_id": 3000})

        subnets = network.gen_subnets([group], 22, lambda g, c: True)

        assert [(s.name, str(s.network), s.vlan_id) for s in subnets] == [
            ("cabinet_3000", "10.107.0.0/22", 1513),
            ("cabinet_3001", "10.107.4.0/22", 1514),
        ]
        assert subnets[0].dhcp_start == IPv4Address("10.107.0.10")
        assert network.vlan_range == [1513, 1514]

    def test_vlan_override(self, group_factory):
        network = IPV4Network(
            name="NMN_MTN", cidr=IPv4Network("10.100.0.0/17"), vlan_range=[2000, 2999]
        )
        group = group_factory(
            {"type": "hill", "ids": [9000, 9001], "cabinets": [{"id": 9000, "nmn-vlan": 2100}]}
        )

        subnets = network.gen_subnets([group], 22, lambda g, c: True)

        assert [s.vlan_id for s in subnets] == [2100, 2001]

    def test_sorted_by_cabinet_id(self, group_factory):
        network = IPV4Network(
            name="HMN_MTN", cidr=IPv4Network("10.104.0.0/17"), vlan_range=[3000, 3999]
        )
        hill = group_factory({"type": "hill", "ids": [9000]})
        mountain = group_factory({"type": "mountain", "ids": [1000]})

        subnets = network.gen_subnets([hill, mountain], 22, lambda g, c: True)

        assert [s.name for s in subnets] == ["cabinet_1000", "cabinet_9000"]
        assert [s.vlan_id for s in subnets] == [3000, 3000]

    def test_filter(self, cabinet_groups):
        network = IPV4Network(
            name="HMN_RVR", cidr=IPv4Network("10.107.0.0/17"), vlan_range=[1513, 1769]
        )

        subnets = network.gen_subnets(cabinet_groups, 22, lambda g, c: g.kind == "river")

        assert [s.name for s in subnets] == ["cabinet_3000"]

    def test_no_cabinets_keeps_range(self):
        network = IPV4Network(
            name="HMN_RVR", cidr=IPv4Network("10.107.0.0/17"), vlan_range=[1513, 1769]
        )

        assert network.gen_subnets([], 22, lambda g, c: True) == []
        assert network.vlan_range == [1513, 1769]
