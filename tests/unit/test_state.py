"""Tests for SLS document serialization."""

import json
from ipaddress import IPv4Address, IPv4Interface, IPv4Network

from src.siteinit.models.cabinets import CabinetClass
from src.siteinit.models.hardware import NodeProperties, build_hardware
from src.siteinit.networking import IPReservation, IPV4Network, IPV4Subnet
from src.siteinit.sls.state import (
    SLSState,
    network_to_sls,
    networks_to_dict,
    reservation_to_sls,
    subnet_to_sls,
)
from src.siteinit.xname import Cabinet, Node


def _network() -> IPV4Network:
    subnet = IPV4Subnet(
        cidr=IPv4Interface("10.254.0.0/24"),
        name="network_hardware",
        full_name="HMN Management Network Infrastructure",
        vlan_id=4,
        gateway=IPv4Address("10.254.0.1"),
        ip_reservations=[
            IPReservation(
                ip_address=IPv4Address("10.254.0.2"), name="sw-spine-001", comment="x3000c0h33s1"
            )
        ],
    )
    return IPV4Network(
        name="HMN",
        cidr=IPv4Network("10.254.0.0/17"),
        full_name="Hardware Management Network",
        vlan_range=[4],
        subnets=[subnet],
    )


class TestReservationToSLS:
    """Test reservation_to_sls()."""

    def test_minimal(self):
        reservation = IPReservation(ip_address=IPv4Address("10.252.1.2"), name="kubeapi-vip")

        assert reservation_to_sls(reservation) == {"Name": "kubeapi-vip", "IPAddress": "10.252.1.2"}

    def test_aliases_and_comment(self):
        reservation = IPReservation(
            ip_address=IPv4Address("10.252.2.2"),
            name="pbs_comm_service",
            comment="pbs-comm-service",
            aliases=["pbs-comm-service-nmn"],
        )

        data = reservation_to_sls(reservation)

        assert data["Aliases"] == ["pbs-comm-service-nmn"]
        assert data["Comment"] == "pbs-comm-service"


class TestSubnetToSLS:
    """Test subnet_to_sls()."""

    def test_empty_fields_omitted(self):
        subnet = IPV4Subnet(cidr=IPv4Interface("10.1.0.0/16"), name="bootstrap_dhcp")

        data = subnet_to_sls(subnet)

        assert data == {
            "FullName": "",
            "CIDR": "10.1.0.0/16",
            "Name": "bootstrap_dhcp",
            "VlanID": 0,
            "Gateway": None,
        }

    def test_supernet_cidr_keeps_start_address(self):
        subnet = IPV4Subnet(
            cidr=IPv4Interface("10.254.1.0/17"),
            name="bootstrap_dhcp",
            gateway=IPv4Address("10.254.0.1"),
            dhcp_start=IPv4Address("10.254.1.10"),
            dhcp_end=IPv4Address("10.254.1.210"),
        )

        data = subnet_to_sls(subnet)

        assert data["CIDR"] == "10.254.1.0/17"
        assert data["Gateway"] == "10.254.0.1"
        assert data["DHCPStart"] == "10.254.1.10"
        assert data["DHCPEnd"] == "10.254.1.210"

    def test_reservations_and_pool(self):
        subnet = IPV4Subnet(
            cidr=IPv4Interface("10.92.100.0/24"),
            name="nmn_metallb_address_pool",
            metallb_pool_name="node-management",
            ip_reservations=[IPReservation(ip_address=IPv4Address("10.92.100.71"), name="istio")],
        )

        data = subnet_to_sls(subnet)

        assert data["MetalLBPoolName"] == "node-management"
        assert data["IPReservations"] == [{"Name": "istio", "IPAddress": "10.92.100.71"}]


class TestNetworkToSLS:
    """Test network_to_sls()."""

    def test_shape(self):
        data = network_to_sls(_network())

        assert data["Name"] == "HMN"
        assert data["FullName"] == "Hardware Management Network"
        assert data["IPRanges"] == ["10.254.0.0/17"]
        assert data["Type"] == "ethernet"
        extra = data["ExtraProperties"]
        assert extra["CIDR"] == "10.254.0.0/17"
        assert extra["VlanRange"] == [4]
        assert extra["MTU"] == 9000
        assert "Comment" not in extra
        assert extra["Subnets"][0]["IPReservations"][0]["Comment"] == "x3000c0h33s1"

    def test_networks_sorted_by_name(self):
        networks = {"NMN": _network(), "HMN": _network()}

        assert list(networks_to_dict(networks)) == ["HMN", "NMN"]


class TestSLSState:
    """Test the SLS document."""

    def _state(self) -> SLSState:
        node = build_hardware(
            Node(3000, 0, 1, 0, 0),
            CabinetClass.RIVER,
            NodeProperties(nid=100001, role="Management", sub_role="Master", aliases=["ncn-m001"]),
        )
        cabinet = build_hardware(Cabinet(3000), CabinetClass.RIVER)
        return SLSState(
            hardware={node.xname: node, cabinet.xname: cabinet},
            networks={"HMN": _network()},
        )

    def test_to_dict(self):
        data = self._state().to_dict()

        assert list(data["Hardware"]) == ["x3000", "x3000c0s1b0n0"]
        node = data["Hardware"]["x3000c0s1b0n0"]
        assert node["Parent"] == "x3000c0s1b0"
        assert node["Type"] == "comptype_node"
        assert node["Class"] == "River"
        assert node["TypeString"] == "Node"
        assert node["ExtraProperties"] == {
            "NID": 100001,
            "Role": "Management",
            "SubRole": "Master",
            "Aliases": ["ncn-m001"],
        }
        assert "ExtraProperties" not in data["Hardware"]["x3000"]
        assert list(data["Networks"]) == ["HMN"]

    def test_write_json(self, tmp_path):
        path = tmp_path / "out" / "sls_input_file.json"

        self._state().write_json(path)

        text = path.read_text()
        assert text.endswith("}\n")
        assert json.loads(text)["Hardware"]["x3000"]["TypeString"] == "Cabinet"

    def test_hardware_by_type(self):
        assert self._state().hardware_by_type() == {"Cabinet": 1, "Node": 1}
