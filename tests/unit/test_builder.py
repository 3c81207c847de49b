"""Tests for default network layouts and the CSM network builder.

Expected addresses follow from the default address plan with two spines,
one leaf, one LeafBMC and two CDU switches.
"""

from ipaddress import IPv4Address, IPv4Interface, IPv4Network

import pytest

from src.siteinit.config import NetworkSettings
from src.siteinit.networking import (
    NetworkLayoutConfiguration,
    build_csm_networks,
    create_net_from_layout_config,
    default_layouts,
    network_template,
)
from src.siteinit.utils.exceptions import (
    AllocationError,
    ConfigurationError,
    ValidationError,
)


@pytest.fixture
def networks(network_settings, cabinet_groups, switches):
    layouts = default_layouts(network_settings, cabinet_groups, switches)
    return build_csm_networks(layouts, cabinet_groups, switches, network_settings)


def _reservations(subnet) -> list[tuple[str, str]]:
    return [(r.name, str(r.ip_address)) for r in subnet.ip_reservations]


class TestDefaultLayouts:
    """Test which layouts a site gets."""

    def test_all_cabinet_classes(self, network_settings, cabinet_groups, switches):
        layouts = default_layouts(network_settings, cabinet_groups, switches)

        assert list(layouts) == [
            "CMN",
            "HMN",
            "HSN",
            "MTL",
            "NMN",
            "HMN_MTN",
            "HMN_RVR",
            "NMN_MTN",
            "NMN_RVR",
        ]

    def test_can_only_when_configured(self, cabinet_groups, switches):
        settings = NetworkSettings(can_cidr="10.102.11.0/24")

        layouts = default_layouts(settings, cabinet_groups, switches)

        assert "CAN" in layouts
        assert layouts["CAN"].base_vlan == 6

    def test_river_only(self, network_settings, river_group, switches):
        layouts = default_layouts(network_settings, [river_group], switches)

        assert "HMN_RVR" in layouts
        assert "HMN_MTN" not in layouts
        assert "NMN_MTN" not in layouts

    def test_hill_counts_as_liquid_cooled(self, network_settings, hill_group, switches):
        layouts = default_layouts(network_settings, [hill_group], switches)

        assert "HMN_MTN" in layouts
        assert "HMN_RVR" not in layouts

    def test_bootstrap_vlans(self, cabinet_groups, switches):
        settings = NetworkSettings(hmn_bootstrap_vlan=40, nmn_bootstrap_vlan=20)

        layouts = default_layouts(settings, cabinet_groups, switches)

        assert layouts["HMN"].base_vlan == 40
        assert layouts["NMN"].base_vlan == 20
        assert layouts["HMN_RVR"].base_vlan == 1513

    def test_duplicate_vlan(self, cabinet_groups, switches):
        settings = NetworkSettings(hmn_bootstrap_vlan=2)

        with pytest.raises(ConfigurationError, match="Unable to allocate VLAN range"):
            default_layouts(settings, cabinet_groups, switches)

    def test_grouped_layout_only_carves_cabinets(self, network_settings, cabinet_groups, switches):
        layout = default_layouts(network_settings, cabinet_groups, switches)["NMN_RVR"]

        assert layout.subdivide_by_cabinet
        assert not layout.include_bootstrap_dhcp
        assert not layout.include_uai_subnet
        assert not layout.supernet_hack

    def test_unknown_template(self):
        with pytest.raises(ConfigurationError, match="no network template named BOGUS"):
            network_template("BOGUS", "10.0.0.0/24")

    def test_template_drops_host_bits(self):
        assert network_template("MTL", "10.1.1.0/16").cidr == IPv4Network("10.1.0.0/16")


class TestHMN:
    """Test the HMN network."""

    def test_network_hardware(self, networks):
        hardware = networks["HMN"].lookup_subnet("network_hardware")

        assert hardware.cidr == IPv4Interface("10.254.0.0/17")
        assert hardware.vlan_id == 4
        assert _reservations(hardware) == [
            ("sw-spine-001", "10.254.0.2"),
            ("sw-spine-002", "10.254.0.3"),
            ("sw-leaf-001", "10.254.0.4"),
            ("sw-leaf-bmc-001", "10.254.0.5"),
            ("sw-cdu-001", "10.254.0.6"),
            ("sw-cdu-002", "10.254.0.7"),
        ]
        assert hardware.ip_reservations[3].comment == "x3000c0w14"

    def test_bootstrap_dhcp(self, networks):
        bootstrap = networks["HMN"].lookup_subnet("bootstrap_dhcp")

        assert str(bootstrap.cidr) == "10.254.1.0/17"
        assert bootstrap.gateway == IPv4Address("10.254.0.1")
        assert bootstrap.full_name == "HMN Bootstrap DHCP Subnet"
        assert _reservations(bootstrap) == [("kubeapi-vip", "10.254.1.2")]
        assert bootstrap.dhcp_start == IPv4Address("10.254.1.10")
        assert bootstrap.dhcp_end == IPv4Address("10.254.1.210")

    def test_no_cabinet_subnets(self, networks):
        assert [s.name for s in networks["HMN"].subnets] == ["network_hardware", "bootstrap_dhcp"]


class TestNMN:
    """Test the NMN network."""

    def test_bootstrap_reservations(self, networks):
        bootstrap = networks["NMN"].lookup_subnet("bootstrap_dhcp")

        assert _reservations(bootstrap) == [
            ("kubeapi-vip", "10.252.1.2"),
            ("rgw-vip", "10.252.1.3"),
        ]

    def test_uai_macvlan(self, networks):
        uai = networks["NMN"].lookup_subnet("uai_macvlan")

        assert uai.cidr == IPv4Interface("10.252.2.0/23")
        assert uai.gateway == IPv4Address("10.252.0.1")
        assert uai.vlan_id == 2
        assert _reservations(uai) == [
            ("pbs_comm_service", "10.252.2.2"),
            ("pbs_service", "10.252.2.3"),
            ("slurmctld_service", "10.252.2.4"),
            ("slurmdbd_service", "10.252.2.5"),
            ("uai_macvlan_bridge", "10.252.2.6"),
        ]
        assert uai.ip_reservations[2].aliases == ["slurmctld-service", "slurmctld-service-nmn"]
        assert uai.reservation_start == IPv4Address("10.252.2.10")
        assert uai.dhcp_start is None


class TestCMN:
    """Test the CMN network."""

    def test_pools(self, networks):
        cmn = networks["CMN"]
        static = cmn.lookup_subnet("cmn_metallb_static_pool")
        dynamic = cmn.lookup_subnet("cmn_metallb_address_pool")

        assert static.cidr == IPv4Interface("10.103.6.112/28")
        assert static.metallb_pool_name == "customer-management-static"
        assert dynamic.cidr == IPv4Interface("10.103.6.128/25")
        assert dynamic.metallb_pool_name == "customer-management"

    def test_network_hardware_sized_for_switches(self, networks):
        hardware = networks["CMN"].lookup_subnet("network_hardware")

        # Six switches fit a /28; the supernet hack then widens it
        assert str(hardware.cidr) == "10.103.6.0/24"
        assert len(hardware.ip_reservations) == 6

    def test_bootstrap_dhcp_fits_remaining_space(self, networks):
        bootstrap = networks["CMN"].lookup_subnet("bootstrap_dhcp")

        assert bootstrap.cidr.ip == IPv4Address("10.103.6.32")
        assert bootstrap.vlan_id == 7

    def test_external_dns(self, cabinet_groups, switches):
        settings = NetworkSettings(cmn_external_dns="10.103.6.113")
        layouts = default_layouts(settings, cabinet_groups, switches)

        networks = build_csm_networks(layouts, cabinet_groups, switches, settings)

        static = networks["CMN"].lookup_subnet("cmn_metallb_static_pool")
        assert _reservations(static) == [("external-dns", "10.103.6.113")]

    def test_pool_outside_network(self, cabinet_groups, switches):
        settings = NetworkSettings(cmn_static_pool="10.1.0.0/28")
        layouts = default_layouts(settings, cabinet_groups, switches)

        with pytest.raises(AllocationError, match="Couldn't add CMN Network"):
            build_csm_networks(layouts, cabinet_groups, switches, settings)


class TestCAN:
    """Test the optional CAN network."""

    def test_bootstrap_spans_can(self, cabinet_groups, switches):
        settings = NetworkSettings(
            can_cidr="10.102.11.0/24",
            can_gateway="10.102.11.1",
            can_static_pool="10.102.11.112/28",
            can_dynamic_pool="10.102.11.128/25",
        )
        layouts = default_layouts(settings, cabinet_groups, switches)

        networks = build_csm_networks(layouts, cabinet_groups, switches, settings)

        bootstrap = networks["CAN"].lookup_subnet("bootstrap_dhcp")
        assert bootstrap.cidr == IPv4Interface("10.102.11.0/24")
        assert bootstrap.gateway == IPv4Address("10.102.11.1")
        assert [name for name, _ in _reservations(bootstrap)] == [
            "can-switch-1",
            "can-switch-2",
            "kubeapi-vip",
        ]
        assert networks["CAN"].lookup_subnet("can_metallb_address_pool").vlan_id == 6


class TestCabinetNetworks:
    """Test the per-cabinet networks."""

    def test_river(self, networks):
        hmn = networks["HMN_RVR"].lookup_subnet("cabinet_3000")
        nmn = networks["NMN_RVR"].lookup_subnet("cabinet_3000")

        assert hmn.cidr == IPv4Interface("10.107.0.0/22")
        assert hmn.vlan_id == 1513
        assert nmn.cidr == IPv4Interface("10.106.0.0/22")
        assert nmn.vlan_id == 1770

    def test_mountain_before_hill(self, networks):
        subnets = networks["HMN_MTN"].subnets

        assert [(s.name, str(s.network), s.vlan_id) for s in subnets] == [
            ("cabinet_1000", "10.104.0.0/22", 3000),
            ("cabinet_9000", "10.104.4.0/22", 3000),
        ]

    def test_vlan_range_follows_cabinets(self, networks):
        assert networks["HMN_RVR"].vlan_range == [1513, 1513]


class TestLoadBalancers:
    """Test the NMNLB and HMNLB networks."""

    def test_present_last(self, networks):
        assert list(networks)[-2:] == ["NMNLB", "HMNLB"]

    def test_nmn_pinned_reservations(self, networks):
        pool = networks["NMNLB"].lookup_subnet("nmn_metallb_address_pool")
        reservations = pool.reservations_by_name()

        assert reservations["istio-ingressgateway"].ip_address == IPv4Address("10.92.100.71")
        assert reservations["cray-tftp"].ip_address == IPv4Address("10.92.100.60")
        assert "packages" in reservations["istio-ingressgateway"].aliases
        assert pool.metallb_pool_name == "node-management"

    def test_hmn_aliases_filtered(self, networks):
        pool = networks["HMNLB"].lookup_subnet("hmn_metallb_address_pool")

        assert pool.lookup_reservation("istio-ingressgateway").aliases == [
            "api-gw-service",
            "api_gw_service",
            "spire",
        ]
        assert pool.vlan_id == 4


class TestCreateNetFromLayoutConfig:
    """Test building a single network from a layout."""

    def test_template_not_modified(self, network_settings, switches):
        layout = NetworkLayoutConfiguration(
            template=network_template("MTL", network_settings.mtl_cidr),
            include_bootstrap_dhcp=True,
            include_networking_hardware_subnet=True,
            management_switches=switches,
        )

        net = create_net_from_layout_config(layout, network_settings)

        assert layout.template.subnets == []
        assert [s.name for s in net.subnets] == ["network_hardware", "bootstrap_dhcp"]
        assert net.lookup_subnet("bootstrap_dhcp").ip_reservations == []

    def test_hardware_subnet_needs_switches(self, network_settings):
        layout = NetworkLayoutConfiguration(
            template=network_template("HMN", network_settings.hmn_cidr),
            include_networking_hardware_subnet=True,
        )

        with pytest.raises(ValidationError, match="without ManagementSwitches"):
            create_net_from_layout_config(layout, network_settings)

    def test_cabinet_subnets_need_cabinets(self, network_settings):
        layout = NetworkLayoutConfiguration(
            template=network_template("HMN_RVR", network_settings.hmn_rvr_cidr),
            subdivide_by_cabinet=True,
        )

        with pytest.raises(ValidationError, match="without a list of cabinet details"):
            create_net_from_layout_config(layout, network_settings)

    def test_ungrouped_cabinets_in_class_order(self, network_settings, cabinet_groups):
        layout = NetworkLayoutConfiguration(
            template=network_template("NMN", network_settings.nmn_cidr),
            subdivide_by_cabinet=True,
            cabinet_details=cabinet_groups,
        )

        net = create_net_from_layout_config(layout, network_settings)

        assert [s.name for s in net.subnets] == ["cabinet_3000", "cabinet_9000", "cabinet_1000"]
