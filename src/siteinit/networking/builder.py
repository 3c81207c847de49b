"""Build the CSM network map from layout configurations.

Overview:
--------
Each layout is carved in a fixed order so that the same inputs always give
the same addresses:

1. Site-supplied pools (CMN/CAN MetalLB pools, the HSN base subnet)
2. ``network_hardware`` with one reservation per management switch
3. ``bootstrap_dhcp``, the biggest block that still fits
4. ``uai_macvlan`` on the NMN
5. One ``cabinet_{id}`` subnet per cabinet
6. The supernet hack, which must come last

The NMN and HMN load balancer networks are added afterwards with their
pinned MetalLB reservations.
"""

from copy import deepcopy
from ipaddress import IPv4Address, IPv4Interface

import structlog

from ..config import NetworkSettings
from ..constants import (
    DEFAULT_UAI_SUBNET_RESERVATIONS,
    PINNED_METALLB_RESERVATIONS,
    UAI_MACVLAN_PREFIXLEN,
)
from ..models.cabinets import (
    CabinetClass,
    CabinetGroupDetail,
    CabinetKind,
    cabinet_air_cooled_chassis_count_filter,
    cabinet_class_filter,
    cabinet_filter_and,
    cabinet_filter_or,
    cabinet_kind_filter,
)
from ..models.switches import ManagementSwitch, ManagementSwitchType, switch_xnames_by_type
from ..utils.exceptions import AllocationError
from .defaults import hmn_load_balancer, nmn_load_balancer
from .ipam import add
from .layout import NetworkLayoutConfiguration
from .network import IPV4Network, IPV4Subnet

logger = structlog.get_logger(__name__)

# Aliases that only resolve on the NMN
_NMN_ONLY_ALIASES = ("packages", "registry")

# (network, subnet name, settings field, full name, MetalLB pool)
_METALLB_POOLS: list[tuple[str, str, str, str, str]] = [
    (
        "CMN",
        "cmn_metallb_static_pool",
        "cmn_static_pool",
        "CMN Static Pool MetalLB",
        "customer-management-static",
    ),
    (
        "CMN",
        "cmn_metallb_address_pool",
        "cmn_dynamic_pool",
        "CMN Dynamic MetalLB",
        "customer-management",
    ),
    (
        "CAN",
        "can_metallb_static_pool",
        "can_static_pool",
        "CAN Static Pool MetalLB",
        "customer-access-static",
    ),
    (
        "CAN",
        "can_metallb_address_pool",
        "can_dynamic_pool",
        "CAN Dynamic MetalLB",
        "customer-access",
    ),
]


def _add_metallb_pools(net: IPV4Network, settings: NetworkSettings) -> None:
    vlans = {"CMN": settings.cmn_bootstrap_vlan, "CAN": settings.can_bootstrap_vlan}
    for net_name, subnet_name, setting, full_name, pool_name in _METALLB_POOLS:
        if net.name != net_name:
            continue
        cidr = getattr(settings, setting)
        if not cidr:
            logger.info("No MetalLB pool configured", network=net.name, pool=subnet_name)
            continue
        try:
            pool = net.add_subnet_by_cidr(cidr, subnet_name, vlans[net_name])
        except (AllocationError, ValueError) as e:
            raise AllocationError(
                f"IP Addressing Failure: couldn't add MetalLB pool of {cidr} to net "
                f"{net.cidr}: {e}. Possible missing or mismatched "
                f"{setting.replace('_', '-')} input value."
            ) from e
        pool.full_name = full_name
        pool.metallb_pool_name = pool_name

        if subnet_name == "cmn_metallb_static_pool" and settings.cmn_external_dns:
            pool.add_reservation_with_ip(
                "external-dns", settings.cmn_external_dns, "site to system lookups"
            )


def _add_hsn_base_subnet(net: IPV4Network, settings: NetworkSettings) -> None:
    try:
        subnet = net.add_subnet_by_cidr(settings.hsn_cidr, "hsn_base_subnet", net.vlan_range[0])
    except (AllocationError, ValueError) as e:
        raise AllocationError(
            f"IP Addressing Failure: couldn't add hsn_base_subnet of {settings.hsn_cidr} "
            f"to net {net.cidr}: {e}"
        ) from e
    subnet.full_name = "HSN Base Subnet"


def _add_bootstrap_dhcp(
    net: IPV4Network, conf: NetworkLayoutConfiguration, settings: NetworkSettings
) -> IPV4Subnet:
    try:
        subnet = net.add_biggest_subnet(
            conf.desired_bootstrap_dhcp_prefixlen, "bootstrap_dhcp", conf.base_vlan
        )
    except AllocationError as e:
        raise AllocationError(
            f"unable to add bootstrap_dhcp subnet to {net.name} because {e}"
        ) from e

    subnet.full_name = f"{net.name} Bootstrap DHCP Subnet"
    subnet.parent_device = net.parent_device

    if net.name == "CAN":
        # The CAN bootstrap subnet spans the whole CAN, pools included
        subnet.cidr = IPv4Interface(settings.can_cidr)
        if settings.can_gateway:
            subnet.gateway = IPv4Address(settings.can_gateway)
        subnet.add_reservation("can-switch-1")
        subnet.add_reservation("can-switch-2")

    for hostname in conf.reservation_hostnames:
        subnet.add_reservation(hostname)

    if net.name in ("NMN", "HMN", "CMN", "CAN"):
        subnet.add_reservation("kubeapi-vip", "k8s-virtual-ip")
        if net.name == "NMN":
            subnet.add_reservation("rgw-vip", "rgw-virtual-ip")

    subnet.update_dhcp_range(conf.supernet_hack)
    return subnet


def _add_uai_subnet(net: IPV4Network, settings: NetworkSettings) -> IPV4Subnet:
    try:
        subnet = net.add_subnet(UAI_MACVLAN_PREFIXLEN, "uai_macvlan", settings.nmn_bootstrap_vlan)
    except AllocationError as e:
        raise AllocationError(f"Could not add the uai subnet to the {net.name} Network: {e}") from e

    subnet.gateway = add(net.cidr.network_address, 1)
    subnet.full_name = "NMN UAIs"

    # Sorted so the addresses are stable between runs
    for name in sorted(DEFAULT_UAI_SUBNET_RESERVATIONS):
        aliases = DEFAULT_UAI_SUBNET_RESERVATIONS[name]
        reservation = subnet.add_reservation(name, ",".join(aliases))
        for alias in aliases:
            reservation.add_reservation_alias(alias)

    subnet.update_dhcp_range(False)
    return subnet


def _add_cabinet_subnets(net: IPV4Network, conf: NetworkLayoutConfiguration) -> None:
    groups = conf.cabinet_details
    prefixlen = conf.cabinet_prefixlen

    if conf.group_networks_by_cabinet_type:
        if net.name.endswith("RVR"):
            net.gen_subnets(
                groups,
                prefixlen,
                cabinet_filter_or(
                    cabinet_class_filter(CabinetClass.RIVER),
                    # EX2500 cabinets with an air-cooled chassis also host river hardware
                    cabinet_filter_and(
                        cabinet_kind_filter(CabinetKind.EX2500.value),
                        cabinet_air_cooled_chassis_count_filter(1),
                    ),
                ),
            )
        if net.name.endswith("MTN"):
            net.gen_subnets(groups, prefixlen, cabinet_class_filter(CabinetClass.MOUNTAIN))
            net.gen_subnets(groups, prefixlen, cabinet_class_filter(CabinetClass.HILL))
        return

    for cabinet_class in (CabinetClass.RIVER, CabinetClass.HILL, CabinetClass.MOUNTAIN):
        net.gen_subnets(groups, prefixlen, cabinet_class_filter(cabinet_class))


def create_net_from_layout_config(
    conf: NetworkLayoutConfiguration, settings: NetworkSettings | None = None
) -> IPV4Network:
    """
    Carve one network according to its layout.

    Args:
        conf: Layout with cabinet details and switches already filled in.
        settings: Site network inputs. Defaults are used when omitted.

    Returns:
        IPV4Network: A new network. The layout's template is not modified.

    Raises:
        ValidationError: If the layout is missing switches or cabinets it needs.
        AllocationError: If a subnet does not fit.
    """
    settings = settings or NetworkSettings()
    conf.is_valid()
    net = deepcopy(conf.template)

    switches = conf.management_switches
    spines = switch_xnames_by_type(switches, ManagementSwitchType.SPINE)
    leafs = switch_xnames_by_type(switches, ManagementSwitchType.LEAF)
    leafbmcs = switch_xnames_by_type(switches, ManagementSwitchType.LEAF_BMC)
    cdus = switch_xnames_by_type(switches, ManagementSwitchType.CDU)
    aggregations = switch_xnames_by_type(switches, ManagementSwitchType.AGGREGATION)

    log = logger.bind(network=net.name)
    log.debug("Creating network", cidr=str(net.cidr))

    _add_metallb_pools(net, settings)
    if net.name == "HSN":
        _add_hsn_base_subnet(net, settings)

    if conf.include_networking_hardware_subnet:
        try:
            hardware = net.add_subnet(
                conf.networking_hardware_prefixlen, "network_hardware", conf.base_vlan
            )
        except AllocationError as e:
            raise AllocationError(
                f"unable to add network hardware subnet to {net.name} because {e}"
            ) from e
        hardware.full_name = f"{net.name} Management Network Infrastructure"
        hardware.reserve_net_mgmt_ips(
            spines,
            leafs,
            leafbmcs,
            cdus,
            extra_slots=conf.additional_networking_space,
            aggregations=aggregations,
        )

    if conf.include_bootstrap_dhcp:
        _add_bootstrap_dhcp(net, conf, settings)

    if conf.include_uai_subnet:
        _add_uai_subnet(net, settings)

    if conf.subdivide_by_cabinet:
        _add_cabinet_subnets(net, conf)

    if conf.supernet_hack:
        net.apply_supernet_hack()

    log.info("Network created", subnets=len(net.subnets))
    return net


def _add_load_balancer_pool(
    net: IPV4Network, name: str, vlan: int, full_name: str, pool_name: str, hmn: bool
) -> None:
    pool = net.add_subnet(24, name, vlan)
    pool.full_name = full_name
    pool.metallb_pool_name = pool_name

    for reservation_name in sorted(PINNED_METALLB_RESERVATIONS):
        octet, aliases = PINNED_METALLB_RESERVATIONS[reservation_name]
        if hmn and reservation_name == "istio-ingressgateway":
            aliases = [
                alias
                for alias in aliases
                if not alias.endswith(".local") and alias not in _NMN_ONLY_ALIASES
            ]
        pool.add_reservation_with_pin(reservation_name, ",".join(aliases), octet)


def build_csm_networks(
    layouts: dict[str, NetworkLayoutConfiguration],
    cabinet_details: list[CabinetGroupDetail],
    switches: list[ManagementSwitch],
    settings: NetworkSettings | None = None,
) -> dict[str, IPV4Network]:
    """
    Build every network in ``layouts`` plus the NMN and HMN load balancer networks.

    Args:
        layouts: Layouts keyed by network name.
        cabinet_details: Cabinet groups with IDs populated.
        switches: Management switches from the switch metadata.
        settings: Site network inputs.

    Returns:
        dict[str, IPV4Network]: Networks keyed by name, in layout order
        followed by ``NMNLB`` and ``HMNLB``.

    Raises:
        AllocationError: Naming the network that could not be built.
    """
    settings = settings or NetworkSettings()
    networks: dict[str, IPV4Network] = {}

    for name, layout in layouts.items():
        my_layout = deepcopy(layout)
        my_layout.cabinet_details = cabinet_details
        my_layout.management_switches = switches
        try:
            networks[name] = create_net_from_layout_config(my_layout, settings)
        except AllocationError as e:
            raise AllocationError(f"Couldn't add {name} Network because {e}") from e

    nmnlb = nmn_load_balancer()
    _add_load_balancer_pool(
        nmnlb,
        "nmn_metallb_address_pool",
        settings.nmn_bootstrap_vlan,
        "NMN MetalLB",
        "node-management",
        hmn=False,
    )
    networks["NMNLB"] = nmnlb

    hmnlb = hmn_load_balancer()
    _add_load_balancer_pool(
        hmnlb,
        "hmn_metallb_address_pool",
        settings.hmn_bootstrap_vlan,
        "HMN MetalLB",
        "hardware-management",
        hmn=True,
    )
    networks["HMNLB"] = hmnlb

    logger.info("Built CSM networks", networks=sorted(networks))
    return networks
