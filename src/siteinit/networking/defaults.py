"""Default CSM network templates and layouts.

Netmask cheat sheet:

    /30      4 addresses      /24    256 addresses
    /29      8 addresses      /22   1024 addresses
    /28     16 addresses      /20   4096 addresses
    /26     64 addresses      /17  32768 addresses

Templates are returned fresh from each call because networks are mutated
while they are carved.
"""

from collections.abc import Iterable
from copy import deepcopy
from ipaddress import IPv4Network

import structlog

from ..config import NetworkSettings
from ..constants import (
    DEFAULT_HMNLB_CIDR,
    DEFAULT_HSN_VLAN_RANGE,
    DEFAULT_MTU,
    DEFAULT_NMNLB_CIDR,
    DEFAULT_PARENT_DEVICE,
)
from ..models.cabinets import CabinetClass, CabinetGroupDetail
from ..models.switches import ManagementSwitch
from ..utils.exceptions import AllocationError, ConfigurationError
from .ipam import subnet_within
from .layout import NetworkLayoutConfiguration
from .network import IPV4Network

logger = structlog.get_logger(__name__)

# name -> (full name, vlan range, net type, parent device, comment)
NETWORK_TEMPLATES: dict[str, tuple[str, list[int], str, str, str]] = {
    "HMN": ("Hardware Management Network", [4], "ethernet", DEFAULT_PARENT_DEVICE, ""),
    "NMN": ("Node Management Network", [2], "ethernet", DEFAULT_PARENT_DEVICE, ""),
    "CMN": ("Customer Management Network", [7], "ethernet", DEFAULT_PARENT_DEVICE, ""),
    "CAN": ("Customer Access Network", [6], "ethernet", DEFAULT_PARENT_DEVICE, ""),
    "MTL": (
        "Provisioning Network (untagged)",
        [0],
        "ethernet",
        DEFAULT_PARENT_DEVICE,
        "This network is only valid for the NCNs",
    ),
    "HSN": ("High Speed Network", list(DEFAULT_HSN_VLAN_RANGE), "slingshot10", "", ""),
    "HMN_MTN": ("Mountain Compute Hardware Management Network", [3000, 3999], "ethernet", "", ""),
    "HMN_RVR": ("River Compute Hardware Management Network", [1513, 1769], "ethernet", "", ""),
    "NMN_MTN": ("Mountain Compute Node Management Network", [2000, 2999], "ethernet", "", ""),
    "NMN_RVR": ("River Compute Node Management Network", [1770, 1999], "ethernet", "", ""),
    "NMNLB": ("Node Management Network LoadBalancers", [], "ethernet", "", ""),
    "HMNLB": ("Hardware Management Network LoadBalancers", [], "ethernet", "", ""),
}


def network_template(name: str, cidr: str) -> IPV4Network:
    """
    Build an empty network from its named template.

    Host bits in ``cidr`` are dropped, so ``10.1.1.0/16`` becomes ``10.1.0.0/16``.

    Raises:
        ConfigurationError: If there is no template with that name.
    """
    if name not in NETWORK_TEMPLATES:
        raise ConfigurationError(f"no network template named {name}")

    full_name, vlan_range, net_type, parent_device, comment = NETWORK_TEMPLATES[name]
    return IPV4Network(
        name=name,
        cidr=IPv4Network(cidr, strict=False),
        full_name=full_name,
        vlan_range=list(vlan_range),
        mtu=DEFAULT_MTU,
        net_type=net_type,
        comment=comment,
        parent_device=parent_device,
    )


def nmn_load_balancer() -> IPV4Network:
    return network_template("NMNLB", DEFAULT_NMNLB_CIDR)


def hmn_load_balancer() -> IPV4Network:
    return network_template("HMNLB", DEFAULT_HMNLB_CIDR)


def gen_default_hmn_config(settings: NetworkSettings) -> NetworkLayoutConfiguration:
    return NetworkLayoutConfiguration(
        template=network_template("HMN", settings.hmn_cidr),
        group_networks_by_cabinet_type=True,
        include_bootstrap_dhcp=True,
        include_networking_hardware_subnet=True,
        supernet_hack=settings.supernet_hack,
        cabinet_prefixlen=settings.cabinet_prefixlen,
        networking_hardware_prefixlen=settings.networking_hardware_prefixlen,
        desired_bootstrap_dhcp_prefixlen=settings.bootstrap_dhcp_prefixlen,
    )


def gen_default_nmn_config(settings: NetworkSettings) -> NetworkLayoutConfiguration:
    return NetworkLayoutConfiguration(
        template=network_template("NMN", settings.nmn_cidr),
        group_networks_by_cabinet_type=True,
        include_bootstrap_dhcp=True,
        include_networking_hardware_subnet=True,
        supernet_hack=settings.supernet_hack,
        include_uai_subnet=True,
        cabinet_prefixlen=settings.cabinet_prefixlen,
        networking_hardware_prefixlen=settings.networking_hardware_prefixlen,
        desired_bootstrap_dhcp_prefixlen=settings.bootstrap_dhcp_prefixlen,
    )


def gen_default_hsn_config(settings: NetworkSettings) -> NetworkLayoutConfiguration:
    return NetworkLayoutConfiguration(template=network_template("HSN", settings.hsn_cidr))


def gen_default_cmn_config(settings: NetworkSettings, switch_count: int) -> NetworkLayoutConfiguration:
    """
    CMN layout. The ``network_hardware`` subnet is sized to fit the switches.

    Raises:
        AllocationError: If no subnet size holds that many switches.
    """
    cmn = IPv4Network(settings.cmn_cidr, strict=False)
    try:
        hardware = subnet_within(cmn, switch_count)
    except AllocationError as e:
        raise AllocationError(
            f"Failed to find a suitable subnet mask for {switch_count} switches within CMN"
        ) from e

    return NetworkLayoutConfiguration(
        template=network_template("CMN", settings.cmn_cidr),
        supernet_hack=settings.supernet_hack,
        include_bootstrap_dhcp=True,
        include_networking_hardware_subnet=True,
        networking_hardware_prefixlen=hardware.prefixlen,
        desired_bootstrap_dhcp_prefixlen=cmn.prefixlen,
    )


def gen_default_can_config(settings: NetworkSettings) -> NetworkLayoutConfiguration:
    return NetworkLayoutConfiguration(
        template=network_template("CAN", settings.can_cidr),
        include_bootstrap_dhcp=True,
        desired_bootstrap_dhcp_prefixlen=IPv4Network(settings.can_cidr, strict=False).prefixlen,
    )


def gen_default_mtl_config(settings: NetworkSettings) -> NetworkLayoutConfiguration:
    return NetworkLayoutConfiguration(
        template=network_template("MTL", settings.mtl_cidr),
        supernet_hack=settings.supernet_hack,
        include_bootstrap_dhcp=True,
        include_networking_hardware_subnet=True,
        networking_hardware_prefixlen=settings.networking_hardware_prefixlen,
        desired_bootstrap_dhcp_prefixlen=settings.bootstrap_dhcp_prefixlen,
    )


def gen_grouped_config(
    base: NetworkLayoutConfiguration, name: str, cidr: str
) -> NetworkLayoutConfiguration:
    """
    Derive a per-cabinet-class network (``HMN_MTN``, ``NMN_RVR``) from HMN or NMN.

    The derived network only holds cabinet subnets.
    """
    layout = deepcopy(base)
    layout.template = network_template(name, cidr)
    layout.subdivide_by_cabinet = True
    layout.include_bootstrap_dhcp = False
    layout.supernet_hack = False
    layout.include_networking_hardware_subnet = False
    layout.include_uai_subnet = False
    return layout


def _count_cabinets(groups: Iterable[CabinetGroupDetail]) -> dict[CabinetClass, int]:
    counts = {cabinet_class: 0 for cabinet_class in CabinetClass}
    for group in groups:
        counts[group.cabinet_class] += len(group.cabinet_ids_list())
    return counts


def _allocate_vlans(layouts: dict[str, NetworkLayoutConfiguration]) -> None:
    """
    Check that no two networks claim the same VLAN.

    Raises:
        ConfigurationError: Naming the VLAN and both networks.
    """
    owners: dict[int, str] = {}
    for name, layout in layouts.items():
        vlan_range = layout.template.vlan_range
        if not vlan_range:
            continue
        vlans = range(vlan_range[0], vlan_range[-1] + 1)
        for vlan in vlans:
            if vlan == 0:
                continue
            if vlan in owners:
                raise ConfigurationError(
                    f"Unable to allocate VLAN range for {name}: "
                    f"VLAN {vlan} is already allocated to {owners[vlan]}"
                )
            owners[vlan] = name
        logger.debug("Allocated VLANs", network=name, first=vlan_range[0], last=vlan_range[-1])


def default_layouts(
    settings: NetworkSettings,
    cabinet_groups: list[CabinetGroupDetail],
    switches: list[ManagementSwitch],
) -> dict[str, NetworkLayoutConfiguration]:
    """
    Assemble the layouts for a site.

    CMN, HMN, HSN, MTL and NMN are always built and CAN only when a CAN
    CIDR is configured. ``*_MTN`` networks are added when there are
    mountain or hill cabinets and ``*_RVR`` networks when there are river
    cabinets. Each layout's base VLAN is the first VLAN of its template.

    Raises:
        ConfigurationError: If two networks claim the same VLAN.
    """
    layouts: dict[str, NetworkLayoutConfiguration] = {
        "CMN": gen_default_cmn_config(settings, len(switches)),
        "HMN": gen_default_hmn_config(settings),
        "HSN": gen_default_hsn_config(settings),
        "MTL": gen_default_mtl_config(settings),
        "NMN": gen_default_nmn_config(settings),
    }
    if settings.can_cidr:
        layouts["CAN"] = gen_default_can_config(settings)

    counts = _count_cabinets(cabinet_groups)
    liquid_cooled = counts[CabinetClass.MOUNTAIN] + counts[CabinetClass.HILL]
    river = counts[CabinetClass.RIVER]

    for base in ("HMN", "NMN"):
        if not layouts[base].group_networks_by_cabinet_type:
            continue
        if liquid_cooled > 0:
            layouts[f"{base}_MTN"] = gen_grouped_config(
                layouts[base], f"{base}_MTN", getattr(settings, f"{base.lower()}_mtn_cidr")
            )
        if river > 0:
            layouts[f"{base}_RVR"] = gen_grouped_config(
                layouts[base], f"{base}_RVR", getattr(settings, f"{base.lower()}_rvr_cidr")
            )

    bootstrap_vlans = {
        "HMN": settings.hmn_bootstrap_vlan,
        "NMN": settings.nmn_bootstrap_vlan,
        "CMN": settings.cmn_bootstrap_vlan,
        "CAN": settings.can_bootstrap_vlan,
    }
    for name, layout in layouts.items():
        if name in bootstrap_vlans:
            layout.template.vlan_range[0] = bootstrap_vlans[name]
        layout.base_vlan = layout.template.vlan_range[0]
        layout.additional_networking_space = settings.additional_networking_space

    _allocate_vlans(layouts)
    return layouts
