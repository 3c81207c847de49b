"""Network layout configuration.

A layout says how one network is carved: which infrastructure subnets it
gets, whether it is split per cabinet, and whether the supernet hack is
applied afterwards. The template network is copied before carving, so one
layout can be built many times.
"""

from dataclasses import dataclass, field

from ..models.cabinets import CabinetGroupDetail
from ..models.switches import ManagementSwitch
from ..utils.exceptions import ValidationError
from .network import IPV4Network


@dataclass
class NetworkLayoutConfiguration:
    """
    How to build one network from its template.

    Attributes:
        template: Network to start from (name, supernet, VLANs, MTU).
        reservation_hostnames: Extra hostnames to reserve in bootstrap DHCP.
        include_bootstrap_dhcp: Carve a ``bootstrap_dhcp`` subnet.
        desired_bootstrap_dhcp_prefixlen: Largest prefix for ``bootstrap_dhcp``.
        include_networking_hardware_subnet: Carve a ``network_hardware`` subnet.
        supernet_hack: Widen infrastructure subnets to the supernet afterwards.
        additional_networking_space: Spare ``mgmt_net`` slots in ``network_hardware``.
        networking_hardware_prefixlen: Prefix of ``network_hardware``.
        base_vlan: VLAN of the infrastructure subnets.
        subdivide_by_cabinet: Carve one subnet per cabinet.
        group_networks_by_cabinet_type: Only carve cabinets of the class the
            network name ends with (``_RVR`` or ``_MTN``).
        include_uai_subnet: Carve the ``uai_macvlan`` subnet.
        cabinet_details: Cabinet groups, filled in at build time.
        cabinet_prefixlen: Prefix of each cabinet subnet.
        management_switches: Switches, filled in at build time.
    """

    template: IPV4Network
    reservation_hostnames: list[str] = field(default_factory=list)
    include_bootstrap_dhcp: bool = False
    desired_bootstrap_dhcp_prefixlen: int = 24
    include_networking_hardware_subnet: bool = False
    supernet_hack: bool = False
    additional_networking_space: int = 0
    networking_hardware_prefixlen: int = 24
    base_vlan: int = 0
    subdivide_by_cabinet: bool = False
    group_networks_by_cabinet_type: bool = False
    include_uai_subnet: bool = False
    cabinet_details: list[CabinetGroupDetail] = field(default_factory=list)
    cabinet_prefixlen: int = 22
    management_switches: list[ManagementSwitch] = field(default_factory=list)

    def is_valid(self) -> bool:
        """
        Check that the inputs the enabled features need are present.

        Raises:
            ValidationError: If switches or cabinets are missing.
        """
        if self.include_networking_hardware_subnet and not self.management_switches:
            raise ValidationError(
                "can't build networking hardware subnets without ManagementSwitches"
            )
        if self.subdivide_by_cabinet and not self.cabinet_details:
            raise ValidationError(
                "can't build per cabinet subnets without a list of cabinet details"
            )
        return True
