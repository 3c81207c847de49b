"""SLS hardware inventory generation.

The generator turns three inputs into the ``Hardware`` section of SLS:

- cabinet templates, one per cabinet, grouped by class (``gen_cabinet_map``)
- management switch records (``convert_management_switch_to_sls``)
- HMN connection rows describing air-cooled (River) hardware

River hardware comes from the HMN rows. Hill and Mountain cabinets are fully
liquid-cooled and have a fixed geometry, so their chassis, chassis BMCs and
compute nodes are synthesized without any row input.

The ``SourceParent`` column deserves a note. It marks nodes that share a
multi-node enclosure. The enclosure controller itself (the row that other rows
name as their parent) becomes ``...s{U}b999`` and every child node takes the
parent's U with a BMC ordinal derived from its NID.
"""

import re
from dataclasses import dataclass, field
from ipaddress import IPv4Address

import structlog

from ..constants import (
    BMCS_PER_SLOT,
    DEFAULT_CSM_VERSION,
    DEFAULT_HILL_CHASSIS_LIST,
    DEFAULT_MOUNTAIN_CHASSIS_LIST,
    DEFAULT_MOUNTAIN_STARTING_NID,
    DEFAULT_RIVER_CHASSIS_LIST,
    ENCLOSURE_CONTROLLER_BMC,
    MANAGEMENT_STARTING_NID,
    NODES_PER_BMC,
    NODES_PER_ENCLOSURE,
    SLOTS_PER_CHASSIS,
    VAULT_CREDENTIAL_TEMPLATE,
)
from ..models.cabinets import CabinetClass, CabinetDetail, CabinetGroupDetail, CabinetKind
from ..models.hardware import (
    CabinetNetwork,
    CabinetProperties,
    CDUMgmtSwitchProperties,
    GenericHardware,
    MgmtHLSwitchProperties,
    MgmtSwitchConnectorProperties,
    MgmtSwitchProperties,
    NodeProperties,
    RouterBMCProperties,
    build_hardware,
)
from ..models.hmn_row import HMNRow
from ..models.switches import ManagementSwitch, ManagementSwitchBrand, ManagementSwitchType
from ..networking.network import IPV4Network, IPV4Subnet
from ..observability.logger import LogContext
from ..utils.exceptions import TopologyError
from ..xname.types import HMSType, get_hms_comp_parent, is_hms_type_controller
from ..xname.xnames import Cabinet, Chassis, from_string
from .app_node_config import ApplicationNodeConfig
from .classifier import (
    ROLE_APPLICATION,
    ROLE_COMPUTE,
    NIDSequence,
    RowClassification,
    RowKind,
    classify_row,
    parse_port,
    parse_u_location,
    supports_fabric_manager,
)
from .state import SLSState

logger = structlog.get_logger(__name__)

EX2500_MODEL = "EX2500"

# Per-cabinet subnets are looked up in this order; the class suffix is dropped
CABINET_NETWORK_NAMES = ("NMN", "HMN", "NMN_MTN", "HMN_MTN", "NMN_RVR", "HMN_RVR")

EX2500_CHASSIS_COUNT_EXAMPLE = (
    "EX2500 cabinets require chassis counts to be specified via cabinets.yaml\n"
    "The following is an example how to specify chassis counts in cabinets.yaml:\n"
    "    - id: 8001\n"
    "      hmn-vlan: 3001\n"
    "      nmn-vlan: 2001\n"
    "      chassis-count:\n"
    "          air-cooled: 0\n"
    "          liquid-cooled: 3"
)

# SNMP settings given to every LeafBMC switch
LEAF_BMC_SNMP_AUTH_PROTOCOL = "MD5"
LEAF_BMC_SNMP_PRIV_PROTOCOL = "DES"
LEAF_BMC_SNMP_USERNAME = "testuser"

_XNAME_DIGITS = re.compile(r"(\d+)")


@dataclass
class CabinetTemplate:
    """
    Everything needed to emit one cabinet and its liquid-cooled contents.

    Attributes:
        xname: The cabinet.
        class_: River, Hill or Mountain.
        model: EX model name, empty for generic kinds.
        networks: Hardware kind ("cn", "ncn") to network name to subnet summary.
        liquid_cooled_chassis: Chassis ordinals to synthesize compute nodes in.
        air_cooled_chassis: Chassis ordinals that hold River hardware.
    """

    xname: Cabinet
    class_: CabinetClass
    model: str = ""
    networks: dict[str, dict[str, CabinetNetwork]] = field(default_factory=dict)
    liquid_cooled_chassis: list[int] = field(default_factory=list)
    air_cooled_chassis: list[int] = field(default_factory=list)

    def build_extra_properties(self) -> CabinetProperties:
        return CabinetProperties(model=self.model or None, networks=self.networks)

    @property
    def is_ex2500(self) -> bool:
        return self.model == EX2500_MODEL


@dataclass
class GeneratorInputState:
    """
    Inputs to ``StateGenerator``.

    Attributes:
        application_node_config: Application node prefixes, subroles and aliases.
        management_switches: Switch records keyed by xname.
        river_cabinets: River cabinet templates keyed by xname.
        hill_cabinets: Hill cabinet templates keyed by xname.
        mountain_cabinets: Mountain cabinet templates keyed by xname.
        mountain_starting_nid: First NID handed to liquid-cooled compute nodes.
        management_starting_nid: First NID handed to management nodes.
        csm_version: Target CSM release. FabricManager nodes need 1.7 or later.
        networks: Networks to include in the SLS state, keyed by name.
    """

    application_node_config: ApplicationNodeConfig = field(default_factory=ApplicationNodeConfig)
    management_switches: dict[str, GenericHardware] = field(default_factory=dict)
    river_cabinets: dict[str, CabinetTemplate] = field(default_factory=dict)
    hill_cabinets: dict[str, CabinetTemplate] = field(default_factory=dict)
    mountain_cabinets: dict[str, CabinetTemplate] = field(default_factory=dict)
    mountain_starting_nid: int = DEFAULT_MOUNTAIN_STARTING_NID
    management_starting_nid: int = MANAGEMENT_STARTING_NID
    csm_version: str = DEFAULT_CSM_VERSION
    networks: dict[str, IPV4Network] = field(default_factory=dict)

    @classmethod
    def from_cabinet_map(
        cls,
        cabinet_map: dict[CabinetClass, dict[str, CabinetTemplate]],
        **kwargs,
    ) -> "GeneratorInputState":
        """Build an input state from the output of ``gen_cabinet_map``."""
        return cls(
            river_cabinets=cabinet_map.get(CabinetClass.RIVER, {}),
            hill_cabinets=cabinet_map.get(CabinetClass.HILL, {}),
            mountain_cabinets=cabinet_map.get(CabinetClass.MOUNTAIN, {}),
            **kwargs,
        )


def get_sorted_cabinet_xnames(xnames) -> list[str]:
    """
    Sort cabinet xnames by their cabinet number, so ``x10`` sorts before ``x100``.

    Args:
        xnames: Any iterable of cabinet xnames (a template map works too).
    """

    def _key(xname: str) -> tuple:
        return tuple(
            int(part) if part.isdigit() else part for part in _XNAME_DIGITS.split(xname)
        )

    return sorted(xnames, key=_key)


def _parse_cabinet(rack: str, source: str = "") -> Cabinet:
    """``x3000`` (any case) to a typed cabinet."""
    number = rack.lower().removeprefix("x")
    try:
        return Cabinet(int(number))
    except ValueError:
        raise TopologyError(
            f"Failed to parse cabinet from rack {rack!r}", source=source
        ) from None


def _parse_u(location: str, source: str = "") -> int:
    number = location.lower().removeprefix("u")
    try:
        return int(number)
    except ValueError:
        raise TopologyError(
            f"Failed to parse U number string to integer! location: {location!r}",
            source=source,
        ) from None


def _cabinet_networks(
    cabinet_id: int, networks: dict[str, IPV4Network]
) -> dict[str, CabinetNetwork]:
    found: dict[str, CabinetNetwork] = {}
    for net_name in CABINET_NETWORK_NAMES:
        network = networks.get(net_name)
        if network is None:
            continue
        subnet: IPV4Subnet | None = network.subnet_by_name(f"cabinet_{cabinet_id}")
        if subnet is None:
            continue
        key = net_name.removesuffix("_MTN").removesuffix("_RVR")
        found[key] = CabinetNetwork(
            cidr=str(subnet.cidr),
            gateway=str(subnet.gateway) if subnet.gateway else None,
            vlan=subnet.vlan_id,
        )
    return found


def _hill_chassis(template: CabinetTemplate, kind: str, detail: CabinetDetail) -> None:
    xname = str(template.xname)
    if kind != CabinetKind.EX2500.value:
        if detail.chassis_count is not None:
            raise TopologyError(
                "Overriding air or liquid cooled chassis counts is not permitted for "
                f"hill (EX2000) cabinets ({xname}). Refusing to continue",
                source=xname,
            )
        return

    if detail.chassis_count is None:
        raise TopologyError(EX2500_CHASSIS_COUNT_EXAMPLE, source=xname)

    air = detail.chassis_count.air_cooled
    liquid = detail.chassis_count.liquid_cooled
    if air == 0:
        if not 1 <= liquid <= 3:
            raise TopologyError(
                f"Invalid liquid-cooled chassis count specified for hill (EX2500) cabinet "
                f"{xname}. Given {liquid}, expected between 1 and 3. Refusing to continue",
                source=xname,
            )
        template.liquid_cooled_chassis = list(range(liquid))
    elif air == 1:
        # The air-cooled chassis of an EX2500 is always c4
        if liquid == 0:
            template.air_cooled_chassis = [4]
            template.liquid_cooled_chassis = []
        elif liquid == 1:
            template.air_cooled_chassis = [4]
            template.liquid_cooled_chassis = [0]
        else:
            raise TopologyError(
                f"Invalid liquid-cooled chassis count specified for hill (EX2500) cabinet "
                f"{xname}. Given {liquid}, expected 1. EX2500 cabinets with 1 air-cooled "
                "chassis can only have 1 liquid-cooled chassis. Refusing to continue",
                source=xname,
            )
    else:
        raise TopologyError(
            f"Invalid air-cooled chassis count specified for hill (EX2500) cabinet "
            f"{xname}. Given {air}, expected 0 or 1. Refusing to continue",
            source=xname,
        )


def gen_cabinet_map(
    groups: list[CabinetGroupDetail],
    networks: dict[str, IPV4Network],
) -> dict[CabinetClass, dict[str, CabinetTemplate]]:
    """
    Build cabinet templates from the cabinet groups and the built networks.

    Each template carries the cabinet's ``cabinet_{id}`` subnets from the
    NMN/HMN networks (and their ``_MTN``/``_RVR`` variants) along with the
    chassis ordinals to use for liquid- and air-cooled hardware.

    Args:
        groups: Cabinet groups with populated IDs and details.
        networks: Built networks keyed by name.

    Returns:
        dict: Class to cabinet xname to template.

    Raises:
        TopologyError: If a cabinet overrides chassis counts where that is not
            allowed, or gives an unsupported EX2500 chassis layout.
    """
    cabinet_map: dict[CabinetClass, dict[str, CabinetTemplate]] = {
        CabinetClass.RIVER: {},
        CabinetClass.HILL: {},
        CabinetClass.MOUNTAIN: {},
    }

    for group in groups:
        class_ = group.cabinet_class
        is_model = CabinetKind(group.kind).is_model
        details = group.get_cabinet_details()

        for cabinet_id in group.cabinet_ids_list():
            detail = details[cabinet_id]
            cabinet_networks = _cabinet_networks(cabinet_id, networks)
            template = CabinetTemplate(
                xname=Cabinet(cabinet_id),
                class_=class_,
                model=group.kind if is_model else "",
                networks={"cn": cabinet_networks},
            )
            template.xname.validate()
            xname = str(template.xname)

            if class_ == CabinetClass.RIVER:
                template.networks["ncn"] = cabinet_networks
                template.air_cooled_chassis = list(DEFAULT_RIVER_CHASSIS_LIST)
                if detail.chassis_count is not None:
                    raise TopologyError(
                        "Overriding air or liquid cooled chassis counts is not permitted for "
                        f"river cabinets ({xname}). Refusing to continue",
                        source=xname,
                    )
            elif class_ == CabinetClass.HILL:
                template.liquid_cooled_chassis = list(DEFAULT_HILL_CHASSIS_LIST)
                _hill_chassis(template, group.kind, detail)
            else:
                template.liquid_cooled_chassis = list(DEFAULT_MOUNTAIN_CHASSIS_LIST)
                if detail.chassis_count is not None:
                    raise TopologyError(
                        "Overriding air or liquid cooled chassis counts is not permitted for "
                        f"mountain cabinets ({xname}). Refusing to continue",
                        source=xname,
                    )

            cabinet_map[class_][xname] = template
            logger.debug(
                "Built cabinet template",
                cabinet=xname,
                cabinet_class=str(class_),
                model=template.model,
                liquid_cooled=template.liquid_cooled_chassis,
                air_cooled=template.air_cooled_chassis,
            )

    return cabinet_map


def convert_management_switch_to_sls(switch: ManagementSwitch) -> GenericHardware:
    """
    Turn a switch metadata entry into its SLS record.

    - LeafBMC: MgmtSwitch (River) with SNMP vault credentials
    - Leaf, Spine, Aggregation: MgmtHLSwitch (River)
    - CDU: MgmtHLSwitch (River) when it sits in a river cabinet, otherwise
      CDUMgmtSwitch (Mountain)

    Raises:
        TopologyError: For a switch type with no SLS mapping.
    """
    xname = from_string(switch.xname)
    ip4_addr = switch.management_ip() or None
    brand = str(switch.brand)
    model = switch.model or None
    aliases = [switch.name] if switch.name else None

    if switch.switch_type == ManagementSwitchType.LEAF_BMC:
        credential = VAULT_CREDENTIAL_TEMPLATE.format(xname=switch.xname)
        properties = MgmtSwitchProperties(
            ip4_addr=ip4_addr,
            brand=brand,
            model=model,
            snmp_auth_password=credential,
            snmp_auth_protocol=LEAF_BMC_SNMP_AUTH_PROTOCOL,
            snmp_priv_password=credential,
            snmp_priv_protocol=LEAF_BMC_SNMP_PRIV_PROTOCOL,
            snmp_username=LEAF_BMC_SNMP_USERNAME,
            aliases=aliases,
        )
        return build_hardware(xname, CabinetClass.RIVER, properties)

    if switch.switch_type in (
        ManagementSwitchType.LEAF,
        ManagementSwitchType.SPINE,
        ManagementSwitchType.AGGREGATION,
    ):
        properties = MgmtHLSwitchProperties(
            ip4_addr=ip4_addr, brand=brand, model=model, aliases=aliases
        )
        return build_hardware(xname, CabinetClass.RIVER, properties)

    if switch.switch_type == ManagementSwitchType.CDU:
        if xname.type() == HMSType.MGMT_HL_SWITCH:
            properties = MgmtHLSwitchProperties(
                ip4_addr=ip4_addr, brand=brand, model=model, aliases=aliases
            )
            return build_hardware(xname, CabinetClass.RIVER, properties)
        properties = CDUMgmtSwitchProperties(brand=brand, model=model, aliases=aliases)
        return build_hardware(xname, CabinetClass.MOUNTAIN, properties)

    raise TopologyError(
        f"unknown management switch type: {switch.switch_type}", source=switch.xname
    )


def assign_management_interfaces(switches: list[ManagementSwitch], subnet: IPV4Subnet) -> None:
    """
    Copy names and addresses from ``network_hardware`` reservations onto switches.

    A reservation matches a switch when its comment is the switch xname.
    Switches without a matching reservation are left unchanged.
    """
    by_xname = {r.comment: r for r in subnet.ip_reservations if r.comment}
    for switch in switches:
        reservation = by_xname.get(switch.xname)
        if reservation is None:
            continue
        switch.name = reservation.name
        switch.management_interface = IPv4Address(reservation.ip_address)
        logger.debug(
            "Assigned management interface",
            switch=switch.xname,
            name=switch.name,
            ip=str(reservation.ip_address),
        )


def build_switch_hardware(switches: list[ManagementSwitch]) -> dict[str, GenericHardware]:
    """SLS records for all switches, keyed by xname."""
    records: dict[str, GenericHardware] = {}
    for switch in switches:
        record = convert_management_switch_to_sls(switch)
        records[record.xname] = record
    return records


class StateGenerator:
    """
    Builds SLS state from cabinet templates, switches and HMN rows.

    One generator produces one state. NID counters live on the instance and
    are reset at the start of ``build_hardware_section``.
    """

    def __init__(self, input_state: GeneratorInputState, hmn_rows: list[HMNRow]) -> None:
        """
        Initialize the generator.

        Args:
            input_state: Cabinets, switches, networks and application node config.
            hmn_rows: Parsed HMN connection rows.

        Raises:
            ConfigurationError: If the CSM version is malformed.
        """
        self.input_state = input_state
        self.hmn_rows = hmn_rows
        self.node_parents: dict[str, int] = {}
        self.fabric_manager_nodes = supports_fabric_manager(input_state.csm_version)
        self.management_nids = NIDSequence(input_state.management_starting_nid)
        self.mountain_nids = NIDSequence(input_state.mountain_starting_nid)

    def generate_sls_state(self) -> SLSState:
        """Build the hardware and network sections."""
        hardware = self.build_hardware_section()
        return SLSState(hardware=hardware, networks=dict(self.input_state.networks))

    # -------------------------------------------------------------------------
    # Cabinet lookups
    # -------------------------------------------------------------------------

    def can_cabinet_contain_air_cooled_hardware(self, cabinet_xname: str) -> None:
        """
        Check that a cabinet can hold River hardware.

        Raises:
            TopologyError: If the cabinet is liquid-cooled only or unknown.
        """
        state = self.input_state
        if cabinet_xname in state.river_cabinets:
            return
        if cabinet_xname in state.hill_cabinets:
            template = state.hill_cabinets[cabinet_xname]
            if template.is_ex2500:
                if template.air_cooled_chassis:
                    return
                raise TopologyError(
                    f"hill cabinet (EX2500) {cabinet_xname} does not contain any "
                    "air-cooled chassis",
                    source=cabinet_xname,
                )
            raise TopologyError(
                f"hill cabinet (non EX2500) {cabinet_xname} cannot contain air-cooled hardware",
                source=cabinet_xname,
            )
        if cabinet_xname in state.mountain_cabinets:
            raise TopologyError(
                f"mountain cabinet {cabinet_xname} cannot contain air-cooled hardware",
                source=cabinet_xname,
            )
        raise TopologyError(f"unknown cabinet {cabinet_xname}", source=cabinet_xname)

    def determine_river_chassis(self, cabinet: Cabinet) -> Chassis:
        """Chassis that River hardware in this cabinet lives in: c0, or c4 in an EX2500."""
        self.can_cabinet_contain_air_cooled_hardware(str(cabinet))
        template = self.input_state.hill_cabinets.get(str(cabinet))
        if template is not None:
            return cabinet.chassis(template.air_cooled_chassis[0])
        return cabinet.chassis(0)

    # -------------------------------------------------------------------------
    # River hardware
    # -------------------------------------------------------------------------

    def _find_row_with_source(self, source: str) -> HMNRow | None:
        wanted = source.lower()
        for row in self.hmn_rows:
            if row.source.lower() == wanted:
                return row
        return None

    def _map_node_parents(self) -> dict[str, int]:
        """
        Rack U of every row named as a ``SourceParent``, keyed by lower-cased source.

        Raises:
            TopologyError: If a parent has no row of its own or its location has no U.
        """
        parents: dict[str, int] = {}
        for row in self.hmn_rows:
            if not row.source_parent:
                continue
            key = row.source_parent.lower()
            if key in parents:
                continue
            parent_row = self._find_row_with_source(row.source_parent)
            if parent_row is None:
                raise TopologyError(
                    "Failed to find matching row for specified parent!", source=row.source
                )
            parents[key] = _parse_u(parent_row.source_location, source=parent_row.source)
        return parents

    def _tor_hardware(self, row: HMNRow) -> GenericHardware:
        cabinet = _parse_cabinet(row.source_rack, source=row.source)
        chassis = self.determine_river_chassis(cabinet)
        u, bmc = parse_u_location(row)
        tor = chassis.router_module(u).router_bmc(bmc)
        credential = VAULT_CREDENTIAL_TEMPLATE.format(xname=tor)
        return build_hardware(
            tor,
            CabinetClass.RIVER,
            RouterBMCProperties(username=credential, password=credential),
        )

    def _pdu_hardware(self, row: HMNRow, classification: RowClassification) -> GenericHardware:
        cabinet = _parse_cabinet(row.source_rack, source=row.source)
        pdu = cabinet.cabinet_pdu_controller(classification.pdu_number)
        return build_hardware(pdu, CabinetClass.RIVER)

    def _node_hardware(self, row: HMNRow, classification: RowClassification) -> GenericHardware:
        if row.source_parent:
            u = self.node_parents.get(row.source_parent.lower())
            if u is None:
                raise TopologyError(
                    "Failed to find matching row for specified parent!", source=row.source
                )
            nid = classification.nid or 0
            bmc = ((nid - 1) % NODES_PER_ENCLOSURE) + 1 if nid else 0
        else:
            u, bmc = parse_u_location(row)

        cabinet = _parse_cabinet(row.source_rack, source=row.source)
        chassis = self.determine_river_chassis(cabinet)

        if row.source.lower() in self.node_parents:
            controller = chassis.compute_module(u).node_bmc(ENCLOSURE_CONTROLLER_BMC)
            return build_hardware(controller, CabinetClass.RIVER)

        node = chassis.compute_module(u).node_bmc(bmc).node(0)
        aliases = list(classification.aliases)
        if classification.role == ROLE_APPLICATION:
            aliases.extend(self.input_state.application_node_config.node_aliases(str(node)))

        properties = NodeProperties(
            nid=classification.nid,
            role=classification.role,
            sub_role=classification.sub_role or None,
            aliases=aliases or None,
        )
        return build_hardware(node, CabinetClass.RIVER, properties)

    def get_river_hardware_from_row(self, row: HMNRow) -> GenericHardware | None:
        """
        The hardware record an HMN row describes, or None if it describes none.

        Rows with a ``SourceParent`` need the parent map that
        ``build_hardware_section`` builds before any row is classified.

        Raises:
            TopologyError: If the row is malformed or names a cabinet that
                cannot hold air-cooled hardware.
        """
        classification = classify_row(
            row,
            self.input_state.application_node_config,
            self.management_nids,
            fabric_manager_nodes=self.fabric_manager_nodes,
        )
        if not classification.kind.produces_hardware:
            return None
        if classification.kind == RowKind.TOR:
            return self._tor_hardware(row)
        if classification.kind == RowKind.PDU:
            return self._pdu_hardware(row, classification)
        return self._node_hardware(row, classification)

    def get_switch_connection_for_hardware(
        self, hardware: GenericHardware, row: HMNRow
    ) -> GenericHardware:
        """
        The switch port record for a row that is cabled to a management switch.

        Controllers are cabled directly; for anything else the cable goes to
        its parent (the node's BMC).

        Raises:
            TopologyError: If the destination switch is unknown, is not a
                MgmtSwitch, or is of a brand with no port naming.
        """
        if is_hms_type_controller(hardware.type_string):
            destination = hardware.xname
        else:
            destination = hardware.parent

        cabinet = _parse_cabinet(row.destination_rack, source=row.source)
        chassis = self.determine_river_chassis(cabinet)
        switch = chassis.mgmt_switch(_parse_u(row.destination_location, source=row.source))
        port = parse_port(row.destination_port, source=row.source)
        connector = switch.mgmt_switch_connector(port)

        switch_record = self.input_state.management_switches.get(str(switch))
        if switch_record is None:
            raise TopologyError(
                f"Failed to find management switch {switch} in switch metadata",
                source=row.source,
            )
        if not isinstance(switch_record.extra_properties, MgmtSwitchProperties):
            raise TopologyError(
                f"Switch {switch} is not a MgmtSwitch, cannot connect {row.source} to it",
                source=row.source,
            )

        brand = switch_record.extra_properties.brand
        if brand == ManagementSwitchBrand.DELL.value:
            vendor_name = f"ethernet1/1/{port}"
        elif brand == ManagementSwitchBrand.ARUBA.value:
            vendor_name = f"1/1/{port}"
        elif brand == ManagementSwitchBrand.MELLANOX.value:
            raise TopologyError(
                "Currently do no support MgmtSwitchConnector for Mellanox switches",
                source=row.source,
            )
        else:
            raise TopologyError(
                f"Unknown management switch brand {brand!r} for {switch}", source=row.source
            )

        return build_hardware(
            connector,
            CabinetClass.RIVER,
            MgmtSwitchConnectorProperties(node_nics=[destination], vendor_name=vendor_name),
        )

    # -------------------------------------------------------------------------
    # Liquid-cooled hardware
    # -------------------------------------------------------------------------

    def get_liquid_cooled_hardware_for_cabinet(
        self, template: CabinetTemplate
    ) -> list[GenericHardware]:
        """
        The cabinet record, then per chassis the chassis, its BMC and 32 compute nodes.

        Nodes take consecutive NIDs from the mountain counter in
        slot, BMC, node order.
        """
        hardware = [
            build_hardware(template.xname, template.class_, template.build_extra_properties())
        ]
        for chassis_ordinal in template.liquid_cooled_chassis:
            chassis = template.xname.chassis(chassis_ordinal)
            hardware.append(build_hardware(chassis, template.class_))
            hardware.append(build_hardware(chassis.chassis_bmc(0), template.class_))

            for slot in range(SLOTS_PER_CHASSIS):
                for bmc in range(BMCS_PER_SLOT):
                    for node_ordinal in range(NODES_PER_BMC):
                        node = chassis.compute_module(slot).node_bmc(bmc).node(node_ordinal)
                        nid = self.mountain_nids.take()
                        properties = NodeProperties(
                            nid=nid, role=ROLE_COMPUTE, aliases=[f"nid{nid:06d}"]
                        )
                        hardware.append(build_hardware(node, template.class_, properties))
        return hardware

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    def _check_switch_cabinets(self) -> None:
        for record in self.input_state.management_switches.values():
            if record.class_ != CabinetClass.RIVER:
                continue
            if record.type_string == HMSType.MGMT_SWITCH:
                cabinet = get_hms_comp_parent(record.parent)
            elif record.type_string == HMSType.MGMT_HL_SWITCH:
                cabinet = get_hms_comp_parent(get_hms_comp_parent(record.parent))
            else:
                raise TopologyError(
                    "Unknown river management switch type", source=record.xname
                )
            self.can_cabinet_contain_air_cooled_hardware(cabinet)

    def build_hardware_section(self) -> dict[str, GenericHardware]:
        """
        Generate every hardware record.

        Returns:
            dict: Records keyed by xname, merged in the order cabinets, nodes,
                connectors, switches.

        Raises:
            TopologyError: On any input inconsistency, including two records
                for the same xname from different sources.
        """
        state = self.input_state
        self.management_nids = NIDSequence(state.management_starting_nid)
        self.mountain_nids = NIDSequence(state.mountain_starting_nid)

        with LogContext(stage="switch-check"):
            self._check_switch_cabinets()

        cabinets: dict[str, GenericHardware] = {}
        nodes: dict[str, GenericHardware] = {}
        connections: dict[str, GenericHardware] = {}

        for xname in get_sorted_cabinet_xnames(state.river_cabinets):
            template = state.river_cabinets[xname]
            cabinets[xname] = build_hardware(
                template.xname, template.class_, template.build_extra_properties()
            )

        # Every row named as a parent is an enclosure controller
        self.node_parents = self._map_node_parents()

        with LogContext(stage="river-hardware"):
            logger.info("Processing HMN rows", rows=len(self.hmn_rows))
            for row in self.hmn_rows:
                hardware = self.get_river_hardware_from_row(row)
                if hardware is None:
                    logger.debug("Row produced no hardware", source=row.source)
                    continue

                cabinet = _parse_cabinet(row.source_rack, source=row.source)
                self.can_cabinet_contain_air_cooled_hardware(str(cabinet))
                if hardware.xname in nodes:
                    logger.warning(
                        "Duplicate hardware from HMN rows, keeping the later row",
                        xname=hardware.xname,
                        source=row.source,
                    )
                nodes[hardware.xname] = hardware
                logger.debug("Added river hardware", xname=hardware.xname, source=row.source)

                if row.has_destination_port():
                    connection = self.get_switch_connection_for_hardware(hardware, row)
                    connections[connection.xname] = connection

        with LogContext(stage="liquid-cooled-hardware"):
            for cabinets_by_xname in (state.hill_cabinets, state.mountain_cabinets):
                for xname in get_sorted_cabinet_xnames(cabinets_by_xname):
                    for hardware in self.get_liquid_cooled_hardware_for_cabinet(
                        cabinets_by_xname[xname]
                    ):
                        nodes[hardware.xname] = hardware
            logger.info(
                "Synthesized liquid-cooled hardware",
                hill_cabinets=len(state.hill_cabinets),
                mountain_cabinets=len(state.mountain_cabinets),
                next_nid=self.mountain_nids.next_nid,
            )

        all_hardware: dict[str, GenericHardware] = {}
        for section in (cabinets, nodes, connections, state.management_switches):
            for xname, hardware in section.items():
                if xname in all_hardware:
                    raise TopologyError(
                        f"Found more than one hardware record for {xname}", source=xname
                    )
                all_hardware[xname] = hardware

        logger.info("Built hardware section", hardware=len(all_hardware))
        return all_hardware


def generate_sls_state(input_state: GeneratorInputState, hmn_rows: list[HMNRow]) -> SLSState:
    """Convenience wrapper around ``StateGenerator``."""
    return StateGenerator(input_state, hmn_rows).generate_sls_state()
