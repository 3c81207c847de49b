"""
Xname grammar: classification, validation, normalization and parent lookup.

Overview
--------
An xname is a component location name built from (letter, ordinal) pairs
rooted at the system token ``s0``: cabinet ``x3000``, chassis ``x3000c0``,
node ``x3000c0s17b0n0`` and so on. Each component type has exactly one
anchored regular template. The type of a string is derived by matching it
against the template table; it is never stored separately.

Key Features
------------
- ``get_hms_type`` classifies any string (``HMSType.INVALID`` when nothing matches)
- ``normalize_hms_comp_id`` lower-cases and strips leading zeros, idempotently
- ``get_hms_comp_parent`` drops the last (letter, ordinal) pair
- ``legacy_type`` maps a type onto the ``comptype_*`` tag used in SLS records
"""

import re
import string
from enum import Enum

from ..utils.exceptions import XnameError


class HMSType(str, Enum):
    """Hardware component types addressable by an xname."""

    PARTITION = "Partition"
    SYSTEM = "System"
    SMS_BOX = "SMSBox"
    CDU = "CDU"
    CDU_MGMT_SWITCH = "CDUMgmtSwitch"
    CABINET_CDU = "CabinetCDU"
    CABINET_PDU_CONTROLLER = "CabinetPDUController"
    CABINET_PDU = "CabinetPDU"
    CABINET_PDU_NIC = "CabinetPDUNic"
    CABINET_PDU_OUTLET = "CabinetPDUOutlet"
    CABINET_PDU_POWER_CONNECTOR = "CabinetPDUPowerConnector"
    CEC = "CEC"
    CABINET = "Cabinet"
    CABINET_BMC = "CabinetBMC"
    CHASSIS = "Chassis"
    CHASSIS_BMC = "ChassisBMC"
    CHASSIS_BMC_NIC = "ChassisBMCNic"
    CMM_FPGA = "CMMFpga"
    CMM_RECTIFIER = "CMMRectifier"
    COMPUTE_MODULE = "ComputeModule"
    STORAGE_GROUP = "StorageGroup"
    DRIVE = "Drive"
    NODE_FPGA = "NodeFpga"
    NODE_BMC = "NodeBMC"
    NODE_BMC_NIC = "NodeBMCNic"
    NODE_ENCLOSURE = "NodeEnclosure"
    NODE_ENCLOSURE_POWER_SUPPLY = "NodeEnclosurePowerSupply"
    NODE_POWER_CONNECTOR = "NodePowerConnector"
    HSN_BOARD = "HSNBoard"
    NODE = "Node"
    VIRTUAL_NODE = "VirtualNode"
    NODE_NIC = "NodeNic"
    NODE_HSN_NIC = "NodeHsnNic"
    NODE_ACCEL = "NodeAccel"
    NODE_ACCEL_RISER = "NodeAccelRiser"
    MEMORY = "Memory"
    PROCESSOR = "Processor"
    ROUTER_MODULE = "RouterModule"
    ROUTER_FPGA = "RouterFpga"
    ROUTER_TOR = "RouterTOR"
    ROUTER_TOR_FPGA = "RouterTORFpga"
    ROUTER_BMC = "RouterBMC"
    ROUTER_BMC_NIC = "RouterBMCNic"
    ROUTER_POWER_CONNECTOR = "RouterPowerConnector"
    HSN_ASIC = "HSNAsic"
    HSN_CONNECTOR = "HSNConnector"
    HSN_CONNECTOR_PORT = "HSNConnectorPort"
    HSN_LINK = "HSNLink"
    MGMT_SWITCH = "MgmtSwitch"
    MGMT_SWITCH_CONNECTOR = "MgmtSwitchConnector"
    MGMT_HL_SWITCH_ENCLOSURE = "MgmtHLSwitchEnclosure"
    MGMT_HL_SWITCH = "MgmtHLSwitch"
    INVALID = "INVALID"

    def __str__(self) -> str:
        return self.value


_X = "^x([0-9]{1,4})"
_XC = _X + "c([0-7])"
_XCS = _XC + "s([0-9]+)"
_XCSB = _XCS + "b([0-9]+)"
_XCSBN = _XCSB + "n([0-9]+)"
_XCR = _XC + "r([0-9]+)"

# Ordered recognition table. Templates are anchored and mutually exclusive,
# first match wins.
XNAME_TEMPLATES: tuple[tuple[HMSType, re.Pattern[str]], ...] = tuple(
    (hms_type, re.compile(pattern))
    for hms_type, pattern in (
        (HMSType.PARTITION, r"^p([0-9]+)(.([0-9]+))?$"),
        (HMSType.SYSTEM, r"^s0$"),
        (HMSType.SMS_BOX, r"^sms([0-9]+)$"),
        (HMSType.CDU, r"^d([0-9]+)$"),
        (HMSType.CDU_MGMT_SWITCH, r"^d([0-9]+)w([0-9]+)$"),
        (HMSType.CABINET_CDU, _X + r"d([0-1])$"),
        (HMSType.CABINET_PDU_CONTROLLER, _X + r"m([0-3])$"),
        (HMSType.CABINET_PDU, _X + r"m([0-3])p([0-7])$"),
        (HMSType.CABINET_PDU_NIC, _X + r"m([0-3])i([0-3])$"),
        (HMSType.CABINET_PDU_OUTLET, _X + r"m([0-3])p([0-7])j([1-9][0-9]*)$"),
        (HMSType.CABINET_PDU_POWER_CONNECTOR, _X + r"m([0-3])p([0-7])v([1-9][0-9]*)$"),
        (HMSType.CEC, _X + r"e([0-1])$"),
        (HMSType.CABINET, _X + r"$"),
        (HMSType.CABINET_BMC, _X + r"b([0])$"),
        (HMSType.CHASSIS, _XC + r"$"),
        (HMSType.CHASSIS_BMC, _XC + r"b([0])$"),
        (HMSType.CHASSIS_BMC_NIC, _XC + r"b([0])i([0-3])$"),
        (HMSType.CMM_FPGA, _XC + r"f([0])$"),
        (HMSType.CMM_RECTIFIER, _XC + r"t([0-9])$"),
        (HMSType.COMPUTE_MODULE, _XCS + r"$"),
        (HMSType.STORAGE_GROUP, _XCSBN + r"g([0-9]+)$"),
        (HMSType.DRIVE, _XCSBN + r"g([0-9]+)k([0-9]+)$"),
        (HMSType.NODE_FPGA, _XCSB + r"f([0])$"),
        (HMSType.NODE_BMC, _XCSB + r"$"),
        (HMSType.NODE_BMC_NIC, _XCSB + r"i([0-3])$"),
        (HMSType.NODE_ENCLOSURE, _XCS + r"e([0-9]+)$"),
        (HMSType.NODE_ENCLOSURE_POWER_SUPPLY, _XCS + r"e([0-9]+)t([0-9]+)$"),
        (HMSType.NODE_POWER_CONNECTOR, _XCS + r"[jv]([1-2])$"),
        (HMSType.HSN_BOARD, _XCR + r"e([0-9]+)$"),
        (HMSType.NODE, _XCSBN + r"$"),
        (HMSType.VIRTUAL_NODE, _XCSBN + r"v([0-9]+)$"),
        (HMSType.NODE_NIC, _XCSBN + r"i([0-3])$"),
        (HMSType.NODE_HSN_NIC, _XCSBN + r"h([0-3])$"),
        (HMSType.NODE_ACCEL, _XCSBN + r"a([0-9]+)$"),
        (HMSType.NODE_ACCEL_RISER, _XCSBN + r"r([0-7])$"),
        (HMSType.MEMORY, _XCSBN + r"d([0-9]+)$"),
        (HMSType.PROCESSOR, _XCSBN + r"p([0-3])$"),
        (HMSType.ROUTER_MODULE, _XCR + r"$"),
        (HMSType.ROUTER_FPGA, _XCR + r"f([01])$"),
        (HMSType.ROUTER_TOR, _XCR + r"t([0-9]+)$"),
        (HMSType.ROUTER_TOR_FPGA, _XCR + r"t([0-9]+)f([0-1])$"),
        (HMSType.ROUTER_BMC, _XCR + r"b([0-9]+)$"),
        (HMSType.ROUTER_BMC_NIC, _XCR + r"b([0-9]+)i([0-3])$"),
        (HMSType.ROUTER_POWER_CONNECTOR, _XCR + r"v([1-2])$"),
        (HMSType.HSN_ASIC, _XCR + r"a([0-3])$"),
        (HMSType.HSN_CONNECTOR, _XCR + r"j([1-9][0-9]*)$"),
        (HMSType.HSN_CONNECTOR_PORT, _XCR + r"j([1-9][0-9]*)p([012])$"),
        (HMSType.HSN_LINK, _XCR + r"a([0-3])l([0-9]+)$"),
        (HMSType.MGMT_SWITCH, _XC + r"w([1-9][0-9]*)$"),
        (HMSType.MGMT_SWITCH_CONNECTOR, _XC + r"w([1-9][0-9]*)j([1-9][0-9]*)$"),
        (HMSType.MGMT_HL_SWITCH_ENCLOSURE, _XC + r"h([1-9][0-9]*)$"),
        (HMSType.MGMT_HL_SWITCH, _XC + r"h([1-9][0-9]*)s([1-9])$"),
    )
)

_TEMPLATE_BY_TYPE: dict[HMSType, re.Pattern[str]] = dict(XNAME_TEMPLATES)

# SLS "Type" tags for each component type
LEGACY_TYPES: dict[HMSType, str] = {
    HMSType.PARTITION: "comptype_partition",
    HMSType.SYSTEM: "comptype_system",
    HMSType.SMS_BOX: "comptype_ncn_box",
    HMSType.CDU: "comptype_cdu",
    HMSType.CDU_MGMT_SWITCH: "comptype_cdu_mgmt_switch",
    HMSType.CABINET_CDU: "comptype_cab_cdu",
    HMSType.CABINET_PDU_CONTROLLER: "comptype_cab_pdu_controller",
    HMSType.CABINET_PDU: "comptype_cab_pdu",
    HMSType.CABINET_PDU_NIC: "comptype_cab_pdu_nic",
    HMSType.CABINET_PDU_OUTLET: "comptype_cab_pdu_outlet",
    HMSType.CABINET_PDU_POWER_CONNECTOR: "comptype_cab_pdu_pwr_connector",
    HMSType.CEC: "comptype_cec",
    HMSType.CABINET: "comptype_cabinet",
    HMSType.CABINET_BMC: "comptype_cabinet_bmc",
    HMSType.CHASSIS: "comptype_chassis",
    HMSType.CHASSIS_BMC: "comptype_chassis_bmc",
    HMSType.CHASSIS_BMC_NIC: "comptype_chassis_bmc_nic",
    HMSType.CMM_FPGA: "comptype_cmm_fpga",
    HMSType.CMM_RECTIFIER: "comptype_cmm_rectifier",
    HMSType.COMPUTE_MODULE: "comptype_compmod",
    HMSType.STORAGE_GROUP: "comptype_storage_group",
    HMSType.DRIVE: "comptype_drive",
    HMSType.NODE_FPGA: "comptype_node_fpga",
    HMSType.NODE_BMC: "comptype_ncard",
    HMSType.NODE_BMC_NIC: "comptype_bmc_nic",
    HMSType.NODE_ENCLOSURE: "comptype_node_enclosure",
    HMSType.NODE_ENCLOSURE_POWER_SUPPLY: "comptype_node_enclosure_power_supply",
    HMSType.NODE_POWER_CONNECTOR: "comptype_compmod_power_connector",
    HMSType.HSN_BOARD: "comptype_hsn_board",
    HMSType.NODE: "comptype_node",
    HMSType.VIRTUAL_NODE: "comptype_virtual_node",
    HMSType.NODE_NIC: "comptype_node_nic",
    HMSType.NODE_HSN_NIC: "comptype_node_hsn_nic",
    HMSType.NODE_ACCEL: "comptype_node_accel",
    HMSType.NODE_ACCEL_RISER: "comptype_node_accel_riser",
    HMSType.MEMORY: "comptype_dimm",
    HMSType.PROCESSOR: "comptype_node_processor",
    HMSType.ROUTER_MODULE: "comptype_rtrmod",
    HMSType.ROUTER_FPGA: "comptype_rtr_fpga",
    HMSType.ROUTER_TOR: "comptype_rtr_tor",
    HMSType.ROUTER_TOR_FPGA: "comptype_rtr_tor_fpga",
    HMSType.ROUTER_BMC: "comptype_rtr_bmc",
    HMSType.ROUTER_BMC_NIC: "comptype_rtr_bmc_nic",
    HMSType.ROUTER_POWER_CONNECTOR: "comptype_rtrmod_power_connector",
    HMSType.HSN_ASIC: "comptype_hsn_asic",
    HMSType.HSN_CONNECTOR: "comptype_hsn_connector",
    HMSType.HSN_CONNECTOR_PORT: "comptype_hsn_connector_port",
    HMSType.HSN_LINK: "comptype_hsn_link",
    HMSType.MGMT_SWITCH: "comptype_mgmt_switch",
    HMSType.MGMT_SWITCH_CONNECTOR: "comptype_mgmt_switch_connector",
    HMSType.MGMT_HL_SWITCH_ENCLOSURE: "comptype_hl_switch_enclosure",
    HMSType.MGMT_HL_SWITCH: "comptype_hl_switch",
    HMSType.INVALID: "comptype_invalid",
}

_CONTROLLER_TYPES = frozenset(
    {
        HMSType.CHASSIS_BMC,
        HMSType.ROUTER_BMC,
        HMSType.NODE_BMC,
        HMSType.CABINET_PDU_CONTROLLER,
    }
)


def get_hms_type(xname: str) -> HMSType:
    """
    Classify an xname.

    Args:
        xname: Candidate xname. It is matched as given, so callers normalize first.

    Returns:
        HMSType: The matching type, or HMSType.INVALID.
    """
    for hms_type, pattern in XNAME_TEMPLATES:
        if pattern.match(xname):
            return hms_type
    return HMSType.INVALID


def get_hms_type_regex(hms_type: HMSType) -> re.Pattern[str]:
    """Return the template for a type, raising XnameError for INVALID."""
    try:
        return _TEMPLATE_BY_TYPE[hms_type]
    except KeyError:
        raise XnameError(f"unknown HMSType: {hms_type}") from None


def is_hms_comp_id_valid(xname: str) -> bool:
    """Return True if the xname matches any known template."""
    return get_hms_type(xname) != HMSType.INVALID


def remove_leading_zeros(xname: str) -> str:
    """
    Drop zeros that pad an ordinal (``x03000c00`` -> ``x3000c0``).

    A zero is dropped when it follows a letter (or another dropped zero) and
    is itself followed by a digit. The final character is always kept, so a
    lone ``0`` ordinal survives.

    Args:
        xname: Raw xname.

    Returns:
        str: Xname without padding zeros.
    """
    if len(xname) < 2:
        return xname

    kept: list[str] = []
    last_letter = True
    for i, char in enumerate(xname[:-1]):
        if char == "0" and last_letter and xname[i + 1].isdigit():
            continue
        last_letter = not char.isdigit()
        kept.append(char)
    kept.append(xname[-1])
    return "".join(kept)


def normalize_hms_comp_id(xname: str) -> str:
    """
    Normalize an xname so the same location always has the same spelling.

    Normalization does not validate: an invalid string stays invalid, a
    valid one stays valid and keeps its type.
    """
    return remove_leading_zeros(xname.strip()).lower()


def get_hms_comp_parent(xname: str) -> str:
    """
    Return the xname one level up.

    Cabinets and CDUs hang directly off the system root ``s0``. Every other
    type loses its trailing ordinal and then its trailing type letters.

    Args:
        xname: A valid xname.

    Returns:
        str: Parent xname.

    Raises:
        XnameError: If the xname is invalid or is the system root.
    """
    hms_type = get_hms_type(xname)
    if hms_type == HMSType.INVALID:
        raise XnameError(f"invalid xname: {xname}", xname=xname)
    if hms_type == HMSType.SYSTEM:
        raise XnameError(f"system root {xname} has no parent", xname=xname)
    if hms_type in (HMSType.CDU, HMSType.CABINET):
        return "s0"

    return xname.rstrip(string.digits).rstrip(string.ascii_letters)


def is_hms_type_controller(hms_type: HMSType) -> bool:
    """Return True for BMC-like types that own a management interface."""
    return hms_type in _CONTROLLER_TYPES


def legacy_type(hms_type: HMSType) -> str:
    """Return the SLS ``comptype_*`` tag for a component type."""
    return LEGACY_TYPES[hms_type]
