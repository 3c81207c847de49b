"""Xname grammar and typed xname builders."""

from .types import (
    HMSType,
    get_hms_comp_parent,
    get_hms_type,
    is_hms_comp_id_valid,
    is_hms_type_controller,
    legacy_type,
    normalize_hms_comp_id,
    remove_leading_zeros,
)
from .xnames import (
    CDU,
    Cabinet,
    CabinetPDUController,
    CDUMgmtSwitch,
    Chassis,
    ChassisBMC,
    ComputeModule,
    MgmtHLSwitch,
    MgmtHLSwitchEnclosure,
    MgmtSwitch,
    MgmtSwitchConnector,
    Node,
    NodeBMC,
    RouterBMC,
    RouterModule,
    System,
    Xname,
    from_string,
)

__all__ = [
    "HMSType",
    "get_hms_type",
    "get_hms_comp_parent",
    "is_hms_comp_id_valid",
    "is_hms_type_controller",
    "legacy_type",
    "normalize_hms_comp_id",
    "remove_leading_zeros",
    "Xname",
    "System",
    "CDU",
    "CDUMgmtSwitch",
    "Cabinet",
    "CabinetPDUController",
    "Chassis",
    "ChassisBMC",
    "ComputeModule",
    "NodeBMC",
    "Node",
    "RouterModule",
    "RouterBMC",
    "MgmtSwitch",
    "MgmtSwitchConnector",
    "MgmtHLSwitchEnclosure",
    "MgmtHLSwitch",
    "from_string",
]
