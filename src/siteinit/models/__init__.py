"""Data models for siteinit inputs and SLS hardware records."""

from .cabinets import (
    CabinetClass,
    CabinetDetail,
    CabinetGroupDetail,
    CabinetKind,
    ChassisCount,
    cabinet_air_cooled_chassis_count_filter,
    cabinet_class_filter,
    cabinet_ex2500_air_cooled_chassis_filter,
    cabinet_filter_and,
    cabinet_filter_or,
    cabinet_kind_filter,
    cabinet_liquid_cooled_chassis_count_filter,
    validate_cabinet_groups,
)
from .hardware import (
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
from .hmn_row import HMNRow
from .switches import ManagementSwitch, ManagementSwitchBrand, ManagementSwitchType

__all__ = [
    # Cabinets
    "CabinetClass",
    "CabinetKind",
    "CabinetDetail",
    "CabinetGroupDetail",
    "ChassisCount",
    "cabinet_kind_filter",
    "cabinet_class_filter",
    "cabinet_air_cooled_chassis_count_filter",
    "cabinet_liquid_cooled_chassis_count_filter",
    "cabinet_ex2500_air_cooled_chassis_filter",
    "cabinet_filter_and",
    "cabinet_filter_or",
    "validate_cabinet_groups",
    # Hardware
    "GenericHardware",
    "NodeProperties",
    "RouterBMCProperties",
    "MgmtSwitchConnectorProperties",
    "MgmtSwitchProperties",
    "MgmtHLSwitchProperties",
    "CDUMgmtSwitchProperties",
    "CabinetNetwork",
    "CabinetProperties",
    "build_hardware",
    # Inputs
    "HMNRow",
    "ManagementSwitch",
    "ManagementSwitchBrand",
    "ManagementSwitchType",
]
