"""SLS hardware inventory generation and output."""

from .app_node_config import ApplicationNodeConfig
from .classifier import NIDSequence, RowClassification, RowKind, classify_row
from .generator import (
    CabinetTemplate,
    GeneratorInputState,
    StateGenerator,
    assign_management_interfaces,
    build_switch_hardware,
    convert_management_switch_to_sls,
    gen_cabinet_map,
    generate_sls_state,
    get_sorted_cabinet_xnames,
)
from .state import SLSState, networks_to_dict

__all__ = [
    "ApplicationNodeConfig",
    "CabinetTemplate",
    "GeneratorInputState",
    "NIDSequence",
    "RowClassification",
    "RowKind",
    "SLSState",
    "StateGenerator",
    "assign_management_interfaces",
    "build_switch_hardware",
    "classify_row",
    "convert_management_switch_to_sls",
    "gen_cabinet_map",
    "generate_sls_state",
    "get_sorted_cabinet_xnames",
    "networks_to_dict",
]
