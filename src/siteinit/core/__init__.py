"""Input file loaders and the generation pipeline."""

from .parser import (
    HMNConnectionsParser,
    SwitchMetadataParser,
    load_application_node_config,
    load_cabinet_groups,
)
from .pipeline import SiteInputs, build_networks, build_sls_state

__all__ = [
    "HMNConnectionsParser",
    "SwitchMetadataParser",
    "SiteInputs",
    "build_networks",
    "build_sls_state",
    "load_application_node_config",
    "load_cabinet_groups",
]
