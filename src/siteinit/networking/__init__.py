"""IPv4 allocation and CSM network construction."""

from .builder import build_csm_networks, create_net_from_layout_config
from .defaults import default_layouts, network_template
from .layout import NetworkLayoutConfiguration
from .network import IPReservation, IPV4Network, IPV4Subnet

__all__ = [
    "IPReservation",
    "IPV4Network",
    "IPV4Subnet",
    "NetworkLayoutConfiguration",
    "build_csm_networks",
    "create_net_from_layout_config",
    "default_layouts",
    "network_template",
]
