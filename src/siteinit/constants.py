"""Named constants shared across siteinit.

Default address plans, VLANs, NID seeds and application node prefixes.
Changing any of these changes generated IP addresses, so they are pinned here
rather than scattered through the allocator and generator.
"""

# -----------------------------------------------------------------------------
# Default network CIDRs and VLANs
# -----------------------------------------------------------------------------

DEFAULT_HMN_CIDR: str = "10.254.0.0/17"
DEFAULT_HMN_VLAN: int = 4
DEFAULT_HMN_MTN_CIDR: str = "10.104.0.0/17"
DEFAULT_HMN_RVR_CIDR: str = "10.107.0.0/17"

DEFAULT_NMN_CIDR: str = "10.252.0.0/17"
DEFAULT_NMN_VLAN: int = 2
DEFAULT_NMN_MTN_CIDR: str = "10.100.0.0/17"
DEFAULT_NMN_RVR_CIDR: str = "10.106.0.0/17"

DEFAULT_NMNLB_CIDR: str = "10.92.100.0/24"
DEFAULT_HMNLB_CIDR: str = "10.94.100.0/24"

DEFAULT_MACVLAN_CIDR: str = "10.252.124.0/23"
DEFAULT_MACVLAN_VLAN: int = 2

DEFAULT_HSN_CIDR: str = "10.253.0.0/16"
DEFAULT_HSN_VLAN_RANGE: tuple[int, int] = (613, 868)

DEFAULT_CMN_CIDR: str = "10.103.6.0/24"
DEFAULT_CMN_POOL_CIDR: str = "10.103.6.128/25"
DEFAULT_CMN_STATIC_CIDR: str = "10.103.6.112/28"
DEFAULT_CMN_VLAN: int = 7

DEFAULT_CAN_CIDR: str = "10.102.11.0/24"
DEFAULT_CAN_POOL_CIDR: str = "10.102.11.128/25"
DEFAULT_CAN_STATIC_CIDR: str = "10.102.11.112/28"
DEFAULT_CAN_VLAN: int = 6

DEFAULT_MTL_CIDR: str = "10.1.1.0/16"

DEFAULT_MTU: int = 9000
DEFAULT_PARENT_DEVICE: str = "bond0"

# Per-cabinet subnets are /22, management switch subnets are /24
DEFAULT_CABINET_PREFIXLEN: int = 22
DEFAULT_NETWORKING_HARDWARE_PREFIXLEN: int = 24
DEFAULT_BOOTSTRAP_DHCP_PREFIXLEN: int = 24
UAI_MACVLAN_PREFIXLEN: int = 23

# add_biggest_subnet gives up once the block would be smaller than this
SMALLEST_BIGGEST_SUBNET_PREFIXLEN: int = 29

# Linux interface names are limited to 15 bytes
MAX_INTERFACE_NAME_BYTES: int = 15

# Subnets whose gateway and mask are widened to the supernet's
SUPERNET_HACK_SUBNETS: tuple[str, ...] = (
    "bootstrap_dhcp",
    "network_hardware",
    "can_metallb_static_pool",
    "can_metallb_address_pool",
)

# -----------------------------------------------------------------------------
# Reservations
# -----------------------------------------------------------------------------

DEFAULT_UAI_SUBNET_RESERVATIONS: dict[str, list[str]] = {
    "uai_macvlan_bridge": ["uai-macvlan-bridge"],
    "slurmctld_service": ["slurmctld-service", "slurmctld-service-nmn"],
    "slurmdbd_service": ["slurmdbd-service", "slurmdbd-service-nmn"],
    "pbs_service": ["pbs-service", "pbs-service-nmn"],
    "pbs_comm_service": ["pbs-comm-service", "pbs-comm-service-nmn"],
}

# Last octet of each MetalLB service address. These addresses must not move
# between releases, so they bypass sequential allocation.
PINNED_METALLB_RESERVATIONS: dict[str, tuple[int, list[str]]] = {
    "istio-ingressgateway": (
        71,
        [
            "api-gw-service",
            "api-gw-service-nmn.local",
            "packages",
            "registry",
            "spire.local",
            "api_gw_service",
            "registry.local",
            "packages",
            "packages.local",
            "spire",
        ],
    ),
    "istio-ingressgateway-local": (81, ["api-gw-service.local"]),
    "rsyslog-aggregator": (72, ["rsyslog-agg-service"]),
    "cray-tftp": (60, ["tftp-service"]),
    "unbound": (225, ["unbound"]),
    "docker-registry": (73, ["docker_registry_service"]),
}

# -----------------------------------------------------------------------------
# Hardware generation
# -----------------------------------------------------------------------------

DEFAULT_MOUNTAIN_STARTING_NID: int = 1000
MANAGEMENT_STARTING_NID: int = 100001

# FabricManager (fmn) nodes are generated from this CSM release on
FABRIC_MANAGER_MIN_CSM_VERSION: tuple[int, int] = (1, 7)
DEFAULT_CSM_VERSION: str = "1.6"

DEFAULT_MOUNTAIN_CHASSIS_LIST: tuple[int, ...] = (0, 1, 2, 3, 4, 5, 6, 7)
DEFAULT_HILL_CHASSIS_LIST: tuple[int, ...] = (1, 3)
DEFAULT_RIVER_CHASSIS_LIST: tuple[int, ...] = (0,)

# Liquid-cooled chassis geometry
SLOTS_PER_CHASSIS: int = 8
BMCS_PER_SLOT: int = 2
NODES_PER_BMC: int = 2

# Nodes behind a shared enclosure controller (e.g. a Gigabyte CMC)
NODES_PER_ENCLOSURE: int = 4
ENCLOSURE_CONTROLLER_BMC: int = 999

# -----------------------------------------------------------------------------
# Application nodes
# -----------------------------------------------------------------------------

DEFAULT_APPLICATION_NODE_PREFIXES: tuple[str, ...] = ("uan", "gn", "ln")

DEFAULT_APPLICATION_NODE_SUBROLES: dict[str, str] = {
    "uan": "UAN",
    "ln": "UAN",
    "gn": "Gateway",
}

SUBROLE_PLACEHOLDER: str = "~fixme~"

# -----------------------------------------------------------------------------
# Credentials
# -----------------------------------------------------------------------------

VAULT_CREDENTIAL_TEMPLATE: str = "vault://hms-creds/{xname}"
