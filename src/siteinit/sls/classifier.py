"""HMN connection row classification.

The ``Source`` column of an HMN connections row is free text typed into a
spreadsheet. This module decides what kind of hardware a row describes and
pulls the numbers out of it. Rules are tried in order and the first match
wins:

    columbia, sw-hsn*              -> TOR (HSN router BMC)
    x3000p0, pdu0                  -> PDU controller
    *door*                         -> cooling door (no xname exists, skipped)
    sw-leaf*, sw-25g*, sw-40g*,
    sw-agg*, sw-smn*               -> management switch (skipped, comes from switch metadata)
    anything else                  -> node

Nodes are further split into management (mn/wn/sn), fabric managers (fmn),
compute (nid/cn), application (configured prefixes), enclosure controllers
(cmc) and unknown, tried in that order. Fabric managers become management
nodes only from CSM 1.7 on; older releases skip them.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import structlog

from ..constants import FABRIC_MANAGER_MIN_CSM_VERSION
from ..models.hmn_row import HMNRow
from ..utils.exceptions import ConfigurationError, TopologyError
from .app_node_config import ApplicationNodeConfig

logger = structlog.get_logger(__name__)

PORT_REGEX = re.compile(r"[a-zA-Z]*(\d+)")
U_REGEX = re.compile(r"[a-zA-Z]*(\d+)([a-zA-Z]*)")
COMPUTE_NODE_REGEX = re.compile(r"(\d+$)")
PDU_REGEX = re.compile(r"(x\d+p|pdu)(\d+)")
CSM_VERSION_REGEX = re.compile(r"^v?(\d+)\.(\d+)")

ROLE_MANAGEMENT = "Management"
ROLE_COMPUTE = "Compute"
ROLE_APPLICATION = "Application"
ROLE_SYSTEM = "System"

# prefix -> (subrole, alias template)
MANAGEMENT_PREFIXES: dict[str, tuple[str, str]] = {
    "mn": ("Master", "ncn-m{:03d}"),
    "wn": ("Worker", "ncn-w{:03d}"),
    "sn": ("Storage", "ncn-s{:03d}"),
}

FABRIC_MANAGER_PREFIX = "fmn"
FABRIC_MANAGER_SUBROLE = "FabricManager"
COMPUTE_PREFIXES = ("nid", "cn")
MANAGEMENT_SWITCH_PREFIXES = ("sw-leaf", "sw-25g", "sw-40g", "sw-leaf-bmc", "sw-agg", "sw-smn")


class RowKind(str, Enum):
    """What an HMN row describes."""

    TOR = "tor"
    PDU = "pdu"
    DOOR = "door"
    MGMT_SWITCH = "mgmt_switch"
    NODE = "node"
    FABRIC_MANAGER = "fabric_manager"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def produces_hardware(self) -> bool:
        return self in (RowKind.TOR, RowKind.PDU, RowKind.NODE)


@dataclass
class NIDSequence:
    """
    Hands out consecutive NIDs.

    Attributes:
        next_nid: The NID the next call to ``take`` returns.
    """

    next_nid: int

    def take(self) -> int:
        nid = self.next_nid
        self.next_nid += 1
        return nid


@dataclass(frozen=True)
class RowClassification:
    """
    Result of classifying one row.

    Attributes:
        kind: What the row describes.
        role: HSM role for nodes.
        sub_role: HSM subrole for nodes, empty when there is none.
        nid: Node ID for management and compute nodes.
        aliases: DNS aliases derived from the source name.
        pdu_number: Controller ordinal for PDU rows.
    """

    kind: RowKind
    role: str = ""
    sub_role: str = ""
    nid: int | None = None
    aliases: list[str] = field(default_factory=list)
    pdu_number: int | None = None


def parse_u_location(row: HMNRow) -> tuple[int, int]:
    """
    Rack U and BMC ordinal from a row's location columns.

    The BMC is 1 for a left (``l``) and 2 for a right (``r``) half-width
    node, either from the sub-location or a letter stuck onto the U
    (``u17L``). Everything else is BMC 0.

    Raises:
        TopologyError: If the location holds no U number.
    """
    match = U_REGEX.search(row.source_location)
    if not match:
        raise TopologyError(
            "Attempted to run regex on source location but did not find U number! "
            f"location: {row.source_location!r}",
            source=row.source,
        )

    dangling = match.group(2).lower()
    sub_location = row.source_sub_location.lower()
    bmc = 0
    if sub_location == "l" or dangling == "l":
        bmc = 1
    elif sub_location == "r" or dangling == "r":
        bmc = 2
    return int(match.group(1)), bmc


def csm_major_minor(version: str) -> tuple[int, int]:
    """
    Major and minor release numbers from a CSM version such as ``1.7``,
    ``v1.7.0`` or ``1.7.0-rc.1``.

    Raises:
        ConfigurationError: If the version does not start with MAJOR.MINOR.
    """
    match = CSM_VERSION_REGEX.match(version.strip())
    if not match:
        raise ConfigurationError(f"Invalid CSM version {version!r}, expected MAJOR.MINOR")
    return int(match.group(1)), int(match.group(2))


def supports_fabric_manager(csm_version: str) -> bool:
    return csm_major_minor(csm_version) >= FABRIC_MANAGER_MIN_CSM_VERSION


def parse_port(port: str, source: str = "") -> int:
    """
    Switch port number from a ``DestinationPort`` value like ``j37``.

    Raises:
        TopologyError: If the value holds no number.
    """
    match = PORT_REGEX.search(port)
    if not match:
        raise TopologyError(f"Failed to find port number in {port!r}", source=source)
    return int(match.group(1))


def _parse_index(source: str, prefix: str) -> int:
    index = source.removeprefix(prefix)
    try:
        return int(index)
    except ValueError:
        raise TopologyError(
            f"Failed to parse index number string to integer! index: {index!r}",
            source=source,
        ) from None


def _classify_node(
    row: HMNRow,
    source: str,
    app_config: ApplicationNodeConfig,
    management_nids: NIDSequence,
    fabric_manager_nodes: bool,
) -> RowClassification:
    for prefix, (sub_role, alias_template) in MANAGEMENT_PREFIXES.items():
        if source.startswith(prefix):
            index = _parse_index(source, prefix)
            return RowClassification(
                kind=RowKind.NODE,
                role=ROLE_MANAGEMENT,
                sub_role=sub_role,
                nid=management_nids.take(),
                aliases=[alias_template.format(index)],
            )

    if source.startswith(FABRIC_MANAGER_PREFIX):
        if not fabric_manager_nodes:
            return RowClassification(kind=RowKind.FABRIC_MANAGER)
        index = _parse_index(source, FABRIC_MANAGER_PREFIX)
        return RowClassification(
            kind=RowKind.NODE,
            role=ROLE_MANAGEMENT,
            sub_role=FABRIC_MANAGER_SUBROLE,
            nid=management_nids.take(),
            aliases=[f"fmn{index:03d}"],
        )

    if source.startswith(COMPUTE_PREFIXES):
        match = COMPUTE_NODE_REGEX.search(row.source)
        if not match:
            raise TopologyError(
                "Attempted to run regex on source but did not find NID number!",
                source=row.source,
            )
        nid = int(match.group(1))
        return RowClassification(
            kind=RowKind.NODE,
            role=ROLE_COMPUTE,
            nid=nid,
            aliases=[f"nid{nid:06d}"],
        )

    sub_role = app_config.match_prefix(source)
    if sub_role is not None:
        return RowClassification(kind=RowKind.NODE, role=ROLE_APPLICATION, sub_role=sub_role)

    if "cmc" in source:
        return RowClassification(kind=RowKind.NODE, role=ROLE_SYSTEM)

    return RowClassification(kind=RowKind.UNKNOWN)


_Rule = Callable[[str], bool]

_RULES: list[tuple[_Rule, RowKind]] = [
    (lambda s: s == "columbia" or s.startswith("sw-hsn"), RowKind.TOR),
    (lambda s: PDU_REGEX.search(s) is not None, RowKind.PDU),
    (lambda s: "door" in s, RowKind.DOOR),
    (lambda s: s.startswith(MANAGEMENT_SWITCH_PREFIXES), RowKind.MGMT_SWITCH),
]


def classify_row(
    row: HMNRow,
    app_config: ApplicationNodeConfig,
    management_nids: NIDSequence,
    fabric_manager_nodes: bool = False,
) -> RowClassification:
    """
    Decide what a row describes.

    Management nodes take the next NID from ``management_nids``; nothing
    else is consumed or modified. ``fmn`` rows are management nodes when
    ``fabric_manager_nodes`` is set and are skipped otherwise.

    Args:
        row: The HMN connections row.
        app_config: Application node prefixes and subroles.
        management_nids: NID source for management nodes.
        fabric_manager_nodes: Whether the target CSM release supports FabricManager nodes.

    Returns:
        RowClassification: The kind of row and its parsed fields.

    Raises:
        TopologyError: If a recognised source name has a malformed number.
    """
    source = row.source.lower()

    kind = RowKind.NODE
    for matches, rule_kind in _RULES:
        if matches(source):
            kind = rule_kind
            break

    if kind == RowKind.PDU:
        match = PDU_REGEX.search(source)
        return RowClassification(kind=kind, pdu_number=int(match.group(2)))
    if kind == RowKind.DOOR:
        logger.warning(
            "Cooling door found, but xname does not yet exist for cooling doors!",
            source=row.source,
            rack=row.source_rack,
        )
        return RowClassification(kind=kind)
    if kind == RowKind.MGMT_SWITCH:
        logger.warning(
            "Ignoring management switch found in hmn_connections, management switch "
            "information is solely from switch_metadata.csv",
            source=row.source,
        )
        return RowClassification(kind=kind)
    if kind == RowKind.TOR:
        return RowClassification(kind=kind)

    result = _classify_node(row, source, app_config, management_nids, fabric_manager_nodes)
    if result.kind == RowKind.FABRIC_MANAGER:
        logger.info("Skipping FabricManager node, requires CSM 1.7 or later", source=row.source)
    elif result.kind == RowKind.UNKNOWN:
        logger.warning(
            "Found unknown source prefix! If this is expected to be an Application node, "
            "please update application_node_config.yaml",
            source=row.source,
        )
    return result
