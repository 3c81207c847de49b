"""
Site-init pipeline.

Ties the loaders, the network builder and the SLS generator together:

1. Load and validate cabinets, switches, application node config and HMN rows
2. Build the network map from cabinets and switches
3. Give each switch its name and address from the HMN ``network_hardware`` subnet
4. Build cabinet templates from cabinets and networks
5. Generate the hardware inventory and assemble the SLS state
"""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from ..config import SiteInitConfig
from ..models.cabinets import CabinetGroupDetail
from ..models.hmn_row import HMNRow
from ..models.switches import ManagementSwitch
from ..networking import build_csm_networks, default_layouts
from ..networking.network import IPV4Network
from ..observability.logger import LogContext
from ..sls.app_node_config import ApplicationNodeConfig
from ..sls.generator import (
    GeneratorInputState,
    StateGenerator,
    assign_management_interfaces,
    build_switch_hardware,
    gen_cabinet_map,
)
from ..sls.state import SLSState
from ..utils.exceptions import ResourceNotFoundError
from .parser import (
    HMNConnectionsParser,
    SwitchMetadataParser,
    load_application_node_config,
    load_cabinet_groups,
)

logger = structlog.get_logger(__name__)


@dataclass
class SiteInputs:
    """
    Everything read from the site's input files.

    Attributes:
        cabinet_groups: Cabinet groups with IDs populated.
        switches: Named management switches.
        app_config: Normalized application node config.
        hmn_rows: HMN connection rows in file order.
    """

    cabinet_groups: list[CabinetGroupDetail] = field(default_factory=list)
    switches: list[ManagementSwitch] = field(default_factory=list)
    app_config: ApplicationNodeConfig = field(default_factory=ApplicationNodeConfig)
    hmn_rows: list[HMNRow] = field(default_factory=list)

    @classmethod
    def from_files(
        cls,
        cabinets: Path,
        switch_metadata: Path,
        app_config: Path | None = None,
        hmn_connections: Path | None = None,
    ) -> "SiteInputs":
        """
        Load every input file in strict mode.

        Raises:
            FileNotFoundError: If a file is missing
            SiteInitError: If any file is invalid
        """
        inputs = cls(
            cabinet_groups=load_cabinet_groups(cabinets),
            switches=SwitchMetadataParser(switch_metadata).parse(strict=True),
        )
        if app_config is not None:
            inputs.app_config = load_application_node_config(app_config)
            inputs.app_config.validate_config()
        if hmn_connections is not None:
            inputs.hmn_rows = HMNConnectionsParser(hmn_connections).parse(strict=True)
        return inputs


def build_networks(inputs: SiteInputs, config: SiteInitConfig) -> dict[str, IPV4Network]:
    """
    Build every network for the site.

    Raises:
        ConfigurationError: If two networks claim the same VLAN
        AllocationError: If a network runs out of space
    """
    with LogContext(stage="networks"):
        layouts = default_layouts(config.network, inputs.cabinet_groups, inputs.switches)
        networks = build_csm_networks(
            layouts, inputs.cabinet_groups, inputs.switches, config.network
        )
        logger.info("Built networks", networks=sorted(networks))
    return networks


def build_sls_state(inputs: SiteInputs, config: SiteInitConfig) -> SLSState:
    """
    Run the whole pipeline.

    Args:
        inputs: Loaded site inputs.
        config: Site configuration.

    Returns:
        SLSState: Hardware inventory and networks.

    Raises:
        SiteInitError: On any invalid input or inconsistency.
    """
    networks = build_networks(inputs, config)

    try:
        hardware_subnet = networks["HMN"].lookup_subnet("network_hardware")
    except (KeyError, ResourceNotFoundError):
        logger.warning("HMN has no network_hardware subnet, switches keep generated names")
    else:
        assign_management_interfaces(inputs.switches, hardware_subnet)

    cabinet_map = gen_cabinet_map(inputs.cabinet_groups, networks)
    input_state = GeneratorInputState.from_cabinet_map(
        cabinet_map,
        application_node_config=inputs.app_config,
        management_switches=build_switch_hardware(inputs.switches),
        mountain_starting_nid=config.generator.mountain_starting_nid,
        management_starting_nid=config.generator.management_starting_nid,
        csm_version=config.generator.csm_version,
        networks=networks,
    )
    return StateGenerator(input_state, inputs.hmn_rows).generate_sls_state()
