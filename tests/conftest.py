"""Pytest configuration and shared fixtures.

This module provides reusable fixtures for testing siteinit.
Fixtures are organized by category:
- Path fixtures: Sample input file paths
- Model fixtures: Switches, cabinet groups and application node config
- Row fixtures: HMN connection rows
- Generator fixtures: Cabinet templates and switch records for StateGenerator
"""

from pathlib import Path

import pytest
import structlog

from src.siteinit.config import NetworkSettings
from src.siteinit.models.cabinets import CabinetGroupDetail
from src.siteinit.models.hmn_row import HMNRow
from src.siteinit.models.switches import ManagementSwitch, assign_switch_names
from src.siteinit.sls.app_node_config import ApplicationNodeConfig
from src.siteinit.sls.generator import (
    GeneratorInputState,
    build_switch_hardware,
    gen_cabinet_map,
)

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def sample_dir() -> Path:
    """Get path to the sample inputs directory."""
    return Path(__file__).parent.parent / "samples"


@pytest.fixture
def cabinets_yaml(sample_dir: Path) -> Path:
    return sample_dir / "cabinets.yaml"


@pytest.fixture
def switch_metadata_csv(sample_dir: Path) -> Path:
    return sample_dir / "switch_metadata.csv"


@pytest.fixture
def app_config_yaml(sample_dir: Path) -> Path:
    return sample_dir / "application_node_config.yaml"


@pytest.fixture
def hmn_connections_json(sample_dir: Path) -> Path:
    return sample_dir / "hmn_connections.json"


# =============================================================================
# Model Fixtures
# =============================================================================


def make_switch(xname: str, switch_type: str, brand: str = "Aruba", model: str = "8325"):
    """Build a switch the way the switch metadata parser does."""
    switch = ManagementSwitch.model_validate(
        {"Switch Xname": xname, "Type": switch_type, "Brand": brand, "Model": model}
    )
    switch.normalize()
    return switch


@pytest.fixture
def switches() -> list[ManagementSwitch]:
    """Two spines, a leaf, a Dell LeafBMC and two CDU switches, named."""
    result = [
        make_switch("x3000c0w14", "LeafBMC", "Dell", "S3048-ON"),
        make_switch("x3000c0h33s1", "Spine"),
        make_switch("x3000c0h34s1", "Spine"),
        make_switch("x3000c0h35s1", "Leaf"),
        make_switch("d0w1", "CDU", model="8360"),
        make_switch("d0w2", "CDU", model="8360"),
    ]
    assign_switch_names(result)
    return result


def make_group(data: dict) -> CabinetGroupDetail:
    group = CabinetGroupDetail.model_validate(data)
    group.populate_ids()
    return group


@pytest.fixture
def river_group() -> CabinetGroupDetail:
    return make_group({"type": "river", "total_number": 1, "starting_id": 3000})


@pytest.fixture
def hill_group() -> CabinetGroupDetail:
    return make_group({"type": "hill", "total_number": 1, "starting_id": 9000})


@pytest.fixture
def mountain_group() -> CabinetGroupDetail:
    return make_group({"type": "mountain", "total_number": 1, "starting_id": 1000})


@pytest.fixture
def cabinet_groups(river_group, hill_group, mountain_group) -> list[CabinetGroupDetail]:
    """One river, one hill and one mountain cabinet."""
    return [river_group, hill_group, mountain_group]


@pytest.fixture
def app_config() -> ApplicationNodeConfig:
    """Application node config with a custom prefix and two aliased nodes."""
    config = ApplicationNodeConfig.model_validate(
        {
            "prefixes": ["vn"],
            "prefix_hsm_subroles": {"vn": "Visualization"},
            "aliases": {
                "x3000c0s17b0n0": ["uan01-nmn", "login01"],
                "x3000c0s19b0n0": ["vis01"],
            },
        }
    )
    config.normalize()
    return config


@pytest.fixture
def network_settings() -> NetworkSettings:
    return NetworkSettings()


# =============================================================================
# Row Fixtures
# =============================================================================


def make_row(source: str, location: str, port: str = "", rack: str = "x3000", **extra) -> HMNRow:
    """Build an HMN row cabled to the x3000c0w14 LeafBMC switch when a port is given."""
    data = {
        "Source": source,
        "SourceRack": rack,
        "SourceLocation": location,
        "DestinationRack": "x3000",
        "DestinationLocation": "u14",
        "DestinationPort": port,
    }
    data.update(extra)
    return HMNRow.model_validate(data)


@pytest.fixture
def management_rows() -> list[HMNRow]:
    return [
        make_row("mn01", "u01", "j37"),
        make_row("wn01", "u04", "j38"),
        make_row("sn01", "u07", "j39"),
    ]


@pytest.fixture
def enclosure_rows() -> list[HMNRow]:
    """A CMC and the four nodes that share its enclosure."""
    parent = {"SourceParent": "SubRack-001-CMC"}
    return [
        make_row("SubRack-001-CMC", "u27", "j42"),
        make_row("nid000001", "u27", "j43", SourceSubLocation="L", **parent),
        make_row("nid000002", "u27", "j44", SourceSubLocation="R", **parent),
        make_row("nid000003", "u28", "j45", SourceSubLocation="L", **parent),
        make_row("nid000004", "u28", "j46", SourceSubLocation="R", **parent),
    ]


# =============================================================================
# Generator Fixtures
# =============================================================================


@pytest.fixture
def input_state_factory(switches, app_config):
    """Build a GeneratorInputState from cabinet groups, without networks."""

    def _factory(groups: list[CabinetGroupDetail], **kwargs) -> GeneratorInputState:
        kwargs.setdefault("application_node_config", app_config)
        kwargs.setdefault("management_switches", build_switch_hardware(switches))
        return GeneratorInputState.from_cabinet_map(gen_cabinet_map(groups, {}), **kwargs)

    return _factory


# =============================================================================
# Infrastructure Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any logging configuration a CLI test applied."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def row_factory():
    """Expose ``make_row`` to tests."""
    return make_row


@pytest.fixture
def switch_factory():
    """Expose ``make_switch`` to tests."""
    return make_switch


@pytest.fixture
def group_factory():
    """Expose ``make_group`` to tests."""
    return make_group
