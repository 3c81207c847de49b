"""Configuration management for siteinit."""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from .constants import (
    DEFAULT_BOOTSTRAP_DHCP_PREFIXLEN,
    DEFAULT_CABINET_PREFIXLEN,
    DEFAULT_CMN_CIDR,
    DEFAULT_CMN_POOL_CIDR,
    DEFAULT_CMN_STATIC_CIDR,
    DEFAULT_CMN_VLAN,
    DEFAULT_CSM_VERSION,
    DEFAULT_CAN_VLAN,
    DEFAULT_HMN_CIDR,
    DEFAULT_HMN_MTN_CIDR,
    DEFAULT_HMN_RVR_CIDR,
    DEFAULT_HMN_VLAN,
    DEFAULT_HSN_CIDR,
    DEFAULT_MOUNTAIN_STARTING_NID,
    DEFAULT_MTL_CIDR,
    DEFAULT_NETWORKING_HARDWARE_PREFIXLEN,
    DEFAULT_NMN_CIDR,
    DEFAULT_NMN_MTN_CIDR,
    DEFAULT_NMN_RVR_CIDR,
    DEFAULT_NMN_VLAN,
    MANAGEMENT_STARTING_NID,
)

_TRUE_STRINGS = ("true", "1", "yes", "on")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: Path | None = None


@dataclass
class NetworkSettings:
    """
    Site network inputs.

    CIDRs default to the standard CSM address plan. An empty CAN CIDR
    means the site has no CAN, and empty pool CIDRs skip the MetalLB pool.
    """

    # Supernets
    hmn_cidr: str = DEFAULT_HMN_CIDR
    nmn_cidr: str = DEFAULT_NMN_CIDR
    cmn_cidr: str = DEFAULT_CMN_CIDR
    mtl_cidr: str = DEFAULT_MTL_CIDR
    hsn_cidr: str = DEFAULT_HSN_CIDR
    hmn_mtn_cidr: str = DEFAULT_HMN_MTN_CIDR
    hmn_rvr_cidr: str = DEFAULT_HMN_RVR_CIDR
    nmn_mtn_cidr: str = DEFAULT_NMN_MTN_CIDR
    nmn_rvr_cidr: str = DEFAULT_NMN_RVR_CIDR

    # Customer networks
    can_cidr: str = ""
    can_gateway: str = ""
    can_static_pool: str = ""
    can_dynamic_pool: str = ""
    cmn_static_pool: str = DEFAULT_CMN_STATIC_CIDR
    cmn_dynamic_pool: str = DEFAULT_CMN_POOL_CIDR
    cmn_external_dns: str = ""

    # Bootstrap VLANs
    hmn_bootstrap_vlan: int = DEFAULT_HMN_VLAN
    nmn_bootstrap_vlan: int = DEFAULT_NMN_VLAN
    cmn_bootstrap_vlan: int = DEFAULT_CMN_VLAN
    can_bootstrap_vlan: int = DEFAULT_CAN_VLAN

    # Layout
    supernet_hack: bool = True
    cabinet_prefixlen: int = DEFAULT_CABINET_PREFIXLEN
    networking_hardware_prefixlen: int = DEFAULT_NETWORKING_HARDWARE_PREFIXLEN
    bootstrap_dhcp_prefixlen: int = DEFAULT_BOOTSTRAP_DHCP_PREFIXLEN
    additional_networking_space: int = 0


@dataclass
class GeneratorSettings:
    """SLS hardware generation settings."""

    mountain_starting_nid: int = DEFAULT_MOUNTAIN_STARTING_NID
    management_starting_nid: int = MANAGEMENT_STARTING_NID
    csm_version: str = DEFAULT_CSM_VERSION

    def __post_init__(self) -> None:
        # An unquoted YAML 1.7 arrives as a float
        self.csm_version = str(self.csm_version)


@dataclass
class SiteInitConfig:
    """
    Complete configuration for siteinit.

    The YAML file has one mapping per section (``logging``, ``network``,
    ``generator``); missing or empty sections keep their defaults.
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    network: NetworkSettings = field(default_factory=NetworkSettings)
    generator: GeneratorSettings = field(default_factory=GeneratorSettings)

    @classmethod
    def from_file(cls, config_path: Path) -> "SiteInitConfig":
        """
        Read a site configuration file.

        Args:
            config_path: YAML file to read

        Returns:
            SiteInitConfig with every section filled in

        Raises:
            ValueError: If the file is not valid YAML or its top level is not a mapping
            TypeError: If a section names a setting that does not exist
        """
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        logging_section = dict(data.get("logging") or {})
        if logging_section.get("file"):
            logging_section["file"] = Path(logging_section["file"])

        return cls(
            logging=LoggingConfig(**logging_section),
            network=NetworkSettings(**(data.get("network") or {})),
            generator=GeneratorSettings(**(data.get("generator") or {})),
        )

    def to_file(self, config_path: Path) -> None:
        """Write the configuration as YAML, creating parent directories."""
        logging_section = {k: v for k, v in asdict(self.logging).items() if v is not None}
        if "file" in logging_section:
            logging_section["file"] = str(logging_section["file"])

        document = {
            "logging": logging_section,
            "network": asdict(self.network),
            "generator": asdict(self.generator),
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls) -> "SiteInitConfig":
        """
        Build a configuration from ``SITEINIT_*`` environment variables.

        Environment variables:
            SITEINIT_LOG_LEVEL: Logging level (default: INFO)
            SITEINIT_LOG_FORMAT: console or json (default: console)
            SITEINIT_MOUNTAIN_STARTING_NID: First liquid-cooled NID (default: 1000)
            SITEINIT_SUPERNET_HACK: true/1/yes/on to apply the supernet hack (default: true)
            SITEINIT_CSM_VERSION: Target CSM release, MAJOR.MINOR (default: 1.6)

        Raises:
            ValueError: If SITEINIT_MOUNTAIN_STARTING_NID is not an integer
        """
        env = os.environ

        raw_nid = env.get("SITEINIT_MOUNTAIN_STARTING_NID", str(DEFAULT_MOUNTAIN_STARTING_NID))
        try:
            starting_nid = int(raw_nid)
        except ValueError as e:
            raise ValueError(
                f"SITEINIT_MOUNTAIN_STARTING_NID must be an integer, got {raw_nid!r}"
            ) from e

        supernet_hack = env.get("SITEINIT_SUPERNET_HACK", "true").lower() in _TRUE_STRINGS

        return cls(
            logging=LoggingConfig(
                level=env.get("SITEINIT_LOG_LEVEL", "INFO"),
                format=env.get("SITEINIT_LOG_FORMAT", "console"),
            ),
            network=NetworkSettings(supernet_hack=supernet_hack),
            generator=GeneratorSettings(
                mountain_starting_nid=starting_nid,
                csm_version=env.get("SITEINIT_CSM_VERSION", DEFAULT_CSM_VERSION),
            ),
        )


def load_config(config_file: Path | None = None) -> SiteInitConfig:
    """
    Load the configuration file when one is given, otherwise the environment.

    Raises:
        FileNotFoundError: If config_file is given but does not exist
    """
    if config_file is None:
        return SiteInitConfig.from_env()
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")
    return SiteInitConfig.from_file(config_file)
