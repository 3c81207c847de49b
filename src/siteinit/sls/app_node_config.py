"""Application node classification config.

Application nodes (UANs, gateways, login nodes) are recognised by the prefix
of their ``Source`` name in the HMN connections file. The site can add
prefixes, map them to HSM subroles, and give individual nodes extra DNS
aliases:

    prefixes:
      - vn
    prefix_hsm_subroles:
      vn: Visualization
    aliases:
      x3000c0s26b0n0: ["visualization-01"]
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from ..constants import (
    DEFAULT_APPLICATION_NODE_PREFIXES,
    DEFAULT_APPLICATION_NODE_SUBROLES,
    SUBROLE_PLACEHOLDER,
)
from ..utils.exceptions import ConfigurationError
from ..xname.types import HMSType, get_hms_type, is_hms_comp_id_valid, normalize_hms_comp_id


def _none_is_empty_list(v: Any) -> Any:
    return [] if v is None else v


def _none_is_empty_dict(v: Any) -> Any:
    return {} if v is None else v


class ApplicationNodeConfig(BaseModel):
    """
    User-supplied application node prefixes, subroles and aliases.

    Attributes:
        prefixes: Extra source-name prefixes, tried before the defaults.
        prefix_hsm_subroles: Prefix to HSM subrole. Overrides the defaults.
        aliases: Node xname to extra aliases.
    """

    model_config = ConfigDict(populate_by_name=True)

    prefixes: Annotated[
        list[str], Field(default_factory=list), BeforeValidator(_none_is_empty_list)
    ]
    prefix_hsm_subroles: Annotated[
        dict[str, str], Field(default_factory=dict), BeforeValidator(_none_is_empty_dict)
    ]
    aliases: Annotated[
        dict[str, list[str]], Field(default_factory=dict), BeforeValidator(_none_is_empty_dict)
    ]

    def normalize(self) -> None:
        """
        Lower-case prefixes and subrole keys and normalize alias xnames.

        The config is only updated when every key normalizes cleanly.

        Raises:
            ConfigurationError: If two keys collide after normalization.
        """
        prefixes = [prefix.lower() for prefix in self.prefixes]

        subroles: dict[str, str] = {}
        for prefix, sub_role in self.prefix_hsm_subroles.items():
            normalized = prefix.lower()
            if normalized in subroles:
                raise ConfigurationError(
                    "found a duplicate application node prefix after normalization - "
                    f"Prefix: {prefix}, Normalized Prefix: {normalized}"
                )
            subroles[normalized] = sub_role

        aliases: dict[str, list[str]] = {}
        for xname, node_aliases in self.aliases.items():
            normalized = normalize_hms_comp_id(xname)
            if normalized in aliases:
                raise ConfigurationError(
                    "found a duplicate application node xname after normalization - "
                    f"Xname: {xname}, Normalized Xname: {normalized}"
                )
            aliases[normalized] = node_aliases

        self.prefixes = prefixes
        self.prefix_hsm_subroles = subroles
        self.aliases = aliases

    def validate_config(self) -> None:
        """
        Check alias xnames, alias uniqueness and subrole placeholders.

        Raises:
            ConfigurationError: On the first problem found.
        """
        for xname in self.aliases:
            if not is_hms_comp_id_valid(xname):
                raise ConfigurationError(
                    f"invalid xname for application node used as key in Aliases map: {xname}"
                )
            hms_type = get_hms_type(xname)
            if hms_type != HMSType.NODE:
                raise ConfigurationError(
                    f"invalid type {hms_type} for Application xname in Aliases map: {xname}"
                )

        owners: dict[str, str] = {}
        for xname, node_aliases in self.aliases.items():
            for alias in node_aliases:
                if alias in owners:
                    raise ConfigurationError(
                        f"found duplicate application node alias: {alias} "
                        f"for xnames {owners[alias]} {xname}"
                    )
                owners[alias] = xname

        unmapped = [
            prefix
            for prefix, sub_role in self.prefix_hsm_subroles.items()
            if sub_role == SUBROLE_PLACEHOLDER
        ]
        if len(unmapped) > 1:
            raise ConfigurationError(
                f"prefixes, '{unmapped}', have no subrole mapping. Replace "
                f"`{SUBROLE_PLACEHOLDER}` placeholders with valid subroles in the "
                "Application Node Config file"
            )
        if len(unmapped) == 1:
            raise ConfigurationError(
                f"prefix, '{unmapped}', has no subrole mapping. Replace "
                f"`{SUBROLE_PLACEHOLDER}` placeholder with a valid subrole in the "
                "Application Node Config file"
            )

    def all_prefixes(self) -> list[str]:
        """User prefixes followed by the default prefixes."""
        return [*self.prefixes, *DEFAULT_APPLICATION_NODE_PREFIXES]

    def all_subroles(self) -> dict[str, str]:
        """Default subroles overlaid with the user's."""
        return {**DEFAULT_APPLICATION_NODE_SUBROLES, **self.prefix_hsm_subroles}

    def match_prefix(self, source: str) -> str | None:
        """
        Subrole for a lower-cased source name, or None if it is not an application node.

        The first matching prefix wins. A matched prefix with no subrole
        resolves to an empty string.
        """
        subroles = self.all_subroles()
        for prefix in self.all_prefixes():
            if source.startswith(prefix):
                return subroles.get(prefix, "")
        return None

    def node_aliases(self, xname: str) -> list[str]:
        """Extra aliases configured for a node xname."""
        return list(self.aliases.get(xname, []))
