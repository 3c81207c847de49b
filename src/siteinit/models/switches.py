"""Management switch metadata models.

Switches come from ``switch_metadata.csv``:

```
Switch Xname,Type,Brand,Model
x3000c0w14,LeafBMC,Dell,S3048-ON
x3000c0h33s1,Spine,Mellanox,SN2700
```

The switch name (``sw-spine-001``) and the management interface address are
not part of the file. Names are numbered per type in file order, and the
address is filled in from the ``network_hardware`` reservation whose comment
is the switch xname.
"""

from enum import Enum
from ipaddress import IPv4Address
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from ..utils.exceptions import XnameError
from ..xname.types import HMSType, get_hms_type, is_hms_comp_id_valid, normalize_hms_comp_id


class ManagementSwitchBrand(str, Enum):
    """Switch vendors."""

    ARUBA = "Aruba"
    DELL = "Dell"
    MELLANOX = "Mellanox"

    def __str__(self) -> str:
        return self.value


class ManagementSwitchType(str, Enum):
    """Role of a switch in the management network."""

    CDU = "CDU"
    LEAF = "Leaf"
    LEAF_BMC = "LeafBMC"
    SPINE = "Spine"
    AGGREGATION = "Aggregation"

    def __str__(self) -> str:
        return self.value

    @property
    def name_prefix(self) -> str:
        """Hostname prefix for switches of this type."""
        return _NAME_PREFIXES[self]


_NAME_PREFIXES: dict[ManagementSwitchType, str] = {
    ManagementSwitchType.CDU: "sw-cdu",
    ManagementSwitchType.LEAF: "sw-leaf",
    ManagementSwitchType.LEAF_BMC: "sw-leaf-bmc",
    ManagementSwitchType.SPINE: "sw-spine",
    ManagementSwitchType.AGGREGATION: "sw-agg",
}


def strip_whitespace(v: Any) -> Any:
    """Strip surrounding whitespace from string values."""
    if isinstance(v, str):
        return v.strip()
    return v


def empty_is_none(v: Any) -> Any:
    """Treat a blank value as missing."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


class ManagementSwitch(BaseModel):
    """
    One management network switch.

    Attributes:
        xname: Switch xname. MgmtSwitch for LeafBMC, MgmtHLSwitch for
            Leaf/Spine/Aggregation, CDUMgmtSwitch (or MgmtHLSwitch) for CDU.
        name: Hostname such as ``sw-leaf-bmc-001``.
        brand: Vendor, decides connector port naming.
        model: Vendor model string.
        switch_type: Role of the switch.
        management_interface: SNMP/REST address, set once networks are built.
    """

    model_config = ConfigDict(populate_by_name=True)

    xname: Annotated[str, Field(alias="Switch Xname"), BeforeValidator(strip_whitespace)]
    name: Annotated[str, Field(default="")]
    brand: Annotated[ManagementSwitchBrand, Field(alias="Brand"), BeforeValidator(strip_whitespace)]
    model: Annotated[str, Field(default="", alias="Model"), BeforeValidator(strip_whitespace)]
    switch_type: Annotated[
        ManagementSwitchType, Field(alias="Type"), BeforeValidator(strip_whitespace)
    ]
    management_interface: Annotated[
        IPv4Address | None, Field(default=None), BeforeValidator(empty_is_none)
    ]

    def normalize(self) -> None:
        """Normalize the xname in place."""
        self.xname = normalize_hms_comp_id(self.xname)

    def validate_switch(self) -> None:
        """
        Check that the xname is valid and of the right type for the switch role.

        Raises:
            XnameError: If the xname is invalid or does not match the switch type.
        """
        xname = self.xname
        if not is_hms_comp_id_valid(xname):
            raise XnameError(f"invalid xname for Switch: {xname}", xname=xname)

        hms_type = get_hms_type(xname)
        if self.switch_type == ManagementSwitchType.LEAF_BMC:
            if hms_type != HMSType.MGMT_SWITCH:
                raise XnameError(
                    f"invalid xname used for LeafBMC switch: {xname}, should use xXcCwW format",
                    xname=xname,
                )
        elif self.switch_type in (
            ManagementSwitchType.LEAF,
            ManagementSwitchType.SPINE,
            ManagementSwitchType.AGGREGATION,
        ):
            if hms_type != HMSType.MGMT_HL_SWITCH:
                raise XnameError(
                    f"invalid xname used for {self.switch_type} switch: {xname}, "
                    "should use xXcChHsS format",
                    xname=xname,
                )
        elif self.switch_type == ManagementSwitchType.CDU:
            if hms_type not in (HMSType.CDU_MGMT_SWITCH, HMSType.MGMT_HL_SWITCH):
                raise XnameError(
                    f"invalid xname used for CDU switch: {xname}, should use dDwW format "
                    "(if in an adjacent river cabinet to a TBD cabinet use the xXcChHsS format)",
                    xname=xname,
                )

    def management_ip(self) -> str:
        """Management address as a string, empty until assigned."""
        return str(self.management_interface) if self.management_interface else ""


def assign_switch_names(switches: list[ManagementSwitch]) -> None:
    """
    Name unnamed switches ``sw-{type}-NNN``, numbering each type from 1 in list order.

    The numbering matches the order ``reserve_net_mgmt_ips`` hands out
    ``network_hardware`` addresses, so names and reservations line up.
    """
    counters: dict[ManagementSwitchType, int] = {}
    for switch in switches:
        counters[switch.switch_type] = counters.get(switch.switch_type, 0) + 1
        if not switch.name:
            switch.name = f"{switch.switch_type.name_prefix}-{counters[switch.switch_type]:03d}"


def switch_xnames_by_type(
    switches: list[ManagementSwitch], switch_type: ManagementSwitchType
) -> list[str]:
    """Return the xnames of switches of one type, in list order."""
    return [s.xname for s in switches if s.switch_type == switch_type]
