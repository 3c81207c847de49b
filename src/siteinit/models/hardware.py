"""SLS hardware inventory records.

Every device found in the inputs becomes one ``GenericHardware`` record keyed
by its xname. Records are frozen; the generator builds each one completely
before inserting it into the inventory.

The ``extra_properties`` payload depends on the component type. Models here
use the SLS key names as aliases, so ``to_sls_dict()`` produces the exact
JSON shape SLS loads.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from ..xname.types import HMSType, legacy_type
from ..xname.xnames import Xname
from .cabinets import CabinetClass

_PROPERTIES_CONFIG = ConfigDict(populate_by_name=True, frozen=True)


class NodeProperties(BaseModel):
    model_config = _PROPERTIES_CONFIG

    nid: Annotated[int | None, Field(default=None, alias="NID")]
    role: Annotated[str, Field(alias="Role")]
    sub_role: Annotated[str | None, Field(default=None, alias="SubRole")]
    aliases: Annotated[list[str] | None, Field(default=None, alias="Aliases")]


class RouterBMCProperties(BaseModel):
    model_config = _PROPERTIES_CONFIG

    ip4_addr: Annotated[str | None, Field(default=None, alias="IP4addr")]
    username: Annotated[str | None, Field(default=None, alias="Username")]
    password: Annotated[str | None, Field(default=None, alias="Password")]


class MgmtSwitchConnectorProperties(BaseModel):
    """A port on a management switch and the NICs cabled to it."""

    model_config = _PROPERTIES_CONFIG

    node_nics: Annotated[list[str], Field(alias="NodeNics")]
    vendor_name: Annotated[str, Field(alias="VendorName")]


class MgmtSwitchProperties(BaseModel):
    """A LeafBMC switch. SNMP credentials are vault references."""

    model_config = _PROPERTIES_CONFIG

    ip4_addr: Annotated[str | None, Field(default=None, alias="IP4addr")]
    brand: Annotated[str | None, Field(default=None, alias="Brand")]
    model: Annotated[str | None, Field(default=None, alias="Model")]
    snmp_auth_password: Annotated[str | None, Field(default=None, alias="SNMPAuthPassword")]
    snmp_auth_protocol: Annotated[str | None, Field(default=None, alias="SNMPAuthProtocol")]
    snmp_priv_password: Annotated[str | None, Field(default=None, alias="SNMPPrivPassword")]
    snmp_priv_protocol: Annotated[str | None, Field(default=None, alias="SNMPPrivProtocol")]
    snmp_username: Annotated[str | None, Field(default=None, alias="SNMPUsername")]
    aliases: Annotated[list[str] | None, Field(default=None, alias="Aliases")]


class MgmtHLSwitchProperties(BaseModel):
    """A Spine, Leaf, Aggregation or river-side CDU switch."""

    model_config = _PROPERTIES_CONFIG

    ip4_addr: Annotated[str | None, Field(default=None, alias="IP4addr")]
    brand: Annotated[str | None, Field(default=None, alias="Brand")]
    model: Annotated[str | None, Field(default=None, alias="Model")]
    aliases: Annotated[list[str] | None, Field(default=None, alias="Aliases")]


class CDUMgmtSwitchProperties(BaseModel):
    model_config = _PROPERTIES_CONFIG

    brand: Annotated[str | None, Field(default=None, alias="Brand")]
    model: Annotated[str | None, Field(default=None, alias="Model")]
    aliases: Annotated[list[str] | None, Field(default=None, alias="Aliases")]


class CabinetNetwork(BaseModel):
    """Per-cabinet subnet summary stored on the cabinet record."""

    model_config = _PROPERTIES_CONFIG

    cidr: Annotated[str, Field(alias="CIDR")]
    gateway: Annotated[str | None, Field(default=None, alias="Gateway")]
    vlan: Annotated[int | None, Field(default=None, alias="VLan")]


class CabinetProperties(BaseModel):
    """
    Cabinet payload.

    ``networks`` is keyed first by hardware kind ("cn", "ncn") and then by
    network name ("HMN", "NMN").
    """

    model_config = _PROPERTIES_CONFIG

    model: Annotated[str | None, Field(default=None, alias="Model")]
    networks: Annotated[
        dict[str, dict[str, CabinetNetwork]], Field(default_factory=dict, alias="Networks")
    ]


ExtraProperties = (
    NodeProperties
    | RouterBMCProperties
    | MgmtSwitchConnectorProperties
    | MgmtSwitchProperties
    | MgmtHLSwitchProperties
    | CDUMgmtSwitchProperties
    | CabinetProperties
)


class GenericHardware(BaseModel):
    """
    One SLS hardware record.

    Attributes:
        parent: Xname of the structural parent.
        xname: Normalized xname, the inventory key.
        type: Legacy SLS type tag (``comptype_node``).
        class_: River, Hill or Mountain.
        type_string: HMS type name (``Node``).
        extra_properties: Type-specific payload, if any.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    parent: Annotated[str, Field(alias="Parent")]
    xname: Annotated[str, Field(alias="Xname")]
    type: Annotated[str, Field(alias="Type")]
    class_: Annotated[CabinetClass, Field(alias="Class")]
    type_string: Annotated[HMSType, Field(alias="TypeString")]
    extra_properties: Annotated[ExtraProperties | None, Field(default=None, alias="ExtraProperties")]

    def to_sls_dict(self) -> dict[str, Any]:
        """Serialize with SLS key names, omitting empty optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_hardware(
    xname: Xname,
    class_: CabinetClass,
    extra_properties: ExtraProperties | None = None,
) -> GenericHardware:
    """
    Build a record for a typed xname, deriving parent and type tags from it.

    Args:
        xname: Typed xname of the component.
        class_: Cabinet class the component lives in.
        extra_properties: Optional type-specific payload.

    Returns:
        GenericHardware: The new record.
    """
    hms_type = xname.type()
    return GenericHardware(
        parent=str(xname.parent()),
        xname=str(xname),
        type=legacy_type(hms_type),
        class_=class_,
        type_string=hms_type,
        extra_properties=extra_properties,
    )
