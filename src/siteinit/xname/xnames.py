"""Typed xname builders.

Each class holds the ordinals of one component type and renders the xname
string from them. Child constructors attach one more (letter, ordinal) pair,
``parent()`` removes one, and ``from_string`` turns a string back into the
typed form.

Example:
    >>> node = Cabinet(3000).chassis(0).compute_module(17).node_bmc(0).node(0)
    >>> str(node)
    'x3000c0s17b0n0'
    >>> from_string("x3000c0s17b0n0") == node
    True
"""

from dataclasses import dataclass, fields
from typing import ClassVar

from ..utils.exceptions import XnameError
from .types import HMSType, get_hms_type, get_hms_type_regex, is_hms_type_controller


class Xname:
    """Common behaviour for typed xnames."""

    hms_type: ClassVar[HMSType]
    template: ClassVar[str]

    def __str__(self) -> str:
        return self.template.format(*(getattr(self, f.name) for f in fields(self)))

    def type(self) -> HMSType:
        """Return the component type of this xname."""
        return self.hms_type

    def is_controller(self) -> bool:
        """Return True if this xname addresses a BMC-like controller."""
        return is_hms_type_controller(self.hms_type)

    def validate(self) -> None:
        """
        Check that the rendered string matches this type's template.

        Raises:
            XnameError: If any ordinal is out of range for the type.
        """
        xname = str(self)
        if get_hms_type(xname) != self.hms_type:
            raise XnameError(f"invalid {self.hms_type} xname: {xname}", xname=xname)

    def parent(self) -> "Xname":
        raise NotImplementedError


@dataclass(frozen=True)
class System(Xname):
    hms_type: ClassVar[HMSType] = HMSType.SYSTEM
    template: ClassVar[str] = "s0"

    def parent(self) -> "Xname":
        raise XnameError("system root s0 has no parent", xname="s0")

    def cabinet(self, cabinet: int) -> "Cabinet":
        return Cabinet(cabinet)

    def cdu(self, cdu: int) -> "CDU":
        return CDU(cdu)


@dataclass(frozen=True)
class CDU(Xname):
    hms_type: ClassVar[HMSType] = HMSType.CDU
    template: ClassVar[str] = "d{}"

    cdu: int

    def parent(self) -> System:
        return System()

    def cdu_mgmt_switch(self, switch: int) -> "CDUMgmtSwitch":
        return CDUMgmtSwitch(self.cdu, switch)


@dataclass(frozen=True)
class CDUMgmtSwitch(Xname):
    hms_type: ClassVar[HMSType] = HMSType.CDU_MGMT_SWITCH
    template: ClassVar[str] = "d{}w{}"

    cdu: int
    cdu_mgmt_switch: int

    def parent(self) -> CDU:
        return CDU(self.cdu)


@dataclass(frozen=True)
class Cabinet(Xname):
    hms_type: ClassVar[HMSType] = HMSType.CABINET
    template: ClassVar[str] = "x{}"

    cabinet: int

    def parent(self) -> System:
        return System()

    def chassis(self, chassis: int) -> "Chassis":
        return Chassis(self.cabinet, chassis)

    def cabinet_pdu_controller(self, controller: int) -> "CabinetPDUController":
        return CabinetPDUController(self.cabinet, controller)


@dataclass(frozen=True)
class CabinetPDUController(Xname):
    hms_type: ClassVar[HMSType] = HMSType.CABINET_PDU_CONTROLLER
    template: ClassVar[str] = "x{}m{}"

    cabinet: int
    cabinet_pdu_controller: int

    def parent(self) -> Cabinet:
        return Cabinet(self.cabinet)


@dataclass(frozen=True)
class Chassis(Xname):
    hms_type: ClassVar[HMSType] = HMSType.CHASSIS
    template: ClassVar[str] = "x{}c{}"

    cabinet: int
    chassis: int

    def parent(self) -> Cabinet:
        return Cabinet(self.cabinet)

    def chassis_bmc(self, bmc: int) -> "ChassisBMC":
        return ChassisBMC(self.cabinet, self.chassis, bmc)

    def compute_module(self, slot: int) -> "ComputeModule":
        return ComputeModule(self.cabinet, self.chassis, slot)

    def router_module(self, slot: int) -> "RouterModule":
        return RouterModule(self.cabinet, self.chassis, slot)

    def mgmt_switch(self, slot: int) -> "MgmtSwitch":
        return MgmtSwitch(self.cabinet, self.chassis, slot)

    def mgmt_hl_switch_enclosure(self, slot: int) -> "MgmtHLSwitchEnclosure":
        return MgmtHLSwitchEnclosure(self.cabinet, self.chassis, slot)


@dataclass(frozen=True)
class ChassisBMC(Xname):
    hms_type: ClassVar[HMSType] = HMSType.CHASSIS_BMC
    template: ClassVar[str] = "x{}c{}b{}"

    cabinet: int
    chassis: int
    chassis_bmc: int

    def parent(self) -> Chassis:
        return Chassis(self.cabinet, self.chassis)


@dataclass(frozen=True)
class ComputeModule(Xname):
    hms_type: ClassVar[HMSType] = HMSType.COMPUTE_MODULE
    template: ClassVar[str] = "x{}c{}s{}"

    cabinet: int
    chassis: int
    compute_module: int

    def parent(self) -> Chassis:
        return Chassis(self.cabinet, self.chassis)

    def node_bmc(self, bmc: int) -> "NodeBMC":
        return NodeBMC(self.cabinet, self.chassis, self.compute_module, bmc)


@dataclass(frozen=True)
class NodeBMC(Xname):
    hms_type: ClassVar[HMSType] = HMSType.NODE_BMC
    template: ClassVar[str] = "x{}c{}s{}b{}"

    cabinet: int
    chassis: int
    compute_module: int
    node_bmc: int

    def parent(self) -> ComputeModule:
        return ComputeModule(self.cabinet, self.chassis, self.compute_module)

    def node(self, node: int) -> "Node":
        return Node(self.cabinet, self.chassis, self.compute_module, self.node_bmc, node)


@dataclass(frozen=True)
class Node(Xname):
    hms_type: ClassVar[HMSType] = HMSType.NODE
    template: ClassVar[str] = "x{}c{}s{}b{}n{}"

    cabinet: int
    chassis: int
    compute_module: int
    node_bmc: int
    node: int

    def parent(self) -> NodeBMC:
        return NodeBMC(self.cabinet, self.chassis, self.compute_module, self.node_bmc)


@dataclass(frozen=True)
class RouterModule(Xname):
    hms_type: ClassVar[HMSType] = HMSType.ROUTER_MODULE
    template: ClassVar[str] = "x{}c{}r{}"

    cabinet: int
    chassis: int
    router_module: int

    def parent(self) -> Chassis:
        return Chassis(self.cabinet, self.chassis)

    def router_bmc(self, bmc: int) -> "RouterBMC":
        return RouterBMC(self.cabinet, self.chassis, self.router_module, bmc)


@dataclass(frozen=True)
class RouterBMC(Xname):
    hms_type: ClassVar[HMSType] = HMSType.ROUTER_BMC
    template: ClassVar[str] = "x{}c{}r{}b{}"

    cabinet: int
    chassis: int
    router_module: int
    router_bmc: int

    def parent(self) -> RouterModule:
        return RouterModule(self.cabinet, self.chassis, self.router_module)


@dataclass(frozen=True)
class MgmtSwitch(Xname):
    hms_type: ClassVar[HMSType] = HMSType.MGMT_SWITCH
    template: ClassVar[str] = "x{}c{}w{}"

    cabinet: int
    chassis: int
    slot: int

    def parent(self) -> Chassis:
        return Chassis(self.cabinet, self.chassis)

    def mgmt_switch_connector(self, port: int) -> "MgmtSwitchConnector":
        return MgmtSwitchConnector(self.cabinet, self.chassis, self.slot, port)


@dataclass(frozen=True)
class MgmtSwitchConnector(Xname):
    hms_type: ClassVar[HMSType] = HMSType.MGMT_SWITCH_CONNECTOR
    template: ClassVar[str] = "x{}c{}w{}j{}"

    cabinet: int
    chassis: int
    slot: int
    switch_port: int

    def parent(self) -> MgmtSwitch:
        return MgmtSwitch(self.cabinet, self.chassis, self.slot)


@dataclass(frozen=True)
class MgmtHLSwitchEnclosure(Xname):
    hms_type: ClassVar[HMSType] = HMSType.MGMT_HL_SWITCH_ENCLOSURE
    template: ClassVar[str] = "x{}c{}h{}"

    cabinet: int
    chassis: int
    slot: int

    def parent(self) -> Chassis:
        return Chassis(self.cabinet, self.chassis)

    def mgmt_hl_switch(self, space: int) -> "MgmtHLSwitch":
        return MgmtHLSwitch(self.cabinet, self.chassis, self.slot, space)


@dataclass(frozen=True)
class MgmtHLSwitch(Xname):
    hms_type: ClassVar[HMSType] = HMSType.MGMT_HL_SWITCH
    template: ClassVar[str] = "x{}c{}h{}s{}"

    cabinet: int
    chassis: int
    slot: int
    space: int

    def parent(self) -> MgmtHLSwitchEnclosure:
        return MgmtHLSwitchEnclosure(self.cabinet, self.chassis, self.slot)


_TYPED_XNAMES: dict[HMSType, type[Xname]] = {
    cls.hms_type: cls
    for cls in (
        System,
        CDU,
        CDUMgmtSwitch,
        Cabinet,
        CabinetPDUController,
        Chassis,
        ChassisBMC,
        ComputeModule,
        NodeBMC,
        Node,
        RouterModule,
        RouterBMC,
        MgmtSwitch,
        MgmtSwitchConnector,
        MgmtHLSwitchEnclosure,
        MgmtHLSwitch,
    )
}


def from_string(xname: str) -> Xname:
    """
    Parse an xname into its typed form.

    Args:
        xname: A normalized xname.

    Returns:
        Xname: Instance of the typed class for the xname's type.

    Raises:
        XnameError: If the xname is invalid or has no typed class.
    """
    hms_type = get_hms_type(xname)
    if hms_type not in _TYPED_XNAMES:
        raise XnameError(f"unsupported xname type {hms_type} for xname: {xname}", xname=xname)

    cls = _TYPED_XNAMES[hms_type]
    match = get_hms_type_regex(hms_type).match(xname)
    ordinals = [int(group) for group in match.groups()] if match else []
    return cls(*ordinals)
