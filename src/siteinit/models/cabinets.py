"""Cabinet inventory models.

A cabinets file groups cabinets by kind. Each group either lists its cabinet
IDs explicitly or gives a count and a starting ID:

    cabinets:
      - type: river
        total_number: 2
        starting_id: 3000
      - type: EX2500
        total_number: 1
        starting_id: 8000
        cabinets:
          - id: 8000
            model: EX2500
            chassis-count:
              liquid-cooled: 1
              air-cooled: 1

The filter helpers at the bottom select which cabinets receive per-cabinet
subnets. They are pure ``(group, cabinet) -> bool`` callables.
"""

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.exceptions import ConfigurationError


class CabinetClass(str, Enum):
    """Cooling/packaging class of a cabinet."""

    RIVER = "River"
    HILL = "Hill"
    MOUNTAIN = "Mountain"

    def __str__(self) -> str:
        return self.value


class CabinetKind(str, Enum):
    """Known cabinet kinds: the three classes plus specific EX models."""

    RIVER = "river"
    HILL = "hill"
    MOUNTAIN = "mountain"
    EX2000 = "EX2000"
    EX2500 = "EX2500"
    EX3000 = "EX3000"
    EX4000 = "EX4000"

    def __str__(self) -> str:
        return self.value

    @property
    def is_model(self) -> bool:
        """True for EX model kinds, False for the generic class kinds."""
        return self not in (CabinetKind.RIVER, CabinetKind.HILL, CabinetKind.MOUNTAIN)

    @property
    def cabinet_class(self) -> CabinetClass:
        """Class a cabinet of this kind belongs to."""
        return _KIND_CLASSES[self]


_KIND_CLASSES: dict[CabinetKind, CabinetClass] = {
    CabinetKind.RIVER: CabinetClass.RIVER,
    CabinetKind.HILL: CabinetClass.HILL,
    CabinetKind.EX2000: CabinetClass.HILL,
    CabinetKind.EX2500: CabinetClass.HILL,
    CabinetKind.MOUNTAIN: CabinetClass.MOUNTAIN,
    CabinetKind.EX3000: CabinetClass.MOUNTAIN,
    CabinetKind.EX4000: CabinetClass.MOUNTAIN,
}


def cabinet_class_for_kind(kind: str) -> CabinetClass:
    """
    Resolve the class of a cabinet kind string.

    Args:
        kind: Kind as written in the cabinets file (e.g. "river", "EX2500").

    Returns:
        CabinetClass: The class for the kind.

    Raises:
        ConfigurationError: If the kind is unknown.
    """
    try:
        return CabinetKind(kind).cabinet_class
    except ValueError:
        raise ConfigurationError(f"unknown cabinet kind ({kind})") from None


class ChassisCount(BaseModel):
    """Number of liquid- and air-cooled chassis in one cabinet."""

    model_config = ConfigDict(populate_by_name=True)

    liquid_cooled: Annotated[int, Field(default=0, ge=0, alias="liquid-cooled")]
    air_cooled: Annotated[int, Field(default=0, ge=0, alias="air-cooled")]


class CabinetDetail(BaseModel):
    """One physical cabinet."""

    model_config = ConfigDict(populate_by_name=True)

    id: Annotated[int, Field(default=0, ge=0, description="Cabinet number (xN)")]
    model: Annotated[str | None, Field(default=None, description="Model, e.g. EX2500")]
    chassis_count: Annotated[
        ChassisCount | None,
        Field(
            default=None,
            alias="chassis-count",
            description="Only respected for EX2500 cabinets with variable chassis counts",
        ),
    ]
    nmn_subnet: Annotated[str | None, Field(default=None, alias="nmn-subnet")]
    nmn_vlan_id: Annotated[int, Field(default=0, ge=0, le=4095, alias="nmn-vlan")]
    hmn_subnet: Annotated[str | None, Field(default=None, alias="hmn-subnet")]
    hmn_vlan_id: Annotated[int, Field(default=0, ge=0, le=4095, alias="hmn-vlan")]


class CabinetGroupDetail(BaseModel):
    """
    A group of cabinets of the same kind.

    Attributes:
        kind: Cabinet kind ("river", "hill", "mountain", "EX2500", ...).
        total_number: Number of cabinets in the group.
        starting_id: First cabinet ID when IDs are generated.
        ids: Explicit cabinet IDs. These override starting_id.
        cabinet_details: Per-cabinet attributes, filled out by populate_ids().
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: Annotated[str, Field(alias="type")]
    total_number: Annotated[int, Field(default=0, ge=0)]
    starting_id: Annotated[int, Field(default=0, ge=0)]
    ids: Annotated[list[int], Field(default_factory=list)]
    cabinet_details: Annotated[
        list[CabinetDetail], Field(default_factory=list, alias="cabinets")
    ]

    @field_validator("ids", "cabinet_details", mode="before")
    @classmethod
    def none_is_empty(cls, v: object) -> object:
        """An empty YAML key (``ids:``) loads as None."""
        return [] if v is None else v

    @property
    def cabinet_class(self) -> CabinetClass:
        return cabinet_class_for_kind(self.kind)

    def populate_ids(self) -> None:
        """
        Fill out the ordered cabinet ID list and per-cabinet details.

        Explicit IDs take precedence over ``starting_id``. Otherwise each
        position takes the ID of its cabinet detail, falling back to
        ``starting_id + position``. Details already present for an ID are kept.
        """
        if self.ids:
            ids = list(self.ids)
        else:
            ids = []
            for index in range(max(self.total_number, len(self.cabinet_details))):
                if index < len(self.cabinet_details) and self.cabinet_details[index].id:
                    ids.append(self.cabinet_details[index].id)
                else:
                    ids.append(self.starting_id + index)

        existing = {detail.id: detail for detail in self.cabinet_details if detail.id}
        positional = [detail for detail in self.cabinet_details if not detail.id]
        details: list[CabinetDetail] = []
        for cabinet_id in ids:
            if cabinet_id in existing:
                details.append(existing[cabinet_id])
            elif positional:
                details.append(positional.pop(0).model_copy(update={"id": cabinet_id}))
            else:
                details.append(CabinetDetail(id=cabinet_id))

        # Cabinets of an EX kind carry that kind as their model
        if self.kind in {k.value for k in CabinetKind if k.is_model}:
            details = [
                d if d.model else d.model_copy(update={"model": self.kind}) for d in details
            ]

        self.ids = ids
        self.cabinet_details = details
        self.total_number = len(ids)

    def cabinet_ids_list(self) -> list[int]:
        """Return the ordered cabinet IDs of this group."""
        if self.cabinet_details:
            return [detail.id for detail in self.cabinet_details]
        return list(self.ids)

    def get_cabinet_details(self) -> dict[int, CabinetDetail]:
        """Return the cabinet details keyed by cabinet ID."""
        return {detail.id: detail for detail in self.cabinet_details}

    def length(self) -> int:
        """Expected number of cabinets in the group."""
        if not self.cabinet_details:
            return self.total_number
        return len(self.cabinet_details)


CabinetFilter = Callable[[CabinetGroupDetail, CabinetDetail], bool]


def cabinet_kind_filter(kind: str) -> CabinetFilter:
    """Match cabinets whose group kind is exactly ``kind`` (case-sensitive)."""

    def _filter(group: CabinetGroupDetail, cabinet: CabinetDetail) -> bool:
        return group.kind == kind

    return _filter


def cabinet_class_filter(expected: CabinetClass) -> CabinetFilter:
    """Match cabinets whose group kind belongs to ``expected``. Unknown kinds never match."""

    def _filter(group: CabinetGroupDetail, cabinet: CabinetDetail) -> bool:
        try:
            return group.cabinet_class == expected
        except ConfigurationError:
            return False

    return _filter


def cabinet_air_cooled_chassis_count_filter(count: int) -> CabinetFilter:
    """Match cabinets declaring exactly ``count`` air-cooled chassis."""

    def _filter(group: CabinetGroupDetail, cabinet: CabinetDetail) -> bool:
        if cabinet.chassis_count is None:
            return False
        return cabinet.chassis_count.air_cooled == count

    return _filter


def cabinet_liquid_cooled_chassis_count_filter(count: int) -> CabinetFilter:
    """Match cabinets declaring exactly ``count`` liquid-cooled chassis."""

    def _filter(group: CabinetGroupDetail, cabinet: CabinetDetail) -> bool:
        if cabinet.chassis_count is None:
            return False
        return cabinet.chassis_count.liquid_cooled == count

    return _filter


def cabinet_ex2500_air_cooled_chassis_filter() -> CabinetFilter:
    """Match EX2500 cabinets that contain at least one air-cooled chassis."""

    def _filter(group: CabinetGroupDetail, cabinet: CabinetDetail) -> bool:
        if cabinet.model != CabinetKind.EX2500.value or cabinet.chassis_count is None:
            return False
        return cabinet.chassis_count.air_cooled > 0

    return _filter


def cabinet_filter_and(*filters: CabinetFilter) -> CabinetFilter:
    """Match cabinets accepted by every filter."""

    def _filter(group: CabinetGroupDetail, cabinet: CabinetDetail) -> bool:
        return all(f(group, cabinet) for f in filters)

    return _filter


def cabinet_filter_or(*filters: CabinetFilter) -> CabinetFilter:
    """Match cabinets accepted by any filter."""

    def _filter(group: CabinetGroupDetail, cabinet: CabinetDetail) -> bool:
        return any(f(group, cabinet) for f in filters)

    return _filter


def validate_cabinet_groups(groups: Iterable[CabinetGroupDetail]) -> None:
    """
    Check that no cabinet ID is used by more than one group.

    Args:
        groups: Cabinet groups with IDs populated.

    Raises:
        ConfigurationError: Naming the first colliding ID and both kinds.
    """
    owners: dict[int, str] = {}
    for group in groups:
        for cabinet_id in group.cabinet_ids_list():
            if cabinet_id in owners:
                raise ConfigurationError(
                    f"cabinet id {cabinet_id} is used by both {owners[cabinet_id]} "
                    f"and {group.kind} cabinets"
                )
            owners[cabinet_id] = group.kind
