"""The generated SLS document.

SLS loads a single JSON object with two maps:

```
{
  "Hardware": {"x3000c0s1b0n0": {"Parent": ..., "Xname": ..., ...}, ...},
  "Networks": {"HMN": {"Name": "HMN", "FullName": ..., "ExtraProperties": {...}}, ...}
}
```

Hardware records already know their SLS shape (see ``models.hardware``).
Networks are plain allocator dataclasses, so they are converted here. Empty
optional fields are left out, matching what SLS itself emits.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from ..models.hardware import GenericHardware
from ..networking.network import IPReservation, IPV4Network, IPV4Subnet

logger = structlog.get_logger(__name__)


def _set_if(target: dict[str, Any], key: str, value: Any) -> None:
    if value:
        target[key] = str(value) if not isinstance(value, (list, int)) else value


def reservation_to_sls(reservation: IPReservation) -> dict[str, Any]:
    data: dict[str, Any] = {
        "Name": reservation.name,
        "IPAddress": str(reservation.ip_address),
    }
    _set_if(data, "Aliases", list(reservation.aliases))
    _set_if(data, "Comment", reservation.comment)
    return data


def subnet_to_sls(subnet: IPV4Subnet) -> dict[str, Any]:
    """Convert a subnet to its SLS ``IPSubnet`` shape."""
    data: dict[str, Any] = {
        "FullName": subnet.full_name,
        "CIDR": str(subnet.cidr),
        "Name": subnet.name,
        "VlanID": subnet.vlan_id,
        "Gateway": str(subnet.gateway) if subnet.gateway else None,
    }
    if subnet.ip_reservations:
        data["IPReservations"] = [reservation_to_sls(r) for r in subnet.ip_reservations]
    _set_if(data, "DHCPStart", subnet.dhcp_start)
    _set_if(data, "DHCPEnd", subnet.dhcp_end)
    _set_if(data, "Comment", subnet.comment)
    _set_if(data, "ReservationStart", subnet.reservation_start)
    _set_if(data, "ReservationEnd", subnet.reservation_end)
    _set_if(data, "MetalLBPoolName", subnet.metallb_pool_name)
    return data


def network_to_sls(network: IPV4Network) -> dict[str, Any]:
    """
    Convert a network to its SLS ``Network`` shape.

    Args:
        network: A fully built network.

    Returns:
        dict: JSON-ready network with subnets in carve order.
    """
    extra: dict[str, Any] = {
        "CIDR": str(network.cidr),
        "VlanRange": list(network.vlan_range),
        "MTU": network.mtu,
        "Subnets": [subnet_to_sls(s) for s in network.subnets],
    }
    _set_if(extra, "Comment", network.comment)
    return {
        "Name": network.name,
        "FullName": network.full_name,
        "IPRanges": [str(network.cidr)],
        "Type": network.net_type,
        "ExtraProperties": extra,
    }


@dataclass
class SLSState:
    """
    SLS hardware inventory plus networks.

    Attributes:
        hardware: Records keyed by xname.
        networks: Networks keyed by name.
    """

    hardware: dict[str, GenericHardware] = field(default_factory=dict)
    networks: dict[str, IPV4Network] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON document SLS loads. Keys are sorted for stable output."""
        return {
            "Hardware": {
                xname: self.hardware[xname].to_sls_dict() for xname in sorted(self.hardware)
            },
            "Networks": {
                name: network_to_sls(self.networks[name]) for name in sorted(self.networks)
            },
        }

    def write_json(self, path: Path) -> None:
        """
        Write the document to ``path``, creating parent directories.

        Args:
            path: Destination file.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")
        logger.info(
            "Wrote SLS state",
            path=str(path),
            hardware=len(self.hardware),
            networks=len(self.networks),
        )

    def hardware_by_type(self) -> dict[str, int]:
        """Count of records per HMS type, for summaries."""
        counts: dict[str, int] = {}
        for record in self.hardware.values():
            key = str(record.type_string)
            counts[key] = counts.get(key, 0) + 1
        return dict(sorted(counts.items()))


def networks_to_dict(networks: dict[str, IPV4Network]) -> dict[str, Any]:
    """SLS-shaped networks keyed by name, for writing on their own."""
    return {name: network_to_sls(networks[name]) for name in sorted(networks)}
