"""HMN connection row model.

One row of ``hmn_connections.json`` describes a cable from a device's BMC
port to a management switch port:

```
{"Source": "mn01", "SourceRack": "x3000", "SourceLocation": "u01",
 "DestinationRack": "x3000", "DestinationLocation": "u22", "DestinationPort": "j37"}
```

All fields are free text exported from a spreadsheet. They are only
interpreted by the SLS classifier.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _text(v: Any) -> Any:
    """Coerce to a stripped string. Missing values become empty."""
    if v is None:
        return ""
    if isinstance(v, (int, float)):
        v = str(v)
    if isinstance(v, str):
        return v.strip()
    return v


def _text_keep_spacing(v: Any) -> Any:
    """Coerce to a string without touching surrounding whitespace."""
    if v is None:
        return ""
    if isinstance(v, (int, float)):
        return str(v)
    return v


TextField = Annotated[str, BeforeValidator(_text)]


class HMNRow(BaseModel):
    """A single HMN connections row."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source: Annotated[TextField, Field(default="", alias="Source")]
    source_rack: Annotated[TextField, Field(default="", alias="SourceRack")]
    source_location: Annotated[TextField, Field(default="", alias="SourceLocation")]
    source_sub_location: Annotated[TextField, Field(default="", alias="SourceSubLocation")]
    source_parent: Annotated[TextField, Field(default="", alias="SourceParent")]
    destination_rack: Annotated[TextField, Field(default="", alias="DestinationRack")]
    destination_location: Annotated[TextField, Field(default="", alias="DestinationLocation")]
    destination_port: Annotated[
        str, Field(default="", alias="DestinationPort"), BeforeValidator(_text_keep_spacing)
    ]

    def has_destination_port(self) -> bool:
        """True when the row is cabled to a management switch port."""
        port = self.destination_port.strip()
        return port != "" and port != "0"
