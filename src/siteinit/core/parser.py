"""Input file loaders.

Overview:
--------
Four hand-maintained files describe a system before it is installed:

1. ``hmn_connections.json`` - one row per HMN cable, exported from the SHCD
   spreadsheet. A CSV export with the same column names is also accepted.
2. ``switch_metadata.csv`` - the management switches.
3. ``cabinets.yaml`` - cabinet groups by kind.
4. ``application_node_config.yaml`` - application node prefixes and aliases.

Row-oriented files are parsed by classes that, like any spreadsheet import,
can either stop at the first bad row (``strict=True``) or collect every
problem for the user (``strict=False``). YAML files are small and are loaded
whole by plain functions.

CSV Format:
----------
```
Switch Xname,Type,Brand,Model
x3000c0w14,LeafBMC,Dell,S3048-ON
# comment lines are skipped
x3000c0h33s1,Spine,Aruba,8325
```

Error Handling:
--------------
- FileNotFoundError: input file doesn't exist
- InputFileError: row or document fails validation (with line number for rows)
"""

import csv
import io
import json
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from ..models.cabinets import CabinetGroupDetail, validate_cabinet_groups
from ..models.hmn_row import HMNRow
from ..models.switches import ManagementSwitch, assign_switch_names
from ..sls.app_node_config import ApplicationNodeConfig
from ..utils.exceptions import InputFileError, SiteInitError

logger = structlog.get_logger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    """
    Format a pydantic validation error into a one-line message.

    Args:
        error: Pydantic ValidationError

    Returns:
        The first error's field and message, with a count of the rest.
    """
    errors = error.errors()
    if not errors:
        return str(error)

    first_error = errors[0]
    field = ".".join(str(loc) for loc in first_error["loc"])
    msg = first_error["msg"]

    if len(errors) > 1:
        return f"{field}: {msg} (and {len(errors) - 1} more errors)"
    return f"{field}: {msg}"


def _read_csv_records(path: Path) -> list[tuple[int, dict[str, str]]]:
    """Header-keyed CSV records with their file line numbers. ``#`` lines are skipped."""
    with open(path, encoding="utf-8-sig") as f:
        lines = [
            (number, line)
            for number, line in enumerate(f.readlines(), start=1)
            if not line.strip().startswith("#")
        ]
    if not lines:
        return []

    line_numbers = [number for number, _ in lines]
    reader = csv.reader(io.StringIO("".join(line for _, line in lines)))
    records: list[tuple[int, dict[str, str]]] = []
    headers: list[str] | None = None
    consumed = 0
    for row_list in reader:
        # A quoted cell can span lines, so a record starts after the last one read
        first_line = line_numbers[consumed]
        consumed = reader.line_num
        if not row_list or all(not cell.strip() for cell in row_list):
            continue
        if headers is None:
            headers = [h.strip() for h in row_list]
            continue
        padded = row_list[: len(headers)]
        padded += [""] * (len(headers) - len(padded))
        records.append((first_line, dict(zip(headers, padded, strict=True))))
    return records


class _RowFileParser:
    """Shared error bookkeeping for the row-oriented parsers."""

    file_label = "Input"

    def __init__(self, path: Path) -> None:
        """
        Initialize parser with the input file path.

        Args:
            path: Path to the file to parse
        """
        self.path = Path(path)
        self.rows_parsed = 0
        self.errors: list[InputFileError] = []

    def _check_exists(self) -> None:
        if not self.path.exists():
            raise FileNotFoundError(f"{self.file_label} file not found: {self.path}")

    def _record_error(self, error: InputFileError, strict: bool) -> None:
        if strict:
            raise error
        self.errors.append(error)

    def get_error_summary(self) -> str:
        """
        Get a summary of all errors encountered during parsing.

        Returns:
            Human-readable error summary
        """
        if not self.errors:
            return "No errors"

        summary = [f"Found {len(self.errors)} errors:"]
        for error in self.errors[:10]:
            summary.append(f"  - {error}")

        if len(self.errors) > 10:
            summary.append(f"  ... and {len(self.errors) - 10} more errors")

        return "\n".join(summary)


class HMNConnectionsParser(_RowFileParser):
    """
    Parse ``hmn_connections.json`` (or a CSV export of it) into HMN rows.

    The JSON file is a list of objects keyed by column name. Rows are kept
    in file order because the generator hands out management NIDs in that
    order.
    """

    file_label = "HMN connections"

    def _load_records(self) -> list[tuple[int, Any]]:
        if self.path.suffix.lower() == ".csv":
            return list(_read_csv_records(self.path))

        with open(self.path, encoding="utf-8-sig") as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as e:
                raise InputFileError(
                    f"Invalid JSON in {self.path}: {e.msg}",
                    line_number=e.lineno,
                    original_error=e,
                ) from e

        if not isinstance(document, list):
            raise InputFileError(
                f"Expected a list of HMN connection rows in {self.path}, "
                f"got {type(document).__name__}"
            )
        # JSON rows have no useful line numbers; report the row position instead
        return list(enumerate(document, start=1))

    def parse(self, strict: bool = True) -> list[HMNRow]:
        """
        Parse the file into validated rows.

        Args:
            strict: If True, raise on first error. If False, collect all errors.

        Returns:
            List of HMNRow in file order

        Raises:
            InputFileError: If a row fails validation (in strict mode) or the
                document itself is malformed
            FileNotFoundError: If the file doesn't exist
        """
        self._check_exists()
        logger.info("Starting HMN connections parse", path=str(self.path))

        self.errors = []
        self.rows_parsed = 0
        rows: list[HMNRow] = []
        for position, record in self._load_records():
            if not isinstance(record, dict):
                self._record_error(
                    InputFileError(
                        f"row is a {type(record).__name__}, expected an object",
                        line_number=position,
                    ),
                    strict,
                )
                continue
            try:
                rows.append(HMNRow.model_validate(record))
                self.rows_parsed += 1
            except ValidationError as e:
                self._record_error(
                    InputFileError(
                        _format_validation_error(e), line_number=position, original_error=e
                    ),
                    strict,
                )

        if self.rows_parsed == 0:
            logger.warning("HMN connections file has no rows", path=str(self.path))

        logger.info(
            "HMN connections parse complete",
            rows_parsed=self.rows_parsed,
            errors=len(self.errors),
            path=str(self.path),
        )
        return rows


class SwitchMetadataParser(_RowFileParser):
    """
    Parse ``switch_metadata.csv`` into management switches.

    Each xname is normalized and checked against the switch type, and
    switches are named ``sw-{type}-NNN`` in file order once the file is read.
    """

    file_label = "Switch metadata"

    def parse(self, strict: bool = True) -> list[ManagementSwitch]:
        """
        Parse the file into validated switches.

        Args:
            strict: If True, raise on first error. If False, collect all errors.

        Returns:
            List of named ManagementSwitch in file order

        Raises:
            InputFileError: If a row is invalid (in strict mode) or the file
                has no switches
            FileNotFoundError: If the file doesn't exist
        """
        self._check_exists()
        logger.info("Starting switch metadata parse", path=str(self.path))

        self.errors = []
        self.rows_parsed = 0
        switches: list[ManagementSwitch] = []
        for line_number, record in _read_csv_records(self.path):
            try:
                switch = ManagementSwitch.model_validate(record)
                switch.normalize()
                switch.validate_switch()
            except ValidationError as e:
                self._record_error(
                    InputFileError(
                        _format_validation_error(e), line_number=line_number, original_error=e
                    ),
                    strict,
                )
                continue
            except SiteInitError as e:
                self._record_error(
                    InputFileError(str(e), line_number=line_number, original_error=e), strict
                )
                continue

            switches.append(switch)
            self.rows_parsed += 1

        if not switches and not self.errors:
            raise InputFileError("unable to extract Switches from switch metadata csv")

        assign_switch_names(switches)
        logger.info(
            "Switch metadata parse complete",
            switches=self.rows_parsed,
            errors=len(self.errors),
            path=str(self.path),
        )
        return switches


def _load_yaml(path: Path, label: str) -> Any:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{label} file not found: {path}")
    with open(path, encoding="utf-8") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InputFileError(f"Invalid YAML in {path}: {e}", original_error=e) from e


def load_cabinet_groups(path: Path) -> list[CabinetGroupDetail]:
    """
    Load ``cabinets.yaml`` and fill out every group's cabinet IDs.

    Args:
        path: Path to the cabinets file

    Returns:
        Cabinet groups in file order, with ``populate_ids`` applied

    Raises:
        FileNotFoundError: If the file doesn't exist
        InputFileError: If the document is malformed
        ConfigurationError: If a cabinet ID appears in more than one group
    """
    document = _load_yaml(path, "Cabinets")
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise InputFileError(f"Expected a mapping with a 'cabinets' key in {path}")

    groups: list[CabinetGroupDetail] = []
    for position, entry in enumerate(document.get("cabinets") or [], start=1):
        try:
            group = CabinetGroupDetail.model_validate(entry)
        except ValidationError as e:
            raise InputFileError(
                f"cabinet group {position}: {_format_validation_error(e)}", original_error=e
            ) from e
        group.populate_ids()
        groups.append(group)

    validate_cabinet_groups(groups)
    logger.info(
        "Loaded cabinet groups",
        path=str(path),
        groups=len(groups),
        cabinets=sum(group.length() for group in groups),
    )
    return groups


def load_application_node_config(path: Path) -> ApplicationNodeConfig:
    """
    Load and normalize ``application_node_config.yaml``.

    The config is not validated here so that callers can collect its
    problems together with everything else (see ``validation``).

    Raises:
        FileNotFoundError: If the file doesn't exist
        InputFileError: If the document is malformed
        ConfigurationError: If keys collide after normalization
    """
    document = _load_yaml(path, "Application node config") or {}
    try:
        config = ApplicationNodeConfig.model_validate(document)
    except ValidationError as e:
        raise InputFileError(_format_validation_error(e), original_error=e) from e

    config.normalize()
    logger.info(
        "Loaded application node config",
        path=str(path),
        prefixes=len(config.prefixes),
        aliases=len(config.aliases),
    )
    return config
