"""
Pre-flight validation of the site inputs.

Every problem is collected into a report so the user sees them all at once,
instead of fixing one file, rerunning, and hitting the next error.
"""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from ..core.parser import (
    HMNConnectionsParser,
    SwitchMetadataParser,
    load_application_node_config,
    load_cabinet_groups,
)
from ..models.cabinets import CabinetGroupDetail, cabinet_class_for_kind, validate_cabinet_groups
from ..models.hmn_row import HMNRow
from ..models.switches import ManagementSwitch
from ..sls.app_node_config import ApplicationNodeConfig
from ..sls.classifier import NIDSequence, RowKind, classify_row
from ..sls.generator import gen_cabinet_map
from ..utils.exceptions import SiteInitError

logger = structlog.get_logger(__name__)


@dataclass
class ValidationIssue:
    """A single problem found in one of the inputs."""

    source: str
    field: str
    message: str
    severity: str = "ERROR"  # ERROR, WARNING

    def __str__(self) -> str:
        return f"[{self.severity}] {self.source} ({self.field}): {self.message}"


@dataclass
class ValidationReport:
    """Collection of validation errors and warnings."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    summary: dict[str, int] = field(
        default_factory=lambda: {"errors": 0, "warnings": 0, "checked": 0}
    )

    @property
    def is_valid(self) -> bool:
        """Returns True if there are no errors (warnings are allowed)."""
        return len(self.errors) == 0

    def add_error(self, source: str, field_name: str, message: str) -> None:
        self.errors.append(ValidationIssue(source, field_name, message, "ERROR"))
        self.summary["errors"] += 1

    def add_warning(self, source: str, field_name: str, message: str) -> None:
        self.warnings.append(ValidationIssue(source, field_name, message, "WARNING"))
        self.summary["warnings"] += 1


class InputValidator:
    """
    Checks cabinets, switches, application node config and HMN rows.

    Nothing here raises for a bad input; every problem lands in the report.
    """

    def __init__(self) -> None:
        self.report = ValidationReport()

    def validate(
        self,
        cabinet_groups: list[CabinetGroupDetail] | None = None,
        switches: list[ManagementSwitch] | None = None,
        app_config: ApplicationNodeConfig | None = None,
        hmn_rows: list[HMNRow] | None = None,
    ) -> ValidationReport:
        """
        Run every check that applies to the inputs given.

        Args:
            cabinet_groups: Loaded cabinet groups.
            switches: Loaded management switches.
            app_config: Normalized application node config.
            hmn_rows: Parsed HMN connection rows.

        Returns:
            ValidationReport: Errors and warnings found.
        """
        logger.info("Starting input validation")

        if cabinet_groups is not None:
            self._check_cabinets(cabinet_groups)
        if switches is not None:
            self._check_switches(switches)
        if app_config is not None:
            self._check_app_config(app_config)
        if hmn_rows is not None:
            self._check_hmn_rows(hmn_rows, app_config or ApplicationNodeConfig())

        logger.info(
            "Input validation complete",
            errors=self.report.summary["errors"],
            warnings=self.report.summary["warnings"],
            checked=self.report.summary["checked"],
        )
        return self.report

    def _check_cabinets(self, groups: list[CabinetGroupDetail]) -> None:
        self.report.summary["checked"] += len(groups)
        known_groups = []
        for group in groups:
            try:
                cabinet_class_for_kind(group.kind)
            except SiteInitError as e:
                self.report.add_error("cabinets", "type", str(e))
                continue
            if group.length() == 0:
                self.report.add_warning("cabinets", group.kind, "cabinet group has no cabinets")
            known_groups.append(group)

        try:
            validate_cabinet_groups(known_groups)
        except SiteInitError as e:
            self.report.add_error("cabinets", "ids", str(e))

        # Chassis count rules are enforced while building cabinet templates
        for group in known_groups:
            try:
                gen_cabinet_map([group], {})
            except SiteInitError as e:
                self.report.add_error("cabinets", "chassis-count", str(e))

    def _check_switches(self, switches: list[ManagementSwitch]) -> None:
        self.report.summary["checked"] += len(switches)
        if not switches:
            self.report.add_error("switch_metadata", "rows", "no management switches defined")
            return

        seen: set[str] = set()
        for switch in switches:
            try:
                switch.validate_switch()
            except SiteInitError as e:
                self.report.add_error(switch.xname, "Switch Xname", str(e))
            if switch.xname in seen:
                self.report.add_error(switch.xname, "Switch Xname", "duplicate switch xname")
            seen.add(switch.xname)

    def _check_app_config(self, app_config: ApplicationNodeConfig) -> None:
        self.report.summary["checked"] += 1
        try:
            app_config.validate_config()
        except SiteInitError as e:
            self.report.add_error("application_node_config", "config", str(e))

    def _check_hmn_rows(self, rows: list[HMNRow], app_config: ApplicationNodeConfig) -> None:
        self.report.summary["checked"] += len(rows)
        sources = {row.source.lower() for row in rows}
        scratch_nids = NIDSequence(0)
        for row in rows:
            if row.source_parent and row.source_parent.lower() not in sources:
                self.report.add_error(
                    row.source,
                    "SourceParent",
                    f"parent {row.source_parent} has no row of its own",
                )
            try:
                classification = classify_row(row, app_config, scratch_nids)
            except SiteInitError as e:
                self.report.add_error(row.source, "Source", str(e))
                continue
            if classification.kind == RowKind.UNKNOWN:
                self.report.add_warning(
                    row.source,
                    "Source",
                    "unknown source prefix, add it to the application node config "
                    "if it is an application node",
                )


def validate_input_files(
    cabinets_path: Path | None = None,
    switches_path: Path | None = None,
    app_config_path: Path | None = None,
    hmn_path: Path | None = None,
) -> ValidationReport:
    """
    Load whichever input files are given and validate them together.

    Files that fail to load are reported as errors rather than raised.
    """
    load_report = ValidationReport()
    groups = switches = app_config = rows = None

    if cabinets_path is not None:
        try:
            groups = load_cabinet_groups(cabinets_path)
        except (SiteInitError, FileNotFoundError) as e:
            load_report.add_error(str(cabinets_path), "file", str(e))
    if switches_path is not None:
        parser = SwitchMetadataParser(switches_path)
        try:
            switches = parser.parse(strict=False)
        except (SiteInitError, FileNotFoundError) as e:
            load_report.add_error(str(switches_path), "file", str(e))
        for error in parser.errors:
            load_report.add_error(str(switches_path), "row", str(error))
    if app_config_path is not None:
        try:
            app_config = load_application_node_config(app_config_path)
        except (SiteInitError, FileNotFoundError) as e:
            load_report.add_error(str(app_config_path), "file", str(e))
    if hmn_path is not None:
        hmn_parser = HMNConnectionsParser(hmn_path)
        try:
            rows = hmn_parser.parse(strict=False)
        except (SiteInitError, FileNotFoundError) as e:
            load_report.add_error(str(hmn_path), "file", str(e))
        for error in hmn_parser.errors:
            load_report.add_error(str(hmn_path), "row", str(error))

    report = InputValidator().validate(groups, switches, app_config, rows)
    report.errors = load_report.errors + report.errors
    report.summary["errors"] += load_report.summary["errors"]
    return report
