"""Tests for pre-flight input validation."""

from src.siteinit.sls.app_node_config import ApplicationNodeConfig
from src.siteinit.validation.validator import (
    InputValidator,
    ValidationIssue,
    ValidationReport,
    validate_input_files,
)


class TestValidationReport:
    """Test the report container."""

    def test_errors_make_report_invalid(self):
        report = ValidationReport()
        report.add_warning("cabinets", "river", "cabinet group has no cabinets")
        assert report.is_valid

        report.add_error("switch_metadata", "rows", "no management switches defined")

        assert not report.is_valid
        assert report.summary == {"errors": 1, "warnings": 1, "checked": 0}

    def test_issue_str(self):
        issue = ValidationIssue("mn01", "Source", "bad index")

        assert str(issue) == "[ERROR] mn01 (Source): bad index"


class TestInputValidator:
    """Test checks on already-loaded inputs."""

    def test_valid_inputs(self, cabinet_groups, switches, app_config, management_rows):
        report = InputValidator().validate(cabinet_groups, switches, app_config, management_rows)

        assert report.is_valid
        assert report.warnings == []
        assert report.summary["checked"] == 3 + 6 + 1 + 3

    def test_unknown_cabinet_kind(self, group_factory):
        group = group_factory({"type": "river", "ids": [3000]})
        group.kind = "ex9999"

        report = InputValidator().validate(cabinet_groups=[group])

        assert report.errors[0].field == "type"
        assert "unknown cabinet kind" in report.errors[0].message

    def test_duplicate_cabinet_ids(self, group_factory):
        groups = [
            group_factory({"type": "river", "ids": [3000]}),
            group_factory({"type": "hill", "ids": [3000]}),
        ]

        report = InputValidator().validate(cabinet_groups=groups)

        assert [e.field for e in report.errors] == ["ids"]
        assert "3000" in report.errors[0].message

    def test_empty_group_warns(self, group_factory):
        report = InputValidator().validate(cabinet_groups=[group_factory({"type": "river"})])

        assert report.is_valid
        assert report.warnings[0].message == "cabinet group has no cabinets"

    def test_chassis_count_rules(self, group_factory):
        group = group_factory({"type": "EX2500", "ids": [8000]})

        report = InputValidator().validate(cabinet_groups=[group])

        assert report.errors[0].field == "chassis-count"
        assert "EX2500 cabinets require chassis counts" in report.errors[0].message

    def test_no_switches(self):
        report = InputValidator().validate(switches=[])

        assert report.errors[0].message == "no management switches defined"

    def test_bad_and_duplicate_switches(self, switch_factory):
        switches = [
            switch_factory("x3000c0h33s1", "LeafBMC"),
            switch_factory("x3000c0w14", "LeafBMC"),
            switch_factory("x3000c0w14", "LeafBMC"),
        ]

        report = InputValidator().validate(switches=switches)

        messages = [e.message for e in report.errors]
        assert len(messages) == 2
        assert "should use xXcCwW format" in messages[0]
        assert messages[1] == "duplicate switch xname"

    def test_app_config_problem(self):
        config = ApplicationNodeConfig.model_validate({"aliases": {"x3000c0s17b0": ["uan01"]}})

        report = InputValidator().validate(app_config=config)

        assert report.errors[0].source == "application_node_config"
        assert "invalid type NodeBMC" in report.errors[0].message

    def test_hmn_row_problems(self, row_factory):
        rows = [
            row_factory("nid000001", "u27", SourceParent="SubRack-009-CMC"),
            row_factory("mn-one", "u01"),
            row_factory("mystery01", "u10"),
        ]

        report = InputValidator().validate(hmn_rows=rows)

        assert [(e.source, e.field) for e in report.errors] == [
            ("nid000001", "SourceParent"),
            ("mn-one", "Source"),
        ]
        assert "Failed to parse index number" in report.errors[1].message
        assert [w.source for w in report.warnings] == ["mystery01"]

    def test_rows_checked_with_default_app_config(self, row_factory):
        report = InputValidator().validate(hmn_rows=[row_factory("uan01", "u17")])

        assert report.is_valid


class TestValidateInputFiles:
    """Test loading and validating files together."""

    def test_samples_are_valid(
        self, cabinets_yaml, switch_metadata_csv, app_config_yaml, hmn_connections_json
    ):
        report = validate_input_files(
            cabinets_yaml, switch_metadata_csv, app_config_yaml, hmn_connections_json
        )

        assert report.is_valid, [str(e) for e in report.errors]

    def test_missing_file_is_reported(self, tmp_path):
        missing = tmp_path / "cabinets.yaml"

        report = validate_input_files(cabinets_path=missing)

        assert not report.is_valid
        assert report.errors[0].source == str(missing)
        assert report.errors[0].field == "file"

    def test_bad_switch_rows_are_reported(self, tmp_path):
        csv_file = tmp_path / "switch_metadata.csv"
        csv_file.write_text(
            "Switch Xname,Type,Brand,Model\n"
            "x3000c0w14,LeafBMC,Dell,S3048-ON\n"
            "x3000c0w15,Spine,Aruba,8325\n"
        )

        report = validate_input_files(switches_path=csv_file)

        assert report.summary["errors"] == len(report.errors)
        assert any(e.field == "row" and "Line 3" in e.message for e in report.errors)

    def test_file_errors_come_first(self, tmp_path, hmn_connections_json):
        bad_yaml = tmp_path / "application_node_config.yaml"
        bad_yaml.write_text("prefixes: [unclosed\n")

        report = validate_input_files(app_config_path=bad_yaml, hmn_path=hmn_connections_json)

        assert report.errors[0].field == "file"
        assert "Invalid YAML" in report.errors[0].message
