"""Tests for the input file loaders."""

import json

import pytest

from src.siteinit.core.parser import (
    HMNConnectionsParser,
    SwitchMetadataParser,
    load_application_node_config,
    load_cabinet_groups,
)
from src.siteinit.models.switches import ManagementSwitchBrand, ManagementSwitchType
from src.siteinit.utils.exceptions import ConfigurationError, InputFileError


class TestSwitchMetadataParser:
    """Test switch_metadata.csv parsing."""

    def test_parse_sample(self, switch_metadata_csv):
        switches = SwitchMetadataParser(switch_metadata_csv).parse()

        assert [s.xname for s in switches] == [
            "x3000c0w14",
            "x3000c0h33s1",
            "x3000c0h34s1",
            "x3000c0h35s1",
            "d0w1",
            "d0w2",
        ]
        assert [s.name for s in switches] == [
            "sw-leaf-bmc-001",
            "sw-spine-001",
            "sw-spine-002",
            "sw-leaf-001",
            "sw-cdu-001",
            "sw-cdu-002",
        ]
        assert switches[0].brand == ManagementSwitchBrand.DELL
        assert switches[0].switch_type == ManagementSwitchType.LEAF_BMC

    def test_xnames_normalized(self, tmp_path):
        csv_file = tmp_path / "switch_metadata.csv"
        csv_file.write_text(
            "Switch Xname,Type,Brand,Model\n X03000C0W014 ,LeafBMC,Dell,S3048-ON\n"
        )

        switches = SwitchMetadataParser(csv_file).parse()

        assert switches[0].xname == "x3000c0w14"

    def test_wrong_xname_type_strict(self, tmp_path):
        csv_file = tmp_path / "switch_metadata.csv"
        csv_file.write_text(
            "Switch Xname,Type,Brand,Model\n"
            "x3000c0w14,LeafBMC,Dell,S3048-ON\n"
            "x3000c0w15,Spine,Aruba,8325\n"
        )

        with pytest.raises(InputFileError) as exc:
            SwitchMetadataParser(csv_file).parse(strict=True)

        assert "Line 3" in str(exc.value)
        assert "should use xXcChHsS format" in str(exc.value)

    def test_lenient_collects_errors(self, tmp_path):
        csv_file = tmp_path / "switch_metadata.csv"
        csv_file.write_text(
            "Switch Xname,Type,Brand,Model\n"
            "x3000c0w14,LeafBMC,Dell,S3048-ON\n"
            "bogus,Spine,Aruba,8325\n"
            "x3000c0h33s1,Router,Aruba,8325\n"
        )
        parser = SwitchMetadataParser(csv_file)

        switches = parser.parse(strict=False)

        assert len(switches) == 1
        assert len(parser.errors) == 2
        assert "Found 2 errors" in parser.get_error_summary()

    def test_line_numbers_after_multiline_cell(self, tmp_path):
        csv_file = tmp_path / "switch_metadata.csv"
        csv_file.write_text(
            "Switch Xname,Type,Brand,Model\n"
            'x3000c0w14,LeafBMC,Dell,"S3048-ON\n'
            'rev B"\n'
            "# spare\n"
            "bogus,Spine,Aruba,8325\n"
        )
        parser = SwitchMetadataParser(csv_file)

        switches = parser.parse(strict=False)

        assert switches[0].model == "S3048-ON\nrev B"
        assert len(parser.errors) == 1
        assert "Line 5" in str(parser.errors[0])

    def test_empty_file(self, tmp_path):
        csv_file = tmp_path / "switch_metadata.csv"
        csv_file.write_text("Switch Xname,Type,Brand,Model\n")

        with pytest.raises(InputFileError, match="unable to extract Switches"):
            SwitchMetadataParser(csv_file).parse()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SwitchMetadataParser(tmp_path / "missing.csv").parse()


class TestHMNConnectionsParser:
    """Test hmn_connections.json parsing."""

    def test_parse_sample(self, hmn_connections_json):
        rows = HMNConnectionsParser(hmn_connections_json).parse()

        assert len(rows) == 14
        assert rows[0].source == "mn01"
        assert rows[0].destination_port == "j37"
        assert rows[7].source_parent == "SubRack-001-CMC"
        assert rows[7].source_sub_location == "R"

    def test_row_not_an_object(self, tmp_path):
        path = tmp_path / "hmn_connections.json"
        path.write_text(json.dumps([{"Source": "mn01"}, ["not", "a", "row"]]))

        with pytest.raises(InputFileError) as exc:
            HMNConnectionsParser(path).parse()

        assert "Line 2" in str(exc.value)

    def test_document_not_a_list(self, tmp_path):
        path = tmp_path / "hmn_connections.json"
        path.write_text(json.dumps({"Source": "mn01"}))

        with pytest.raises(InputFileError, match="Expected a list"):
            HMNConnectionsParser(path).parse()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "hmn_connections.json"
        path.write_text("[{")

        with pytest.raises(InputFileError, match="Invalid JSON"):
            HMNConnectionsParser(path).parse()

    def test_numbers_become_text(self, tmp_path):
        path = tmp_path / "hmn_connections.json"
        path.write_text(json.dumps([{"Source": "mn01", "SourceLocation": 1}]))

        rows = HMNConnectionsParser(path).parse()

        assert rows[0].source_location == "1"

    def test_csv_export(self, tmp_path):
        path = tmp_path / "hmn_connections.csv"
        path.write_text(
            "Source,SourceRack,SourceLocation,DestinationRack,DestinationLocation,DestinationPort\n"
            "mn01,x3000,u01,x3000,u14,j37\n"
        )

        rows = HMNConnectionsParser(path).parse()

        assert rows[0].source_rack == "x3000"
        assert rows[0].has_destination_port()


class TestLoadCabinetGroups:
    """Test cabinets.yaml loading."""

    def test_load_sample(self, cabinets_yaml):
        groups = load_cabinet_groups(cabinets_yaml)

        assert [g.kind for g in groups] == ["river", "hill", "mountain"]
        assert groups[1].get_cabinet_details()[9000].hmn_vlan_id == 3100

    def test_empty_file(self, tmp_path):
        path = tmp_path / "cabinets.yaml"
        path.write_text("")

        assert load_cabinet_groups(path) == []

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "cabinets.yaml"
        path.write_text("- river\n")

        with pytest.raises(InputFileError, match="'cabinets' key"):
            load_cabinet_groups(path)

    def test_invalid_group(self, tmp_path):
        path = tmp_path / "cabinets.yaml"
        path.write_text("cabinets:\n  - total_number: 1\n")

        with pytest.raises(InputFileError, match="cabinet group 1"):
            load_cabinet_groups(path)

    def test_duplicate_ids(self, tmp_path):
        path = tmp_path / "cabinets.yaml"
        path.write_text(
            "cabinets:\n"
            "  - type: river\n    total_number: 1\n    starting_id: 3000\n"
            "  - type: hill\n    ids: [3000]\n"
        )

        with pytest.raises(ConfigurationError, match="cabinet id 3000"):
            load_cabinet_groups(path)


class TestLoadApplicationNodeConfig:
    """Test application_node_config.yaml loading."""

    def test_load_sample(self, app_config_yaml):
        config = load_application_node_config(app_config_yaml)

        assert config.prefixes == ["vn"]
        assert config.aliases["x3000c0s17b0n0"] == ["uan01-nmn", "login01"]

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "application_node_config.yaml"
        path.write_text("prefixes: [vn\n")

        with pytest.raises(InputFileError, match="Invalid YAML"):
            load_application_node_config(path)
