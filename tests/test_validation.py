"""Tests for cross-stage validation and the validation report."""

from __future__ import annotations

import unittest

from hwforge.design import (
    generate_validation_report, parse_enclosure_dimensions, validate_cross_stage,
)
from hwforge.project import (
    EnclosureArtifact, FirmwareArtifact, FirmwareFile, IOEntry, PlacedBlock, PowerSpec,
)
from tests.fixtures import sample_final_spec, sample_project

GOOD_SCAD = "pcb_width = 50.8;\npcb_height = 38.1;\ninner_width = 56;\ninner_height = 44;\n"
GOOD_FIRMWARE = "#define PIN_I2C0_SDA 6\n#define PIN_I2C0_SCL 7\n#define BME280_ADDR 0x76\n"


def _complete_project():
    project = sample_project()
    project.final_spec = sample_final_spec(outputs=[IOEntry(type="Temperature")])
    project.enclosure = EnclosureArtifact(open_scad_code=GOOD_SCAD)
    project.firmware = FirmwareArtifact(files=[FirmwareFile(path="src/main.cpp",
                                                            content=GOOD_FIRMWARE)])
    return project


class TestSpecSatisfied(unittest.TestCase):

    def test_passes_when_blocks_present(self):
        result = validate_cross_stage(_complete_project(), "spec_satisfied")
        self.assertTrue(result.valid)
        self.assertEqual(result.issues, [])

    def test_missing_output_block(self):
        project = _complete_project()
        project.final_spec = sample_final_spec(outputs=[IOEntry(type="Buzzer alarm")])
        result = validate_cross_stage(project, "spec_satisfied")
        self.assertFalse(result.valid)
        issue = result.issues[0]
        self.assertEqual(issue.id, "missing_block_buzzer")
        self.assertEqual(issue.stage, "board")
        self.assertEqual(issue.message, "Missing PCB block for Buzzer alarm")
        self.assertEqual(result.suggestions[0].action,
                         "Add a buzzer block to satisfy Buzzer alarm requirement")
        self.assertTrue(result.suggestions[0].auto_fixable)

    def test_missing_power_block(self):
        project = _complete_project()
        project.final_spec = sample_final_spec(outputs=[], power=PowerSpec(source="LiPo battery"))
        result = validate_cross_stage(project, "spec_satisfied")
        self.assertEqual([i.id for i in result.issues], ["missing_power_block"])
        self.assertEqual(result.issues[0].message, "Missing power block for LiPo battery")

    def test_empty_board_misses_everything(self):
        project = _complete_project()
        project.board.placed_blocks = []
        result = validate_cross_stage(project, "spec_satisfied")
        self.assertFalse(result.valid)
        self.assertEqual([i.id for i in result.issues],
                         ["missing_block_temperature", "missing_power_block"])

    def test_skipped_without_board(self):
        project = _complete_project()
        project.board = None
        self.assertEqual(validate_cross_stage(project, "spec_satisfied").issues, [])


class TestPcbFitsEnclosure(unittest.TestCase):

    def test_fits(self):
        self.assertTrue(validate_cross_stage(_complete_project(), "pcb_fits_enclosure").valid)

    def test_too_narrow(self):
        project = _complete_project()
        project.enclosure = EnclosureArtifact(
            open_scad_code="inner_width = 52;\ninner_height = 44;\n")
        result = validate_cross_stage(project, "pcb_fits_enclosure")
        self.assertEqual([i.id for i in result.issues], ["enclosure_too_narrow"])
        issue = result.issues[0]
        self.assertEqual(issue.message, "Enclosure too narrow for PCB")
        self.assertEqual(issue.details,
                         "Enclosure inner width (52mm) < PCB width (50.8mm) + 4mm clearance")
        self.assertEqual(result.suggestions[0].action,
                         "Increase enclosure width to at least 56.8mm")

    def test_too_short_from_case_size(self):
        project = _complete_project()
        project.enclosure = EnclosureArtifact(
            open_scad_code="case_width = 70;\ncase_height = 44;\nwall = 3;\n")
        result = validate_cross_stage(project, "pcb_fits_enclosure")
        self.assertEqual([i.id for i in result.issues], ["enclosure_too_short"])
        self.assertIn("inner height (38mm)", result.issues[0].details)

    def test_unparseable_is_warning(self):
        project = _complete_project()
        project.enclosure = EnclosureArtifact(open_scad_code="cube([10, 10, 10]);")
        result = validate_cross_stage(project, "pcb_fits_enclosure")
        self.assertTrue(result.valid)
        self.assertEqual(result.issues[0].id, "enclosure_parse_error")
        self.assertEqual(result.issues[0].severity, "warning")


class TestFirmwareMatchesBoard(unittest.TestCase):

    def test_matches(self):
        result = validate_cross_stage(_complete_project(), "firmware_matches_board")
        self.assertEqual(result.issues, [])

    def test_missing_gpio(self):
        project = _complete_project()
        project.firmware = FirmwareArtifact(files=[FirmwareFile(
            path="src/main.cpp", content="#define PIN_I2C0_SDA 6\n// 0x76\n")])
        result = validate_cross_stage(project, "firmware_matches_board")
        self.assertFalse(result.valid)
        self.assertEqual([i.id for i in result.issues], ["missing_gpio_I2C0_SCL"])
        self.assertEqual(result.issues[0].message, "Firmware missing GPIO for I2C0_SCL")
        self.assertEqual(result.suggestions[0].action, "Add pin definition: #define PIN_I2C0_SCL 7")

    def test_missing_i2c_address_is_warning(self):
        project = _complete_project()
        project.firmware = FirmwareArtifact(files=[FirmwareFile(
            path="src/main.cpp", content="#define PIN_I2C0_SDA 6\n#define PIN_I2C0_SCL 7\n")])
        result = validate_cross_stage(project, "firmware_matches_board")
        self.assertTrue(result.valid)
        self.assertEqual([i.id for i in result.issues], ["missing_i2c_bme280"])
        self.assertEqual(result.issues[0].severity, "warning")

    def test_i2c_checked_without_nets(self):
        project = _complete_project()
        project.board.net_list = []
        project.firmware = FirmwareArtifact(files=[FirmwareFile(
            path="src/main.cpp", content="void setup() {}\n")])
        result = validate_cross_stage(project, "firmware_matches_board")
        self.assertEqual([i.id for i in result.issues], ["missing_i2c_bme280"])

    def test_i2c_address_case_insensitive(self):
        project = _complete_project()
        project.board.placed_blocks.append(
            PlacedBlock(block_slug="output-oled-ssd1306", grid_x=0, grid_y=2))
        project.firmware = FirmwareArtifact(files=[FirmwareFile(
            path="src/main.cpp", content=GOOD_FIRMWARE + "#define OLED_ADDR 0x3c\n")])
        result = validate_cross_stage(project, "firmware_matches_board")
        self.assertEqual(result.issues, [])

    def test_files_are_joined(self):
        project = _complete_project()
        project.firmware = FirmwareArtifact(files=[
            FirmwareFile(path="include/pins.h", content="#define PIN_I2C0_SDA 6\n", language="h"),
            FirmwareFile(path="src/main.cpp", content="const int scl = 7; // 0x76\n"),
        ])
        result = validate_cross_stage(project, "firmware_matches_board")
        self.assertEqual(result.issues, [])


class TestAllChecks(unittest.TestCase):

    def test_all_combines(self):
        project = _complete_project()
        project.board.placed_blocks = [PlacedBlock(block_slug="mcu-esp32c6", grid_x=0, grid_y=0)]
        project.enclosure = EnclosureArtifact(open_scad_code="inner_width = 40;\ninner_height = 44;")
        result = validate_cross_stage(project, "all")
        stages = {i.stage for i in result.issues}
        self.assertEqual(stages, {"board", "enclosure"})

    def test_unknown_check(self):
        with self.assertRaises(ValueError):
            validate_cross_stage(_complete_project(), "everything")

    def test_empty_project_passes(self):
        project = sample_project(with_board=False)
        self.assertTrue(validate_cross_stage(project).valid)


class TestEnclosureDimensions(unittest.TestCase):

    def test_inner_preferred(self):
        dims = parse_enclosure_dimensions("inner_width = 60;\npcb_width = 50;\ninner_height = 40;")
        self.assertEqual((dims.inner_width, dims.inner_height), (60, 40))

    def test_pcb_plus_one(self):
        dims = parse_enclosure_dimensions("pcb_width = 50;\npcb_height = 30.5;")
        self.assertEqual((dims.inner_width, dims.inner_height), (51, 31.5))

    def test_case_minus_walls(self):
        dims = parse_enclosure_dimensions("case_width = 60;\ncase_height = 50;\nwall_thickness = 2.5;")
        self.assertEqual((dims.inner_width, dims.inner_height), (55, 45))
        self.assertEqual(dims.wall_thickness, 2.5)

    def test_default_wall(self):
        dims = parse_enclosure_dimensions("case_width = 60;\ncase_height = 50;")
        self.assertEqual(dims.inner_width, 56)

    def test_missing_axis(self):
        self.assertIsNone(parse_enclosure_dimensions("inner_width = 60;"))


class TestReport(unittest.TestCase):

    def test_passed(self):
        report = generate_validation_report(validate_cross_stage(_complete_project()))
        lines = report.splitlines()
        self.assertEqual(lines[0], "=== Cross-Stage Validation Report ===")
        self.assertIn("Status: PASSED", lines)
        self.assertIn("No issues found.", lines)

    def test_failed(self):
        project = _complete_project()
        project.final_spec = sample_final_spec(outputs=[IOEntry(type="Relay")])
        report = generate_validation_report(validate_cross_stage(project, "spec_satisfied"))
        self.assertIn("Status: FAILED", report)
        self.assertIn("Found 1 issue(s):", report)
        self.assertIn("[ERROR] board: Missing PCB block for Relay", report)
        self.assertIn("  - board: Add a relay block to satisfy Relay requirement (auto-fixable)",
                      report)


if __name__ == "__main__":
    unittest.main()
