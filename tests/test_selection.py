"""Tests for deterministic board block selection and packing."""

from __future__ import annotations

import unittest

from hwforge.design import (
    GRID_UNIT_MM, auto_select_blocks, compute_board_size, derive_net_list,
    find_block, validate_block_selection,
)
from hwforge.project import IOEntry, PlacedBlock, PowerSpec
from tests.fixtures import sample_final_spec, standard_catalog, tiny_catalog


def _positions(selection) -> dict[str, tuple[int, int]]:
    return {b.block_slug: (b.grid_x, b.grid_y) for b in selection.blocks}


class TestAutoSelect(unittest.TestCase):
    """Selection against the shipped catalog."""

    def setUp(self):
        self.catalog = standard_catalog()

    def test_sample_spec_single_row(self):
        sel = auto_select_blocks(sample_final_spec(), self.catalog)
        self.assertEqual(_positions(sel), {
            "mcu-esp32c6": (0, 0),
            "power-usb": (2, 0),
            "sensor-bme280": (3, 0),
            "output-ws2812b": (4, 0),
            "connector-buttons-2": (5, 0),
        })
        self.assertEqual(sel.warnings, [])
        self.assertEqual((sel.board_size.width, sel.board_size.height), (63.5, 38.1))
        self.assertIn("Auto-selected 5 blocks", sel.reasoning)
        self.assertIn("Board size: 76.2x38.1mm", sel.reasoning)

    def test_mcu_always_first(self):
        spec = sample_final_spec(inputs=[], outputs=[])
        sel = auto_select_blocks(spec, self.catalog)
        self.assertEqual(sel.blocks[0].block_slug, "mcu-esp32c6")
        self.assertEqual(sel.blocks[0].reason, "Required MCU")

    def test_minimum_board_size(self):
        spec = sample_final_spec(inputs=[], outputs=[])
        sel = auto_select_blocks(spec, self.catalog)
        # MCU + USB is 3x2 units, below the 4x3 minimum
        self.assertEqual(sel.board_size.width, round(4 * GRID_UNIT_MM, 2))
        self.assertEqual(sel.board_size.height, round(3 * GRID_UNIT_MM, 2))

    def test_row_wraps_below_tallest(self):
        spec = sample_final_spec(outputs=[
            IOEntry(type="Temperature"), IOEntry(type="WS2812B LEDs"), IOEntry(type="Display"),
        ])
        sel = auto_select_blocks(spec, self.catalog)
        pos = _positions(sel)
        self.assertEqual(pos["output-oled-ssd1306"], (0, 2))
        self.assertEqual(pos["connector-buttons-2"], (2, 2))
        self.assertEqual((sel.board_size.width, sel.board_size.height), (63.5, 38.1))

    def test_power_sources(self):
        cases = {
            "LiPo battery": "power-lipo",
            "2x AA": "power-boost",
            "CR2032 coin cell": "power-cr2032",
            "Mains": "power-usb",
        }
        for source, slug in cases.items():
            with self.subTest(source=source):
                spec = sample_final_spec(power=PowerSpec(source=source), inputs=[], outputs=[])
                sel = auto_select_blocks(spec, self.catalog)
                self.assertEqual(sel.blocks[1].block_slug, slug)

    def test_default_power_reason(self):
        spec = sample_final_spec(power=PowerSpec(source="solar"), inputs=[], outputs=[])
        sel = auto_select_blocks(spec, self.catalog)
        self.assertEqual(sel.blocks[1].reason, "Default USB-C power")

    def test_button_count_picks_connector(self):
        spec = sample_final_spec(outputs=[], inputs=[IOEntry(type="Buttons", count=4)])
        sel = auto_select_blocks(spec, self.catalog)
        self.assertIn("connector-buttons-4", _positions(sel))

    def test_encoder_input(self):
        spec = sample_final_spec(outputs=[], inputs=[IOEntry(type="Rotary knob")])
        sel = auto_select_blocks(spec, self.catalog)
        self.assertIn("connector-encoder", _positions(sel))

    def test_missing_blocks_warn(self):
        sel = auto_select_blocks(sample_final_spec(), tiny_catalog())
        self.assertIn("No block matching output-ws2812b (Output for WS2812B LEDs)", sel.warnings)
        self.assertIn("No block matching connector-buttons-2 (Input for Button)", sel.warnings)
        self.assertEqual(len(sel.blocks), 3)

    def test_missing_mcu_warns(self):
        catalog = [b for b in self.catalog if b.category != "mcu"]
        sel = auto_select_blocks(sample_final_spec(), catalog)
        self.assertIn("ESP32-C6 MCU block not found", sel.warnings)
        self.assertEqual(sel.blocks[0].block_slug, "power-usb")

    def test_deterministic(self):
        a = auto_select_blocks(sample_final_spec(), self.catalog)
        b = auto_select_blocks(sample_final_spec(), self.catalog)
        self.assertEqual(a.blocks, b.blocks)


class TestSelectionHelpers(unittest.TestCase):

    def setUp(self):
        self.catalog = standard_catalog()

    def test_find_block_substring(self):
        self.assertEqual(find_block(self.catalog, "oled").slug, "output-oled-ssd1306")
        self.assertEqual(find_block(self.catalog, "SENSOR").slug, "sensor-bme280")
        self.assertIsNone(find_block(self.catalog, "lcd"))

    def test_validate_selection(self):
        blocks = [PlacedBlock(block_slug="sensor-bme280", grid_x=0, grid_y=0),
                  PlacedBlock(block_slug="sensor-sht40", grid_x=0, grid_y=0)]
        errors = validate_block_selection(blocks)
        self.assertIn("Missing MCU block", errors)
        self.assertIn("Missing power block", errors)
        self.assertIn("Blocks sensor-bme280 and sensor-sht40 overlap at (0, 0)", errors)

    def test_validate_selection_clean(self):
        sel = auto_select_blocks(sample_final_spec(), self.catalog)
        self.assertEqual(validate_block_selection(sel.blocks), [])

    def test_board_size_rotation(self):
        blocks = [PlacedBlock(block_slug="output-oled-ssd1306", grid_x=4, grid_y=0, rotation=90)]
        size = compute_board_size(blocks, self.catalog)
        # 2x1 rotated to 1x2 at x=4: extent 5x2, height raised to the minimum
        self.assertEqual((size.width, size.height), (63.5, 38.1))

    def test_board_size_unknown_block_is_one_unit(self):
        blocks = [PlacedBlock(block_slug="mystery", grid_x=5, grid_y=3)]
        size = compute_board_size(blocks, self.catalog)
        self.assertEqual((size.width, size.height), (76.2, 50.8))

    def test_net_list_first_block_wins(self):
        sel = auto_select_blocks(sample_final_spec(), self.catalog)
        nets = {n.net: n for n in derive_net_list(sel.blocks, self.catalog)}
        self.assertEqual(nets["I2C0_SDA"].block_slug, "mcu-esp32c6")
        self.assertEqual(nets["LED_DATA"].gpio, "GPIO10")
        self.assertEqual(nets["BUTTON_2"].gpio, "GPIO1")
        self.assertNotIn("GND", nets)


if __name__ == "__main__":
    unittest.main()
