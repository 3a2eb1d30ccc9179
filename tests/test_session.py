"""Tests for on-disk project sessions."""

from __future__ import annotations

import asyncio
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from hwforge.project import (
    EnclosureArtifact, FirmwareArtifact, FirmwareFile, ProjectSpec, Stage, StageStatus,
    apply_patch,
)
from hwforge.project.patches import (
    enclosure_patch, final_spec_patch, firmware_patch, stage_complete_patch,
)
from hwforge.session import create_project, list_projects, load_project, projects_dir
from tests.fixtures import sample_final_spec


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self._env = mock.patch.dict("os.environ", {"HWFORGE_OUTPUT_DIR": self._tmp.name})
        self._env.start()

    def tearDown(self):
        self._env.stop()
        self._tmp.cleanup()


class TestProjects(SessionTestCase):

    def test_output_dir_override(self):
        self.assertEqual(projects_dir(), Path(self._tmp.name))

    def test_create_and_load(self):
        session = create_project("A desk thermometer", mode="fix_it")
        self.assertTrue((session.path / "project.json").exists())
        self.assertTrue(session.spec_path.exists())

        loaded = load_project(session.id)
        self.assertEqual(loaded.description, "A desk thermometer")
        self.assertEqual(loaded.mode, "fix_it")
        spec = loaded.load_spec()
        self.assertEqual(spec.description, "A desk thermometer")
        self.assertEqual(spec.stage_status(Stage.SPEC), StageStatus.IN_PROGRESS)

    def test_load_unknown(self):
        self.assertIsNone(load_project("19990101_000000"))

    def test_load_corrupt_metadata(self):
        path = Path(self._tmp.name) / "broken"
        path.mkdir()
        (path / "project.json").write_text("{", encoding="utf-8")
        self.assertIsNone(load_project("broken"))

    def test_list_newest_first(self):
        first = create_project("first")
        second = create_project("second")
        ids = [p["id"] for p in list_projects()]
        self.assertEqual(ids, [second.id, first.id])
        self.assertEqual(list_projects()[0]["stages"]["spec"], "in_progress")

    def test_list_empty_when_missing(self):
        with mock.patch.dict("os.environ", {"HWFORGE_OUTPUT_DIR": self._tmp.name + "/none"}):
            self.assertEqual(list_projects(), [])


class TestPatches(SessionTestCase):
    """Partial documents from ``apply_patch`` merged into spec.json."""

    def setUp(self):
        super().setUp()
        self.session = create_project("A desk thermometer")
        self.working = ProjectSpec(description="A desk thermometer")

    def _push(self, patch):
        self.session.merge_spec(apply_patch(self.working, patch))

    def test_final_spec_sets_name(self):
        self._push(final_spec_patch(sample_final_spec()))
        self.assertEqual(load_project(self.session.id).name, "ThermoCube")
        spec = self.session.load_spec()
        self.assertEqual(spec.final_spec.name, "ThermoCube")
        self.assertEqual(spec.stage_status(Stage.SPEC), StageStatus.COMPLETE)

    def test_untouched_fields_survive(self):
        self._push(final_spec_patch(sample_final_spec()))
        self._push(stage_complete_patch(Stage.BOARD))
        spec = self.session.load_spec()
        self.assertIsNotNone(spec.final_spec)
        self.assertEqual(spec.stage_status(Stage.BOARD), StageStatus.COMPLETE)

    def test_enclosure_written(self):
        self._push(enclosure_patch(EnclosureArtifact(open_scad_code="cube(10);")))
        scad = self.session.path / "enclosure.scad"
        self.assertEqual(scad.read_text(encoding="utf-8"), "cube(10);")

    def test_firmware_written_inside_project(self):
        self._push(firmware_patch(FirmwareArtifact(files=[
            FirmwareFile(path="src/main.cpp", content="void loop() {}"),
            FirmwareFile(path="../escape.cpp", content="nope"),
            FirmwareFile(path="/etc/evil.h", content="nope", language="h"),
        ])))
        root = self.session.path / "firmware"
        self.assertEqual((root / "src" / "main.cpp").read_text(encoding="utf-8"), "void loop() {}")
        self.assertFalse((self.session.path / "escape.cpp").exists())
        self.assertEqual(sorted(p.name for p in root.rglob("*") if p.is_file()), ["main.cpp"])

    def test_apply_patch_callback(self):
        partial = apply_patch(self.working, final_spec_patch(sample_final_spec()))
        asyncio.run(self.session.apply_patch(partial))
        data = json.loads(self.session.spec_path.read_text(encoding="utf-8"))
        self.assertEqual(data["final_spec"]["name"], "ThermoCube")


if __name__ == "__main__":
    unittest.main()
