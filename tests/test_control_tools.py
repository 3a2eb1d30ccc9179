"""Tests for the control tools: acceptance, validation, fixes, stages, input."""

from __future__ import annotations

import unittest

from hwforge.agent.models import OrchestratorMode, OrchestratorStatus
from hwforge.project import EnclosureArtifact, IOEntry, Stage, StageStatus
from hwforge.tools import control_tools
from tests.fixtures import (
    FakeModelClient, Recorder, last_user_text, make_context, sample_final_spec, sample_project,
)


class TestAcceptAndRender(unittest.IsolatedAsyncioTestCase):

    async def test_enclosure(self):
        ctx = make_context()
        result = await control_tools.accept_and_render(ctx, {"stage": "enclosure"})
        self.assertEqual(result["message"], "Enclosure accepted. Ready for STL rendering.")
        self.assertEqual(result["next_step"], 'mark_stage_complete("enclosure")')
        self.assertEqual(ctx.state.history[-1].type, "progress")
        self.assertEqual(ctx.state.history[-1].stage, Stage.ENCLOSURE)

    async def test_firmware(self):
        result = await control_tools.accept_and_render(make_context(), {"stage": "firmware"})
        self.assertEqual(result["stage"], "firmware")

    async def test_other_stage_rejected(self):
        result = await control_tools.accept_and_render(make_context(), {"stage": "board"})
        self.assertEqual(result, {"error": "Unknown stage for accept_and_render: board"})


class TestValidateTool(unittest.IsolatedAsyncioTestCase):

    async def test_passing(self):
        project = sample_project()
        project.final_spec = sample_final_spec(outputs=[IOEntry(type="Temperature")])
        ctx = make_context(project)
        result = await control_tools.validate_cross_stage_tool(ctx, {"check_type": "all"})
        self.assertTrue(result["valid"])
        self.assertEqual(ctx.state.status, OrchestratorStatus.RUNNING)
        self.assertEqual(ctx.state.validation_result["valid"], True)
        self.assertEqual(ctx.state.history[-1].result, "PASSED")
        self.assertIn("Status: PASSED", result["report"])

    async def test_failing_moves_to_fixing(self):
        project = sample_project()
        project.final_spec = sample_final_spec(outputs=[IOEntry(type="Relay")])
        recorder = Recorder()
        ctx = make_context(project, recorder=recorder)

        result = await control_tools.validate_cross_stage_tool(ctx, {"check_type": "spec_satisfied"})

        self.assertFalse(result["valid"])
        self.assertEqual(result["issue_count"], 1)
        self.assertEqual(result["issues"][0]["stage"], "board")
        self.assertEqual(ctx.state.status, OrchestratorStatus.FIXING)
        self.assertEqual(ctx.state.history[-1].result, "FAILED: 1 issues")
        statuses = [s.status for s in recorder.states]
        self.assertIn(OrchestratorStatus.VALIDATING, statuses)

    async def test_unknown_check(self):
        result = await control_tools.validate_cross_stage_tool(make_context(), {"check_type": "x"})
        self.assertEqual(result, {"error": "Unknown check type: x"})


class TestFixStageIssue(unittest.IsolatedAsyncioTestCase):

    async def test_enclosure_fix_regenerates_with_feedback(self):
        project = sample_project()
        project.enclosure = EnclosureArtifact(open_scad_code="cube(1);", style="handheld")
        client = FakeModelClient(chat_responses=["```openscad\ninner_width = 58;\n```"])
        ctx = make_context(project, client)

        result = await control_tools.fix_stage_issue(ctx, {
            "stage": "enclosure", "issue": "Too narrow", "fix": "Widen to 58mm"})

        self.assertTrue(result["is_revision"])
        self.assertEqual(ctx.project.enclosure.style, "handheld")
        self.assertEqual(ctx.project.enclosure.revision, 2)
        self.assertIn("Issue: Too narrow\nRequired fix: Widen to 58mm",
                      last_user_text(client.chat_calls[0]["messages"]))
        fix = next(h for h in ctx.state.history if h.type == "fix")
        self.assertEqual(fix.action, "Fixing: Too narrow")

    async def test_firmware_fix_enables_ota(self):
        client = FakeModelClient(chat_responses=['{"files": []}'])
        ctx = make_context(sample_project(), client)
        await control_tools.fix_stage_issue(ctx, {"stage": "firmware", "issue": "i", "fix": "f"})
        self.assertIn('"enable_ota": true', last_user_text(client.chat_calls[0]["messages"]))

    async def test_board_fix_reselects(self):
        ctx = make_context(sample_project())
        result = await control_tools.fix_stage_issue(ctx, {"stage": "board", "issue": "i",
                                                           "fix": "Add relay"})
        self.assertEqual(result["block_count"], 5)
        self.assertEqual(result["reasoning"], "Add relay")

    async def test_other_stage_noted(self):
        result = await control_tools.fix_stage_issue(make_context(), {"stage": "spec", "fix": "x"})
        self.assertEqual(result, {"success": True, "message": "Issue noted: x"})


class TestMarkStageComplete(unittest.IsolatedAsyncioTestCase):

    async def test_advances(self):
        recorder = Recorder()
        ctx = make_context(sample_project(), recorder=recorder)
        result = await control_tools.mark_stage_complete(ctx, {"stage": "spec"})
        self.assertEqual(result, {"success": True, "stage": "spec", "status": "complete"})
        self.assertEqual(ctx.project.stage_status(Stage.BOARD), StageStatus.IN_PROGRESS)
        self.assertEqual(ctx.current_stage, Stage.BOARD)
        self.assertEqual(set(recorder.patches[-1]), {"stages"})

    async def test_export_stays(self):
        ctx = make_context()
        await control_tools.mark_stage_complete(ctx, {"stage": "export"})
        self.assertEqual(ctx.project.stage_status(Stage.EXPORT), StageStatus.COMPLETE)
        self.assertEqual(ctx.current_stage, Stage.SPEC)

    async def test_unknown(self):
        result = await control_tools.mark_stage_complete(make_context(), {"stage": "pcb"})
        self.assertEqual(result, {"error": "Unknown stage: pcb"})


class TestProgressAndInput(unittest.IsolatedAsyncioTestCase):

    async def test_report_progress(self):
        ctx = make_context()
        result = await control_tools.report_progress(
            ctx, {"stage": "enclosure", "message": "Shaping", "percentage": 40})
        self.assertEqual(result, {"success": True})
        self.assertEqual(ctx.current_stage, Stage.ENCLOSURE)
        self.assertEqual(ctx.state.current_action, "Shaping")
        self.assertEqual(ctx.state.history[-1].details, {"percentage": 40})

    async def test_vibe_mode_auto_selects(self):
        result = await control_tools.request_user_input(
            make_context(), {"question": "Color?", "options": ["red", "blue"]})
        self.assertEqual(result, {"answer": "red", "auto_selected": True})

    async def test_no_callback_outside_vibe(self):
        ctx = make_context(mode=OrchestratorMode.DESIGN_IT)
        result = await control_tools.request_user_input(ctx, {"question": "?", "options": ["a"]})
        self.assertEqual(result, {"error": "User input not available in this mode"})

    async def test_asks_user(self):
        asked = []

        async def ask(question, options):
            asked.append((question, options))
            return "blue"

        ctx = make_context(mode=OrchestratorMode.DESIGN_IT, user_input=ask)
        result = await control_tools.request_user_input(
            ctx, {"question": "Color?", "options": ["red", "blue"]})
        self.assertEqual(result, {"answer": "blue", "user_provided": True})
        self.assertEqual(asked, [("Color?", ["red", "blue"])])


if __name__ == "__main__":
    unittest.main()
