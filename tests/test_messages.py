"""Tests for conversation trimming, persistence shaping and restore."""

from __future__ import annotations

import unittest

from hwforge.agent.config import MAX_MESSAGES, TRIM_TO
from hwforge.agent.messages import (
    build_persisted_state, restore_history, resume_notice, trim_history,
)
from hwforge.llm import ConversationMessage, ToolCall
from hwforge.project import Stage, StageState, StageStatus
from tests.fixtures import sample_project


def _conversation(n_users: int) -> list[ConversationMessage]:
    msgs = [ConversationMessage.system("sys")]
    msgs += [ConversationMessage.user(f"u{i}") for i in range(n_users)]
    return msgs


class TestTrimHistory(unittest.TestCase):

    def setUp(self):
        self.project = sample_project()

    def test_short_history_unchanged(self):
        history = _conversation(MAX_MESSAGES - 1)
        self.assertIs(trim_history(history, Stage.SPEC, self.project, 3), history)

    def test_long_history_trimmed(self):
        history = _conversation(MAX_MESSAGES + 5)
        trimmed = trim_history(history, Stage.BOARD, self.project, 7)
        self.assertEqual(len(trimmed), TRIM_TO + 2)
        self.assertEqual(trimmed[0].content, "sys")
        self.assertEqual(trimmed[-1].content, history[-1].content)
        self.assertEqual(len(history), MAX_MESSAGES + 6)

    def test_summary_message(self):
        self.project.stages[Stage.SPEC] = StageState(status=StageStatus.COMPLETE)
        history = _conversation(MAX_MESSAGES + 5)
        summary = trim_history(history, Stage.BOARD, self.project, 7)[1]
        dropped = len(history) - TRIM_TO - 1
        self.assertEqual(summary.role, "user")
        self.assertEqual(summary.content,
                         f"[{dropped} messages trimmed. Stage: board. Completed: spec. "
                         f"Iteration: 7. Continue.]")

    def test_never_starts_with_tool_message(self):
        history = _conversation(MAX_MESSAGES)
        calls = [ToolCall(id=f"c{i}", name="report_progress") for i in range(3)]
        history.append(ConversationMessage.assistant("", calls))
        history += [ConversationMessage.tool(c.id, "{}") for c in calls]
        history += [ConversationMessage.user("after")] * (TRIM_TO - 2)

        trimmed = trim_history(history, Stage.SPEC, self.project, 1)
        tail = trimmed[2:]
        self.assertNotEqual(tail[0].role, "tool")
        self.assertEqual(tail[0].role, "assistant")
        self.assertEqual(len(tail), TRIM_TO + 2)


class TestPersistence(unittest.TestCase):

    def test_tool_messages_dropped(self):
        call = ToolCall(id="c1", name="report_progress", arguments={"message": "hi"})
        history = [
            ConversationMessage.system("sys"),
            ConversationMessage.user("go"),
            ConversationMessage.assistant("working", [call]),
            ConversationMessage.tool("c1", '{"acknowledged": true}'),
        ]
        state = build_persisted_state(history, 4, "paused", Stage.ENCLOSURE)
        self.assertEqual([m.role for m in state.conversation_history],
                         ["system", "user", "assistant"])
        self.assertEqual(state.iteration, 4)
        self.assertEqual(state.current_stage, Stage.ENCLOSURE)
        self.assertTrue(state.resumable)
        self.assertGreater(state.updated_at, 0)

    def test_restore_round_trip(self):
        history = [ConversationMessage.system("sys"), ConversationMessage.user("go")]
        state = build_persisted_state(history, 2, "running", Stage.SPEC)
        restored = restore_history(state)
        self.assertEqual([(m.role, m.content) for m in restored],
                         [("system", "sys"), ("user", "go")])
        self.assertEqual(restored[1].tool_calls, [])

    def test_completed_not_resumable(self):
        state = build_persisted_state(_conversation(2), 9, "completed", Stage.EXPORT)
        self.assertFalse(state.resumable)

    def test_resume_notice(self):
        notice = resume_notice(12, Stage.FIRMWARE)
        self.assertEqual(notice.role, "user")
        self.assertIn("Resumed from iteration 12", notice.content)
        self.assertIn("Current stage: firmware", notice.content)


if __name__ == "__main__":
    unittest.main()
