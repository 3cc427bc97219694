"""Tests for conversation history management."""

import json

from desktop_agent.conversation import ConversationManager


class TestConversationManager:

    def test_starts_with_system_prompt(self):
        conv = ConversationManager("be helpful")
        assert conv.get_messages() == [{"role": "system", "content": "be helpful"}]
        assert len(conv) == 0

    def test_get_messages_returns_copy(self):
        conv = ConversationManager("sys")
        conv.get_messages().append({"role": "user", "content": "sneaky"})
        assert len(conv) == 0

    def test_assistant_tool_call_serializes_arguments(self):
        conv = ConversationManager("sys")
        conv.add_assistant_tool_call("", [
            {"id": "c1", "name": "calculate", "arguments": {"expression": "2+2"}},
            {"id": "c2", "name": "ocr", "arguments": "{}"},
        ])
        message = conv.get_messages()[-1]
        assert message["content"] is None
        assert message["tool_calls"][0] == {
            "id": "c1",
            "type": "function",
            "function": {"name": "calculate", "arguments": json.dumps({"expression": "2+2"})},
        }
        assert message["tool_calls"][1]["function"]["arguments"] == "{}"

    def test_tool_result(self):
        conv = ConversationManager("sys")
        conv.add_tool_result("c1", '{"success": true}')
        assert conv.get_messages()[-1] == {"role": "tool", "tool_call_id": "c1", "content": '{"success": true}'}

    def test_reset_keeps_only_system_prompt(self):
        conv = ConversationManager("sys")
        conv.add_message("user", "hi")
        conv.add_message("assistant", "hello")
        conv.reset()
        assert conv.get_messages() == [{"role": "system", "content": "sys"}]


class TestTrimToWindow:

    def _conversation(self, turns):
        conv = ConversationManager("sys")
        for i in range(turns):
            conv.add_message("user", f"q{i}")
            conv.add_assistant_tool_call("", [{"id": f"c{i}", "name": "ocr", "arguments": {}}])
            conv.add_tool_result(f"c{i}", "{}")
            conv.add_message("assistant", f"a{i}")
        return conv

    def test_keeps_last_turns_whole(self):
        conv = self._conversation(4)
        conv.trim_to_window(2)
        messages = conv.get_messages()
        assert messages[0]["role"] == "system"
        assert messages[1] == {"role": "user", "content": "q2"}
        assert len(messages) == 1 + 2 * 4
        assert messages[3]["tool_call_id"] == "c2"

    def test_short_history_untouched(self):
        conv = self._conversation(2)
        before = conv.get_messages()
        conv.trim_to_window(3)
        assert conv.get_messages() == before

    def test_zero_window_keeps_everything(self):
        conv = self._conversation(3)
        conv.trim_to_window(0)
        assert len(conv) == 12
