"""Tests for entry classification and message processing."""

from transcripts import assistant_entry, progress_entry, tool_result, tool_use, user_entry

from session_index.entries import (
    AssistantEntry,
    FileHistorySnapshotEntry,
    ProgressEntry,
    UnknownEntry,
    UserEntry,
    classify_entry,
    parse_timestamp,
    process_message,
)
from session_index.models import ThinkingContent, ToolResultContent, ToolUseContent


class TestClassifyEntry:
    def test_known_types(self):
        assert isinstance(classify_entry(user_entry("hi")), UserEntry)
        assert isinstance(classify_entry(assistant_entry([])), AssistantEntry)
        assert isinstance(classify_entry({"type": "file-history-snapshot", "snapshot": {}}), FileHistorySnapshotEntry)

    def test_progress_fields(self):
        entry = classify_entry(progress_entry("agent1", "toolu_9"))
        assert isinstance(entry, ProgressEntry)
        assert entry.agent_id == "agent1"
        assert entry.parent_tool_use_id == "toolu_9"
        assert entry.progress_type == "agent_progress"

    def test_progress_without_data(self):
        entry = classify_entry({"type": "progress"})
        assert isinstance(entry, ProgressEntry)
        assert entry.agent_id is None

    def test_unknown_shapes(self):
        for value in (
            [1, 2],
            "text",
            None,
            {"type": "summary", "summary": "x"},
            {"no": "type"},
            {"type": "user", "message": "not an object"},
            {"type": "assistant", "message": {"role": "assistant", "content": 42}},
        ):
            assert isinstance(classify_entry(value), UnknownEntry), value

    def test_unknown_content_blocks_are_dropped(self):
        entry = classify_entry(user_entry([{"type": "image", "source": {}}, {"type": "text", "text": "hi"}, "junk"]))
        assert isinstance(entry, UserEntry)
        assert [b.to_dict() for b in entry.content] == [{"type": "text", "text": "hi"}]

    def test_empty_git_branch_is_none(self):
        entry = classify_entry(user_entry("hi", gitBranch=""))
        assert entry.git_branch is None

    def test_non_string_block_tags_are_dropped(self):
        entry = classify_entry(assistant_entry([
            {"type": ["text"], "text": "list tag"},
            {"type": {}, "text": "dict tag"},
            {"type": None},
            {"type": "text", "text": "kept"},
        ]))
        assert isinstance(entry, AssistantEntry)
        assert [b.to_dict() for b in entry.content] == [{"type": "text", "text": "kept"}]


class TestProcessMessage:
    def test_string_content(self):
        msg = process_message(classify_entry(user_entry("hello there")))
        assert msg.text_content == "hello there"
        assert msg.thinking_blocks == []
        assert msg.tool_use_blocks == []
        assert msg.tool_results == {}
        assert msg.role == "user"

    def test_block_content_partitioned(self):
        entry = classify_entry(assistant_entry([
            {"type": "thinking", "thinking": "hmm", "signature": "sig"},
            {"type": "text", "text": "first"},
            tool_use("t1", command="ls"),
            {"type": "text", "text": "second"},
        ]))
        msg = process_message(entry)

        assert msg.text_content == "first\nsecond"
        assert msg.thinking_blocks == [ThinkingContent(thinking="hmm", signature="sig")]
        assert msg.tool_use_blocks == [ToolUseContent(id="t1", name="Bash", input={"command": "ls"})]
        assert msg.model == "claude-sonnet"
        assert msg.parent_uuid == "u1"

    def test_tool_results_from_same_message(self):
        msg = process_message(classify_entry(user_entry([tool_result("t1", "done", is_error=True)])))
        assert msg.tool_results == {"t1": ToolResultContent(tool_use_id="t1", content="done", is_error=True)}
        assert not msg.has_content

    def test_to_dict_uses_wire_names(self):
        msg = process_message(classify_entry(assistant_entry([tool_use("t1")])))
        d = msg.to_dict()
        assert d["textContent"] == ""
        assert d["toolUseBlocks"][0]["type"] == "tool_use"
        assert "agentId" not in d["toolUseBlocks"][0]

    def test_thinking_signature_must_be_a_string(self):
        msg = process_message(classify_entry(assistant_entry([
            {"type": "thinking", "thinking": "a", "signature": {"not": "a string"}},
            {"type": "thinking", "thinking": "b", "signature": "sig"},
        ])))
        assert msg.thinking_blocks[0].signature is None
        assert msg.thinking_blocks[0].to_dict() == {"type": "thinking", "thinking": "a"}
        assert msg.thinking_blocks[1].to_dict() == {"type": "thinking", "thinking": "b", "signature": "sig"}

    def test_tool_result_error_flag_on_the_wire(self):
        msg = process_message(classify_entry(user_entry([
            tool_result("ok-id"),
            tool_result("bad-id", "boom", is_error=True),
        ])))
        assert msg.tool_results["ok-id"].to_dict() == {"type": "tool_result", "tool_use_id": "ok-id", "content": "ok"}
        assert msg.tool_results["bad-id"].to_dict()["is_error"] is True


class TestParseTimestamp:
    def test_zulu(self):
        assert parse_timestamp("1970-01-01T00:00:01.500Z") == 1500

    def test_invalid(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp("") is None
