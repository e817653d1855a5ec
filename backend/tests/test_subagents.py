"""Tests for subagent discovery and linkage."""

import asyncio

from transcripts import assistant_entry, tool_use, user_entry, write_jsonl

from session_index.entries import classify_entry, process_message
from session_index.subagents import (
    agent_id_from_path,
    find_subagent_files,
    link_subagents,
    load_subagents,
)


def _task_message(tool_id, name="Task"):
    return process_message(classify_entry(assistant_entry([tool_use(tool_id, name=name, prompt="go")])))


def _messages(text="sub work"):
    return [process_message(classify_entry(user_entry(text)))]


class TestFindSubagentFiles:
    def test_both_locations(self, project_dir):
        write_jsonl(project_dir / "abc" / "subagents" / "agent-nested.jsonl", [user_entry("x")])
        write_jsonl(project_dir / "agent-flat.jsonl", [user_entry("x")])
        write_jsonl(project_dir / "abc.jsonl", [user_entry("x")])
        write_jsonl(project_dir / "abc" / "subagents" / "notes.jsonl", [user_entry("x")])

        files = find_subagent_files(project_dir, "abc")

        assert [f.name for f in files] == ["agent-nested.jsonl", "agent-flat.jsonl"]

    def test_missing_directories(self, tmp_path):
        assert find_subagent_files(tmp_path / "nowhere", "abc") == []

    def test_agent_id_from_path(self, project_dir):
        assert agent_id_from_path(project_dir / "agent-a1b2.jsonl") == "a1b2"


class TestLinkSubagents:
    def test_links_task_tool_use(self):
        messages = [_task_message("t1")]

        subagents = link_subagents(messages, {"a1": "t1"}, [("a1", _messages())])

        assert list(subagents) == ["a1"]
        assert subagents["a1"].parent_tool_use_id == "t1"
        assert subagents["a1"].message_count == 1
        assert messages[0].tool_use_blocks[0].agent_id == "a1"

    def test_drops_unlinked_and_empty(self):
        subagents = link_subagents(
            [_task_message("t1")],
            {"linked-empty": "t1"},
            [("unlinked", _messages()), ("linked-empty", [])],
        )
        assert subagents == {}

    def test_only_task_tools_are_stamped(self):
        messages = [_task_message("t1", name="Bash")]
        link_subagents(messages, {"a1": "t1"}, [("a1", _messages())])
        assert messages[0].tool_use_blocks[0].agent_id is None

    def test_first_subagent_wins_for_shared_parent(self):
        messages = [_task_message("t1")]
        link_subagents(
            messages,
            {"first": "t1", "second": "t1"},
            [("first", _messages()), ("second", _messages())],
        )
        assert messages[0].tool_use_blocks[0].agent_id == "first"

    def test_duplicate_agent_id_keeps_first_location(self):
        subagents = link_subagents(
            [],
            {"a1": "t1"},
            [("a1", _messages("nested copy")), ("a1", _messages("flat copy"))],
        )
        assert subagents["a1"].messages[0].text_content == "nested copy"


class TestLoadSubagents:
    def test_parses_only_linked_files(self, project_dir):
        write_jsonl(project_dir / "abc" / "subagents" / "agent-a1.jsonl", [user_entry("nested run")])
        write_jsonl(project_dir / "agent-zz.jsonl", [user_entry("other session's agent")])
        messages = [_task_message("t1")]

        subagents = asyncio.run(load_subagents(project_dir, "abc", messages, {"a1": "t1"}, 4))

        assert list(subagents) == ["a1"]
        assert subagents["a1"].messages[0].text_content == "nested run"
        assert messages[0].tool_use_blocks[0].agent_id == "a1"
