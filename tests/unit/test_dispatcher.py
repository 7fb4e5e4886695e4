import asyncio
import json
import logging

import pytest

from toolstream.dispatcher import ToolDispatcher, ToolResult, parse_arguments
from toolstream.events import ToolCompleted, ToolInvoked
from toolstream.streaming import ToolCall
from toolstream.tools import ToolRegistry, tool


class TestParseArguments:
    def test_valid_object(self):
        assert parse_arguments("f", '{"city": "Paris"}') == {"city": "Paris"}

    def test_empty_string_is_empty_object(self):
        assert parse_arguments("f", "") == {}

    def test_malformed_json_logged_and_replaced(self, caplog):
        with caplog.at_level(logging.WARNING, logger="toolstream.dispatcher"):
            assert parse_arguments("f", "{bad json") == {}
        assert "Error parsing arguments for function f" in caplog.text

    def test_non_object_replaced(self):
        assert parse_arguments("f", "[1, 2]") == {}


class TestToolDispatcher:
    @pytest.mark.asyncio
    async def test_known_tool_result(self, registry):
        call = ToolCall(id="c1", name="getWeather", arguments=json.dumps({"city": "Paris"}))
        results = await ToolDispatcher(registry).dispatch([call])
        assert results == [ToolResult(call_id="c1", name="getWeather", result="22C")]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        call = ToolCall(id="c1", name="unknownFn", arguments="{}")
        results = await ToolDispatcher(registry).dispatch([call])
        assert results[0].result == "Function unknownFn not found"
        assert results[0].is_error

    @pytest.mark.asyncio
    async def test_nameless_call_reports_not_found(self, registry):
        call = ToolCall(id="c1", name="", arguments="{}")
        results = await ToolDispatcher(registry).dispatch([call])
        assert results[0].result == "Function  not found"

    @pytest.mark.asyncio
    async def test_malformed_arguments_still_invokes(self):
        received = []

        @tool
        def probe(**kwargs):
            """Records its arguments."""
            received.append(kwargs)
            return "ok"

        call = ToolCall(id="c1", name="probe", arguments="{bad json")
        results = await ToolDispatcher(ToolRegistry([probe])).dispatch([call])

        assert received == [{}]
        assert results[0].result == "ok"

    @pytest.mark.asyncio
    async def test_failing_tool_isolated(self, registry):
        calls = [
            ToolCall(id="c1", name="explode", arguments=""),
            ToolCall(id="c2", name="echo", arguments='{"text": "still here"}'),
        ]
        results = await ToolDispatcher(registry).dispatch(calls)
        by_id = {r.call_id: r for r in results}

        assert by_id["c1"].result == "Error executing function explode: boom"
        assert by_id["c1"].is_error
        assert by_id["c2"].result == "still here"

    @pytest.mark.asyncio
    async def test_one_result_per_call(self, registry):
        calls = [
            ToolCall(id=f"c{i}", name=name, arguments="{}")
            for i, name in enumerate(["getWeather", "unknownFn", "explode", "getWeather"])
        ]
        results = await ToolDispatcher(registry).dispatch(calls)
        assert sorted(r.call_id for r in results) == ["c0", "c1", "c2", "c3"]

    @pytest.mark.asyncio
    async def test_calls_run_concurrently(self):
        started = asyncio.Event()
        release = asyncio.Event()

        @tool
        async def waiter():
            """Blocks until the other tool starts."""
            await asyncio.wait_for(started.wait(), timeout=1)
            release.set()
            return "waited"

        @tool
        async def starter():
            """Unblocks the waiter."""
            started.set()
            await asyncio.wait_for(release.wait(), timeout=1)
            return "started"

        calls = [
            ToolCall(id="a", name="waiter", arguments=""),
            ToolCall(id="b", name="starter", arguments=""),
        ]
        results = await ToolDispatcher(ToolRegistry([waiter, starter])).dispatch(calls)
        assert {r.call_id: r.result for r in results} == {"a": "waited", "b": "started"}

    @pytest.mark.asyncio
    async def test_notifications(self, registry):
        events = []
        calls = [
            ToolCall(id="c1", name="getWeather", arguments=""),
            ToolCall(id="c2", name="unknownFn", arguments=""),
            ToolCall(id="c3", name="explode", arguments=""),
        ]
        await ToolDispatcher(registry).dispatch(calls, notify=events.append)

        invoked = [e for e in events if isinstance(e, ToolInvoked)]
        completed = [e for e in events if isinstance(e, ToolCompleted)]
        assert {e.name for e in invoked} == {"getWeather", "explode"}
        assert {(e.name, e.result, e.is_error) for e in completed} == {
            ("getWeather", "22C", False),
            ("explode", "Error executing function explode: boom", True),
        }
        assert events.index(invoked[0]) < events.index(
            next(e for e in completed if e.call_id == invoked[0].call_id)
        )

    @pytest.mark.asyncio
    async def test_no_calls(self, registry):
        assert await ToolDispatcher(registry).dispatch([]) == []
