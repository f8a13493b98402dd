"""Tests for the agent and tool adapters."""

import pytest

from agentteam import AgentAction, AgentFinish, FunctionAgent, StaticTool


class TestFunctionAgent:
    @pytest.mark.asyncio
    async def test_sync_string_wrapped(self):
        agent = FunctionAgent(lambda steps, inputs: inputs["input"] * 2)
        event = await agent.plan([], {"input": "ab"})
        assert event == AgentFinish(output="abab")

    @pytest.mark.asyncio
    async def test_async_callable(self):
        async def answer(steps, inputs):
            return f"{len(steps)} steps"

        event = await FunctionAgent(answer).plan([(AgentAction(tool="t"), "obs")], {})
        assert event.output == "1 steps"

    @pytest.mark.asyncio
    async def test_events_returned_unchanged(self):
        action = AgentAction(tool="search", tool_input={"q": "x"})
        event = await FunctionAgent(lambda s, i: action).plan([], {})
        assert event is action

    def test_tools_and_repr(self):
        def summarize(steps, inputs):
            return ""

        tool = StaticTool("echo", "Echo input", lambda q: q)
        agent = FunctionAgent(summarize, tools=[tool])
        assert agent.get_tools() == [tool]
        assert repr(agent) == "FunctionAgent(summarize)"


class TestStaticTool:
    @pytest.mark.asyncio
    async def test_run_sync_and_async(self):
        async def shout(q):
            return q.upper()

        assert await StaticTool("len", "Length", len).run("abc") == "3"
        assert await StaticTool("shout", "Shout", shout).run("hey") == "HEY"

    def test_default_parameters(self):
        tool = StaticTool("echo", "Echo input", lambda q: q)
        schema = tool.parameters()
        assert schema["required"] == ["input"]
        assert schema["properties"]["input"]["description"] == "Echo input"
