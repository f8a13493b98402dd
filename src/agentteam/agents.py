"""
Agent Interfaces
================

The narrow contract every team member implements, and the Tool contract used
to expose a team to other agents.

An agent makes one decision per call: given the prior trace of
(action, observation) pairs and an input mapping, it either finishes with a
textual answer or asks for a next action. Teams only accept children that
finish; any tool loop a child needs must already be wrapped around it.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Tuple, Union

from pydantic import BaseModel


class AgentAction(BaseModel):
    """A request to run a tool before the agent can finish."""

    tool: str
    tool_input: Any = None
    log: str = ""


class AgentFinish(BaseModel):
    """A final answer."""

    output: str


AgentEvent = Union[AgentAction, AgentFinish]
IntermediateSteps = List[Tuple[AgentAction, str]]
Inputs = Dict[str, Any]


class Tool(ABC):
    """Something an agent can invoke by name."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @abstractmethod
    async def run(self, input: Any) -> str: ...

    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "input": {"type": "string", "description": self.description},
            },
            "required": ["input"],
        }


class Agent(ABC):
    """A polymorphic unit that plans one step at a time."""

    @abstractmethod
    async def plan(
        self,
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> AgentEvent:
        """Return AgentFinish with an answer or AgentAction with a request."""

    def get_tools(self) -> List[Tool]:
        """Tools this agent exposes. Read-only, for introspection."""
        return []


class FunctionAgent(Agent):
    """Adapts an async callable into an Agent.

    The callable receives ``(intermediate_steps, inputs)`` and returns either a
    string (wrapped in AgentFinish) or an AgentEvent. Plain synchronous
    callables are accepted too.

    Usage:
        async def summarize(steps, inputs):
            return await llm(inputs["input"])

        agent = FunctionAgent(summarize, tools=[search_tool])
    """

    def __init__(
        self,
        func: Callable[[IntermediateSteps, Inputs], Union[str, AgentEvent, Awaitable[Any]]],
        tools: List[Tool] | None = None,
    ):
        self.func = func
        self.tools = list(tools or [])

    async def plan(self, intermediate_steps: IntermediateSteps, inputs: Inputs) -> AgentEvent:
        result = self.func(intermediate_steps, inputs)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, (AgentAction, AgentFinish)):
            return result
        return AgentFinish(output=str(result))

    def get_tools(self) -> List[Tool]:
        return list(self.tools)

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        return f"FunctionAgent({name})"


class StaticTool(Tool):
    """A named tool backed by a callable, mainly for declaring child capabilities."""

    def __init__(self, name: str, description: str, func: Callable[[Any], Any]):
        self._name = name
        self._description = description
        self.func = func

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    async def run(self, input: Any) -> str:
        result = self.func(input)
        if inspect.isawaitable(result):
            result = await result
        return str(result)
