"""
Team Agent Facade
=================

Presents a team through the same Agent interface its children implement, so
teams nest inside other teams, and through the Tool interface, so any agent
can call a team by name.

The facade always finishes: it renders a human-readable report. Callers
that need the structured AggregateResult use ``execute_team()`` or the
TeamExecutor directly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from agentteam.agents import Agent, AgentEvent, AgentFinish, Inputs, IntermediateSteps, Tool
from agentteam.executor import TeamExecutor
from agentteam.models import AggregateResult, TopologyConfig

logger = logging.getLogger("agentteam.team")


class TeamAgent(Agent):
    """An Agent that orchestrates child agents according to a topology.

    Args:
        config: Team topology; validated by the underlying TeamExecutor
        name: Passed to children as ``team_agent_id``
        tracing: Record spans for each run

    Raises:
        ConfigurationError: If the topology is structurally unsound.
    """

    def __init__(self, config: TopologyConfig, name: str = "team", tracing: bool = False):
        self.name = name
        self.executor = TeamExecutor(config, tracing=tracing)
        self.tools: List[Tool] = []
        for child in config.children:
            self.tools.extend(child.agent.get_tools())

    @property
    def config(self) -> TopologyConfig:
        return self.executor.config

    @property
    def child_count(self) -> int:
        return len(self.config.children)

    def child_agent_ids(self) -> List[str]:
        return self.config.child_ids()

    async def execute_team(
        self,
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> AggregateResult:
        """Run the team with team metadata added to the inputs.

        Adds ``team_agent_id``, ``child_agent_ids``, ``execution_pattern`` and,
        when a prefix is set, ``team_prefix``.

        Returns:
            The structured AggregateResult.
        """
        team_inputs = dict(inputs)
        team_inputs["team_agent_id"] = self.name
        team_inputs["child_agent_ids"] = self.child_agent_ids()
        team_inputs["execution_pattern"] = str(self.config.pattern)
        if self.config.prefix:
            team_inputs["team_prefix"] = self.config.prefix

        return await self.executor.execute(intermediate_steps, team_inputs)

    async def plan(self, intermediate_steps: IntermediateSteps, inputs: Inputs) -> AgentEvent:
        """Run the team and finish with its report (see format_team_output).

        Raises:
            TeamError: Hard failures propagate; they are never folded into the report.
        """
        result = await self.execute_team(intermediate_steps, inputs)
        return AgentFinish(output=format_team_output(result))

    def get_tools(self) -> List[Tool]:
        return list(self.tools)

    def __repr__(self) -> str:
        return f"TeamAgent({self.name!r}, children={self.child_agent_ids()}, pattern={self.config.pattern})"


def format_team_output(result: AggregateResult) -> str:
    """Render a team result as a readable report."""
    lines = [
        "Team Execution Summary:",
        f"- Total agents: {len(result.outcomes)}",
        f"- Successful: {result.success_count}",
        f"- Execution time: {result.total_duration_sec * 1000:.0f}ms",
        "",
        "Individual Agent Results:",
    ]
    for idx, outcome in enumerate(result.outcomes, start=1):
        status = "SUCCESS" if outcome.success else "FAILED"
        lines.append(
            f"{idx}. Agent '{outcome.agent_id}' ({outcome.duration_sec * 1000:.0f}ms): {status}"
        )
        if outcome.success:
            lines.append(f"   Output: {outcome.output}")
        elif outcome.error:
            lines.append(f"   Error: {outcome.error}")
        lines.append("")

    lines.append("Final Aggregated Output:")
    lines.append(result.final_output)
    return "\n".join(lines)


class TeamAgentTool(Tool):
    """Exposes a TeamAgent as a callable tool.

    A dict input is used as the team's inputs; anything else is placed under
    the ``input`` key. Hard team errors propagate to the caller.
    """

    def __init__(self, team_agent: TeamAgent, name: str, description: str):
        self.team_agent = team_agent
        self._name = name
        self._description = description

    @classmethod
    def from_team_agent(cls, team_agent: TeamAgent) -> "TeamAgentTool":
        """Wrap a team as ``team_agent_<n>`` with a description listing its children."""
        child_ids = team_agent.child_agent_ids()
        return cls(
            team_agent,
            name=f"team_agent_{len(child_ids)}",
            description=(
                f"A team agent that coordinates {len(child_ids)} child agents: "
                f"{', '.join(child_ids)}"
            ),
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    async def run(self, input: Any) -> str:
        """Run the team with an empty trace.

        Args:
            input: A dict used as the team's inputs, or any value placed
                under ``input``

        Returns:
            The team report text.
        """
        if isinstance(input, dict):
            inputs: Dict[str, Any] = dict(input)
        else:
            inputs = {"input": input}

        logger.debug(f"Tool {self._name} invoked with keys {sorted(inputs)}")
        event = await self.team_agent.plan([], inputs)
        return event.output

    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "input": {
                    "type": "string",
                    "description": "Input for the team agent",
                }
            },
            "required": ["input"],
        }
