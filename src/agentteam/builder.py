"""
Team Builder
============

Fluent assembly of a TopologyConfig, plus canned topologies.

Usage:
    team = (
        TeamBuilder()
        .add_agent("researcher", researcher, timeout=60)
        .add_agent("writer", writer)
        .add_agent("critic", critic, critical=False)
        .sequential()
        .break_on_error(False)
        .build()
    )
    event = await team.plan([], {"input": "compare vector databases"})

    # or declaratively, from agentteam_config.yaml
    team = TeamBuilder.from_file("agentteam_config.yaml", "review", registry).build()

The builder is mutable; ``build_config()`` freezes and validates a snapshot.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Tuple

from agentteam.agents import Agent
from agentteam.config import default_config, load_config
from agentteam.errors import ConfigurationError
from agentteam.executor import TeamExecutor
from agentteam.memory import SharedMemory
from agentteam.models import (
    ChildSpec,
    ExecutionPattern,
    ExecutionStep,
    PatternKind,
    TopologyConfig,
)
from agentteam.team import TeamAgent, TeamAgentTool
from agentteam.validator import validate

logger = logging.getLogger("agentteam.builder")

AgentEntry = Tuple[str, Agent]


class TeamBuilder:
    """Builder for TopologyConfig, TeamExecutor and TeamAgent.

    Args:
        defaults: Team defaults overriding the built-ins, typically
            ``load_config()["team"]``
        tracing: Default for span recording on built executors; falls back to
            the built-in ``tracing.enabled``
    """

    def __init__(
        self,
        defaults: Optional[Mapping[str, Any]] = None,
        tracing: Optional[bool] = None,
    ):
        config = default_config()
        team_defaults = config["team"]
        if defaults:
            team_defaults.update(defaults)

        self._children: list[ChildSpec] = []
        self._pattern = _pattern_from_name(team_defaults["pattern"])
        self._break_on_error = bool(team_defaults["break_on_error"])
        self._global_timeout = team_defaults["global_timeout"]
        self._max_iterations = team_defaults["max_iterations"]
        self._coordination_context = bool(team_defaults["coordination_context"])
        self._default_critical = bool(team_defaults["default_critical"])
        self._prefix: Optional[str] = None
        self._memory: Optional[SharedMemory] = None
        self._tracing = bool(config["tracing"]["enabled"] if tracing is None else tracing)

    # ── Children ─────────────────────────────────────────────────────────

    def add_agent(
        self,
        agent_id: str,
        agent: Agent,
        timeout: Optional[float] = None,
        critical: Optional[bool] = None,
    ) -> "TeamBuilder":
        """Append a child.

        Args:
            agent_id: Unique id within the team
            agent: Any Agent, including a TeamAgent
            timeout: Per-invocation limit in seconds; None for no limit
            critical: Whether a failure aborts the run; None uses the
                ``default_critical`` team default

        Returns:
            self, for chaining
        """
        return self.add_child(
            ChildSpec(
                agent_id=agent_id,
                agent=agent,
                timeout=timeout,
                critical=self._default_critical if critical is None else critical,
            )
        )

    def add_team_agent(
        self,
        agent_id: str,
        team_agent: Agent,
        timeout: Optional[float] = None,
        critical: Optional[bool] = None,
    ) -> "TeamBuilder":
        """Append a nested team. Same arguments as ``add_agent``; marks ``is_team``."""
        return self.add_child(
            ChildSpec(
                agent_id=agent_id,
                agent=team_agent,
                timeout=timeout,
                critical=self._default_critical if critical is None else critical,
                is_team=True,
            )
        )

    def add_child(self, child: ChildSpec) -> "TeamBuilder":
        self._children.append(child)
        return self

    def add_agents(self, agents: Iterable[AgentEntry]) -> "TeamBuilder":
        """Append ``(agent_id, agent)`` pairs with default policy."""
        for agent_id, agent in agents:
            self.add_agent(agent_id, agent)
        return self

    # ── Pattern and policy ───────────────────────────────────────────────

    def execution_pattern(self, pattern: ExecutionPattern) -> "TeamBuilder":
        self._pattern = pattern
        return self

    def concurrent(self) -> "TeamBuilder":
        return self.execution_pattern(ExecutionPattern.concurrent())

    def sequential(self) -> "TeamBuilder":
        return self.execution_pattern(ExecutionPattern.sequential())

    def hybrid(self, steps: Iterable[ExecutionStep]) -> "TeamBuilder":
        """Use a hybrid pattern.

        Args:
            steps: Steps in run order; dependencies must name earlier indices
        """
        return self.execution_pattern(ExecutionPattern.hybrid(list(steps)))

    def break_on_error(self, value: bool) -> "TeamBuilder":
        self._break_on_error = value
        return self

    def global_timeout(self, seconds: Optional[float]) -> "TeamBuilder":
        """Bound the concurrent fan-out. ``None`` disables the bound."""
        self._global_timeout = seconds
        return self

    def max_iterations(self, value: Optional[int]) -> "TeamBuilder":
        self._max_iterations = value
        return self

    def prefix(self, prefix: str) -> "TeamBuilder":
        """Label passed to every child as ``team_prefix``."""
        self._prefix = prefix
        return self

    def memory(self, shared_memory: SharedMemory) -> "TeamBuilder":
        """Seed children with ``chat_history`` read from this handle."""
        self._memory = shared_memory
        return self

    def coordination_prompts(self, enabled: bool) -> "TeamBuilder":
        """Also seed ``coordination_context`` (only with a memory handle)."""
        self._coordination_context = enabled
        return self

    def tracing(self, enabled: bool) -> "TeamBuilder":
        """Record spans on executors built from here on."""
        self._tracing = enabled
        return self

    # ── Terminal operations ──────────────────────────────────────────────

    def build_config(self) -> TopologyConfig:
        """Freeze the current state into a validated TopologyConfig.

        Raises:
            ConfigurationError: If the topology is structurally unsound.
        """
        config = TopologyConfig(
            children=tuple(self._children),
            pattern=self._pattern,
            break_on_error=self._break_on_error,
            global_timeout=self._global_timeout,
            max_iterations=self._max_iterations,
            prefix=self._prefix,
            coordination_context=self._coordination_context,
            shared_memory=self._memory,
        )
        validate(config)
        return config

    def build_executor(self, tracing: Optional[bool] = None) -> TeamExecutor:
        """Build a TeamExecutor. ``tracing=None`` uses the builder's setting."""
        return TeamExecutor(self.build_config(), tracing=self._resolve_tracing(tracing))

    def build(self, name: str = "team", tracing: Optional[bool] = None) -> TeamAgent:
        """Build a TeamAgent.

        Args:
            name: Reported to children as ``team_agent_id``
            tracing: Overrides the builder's tracing setting when given

        Raises:
            ConfigurationError: If the topology is structurally unsound.
        """
        return TeamAgent(self.build_config(), name=name, tracing=self._resolve_tracing(tracing))

    def build_as_tool(self, name: str, description: str) -> TeamAgentTool:
        """Build a TeamAgent and wrap it as a tool with the given name."""
        return TeamAgentTool(self.build(name=name), name, description)

    def build_as_auto_tool(self) -> TeamAgentTool:
        """Build a tool named ``team_agent_<n>`` describing its children."""
        return TeamAgentTool.from_team_agent(self.build())

    def _resolve_tracing(self, tracing: Optional[bool]) -> bool:
        return self._tracing if tracing is None else tracing

    # ── Canned topologies ────────────────────────────────────────────────

    @classmethod
    def sequential_team(cls, agents: Iterable[AgentEntry]) -> "TeamBuilder":
        return cls().add_agents(agents).sequential()

    @classmethod
    def concurrent_team(cls, agents: Iterable[AgentEntry]) -> "TeamBuilder":
        return cls().add_agents(agents).concurrent()

    @classmethod
    def pipeline_with_concurrent(
        cls,
        agent_a: AgentEntry,
        agent_b: AgentEntry,
        agent_c: AgentEntry,
        agent_d: AgentEntry,
    ) -> "TeamBuilder":
        """A runs alone, then B and C concurrently on A's output, then D on B and C."""
        steps = [
            ExecutionStep(agent_ids=(agent_a[0],)),
            ExecutionStep(agent_ids=(agent_b[0], agent_c[0]), concurrent=True, dependencies=(0,)),
            ExecutionStep(agent_ids=(agent_d[0],), dependencies=(1,)),
        ]
        return cls().add_agents([agent_a, agent_b, agent_c, agent_d]).hybrid(steps)

    @classmethod
    def fan_out(cls, source: AgentEntry, targets: Iterable[AgentEntry]) -> "TeamBuilder":
        """One source feeds every target; targets run concurrently."""
        targets = list(targets)
        steps = [
            ExecutionStep(agent_ids=(source[0],)),
            ExecutionStep(
                agent_ids=tuple(t[0] for t in targets), concurrent=True, dependencies=(0,)
            ),
        ]
        return cls().add_agents([source, *targets]).hybrid(steps)

    @classmethod
    def fan_in(cls, sources: Iterable[AgentEntry], target: AgentEntry) -> "TeamBuilder":
        """Sources run concurrently; the target receives all their outputs."""
        sources = list(sources)
        steps = [
            ExecutionStep(agent_ids=tuple(s[0] for s in sources), concurrent=True),
            ExecutionStep(agent_ids=(target[0],), dependencies=(0,)),
        ]
        return cls().add_agents([*sources, target]).hybrid(steps)

    @classmethod
    def nested_team_pattern(
        cls,
        team_a: AgentEntry,
        team_b: AgentEntry,
        team_c: AgentEntry,
        leader: AgentEntry,
    ) -> "TeamBuilder":
        """Same shape as pipeline_with_concurrent, with every member a nested team."""
        steps = [
            ExecutionStep(agent_ids=(team_a[0],)),
            ExecutionStep(agent_ids=(team_b[0], team_c[0]), concurrent=True, dependencies=(0,)),
            ExecutionStep(agent_ids=(leader[0],), dependencies=(1,)),
        ]
        builder = cls()
        for agent_id, agent in (team_a, team_b, team_c, leader):
            builder.add_team_agent(agent_id, agent)
        return builder.hybrid(steps)

    @classmethod
    def multi_layer_team(
        cls,
        layer1_agents: Iterable[AgentEntry],
        layer2_teams: Iterable[AgentEntry],
        coordinator: AgentEntry,
    ) -> "TeamBuilder":
        """Concurrent layer of agents, then a concurrent layer of teams, then a coordinator.

        Args:
            layer1_agents: Plain agents, run concurrently first
            layer2_teams: Nested teams, run concurrently on layer 1's outputs
            coordinator: Final member (added as a team) receiving layer 2's outputs
        """
        layer1 = list(layer1_agents)
        layer2 = list(layer2_teams)

        builder = cls().add_agents(layer1)
        for agent_id, team in layer2:
            builder.add_team_agent(agent_id, team)
        builder.add_team_agent(*coordinator)

        steps = [
            ExecutionStep(agent_ids=tuple(a[0] for a in layer1), concurrent=True),
            ExecutionStep(agent_ids=tuple(t[0] for t in layer2), concurrent=True, dependencies=(0,)),
            ExecutionStep(agent_ids=(coordinator[0],), dependencies=(1,)),
        ]
        return builder.hybrid(steps)

    # ── Declarative ──────────────────────────────────────────────────────

    @classmethod
    def from_config(
        cls,
        section: Mapping[str, Any],
        agents: Mapping[str, Agent],
        defaults: Optional[Mapping[str, Any]] = None,
        tracing: Optional[bool] = None,
    ) -> "TeamBuilder":
        """Build from a config mapping, resolving agent names in ``agents``.

        Args:
            section: One topology mapping (see config.py for the layout)
            agents: Registry of agent name -> Agent instance
            defaults: Team defaults, typically ``load_config()["team"]``
            tracing: Typically ``load_config()["tracing"]["enabled"]``

        Raises:
            ConfigurationError: On unknown agent names or pattern names.
        """
        builder = cls(defaults, tracing=tracing)

        for entry in section.get("children", []):
            agent_id = entry["id"]
            agent_name = entry.get("agent", agent_id)
            if agent_name not in agents:
                raise ConfigurationError(f"Unknown agent '{agent_name}' for child {agent_id}")
            add = builder.add_team_agent if entry.get("team", False) else builder.add_agent
            add(agent_id, agents[agent_name], timeout=entry.get("timeout"), critical=entry.get("critical"))

        if "pattern" in section:
            kind = _pattern_from_name(section["pattern"]).kind
            if kind == PatternKind.HYBRID:
                builder.hybrid(
                    ExecutionStep(
                        agent_ids=tuple(step.get("agents", [])),
                        concurrent=step.get("concurrent", False),
                        dependencies=tuple(step.get("dependencies", [])),
                    )
                    for step in section.get("steps", [])
                )
            else:
                builder.execution_pattern(ExecutionPattern(kind=kind))

        if "break_on_error" in section:
            builder.break_on_error(bool(section["break_on_error"]))
        if "global_timeout" in section:
            builder.global_timeout(section["global_timeout"])
        if "max_iterations" in section:
            builder.max_iterations(section["max_iterations"])
        if "prefix" in section:
            builder.prefix(section["prefix"])
        if "coordination_context" in section:
            builder.coordination_prompts(bool(section["coordination_context"]))

        logger.debug(f"Loaded topology with {len(builder._children)} children from config")
        return builder

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        topology: str,
        agents: Mapping[str, Agent],
    ) -> "TeamBuilder":
        """Load a YAML config and build the named topology from it.

        The file's ``team`` section supplies the defaults and its
        ``tracing.enabled`` key the tracing setting.

        Args:
            path: YAML config file; missing file means built-in defaults only
            topology: Key under ``topologies``
            agents: Registry of agent name -> Agent instance

        Raises:
            ConfigurationError: If the topology is not defined, or on unknown
                agent or pattern names.
        """
        config = load_config(path)
        topologies = config.get("topologies") or {}
        if topology not in topologies:
            raise ConfigurationError(f"Topology '{topology}' not found in {path}")
        return cls.from_config(
            topologies[topology],
            agents,
            defaults=config["team"],
            tracing=bool(config["tracing"].get("enabled", False)),
        )


def _pattern_from_name(name: str) -> ExecutionPattern:
    try:
        kind = PatternKind(str(name).lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown execution pattern '{name}' (expected sequential, concurrent or hybrid)"
        ) from None
    return ExecutionPattern(kind=kind)
