"""
Topology Validation
===================

Rejects structurally unsound topologies before anything runs.
Pure function of the config: no side effects, deterministic error messages.
"""

import logging

from agentteam.errors import ConfigurationError
from agentteam.graph import build_step_graph, find_cycle
from agentteam.models import PatternKind, TopologyConfig

logger = logging.getLogger("agentteam.validator")


def validate(config: TopologyConfig) -> None:
    """Validate a team topology.

    Checks, in order:
    1. At least one child.
    2. Child ids are pairwise distinct (first duplicate is named).
    3. Hybrid only: every step references known ids, and every dependency
       points to a strictly earlier step.
    4. Hybrid only: every child appears in at least one step.
    5. Hybrid only: the step graph is acyclic.

    Raises:
        ConfigurationError: On the first violated condition.
    """
    if not config.children:
        raise ConfigurationError("Team must have at least one child agent")

    seen: set[str] = set()
    for child in config.children:
        if child.agent_id in seen:
            raise ConfigurationError(f"Duplicate agent ID: {child.agent_id}")
        seen.add(child.agent_id)

    if config.pattern.kind != PatternKind.HYBRID:
        return

    steps = config.pattern.steps
    for step_idx, step in enumerate(steps):
        for agent_id in step.agent_ids:
            if agent_id not in seen:
                raise ConfigurationError(
                    f"Unknown agent ID in execution step {step_idx}: {agent_id}"
                )
        for dep in step.dependencies:
            if dep >= step_idx:
                raise ConfigurationError(
                    f"Invalid dependency: step {step_idx} cannot depend on "
                    f"step {dep} (must be earlier)"
                )

    covered = {agent_id for step in steps for agent_id in step.agent_ids}
    for child in config.children:
        if child.agent_id not in covered:
            raise ConfigurationError(
                f"Agent {child.agent_id} is not included in any execution step"
            )

    cycle = find_cycle(build_step_graph(steps))
    if cycle:
        path = " -> ".join(str(u) for u, _ in cycle)
        raise ConfigurationError(f"Execution steps form a cycle: {path}")

    logger.debug(f"Validated hybrid topology: {len(steps)} steps, {len(seen)} agents")
