"""
Hybrid Step Graph
=================

Explicit directed graph over hybrid execution steps: cycle detection and
topological tiers.

Edge (d, k) means step k depends on step d. Execution itself follows step
index order; the graph backs validation and introspection.
"""

import logging

import networkx as nx

from agentteam.models import ExecutionStep

logger = logging.getLogger("agentteam.graph")


def build_step_graph(steps: list[ExecutionStep] | tuple[ExecutionStep, ...]) -> nx.DiGraph:
    """Build a dependency graph from hybrid steps.

    Args:
        steps: Hybrid execution steps, in declaration order

    Returns:
        NetworkX DiGraph with one node per step index. Each node carries
        ``agent_ids`` and ``concurrent`` attributes.
    """
    G = nx.DiGraph()
    for idx, step in enumerate(steps):
        G.add_node(idx, agent_ids=list(step.agent_ids), concurrent=step.concurrent)
    for idx, step in enumerate(steps):
        for dep in step.dependencies:
            G.add_edge(dep, idx)
    return G


def find_cycle(G: nx.DiGraph) -> list[tuple[int, int]]:
    """Return the edges of one cycle in G, or an empty list if G is a DAG."""
    try:
        return [(u, v) for u, v in nx.find_cycle(G)]
    except nx.NetworkXNoCycle:
        return []


def get_step_tiers(G: nx.DiGraph) -> list[list[int]]:
    """Group step indices into tiers.

    Tier 0: steps with no dependencies.
    Tier N: steps whose dependencies all sit in tiers < N.

    Args:
        G: Step graph (must be a DAG)

    Returns:
        List of tiers, each a sorted list of step indices
    """
    if G.number_of_nodes() == 0:
        return []
    return [sorted(generation) for generation in nx.topological_generations(G)]


def get_step_dependents(G: nx.DiGraph, step_idx: int) -> list[int]:
    """Return the indices of steps that consume step_idx's outputs."""
    if not G.has_node(step_idx):
        return []
    return sorted(G.successors(step_idx))
