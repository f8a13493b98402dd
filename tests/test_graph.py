"""Tests for the hybrid step graph (pure graph logic, networkx only)."""

import networkx as nx

from agentteam.graph import build_step_graph, find_cycle, get_step_dependents, get_step_tiers
from agentteam.models import ExecutionStep


class TestBuildStepGraph:
    def test_nodes_carry_step_attributes(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["b", "c"], concurrent=True, dependencies=[0]),
        ]
        G = build_step_graph(steps)
        assert isinstance(G, nx.DiGraph)
        assert list(G.nodes()) == [0, 1]
        assert G.nodes[1]["agent_ids"] == ["b", "c"]
        assert G.nodes[1]["concurrent"] is True
        assert list(G.edges()) == [(0, 1)]

    def test_empty_steps(self):
        G = build_step_graph([])
        assert G.number_of_nodes() == 0
        assert get_step_tiers(G) == []


class TestStepTiers:
    def test_linear_chain(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["b"], dependencies=[0]),
            ExecutionStep(agent_ids=["c"], dependencies=[1]),
        ]
        assert get_step_tiers(build_step_graph(steps)) == [[0], [1], [2]]

    def test_independent_steps_share_tier(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["b"]),
            ExecutionStep(agent_ids=["c"], dependencies=[0, 1]),
        ]
        assert get_step_tiers(build_step_graph(steps)) == [[0, 1], [2]]

    def test_diamond(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["b"], dependencies=[0]),
            ExecutionStep(agent_ids=["c"], dependencies=[0]),
            ExecutionStep(agent_ids=["d"], dependencies=[1, 2]),
        ]
        G = build_step_graph(steps)
        assert get_step_tiers(G) == [[0], [1, 2], [3]]
        assert get_step_dependents(G, 0) == [1, 2]
        assert get_step_dependents(G, 3) == []
        assert get_step_dependents(G, 99) == []


class TestCycleDetection:
    def test_dag_has_no_cycle(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["b"], dependencies=[0]),
        ]
        assert find_cycle(build_step_graph(steps)) == []

    def test_back_edge_detected(self):
        steps = [
            ExecutionStep(agent_ids=["a"], dependencies=[1]),
            ExecutionStep(agent_ids=["b"], dependencies=[0]),
        ]
        cycle = find_cycle(build_step_graph(steps))
        assert set(cycle) == {(0, 1), (1, 0)}
