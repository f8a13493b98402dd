"""Tests for topology validation."""

import pytest
from pydantic import ValidationError

from agentteam import (
    ChildSpec,
    ConfigurationError,
    ExecutionPattern,
    ExecutionStep,
    FunctionAgent,
    TeamExecutor,
    TopologyConfig,
    validate,
)


def _agent():
    return FunctionAgent(lambda steps, inputs: "ok")


def _children(*ids):
    return tuple(ChildSpec(agent_id=i, agent=_agent()) for i in ids)


def _hybrid(children, steps):
    return TopologyConfig(children=children, pattern=ExecutionPattern.hybrid(steps))


# ── Basic checks ─────────────────────────────────────────────────────────────


class TestBasicValidation:
    def test_empty_team_rejected(self):
        with pytest.raises(ConfigurationError, match="at least one child"):
            validate(TopologyConfig())

    def test_single_child_accepted(self):
        validate(TopologyConfig(children=_children("a")))

    def test_duplicate_id_named(self):
        config = TopologyConfig(children=_children("a", "b", "a"))
        with pytest.raises(ConfigurationError, match="Duplicate agent ID: a"):
            validate(config)

    def test_first_duplicate_reported(self):
        config = TopologyConfig(children=_children("x", "y", "y", "x"))
        with pytest.raises(ConfigurationError) as exc:
            validate(config)
        assert str(exc.value) == "Duplicate agent ID: y"

    def test_duplicate_rejected_for_every_pattern(self):
        for pattern in (ExecutionPattern.sequential(), ExecutionPattern.concurrent()):
            config = TopologyConfig(children=_children("a", "a"), pattern=pattern)
            with pytest.raises(ConfigurationError, match="Duplicate"):
                validate(config)

    def test_executor_validates_at_construction(self):
        with pytest.raises(ConfigurationError):
            TeamExecutor(TopologyConfig())

    def test_validation_is_deterministic(self):
        config = TopologyConfig(children=_children("a", "a"))
        messages = set()
        for _ in range(3):
            with pytest.raises(ConfigurationError) as exc:
                validate(config)
            messages.add(str(exc.value))
        assert messages == {"Duplicate agent ID: a"}


# ── Hybrid checks ────────────────────────────────────────────────────────────


class TestHybridValidation:
    def test_valid_pipeline(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["b", "c"], concurrent=True, dependencies=[0]),
            ExecutionStep(agent_ids=["d"], dependencies=[1]),
        ]
        validate(_hybrid(_children("a", "b", "c", "d"), steps))

    def test_unknown_agent_in_step(self):
        steps = [ExecutionStep(agent_ids=["a", "ghost"])]
        with pytest.raises(ConfigurationError, match="Unknown agent ID in execution step 0: ghost"):
            validate(_hybrid(_children("a"), steps))

    def test_self_dependency_rejected(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["b"], dependencies=[1]),
        ]
        with pytest.raises(ConfigurationError, match="step 1 cannot depend on step 1"):
            validate(_hybrid(_children("a", "b"), steps))

    def test_forward_dependency_rejected(self):
        steps = [
            ExecutionStep(agent_ids=["a"], dependencies=[1]),
            ExecutionStep(agent_ids=["b"]),
        ]
        with pytest.raises(ConfigurationError, match="step 0 cannot depend on step 1"):
            validate(_hybrid(_children("a", "b"), steps))

    def test_uncovered_child_rejected(self):
        steps = [ExecutionStep(agent_ids=["a"])]
        with pytest.raises(ConfigurationError, match="Agent b is not included"):
            validate(_hybrid(_children("a", "b"), steps))

    def test_no_steps_leaves_children_uncovered(self):
        with pytest.raises(ConfigurationError, match="not included"):
            validate(_hybrid(_children("a"), []))

    def test_agent_in_multiple_steps_allowed(self):
        steps = [
            ExecutionStep(agent_ids=["a"]),
            ExecutionStep(agent_ids=["a", "b"], dependencies=[0]),
        ]
        validate(_hybrid(_children("a", "b"), steps))

    def test_negative_dependency_rejected_by_model(self):
        with pytest.raises(ValidationError):
            ExecutionStep(agent_ids=["a"], dependencies=[-1])

    def test_steps_ignored_for_non_hybrid(self):
        config = TopologyConfig(children=_children("a"), pattern=ExecutionPattern.sequential())
        validate(config)


# ── Immutability ─────────────────────────────────────────────────────────────


class TestImmutability:
    def test_config_is_frozen(self):
        config = TopologyConfig(children=_children("a"))
        with pytest.raises(ValidationError):
            config.break_on_error = False

    def test_child_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ChildSpec(agent_id="a", agent=_agent(), timeout=0)

    def test_child_requires_agent_instance(self):
        with pytest.raises(ValidationError):
            ChildSpec(agent_id="a", agent="not an agent")
