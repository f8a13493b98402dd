"""
Team Data Models
================

Pydantic v2 structures describing a team topology and its results.

Topology models are frozen: once a TopologyConfig is validated and handed to
an executor it cannot change for that executor's lifetime.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

from agentteam.agents import Agent
from agentteam.memory import SharedMemory


class ChildSpec(BaseModel):
    """One member of a team plus its per-member policy."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    agent_id: str = Field(min_length=1)
    agent: Agent
    timeout: Optional[float] = Field(default=None, gt=0)  # seconds
    critical: bool = True
    is_team: bool = False  # informational: child is itself a TeamAgent


class PatternKind(str, Enum):
    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"
    HYBRID = "hybrid"


class ExecutionStep(BaseModel):
    """One node of a hybrid topology. Dependencies are earlier step indices."""

    model_config = ConfigDict(frozen=True)

    agent_ids: tuple[str, ...]
    concurrent: bool = False
    dependencies: tuple[NonNegativeInt, ...] = ()


class ExecutionPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: PatternKind
    steps: tuple[ExecutionStep, ...] = ()

    @classmethod
    def concurrent(cls) -> "ExecutionPattern":
        return cls(kind=PatternKind.CONCURRENT)

    @classmethod
    def sequential(cls) -> "ExecutionPattern":
        return cls(kind=PatternKind.SEQUENTIAL)

    @classmethod
    def hybrid(cls, steps: list[ExecutionStep] | tuple[ExecutionStep, ...]) -> "ExecutionPattern":
        return cls(kind=PatternKind.HYBRID, steps=tuple(steps))

    def __str__(self) -> str:
        if self.kind == PatternKind.HYBRID:
            return f"Hybrid({len(self.steps)} steps)"
        return self.kind.value.capitalize()


class TopologyConfig(BaseModel):
    """The full declaration of a team."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    children: tuple[ChildSpec, ...] = ()
    pattern: ExecutionPattern = Field(default_factory=ExecutionPattern.sequential)
    break_on_error: bool = True
    global_timeout: Optional[float] = Field(default=300.0, gt=0)  # concurrent pattern only
    max_iterations: Optional[int] = 10  # reserved, not consulted by the executor
    prefix: Optional[str] = None
    coordination_context: bool = False
    shared_memory: Optional[SharedMemory] = None

    def child_ids(self) -> list[str]:
        return [c.agent_id for c in self.children]

    def get_child(self, agent_id: str) -> Optional[ChildSpec]:
        for child in self.children:
            if child.agent_id == agent_id:
                return child
        return None


class ChildOutcome(BaseModel):
    """Result of one child invocation."""

    agent_id: str
    output: str = ""
    success: bool
    error: Optional[str] = None
    duration_sec: float = 0.0


class AggregateResult(BaseModel):
    """Composite result of a team run. Outcomes are in production order."""

    outcomes: list[ChildOutcome] = Field(default_factory=list)
    final_output: str = ""
    success: bool = True
    total_duration_sec: float = 0.0
    trace_id: Optional[str] = None  # set when the executor traced the run

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failure_count(self) -> int:
        return len(self.outcomes) - self.success_count

    def get_outcome(self, agent_id: str) -> Optional[ChildOutcome]:
        for outcome in self.outcomes:
            if outcome.agent_id == agent_id:
                return outcome
        return None
