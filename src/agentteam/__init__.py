"""
agentteam: Team Orchestration for Polymorphic Agents
====================================================

Composes independent agents into one logical agent and runs them as a
sequential chain, a concurrent fan-out, or a hybrid dependency graph of
steps, then folds their outcomes into a single result.

Core modules:
- agents: Agent / Tool interfaces, AgentFinish / AgentAction events
- models: Pydantic v2 topology and result models
- validator: Structural checks run once at construction
- executor: TeamExecutor, the asyncio dispatcher
- aggregator: Outcome folding and final text
- team: TeamAgent facade and TeamAgentTool wrapper
- builder: Fluent TeamBuilder and canned topologies
- memory: Lock-guarded shared conversation memory handle
- graph: networkx step graph, cycle detection, tiers
- config: YAML configuration loader with defaults
- tracing: contextvar span tracing
"""

from agentteam.agents import (
    Agent,
    AgentAction,
    AgentEvent,
    AgentFinish,
    FunctionAgent,
    StaticTool,
    Tool,
)
from agentteam.errors import (
    BatchTimeout,
    ChildContractViolation,
    ChildExecutionError,
    ChildTimeout,
    ConfigurationError,
    TeamError,
)
from agentteam.memory import (
    ChatMessage,
    ConversationMemory,
    InMemoryConversation,
    SharedMemory,
)
from agentteam.models import (
    AggregateResult,
    ChildOutcome,
    ChildSpec,
    ExecutionPattern,
    ExecutionStep,
    PatternKind,
    TopologyConfig,
)
from agentteam.validator import validate
from agentteam.aggregator import aggregate_results
from agentteam.executor import TeamExecutor
from agentteam.team import TeamAgent, TeamAgentTool, format_team_output
from agentteam.builder import TeamBuilder
from agentteam.config import load_config
from agentteam.tracing import TraceCollector, TraceContext

__all__ = [
    # Agents
    "Agent",
    "AgentAction",
    "AgentEvent",
    "AgentFinish",
    "FunctionAgent",
    "StaticTool",
    "Tool",
    # Errors
    "BatchTimeout",
    "ChildContractViolation",
    "ChildExecutionError",
    "ChildTimeout",
    "ConfigurationError",
    "TeamError",
    # Memory
    "ChatMessage",
    "ConversationMemory",
    "InMemoryConversation",
    "SharedMemory",
    # Models
    "AggregateResult",
    "ChildOutcome",
    "ChildSpec",
    "ExecutionPattern",
    "ExecutionStep",
    "PatternKind",
    "TopologyConfig",
    # Engine
    "validate",
    "aggregate_results",
    "TeamExecutor",
    "TeamAgent",
    "TeamAgentTool",
    "format_team_output",
    "TeamBuilder",
    # Config / tracing
    "load_config",
    "TraceCollector",
    "TraceContext",
]
