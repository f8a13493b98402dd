"""
Team Error Taxonomy
===================

Hard failures raised by team construction and execution.

Only these exceptions abort a team run. A non-critical child's failure is
not raised at all; it is recorded as a failed ChildOutcome instead.
"""

from __future__ import annotations


class TeamError(Exception):
    """Base class for all team orchestration errors."""


class ConfigurationError(TeamError):
    """Raised when a topology is structurally unsound (construction time)."""


class ChildContractViolation(TeamError):
    """Raised when a child does not finish with a final answer.

    Usually the child asked for a next action; ``returned`` names the type
    when it returned something that is not an agent event at all.
    """

    def __init__(self, agent_id: str, returned: str | None = None):
        self.agent_id = agent_id
        self.returned = returned
        if returned is None:
            message = f"Child agent {agent_id} returned an action instead of a final answer"
        else:
            message = (
                f"Child agent {agent_id} returned {returned} instead of "
                f"AgentFinish or AgentAction"
            )
        super().__init__(message)


class ChildTimeout(TeamError):
    """Raised when a child exceeds its own timeout, whatever its critical flag."""

    def __init__(self, agent_id: str, timeout: float):
        self.agent_id = agent_id
        self.timeout = timeout
        super().__init__(f"Agent {agent_id} timed out after {timeout:g} seconds")


class ChildExecutionError(TeamError):
    """Raised when a critical child fails. The underlying exception is chained."""

    def __init__(self, agent_id: str, message: str):
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} failed: {message}")


class BatchTimeout(TeamError):
    """Raised when a concurrent batch exceeds the team's global timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Global timeout exceeded after {timeout:g} seconds")
