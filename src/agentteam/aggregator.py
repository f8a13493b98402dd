"""Fold per-child outcomes into one AggregateResult."""

from __future__ import annotations

from agentteam.models import AggregateResult, ChildOutcome


def format_outcome(outcome: ChildOutcome) -> str:
    if outcome.success:
        return f"{outcome.agent_id}: {outcome.output}"
    return f"{outcome.agent_id}: ERROR - {outcome.error or 'Unknown error'}"


def aggregate_results(outcomes: list[ChildOutcome]) -> AggregateResult:
    """Combine outcomes in production order.

    ``success`` is the AND of every outcome. ``total_duration_sec`` is left at
    zero; the executor overwrites it with its own wall-clock measurement since
    children may have run in parallel.
    """
    return AggregateResult(
        outcomes=list(outcomes),
        final_output="\n\n".join(format_outcome(o) for o in outcomes),
        success=all(o.success for o in outcomes),
        total_duration_sec=0.0,
    )
