"""
Team Executor
=============

Runs the children of a validated topology and aggregates their outcomes.

Patterns:
- Concurrent: every child launched as one asyncio fan-out, optionally bounded
  by the team's global timeout. Outcomes reported in launch order.
- Sequential: children in declaration order; each sees the previous child's
  output under ``previous_agent_output`` / ``previous_agent_id``.
- Hybrid: steps in index order; a step sees every outcome of each step it
  depends on under ``step_<d>_outputs``.

Failure policy:
- Hard (raised): critical child failure, child contract violation, child
  timeout, batch timeout. A hard error inside a fan-out cancels the siblings.
- Soft (recorded): non-critical child failure becomes a failed ChildOutcome.

Every task spawned by a call is finished or cancelled before the call returns.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Iterable, Optional

import networkx as nx

from agentteam.agents import AgentAction, AgentFinish, Inputs, IntermediateSteps
from agentteam.aggregator import aggregate_results
from agentteam.errors import (
    BatchTimeout,
    ChildContractViolation,
    ChildExecutionError,
    ChildTimeout,
)
from agentteam.graph import build_step_graph, get_step_dependents, get_step_tiers
from agentteam.models import (
    AggregateResult,
    ChildOutcome,
    ChildSpec,
    ExecutionStep,
    PatternKind,
    TopologyConfig,
)
from agentteam.tracing import CHILD_SPAN, TEAM_SPAN, TraceCollector, TraceContext
from agentteam.validator import validate

logger = logging.getLogger("agentteam.executor")

PREVIOUS_OUTPUT_KEY = "previous_agent_output"
PREVIOUS_ID_KEY = "previous_agent_id"
CHAT_HISTORY_KEY = "chat_history"
COORDINATION_KEY = "coordination_context"


def step_outputs_key(step_idx: int) -> str:
    return f"step_{step_idx}_outputs"


class _NullSpan:
    async def __aenter__(self):
        return None

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False


class TeamExecutor:
    """Dispatcher for one validated, immutable topology.

    Args:
        config: Team topology; validated here, once
        tracing: Record ``team_execute`` / ``child_invoke`` spans for each run

    Raises:
        ConfigurationError: If the topology is structurally unsound.

    Usage:
        executor = TeamExecutor(config)
        result = await executor.execute([], {"input": "draft a release note"})
        print(result.final_output)
    """

    def __init__(self, config: TopologyConfig, tracing: bool = False):
        validate(config)
        self.config = config
        self.tracing = tracing
        self._children = {c.agent_id: c for c in config.children}
        self._step_graph: Optional[nx.DiGraph] = None

        if config.pattern.kind == PatternKind.HYBRID:
            self._step_graph = build_step_graph(config.pattern.steps)
            tiers = get_step_tiers(self._step_graph)
            logger.debug(
                f"Hybrid topology: {len(config.pattern.steps)} steps in {len(tiers)} tiers {tiers}"
            )

    # ── Public entry point ───────────────────────────────────────────────

    async def execute(
        self,
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> AggregateResult:
        """Run the team once.

        Args:
            intermediate_steps: Prior (action, observation) trace, passed to
                every child unchanged
            inputs: Key/value task context seeding every child

        Returns:
            AggregateResult with outcomes in production order, the wall-clock
            duration of this whole call, and the trace id when tracing is on.

        Raises:
            ChildExecutionError, ChildContractViolation, ChildTimeout,
            BatchTimeout: On hard failures. No partial result is returned.
        """
        start = time.perf_counter()
        pattern = self.config.pattern
        logger.info(f"Team run started: {len(self.config.children)} agents, pattern={pattern}")

        async with self._span(TEAM_SPAN, pattern=str(pattern)) as span:
            seeded = await self._seed_inputs(inputs)

            try:
                if pattern.kind == PatternKind.CONCURRENT:
                    outcomes = await self._execute_concurrent(intermediate_steps, seeded)
                elif pattern.kind == PatternKind.SEQUENTIAL:
                    outcomes = await self._execute_sequential(
                        list(self.config.children), intermediate_steps, seeded
                    )
                else:
                    outcomes = await self._execute_hybrid(pattern.steps, intermediate_steps, seeded)
            except Exception as e:
                trace = f" (trace {span.trace_id})" if span is not None else ""
                logger.error(f"Team run aborted after {time.perf_counter() - start:.3f}s{trace}: {e}")
                raise

        result = aggregate_results(outcomes)
        result.total_duration_sec = time.perf_counter() - start
        if span is not None:
            result.trace_id = span.trace_id
            if span.is_root:
                self._log_trace_summary(span.trace_id)

        logger.info(
            f"Team run finished: {result.success_count}/{len(result.outcomes)} succeeded "
            f"in {result.total_duration_sec:.3f}s"
        )
        return result

    # ── Input seeding ────────────────────────────────────────────────────

    async def _seed_inputs(self, inputs: Inputs) -> Inputs:
        """Copy the caller's inputs, adding memory keys when a handle is set."""
        seeded = dict(inputs)
        shared = self.config.shared_memory
        if shared is None:
            return seeded

        seeded[CHAT_HISTORY_KEY] = await shared.snapshot()
        if self.config.coordination_context:
            seeded[COORDINATION_KEY] = (
                f"Team coordination context: {len(self.config.children)} child agents "
                f"executing in {self.config.pattern} pattern"
            )
        return seeded

    # ── Patterns ─────────────────────────────────────────────────────────

    async def _execute_concurrent(
        self,
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> list[ChildOutcome]:
        batch = self._run_batch(list(self.config.children), intermediate_steps, inputs)
        timeout = self.config.global_timeout
        if timeout is None:
            return await batch
        try:
            return await asyncio.wait_for(batch, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Concurrent batch exceeded global timeout of {timeout}s")
            raise BatchTimeout(timeout) from None

    async def _execute_sequential(
        self,
        children: list[ChildSpec],
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> list[ChildOutcome]:
        """Run children one at a time, chaining each output into the next.

        Args:
            children: Members in run order (whole team, or one hybrid step)
            intermediate_steps: Trace passed through to each child
            inputs: Base inputs; never mutated

        Returns:
            Outcomes of the children that ran. With ``break_on_error`` the list
            ends at the first failed outcome.
        """
        outcomes: list[ChildOutcome] = []
        current = dict(inputs)

        for child in children:
            outcome = await self._execute_child(child, intermediate_steps, dict(current))
            current[PREVIOUS_OUTPUT_KEY] = outcome.output
            current[PREVIOUS_ID_KEY] = outcome.agent_id
            outcomes.append(outcome)

            if self.config.break_on_error and not outcome.success:
                logger.info(f"Stopping sequence after failed agent {child.agent_id}")
                break

        return outcomes

    async def _execute_hybrid(
        self,
        steps: tuple[ExecutionStep, ...],
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> list[ChildOutcome]:
        """Run hybrid steps in index order.

        Each step receives ``step_<d>_outputs`` for each of its dependencies
        only. Concurrent steps are not bounded by the global timeout.

        Returns:
            Outcomes of every step that ran, step by step in production order.
        """
        all_outcomes: list[ChildOutcome] = []
        step_outcomes: dict[int, list[ChildOutcome]] = {}

        for step_idx, step in enumerate(steps):
            step_input = dict(inputs)
            for dep in step.dependencies:
                if dep in step_outcomes:
                    step_input[step_outputs_key(dep)] = [
                        {"agent_id": o.agent_id, "output": o.output}
                        for o in step_outcomes[dep]
                    ]

            members = [self._children[agent_id] for agent_id in step.agent_ids]
            logger.debug(
                f"Step {step_idx}: {step.agent_ids} "
                f"({'concurrent' if step.concurrent else 'sequential'}, deps={list(step.dependencies)})"
            )

            if step.concurrent:
                results = await self._run_batch(members, intermediate_steps, step_input)
            else:
                results = await self._execute_sequential(members, intermediate_steps, step_input)

            step_outcomes[step_idx] = results
            all_outcomes.extend(results)
            logger.debug(
                f"Step {step_idx} produced {len(results)} outcomes, "
                f"consumed by steps {get_step_dependents(self._step_graph, step_idx)}"
            )

            if self.config.break_on_error and any(not o.success for o in all_outcomes):
                if step_idx < len(steps) - 1:
                    logger.info(f"Stopping hybrid run after step {step_idx}: a child failed")
                break

        return all_outcomes

    # ── Fan-out ──────────────────────────────────────────────────────────

    async def _run_batch(
        self,
        children: list[ChildSpec],
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> list[ChildOutcome]:
        """Launch children concurrently, each with its own copy of inputs.

        Args:
            children: Members to launch, in launch order
            intermediate_steps: Trace passed through to each child
            inputs: Shared base inputs; each child gets a shallow copy

        Returns:
            Outcomes in launch order, not completion order.

        Raises:
            The first hard error, after the remaining children are cancelled.
        """
        return await _gather_fail_fast(
            self._execute_child(child, intermediate_steps, dict(inputs))
            for child in children
        )

    # ── Single child ─────────────────────────────────────────────────────

    async def _execute_child(
        self,
        child: ChildSpec,
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> ChildOutcome:
        """Invoke one child under its own timeout, if it has one.

        Raises:
            ChildTimeout: Whatever the child's ``critical`` flag.
        """
        async with self._span(CHILD_SPAN, agent_id=child.agent_id, critical=child.critical):
            invocation = self._invoke_child(child, intermediate_steps, inputs)
            if child.timeout is None:
                return await invocation
            try:
                return await asyncio.wait_for(invocation, timeout=child.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Agent {child.agent_id} timed out after {child.timeout}s")
                raise ChildTimeout(child.agent_id, child.timeout) from None

    async def _invoke_child(
        self,
        child: ChildSpec,
        intermediate_steps: IntermediateSteps,
        inputs: Inputs,
    ) -> ChildOutcome:
        """Call ``plan`` once and map the response to an outcome.

        Returns:
            A successful outcome for AgentFinish, or a failed outcome when a
            non-critical child raised.

        Raises:
            ChildExecutionError: A critical child raised (original chained).
            ChildContractViolation: The child did not return AgentFinish.
        """
        start = time.perf_counter()
        try:
            event = await child.agent.plan(intermediate_steps, inputs)
        except Exception as e:
            message = str(e) or type(e).__name__
            if child.critical:
                logger.error(f"Critical agent {child.agent_id} failed: {message}")
                raise ChildExecutionError(child.agent_id, message) from e
            logger.warning(f"Agent {child.agent_id} failed (non-critical): {message}")
            return ChildOutcome(
                agent_id=child.agent_id,
                output=f"Error: {message}",
                success=False,
                error=message,
                duration_sec=time.perf_counter() - start,
            )

        if isinstance(event, AgentAction):
            logger.error(f"Agent {child.agent_id} returned action '{event.tool}' instead of finishing")
            raise ChildContractViolation(child.agent_id)
        if not isinstance(event, AgentFinish):
            returned = type(event).__name__
            logger.error(f"Agent {child.agent_id} returned {returned}, not an agent event")
            raise ChildContractViolation(child.agent_id, returned=returned)

        duration = time.perf_counter() - start
        logger.debug(f"Agent {child.agent_id} finished in {duration:.3f}s")
        return ChildOutcome(
            agent_id=child.agent_id,
            output=event.output,
            success=True,
            duration_sec=duration,
        )

    # ── Tracing ──────────────────────────────────────────────────────────

    def _span(self, operation: str, **metadata: Any):
        if self.tracing:
            return TraceContext(operation, **metadata)
        return _NullSpan()

    def _log_trace_summary(self, trace_id: str) -> None:
        summary = TraceCollector.summarize(trace_id)
        logger.debug(
            f"Trace {trace_id}: {summary['total_spans']} spans, {summary['errors']} errors, "
            f"slowest agent {summary['slowest_agent']}"
        )


async def _gather_fail_fast(coros: Iterable[Awaitable[ChildOutcome]]) -> list[ChildOutcome]:
    """Run awaitables concurrently and return their results in launch order.

    On the first exception every unfinished sibling is cancelled and awaited,
    then the exception propagates. The same cleanup runs if this coroutine is
    itself cancelled (e.g. by a batch timeout).
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    if not tasks:
        return []
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        # Collect every finished task's exception so none goes unretrieved.
        errors = [t.exception() for t in tasks if t in done and not t.cancelled()]
        failed: Optional[BaseException] = next((e for e in errors if e is not None), None)
        if failed is not None:
            raise failed
        return [task.result() for task in tasks]
    finally:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
