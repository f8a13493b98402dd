"""
Team Run Tracing
================

Spans for team runs and child invocations, carried in contextvars so that
children launched as asyncio tasks see their team's span as parent.

One trace is one top-level team run. The outermost span opens a fresh trace
id and restores the previous value on exit, so consecutive runs from the same
caller never share a trace. A nested team joins the enclosing trace, with its
``team_execute`` span parented to the ``child_invoke`` span that called it.

Usage:
    executor = TeamExecutor(config, tracing=True)
    result = await executor.execute([], {"input": "summarize the incident"})

    spans = TraceCollector.get_trace(result.trace_id)
    summary = TraceCollector.summarize(result.trace_id)
    print(summary["agents"]["researcher"]["total_duration"])
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import OrderedDict
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger("agentteam.tracing")

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
span_stack_var: ContextVar[tuple[str, ...]] = ContextVar("span_stack", default=())

TEAM_SPAN = "team_execute"
CHILD_SPAN = "child_invoke"


@dataclass
class Span:
    """A timed team operation.

    ``agent_id`` is set on child spans only. Timing uses ``time.perf_counter``
    so durations are comparable with ChildOutcome.duration_sec.
    """

    span_id: str
    parent_id: Optional[str]
    trace_id: str
    operation: str
    agent_id: Optional[str] = None
    started: float = field(default_factory=time.perf_counter)
    ended: Optional[float] = None
    status: str = "running"  # running | success | error | cancelled
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        end = self.ended if self.ended is not None else time.perf_counter()
        return end - self.started

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class TraceContext:
    """Async context manager around one span.

    Args:
        operation: ``team_execute`` or ``child_invoke``
        agent_id: Child id, for child spans
        **metadata: Extra attributes stored on the span (pattern, critical, ...)

    Exceptions leaving the block mark the span and always propagate.
    """

    def __init__(self, operation: str, agent_id: Optional[str] = None, **metadata: Any):
        self.operation = operation
        self.agent_id = agent_id
        self.metadata = metadata
        self.span: Optional[Span] = None
        self._trace_token: Optional[Token] = None
        self._stack_token: Optional[Token] = None

    async def __aenter__(self) -> Span:
        trace_id = trace_id_var.get()
        if trace_id is None:
            trace_id = uuid.uuid4().hex
            self._trace_token = trace_id_var.set(trace_id)

        stack = span_stack_var.get()
        self.span = Span(
            span_id=uuid.uuid4().hex[:16],
            parent_id=stack[-1] if stack else None,
            trace_id=trace_id,
            operation=self.operation,
            agent_id=self.agent_id,
            metadata=dict(self.metadata),
        )
        self._stack_token = span_stack_var.set(stack + (self.span.span_id,))
        return self.span

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        span_stack_var.reset(self._stack_token)
        if self._trace_token is not None:
            trace_id_var.reset(self._trace_token)

        span = self.span
        span.ended = time.perf_counter()
        if exc_type is None:
            span.status = "success"
        elif issubclass(exc_type, asyncio.CancelledError):
            span.status = "cancelled"
        else:
            span.status = "error"
            span.metadata["error_type"] = exc_type.__name__
            span.metadata["error_message"] = str(exc_val)

        TraceCollector.record(span)
        return False


class TraceCollector:
    """Process-wide store of finished spans, grouped by trace.

    Only the most recent ``max_traces`` traces are kept. Every method is
    synchronous; nothing here awaits, so no two tasks on one event loop can
    interleave inside it.
    """

    max_traces: int = 256
    _traces: "OrderedDict[str, List[Span]]" = OrderedDict()

    @classmethod
    def record(cls, span: Span) -> None:
        """Store a finished span, evicting the oldest trace when full.

        Args:
            span: A span whose status is no longer ``running``
        """
        spans = cls._traces.setdefault(span.trace_id, [])
        spans.append(span)
        cls._traces.move_to_end(span.trace_id)
        while len(cls._traces) > cls.max_traces:
            evicted, _ = cls._traces.popitem(last=False)
            logger.debug(f"Evicted trace {evicted}")

    @classmethod
    def get_trace(cls, trace_id: Optional[str]) -> List[Span]:
        """Spans of one trace in completion order, or [] if unknown."""
        if trace_id is None:
            return []
        return list(cls._traces.get(trace_id, []))

    @classmethod
    def trace_ids(cls) -> List[str]:
        """Known trace ids, oldest first."""
        return list(cls._traces)

    @classmethod
    def summarize(cls, trace_id: Optional[str]) -> Dict[str, Any]:
        """Per-agent view of one team run.

        Args:
            trace_id: Id from ``AggregateResult.trace_id``

        Returns:
            Dict with ``trace_id``, ``total_spans``, ``team_runs`` (1 plus one
            per nested team run), ``duration`` of the root span, ``errors``,
            ``slowest_agent`` and ``agents``: for each child id, its
            ``invocations``, ``total_duration``, ``errors``, ``timeouts`` and
            last ``status``. Empty ``agents`` and zero counts for an unknown id.
        """
        spans = cls.get_trace(trace_id)
        root = next((s for s in spans if s.is_root), None)

        agents: Dict[str, Dict[str, Any]] = {}
        for span in spans:
            if span.operation != CHILD_SPAN or span.agent_id is None:
                continue
            stats = agents.setdefault(
                span.agent_id,
                {"invocations": 0, "total_duration": 0.0, "errors": 0, "timeouts": 0, "status": None},
            )
            stats["invocations"] += 1
            stats["total_duration"] += span.duration
            stats["status"] = span.status
            if span.status == "error":
                stats["errors"] += 1
                if span.metadata.get("error_type") == "ChildTimeout":
                    stats["timeouts"] += 1

        slowest = max(agents, key=lambda a: agents[a]["total_duration"]) if agents else None
        return {
            "trace_id": trace_id,
            "total_spans": len(spans),
            "team_runs": sum(1 for s in spans if s.operation == TEAM_SPAN),
            "duration": root.duration if root else 0.0,
            "errors": sum(1 for s in spans if s.status == "error"),
            "slowest_agent": slowest,
            "agents": agents,
        }

    @classmethod
    def discard(cls, trace_id: str) -> None:
        cls._traces.pop(trace_id, None)

    @classmethod
    def clear(cls) -> None:
        cls._traces.clear()
