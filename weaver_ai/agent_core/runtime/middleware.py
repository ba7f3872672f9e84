from __future__ import annotations

"""Ordered middleware pipeline.

A stage is an async callable ``stage(context, call_next)``. It may inspect the
context before calling ``call_next()``, transform the returned output, replace
errors, or short-circuit by returning without calling ``call_next``.

.. warning::
   A stage that never calls ``call_next`` silently prevents the invocation
   from running. This is accepted behaviour and is not guarded against.

Stages run in registration order on the way in and in reverse order on the
way out. ``build`` reduces the stage list into one aggregate handler, so the
composition order is fixed when the pipeline runs, not discovered at call
time. A pipeline without stages behaves as a single identity stage.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, List, Optional

from weaver_ai.core import monitoring
from weaver_ai.core.config import get_settings

from ..errors import FrameworkError

if TYPE_CHECKING:
    from .context import RunContext

logger = logging.getLogger(__name__)

CallNext = Callable[[], Awaitable[Any]]
Stage = Callable[["RunContext", CallNext], Awaitable[Any]]
Handler = Callable[["RunContext"], Awaitable[Any]]


@dataclass(frozen=True)
class MiddlewareEntry:
    """A registered stage and its stable identity."""

    stage: Stage
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def name(self) -> str:
        return getattr(self.stage, "__name__", type(self.stage).__name__)


async def identity_middleware(context: "RunContext", call_next: CallNext) -> Any:
    """Pass-through stage."""
    return await call_next()


def create_telemetry_middleware() -> Stage:
    """
    Create a stage that records each run with Logfire.

    The stage opens a span around the rest of the pipeline and logs start and
    completion (with duration and status). Telemetry failures are swallowed
    by the monitoring helpers; errors of the run itself propagate unchanged.
    """
    monitoring.initialize_logfire()

    async def telemetry_middleware(context: "RunContext", call_next: CallNext) -> Any:
        component = type(context.owner).__name__
        parent_id = context.parent.run_id if context.parent is not None else None
        started = time.perf_counter()
        monitoring.log_run_started(context.run_id, component, parent_id)
        with monitoring.run_span(component, context.run_id, context.group_id):
            try:
                result = await call_next()
            except BaseException as e:
                status = "cancelled" if context.token.cancelled else "failed"
                monitoring.log_run_completed(context.run_id, status, (time.perf_counter() - started) * 1000)
                if isinstance(e, Exception):
                    err = FrameworkError.ensure(e)
                    monitoring.log_error(type(e).__name__, str(e), {"run_id": context.run_id, "explain": err.explain()})
                raise
        monitoring.log_run_completed(context.run_id, "succeeded", (time.perf_counter() - started) * 1000)
        return result

    return telemetry_middleware


class MiddlewarePipeline:
    """Ordered list of stages composed around a core invocation."""

    def __init__(self, stages: Optional[Iterable[Stage]] = None) -> None:
        self._entries: List[MiddlewareEntry] = []
        for stage in stages or ():
            self.use(stage)

    @classmethod
    def default(cls) -> "MiddlewarePipeline":
        """
        Build a pipeline with the configured default stages.

        The instrumentation toggle is read once here: enabled installs the
        telemetry stage, disabled leaves the pipeline empty (identity).
        """
        if get_settings().instrumentation_enabled:
            return cls([create_telemetry_middleware()])
        return cls()

    @property
    def entries(self) -> List[MiddlewareEntry]:
        return list(self._entries)

    @property
    def stages(self) -> List[Stage]:
        """Effective stages; never empty."""
        if not self._entries:
            return [identity_middleware]
        return [entry.stage for entry in self._entries]

    def use(self, stage: Stage) -> MiddlewareEntry:
        """Append ``stage`` and return its entry."""
        entry = MiddlewareEntry(stage=stage)
        self._entries.append(entry)
        logger.debug(f"Middleware registered: {entry.name} ({entry.id})")
        return entry

    def remove(self, entry_id: str) -> bool:
        """Remove the stage registered under ``entry_id``."""
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.id != entry_id]
        return len(self._entries) != before

    def build(self, core: Handler) -> Handler:
        """Compose the stages around ``core``; the first stage is outermost."""
        handler = core
        for stage in reversed(self.stages):
            handler = _bind(stage, handler)
        return handler

    async def run(self, context: "RunContext", core: Handler) -> Any:
        return await self.build(core)(context)

    def __len__(self) -> int:
        return len(self._entries)


def _bind(stage: Stage, inner: Handler) -> Handler:
    async def handler(context: "RunContext") -> Any:
        return await stage(context, lambda: inner(context))

    return handler
