from __future__ import annotations

"""Run state and the invokable base class.

Every agent or tool is an ``Invokable``: it exposes ``run`` (which returns an
awaitable ``Run`` governed by a ``RunContext``) and implements ``_run``, the
component-specific work.

The owner's run state is an explicit two-valued tag. Only ``RunContext``
performs transitions between ``IDLE`` and ``RUNNING``.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Type, TypedDict

from ..emitter import Emitter
from ..errors import AgentError

if TYPE_CHECKING:
    from .context import RunContext


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class RunSnapshot(TypedDict):
    """Persisted run state. A loaded snapshot is never mid-run."""

    is_running: bool


class Invokable(ABC):
    """Base class for components whose invocations run inside a ``RunContext``.

    Subclasses provide an ``emitter`` and implement ``_run``.
    """

    error_class: ClassVar[Type[AgentError]] = AgentError

    emitter: Emitter
    _run_state: RunState = RunState.IDLE

    @property
    def run_state(self) -> RunState:
        return self._run_state

    @property
    def is_running(self) -> bool:
        return self._run_state is RunState.RUNNING

    @abstractmethod
    async def _run(self, input: Any, options: Any, context: "RunContext") -> Any:
        """Component-specific work executed inside the run context."""

    def destroy(self) -> None:
        """Tear down the component's event bus."""
        self.emitter.destroy()

    def create_snapshot(self) -> Dict[str, Any]:
        return dict(RunSnapshot(is_running=False))

    def load_snapshot(self, snapshot: Dict[str, Any]) -> None:
        # Whatever the snapshot says, a loaded component is not running.
        self._run_state = RunState.IDLE
