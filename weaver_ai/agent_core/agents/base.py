"""Base abstraction for agents.

This module defines the interface concrete agents implement. An agent's
``run`` method never executes work directly: it hands ``_run`` to the run
context, which enforces the reentrancy guard, propagates cancellation, emits
lifecycle events and wraps foreign errors into ``AgentError``.

Memory storage is an external collaborator; agents only expose the
``BaseMemory`` accessor pair.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from ..emitter import Emitter
from ..errors import AgentError
from ..runtime.cancellation import CancellationToken
from ..runtime.context import Run, RunContext, enter
from ..runtime.models import Invokable

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")


def to_snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass
class AgentRunOptions:
    """Per-call options. ``signal`` is an externally issued cancellation token."""

    signal: Optional[CancellationToken] = None


class AgentMeta(BaseModel):
    """Descriptive metadata of an agent."""

    name: str = Field(..., description="Agent name")
    description: str = Field(default="", description="What the agent does")
    tools: List[Dict[str, Any]] = Field(default_factory=list, description="Prompt data of the agent's tools")


class BaseMemory(ABC):
    """Interface of the memory collaborator used by agents."""

    @property
    @abstractmethod
    def messages(self) -> List[Any]: ...

    @abstractmethod
    async def add(self, message: Any) -> None: ...

    @abstractmethod
    def reset(self) -> None: ...


class BaseAgent(Invokable, Generic[TInput, TOutput]):
    """Abstract base class for agents.

    Subclasses must implement:
    - ``_run(input, options, context)``: the agent logic
    - ``memory``: getter and setter for the agent's memory
    """

    error_class = AgentError

    def __init__(self, *, emitter: Optional[Emitter] = None) -> None:
        self.emitter = emitter or Emitter.root.child(
            namespace=["agent", to_snake_case(type(self).__name__)],
            creator=self,
        )

    def run(self, input: TInput, options: Optional[AgentRunOptions] = None) -> Run[TOutput]:
        """
        Start a run of this agent.

        Args:
            input: Agent input.
            options: Run options; ``options.signal`` is observed cooperatively.

        Returns:
            An awaitable ``Run``. Awaiting it raises ``ReentrancyError`` when
            the agent is already running and ``AgentError`` for failures.
        """
        opts = options or AgentRunOptions()

        async def _work(context: RunContext) -> TOutput:
            return await self._run(input, opts, context)

        return enter(self, _work, token=opts.signal, params=(input, opts))

    @abstractmethod
    async def _run(self, input: TInput, options: AgentRunOptions, context: RunContext) -> TOutput:
        """Agent logic."""

    @property
    @abstractmethod
    def memory(self) -> BaseMemory: ...

    @memory.setter
    @abstractmethod
    def memory(self, memory: BaseMemory) -> None: ...

    @property
    def meta(self) -> AgentMeta:
        return AgentMeta(name=type(self).__name__ or "BaseAgent", description="", tools=[])
