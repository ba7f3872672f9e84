from __future__ import annotations

"""Run context: lifecycle of a single invocation.

``RunContext.enter`` returns a ``Run``, an awaitable that executes the work
once. While it executes:

1. The owner is checked for an active run; a second concurrent invocation on
   the same owner fails immediately with ``ReentrancyError``.
2. The owner transitions to ``RUNNING`` and a ``start`` event is emitted on
   the owner's emitter.
3. The middleware pipeline wraps the core invocation, which calls the work
   function with the context. Errors outside the ``FrameworkError`` taxonomy
   are wrapped once into the owner's ``error_class``.
4. ``success`` or ``error`` and then ``finish`` are emitted.
5. In a ``finally`` block the owner returns to ``IDLE``, the context's
   cancellation link is released and its child emitter destroyed.

Nested invocations (e.g. a tool awaited inside an agent's ``_run``) discover
their parent through a context variable and inherit its cancellation token
unless one is given explicitly.
"""

import asyncio
import logging
import uuid
from contextvars import ContextVar
from typing import Any, Awaitable, Callable, Dict, Generator, Generic, List, Optional, Tuple, TypeVar

from ..emitter import Emitter
from ..errors import AgentError, EmitterError, FrameworkError, ReentrancyError
from .cancellation import CancellationSource, CancellationToken
from .middleware import MiddlewarePipeline, Stage
from .models import RunState

logger = logging.getLogger(__name__)

T = TypeVar("T")

RunFn = Callable[["RunContext"], Awaitable[T]]
Observer = Callable[[Emitter], None]

_current_context: ContextVar[Optional["RunContext"]] = ContextVar("weaver_ai_run_context", default=None)


def get_current_context() -> Optional["RunContext"]:
    """Return the context of the invocation currently executing, if any."""
    return _current_context.get()


class RunContext:
    """Scoped, cancellable handle for one invocation attempt.

    Attributes
    ----------
    owner:
        The component whose method is running.
    token:
        Cancellation token observed by the work and by nested contexts.
    params:
        The caller's arguments as passed to ``run``.
    parent:
        Context of the enclosing invocation, ``None`` for a top-level run.
    pipeline:
        Middleware stages attached to this run.
    emitter:
        Child emitter scoped to this run; destroyed when the run settles.
    """

    def __init__(
        self,
        owner: Any,
        *,
        token: Optional[CancellationToken] = None,
        params: Tuple[Any, ...] = (),
        parent: Optional["RunContext"] = None,
        pipeline: Optional[MiddlewarePipeline] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.owner = owner
        self.params = tuple(params)
        self.parent = parent
        self.pipeline = pipeline if pipeline is not None else MiddlewarePipeline.default()
        self.run_id = uuid.uuid4().hex
        self.group_id = parent.group_id if parent is not None else self.run_id
        self.data: Dict[str, Any] = {**(parent.data if parent is not None else {}), **(data or {})}

        inherited = token if token is not None else (parent.token if parent is not None else None)
        self._source = CancellationSource(parents=[inherited])
        self.token: CancellationToken = self._source.token

        owner_emitter = _owner_emitter(owner)
        base = owner_emitter if owner_emitter is not None else Emitter.root
        self.emitter = base.child(
            namespace=["run"],
            creator=self,
            context={"run_id": self.run_id, "group_id": self.group_id},
        )
        self._closed = False

    @property
    def signal(self) -> CancellationToken:
        """Alias of ``token``."""
        return self.token

    @property
    def chain(self) -> List["RunContext"]:
        """Contexts from this one up to the top-level invocation."""
        out: List[RunContext] = []
        node: Optional[RunContext] = self
        while node is not None:
            out.append(node)
            node = node.parent
        return out

    @property
    def closed(self) -> bool:
        return self._closed

    def enter(
        self,
        owner: Any,
        fn: RunFn[T],
        *,
        token: Optional[CancellationToken] = None,
        params: Tuple[Any, ...] = (),
    ) -> "Run[T]":
        """Spawn a nested invocation whose parent is this context."""
        return Run(owner, fn, token=token, params=params, parent=self)

    def _acquire(self) -> None:
        if getattr(self.owner, "_run_state", RunState.IDLE) is RunState.RUNNING:
            self._release_resources()
            raise ReentrancyError(
                f"{type(self.owner).__name__} is already running!",
                context={"owner": type(self.owner).__name__},
            )
        self.owner._run_state = RunState.RUNNING

    def _release(self) -> None:
        self.owner._run_state = RunState.IDLE
        self._release_resources()

    def _release_resources(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._source.dispose()
        self.emitter.destroy()

    def __repr__(self) -> str:
        return f"RunContext(owner={type(self.owner).__name__}, run_id={self.run_id!r}, parent={self.parent is not None})"


def enter(
    owner: Any,
    fn: RunFn[T],
    *,
    token: Optional[CancellationToken] = None,
    params: Tuple[Any, ...] = (),
) -> "Run[T]":
    """Start an invocation of ``fn`` on behalf of ``owner``."""
    return Run(owner, fn, token=token, params=params)


class Run(Generic[T]):
    """Awaitable handle of one invocation.

    Configure it with ``middleware``, ``observe`` and ``context`` before
    awaiting. Execution starts on the first ``await`` and settles exactly once;
    later awaits return the same outcome.
    """

    def __init__(
        self,
        owner: Any,
        fn: RunFn[T],
        *,
        token: Optional[CancellationToken] = None,
        params: Tuple[Any, ...] = (),
        parent: Optional[RunContext] = None,
    ) -> None:
        self._owner = owner
        self._fn = fn
        self._token = token
        self._params = tuple(params)
        self._parent = parent
        self._pipeline = MiddlewarePipeline.default()
        self._observers: List[Observer] = []
        self._data: Dict[str, Any] = {}
        self._task: Optional[asyncio.Future[T]] = None
        self.run_context: Optional[RunContext] = None

    @property
    def started(self) -> bool:
        return self._task is not None

    def middleware(self, *stages: Stage) -> "Run[T]":
        """Append middleware stages to this run."""
        self._ensure_not_started("middleware")
        for stage in stages:
            self._pipeline.use(stage)
        return self

    def observe(self, observer: Observer) -> "Run[T]":
        """Call ``observer(run_emitter)`` before the pipeline starts."""
        self._ensure_not_started("observe")
        self._observers.append(observer)
        return self

    def context(self, **data: Any) -> "Run[T]":
        """Attach data visible as ``RunContext.data`` in this and nested runs."""
        self._ensure_not_started("context")
        self._data.update(data)
        return self

    def __await__(self) -> Generator[Any, None, T]:
        if self._task is None:
            self._task = asyncio.ensure_future(self._execute())
        return self._task.__await__()

    def _ensure_not_started(self, what: str) -> None:
        if self._task is not None:
            raise RuntimeError(f"Cannot add {what} to a run that has already started.")

    async def _execute(self) -> T:
        parent = self._parent
        if parent is None:
            parent = _current_context.get()
        context = RunContext(
            self._owner,
            token=self._token,
            params=self._params,
            parent=parent,
            pipeline=self._pipeline,
            data=self._data,
        )
        self.run_context = context
        context._acquire()

        owner = self._owner
        owner_emitter = _owner_emitter(owner)
        reset_token = _current_context.set(context)
        logger.debug(f"Run started: {type(owner).__name__} ({context.run_id})")
        try:
            _safe_emit(owner_emitter, "start", {"params": context.params, "run_id": context.run_id})
            for observer in self._observers:
                observer(context.emitter)
            try:
                result = await context.pipeline.run(context, self._invoke)
            except Exception as e:
                _safe_emit(owner_emitter, "error", {"error": e, "run_id": context.run_id})
                raise
            _safe_emit(owner_emitter, "success", {"output": result, "run_id": context.run_id})
            return result
        finally:
            _safe_emit(owner_emitter, "finish", {"run_id": context.run_id})
            _current_context.reset(reset_token)
            context._release()
            logger.debug(f"Run settled: {type(owner).__name__} ({context.run_id})")

    async def _invoke(self, context: RunContext) -> T:
        try:
            return await self._fn(context)
        except FrameworkError:
            raise
        except Exception as e:
            error_class = getattr(self._owner, "error_class", AgentError)
            raise error_class(
                f"Error has occurred in {type(self._owner).__name__}: {e}",
                [e],
                context={"run_id": context.run_id},
            ) from e


def _owner_emitter(owner: Any) -> Optional[Emitter]:
    emitter = getattr(owner, "emitter", None)
    return emitter if isinstance(emitter, Emitter) else None


def _safe_emit(emitter: Optional[Emitter], name: str, payload: Any) -> None:
    if emitter is None:
        return
    try:
        emitter.emit(name, payload)
    except EmitterError as e:
        # Lifecycle events carry no control-flow meaning.
        logger.warning(f"Ignoring lifecycle handler failure: {e}")
