from __future__ import annotations

import asyncio
from typing import Any, List

import pytest

from weaver_ai.agent_core.errors import RunCancelledError
from weaver_ai.agent_core.runtime.cancellation import CancellationSource


def test_new_token_is_not_cancelled() -> None:
    source = CancellationSource()
    assert source.token.cancelled is False
    assert source.token.reason is None
    source.token.raise_if_cancelled()


def test_cancel_is_idempotent_and_keeps_first_reason() -> None:
    source = CancellationSource()
    reasons: List[Any] = []
    source.token.add_callback(reasons.append)

    source.cancel("first")
    source.cancel("second")

    assert source.token.cancelled is True
    assert source.token.reason == "first"
    assert reasons == ["first"]


def test_cancel_without_reason_uses_default() -> None:
    source = CancellationSource()
    source.cancel()
    assert source.token.reason == "cancelled"


def test_raise_if_cancelled_raises_run_cancelled_error() -> None:
    source = CancellationSource()
    source.cancel("stop")

    with pytest.raises(RunCancelledError) as exc_info:
        source.token.raise_if_cancelled()
    assert exc_info.value.reason == "stop"


def test_callback_added_after_cancel_runs_immediately() -> None:
    source = CancellationSource()
    source.cancel("late")
    reasons: List[Any] = []
    source.token.add_callback(reasons.append)
    assert reasons == ["late"]


def test_removed_callback_is_not_called() -> None:
    source = CancellationSource()
    reasons: List[Any] = []
    remove = source.token.add_callback(reasons.append)
    remove()
    source.cancel()
    assert reasons == []


def test_parent_cancellation_propagates_to_child() -> None:
    parent = CancellationSource()
    child = CancellationSource(parents=[parent.token])

    parent.cancel("parent stop")

    assert child.token.cancelled is True
    assert child.token.reason == "parent stop"


def test_child_cancellation_does_not_reach_parent() -> None:
    parent = CancellationSource()
    child = CancellationSource(parents=[parent.token])

    child.cancel()

    assert parent.token.cancelled is False


def test_disposed_child_is_unlinked_from_parent() -> None:
    parent = CancellationSource()
    child = CancellationSource(parents=[parent.token])

    child.dispose()
    parent.cancel()

    assert child.token.cancelled is False


def test_none_parents_are_ignored() -> None:
    source = CancellationSource(parents=[None])
    assert source.token.cancelled is False


@pytest.mark.asyncio
async def test_wait_returns_reason_once_signalled() -> None:
    source = CancellationSource()
    loop = asyncio.get_running_loop()
    loop.call_soon(source.cancel, "done waiting")

    assert await asyncio.wait_for(source.token.wait(), timeout=1) == "done waiting"


@pytest.mark.asyncio
async def test_timeout_cancels_with_timeout_reason() -> None:
    source = CancellationSource.with_timeout(0.01)

    reason = await asyncio.wait_for(source.token.wait(), timeout=1)

    assert source.token.cancelled is True
    assert isinstance(reason, TimeoutError)


@pytest.mark.asyncio
async def test_dispose_cancels_pending_timer() -> None:
    source = CancellationSource(timeout=0.01)
    source.dispose()
    await asyncio.sleep(0.03)
    assert source.token.cancelled is False
