from __future__ import annotations

from typing import Iterator

import pytest

from weaver_ai.agent_core.emitter import Emitter
from weaver_ai.core.config import reset_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test with default settings and no instrumentation."""
    monkeypatch.delenv("WEAVER_AI_INSTRUMENTATION_ENABLED", raising=False)
    monkeypatch.delenv("LOGFIRE_TOKEN", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _fresh_root_emitter() -> Iterator[Emitter]:
    """Give every test its own root event bus."""
    original = Emitter.root
    Emitter.root = Emitter()
    yield Emitter.root
    Emitter.root.destroy()
    Emitter.root = original
