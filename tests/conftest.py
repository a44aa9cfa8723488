from __future__ import annotations

from typing import Any, List

import pytest

from fakes import FakeClock, FakeSession, StubTranslator
from translator.base import BaseTranslator


@pytest.fixture
def install_session():
    def _install(translator: BaseTranslator, responses: List[Any]) -> FakeSession:
        session = FakeSession(responses)
        translator._session = session  # type: ignore[assignment]
        return session

    return _install


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub() -> StubTranslator:
    return StubTranslator()
