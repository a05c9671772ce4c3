from __future__ import annotations

from typing import Any

import pytest

from tests.fakes import ServiceHarness


@pytest.fixture
def harness_factory(tmp_path):
    def _make(**overrides: Any) -> ServiceHarness:
        return ServiceHarness(tmp_path, **overrides)

    return _make
