from __future__ import annotations

import os

import pytest

_ENV_PREFIX = "DEPLOYSYNC_"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    # a developer's .env must not leak into configuration tests
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIX):
            monkeypatch.delenv(name)
