from __future__ import annotations

from typing import Dict

import pytest

from corrently_fdw import config

from ._stubs import make_payload


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer credentials and overrides out of the tests."""
    for name in (
        config.ENV_API_KEY,
        config.ENV_API_URL,
        config.ENV_TIMEOUT,
        config.ENV_USER_AGENT,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def server_options() -> Dict[str, str]:
    return {"api_key": "TEST-TOKEN", "api_url": "https://gsi.example.test"}


@pytest.fixture
def payload() -> dict:
    return make_payload(3)
