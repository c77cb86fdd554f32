from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def disable_file_logging_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STAKEHOUSE_LOG_TO_FILE", "off")


@pytest.fixture(autouse=True)
def skip_http_retry_sleeps(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _no_sleep(attempt: int, backoff_base: float, backoff_max: float) -> None:
        return None

    monkeypatch.setattr("stakehouse.core.http.client._sleep_for_retry", _no_sleep)
