import os

import pytest

from stagejury.config.contest_params import reset_contest_params


@pytest.fixture(autouse=True)
def _isolated_contest_params(monkeypatch):
    """Each test sees default params, untouched by the developer's env."""
    for key in list(os.environ):
        if key.startswith("STAGEJURY_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STAGEJURY_TEST_MODE", "true")
    reset_contest_params()
    yield
    reset_contest_params()
