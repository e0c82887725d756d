import os

import pytest

from typed_dialogflow.core.config import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache(monkeypatch):
    # Settings come from the environment; keep a developer's DIALOGFLOW_* vars
    # and any cached Settings instance out of the tests.
    for name in list(os.environ):
        if name.startswith("DIALOGFLOW_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
