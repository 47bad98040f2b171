"""
Unit test configuration.

Settings classes read a .env file by default; unit tests control config
exclusively through monkeypatch.setenv(), so dotenv loading is disabled here.
"""

import pytest


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Keep HCAPTCHA_* and LOG_* values in a local .env out of unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
