"""Global test configuration for contextchunker tests."""

import pytest

from contextchunker.core import config


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Give every test fresh default settings, unaffected by the environment."""
    for name in list(config.Settings.model_fields):
        monkeypatch.delenv(f"CONTEXTCHUNKER_{name}", raising=False)
    settings = config.Settings()
    monkeypatch.setattr(config, "SETTINGS", settings)
    yield settings


@pytest.fixture
def sample_markdown():
    """A small setup guide with headers, steps and a code block."""
    return (
        "# Setup Guide\n\n"
        "Step 1: Install the tool.\n\n"
        "```python\n" + "print('hello')\n" * 200 + "```\n\n"
        "Step 2: Run it. Then you are done."
    )
