"""Shared fixtures: settings that point at mocked upstreams only."""

import pytest

from readmegen.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        github_token=None,
        http_max_retries=2,
        http_backoff_base=0,
    )
