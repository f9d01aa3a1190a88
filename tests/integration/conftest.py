"""Shared fixtures for integration tests."""

import os

import pytest


@pytest.fixture
def content_url() -> str:
    """Content server used by integration tests."""
    return os.environ.get("CATALYST_CONTENT_URL", "https://peer.decentraland.org/content")
