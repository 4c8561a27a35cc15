"""Pytest configuration and fixtures.

Provides environment isolation and logging configuration. All fixtures here
are autouse.
"""

from __future__ import annotations

import logging
import os

import pytest

from matchkit.config import ENV_PREFIX

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_matchkit_env(request, monkeypatch):
    """Clear MATCHKIT_* env vars so settings resolve to schema defaults.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def verbose_library_logging():
    """Let pipeline DEBUG records reach caplog and failure reports."""
    logging.getLogger("matchkit").setLevel(logging.DEBUG)
