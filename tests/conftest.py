"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the environment before anything imports settings, so no developer
.env file or real credential leaks into the test run.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Tenant registry used by the HTTP tests
os.environ.setdefault(
    "APP_TENANT_API_KEYS",
    "demo-key-1:tenant-1,demo-key-2:tenant-2,test-key:test-tenant,off-key:tenant-x:disabled",
)

# No outbound calls: providers unavailable, OSM disabled, other sources keyless
os.environ.setdefault("LLM_OPENAI_API_KEY", "")
os.environ.setdefault("LLM_GEMINI_API_KEY", "")
os.environ.setdefault("SOURCES_OSM_ENABLED", "false")

import pytest

from spontaneity.core import auth, rate_limit, services


@pytest.fixture(autouse=True)
def reset_process_state():
    """Give every test a fresh limiter, resolver and orchestrator."""
    rate_limit._limiter = None
    auth._resolver = None
    services.reset_services()
    yield
    rate_limit._limiter = None
    auth._resolver = None
    services.reset_services()
