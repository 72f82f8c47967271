"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from catalog_codegen.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)
