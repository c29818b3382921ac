"""
Common fixtures for API unit tests.

Provides shared test utilities:
- FastAPI TestClient
- Dependency override cleanup
- Sample identifiers
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from nad_uploader.api.main import app


@pytest.fixture
def client():
    """
    FastAPI TestClient for testing endpoints.

    Dependency overrides set by a test are removed afterwards.
    """
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_job_id():
    """Generate a sample job ID (UUID)."""
    return str(uuid4())


@pytest.fixture
def sample_file_id():
    """Generate a sample file ID (UUID)."""
    return str(uuid4())
