"""Fixtures for setup app tests."""

import pytest

from src.setup_app.webhook.models import RepositoryRef
from tests.setup_app.helpers import FakeForgeClient


@pytest.fixture
def fake_forge() -> FakeForgeClient:
    return FakeForgeClient()


@pytest.fixture
def repo() -> RepositoryRef:
    return RepositoryRef(owner="acme", name="widgets", installation_id=4242)
