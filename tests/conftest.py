"""Shared fixtures: an in-memory cluster and Connect REST API."""

import pytest

from fakes import FakeConnectApi, FakeDeployment, InMemoryResourceStore


@pytest.fixture
def store():
    return InMemoryResourceStore()


@pytest.fixture
def api():
    return FakeConnectApi()


@pytest.fixture
def deployment():
    return FakeDeployment()
