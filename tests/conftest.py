import pytest

from helpers import FakeClient
from todolens.repositories import InMemoryRepository


@pytest.fixture
def store():
    return InMemoryRepository()


@pytest.fixture
def client():
    return FakeClient()
