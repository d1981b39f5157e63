"""Fixtures shared by the service layer tests"""

from typing import Generator

import pytest

from tests.mock_repository import MockRepository


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()
