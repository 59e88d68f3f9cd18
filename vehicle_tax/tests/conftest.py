"""
Test configuration for the vehicle tax engine.

Engine tests run on in-memory RateBook fixtures with a fixed clock.
Store tests (test_store.py) build their own in-memory SQLite database.
"""
import pytest

from vehicle_tax.engine.schemas import RateBook
from vehicle_tax.tests.sample_data import make_book


@pytest.fixture
def book() -> RateBook:
    return make_book()
