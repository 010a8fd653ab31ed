"""Shared fixtures for unit tests."""

import pytest

from tests.unit.fakes import build_rate


@pytest.fixture
def make_rate():
    """Factory: make_rate(exchange, symbol, annualized, interval=8, ...)"""
    return build_rate
