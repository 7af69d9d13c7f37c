"""
Pytest configuration and shared fixtures for the hamilton tests.
"""

import numpy as np
import pytest

from hamilton.core.config import reset_settings


@pytest.fixture(autouse=True)
def default_settings():
    """Run every test with default settings and restore them afterwards."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def rng():
    """Provide a seeded random number generator for reproducibility."""
    return np.random.default_rng(42)
