"""Pytest configuration for height map tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture
def rng():
    """Seeded NumPy generator for randomized property tests."""
    return np.random.default_rng(1234)


@pytest.fixture
def flat_heightmap():
    """A single flat cell covering [0, 1] x [0, 1] at y = 0."""
    from src.python.heightmap.heightmap import HeightMap

    return HeightMap.from_array(np.zeros((2, 2)), width=1.0, height=1.0, depth=1.0)
