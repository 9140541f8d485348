"""Pytest configuration for skytrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate fields created by modules imported in earlier tests.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_scene_data():
    """Clear uploaded scene data before and after each test."""
    # Import here so fields are created after Taichi is initialized
    from skytrace.scene.world import clear_scene_storage

    clear_scene_storage()
    yield
    clear_scene_storage()
