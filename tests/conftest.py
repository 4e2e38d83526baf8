"""Shared fixtures for drawing recognizer tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def l_shape():
    """Three-point L drawn in the xy plane."""
    return np.array([[0, 0, 0], [1, 0, 0], [1, 1, 0]], dtype=np.float64)


@pytest.fixture
def helix_points():
    """Helical stroke with more points than the model takes."""
    n = 300
    t = np.linspace(0, 4 * np.pi, n)
    x = np.cos(t)
    y = t / (4 * np.pi)
    z = np.sin(t)
    return np.column_stack([x, y, z])


@pytest.fixture
def circle_points():
    """Closed circle in the xz plane."""
    n = 60
    t = np.linspace(0, 2 * np.pi, n, endpoint=False)
    return np.column_stack([np.cos(t), np.zeros(n), np.sin(t)])
