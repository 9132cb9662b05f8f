import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest

from ml.datasets import logic_gate
from ml.points import NEGATIVE, POSITIVE, Point, PointSet


@pytest.fixture
def diagonal_points():
    return PointSet.from_points([
        Point(1, 1, POSITIVE),
        Point(2, 2, POSITIVE),
        Point(-1, -1, NEGATIVE),
        Point(-2, -2, NEGATIVE),
    ])


@pytest.fixture
def xor_points():
    return logic_gate('XOR')


@pytest.fixture
def clusters():
    """Two well separated blobs around (3, 3) and (-3, -3)."""
    rng = np.random.default_rng(0)
    pos = rng.normal(3.0, 0.5, size=(20, 2))
    neg = rng.normal(-3.0, 0.5, size=(20, 2))
    return PointSet(np.vstack([pos, neg]), [POSITIVE] * 20 + [NEGATIVE] * 20)
