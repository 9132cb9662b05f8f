import math

import numpy as np
import pytest

from ml import normalizer
from ml.points import Point, PointSet, WeightVector


def test_fit_population_stats(diagonal_points):
    stats = normalizer.fit(diagonal_points)
    assert stats.mean_x == pytest.approx(0.0)
    assert stats.mean_y == pytest.approx(0.0)
    assert stats.std_x == pytest.approx(math.sqrt(2.5))
    assert stats.std_y == pytest.approx(math.sqrt(2.5))


def test_zero_variance_axis_uses_floor():
    ps = PointSet([[1.0, 0.0], [1.0, 5.0], [1.0, -3.0]], [1, -1, 1])
    stats = normalizer.fit(ps)
    assert stats.std_x == pytest.approx(1e-3)
    xy = normalizer.normalize_array(ps.xy, stats)
    assert np.all(np.isfinite(xy))
    assert np.allclose(xy[:, 0], 0.0)


def test_normalize_keeps_label():
    stats = normalizer.Stats(1.0, 2.0, 2.0, 4.0)
    p = normalizer.normalize(Point(3.0, 6.0, -1), stats)
    assert p == Point(1.0, 1.0, -1)


def test_identity_stats_are_a_no_op():
    w = WeightVector(0.3, -0.2, 0.1)
    assert normalizer.denormalize(w, normalizer.Stats.identity()) == w


def test_denormalized_weights_give_same_activations():
    rng = np.random.default_rng(42)
    for _ in range(50):
        stats = normalizer.Stats(float(rng.normal(0, 10)), float(rng.normal(0, 10)),
                                 float(rng.uniform(0.1, 20)), float(rng.uniform(0.1, 20)))
        w = WeightVector.from_array(rng.normal(size=3))
        raw = rng.normal(0, 15, size=(30, 2))
        norm = normalizer.normalize_array(raw, stats)

        raw_w = normalizer.denormalize(w, stats)
        act_norm = norm @ np.array([w.a, w.b]) + w.c
        act_raw = raw @ np.array([raw_w.a, raw_w.b]) + raw_w.c
        assert np.allclose(act_norm, act_raw, rtol=0, atol=1e-9)


def test_normalize_weights_inverts_denormalize():
    stats = normalizer.Stats(4.0, -2.0, 3.0, 0.5)
    w = WeightVector(0.7, -1.3, 0.25)
    back = normalizer.normalize_weights(normalizer.denormalize(w, stats), stats)
    assert back.a == pytest.approx(w.a)
    assert back.b == pytest.approx(w.b)
    assert back.c == pytest.approx(w.c)
