import math

import numpy as np
from typing import Optional, Tuple

from ml.points import NEGATIVE, POSITIVE, Point, PointSet, WeightVector, to_pm1

_GATES = {
    'AND': (0, 0, 0, 1),
    'OR': (0, 1, 1, 1),
    'XOR': (0, 1, 1, 0),
}
_CORNERS = ((0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0))


def logic_gate(name: str) -> PointSet:
    """
    AND / OR / XOR truth table on the unit square, 0 mapped to -1.
    """
    try:
        outputs = _GATES[name.upper()]
    except KeyError:
        raise ValueError(f"Unknown gate {name!r}, expected one of {sorted(_GATES)}")
    return PointSet(_CORNERS, [to_pm1(v) for v in outputs])


def _sample_side(rng, a, b, c, x_range, y_range, sign, min_margin, fallback, nudge):
    for _ in range(100):
        px = rng.uniform(*x_range)
        py = rng.uniform(*y_range)
        if sign * (a * px + b * py + c) >= min_margin:
            return px, py
    # could not find one by rejection, push a point from a safer box across
    px = rng.uniform(*fallback[0])
    py = rng.uniform(*fallback[1])
    for _ in range(200):
        if sign * (a * px + b * py + c) >= min_margin:
            break
        py += nudge
    return px, py


def separable(n_per_class: int = 25, min_margin: float = 2.0,
              seed: Optional[int] = None) -> Tuple[PointSet, WeightVector]:
    """
    Linearly separable "cats vs dogs" data (hours of sleep vs running speed).

    A true line 1.2x + y - 30 = 0, slightly perturbed per seed, splits the
    two classes; every point lies at least `min_margin` activation units
    away from it. Returns the points and the true line.
    """
    rng = np.random.default_rng(seed)
    variation = (rng.random() - 0.5) * 0.2
    a, b, c = 1.2 + variation, 1.0, -30.0 + variation * 10
    points = []
    for _ in range(n_per_class):
        cx, cy = _sample_side(rng, a, b, c, (12, 18), (8, 18), POSITIVE, min_margin,
                              fallback=((15, 18), (8, 14)), nudge=0.5)
        points.append(Point(cx, cy, POSITIVE))
        dx, dy = _sample_side(rng, a, b, c, (8, 16), (15, 27), NEGATIVE, min_margin,
                              fallback=((10, 14), (18, 26)), nudge=-0.5)
        points.append(Point(dx, dy, NEGATIVE))
    return PointSet.from_points(points), WeightVector(a, b, c)


def two_clusters(n_per_class: int = 15, seed: Optional[int] = None) -> PointSet:
    """
    Light, high-pitched animals (positive) vs heavy, low-pitched ones
    (negative): weight in kg on x, bark frequency in Hz on y. Positives are
    listed first, which is the worst case for an unshuffled perceptron.
    """
    rng = np.random.default_rng(seed)
    pos = np.column_stack([rng.uniform(2, 8, n_per_class), rng.uniform(800, 1400, n_per_class)])
    neg = np.column_stack([rng.uniform(18, 35, n_per_class), rng.uniform(100, 500, n_per_class)])
    labels = [POSITIVE] * n_per_class + [NEGATIVE] * n_per_class
    return PointSet(np.vstack([pos, neg]), labels)


def parse_custom_points(txt: str) -> PointSet:
    """
    Parse lines of x,y,label (label is 1 / -1, or 1 / 0).
    """
    pts = []
    for ln in txt.splitlines():
        ln = ln.strip()
        if not ln:
            continue
        parts = [p.strip() for p in ln.split(',')]
        if len(parts) != 3:
            raise ValueError("Each custom line must be x,y,label")
        try:
            x = float(parts[0]); y = float(parts[1]); label = to_pm1(parts[2])
        except ValueError:
            raise ValueError(f"Could not parse custom line {ln!r}")
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Coordinates must be finite in custom line {ln!r}")
        pts.append(Point(x, y, label))
    return PointSet.from_points(pts)
