import numpy as np
from dataclasses import dataclass

from ml.points import Point, PointSet, WeightVector

VARIANCE_FLOOR = 1e-6


@dataclass(frozen=True)
class Stats:
    mean_x: float
    mean_y: float
    std_x: float
    std_y: float

    @classmethod
    def identity(cls) -> "Stats":
        return cls(0.0, 0.0, 1.0, 1.0)


def fit(points: PointSet, floor: float = VARIANCE_FLOOR) -> Stats:
    """
    Per-axis mean and standard deviation of the whole point set.

    A variance below `floor` (all points share one coordinate) is replaced
    by `floor`, so the std is never zero.
    """
    xy = points.xy
    mean = xy.mean(axis=0)
    var = np.maximum(xy.var(axis=0), floor)
    std = np.sqrt(var)
    return Stats(float(mean[0]), float(mean[1]), float(std[0]), float(std[1]))


def normalize(point: Point, stats: Stats) -> Point:
    return Point((point.x - stats.mean_x) / stats.std_x,
                 (point.y - stats.mean_y) / stats.std_y,
                 point.label)


def normalize_array(xy: np.ndarray, stats: Stats) -> np.ndarray:
    mean = np.array([stats.mean_x, stats.mean_y])
    std = np.array([stats.std_x, stats.std_y])
    return (np.asarray(xy, dtype=float) - mean) / std


def denormalize(weights: WeightVector, stats: Stats) -> WeightVector:
    """
    Express a boundary learned in standardized space in raw coordinates.
    """
    a = weights.a / stats.std_x
    b = weights.b / stats.std_y
    c = weights.c - weights.a * stats.mean_x / stats.std_x - weights.b * stats.mean_y / stats.std_y
    return WeightVector(a, b, c)


def normalize_weights(weights: WeightVector, stats: Stats) -> WeightVector:
    """Inverse of `denormalize`."""
    a = weights.a * stats.std_x
    b = weights.b * stats.std_y
    c = weights.c + weights.a * stats.mean_x + weights.b * stats.mean_y
    return WeightVector(a, b, c)
