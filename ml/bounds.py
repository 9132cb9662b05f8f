import math

import numpy as np

from ml.points import WeightVector


def _augment(xy: np.ndarray) -> np.ndarray:
    xy = np.asarray(xy, dtype=float)
    return np.column_stack([xy, np.ones(len(xy))])


def feature_radius(xy: np.ndarray) -> float:
    """R = max ||(x, y, 1)||, the bias input folded in."""
    if len(xy) == 0:
        return 0.0
    return float(np.linalg.norm(_augment(xy), axis=1).max())


def margin(weights: WeightVector, xy: np.ndarray, labels: np.ndarray) -> float:
    """
    Smallest signed distance y_i * (w . x_i) / ||w|| over the data.
    Negative when `weights` misclassifies a point.
    """
    w = weights.as_array()
    norm = np.linalg.norm(w)
    if norm == 0 or len(xy) == 0:
        return 0.0
    return float((np.asarray(labels) * (_augment(xy) @ w)).min() / norm)


def mistake_bound(radius: float, gamma: float) -> float:
    """Novikoff: at most (R / gamma)^2 updates starting from zero weights."""
    if gamma <= 0:
        return math.inf
    return (radius / gamma) ** 2
