import numpy as np
from typing import NamedTuple

from ml.points import NEGATIVE, POSITIVE, Point, WeightVector


class StepResult(NamedTuple):
    weights: WeightVector
    changed: bool


def predict(weights: WeightVector, x: float, y: float) -> int:
    # net == 0 counts as the positive class
    return POSITIVE if weights.activation(x, y) >= 0 else NEGATIVE


def step(weights: WeightVector, point: Point, learning_rate: float) -> StepResult:
    """
    One mistake-driven perceptron update on a single (normalized) point.

    Returns the same weights with changed=False when the point is already
    classified correctly, otherwise a new WeightVector moved towards it.
    """
    if predict(weights, point.x, point.y) == point.label:
        return StepResult(weights, False)
    delta = learning_rate * point.label
    new_weights = WeightVector(weights.a + delta * point.x,
                               weights.b + delta * point.y,
                               weights.c + delta)
    return StepResult(new_weights, True)


def predict_array(weights: WeightVector, xy: np.ndarray) -> np.ndarray:
    net = np.asarray(xy, dtype=float) @ np.array([weights.a, weights.b]) + weights.c
    return np.where(net >= 0, POSITIVE, NEGATIVE)


def count_errors(weights: WeightVector, xy: np.ndarray, labels: np.ndarray) -> int:
    if len(labels) == 0:
        return 0
    return int((predict_array(weights, xy) != np.asarray(labels)).sum())


def accuracy(weights: WeightVector, xy: np.ndarray, labels: np.ndarray) -> float:
    if len(labels) == 0:
        return 1.0
    return 1.0 - count_errors(weights, xy, labels) / len(labels)
