import numpy as np
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

POSITIVE = 1
NEGATIVE = -1


def to_pm1(label) -> int:
    """
    Map a class label to +1/-1. Logic-gate style 0/1 labels are accepted,
    0 becomes -1. Anything else, fractions and inf/nan included, is a
    ValueError.
    """
    try:
        value = float(label)
    except (TypeError, ValueError):
        raise ValueError(f"Label must be one of -1, 0, 1. Got {label!r}")
    if value in (1.0, -1.0):
        return int(value)
    if value == 0.0:
        return NEGATIVE
    raise ValueError(f"Label must be one of -1, 0, 1. Got {label!r}")


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    label: int


@dataclass(frozen=True)
class WeightVector:
    """
    Coefficients of the line a*x + b*y + c = 0.
    """
    a: float = 0.0
    b: float = 0.0
    c: float = 0.0

    def activation(self, x: float, y: float) -> float:
        return self.a * x + self.b * y + self.c

    def as_array(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c], dtype=float)

    @classmethod
    def from_array(cls, arr) -> "WeightVector":
        a, b, c = (float(v) for v in arr)
        return cls(a, b, c)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "WeightVector":
        return cls.from_array(rng.uniform(-1.0, 1.0, size=3))


WeightVector.ZERO = WeightVector(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class TrainingStepRecord:
    epoch: int
    point_index: int
    weights: WeightVector
    updated: bool
    raw_weights: WeightVector
    epoch_error_count: Optional[int] = None


class PointSet:
    """
    Immutable labelled 2D training data.

    `xy` is an (n, 2) float array, `labels` an (n,) int array of +1/-1.
    Both arrays are read-only views.
    """

    def __init__(self, xy, labels):
        xy = np.array(xy, dtype=float)
        # checked as floats so 0.5 or 1.7 are rejected, not truncated
        raw_labels = np.array(labels, dtype=float).ravel()
        if xy.size == 0:
            xy = xy.reshape(0, 2)
        if xy.ndim != 2 or xy.shape[1] != 2:
            raise ValueError(f"xy must be shape (n, 2). Got {xy.shape}")
        if not np.all(np.isfinite(xy)):
            raise ValueError("xy must be finite")
        if raw_labels.shape[0] != xy.shape[0]:
            raise ValueError(f"labels must be shape (n,). Got {raw_labels.shape} vs xy {xy.shape}")
        if not np.all(np.isin(raw_labels, (POSITIVE, NEGATIVE))):
            uniq = sorted(set(np.unique(raw_labels).tolist()))
            raise ValueError(f"labels must contain only -1 and 1. Got {uniq}")
        labels = raw_labels.astype(int)
        xy.flags.writeable = False
        labels.flags.writeable = False
        self._xy = xy
        self._labels = labels

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "PointSet":
        pts = list(points)
        xy = [(p.x, p.y) for p in pts]
        labels = [to_pm1(p.label) for p in pts]
        return cls(xy, labels)

    @property
    def xy(self) -> np.ndarray:
        return self._xy

    @property
    def labels(self) -> np.ndarray:
        return self._labels

    def __len__(self) -> int:
        return self._xy.shape[0]

    def __getitem__(self, index: int) -> Point:
        x, y = self._xy[index]
        return Point(float(x), float(y), int(self._labels[index]))

    def __iter__(self) -> Iterator[Point]:
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        pos = int((self._labels == POSITIVE).sum())
        return f"PointSet(n={len(self)}, positive={pos}, negative={len(self) - pos})"
