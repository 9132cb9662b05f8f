from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ml.normalizer import VARIANCE_FLOOR


class InvalidConfigurationError(ValueError):
    pass


class ConvergenceCheck(Enum):
    WHOLE_DATASET = 'wholeDataset'
    CURRENT_EPOCH_ONLY = 'currentEpochOnly'


class VisitOrder(Enum):
    SHUFFLED = 'shuffled'
    FIXED = 'fixed'
    BLOCKED = 'blocked'  # all positives, then all negatives


@dataclass
class TrainingConfig:
    learning_rate: float = 0.1
    max_epochs: int = 50
    step_interval_ms: int = 150
    updated_step_interval_ms: int = 400
    initial_delay_ms: int = 500
    convergence_check: ConvergenceCheck = ConvergenceCheck.WHOLE_DATASET
    visit_order: VisitOrder = VisitOrder.SHUFFLED
    normalize: bool = True
    variance_floor: float = VARIANCE_FLOOR
    seed: Optional[int] = None

    def __post_init__(self):
        try:
            self.convergence_check = ConvergenceCheck(self.convergence_check)
            self.visit_order = VisitOrder(self.visit_order)
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e

    def validate(self) -> "TrainingConfig":
        if not self.learning_rate > 0:
            raise InvalidConfigurationError(f"learning_rate must be > 0. Got {self.learning_rate}")
        if isinstance(self.max_epochs, bool) or int(self.max_epochs) != self.max_epochs or self.max_epochs <= 0:
            raise InvalidConfigurationError(f"max_epochs must be a positive integer. Got {self.max_epochs}")
        for name in ('step_interval_ms', 'updated_step_interval_ms', 'initial_delay_ms'):
            value = getattr(self, name)
            if value < 0:
                raise InvalidConfigurationError(f"{name} must be >= 0. Got {value}")
        if not self.variance_floor > 0:
            raise InvalidConfigurationError(f"variance_floor must be > 0. Got {self.variance_floor}")
        return self
