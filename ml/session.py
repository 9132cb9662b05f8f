"""
Epoch-driven perceptron training with a step-by-step history.

A TrainingSession owns the current weights and the append-only list of
TrainingStepRecords. It advances exactly one point per `advance()` call so
that a caller can pace the steps (see ui.playback) or drive it to the end
with `run()`.
"""
import logging
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from ml import normalizer
from ml.config import ConvergenceCheck, InvalidConfigurationError, TrainingConfig, VisitOrder
from ml.perceptron import count_errors, step
from ml.points import POSITIVE, Point, PointSet, TrainingStepRecord, WeightVector

log = logging.getLogger(__name__)


class SessionStatus(Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    CONVERGED = 'converged'
    STOPPED_EARLY = 'stopped_early'
    EXHAUSTED_EPOCHS = 'exhausted_epochs'

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.CONVERGED, SessionStatus.EXHAUSTED_EPOCHS)


StatusListener = Callable[[SessionStatus], None]


class TrainingSession:

    def __init__(self, points: PointSet, config: Optional[TrainingConfig] = None,
                 weights: Optional[WeightVector] = None):
        if config is None:
            config = TrainingConfig()
        config.validate()
        if len(points) == 0:
            raise InvalidConfigurationError("Point set is empty")

        self.points = points
        self.config = config
        # fixed for the lifetime of the session
        if config.normalize:
            self._stats = normalizer.fit(points, floor=config.variance_floor)
        else:
            self._stats = normalizer.Stats.identity()
        self._norm_xy = normalizer.normalize_array(points.xy, self._stats)
        self._norm_xy.flags.writeable = False

        self._listeners: List[StatusListener] = []
        self._generation = 0
        self._init_state(weights, config.seed)

    def _init_state(self, weights: Optional[WeightVector], seed: Optional[int]):
        self._rng = np.random.default_rng(seed)
        if weights is None:
            weights = WeightVector.random(self._rng)
        self._weights = weights
        self._status = SessionStatus.IDLE
        self._history: List[TrainingStepRecord] = []
        self._epoch_errors: List[int] = []
        self._current_epoch = 0
        self._current_point_index = 0
        self._order = np.arange(len(self.points))
        self._position = 0
        self._epoch_updates = 0
        self._update_count = 0

    # -------------------- state ---------------------
    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def current_epoch(self) -> int:
        return self._current_epoch

    @property
    def current_point_index(self) -> int:
        return self._current_point_index

    @property
    def history(self) -> tuple:
        return tuple(self._history)

    @property
    def weights(self) -> WeightVector:
        return self._weights

    @property
    def raw_weights(self) -> WeightVector:
        return normalizer.denormalize(self._weights, self._stats)

    @property
    def stats(self) -> normalizer.Stats:
        return self._stats

    @property
    def normalized_xy(self) -> np.ndarray:
        return self._norm_xy

    @property
    def update_count(self) -> int:
        return self._update_count

    @property
    def epoch_errors(self) -> List[int]:
        return list(self._epoch_errors)

    @property
    def generation(self) -> int:
        return self._generation

    def add_status_listener(self, listener: StatusListener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_status_listener(self, listener: StatusListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_status(self, status: SessionStatus):
        if status is self._status:
            return
        log.debug("session status %s -> %s", self._status.value, status.value)
        self._status = status
        for listener in list(self._listeners):
            listener(status)

    # -------------------- transitions ---------------------
    def start(self) -> bool:
        if self._status is not SessionStatus.IDLE:
            log.debug("start() ignored in state %s", self._status.value)
            return False
        self._current_epoch = 1
        self._begin_epoch()
        self._set_status(SessionStatus.RUNNING)
        return True

    def stop(self) -> bool:
        if self._status is not SessionStatus.RUNNING:
            return False
        log.info("training stopped at epoch %d after %d steps", self._current_epoch, len(self._history))
        self._set_status(SessionStatus.STOPPED_EARLY)
        return True

    def reset(self, weights: Optional[WeightVector] = None, seed: Optional[int] = None):
        """
        Discard the history and return to IDLE with fresh weights.

        Bumps `generation` so that drivers holding on to the old run can
        tell their pending steps are stale.
        """
        if self._status is SessionStatus.RUNNING:
            self.stop()
        previous = self._status
        self._generation += 1
        self._init_state(weights, self.config.seed if seed is None else seed)
        self._status = previous
        self._set_status(SessionStatus.IDLE)

    def run(self) -> SessionStatus:
        if self._status is SessionStatus.IDLE:
            self.start()
        while self._status is SessionStatus.RUNNING:
            self.advance()
        return self._status

    # -------------------- stepping ---------------------
    def _visit_order(self) -> np.ndarray:
        n = len(self.points)
        order = self.config.visit_order
        if order is VisitOrder.FIXED:
            return np.arange(n)
        if order is VisitOrder.BLOCKED:
            # positives first, dataset order kept inside each block
            return np.argsort(self.points.labels != POSITIVE, kind='stable')
        return self._rng.permutation(n)

    def _begin_epoch(self):
        self._order = self._visit_order()
        self._position = 0
        self._epoch_updates = 0

    def advance(self) -> Optional[TrainingStepRecord]:
        """
        Visit exactly one point. Returns the new record, or None if the
        session is not running.
        """
        if self._status is not SessionStatus.RUNNING:
            return None

        index = int(self._order[self._position])
        x, y = self._norm_xy[index]
        point = Point(float(x), float(y), int(self.points.labels[index]))
        result = step(self._weights, point, self.config.learning_rate)
        self._weights = result.weights
        if result.changed:
            self._epoch_updates += 1
            self._update_count += 1

        self._position += 1
        self._current_point_index += 1
        epoch_done = self._position >= len(self._order)
        errors = None
        if epoch_done:
            errors = count_errors(self._weights, self._norm_xy, self.points.labels)
            self._epoch_errors.append(errors)

        record = TrainingStepRecord(epoch=self._current_epoch,
                                    point_index=index,
                                    weights=self._weights,
                                    updated=result.changed,
                                    raw_weights=self.raw_weights,
                                    epoch_error_count=errors)
        self._history.append(record)
        log.debug("epoch %d point %d updated=%s", self._current_epoch, index, result.changed)

        if epoch_done:
            self._finish_epoch(errors)
        return record

    def _finish_epoch(self, errors: int):
        log.debug("epoch %d done: errors=%d updates=%d", self._current_epoch, errors, self._epoch_updates)
        if self.config.convergence_check is ConvergenceCheck.CURRENT_EPOCH_ONLY:
            converged = self._epoch_updates == 0
        else:
            converged = errors == 0
        if converged:
            log.info("converged after %d epochs (%d updates)", self._current_epoch, self._update_count)
            self._set_status(SessionStatus.CONVERGED)
        elif self._current_epoch >= self.config.max_epochs:
            log.info("did not converge within %d epochs, %d points still misclassified",
                     self.config.max_epochs, errors)
            self._set_status(SessionStatus.EXHAUSTED_EPOCHS)
        else:
            self._current_epoch += 1
            self._begin_epoch()
