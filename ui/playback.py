"""
Timer-driven playback of a TrainingSession on the Qt event loop.

The scheduler owns a single QTimer. Every tick advances the session by one
point and hands the resulting record to an observer, then re-arms the timer.
Cancelling stops the timer and invalidates the tick token, so a tick that
was already queued can never reach the observer.
"""
import logging
from typing import Callable, Optional

# Try to import PyQt5, fallback to PySide6
try:
    from PyQt5.QtCore import QTimer
except Exception:
    from PySide6.QtCore import QTimer

from ml.config import TrainingConfig
from ml.points import PointSet, TrainingStepRecord, WeightVector
from ml.session import SessionStatus, StatusListener, TrainingSession

log = logging.getLogger(__name__)

StepObserver = Callable[[TrainingStepRecord], None]


class PlaybackScheduler:

    def __init__(self):
        self._timer = QTimer()
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._tick)
        self._token = 0
        self._active = False
        self._session: Optional[TrainingSession] = None
        self._generation = None
        self._on_step: Optional[StepObserver] = None
        self._on_status: Optional[StatusListener] = None
        self._interval_ms = 0
        self._updated_interval_ms = 0

    @property
    def is_running(self) -> bool:
        return self._active

    @property
    def session(self) -> Optional[TrainingSession]:
        return self._session

    def start(self, session: TrainingSession, on_step: StepObserver,
              interval_ms: Optional[int] = None, updated_interval_ms: Optional[int] = None,
              initial_delay_ms: Optional[int] = None,
              on_status_change: Optional[StatusListener] = None) -> bool:
        """
        Drive `session` one step per tick. Delays default to the session's
        config; `updated_interval_ms` is used after a step that changed the
        weights. Returns False if a playback is already running or the
        session cannot run.
        """
        if self._active:
            log.warning("playback already running, start() ignored")
            return False
        # attached before start() so the observer sees RUNNING
        if on_status_change is not None:
            session.add_status_listener(on_status_change)
        if session.status is SessionStatus.IDLE:
            session.start()
        if session.status is not SessionStatus.RUNNING:
            log.warning("cannot play a session in state %s", session.status.value)
            if on_status_change is not None:
                session.remove_status_listener(on_status_change)
            return False

        cfg = session.config
        self._interval_ms = cfg.step_interval_ms if interval_ms is None else interval_ms
        if updated_interval_ms is None:
            updated_interval_ms = cfg.updated_step_interval_ms if interval_ms is None else interval_ms
        self._updated_interval_ms = updated_interval_ms
        delay = cfg.initial_delay_ms if initial_delay_ms is None else initial_delay_ms

        self._session = session
        self._generation = session.generation
        self._on_step = on_step
        self._on_status = on_status_change
        self._active = True
        self._token += 1
        self._timer.start(int(delay))
        log.debug("playback started (interval=%s ms, after update=%s ms)",
                  self._interval_ms, self._updated_interval_ms)
        return True

    def cancel(self):
        """Stop playback. Safe to call any number of times."""
        self._timer.stop()
        self._token += 1
        if self._active:
            log.debug("playback cancelled")
        self._release()

    def _release(self):
        if self._session is not None and self._on_status is not None:
            self._session.remove_status_listener(self._on_status)
        self._active = False
        self._session = None
        self._on_step = None
        self._on_status = None

    def _is_stale(self, token: int) -> bool:
        session = self._session
        return (not self._active or token != self._token or session is None
                or session.generation != self._generation
                or session.status is not SessionStatus.RUNNING)

    def _tick(self):
        token = self._token
        if self._is_stale(token):
            if self._active:
                self._release()
            return

        session = self._session
        on_step = self._on_step
        record = session.advance()
        if record is None:
            self._release()
            return
        try:
            on_step(record)
        except Exception:
            if token == self._token and self._active:
                self._release()
            raise

        # the observer may have cancelled, stopped or reset meanwhile
        if self._is_stale(token):
            if token == self._token and self._active:
                self._release()
            return
        delay = self._updated_interval_ms if record.updated else self._interval_ms
        self._timer.start(int(delay))


class Trainer:
    """
    One live TrainingSession with one PlaybackScheduler.

    Loading new points always cancels the running playback before the new
    session replaces the old one. The session changes state before the
    scheduler lets go of it, so a playback status observer still hears
    STOPPED_EARLY and IDLE.
    """

    def __init__(self):
        self.scheduler = PlaybackScheduler()
        self._session: Optional[TrainingSession] = None

    @property
    def session(self) -> Optional[TrainingSession]:
        return self._session

    @property
    def is_playing(self) -> bool:
        return self.scheduler.is_running

    def load(self, points: PointSet, config: Optional[TrainingConfig] = None,
             weights: Optional[WeightVector] = None) -> TrainingSession:
        if self._session is not None:
            self._session.stop()
        self.scheduler.cancel()
        self._session = TrainingSession(points, config, weights)
        log.info("loaded %r", points)
        return self._session

    def play(self, on_step: StepObserver, on_status_change: Optional[StatusListener] = None,
             **delays) -> bool:
        if self._session is None:
            raise RuntimeError("No session loaded")
        return self.scheduler.start(self._session, on_step, on_status_change=on_status_change, **delays)

    def step_once(self) -> Optional[TrainingStepRecord]:
        """Advance a single step by hand. Ignored while playback runs."""
        if self._session is None or self.scheduler.is_running:
            return None
        if self._session.status is SessionStatus.IDLE:
            self._session.start()
        return self._session.advance()

    def stop(self):
        if self._session is not None:
            self._session.stop()
        self.scheduler.cancel()

    def reset(self, weights: Optional[WeightVector] = None, seed: Optional[int] = None):
        if self._session is not None:
            self._session.reset(weights=weights, seed=seed)
        self.scheduler.cancel()
