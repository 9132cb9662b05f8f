import pytest

from ml.config import TrainingConfig
from ml.points import WeightVector
from ml.session import SessionStatus, TrainingSession
from ui.playback import PlaybackScheduler, Trainer


@pytest.fixture
def scheduler(qtbot):
    sched = PlaybackScheduler()
    yield sched
    sched.cancel()


def _fast_session(points, **kw):
    kw.setdefault('step_interval_ms', 1)
    kw.setdefault('updated_step_interval_ms', 1)
    kw.setdefault('initial_delay_ms', 0)
    weights = kw.pop('weights', None)
    return TrainingSession(points, TrainingConfig(**kw), weights)


def test_plays_session_to_convergence(qtbot, scheduler, diagonal_points):
    session = _fast_session(diagonal_points, learning_rate=0.5, visit_order='fixed',
                            weights=WeightVector.ZERO)
    records, statuses = [], []
    assert scheduler.start(session, records.append, on_status_change=statuses.append)
    assert session.status is SessionStatus.RUNNING

    qtbot.waitUntil(lambda: session.status.is_terminal, timeout=3000)
    assert session.status is SessionStatus.CONVERGED
    assert records == list(session.history)
    assert statuses == [SessionStatus.RUNNING, SessionStatus.CONVERGED]
    assert not scheduler.is_running


def test_cancel_inside_observer_stops_emission(qtbot, scheduler, xor_points):
    session = _fast_session(xor_points, seed=0, step_interval_ms=5, updated_step_interval_ms=5)
    records = []

    def on_step(rec):
        records.append(rec)
        if len(records) == 3:
            scheduler.cancel()
            session.stop()

    scheduler.start(session, on_step)
    qtbot.waitUntil(lambda: len(records) >= 3, timeout=3000)
    qtbot.wait(100)
    assert len(records) == 3
    assert len(session.history) == 3
    assert session.status is SessionStatus.STOPPED_EARLY
    assert not scheduler.is_running


def test_session_stop_blocks_pending_step(qtbot, scheduler, xor_points):
    session = _fast_session(xor_points, seed=0, step_interval_ms=20, updated_step_interval_ms=20)
    records = []
    scheduler.start(session, records.append)
    qtbot.waitUntil(lambda: len(records) >= 2, timeout=3000)

    session.stop()
    emitted = len(records)
    qtbot.wait(150)
    assert len(records) == emitted == len(session.history)
    assert not scheduler.is_running


def test_cancel_before_first_tick(qtbot, scheduler, xor_points):
    session = _fast_session(xor_points, seed=0, initial_delay_ms=30)
    records = []
    scheduler.start(session, records.append)
    scheduler.cancel()
    scheduler.cancel()
    qtbot.wait(100)
    assert records == []
    assert session.history == ()
    assert not scheduler.is_running


def test_cancel_is_idempotent_when_idle(scheduler):
    scheduler.cancel()
    scheduler.cancel()
    assert not scheduler.is_running


def test_second_start_is_ignored(qtbot, scheduler, diagonal_points):
    session = _fast_session(diagonal_points, learning_rate=0.5, visit_order='fixed',
                            weights=WeightVector.ZERO)
    first, second = [], []
    assert scheduler.start(session, first.append) is True
    assert scheduler.start(session, second.append) is False

    qtbot.waitUntil(lambda: session.status.is_terminal, timeout=3000)
    assert second == []
    assert first == list(session.history)


def test_cannot_play_finished_session(scheduler, xor_points):
    session = _fast_session(xor_points, seed=0, max_epochs=2)
    session.run()
    assert scheduler.start(session, lambda rec: None) is False
    assert not scheduler.is_running


def test_reset_invalidates_pending_step(qtbot, scheduler, xor_points):
    session = _fast_session(xor_points, seed=0, step_interval_ms=5, updated_step_interval_ms=5)
    records = []

    def on_step(rec):
        records.append(rec)
        if len(records) == 2:
            session.reset()

    scheduler.start(session, on_step)
    qtbot.waitUntil(lambda: len(records) >= 2, timeout=3000)
    qtbot.wait(100)
    assert len(records) == 2
    assert session.status is SessionStatus.IDLE
    assert session.history == ()
    assert not scheduler.is_running


def test_trainer_load_cancels_previous_playback(qtbot, xor_points, diagonal_points):
    trainer = Trainer()
    config = TrainingConfig(step_interval_ms=5, updated_step_interval_ms=5, initial_delay_ms=0, seed=0)
    old = trainer.load(xor_points, config)
    records = []
    assert trainer.play(records.append)
    qtbot.waitUntil(lambda: len(records) >= 2, timeout=3000)

    new = trainer.load(diagonal_points, config)
    emitted = len(records)
    qtbot.wait(100)
    assert len(records) == emitted == len(old.history)
    assert old.status is SessionStatus.STOPPED_EARLY
    assert new.status is SessionStatus.IDLE
    assert trainer.session is new
    assert not trainer.is_playing


def test_trainer_step_once_and_reset(qtbot, diagonal_points):
    trainer = Trainer()
    trainer.load(diagonal_points, TrainingConfig(learning_rate=0.5, visit_order='fixed'),
                 weights=WeightVector.ZERO)
    rec = trainer.step_once()
    assert rec.point_index == 0
    assert trainer.session.status is SessionStatus.RUNNING

    trainer.stop()
    assert trainer.session.status is SessionStatus.STOPPED_EARLY
    assert trainer.step_once() is None

    trainer.reset(weights=WeightVector.ZERO)
    assert trainer.session.status is SessionStatus.IDLE
    assert trainer.session.history == ()


def test_trainer_requires_session(qtbot):
    with pytest.raises(RuntimeError):
        Trainer().play(lambda rec: None)


def test_rejected_start_detaches_status_observer(scheduler, xor_points):
    session = _fast_session(xor_points, seed=0, max_epochs=2)
    session.run()
    statuses = []
    assert scheduler.start(session, lambda rec: None, on_status_change=statuses.append) is False
    session.reset()
    assert statuses == []


def test_trainer_stop_reports_status_to_observer(qtbot, xor_points):
    trainer = Trainer()
    trainer.load(xor_points, TrainingConfig(step_interval_ms=5, updated_step_interval_ms=5,
                                            initial_delay_ms=0, seed=0))
    records, statuses = [], []
    assert trainer.play(records.append, on_status_change=statuses.append)
    qtbot.waitUntil(lambda: len(records) >= 2, timeout=3000)

    trainer.stop()
    assert statuses == [SessionStatus.RUNNING, SessionStatus.STOPPED_EARLY]
    assert not trainer.is_playing

    # the observer is detached once playback has let go of the session
    trainer.reset()
    assert statuses == [SessionStatus.RUNNING, SessionStatus.STOPPED_EARLY]


def test_trainer_reset_reports_status_to_observer(qtbot, xor_points):
    trainer = Trainer()
    trainer.load(xor_points, TrainingConfig(step_interval_ms=5, updated_step_interval_ms=5,
                                            initial_delay_ms=0, seed=0))
    records, statuses = [], []
    trainer.play(records.append, on_status_change=statuses.append)
    qtbot.waitUntil(lambda: len(records) >= 2, timeout=3000)

    trainer.reset()
    emitted = len(records)
    qtbot.wait(50)
    assert statuses == [SessionStatus.RUNNING, SessionStatus.STOPPED_EARLY, SessionStatus.IDLE]
    assert len(records) == emitted
    assert trainer.session.history == ()


def test_failing_observer_releases_scheduler(qtbot, scheduler, xor_points):
    session = _fast_session(xor_points, seed=0)

    def on_step(rec):
        raise RuntimeError("render failed")

    with qtbot.capture_exceptions() as exceptions:
        assert scheduler.start(session, on_step)
        qtbot.waitUntil(lambda: len(exceptions) >= 1, timeout=3000)
        qtbot.wait(50)
    assert len(exceptions) == 1
    assert len(session.history) == 1
    assert not scheduler.is_running

    records = []
    assert scheduler.start(session, records.append)
    qtbot.waitUntil(lambda: len(records) >= 2, timeout=3000)
