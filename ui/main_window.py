import numpy as np

from matplotlib.figure import Figure
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas

# Try to import PyQt5, fallback to PySide6
try:
    from PyQt5.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel,
                                 QLineEdit, QPushButton, QComboBox, QTableWidget, QTableWidgetItem,
                                 QMessageBox, QSpinBox, QTextEdit, QGroupBox, QCheckBox)
    qt_binding = 'PyQt5'
except Exception:
    from PySide6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel,
                                   QLineEdit, QPushButton, QComboBox, QTableWidget, QTableWidgetItem,
                                   QMessageBox, QSpinBox, QTextEdit, QGroupBox, QCheckBox)
    qt_binding = 'PySide6'

from ml import normalizer
from ml.bounds import feature_radius, margin, mistake_bound
from ml.config import ConvergenceCheck, TrainingConfig, VisitOrder
from ml.datasets import logic_gate, parse_custom_points, separable, two_clusters
from ml.perceptron import accuracy
from ml.points import NEGATIVE, POSITIVE, WeightVector
from ml.session import SessionStatus
from ui.playback import Trainer
from ui.themes import DARK_PALETTE, DARK_THEME, LIGHT_PALETTE, LIGHT_THEME

DATASETS = ['Separable', 'Order matters', 'AND', 'OR', 'XOR', 'Custom']
ORDERS = [('Shuffled', VisitOrder.SHUFFLED), ('Fixed', VisitOrder.FIXED),
          ('Blocked (positives first)', VisitOrder.BLOCKED)]
CHECKS = [('Whole dataset', ConvergenceCheck.WHOLE_DATASET),
          ('Current epoch only', ConvergenceCheck.CURRENT_EPOCH_ONLY)]

STATUS_TEXT = {
    SessionStatus.IDLE: 'Ready',
    SessionStatus.RUNNING: 'Training...',
    SessionStatus.CONVERGED: 'Converged',
    SessionStatus.STOPPED_EARLY: 'Stopped',
    SessionStatus.EXHAUSTED_EPOCHS: 'Did not converge',
}


class PerceptronTrainerMainWindow(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle('Perceptron Training Simulator')
        self.resize(1200, 780)

        self.dark_mode = True  # default
        self.trainer = Trainer()
        self.points = None
        self.true_line = None
        self.data_generation = 0

        main_layout = QHBoxLayout(self)
        control_layout = QVBoxLayout()
        plot_layout = QVBoxLayout()

        # Dataset group
        dataset_group = QGroupBox('Dataset')
        ds_layout = QVBoxLayout()
        self.dataset_combo = QComboBox()
        self.dataset_combo.addItems(DATASETS)
        self.dataset_combo.currentTextChanged.connect(self.on_dataset_change)
        ds_layout.addWidget(self.dataset_combo)
        ds_layout.addWidget(QLabel('Custom points (one per line): x,y,label  (label 1 / -1)'))
        self.custom_text = QTextEdit()
        self.custom_text.setPlaceholderText('1,1,1\n2,2,1\n-1,-1,-1\n-2,-2,-1')
        ds_layout.addWidget(self.custom_text)
        self.new_data_btn = QPushButton('New data')
        self.new_data_btn.clicked.connect(self.on_new_data)
        ds_layout.addWidget(self.new_data_btn)
        dataset_group.setLayout(ds_layout)
        control_layout.addWidget(dataset_group)

        # Parameters
        params_group = QGroupBox('Parameters')
        params_layout = QVBoxLayout()

        h1 = QHBoxLayout()
        h1.addWidget(QLabel('eta:'))
        self.eta_input = QLineEdit('0.1')
        h1.addWidget(self.eta_input)
        h1.addWidget(QLabel('Max epochs:'))
        self.epochs_input = QSpinBox()
        self.epochs_input.setRange(1, 10000)
        self.epochs_input.setValue(50)
        h1.addWidget(self.epochs_input)
        h1.addWidget(QLabel('Seed:'))
        self.seed_input = QLineEdit('')
        self.seed_input.setPlaceholderText('random')
        h1.addWidget(self.seed_input)
        params_layout.addLayout(h1)

        h2 = QHBoxLayout()
        h2.addWidget(QLabel('Step ms:'))
        self.interval_input = QSpinBox()
        self.interval_input.setRange(0, 5000)
        self.interval_input.setValue(150)
        h2.addWidget(self.interval_input)
        h2.addWidget(QLabel('After update ms:'))
        self.updated_interval_input = QSpinBox()
        self.updated_interval_input.setRange(0, 5000)
        self.updated_interval_input.setValue(400)
        h2.addWidget(self.updated_interval_input)
        params_layout.addLayout(h2)

        h3 = QHBoxLayout()
        self.order_combo = QComboBox()
        self.order_combo.addItems([name for name, _ in ORDERS])
        h3.addWidget(self.order_combo)
        self.check_combo = QComboBox()
        self.check_combo.addItems([name for name, _ in CHECKS])
        h3.addWidget(self.check_combo)
        params_layout.addLayout(h3)

        h4 = QHBoxLayout()
        self.normalize_cb = QCheckBox('Normalize features')
        self.normalize_cb.setChecked(True)
        h4.addWidget(self.normalize_cb)
        self.random_init_cb = QCheckBox('Random init in [-1,1]')
        self.random_init_cb.setChecked(True)
        h4.addWidget(self.random_init_cb)
        params_layout.addLayout(h4)

        params_group.setLayout(params_layout)
        control_layout.addWidget(params_group)

        # Buttons / controls
        btn_layout = QHBoxLayout()
        self.train_btn = QPushButton('Train (animate)')
        self.train_btn.clicked.connect(self.on_train)
        btn_layout.addWidget(self.train_btn)
        self.step_btn = QPushButton('Step')
        self.step_btn.clicked.connect(self.on_step)
        btn_layout.addWidget(self.step_btn)
        self.stop_btn = QPushButton('Stop')
        self.stop_btn.clicked.connect(self.on_stop)
        btn_layout.addWidget(self.stop_btn)
        self.reset_btn = QPushButton('Reset')
        self.reset_btn.clicked.connect(self.on_restart)
        btn_layout.addWidget(self.reset_btn)
        self.theme_toggle = QPushButton('Toggle Theme')
        self.theme_toggle.clicked.connect(self.toggle_theme)
        btn_layout.addWidget(self.theme_toggle)
        control_layout.addLayout(btn_layout)

        # Table log
        self.table = QTableWidget(0, 9)
        self.table.setHorizontalHeaderLabels(['step', 'epoch', 'point', 'x', 'y', 'label',
                                              'updated', 'a, b, c', 'errors'])
        control_layout.addWidget(QLabel('Training log'))
        control_layout.addWidget(self.table, stretch=1)

        main_layout.addLayout(control_layout, 1)

        # Decision boundary in raw coordinates
        self.fig_dec = Figure(figsize=(6, 5))
        self.canvas_dec = FigureCanvas(self.fig_dec)
        plot_layout.addWidget(self.canvas_dec, stretch=3)

        # Misclassified points per epoch
        self.fig_err = Figure(figsize=(6, 2))
        self.canvas_err = FigureCanvas(self.fig_err)
        plot_layout.addWidget(self.canvas_err, stretch=1)

        self.status_label = QLabel('Ready — using %s' % qt_binding)
        plot_layout.addWidget(self.status_label)

        main_layout.addLayout(plot_layout, 2)

        self.apply_theme(self.dark_mode)
        self.on_dataset_change(self.dataset_combo.currentText())

    @property
    def palette_colors(self):
        return DARK_PALETTE if self.dark_mode else LIGHT_PALETTE

    # -------------------- theme ---------------------
    def apply_theme(self, dark: bool):
        self.setStyleSheet(DARK_THEME if dark else LIGHT_THEME)
        self.dark_mode = dark

    def toggle_theme(self):
        self.apply_theme(not self.dark_mode)
        session = self.trainer.session
        if session is not None:
            self.draw_current_model(session.raw_weights)
            self.draw_error_plot()

    # -------------------- dataset & config ----------------
    def on_dataset_change(self, text):
        self.custom_text.setEnabled(text == 'Custom')
        self.points = None

    def parse_seed(self):
        txt = self.seed_input.text().strip()
        if not txt:
            return None
        try:
            return int(txt)
        except ValueError:
            raise ValueError("Seed must be an integer")

    def parse_dataset(self):
        name = self.dataset_combo.currentText()
        seed = self.parse_seed()
        if seed is not None:
            seed += self.data_generation
        self.true_line = None
        if name == 'Separable':
            pts, self.true_line = separable(seed=seed)
        elif name == 'Order matters':
            pts = two_clusters(seed=seed)
        elif name in ('AND', 'OR', 'XOR'):
            pts = logic_gate(name)
        else:
            pts = parse_custom_points(self.custom_text.toPlainText().strip())
            if len(pts) == 0:
                raise ValueError("Dataset empty")
        self.points = pts
        return pts

    def build_config(self):
        try:
            eta = float(self.eta_input.text())
        except ValueError:
            raise ValueError("eta must be numeric")
        return TrainingConfig(learning_rate=eta,
                              max_epochs=int(self.epochs_input.value()),
                              step_interval_ms=int(self.interval_input.value()),
                              updated_step_interval_ms=int(self.updated_interval_input.value()),
                              initial_delay_ms=int(self.interval_input.value()),
                              convergence_check=CHECKS[self.check_combo.currentIndex()][1],
                              visit_order=ORDERS[self.order_combo.currentIndex()][1],
                              normalize=self.normalize_cb.isChecked(),
                              seed=self.parse_seed())

    # -------------------- UI actions ----------------
    def on_new_data(self):
        self.data_generation += 1
        self.points = None
        self.on_restart()

    def on_restart(self):
        # Build a fresh session; any running playback is cancelled first
        try:
            points = self.points if self.points is not None else self.parse_dataset()
            config = self.build_config()
            weights = None if self.random_init_cb.isChecked() else WeightVector.ZERO
            session = self.trainer.load(points, config, weights)
        except ValueError as e:
            QMessageBox.critical(self, "Param error", str(e))
            return False

        session.add_status_listener(self.on_status_change)
        self.table.setRowCount(0)
        self.draw_current_model(session.raw_weights)
        self.draw_error_plot()
        text = f'Loaded {len(points)} points — {STATUS_TEXT[session.status]}'
        bound = self.convergence_bound_text(session)
        if bound:
            text += f' — {bound}'
        self.status_label.setText(text)
        return True

    def convergence_bound_text(self, session):
        """Margin of the generating line and the Novikoff mistake bound, in training space."""
        if self.true_line is None:
            return ''
        separator = normalizer.normalize_weights(self.true_line, session.stats)
        gamma = margin(separator, session.normalized_xy, self.points.labels)
        radius = feature_radius(session.normalized_xy)
        return f'margin γ={gamma:.3f}, R={radius:.2f}, ' \
               f'bound (R/γ)² ≈ {mistake_bound(radius, gamma):.0f} updates'

    def _ensure_session(self):
        # finished or stopped sessions are replaced by a fresh one
        session = self.trainer.session
        if session is None or session.status not in (SessionStatus.IDLE, SessionStatus.RUNNING):
            return self.on_restart()
        return True

    def on_train(self):
        if self.trainer.is_playing or not self._ensure_session():
            return
        self.trainer.play(self.on_step_record)

    def on_step(self):
        if not self._ensure_session():
            return
        record = self.trainer.step_once()
        if record is not None:
            self.on_step_record(record)

    def on_stop(self):
        self.trainer.stop()

    def on_status_change(self, status):
        session = self.trainer.session
        text = STATUS_TEXT[status]
        if session is not None and status.is_terminal:
            w = session.raw_weights
            text += f" after {session.current_epoch} epochs — {session.update_count} updates, " \
                    f"line {w.a:.3f}x + {w.b:.3f}y + {w.c:.3f} = 0"
        self.status_label.setText(text)

    def on_step_record(self, rec):
        self.append_record_to_table(rec)
        self.draw_current_model(rec.raw_weights, highlight=rec.point_index if rec.updated else None)
        if rec.epoch_error_count is not None:
            self.draw_error_plot()
            session = self.trainer.session
            if session is not None and session.status is SessionStatus.RUNNING:
                acc = accuracy(rec.weights, session.normalized_xy, self.points.labels)
                self.status_label.setText(f"Epoch {rec.epoch} done — acc {acc*100:.1f}% "
                                          f"errors={rec.epoch_error_count}")

    def append_record_to_table(self, rec):
        i = self.table.rowCount()
        self.table.insertRow(i)
        p = self.points[rec.point_index]
        w = rec.raw_weights
        self.table.setItem(i, 0, QTableWidgetItem(str(i + 1)))
        self.table.setItem(i, 1, QTableWidgetItem(str(rec.epoch)))
        self.table.setItem(i, 2, QTableWidgetItem(str(rec.point_index)))
        self.table.setItem(i, 3, QTableWidgetItem(f"{p.x:.3f}"))
        self.table.setItem(i, 4, QTableWidgetItem(f"{p.y:.3f}"))
        self.table.setItem(i, 5, QTableWidgetItem(f"{p.label:+d}"))
        self.table.setItem(i, 6, QTableWidgetItem('yes' if rec.updated else ''))
        self.table.setItem(i, 7, QTableWidgetItem(f"{w.a:.3f}, {w.b:.3f}, {w.c:.3f}"))
        errs = rec.epoch_error_count
        self.table.setItem(i, 8, QTableWidgetItem('' if errs is None else str(errs)))
        self.table.scrollToBottom()

    # ------------- drawing helpers --------------
    def _limits(self):
        xy = self.points.xy
        lo = xy.min(axis=0)
        hi = xy.max(axis=0)
        pad = np.maximum((hi - lo) * 0.1, 0.5)
        return lo - pad, hi + pad

    def draw_current_model(self, w, highlight=None):
        colors = self.palette_colors
        self.fig_dec.clf()
        self.fig_dec.set_facecolor(colors['window'])
        ax = self.fig_dec.add_subplot(111)
        ax.set_facecolor(colors['axes'])
        if self.points is None:
            self.canvas_dec.draw()
            return

        xy = self.points.xy
        labels = self.points.labels
        pos = xy[labels == POSITIVE]
        neg = xy[labels == NEGATIVE]
        ax.scatter(pos[:, 0], pos[:, 1], marker='o', s=60, color=colors['positive'],
                   edgecolors='k', label='+1')
        ax.scatter(neg[:, 0], neg[:, 1], marker='s', s=60, color=colors['negative'],
                   edgecolors='k', label='-1')
        if highlight is not None:
            hx, hy = xy[highlight]
            ax.scatter([hx], [hy], s=220, facecolors='none', edgecolors=colors['highlight'], linewidths=2)

        (x_min, y_min), (x_max, y_max) = self._limits()
        ax.set_xlim(x_min, x_max)
        ax.set_ylim(y_min, y_max)

        if self.true_line is not None:
            self._plot_line(ax, self.true_line, x_min, x_max, color=colors['text'], alpha=0.4, linestyle=':')
        session = self.trainer.session
        line_color = colors['line']
        if session is not None and session.status is SessionStatus.CONVERGED:
            line_color = colors['converged']
        elif session is not None and session.status is SessionStatus.EXHAUSTED_EPOCHS:
            line_color = colors['failed']
        self._plot_line(ax, w, x_min, x_max, color=line_color, linestyle='-')
        ax.legend(loc='upper right')
        ax.set_title('Decision boundary')
        self.canvas_dec.draw()

    def _plot_line(self, ax, w, x_min, x_max, **style):
        if abs(w.b) > 1e-8:
            xs = np.linspace(x_min, x_max, 200)
            ys_line = (-w.a * xs - w.c) / w.b
            ax.plot(xs, ys_line, linewidth=2, **style)
        elif abs(w.a) > 1e-8:
            ax.axvline(-w.c / w.a, linewidth=2, **style)

    def draw_error_plot(self):
        colors = self.palette_colors
        self.fig_err.clf()
        self.fig_err.set_facecolor(colors['window'])
        ax = self.fig_err.add_subplot(111)
        ax.set_facecolor(colors['axes'])
        session = self.trainer.session
        errors = session.epoch_errors if session is not None else []
        if errors:
            epochs = range(1, len(errors) + 1)
            ax.bar(epochs, errors, alpha=0.6, color=colors['line'])
        ax.set_xlabel('Epoch')
        ax.set_ylabel('Errors')
        self.canvas_err.draw()
