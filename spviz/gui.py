import argparse
import logging
import queue
import time
import tkinter as tk
from logging.handlers import QueueHandler
from tkinter import ttk
from tkinter import font as tkfont

import numpy as np
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg, NavigationToolbar2Tk
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  (registers the 3d projection)

from spviz.config import load_config
from spviz.constants import (
    ATOM_COLOR,
    AXES_LENGTH,
    AXIS_COLORS,
    BACKGROUND_COLOR,
    ORIGIN_COLOR,
    OUTLINE_COLOR,
    PROTON_COLOR,
    TRAIL_COLOR,
)
from spviz.integrator import LaunchError, launch, reset, set_position, step
from spviz.lattice import BOX_EDGES
from spviz.logging_config import setup_logging
from spviz.prediction import PredictionClient, build_request, drain_results, format_result
from spviz.system import Simulation

logger = logging.getLogger(__name__)


def snap(value, step_size):
    """Round a slider value to its step."""
    return round(round(value / step_size) * step_size, 10)


class TrajectoryGUI(tk.Tk):
    def __init__(self, settings):
        super().__init__()
        self.title("FCC Lattice - Proton Trajectory")

        self.settings = settings
        self.sim = Simulation.from_config(settings)
        self.client = PredictionClient(settings.predict_url, timeout=settings.predict_timeout)

        # Worker threads only ever touch these queues
        self.log_queue = queue.Queue()
        self.result_queue = queue.Queue()
        self._log_handler = QueueHandler(self.log_queue)
        self._log_handler.setLevel(logging.INFO)
        self._log_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(message)s", datefmt="%H:%M:%S")
        )
        logging.getLogger("spviz").addHandler(self._log_handler)

        self._syncing_inputs = False
        self._last_frame = None

        self._build_widgets()
        self._draw_scene()
        self._reset_inputs()
        self._apply_zoom()

        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.after(100, self._poll_queues)
        self.after(settings.frame_interval_ms, self._animate)

    # --------------------------------------------------------
    # UI layout
    # --------------------------------------------------------
    def _build_widgets(self):
        s = self.settings
        main_frame = ttk.Frame(self, padding=10)
        main_frame.pack(fill="both", expand=True)

        # Left column: launch parameters
        params_frame = ttk.LabelFrame(main_frame, text="Proton launch", padding=10)
        for i in range(4):
            params_frame.columnconfigure(i, pad=6)
        params_frame.pack(side="left", fill="y")

        row = 0

        # Position / velocity entries
        self.pos_vars = []
        self.vel_vars = []
        for label, target in [("Position:", self.pos_vars), ("Velocity:", self.vel_vars)]:
            ttk.Label(params_frame, text=label).grid(row=row, column=0, sticky="w")
            for col in range(3):
                var = tk.StringVar()
                ttk.Entry(params_frame, textvariable=var, width=7).grid(row=row, column=col + 1, sticky="w")
                target.append(var)
            row += 1

        for var in self.pos_vars:
            var.trace_add("write", self._on_position_input)

        # Normalize checkbox
        self.normalize_var = tk.BooleanVar(value=s.normalize_default)
        ttk.Checkbutton(
            params_frame, text="Normalize direction", variable=self.normalize_var
        ).grid(row=row, column=0, columnspan=4, sticky="w")
        row += 1

        # Speed slider
        ttk.Label(params_frame, text="Speed:").grid(row=row, column=0, sticky="w")
        self.speed_var = tk.DoubleVar(value=s.speed_default)
        ttk.Scale(
            params_frame, from_=s.speed_min, to=s.speed_max,
            variable=self.speed_var, command=self._on_speed_changed,
        ).grid(row=row, column=1, columnspan=2, sticky="ew")
        self.speed_label = ttk.Label(params_frame, text=f"{s.speed_default:.2f}", width=6)
        self.speed_label.grid(row=row, column=3, sticky="w")
        row += 1

        # Zoom slider
        ttk.Label(params_frame, text="Zoom:").grid(row=row, column=0, sticky="w")
        self.zoom_var = tk.DoubleVar(value=s.zoom_default)
        ttk.Scale(
            params_frame, from_=s.zoom_min, to=s.zoom_max,
            variable=self.zoom_var, command=self._on_zoom_changed,
        ).grid(row=row, column=1, columnspan=2, sticky="ew")
        self.zoom_label = ttk.Label(params_frame, text=f"{s.zoom_default:.2f}×", width=6)
        self.zoom_label.grid(row=row, column=3, sticky="w")
        row += 1

        # Buttons
        ttk.Button(params_frame, text="Launch", command=self.on_launch_clicked).grid(
            row=row, column=0, columnspan=2, pady=(10, 0), sticky="ew"
        )
        ttk.Button(params_frame, text="Reset", command=self.on_reset_clicked).grid(
            row=row, column=2, columnspan=2, pady=(10, 0), sticky="ew"
        )
        row += 1

        # Result display
        self.status_var = tk.StringVar()
        ttk.Label(params_frame, textvariable=self.status_var, foreground="#b36b00", wraplength=280).grid(
            row=row, column=0, columnspan=4, pady=(10, 0), sticky="w"
        )
        row += 1
        self.result_var = tk.StringVar()
        ttk.Label(params_frame, textvariable=self.result_var, wraplength=280, justify="left").grid(
            row=row, column=0, columnspan=4, pady=(10, 0), sticky="w"
        )

        # Right column: 3D view above the log
        right = ttk.Frame(main_frame)
        right.pack(side="right", fill="both", expand=True)

        self.fig = Figure(figsize=(7, 6), facecolor=BACKGROUND_COLOR)
        self.ax = self.fig.add_subplot(111, projection="3d")
        self.canvas = FigureCanvasTkAgg(self.fig, master=right)
        self.toolbar = NavigationToolbar2Tk(self.canvas, right)
        self.canvas.get_tk_widget().pack(side="top", fill="both", expand=True)

        log_frame = ttk.LabelFrame(right, text="Log", padding=5)
        log_frame.pack(side="bottom", fill="x")
        log_frame.columnconfigure(0, weight=1)

        mono = tkfont.Font(family="Consolas", size=9)
        self.log_text = tk.Text(log_frame, height=8, wrap="none", state="disabled", font=mono)
        self.log_text.grid(row=0, column=0, sticky="nsew")
        yscroll = ttk.Scrollbar(log_frame, orient="vertical", command=self.log_text.yview)
        self.log_text.configure(yscrollcommand=yscroll.set)
        yscroll.grid(row=0, column=1, sticky="ns")

    # --------------------------------------------------------
    # Scene
    # --------------------------------------------------------
    def _draw_scene(self):
        ax = self.ax
        lattice = self.sim.lattice
        bbox = lattice.bbox

        ax.set_facecolor(BACKGROUND_COLOR)
        ax.set_axis_off()

        if lattice.n_atoms:
            x, y, z = lattice.positions.T
            ax.scatter(x, y, z, s=25, c=ATOM_COLOR, depthshade=True)

        corners = bbox.outline_corners(self.settings.atom_radius)
        for i, j in BOX_EDGES:
            ax.plot(*corners[[i, j]].T, color=OUTLINE_COLOR, lw=0.8)

        ox, oy, oz = bbox.lo
        ax.scatter([ox], [oy], [oz], s=40, c=ORIGIN_COLOR)
        for axis, color in enumerate(AXIS_COLORS):
            tip = bbox.lo.copy()
            tip[axis] += AXES_LENGTH
            ax.plot(*np.vstack([bbox.lo, tip]).T, color=color, lw=1.5)

        (self.trail_artist,) = ax.plot([], [], [], color=TRAIL_COLOR, lw=1.5)
        (self.proton_artist,) = ax.plot([], [], [], "o", color=PROTON_COLOR, ms=7)

        # Camera on the (1, 1, 1) diagonal
        ax.view_init(elev=35.26, azim=45)
        ax.set_box_aspect((1, 1, 1))
        self._update_proton_artists()

    def _update_proton_artists(self):
        x, y, z = self.sim.proton.pos
        self.proton_artist.set_data_3d([x], [y], [z])
        trail = self.sim.trail.as_array()
        self.trail_artist.set_data_3d(trail[:, 0], trail[:, 1], trail[:, 2])
        self.canvas.draw_idle()

    def _apply_zoom(self):
        center = self.sim.lattice.center
        half = 0.5 * self.settings.camera_distance * self.zoom_var.get()
        self.ax.set_xlim(center[0] - half, center[0] + half)
        self.ax.set_ylim(center[1] - half, center[1] + half)
        self.ax.set_zlim(center[2] - half, center[2] + half)
        self.canvas.draw_idle()

    # --------------------------------------------------------
    # Logging helpers
    # --------------------------------------------------------
    def _append_log(self, msg):
        self.log_text.configure(state="normal")
        self.log_text.insert("end", msg + "\n")
        self.log_text.see("end")
        self.log_text.configure(state="disabled")

    def _poll_queues(self):
        try:
            while True:
                record = self.log_queue.get_nowait()
                self._append_log(record.getMessage())
        except queue.Empty:
            pass

        result = drain_results(self.client, self.result_queue)
        if result is not None:
            self.result_var.set(format_result(result))

        self.after(100, self._poll_queues)

    # --------------------------------------------------------
    # Input callbacks
    # --------------------------------------------------------
    def _reset_inputs(self):
        s = self.settings
        self._syncing_inputs = True
        try:
            for var, value in zip(self.pos_vars, self.sim.home_position):
                var.set(f"{value:.1f}")
            for var, text in zip(self.vel_vars, s.velocity_fields()):
                var.set(text)
        finally:
            self._syncing_inputs = False

    def _on_position_input(self, *args):
        if self._syncing_inputs:
            return
        if set_position(self.sim, [v.get() for v in self.pos_vars]):
            self._update_proton_artists()

    def _on_speed_changed(self, value):
        speed = snap(float(value), self.settings.speed_step)
        self.speed_label.configure(text=f"{speed:.2f}")

    def _on_zoom_changed(self, value):
        zoom = snap(float(value), self.settings.zoom_step)
        self.zoom_label.configure(text=f"{zoom:.2f}×")
        self._apply_zoom()

    # --------------------------------------------------------
    # Button callbacks
    # --------------------------------------------------------
    def on_launch_clicked(self):
        velocity = [v.get() for v in self.vel_vars]
        speed = snap(self.speed_var.get(), self.settings.speed_step)
        normalize = self.normalize_var.get()

        try:
            launch(
                self.sim, velocity, speed,
                normalize=normalize,
                position=[v.get() for v in self.pos_vars],
            )
        except LaunchError as e:
            logger.warning(str(e))
            self.status_var.set(str(e))
            return

        self.status_var.set("")
        self._last_frame = None
        self._update_proton_artists()

        request = build_request(self.sim.proton.pos, velocity, speed, normalize=normalize)
        self.result_var.set("Predicting stopping power...")
        self.client.submit(request, lambda seq, result: self.result_queue.put((seq, result)))

    def on_reset_clicked(self):
        reset(self.sim)
        self.client.invalidate()
        self._reset_inputs()
        self.status_var.set("")
        self.result_var.set("")
        self._update_proton_artists()
        logger.info("Reset.")

    # --------------------------------------------------------
    # Animation loop
    # --------------------------------------------------------
    def _animate(self):
        now = time.perf_counter()
        dt = 1.0
        if self.settings.time_scaled and self._last_frame is not None:
            dt = (now - self._last_frame) * self.settings.reference_fps
        self._last_frame = now

        if self.sim.active:
            step(self.sim, dt)
            self._update_proton_artists()

        self.after(self.settings.frame_interval_ms, self._animate)

    def _on_close(self):
        logging.getLogger("spviz").removeHandler(self._log_handler)
        self.destroy()


def main(argv=None):
    parser = argparse.ArgumentParser(description="FCC lattice proton-trajectory viewer")
    parser.add_argument("--config", help="JSON file with viewer settings")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", help="also write the log to this file")
    args = parser.parse_args(argv)

    setup_logging(getattr(logging, args.log_level), args.log_file)
    try:
        settings = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load config: {e}")
        return 1

    app = TrajectoryGUI(settings)
    app.mainloop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
