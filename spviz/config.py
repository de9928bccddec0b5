"""
Viewer configuration.

All tunable numbers of the viewer live here: lattice geometry, slider ranges,
camera distance and the prediction endpoint. The defaults give a 5x5x5 lattice
of 2-unit cells viewed from 15 units away. Overrides can be loaded from a JSON file:

    {"lattice_size": 3, "speed_default": 0.25}
"""
import json
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Optional, Tuple, Union

from spviz.constants import PREDICT_URL

logger = logging.getLogger(__name__)


@dataclass
class ViewerConfig:
    # Lattice
    unit_cell_size: float = 2.0
    lattice_size: int = 5
    atom_radius: float = 0.3
    proton_radius: float = 0.2

    # Speed slider (per-frame displacement)
    speed_min: float = 0.01
    speed_max: float = 1.0
    speed_default: float = 0.1
    speed_step: float = 0.01

    # Zoom slider (multiplies the camera base distance)
    zoom_min: float = 0.5
    zoom_max: float = 3.0
    zoom_default: float = 1.0
    zoom_step: float = 0.05
    camera_distance: float = 15.0

    # Launch inputs
    default_velocity: Tuple[float, float, float] = (0.0, 0.0, 0.1)
    normalize_default: bool = True

    # Prediction service; None keeps the transport's default timeout
    predict_url: str = PREDICT_URL
    predict_timeout: Optional[float] = None

    # Animation
    frame_interval_ms: int = 16
    time_scaled: bool = False
    reference_fps: float = 60.0
    max_steps: int = 10000

    def validate(self):
        """Raise ValueError when a parameter is out of range."""
        if self.unit_cell_size <= 0:
            raise ValueError("unit_cell_size must be > 0.")
        if int(self.lattice_size) != self.lattice_size or self.lattice_size < 0:
            raise ValueError("lattice_size must be a non-negative integer.")
        if self.atom_radius <= 0 or self.proton_radius <= 0:
            raise ValueError("Radii must be > 0.")
        if not (0 < self.speed_min <= self.speed_default <= self.speed_max):
            raise ValueError("Speed range must satisfy 0 < min <= default <= max.")
        if not (0 < self.zoom_min <= self.zoom_default <= self.zoom_max):
            raise ValueError("Zoom range must satisfy 0 < min <= default <= max.")
        if self.speed_step <= 0 or self.zoom_step <= 0:
            raise ValueError("Slider steps must be > 0.")
        if self.camera_distance <= 0:
            raise ValueError("camera_distance must be > 0.")
        if len(self.default_velocity) != 3:
            raise ValueError("default_velocity must have three components.")
        if self.predict_timeout is not None and self.predict_timeout <= 0:
            raise ValueError("predict_timeout must be > 0 or None.")
        if self.frame_interval_ms <= 0 or self.reference_fps <= 0:
            raise ValueError("Frame timing values must be > 0.")
        if self.max_steps <= 0:
            raise ValueError("max_steps must be a positive integer.")
        return self

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        unknown = [k for k in data if k not in known]
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
        if "default_velocity" in kwargs:
            kwargs["default_velocity"] = tuple(float(v) for v in kwargs["default_velocity"])
        return cls(**kwargs).validate()

    def to_dict(self):
        data = asdict(self)
        data["default_velocity"] = list(self.default_velocity)
        return data

    def velocity_fields(self):
        """Text for the velocity inputs; parses back to exactly default_velocity."""
        return tuple(repr(float(v)) for v in self.default_velocity)


def load_config(path: Optional[Union[str, Path]] = None) -> ViewerConfig:
    """Load a ViewerConfig from a JSON file, or the defaults when path is None."""
    if path is None:
        return ViewerConfig().validate()

    path = Path(path)
    logger.info(f"Loading viewer config from: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object.")
    return ViewerConfig.from_dict(data)
