"""
Tests for viewer configuration.
"""

import json
import logging

import numpy as np
import pytest

from spviz.config import ViewerConfig, load_config
from spviz.constants import PREDICT_URL
from spviz.integrator import launch, parse_vector


class TestViewerConfig:
    def test_defaults(self):
        cfg = load_config()
        assert cfg.unit_cell_size == 2.0
        assert cfg.lattice_size == 5
        assert cfg.atom_radius == 0.3
        assert cfg.camera_distance == 15.0
        assert cfg.default_velocity == (0.0, 0.0, 0.1)
        assert cfg.predict_url == PREDICT_URL
        assert cfg.predict_timeout is None
        assert not cfg.time_scaled

    @pytest.mark.parametrize(
        "overrides",
        [
            {"unit_cell_size": 0.0},
            {"lattice_size": -1},
            {"lattice_size": 2.5},
            {"speed_default": 5.0},
            {"zoom_min": 0.0},
            {"predict_timeout": -1.0},
            {"default_velocity": (0.0, 1.0)},
            {"max_steps": 0},
        ],
    )
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValueError):
            ViewerConfig(**overrides).validate()

    def test_from_dict_ignores_unknown_keys(self, caplog):
        with caplog.at_level(logging.WARNING, logger="spviz"):
            cfg = ViewerConfig.from_dict({"lattice_size": 3, "colour": "red"})
        assert cfg.lattice_size == 3
        assert "colour" in caplog.text

    def test_to_dict_is_json_serializable(self):
        data = ViewerConfig().to_dict()
        assert json.loads(json.dumps(data))["default_velocity"] == [0.0, 0.0, 0.1]

    def test_velocity_fields_keep_precision(self):
        """Small components survive the trip through the input fields"""
        cfg = ViewerConfig.from_dict({"default_velocity": [0.04, 0.0, 0.02]})
        fields = cfg.velocity_fields()
        assert fields == ("0.04", "0.0", "0.02")
        assert tuple(parse_vector(fields)) == cfg.default_velocity

    def test_velocity_fields_launch_unchanged(self, sim):
        """A raw launch uses the configured velocity, not a rounded one"""
        cfg = ViewerConfig(default_velocity=(0.0, 0.0, 0.05))
        launch(sim, cfg.velocity_fields(), 1.0, normalize=False)
        np.testing.assert_allclose(sim.proton.vel, [0.0, 0.0, 0.05])


class TestLoadConfig:
    def test_load_from_file(self, tmp_path):
        path = tmp_path / "viewer.json"
        path.write_text(json.dumps({"lattice_size": 2, "default_velocity": [1, 0, 0], "time_scaled": True}))
        cfg = load_config(path)
        assert cfg.lattice_size == 2
        assert cfg.default_velocity == (1.0, 0.0, 0.0)
        assert cfg.time_scaled

    def test_non_object_file(self, tmp_path):
        path = tmp_path / "viewer.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_config(path)

    def test_invalid_values_in_file(self, tmp_path):
        path = tmp_path / "viewer.json"
        path.write_text(json.dumps({"unit_cell_size": -2}))
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_config(tmp_path / "missing.json")
