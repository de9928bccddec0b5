"""
Tests for the trajectory simulator: launch, per-tick update, exit and reset.
"""

import numpy as np
import pytest

from spviz.integrator import (
    LaunchError,
    launch,
    parse_vector,
    reset,
    run_until_exit,
    set_position,
    step,
)
from spviz.lattice import make_fcc_lattice
from spviz.system import Simulation


class TestInputParsing:
    """Position / velocity parsing"""

    def test_parse_strings(self):
        np.testing.assert_array_equal(parse_vector(["1", "-2.5", "0"]), [1.0, -2.5, 0.0])

    @pytest.mark.parametrize("values", [["a", "1", "2"], ["", "1", "2"], ["nan", "0", "0"], ["inf", "0", "0"], ["0", "-Infinity", "0"], [1, 2]])
    def test_parse_rejects_non_numeric(self, values):
        assert parse_vector(values) is None

    def test_set_position_skips_non_numeric(self, sim):
        """Non-numeric input keeps the previous position"""
        assert set_position(sim, ["1", "2", "3"])
        assert not set_position(sim, ["1", "oops", "3"])
        np.testing.assert_array_equal(sim.proton.pos, [1.0, 2.0, 3.0])

    def test_set_position_skips_infinite(self, sim):
        assert not set_position(sim, ["inf", "0", "0"])
        np.testing.assert_array_equal(sim.proton.pos, sim.lattice.bbox.lo)


class TestLaunch:
    """Idle -> Active transition"""

    def test_starts_idle_at_corner(self, sim):
        assert not sim.active
        np.testing.assert_array_equal(sim.proton.pos, sim.lattice.bbox.lo)
        assert len(sim.trail) == 0

    def test_zero_vector_is_rejected(self, sim):
        """Zero launch leaves state, position and trail untouched"""
        launch(sim, [0, 0, 1], 1.0)
        run_until_exit(sim, 1000)
        assert not sim.active
        trail_before = sim.trail.as_array()
        pos_before = sim.proton.pos.copy()

        with pytest.raises(LaunchError):
            launch(sim, [0, 0, 0], 0.1, position=[0, 0, 0])

        assert not sim.active
        np.testing.assert_array_equal(sim.trail.as_array(), trail_before)
        np.testing.assert_array_equal(sim.proton.pos, pos_before)

    def test_zero_vector_rejected_without_normalize(self, sim):
        with pytest.raises(LaunchError):
            launch(sim, [0, 0, 0], 0.1, normalize=False)
        assert not sim.active

    def test_non_numeric_velocity_is_rejected(self, sim):
        with pytest.raises(LaunchError):
            launch(sim, ["x", "0", "1"], 0.1)
        assert not sim.active

    def test_infinite_velocity_is_rejected(self, sim):
        with pytest.raises(LaunchError):
            launch(sim, ["inf", "0", "1"], 0.1, normalize=False)
        assert not sim.active

    def test_launch_error_is_value_error(self):
        assert issubclass(LaunchError, ValueError)

    def test_normalized_velocity(self, sim):
        launch(sim, [0, 0, 5], 0.1, normalize=True)
        assert sim.active
        np.testing.assert_allclose(sim.proton.vel, [0.0, 0.0, 0.1])

    def test_raw_velocity(self, sim):
        launch(sim, [0, 0, 2], 0.5, normalize=False)
        np.testing.assert_allclose(sim.proton.vel, [0.0, 0.0, 1.0])

    def test_launch_sets_position(self, sim):
        launch(sim, [1, 0, 0], 0.1, position=["1.5", "2", "-3"])
        np.testing.assert_array_equal(sim.proton.pos, [1.5, 2.0, -3.0])

    def test_launch_ignores_bad_position(self, sim):
        """Launch still happens from the current position"""
        start = sim.proton.pos.copy()
        launch(sim, [1, 0, 0], 0.1, position=["abc", "2", "-3"])
        assert sim.active
        np.testing.assert_array_equal(sim.proton.pos, start)

    def test_relaunch_clears_trail(self, sim):
        launch(sim, [0, 0, 1], 0.1)
        for _ in range(5):
            step(sim)
        assert len(sim.trail) == 5
        launch(sim, [1, 0, 0], 0.1)
        assert len(sim.trail) == 0


class TestStep:
    """Per-tick update and exit condition"""

    def test_uniform_motion(self, sim):
        """After k ticks: start + k * velocity, trail length k"""
        start = sim.proton.pos.copy()
        launch(sim, [0, 0, 1], 0.1, normalize=True)

        step(sim)
        np.testing.assert_allclose(sim.proton.pos, start + [0.0, 0.0, 0.1])

        for k in range(2, 31):
            step(sim)
            np.testing.assert_allclose(sim.proton.pos, start + [0.0, 0.0, 0.1 * k], atol=1e-12)
            assert len(sim.trail) == k

        np.testing.assert_allclose(sim.trail.as_array()[-1], sim.proton.pos)

    def test_exits_on_first_tick_beyond_radius(self):
        """Active up to distance == 2nu, idle on the first tick past it"""
        sim = Simulation(make_fcc_lattice(2.0, 5))
        launch(sim, [0, 0, 1], 1.0, position=[0, 0, 0])

        for k in range(1, 21):
            assert step(sim), f"went idle early at tick {k}"
        assert sim.distance_from_center() == pytest.approx(20.0)

        assert not step(sim)
        assert not sim.active
        assert len(sim.trail) == 21

    def test_idle_tick_does_nothing(self, sim):
        pos = sim.proton.pos.copy()
        assert not step(sim)
        np.testing.assert_array_equal(sim.proton.pos, pos)
        assert len(sim.trail) == 0

    def test_dt_scales_displacement(self, sim):
        start = sim.proton.pos.copy()
        launch(sim, [1, 0, 0], 0.1)
        step(sim, dt=2.5)
        np.testing.assert_allclose(sim.proton.pos, start + [0.25, 0.0, 0.0])

    def test_run_until_exit(self, sim):
        launch(sim, [1, 1, 1], 0.5, position=[0, 0, 0])
        n = run_until_exit(sim, 10000)
        assert not sim.active
        assert n == len(sim.trail)
        assert sim.distance_from_center() > sim.lattice.escape_radius

    def test_run_until_exit_respects_cap(self, sim):
        launch(sim, [1, 0, 0], 0.01, position=[0, 0, 0])
        assert run_until_exit(sim, 50) == 50
        assert sim.active


class TestReset:
    """Any state -> Idle"""

    def test_reset_while_active(self, sim):
        launch(sim, [0, 1, 0], 0.2, position=[0, 0, 0])
        for _ in range(10):
            step(sim)

        reset(sim)

        assert not sim.active
        assert len(sim.trail) == 0
        np.testing.assert_array_equal(sim.proton.pos, sim.lattice.bbox.lo)
        np.testing.assert_array_equal(sim.proton.vel, np.zeros(3))

    def test_reset_while_idle(self, sim):
        set_position(sim, [1, 1, 1])
        reset(sim)
        assert not sim.active
        np.testing.assert_array_equal(sim.proton.pos, sim.lattice.bbox.lo)

    def test_reset_does_not_alias_bbox(self, sim):
        """Moving the proton after reset must not move the lattice corner"""
        reset(sim)
        launch(sim, [1, 0, 0], 1.0)
        step(sim)
        np.testing.assert_allclose(sim.lattice.bbox.lo, [-5.0, -5.0, -5.0])
