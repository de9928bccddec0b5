# spviz/integrator.py
import logging

import numpy as np

logger = logging.getLogger(__name__)


class LaunchError(ValueError):
    """Raised when a launch vector cannot be used."""


# ============================================================
#                       INPUT HELPERS
# ============================================================

def parse_vector(values):
    """
    Parse three user-supplied values into a float array.

    Returns None if any value is not a finite number (non-numeric text,
    NaN or infinity).
    """
    try:
        vec = np.array([float(v) for v in values], dtype=float)
    except (TypeError, ValueError):
        return None
    if vec.shape != (3,) or not np.all(np.isfinite(vec)):
        return None
    return vec


def unit_vector(v):
    """Return v / |v|. Raises LaunchError for zero or non-finite vectors."""
    v = np.asarray(v, dtype=float)
    norm = np.linalg.norm(v)
    if not np.isfinite(norm) or norm == 0.0:
        raise LaunchError("Trajectory vector is zero - cannot launch.")
    return v / norm


def set_position(sim, values):
    """
    Move the proton to the given position.

    Non-numeric input leaves the proton where it is and returns False.
    """
    pos = parse_vector(values)
    if pos is None:
        logger.debug(f"Ignoring non-numeric position input: {values!r}")
        return False
    sim.proton.pos = pos
    return True


# ============================================================
#                    LAUNCH / STEP / RESET
# ============================================================

def launch(sim, velocity, speed, normalize=True, position=None):
    """
    Start a new trajectory.

    velocity : array-like, shape (3,)
        Raw launch direction as typed by the user.
    speed : float
        Per-tick displacement scale (the speed slider).
    normalize : bool
        Rescale velocity to unit length before applying speed.
    position : array-like, optional
        New start position; non-numeric input keeps the current one.

    A zero vector raises LaunchError and leaves the simulation untouched.
    """
    v = parse_vector(velocity)
    if v is None:
        raise LaunchError("Trajectory vector is not a finite number - cannot launch.")
    direction = unit_vector(v)
    if not normalize:
        direction = v

    if position is not None:
        set_position(sim, position)

    sim.trail.clear()
    sim.proton.vel = direction * float(speed)
    sim.proton.active = True
    logger.info(
        f"Launch from {sim.proton.pos.round(3).tolist()} "
        f"with velocity {sim.proton.vel.round(4).tolist()}"
    )


def step(sim, dt=1.0):
    """
    Advance an active proton by one tick.

    position <- position + velocity * dt, then the new position is appended
    to the trail. dt=1.0 is one display frame. The proton goes idle on the
    first tick that takes it beyond the lattice's escape radius.

    Returns the active flag after the tick.
    """
    proton = sim.proton
    if not proton.active:
        return False

    proton.pos = proton.pos + proton.vel * dt
    sim.trail.append(proton.pos)

    if sim.distance_from_center() > sim.lattice.escape_radius:
        proton.active = False
        logger.info(f"Proton left the lattice after {len(sim.trail)} steps.")
    return proton.active


def run_until_exit(sim, max_steps, dt=1.0):
    """Tick until the proton goes idle or max_steps is reached. Returns ticks taken."""
    n = 0
    while sim.proton.active and n < max_steps:
        step(sim, dt)
        n += 1
    if sim.proton.active:
        logger.warning(f"Proton still inside the lattice after {max_steps} steps.")
    return n


def reset(sim):
    """Stop the proton and put it back on the lattice corner."""
    sim.proton.active = False
    sim.trail.clear()
    sim.proton.pos = sim.home_position
    sim.proton.vel = np.zeros(3)
