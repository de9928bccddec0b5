# spviz/system.py
import numpy as np

from spviz.lattice import make_fcc_lattice


class Proton:
    """Point mass moving at constant velocity. Idle until launched."""

    def __init__(self, position):
        self.pos = np.array(position, dtype=float)
        self.vel = np.zeros(3)
        self.active = False

    def __repr__(self):
        state = "active" if self.active else "idle"
        return f"Proton(pos={self.pos.tolist()}, vel={self.vel.tolist()}, {state})"


class Trail:
    """Positions visited since the last launch, in order."""

    def __init__(self):
        self._points = []

    def append(self, point):
        self._points.append(np.array(point, dtype=float))

    def clear(self):
        self._points.clear()

    def as_array(self):
        """Return the trail as an (n, 3) array (empty trail -> shape (0, 3))."""
        if not self._points:
            return np.empty((0, 3))
        return np.vstack(self._points)

    def __len__(self):
        return len(self._points)

    def __iter__(self):
        return iter(self._points)


class Simulation:
    """
    Represents the viewer's simulation state.
    Holds:
        - the lattice and its bounding box
        - the proton (position, velocity, active flag)
        - the trail since the last launch

    Passed explicitly to every operation in spviz.integrator, so the
    front ends own nothing but widgets.
    """

    def __init__(self, lattice):
        self.lattice = lattice
        self.proton = Proton(self.home_position)
        self.trail = Trail()

    @classmethod
    def from_config(cls, config):
        lattice = make_fcc_lattice(config.unit_cell_size, config.lattice_size)
        return cls(lattice)

    @property
    def home_position(self):
        """Default launch position: the lattice's minimum corner."""
        return self.lattice.bbox.lo.copy()

    @property
    def active(self):
        return self.proton.active

    def distance_from_center(self):
        return float(np.linalg.norm(self.proton.pos - self.lattice.center))
