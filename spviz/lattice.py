# spviz/lattice.py
from dataclasses import dataclass

import numpy as np

from spviz.constants import FCC_OFFSETS, ESCAPE_SPANS


class BoundingBox:
    """
    Axis-aligned bounding box grown one point at a time.

    Starts empty (lo=+inf, hi=-inf); every include() takes the
    component-wise min/max with the new point.
    """

    def __init__(self):
        self.lo = np.full(3, np.inf)
        self.hi = np.full(3, -np.inf)

    def include(self, point):
        p = np.asarray(point, dtype=float)
        np.minimum(self.lo, p, out=self.lo)
        np.maximum(self.hi, p, out=self.hi)

    @property
    def is_empty(self):
        return bool(np.any(self.lo > self.hi))

    @property
    def center(self):
        return 0.5 * (self.lo + self.hi)

    @property
    def extent(self):
        return self.hi - self.lo

    def outline_size(self, atom_radius):
        """Outline box dimensions: hi - lo padded by one atom radius per side."""
        return self.extent + 2.0 * atom_radius

    def outline_corners(self, atom_radius):
        """8 corners of the padded outline box, bottom face first."""
        half = 0.5 * self.outline_size(atom_radius)
        c = self.center
        signs = np.array([
            [-1, -1, -1],
            [+1, -1, -1],
            [+1, +1, -1],
            [-1, +1, -1],
            [-1, -1, +1],
            [+1, -1, +1],
            [+1, +1, +1],
            [-1, +1, +1],
        ], dtype=float)
        return c + signs * half

    def freeze(self):
        self.lo.flags.writeable = False
        self.hi.flags.writeable = False
        return self

    def __repr__(self):
        return f"BoundingBox(lo={self.lo.tolist()}, hi={self.hi.tolist()})"


# Edges of the box spanned by outline_corners()
BOX_EDGES = [
    (0, 1), (1, 2), (2, 3), (3, 0),
    (4, 5), (5, 6), (6, 7), (7, 4),
    (0, 4), (1, 5), (2, 6), (3, 7),
]


@dataclass(frozen=True, eq=False)
class Lattice:
    positions: np.ndarray
    bbox: BoundingBox
    unit_cell_size: float
    lattice_size: int

    @property
    def n_atoms(self):
        return self.positions.shape[0]

    @property
    def center(self):
        return self.bbox.center

    @property
    def escape_radius(self):
        """Distance from the center beyond which a proton has left the crystal."""
        return ESCAPE_SPANS * self.lattice_size * self.unit_cell_size


def make_fcc_lattice(unit_cell_size, lattice_size, offset=None):
    """
    Build an FCC lattice of lattice_size^3 unit cells.

    Every cell contributes 14 atoms (8 corners + 6 face centers), so atoms on
    shared corners and faces appear more than once.

    unit_cell_size : float
        Cube edge length of one cell.
    lattice_size : int
        Cells per axis.
    offset : float or array-like, shape (3,), optional
        Subtracted from every cell origin. Defaults to half the lattice span,
        which centers the lattice at the world origin.

    Returns
    -------
    Lattice with read-only positions of shape (14 * n^3, 3) and the
    bounding box of those positions.
    """
    u = float(unit_cell_size)
    if u <= 0.0:
        raise ValueError("unit_cell_size must be > 0.")
    if int(lattice_size) != lattice_size or lattice_size < 0:
        raise ValueError("lattice_size must be a non-negative integer.")
    n = int(lattice_size)

    if offset is None:
        offset = 0.5 * n * u
    offset = np.broadcast_to(np.asarray(offset, dtype=float), (3,))

    basis = np.array(FCC_OFFSETS)
    bbox = BoundingBox()
    positions = []

    for i in range(n):
        for j in range(n):
            for k in range(n):
                origin = u * np.array([i, j, k], dtype=float) - offset
                for b in basis:
                    p = origin + u * b
                    positions.append(p)
                    bbox.include(p)

    if positions:
        positions = np.array(positions)
    else:
        # Empty lattice: collapse the box onto the world origin
        positions = np.empty((0, 3))
        bbox.include(np.zeros(3))

    positions.flags.writeable = False
    return Lattice(positions, bbox.freeze(), u, n)
