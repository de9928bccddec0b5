import pytest

from spviz.lattice import make_fcc_lattice
from spviz.system import Simulation


@pytest.fixture
def lattice():
    """Reference lattice: unit cell 2, 5 cells per axis."""
    return make_fcc_lattice(2.0, 5)


@pytest.fixture
def sim(lattice):
    return Simulation(lattice)
