"""FCC lattice proton-trajectory viewer with remote stopping-power prediction."""

__version__ = "0.1"
