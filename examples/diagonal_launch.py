import logging
import os
import sys

import numpy as np
import matplotlib.pyplot as plt

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(SCRIPT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from spviz.config import ViewerConfig
from spviz.integrator import launch, run_until_exit
from spviz.logging_config import setup_logging
from spviz.prediction import PredictionClient, build_request, format_result
from spviz.system import Simulation
from spviz.utils import write_xyz


# -----------------------------
# Launch Inputs
# -----------------------------
unit_cell_size = 2.0    # cube edge of one FCC cell
lattice_size = 5        # cells per axis
velocity = [1.0, 1.0, 1.0]  # raw launch direction (from the lattice corner)
speed = 0.1             # displacement per tick
normalize = True        # rescale velocity to unit length first
predict = False         # ask the remote service for a stopping power
traj_file = "diagonal_launch.xyz"


setup_logging(logging.INFO)

# -----------------------------
# Setup and launch
# -----------------------------
config = ViewerConfig(unit_cell_size=unit_cell_size, lattice_size=lattice_size).validate()
sim = Simulation.from_config(config)
start = sim.home_position

print(f"Lattice: {sim.lattice.n_atoms} atoms, bounding box {sim.lattice.bbox}")
print(f"Escape radius: {sim.lattice.escape_radius}")

launch(sim, velocity, speed, normalize=normalize, position=start)
n_steps = run_until_exit(sim, config.max_steps)
trail = sim.trail.as_array()

print(f"Proton left after {n_steps} steps at {sim.proton.pos.round(3).tolist()}")
write_xyz(sim.lattice, trail, filename=traj_file)
print(f"Wrote {traj_file}")

if predict:
    client = PredictionClient(config.predict_url, timeout=config.predict_timeout)
    result = client.predict(build_request(start, velocity, speed, normalize=normalize))
    print(format_result(result))


# ================================================================
# ============================ PLOTS ==============================
# ================================================================
dist = np.linalg.norm(trail - sim.lattice.center, axis=1)

plt.figure(figsize=(7, 5))
plt.plot(np.arange(1, n_steps + 1), dist)
plt.axhline(sim.lattice.escape_radius, ls="--", alpha=0.6)
plt.xlabel("step")
plt.ylabel("distance from lattice center")
plt.title("Proton distance from lattice center")
plt.tight_layout()

fig = plt.figure(figsize=(7, 6))
ax = fig.add_subplot(111, projection="3d")
ax.scatter(*sim.lattice.positions.T, s=4, alpha=0.4)
ax.plot(*trail.T, color="red")
ax.set_title("Proton trail")
plt.tight_layout()

plt.show()
