# streamlit_app.py
# FCC Lattice Proton Trajectory – Web Version (trajectory replay + stopping-power prediction)

import logging
from concurrent.futures import ThreadPoolExecutor

import streamlit as st

from spviz.config import ViewerConfig
from spviz.integrator import LaunchError, launch, run_until_exit, set_position
from spviz.logging_config import setup_logging
from spviz.prediction import PredictionClient, build_request, format_result
from spviz.system import Simulation
from spviz.utils import format_xyz, to_csv
from spviz.viz import visualize_lattice_3d

logger = logging.getLogger("spviz.streamlit_app")

POSITION_KEYS = ("pos_x", "pos_y", "pos_z")
VELOCITY_KEYS = ("vel_x", "vel_y", "vel_z")


@st.cache_resource
def _init_logging():
    return setup_logging(logging.INFO)


@st.cache_resource
def _build_simulation(unit_cell_size, lattice_size):
    cfg = ViewerConfig(unit_cell_size=unit_cell_size, lattice_size=lattice_size)
    return Simulation.from_config(cfg.validate())


@st.cache_resource
def _prediction_pool():
    # Shared by all sessions; predictions outlive the script run that started them
    return ThreadPoolExecutor(max_workers=4, thread_name_prefix="prediction")


def _reset_position_inputs(home):
    for key, value in zip(POSITION_KEYS, home):
        st.session_state[key] = f"{value:.1f}"


def _reset_velocity_inputs(cfg):
    for key, text in zip(VELOCITY_KEYS, cfg.velocity_fields()):
        st.session_state[key] = text


def _on_reset(home, cfg):
    st.session_state.pop("results", None)
    _reset_position_inputs(home)
    _reset_velocity_inputs(cfg)
    logger.info("Reset.")


@st.fragment(run_every=1.0)
def _prediction_panel(future):
    """Poll the prediction without holding back the trajectory view."""
    if not future.done():
        st.text("Predicting stopping power...")
        return
    result = future.result()
    if result.ok:
        st.text(format_result(result))
    else:
        st.error(format_result(result))


# ------------------------------------------------------------
# Streamlit UI
# ------------------------------------------------------------
st.set_page_config(page_title="FCC Proton Trajectory", layout="wide")
_init_logging()
defaults = ViewerConfig()

st.title("FCC Lattice - Proton Trajectory")

st.sidebar.header("Lattice")
unit_cell_size = st.sidebar.number_input(
    "Unit cell size", min_value=0.1, value=defaults.unit_cell_size, step=0.1
)
lattice_size = st.sidebar.number_input(
    "Cells per axis", min_value=1, max_value=12, value=defaults.lattice_size, step=1
)

# Cached lattice; per-run state is rebuilt from it on every launch
base = _build_simulation(float(unit_cell_size), int(lattice_size))
home = base.home_position

# Inputs follow the lattice corner until the user edits them
lattice_key = (float(unit_cell_size), int(lattice_size))
if st.session_state.get("inputs_for") != lattice_key:
    _reset_position_inputs(home)
    st.session_state["inputs_for"] = lattice_key
if VELOCITY_KEYS[0] not in st.session_state:
    _reset_velocity_inputs(defaults)

st.sidebar.header("Launch")
c1, c2, c3 = st.sidebar.columns(3)
x = c1.text_input("x", key="pos_x")
y = c2.text_input("y", key="pos_y")
z = c3.text_input("z", key="pos_z")

c1, c2, c3 = st.sidebar.columns(3)
vx = c1.text_input("vx", key="vel_x")
vy = c2.text_input("vy", key="vel_y")
vz = c3.text_input("vz", key="vel_z")
normalize = st.sidebar.checkbox("Normalize direction", value=defaults.normalize_default)
speed = st.sidebar.slider(
    "Speed",
    min_value=defaults.speed_min,
    max_value=defaults.speed_max,
    value=defaults.speed_default,
    step=defaults.speed_step,
    format="%.2f",
)
zoom = st.sidebar.slider(
    "Zoom",
    min_value=defaults.zoom_min,
    max_value=defaults.zoom_max,
    value=defaults.zoom_default,
    step=defaults.zoom_step,
    format="%.2f×",
)

b1, b2 = st.sidebar.columns(2)
launch_btn = b1.button("Launch", key="launch_btn")
b2.button("Reset", key="reset_btn", on_click=_on_reset, args=(home, defaults))


# ------------------------------------------------------------
# Launch: prediction on the shared pool, trajectory on this thread
# ------------------------------------------------------------
if launch_btn:
    sim = Simulation(base.lattice)
    velocity = [vx, vy, vz]

    try:
        launch(sim, velocity, speed, normalize=normalize, position=[x, y, z])
    except LaunchError as e:
        logger.warning(str(e))
        st.sidebar.warning(str(e))
    else:
        start = sim.proton.pos.copy()
        request = build_request(start, velocity, speed, normalize=normalize)
        client = PredictionClient(defaults.predict_url, timeout=defaults.predict_timeout)

        future = _prediction_pool().submit(client.predict, request)
        with st.spinner("Tracing proton..."):
            n_steps = run_until_exit(sim, defaults.max_steps)

        st.session_state["results"] = {
            "unit_cell_size": float(unit_cell_size),
            "lattice_size": int(lattice_size),
            "start": start,
            "trail": sim.trail.as_array(),
            "n_steps": n_steps,
            "escaped": not sim.active,
            "prediction": future,
        }


# --------------------------------------------------------
# Display results
# --------------------------------------------------------
res = st.session_state.get("results")
if res is not None and (res["unit_cell_size"], res["lattice_size"]) != (float(unit_cell_size), int(lattice_size)):
    # Lattice changed since the run; the stored trail no longer applies
    res = None

col1, col2 = st.columns([3, 1])

with col2:
    st.write("### Stopping power")
    if res is None:
        st.info("Set the launch parameters in the sidebar and click **Launch**.")
    else:
        _prediction_panel(res["prediction"])

    if res is not None:
        st.write("### Trajectory")
        st.write(f"**Start:** {res['start'].round(2).tolist()}")
        st.write(f"**Steps:** {res['n_steps']}")
        st.write(f"**Left the lattice:** {'yes' if res['escaped'] else 'no'}")

with col1:
    if res is None or res["n_steps"] == 0:
        preview = Simulation(base.lattice)
        set_position(preview, [x, y, z])
        fig3d = visualize_lattice_3d(
            base.lattice,
            atom_radius=defaults.atom_radius,
            proton_position=preview.proton.pos,
            zoom=zoom,
            camera_distance=defaults.camera_distance,
        )
    else:
        trail = res["trail"]
        tick = int(res["n_steps"])
        if tick > 1:
            tick = st.slider(
                "Step",
                min_value=1,
                max_value=tick,
                value=tick,
                step=1,
                key="tick_slider",
            )
        fig3d = visualize_lattice_3d(
            base.lattice,
            atom_radius=defaults.atom_radius,
            proton_position=trail[tick - 1],
            trail=trail[:tick],
            zoom=zoom,
            camera_distance=defaults.camera_distance,
        )
    st.plotly_chart(fig3d, width="stretch")


# -------- Downloads at bottom --------
if res is not None and res["n_steps"] > 0:
    st.write("### Downloadable Data Files")
    trail = res["trail"]

    st.download_button(
        label="Download trail (CSV)",
        data=to_csv(
            range(1, len(trail) + 1), trail[:, 0], trail[:, 1], trail[:, 2],
            headers=["step", "x", "y", "z"],
        ),
        file_name="trail.csv",
        mime="text/csv",
    )
    st.download_button(
        label="Download lattice + trail (.xyz)",
        data=format_xyz(base.lattice, trail).encode(),
        file_name="trajectory.xyz",
        mime="chemical/x-xyz",
    )
