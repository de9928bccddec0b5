# ------------------------------------------------------------
# Browser-native 3D lattice + trajectory visualizer (Plotly)
# ------------------------------------------------------------
import plotly.graph_objects as go
import numpy as np

from spviz.constants import (
    ATOM_COLOR,
    AXES_LENGTH,
    AXIS_COLORS,
    BACKGROUND_COLOR,
    ORIGIN_COLOR,
    OUTLINE_COLOR,
    PROTON_COLOR,
    TRAIL_COLOR,
)
from spviz.lattice import BOX_EDGES

# Initial camera sits on the (1, 1, 1) diagonal looking at the center
DEFAULT_VIEW_DIRECTION = np.array([1.0, 1.0, 1.0]) / np.sqrt(3.0)


def camera_position(position, center, zoom, distance=15.0):
    """
    Move the camera along its current viewing direction so that it sits
    distance * zoom away from center.
    """
    center = np.asarray(center, dtype=float)
    direction = np.asarray(position, dtype=float) - center
    norm = np.linalg.norm(direction)
    if norm == 0.0:
        direction = DEFAULT_VIEW_DIRECTION
    else:
        direction = direction / norm
    return center + direction * (distance * zoom)


def camera_eye(position, center, scene_extent):
    """Plotly camera eye: camera offset in units of the scene's largest extent."""
    scale = max(float(np.max(scene_extent)), 1e-9)
    eye = (np.asarray(position, dtype=float) - np.asarray(center, dtype=float)) / scale
    return dict(x=float(eye[0]), y=float(eye[1]), z=float(eye[2]))


def visualize_lattice_3d(
    lattice,
    atom_radius=0.3,
    proton_position=None,
    trail=None,
    zoom=1.0,
    camera_distance=15.0,
):
    bbox = lattice.bbox
    fig = go.Figure()

    # Atoms
    if lattice.n_atoms:
        x, y, z = lattice.positions.T
        fig.add_trace(
            go.Scatter3d(
                x=x,
                y=y,
                z=z,
                mode="markers",
                marker=dict(size=4, color=ATOM_COLOR, opacity=0.9),
                name="atoms",
            )
        )

    # Outline box, padded by one atom radius
    corners = bbox.outline_corners(atom_radius)
    for i, j in BOX_EDGES:
        fig.add_trace(
            go.Scatter3d(
                x=[corners[i, 0], corners[j, 0]],
                y=[corners[i, 1], corners[j, 1]],
                z=[corners[i, 2], corners[j, 2]],
                mode="lines",
                line=dict(width=2, color=OUTLINE_COLOR),
                name="outline",
                showlegend=False,
            )
        )

    # Origin marker and axes helper at the lattice corner
    ox, oy, oz = bbox.lo
    fig.add_trace(
        go.Scatter3d(
            x=[ox], y=[oy], z=[oz],
            mode="markers",
            marker=dict(size=6, color=ORIGIN_COLOR),
            name="origin",
        )
    )
    for axis, color in enumerate(AXIS_COLORS):
        tip = bbox.lo.copy()
        tip[axis] += AXES_LENGTH
        fig.add_trace(
            go.Scatter3d(
                x=[ox, tip[0]], y=[oy, tip[1]], z=[oz, tip[2]],
                mode="lines",
                line=dict(width=4, color=color),
                name="xyz"[axis] + " axis",
                showlegend=False,
            )
        )

    # Trail and proton
    if trail is not None and len(trail):
        tx, ty, tz = np.asarray(trail, dtype=float).T
        fig.add_trace(
            go.Scatter3d(
                x=tx, y=ty, z=tz,
                mode="lines",
                line=dict(width=4, color=TRAIL_COLOR),
                name="trail",
            )
        )
    if proton_position is not None:
        px, py, pz = np.asarray(proton_position, dtype=float)
        fig.add_trace(
            go.Scatter3d(
                x=[px], y=[py], z=[pz],
                mode="markers",
                marker=dict(size=6, color=PROTON_COLOR),
                name="proton",
            )
        )

    center = bbox.center
    eye = camera_eye(
        camera_position(center + DEFAULT_VIEW_DIRECTION, center, zoom, camera_distance),
        center,
        bbox.outline_size(atom_radius),
    )

    axis_style = dict(showbackground=False, color="#cccccc")
    fig.update_layout(
        title="FCC Lattice",
        scene=dict(
            xaxis=dict(title="x", **axis_style),
            yaxis=dict(title="y", **axis_style),
            zaxis=dict(title="z", **axis_style),
            aspectmode="data",
            camera=dict(eye=eye, center=dict(x=0, y=0, z=0)),
        ),
        paper_bgcolor=BACKGROUND_COLOR,
        font=dict(color="#cccccc"),
        margin=dict(l=0, r=0, t=30, b=0),
        showlegend=False,
    )
    return fig
