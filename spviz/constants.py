# spviz/constants.py

# ------------------------------------------------------------
# FCC unit cell: 8 cube corners + 6 face centers (fractional)
# ------------------------------------------------------------
FCC_OFFSETS = (
    (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0),
    (1.0, 1.0, 0.0), (1.0, 0.0, 1.0), (0.0, 1.0, 1.0), (1.0, 1.0, 1.0),
    (0.5, 0.5, 0.0), (0.5, 0.0, 0.5), (0.0, 0.5, 0.5),
    (1.0, 0.5, 0.5), (0.5, 1.0, 0.5), (0.5, 0.5, 1.0),
)

# Exit condition: proton leaves once it is this many lattice spans away
ESCAPE_SPANS = 2.0

# Axes helper drawn at the lattice corner
AXES_LENGTH = 5.0
ORIGIN_MARKER_RADIUS = 0.25

# ------------------------------------------------------------
# Scene colors
# ------------------------------------------------------------
BACKGROUND_COLOR = "#101010"
ATOM_COLOR = "#b0c4de"
PROTON_COLOR = "#ff0000"
TRAIL_COLOR = "#ff0000"
OUTLINE_COLOR = "#ffffff"
ORIGIN_COLOR = "#00ff00"
AXIS_COLORS = ("#ff0000", "#00ff00", "#0000ff")

# ------------------------------------------------------------
# Prediction service
# ------------------------------------------------------------
PREDICT_URL = "https://stoppingpowersimulationbackended-1.onrender.com/predict"
STOPPING_POWER_UNIT = "MeV/(mg/cm²)"

PREDICTION_DISCLAIMER = (
    "⚠️ This result uses a legacy featurizer stack that may include incomplete "
    "or degraded components. Predictions are exploratory and may not reflect "
    "physically accurate stopping powers.\n"
    "ℹ️ Note: Starting position is not used in prediction. Only velocity "
    "direction and magnitude affect the result."
)
