"""Internal constants shared across the library."""

DEFAULT_UDP_HOST = "0.0.0.0"
DEFAULT_UDP_PORT = 41234
DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 3000
DEFAULT_DATA_FILE = "public/data.json"
DEFAULT_PERSIST_TIMEOUT = 5.0

API_ROUTE = "/api/sensor-data"
STATS_ROUTE = "/api/stats"
LEGACY_DATA_ROUTE = "/data.json"

ACCELERATION_FIELDS: tuple[str, ...] = ("ax", "ay", "az")
GYROSCOPE_FIELDS: tuple[str, ...] = ("gx", "gy", "gz")
RAW_FIELDS: tuple[str, ...] = ACCELERATION_FIELDS + GYROSCOPE_FIELDS
DERIVED_FIELDS: tuple[str, ...] = ("hb", "ra", "mts")

# ------------------------------------------------------------------
# Safety metric parameters
# ------------------------------------------------------------------

HARD_BRAKING_THRESHOLD = 1.5
RAPID_ACCELERATION_THRESHOLD = 1.5
FRICTION_COEFFICIENT = 0.8
GRAVITY = 9.8
REFERENCE_CURVE_RADIUS = 10.0
# Lateral acceleration at which the turnable speed estimate reaches zero.
LATERAL_SATURATION = 10.0
