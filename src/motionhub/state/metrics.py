"""Safety metrics derived from the snapshot's acceleration."""

from __future__ import annotations

import math
from typing import NamedTuple

from motionhub._constants import (
    FRICTION_COEFFICIENT,
    GRAVITY,
    HARD_BRAKING_THRESHOLD,
    LATERAL_SATURATION,
    RAPID_ACCELERATION_THRESHOLD,
    REFERENCE_CURVE_RADIUS,
)

#: Turnable speed with no lateral load, ``sqrt(mu * g * r)``.
BASE_TURNABLE_SPEED = math.sqrt(FRICTION_COEFFICIENT * GRAVITY * REFERENCE_CURVE_RADIUS)


class SafetyMetrics(NamedTuple):
    hb: int
    ra: int
    mts: float


def derive(ax: float, ay: float) -> SafetyMetrics:
    """Derive hard-braking, rapid-acceleration and max turnable speed.

    Both flags compare the unsigned longitudinal magnitude against their
    threshold, so braking and acceleration are not told apart by sign.
    ``mts`` is not clamped and goes negative once ``|ay|`` exceeds the
    lateral saturation point.
    """
    accel_mag = abs(ax)
    hb = 1 if accel_mag > HARD_BRAKING_THRESHOLD else 0
    ra = 1 if accel_mag > RAPID_ACCELERATION_THRESHOLD else 0
    lateral = abs(ay)
    mts = BASE_TURNABLE_SPEED * (1 - lateral / LATERAL_SATURATION)
    return SafetyMetrics(hb=hb, ra=ra, mts=mts)
