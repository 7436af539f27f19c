"""Chargeable weight: whichever of dead or volumetric weight is larger."""
from typing import Optional, Tuple

VOLUMETRIC_DIVISOR = 5000  # cm³ per kg, standard courier constant


def volumetric_weight(length: Optional[float], width: Optional[float], height: Optional[float]) -> Optional[float]:
    dims = (length, width, height)
    if any(d is None or not d > 0 for d in dims):
        return None
    return length * width * height / VOLUMETRIC_DIVISOR


def chargeable_weight(
    dead_weight: float,
    length: Optional[float] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
) -> Tuple[float, Optional[float]]:
    """Returns (chargeable, volumetric). Volumetric is None unless all three dimensions are positive."""
    volumetric = volumetric_weight(length, width, height)
    if volumetric is None:
        return dead_weight, None
    return max(dead_weight, volumetric), round(volumetric, 3)
