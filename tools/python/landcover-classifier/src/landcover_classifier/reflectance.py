"""
Land-Cover Classifier — Reflectance Conversion
===============================================
Converts raw sensor digital numbers (DN) to surface reflectance with the
linear rescaling published for each product::

    reflectance = DN * scale + offset

Results are expressed in percent (0–100) by default and clipped to the
physically meaningful range so that saturated or dark-object pixels do not
leak out-of-range values into the classifier.

Presets:
    landsat-c2-l2   Landsat 8/9 Collection 2 Level-2 SR (2.75e-5, -0.2)
    landsat-c1-sr   Landsat Collection 1 Surface Reflectance (1e-4, 0)
    sentinel2-l2a   Sentinel-2 L2A, processing baseline ≥ 04.00 (1e-4, -0.1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from shared.python.exceptions import InputValidationError

from .bands import BandStack

logger = logging.getLogger("landcover.reflectance")


@dataclass(frozen=True)
class ReflectanceScaling:
    """Linear DN → reflectance rescaling.

    Attributes:
        scale: Multiplicative factor applied to each DN.
        offset: Additive term applied after scaling.
        percent: Express reflectance as 0–100 instead of 0–1.
        clip: Clip results to the valid range (0–100 or 0–1).
    """

    scale: float
    offset: float = 0.0
    percent: bool = True
    clip: bool = True

    @property
    def upper(self) -> float:
        """Top of the valid reflectance range."""
        return 100.0 if self.percent else 1.0

    def apply(self, dn: np.ndarray) -> np.ndarray:
        """Rescale an array of DNs; NaN cells stay NaN."""
        reflectance = dn.astype(np.float32) * np.float32(self.scale) + np.float32(self.offset)
        if self.percent:
            reflectance *= np.float32(100.0)
        if self.clip:
            # np.clip leaves NaN untouched
            reflectance = np.clip(reflectance, 0.0, self.upper)
        return reflectance.astype(np.float32, copy=False)


SCALING_PRESETS: dict[str, ReflectanceScaling] = {
    "landsat-c2-l2": ReflectanceScaling(scale=2.75e-5, offset=-0.2),
    "landsat-c1-sr": ReflectanceScaling(scale=1e-4, offset=0.0),
    "sentinel2-l2a": ReflectanceScaling(scale=1e-4, offset=-0.1),
}

DEFAULT_SCALING = "landsat-c2-l2"


def get_scaling(name: str) -> ReflectanceScaling:
    """Look up a named preset from :data:`SCALING_PRESETS`.

    Raises:
        InputValidationError: If *name* is not a known preset.
    """
    try:
        return SCALING_PRESETS[name.lower()]
    except KeyError as exc:
        raise InputValidationError(
            f"Unknown reflectance preset '{name}'. "
            f"Valid options: {', '.join(SCALING_PRESETS)}"
        ) from exc


def to_reflectance(
    stack: BandStack,
    scaling: ReflectanceScaling | str = DEFAULT_SCALING,
) -> BandStack:
    """Return a copy of *stack* converted from DN to reflectance.

    Args:
        stack: Band stack of raw digital numbers.
        scaling: A :class:`ReflectanceScaling` or the name of a preset.
    """
    if isinstance(scaling, str):
        scaling = get_scaling(scaling)

    result = stack.with_data(scaling.apply(stack.data))

    valid = result.data[np.isfinite(result.data)]
    if valid.size:
        logger.info(
            "Reflectance (scale=%g, offset=%g): min=%.2f max=%.2f mean=%.2f",
            scaling.scale, scaling.offset,
            float(valid.min()), float(valid.max()), float(valid.mean()),
        )
    else:
        logger.warning("Reflectance stack holds no valid pixels.")
    return result
