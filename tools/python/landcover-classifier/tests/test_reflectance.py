"""
Tests for DN → reflectance conversion.
"""

from __future__ import annotations

import numpy as np
import pytest

from landcover_classifier.bands import BandStack
from landcover_classifier.reflectance import (
    SCALING_PRESETS,
    ReflectanceScaling,
    get_scaling,
    to_reflectance,
)
from shared.python.exceptions import InputValidationError


class TestReflectanceScaling:
    def test_landsat_c2_formula(self) -> None:
        scaling = get_scaling("landsat-c2-l2")
        dn = np.array([[20_000.0]], dtype=np.float32)
        expected = (20_000 * 2.75e-5 - 0.2) * 100
        assert scaling.apply(dn)[0, 0] == pytest.approx(expected, rel=1e-5)

    def test_fraction_output(self) -> None:
        scaling = ReflectanceScaling(scale=1e-4, percent=False)
        assert scaling.apply(np.array([2_500.0]))[0] == pytest.approx(0.25)

    def test_clipped_to_percent_range(self) -> None:
        scaling = get_scaling("landsat-c2-l2")
        dn = np.array([0.0, 1.0, 65_535.0], dtype=np.float32)
        out = scaling.apply(dn)
        assert out.min() >= 0.0
        assert out.max() <= 100.0
        assert out[0] == 0.0
        assert out[2] == 100.0

    def test_unclipped_keeps_out_of_range(self) -> None:
        scaling = ReflectanceScaling(scale=2.75e-5, offset=-0.2, clip=False)
        assert scaling.apply(np.array([1.0]))[0] < 0.0

    def test_nan_preserved(self) -> None:
        out = get_scaling("sentinel2-l2a").apply(np.array([np.nan, 3_000.0]))
        assert np.isnan(out[0])
        assert out[1] == pytest.approx((3_000 * 1e-4 - 0.1) * 100, rel=1e-5)

    def test_preset_lookup_is_case_insensitive(self) -> None:
        assert get_scaling("LANDSAT-C1-SR") is SCALING_PRESETS["landsat-c1-sr"]

    def test_unknown_preset_raises(self) -> None:
        with pytest.raises(InputValidationError, match="Unknown reflectance preset"):
            get_scaling("modis")


class TestToReflectance:
    def test_values_within_0_100(self, dn_stack: BandStack) -> None:
        refl = to_reflectance(dn_stack)
        valid = refl.data[np.isfinite(refl.data)]
        assert valid.size > 0
        assert valid.min() >= 0.0
        assert valid.max() <= 100.0

    def test_nodata_stays_nan(self, dn_stack: BandStack) -> None:
        refl = to_reflectance(dn_stack)
        assert np.all(np.isnan(refl.data[:, 0, 0]))

    def test_geometry_and_names_unchanged(self, dn_stack: BandStack) -> None:
        refl = to_reflectance(dn_stack, "landsat-c1-sr")
        assert refl.shape == dn_stack.shape
        assert refl.band_names == dn_stack.band_names
        assert refl.transform == dn_stack.transform

    def test_input_not_modified(self, dn_stack: BandStack) -> None:
        before = dn_stack.data.copy()
        to_reflectance(dn_stack)
        assert np.array_equal(before, dn_stack.data, equal_nan=True)

    def test_custom_scaling_object(self, dn_stack: BandStack) -> None:
        refl = to_reflectance(dn_stack, ReflectanceScaling(scale=1e-5))
        # water quadrant, band 2: DN 9200 → 9.2 %
        assert refl.band("B2")[5, 5] == pytest.approx(9.2, rel=1e-5)
