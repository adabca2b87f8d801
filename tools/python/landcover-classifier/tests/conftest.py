"""
Shared fixtures — a synthetic 20×20 Landsat-like scene.

The scene is split into four 10×10 quadrants, each with its own land-cover
class and digital numbers::

    +-----------+-------------+
    |  water    |  forest     |
    |  DN 9000  |  DN 15000   |
    +-----------+-------------+
    |  urban    | agriculture |
    |  DN 25000 |  DN 35000   |
    +-----------+-------------+

Each band adds ``100 * band_number`` to the quadrant DN.  Pixel (0, 0) is
no-data in every band.  The study area is the scene inset by one pixel with
the bottom-left corner cut off diagonally.
"""

from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import numpy as np
import pytest
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin
from shapely.geometry import Polygon, box

from landcover_classifier.bands import BandStack

X0, Y0 = 500_000.0, 4_200_000.0
PIXEL = 30.0
SIZE = 20
EPSG = "EPSG:32633"
BANDS = (2, 3, 4, 5)
QUADRANTS = {
    # label: (row offset, col offset, DN)
    "water": (0, 0, 9_000),
    "forest": (0, 10, 15_000),
    "urban": (10, 0, 25_000),
    "agriculture": (10, 10, 35_000),
}


def _quadrant_dn(band: int) -> np.ndarray:
    dn = np.zeros((SIZE, SIZE), dtype=np.uint16)
    for row, col, value in QUADRANTS.values():
        dn[row:row + 10, col:col + 10] = value + 100 * band
    dn[0, 0] = 0
    return dn


def _site_box(row: int, col: int) -> Polygon:
    """6×6-pixel box starting two pixels into a quadrant."""
    west = X0 + (col + 2) * PIXEL
    north = Y0 - (row + 2) * PIXEL
    return box(west, north - 6 * PIXEL, west + 6 * PIXEL, north)


@pytest.fixture()
def transform():
    return from_origin(X0, Y0, PIXEL, PIXEL)


@pytest.fixture()
def study_polygon() -> Polygon:
    return Polygon([
        (X0 + 30, Y0 - 30),
        (X0 + 570, Y0 - 30),
        (X0 + 570, Y0 - 570),
        (X0 + 165, Y0 - 570),
        (X0 + 30, Y0 - 435),
    ])


@pytest.fixture()
def scene_dir(tmp_path: Path, transform) -> Path:
    """Directory holding one uint16 GeoTIFF per band plus an unrelated file."""
    scene = tmp_path / "scene"
    scene.mkdir()
    for band in BANDS:
        path = scene / f"LC08_L2SP_TEST_SR_B{band}.TIF"
        with rasterio.open(
            path, "w",
            driver="GTiff",
            height=SIZE,
            width=SIZE,
            count=1,
            dtype="uint16",
            crs=EPSG,
            transform=transform,
            nodata=0,
        ) as dst:
            dst.write(_quadrant_dn(band), 1)
    (scene / "LC08_L2SP_TEST_MTL.txt").write_text("metadata", encoding="utf-8")
    return scene


@pytest.fixture()
def dn_stack(transform) -> BandStack:
    """The scene as an in-memory DN stack (no-data already NaN)."""
    data = np.stack([_quadrant_dn(b) for b in BANDS]).astype(np.float32)
    data[data == 0] = np.nan
    return BandStack(
        data=data,
        transform=transform,
        crs=CRS.from_string(EPSG),
        band_names=[f"B{b}" for b in BANDS],
    )


@pytest.fixture()
def study_area_path(tmp_path: Path, study_polygon: Polygon) -> Path:
    path = tmp_path / "study_area.shp"
    gpd.GeoDataFrame({"name": ["study"]}, geometry=[study_polygon], crs=EPSG).to_file(path)
    return path


@pytest.fixture()
def training_sites() -> gpd.GeoDataFrame:
    labels = list(QUADRANTS)
    geoms = [_site_box(row, col) for row, col, _ in QUADRANTS.values()]
    return gpd.GeoDataFrame({"class": labels}, geometry=geoms, crs=EPSG)


@pytest.fixture()
def training_path(tmp_path: Path, training_sites: gpd.GeoDataFrame) -> Path:
    path = tmp_path / "training_sites.shp"
    training_sites.to_file(path)
    return path
