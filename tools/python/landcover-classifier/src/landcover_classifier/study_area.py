"""
study_area.py
=============
Load the study-area boundary and restrict a band stack to it.

Clipping is a crop to the polygon's bounding window followed by a mask:
every pixel whose centre falls outside the polygon becomes no-data (NaN),
so the valid data of the result always lies inside the study area.
"""

from __future__ import annotations

import logging
from pathlib import Path

import geopandas as gpd
import numpy as np
from rasterio.io import MemoryFile
from rasterio.mask import mask as mask_raster
from shapely.ops import unary_union

from shared.python.exceptions import InputValidationError, RasterError
from shared.python.validators import Validators

from .bands import BandStack

logger = logging.getLogger("landcover.study_area")

VECTOR_EXTENSIONS = [".shp", ".gpkg", ".geojson", ".json"]


def read_vector(path: Path, layer: str | None = None) -> gpd.GeoDataFrame:
    """Read a vector file with geopandas, wrapping driver errors.

    Raises:
        InputValidationError: If the file is missing, has an unsupported
            extension, or cannot be read.
    """
    path = Path(path)
    Validators.assert_file_exists(path)
    Validators.assert_supported_extension(path, VECTOR_EXTENSIONS)
    try:
        if layer:
            return gpd.read_file(path, layer=layer)
        return gpd.read_file(path)
    except Exception as exc:  # pyogrio and fiona raise unrelated error types
        raise InputValidationError(f"Could not read vector file '{path}': {exc}") from exc


def load_study_area(path: Path, layer: str | None = None) -> gpd.GeoDataFrame:
    """Read the study-area polygon(s) and dissolve them into one geometry.

    Args:
        path: Shapefile, GeoPackage or GeoJSON holding the boundary.
        layer: Layer name for multi-layer sources such as GeoPackage.

    Returns:
        A one-row GeoDataFrame in the source CRS.

    Raises:
        CRSError: If the file has no CRS.
        InputValidationError: If it holds no polygon geometry.
    """
    gdf = read_vector(path, layer)
    Validators.assert_crs_defined(gdf.crs, f"Study area '{Path(path).name}'")

    geoms = [g for g in gdf.geometry if g is not None and not g.is_empty]
    if not geoms:
        raise InputValidationError(f"Study area '{Path(path).name}' has no geometry.")

    boundary = unary_union(geoms)
    if boundary.geom_type not in ("Polygon", "MultiPolygon"):
        raise InputValidationError(
            f"Study area must be polygonal; '{Path(path).name}' dissolves to a "
            f"{boundary.geom_type}."
        )

    dissolved = gpd.GeoDataFrame(geometry=[boundary], crs=gdf.crs)
    logger.info(
        "Study area: %d feature(s) dissolved; area %.1f CRS units²",
        len(geoms), boundary.area,
    )
    return dissolved


def clip_to_study_area(stack: BandStack, study_area: gpd.GeoDataFrame) -> BandStack:
    """Crop *stack* to the study area and mask pixels outside it.

    The polygon is reprojected to the stack CRS first.  A pixel is kept
    when its centre lies inside the polygon.

    Args:
        stack: Band stack to clip.
        study_area: Polygon layer, e.g. from :func:`load_study_area`.

    Returns:
        A new, smaller :class:`BandStack`.

    Raises:
        CRSError: If *study_area* has no CRS.
        RasterError: If the study area does not overlap the stack.
    """
    Validators.assert_crs_defined(study_area.crs, "Study area")
    area = study_area.to_crs(stack.crs.to_wkt())
    shapes = [g for g in area.geometry if g is not None and not g.is_empty]

    with MemoryFile() as memfile:
        with memfile.open(**stack.to_profile()) as dataset:
            dataset.write(stack.data)
            try:
                clipped, transform = mask_raster(
                    dataset, shapes, crop=True, nodata=np.nan, filled=True,
                )
            except ValueError as exc:
                raise RasterError(
                    f"Study area does not overlap the band stack: {exc}"
                ) from exc

    result = stack.with_data(clipped.astype(np.float32, copy=False), transform)
    logger.info("Clipped to study area → %s", result)
    return result
