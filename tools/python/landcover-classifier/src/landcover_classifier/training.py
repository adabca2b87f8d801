"""
Land-Cover Classifier — Training Samples
=========================================
Turns labelled training-site polygons into a table of pixel samples.

Every site gets a numeric ``site_id``.  The ids are burned into the band
stack's grid (a pixel belongs to a site when its centre is inside the
polygon), the band values of each burned pixel are collected, and the site
attribute table is joined back on ``site_id`` to attach the land-cover
label::

    site_id | class  | B2    | B3    | B4    | B5
    --------+--------+-------+-------+-------+------
          1 | water  |  4.75 |  4.75 |  4.75 |  4.75
          1 | water  |  4.81 |  4.70 |  4.77 |  4.73
          2 | forest | 21.25 | 21.25 | 21.25 | 21.25

Functions:
    load_training_sites        Read and clean the labelled polygons.
    extract_training_samples   Extract + join pixel values per site.
"""

from __future__ import annotations

import logging
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
from rasterio.features import rasterize

from shared.python.exceptions import TrainingDataError
from shared.python.validators import Validators

from .bands import BandStack
from .study_area import read_vector

logger = logging.getLogger("landcover.training")

SITE_ID = "site_id"


def load_training_sites(
    path: Path,
    label_column: str,
    layer: str | None = None,
) -> gpd.GeoDataFrame:
    """Read the labelled training polygons.

    Sites with a null label or a null/empty geometry are dropped with a
    warning.

    Args:
        path: Vector file of training sites.
        label_column: Attribute holding the land-cover class.
        layer: Layer name for multi-layer sources.

    Returns:
        The cleaned sites, index reset to ``0..n-1``.

    Raises:
        CRSError: If the file has no CRS.
        ColumnNotFoundError: If *label_column* is missing.
        TrainingDataError: If no usable site remains.
    """
    sites = read_vector(path, layer)
    Validators.assert_crs_defined(sites.crs, f"Training sites '{Path(path).name}'")
    Validators.assert_columns_exist(sites, [label_column])

    usable = (
        sites[label_column].notna()
        & sites.geometry.notna()
        & ~sites.geometry.is_empty
    )
    dropped = int((~usable).sum())
    if dropped:
        logger.warning(
            "Dropped %d training site(s) with a null label or geometry.", dropped
        )

    sites = sites.loc[usable].reset_index(drop=True)
    if sites.empty:
        raise TrainingDataError(
            f"No usable training sites in '{Path(path).name}'."
        )

    logger.info(
        "Loaded %d training site(s) across %d class(es).",
        len(sites), sites[label_column].nunique(),
    )
    return sites


def extract_training_samples(
    stack: BandStack,
    sites: gpd.GeoDataFrame,
    label_column: str,
) -> pd.DataFrame:
    """Extract the band values under every training site and join labels.

    Sites are reprojected to the stack CRS.  Where polygons overlap, the
    later site wins.  Rows with a NaN in any band (pixels outside the study
    area or source no-data) are dropped.

    Args:
        stack: Reflectance stack to sample.
        sites: Training polygons, e.g. from :func:`load_training_sites`.
        label_column: Attribute holding the land-cover class.

    Returns:
        DataFrame with columns ``site_id``, *label_column* (categorical,
        levels sorted) and one column per band.

    Raises:
        CRSError: If *sites* has no CRS.
        ColumnNotFoundError: If *label_column* is missing.
        TrainingDataError: If no site overlaps a valid pixel.
    """
    Validators.assert_crs_defined(sites.crs, "Training sites")
    Validators.assert_columns_exist(sites, [label_column])

    sites = sites.to_crs(stack.crs.to_wkt()).reset_index(drop=True)
    attributes = pd.DataFrame({
        SITE_ID: np.arange(1, len(sites) + 1, dtype=np.int32),
        label_column: sites[label_column].to_numpy(),
    })

    shapes = [
        (geom, int(site_id))
        for geom, site_id in zip(sites.geometry, attributes[SITE_ID])
        if geom is not None and not geom.is_empty
    ]
    if not shapes:
        raise TrainingDataError("Training sites hold no geometry to extract.")

    site_ids = rasterize(
        shapes,
        out_shape=stack.shape,
        transform=stack.transform,
        fill=0,
        dtype="int32",
    )

    burned = site_ids > 0
    values = pd.DataFrame(stack.data[:, burned].T, columns=stack.band_names)
    values.insert(0, SITE_ID, site_ids[burned])
    complete = values[stack.band_names].notna().all(axis=1)
    logger.debug(
        "Burned %d pixel(s); %d fall on no-data.",
        len(values), int((~complete).sum()),
    )

    samples = values.loc[complete].merge(
        attributes, on=SITE_ID, how="left", validate="many_to_one",
    )

    empty_sites = sorted(set(attributes[SITE_ID]) - set(samples[SITE_ID]))
    if empty_sites:
        logger.warning(
            "%d training site(s) cover no valid pixel: site_id %s",
            len(empty_sites), ", ".join(str(s) for s in empty_sites),
        )

    if samples.empty:
        raise TrainingDataError(
            "No training site overlaps a valid pixel of the clipped scene."
        )

    levels = sorted(samples[label_column].unique())
    samples[label_column] = pd.Categorical(samples[label_column], categories=levels)
    samples = samples[[SITE_ID, label_column, *stack.band_names]].reset_index(drop=True)

    for level, n in samples[label_column].value_counts(sort=False).items():
        logger.info("  %-20s %6d sample(s)", level, n)
    return samples
