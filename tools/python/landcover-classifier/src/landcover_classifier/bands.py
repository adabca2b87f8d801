"""
Land-Cover Classifier — Band Discovery & Stacking
==================================================
Finds the single-band raster files of a satellite scene, reads them into one
in-memory multi-band stack, and reprojects stacks between coordinate
reference systems.

Each scene is delivered as one file per spectral band with the band number
embedded in the file name, e.g. Landsat 8/9 Collection 2::

    LC08_L2SP_044034_20210508_20210518_02_T1_SR_B2.TIF
    LC08_L2SP_044034_20210508_20210518_02_T1_SR_B3.TIF
    ...

or Sentinel-2 L2A (``T10SEG_20210510T184919_B04_10m.jp2``).

Classes:
    BandStack           In-memory ``(bands, rows, cols)`` float32 stack.

Functions:
    discover_band_files Map band number → file path for a scene directory.
    stack_bands         Read band files onto a common grid.

Usage::

    from pathlib import Path
    from landcover_classifier.bands import discover_band_files, stack_bands

    files = discover_band_files(Path("data/landsat"), bands=[2, 3, 4, 5])
    stack = stack_bands(files)
    print(stack)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Sequence

import numpy as np
import numpy.typing as npt
import rasterio
from rasterio.crs import CRS
from rasterio.errors import CRSError as RasterioCRSError, RasterioIOError
from rasterio.transform import Affine, array_bounds
from rasterio.warp import Resampling, calculate_default_transform, reproject

from shared.python.exceptions import CRSError, InputValidationError, RasterError
from shared.python.validators import Validators

logger = logging.getLogger("landcover.bands")

# One capture group holding the band number.  Matches ``_B4.TIF``,
# ``_B04.tif``, ``_B10.TIF`` and Sentinel-2 ``_B04_10m.jp2``.
DEFAULT_BAND_PATTERN = r"_B0?(\d{1,2})(?:_\d+m)?\.(?:tif|tiff|jp2)$"


# ---------------------------------------------------------------------------
# Band stack
# ---------------------------------------------------------------------------


@dataclass
class BandStack:
    """A multi-band raster held in memory.

    No-data cells are stored as ``NaN`` in every band so that arithmetic
    (reflectance scaling, prediction) propagates them naturally.

    Attributes:
        data: float32 array shaped ``(bands, rows, cols)``.
        transform: Affine pixel → map transform of the grid.
        crs: Coordinate reference system of the grid.
        band_names: One name per band, e.g. ``["B2", "B3", "B4", "B5"]``.
    """

    data: npt.NDArray[np.float32]
    transform: Affine
    crs: CRS
    band_names: list[str]

    def __post_init__(self) -> None:
        if self.data.ndim != 3:
            raise RasterError(
                f"Band stack must be 3-D (bands, rows, cols); got shape {self.data.shape}."
            )
        if len(self.band_names) != self.data.shape[0]:
            raise RasterError(
                f"{len(self.band_names)} band name(s) given for "
                f"{self.data.shape[0]} band(s)."
            )

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def count(self) -> int:
        """Number of bands."""
        return int(self.data.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        """``(rows, cols)`` of the grid."""
        return int(self.data.shape[1]), int(self.data.shape[2])

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(west, south, east, north)`` in CRS units."""
        rows, cols = self.shape
        return array_bounds(rows, cols, self.transform)

    @property
    def valid_mask(self) -> npt.NDArray[np.bool_]:
        """``True`` where every band holds a finite value."""
        return np.all(np.isfinite(self.data), axis=0)

    def band(self, name: str) -> npt.NDArray[np.float32]:
        """Return the 2-D array for band *name*.

        Raises:
            RasterError: If the stack has no band called *name*.
        """
        try:
            return self.data[self.band_names.index(name)]
        except ValueError as exc:
            raise RasterError(
                f"Band '{name}' is not in the stack ({', '.join(self.band_names)})."
            ) from exc

    def with_data(
        self,
        data: npt.NDArray[np.float32],
        transform: Affine | None = None,
    ) -> BandStack:
        """Return a copy of this stack carrying *data* (and optionally a new transform)."""
        return replace(
            self,
            data=data,
            transform=self.transform if transform is None else transform,
            band_names=list(self.band_names),
        )

    def to_profile(self) -> dict[str, Any]:
        """rasterio profile for writing the stack as a float32 GeoTIFF."""
        rows, cols = self.shape
        return {
            "driver": "GTiff",
            "dtype": "float32",
            "count": self.count,
            "height": rows,
            "width": cols,
            "crs": self.crs,
            "transform": self.transform,
            "nodata": np.nan,
        }

    # ------------------------------------------------------------------
    # Reprojection
    # ------------------------------------------------------------------

    def reproject(self, dst_crs: str | CRS) -> BandStack:
        """Warp every band to *dst_crs* with nearest-neighbour resampling.

        The output grid (transform and size) is the default computed by
        :func:`rasterio.warp.calculate_default_transform`.

        Args:
            dst_crs: Target CRS — EPSG code, PROJ or WKT string, or a
                     :class:`rasterio.crs.CRS`.

        Raises:
            CRSError: If *dst_crs* cannot be parsed.
        """
        try:
            target = CRS.from_user_input(dst_crs)
        except RasterioCRSError as exc:
            raise CRSError(str(dst_crs)) from exc

        if target == self.crs:
            logger.debug("Stack already in %s; nothing to reproject.", target)
            return self.with_data(self.data.copy())

        rows, cols = self.shape
        west, south, east, north = self.bounds
        dst_transform, width, height = calculate_default_transform(
            self.crs, target, cols, rows,
            left=west, bottom=south, right=east, top=north,
        )
        out = np.full((self.count, height, width), np.nan, dtype=np.float32)
        for i in range(self.count):
            reproject(
                source=self.data[i],
                destination=out[i],
                src_transform=self.transform,
                src_crs=self.crs,
                src_nodata=np.nan,
                dst_transform=dst_transform,
                dst_crs=target,
                dst_nodata=np.nan,
                resampling=Resampling.nearest,
            )

        logger.info("Reprojected stack %s → %s (%d×%d px)", self.crs, target, height, width)
        return BandStack(
            data=out,
            transform=dst_transform,
            crs=target,
            band_names=list(self.band_names),
        )

    def __str__(self) -> str:
        rows, cols = self.shape
        return (
            f"BandStack({', '.join(self.band_names)}; {rows}×{cols} px; "
            f"crs={self.crs}; valid_px={int(self.valid_mask.sum()):,})"
        )


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def discover_band_files(
    directory: Path,
    pattern: str = DEFAULT_BAND_PATTERN,
    bands: Sequence[int] | None = None,
) -> dict[int, Path]:
    """Find the per-band raster files of a scene.

    Args:
        directory: Directory holding one raster file per spectral band.
        pattern: Regular expression searched (case-insensitively) in each
                 file name.  Its first capture group must hold the band
                 number.
        bands: Optional subset of band numbers to keep.  ``None`` keeps
               every band found.

    Returns:
        Mapping of band number → file path, sorted by band number.

    Raises:
        InputValidationError: If the directory is missing, nothing matches
            *pattern*, or two files claim the same band number.
        BandIndexError: If a requested band number was not found.
    """
    directory = Path(directory)
    Validators.assert_directory_exists(directory)

    try:
        regex = re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise InputValidationError(f"Invalid band file pattern {pattern!r}: {exc}") from exc
    if regex.groups < 1:
        raise InputValidationError(
            f"Band file pattern {pattern!r} needs a capture group for the band number."
        )

    found: dict[int, Path] = {}
    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue
        match = regex.search(path.name)
        if match is None:
            continue
        number = int(match.group(1))
        if number in found:
            raise InputValidationError(
                f"Band {number} matched twice: '{found[number].name}' and '{path.name}'."
            )
        found[number] = path
        logger.debug("Band %d → %s", number, path.name)

    if not found:
        raise InputValidationError(
            f"No band files in '{directory}' match pattern {pattern!r}."
        )

    if bands:
        Validators.assert_band_numbers_present(bands, list(found))
        found = {b: found[b] for b in bands}

    logger.info("Discovered %d band file(s): %s", len(found), sorted(found))
    return dict(sorted(found.items()))


# ---------------------------------------------------------------------------
# Stacking
# ---------------------------------------------------------------------------


def stack_bands(band_files: Mapping[int, Path]) -> BandStack:
    """Read band files into one :class:`BandStack`.

    The first file (lowest band number) defines the reference grid.  Any
    band on a different CRS, transform or size is warped onto that grid
    with nearest-neighbour resampling.  Source no-data cells become NaN.

    Args:
        band_files: Mapping of band number → single-band raster path, as
                    returned by :func:`discover_band_files`.

    Raises:
        InputValidationError: If *band_files* is empty.
        RasterError: If a file cannot be opened by rasterio.
        CRSError: If a band file has no CRS.
    """
    if not band_files:
        raise InputValidationError("No band files were given to stack.")

    ref_crs: CRS | None = None
    ref_transform: Affine | None = None
    ref_shape: tuple[int, int] | None = None
    layers: list[npt.NDArray[np.float32]] = []
    names: list[str] = []

    for number, path in sorted(band_files.items()):
        path = Path(path)
        try:
            with rasterio.open(path) as src:
                Validators.assert_crs_defined(src.crs, f"Band file '{path.name}'")
                array = src.read(1, masked=True).astype(np.float32).filled(np.nan)
                src_crs, src_transform = src.crs, src.transform
        except RasterioIOError as exc:
            raise RasterError(f"Could not open band file '{path}': {exc}") from exc

        if ref_crs is None:
            ref_crs, ref_transform, ref_shape = src_crs, src_transform, array.shape
        elif (
            src_crs != ref_crs
            or array.shape != ref_shape
            or src_transform != ref_transform
        ):
            logger.info("Band %d is on a different grid; resampling onto the reference grid.", number)
            warped = np.full(ref_shape, np.nan, dtype=np.float32)
            reproject(
                source=array,
                destination=warped,
                src_transform=src_transform,
                src_crs=src_crs,
                src_nodata=np.nan,
                dst_transform=ref_transform,
                dst_crs=ref_crs,
                dst_nodata=np.nan,
                resampling=Resampling.nearest,
            )
            array = warped

        layers.append(array)
        names.append(f"B{number}")
        logger.debug("Loaded band %d from %s", number, path.name)

    stack = BandStack(
        data=np.stack(layers).astype(np.float32, copy=False),
        transform=ref_transform,  # type: ignore[arg-type]
        crs=ref_crs,  # type: ignore[arg-type]
        band_names=names,
    )
    logger.info("Stacked %s", stack)
    return stack
