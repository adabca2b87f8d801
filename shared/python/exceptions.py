"""
Land-Cover Classifier — Custom Exception Hierarchy
===================================================
Every module in the project raises exceptions from this module so callers
can catch them at the right level of granularity.

Hierarchy::

    LandCoverError                       ← catch-all base
    ├── InputValidationError             ← bad files, missing columns, etc.
    │   └── ColumnNotFoundError          ← attribute-table column missing
    ├── CRSError                         ← invalid / missing CRS
    ├── RasterError                      ← rasterio / numpy raster issues
    │   └── BandIndexError               ← requested band does not exist
    ├── TrainingDataError                ← unusable training sites / samples
    ├── ClassificationError              ← fitting or prediction failures
    └── OutputWriteError                 ← cannot write to output path

Usage::

    from shared.python.exceptions import CRSError

    raise CRSError("EPSG:99999")
"""

from __future__ import annotations

from typing import Sequence


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class LandCoverError(Exception):
    """Base exception for the land-cover classifier.

    Catch this to handle any project error without caring about the exact
    subtype.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(LandCoverError):
    """Raised when inputs fail pre-processing validation.

    This is the parent class for more specific input problems.
    """


class ColumnNotFoundError(InputValidationError):
    """Raised when an expected column is absent from an attribute table.

    Args:
        column: The name of the missing column.
        available: Column names that ARE present, used to build a helpful
                   error message.

    Example::

        raise ColumnNotFoundError("class", list(sites.columns))
    """

    def __init__(self, column: str, available: Sequence[str]) -> None:
        available_str = ", ".join(f"'{c}'" for c in available)
        super().__init__(
            f"Column '{column}' not found. Available columns: {available_str}"
        )
        self.column: str = column
        self.available: list[str] = list(available)


# ---------------------------------------------------------------------------
# CRS
# ---------------------------------------------------------------------------


class CRSError(LandCoverError):
    """Raised when a coordinate reference system is missing or cannot be
    parsed.

    Args:
        crs_string: The raw CRS string that caused the error, or a short
                    description of the dataset that has no CRS.
        reason: Optional override for the default explanation.

    Example::

        raise CRSError("EPSG:99999")
    """

    def __init__(self, crs_string: str, reason: str | None = None) -> None:
        super().__init__(
            reason
            or f"Invalid or unrecognised CRS: '{crs_string}'. "
            "Use an EPSG code (e.g. 'EPSG:32633') or a valid WKT/PROJ string."
        )
        self.crs_string: str = crs_string


# ---------------------------------------------------------------------------
# Raster
# ---------------------------------------------------------------------------


class RasterError(LandCoverError):
    """Raised for general raster processing failures (rasterio / numpy).

    Subclass this for more specific raster errors.
    """


class BandIndexError(RasterError):
    """Raised when a requested spectral band number was not found.

    Args:
        band_number: The band number that was requested (as embedded in
                     the band file name, e.g. ``4`` for ``..._B4.TIF``).
        available: Band numbers that were discovered.

    Example::

        raise BandIndexError(band_number=8, available=[2, 3, 4, 5])
    """

    def __init__(self, band_number: int, available: Sequence[int]) -> None:
        found = ", ".join(str(b) for b in available) or "none"
        super().__init__(
            f"Band {band_number} was not found. Available band numbers: {found}."
        )
        self.band_number: int = band_number
        self.available: list[int] = list(available)


# ---------------------------------------------------------------------------
# Training / classification
# ---------------------------------------------------------------------------


class TrainingDataError(LandCoverError):
    """Raised when training sites cannot produce a usable sample table.

    Common causes: no site overlaps the clipped scene, every site has a null
    label, or only one land-cover class is left after extraction.
    """


class ClassificationError(LandCoverError):
    """Raised when the decision tree cannot be fitted or applied.

    Common causes: predicting before fitting, or a band stack whose bands
    differ from the ones the tree was trained on.
    """


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputWriteError(LandCoverError):
    """Raised when an output file cannot be written to disk.

    Args:
        output_path: String representation of the path that failed.
        reason: Underlying OS or library error message.

    Example::

        raise OutputWriteError("/read-only/dir/landcover.tif", "Permission denied")
    """

    def __init__(self, output_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to write output to '{output_path}': {reason}"
        )
        self.output_path: str = output_path
        self.reason: str = reason
