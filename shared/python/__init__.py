"""
Land-Cover Classifier — Shared Python Package
==============================================
Re-exports the shared base class, exception hierarchy, and validator
utilities so tool modules can import from a single location::

    from shared.python import GeoTool, Validators
    from shared.python.exceptions import CRSError
"""

from shared.python.base_tool import GeoTool
from shared.python.exceptions import (
    BandIndexError,
    ClassificationError,
    ColumnNotFoundError,
    CRSError,
    InputValidationError,
    LandCoverError,
    OutputWriteError,
    RasterError,
    TrainingDataError,
)
from shared.python.validators import Validators

__all__ = [
    "GeoTool",
    "Validators",
    "LandCoverError",
    "InputValidationError",
    "ColumnNotFoundError",
    "CRSError",
    "RasterError",
    "BandIndexError",
    "TrainingDataError",
    "ClassificationError",
    "OutputWriteError",
]
