"""
Land-Cover Classifier — Shared Input Validators
================================================
Static utility methods used to validate common preconditions before
processing begins.

All methods raise an appropriate exception from
:mod:`shared.python.exceptions` rather than returning booleans — this
keeps ``validate_inputs`` implementations simple and readable::

    class MyTool(GeoTool):
        def validate_inputs(self) -> None:
            Validators.assert_directory_exists(self.bands_dir)
            Validators.assert_supported_extension(self.training_path, [".shp"])
            Validators.assert_crs_valid(self.config.target_crs)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

# Lazy import for pyproj so modules that never validate a CRS string avoid
# the import cost at startup.

from shared.python.exceptions import (
    BandIndexError,
    ColumnNotFoundError,
    CRSError,
    InputValidationError,
    OutputWriteError,
)


class Validators:
    """Collection of static precondition checks.

    All methods are ``@staticmethod`` — this class is never instantiated.
    It exists purely as a logical namespace.
    """

    # ------------------------------------------------------------------
    # File-system checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Assert that *path* points to an existing regular file.

        Args:
            path: Path object to check.

        Raises:
            InputValidationError: If *path* does not exist or is a
                directory rather than a file.
        """
        path = Path(path)
        if not path.exists():
            raise InputValidationError(
                f"Input file not found: '{path}'. "
                "Check that the path is correct and the file exists."
            )
        if path.is_dir():
            raise InputValidationError(
                f"Expected a file but got a directory: '{path}'."
            )

    @staticmethod
    def assert_directory_exists(path: Path) -> None:
        """Assert that *path* is an existing directory.

        Raises:
            InputValidationError: If *path* does not exist or is not a
                directory.
        """
        path = Path(path)
        if not path.exists():
            raise InputValidationError(
                f"Input directory not found: '{path}'."
            )
        if not path.is_dir():
            raise InputValidationError(
                f"Expected a directory but got a file: '{path}'."
            )

    @staticmethod
    def assert_output_dir_writable(output_dir: Path) -> None:
        """Create *output_dir* (and any missing parents) if needed.

        Args:
            output_dir: Directory that will receive the tool's output files.

        Raises:
            OutputWriteError: If the directory cannot be created.
        """
        output_dir = Path(output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(str(output_dir), str(exc)) from exc

    @staticmethod
    def assert_supported_extension(path: Path, extensions: Sequence[str]) -> None:
        """Assert that *path* has one of the allowed file extensions.

        Args:
            path: File path to check.
            extensions: Allowed extensions, each starting with a dot
                        (e.g. ``[".shp", ".geojson", ".gpkg"]``).

        Raises:
            InputValidationError: If the file extension is not in
                *extensions*.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        allowed = [ext.lower() for ext in extensions]
        if suffix not in allowed:
            raise InputValidationError(
                f"Unsupported file extension '{suffix}' for '{path.name}'. "
                f"Accepted extensions: {', '.join(allowed)}"
            )

    # ------------------------------------------------------------------
    # CRS / projection checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_crs_valid(crs_string: str) -> None:
        """Assert that *crs_string* can be parsed as a valid CRS.

        Uses :mod:`pyproj` to attempt parsing.  Accepts EPSG codes
        (``"EPSG:32633"``), PROJ strings, and WKT strings.

        Raises:
            CRSError: If *crs_string* is not recognised by pyproj.
        """
        from pyproj import CRS  # noqa: PLC0415
        from pyproj.exceptions import CRSError as ProjCRSError  # noqa: PLC0415

        try:
            CRS.from_user_input(crs_string)
        except ProjCRSError as exc:
            raise CRSError(crs_string) from exc

    @staticmethod
    def assert_crs_defined(crs: Any, label: str) -> None:
        """Assert that a dataset carries a coordinate reference system.

        Args:
            crs: The dataset's CRS object (``None`` when undefined).
            label: Human-readable name of the dataset for the message.

        Raises:
            CRSError: If *crs* is ``None``.
        """
        if crs is None:
            raise CRSError(
                label,
                reason=f"{label} has no coordinate reference system. "
                "Define one (e.g. a .prj sidecar for shapefiles) before classifying.",
            )

    # ------------------------------------------------------------------
    # Tabular data checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_columns_exist(
        df: object,  # pandas DataFrame — typed loosely to avoid hard dep
        required_columns: Sequence[str],
    ) -> None:
        """Assert that all *required_columns* are present in *df*.

        Raises:
            ColumnNotFoundError: On the first missing column found.
        """
        available = list(df.columns)  # type: ignore[attr-defined]
        for col in required_columns:
            if col not in available:
                raise ColumnNotFoundError(col, available)

    # ------------------------------------------------------------------
    # Raster checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_band_numbers_present(
        requested: Sequence[int],
        available: Sequence[int],
    ) -> None:
        """Assert that every requested band number was discovered.

        Args:
            requested: Band numbers asked for by the user.
            available: Band numbers found on disk.

        Raises:
            BandIndexError: On the first requested band that is missing.
        """
        for band in requested:
            if band not in available:
                raise BandIndexError(band, sorted(available))
