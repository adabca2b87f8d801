"""
Land-Cover Classifier — Core Module
====================================
Supervised land-cover classification of a multispectral scene with a
decision tree, end to end:

    band files → stack → (reproject) → clip to study area → reflectance
        → extract training samples → fit tree → classify scene → map

Classes:
    ClassifierConfig      Configuration bundle for the classifier.
    LandCoverClassifier   Primary tool class (inherits GeoTool).

Usage::

    from pathlib import Path
    from landcover_classifier.classifier import LandCoverClassifier, ClassifierConfig

    tool = LandCoverClassifier(
        bands_dir=Path("data/landsat"),
        study_area_path=Path("data/study_area.shp"),
        training_path=Path("data/training_sites.shp"),
        output_dir=Path("output"),
        config=ClassifierConfig(label_column="class", bands=[2, 3, 4, 5, 6, 7]),
    )
    tool.run()

    print(tool.tree.describe())
    print(tool.classified.class_counts())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import geopandas as gpd
import pandas as pd
from matplotlib.figure import Figure

from shared.python.base_tool import GeoTool
from shared.python.exceptions import InputValidationError
from shared.python.validators import Validators

from .bands import DEFAULT_BAND_PATTERN, BandStack, discover_band_files, stack_bands
from .export import write_class_summary, write_classified_geotiff, write_tree_rules
from .model import ClassifiedRaster, LandCoverTree, TreeConfig
from .reflectance import DEFAULT_SCALING, ReflectanceScaling, get_scaling, to_reflectance
from .render import DEFAULT_PALETTE, ClassMapRenderer
from .study_area import VECTOR_EXTENSIONS, clip_to_study_area, load_study_area
from .training import extract_training_samples, load_training_sites

logger = logging.getLogger("landcover.classifier")

GEOTIFF_NAME = "landcover.tif"
MAP_NAME = "landcover_map.png"
RULES_NAME = "tree_rules.txt"
SUMMARY_NAME = "class_summary.csv"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class ClassifierConfig:
    """Configuration for :class:`LandCoverClassifier`.

    Attributes:
        label_column: Training-site attribute holding the land-cover class.
        band_pattern: Regex locating the band number in band file names.
        bands: Band numbers to use.  ``None`` uses every band found.
        scaling: Reflectance preset name or a custom
                 :class:`~landcover_classifier.reflectance.ReflectanceScaling`.
        target_crs: Reproject the stack to this CRS before clipping.
                    ``None`` keeps the CRS of the band files.
        tree: Tree-growing controls.
        palette: One colour per class, in label order.
        map_title: Title of the rendered map.
        study_area_layer: Layer name inside a multi-layer study-area source.
        training_layer: Layer name inside a multi-layer training source.
        write_geotiff: Write ``landcover.tif``.
        write_map: Write ``landcover_map.png``.
        write_rules: Write ``tree_rules.txt``.
        write_summary: Write ``class_summary.csv``.
    """

    label_column: str = "class"
    band_pattern: str = DEFAULT_BAND_PATTERN
    bands: list[int] | None = None
    scaling: ReflectanceScaling | str = DEFAULT_SCALING
    target_crs: str | None = None
    tree: TreeConfig = field(default_factory=TreeConfig)
    palette: tuple[str, ...] = DEFAULT_PALETTE
    map_title: str = "Land-cover classification"
    study_area_layer: str | None = None
    training_layer: str | None = None
    write_geotiff: bool = True
    write_map: bool = True
    write_rules: bool = True
    write_summary: bool = True


# ---------------------------------------------------------------------------
# Main tool class
# ---------------------------------------------------------------------------


class LandCoverClassifier(GeoTool):
    """Classify a satellite scene into land-cover classes with a decision tree.

    Inherits the Template Method pipeline from :class:`~shared.python.GeoTool`.

    Args:
        bands_dir: Directory with one raster file per spectral band.
        study_area_path: Polygon file of the study-area boundary.
        training_path: Polygon file of labelled training sites.
        output_dir: Directory for output files.  Created if missing.
        config: A :class:`ClassifierConfig`.
        verbose: Enable DEBUG-level logging.

    After :meth:`run` the intermediate and final results are available as
    :attr:`stack`, :attr:`samples`, :attr:`tree`, :attr:`classified`,
    :attr:`figure` and :attr:`outputs`.
    """

    def __init__(
        self,
        bands_dir: Path,
        study_area_path: Path,
        training_path: Path,
        output_dir: Path,
        config: ClassifierConfig | None = None,
        *,
        verbose: bool = False,
    ) -> None:
        super().__init__(bands_dir, output_dir, verbose=verbose)
        self.bands_dir: Path = Path(bands_dir)
        self.study_area_path: Path = Path(study_area_path)
        self.training_path: Path = Path(training_path)
        self.output_dir: Path = Path(output_dir)
        self.config = config or ClassifierConfig()

        self._scaling: ReflectanceScaling | None = None
        self._sites: gpd.GeoDataFrame | None = None
        self._stack: BandStack | None = None
        self._samples: pd.DataFrame | None = None
        self._tree: LandCoverTree | None = None
        self._classified: ClassifiedRaster | None = None
        self._figure: Figure | None = None
        self._outputs: dict[str, Path] = {}

    # ------------------------------------------------------------------
    # GeoTool abstract method implementations
    # ------------------------------------------------------------------

    def validate_inputs(self) -> None:
        """Check every input before any raster is read.

        The training sites are read here so the number of classes can be
        checked against the palette before any raster is touched.

        Raises:
            InputValidationError: If a path is missing or has an unsupported
                extension, the scaling preset is unknown, a tree control is
                out of range, or the palette has fewer colours than the
                training sites have classes.
            ColumnNotFoundError: If the label column is missing.
            CRSError: If ``target_crs`` cannot be parsed.
            OutputWriteError: If the output directory cannot be created.
        """
        cfg = self.config
        Validators.assert_directory_exists(self.bands_dir)
        for path in (self.study_area_path, self.training_path):
            Validators.assert_file_exists(path)
            Validators.assert_supported_extension(path, VECTOR_EXTENSIONS)
        Validators.assert_output_dir_writable(self.output_dir)

        self._scaling = get_scaling(cfg.scaling) if isinstance(cfg.scaling, str) else cfg.scaling

        if cfg.target_crs:
            Validators.assert_crs_valid(cfg.target_crs)
        cfg.tree.validate()
        if not cfg.label_column:
            raise InputValidationError("A training label column must be named.")

        sites = load_training_sites(self.training_path, cfg.label_column, cfg.training_layer)
        n_classes = sites[cfg.label_column].nunique()
        if n_classes > len(cfg.palette):
            raise InputValidationError(
                f"Training sites hold {n_classes} land-cover class(es) but the map "
                f"palette has only {len(cfg.palette)} colour(s)."
            )
        self._sites = sites

        logger.debug("Inputs validated.")

    def process(self) -> None:
        """Run the classification workflow and write enabled outputs."""
        cfg = self.config

        band_files = discover_band_files(self.bands_dir, cfg.band_pattern, cfg.bands)
        stack = stack_bands(band_files)
        if cfg.target_crs:
            stack = stack.reproject(cfg.target_crs)

        study_area = load_study_area(self.study_area_path, cfg.study_area_layer)
        stack = clip_to_study_area(stack, study_area)
        stack = to_reflectance(stack, self._scaling or cfg.scaling)
        self._stack = stack

        sites = self._sites
        if sites is None:
            sites = load_training_sites(self.training_path, cfg.label_column, cfg.training_layer)
        samples = extract_training_samples(stack, sites, cfg.label_column)
        self._samples = samples

        tree = LandCoverTree(cfg.tree).fit(samples, cfg.label_column, stack.band_names)
        self._tree = tree
        logger.debug("Tree rules:\n%s", tree.describe())

        classified = tree.predict_raster(stack)
        self._classified = classified

        renderer = ClassMapRenderer(classified, cfg.palette, cfg.map_title)
        self._figure = renderer.figure()

        self._write_outputs(renderer)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _write_outputs(self, renderer: ClassMapRenderer) -> None:
        cfg = self.config
        outputs: dict[str, Path] = {}
        if cfg.write_geotiff:
            outputs["geotiff"] = write_classified_geotiff(
                self.classified, self.output_dir / GEOTIFF_NAME, cfg.palette,
            )
        if cfg.write_map:
            outputs["map"] = renderer.save(self.output_dir / MAP_NAME, figure=self._figure)
        if cfg.write_rules:
            outputs["rules"] = write_tree_rules(self.tree, self.output_dir / RULES_NAME)
        if cfg.write_summary:
            outputs["summary"] = write_class_summary(
                self.classified, self.output_dir / SUMMARY_NAME,
            )
        self._outputs = outputs

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    @property
    def stack(self) -> BandStack | None:
        """Clipped reflectance stack from the last run, or ``None``."""
        return self._stack

    @property
    def samples(self) -> pd.DataFrame | None:
        """Joined training sample table from the last run, or ``None``."""
        return self._samples

    @property
    def tree(self) -> LandCoverTree | None:
        """Fitted :class:`LandCoverTree` from the last run, or ``None``."""
        return self._tree

    @property
    def classified(self) -> ClassifiedRaster | None:
        """Classified scene from the last run, or ``None``."""
        return self._classified

    @property
    def figure(self) -> Figure | None:
        """Rendered map figure from the last run, or ``None``."""
        return self._figure

    @property
    def outputs(self) -> dict[str, Path]:
        """Files written by the last run, keyed by kind."""
        return self._outputs

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"bands_dir={self.bands_dir!r}, "
            f"study_area_path={self.study_area_path!r}, "
            f"training_path={self.training_path!r}, "
            f"output_dir={self.output_dir!r})"
        )
