"""
Land-Cover Classifier — Decision Tree
======================================
Fits a classification tree (CART) to the training sample table and applies
it to every pixel of a band stack.

Tree induction is delegated to :class:`sklearn.tree.DecisionTreeClassifier`.
:class:`TreeConfig` exposes the recursive-partitioning controls analysts are
used to (minimum split size, minimum bucket size, complexity parameter) and
maps them onto scikit-learn's hyper-parameters.

Classes:
    TreeConfig          Tree-growing controls.
    ClassifiedRaster    Per-pixel class codes plus their label levels.
    LandCoverTree       Fit / predict wrapper around the CART classifier.

Usage::

    tree = LandCoverTree(TreeConfig(min_split=10)).fit(samples, "class")
    classified = tree.predict_raster(reflectance_stack)
    print(tree.describe())
    print(classified.class_counts())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Hashable, Literal, Sequence

import numpy as np
import numpy.typing as npt
import pandas as pd
from rasterio.crs import CRS
from rasterio.transform import Affine
from sklearn.tree import DecisionTreeClassifier, export_text

from shared.python.exceptions import (
    ClassificationError,
    InputValidationError,
    TrainingDataError,
)
from shared.python.validators import Validators

from .bands import BandStack
from .training import SITE_ID

logger = logging.getLogger("landcover.model")

# Codes 1..255 are available for classes; 0 is no-data.
MAX_CLASSES = 255


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class TreeConfig:
    """Controls for growing the classification tree.

    Attributes:
        criterion: Split quality measure, ``"gini"`` or ``"entropy"``.
        min_split: Minimum samples in a node before a split is attempted.
        min_bucket: Minimum samples in any leaf.
        max_depth: Maximum depth of the tree.
        complexity: Complexity parameter.  A split is kept only when it
            lowers impurity by at least this fraction of the root node's
            impurity.
        random_state: Seed for tie-breaking between equally good splits.
    """

    criterion: Literal["gini", "entropy"] = "gini"
    min_split: int = 20
    min_bucket: int = 7
    max_depth: int = 30
    complexity: float = 0.01
    random_state: int | None = 0

    def validate(self) -> None:
        """Check the controls before any data is read.

        Raises:
            InputValidationError: On the first out-of-range control.
        """
        if self.criterion not in ("gini", "entropy"):
            raise InputValidationError(
                f"Tree criterion must be 'gini' or 'entropy'; got {self.criterion!r}."
            )
        if self.min_split < 2:
            raise InputValidationError(f"min_split must be at least 2; got {self.min_split}.")
        if self.min_bucket < 1:
            raise InputValidationError(f"min_bucket must be at least 1; got {self.min_bucket}.")
        if self.max_depth < 1:
            raise InputValidationError(f"max_depth must be at least 1; got {self.max_depth}.")
        if self.complexity < 0:
            raise InputValidationError(
                f"complexity must not be negative; got {self.complexity}."
            )


# ---------------------------------------------------------------------------
# Prediction result
# ---------------------------------------------------------------------------


@dataclass
class ClassifiedRaster:
    """A classified scene.

    Attributes:
        codes: uint8 array ``(rows, cols)``; ``0`` is no-data and code
            ``i + 1`` stands for ``levels[i]``.
        levels: Land-cover labels in code order.
        transform: Affine transform of the grid.
        crs: Coordinate reference system of the grid.
    """

    NODATA: ClassVar[int] = 0

    codes: npt.NDArray[np.uint8]
    levels: list[Hashable]
    transform: Affine
    crs: CRS
    feature_names: list[str] = field(default_factory=list)

    @property
    def shape(self) -> tuple[int, int]:
        return int(self.codes.shape[0]), int(self.codes.shape[1])

    @property
    def pixel_area(self) -> float:
        """Area of one pixel in squared CRS units."""
        return abs(self.transform.a * self.transform.e - self.transform.b * self.transform.d)

    def labels(self) -> npt.NDArray[np.object_]:
        """Per-pixel labels as an object array (``None`` for no-data)."""
        lookup = np.array([None, *self.levels], dtype=object)
        return lookup[self.codes]

    def class_counts(self) -> pd.Series:
        """Number of pixels assigned to each level."""
        counts = np.bincount(self.codes.ravel(), minlength=len(self.levels) + 1)
        return pd.Series(
            counts[1:len(self.levels) + 1], index=pd.Index(self.levels, name="label"),
            name="pixels",
        )

    def class_areas(self) -> pd.Series:
        """Area covered by each level in squared CRS units."""
        return (self.class_counts() * self.pixel_area).rename("area")

    def summary(self) -> pd.DataFrame:
        """One row per level: label, code, pixels, area."""
        counts = self.class_counts()
        return pd.DataFrame({
            "label": [str(level) for level in self.levels],
            "code": np.arange(1, len(self.levels) + 1),
            "pixels": counts.to_numpy(),
            "area": counts.to_numpy() * self.pixel_area,
        })


# ---------------------------------------------------------------------------
# Tree wrapper
# ---------------------------------------------------------------------------


class LandCoverTree:
    """Fit a CART classifier on training samples and classify band stacks.

    Args:
        config: A :class:`TreeConfig`; defaults apply when omitted.
    """

    def __init__(self, config: TreeConfig | None = None) -> None:
        self.config = config or TreeConfig()
        self.levels: list[Hashable] = []
        self.feature_columns: list[str] = []
        self._model: DecisionTreeClassifier | None = None

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def fit(
        self,
        samples: pd.DataFrame,
        label_column: str,
        feature_columns: Sequence[str] | None = None,
    ) -> LandCoverTree:
        """Grow the tree from the joined sample table.

        Args:
            samples: One row per training pixel, e.g. from
                :func:`~landcover_classifier.training.extract_training_samples`.
            label_column: Column holding the land-cover label.
            feature_columns: Predictor columns.  Defaults to every column
                except the label and ``site_id``.

        Returns:
            ``self``, so calls can be chained.

        Raises:
            ColumnNotFoundError: If a named column is missing.
            InputValidationError: If the tree controls are out of range.
            TrainingDataError: If fewer than two classes have complete
                samples.
        """
        cfg = self.config
        cfg.validate()
        Validators.assert_columns_exist(samples, [label_column])
        features = list(feature_columns) if feature_columns else [
            c for c in samples.columns if c not in (label_column, SITE_ID)
        ]
        Validators.assert_columns_exist(samples, features)

        X = samples[features].to_numpy(dtype=np.float32)
        labels = samples[label_column]
        keep = labels.notna().to_numpy() & np.all(np.isfinite(X), axis=1)
        X, labels = X[keep], labels[keep]

        if isinstance(labels.dtype, pd.CategoricalDtype):
            candidates = list(labels.cat.categories)
        else:
            candidates = sorted(labels.unique())
        present = set(labels)
        levels = [level for level in candidates if level in present]

        if len(levels) < 2:
            raise TrainingDataError(
                f"At least two land-cover classes with complete samples are needed "
                f"to fit a tree; found {len(levels)} "
                f"({', '.join(str(lv) for lv in levels) or 'none'})."
            )
        if len(levels) > MAX_CLASSES:
            raise TrainingDataError(
                f"{len(levels)} classes exceed the {MAX_CLASSES} supported by a uint8 map."
            )

        y = pd.Categorical(labels, categories=levels).codes

        model = DecisionTreeClassifier(
            criterion=cfg.criterion,
            min_samples_split=cfg.min_split,
            min_samples_leaf=cfg.min_bucket,
            max_depth=cfg.max_depth,
            min_impurity_decrease=cfg.complexity * _root_impurity(y, cfg.criterion),
            random_state=cfg.random_state,
        )
        model.fit(X, y)

        self._model = model
        self.levels = levels
        self.feature_columns = features
        logger.info(
            "Fitted decision tree on %d sample(s), %d feature(s): depth=%d, leaves=%d",
            len(y), len(features), model.get_depth(), model.get_n_leaves(),
        )
        return self

    @property
    def is_fitted(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> DecisionTreeClassifier:
        """The underlying fitted scikit-learn estimator."""
        return self._require_model()

    @property
    def feature_importances(self) -> pd.Series:
        """Normalised impurity decrease contributed by each feature."""
        model = self._require_model()
        return pd.Series(model.feature_importances_, index=self.feature_columns, name="importance")

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(self, features: pd.DataFrame) -> pd.Categorical:
        """Predict labels for a table holding the trained feature columns."""
        model = self._require_model()
        Validators.assert_columns_exist(features, self.feature_columns)
        X = features[self.feature_columns].to_numpy(dtype=np.float32)
        return pd.Categorical.from_codes(model.predict(X), categories=self.levels)

    def predict_raster(
        self,
        stack: BandStack,
        chunk_size: int = 1_000_000,
    ) -> ClassifiedRaster:
        """Classify every pixel of *stack*.

        Pixels with NaN in any band receive the no-data code ``0``.

        Args:
            stack: Band stack with the same band names, in the same order,
                as the training features.
            chunk_size: Pixels passed to the estimator per call.

        Raises:
            ClassificationError: If the tree is not fitted or the stack's
                bands do not match the training features.
        """
        model = self._require_model()
        if list(stack.band_names) != self.feature_columns:
            raise ClassificationError(
                f"Band stack ({', '.join(stack.band_names)}) does not match the "
                f"trained features ({', '.join(self.feature_columns)})."
            )

        rows, cols = stack.shape
        pixels = stack.data.reshape(stack.count, -1).T
        valid_idx = np.flatnonzero(np.all(np.isfinite(pixels), axis=1))
        codes = np.full(rows * cols, ClassifiedRaster.NODATA, dtype=np.uint8)

        for start in range(0, valid_idx.size, chunk_size):
            idx = valid_idx[start:start + chunk_size]
            codes[idx] = model.predict(pixels[idx]).astype(np.uint8) + 1

        classified = ClassifiedRaster(
            codes=codes.reshape(rows, cols),
            levels=list(self.levels),
            transform=stack.transform,
            crs=stack.crs,
            feature_names=list(self.feature_columns),
        )
        logger.info("Classified %d of %d pixel(s).", valid_idx.size, rows * cols)
        for level, n in classified.class_counts().items():
            logger.debug("  %-20s %8d px", level, n)
        return classified

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def describe(self) -> str:
        """Return the fitted tree as indented text rules."""
        model = self._require_model()
        return export_text(
            model,
            feature_names=self.feature_columns,
            class_names=[str(self.levels[code]) for code in model.classes_],
            max_depth=self.config.max_depth,
        )

    def _require_model(self) -> DecisionTreeClassifier:
        if self._model is None:
            raise ClassificationError("The decision tree has not been fitted yet.")
        return self._model


def _root_impurity(y: npt.NDArray[np.integer], criterion: str) -> float:
    """Impurity of the root node for class codes *y*."""
    if y.size == 0:
        return 0.0
    p = np.bincount(y) / y.size
    p = p[p > 0]
    if criterion == "entropy":
        return float(-(p * np.log2(p)).sum())
    return float(1.0 - (p ** 2).sum())
