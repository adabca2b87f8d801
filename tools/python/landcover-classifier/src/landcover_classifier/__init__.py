"""
Land-Cover Classifier
=====================
Supervised land-cover classification of multispectral satellite imagery
with a decision tree.

Submodules
----------
bands        -- Discover per-band raster files and stack them
study_area   -- Load the study-area boundary; crop and mask the stack
reflectance  -- Convert digital numbers to reflectance
training     -- Extract pixel samples under labelled training sites
model        -- Fit the decision tree and classify every pixel
render       -- Thematic map with a fixed palette and legend
export       -- GeoTIFF, tree rules and class summary outputs
classifier   -- End-to-end tool (``LandCoverClassifier``)
"""

from landcover_classifier.bands import BandStack, discover_band_files, stack_bands
from landcover_classifier.classifier import ClassifierConfig, LandCoverClassifier
from landcover_classifier.model import ClassifiedRaster, LandCoverTree, TreeConfig
from landcover_classifier.reflectance import (
    SCALING_PRESETS,
    ReflectanceScaling,
    to_reflectance,
)
from landcover_classifier.render import DEFAULT_PALETTE, ClassMapRenderer
from landcover_classifier.study_area import clip_to_study_area, load_study_area
from landcover_classifier.training import extract_training_samples, load_training_sites

__version__ = "1.0.0"
__all__ = [
    "LandCoverClassifier",
    "ClassifierConfig",
    "BandStack",
    "discover_band_files",
    "stack_bands",
    "load_study_area",
    "clip_to_study_area",
    "ReflectanceScaling",
    "SCALING_PRESETS",
    "to_reflectance",
    "load_training_sites",
    "extract_training_samples",
    "LandCoverTree",
    "TreeConfig",
    "ClassifiedRaster",
    "ClassMapRenderer",
    "DEFAULT_PALETTE",
]
