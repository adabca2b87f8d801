"""
Tests — LandCoverClassifier
============================
End-to-end runs on the synthetic scene written by ``conftest.scene_dir``.

After clipping, the 20×20 scene becomes an 18×18 window offset by one
pixel, so scene pixel ``(r, c)`` sits at ``(r - 1, c - 1)``.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pytest
import rasterio

from landcover_classifier.classifier import (
    GEOTIFF_NAME,
    MAP_NAME,
    RULES_NAME,
    SUMMARY_NAME,
    ClassifierConfig,
    LandCoverClassifier,
)
from landcover_classifier.model import ClassifiedRaster, TreeConfig
from shared.python.exceptions import (
    BandIndexError,
    ColumnNotFoundError,
    CRSError,
    InputValidationError,
)


@pytest.fixture()
def make_tool(scene_dir: Path, study_area_path: Path, training_path: Path, tmp_path: Path):
    tools: list[LandCoverClassifier] = []

    def _make(config: ClassifierConfig | None = None, **paths) -> LandCoverClassifier:
        tool = LandCoverClassifier(
            bands_dir=paths.get("bands_dir", scene_dir),
            study_area_path=paths.get("study_area_path", study_area_path),
            training_path=paths.get("training_path", training_path),
            output_dir=paths.get("output_dir", tmp_path / "out"),
            config=config,
        )
        tools.append(tool)
        return tool

    yield _make
    for tool in tools:
        if tool.figure is not None:
            plt.close(tool.figure)


class TestRun:
    def test_full_pipeline(self, make_tool) -> None:
        tool = make_tool()
        tool.run()

        assert tool.stack is not None
        assert tool.stack.shape == (18, 18)
        assert tool.stack.band_names == ["B2", "B3", "B4", "B5"]
        assert tool.tree.is_fitted
        assert tool.tree.levels == ["agriculture", "forest", "urban", "water"]

        codes = tool.classified.codes
        assert codes[4, 4] == 4        # water
        assert codes[4, 14] == 2       # forest
        assert codes[14, 4] == 3       # urban
        assert codes[14, 14] == 1      # agriculture
        # cut-off corner and the scene's no-data pixel are both outside the map
        assert codes[-1, 0] == ClassifiedRaster.NODATA

    def test_samples_follow_clip(self, make_tool) -> None:
        tool = make_tool()
        tool.run()
        counts = tool.samples["class"].value_counts()
        assert counts["urban"] == 33
        assert counts.sum() == 3 * 36 + 33

    def test_outputs_written(self, make_tool, tmp_path: Path) -> None:
        tool = make_tool()
        tool.run()
        out = tmp_path / "out"
        assert set(tool.outputs) == {"geotiff", "map", "rules", "summary"}
        for name in (GEOTIFF_NAME, MAP_NAME, RULES_NAME, SUMMARY_NAME):
            assert (out / name).is_file()
        with rasterio.open(out / GEOTIFF_NAME) as src:
            assert np.array_equal(src.read(1), tool.classified.codes)
            assert src.tags(1)["class_4"] == "water"

    def test_outputs_can_be_disabled(self, make_tool, tmp_path: Path) -> None:
        config = ClassifierConfig(write_geotiff=False, write_map=False, write_rules=False)
        tool = make_tool(config)
        tool.run()
        assert set(tool.outputs) == {"summary"}
        assert not (tmp_path / "out" / MAP_NAME).exists()
        assert tool.figure is not None

    def test_band_subset(self, make_tool) -> None:
        tool = make_tool(ClassifierConfig(bands=[3, 4]))
        tool.run()
        assert tool.tree.feature_columns == ["B3", "B4"]

    def test_target_crs(self, make_tool) -> None:
        tool = make_tool(ClassifierConfig(target_crs="EPSG:32632"))
        tool.run()
        assert tool.classified.crs.to_epsg() == 32632
        assert set(tool.classified.class_counts().index) == {
            "agriculture", "forest", "urban", "water",
        }


class TestValidation:
    def test_missing_bands_dir(self, make_tool, tmp_path: Path) -> None:
        with pytest.raises(InputValidationError):
            make_tool(bands_dir=tmp_path / "nope").run()

    def test_unsupported_training_extension(self, make_tool, tmp_path: Path) -> None:
        csv = tmp_path / "sites.csv"
        csv.write_text("class\nwater\n", encoding="utf-8")
        with pytest.raises(InputValidationError, match="Unsupported"):
            make_tool(training_path=csv).run()

    def test_unknown_sensor(self, make_tool) -> None:
        with pytest.raises(InputValidationError, match="Unknown reflectance preset"):
            make_tool(ClassifierConfig(scaling="modis")).run()

    def test_bad_target_crs(self, make_tool) -> None:
        with pytest.raises(CRSError):
            make_tool(ClassifierConfig(target_crs="EPSG:999999")).run()

    def test_missing_band(self, make_tool) -> None:
        with pytest.raises(BandIndexError) as info:
            make_tool(ClassifierConfig(bands=[2, 3, 9])).run()
        assert info.value.band_number == 9
        assert info.value.available == [2, 3, 4, 5]

    def test_missing_label_column(self, make_tool) -> None:
        with pytest.raises(ColumnNotFoundError):
            make_tool(ClassifierConfig(label_column="landcover")).run()

    def test_empty_palette(self, make_tool) -> None:
        with pytest.raises(InputValidationError, match="palette"):
            make_tool(ClassifierConfig(palette=())).run()

    def test_palette_shorter_than_classes(self, make_tool) -> None:
        tool = make_tool(ClassifierConfig(palette=("#1a9850", "#fee08b", "#4575b4")))
        with pytest.raises(InputValidationError, match="4 land-cover class"):
            tool.run()
        assert tool.stack is None
        assert tool.tree is None

    @pytest.mark.parametrize(
        "tree",
        [
            TreeConfig(min_split=1),
            TreeConfig(min_bucket=0),
            TreeConfig(max_depth=0),
            TreeConfig(complexity=-0.5),
        ],
    )
    def test_invalid_tree_controls(self, make_tool, tree: TreeConfig) -> None:
        tool = make_tool(ClassifierConfig(tree=tree))
        with pytest.raises(InputValidationError):
            tool.run()
        assert tool.stack is None

    def test_output_dir_created(self, make_tool, tmp_path: Path) -> None:
        target = tmp_path / "deep" / "nested"
        make_tool(output_dir=target).validate_inputs()
        assert target.is_dir()


def test_repr_names_every_input(make_tool, study_area_path: Path, training_path: Path) -> None:
    text = repr(make_tool())
    assert text.startswith("LandCoverClassifier(")
    assert "bands_dir=" in text
    assert str(study_area_path) in text
    assert str(training_path) in text
