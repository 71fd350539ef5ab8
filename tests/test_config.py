"""
Tests for settings, the dataset table and PXWeb metadata.
"""

import copy
import logging
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from geostat.config.datasets import (
    DatasetConfig, DATASETS, CATEGORIES, get_dataset, require_dataset, list_datasets
)
from geostat.config.settings import EngineSettings
from geostat.errors import UnknownDatasetError, error_envelope
from geostat.flatten.metadata import describe_variables


@pytest.fixture
def energy_metadata():
    return {
        "title": "ენერგოინტენსიურობა",
        "variables": [
            {"code": "Year", "text": "წელი", "values": ["2019", "2020"],
             "valueTexts": ["2019", "2020"], "time": True},
            {"code": "Energy intensity", "text": "Energy intensity",
             "values": ["0", "1", "2", "3", "4"],
             "valueTexts": ["A", "B", "C", "D", "E"]},
        ],
        "updated": "2024-05-01",
    }


class TestSettings:
    def test_defaults(self):
        settings = EngineSettings()
        assert settings.base_year == 2017
        assert settings.separator == " - "
        assert settings.is_plausible_year(2020)
        assert not settings.is_plausible_year(1900)

    def test_from_env(self):
        settings = EngineSettings.from_env({
            "GEOSTAT_BASE_YEAR": "2010",
            "GEOSTAT_CACHE_SIZE": "32",
            "GEOSTAT_DEFAULT_LANGUAGE": "en",
        })
        assert settings.base_year == 2010
        assert settings.cache_size == 32
        assert settings.default_language == "en"

    def test_from_env_ignores_bad_values(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = EngineSettings.from_env({
                "GEOSTAT_BASE_YEAR": "soon",
                "GEOSTAT_CACHE_SIZE": "0",
                "GEOSTAT_DEFAULT_LANGUAGE": "fr",
            })
        assert settings.base_year == 2017
        assert settings.cache_size == 256
        assert settings.default_language == "ka"
        assert "GEOSTAT_BASE_YEAR" in caplog.text


class TestDatasets:
    def test_registry_is_consistent(self):
        for dataset_id, config in DATASETS.items():
            assert config.dataset_id == dataset_id
            assert config.category in CATEGORIES
            if config.derivations:
                assert config.derivation_variable

    def test_get_unknown_returns_default(self):
        config = get_dataset("no-such-dataset")
        assert config.dataset_id == "no-such-dataset"
        assert not config.numeric_keys
        assert config.derivations == []
        assert get_dataset(None).dataset_id == ""

    def test_require_unknown(self):
        with pytest.raises(UnknownDatasetError) as exc_info:
            require_dataset("no-such-dataset")
        assert error_envelope(exc_info.value) == {
            "success": False,
            "error": "Dataset not found",
            "message": "Dataset with id 'no-such-dataset' does not exist",
        }

    def test_list_by_category(self):
        energy = list_datasets("energy")
        assert {d["id"] for d in energy} == {
            "energy-intensity", "primary-energy-supply", "final-energy-consumption"
        }
        assert len(list_datasets()) == len(DATASETS)

    def test_overrides_stringified(self):
        config = DatasetConfig("x", year_overrides={0: 2015})
        assert config.year_overrides == {"0": 2015}

    def test_url(self):
        assert DATASETS["population"].url.endswith("01_Population_of_Georgia.px")
        assert DATASETS["forest-fires"].url is None


class TestDescribeVariables:
    def test_appends_derived_labels(self, energy_metadata):
        described = describe_variables(energy_metadata, "energy-intensity", lang="en")
        variable = described["variables"][1]
        assert variable["valueTexts"] == ["A", "B", "C", "D", "E", "Annual change, %"]
        assert variable["values"] == ["0", "1", "2", "3", "4", "5"]

    def test_other_variables_untouched(self, energy_metadata):
        described = describe_variables(energy_metadata, "energy-intensity")
        year = described["variables"][0]
        assert year["values"] == ["0", "1"]
        assert year["valueTexts"] == ["2019", "2020"]
        assert year["time"] is True

    def test_input_not_modified(self, energy_metadata):
        before = copy.deepcopy(energy_metadata)
        describe_variables(energy_metadata, "energy-intensity")
        assert energy_metadata == before

    def test_defaults(self):
        described = describe_variables({}, lang="en")
        assert described["title"] == "Unknown Dataset"
        assert described["variables"] == []
        assert described["language"] == "en"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
