"""Tests for the validation layer."""

import numpy as np
import pandas as pd
import pytest

import serofoi as sf

from serofoi.exceptions import (
    ConsistencyError,
    DesignError,
    DomainError,
    SchemaError,
    SeroFoiError,
    ShapeError,
)
from serofoi.validation import (
    check_age_constraints,
    validate_foi_index,
    validate_foi_table,
    validate_seroreversion_rate,
    validate_serosurvey,
    validate_simulation_age,
    validate_simulation_age_time,
    validate_survey_features,
)


def test_exceptions_share_base_class():
    for error in (ConsistencyError, DesignError, DomainError, SchemaError, ShapeError):
        assert issubclass(error, SeroFoiError)
        assert issubclass(error, ValueError)


class TestValidateSerosurvey:
    def test_valid_survey_is_returned_unchanged(self, serosurvey):
        assert validate_serosurvey(serosurvey) is serosurvey

    def test_missing_column(self, serosurvey):
        with pytest.raises(SchemaError, match="n_seropositive"):
            validate_serosurvey(serosurvey.drop(columns="n_seropositive"))

    def test_non_numeric_column(self, serosurvey):
        serosurvey["n_sample"] = ["a", "b", "c"]
        with pytest.raises(SchemaError, match="numeric"):
            validate_serosurvey(serosurvey)

    def test_non_positive_sample_size(self, serosurvey):
        serosurvey.loc[0, "n_sample"] = 0
        with pytest.raises(DomainError):
            validate_serosurvey(serosurvey)

    @pytest.mark.parametrize("count", [-1, 101])
    def test_seropositive_out_of_range(self, serosurvey, count):
        serosurvey.loc[1, "n_seropositive"] = count
        with pytest.raises(DomainError):
            validate_serosurvey(serosurvey)

    def test_missing_values(self, serosurvey):
        serosurvey["n_sample"] = [100, np.nan, 100]
        with pytest.raises(SchemaError, match="finite"):
            validate_serosurvey(serosurvey)
        with pytest.raises(SchemaError):
            sf.build_stan_data(serosurvey)

    @pytest.mark.parametrize(
        "column, values",
        [("n_sample", [10.7, 20.0, 100.0]), ("n_seropositive", [1.9, 2.0, 30.0])],
    )
    def test_fractional_counts(self, serosurvey, column, values):
        serosurvey[column] = values
        with pytest.raises(DomainError, match="integer counts"):
            validate_serosurvey(serosurvey)
        with pytest.raises(DomainError):
            sf.build_stan_data(serosurvey)


class TestSurveyFeatures:
    def test_age_constraints(self):
        ok = pd.DataFrame({"age_min": [1, 5], "age_max": [4, 10]})
        touching = pd.DataFrame({"age_min": [1, 5], "age_max": [5, 10]})
        single_ages = pd.DataFrame({"age_min": [1, 2, 3], "age_max": [1, 2, 3]})
        assert check_age_constraints(ok)
        assert not check_age_constraints(touching)
        assert check_age_constraints(single_ages)

    def test_valid_design(self, survey_features):
        validate_survey_features(survey_features)

    def test_not_a_dataframe(self):
        with pytest.raises(SchemaError):
            validate_survey_features({"age_min": [1], "age_max": [2], "n_sample": [3]})

    def test_missing_column(self, survey_features):
        with pytest.raises(SchemaError):
            validate_survey_features(survey_features.drop(columns="n_sample"))

    def test_overlapping_bins(self):
        design = pd.DataFrame(
            {"age_min": [1, 10], "age_max": [10, 20], "n_sample": [5, 5]}
        )
        with pytest.raises(DesignError):
            validate_survey_features(design)

    def test_bins_sharing_a_boundary(self):
        touching = pd.DataFrame(
            {"age_min": [1, 5], "age_max": [5, 10], "n_sample": [5, 5]}
        )
        adjacent = pd.DataFrame(
            {"age_min": [1, 6], "age_max": [5, 10], "n_sample": [5, 5]}
        )
        with pytest.raises(DesignError):
            validate_survey_features(touching)
        validate_survey_features(adjacent)

    def test_inverted_bin(self, constant_time_foi):
        design = pd.DataFrame(
            {"age_min": [1, 30], "age_max": [10, 20], "n_sample": [5, 5]}
        )
        with pytest.raises(DesignError, match="age_min"):
            validate_survey_features(design)
        with pytest.raises(DesignError):
            sf.simulate_serosurvey("time", constant_time_foi, design)


class TestFoiTable:
    def test_valid(self, constant_time_foi):
        validate_foi_table(constant_time_foi, ("year",))

    def test_missing_index_column(self, constant_time_foi):
        with pytest.raises(ShapeError):
            validate_foi_table(constant_time_foi, ("age",))

    def test_extra_column(self, constant_time_foi):
        constant_time_foi["age"] = 1
        with pytest.raises(ShapeError):
            validate_foi_table(constant_time_foi, ("year",))

    def test_negative_foi(self, constant_time_foi):
        constant_time_foi.loc[3, "foi"] = -0.1
        with pytest.raises(DomainError):
            validate_foi_table(constant_time_foi, ("year",))


@pytest.mark.parametrize("rate", [0, 0.0, 0.5, np.float64(1.2)])
def test_valid_seroreversion_rate(rate):
    validate_seroreversion_rate(rate)


@pytest.mark.parametrize("rate", [-0.1, "0.1", None, True, float("nan")])
def test_invalid_seroreversion_rate(rate):
    with pytest.raises(DomainError):
        validate_seroreversion_rate(rate)


class TestSimulationConsistency:
    def test_matching_lengths(self, survey_features, constant_time_foi):
        validate_simulation_age(survey_features, constant_time_foi)

    def test_foi_longer_than_survey(self, survey_features):
        foi = pd.DataFrame({"year": np.arange(1960, 2020), "foi": 0.02})
        with pytest.raises(ConsistencyError, match="should not exceed"):
            validate_simulation_age(survey_features, foi)

    def test_foi_shorter_than_survey(self, survey_features):
        foi = pd.DataFrame({"year": np.arange(1980, 2020), "foi": 0.02})
        with pytest.raises(ConsistencyError):
            validate_simulation_age(survey_features, foi)

    def test_age_time_grid(self):
        design = pd.DataFrame({"age_min": [1], "age_max": [3], "n_sample": [10]})
        years, ages = np.meshgrid(np.arange(2000, 2003), np.arange(1, 4), indexing="ij")
        foi = pd.DataFrame(
            {"year": years.ravel(), "age": ages.ravel(), "foi": 0.1}
        )
        validate_simulation_age_time(design, foi)

        with pytest.raises(ConsistencyError):
            validate_simulation_age_time(design, foi.iloc[:-1])

    def test_years_with_a_gap(self):
        design = pd.DataFrame({"age_min": [1], "age_max": [20], "n_sample": [10]})
        foi = pd.DataFrame(
            {"year": np.append(np.arange(1990, 2009), 2050), "foi": 0.02}
        )
        with pytest.raises(ConsistencyError, match="consecutive"):
            validate_simulation_age(design, foi)

    def test_repeated_ages(self):
        design = pd.DataFrame({"age_min": [1], "age_max": [20], "n_sample": [10]})
        foi = pd.DataFrame({"age": [1] * 20, "foi": 0.02})
        with pytest.raises(ConsistencyError, match="distinct"):
            validate_simulation_age(design, foi)
        with pytest.raises(ConsistencyError):
            sf.simulate_serosurvey("age", foi, design)

    def test_ages_must_start_at_one(self):
        design = pd.DataFrame({"age_min": [1], "age_max": [20], "n_sample": [10]})
        foi = pd.DataFrame({"age": np.arange(2, 22), "foi": 0.02})
        with pytest.raises(ConsistencyError, match="from 1"):
            validate_simulation_age(design, foi)

    def test_age_time_duplicated_row(self):
        design = pd.DataFrame({"age_min": [1], "age_max": [3], "n_sample": [10]})
        years, ages = np.meshgrid(np.arange(2000, 2003), np.arange(1, 4), indexing="ij")
        foi = pd.DataFrame({"year": years.ravel(), "age": ages.ravel(), "foi": 0.1})
        foi = pd.concat([foi, foi.iloc[[4]]], ignore_index=True)
        with pytest.raises(ConsistencyError, match="single row"):
            validate_simulation_age_time(design, foi)
        with pytest.raises(ConsistencyError):
            sf.simulate_serosurvey("age-time", foi, design)


class TestValidateFoiIndex:
    @pytest.fixture
    def age_foi_index(self):
        return pd.DataFrame(
            {"age": np.arange(1, 21), "foi_index": np.repeat([1, 2, 3, 4], 5)}
        )

    def test_valid_index_is_returned(self, serosurvey, age_foi_index):
        assert validate_foi_index(age_foi_index, serosurvey, "age") is age_foi_index

    def test_wrong_length(self, serosurvey, age_foi_index):
        with pytest.raises(ConsistencyError, match="right size"):
            validate_foi_index(age_foi_index.iloc[:-1], serosurvey, "age")

    def test_must_start_at_one(self, serosurvey, age_foi_index):
        age_foi_index["foi_index"] += 1
        with pytest.raises(ConsistencyError, match="start at 1"):
            validate_foi_index(age_foi_index, serosurvey, "age")

    def test_skipped_index(self, serosurvey, age_foi_index):
        age_foi_index.loc[10:, "foi_index"] += 1
        with pytest.raises(ConsistencyError, match="consecutive"):
            validate_foi_index(age_foi_index, serosurvey, "age")

    def test_decreasing_index(self, serosurvey, age_foi_index):
        age_foi_index.loc[19, "foi_index"] = 3
        with pytest.raises(ConsistencyError, match="consecutive"):
            validate_foi_index(age_foi_index, serosurvey, "age")

    def test_missing_column(self, serosurvey, age_foi_index):
        with pytest.raises(SchemaError, match="year"):
            validate_foi_index(age_foi_index, serosurvey, "time")

    def test_invalid_model_type(self, serosurvey, age_foi_index):
        with pytest.raises(ValueError, match="model_type"):
            validate_foi_index(age_foi_index, serosurvey, "constant")
