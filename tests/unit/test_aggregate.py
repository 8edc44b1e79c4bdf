"""Unit tests for population-weighted aggregation.

Tests cover:
- Capital region detection
- Weighted value arithmetic
- Grouped aggregates with and without exclusion
- Empty inputs
"""

import math

import numpy as np
import pandas as pd
import pytest

from factcheck.config import CAPITAL_PREFIXES, Units
from factcheck.transform.aggregate import (
    AGGREGATE_COLUMNS,
    capital_region_predicate,
    is_capital_region,
    summarize_group,
    weighted_aggregate,
    weighted_value,
)

UK_PREFIXES = {"GBR": "UKI"}


def _records(rows, units):
    frame = pd.DataFrame(rows, columns=["country", "region", "level", "year", "gdp", "pop"])
    frame["gdp_pc"] = units.per_capita(frame["gdp"], frame["pop"])
    return frame


# ============================================================================
# Capital Region Tests
# ============================================================================

@pytest.mark.unit
class TestCapitalRegion:
    """Test the prefix-based capital lookup."""

    @pytest.mark.parametrize(
        "country,region,expected",
        [
            ("GBR", "UKI", True),
            ("GBR", "UKI31", True),
            ("GBR", "UKC11", False),
            ("DEU", "DE300", True),
            ("DEU", "DE111", False),
            ("NLD", "NL329", True),
            ("NLD", "NL310", False),
            ("USA", "US11", True),
            ("USA", "US28", False),
            ("FRA", "FR101", False),
        ],
    )
    def test_is_capital_region(self, country, region, expected):
        assert is_capital_region(country, region, CAPITAL_PREFIXES) is expected

    def test_predicate_aligns_with_frame_index(self, per_capita_records):
        """Flags keep the index of a filtered frame."""
        subset = per_capita_records[per_capita_records["country"] == "GBR"].iloc[1:]
        flags = capital_region_predicate(UK_PREFIXES)(subset)

        assert flags.index.equals(subset.index)
        assert flags.tolist() == [True, False, False]

    def test_predicate_on_country_without_prefix(self, per_capita_records):
        flags = capital_region_predicate(UK_PREFIXES)(per_capita_records)

        assert not flags[per_capita_records["country"] == "USA"].any()

    def test_predicate_matches_row_lookup(self, per_capita_records):
        """The frame predicate agrees with the scalar lookup on every row."""
        flags = capital_region_predicate(CAPITAL_PREFIXES)(per_capita_records)
        expected = [
            is_capital_region(country, region, CAPITAL_PREFIXES)
            for country, region in zip(per_capita_records["country"], per_capita_records["region"])
        ]

        assert flags.dtype == bool
        assert flags.tolist() == expected

    def test_predicate_with_duplicate_index(self, per_capita_records):
        frame = per_capita_records.copy()
        frame.index = [0] * len(frame)
        flags = capital_region_predicate(CAPITAL_PREFIXES)(frame)

        assert flags.index.equals(frame.index)
        assert flags.tolist() == capital_region_predicate(CAPITAL_PREFIXES)(
            per_capita_records
        ).tolist()

    def test_predicate_on_empty_frame(self, per_capita_records):
        empty = per_capita_records.iloc[0:0]

        flags = capital_region_predicate(CAPITAL_PREFIXES)(empty)

        assert flags.empty
        assert flags.dtype == bool


# ============================================================================
# Weighted Value Tests
# ============================================================================

@pytest.mark.unit
class TestWeightedValue:
    """Test the ratio of sums."""

    def test_single_record_equals_its_own_value(self, per_capita_records, units):
        """A one-row group reproduces the record's value exactly."""
        for i in range(len(per_capita_records)):
            row = per_capita_records.iloc[[i]]

            assert weighted_value(row, units) == row["gdp_pc"].iloc[0]

    @pytest.mark.parametrize(
        "first,second",
        [
            ((30_000.0, 1_000_000.0), (30_000.0, 1_000_000.0)),
            ((18_000.0, 600_000.0), (42_000.0, 1_400_000.0)),
            ((6_000.0, 200_000.0), (54_000.0, 1_800_000.0)),
            ((50_000.0, 400_000.0), (10_000.0, 1_600_000.0)),
        ],
    )
    def test_split_region_does_not_change_value(self, per_capita_records, units, first, second):
        """Splitting a region into parts with the same totals is invariant.

        UKX2 holds 60,000m GDP over 2m people; parts need not be equal in
        size or in per-capita value.
        """
        gbr = per_capita_records[per_capita_records["country"] == "GBR"]
        ukx2 = gbr[gbr["region"] == "UKX2"].iloc[0]
        parts = pd.DataFrame(
            [
                {**ukx2.to_dict(), "region": "UKX2a", "gdp": first[0], "pop": first[1]},
                {**ukx2.to_dict(), "region": "UKX2b", "gdp": second[0], "pop": second[1]},
            ]
        )
        split = pd.concat([gbr[gbr["region"] != "UKX2"], parts], ignore_index=True)

        assert weighted_value(split, units) == weighted_value(gbr, units)

    def test_weighted_differs_from_mean_of_ratios(self):
        """Small rich regions do not dominate the weighted value."""
        units = Units(unit_multiplier=0, display_scale=1.0)
        records = _records(
            [
                ("GBR", "UKA1", "TL3", 2019, 100.0, 1.0),
                ("GBR", "UKB1", "TL3", 2019, 100.0, 9.0),
            ],
            units,
        )

        assert weighted_value(records, units) == pytest.approx(20.0)
        assert records["gdp_pc"].mean() == pytest.approx(55.5556, rel=1e-4)

    def test_empty_frame_is_nan(self, per_capita_records, units):
        assert math.isnan(weighted_value(per_capita_records.iloc[0:0], units))

    def test_zero_population_is_nan(self, units):
        records = _records([("GBR", "UKA1", "TL3", 2019, 0.0, 1.0)], units)
        records["pop"] = 0.0

        assert np.isnan(weighted_value(records, units))


# ============================================================================
# Grouped Aggregate Tests
# ============================================================================

@pytest.mark.unit
class TestWeightedAggregate:
    """Test grouped aggregation and capital exclusion."""

    def test_national_average(self, per_capita_records, units):
        national = weighted_aggregate(per_capita_records, "country", units)
        gbr = national[national["country"] == "GBR"].iloc[0]

        assert list(national.columns) == ["country"] + AGGREGATE_COLUMNS
        assert gbr["gdp_pc"] == pytest.approx(78.0)
        assert gbr["n_regions"] == 4

    def test_excluding_london(self, per_capita_records, units):
        """Dropping UKI-prefixed regions leaves UKX1 and UKX2 at 30.0."""
        excluding = weighted_aggregate(
            per_capita_records, "country", units, exclude=capital_region_predicate(UK_PREFIXES)
        )
        gbr = excluding[excluding["country"] == "GBR"].iloc[0]

        assert gbr["gdp_pc"] == pytest.approx(30.0)
        assert gbr["n_regions"] == 2
        assert gbr["gdp"] == 90_000.0
        assert gbr["pop"] == 3_000_000.0

    def test_capital_partition_counts(self, per_capita_records, units):
        """n_regions(all) = n_regions(excluding) + number of capital records."""
        predicate = capital_region_predicate(CAPITAL_PREFIXES)
        national = weighted_aggregate(per_capita_records, "country", units).set_index("country")
        excluding = weighted_aggregate(
            per_capita_records, "country", units, exclude=predicate
        ).set_index("country")
        capitals = per_capita_records[predicate(per_capita_records)]

        for country in ("GBR", "USA"):
            n_capital = int((capitals["country"] == country).sum())
            assert national.loc[country, "n_regions"] == (
                excluding.loc[country, "n_regions"] + n_capital
            )

    def test_group_of_one_matches_record(self, per_capita_records, units):
        """USA excluding US11 is just Mississippi."""
        excluding = weighted_aggregate(
            per_capita_records, "country", units, exclude=capital_region_predicate(CAPITAL_PREFIXES)
        )
        usa = excluding[excluding["country"] == "USA"].iloc[0]
        us28 = per_capita_records[per_capita_records["region"] == "US28"]["gdp_pc"].iloc[0]

        assert usa["gdp_pc"] == us28

    def test_multiple_keys(self, per_capita_records, units):
        grouped = weighted_aggregate(per_capita_records, ["country", "level"], units)

        assert grouped[["country", "level"]].values.tolist() == [["GBR", "TL3"], ["USA", "TL2"]]

    def test_distribution_columns(self, per_capita_records, units):
        national = weighted_aggregate(per_capita_records, "country", units)
        gbr = national[national["country"] == "GBR"].iloc[0]

        assert gbr["min"] == 30.0
        assert gbr["q25"] == 30.0
        assert gbr["median"] == 65.0
        assert gbr["mean"] == 90.0
        assert gbr["q75"] == 125.0
        assert gbr["max"] == 200.0

    def test_empty_input(self, per_capita_records, units):
        result = weighted_aggregate(per_capita_records.iloc[0:0], "country", units)

        assert result.empty
        assert list(result.columns) == ["country"] + AGGREGATE_COLUMNS

    def test_exclusion_removing_everything(self, per_capita_records, units):
        everything = lambda frame: pd.Series(True, index=frame.index)  # noqa: E731

        result = weighted_aggregate(per_capita_records, "country", units, exclude=everything)

        assert result.empty


@pytest.mark.unit
def test_summarize_group(per_capita_records, units):
    gbr = per_capita_records[per_capita_records["country"] == "GBR"]

    group = summarize_group(gbr, units)

    assert group.n_regions == 4
    assert group.gdp_pc == pytest.approx(78.0)
    assert group.median == 65.0
