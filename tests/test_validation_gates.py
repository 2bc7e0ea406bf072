"""
Tests for Pandera schema validation gates.

Verifies that:
- The record table built from the fixture passes its schema
- Schemas reject invalid data (negative counts, list tags, bad labels)
- validate_schema() returns warnings in lenient mode
- validate_schema() raises in strict mode
"""

import pandas as pd
import pytest

from src.schemas import (
    DatatypeShareSchema,
    RecordTableSchema,
    supply_demand_schema,
    validate_schema,
)
from src.supply_demand import compare_supply_and_demand, datatype_share_comparison


# ── RecordTableSchema ───────────────────────────────────────────────────


class TestRecordTableSchema:

    def test_fixture_table_passes(self, records_df):
        RecordTableSchema.validate(records_df)

    def test_negative_count_fails(self, records_df):
        df = records_df.copy()
        df.loc[0, "download_count"] = -1
        with pytest.raises(Exception):
            RecordTableSchema.validate(df)

    def test_list_tags_fail(self, records_df):
        df = records_df.copy()
        df["tags"] = df["tags"].map(list)
        with pytest.raises(Exception):
            RecordTableSchema.validate(df)

    def test_extra_column_fails(self, records_df):
        df = records_df.copy()
        df["owner"] = "someone"
        with pytest.raises(Exception):
            RecordTableSchema.validate(df)

    def test_missing_column_fails(self, records_df):
        with pytest.raises(Exception):
            RecordTableSchema.validate(records_df.drop(columns=["pageviews_total"]))


# ── Aggregate schemas ───────────────────────────────────────────────────


class TestSupplyDemandSchema:

    def test_category_table_passes(self, records_df):
        table = compare_supply_and_demand(records_df, "category")
        supply_demand_schema("category").validate(table)

    def test_datatype_table_passes(self, records_df):
        table = compare_supply_and_demand(records_df, "datatype")
        supply_demand_schema("resource_type").validate(table)

    def test_unknown_label_fails(self, scenario_a_df):
        table = compare_supply_and_demand(scenario_a_df, "category")
        table.loc[0, "change_vs_download"] = "flat"
        with pytest.raises(Exception):
            supply_demand_schema("category").validate(table)

    def test_zero_rank_fails(self, scenario_a_df):
        table = compare_supply_and_demand(scenario_a_df, "category")
        table.loc[0, "view_rank"] = 0
        with pytest.raises(Exception):
            supply_demand_schema("category").validate(table)


class TestDatatypeShareSchema:

    def test_fixture_shares_pass(self, records_df):
        DatatypeShareSchema.validate(datatype_share_comparison(records_df))

    def test_nan_shares_allowed(self, frame_factory):
        df = frame_factory([{"resource_type": "map"}, {"resource_type": "chart"}])
        DatatypeShareSchema.validate(datatype_share_comparison(df))

    def test_share_over_100_fails(self, records_df):
        table = datatype_share_comparison(records_df)
        table.loc[0, "dataset_pct"] = 120.0
        with pytest.raises(Exception):
            DatatypeShareSchema.validate(table)


# ── validate_schema() ───────────────────────────────────────────────────


class TestValidateSchemaFunction:

    def test_valid_returns_empty(self, records_df):
        assert validate_schema(records_df, RecordTableSchema, "records") == []

    def test_lenient_returns_warnings(self, records_df):
        df = records_df.copy()
        df.loc[0, "download_count"] = -5
        warnings = validate_schema(df, RecordTableSchema, "records", strict=False)
        assert len(warnings) > 0
        assert "download_count" in warnings[0]

    def test_strict_raises(self, records_df):
        df = records_df.copy()
        df.loc[0, "download_count"] = -5
        with pytest.raises(ValueError, match="records"):
            validate_schema(df, RecordTableSchema, "records", strict=True)

    def test_none_df(self):
        warnings = validate_schema(None, RecordTableSchema, "records")
        assert "None" in warnings[0]

    def test_empty_df_lenient(self, empty_df):
        warnings = validate_schema(empty_df, RecordTableSchema, "records")
        assert "empty" in warnings[0]

    def test_empty_df_strict(self):
        with pytest.raises(ValueError):
            validate_schema(pd.DataFrame(), RecordTableSchema, "records", strict=True)
