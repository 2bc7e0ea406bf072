"""
Pandera DataFrame schemas for the record and aggregate tables.

Used as validation gates between report steps. String and timestamp
columns are checked element-wise rather than by dtype so the schemas hold
for both object and pandas string storage.

Usage:
    from src.schemas import RecordTableSchema
    RecordTableSchema.validate(df)  # raises pa.errors.SchemaError on failure
"""

import pandas as pd
import pandera as pa
from pandera import Column, Check, DataFrameSchema


def _is_instance(*types):
    return Check(
        lambda s: s.map(lambda v: isinstance(v, types)),
        element_wise=False,
        error=f"values must be {'/'.join(t.__name__ for t in types)}",
    )


_IS_STR = _is_instance(str)
_IS_DATETIME = Check(
    lambda s: pd.api.types.is_datetime64_any_dtype(s),
    error="column must hold datetimes",
)


# ── Flattened catalog records ───────────────────────────────────────────

RecordTableSchema = DataFrameSchema(
    columns={
        "name": Column(checks=_IS_STR, nullable=True),
        "category": Column(checks=_IS_STR, nullable=True),
        "tags": Column(checks=_is_instance(tuple), nullable=False),
        "resource_type": Column(checks=_IS_STR, nullable=True),
        "download_count": Column("Int64", Check.greater_than_or_equal_to(0), nullable=True),
        "pageviews_last_week": Column("Int64", Check.greater_than_or_equal_to(0), nullable=True),
        "pageviews_last_month": Column("Int64", Check.greater_than_or_equal_to(0), nullable=True),
        "pageviews_total": Column("Int64", Check.greater_than_or_equal_to(0), nullable=True),
        "last_updated": Column(checks=_IS_DATETIME, nullable=True),
    },
    strict=True,
    coerce=False,
    name="RecordTableSchema",
)


# ── Supply / demand comparison ──────────────────────────────────────────

def supply_demand_schema(key_column):
    """Schema for a compare_supply_and_demand() table keyed on key_column."""
    return DataFrameSchema(
        columns={
            key_column: Column(checks=_IS_STR, nullable=False, unique=True),
            "provided": Column(int, Check.greater_than(0), nullable=False),
            "downloaded": Column(int, Check.greater_than_or_equal_to(0), nullable=False),
            "viewed": Column(int, Check.greater_than_or_equal_to(0), nullable=False),
            "provided_rank": Column(int, Check.greater_than_or_equal_to(1), nullable=False),
            "download_rank": Column(int, Check.greater_than_or_equal_to(1), nullable=False),
            "view_rank": Column(int, Check.greater_than_or_equal_to(1), nullable=False),
            "change_vs_download": Column(checks=Check.isin(["up", "down"]), nullable=False),
            "change_vs_pageview": Column(checks=Check.isin(["up", "down"]), nullable=False),
        },
        strict=False,
        coerce=False,
        name=f"SupplyDemandSchema[{key_column}]",
    )


# ── Datatype shares ─────────────────────────────────────────────────────

DatatypeShareSchema = DataFrameSchema(
    columns={
        "resource_type": Column(checks=_IS_STR, nullable=False, unique=True),
        "dataset_count": Column(int, Check.greater_than(0), nullable=False),
        "dataset_pct": Column(float, Check.in_range(0.0, 100.0), nullable=True),
        "download_pct": Column(float, Check.in_range(0.0, 100.0), nullable=True),
        "pageview_pct": Column(float, Check.in_range(0.0, 100.0), nullable=True),
    },
    strict=False,
    coerce=False,
    name="DatatypeShareSchema",
)


# ── Convenience validation function ─────────────────────────────────────

def validate_schema(df, schema, step_name, strict=False):
    """Validate a DataFrame against a Pandera schema.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to validate.
    schema : pa.DataFrameSchema
        Schema to validate against.
    step_name : str
        Step name for messages.
    strict : bool
        If True, raise on failure. If False, return warnings list.

    Returns
    -------
    list[str]
        Validation warning messages (empty if all pass).

    Raises
    ------
    ValueError
        Only if strict=True and validation fails.
    """
    warnings_list = []

    if df is None:
        msg = f"[{step_name}] DataFrame is None"
        if strict:
            raise ValueError(msg)
        return [msg]

    if len(df) == 0:
        msg = f"[{step_name}] DataFrame is empty (0 rows)"
        if strict:
            raise ValueError(msg)
        return [msg]

    try:
        schema.validate(df, lazy=True)
    except pa.errors.SchemaErrors as exc:
        for failure in exc.failure_cases.itertuples():
            msg = (
                f"[{step_name}] Schema violation: "
                f"column='{failure.column}' check='{failure.check}' "
                f"failure_case={failure.failure_case}"
            )
            warnings_list.append(msg)

        if strict:
            raise ValueError(
                f"[{step_name}] Schema validation failed with "
                f"{len(warnings_list)} errors"
            ) from exc

    return warnings_list
