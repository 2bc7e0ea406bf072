"""
Tests for src/outputs/report.py: percentage formatting, chart helpers,
and the HTML report written end to end from the shared fixture.
"""

import os

import matplotlib
import numpy as np
import pytest

from src.descriptive_stats import summarize
from src.outputs.report import (
    ReportStyle,
    format_fraction_pct,
    format_pct,
    generate_catalog_report,
    plot_supply_demand,
)
from src.report_types import ReportRunResult
from src.supply_demand import compare_supply_and_demand, datatype_share_comparison


class TestFormatPct:

    @pytest.mark.parametrize("value, decimals, expected", [
        (12.3456, 2, "12.35%"),
        (0, 2, "0.00%"),
        (100, 0, "100%"),
        (33.3333, 1, "33.3%"),
    ])
    def test_fixed_decimals_with_suffix(self, value, decimals, expected):
        assert format_pct(value, decimals) == expected

    @pytest.mark.parametrize("value", [None, float("nan"), np.nan, float("inf")])
    def test_undefined_values(self, value):
        assert format_pct(value) == "n/a"

    def test_fraction(self):
        assert format_fraction_pct(0.25) == "25.00%"
        assert format_fraction_pct(float("nan")) == "n/a"


class TestReportStyle:

    def test_rc_params_include_font_size(self):
        style = ReportStyle(font_size=14)
        assert style.rc_params()["font.size"] == 14

    def test_figure_height_has_minimum(self):
        style = ReportStyle(min_figure_height=4.0, row_height=0.1)
        assert style.figure_size(3) == (style.figure_width, 4.0)

    def test_plotting_leaves_global_rcparams_untouched(self, scenario_a_df):
        before = matplotlib.rcParams["font.size"]
        table = compare_supply_and_demand(scenario_a_df, "category")
        plot_supply_demand(table, "category", ReportStyle(font_size=before + 7))
        assert matplotlib.rcParams["font.size"] == before


class TestPlots:

    def test_supply_demand_returns_base64(self, scenario_a_df):
        table = compare_supply_and_demand(scenario_a_df, "category")
        b64 = plot_supply_demand(table, "category", ReportStyle())
        assert isinstance(b64, str) and len(b64) > 100

    def test_empty_table_returns_none(self, empty_df):
        table = compare_supply_and_demand(empty_df, "category")
        assert plot_supply_demand(table, "category", ReportStyle()) is None


class TestGenerateCatalogReport:

    def _inputs(self, df):
        return (
            summarize(df, top_n=5),
            compare_supply_and_demand(df, "category"),
            datatype_share_comparison(df),
        )

    def test_writes_html(self, records_df, tmp_dir):
        summary, cat, dtype = self._inputs(records_df)
        run = ReportRunResult(domain="data.example.org", limit=6, git_sha="abc123")
        path = generate_catalog_report(summary, cat, dtype, run, tmp_dir)
        assert os.path.isfile(path)
        with open(path, encoding="utf-8") as f:
            html = f.read()
        assert "data.example.org" in html
        assert "Supply vs demand by category" in html
        assert "data:image/png;base64," in html
        assert "Public Safety" in html
        # 2 of 6 datasets are "dataset"
        assert "33.33%" in html

    def test_undefined_shares_render_as_na(self, frame_factory, tmp_dir):
        df = frame_factory([
            {"category": "A", "resource_type": "map", "pageviews_total": 1},
            {"category": "B", "resource_type": "chart", "pageviews_total": 3},
        ])
        summary, cat, dtype = self._inputs(df)
        path = generate_catalog_report(summary, cat, dtype,
                                       {"domain": "d", "started_at": ""}, tmp_dir)
        with open(path, encoding="utf-8") as f:
            html = f.read()
        assert "<td>n/a</td>" in html
        assert "<td>inf%</td>" not in html

    def test_custom_decimals(self, records_df, tmp_dir):
        summary, cat, dtype = self._inputs(records_df)
        path = generate_catalog_report(summary, cat, dtype, {"domain": "d"}, tmp_dir,
                                       style=ReportStyle(pct_decimals=1))
        with open(path, encoding="utf-8") as f:
            assert "33.3%" in f.read()

    def test_empty_portal(self, empty_df, tmp_dir):
        summary, cat, dtype = self._inputs(empty_df)
        path = generate_catalog_report(summary, cat, dtype, {"domain": "d"}, tmp_dir)
        with open(path, encoding="utf-8") as f:
            assert "No data." in f.read()
