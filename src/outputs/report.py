"""
Self-contained HTML report for one catalog run.

Tables are rendered from the descriptive statistics and comparison
tables; charts are drawn with matplotlib and embedded as base64 PNGs, so
the report has no external dependencies.

Usage:
    from src.outputs.report import ReportStyle, generate_catalog_report
    path = generate_catalog_report(summary, category_table, datatype_table,
                                   run_result, output_dir, style=ReportStyle())
"""

import base64
import html
import io
import math
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from src import config
from src.logging_config import get_report_logger
from src.supply_demand import sort_for_display

log = get_report_logger(__name__)


@dataclass(frozen=True)
class ReportStyle:
    """Figure and number formatting options for the report.

    Applied through a matplotlib rc_context per figure, never by changing
    the global rcParams.
    """

    figure_width: float = 10.0
    row_height: float = 0.35
    min_figure_height: float = 4.0
    dpi: int = 100
    font_size: int = 10
    supply_color: str = "#34495e"
    download_color: str = "#3498db"
    pageview_color: str = "#e67e22"
    up_color: str = "#2ecc71"
    down_color: str = "#e74c3c"
    pct_decimals: int = config.PCT_DECIMALS
    max_bars: int = 25
    rc_overrides: dict = field(default_factory=lambda: {
        "axes.spines.top": False,
        "axes.spines.right": False,
        "axes.grid": True,
        "grid.alpha": 0.3,
    })

    def rc_params(self):
        params = {"font.size": self.font_size}
        params.update(self.rc_overrides)
        return params

    def figure_size(self, n_rows):
        return (self.figure_width, max(self.min_figure_height, n_rows * self.row_height))


def format_pct(value, decimals=config.PCT_DECIMALS):
    """Format a percentage (0-100 scale) with a fixed number of decimals.

    >>> format_pct(12.3456)
    '12.35%'
    >>> format_pct(float("nan"))
    'n/a'
    """
    if value is None or pd.isna(value) or math.isinf(value):
        return "n/a"
    return f"{value:.{decimals}f}%"


def format_fraction_pct(value, decimals=config.PCT_DECIMALS):
    """Format a 0-1 fraction as a percentage string."""
    if value is None or pd.isna(value):
        return "n/a"
    return format_pct(value * 100.0, decimals)


def _fig_to_base64(fig, dpi):
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    return base64.b64encode(buf.read()).decode("utf-8")


def _render_table(df, pct_columns=(), fraction_columns=(), decimals=config.PCT_DECIMALS,
                  index=False):
    """Render a DataFrame as an HTML table with percentage formatting."""
    if df is None or len(df) == 0:
        return "<p>No data.</p>"
    table = df.reset_index() if index else df
    header = "".join(f"<th>{html.escape(str(c))}</th>" for c in table.columns)
    rows = []
    for record in table.itertuples(index=False):
        cells = []
        for col, value in zip(table.columns, record):
            if col in pct_columns:
                text = format_pct(value, decimals)
            elif col in fraction_columns:
                text = format_fraction_pct(value, decimals)
            elif isinstance(value, float):
                text = "n/a" if np.isnan(value) else f"{value:,.2f}"
            elif isinstance(value, tuple):
                text = ", ".join(value)
            elif value is None or value is pd.NA:
                text = "n/a"
            else:
                text = str(value)
            cells.append(f"<td>{html.escape(text)}</td>")
        rows.append("<tr>" + "".join(cells) + "</tr>")
    return (
        f"<table>\n<thead><tr>{header}</tr></thead>\n<tbody>\n"
        + "\n".join(rows)
        + "\n</tbody>\n</table>"
    )


def plot_supply_demand(table, key_col, style):
    """Horizontal bars of the three ranks per group, axis sorted by supply."""
    if table is None or table.empty:
        return None
    df = sort_for_display(table, by="provided").head(style.max_bars).iloc[::-1]
    y = np.arange(len(df))
    height = 0.27

    with plt.rc_context(style.rc_params()):
        fig, ax = plt.subplots(figsize=style.figure_size(len(df)))
        ax.barh(y + height, df["provided_rank"], height, color=style.supply_color,
                label="Rank by datasets provided")
        ax.barh(y, df["download_rank"], height, color=style.download_color,
                label="Rank by downloads")
        ax.barh(y - height, df["view_rank"], height, color=style.pageview_color,
                label="Rank by pageviews")
        ax.set_yticks(y)
        ax.set_yticklabels(df[key_col])
        ax.set_xlabel("Dense rank (1 = largest)")
        ax.set_title(f"Supply vs demand rank by {key_col.replace('_', ' ')}")
        ax.legend(loc="lower right")
        return _fig_to_base64(fig, style.dpi)


def plot_datatype_shares(datatype_table, style):
    """Grouped bars of dataset / download / pageview share per resource type."""
    if datatype_table is None or datatype_table.empty:
        return None
    df = datatype_table.head(style.max_bars)
    x = np.arange(len(df))
    width = 0.27

    with plt.rc_context(style.rc_params()):
        fig, ax = plt.subplots(figsize=(style.figure_width, style.min_figure_height + 1))
        # NaN shares are drawn as empty bars.
        ax.bar(x - width, df["dataset_pct"].fillna(0), width,
               color=style.supply_color, label="% of datasets")
        ax.bar(x, df["download_pct"].fillna(0), width,
               color=style.download_color, label="% of downloads")
        ax.bar(x + width, df["pageview_pct"].fillna(0), width,
               color=style.pageview_color, label="% of pageviews")
        ax.set_xticks(x)
        ax.set_xticklabels(df["resource_type"], rotation=30, ha="right")
        ax.set_ylabel("Share of portal total (%)")
        ax.set_title("Supply vs demand share by datatype")
        ax.legend()
        return _fig_to_base64(fig, style.dpi)


def plot_top_tags(tags_df, style):
    """Bar chart of the most frequent tags."""
    if tags_df is None or tags_df.empty:
        return None
    df = tags_df.head(style.max_bars).iloc[::-1]
    with plt.rc_context(style.rc_params()):
        fig, ax = plt.subplots(figsize=style.figure_size(len(df)))
        ax.barh(df["tag"], df["count"], color=style.supply_color)
        ax.set_xlabel("Datasets")
        ax.set_title("Most frequent tags")
        return _fig_to_base64(fig, style.dpi)


def _change_counts(table):
    if table is None or table.empty:
        return {"up": 0, "down": 0}
    counts = table["change_vs_download"].value_counts()
    return {"up": int(counts.get("up", 0)), "down": int(counts.get("down", 0))}


def _img(b64, alt):
    if not b64:
        return ""
    return f'<div class="plot"><img src="data:image/png;base64,{b64}" alt="{alt}"></div>'


def generate_catalog_report(summary, category_table, datatype_table,
                            run_result, output_dir, style=None):
    """Write the HTML catalog report.

    Parameters
    ----------
    summary : dict
        Output of src.descriptive_stats.summarize().
    category_table : pd.DataFrame
        compare_supply_and_demand(df, "category").
    datatype_table : pd.DataFrame
        datatype_share_comparison(df).
    run_result : ReportRunResult or dict
        Run metadata shown in the header.
    output_dir : str
        Directory to write ``catalog_report.html`` into.
    style : ReportStyle, optional
        Defaults to ReportStyle().

    Returns
    -------
    str
        Path to the written report.
    """
    style = style or ReportStyle()
    decimals = style.pct_decimals
    meta = run_result if isinstance(run_result, dict) else run_result.to_dict()
    os.makedirs(output_dir, exist_ok=True)

    supply_plot = plot_supply_demand(category_table, "category", style)
    datatype_plot = plot_datatype_shares(datatype_table, style)
    tags_plot = plot_top_tags(summary.get("top_tags"), style)

    domain = html.escape(meta.get("domain", ""))
    started_at = html.escape(str(meta.get("started_at", "")))
    git_sha = html.escape(str(meta.get("git_sha") or "N/A"))
    changes = _change_counts(category_table)
    shares = summary["datatype_share"].rename("share").reset_index()

    sections = [
        ("Completeness",
         _render_table(summary["missingness"], fraction_columns=("missing_fraction",),
                       decimals=decimals, index=True)),
        ("Datasets per category",
         _render_table(summary["category_frequency"], fraction_columns=("share",),
                       decimals=decimals)),
        ("Datatype share",
         _render_table(shares, fraction_columns=("share",), decimals=decimals)),
        ("Top tags",
         _img(tags_plot, "Top tags") + _render_table(summary["top_tags"], decimals=decimals)),
        ("Download and pageview distribution",
         _render_table(summary["usage_distribution"], decimals=decimals, index=True)),
        ("Datasets by year of last update",
         _render_table(summary["updates_by_year"].reset_index(), decimals=decimals)),
        ("Supply vs demand by category",
         _img(supply_plot, "Supply vs demand by category")
         + _render_table(category_table, decimals=decimals)),
        ("Supply vs demand by datatype",
         _img(datatype_plot, "Supply vs demand by datatype")
         + _render_table(datatype_table,
                         pct_columns=("dataset_pct", "download_pct", "pageview_pct"),
                         decimals=decimals)),
    ]
    body = "\n".join(f"<h2>{title}</h2>\n{content}" for title, content in sections)

    page = f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Open Data Catalog Report | {domain}</title>
<style>
  body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
         max-width: 1100px; margin: 0 auto; padding: 20px; background: #f5f5f5; }}
  h1 {{ color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 10px; }}
  h2 {{ color: #34495e; margin-top: 30px; }}
  .summary-grid {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
                   gap: 15px; margin: 20px 0; }}
  .summary-card {{ background: white; border-radius: 8px; padding: 15px;
                   box-shadow: 0 2px 4px rgba(0,0,0,0.1); }}
  .summary-card .label {{ font-size: 0.85em; color: #7f8c8d; }}
  .summary-card .value {{ font-size: 1.4em; font-weight: bold; color: #2c3e50; }}
  table {{ border-collapse: collapse; width: 100%; margin: 15px 0; background: white;
           box-shadow: 0 2px 4px rgba(0,0,0,0.1); }}
  th {{ background: #34495e; color: white; padding: 8px 10px; text-align: left; }}
  td {{ padding: 6px 10px; border-bottom: 1px solid #ecf0f1; }}
  .plot {{ text-align: center; margin: 20px 0; }}
  .plot img {{ max-width: 100%; }}
  .footer {{ margin-top: 40px; padding-top: 15px; border-top: 1px solid #ddd;
             font-size: 0.85em; color: #95a5a6; }}
</style>
</head>
<body>
<h1>Open Data Catalog Report</h1>

<div class="summary-grid">
  <div class="summary-card"><div class="label">Portal</div>
    <div class="value" style="font-size:1em">{domain}</div></div>
  <div class="summary-card"><div class="label">Datasets</div>
    <div class="value">{summary['dataset_count']:,}</div></div>
  <div class="summary-card"><div class="label">Unique categories</div>
    <div class="value">{summary['unique_category_count']:,}</div></div>
  <div class="summary-card"><div class="label">Unique tags</div>
    <div class="value">{summary['unique_tag_count']:,}</div></div>
  <div class="summary-card"><div class="label">Categories up / down vs downloads</div>
    <div class="value"><span style="color:{style.up_color}">{changes['up']}</span> /
      <span style="color:{style.down_color}">{changes['down']}</span></div></div>
</div>

{body}

<div class="footer">
  Generated {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}
  | run started {started_at}
  | git {git_sha}
</div>
</body>
</html>"""

    report_path = os.path.join(output_dir, "catalog_report.html")
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(page)
    log.info("Wrote report: %s", report_path)
    return report_path
