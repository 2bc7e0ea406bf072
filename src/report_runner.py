#!/usr/bin/env python3
"""
Catalog report runner.

Fetches one portal's catalog, flattens it, computes descriptive
statistics and the supply/demand comparisons, writes CSV tables and an
HTML report, and saves a ReportRunResult as JSON.

A failed catalog fetch aborts the run with exit status 1. Re-running
re-fetches and recomputes everything; nothing is cached between runs.

Usage:
    python3 -m src.report_runner --domain data.cityofnewyork.us --limit 10000

    # Abort on schema violations in the record table
    python3 -m src.report_runner --domain data.cityofchicago.org --strict-validation
"""

import argparse
import json
import os
import sys
import time
from datetime import datetime

import pandas as pd

from src import config
from src.catalog_api import fetch_catalog
from src.descriptive_stats import summarize
from src.flatten import flatten_catalog, records_to_frame
from src.logging_config import get_report_logger, set_run_id, setup_logging
from src.report_types import ReportRunResult, StepResult, StepStatus
from src.schemas import (
    DatatypeShareSchema,
    RecordTableSchema,
    supply_demand_schema,
    validate_schema,
)
from src.step_runner import run_step
from src.supply_demand import compare_supply_and_demand, datatype_share_comparison

log = get_report_logger(__name__)


def _flatten_to_frame(document):
    return records_to_frame(flatten_catalog(document))


def _validation_step(name, df, schema, strict):
    """Validate df and record the outcome as a StepResult."""
    try:
        warnings_list = validate_schema(df, schema, name, strict=strict)
    except ValueError as exc:
        log.error("%s", exc)
        return StepResult(step_name=name, status=StepStatus.ERROR.value, error=str(exc))
    for msg in warnings_list:
        log.warning(msg)
    return StepResult(step_name=name, status=StepStatus.SUCCESS.value,
                      warnings=warnings_list)


def save_tables(tables, csv_dir):
    """Write each named DataFrame/Series to ``csv_dir/<name>.csv``.

    Returns
    -------
    list[str]
        Paths written.
    """
    paths = []
    for name, table in tables.items():
        path = os.path.join(csv_dir, f"{name}.csv")
        if isinstance(table, pd.Series) or table.index.name is not None:
            table.to_csv(path)
        else:
            out = table.copy()
            if "tags" in out.columns:
                out["tags"] = out["tags"].map("|".join)
            out.to_csv(path, index=False)
        paths.append(path)
        log.debug("Saved %s", path)
    return paths


def save_run_result(run_result, output_dir):
    """Save run_result.json into output_dir and return its path."""
    path = os.path.join(output_dir, "run_result.json")
    with open(path, "w") as f:
        json.dump(run_result.to_dict(), f, indent=2, default=str)
    log.info("Run result saved: %s", path)
    return path


def run_report(args):
    """Run the full catalog report.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments.

    Returns
    -------
    ReportRunResult
    """
    run_result = ReportRunResult(
        domain=args.domain, limit=args.limit, output_dir=args.output_dir,
    )
    start_time = time.time()
    dirs = config.get_output_dirs(args.output_dir)

    def finish():
        run_result.total_time_seconds = time.time() - start_time
        return run_result

    # ── Fetch ─────────────────────────────────────────────────────────
    step, document = run_step(
        "fetch_catalog", fetch_catalog, args.domain, args.limit, host=args.host,
        input_summary={"domain": args.domain, "limit": args.limit, "host": args.host},
        output_summary_fn=lambda doc: {"entries": len(doc["results"])},
    )
    run_result.step_results.append(step)
    if not step.ok:
        log.error("Catalog fetch failed; aborting run")
        return finish()

    # ── Flatten ───────────────────────────────────────────────────────
    step, records_df = run_step(
        "flatten_records", _flatten_to_frame, document,
        output_summary_fn=lambda df: {"rows": len(df)},
    )
    run_result.step_results.append(step)
    if not step.ok:
        return finish()
    run_result.record_count = len(records_df)

    step = _validation_step("validate_records", records_df, RecordTableSchema,
                            args.strict_validation)
    run_result.step_results.append(step)
    if not step.ok:
        return finish()

    # ── Statistics ────────────────────────────────────────────────────
    step, summary = run_step(
        "descriptive_stats", summarize, records_df, args.top_tags,
        output_summary_fn=lambda s: {
            "datasets": s["dataset_count"],
            "categories": s["unique_category_count"],
            "tags": s["unique_tag_count"],
        },
    )
    run_result.step_results.append(step)
    if not step.ok:
        return finish()

    step, category_table = run_step(
        "supply_demand_by_category", compare_supply_and_demand, records_df, "category",
        output_summary_fn=lambda t: {"groups": len(t)},
    )
    run_result.step_results.append(step)
    if not step.ok:
        return finish()

    step, datatype_rank_table = run_step(
        "supply_demand_by_datatype", compare_supply_and_demand, records_df, "datatype",
        output_summary_fn=lambda t: {"groups": len(t)},
    )
    run_result.step_results.append(step)
    if not step.ok:
        return finish()

    step, datatype_table = run_step(
        "datatype_shares", datatype_share_comparison, records_df,
        output_summary_fn=lambda t: {"datatypes": len(t)},
    )
    run_result.step_results.append(step)
    if not step.ok:
        return finish()

    for name, table, schema in (
        ("validate_category_table", category_table, supply_demand_schema("category")),
        ("validate_datatype_ranks", datatype_rank_table, supply_demand_schema("resource_type")),
        ("validate_datatype_shares", datatype_table, DatatypeShareSchema),
    ):
        # Empty aggregates are legitimate (e.g. no categories assigned).
        if len(table) == 0:
            continue
        step = _validation_step(name, table, schema, args.strict_validation)
        run_result.step_results.append(step)
        if not step.ok:
            return finish()

    # ── Outputs ───────────────────────────────────────────────────────
    tables = {
        "records": records_df,
        "missingness": summary["missingness"],
        "category_frequency": summary["category_frequency"],
        "top_tags": summary["top_tags"],
        "datatype_share": summary["datatype_share"],
        "usage_distribution": summary["usage_distribution"],
        "updates_by_year": summary["updates_by_year"],
        "supply_demand_category": category_table,
        "supply_demand_datatype": datatype_rank_table,
        "datatype_share_comparison": datatype_table,
    }
    step, paths = run_step("save_tables", save_tables, tables, dirs["csv"],
                           output_summary_fn=lambda p: {"files": len(p)})
    run_result.step_results.append(step)
    if paths:
        run_result.output_files.extend(paths)

    if not args.no_report:
        from src.outputs.report import ReportStyle, generate_catalog_report

        step, report_path = run_step(
            "render_report", generate_catalog_report,
            summary, category_table, datatype_table, run_result, dirs["report"],
            style=ReportStyle(pct_decimals=args.pct_decimals),
        )
        run_result.step_results.append(step)
        if report_path:
            run_result.output_files.append(report_path)

    return finish()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Supply/demand report for an open-data portal catalog",
    )
    parser.add_argument(
        "--domain", default=config.DEFAULT_DOMAIN,
        help=f"Portal domain (default: {config.DEFAULT_DOMAIN})",
    )
    parser.add_argument(
        "--limit", type=int, default=config.DEFAULT_LIMIT,
        help=f"Maximum catalog entries to fetch (default: {config.DEFAULT_LIMIT})",
    )
    parser.add_argument(
        "--host", default=config.CATALOG_API_HOST,
        help=f"Discovery API host, 'api.' is prepended (default: {config.CATALOG_API_HOST})",
    )
    parser.add_argument(
        "--output-dir", default=None,
        help="Run output directory (default: outputs/<domain>_<timestamp>)",
    )
    parser.add_argument(
        "--top-tags", type=int, default=config.TOP_TAGS_DEFAULT,
        help=f"Number of tags in the frequency table (default: {config.TOP_TAGS_DEFAULT})",
    )
    parser.add_argument(
        "--pct-decimals", type=int, default=config.PCT_DECIMALS,
        help=f"Decimal places for percentages (default: {config.PCT_DECIMALS})",
    )
    parser.add_argument(
        "--strict-validation", action="store_true",
        help="Abort when a table fails schema validation",
    )
    parser.add_argument(
        "--no-report", action="store_true",
        help="Write CSV tables only, skip the HTML report",
    )
    args = parser.parse_args(argv)
    if args.limit <= 0:
        parser.error("--limit must be positive")
    if args.top_tags < 0:
        parser.error("--top-tags must be non-negative")
    if args.output_dir is None:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        args.output_dir = os.path.join("outputs", f"{args.domain}_{stamp}")
    return args


def main(argv=None):
    args = parse_args(argv)
    set_run_id()
    setup_logging(run_dir=args.output_dir)

    log.info("Catalog report for %s (limit=%d) -> %s",
             args.domain, args.limit, args.output_dir)
    run_result = run_report(args)
    save_run_result(run_result, args.output_dir)

    if not run_result.all_ok:
        failed = ", ".join(s.step_name for s in run_result.failed_steps)
        log.error("Run finished with failed steps: %s", failed)
        return 1

    log.info("Done in %.1fs: %d datasets, %d files written",
             run_result.total_time_seconds, run_result.record_count,
             len(run_result.output_files))
    return 0


if __name__ == "__main__":
    sys.exit(main())
