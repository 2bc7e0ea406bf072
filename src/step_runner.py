"""
Generic executor for report steps.

Wraps a work function with timing, error capture and a structured step
summary, returning a StepResult alongside the function's value. Callers
decide whether a failed step is fatal.
"""

import traceback
from typing import TypeVar, Callable

from src.catalog_api import CatalogFetchError
from src.logging_config import StepTimer, get_report_logger, log_step_summary
from src.report_types import StepResult, StepStatus

T = TypeVar("T")

log = get_report_logger(__name__)

_DEFAULT_EXPECTED = (
    CatalogFetchError,
    FileNotFoundError,
    ValueError,
    KeyError,
)


def run_step(
    step_name: str,
    fn: Callable[..., T],
    *args,
    input_summary: dict | None = None,
    output_summary_fn: Callable[[T], dict] | None = None,
    expected_exceptions: tuple[type[Exception], ...] = _DEFAULT_EXPECTED,
    **kwargs,
) -> tuple[StepResult, T | None]:
    """Execute a step with standardised error handling and timing.

    Parameters
    ----------
    step_name : str
        Name stored in the StepResult.
    fn : Callable
        The work function, called as ``fn(*args, **kwargs)``.
    input_summary : dict, optional
        Metadata about inputs.
    output_summary_fn : callable, optional
        Receives *fn*'s return value and produces an output-summary dict.
        Skipped when *fn* raises or returns None.
    expected_exceptions : tuple
        Exception types logged as a known failure (message only); anything
        else is logged as unexpected.

    Returns
    -------
    tuple[StepResult, T | None]
    """
    result_data = None
    error_tb = None

    with StepTimer() as timer:
        try:
            result_data = fn(*args, **kwargs)
        except expected_exceptions as exc:
            error_tb = traceback.format_exc()
            log.error("%s failed: %s", step_name, exc)
        except Exception:
            error_tb = traceback.format_exc()
            log.error("%s failed unexpectedly", step_name, exc_info=True)

    if error_tb:
        log_step_summary(log, step_name, StepStatus.ERROR.value,
                         timing_seconds=timer.elapsed)
        return StepResult(
            step_name=step_name,
            status=StepStatus.ERROR.value,
            input_summary=input_summary or {},
            error=error_tb,
            timing_seconds=timer.elapsed,
        ), None

    out_summary = {}
    if output_summary_fn is not None and result_data is not None:
        out_summary = output_summary_fn(result_data)

    log_step_summary(
        log, step_name, StepStatus.SUCCESS.value,
        input_summary=input_summary or {},
        output_summary=out_summary,
        timing_seconds=timer.elapsed,
    )
    return StepResult(
        step_name=step_name,
        status=StepStatus.SUCCESS.value,
        input_summary=input_summary or {},
        output_summary=out_summary,
        timing_seconds=timer.elapsed,
    ), result_data
