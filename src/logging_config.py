"""
Centralized logging configuration for the catalog report run.

Console output is human-readable; the per-run log is written as JSON Lines
so step summaries can be parsed afterwards. Modules should call
get_report_logger() rather than logging.basicConfig().

Usage:
    from src.logging_config import get_report_logger
    log = get_report_logger(__name__)
"""

import json
import logging
import os
import time
import uuid


# Bound to every log entry via RunIdFilter.
_run_id = None


def get_run_id():
    """Return the current run_id, generating one if needed."""
    global _run_id
    if _run_id is None:
        _run_id = str(uuid.uuid4())[:8]
    return _run_id


def set_run_id(run_id=None):
    """Set (or regenerate) the run_id."""
    global _run_id
    _run_id = run_id or str(uuid.uuid4())[:8]
    return _run_id


class RunIdFilter(logging.Filter):
    """Inject run_id into every log record."""

    def filter(self, record):
        record.run_id = get_run_id()
        return True


class JsonFormatter(logging.Formatter):
    """Format log records as JSON Lines."""

    _EXTRA_KEYS = (
        "step_name", "input_summary", "output_summary",
        "timing_seconds", "warnings", "domain",
    )

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S.") +
                         f"{int(record.msecs):03d}",
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "run_id": getattr(record, "run_id", None),
            "message": record.getMessage(),
        }
        for key in self._EXTRA_KEYS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console format."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


_configured = False
_run_file_handler = None


def setup_logging(run_dir=None, console_level=None, file_level=logging.DEBUG):
    """Configure the root logger with a console and optional run-file handler.

    Safe to call more than once; the console handler is only added on the
    first call and the run file only when a run_dir is first supplied.

    Parameters
    ----------
    run_dir : str, optional
        If provided, writes ``{run_dir}/run.jsonl`` at file_level.
    console_level : int, optional
        Default: LOG_LEVEL env var, falling back to INFO.
    file_level : int
        Run-file handler level. Default: DEBUG.
    """
    global _configured, _run_file_handler

    if console_level is None:
        env_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        console_level = getattr(logging, env_level, logging.INFO)

    root = logging.getLogger()

    if not _configured:
        root.setLevel(logging.DEBUG)
        root.addFilter(RunIdFilter())

        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(ConsoleFormatter())
        # Filters on the root logger do not apply to propagated records.
        console.addFilter(RunIdFilter())
        root.addHandler(console)

        _configured = True

    if run_dir and _run_file_handler is None:
        os.makedirs(run_dir, exist_ok=True)
        fh = logging.FileHandler(os.path.join(run_dir, "run.jsonl"))
        fh.setLevel(file_level)
        fh.setFormatter(JsonFormatter())
        fh.addFilter(RunIdFilter())
        root.addHandler(fh)
        _run_file_handler = fh


def reset_logging():
    """Remove all handlers and filters from the root logger.

    Used by tests so the next setup_logging() starts fresh.
    """
    global _configured, _run_file_handler, _run_id

    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    for f in root.filters[:]:
        root.removeFilter(f)

    _configured = False
    _run_file_handler = None
    _run_id = None


def get_report_logger(name, run_dir=None):
    """Get a logger, initialising logging with defaults if needed.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``).
    run_dir : str, optional
        Passed to setup_logging() if not yet configured.

    Returns
    -------
    logging.Logger
    """
    if not _configured:
        setup_logging(run_dir=run_dir)
    return logging.getLogger(name)


def log_step_summary(
    logger,
    step_name,
    status="success",
    input_summary=None,
    output_summary=None,
    timing_seconds=None,
    warnings_list=None,
):
    """Log a structured step summary at INFO (or ERROR for failed steps).

    Parameters
    ----------
    logger : logging.Logger
    step_name : str
    status : str
        "success" or "error".
    input_summary : dict, optional
    output_summary : dict, optional
    timing_seconds : float, optional
    warnings_list : list[str], optional
    """
    parts = [f"[{step_name}] {status}"]
    if timing_seconds is not None:
        parts.append(f"({timing_seconds:.2f}s)")
    if output_summary:
        parts.append(f"output={output_summary}")

    extra = {"step_name": step_name}
    if input_summary:
        extra["input_summary"] = input_summary
    if output_summary:
        extra["output_summary"] = output_summary
    if timing_seconds is not None:
        extra["timing_seconds"] = timing_seconds
    if warnings_list:
        extra["warnings"] = warnings_list

    level = logging.ERROR if status == "error" else logging.INFO
    logger.log(level, " ".join(parts), extra=extra)


class StepTimer:
    """Context manager for timing report steps.

    Usage:
        with StepTimer() as t:
            do_work()
        print(t.elapsed)
    """

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed = time.perf_counter() - self.start
