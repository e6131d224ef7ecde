"""Run-based log rotation manager.

A "run" is one logical unit of work: an API request, an approval, or a test
module. The first write to each module log inside a run rotates that file.

Usage:
    from scorereview.logging import logging_run

    with logging_run("approve-edition-abc123"):
        ...
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# ContextVars so that concurrent requests on the same event loop keep
# separate run state
_current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)
_rotated_this_run: ContextVar[set[str] | None] = ContextVar("rotated_this_run", default=None)

_module_log_cache: dict[str, str] = {}

# Module path prefix -> log file name (longest prefix wins, unmapped -> misc)
MODULE_TO_LOG = {
    "scorereview.acquisition": "acquisition",
    "scorereview.acquisition.transports": "transports",
    "scorereview.stores": "stores",
    "scorereview.stores.write_queue": "sheet-queue",
    "scorereview.review": "review",
    "scorereview.api": "api",
    "scorereview.config": "config",
    "scorereview.logging": "logging-internal",
    "testing": "testing",
}

_SORTED_PREFIXES = sorted(MODULE_TO_LOG.keys(), key=len, reverse=True)


def start_run(run_id: str) -> None:
    """Signal start of a new run.

    Safe to call repeatedly; each call resets rotation tracking.

    Args:
        run_id: Identifier for the run (e.g. request id, test module)
    """
    _current_run_id.set(run_id)
    _rotated_this_run.set(set())


def end_run() -> None:
    """Signal end of run. Best effort; rotation only depends on start_run()."""
    _current_run_id.set(None)
    _rotated_this_run.set(None)


@contextmanager
def logging_run(run_id: str) -> Iterator[str]:
    """Scope a run to a ``with`` block."""
    start_run(run_id)
    try:
        yield run_id
    finally:
        end_run()


def get_current_run_id() -> str | None:
    """Get the current run ID, if any."""
    return _current_run_id.get()


def should_rotate(log_name: str) -> bool:
    """Return True once per log file per run, False otherwise.

    Marks the log as rotated as a side effect.
    """
    run_id = _current_run_id.get()
    rotated = _rotated_this_run.get()

    if run_id is None or rotated is None:
        return False

    if log_name in rotated:
        return False

    rotated.add(log_name)
    return True


def module_to_log_name(module_name: str) -> str:
    """Resolve a logger name to its log file name (cached).

    Args:
        module_name: The __name__ of the module
            (e.g. "scorereview.acquisition.pipeline")

    Returns:
        Log file name without extension (e.g. "acquisition")
    """
    if module_name not in _module_log_cache:
        _module_log_cache[module_name] = _compute_log_name(module_name)
    return _module_log_cache[module_name]


def _compute_log_name(module_name: str) -> str:
    for prefix in _SORTED_PREFIXES:
        if module_name == prefix or module_name.startswith(prefix + "."):
            return MODULE_TO_LOG[prefix]
    return "misc"
