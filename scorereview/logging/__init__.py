"""Module-based logging with run-based rotation.

Per-module log files rotate at run boundaries (an API request, an approval,
a test module).

Usage:
    # At run entry points:
    from scorereview.logging import logging_run

    with logging_run("process-pdf-bach-bwv846"):
        ...

    # In modules:
    import logging
    logger = logging.getLogger(__name__)

Log files are created in logs/ (SCOREREVIEW_LOG_DIR):
    - logs/acquisition.log, logs/stores.log, logs/api.log, ...
    - logs/run-3p.log (all third-party libraries)
    - logs/*.previous.log (previous run's logs)
"""

from scorereview.logging.handlers import ModuleDispatchHandler, ThirdPartyHandler
from scorereview.logging.run_manager import (
    MODULE_TO_LOG,
    end_run,
    get_current_run_id,
    logging_run,
    module_to_log_name,
    start_run,
)

__all__ = [
    "start_run",
    "end_run",
    "logging_run",
    "get_current_run_id",
    "module_to_log_name",
    "ModuleDispatchHandler",
    "ThirdPartyHandler",
    "MODULE_TO_LOG",
]
