"""Score review configuration and environment setup.

This module provides centralized configuration for the score review service,
including development mode detection and logging setup.
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Logger name prefixes that belong to this project (everything else is third-party)
FIRST_PARTY_PREFIXES = ("scorereview", "testing")

_configured = False


def is_dev_mode() -> bool:
    """Check if running in development mode.

    Returns:
        True if SCOREREVIEW_MODE is set to 'dev', False otherwise.
    """
    return os.getenv("SCOREREVIEW_MODE", "prod").lower() == "dev"


def get_log_dir() -> Path:
    """Directory for module log files (SCOREREVIEW_LOG_DIR, default: logs/)."""
    return Path(os.getenv("SCOREREVIEW_LOG_DIR", "logs"))


class _FirstPartyFilter(logging.Filter):
    def __init__(self, first_party: bool):
        super().__init__()
        self.first_party = first_party

    def filter(self, record: logging.LogRecord) -> bool:
        is_ours = record.name.startswith(FIRST_PARTY_PREFIXES)
        return is_ours if self.first_party else not is_ours


def configure_logging(name: str | None = None) -> None:
    """Install module-based file logging plus a console handler.

    Project modules log to per-module files (see scorereview.logging), all
    third-party libraries go to run-3p.log. Dev mode lowers the level to DEBUG.

    This function is idempotent and safe to call multiple times.

    Args:
        name: Optional run name. When given, a logging run is started so that
            log files rotate on first write.
    """
    global _configured

    from scorereview.logging import ModuleDispatchHandler, ThirdPartyHandler, start_run

    if name:
        start_run(name)

    if _configured:
        return

    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    module_handler = ModuleDispatchHandler(log_dir)
    module_handler.setFormatter(formatter)
    module_handler.addFilter(_FirstPartyFilter(first_party=True))

    third_party_handler = ThirdPartyHandler(log_dir)
    third_party_handler.setFormatter(formatter)
    third_party_handler.addFilter(_FirstPartyFilter(first_party=False))

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(logging.INFO)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if is_dev_mode() else logging.INFO)
    root.addHandler(module_handler)
    root.addHandler(third_party_handler)
    root.addHandler(console)

    _configured = True
