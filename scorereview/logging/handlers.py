"""Logging handlers that split records into per-module files.

ModuleDispatchHandler writes each project record to the file named by
MODULE_TO_LOG (acquisition.log, stores.log, api.log, ...). ThirdPartyHandler
collects httpx, botocore, playwright and friends into run-3p.log.

File I/O is synchronous. Writes are a few microseconds each, which is fine
for a service that spends seconds on every acquisition.
"""

import logging
from pathlib import Path
from typing import TextIO


def _rotate_log_file(log_dir: Path, log_name: str, stream: TextIO | None) -> TextIO:
    """Move <name>.log to <name>.previous.log and open a fresh <name>.log.

    Args:
        log_dir: Directory containing log files
        log_name: Base name of the log file (without .log extension)
        stream: Currently open stream for this file, closed before renaming

    Returns:
        New file handle opened for appending.
    """
    current = log_dir / f"{log_name}.log"
    previous = log_dir / f"{log_name}.previous.log"

    if stream:
        stream.close()

    if previous.exists():
        previous.unlink()
    if current.exists():
        current.rename(previous)

    return current.open("a", encoding="utf-8")


class ModuleDispatchHandler(logging.Handler):
    """One handler routing records to per-module log files.

    Keeps its own cache of open files instead of one FileHandler per module.
    Files are opened lazily and rotated on the first write of each run
    (see scorereview.logging.run_manager.start_run), so a module never has
    more than two files: current and previous.

    Usage:
        handler = ModuleDispatchHandler(Path("logs"))
        handler.setFormatter(logging.Formatter("%(asctime)s - %(message)s"))
        logging.getLogger().addHandler(handler)
    """

    def __init__(self, log_dir: Path):
        super().__init__()
        self.log_dir = log_dir
        self._file_cache: dict[str, TextIO] = {}

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # Deferred import: run_manager is imported by the package __init__
            from scorereview.logging.run_manager import module_to_log_name, should_rotate

            log_name = module_to_log_name(record.name)

            if should_rotate(log_name):
                self._rotate_file(log_name)

            file = self._get_or_open_file(log_name)
            file.write(self.format(record) + "\n")
            file.flush()

        except Exception:
            self.handleError(record)

    def _rotate_file(self, log_name: str) -> None:
        existing_stream = self._file_cache.pop(log_name, None)
        self._file_cache[log_name] = _rotate_log_file(
            self.log_dir, log_name, existing_stream
        )

    def _get_or_open_file(self, log_name: str) -> TextIO:
        if log_name not in self._file_cache:
            path = self.log_dir / f"{log_name}.log"
            self._file_cache[log_name] = open(path, "a", encoding="utf-8")
        return self._file_cache[log_name]

    def close(self) -> None:
        """Close every cached file handle."""
        self.acquire()
        try:
            for file in self._file_cache.values():
                try:
                    file.close()
                except OSError:
                    pass
            self._file_cache.clear()
        finally:
            self.release()
        super().close()


class ThirdPartyHandler(logging.FileHandler):
    """Single run-3p.log file for library logs, rotated per run."""

    LOG_NAME = "run-3p"

    def __init__(self, log_dir: Path, **kwargs):
        self.log_dir = log_dir
        log_file = log_dir / f"{self.LOG_NAME}.log"
        super().__init__(log_file, mode="a", encoding="utf-8", **kwargs)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            from scorereview.logging.run_manager import should_rotate

            if should_rotate(self.LOG_NAME):
                self.stream = _rotate_log_file(self.log_dir, self.LOG_NAME, self.stream)

            super().emit(record)

        except Exception:
            self.handleError(record)
