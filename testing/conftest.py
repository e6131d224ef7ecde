"""
Pytest configuration for the score review test suite.

Usage:
    pytest testing/
    pytest testing/test_pipeline.py -k timeout
    pytest testing/ --integration      # include real browser/network tests
"""

from collections.abc import Generator

import pytest

from scorereview.acquisition import AcquisitionConfig, TransportKind
from scorereview.logging import end_run, start_run

MINIMAL_PDF = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


@pytest.fixture(autouse=True)
def logging_run(request: pytest.FixtureRequest) -> Generator[None, None, None]:
    """Rotate logs at test module boundaries.

    When running with pytest-xdist, each worker uses a separate log directory
    to prevent file corruption from concurrent writes.
    """
    import os

    worker_id = os.environ.get("PYTEST_XDIST_WORKER")
    if worker_id:
        os.environ["SCOREREVIEW_LOG_DIR"] = f"logs/test-{worker_id}"

    test_path = request.node.nodeid.split("::")[0]
    test_name = test_path.replace("/", "-").replace(".py", "")
    start_run(f"test-{test_name}")
    yield
    end_run()


@pytest.fixture
def pdf_bytes() -> bytes:
    """A tiny but well-formed PDF body."""
    return MINIMAL_PDF


@pytest.fixture
def acquisition_config() -> AcquisitionConfig:
    """Fast acquisition settings independent of the environment."""
    return AcquisitionConfig(
        bucket="tonebase-emails",
        region="us-east-1",
        prefix="Q2_2021/Q2W4/Scores/general",
        transport=TransportKind.HTTP,
        timeout=5.0,
        navigation_timeout=2.0,
        upload_timeout=2.0,
        gate_timeout=0.1,
        link_attempts=3,
        link_poll_interval=0.0,
        cookies={},
    )


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring external services",
    )


def pytest_addoption(parser):
    """Add custom command line options for pytest."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run tests that need a real browser, network or cloud credentials",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration"):
        return
    skip = pytest.mark.skip(reason="needs --integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)
