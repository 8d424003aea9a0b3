from __future__ import annotations

import logging

import pytest

from aduib_naming.discover import LocalAgent, Registration
from aduib_naming.observability import PACKAGE_LOGGER


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Force anyio-based tests to only run on asyncio backend.

    The test extra doesn't include trio, so `@pytest.mark.anyio` tests would be
    parametrized for (asyncio, trio) and fail without it.
    """

    for item in items:
        marker = item.get_closest_marker("anyio")
        if marker is not None:
            marker.kwargs["backend"] = "asyncio"


@pytest.fixture
def agent() -> LocalAgent:
    return LocalAgent()


@pytest.fixture
def registration() -> Registration:
    return Registration(id="payments-1", name="payments", addr="10.0.0.1", port=8080, tags=("eu",))


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo ``configure_logging`` so caplog keeps seeing package records."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
