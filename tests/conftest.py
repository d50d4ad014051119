from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.site_builder import SiteBuilder


@pytest.fixture
def site_builder(tmp_path: Path) -> SiteBuilder:
    """Provide a build directory rooted at the pytest tmp_path."""
    return SiteBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_precache_logger() -> Iterator[None]:
    """Drop handlers installed by CLI runs so later tests start clean."""
    logger = logging.getLogger("precache")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
