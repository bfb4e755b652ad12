from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.sources import FIXTURE_PROJECT


@pytest.fixture
def qt_project(tmp_path: Path) -> Path:
    """Copy of the TestClass fixture project rooted at the pytest tmp_path."""
    root = tmp_path / "qt_project"
    shutil.copytree(FIXTURE_PROJECT, root)
    return root


@pytest.fixture(autouse=True)
def _reset_qdocgen_logger() -> Iterator[None]:
    """Undo configure_logging() from CLI tests so caplog keeps working."""
    yield
    logger = logging.getLogger("qdocgen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
