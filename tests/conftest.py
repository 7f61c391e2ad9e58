from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Iterator

import pytest


@pytest.fixture(autouse=True)
def _reset_mdpress_logger() -> Iterator[None]:
    """Detach handlers configured by a test so caplog keeps working."""

    yield
    logger = logging.getLogger("mdpress")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def workspace_home(tmp_path: Path) -> Path:
    """An isolated workspace root that never touches ``~/.mdpress``."""

    return tmp_path / "workspace"


@pytest.fixture
def fixed_today():
    return lambda: date(2024, 3, 5)
