"""
Repository-level pytest configuration.

  - Initialize logging once for the whole session
  - Keep credentials out of the repository

Real inference credentials come from OPENAI_API_KEY in the environment or
CI secret store, never from this file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from autoheal_tools.common import init_logger
from testsuites.ui_testing.framework.config_loader import ConfigLoader


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _session_logging() -> Generator[None, None, None]:
    """
    Configure loguru from `logging.level` / `logging.file`
    (LOG_LEVEL / LOG_FILE_PATH in the environment).
    """
    config = ConfigLoader()
    init_logger(
        level=config.get("logging.level", "INFO"),
        log_file=config.get("logging.file"),
    )

    yield
