"""
Strongbox Test Configuration
----------------------------
Shared fixtures and configuration for all tests.
"""

import logging
import sys
from pathlib import Path
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="session")
def project_root():
    """Return the project root path."""
    return PROJECT_ROOT


@pytest.fixture
def store():
    """Empty read-write store."""
    from memory.store import Store
    return Store()


@pytest.fixture
def reset_logging():
    """
    Undo configure_logging() after a test.

    Handlers are closed so temporary log files can be removed.
    """
    import infra.logging as strongbox_logging

    yield strongbox_logging

    root_logger = logging.getLogger(strongbox_logging.ROOT_LOGGER)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)
    strongbox_logging._logging_initialized = False
    strongbox_logging._log_file_path = None


@pytest.fixture
def clean_env(monkeypatch):
    """Remove STRONGBOX_* variables inherited from the shell."""
    import os
    for key in list(os.environ):
        if key.startswith("STRONGBOX_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
