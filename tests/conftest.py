from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from PySide6.QtWidgets import QApplication

from access_console.utils.logging import LoggingOptions, configure_logging


os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session", autouse=True)
def _test_logging(tmp_path_factory: pytest.TempPathFactory) -> None:
    """Send log output to a throwaway file instead of the user log directory."""

    log_path = tmp_path_factory.mktemp("logs") / "access-console.log"
    configure_logging(LoggingOptions(level="DEBUG", log_path=log_path))


@pytest.fixture(scope="session")
def qt_app() -> Iterator[QApplication]:
    """Ensure a QApplication instance exists for UI tests."""

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
