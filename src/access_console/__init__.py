from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from PySide6.QtWidgets import QApplication
from qasync import QEventLoop

from access_console.api import AssignmentKind
from access_console.auth import AccessChecker
from access_console.bootstrap import build_services, load_access
from access_console.config import SettingsManager
from access_console.ui import AssignmentWindow
from access_console.utils import (
    LoggingOptions,
    configure_logging,
    get_logger,
    level_from_name,
)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="access-console",
        description="Edit role permissions, user roles and role menus.",
    )
    parser.add_argument(
        "kind",
        choices=[kind.value for kind in AssignmentKind],
        help="Which assignment to edit.",
    )
    parser.add_argument("target", help="Id of the role or user being edited.")
    parser.add_argument("--debug", action="store_true", help="Verbose console logging.")
    return parser.parse_args(argv)


def _coerce_id(value: str) -> int | str:
    return int(value) if value.isdigit() else value


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = SettingsManager().load()
    configure_logging(
        LoggingOptions(level=level_from_name(settings.log_level), debug=args.debug)
    )
    logger = get_logger(__name__)
    logger.info("Starting access console", kind=args.kind, target=args.target)
    if not settings.is_configured:
        logger.warning("No API token configured; requests will be anonymous")

    app = QApplication(sys.argv[:1])
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    services = build_services(settings)
    window = AssignmentWindow(services, settings)
    window.show()

    async def start() -> None:
        try:
            await load_access(services)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load operator profile")
            services.access = AccessChecker()
        await window.open_assignment(args.kind, _coerce_id(args.target))

    app.aboutToQuit.connect(loop.stop)

    try:
        with loop:
            loop.create_task(start())
            loop.run_forever()
            if services.client is not None:
                loop.run_until_complete(services.client.aclose())
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")


__all__ = ["main"]
