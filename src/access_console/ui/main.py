from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QLabel, QMainWindow, QToolBar, QWidget

from access_console.api import AssignmentKind
from access_console.config import Settings
from access_console.data import ItemId, PermissionTemplate
from access_console.services import ServiceErrorEvent, ServiceRegistry
from access_console.ui.assignments import AssignmentController, AssignmentEditorWidget
from access_console.utils.asyncio import AsyncBridge
from access_console.utils.errors import describe_exception
from access_console.utils.logging import get_logger


logger = get_logger(__name__)

_TITLES: dict[AssignmentKind, str] = {
    AssignmentKind.ROLE_PERMISSIONS: "Role permissions",
    AssignmentKind.USER_ROLES: "User roles",
    AssignmentKind.ROLE_MENUS: "Role menus",
}


class AssignmentWindow(QMainWindow):
    """Top-level window hosting one assignment editor."""

    def __init__(
        self,
        services: ServiceRegistry,
        settings: Settings | None = None,
        *,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._controller = AssignmentController(services, settings)
        self._controller.register_callbacks(error=self._handle_service_error)
        self._settings = settings
        self._kind: AssignmentKind | None = None
        self._editor: AssignmentEditorWidget | None = None
        self._bridge = AsyncBridge()
        self._bridge.task_completed.connect(self._handle_async_result)
        self._placeholder = QLabel("Loading…")
        self._placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._placeholder.setWordWrap(True)
        self.setCentralWidget(self._placeholder)

        toolbar = QToolBar("Assignment")
        toolbar.setMovable(False)
        self.refresh_action = QAction("Refresh catalog", self)
        self.refresh_action.setEnabled(False)
        self.refresh_action.triggered.connect(self._handle_refresh_triggered)
        toolbar.addAction(self.refresh_action)
        self.addToolBar(toolbar)

        self.setWindowTitle("Access Console")
        self.resize(960, 720)

    @property
    def editor(self) -> AssignmentEditorWidget | None:
        return self._editor

    async def open_assignment(self, kind: AssignmentKind | str, target_id: ItemId) -> None:
        kind = AssignmentKind(kind)
        if not self._controller.can_edit(kind):
            logger.warning("Assignment editing not permitted", kind=kind.value, target_id=target_id)
            self._placeholder.setText(f"You do not have access to edit {_TITLES[kind].lower()}.")
            return
        try:
            workflow = await self._controller.open_workflow(kind, target_id)
            templates: list[PermissionTemplate] = []
            if kind is AssignmentKind.ROLE_PERMISSIONS:
                templates = await self._controller.list_templates()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to open assignment", kind=kind.value, target_id=target_id)
            self._show_placeholder_error(exc)
            return

        title = f"{_TITLES[kind]} · {target_id}"

        async def load_template(template_id: ItemId) -> object:
            return await self._controller.apply_template(workflow, template_id)

        self._editor = AssignmentEditorWidget(
            workflow,
            title=title,
            templates=templates,
            load_template=load_template,
            page_size=self._settings.page_size if self._settings else None,
        )
        self._kind = kind
        self.setCentralWidget(self._editor)
        self.refresh_action.setEnabled(True)
        self.setWindowTitle(f"Access Console · {title}")

    async def refresh_catalog(self) -> list[ItemId]:
        """Reload the catalog under the open editor and report ids that vanished."""
        if self._editor is None or self._kind is None:
            return []
        stale = await self._controller.reload_catalog(self._kind, self._editor.workflow)
        self._editor.reload()
        if stale:
            self.statusBar().showMessage(
                f"{len(stale)} selected item(s) are no longer in the catalog and will not be saved."
            )
        else:
            self.statusBar().showMessage("Catalog refreshed", 3000)
        return stale

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        if self._editor is not None:
            self._editor.dispose()
        self._controller.dispose()
        super().closeEvent(event)

    def _show_placeholder_error(self, error: BaseException) -> None:
        descriptor = describe_exception(error)
        text = descriptor.headline
        if descriptor.suggestion:
            text = f"{text}\n{descriptor.suggestion}"
        self._placeholder.setText(text)
        self._placeholder.setToolTip(descriptor.detail)

    def _handle_refresh_triggered(self) -> None:
        self._bridge.run_coroutine(self.refresh_catalog())

    def _handle_async_result(self, _result: object, error: object) -> None:
        if isinstance(error, BaseException) and self._editor is not None:
            logger.warning("Catalog refresh failed", error=str(error))
            self._editor.show_error(error)

    def _handle_service_error(self, event: ServiceErrorEvent) -> None:
        logger.debug(
            "Service error surfaced",
            operation=event.operation,
            target_id=event.target_id,
        )


__all__ = ["AssignmentWindow"]
