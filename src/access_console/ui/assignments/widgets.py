from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable

from PySide6.QtCore import QModelIndex, Signal
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QTreeView,
    QVBoxLayout,
    QWidget,
)

from access_console.data import ItemId, PermissionTemplate
from access_console.selection import (
    AssignmentWorkflow,
    ChangePreview,
    CommitEvent,
    ImpactLevel,
    SortKey,
)
from access_console.services import MutationStatus
from access_console.utils.asyncio import AsyncBridge
from access_console.utils.errors import describe_exception
from access_console.utils.logging import get_logger

from .models import GROUP_ROLE, CatalogTreeModel


logger = get_logger(__name__)

ConfirmCallback = Callable[[ChangePreview], bool]
TemplateLoader = Callable[[ItemId], Awaitable[object]]

_SORT_OPTIONS: tuple[tuple[str, str | None], ...] = (
    ("Name", SortKey.NAME.value),
    ("Most used", SortKey.USAGE.value),
    ("Newest", SortKey.CREATED.value),
    ("Catalog order", None),
)


class SelectionCounter(QWidget):
    """Show "Selected: n / total" alongside an unsaved-changes badge."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._label = QLabel()
        self._badge = QLabel("Unsaved changes")
        self._badge.setProperty("class", "badge-warning")
        self._badge.setVisible(False)
        layout.addWidget(self._label)
        layout.addWidget(self._badge)
        layout.addStretch()
        self.update_counts(0, 0, has_changes=False)

    def update_counts(self, selected: int, total: int, *, has_changes: bool) -> None:
        self._label.setText(f"Selected: {selected} / {total}")
        self._badge.setVisible(has_changes)

    @property
    def text(self) -> str:
        return self._label.text()

    @property
    def badge_shown(self) -> bool:
        return not self._badge.isHidden()


class AssignmentFooter(QWidget):
    """Reset and save actions, present only while there is something to save."""

    reset_requested = Signal()
    save_requested = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 8, 0, 0)
        self.reset_button = QPushButton("Reset Changes")
        self.save_button = QPushButton("Preview & Save Changes")
        self.save_button.setDefault(True)
        layout.addStretch()
        layout.addWidget(self.reset_button)
        layout.addWidget(self.save_button)
        self.reset_button.clicked.connect(self.reset_requested.emit)
        self.save_button.clicked.connect(self.save_requested.emit)
        self.update_state(has_changes=False, submitting=False)

    def update_state(self, *, has_changes: bool, submitting: bool) -> None:
        self.setVisible(has_changes)
        self.reset_button.setEnabled(not submitting)
        self.save_button.setEnabled(not submitting)
        self.save_button.setText("Saving…" if submitting else "Preview & Save Changes")


class ChangePreviewDialog(QDialog):
    """Confirmation step listing what a commit will add and remove."""

    def __init__(self, preview: ChangePreview, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Review changes")
        self.setModal(True)
        layout = QVBoxLayout(self)

        self.impact_label = QLabel(preview.impact.message)
        if preview.impact in (ImpactLevel.MEDIUM, ImpactLevel.HIGH):
            self.impact_label.setProperty("class", "badge-warning")
        layout.addWidget(self.impact_label)

        self.summary = QPlainTextEdit("\n".join(preview.summary_lines()))
        self.summary.setReadOnly(True)
        layout.addWidget(self.summary)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)


def confirm_with_dialog(preview: ChangePreview) -> bool:
    return ChangePreviewDialog(preview).exec() == QDialog.DialogCode.Accepted


class AssignmentEditorWidget(QWidget):
    """Search, group and tick catalog items, then review and save the result."""

    committed = Signal(object)

    def __init__(
        self,
        workflow: AssignmentWorkflow,
        *,
        title: str | None = None,
        templates: Iterable[PermissionTemplate] = (),
        load_template: TemplateLoader | None = None,
        confirm: ConfirmCallback | None = None,
        page_size: int | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._workflow = workflow
        self._load_template = load_template
        self._confirm = confirm or confirm_with_dialog
        self._applying_expansion = False
        self._bridge = AsyncBridge()
        self._bridge.task_completed.connect(self._handle_async_result)
        self._unsubscribe = [
            workflow.commit_status.subscribe(self._handle_commit_status),
            workflow.committed.subscribe(lambda event: self.committed.emit(event)),
        ]

        layout = QVBoxLayout(self)
        if title:
            heading = QLabel(title)
            heading.setProperty("class", "page-title")
            layout.addWidget(heading)

        filters = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search by name, description or group")
        self.search_input.setClearButtonEnabled(True)
        self.category_combo = QComboBox()
        self.sort_combo = QComboBox()
        for label, key in _SORT_OPTIONS:
            self.sort_combo.addItem(label, key)
        filters.addWidget(self.search_input, 1)
        filters.addWidget(self.category_combo)
        filters.addWidget(self.sort_combo)
        layout.addLayout(filters)

        actions = QHBoxLayout()
        self.expand_button = QPushButton("Expand all")
        self.collapse_button = QPushButton("Collapse all")
        self.select_visible_button = QPushButton("Select visible")
        self.clear_button = QPushButton("Clear selection")
        self.template_combo = QComboBox()
        self.template_button = QPushButton("Apply template")
        for button in (
            self.expand_button,
            self.collapse_button,
            self.select_visible_button,
            self.clear_button,
        ):
            actions.addWidget(button)
        actions.addStretch()
        actions.addWidget(self.template_combo)
        actions.addWidget(self.template_button)
        layout.addLayout(actions)

        self.model = CatalogTreeModel(workflow, page_size=page_size)
        self.tree = QTreeView()
        self.tree.setModel(self.model)
        self.tree.setUniformRowHeights(True)
        self.tree.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        layout.addWidget(self.tree, 1)

        pager = QHBoxLayout()
        self.previous_page_button = QPushButton("Previous")
        self.page_label = QLabel()
        self.next_page_button = QPushButton("Next")
        pager.addStretch()
        pager.addWidget(self.previous_page_button)
        pager.addWidget(self.page_label)
        pager.addWidget(self.next_page_button)
        layout.addLayout(pager)

        self.status_label = QLabel()
        self.status_label.setWordWrap(True)
        self.status_label.setVisible(False)
        layout.addWidget(self.status_label)

        self.counter = SelectionCounter()
        self.footer = AssignmentFooter()
        layout.addWidget(self.counter)
        layout.addWidget(self.footer)

        self._populate_categories()
        self._set_sort_combo(workflow.filter.criteria.sort_key)
        self.set_templates(templates)

        self.search_input.textChanged.connect(self._handle_search_changed)
        self.category_combo.currentIndexChanged.connect(self._handle_category_changed)
        self.sort_combo.currentIndexChanged.connect(self._handle_sort_changed)
        self.expand_button.clicked.connect(self.expand_all)
        self.collapse_button.clicked.connect(self.collapse_all)
        self.select_visible_button.clicked.connect(self._handle_select_visible)
        self.clear_button.clicked.connect(self._handle_clear)
        self.template_button.clicked.connect(self._handle_template_clicked)
        self.previous_page_button.clicked.connect(self.previous_page)
        self.next_page_button.clicked.connect(self.next_page)
        self.tree.expanded.connect(self._handle_expanded)
        self.tree.collapsed.connect(self._handle_collapsed)
        self.model.selection_changed.connect(self._sync_state)
        self.footer.reset_requested.connect(self.reset_changes)
        self.footer.save_requested.connect(self.request_save)

        self._apply_expansion()
        self._sync_state()

    @property
    def workflow(self) -> AssignmentWorkflow:
        return self._workflow

    # ----------------------------------------------------------------- Public actions

    def set_templates(self, templates: Iterable[PermissionTemplate]) -> None:
        self.template_combo.clear()
        for template in templates:
            self.template_combo.addItem(template.name, template.id)
        available = self.template_combo.count() > 0 and self._load_template is not None
        self.template_combo.setVisible(available)
        self.template_button.setVisible(available)

    def rebuild(self, *, reset_page: bool = False) -> None:
        if reset_page:
            self.model.reset_page()
        self.model.refresh()
        self._apply_expansion()
        self._sync_state()

    def reload(self) -> None:
        """Rebuild after the workflow's catalog was replaced."""
        self._populate_categories()
        self.rebuild()

    def next_page(self) -> None:
        self.model.next_page()
        self._apply_expansion()
        self._sync_state()

    def previous_page(self) -> None:
        self.model.previous_page()
        self._apply_expansion()
        self._sync_state()

    def expand_all(self) -> None:
        self._workflow.expansion.expand_all(self._workflow.grouped_items())
        self._apply_expansion()

    def collapse_all(self) -> None:
        self._workflow.expansion.collapse_all()
        self._apply_expansion()

    def reset_changes(self) -> None:
        self._workflow.reset()
        self.clear_status()
        self._sync_state()

    def request_save(self) -> asyncio.Future[None] | None:
        """Show the change preview and, once confirmed, commit in the background."""
        if not self._workflow.can_commit:
            return None
        preview = self._workflow.preview_items()
        if not self._confirm(preview):
            logger.debug("Save cancelled at preview", target_id=self._workflow.target_id)
            return None
        return self._bridge.run_coroutine(self.commit_changes())

    async def commit_changes(self) -> object:
        try:
            return await self._workflow.commit()
        finally:
            self._sync_state()

    async def apply_template(self, template_id: ItemId) -> None:
        if self._load_template is None:
            return
        await self._load_template(template_id)
        self._sync_state()

    def show_error(self, error: BaseException) -> None:
        descriptor = describe_exception(error)
        message = descriptor.headline
        if descriptor.suggestion:
            message = f"{message} {descriptor.suggestion}"
        self.status_label.setText(message)
        self.status_label.setToolTip(descriptor.detail)
        self.status_label.setProperty("severity", descriptor.severity.value)
        self.status_label.setVisible(True)

    def clear_status(self) -> None:
        self.status_label.clear()
        self.status_label.setVisible(False)

    def dispose(self) -> None:
        while self._unsubscribe:
            self._unsubscribe.pop()()

    # ----------------------------------------------------------------- Handlers

    def _handle_search_changed(self, text: str) -> None:
        self._workflow.filter.set_search_term(text)
        self.rebuild(reset_page=True)

    def _handle_category_changed(self, _index: int) -> None:
        self._workflow.filter.set_category(self.category_combo.currentData())
        self.rebuild(reset_page=True)

    def _handle_sort_changed(self, _index: int) -> None:
        self._workflow.filter.set_sort(self.sort_combo.currentData())
        self.rebuild(reset_page=True)

    def _handle_select_visible(self) -> None:
        self._workflow.select_all_visible()
        self._sync_state()

    def _handle_clear(self) -> None:
        self._workflow.deselect_all()
        self._sync_state()

    def _handle_template_clicked(self) -> None:
        template_id = self.template_combo.currentData()
        if template_id is None:
            return
        self._bridge.run_coroutine(self.apply_template(template_id))

    def _handle_expanded(self, index: QModelIndex) -> None:
        self._record_expansion(index, expanded=True)

    def _handle_collapsed(self, index: QModelIndex) -> None:
        self._record_expansion(index, expanded=False)

    def _record_expansion(self, index: QModelIndex, *, expanded: bool) -> None:
        if self._applying_expansion:
            return
        group = index.data(GROUP_ROLE)
        if group is None:
            return
        if self._workflow.is_expanded(group) != expanded:
            self._workflow.expansion.toggle(group)

    def _handle_commit_status(self, event: CommitEvent) -> None:
        if event.status is MutationStatus.PENDING:
            self.clear_status()
        self._sync_state()

    def _handle_async_result(self, result: object, error: object) -> None:
        if isinstance(error, BaseException):
            logger.warning(
                "Assignment action failed",
                target_id=self._workflow.target_id,
                error=str(error),
            )
            self.show_error(error)
            self._sync_state()
            return
        self.clear_status()
        self._sync_state()

    # ----------------------------------------------------------------- Helpers

    def _populate_categories(self) -> None:
        self.category_combo.blockSignals(True)
        self.category_combo.clear()
        self.category_combo.addItem("All groups", None)
        for category in self._workflow.filter.unique_categories():
            self.category_combo.addItem(category, category)
        current = self._workflow.filter.criteria.category
        index = self.category_combo.findData(current) if current else 0
        if index < 0:
            self._workflow.filter.set_category(None)
            index = 0
        self.category_combo.setCurrentIndex(index)
        self.category_combo.blockSignals(False)

    def _set_sort_combo(self, key: str | None) -> None:
        index = self.sort_combo.findData(key) if key else self.sort_combo.count() - 1
        self.sort_combo.blockSignals(True)
        self.sort_combo.setCurrentIndex(index if index >= 0 else 0)
        self.sort_combo.blockSignals(False)

    def _apply_expansion(self) -> None:
        self._applying_expansion = True
        try:
            for group in self.model.groups():
                self.tree.setExpanded(
                    self.model.index_for_group(group),
                    self._workflow.is_expanded(group),
                )
        finally:
            self._applying_expansion = False

    def _sync_state(self) -> None:
        workflow = self._workflow
        submitting = workflow.is_submitting
        self.model.sync_check_states()
        self.counter.update_counts(
            workflow.selected_count,
            workflow.total_count,
            has_changes=workflow.has_changes,
        )
        self.footer.update_state(has_changes=workflow.has_changes, submitting=submitting)
        self._sync_pager()
        for widget in (
            self.select_visible_button,
            self.clear_button,
            self.template_button,
        ):
            widget.setEnabled(not submitting)

    def _sync_pager(self) -> None:
        page = self.model.page
        paged = page is not None and page.total_pages > 1
        for widget in (self.previous_page_button, self.page_label, self.next_page_button):
            widget.setVisible(paged)
        if page is None:
            return
        self.page_label.setText(f"Page {page.page} of {page.total_pages}")
        self.previous_page_button.setEnabled(page.has_previous)
        self.next_page_button.setEnabled(page.has_next)


__all__ = [
    "AssignmentEditorWidget",
    "AssignmentFooter",
    "ChangePreviewDialog",
    "SelectionCounter",
    "confirm_with_dialog",
]
