from __future__ import annotations

from PySide6.QtCore import QModelIndex, Qt, Signal
from PySide6.QtGui import QStandardItem, QStandardItemModel

from access_console.data import CatalogItem, ItemId
from access_console.selection import (
    AssignmentWorkflow,
    GroupSelectionState,
    Page,
    Paginator,
    group_by_label,
)


ITEM_ID_ROLE = Qt.ItemDataRole.UserRole + 1
GROUP_ROLE = Qt.ItemDataRole.UserRole + 2

_GROUP_CHECK_STATES: dict[GroupSelectionState, Qt.CheckState] = {
    GroupSelectionState.NONE: Qt.CheckState.Unchecked,
    GroupSelectionState.PARTIAL: Qt.CheckState.PartiallyChecked,
    GroupSelectionState.ALL: Qt.CheckState.Checked,
}


def _check_state(selected: bool) -> Qt.CheckState:
    return Qt.CheckState.Checked if selected else Qt.CheckState.Unchecked


class CatalogTreeModel(QStandardItemModel):
    """Grouped, checkable view of a workflow's visible catalog.

    Rows mirror ``workflow.grouped_items()``; check states are read from the
    workflow and user edits are forwarded to it. The model never keeps its own
    notion of what is selected. With a ``page_size`` only one page of the
    filtered items is shown, and group checkboxes cover that page's rows.
    """

    selection_changed = Signal()

    _columns = ("Name", "Description")

    def __init__(self, workflow: AssignmentWorkflow, *, page_size: int | None = None) -> None:
        super().__init__()
        self._workflow = workflow
        self._paginator = Paginator(page_size) if page_size else None
        self._page: Page[CatalogItem] | None = None
        self._syncing = False
        self._group_rows: dict[str, QStandardItem] = {}
        self._item_rows: dict[ItemId, QStandardItem] = {}
        self.setHorizontalHeaderLabels(list(self._columns))
        self.itemChanged.connect(self._handle_item_changed)
        self.refresh()

    @property
    def workflow(self) -> AssignmentWorkflow:
        return self._workflow

    @property
    def page(self) -> Page[CatalogItem] | None:
        return self._page

    # ----------------------------------------------------------------- Build

    def refresh(self) -> None:
        """Rebuild rows from the workflow's current filter criteria."""
        self._syncing = True
        try:
            self.removeRows(0, self.rowCount())
            self._group_rows.clear()
            self._item_rows.clear()
            items = self._workflow.filtered_items()
            if self._paginator is not None:
                self._page = self._paginator.paginate(items)
                items = list(self._page.items)
            for group, members in group_by_label(items).items():
                group_row = self._make_group_row(group, len(members))
                for item in members:
                    group_row[0].appendRow(self._make_item_row(item))
                self.appendRow(group_row)
        finally:
            self._syncing = False
        self.sync_check_states()

    def _make_group_row(self, group: str, count: int) -> list[QStandardItem]:
        label = QStandardItem(f"{group} ({count})")
        label.setData(group, GROUP_ROLE)
        label.setCheckable(True)
        label.setEditable(False)
        detail = QStandardItem("")
        detail.setEditable(False)
        self._group_rows[group] = label
        return [label, detail]

    def _make_item_row(self, item: CatalogItem) -> list[QStandardItem]:
        label = QStandardItem(item.label)
        label.setData(item.id, ITEM_ID_ROLE)
        label.setCheckable(True)
        label.setEditable(False)
        if item.display_name and item.display_name != item.name:
            label.setToolTip(item.name)
        description = QStandardItem(item.description or "")
        description.setEditable(False)
        self._item_rows[item.id] = label
        return [label, description]

    # ----------------------------------------------------------------- Paging

    def next_page(self) -> None:
        if self._paginator is not None:
            self._paginator.next_page()
            self.refresh()

    def previous_page(self) -> None:
        if self._paginator is not None:
            self._paginator.previous_page()
            self.refresh()

    def reset_page(self) -> None:
        """Return to the first page on the next ``refresh``."""
        if self._paginator is not None:
            self._paginator.reset()

    def _group_scope(self) -> tuple[ItemId, ...] | None:
        return tuple(self._item_rows) if self._paginator is not None else None

    # ----------------------------------------------------------------- Sync

    def sync_check_states(self) -> None:
        """Push selection and submitting state from the workflow into the rows."""
        workflow = self._workflow
        editable = not workflow.is_submitting
        self._syncing = True
        try:
            for item in workflow.filtered_items():
                row = self._item_rows.get(item.id)
                if row is None:
                    continue
                row.setCheckState(_check_state(workflow.is_selected(item.id)))
                row.setEnabled(editable and workflow.is_selectable(item))
            for group, row in self._group_rows.items():
                row.setCheckState(
                    _GROUP_CHECK_STATES[workflow.group_state(group, within=self._group_scope())]
                )
                row.setEnabled(editable)
        finally:
            self._syncing = False

    def _handle_item_changed(self, item: QStandardItem) -> None:
        if self._syncing or not item.isCheckable():
            return
        group = item.data(GROUP_ROLE)
        if group is not None:
            self._workflow.toggle_group(group, within=self._group_scope())
        else:
            item_id = item.data(ITEM_ID_ROLE)
            wanted = item.checkState() == Qt.CheckState.Checked
            if self._workflow.is_selected(item_id) != wanted:
                self._workflow.toggle(item_id)
        self.sync_check_states()
        self.selection_changed.emit()

    # ----------------------------------------------------------------- Lookup

    def index_for_item(self, item_id: ItemId) -> QModelIndex:
        row = self._item_rows.get(item_id)
        return row.index() if row is not None else QModelIndex()

    def index_for_group(self, group: str) -> QModelIndex:
        row = self._group_rows.get(group)
        return row.index() if row is not None else QModelIndex()

    def groups(self) -> list[str]:
        return list(self._group_rows)

    def visible_item_count(self) -> int:
        return len(self._item_rows)


__all__ = ["CatalogTreeModel", "GROUP_ROLE", "ITEM_ID_ROLE"]
