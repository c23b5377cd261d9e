from __future__ import annotations

import asyncio

import pytest
from PySide6.QtCore import Qt

from access_console.ui.assignments import CatalogTreeModel
from tests.factories import make_item, make_workflow
from tests.stubs import FakePersistence


pytestmark = pytest.mark.usefixtures("qt_app")


def _item(model: CatalogTreeModel, item_id):
    return model.itemFromIndex(model.index_for_item(item_id))


def _group(model: CatalogTreeModel, group: str):
    return model.itemFromIndex(model.index_for_group(group))


def test_rows_follow_grouped_catalog() -> None:
    model = CatalogTreeModel(make_workflow([1]))

    assert model.groups() == ["Role", "User"]
    assert model.visible_item_count() == 3
    assert _group(model, "Role").text() == "Role (2)"
    assert _group(model, "Role").rowCount() == 2


def test_check_states_mirror_workflow() -> None:
    model = CatalogTreeModel(make_workflow([1]))

    assert _item(model, 1).checkState() == Qt.CheckState.Checked
    assert _item(model, 2).checkState() == Qt.CheckState.Unchecked
    assert _group(model, "Role").checkState() == Qt.CheckState.PartiallyChecked
    assert _group(model, "User").checkState() == Qt.CheckState.Unchecked


def test_checking_item_toggles_workflow_selection() -> None:
    workflow = make_workflow([1])
    model = CatalogTreeModel(workflow)
    changes: list[bool] = []
    model.selection_changed.connect(lambda: changes.append(True))

    _item(model, 2).setCheckState(Qt.CheckState.Checked)

    assert workflow.selection == (1, 2)
    assert _group(model, "Role").checkState() == Qt.CheckState.Checked
    assert changes == [True]


def test_checking_group_selects_all_members() -> None:
    workflow = make_workflow([1])
    model = CatalogTreeModel(workflow)

    _group(model, "User").setCheckState(Qt.CheckState.Checked)

    assert workflow.is_selected(3)
    assert _item(model, 3).checkState() == Qt.CheckState.Checked


def test_refresh_applies_filter_without_losing_selection() -> None:
    workflow = make_workflow([1])
    model = CatalogTreeModel(workflow)

    workflow.filter.set_search_term("user")
    model.refresh()

    assert model.groups() == ["User"]
    assert model.visible_item_count() == 1
    assert workflow.selection == (1,)


def test_unselectable_items_are_disabled() -> None:
    workflow = make_workflow([1], selectable=lambda item: item.id != 3)
    model = CatalogTreeModel(workflow)

    assert _item(model, 1).isEnabled()
    assert not _item(model, 3).isEnabled()


@pytest.mark.asyncio
async def test_rows_disabled_while_submitting() -> None:
    persistence = FakePersistence(hold=True)
    workflow = make_workflow([1], persist=persistence)
    model = CatalogTreeModel(workflow)
    workflow.toggle(2)

    task = asyncio.create_task(workflow.commit())
    await persistence.started.wait()
    model.sync_check_states()

    assert not _item(model, 1).isEnabled()
    assert not _group(model, "Role").isEnabled()

    persistence.release()
    await task
    model.sync_check_states()

    assert _item(model, 1).isEnabled()


def test_checking_group_under_search_selects_only_shown_rows() -> None:
    workflow = make_workflow([])
    workflow.filter.set_search_term("create")
    model = CatalogTreeModel(workflow)
    assert _group(model, "Role").text() == "Role (1)"

    _group(model, "Role").setCheckState(Qt.CheckState.Checked)

    assert workflow.selection == (2,)
    assert _group(model, "Role").checkState() == Qt.CheckState.Checked


def test_paging_shows_one_page_of_rows() -> None:
    model = CatalogTreeModel(make_workflow([1]), page_size=2)

    assert model.page is not None
    assert (model.page.page, model.page.total_pages) == (1, 2)
    assert model.groups() == ["Role"]
    assert model.visible_item_count() == 2

    model.next_page()
    assert model.page.page == 2
    assert model.groups() == ["User"]
    assert _item(model, 3) is not None

    model.previous_page()
    assert model.groups() == ["Role"]


def test_group_checkbox_covers_current_page_only() -> None:
    catalog = [make_item(item_id, f"perm.{item_id}", "Role") for item_id in range(1, 4)]
    workflow = make_workflow([], catalog=catalog)
    model = CatalogTreeModel(workflow, page_size=2)
    assert _group(model, "Role").text() == "Role (2)"

    _group(model, "Role").setCheckState(Qt.CheckState.Checked)

    assert workflow.selection == (1, 2)
    assert _group(model, "Role").checkState() == Qt.CheckState.Checked
    model.next_page()
    assert _group(model, "Role").checkState() == Qt.CheckState.Unchecked


def test_reset_page_returns_to_first_page_on_refresh() -> None:
    model = CatalogTreeModel(make_workflow([1]), page_size=2)
    model.next_page()

    model.reset_page()
    model.refresh()

    assert model.page is not None
    assert model.page.page == 1


def test_model_without_page_size_has_no_page() -> None:
    model = CatalogTreeModel(make_workflow([1]))

    model.next_page()

    assert model.page is None
    assert model.visible_item_count() == 3
