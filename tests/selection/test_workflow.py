from __future__ import annotations

import asyncio

import pytest

from access_console.api import ApiError, ApiErrorCategory
from access_console.selection import (
    AssignmentWorkflow,
    ChangeDelta,
    CommitEvent,
    GroupSelectionState,
    InvalidStateError,
    PersistenceFailure,
    WorkflowState,
)
from access_console.services import MutationStatus
from tests.factories import make_catalog, make_item, make_workflow
from tests.stubs import FakePersistence


# ----------------------------------------------------------------- Scenarios


def test_toggle_adds_item_and_reports_delta() -> None:
    workflow = make_workflow([1])

    workflow.toggle(2)

    assert workflow.selection == (1, 2)
    assert workflow.has_changes
    assert workflow.delta() == ChangeDelta(added=(2,), removed=())


def test_reset_restores_baseline() -> None:
    workflow = make_workflow([1])
    workflow.toggle(2)

    workflow.reset()

    assert workflow.selection == (1,)
    assert not workflow.has_changes


@pytest.mark.asyncio
async def test_commit_success_rebaselines() -> None:
    persistence = FakePersistence()
    workflow = make_workflow([1], persist=persistence)
    workflow.toggle(2)

    delta = await workflow.commit()

    assert delta == ChangeDelta(added=(2,), removed=())
    assert persistence.calls == [("role-1", [1, 2])]
    assert set(workflow.baseline) == {1, 2}
    assert set(workflow.selection) == {1, 2}
    assert not workflow.has_changes
    assert workflow.state is WorkflowState.IDLE


@pytest.mark.asyncio
async def test_commit_failure_keeps_selection_and_baseline() -> None:
    cause = ApiError("boom", category=ApiErrorCategory.UNKNOWN, status_code=500)
    workflow = make_workflow([1], persist=FakePersistence(fail_with=cause))
    workflow.toggle(2)

    with pytest.raises(PersistenceFailure) as excinfo:
        await workflow.commit()

    assert excinfo.value.cause is cause
    assert excinfo.value.__cause__ is cause
    assert workflow.selection == (1, 2)
    assert workflow.baseline == (1,)
    assert workflow.has_changes
    assert workflow.last_error is excinfo.value
    assert workflow.state is WorkflowState.IDLE


def test_search_narrows_view_without_touching_selection() -> None:
    workflow = make_workflow([1])
    workflow.toggle(2)

    workflow.filter.set_search_term("user")

    assert [item.id for item in workflow.filtered_items()] == [3]
    assert workflow.selection == (1, 2)
    assert workflow.selected_count == 2


def test_category_change_keeps_selection() -> None:
    workflow = make_workflow([1])
    workflow.toggle(3)

    workflow.filter.set_category("Role")
    assert [item.id for item in workflow.filtered_items()] == [1, 2]
    assert workflow.selection == (1, 3)
    assert workflow.selected_count == 2

    workflow.filter.set_category(None)
    assert workflow.selection == (1, 3)
    assert workflow.delta() == ChangeDelta(added=(3,), removed=())


def test_sort_change_keeps_selection() -> None:
    workflow = make_workflow([3, 1])

    workflow.filter.set_sort("name")
    assert [item.id for item in workflow.filtered_items()] == [2, 1, 3]
    assert workflow.selection == (3, 1)

    workflow.filter.set_sort("usage")
    workflow.filter.set_sort(None)
    assert workflow.selection == (3, 1)
    assert not workflow.has_changes


def test_expansion_toggle_affects_only_that_group() -> None:
    workflow = make_workflow([1], expanded_groups=())

    workflow.expansion.expand_all(["Role", "User"])
    workflow.expansion.toggle("Role")

    assert not workflow.is_expanded("Role")
    assert workflow.is_expanded("User")


# ----------------------------------------------------------------- Lifecycle


def test_start_sets_selection_equal_to_baseline() -> None:
    workflow = make_workflow([3, 1])

    assert workflow.selection == (3, 1)
    assert workflow.baseline == (3, 1)
    assert not workflow.has_changes
    assert not workflow.can_commit
    assert not workflow.can_reset


def test_groups_are_expanded_by_default() -> None:
    workflow = make_workflow(catalog=[make_item(1, "a", "One"), make_item(2, "b")])

    assert workflow.is_expanded("One")
    assert workflow.is_expanded("Other")


def test_reset_without_changes_is_a_no_op() -> None:
    workflow = make_workflow([1])

    workflow.reset()

    assert workflow.selection == (1,)


@pytest.mark.parametrize("operation", ["preview", "preview_items"])
def test_preview_without_changes_is_rejected(operation: str) -> None:
    workflow = make_workflow([1])

    with pytest.raises(InvalidStateError) as excinfo:
        getattr(workflow, operation)()

    assert excinfo.value.operation == "preview"


@pytest.mark.asyncio
async def test_commit_without_changes_is_rejected() -> None:
    persistence = FakePersistence()
    workflow = make_workflow([1], persist=persistence)

    with pytest.raises(InvalidStateError):
        await workflow.commit()

    assert persistence.calls == []


def test_preview_returns_current_delta() -> None:
    workflow = make_workflow([1, 3])
    workflow.toggle(2)
    workflow.toggle(3)

    assert workflow.preview() == ChangeDelta(added=(2,), removed=(3,))
    preview = workflow.preview_items()
    assert preview.added_count == 1
    assert preview.removed_count == 1


def test_deselect_all_then_select_all() -> None:
    workflow = make_workflow([1])

    workflow.deselect_all()
    assert workflow.selection == ()
    assert workflow.delta().removed == (1,)

    workflow.select_all([1, 2, 3])
    assert workflow.selected_count == 3


# ----------------------------------------------------------------- Submitting guard


@pytest.mark.asyncio
async def test_mutations_rejected_while_submitting() -> None:
    persistence = FakePersistence(hold=True)
    workflow = make_workflow([1], persist=persistence)
    workflow.toggle(2)

    task = asyncio.create_task(workflow.commit())
    await persistence.started.wait()

    assert workflow.state is WorkflowState.SUBMITTING
    assert workflow.is_submitting
    assert not workflow.can_commit
    assert not workflow.can_reset
    with pytest.raises(InvalidStateError):
        workflow.toggle(3)
    with pytest.raises(InvalidStateError):
        workflow.reset()
    with pytest.raises(InvalidStateError):
        workflow.deselect_all()
    with pytest.raises(InvalidStateError):
        workflow.select_all([3])
    with pytest.raises(InvalidStateError):
        workflow.select_many([3])
    with pytest.raises(InvalidStateError):
        workflow.deselect_many([1])
    with pytest.raises(InvalidStateError):
        workflow.toggle_group("Role")
    with pytest.raises(InvalidStateError):
        workflow.apply_template([3])
    with pytest.raises(InvalidStateError):
        workflow.prune_stale()
    with pytest.raises(InvalidStateError) as preview_error:
        workflow.preview()
    assert preview_error.value.operation == "preview"
    with pytest.raises(InvalidStateError):
        workflow.preview_items()
    with pytest.raises(InvalidStateError):
        await workflow.commit()

    persistence.release()
    await task

    assert len(persistence.calls) == 1
    assert workflow.state is WorkflowState.IDLE
    assert workflow.selection == (1, 2)


@pytest.mark.asyncio
async def test_commit_timeout_surfaces_as_persistence_failure() -> None:
    persistence = FakePersistence(hold=True)
    workflow = make_workflow([1], persist=persistence, commit_timeout=0.01)
    workflow.toggle(2)

    with pytest.raises(PersistenceFailure) as excinfo:
        await workflow.commit()

    assert isinstance(excinfo.value.cause, asyncio.TimeoutError)
    assert workflow.baseline == (1,)
    assert workflow.state is WorkflowState.IDLE


@pytest.mark.asyncio
async def test_false_result_counts_as_failure() -> None:
    workflow = make_workflow([1], persist=FakePersistence(result=False))
    workflow.toggle(2)

    with pytest.raises(PersistenceFailure):
        await workflow.commit()

    assert workflow.has_changes


@pytest.mark.asyncio
async def test_retry_after_failure_succeeds() -> None:
    persistence = FakePersistence(fail_with=RuntimeError("offline"))
    workflow = make_workflow([1], persist=persistence)
    workflow.toggle(2)
    with pytest.raises(PersistenceFailure):
        await workflow.commit()

    persistence.fail_with = None
    await workflow.commit()

    assert persistence.calls == [("role-1", [1, 2]), ("role-1", [1, 2])]
    assert not workflow.has_changes
    assert workflow.last_error is None


@pytest.mark.asyncio
async def test_commit_emits_status_and_committed_events() -> None:
    workflow = make_workflow([1])
    statuses: list[MutationStatus] = []
    committed: list[CommitEvent] = []
    workflow.commit_status.subscribe(lambda event: statuses.append(event.status))
    workflow.committed.subscribe(committed.append)
    workflow.toggle(2)

    await workflow.commit()

    assert statuses == [MutationStatus.PENDING, MutationStatus.SUCCEEDED]
    assert len(committed) == 1
    assert committed[0].delta.added == (2,)


@pytest.mark.asyncio
async def test_failed_commit_emits_failed_status() -> None:
    workflow = make_workflow([1], persist=FakePersistence(fail_with=RuntimeError("x")))
    statuses: list[MutationStatus] = []
    workflow.commit_status.subscribe(lambda event: statuses.append(event.status))
    workflow.toggle(2)

    with pytest.raises(PersistenceFailure):
        await workflow.commit()

    assert statuses == [MutationStatus.PENDING, MutationStatus.FAILED]


# ----------------------------------------------------------------- Stale identifiers


def test_refresh_catalog_reports_stale_ids_and_excludes_them_from_counts() -> None:
    workflow = make_workflow([1, 3])
    workflow.toggle(2)

    stale = workflow.refresh_catalog([make_item(1, "Role.View", "Role"), make_item(2, "Role.Create", "Role")])

    assert [(entry.item_id, entry.in_baseline) for entry in stale] == [(3, True)]
    assert 3 in workflow.selection
    assert workflow.selected_count == 2
    assert [item.id for item in workflow.selected_items()] == [1, 2]
    assert workflow.group_state("Role") is GroupSelectionState.ALL


def test_stale_ids_resurrect_when_item_returns() -> None:
    workflow = make_workflow([1, 3])
    workflow.refresh_catalog(make_catalog()[:2])

    workflow.refresh_catalog(make_catalog())

    assert workflow.stale_identifiers() == []
    assert workflow.selected_count == 2


@pytest.mark.asyncio
async def test_commit_sends_only_live_ids_and_prunes_stale() -> None:
    persistence = FakePersistence()
    workflow = make_workflow([1, 3], persist=persistence)
    workflow.toggle(2)
    workflow.refresh_catalog(make_catalog()[:2])

    await workflow.commit()

    assert persistence.last_ids == [1, 2]
    assert workflow.baseline == (1, 2)
    assert workflow.selection == (1, 2)
    assert workflow.stale_identifiers() == []
    assert not workflow.has_changes


def test_refresh_expands_new_groups_when_expanding_by_default() -> None:
    workflow = make_workflow([1])
    workflow.expansion.toggle("Role")

    workflow.refresh_catalog([*make_catalog(), make_item(4, "Audit.Read", "Audit")])

    assert workflow.is_expanded("Audit")
    assert workflow.is_expanded("User")
    assert not workflow.is_expanded("Role")


def test_refresh_leaves_new_groups_collapsed_when_default_is_off() -> None:
    workflow = make_workflow([1], expanded_groups=())

    workflow.refresh_catalog([*make_catalog(), make_item(4, "Audit.Read", "Audit")])

    assert not workflow.is_expanded("Audit")


def test_prune_stale_drops_missing_ids() -> None:
    workflow = make_workflow([1, 404])

    assert workflow.prune_stale() == [404]
    assert workflow.selection == (1,)
    assert workflow.has_changes


# ----------------------------------------------------------------- Groups and predicates


def test_toggle_group_selects_then_clears_members() -> None:
    workflow = make_workflow([1])

    assert workflow.toggle_group("Role") is GroupSelectionState.ALL
    assert set(workflow.selection) == {1, 2}

    assert workflow.toggle_group("Role") is GroupSelectionState.NONE
    assert workflow.selection == ()


def test_toggle_group_leaves_members_hidden_by_search_alone() -> None:
    workflow = make_workflow([])
    workflow.filter.set_search_term("create")

    assert workflow.toggle_group("Role") is GroupSelectionState.ALL
    assert workflow.selection == (2,)

    workflow.filter.set_search_term("")
    assert workflow.group_state("Role") is GroupSelectionState.PARTIAL


def test_toggle_group_clear_keeps_hidden_selected_members() -> None:
    workflow = make_workflow([1, 2])
    workflow.filter.set_search_term("view")

    assert workflow.group_state("Role") is GroupSelectionState.ALL
    assert workflow.toggle_group("Role") is GroupSelectionState.NONE
    assert workflow.selection == (2,)


def test_group_state_counts_only_visible_members() -> None:
    workflow = make_workflow([2])

    assert workflow.group_state("Role") is GroupSelectionState.PARTIAL
    workflow.filter.set_search_term("create")
    assert workflow.group_state("Role") is GroupSelectionState.ALL
    workflow.filter.set_search_term("role.view")
    assert workflow.group_state("Role") is GroupSelectionState.NONE


def test_toggle_group_within_narrows_to_given_rows() -> None:
    workflow = make_workflow([])

    assert workflow.toggle_group("Role", within=[1]) is GroupSelectionState.ALL
    assert workflow.selection == (1,)
    assert workflow.group_state("Role") is GroupSelectionState.PARTIAL


def test_toggle_unknown_group_changes_nothing() -> None:
    workflow = make_workflow([1])

    assert workflow.toggle_group("Nope") is GroupSelectionState.NONE
    assert workflow.selection == (1,)


def test_selectable_predicate_limits_bulk_selection() -> None:
    catalog = [
        make_item(1, "Admin", "Roles", is_system=True),
        make_item(2, "Editor", "Roles"),
        make_item(3, "Viewer", "Roles"),
    ]
    workflow = make_workflow(
        [],
        catalog=catalog,
        selectable=lambda item: not item.is_system,
    )

    workflow.select_all_visible()

    assert workflow.selection == (2, 3)
    assert not workflow.is_selectable(catalog[0])
    assert [item.id for item in workflow.selectable_items()] == [2, 3]
    workflow.toggle_group("Roles")
    assert workflow.selection == ()


def test_select_all_visible_respects_filter() -> None:
    workflow = make_workflow([])
    workflow.filter.set_category("Role")

    workflow.select_all_visible()

    assert workflow.selection == (1, 2)


def test_apply_template_replaces_selection() -> None:
    workflow = make_workflow([1])

    workflow.apply_template([3, 2])
    assert workflow.selection == (3, 2)

    workflow.apply_template([])
    assert workflow.selection == ()
    assert workflow.delta().removed == (1,)


def test_counts_cover_whole_catalog() -> None:
    workflow = make_workflow([1])
    workflow.filter.set_search_term("user")

    assert workflow.total_count == 3
    assert workflow.selected_count == 1


def test_workflow_accepts_string_ids() -> None:
    catalog = [make_item("a", "Alpha"), make_item("b", "Beta")]
    workflow = AssignmentWorkflow("user-9", catalog, FakePersistence())
    workflow.start(["a"])

    assert workflow.toggle("b") is True
    assert workflow.delta().added == ("b",)
