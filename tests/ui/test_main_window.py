from __future__ import annotations

import httpx
import pytest
import respx

from access_console.api import ApiClient, ApiClientConfig
from access_console.auth import AccessChecker
from access_console.bootstrap import build_services, load_access
from access_console.ui import AssignmentWindow
from tests.factories import make_settings


pytestmark = pytest.mark.usefixtures("qt_app")

BASE_URL = "https://api.example.test/api"


def _registry():
    return build_services(
        make_settings(), client=ApiClient(ApiClientConfig(base_url=BASE_URL, token="t"))
    )


@pytest.mark.asyncio
async def test_load_access_attaches_checker(respx_mock: respx.MockRouter) -> None:
    respx_mock.get(f"{BASE_URL}/auth/me").mock(
        return_value=httpx.Response(
            200, json={"user": {"permissions": ["menus.assign"], "roles": ["Admin"]}}
        )
    )
    registry = _registry()

    access = await load_access(registry)

    assert registry.access is access
    assert access.has_permission("menus.assign")


@pytest.mark.asyncio
async def test_window_opens_editor_with_templates(respx_mock: respx.MockRouter) -> None:
    respx_mock.get(f"{BASE_URL}/permissions").mock(
        return_value=httpx.Response(200, json=[{"id": 1, "name": "roles.view"}])
    )
    respx_mock.get(f"{BASE_URL}/roles/2").mock(
        return_value=httpx.Response(200, json={"id": 2, "permissions": []})
    )
    respx_mock.get(f"{BASE_URL}/permission-templates").mock(
        return_value=httpx.Response(200, json=[{"id": 5, "name": "Viewer"}])
    )
    window = AssignmentWindow(_registry(), make_settings())

    await window.open_assignment("role_permissions", 2)

    assert window.editor is not None
    assert window.centralWidget() is window.editor
    assert window.editor.template_combo.count() == 1
    assert window.editor.counter.text == "Selected: 0 / 1"


@pytest.mark.asyncio
async def test_window_shows_error_when_access_denied() -> None:
    registry = _registry()
    registry.access = AccessChecker()
    window = AssignmentWindow(registry, make_settings())

    await window.open_assignment("role_menus", 3)

    assert window.editor is None
    assert "do not have access" in window.centralWidget().text()


@pytest.mark.asyncio
async def test_window_refuses_to_open_without_edit_permission(
    respx_mock: respx.MockRouter,
) -> None:
    registry = _registry()
    registry.access = AccessChecker(permissions={"menus.assign"})
    window = AssignmentWindow(registry, make_settings())

    await window.open_assignment("user_roles", 7)

    assert window.editor is None
    assert not respx_mock.calls
    assert not window.refresh_action.isEnabled()
    assert window.centralWidget().text() == "You do not have access to edit user roles."


@pytest.mark.asyncio
async def test_refresh_catalog_reloads_editor_and_reports_stale_ids(
    respx_mock: respx.MockRouter,
) -> None:
    catalog_route = respx_mock.get(f"{BASE_URL}/menu/flat")
    catalog_route.side_effect = [
        httpx.Response(200, json=[{"id": 1, "name": "Home"}, {"id": 2, "name": "Reports"}]),
        httpx.Response(200, json=[{"id": 1, "name": "Home"}, {"id": 3, "name": "Audit"}]),
    ]
    respx_mock.get(f"{BASE_URL}/menu/role/4").mock(
        return_value=httpx.Response(200, json=[{"id": 1}, {"id": 2}])
    )
    window = AssignmentWindow(_registry(), make_settings())
    await window.open_assignment("role_menus", 4)
    assert window.refresh_action.isEnabled()

    stale = await window.refresh_catalog()

    assert stale == [2]
    assert window.editor is not None
    assert window.editor.model.index_for_item(3).isValid()
    assert window.editor.counter.text == "Selected: 1 / 2"
    assert "1 selected item(s)" in window.statusBar().currentMessage()


@pytest.mark.asyncio
async def test_refresh_catalog_without_editor_is_a_no_op() -> None:
    window = AssignmentWindow(_registry(), make_settings())

    assert await window.refresh_catalog() == []
