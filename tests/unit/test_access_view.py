from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from station_access.access.filters import RecordFilter
from station_access.consumers.access_view import StationAccessView
from station_access.module_access.service import ModuleAccessRegistry
from station_access.stations.directory import StationDirectory
from tests.utils import RecordingBackend

pytestmark = pytest.mark.asyncio

EMPLOYEE = {"role": "employee", "permissions": ["view_north"]}
MANAGER = {"role": "Manager", "permissions": "[]"}


async def test_employee_scenario(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    async with StationAccessView(directory, registry, EMPLOYEE) as view:
        options = view.get_resource_options(include_aggregate=True)

        assert view.get_accessible_resource_names() == ["North"]
        assert [option.value for option in options] == ["North"]
        assert options[0].color == "bg-blue-500"
        assert view.can_perform("products", "create")

    assert not view.mounted


async def test_manager_gets_aggregate_option_first(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    view = StationAccessView(directory, registry, MANAGER)
    await view.mount()

    options = view.get_resource_options()

    assert options[0].value == "ALL"
    assert options[0].label == "All Stations"
    assert [option.value for option in options[1:]] == ["North", "South"]
    assert [option.value for option in view.get_resource_options(False)] == ["North", "South"]
    view.close()


async def test_write_through_one_view_is_seen_by_all(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    admin = StationAccessView(directory, registry, {"role": "admin"})
    employee = StationAccessView(directory, registry, {"role": "employee", "permissions": ["view_east"]})
    await admin.mount()
    await employee.mount()
    on_change = MagicMock()
    employee.subscribe(on_change)

    result = await directory.add({"name": "East"})

    assert result.success
    assert "East" in admin.get_accessible_resource_names()
    assert employee.get_accessible_resource_names() == ["East"]
    on_change.assert_called_with(employee)


async def test_mount_loads_each_store_once(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
    station_backend: RecordingBackend,
    module_backend: RecordingBackend,
) -> None:
    views = [StationAccessView(directory, registry, EMPLOYEE) for _ in range(3)]

    for view in views:
        await view.mount()

    assert station_backend.calls["list"] == 1
    # An empty module table is never fresh.
    assert module_backend.calls["list"] == 3


async def test_view_notifies_after_store_transitions(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    view = StationAccessView(directory, registry, EMPLOYEE)
    snapshots: list[list[str]] = []
    view.subscribe(lambda v: snapshots.append(v.get_accessible_resource_names()))

    await view.mount()

    assert snapshots[-1] == ["North"]
    assert len(snapshots) == 4


async def test_closed_view_stops_listening(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    view = StationAccessView(directory, registry, EMPLOYEE)
    await view.mount()
    on_change = MagicMock()
    view.subscribe(on_change)

    view.close()
    view.close()
    await directory.load(force_refresh=True)

    on_change.assert_not_called()


async def test_set_profile_rederives_and_notifies(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    view = StationAccessView(directory, registry, EMPLOYEE)
    await view.mount()
    on_change = MagicMock()
    view.subscribe(on_change)

    view.set_profile({"role": "employee", "stationAccess": '["South"]'})

    on_change.assert_called_once_with(view)
    assert view.get_accessible_resource_names() == ["South"]


async def test_module_toggles_flow_through_the_view(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    view = StationAccessView(directory, registry, EMPLOYEE)
    await view.mount()
    await registry.initialize_defaults()

    assert not view.can_perform("products", "create")
    assert view.actions_for("products").view

    await registry.set_flag("products", "create", True)

    assert view.can_perform("products", "create")
    projection = view.projection("products")
    assert projection.actions.create is True
    assert projection.accessible_stations == ("North",)


async def test_record_filters_follow_access(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
) -> None:
    employee = StationAccessView(directory, registry, EMPLOYEE)
    manager = StationAccessView(directory, registry, MANAGER)
    guest = StationAccessView(directory, registry, None)
    await employee.mount()

    assert employee.record_filters("ALL") == [RecordFilter(name="station", value="North")]
    assert manager.record_filters("ALL") is None
    assert manager.record_filters("South") == [RecordFilter(name="station", value="South")]
    assert guest.record_filters("ALL_STATIONS") == [
        RecordFilter(name="station", value="__NO_ACCESS__")
    ]


async def test_loading_and_error_reflect_the_stores(
    directory: StationDirectory,
    registry: ModuleAccessRegistry,
    station_backend: RecordingBackend,
) -> None:
    station_backend.fail_next("list", "offline")
    view = StationAccessView(directory, registry, EMPLOYEE)

    await view.mount()

    assert view.loading is False
    assert view.error == "offline"
    assert view.get_resource_options() == []
