"""Shared pytest fixtures for station access tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from station_access.module_access.service import ModuleAccessRegistry
from station_access.settings import Settings, reload_settings
from station_access.stations.directory import StationDirectory
from tests.utils import FakeClock, RecordingBackend, station_row


def pytest_collection_modifyitems(config, items) -> None:
    for item in items:
        path_str = str(Path(str(item.fspath)))
        if "/tests/integration/" in path_str:
            item.add_marker(pytest.mark.integration)
        elif "/tests/unit/" in path_str:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep the cached settings from leaking between tests."""

    monkeypatch.chdir(tmp_path)
    reload_settings()
    yield
    reload_settings()


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def station_backend() -> RecordingBackend:
    return RecordingBackend(
        "stations",
        [
            station_row("North", color="bg-blue-500"),
            station_row("South"),
        ],
    )


@pytest.fixture()
def module_backend() -> RecordingBackend:
    return RecordingBackend("module_access")


@pytest.fixture()
def directory(
    station_backend: RecordingBackend,
    settings: Settings,
    clock: FakeClock,
) -> StationDirectory:
    return StationDirectory(station_backend, settings=settings, clock=clock)


@pytest.fixture()
def registry(
    module_backend: RecordingBackend,
    settings: Settings,
    clock: FakeClock,
) -> ModuleAccessRegistry:
    return ModuleAccessRegistry(module_backend, settings=settings, clock=clock)
