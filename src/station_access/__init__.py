"""Station and module access resolution for the portal's CRUD screens."""

from station_access.access.normalizer import NormalizedContext, UserAccessContext
from station_access.common.results import OperationResult
from station_access.consumers.access_view import StationAccessView
from station_access.container import AccessControl, create_access_control
from station_access.module_access.service import ModuleAccessRegistry
from station_access.settings import Settings, get_settings
from station_access.stations.directory import StationDirectory

__all__ = [
    "AccessControl",
    "ModuleAccessRegistry",
    "NormalizedContext",
    "OperationResult",
    "Settings",
    "StationAccessView",
    "StationDirectory",
    "UserAccessContext",
    "create_access_control",
    "get_settings",
]
