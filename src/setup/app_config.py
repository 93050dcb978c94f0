import logging

import inject

from src.fleet.domain.repositories import (
    GeocodingRepository,
    RoutingRepository,
    TaskServiceRepository,
)
from src.fleet.infrastructure.http.client import HttpClient
from src.fleet.infrastructure.nominatim.client import NominatimGeocodeClient
from src.fleet.infrastructure.osrm.client import OsrmRouteClient
from src.fleet.infrastructure.taskapi.client import HttpTaskService
from src.setup.client_config import ClientSettings, get_client_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: ClientSettings | None = None) -> None:
    """Configure root logging from ``LOG_LEVEL``."""
    if settings is None:
        settings = get_client_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)


def build_geocoder(settings: ClientSettings) -> NominatimGeocodeClient:
    http = HttpClient(
        settings.GEOCODER_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        # Nominatim's usage policy requires an identifying User-Agent.
        headers={"User-Agent": settings.GEOCODER_USER_AGENT},
    )
    return NominatimGeocodeClient(
        http,
        country_codes=settings.GEOCODER_COUNTRY_CODES or None,
        limit=settings.GEOCODER_RESULT_LIMIT,
    )


def build_router(settings: ClientSettings) -> OsrmRouteClient:
    http = HttpClient(settings.ROUTER_URL, timeout=settings.HTTP_TIMEOUT_SECONDS)
    return OsrmRouteClient(http, profile=settings.ROUTER_PROFILE)


def build_task_service(settings: ClientSettings) -> HttpTaskService:
    http = HttpClient(settings.API_BASE_URL, timeout=settings.HTTP_TIMEOUT_SECONDS)
    return HttpTaskService(http)


def configure_di(settings: ClientSettings | None = None) -> None:
    """Bind repository contracts to their HTTP implementations."""
    if settings is None:
        settings = get_client_settings()

    def _config(binder: inject.Binder) -> None:
        binder.bind(GeocodingRepository, build_geocoder(settings))
        binder.bind(RoutingRepository, build_router(settings))
        binder.bind(TaskServiceRepository, build_task_service(settings))

    inject.clear_and_configure(_config)
