"""
Ciclus RD - Device Geolocation
Position provider for the report form, backed by the flet geolocator service
"""

import concurrent.futures
from typing import Optional

import flet as ft
import flet_geolocator as ftg
from loguru import logger

from ciclus_rd.frontend.form_controller import DevicePosition
from ciclus_rd.shared.errors import LocationUnavailableError

# No location backend on these targets
UNSUPPORTED_PLATFORMS = {ft.PagePlatform.LINUX, ft.PagePlatform.ANDROID_TV}

DENIED = {ftg.GeolocatorPermissionStatus.DENIED, ftg.GeolocatorPermissionStatus.DENIED_FOREVER}


class GeolocatorProvider:
    """
    Blocking `provider(timeout) -> DevicePosition` for the form controller.
    The lookup runs on the page's event loop, so call it from a worker thread.
    """

    def __init__(self, page: ft.Page, geolocator: Optional[ftg.Geolocator] = None):
        self.page = page
        self.geolocator = geolocator or ftg.Geolocator(
            configuration=ftg.GeolocatorConfiguration(accuracy=ftg.GeolocatorPositionAccuracy.HIGH),
        )

    async def locate(self):
        if not await self.geolocator.is_location_service_enabled():
            raise LocationUnavailableError("Serviço de localização desativado")

        status = await self.geolocator.request_permission()
        if status in DENIED:
            raise LocationUnavailableError(f"Permissão de localização negada ({status.value})")

        return await self.geolocator.get_current_position()

    def __call__(self, timeout: float) -> DevicePosition:
        future = self.page.run_task(self.locate)
        try:
            position = future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise TimeoutError(f"GPS sem resposta em {timeout:.0f}s") from None

        if position is None or position.latitude is None or position.longitude is None:
            raise LocationUnavailableError("Posição sem coordenadas")

        logger.debug(f"GPS fix: {position.latitude:.6f}, {position.longitude:.6f} (±{position.accuracy})")
        return DevicePosition(lat=position.latitude, lng=position.longitude, accuracy=position.accuracy)


def create_position_provider(page: ft.Page) -> Optional[GeolocatorProvider]:
    """A provider for the page, or None where the platform has no location service"""
    if not page.web and page.platform in UNSUPPORTED_PLATFORMS:
        logger.info(f"No location service on {page.platform.value}; GPS capture disabled")
        return None
    return GeolocatorProvider(page)
