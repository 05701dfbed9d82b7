import asyncio
import concurrent.futures
from unittest import mock

import flet as ft
import flet_geolocator as ftg
import pytest

from ciclus_rd.frontend.geolocation import GeolocatorProvider, create_position_provider
from ciclus_rd.shared.errors import LocationUnavailableError

FIX = ftg.GeolocatorPosition(latitude=-22.9068, longitude=-43.1729, accuracy=8.5)


class FakeGeolocator:
    def __init__(self, enabled=True, status=ftg.GeolocatorPermissionStatus.WHILE_IN_USE, position=FIX):
        self.enabled = enabled
        self.status = status
        self.position = position
        self.fixes = 0

    async def is_location_service_enabled(self):
        return self.enabled

    async def request_permission(self):
        return self.status

    async def get_current_position(self):
        self.fixes += 1
        return self.position


class LoopPage:
    """Runs each page task to completion on a private event loop"""

    web = False
    platform = ft.PagePlatform.ANDROID

    def run_task(self, handler, *args):
        future = concurrent.futures.Future()
        try:
            future.set_result(asyncio.run(handler(*args)))
        except Exception as e:
            future.set_exception(e)
        return future


class StalledPage(LoopPage):
    def run_task(self, handler, *args):
        self.pending = concurrent.futures.Future()
        return self.pending


def test_current_position_becomes_device_position():
    provider = GeolocatorProvider(LoopPage(), FakeGeolocator())
    position = provider(15)
    assert (position.lat, position.lng, position.accuracy) == (-22.9068, -43.1729, 8.5)
    assert position.timestamp is not None


@pytest.mark.parametrize("geolocator", [
    FakeGeolocator(enabled=False),
    FakeGeolocator(status=ftg.GeolocatorPermissionStatus.DENIED),
    FakeGeolocator(status=ftg.GeolocatorPermissionStatus.DENIED_FOREVER),
    FakeGeolocator(position=ftg.GeolocatorPosition()),
])
def test_unavailable_location_raises(geolocator):
    with pytest.raises(LocationUnavailableError):
        GeolocatorProvider(LoopPage(), geolocator)(15)


def test_denied_permission_skips_the_fix():
    geolocator = FakeGeolocator(status=ftg.GeolocatorPermissionStatus.DENIED)
    with pytest.raises(LocationUnavailableError):
        GeolocatorProvider(LoopPage(), geolocator)(15)
    assert geolocator.fixes == 0


def test_no_answer_within_timeout_cancels_the_task():
    page = StalledPage()
    with pytest.raises(TimeoutError):
        GeolocatorProvider(page, FakeGeolocator())(0.01)
    assert page.pending.cancelled()


@pytest.mark.parametrize("platform", [ft.PagePlatform.LINUX, ft.PagePlatform.ANDROID_TV])
def test_no_provider_without_location_service(platform):
    page = LoopPage()
    page.platform = platform
    assert create_position_provider(page) is None


@pytest.mark.parametrize("platform, web", [
    (ft.PagePlatform.ANDROID, False),
    (ft.PagePlatform.IOS, False),
    (ft.PagePlatform.WINDOWS, False),
    (ft.PagePlatform.LINUX, True),
])
def test_provider_where_a_location_service_exists(platform, web):
    page = LoopPage()
    page.platform = platform
    page.web = web
    with mock.patch.object(ftg, "Geolocator") as geolocator_cls:
        provider = create_position_provider(page)
    assert isinstance(provider, GeolocatorProvider)
    assert provider.geolocator is geolocator_cls.return_value
    assert provider.page is page
