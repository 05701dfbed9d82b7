"""
Ciclus RD - Geocoding Client
OpenStreetMap lookups: forward search and reverse geocode (Nominatim), and
named roads around a coordinate (Overpass). One best-effort attempt per call;
any failure is logged and yields an empty result.
"""

from typing import Any, Dict, List, Optional

import requests
from loguru import logger
from pydantic import BaseModel

from ciclus_rd.shared.config import Settings, settings as default_settings

SEARCH_STREET_KEYS = ("road", "pedestrian", "street")
REVERSE_STREET_KEYS = ("road", "street", "pedestrian", "path", "living_street", "residential", "highway")
SEARCH_HOOD_KEYS = ("suburb", "neighbourhood", "city_district")
REVERSE_HOOD_KEYS = SEARCH_HOOD_KEYS + ("quarter", "district", "hamlet", "village", "town", "city")
EXCLUDED_HIGHWAYS = ("motorway", "trunk")


class AddressSuggestion(BaseModel):
    """A geocoded candidate address"""

    display_name: str
    street: str = ""
    neighborhood: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


def _first(address: Dict[str, Any], keys) -> str:
    for key in keys:
        if address.get(key):
            return address[key]
    return ""


def _coordinate(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_search_item(item: Dict[str, Any]) -> AddressSuggestion:
    address = item.get("address") or {}
    display_name = item.get("display_name") or ""
    return AddressSuggestion(
        display_name=display_name,
        street=_first(address, SEARCH_STREET_KEYS) or display_name.split(",")[0],
        neighborhood=_first(address, SEARCH_HOOD_KEYS),
        lat=_coordinate(item.get("lat")),
        lng=_coordinate(item.get("lon")),
    )


class GeocodingClient:
    """HTTP client for the OpenStreetMap services"""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.headers = {"User-Agent": self.settings.geocoding_user_agent}

    def _get_json(self, url: str, params: Dict[str, Any]):
        response = requests.get(url, params=params, headers=self.headers, timeout=self.settings.geocoding_timeout)
        response.raise_for_status()
        return response.json()

    def search(self, query: str, limit: int = 5) -> List[AddressSuggestion]:
        """Forward search: free text -> candidate addresses with coordinates"""
        query = (query or "").strip()
        if len(query) < self.settings.address_min_query_length:
            return []

        try:
            data = self._get_json(f"{self.settings.nominatim_url}/search", {
                "format": "json",
                "q": query,
                "addressdetails": 1,
                "countrycodes": self.settings.geocoding_country_codes,
                "limit": limit,
            })
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Address search failed for '{query}': {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Unexpected address search payload for '{query}': {type(data).__name__}")
            return []
        return [parse_search_item(item) for item in data if isinstance(item, dict)]

    def reverse(self, lat: float, lng: float) -> Optional[AddressSuggestion]:
        """Coordinates -> street and neighborhood, or None"""
        try:
            data = self._get_json(f"{self.settings.nominatim_url}/reverse", {
                "format": "json",
                "lat": lat,
                "lon": lng,
                "addressdetails": 1,
            })
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Reverse geocoding failed for ({lat}, {lng}): {e}")
            return None

        if not isinstance(data, dict):
            return None
        address = data.get("address")
        if not isinstance(address, dict) or not address:
            return None

        street = _first(address, REVERSE_STREET_KEYS)
        neighborhood = _first(address, REVERSE_HOOD_KEYS)
        if not street and not neighborhood:
            return None

        return AddressSuggestion(
            display_name=data.get("display_name") or "",
            street=street,
            neighborhood=neighborhood,
            lat=lat,
            lng=lng,
        )

    def nearby_streets(self, lat: float, lng: float, current_street: str = "") -> List[str]:
        """
        Named roads within the configured radius, sorted, excluding motorways,
        trunks and anything matching the current street
        """
        query = (
            "[out:json][timeout:25];"
            f'(way["highway"]["name"](around:{self.settings.nearby_radius_m},{lat},{lng}););'
            "out tags;"
        )
        try:
            data = self._get_json(self.settings.overpass_url, {"data": query})
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Nearby streets lookup failed: {e}")
            return []

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            logger.warning("Unexpected nearby streets payload")
            return []

        names = set()
        for element in elements:
            tags = element.get("tags") if isinstance(element, dict) else None
            tags = tags if isinstance(tags, dict) else {}
            if tags.get("name") and tags.get("highway") not in EXCLUDED_HIGHWAYS:
                names.add(tags["name"])

        current = (current_street or "").strip().lower()
        streets = sorted(name for name in names if not current or current not in name.lower())
        return streets[:self.settings.nearby_limit]
