from unittest import mock

import pytest
import requests

from ciclus_rd.backend.services import GeocodingClient
from ciclus_rd.backend.services.geocoding_service import parse_search_item


def response(payload):
    resp = mock.Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def client(config):
    return GeocodingClient(config)


def test_search_parses_candidates(client):
    payload = [{
        "display_name": "Rua das Flores, Centro, Cidade",
        "lat": "-22.90",
        "lon": "-43.20",
        "address": {"road": "Rua das Flores", "suburb": "Centro"},
    }]
    with mock.patch("requests.get", return_value=response(payload)) as get:
        results = client.search("Rua das Flores")

    assert results[0].street == "Rua das Flores"
    assert results[0].neighborhood == "Centro"
    assert results[0].lat == -22.9 and results[0].lng == -43.2
    params = get.call_args.kwargs["params"]
    assert params["countrycodes"] == "br"
    assert get.call_args.kwargs["timeout"] == client.settings.geocoding_timeout


def test_short_queries_skip_the_network(client):
    with mock.patch("requests.get") as get:
        assert client.search("Rua") == []
    get.assert_not_called()


def test_street_falls_back_to_first_display_segment():
    item = parse_search_item({"display_name": "Praça XV, Centro", "address": {}})
    assert item.street == "Praça XV"
    assert item.lat is None


def test_network_failures_are_soft(client):
    with mock.patch("requests.get", side_effect=requests.ConnectionError("offline")):
        assert client.search("Rua das Flores") == []
        assert client.reverse(1, 2) is None
        assert client.nearby_streets(1, 2) == []


def test_reverse_geocode(client):
    payload = {"display_name": "Rua A, Bairro B", "address": {"residential": "Rua A", "quarter": "Bairro B"}}
    with mock.patch("requests.get", return_value=response(payload)):
        result = client.reverse(-22.9, -43.2)
    assert result.street == "Rua A"
    assert result.neighborhood == "Bairro B"
    assert result.lat == -22.9


def test_reverse_without_address_details(client):
    with mock.patch("requests.get", return_value=response({"display_name": "Oceano"})):
        assert client.reverse(0, 0) is None
    with mock.patch("requests.get", return_value=response({"address": {"country": "Brasil"}})):
        assert client.reverse(0, 0) is None


def test_nearby_streets_filters_and_sorts(client):
    payload = {"elements": [
        {"tags": {"name": "Rua B", "highway": "residential"}},
        {"tags": {"name": "Rua A", "highway": "residential"}},
        {"tags": {"name": "Rua A", "highway": "residential"}},
        {"tags": {"name": "Rodovia Presidente Dutra", "highway": "motorway"}},
        {"tags": {"name": "Avenida Brasil", "highway": "trunk"}},
        {"tags": {"name": "Rua das Flores", "highway": "primary"}},
        {"tags": {"highway": "service"}},
    ]}
    with mock.patch("requests.get", return_value=response(payload)):
        assert client.nearby_streets(1, 2, current_street="rua das flores") == ["Rua A", "Rua B"]


@pytest.mark.parametrize("payload", [{"error": "Unable to geocode"}, "erro", None, 42])
def test_unexpected_payloads_are_soft(client, payload):
    with mock.patch("requests.get", return_value=response(payload)):
        assert client.search("Rua das Flores") == []
        assert client.reverse(1, 2) is None
        assert client.nearby_streets(1, 2) == []


def test_search_skips_malformed_items(client):
    payload = ["lixo", {"display_name": "Rua A, Centro", "lat": "1", "lon": "2", "address": {"road": "Rua A"}}]
    with mock.patch("requests.get", return_value=response(payload)):
        assert [s.street for s in client.search("Rua A Centro")] == ["Rua A"]
