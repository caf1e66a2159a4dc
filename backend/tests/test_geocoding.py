from unittest.mock import MagicMock

import requests

from services.geocoding import (
    CITY_SEARCH_ERROR,
    STREET_SEARCH_ERROR,
    city_cache_key,
    street_cache_key,
    street_query_text,
)

ALMATY_PAYLOAD = {
    "geonames": [
        {
            "geonameId": 1,
            "name": "Алматы",
            "adminName1": "Алматы қаласы",
            "countryName": "Kazakhstan",
            "lat": "43.25",
            "lng": "76.95",
            "fcodeName": "city",
        }
    ]
}

ABAYA_PAYLOAD = [
    {
        "place_id": 9876,
        "display_name": "проспект Абая, Бостандыкский район, Алматы, Казахстан",
        "lat": "43.2389",
        "lon": "76.8897",
        "type": "primary",
        "address": {"road": "проспект Абая", "city": "Алматы", "country": "Казахстан"},
    }
]


def test_search_cities_maps_geonames(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response(ALMATY_PAYLOAD)
    client = make_client(session, geonames_base_url="http://api.geonames.org", geonames_username="demo")

    result = client.search_cities("Алматы", 10)

    assert result.error is None
    assert len(result.suggestions) == 1
    suggestion = result.suggestions[0]
    assert suggestion.display_name == "Алматы, Алматы қаласы, Kazakhstan"
    assert suggestion.id == "1"
    assert suggestion.lat == "43.25"
    assert suggestion.lon == "76.95"
    assert suggestion.type == "city"
    assert suggestion.address.city == "Алматы"
    assert suggestion.address.state == "Алматы қаласы"
    assert suggestion.address.country == "Kazakhstan"

    args, kwargs = session.get.call_args
    assert args[0] == "http://api.geonames.org/searchJSON"
    assert kwargs["params"] == {
        "name_startsWith": "Алматы",
        "maxRows": "10",
        "username": "demo",
        "featureClass": "P",
    }
    assert kwargs["timeout"] == client.timeout


def test_search_cities_http_500_returns_error(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response({"error": "boom"}, status_code=500)
    client = make_client(session)

    result = client.search_cities("Алматы", 10)

    assert result.suggestions == []
    assert result.error == CITY_SEARCH_ERROR == "Failed to search cities"
    assert result.error_kind == "upstream"
    assert result.failed


def test_search_cities_network_error_returns_error(make_client):
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("no route to host")
    client = make_client(session)

    result = client.search_cities("Астана", 5)

    assert result.suggestions == []
    assert result.error == CITY_SEARCH_ERROR
    assert result.error_kind == "network"


def test_search_cities_invalid_json_is_upstream_error(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response(ValueError("not json"))
    client = make_client(session)

    result = client.search_cities("Шымкент", 5)

    assert result.failed
    assert result.error_kind == "upstream"


def test_search_cities_geonames_status_body_is_error(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response(
        {"status": {"message": "user account not enabled", "value": 10}}
    )
    client = make_client(session)

    result = client.search_cities("Алматы", 10)

    assert result.error == CITY_SEARCH_ERROR


def test_empty_result_is_not_an_error(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response({"geonames": []})
    client = make_client(session)

    result = client.search_cities("Zzz", 10)

    assert result.suggestions == []
    assert result.error is None


def test_successful_results_are_cached(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response(ALMATY_PAYLOAD)
    client = make_client(session)

    first = client.search_cities("Алматы", 10)
    second = client.search_cities("Алматы", 10)
    client.search_cities("Алматы", 5)

    assert first == second
    assert first is not second
    assert session.get.call_count == 2
    assert client.cache_size() == 2
    client.clear_cache()
    assert client.cache_size() == 0


def test_failed_results_are_not_cached(make_client, dummy_response):
    session = MagicMock()
    session.get.side_effect = [
        dummy_response(None, status_code=503),
        dummy_response(ALMATY_PAYLOAD),
    ]
    client = make_client(session)

    assert client.search_cities("Алматы", 10).failed
    assert len(client.search_cities("Алматы", 10).suggestions) == 1
    assert session.get.call_count == 2


def test_search_streets_composes_city_into_query(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response(ABAYA_PAYLOAD)
    client = make_client(session, nominatim_base_url="https://nominatim.example.org/")

    result = client.search_streets("Абая", "Алматы", 10)

    args, kwargs = session.get.call_args
    assert args[0] == "https://nominatim.example.org/search"
    assert kwargs["params"] == {
        "q": "Абая, Алматы",
        "format": "json",
        "addressdetails": "1",
        "limit": "10",
        "featuretype": "street",
    }
    assert kwargs["headers"]["User-Agent"] == "prokvartiru-tests/1.0"
    suggestion = result.suggestions[0]
    assert suggestion.id == "9876"
    assert suggestion.address.road == "проспект Абая"
    assert suggestion.address.city == "Алматы"


def test_search_streets_without_city(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response([])
    client = make_client(session)

    result = client.search_streets("Абая")

    assert session.get.call_args.kwargs["params"]["q"] == "Абая"
    assert result.suggestions == []
    assert result.error is None


def test_search_streets_failure(make_client):
    session = MagicMock()
    session.get.side_effect = requests.Timeout("read timed out")
    client = make_client(session)

    result = client.search_streets("Абая", "Алматы")

    assert result.error == STREET_SEARCH_ERROR
    assert result.error_kind == "network"


def test_reverse_geocode(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response(ABAYA_PAYLOAD[0])
    client = make_client(session)

    suggestion = client.reverse_geocode("43.2389", "76.8897")

    assert suggestion is not None
    assert suggestion.address.road == "проспект Абая"
    assert session.get.call_args.args[0].endswith("/reverse")


def test_reverse_geocode_returns_none_on_error(make_client, dummy_response):
    session = MagicMock()
    session.get.return_value = dummy_response({"error": "Unable to geocode"})
    client = make_client(session)

    assert client.reverse_geocode("0", "0") is None

    session.get.side_effect = requests.ConnectionError("down")
    assert client.reverse_geocode("0", "0") is None


def test_cache_keys_and_query_text():
    assert city_cache_key("Алматы", 10) == "city:Алматы:10"
    assert street_cache_key("Абая", "Алматы", 10) == "street:Абая:Алматы:10"
    assert street_cache_key("Абая", None, 10) == "street:Абая:None:10"
    assert street_query_text("Абая", "Алматы") == "Абая, Алматы"
    assert street_query_text("Абая", "  ") == "Абая"
