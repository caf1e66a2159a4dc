import pytest

from domain.models import GeoNamesResult, NominatimResult
from services.providers import (
    geonames_display_name,
    parse_geonames_payload,
    parse_nominatim_payload,
    to_suggestion,
)


def test_geonames_display_name_skips_missing_parts():
    assert geonames_display_name(GeoNamesResult(geoname_id="1", name="Талгар")) == "Талгар"
    item = GeoNamesResult(geoname_id="1", name="Талгар", country_name="Kazakhstan")
    assert geonames_display_name(item) == "Талгар, Kazakhstan"


def test_parse_geonames_payload_ignores_unexpected_shapes():
    assert parse_geonames_payload(None) == []
    assert parse_geonames_payload({"totalResultsCount": 0}) == []
    assert parse_geonames_payload({"geonames": [{"geonameId": 5, "name": "Есик"}, "junk"]})[0].name == "Есик"


def test_parse_nominatim_payload_accepts_object_and_list():
    single = parse_nominatim_payload({"place_id": 1, "display_name": "Алматы"})
    assert [r.place_id for r in single] == ["1"]
    assert parse_nominatim_payload([{"place_id": 2}, {"place_id": 3}])[1].place_id == "3"
    assert parse_nominatim_payload({"error": "Unable to geocode"}) == []
    assert parse_nominatim_payload("oops") == []


def test_nominatim_adapter_keeps_address_parts():
    raw = NominatimResult.from_json(
        {
            "place_id": 7,
            "display_name": "улица Сатпаева, Алматы",
            "lat": 43.23,
            "lon": 76.91,
            "type": "residential",
            "address": {"road": "улица Сатпаева", "city": "Алматы", "postcode": "050000"},
        }
    )
    suggestion = to_suggestion(raw)
    assert suggestion.lat == "43.23"
    assert suggestion.address.road == "улица Сатпаева"
    assert suggestion.address.postcode == "050000"
    assert suggestion.address.street is None


def test_to_suggestion_rejects_unknown_types():
    with pytest.raises(TypeError):
        to_suggestion({"place_id": 1})
