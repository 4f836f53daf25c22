import pytest

from report_relay.geo import entity_location, reproject
from report_relay.render import TextLimits, new_message_text, response_update_text

from conftest import NOW, make_entity, ms

LIMITS = TextLimits(subject_with_image=10, subject=20, response_max=12, response_cut=8)


def test_utm_point_is_reprojected_to_wgs84():
    long, lat = reproject((681000.0, 5780000.0), "EPSG:25832")

    assert 11.5 < long < 11.8
    assert 52.0 < lat < 52.2


def test_wgs84_point_passes_through():
    assert reproject((11.6, 52.1), "EPSG:4326") == (11.6, 52.1)


def test_unsupported_system_is_rejected():
    with pytest.raises(ValueError):
        reproject((1.0, 2.0), "EPSG:3857")


def test_entity_without_position_has_no_location():
    assert entity_location(make_entity(1)) is None


def test_entity_location_reads_geocoding():
    entity = make_entity(1, messagePosition={
        "geoCoding": {"latitude": 52.1, "longitude": 11.6, "coordinateSystem": "EPSG:4326"},
    })

    assert entity_location(entity) == (11.6, 52.1)


def test_subject_is_cut_shorter_when_image_attached():
    entity = make_entity(1, subject="A" * 40)

    with_image = new_message_text(entity, "https://x", LIMITS, with_image=True, image_credit="City")
    without = new_message_text(entity, "https://x", LIMITS)

    assert "A" * 10 + "\n" in with_image
    assert with_image.endswith("Bild: City")
    assert "A" * 20 + "\n" in without


def test_response_text_uses_newest_response_and_truncates():
    entity = make_entity(1, responses=[
        {"message": "newest and quite long", "messageDate": ms(NOW)},
        {"message": "older", "messageDate": ms(NOW) - 1000},
    ])

    assert response_update_text(entity, LIMITS) == '19.10.2026:\n\n"newest a[...]"'


def test_response_text_none_without_responses():
    assert response_update_text(make_entity(1), LIMITS) is None
