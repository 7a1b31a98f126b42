import pytest

from app.core.categories import normalize_category
from app.services.business_service import haversine_miles
from app.services.business_validation import (
    normalize_city,
    normalize_location,
    normalize_phone,
    normalize_street_address,
    normalize_website,
    normalize_zip_code,
    validate_business_hours,
    validate_business_name,
)


def test_normalize_street_address_keeps_directions_upper():
    assert normalize_street_address("  123 nw  main  ave ") == "123 NW Main AVE"


def test_normalize_city_lowercases_connectors():
    assert normalize_city("st. louis of the west") == "St. Louis of the West"


def test_normalize_zip_code_formats_nine_digits():
    assert normalize_zip_code("972011234") == "97201-1234"
    assert normalize_zip_code("97201") == "97201"


def test_normalize_location_upper_cases_state_and_defaults_country():
    location = normalize_location({"address": "1 main st", "city": "salem", "state": "or", "zipCode": "97301"})

    assert location["state"] == "OR"
    assert location["country"] == "US"
    assert location["coordinates"] is None


@pytest.mark.parametrize(
    "raw,expected",
    [("555.123.4567", "(555) 123-4567"), ("+1 555 123 4567", "(555) 123-4567"), ("12345", "12345")],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_normalize_website_adds_scheme():
    assert normalize_website("Example.com/") == "https://example.com"
    assert normalize_website("http://shop.example") == "http://shop.example"


def test_business_name_rules():
    assert validate_business_name("Classic Cafe") == []
    assert validate_business_name("Hell's Kitchen Diner") == ["Business name contains inappropriate language"]
    assert validate_business_name("Shop!!!@@") == ["Business name contains too many special characters"]
    assert validate_business_name("A") == ["Business name is too short"]


def test_business_hours_allow_overnight_but_not_zero_length():
    assert validate_business_hours({"friday": {"open": "22:00", "close": "02:00"}}) == []
    assert validate_business_hours({"monday": {"open": "09:00", "close": "09:00"}}) == [
        "monday: Opening and closing times cannot be the same"
    ]
    assert validate_business_hours({"sunday": {"closed": True, "open": "10:00"}}) == [
        "sunday: Cannot have opening hours when marked as closed"
    ]


def test_normalize_category_accepts_labels_with_spaces():
    assert normalize_category("Home Services") == "home_services"
    with pytest.raises(ValueError, match="Invalid category"):
        normalize_category("spaceships")


def test_haversine_portland_to_seattle():
    assert 140 < haversine_miles(45.5152, -122.6784, 47.6062, -122.3321) < 150
