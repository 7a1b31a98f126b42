from __future__ import annotations

import re
from typing import Any

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_UPPER_WORDS = {"NE", "NW", "SE", "SW", "N", "S", "E", "W", "AVE", "ST", "RD", "DR", "LN", "CT", "PL", "BLVD"}
_LOWER_WORDS = {"and", "of", "the", "in", "on", "at", "to", "for", "with"}
_INAPPROPRIATE_WORDS = ("fuck", "shit", "damn", "hell", "ass", "bitch", "bastard", "crap")
_WORD = re.compile(r"\b\w+")
_TIME = re.compile(r"^(\d{1,2}):(\d{2})$")


def _title_word(word: str, *, keep_upper: bool) -> str:
    if keep_upper and word.upper() in _UPPER_WORDS:
        return word.upper()
    if word.lower() in _LOWER_WORDS:
        return word.lower()
    return word[:1].upper() + word[1:].lower()


def _collapse(value: str) -> str:
    return re.sub(r"\s+", " ", (value or "").strip())


def normalize_street_address(address: str) -> str:
    return _WORD.sub(lambda m: _title_word(m.group(0), keep_upper=True), _collapse(address))


def normalize_city(city: str) -> str:
    return _WORD.sub(lambda m: _title_word(m.group(0), keep_upper=False), _collapse(city))


def normalize_zip_code(zip_code: str) -> str:
    cleaned = re.sub(r"\s+", "", zip_code or "")
    if re.fullmatch(r"\d{9}", cleaned):
        return f"{cleaned[:5]}-{cleaned[5:]}"
    return cleaned


def normalize_location(location: dict[str, Any]) -> dict[str, Any]:
    return {
        "address": normalize_street_address(location.get("address", "")),
        "city": normalize_city(location.get("city", "")),
        "state": (location.get("state") or "").upper(),
        "zipCode": normalize_zip_code(location.get("zipCode", "")),
        "country": (location.get("country") or "US").upper(),
        "coordinates": location.get("coordinates"),
    }


def normalize_phone(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone


def normalize_website(url: str) -> str:
    normalized = url.strip().lower()
    if not normalized.startswith(("http://", "https://")):
        normalized = f"https://{normalized}"
    return normalized.rstrip("/")


def normalize_contact(contact: dict[str, Any] | None) -> dict[str, Any]:
    contact = contact or {}
    normalized: dict[str, Any] = {}
    if contact.get("phone"):
        normalized["phone"] = normalize_phone(contact["phone"])
    if contact.get("email"):
        normalized["email"] = contact["email"].strip().lower()
    if contact.get("website"):
        normalized["website"] = normalize_website(contact["website"])
    return normalized


def validate_business_name(name: str) -> list[str]:
    errors: list[str] = []
    lowered = (name or "").lower()
    if any(re.search(rf"\b{word}\b", lowered) for word in _INAPPROPRIATE_WORDS):
        errors.append("Business name contains inappropriate language")
    if len(re.findall(r"[^a-zA-Z0-9\s\-&'.]", name or "")) > 3:
        errors.append("Business name contains too many special characters")
    if len((name or "").strip()) < 2:
        errors.append("Business name is too short")
    return errors


def _parse_minutes(value: str) -> int | None:
    match = _TIME.match(value or "")
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def validate_business_hours(hours: dict[str, Any]) -> list[str]:
    """Hours may cross midnight (22:00-02:00); identical open/close is rejected."""
    errors: list[str] = []
    for day in WEEKDAYS:
        day_hours = hours.get(day)
        if not day_hours:
            continue
        if day_hours.get("closed"):
            if day_hours.get("open") or day_hours.get("close"):
                errors.append(f"{day}: Cannot have opening hours when marked as closed")
            continue
        if not day_hours.get("open") or not day_hours.get("close"):
            errors.append(f"{day}: Must specify both opening and closing times")
            continue
        open_at = _parse_minutes(day_hours["open"])
        close_at = _parse_minutes(day_hours["close"])
        if open_at is None or close_at is None:
            errors.append(f"{day}: Invalid time format")
        elif open_at == close_at:
            errors.append(f"{day}: Opening and closing times cannot be the same")
    return errors


def valid_coordinates(lat: Any, lng: Any) -> bool:
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180
