from __future__ import annotations

import re

from pydantic import EmailStr, Field, field_validator, model_validator

from app.core.categories import BUSINESS_CATEGORIES
from app.schemas.common import CamelModel

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
US_PHONE_PATTERN = re.compile(r"^\+?1?[-.\s]?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}$")


class Coordinates(CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class BusinessLocation(CamelModel):
    address: str = Field(min_length=5, max_length=255)
    city: str = Field(min_length=2, max_length=100)
    state: str = Field(min_length=2, max_length=2)
    zip_code: str
    country: str = Field(default="US", min_length=2, max_length=2)
    coordinates: Coordinates | None = None

    @field_validator("state", "country")
    @classmethod
    def validate_uppercase(cls, value: str) -> str:
        return value.upper()

    @field_validator("zip_code")
    @classmethod
    def validate_zip(cls, value: str) -> str:
        value = value.strip()
        if not ZIP_PATTERN.match(value):
            raise ValueError("ZIP code must be in format 12345 or 12345-6789")
        return value


class DayHours(CamelModel):
    open: str | None = None
    close: str | None = None
    closed: bool | None = None

    @field_validator("open", "close")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is not None and not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM format (e.g., 09:00, 17:30)")
        return value

    @model_validator(mode="after")
    def validate_shape(self):
        if self.closed and (self.open is not None or self.close is not None):
            raise ValueError("Cannot have opening hours when marked as closed")
        if self.open is None and not self.closed:
            raise ValueError("Each day must specify either opening/closing times or be marked as closed")
        if (self.open is None) != (self.close is None):
            raise ValueError("If open time is specified, close time is also required")
        if self.open is not None and self.open == self.close:
            raise ValueError("Opening and closing times cannot be the same")
        return self


class BusinessContact(CamelModel):
    phone: str | None = None
    email: EmailStr | None = None
    website: str | None = Field(default=None, max_length=2048)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        if value is not None and not US_PHONE_PATTERN.match(value.strip()):
            raise ValueError("Please provide a valid US phone number (e.g., (555) 123-4567, 555-123-4567)")
        return value


class BusinessServiceItem(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    price: float = Field(ge=0)
    duration: int | None = Field(default=None, ge=1)
    is_active: bool | None = None


def _check_categories(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    if not value:
        raise ValueError("At least one category is required")
    if len(value) > 3:
        raise ValueError("Maximum 3 categories allowed")
    if len(set(value)) != len(value):
        raise ValueError("Categories must be unique")
    for category in value:
        if category not in BUSINESS_CATEGORIES:
            raise ValueError("Category must be one of the predefined business categories")
    return value


def _check_hours(value: dict[str, DayHours] | None) -> dict[str, DayHours] | None:
    if value is None:
        return None
    unknown = [day for day in value if day not in WEEKDAYS]
    if unknown:
        raise ValueError(f"Unknown weekday: {', '.join(unknown)}")
    return value


class BusinessCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    location: BusinessLocation
    categories: list[str]
    hours: dict[str, DayHours]
    contact: BusinessContact
    services: list[BusinessServiceItem] = Field(default_factory=list)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, value):
        return _check_categories(value)

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value):
        return _check_hours(value)


class BusinessUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    location: BusinessLocation | None = None
    categories: list[str] | None = None
    hours: dict[str, DayHours] | None = None
    contact: BusinessContact | None = None
    services: list[BusinessServiceItem] | None = None
    is_active: bool | None = Field(default=None, alias="is_active")

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, value):
        return _check_categories(value)

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value):
        return _check_hours(value)

    @model_validator(mode="after")
    def validate_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class BusinessSearchQuery(CamelModel):
    lat: float | None = None
    lng: float | None = None
    radius: float | None = None
    category: str | None = None
    search: str | None = None
    page: int = 1
    limit: int = 10


class CategoryQuery(CamelModel):
    limit: int = Field(default=10, ge=1, le=50)
